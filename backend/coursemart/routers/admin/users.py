"""
Admin users router for CourseMart.

User listing and role management.
"""

from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session

from coursemart.core.database import get_db
from coursemart.models.user import User, UserRole
from coursemart.models.admin import AdminLog, AdminAction
from coursemart.routers.auth import get_current_admin_user
from coursemart.schemas.user import RoleUpdate


router = APIRouter()


@router.get("")
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[str] = Query(None, pattern="^(user|educator|admin)$"),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    List users, newest first, optionally filtered by role.
    """
    query = db.query(User)

    if role:
        query = query.filter(User.role == role)

    total = query.count()

    users = query.order_by(
        User.created_at.desc(),
        User.id.asc()
    ).offset(skip).limit(limit).all()

    return {
        "users": [user.to_dict() for user in users],
        "total": total,
        "skip": skip,
        "limit": limit
    }


@router.post("/{user_id}/role")
async def update_user_role(
    user_id: str,
    role_update: RoleUpdate,
    request: Request,
    admin_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Set a user's role. Admins cannot demote themselves.
    """
    user = db.get(User, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if user.id == admin_user.id and role_update.role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot demote themselves"
        )

    old_role = user.role
    user.role = role_update.role

    admin_log = AdminLog.log_action(
        user_id=admin_user.id,
        action=AdminAction.ROLE_CHANGE,
        entity_type="user",
        entity_id=user.id,
        details={"old_role": old_role, "new_role": user.role},
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent")
    )
    db.add(admin_log)

    db.commit()

    return {
        "message": f"User role updated to {user.role}",
        "user": user.to_dict()
    }
