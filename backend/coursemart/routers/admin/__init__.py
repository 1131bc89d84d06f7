"""
Admin routers for CourseMart.

This module contains all admin-specific API endpoints:
- courses: every course, drafts included
- users: user listing and role management
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from sqlalchemy import func

from coursemart.core.database import get_db
from coursemart.models.user import User, UserRole, enrollments
from coursemart.models.course import Course
from coursemart.models.purchase import Purchase, PurchaseStatus
from coursemart.models.admin import AdminLog
from coursemart.routers.auth import get_current_admin_user

# Import admin sub-routers
from .courses import router as courses_router
from .users import router as users_router


# Create admin router
admin_router = APIRouter()

# Include all admin sub-routers
admin_router.include_router(
    courses_router,
    prefix="/courses",
    tags=["admin-courses"],
    dependencies=[Depends(get_current_admin_user)]
)

admin_router.include_router(
    users_router,
    prefix="/users",
    tags=["admin-users"],
    dependencies=[Depends(get_current_admin_user)]
)


# Admin dashboard endpoint
@admin_router.get("/dashboard")
async def get_admin_dashboard(
    admin_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
) -> dict:
    """
    Get admin dashboard overview with statistics.
    """
    # User counts per role
    users_by_role = {role.value: 0 for role in UserRole}
    for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all():
        users_by_role[role] = count

    # Course counts
    total_courses = db.query(Course).count()
    published_courses = db.query(Course).filter(
        Course.is_published == True  # noqa: E712
    ).count()

    # Purchase counts per status
    purchases_by_status = {s.value: 0 for s in PurchaseStatus}
    for purchase_status, count in db.query(
        Purchase.status, func.count(Purchase.id)
    ).group_by(Purchase.status).all():
        purchases_by_status[purchase_status] = count

    revenue = db.query(func.coalesce(func.sum(Purchase.amount), 0.0)).filter(
        Purchase.status == PurchaseStatus.COMPLETED.value
    ).scalar()

    # Most enrolled courses
    enrollment_count = func.count(enrollments.c.user_id).label("enrollment_count")
    top_courses = db.query(
        Course.id,
        Course.title,
        enrollment_count
    ).outerjoin(
        enrollments, enrollments.c.course_id == Course.id
    ).group_by(
        Course.id, Course.title
    ).order_by(
        enrollment_count.desc(), Course.id.asc()
    ).limit(5).all()

    return {
        "statistics": {
            "users": {
                "total": sum(users_by_role.values()),
                **users_by_role
            },
            "courses": {
                "total": total_courses,
                "published": published_courses,
                "draft": total_courses - published_courses
            },
            "purchases": {
                "total": sum(purchases_by_status.values()),
                **purchases_by_status
            },
            "revenue": round(float(revenue), 2)
        },
        "top_courses": [
            {
                "id": course.id,
                "title": course.title,
                "enrolled_count": course.enrollment_count
            }
            for course in top_courses
        ]
    }


# Admin logs endpoint
@admin_router.get("/logs")
async def get_admin_logs(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    admin_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
) -> dict:
    """
    Get admin action logs with filtering.
    """
    query = db.query(AdminLog)

    # Apply filters
    if action:
        query = query.filter(AdminLog.action == action)
    if entity_type:
        query = query.filter(AdminLog.entity_type == entity_type)

    # Get total count
    total = query.count()

    # Get logs with pagination
    logs = query.order_by(
        AdminLog.created_at.desc(),
        AdminLog.id.desc()
    ).offset(skip).limit(limit).all()

    return {
        "total": total,
        "skip": skip,
        "limit": limit,
        "logs": [log.to_dict() for log in logs]
    }


# Export all routers
__all__ = ["admin_router"]
