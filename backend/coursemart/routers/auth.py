"""
Authentication dependencies for CourseMart.

Bearer tokens are issued by the external identity provider. The first
verified request from a subject creates the local user record; later
requests refresh its profile fields from the token claims.
"""

from typing import Optional, Callable
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from coursemart.core.database import get_db
from coursemart.core.security import verify_token, profile_from_claims
from coursemart.models.user import User, UserRole


logger = logging.getLogger(__name__)

# Bearer scheme for identity provider tokens
bearer_scheme = HTTPBearer(auto_error=False)


def _sync_user(payload: dict, db: Session) -> User:
    user_id = str(payload["sub"])

    user = db.get(User, user_id)
    if user is None:
        user = User(id=user_id, role=UserRole.USER.value, **profile_from_claims(payload))
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Another request created the record first
            db.rollback()
            user = db.get(User, user_id)
        else:
            logger.info(f"Created local user record for {user_id}")
        db.refresh(user)
    elif user.apply_profile(profile_from_claims(payload, with_fallbacks=False)):
        db.commit()
        db.refresh(user)

    return user


# Dependencies
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from the identity provider token.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    return _sync_user(payload, db)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Like get_current_user, but anonymous requests get None instead of a 401.
    """
    if credentials is None:
        return None

    payload = verify_token(credentials.credentials)
    if payload is None:
        return None

    return _sync_user(payload, db)


def require_role(*roles: str) -> Callable[..., User]:
    """
    Build a dependency that only lets users with one of ``roles`` through.
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if not current_user.has_role(*roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied: {' or '.join(roles)} role required"
            )
        return current_user

    return role_checker


get_current_educator = require_role(UserRole.EDUCATOR.value, UserRole.ADMIN.value)
get_current_admin_user = require_role(UserRole.ADMIN.value)
