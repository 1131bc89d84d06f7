"""
Database models for CourseMart.

This module contains all SQLAlchemy models for the application:
- User model mirrored from the identity provider, with wishlist/cart/enrollments
- Course models for the catalog and course content
- Purchase and progress models for the student flow
- Admin models for the audit trail
"""

from coursemart.core.database import Base

# Import all models to ensure they're registered with SQLAlchemy
from .user import User, UserRole, user_wishlist, user_cart, enrollments
from .course import Course, Chapter, Lecture, CourseRating
from .purchase import Purchase, PurchaseStatus
from .progress import CourseProgress, progress_summary
from .admin import AdminLog, AdminAction

# Export all models
__all__ = [
    "Base",
    "User",
    "UserRole",
    "user_wishlist",
    "user_cart",
    "enrollments",
    "Course",
    "Chapter",
    "Lecture",
    "CourseRating",
    "Purchase",
    "PurchaseStatus",
    "CourseProgress",
    "progress_summary",
    "AdminLog",
    "AdminAction"
]
