"""
API routers for CourseMart.

This module contains all API endpoint routers:
- courses: Public course catalog
- users: Purchases, enrollments, progress, ratings, wishlist and cart
- educator: Course authoring and sales views
- admin: Administrative endpoints for users, courses and the audit log
- webhooks: Payment gateway notifications
"""

from fastapi import APIRouter

# Import individual routers
from .courses import router as courses_router
from .users import router as users_router
from .educator import router as educator_router
from .webhooks import router as webhooks_router

# Import admin sub-routers
from .admin import admin_router

# Create main API router
api_router = APIRouter()

# Include all routers with their prefixes
api_router.include_router(
    courses_router,
    prefix="/course",
    tags=["courses"]
)

api_router.include_router(
    users_router,
    prefix="/user",
    tags=["user"]
)

api_router.include_router(
    educator_router,
    prefix="/educator",
    tags=["educator"]
)

api_router.include_router(
    admin_router,
    prefix="/admin",
    tags=["admin"]
)

api_router.include_router(
    webhooks_router,
    prefix="/webhooks",
    tags=["webhooks"]
)

# Export all routers
__all__ = [
    "api_router",
    "courses_router",
    "users_router",
    "educator_router",
    "webhooks_router",
    "admin_router"
]
