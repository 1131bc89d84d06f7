"""
User model for CourseMart.

Defines the User table mirrored from the identity provider, the user's
role, and the wishlist/cart/enrollment reference lists.
"""

from datetime import datetime
from enum import Enum
from typing import List
from sqlalchemy import (
    Column, String, DateTime, Text, Table, ForeignKey, Integer, Index, CheckConstraint
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from coursemart.core.database import Base


class UserRole(str, Enum):
    """Roles recognised by the API."""
    USER = "user"
    EDUCATOR = "educator"
    ADMIN = "admin"


# Reference lists between users and courses
user_wishlist = Table(
    "user_wishlist",
    Base.metadata,
    Column("user_id", String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    Column("added_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)

user_cart = Table(
    "user_cart",
    Base.metadata,
    Column("user_id", String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    Column("added_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)

enrollments = Table(
    "enrollments",
    Base.metadata,
    Column("user_id", String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    Column("enrolled_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


class User(Base):
    """
    Local copy of an identity provider account plus marketplace state.
    """
    __tablename__ = "users"

    # Primary key: the identity provider's subject
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Profile fields (refreshed from token claims)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), default="", nullable=False, index=True)
    image_url: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    resume: Mapped[str] = mapped_column(Text, default="", nullable=False)

    role: Mapped[str] = mapped_column(String(20), default=UserRole.USER.value, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    # Relationships
    wishlist: Mapped[List["Course"]] = relationship(
        "Course", secondary=user_wishlist, back_populates="wishlisted_by"
    )
    cart: Mapped[List["Course"]] = relationship(
        "Course", secondary=user_cart, back_populates="in_carts_of"
    )
    enrolled_courses: Mapped[List["Course"]] = relationship(
        "Course", secondary=enrollments, back_populates="enrolled_students"
    )
    purchases = relationship("Purchase", back_populates="user", cascade="all, delete-orphan")
    course_progress = relationship("CourseProgress", back_populates="user", cascade="all, delete-orphan")

    # Table constraints
    __table_args__ = (
        CheckConstraint("role IN ('user', 'educator', 'admin')", name="check_user_role"),
        Index("idx_user_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', name='{self.name}', role='{self.role}')>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def has_role(self, *roles: str) -> bool:
        """Check the user's role against any of the given role names."""
        return self.role in roles

    def is_enrolled_in(self, course_id: int) -> bool:
        return any(course.id == course_id for course in self.enrolled_courses)

    def apply_profile(self, profile: dict) -> bool:
        """Copy profile fields from token claims. Returns True if anything changed."""
        changed = False
        for field, value in profile.items():
            if value and getattr(self, field) != value:
                setattr(self, field, value)
                changed = True
        return changed

    def to_dict(self) -> dict:
        """Convert user to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "image_url": self.image_url,
            "resume": self.resume,
            "role": self.role,
            "wishlist": [course.id for course in self.wishlist],
            "cart": [course.id for course in self.cart],
            "enrolled_courses": [course.id for course in self.enrolled_courses],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
