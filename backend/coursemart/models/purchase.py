"""
Purchase model for CourseMart.

A purchase records the amount charged for one course and follows the
gateway order through to completion or failure.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import (
    Integer, String, DateTime, Float,
    ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from coursemart.core.database import Base


class PurchaseStatus(str, Enum):
    """Lifecycle of a purchase."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Purchase(Base):
    """
    A user's purchase of a course.
    """
    __tablename__ = "purchases"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False)

    # Amount charged (discounted price at purchase time, major units)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=PurchaseStatus.PENDING.value,
        nullable=False
    )

    # Gateway references
    gateway_order_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, unique=True)
    gateway_payment_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

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
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    course = relationship("Course", back_populates="purchases")
    user = relationship("User", back_populates="purchases")

    # Table constraints
    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_purchase_amount_positive"),
        CheckConstraint("status IN ('pending', 'completed', 'failed')", name="check_purchase_status"),
        Index("idx_purchase_course_status", "course_id", "status"),
        Index("idx_purchase_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Purchase(id={self.id}, course_id={self.course_id}, user_id='{self.user_id}', status='{self.status}')>"

    @property
    def is_completed(self) -> bool:
        return self.status == PurchaseStatus.COMPLETED.value
