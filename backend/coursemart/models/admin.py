"""
Admin-specific models for CourseMart.

Defines AdminLog, the audit trail for privileged actions.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum
from sqlalchemy import (
    Boolean, Integer, String, DateTime, Text,
    ForeignKey, Index, JSON
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from coursemart.core.database import Base


class AdminAction(str, Enum):
    """Types of privileged actions to log."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"
    ROLE_CHANGE = "role_change"


class AdminLog(Base):
    """
    Audit log for educator and admin actions.
    """
    __tablename__ = "admin_logs"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # User who performed the action
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False)

    # Action details
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # course, user
    entity_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Action metadata
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)  # Supports IPv6
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Results
    success: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamp
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    # Relationships
    user = relationship("User")

    # Table constraints
    __table_args__ = (
        Index("idx_admin_log_user_action", "user_id", "action"),
        Index("idx_admin_log_entity", "entity_type", "entity_id"),
        Index("idx_admin_log_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AdminLog(id={self.id}, user_id='{self.user_id}', action='{self.action}', entity='{self.entity_type}')>"

    @classmethod
    def log_action(
        cls,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        success: bool = True,
        error_message: Optional[str] = None
    ) -> "AdminLog":
        """Factory method to create admin log entries."""
        return cls(
            user_id=user_id,
            action=action.value if isinstance(action, AdminAction) else action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details or {},
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
            error_message=error_message
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "details": self.details,
            "success": self.success,
            "error_message": self.error_message,
            "ip_address": self.ip_address,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
