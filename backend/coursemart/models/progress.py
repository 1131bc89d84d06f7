"""
Progress tracking model for CourseMart.

Defines CourseProgress, the per-user, per-course record of which lectures
have been marked complete.
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import (
    Boolean, Integer, String, DateTime,
    ForeignKey, UniqueConstraint, Index, JSON
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from coursemart.core.database import Base


class CourseProgress(Base):
    """
    Tracks which lectures of a course a user has completed.
    """
    __tablename__ = "course_progress"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # User and course relationship
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False)

    # Completed lecture ids, kept free of duplicates
    lecture_completed: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

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
    user = relationship("User", back_populates="course_progress")
    course = relationship("Course", back_populates="progress_records")

    # Table constraints
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_user_course_progress"),
        Index("idx_course_progress_course", "course_id", "completed"),
    )

    def __repr__(self) -> str:
        return f"<CourseProgress(user_id='{self.user_id}', course_id={self.course_id}, lectures={len(self.lecture_completed)})>"

    def is_lecture_completed(self, lecture_id: str) -> bool:
        return lecture_id in self.lecture_completed

    def mark_lecture_completed(self, lecture_id: str) -> bool:
        """
        Add a lecture to the completed set.

        Returns False if the lecture was already completed.
        """
        if self.is_lecture_completed(lecture_id):
            return False

        # Reassign so the JSON column is flagged as modified
        self.lecture_completed = self.lecture_completed + [lecture_id]
        self.update_completion()
        return True

    def update_completion(self) -> None:
        """Mark the course completed once every current lecture is done."""
        if not self.course:
            return

        lecture_ids = {lecture.id for lecture in self.course.lectures}
        if lecture_ids and lecture_ids.issubset(self.lecture_completed):
            self.completed = True
            if not self.completed_at:
                self.completed_at = datetime.utcnow()


def progress_summary(progress: Optional[CourseProgress], total_lectures: int) -> dict:
    """
    Completed/total lecture counts and percentage for an enrollment.

    ``progress`` may be None for a course the user has not started.
    Lectures removed from the course after completion are not counted.
    """
    completed_ids = set(progress.lecture_completed) if progress else set()
    if progress and progress.course:
        completed_ids &= {lecture.id for lecture in progress.course.lectures}

    completed = len(completed_ids)
    percentage = (completed / total_lectures * 100) if total_lectures > 0 else 0.0

    return {
        "lecture_completed": sorted(completed_ids),
        "completed_lectures": completed,
        "total_lectures": total_lectures,
        "progress_percentage": round(percentage, 2),
        "completed": bool(progress and progress.completed),
    }
