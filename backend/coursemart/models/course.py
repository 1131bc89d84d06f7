"""
Course models for CourseMart.

Defines Course, Chapter, Lecture and CourseRating models for the catalog
and the content structure of each course.
"""

from datetime import datetime
from typing import Optional, List
from sqlalchemy import (
    Boolean, Integer, String, DateTime, Text, Float,
    ForeignKey, UniqueConstraint, Index, CheckConstraint
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func
import uuid

from coursemart.core.database import Base
from coursemart.models.user import user_wishlist, user_cart, enrollments
from coursemart.utils.pricing import discounted_price, floor_average
from coursemart.utils.durations import humanize_minutes


def generate_content_id() -> str:
    """Short random id for chapters and lectures created without one."""
    return uuid.uuid4().hex[:12]


class Course(Base):
    """
    A course on sale in the marketplace.
    """
    __tablename__ = "courses"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Basic information
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)  # HTML from the rich text editor
    thumbnail_url: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    domain: Mapped[str] = mapped_column(String(100), default="General", nullable=False, index=True)

    # Pricing
    price: Mapped[float] = mapped_column(Float, nullable=False)
    discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # percent

    # Publishing and visibility
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Author information
    educator_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False)

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
    educator = relationship("User", backref="authored_courses")
    chapters: Mapped[List["Chapter"]] = relationship(
        "Chapter",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Chapter.chapter_order"
    )
    ratings: Mapped[List["CourseRating"]] = relationship(
        "CourseRating", back_populates="course", cascade="all, delete-orphan"
    )
    enrolled_students = relationship("User", secondary=enrollments, back_populates="enrolled_courses")
    wishlisted_by = relationship("User", secondary=user_wishlist, back_populates="wishlist")
    in_carts_of = relationship("User", secondary=user_cart, back_populates="cart")
    purchases = relationship("Purchase", back_populates="course", cascade="all, delete-orphan")
    progress_records = relationship("CourseProgress", back_populates="course", cascade="all, delete-orphan")

    # Table constraints
    __table_args__ = (
        CheckConstraint("price >= 0", name="check_course_price_positive"),
        CheckConstraint("discount >= 0 AND discount <= 100", name="check_discount_range"),
        Index("idx_course_educator", "educator_id"),
        Index("idx_course_published_created", "is_published", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title='{self.title}')>"

    @property
    def final_price(self) -> float:
        """Price after discount."""
        return discounted_price(self.price, self.discount)

    @property
    def rating(self) -> int:
        """Average rating rounded down, 0 when unrated."""
        return floor_average(r.rating for r in self.ratings)

    @property
    def rating_count(self) -> int:
        return len(self.ratings)

    @property
    def lectures(self) -> List["Lecture"]:
        return [lecture for chapter in self.chapters for lecture in chapter.lectures]

    @property
    def lecture_count(self) -> int:
        return sum(len(chapter.lectures) for chapter in self.chapters)

    @property
    def duration_minutes(self) -> int:
        return sum(chapter.duration_minutes for chapter in self.chapters)

    @property
    def duration_text(self) -> str:
        return humanize_minutes(self.duration_minutes)

    @property
    def enrolled_count(self) -> int:
        return len(self.enrolled_students)

    def has_lecture(self, lecture_id: str) -> bool:
        return any(lecture.id == lecture_id for lecture in self.lectures)

    def rating_by(self, user_id: str) -> Optional["CourseRating"]:
        return next((r for r in self.ratings if r.user_id == user_id), None)

    def set_rating(self, user_id: str, rating: int) -> "CourseRating":
        """Update the user's rating in place, or add a new one."""
        existing = self.rating_by(user_id)
        if existing:
            existing.rating = rating
            return existing

        new_rating = CourseRating(user_id=user_id, rating=rating)
        self.ratings.append(new_rating)
        return new_rating

    def summary(self) -> dict:
        """Catalog card representation (no lecture content)."""
        return {
            "id": self.id,
            "title": self.title,
            "thumbnail_url": self.thumbnail_url,
            "domain": self.domain,
            "price": self.price,
            "discount": self.discount,
            "final_price": self.final_price,
            "is_published": self.is_published,
            "educator": {
                "id": self.educator.id,
                "name": self.educator.name,
            } if self.educator else None,
            "rating": self.rating,
            "rating_count": self.rating_count,
            "lecture_count": self.lecture_count,
            "duration_minutes": self.duration_minutes,
            "duration_text": self.duration_text,
            "enrolled_count": self.enrolled_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def detail(self, include_lecture_urls: bool = False) -> dict:
        """
        Full representation with chapters and lectures.

        Lecture URLs are only exposed for free previews unless
        ``include_lecture_urls`` is set (enrolled users, the course author).
        """
        data = self.summary()
        data["description"] = self.description
        data["chapters"] = [
            chapter.to_dict(include_lecture_urls=include_lecture_urls)
            for chapter in self.chapters
        ]
        return data


class Chapter(Base):
    """
    An ordered group of lectures within a course.
    """
    __tablename__ = "chapters"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_content_id)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    chapter_order: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Relationships
    course = relationship("Course", back_populates="chapters")
    lectures: Mapped[List["Lecture"]] = relationship(
        "Lecture",
        back_populates="chapter",
        cascade="all, delete-orphan",
        order_by="Lecture.lecture_order"
    )

    __table_args__ = (
        Index("idx_chapter_course_order", "course_id", "chapter_order"),
    )

    def __repr__(self) -> str:
        return f"<Chapter(id='{self.id}', title='{self.title}', course_id={self.course_id})>"

    @property
    def duration_minutes(self) -> int:
        return sum(lecture.duration_minutes for lecture in self.lectures)

    def to_dict(self, include_lecture_urls: bool = False) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "chapter_order": self.chapter_order,
            "duration_minutes": self.duration_minutes,
            "duration_text": humanize_minutes(self.duration_minutes),
            "lectures": [
                lecture.to_dict(include_url=include_lecture_urls)
                for lecture in self.lectures
            ],
        }


class Lecture(Base):
    """
    A single video lecture.
    """
    __tablename__ = "lectures"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_content_id)
    chapter_id: Mapped[str] = mapped_column(String(64), ForeignKey("chapters.id"), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    is_preview_free: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    lecture_order: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Relationships
    chapter = relationship("Chapter", back_populates="lectures")

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_lecture_duration_positive"),
        Index("idx_lecture_chapter_order", "chapter_id", "lecture_order"),
    )

    def __repr__(self) -> str:
        return f"<Lecture(id='{self.id}', title='{self.title}')>"

    def to_dict(self, include_url: bool = False) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "duration_minutes": self.duration_minutes,
            "url": self.url if (include_url or self.is_preview_free) else "",
            "is_preview_free": self.is_preview_free,
            "lecture_order": self.lecture_order,
        }


class CourseRating(Base):
    """
    One user's 1-5 star rating of a course.
    """
    __tablename__ = "course_ratings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)

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
    course = relationship("Course", back_populates="ratings")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("course_id", "user_id", name="uq_course_rating_user"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="check_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<CourseRating(course_id={self.course_id}, user_id='{self.user_id}', rating={self.rating})>"
