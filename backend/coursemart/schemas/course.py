"""
Course schemas: catalog responses and the educator's authoring payloads.

Authoring payloads also accept the field names used by the course editor
(``courseTitle``, ``courseContent``, ``chapterContent``, ``lectureUrl`` ...).
"""

from typing import List, Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator


class LectureIn(BaseModel):
    id: Optional[str] = Field(None, max_length=64, validation_alias=AliasChoices("id", "lectureId", "lecture_id"))
    title: str = Field(..., min_length=1, max_length=255, validation_alias=AliasChoices("title", "lectureTitle"))
    duration_minutes: int = Field(
        ..., gt=0, validation_alias=AliasChoices("duration_minutes", "durationMinutes", "lectureDuration")
    )
    url: str = Field(..., min_length=1, max_length=500, validation_alias=AliasChoices("url", "lectureUrl"))
    is_preview_free: bool = Field(
        False, validation_alias=AliasChoices("is_preview_free", "isPreviewFree")
    )
    lecture_order: Optional[int] = Field(
        None, ge=1, validation_alias=AliasChoices("lecture_order", "lectureOrder")
    )


class ChapterIn(BaseModel):
    id: Optional[str] = Field(None, max_length=64, validation_alias=AliasChoices("id", "chapterId", "chapter_id"))
    title: str = Field(..., min_length=1, max_length=255, validation_alias=AliasChoices("title", "chapterTitle"))
    chapter_order: Optional[int] = Field(
        None, ge=1, validation_alias=AliasChoices("chapter_order", "chapterOrder")
    )
    lectures: List[LectureIn] = Field(
        default_factory=list, validation_alias=AliasChoices("lectures", "chapterContent")
    )


class CourseCreate(BaseModel):
    title: str = Field(..., max_length=255, validation_alias=AliasChoices("title", "courseTitle"))
    description: str = Field("", validation_alias=AliasChoices("description", "courseDescription"))
    price: float = Field(..., ge=0, validation_alias=AliasChoices("price", "coursePrice"))
    discount: int = Field(0, ge=0, le=100)
    domain: Optional[str] = Field(None, max_length=100)
    is_published: bool = Field(True, validation_alias=AliasChoices("is_published", "isPublished"))
    chapters: List[ChapterIn] = Field(
        default_factory=list, validation_alias=AliasChoices("chapters", "courseContent")
    )

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Course title is required")
        return v.strip()


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255, validation_alias=AliasChoices("title", "courseTitle"))
    description: Optional[str] = Field(None, validation_alias=AliasChoices("description", "courseDescription"))
    price: Optional[float] = Field(None, ge=0, validation_alias=AliasChoices("price", "coursePrice"))
    discount: Optional[int] = Field(None, ge=0, le=100)
    domain: Optional[str] = Field(None, max_length=100)
    is_published: Optional[bool] = Field(None, validation_alias=AliasChoices("is_published", "isPublished"))

    @field_validator("title", "price", "discount", "is_published")
    @classmethod
    def not_null(cls, v):
        # Fields may be omitted, but not cleared
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class EducatorRef(BaseModel):
    id: str
    name: str


class CourseSummary(BaseModel):
    id: int
    title: str
    thumbnail_url: str
    domain: str
    price: float
    discount: int
    final_price: float
    is_published: bool
    educator: Optional[EducatorRef] = None
    rating: int
    rating_count: int
    lecture_count: int
    duration_minutes: int
    duration_text: str
    enrolled_count: int
    created_at: Optional[str] = None


class LectureOut(BaseModel):
    id: str
    title: str
    duration_minutes: int
    url: str
    is_preview_free: bool
    lecture_order: int


class ChapterOut(BaseModel):
    id: str
    title: str
    chapter_order: int
    duration_minutes: int
    duration_text: str
    lectures: List[LectureOut]


class CourseDetail(CourseSummary):
    description: str
    chapters: List[ChapterOut]


class CourseList(BaseModel):
    courses: List[CourseSummary]
    total: int
    skip: int
    limit: int
