"""
Catalog router for CourseMart.

Public endpoints for browsing published courses.
"""

from typing import Optional, Dict, Any, List
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func

from coursemart.core.database import get_db
from coursemart.models.user import User
from coursemart.models.course import Course, Chapter
from coursemart.routers.auth import get_optional_user
from coursemart.schemas.course import CourseList, CourseDetail


router = APIRouter()


def published_courses_query(db: Session):
    return db.query(Course).filter(Course.is_published == True).options(  # noqa: E712
        selectinload(Course.chapters).selectinload(Chapter.lectures),
        selectinload(Course.ratings),
        selectinload(Course.enrolled_students),
        selectinload(Course.educator),
    )


@router.get("/all", response_model=CourseList)
async def list_courses(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    search: Optional[str] = None,
    domain: Optional[str] = None,
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    List published courses, newest first, with optional search and domain filter.
    """
    query = published_courses_query(db)

    if search:
        query = query.filter(Course.title.ilike(f"%{search.strip()}%"))

    if domain:
        query = query.filter(func.lower(Course.domain) == domain.strip().lower())

    total = query.count()

    courses = query.order_by(
        Course.created_at.desc(),
        Course.id.desc()
    ).offset(skip).limit(limit).all()

    return {
        "courses": [course.summary() for course in courses],
        "total": total,
        "skip": skip,
        "limit": limit
    }


@router.get("/domains", response_model=List[str])
async def list_domains(db: Session = Depends(get_db)) -> List[str]:
    """
    Distinct domains of published courses, for the catalog filter.
    """
    rows = db.query(Course.domain).filter(
        Course.is_published == True  # noqa: E712
    ).distinct().all()

    return sorted({row.domain for row in rows if row.domain}, key=str.lower)


@router.get("/{course_id}", response_model=CourseDetail)
async def get_course(
    course_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Get a published course with its chapters and lectures.

    Lecture URLs are hidden unless the lecture is a free preview, the caller
    is enrolled, or the caller authored the course.
    """
    course = published_courses_query(db).filter(Course.id == course_id).first()

    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found"
        )

    full_access = bool(current_user) and (
        current_user.id == course.educator_id or current_user.is_enrolled_in(course.id)
    )

    return course.detail(include_lecture_urls=full_access)
