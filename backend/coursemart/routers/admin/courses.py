"""
Admin courses router for CourseMart.

Lists every course in the marketplace, drafts included.
"""

from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import or_

from coursemart.core.database import get_db
from coursemart.models.course import Course, Chapter


router = APIRouter()


@router.get("")
async def list_courses(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    published: Optional[bool] = None,
    search: Optional[str] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|updated_at|title|price)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    List all courses with filtering and sorting for admin.
    """
    query = db.query(Course)

    if published is not None:
        query = query.filter(Course.is_published == published)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Course.title.ilike(search_term),
                Course.domain.ilike(search_term)
            )
        )

    total = query.count()

    sort_column = getattr(Course, sort_by)
    if sort_order == "desc":
        query = query.order_by(sort_column.desc(), Course.id.desc())
    else:
        query = query.order_by(sort_column.asc(), Course.id.asc())

    courses = query.options(
        selectinload(Course.chapters).selectinload(Chapter.lectures),
        selectinload(Course.ratings),
        selectinload(Course.enrolled_students),
        selectinload(Course.educator),
    ).offset(skip).limit(limit).all()

    return {
        "courses": [course.summary() for course in courses],
        "total": total,
        "skip": skip,
        "limit": limit
    }
