"""
Educator router for CourseMart.

Course authoring and the educator's sales views. Educators only see and
change their own courses; admins may act on any course.
"""

from typing import Optional, Dict, Any, List
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request, Form, File, UploadFile
from pydantic import ValidationError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func

from coursemart.core.config import settings
from coursemart.core.database import get_db
from coursemart.models.user import User, UserRole
from coursemart.models.course import Course, Chapter, Lecture
from coursemart.models.purchase import Purchase, PurchaseStatus
from coursemart.models.admin import AdminLog, AdminAction
from coursemart.routers.auth import get_current_user, get_current_educator
from coursemart.schemas.common import MessageResponse
from coursemart.schemas.course import CourseCreate, CourseUpdate, CourseSummary
from coursemart.schemas.educator import (
    CourseCreatedResponse,
    EducatorCoursesResponse,
    EducatorDashboardResponse,
    EnrolledStudentsResponse,
)
from coursemart.utils.media import save_thumbnail, remove_thumbnail


logger = logging.getLogger(__name__)

router = APIRouter()


def client_info(request: Request) -> Dict[str, Optional[str]]:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


def get_owned_course(db: Session, course_id: int, user: User) -> Course:
    course = db.get(Course, course_id)

    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found"
        )

    if course.educator_id != user.id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage your own courses"
        )

    return course


def educator_courses_query(db: Session, educator_id: str):
    return db.query(Course).filter(Course.educator_id == educator_id).options(
        selectinload(Course.chapters).selectinload(Chapter.lectures),
        selectinload(Course.ratings),
        selectinload(Course.enrolled_students),
    )


def build_chapters(db: Session, course_data: CourseCreate) -> List[Chapter]:
    """
    Turn the submitted course content into Chapter/Lecture rows.

    Missing ids are generated; missing orders follow submission order.
    """
    chapter_ids = [c.id for c in course_data.chapters if c.id]
    lecture_ids = [l.id for c in course_data.chapters for l in c.lectures if l.id]

    duplicate = (
        len(chapter_ids) != len(set(chapter_ids))
        or len(lecture_ids) != len(set(lecture_ids))
        or (chapter_ids and db.query(Chapter.id).filter(Chapter.id.in_(chapter_ids)).first())
        or (lecture_ids and db.query(Lecture.id).filter(Lecture.id.in_(lecture_ids)).first())
    )
    if duplicate:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Duplicate chapter or lecture id"
        )

    chapters = []
    for chapter_index, chapter_in in enumerate(course_data.chapters):
        chapter = Chapter(
            title=chapter_in.title,
            chapter_order=chapter_in.chapter_order or chapter_index + 1
        )
        if chapter_in.id:
            chapter.id = chapter_in.id

        for lecture_index, lecture_in in enumerate(chapter_in.lectures):
            lecture = Lecture(
                title=lecture_in.title,
                duration_minutes=lecture_in.duration_minutes,
                url=lecture_in.url,
                is_preview_free=lecture_in.is_preview_free,
                lecture_order=lecture_in.lecture_order or lecture_index + 1
            )
            if lecture_in.id:
                lecture.id = lecture_in.id
            chapter.lectures.append(lecture)

        chapters.append(chapter)

    return chapters


@router.post("/update-role", response_model=MessageResponse)
async def update_role_to_educator(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, str]:
    """
    Let the caller publish courses. Admins keep their role.
    """
    if current_user.role == UserRole.USER.value:
        old_role = current_user.role
        current_user.role = UserRole.EDUCATOR.value

        db.add(AdminLog.log_action(
            user_id=current_user.id,
            action=AdminAction.ROLE_CHANGE,
            entity_type="user",
            entity_id=current_user.id,
            details={"old_role": old_role, "new_role": current_user.role},
            **client_info(request)
        ))
        db.commit()
        logger.info(f"User {current_user.id} became an educator")

    return {"message": "You can publish a course now"}


@router.post("/add-course", response_model=CourseCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_course(
    request: Request,
    course_data: Optional[str] = Form(None, alias="courseData"),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    educator: User = Depends(get_current_educator)
) -> Dict[str, Any]:
    """
    Create a course from the editor's JSON payload and a thumbnail image.
    """
    if not course_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Course data missing"
        )

    if image is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Thumbnail not attached"
        )

    try:
        parsed = CourseCreate.model_validate_json(course_data)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=json.loads(exc.json(include_url=False))
        )

    chapters = build_chapters(db, parsed)
    thumbnail_url = await save_thumbnail(image, educator.id)

    course = Course(
        title=parsed.title,
        description=parsed.description,
        price=parsed.price,
        discount=parsed.discount,
        domain=(parsed.domain or "").strip() or settings.DEFAULT_DOMAIN,
        is_published=parsed.is_published,
        thumbnail_url=thumbnail_url,
        educator_id=educator.id,
        chapters=chapters
    )
    db.add(course)
    db.flush()

    db.add(AdminLog.log_action(
        user_id=educator.id,
        action=AdminAction.CREATE,
        entity_type="course",
        entity_id=course.id,
        details={"course_title": course.title, "lectures": course.lecture_count},
        **client_info(request)
    ))
    db.commit()

    logger.info(f"Course {course.id} created by educator {educator.id}")

    return {"message": "Course added successfully", "course_id": course.id}


@router.get("/courses", response_model=EducatorCoursesResponse)
async def get_educator_courses(
    db: Session = Depends(get_db),
    educator: User = Depends(get_current_educator)
) -> Dict[str, Any]:
    """
    The caller's courses, published or not, with earnings per course.
    """
    courses = educator_courses_query(db, educator.id).order_by(Course.created_at.desc(), Course.id.desc()).all()

    earnings = dict(
        db.query(Purchase.course_id, func.coalesce(func.sum(Purchase.amount), 0.0)).filter(
            Purchase.course_id.in_([c.id for c in courses]),
            Purchase.status == PurchaseStatus.COMPLETED.value
        ).group_by(Purchase.course_id).all()
    ) if courses else {}

    return {
        "courses": [
            {**course.summary(), "earnings": round(float(earnings.get(course.id, 0.0)), 2)}
            for course in courses
        ]
    }


@router.put("/courses/{course_id}", response_model=CourseSummary)
async def update_course(
    course_id: int,
    course_update: CourseUpdate,
    request: Request,
    db: Session = Depends(get_db),
    educator: User = Depends(get_current_educator)
) -> Dict[str, Any]:
    """
    Partially update an owned course. Omitted fields are left unchanged.
    """
    course = get_owned_course(db, course_id, educator)

    changes = course_update.model_dump(exclude_unset=True)
    if "title" in changes:
        changes["title"] = changes["title"].strip()
        if not changes["title"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Course title is required"
            )
    if "domain" in changes:
        changes["domain"] = (changes["domain"] or "").strip() or settings.DEFAULT_DOMAIN

    old_values = {field: getattr(course, field) for field in changes}
    for field, value in changes.items():
        setattr(course, field, value)

    db.add(AdminLog.log_action(
        user_id=educator.id,
        action=AdminAction.UPDATE,
        entity_type="course",
        entity_id=course.id,
        details={"old_values": old_values, "new_values": changes},
        **client_info(request)
    ))
    db.commit()
    db.refresh(course)

    return course.summary()


@router.post("/courses/{course_id}/publish", response_model=CourseSummary)
async def toggle_publish(
    course_id: int,
    request: Request,
    db: Session = Depends(get_db),
    educator: User = Depends(get_current_educator)
) -> Dict[str, Any]:
    """
    Publish a draft course or take a published one off the catalog.
    """
    course = get_owned_course(db, course_id, educator)
    course.is_published = not course.is_published

    db.add(AdminLog.log_action(
        user_id=educator.id,
        action=AdminAction.PUBLISH if course.is_published else AdminAction.UNPUBLISH,
        entity_type="course",
        entity_id=course.id,
        details={"course_title": course.title},
        **client_info(request)
    ))
    db.commit()
    db.refresh(course)

    return course.summary()


@router.delete("/courses/{course_id}", response_model=MessageResponse)
async def delete_course(
    course_id: int,
    request: Request,
    db: Session = Depends(get_db),
    educator: User = Depends(get_current_educator)
) -> Dict[str, str]:
    """
    Delete an owned course and its thumbnail. Refused while students are enrolled.
    """
    course = get_owned_course(db, course_id, educator)

    if course.enrolled_count > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete course with {course.enrolled_count} enrolled students"
        )

    title = course.title
    thumbnail_url = course.thumbnail_url

    db.add(AdminLog.log_action(
        user_id=educator.id,
        action=AdminAction.DELETE,
        entity_type="course",
        entity_id=course.id,
        details={"course_title": title},
        **client_info(request)
    ))
    db.delete(course)
    db.commit()

    remove_thumbnail(thumbnail_url)
    logger.info(f"Course {course_id} deleted by {educator.id}")

    return {"message": f"Course '{title}' deleted successfully"}


@router.get("/dashboard", response_model=EducatorDashboardResponse)
async def educator_dashboard(
    db: Session = Depends(get_db),
    educator: User = Depends(get_current_educator)
) -> Dict[str, Any]:
    """
    Earnings, course count and the students enrolled in each course.
    """
    courses = educator_courses_query(db, educator.id).all()
    course_ids = [course.id for course in courses]

    total_earnings = 0.0
    if course_ids:
        total_earnings = db.query(func.coalesce(func.sum(Purchase.amount), 0.0)).filter(
            Purchase.course_id.in_(course_ids),
            Purchase.status == PurchaseStatus.COMPLETED.value
        ).scalar()

    enrolled_students_data = [
        {
            "course_id": course.id,
            "course_title": course.title,
            "student": {
                "id": student.id,
                "name": student.name,
                "image_url": student.image_url,
            },
        }
        for course in courses
        for student in course.enrolled_students
    ]

    return {
        "dashboard_data": {
            "total_earnings": round(float(total_earnings), 2),
            "total_courses": len(courses),
            "total_enrollments": len(enrolled_students_data),
            "enrolled_students_data": enrolled_students_data,
        }
    }


@router.get("/enrolled-students", response_model=EnrolledStudentsResponse)
async def enrolled_students(
    db: Session = Depends(get_db),
    educator: User = Depends(get_current_educator)
) -> Dict[str, Any]:
    """
    Completed purchases of the caller's courses, newest first.
    """
    purchases = db.query(Purchase).join(Course, Purchase.course_id == Course.id).filter(
        Course.educator_id == educator.id,
        Purchase.status == PurchaseStatus.COMPLETED.value
    ).options(
        selectinload(Purchase.user),
        selectinload(Purchase.course)
    ).order_by(Purchase.created_at.desc(), Purchase.id.desc()).all()

    return {
        "enrolled_students": [
            {
                "purchase_id": purchase.id,
                "course_id": purchase.course_id,
                "course_title": purchase.course.title,
                "student": {
                    "id": purchase.user.id,
                    "name": purchase.user.name,
                    "image_url": purchase.user.image_url,
                },
                "amount": purchase.amount,
                "purchase_date": purchase.completed_at or purchase.created_at,
            }
            for purchase in purchases
        ]
    }
