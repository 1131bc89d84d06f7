from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from .course import CourseSummary


class StudentRef(BaseModel):
    id: str
    name: str
    image_url: str


class EnrolledStudentEntry(BaseModel):
    course_id: int
    course_title: str
    student: StudentRef


class EducatorDashboard(BaseModel):
    total_earnings: float
    total_courses: int
    total_enrollments: int
    enrolled_students_data: List[EnrolledStudentEntry]


class EducatorDashboardResponse(BaseModel):
    dashboard_data: EducatorDashboard


class EnrolledStudentPurchase(BaseModel):
    purchase_id: int
    course_id: int
    course_title: str
    student: StudentRef
    amount: float
    purchase_date: Optional[datetime] = None


class EnrolledStudentsResponse(BaseModel):
    enrolled_students: List[EnrolledStudentPurchase]


class EducatorCourse(CourseSummary):
    earnings: float


class EducatorCoursesResponse(BaseModel):
    courses: List[EducatorCourse]


class CourseCreatedResponse(BaseModel):
    message: str
    course_id: int
