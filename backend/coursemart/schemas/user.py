from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from .common import CamelModel
from .course import CourseSummary, CourseDetail


Role = Literal["user", "educator", "admin"]


# Requests

class CourseRef(CamelModel):
    course_id: int


class ProgressUpdate(CamelModel):
    course_id: int
    lecture_id: str = Field(..., min_length=1, max_length=64)


class RatingIn(CamelModel):
    course_id: int
    rating: int = Field(..., ge=1, le=5)


class PaymentVerification(CamelModel):
    purchase_id: int
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PromoteIn(CamelModel):
    user_id: str


class RoleUpdate(BaseModel):
    role: Role


# Responses

class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    image_url: str
    resume: str
    role: str
    wishlist: List[int]
    cart: List[int]
    enrolled_courses: List[int]
    created_at: Optional[str] = None


class UserDataResponse(BaseModel):
    user: UserResponse


class PurchaseOrder(BaseModel):
    message: str
    purchase_id: int
    status: str
    course_title: str
    amount: float  # major units
    currency: str
    order_id: Optional[str] = None
    order_amount: Optional[int] = None  # minor units, as sent to the gateway
    key_id: Optional[str] = None
    enrolled: bool = False


class ProgressSummary(BaseModel):
    lecture_completed: List[str]
    completed_lectures: int
    total_lectures: int
    progress_percentage: float
    completed: bool


class CourseProgressResponse(BaseModel):
    course_id: int
    progress_data: Optional[ProgressSummary] = None
    summary: ProgressSummary


class EnrolledCourse(CourseDetail):
    progress: ProgressSummary


class EnrolledCoursesResponse(BaseModel):
    enrolled_courses: List[EnrolledCourse]


class WishlistResponse(BaseModel):
    wishlist: List[CourseSummary]


class WishlistToggleResponse(BaseModel):
    message: str
    in_wishlist: bool
    wishlist: List[int]


class CartResponse(BaseModel):
    cart: List[CourseSummary]
    total: float
    subtotal: float
    savings: float
    currency: str
