"""
User router for CourseMart.

Student-facing endpoints: account data, purchases, enrollments, progress,
ratings, wishlist and cart.
"""

from typing import Optional, Dict, Any
import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from coursemart.core.config import settings
from coursemart.core.database import get_db
from coursemart.core.payments import (
    RazorpayGateway,
    PaymentGatewayError,
    PaymentVerificationError,
    get_payment_gateway,
    to_minor_units,
)
from coursemart.models.user import User, UserRole
from coursemart.models.course import Course
from coursemart.models.purchase import Purchase, PurchaseStatus
from coursemart.models.progress import CourseProgress, progress_summary
from coursemart.models.admin import AdminLog, AdminAction
from coursemart.routers.auth import get_current_user, get_current_admin_user
from coursemart.schemas.common import MessageResponse
from coursemart.schemas.user import (
    CourseRef,
    ProgressUpdate,
    RatingIn,
    PaymentVerification,
    PromoteIn,
    UserDataResponse,
    PurchaseOrder,
    CourseProgressResponse,
    EnrolledCoursesResponse,
    WishlistResponse,
    WishlistToggleResponse,
    CartResponse,
)
from coursemart.utils.enrollment import complete_purchase, fail_purchase
from coursemart.utils.pricing import cart_totals


logger = logging.getLogger(__name__)

router = APIRouter()


def get_course_or_404(db: Session, course_id: int, published_only: bool = True) -> Course:
    query = db.query(Course).filter(Course.id == course_id)
    if published_only:
        query = query.filter(Course.is_published == True)  # noqa: E712

    course = query.first()
    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found"
        )
    return course


def get_progress(db: Session, user_id: str, course_id: int) -> Optional[CourseProgress]:
    return db.query(CourseProgress).filter(
        CourseProgress.user_id == user_id,
        CourseProgress.course_id == course_id
    ).first()


@router.get("/data", response_model=UserDataResponse)
async def get_user_data(
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    Get the caller's record, role and reference lists.
    """
    return {"user": current_user.to_dict()}


# Purchases

@router.post("/purchase", response_model=PurchaseOrder)
async def purchase_course(
    body: CourseRef,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: Optional[RazorpayGateway] = Depends(get_payment_gateway)
) -> Dict[str, Any]:
    """
    Start a purchase: record it as pending and open a gateway order.

    Free courses (after discount) are enrolled immediately.
    """
    course = get_course_or_404(db, body.course_id)

    if current_user.is_enrolled_in(course.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Already enrolled in this course"
        )

    if course.educator_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot purchase your own course"
        )

    currency = settings.CURRENCY.upper()
    purchase = Purchase(
        course_id=course.id,
        user_id=current_user.id,
        amount=course.final_price,
        currency=currency,
        status=PurchaseStatus.PENDING.value
    )
    db.add(purchase)
    db.flush()

    response = {
        "purchase_id": purchase.id,
        "course_title": course.title,
        "amount": purchase.amount,
        "currency": currency,
    }

    if purchase.amount == 0:
        complete_purchase(db, purchase)
        db.commit()
        return {
            **response,
            "message": "Enrolled in free course",
            "status": purchase.status,
            "enrolled": True,
        }

    if gateway is None:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payments are not available right now"
        )

    order_amount = to_minor_units(purchase.amount)
    try:
        order = gateway.create_order(
            amount=order_amount,
            currency=currency,
            receipt=f"purchase_{purchase.id}",
            notes={
                "purchase_id": str(purchase.id),
                "course_id": str(course.id),
                "user_id": current_user.id,
            }
        )
    except PaymentGatewayError:
        db.rollback()
        raise

    purchase.gateway_order_id = order["id"]
    db.commit()

    logger.info(f"Purchase {purchase.id} opened for course {course.id} by user {current_user.id}")

    return {
        **response,
        "message": "Order created",
        "status": purchase.status,
        "order_id": order["id"],
        "order_amount": order_amount,
        "key_id": settings.RAZORPAY_KEY_ID,
        "enrolled": False,
    }


@router.post("/verify-payment", response_model=MessageResponse)
async def verify_payment(
    body: PaymentVerification,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: Optional[RazorpayGateway] = Depends(get_payment_gateway)
) -> Dict[str, str]:
    """
    Verify the checkout signature returned to the client and enroll.
    """
    purchase = db.query(Purchase).filter(
        Purchase.id == body.purchase_id,
        Purchase.user_id == current_user.id
    ).first()

    if not purchase:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Purchase not found"
        )

    if purchase.is_completed:
        return {"message": "Payment already verified"}

    if purchase.gateway_order_id != body.razorpay_order_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Order does not match this purchase"
        )

    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payments are not available right now"
        )

    try:
        gateway.verify_payment_signature(
            body.razorpay_order_id,
            body.razorpay_payment_id,
            body.razorpay_signature
        )
    except PaymentVerificationError:
        fail_purchase(purchase, "signature verification failed")
        db.commit()
        raise

    complete_purchase(db, purchase, body.razorpay_payment_id)
    db.commit()

    return {"message": "Payment verified, enrollment complete"}


@router.get("/enrolled-courses", response_model=EnrolledCoursesResponse)
async def user_enrolled_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    The caller's enrolled courses with full content and progress.
    """
    progress_by_course = {
        p.course_id: p
        for p in db.query(CourseProgress).filter(CourseProgress.user_id == current_user.id).all()
    }

    enrolled = []
    for course in current_user.enrolled_courses:
        data = course.detail(include_lecture_urls=True)
        data["progress"] = progress_summary(progress_by_course.get(course.id), course.lecture_count)
        enrolled.append(data)

    return {"enrolled_courses": enrolled}


# Progress

@router.post("/update-course-progress", response_model=MessageResponse)
async def update_user_course_progress(
    body: ProgressUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, str]:
    """
    Mark a lecture of an enrolled course as completed.
    """
    course = get_course_or_404(db, body.course_id, published_only=False)

    if not current_user.is_enrolled_in(course.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enrolled in this course"
        )

    if not course.has_lecture(body.lecture_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Lecture not found in this course"
        )

    progress = get_progress(db, current_user.id, course.id)
    if progress is None:
        progress = CourseProgress(user_id=current_user.id, course_id=course.id, lecture_completed=[])
        progress.course = course
        db.add(progress)

    if not progress.mark_lecture_completed(body.lecture_id):
        return {"message": "Lecture Already Completed"}

    db.commit()
    return {"message": "Progress Updated"}


@router.post("/get-course-progress", response_model=CourseProgressResponse)
async def get_user_course_progress(
    body: CourseRef,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    Get the caller's progress record for a course.
    """
    course = get_course_or_404(db, body.course_id, published_only=False)
    progress = get_progress(db, current_user.id, course.id)
    summary = progress_summary(progress, course.lecture_count)

    return {
        "course_id": course.id,
        "progress_data": summary if progress else None,
        "summary": summary
    }


# Ratings

@router.post("/add-rating", response_model=MessageResponse)
async def add_user_rating(
    body: RatingIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, str]:
    """
    Rate an enrolled course from 1 to 5; rating again replaces the old value.
    """
    course = get_course_or_404(db, body.course_id, published_only=False)

    if not current_user.is_enrolled_in(course.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User has not purchased this course."
        )

    course.set_rating(current_user.id, body.rating)
    db.commit()

    return {"message": "Rating added"}


# Wishlist

@router.get("/wishlist", response_model=WishlistResponse)
async def get_wishlist(
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    The caller's wishlisted courses as catalog cards.
    """
    return {"wishlist": [course.summary() for course in current_user.wishlist]}


@router.post("/wishlist/add", response_model=WishlistToggleResponse)
async def add_to_wishlist(
    body: CourseRef,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    Add a published course to the wishlist. Adding twice is a no-op.
    """
    course = get_course_or_404(db, body.course_id)

    if course not in current_user.wishlist:
        current_user.wishlist.append(course)
        db.commit()

    return {
        "message": "Added to wishlist",
        "in_wishlist": True,
        "wishlist": [c.id for c in current_user.wishlist]
    }


@router.post("/wishlist/remove", response_model=WishlistToggleResponse)
async def remove_from_wishlist(
    body: CourseRef,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    Remove a course from the wishlist; absent courses are ignored.
    """
    course = db.get(Course, body.course_id)

    if course is not None and course in current_user.wishlist:
        current_user.wishlist.remove(course)
        db.commit()

    return {
        "message": "Removed from wishlist",
        "in_wishlist": False,
        "wishlist": [c.id for c in current_user.wishlist]
    }


@router.post("/wishlist/toggle", response_model=WishlistToggleResponse)
async def toggle_wishlist(
    body: CourseRef,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    Add the course to the wishlist, or remove it if it is already there.
    """
    course = get_course_or_404(db, body.course_id, published_only=False)

    if course in current_user.wishlist:
        current_user.wishlist.remove(course)
        message, in_wishlist = "Removed from wishlist", False
    else:
        if not course.is_published:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Course not found"
            )
        current_user.wishlist.append(course)
        message, in_wishlist = "Added to wishlist", True

    db.commit()

    return {
        "message": message,
        "in_wishlist": in_wishlist,
        "wishlist": [c.id for c in current_user.wishlist]
    }


# Cart

def cart_response(user: User) -> Dict[str, Any]:
    totals = cart_totals((course.price, course.discount) for course in user.cart)
    return {
        "cart": [course.summary() for course in user.cart],
        "currency": settings.CURRENCY.upper(),
        **totals
    }


@router.get("/cart", response_model=CartResponse)
async def get_cart(
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    Cart contents with undiscounted total, payable subtotal and savings.
    """
    return cart_response(current_user)


@router.post("/cart/add", response_model=CartResponse)
async def add_to_cart(
    body: CourseRef,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    Add a published course to the cart unless the caller is already enrolled.
    """
    course = get_course_or_404(db, body.course_id)

    if current_user.is_enrolled_in(course.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Already enrolled in this course"
        )

    if course not in current_user.cart:
        current_user.cart.append(course)
        db.commit()

    return cart_response(current_user)


@router.post("/cart/remove", response_model=CartResponse)
async def remove_from_cart(
    body: CourseRef,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Dict[str, Any]:
    """
    Remove a course from the cart; absent courses are ignored.
    """
    course = db.get(Course, body.course_id)

    if course is not None and course in current_user.cart:
        current_user.cart.remove(course)
        db.commit()

    return cart_response(current_user)


# Admin

@router.post("/promote", response_model=MessageResponse)
async def promote_to_admin(
    body: PromoteIn,
    request: Request,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user)
) -> Dict[str, str]:
    """
    Promote another user to admin.
    """
    user = db.get(User, body.user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    old_role = user.role
    user.role = UserRole.ADMIN.value

    db.add(AdminLog.log_action(
        user_id=admin_user.id,
        action=AdminAction.ROLE_CHANGE,
        entity_type="user",
        entity_id=user.id,
        details={"old_role": old_role, "new_role": user.role},
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent")
    ))
    db.commit()

    return {"message": "User role updated to admin"}
