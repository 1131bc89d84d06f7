"""
Purchase completion and enrollment.

Both the client-side payment verification and the gateway webhook end up
here, so completing a purchase must be safe to repeat.
"""

from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from coursemart.models.purchase import Purchase, PurchaseStatus


logger = logging.getLogger(__name__)


def complete_purchase(db: Session, purchase: Purchase, payment_id: Optional[str] = None) -> bool:
    """
    Mark a purchase completed and enroll the buyer.

    The caller commits. Returns False if the purchase was already completed.
    """
    if purchase.is_completed:
        return False

    purchase.status = PurchaseStatus.COMPLETED.value
    if payment_id:
        purchase.gateway_payment_id = payment_id
    purchase.completed_at = datetime.utcnow()

    enroll_user(purchase.user, purchase.course)

    logger.info(
        f"Purchase {purchase.id} completed: user {purchase.user_id} enrolled in course {purchase.course_id}"
    )
    return True


def fail_purchase(purchase: Purchase, reason: str) -> bool:
    """
    Mark a pending purchase failed. Completed purchases are left untouched.
    """
    if purchase.status != PurchaseStatus.PENDING.value:
        return False

    purchase.status = PurchaseStatus.FAILED.value
    logger.warning(f"Purchase {purchase.id} failed: {reason}")
    return True


def enroll_user(user, course) -> None:
    """Add the enrollment reference and drop the course from the user's cart."""
    if course not in user.enrolled_courses:
        user.enrolled_courses.append(course)
    if course in user.cart:
        user.cart.remove(course)
