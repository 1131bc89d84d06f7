"""
Payment gateway webhooks.

Razorpay posts order and payment events here. The signature header covers
the raw request body, so the body is read before any parsing.
"""

from typing import Optional, Dict, Any
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request, Header
from sqlalchemy.orm import Session

from coursemart.core.database import get_db
from coursemart.core.payments import RazorpayGateway, get_payment_gateway
from coursemart.models.purchase import Purchase
from coursemart.utils.enrollment import complete_purchase, fail_purchase


logger = logging.getLogger(__name__)

router = APIRouter()

COMPLETION_EVENTS = {"payment.captured", "order.paid"}
FAILURE_EVENTS = {"payment.failed"}


def payment_entity(event: Dict[str, Any]) -> Dict[str, Any]:
    return event.get("payload", {}).get("payment", {}).get("entity", {}) or {}


def order_id_from_event(event: Dict[str, Any]) -> Optional[str]:
    order = event.get("payload", {}).get("order", {}).get("entity", {}) or {}
    return payment_entity(event).get("order_id") or order.get("id")


@router.post("/payment")
async def payment_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    gateway: Optional[RazorpayGateway] = Depends(get_payment_gateway)
) -> Dict[str, Any]:
    """
    Complete or fail the purchase matching the event's gateway order.
    """
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payments are not available right now"
        )

    if not x_razorpay_signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing webhook signature"
        )

    try:
        body = (await request.body()).decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook payload"
        )

    gateway.verify_webhook_signature(body, x_razorpay_signature)

    try:
        event = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook payload"
        )

    event_type = event.get("event", "")
    if event_type not in COMPLETION_EVENTS | FAILURE_EVENTS:
        logger.info(f"Ignoring webhook event {event_type!r}")
        return {"received": True, "handled": False}

    order_id = order_id_from_event(event)
    purchase = None
    if order_id:
        purchase = db.query(Purchase).filter(Purchase.gateway_order_id == order_id).first()

    if purchase is None:
        logger.warning(f"Webhook {event_type} for unknown order {order_id}")
        return {"received": True, "handled": False}

    if event_type in COMPLETION_EVENTS:
        changed = complete_purchase(db, purchase, payment_entity(event).get("id"))
    else:
        reason = payment_entity(event).get("error_description") or "payment failed"
        changed = fail_purchase(purchase, reason)

    db.commit()

    return {"received": True, "handled": changed}
