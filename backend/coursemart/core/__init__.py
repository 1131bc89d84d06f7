"""
Core module for the CourseMart backend.

This module contains core functionality including:
- Configuration management
- Database connections
- Identity token verification
- Payment gateway access
"""

from .config import settings
from .database import get_db, engine, SessionLocal
from .security import verify_token, profile_from_claims
from .payments import get_payment_gateway, PaymentGatewayError, PaymentVerificationError

__all__ = [
    "settings",
    "get_db",
    "engine",
    "SessionLocal",
    "verify_token",
    "profile_from_claims",
    "get_payment_gateway",
    "PaymentGatewayError",
    "PaymentVerificationError"
]
