import os
import tempfile

# Settings are read at import time
os.environ["TESTING"] = "True"
os.environ["IDP_JWT_KEY"] = "test-idp-secret"
os.environ["IDP_JWT_ALGORITHMS"] = "HS256"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["CURRENCY"] = "INR"
os.environ["MEDIA_DIR"] = tempfile.mkdtemp(prefix="coursemart-media-")

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from coursemart.core.database import DatabaseManager, SessionLocal
from coursemart.core.payments import PaymentVerificationError, get_payment_gateway
from coursemart.main import app
from coursemart.models import User, UserRole, Course, Chapter, Lecture


WEBHOOK_SIGNATURE = "valid-webhook-signature"


class FakeGateway:
    """Stands in for RazorpayGateway; signatures are predictable strings."""

    key_id = "rzp_test_key"

    def __init__(self):
        self.orders = []

    def create_order(self, amount, currency, receipt, notes=None):
        order = {
            "id": f"order_test_{len(self.orders) + 1}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
            "status": "created",
        }
        self.orders.append(order)
        return order

    def verify_payment_signature(self, order_id, payment_id, signature):
        if signature != payment_signature(order_id, payment_id):
            raise PaymentVerificationError("Invalid payment signature")

    def verify_webhook_signature(self, body, signature):
        if signature != WEBHOOK_SIGNATURE:
            raise PaymentVerificationError("Invalid webhook signature")


def payment_signature(order_id, payment_id):
    return f"sig-{order_id}-{payment_id}"


def make_token(sub, name=None, email=None, **claims):
    payload = {"sub": sub, **claims}
    if name:
        payload["name"] = name
    if email:
        payload["email"] = email
    return jwt.encode(payload, os.environ["IDP_JWT_KEY"], algorithm="HS256")


def auth_headers(user_id, name=None, email=None):
    return {"Authorization": f"Bearer {make_token(user_id, name=name, email=email)}"}


@pytest.fixture(autouse=True)
def setup_database():
    DatabaseManager.create_all_tables()
    yield
    DatabaseManager.drop_all_tables()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway():
    fake = FakeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_payment_gateway, None)


@pytest.fixture
def no_gateway(gateway):
    app.dependency_overrides[get_payment_gateway] = lambda: None
    yield


@pytest.fixture
def client(gateway):
    return TestClient(app)


@pytest.fixture
def create_user(db):
    def _create_user(user_id, role=UserRole.USER.value, name=None):
        user = User(
            id=user_id,
            name=name or user_id.title(),
            email=f"{user_id}@example.com",
            role=role
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _create_user


@pytest.fixture
def educator(create_user):
    return create_user("educator", role=UserRole.EDUCATOR.value, name="Ada Educator")


@pytest.fixture
def student(create_user):
    return create_user("student", name="Sam Student")


@pytest.fixture
def admin(create_user):
    return create_user("admin", role=UserRole.ADMIN.value, name="Root Admin")


@pytest.fixture
def create_course(db):
    def _create_course(educator_id, title="Python Basics", price=100.0, discount=0,
                       domain="Programming", is_published=True, lectures=(30, 45)):
        course = Course(
            title=title,
            description="<p>Learn things</p>",
            price=price,
            discount=discount,
            domain=domain,
            is_published=is_published,
            thumbnail_url="/media/thumbnails/example.png",
            educator_id=educator_id,
        )
        chapter = Chapter(title="Getting started", chapter_order=1)
        for index, minutes in enumerate(lectures):
            chapter.lectures.append(Lecture(
                title=f"Lecture {index + 1}",
                duration_minutes=minutes,
                url=f"https://videos.example.com/{title.lower().replace(' ', '-')}/{index + 1}",
                is_preview_free=index == 0,
                lecture_order=index + 1,
            ))
        course.chapters.append(chapter)
        db.add(course)
        db.commit()
        db.refresh(course)
        return course

    return _create_course


@pytest.fixture
def course(educator, create_course):
    return create_course(educator.id)
