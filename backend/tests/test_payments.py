import pytest
import requests

from coursemart.core.payments import (
    PaymentGatewayError, RazorpayGateway, get_payment_gateway
)
from coursemart.main import app
from coursemart.models import Purchase, User

from tests.conftest import auth_headers


STUDENT = auth_headers("student")


class UnreachableOrders:
    def create(self, data=None, **kwargs):
        raise requests.exceptions.ConnectionError("network down")


class RejectingGateway:
    key_id = "rzp_test_key"

    def create_order(self, amount, currency, receipt, notes=None):
        raise PaymentGatewayError("Order amount too small")


@pytest.fixture
def unreachable_gateway(gateway):
    real = RazorpayGateway("rzp_test_key", "rzp_test_secret")
    real.client.order = UnreachableOrders()
    app.dependency_overrides[get_payment_gateway] = lambda: real
    return real


def test_create_order_wraps_network_errors():
    real = RazorpayGateway("rzp_test_key", "rzp_test_secret")
    real.client.order = UnreachableOrders()

    with pytest.raises(PaymentGatewayError, match="network down"):
        real.create_order(amount=7500, currency="INR", receipt="purchase_1")


def test_purchase_gateway_unreachable(client, db, student, course, unreachable_gateway):
    response = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT)

    assert response.status_code == 502
    assert response.json()["detail"] == "network down"
    assert db.query(Purchase).count() == 0


def test_purchase_gateway_rejects_order(client, db, student, course):
    app.dependency_overrides[get_payment_gateway] = lambda: RejectingGateway()

    response = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT)

    assert response.status_code == 502
    assert response.json()["detail"] == "Order amount too small"
    assert db.query(Purchase).count() == 0


def test_purchase_unavailable_without_gateway(client, db, student, course, no_gateway):
    response = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT)

    assert response.status_code == 503
    assert response.json()["detail"] == "Payments are not available right now"
    assert db.query(Purchase).count() == 0


def test_free_course_enrolls_without_gateway(client, db, student, educator, create_course, no_gateway):
    course = create_course(educator.id, price=50.0, discount=100)

    response = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT)

    assert response.status_code == 200
    assert response.json()["enrolled"] is True
    db.expire_all()
    assert db.get(User, "student").is_enrolled_in(course.id)


def test_verify_payment_unavailable_without_gateway(client, db, student, course):
    order = client.post(
        "/api/user/purchase", json={"courseId": course.id}, headers=STUDENT
    ).json()
    app.dependency_overrides[get_payment_gateway] = lambda: None

    response = client.post(
        "/api/user/verify-payment",
        json={
            "purchaseId": order["purchase_id"],
            "razorpayOrderId": order["order_id"],
            "razorpayPaymentId": "pay_1",
            "razorpaySignature": "sig",
        },
        headers=STUDENT,
    )

    assert response.status_code == 503
    db.expire_all()
    assert not db.get(User, "student").is_enrolled_in(course.id)
