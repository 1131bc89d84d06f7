from coursemart.models import Course, Purchase, PurchaseStatus, User

from tests.conftest import auth_headers, payment_signature


STUDENT = auth_headers("student")


def enroll(db, user, course):
    user.enrolled_courses.append(course)
    db.commit()


def test_requires_token(client):
    response = client.get("/api/user/data")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_invalid_token(client):
    response = client.get("/api/user/data", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_first_request_creates_user(client, db):
    headers = auth_headers("new-user", email="newbie@example.com")

    response = client.get("/api/user/data", headers=headers)

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["id"] == "new-user"
    assert user["name"] == "newbie"
    assert user["role"] == "user"
    assert user["enrolled_courses"] == []
    assert db.get(User, "new-user") is not None


# Purchases

def test_purchase_creates_pending_order(client, db, student, educator, create_course, gateway):
    course = create_course(educator.id, price=100.0, discount=25)

    response = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "pending"
    assert data["enrolled"] is False
    assert data["amount"] == 75.0
    assert data["order_amount"] == 7500
    assert data["currency"] == "INR"
    assert data["key_id"] == "rzp_test_key"
    assert data["order_id"] == gateway.orders[0]["id"]
    assert gateway.orders[0]["amount"] == 7500

    purchase = db.get(Purchase, data["purchase_id"])
    assert purchase.status == PurchaseStatus.PENDING.value
    assert purchase.gateway_order_id == data["order_id"]


def test_purchase_free_course_enrolls_immediately(client, db, student, educator, create_course, gateway):
    course = create_course(educator.id, price=50.0, discount=100)

    response = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT)

    assert response.status_code == 200
    data = response.json()
    assert data["enrolled"] is True
    assert data["status"] == "completed"
    assert gateway.orders == []

    db.expire_all()
    assert db.get(User, "student").is_enrolled_in(course.id)


def test_purchase_unknown_or_draft_course(client, student, educator, create_course):
    draft = create_course(educator.id, is_published=False)

    assert client.post("/api/user/purchase", json={"courseId": 999}, headers=STUDENT).status_code == 404
    assert client.post("/api/user/purchase", json={"courseId": draft.id}, headers=STUDENT).status_code == 404


def test_purchase_already_enrolled(client, db, student, course):
    enroll(db, student, course)

    response = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT)

    assert response.status_code == 400
    assert response.json()["detail"] == "Already enrolled in this course"


def test_purchase_own_course(client, course):
    response = client.post(
        "/api/user/purchase", json={"courseId": course.id}, headers=auth_headers("educator")
    )

    assert response.status_code == 400


def test_verify_payment_enrolls_and_clears_cart(client, db, student, course):
    client.post("/api/user/cart/add", json={"courseId": course.id}, headers=STUDENT)
    order = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT).json()

    response = client.post("/api/user/verify-payment", json={
        "purchaseId": order["purchase_id"],
        "razorpayOrderId": order["order_id"],
        "razorpayPaymentId": "pay_123",
        "razorpaySignature": payment_signature(order["order_id"], "pay_123"),
    }, headers=STUDENT)

    assert response.status_code == 200

    db.expire_all()
    purchase = db.get(Purchase, order["purchase_id"])
    assert purchase.status == PurchaseStatus.COMPLETED.value
    assert purchase.gateway_payment_id == "pay_123"

    user = client.get("/api/user/data", headers=STUDENT).json()["user"]
    assert user["enrolled_courses"] == [course.id]
    assert user["cart"] == []


def test_verify_payment_is_idempotent(client, db, student, course):
    order = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT).json()
    body = {
        "purchaseId": order["purchase_id"],
        "razorpayOrderId": order["order_id"],
        "razorpayPaymentId": "pay_123",
        "razorpaySignature": payment_signature(order["order_id"], "pay_123"),
    }

    client.post("/api/user/verify-payment", json=body, headers=STUDENT)
    response = client.post("/api/user/verify-payment", json=body, headers=STUDENT)

    assert response.status_code == 200
    assert response.json()["message"] == "Payment already verified"

    db.expire_all()
    assert len(db.get(Course, course.id).enrolled_students) == 1


def test_verify_payment_bad_signature_fails_purchase(client, db, student, course):
    order = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT).json()

    response = client.post("/api/user/verify-payment", json={
        "purchaseId": order["purchase_id"],
        "razorpayOrderId": order["order_id"],
        "razorpayPaymentId": "pay_123",
        "razorpaySignature": "forged",
    }, headers=STUDENT)

    assert response.status_code == 400

    db.expire_all()
    assert db.get(Purchase, order["purchase_id"]).status == PurchaseStatus.FAILED.value
    assert not db.get(User, "student").is_enrolled_in(course.id)


def test_verify_payment_of_other_user(client, student, create_user, course):
    create_user("other")
    order = client.post("/api/user/purchase", json={"courseId": course.id}, headers=STUDENT).json()

    response = client.post("/api/user/verify-payment", json={
        "purchaseId": order["purchase_id"],
        "razorpayOrderId": order["order_id"],
        "razorpayPaymentId": "pay_123",
        "razorpaySignature": payment_signature(order["order_id"], "pay_123"),
    }, headers=auth_headers("other"))

    assert response.status_code == 404


# Enrollments and progress

def test_enrolled_courses_include_urls_and_progress(client, db, student, course):
    enroll(db, student, course)

    response = client.get("/api/user/enrolled-courses", headers=STUDENT)

    assert response.status_code == 200
    enrolled = response.json()["enrolled_courses"]
    assert len(enrolled) == 1
    assert all(lecture["url"] for lecture in enrolled[0]["chapters"][0]["lectures"])
    assert enrolled[0]["progress"]["total_lectures"] == 2
    assert enrolled[0]["progress"]["completed_lectures"] == 0


def test_update_progress_requires_enrollment(client, student, course):
    lecture_id = course.chapters[0].lectures[0].id

    response = client.post("/api/user/update-course-progress", json={
        "courseId": course.id, "lectureId": lecture_id
    }, headers=STUDENT)

    assert response.status_code == 403


def test_update_progress_unknown_lecture(client, db, student, course):
    enroll(db, student, course)

    response = client.post("/api/user/update-course-progress", json={
        "courseId": course.id, "lectureId": "nope"
    }, headers=STUDENT)

    assert response.status_code == 404


def test_update_and_get_progress(client, db, student, course):
    first, second = [lecture.id for lecture in course.chapters[0].lectures]
    enroll(db, student, course)

    response = client.post("/api/user/update-course-progress", json={
        "courseId": course.id, "lectureId": first
    }, headers=STUDENT)
    assert response.json()["message"] == "Progress Updated"

    response = client.post("/api/user/update-course-progress", json={
        "courseId": course.id, "lectureId": first
    }, headers=STUDENT)
    assert response.status_code == 200
    assert response.json()["message"] == "Lecture Already Completed"

    progress = client.post(
        "/api/user/get-course-progress", json={"courseId": course.id}, headers=STUDENT
    ).json()
    assert progress["progress_data"]["lecture_completed"] == [first]
    assert progress["summary"]["progress_percentage"] == 50.0
    assert progress["summary"]["completed"] is False

    client.post("/api/user/update-course-progress", json={
        "courseId": course.id, "lectureId": second
    }, headers=STUDENT)

    progress = client.post(
        "/api/user/get-course-progress", json={"courseId": course.id}, headers=STUDENT
    ).json()
    assert progress["summary"]["completed"] is True
    assert progress["summary"]["progress_percentage"] == 100.0


def test_get_progress_without_record(client, student, course):
    response = client.post("/api/user/get-course-progress", json={"courseId": course.id}, headers=STUDENT)

    assert response.status_code == 200
    assert response.json()["progress_data"] is None
    assert response.json()["summary"]["completed_lectures"] == 0


# Ratings

def test_rating_requires_purchase(client, student, course):
    response = client.post("/api/user/add-rating", json={"courseId": course.id, "rating": 4}, headers=STUDENT)

    assert response.status_code == 400
    assert response.json()["detail"] == "User has not purchased this course."


def test_rating_out_of_range(client, db, student, course):
    enroll(db, student, course)

    for rating in (0, 6):
        response = client.post(
            "/api/user/add-rating", json={"courseId": course.id, "rating": rating}, headers=STUDENT
        )
        assert response.status_code == 422


def test_rating_unknown_course(client, student):
    response = client.post("/api/user/add-rating", json={"courseId": 999, "rating": 4}, headers=STUDENT)

    assert response.status_code == 404


def test_rating_replaces_previous(client, db, student, course):
    enroll(db, student, course)

    client.post("/api/user/add-rating", json={"courseId": course.id, "rating": 5}, headers=STUDENT)
    response = client.post("/api/user/add-rating", json={"courseId": course.id, "rating": 3}, headers=STUDENT)

    assert response.json()["message"] == "Rating added"
    detail = client.get(f"/api/course/{course.id}").json()
    assert detail["rating"] == 3
    assert detail["rating_count"] == 1


# Wishlist and cart

def test_wishlist_add_remove_toggle(client, student, course):
    add = client.post("/api/user/wishlist/add", json={"courseId": course.id}, headers=STUDENT).json()
    again = client.post("/api/user/wishlist/add", json={"courseId": course.id}, headers=STUDENT).json()

    assert add["wishlist"] == [course.id]
    assert again["wishlist"] == [course.id]

    listing = client.get("/api/user/wishlist", headers=STUDENT).json()
    assert [c["id"] for c in listing["wishlist"]] == [course.id]

    toggled = client.post("/api/user/wishlist/toggle", json={"courseId": course.id}, headers=STUDENT).json()
    assert toggled["in_wishlist"] is False
    assert toggled["wishlist"] == []

    toggled = client.post("/api/user/wishlist/toggle", json={"courseId": course.id}, headers=STUDENT).json()
    assert toggled["in_wishlist"] is True

    removed = client.post("/api/user/wishlist/remove", json={"courseId": course.id}, headers=STUDENT)
    assert removed.json()["wishlist"] == []

    # Removing an absent course is a no-op
    assert client.post("/api/user/wishlist/remove", json={"courseId": course.id}, headers=STUDENT).status_code == 200


def test_cart_totals(client, student, educator, create_course):
    first = create_course(educator.id, title="First", price=100.0, discount=25)
    second = create_course(educator.id, title="Second", price=50.0)

    client.post("/api/user/cart/add", json={"courseId": first.id}, headers=STUDENT)
    response = client.post("/api/user/cart/add", json={"courseId": second.id}, headers=STUDENT)

    data = response.json()
    assert {c["id"] for c in data["cart"]} == {first.id, second.id}
    assert data["total"] == 150.0
    assert data["subtotal"] == 125.0
    assert data["savings"] == 25.0

    data = client.post("/api/user/cart/remove", json={"courseId": first.id}, headers=STUDENT).json()
    assert [c["id"] for c in data["cart"]] == [second.id]
    assert data["subtotal"] == 50.0


def test_cart_rejects_enrolled_course(client, db, student, course):
    enroll(db, student, course)

    response = client.post("/api/user/cart/add", json={"courseId": course.id}, headers=STUDENT)

    assert response.status_code == 400


# Promotion

def test_promote_requires_admin(client, student, create_user):
    create_user("target")

    response = client.post("/api/user/promote", json={"userId": "target"}, headers=STUDENT)

    assert response.status_code == 403


def test_promote_to_admin(client, db, admin, create_user):
    create_user("target")

    response = client.post("/api/user/promote", json={"userId": "target"}, headers=auth_headers("admin"))

    assert response.status_code == 200
    db.expire_all()
    assert db.get(User, "target").role == "admin"


def test_promote_unknown_user(client, admin):
    response = client.post("/api/user/promote", json={"userId": "ghost"}, headers=auth_headers("admin"))

    assert response.status_code == 404
