from coursemart.core.config import settings
from coursemart.core.security import profile_from_claims, verify_token

from tests.conftest import make_token


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert settings.PROJECT_NAME in response.json()["message"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["database"] is True


def test_verify_token_roundtrip():
    payload = verify_token(make_token("user_1", name="Jane"))

    assert payload["sub"] == "user_1"
    assert verify_token("garbage") is None


def test_verify_token_requires_subject():
    assert verify_token(make_token("")) is None


def test_profile_from_claims_fallbacks():
    assert profile_from_claims({"sub": "abc", "email": "jane@example.com"})["name"] == "jane"
    assert profile_from_claims({"sub": "abc"})["name"] == "abc"
    assert profile_from_claims({"sub": "abc", "picture": "https://img"})["image_url"] == "https://img"
    assert profile_from_claims({"sub": "abc"}, with_fallbacks=False)["name"] == ""


def test_profile_claims_refresh_existing_user(client, student):
    headers = {"Authorization": f"Bearer {make_token('student', picture='https://img/sam.png')}"}

    user = client.get("/api/user/data", headers=headers).json()["user"]

    assert user["name"] == "Sam Student"
    assert user["image_url"] == "https://img/sam.png"
