from datetime import timedelta

import pytest
from django.core.management import CommandError, call_command
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from users.hashers import BCrypt10PasswordHasher
from users.models import User
from users.services import issue_token

PASSWORD = "StrongPassw0rd!"


@pytest.mark.django_db
def test_register_and_login_and_me():
    client = APIClient()

    # 1) Register
    r = client.post(reverse("register"), {"email": "Alice@Example.com", "password": PASSWORD}, format="json")
    assert r.status_code == 201, r.content
    assert r.data["ok"] is True
    assert r.data["user"]["email"] == "alice@example.com"
    assert r.data["user"]["role"] == "auditor"
    assert "password" not in r.data["user"]
    user_id = r.data["user"]["id"]

    # 2) Login (JWT)
    r = client.post(reverse("login"), {"email": "alice@example.com", "password": PASSWORD}, format="json")
    assert r.status_code == 200, r.content
    assert r.data["user"] == {"id": user_id, "email": "alice@example.com", "role": "auditor"}
    token = r.data["token"]

    # 3) /me -> claims du token
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    r = client.get(reverse("me"))
    assert r.status_code == 200
    claims = r.data["user"]
    assert claims["sub"] == user_id
    assert claims["email"] == "alice@example.com"
    assert claims["role"] == "auditor"
    assert claims["exp"] > claims["iat"]


@pytest.mark.django_db
def test_password_is_stored_hashed(alice):
    alice.refresh_from_db()
    assert alice.password != PASSWORD
    assert alice.check_password(PASSWORD)


@pytest.mark.django_db
def test_register_duplicate_email_conflict(alice):
    r = APIClient().post(reverse("register"), {"email": " ALICE@example.com", "password": PASSWORD}, format="json")
    assert r.status_code == 409
    assert r.json() == {"ok": False, "message": "email already exists"}


@pytest.mark.django_db
@pytest.mark.parametrize(
    "payload",
    [
        {"password": PASSWORD},
        {"email": "x@example.com"},
        {"email": "not-an-email", "password": PASSWORD},
        {"email": "x@example.com", "password": "short"},
        {"email": "x@example.com", "password": PASSWORD, "role": "superuser"},
    ],
)
def test_register_rejects_invalid_payload(payload):
    r = APIClient().post(reverse("register"), payload, format="json")
    assert r.status_code == 400
    body = r.json()
    assert body["ok"] is False
    assert body["message"]


@pytest.mark.django_db
def test_register_accepts_admin_role():
    r = APIClient().post(
        reverse("register"),
        {"email": "root@example.com", "password": PASSWORD, "role": "admin"},
        format="json",
    )
    assert r.status_code == 201
    assert r.data["user"]["role"] == "admin"


@pytest.mark.django_db
def test_register_ignores_stale_bearer_token():
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION="Bearer garbage")
    r = client.post(reverse("register"), {"email": "new@example.com", "password": PASSWORD}, format="json")
    assert r.status_code == 201


@pytest.mark.django_db
@pytest.mark.parametrize(
    "email,password",
    [("alice@example.com", "WrongPassw0rd!"), ("nobody@example.com", PASSWORD)],
)
def test_login_invalid_credentials(alice, email, password):
    r = APIClient().post(reverse("login"), {"email": email, "password": password}, format="json")
    assert r.status_code == 401
    assert r.json() == {"ok": False, "message": "invalid credentials"}


@pytest.mark.django_db
def test_login_email_is_case_insensitive(alice):
    r = APIClient().post(reverse("login"), {"email": "ALICE@example.com", "password": PASSWORD}, format="json")
    assert r.status_code == 200
    assert r.data["token"]


@pytest.mark.django_db
def test_login_missing_fields():
    r = APIClient().post(reverse("login"), {"email": "alice@example.com"}, format="json")
    assert r.status_code == 400


@pytest.mark.django_db
def test_me_requires_token():
    r = APIClient().get(reverse("me"))
    assert r.status_code == 401
    assert r.json()["ok"] is False
    assert r["WWW-Authenticate"].startswith("Bearer")


@pytest.mark.django_db
def test_me_rejects_tampered_token(alice):
    token = issue_token(alice)
    tampered = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tampered}")
    assert client.get(reverse("me")).status_code == 401


@pytest.mark.django_db
def test_me_rejects_expired_token(alice):
    token = AccessToken.for_user(alice)
    token.set_exp(lifetime=-timedelta(minutes=1))
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    assert client.get(reverse("me")).status_code == 401


@pytest.mark.django_db
def test_me_rejects_non_bearer_scheme(alice):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION="Basic YWxpY2U6cHc=")
    assert client.get(reverse("me")).status_code == 401


@pytest.mark.django_db
def test_set_role_command(alice):
    call_command("set_role", "Alice@example.com", "admin")
    alice.refresh_from_db()
    assert alice.role == User.Role.ADMIN
    assert alice.is_admin


@pytest.mark.django_db
def test_set_role_unknown_user():
    with pytest.raises(CommandError):
        call_command("set_role", "ghost@example.com", "admin")


def test_bcrypt_hasher_uses_cost_10():
    hasher = BCrypt10PasswordHasher()
    assert hasher.algorithm == "bcrypt10"
    assert hasher.rounds == 10
