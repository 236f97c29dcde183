import logging

import pytest
from django.urls import reverse
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIClient

from common.exceptions import BadRequest, _first_message, api_exception_handler
from common.utils import clamp, parse_int, safe_filename


@pytest.mark.django_db
def test_health_is_public():
    client = APIClient()

    r = client.get(reverse("health"))
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["status"] == "running"
    assert body["database"] == "sqlite"
    assert body["storageReady"] is True
    assert body["templateConfigured"] is False


@pytest.mark.django_db
def test_unknown_route_returns_json_404():
    r = APIClient().get("/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"ok": False, "message": "not found"}


@pytest.mark.django_db
def test_request_id_is_propagated_or_generated():
    client = APIClient()

    r = client.get(reverse("health"), HTTP_X_REQUEST_ID="abc-123")
    assert r["X-Request-ID"] == "abc-123"

    r = client.get(reverse("health"))
    assert len(r["X-Request-ID"]) == 32


@pytest.mark.django_db
def test_unauthenticated_api_call_uses_error_envelope():
    r = APIClient().get(reverse("audits"))
    assert r.status_code == 401
    assert r.json() == {"ok": False, "message": "unauthorized"}


def test_validation_errors_are_flattened():
    assert _first_message({"title": ["This field is required."]}) == "title: This field is required."
    assert _first_message({"non_field_errors": ["bad"]}) == "bad"
    assert _first_message([]) == "invalid request"

    response = api_exception_handler(ValidationError({"email": ["Enter a valid email address."]}), {})
    assert response.status_code == 400
    assert response.data == {"ok": False, "message": "email: Enter a valid email address."}


def test_service_errors_keep_their_message():
    response = api_exception_handler(BadRequest("file is required"), {})
    assert response.status_code == 400
    assert response.data == {"ok": False, "message": "file is required"}


@pytest.mark.django_db
def test_unexpected_error_becomes_generic_500(caplog):
    with caplog.at_level(logging.ERROR, logger="common.exceptions"):
        response = api_exception_handler(RuntimeError("db exploded"), {"view": None})
    assert response.status_code == 500
    assert response.data == {"ok": False, "message": "internal error"}
    assert "db exploded" not in str(response.data)
    assert any(rec.exc_info for rec in caplog.records)


@pytest.mark.parametrize(
    "value,expected",
    [("5", 5), (" 7 ", 7), (None, 20), ("abc", 20), ("1.5", 20)],
)
def test_parse_int(value, expected):
    assert parse_int(value, 20) == expected


def test_clamp():
    assert clamp(0, 1, 100) == 1
    assert clamp(500, 1, 100) == 100
    assert clamp(-3, 0) == 0
    assert clamp(42, 0) == 42


@pytest.mark.parametrize(
    "name,expected",
    [
        ("photo 1.jpg", "photo_1.jpg"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\x\\rapport.pdf", "rapport.pdf"),
        ("", "upload"),
        ("...", "upload"),
    ],
)
def test_safe_filename(name, expected):
    assert safe_filename(name) == expected
