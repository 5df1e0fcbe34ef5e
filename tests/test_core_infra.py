# tests/test_core_infra.py
import json
import logging

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.errors import (
    CONNECTION_FAILED,
    FOREIGN_KEY_VIOLATION,
    SCHEMA_MISSING,
    STORAGE_FAILED,
    classify_storage_error,
)
from app.core.logging import JsonFormatter, RequestIdFilter, set_request_id
from app.core.session_token import make_token, parse_token


# --------------------------------------------------------------------------- session tokens
@pytest.mark.parametrize("role", ["member", "admin", "superuser"])
def test_token_round_trip(role):
    user = parse_token(make_token(7, role))
    assert user.user_id == 7
    assert user.role == role
    assert user.is_admin == (role != "member")
    assert user.is_superuser == (role == "superuser")


@pytest.mark.parametrize("token", ["", "garbage", "!!!", make_token(7)[:-4]])
def test_malformed_tokens_are_rejected(token):
    assert parse_token(token) is None


def test_token_signed_with_another_secret_is_rejected(monkeypatch):
    token = make_token(7, "superuser")
    monkeypatch.setattr("app.core.session_token.settings.SESSION_SECRET", "another-secret")
    assert parse_token(token) is None


def test_unknown_role_cannot_be_issued():
    with pytest.raises(ValueError):
        make_token(1, "root")


# --------------------------------------------------------------------------- storage errors
def _op_error(message):
    return OperationalError("SELECT 1", {}, Exception(message))


@pytest.mark.parametrize("exc,expected", [
    (IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed")), FOREIGN_KEY_VIOLATION),
    (IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")), STORAGE_FAILED),
    (_op_error("no such table: answers"), SCHEMA_MISSING),
    (_op_error("unable to open database file"), CONNECTION_FAILED),
    (_op_error("disk I/O error"), CONNECTION_FAILED),
])
def test_classify_storage_error(exc, expected):
    assert classify_storage_error(exc) == expected


def test_storage_errors_reach_the_client_as_500(client, monkeypatch):
    def _boom(*args, **kwargs):
        raise _op_error("no such table: property_types")

    monkeypatch.setattr("app.routers.hierarchy.list_property_types", _boom)
    resp = client.get("/api/property-types")
    assert resp.status_code == 500
    assert resp.json()["error"] == SCHEMA_MISSING


# --------------------------------------------------------------------------- logging
def _record(msg="hello", **extra):
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_id_and_extras():
    record = _record(user_id=3, rows=12)
    set_request_id("req-123")
    try:
        RequestIdFilter().filter(record)
    finally:
        set_request_id(None)

    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-123"
    assert payload["user_id"] == 3
    assert payload["rows"] == 12


def test_json_formatter_stringifies_unserializable_extras():
    payload = json.loads(JsonFormatter().format(_record(obj=object())))
    assert payload["obj"].startswith("<object object")


def test_request_id_is_echoed(client):
    resp = client.get("/api/ping", headers={"x-request-id": "abc"})
    assert resp.headers["x-request-id"] == "abc"
    assert client.get("/api/ping").headers["x-request-id"]


def test_health_reports_database(client):
    body = client.get("/api/health").json()
    assert body["ok"] is True
    assert body["db"] == "ok"
