"""Tests for structlog processors."""

import structlog

from tasktrack.logging import (
    _add_correlation_id,
    _redact_pii,
    bind_actor,
    clear_request_context,
    get_correlation_id,
    set_correlation_id,
)


def test_redacts_sensitive_keys():
    event = _redact_pii(
        None,
        "info",
        {"event": "login", "email": "alice@example.com", "admin_password": "admin123"},
    )

    assert event["email"] == "al***om"
    assert event["admin_password"] == "ad***23"
    assert event["event"] == "login"


def test_short_values_left_alone():
    assert _redact_pii(None, "info", {"token": "abc"})["token"] == "abc"


def test_correlation_id_attached():
    cid = set_correlation_id("req-42")

    assert cid == "req-42"
    assert get_correlation_id() == "req-42"
    assert _add_correlation_id(None, "info", {})["correlation_id"] == "req-42"


def test_correlation_id_generated():
    cid = set_correlation_id()

    assert cid
    assert get_correlation_id() == cid


def test_bind_actor_and_clear_request_context():
    set_correlation_id("req-7")
    bind_actor("account-1", "admin")

    bound = structlog.contextvars.get_contextvars()
    assert bound["actor_id"] == "account-1"
    assert bound["actor_role"] == "admin"

    clear_request_context()

    assert structlog.contextvars.get_contextvars() == {}
    assert get_correlation_id() is None
