"""Unit tests for the logging utilities."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

from flask import g

from authcore.core.logger import JSONFormatter, RequestIdFilter, configure_logging
from authcore.services.auth.dto import TokenClaims


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("authcore.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_configure_logging_sets_level() -> None:
    """``configure_logging`` should set the root logger level."""

    # Act
    configure_logging("DEBUG")

    # Assert
    assert logging.getLogger().level == logging.DEBUG
    configure_logging("WARNING")


def test_json_formatter_promotes_known_extras() -> None:
    payload = json.loads(JSONFormatter().format(_record(user_id=7, removed=3, secret="x")))

    assert payload["message"] == "hello x"
    assert payload["level"] == "INFO"
    assert payload["user_id"] == 7
    assert payload["removed"] == 3
    assert "secret" not in payload


def test_request_id_filter_outside_request() -> None:
    record = _record()

    assert RequestIdFilter().filter(record) is True
    assert record.request_id is None


def test_request_id_is_echoed(app) -> None:
    client = app.test_client()

    resp = client.get("/does-not-exist", headers={"X-Request-ID": "req-123"})

    assert resp.status_code == 404
    assert resp.headers["X-Request-ID"] == "req-123"
    assert resp.get_json()["request_id"] == "req-123"


def test_request_id_is_generated(app) -> None:
    resp = app.test_client().get("/does-not-exist")

    generated = resp.headers["X-Request-ID"]
    assert generated
    assert resp.get_json()["request_id"] == generated


def test_request_id_filter_tags_authenticated_user(app) -> None:
    claims = TokenClaims(
        user_id=11, username="u", email="u@example.com", role="user", expires_at=datetime.now(UTC)
    )
    with app.test_request_context("/", headers={"X-Correlation-ID": "corr-1"}):
        g.auth_claims = claims
        record = _record()
        explicit = _record(user_id=99)

        RequestIdFilter().filter(record)
        RequestIdFilter().filter(explicit)

    assert record.request_id == "corr-1"
    assert record.user_id == 11
    assert explicit.user_id == 99
