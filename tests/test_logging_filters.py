"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from vaultgate.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_identifier,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired like production, writing JSON lines to a buffer."""

    def _build(name: str) -> tuple[logging.Logger, StringIO]:
        logger = logging.getLogger(name)
        logger.setLevel(logging.INFO)
        logger.handlers.clear()
        logger.propagate = False

        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.addFilter(RequestIdFilter())
        handler.addFilter(SensitiveDataFilter())
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        return logger, stream

    return _build


def test_sensitive_filter_redacts_api_keys(capture):
    logger, stream = capture("test_redaction")

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-secret-123",
            "x-api-key": "another-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "sk-secret-123" not in output
    assert "another-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_recipients_and_smtp_secrets(capture):
    logger, stream = capture("test_mail_redaction")

    logger.info(
        "mail_event",
        extra={
            "to": "ada@example.com",
            "email": "ada@example.com",
            "smtp_password": "hunter2",
            "limit_name": "Daily upload quota",
        },
    )

    output = stream.getvalue()
    assert "ada@example.com" not in output
    assert "hunter2" not in output
    assert "Daily upload quota" in output


def test_sensitive_filter_allows_admission_fields(capture):
    logger, stream = capture("test_safe_fields")

    logger.info(
        "admission.rejected",
        extra={
            "user_id": "u1",
            "kind": "files",
            "used": 10,
            "limit": 10,
        },
    )

    record = json.loads(stream.getvalue())
    assert record["message"] == "admission.rejected"
    assert record["kind"] == "files"
    assert record["limit"] == 10
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts(capture):
    logger, stream = capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {"x-api-key": "secret-key", "user-agent": "pytest"},
            "safe_data": {"count": 5},
        },
    )

    output = stream.getvalue()
    assert "secret-key" not in output
    assert "pytest" in output


def test_request_id_is_attached_from_context(capture):
    logger, stream = capture("test_request_id")

    set_request_id("req-abc")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-abc"


def test_hash_identifier_is_stable_and_short():
    first = hash_identifier("pwreset:ada@example.com")

    assert first == hash_identifier("pwreset:ada@example.com")
    assert len(first) == 16
    assert "ada" not in first
