"""Tests for structured logging and request_id propagation."""

import json
import logging

from dudelang.core.logging import StructuredFormatter, latency_bucket_ms, log_event, redact, request_id_ctx_var


def test_request_id_in_response_and_logs(client, caplog):
    with caplog.at_level(logging.INFO, logger="dudelang"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"
    assert any(r.getMessage() == "request.complete" for r in records)


def test_incoming_request_id_is_echoed(client):
    response = client.get("/healthz", headers={"X-Request-Id": "rid-abc"})
    assert response.headers.get("x-request-id") == "rid-abc"


def test_request_id_in_billing_error_logs(client, caplog):
    with caplog.at_level(logging.WARNING, logger="dudelang"):
        response = client.get("/api/get-subscription-status")
    assert response.status_code == 400
    failures = [r for r in caplog.records if r.getMessage() == "billing.status.failed"]
    assert failures
    assert failures[0].error_code == "bad_request"


def test_log_event_uses_context_request_id(caplog):
    token = request_id_ctx_var.set("ctx-rid")
    try:
        with caplog.at_level(logging.INFO, logger="dudelang"):
            log_event("info", "checkout.created", anonymous_id="anon", session_id="cs_1", event_type="checkout_created")
    finally:
        request_id_ctx_var.reset(token)
    record = next(r for r in caplog.records if r.getMessage() == "checkout.created")
    assert record.request_id == "ctx-rid"
    assert record.session_id == "cs_1"


def test_json_formatter_includes_structured_fields():
    record = logging.LogRecord("dudelang", logging.INFO, __file__, 1, "checkout.verified", None, None)
    record.request_id = "r1"
    record.anonymous_id = "anon"
    record.event_type = "checkout_verified"
    payload = json.loads(StructuredFormatter(as_json=True).format(record))
    assert payload["message"] == "checkout.verified"
    assert payload["request_id"] == "r1"
    assert payload["anonymous_id"] == "anon"
    assert payload["event_type"] == "checkout_verified"
    assert "session_id" not in payload


def test_latency_buckets():
    assert latency_bucket_ms(None) == "unknown"
    assert latency_bucket_ms(5) == "<10ms"
    assert latency_bucket_ms(250) == "100-500ms"
    assert latency_bucket_ms(5000) == ">=1000ms"


def test_secrets_are_redacted():
    assert redact("key sk_live_abc123 and gsk_XYZ") == "key [redacted] and [redacted]"
    record = logging.LogRecord("dudelang", logging.ERROR, __file__, 1, "bad key sk_test_abc", None, None)
    assert "sk_test_abc" not in StructuredFormatter().format(record)


def test_unsafe_incoming_request_id_is_replaced(client):
    response = client.get("/healthz", headers={"X-Request-Id": "bad id\twith spaces"})
    rid = response.headers.get("x-request-id")
    assert rid and rid != "bad id\twith spaces"
