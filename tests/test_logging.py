"""Tests for structured logging configuration."""

import structlog

from src.core.config import settings
from src.core.logging import (
    _add_context_vars,
    _orjson_serializer,
    bind_client,
    client_id_ctx,
    configure_logging,
    request_context,
    request_id_ctx,
)


def _reset_structlog() -> None:
    """Reset structlog defaults to avoid test cross-talk."""
    structlog.reset_defaults()


def test_configure_logging_uses_json_when_log_format_json() -> None:
    """Use JSON logging when log_format=json, even in development."""
    original_env = settings.environment
    original_format = getattr(settings, "log_format", None)

    try:
        settings.environment = "development"
        settings.log_format = "json"
        configure_logging()

        processors = structlog.get_config()["processors"]
        assert any(
            isinstance(processor, structlog.processors.JSONRenderer)
            for processor in processors
        )
        assert any(
            isinstance(processor, structlog.processors.EventRenamer)
            for processor in processors
        )
    finally:
        settings.environment = original_env
        settings.log_format = original_format
        _reset_structlog()


def test_configure_logging_uses_console_when_log_format_console() -> None:
    """Use console logging when log_format=console in development."""
    original_env = settings.environment
    original_format = getattr(settings, "log_format", None)

    try:
        settings.environment = "development"
        settings.log_format = "console"
        configure_logging()

        processors = structlog.get_config()["processors"]
        assert any(
            isinstance(processor, structlog.dev.ConsoleRenderer)
            for processor in processors
        )
        assert not any(
            isinstance(processor, structlog.processors.JSONRenderer)
            for processor in processors
        )
    finally:
        settings.environment = original_env
        settings.log_format = original_format
        _reset_structlog()


def test_context_vars_are_added_to_events() -> None:
    """request_id and client_id from context appear on every event."""
    request_token = request_id_ctx.set("req-1")
    client_token = client_id_ctx.set("client-1")
    try:
        event = _add_context_vars(None, "info", {"event": "client_updated"})
        explicit = _add_context_vars(None, "info", {"event": "x", "client_id": "other"})
    finally:
        client_id_ctx.reset(client_token)
        request_id_ctx.reset(request_token)

    assert event == {"event": "client_updated", "request_id": "req-1", "client_id": "client-1"}
    assert explicit["client_id"] == "other"


def test_context_vars_absent_by_default() -> None:
    event = _add_context_vars(None, "info", {"event": "client_created"})
    assert event == {"event": "client_created"}


def test_orjson_serializer_handles_datetimes_and_decimals() -> None:
    from datetime import datetime
    from decimal import Decimal

    rendered = _orjson_serializer({"at": datetime(2024, 1, 1), "amount": Decimal("5.8")})
    assert '"at":"2024-01-01T00:00:00"' in rendered
    assert '"amount":"5.8"' in rendered


def test_request_context_scopes_request_and_client_ids() -> None:
    outer = client_id_ctx.set("client-from-earlier-request")
    try:
        with request_context("req-2"):
            assert client_id_ctx.get() is None
            bind_client("client-2")
            event = _add_context_vars(None, "info", {"event": "client_updated"})
        assert request_id_ctx.get() is None
        assert client_id_ctx.get() == "client-from-earlier-request"
    finally:
        client_id_ctx.reset(outer)

    assert event == {"event": "client_updated", "request_id": "req-2", "client_id": "client-2"}
