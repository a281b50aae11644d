"""Tests for structured logging helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog
from structlog.testing import capture_logs

from rpg_engine.core.logging import (
    bind_context,
    bound_context,
    clear_context,
    configure_logging,
    get_logger,
    tag_engine,
)


class TestContextBinding:
    """Tests for context variable helpers."""

    def test_bind_and_clear(self) -> None:
        """Test bound values are visible until cleared."""
        bind_context(session_id="abc123")

        assert structlog.contextvars.get_contextvars() == {"session_id": "abc123"}

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_bound_context_keeps_outer_keys(self) -> None:
        """Test a nested binding only removes its own keys."""
        bind_context(session_id="abc123")
        try:
            with bound_context(action_id="x1"):
                assert structlog.contextvars.get_contextvars() == {
                    "session_id": "abc123",
                    "action_id": "x1",
                }

            assert structlog.contextvars.get_contextvars() == {"session_id": "abc123"}
        finally:
            clear_context()


class TestEngineEvents:
    """Tests that engine operations log structured events."""

    def test_unresolved_turn_order_warns(self, roster: object) -> None:
        """Test turn-order drift is logged with the offending ids."""
        from rpg_engine.engine.turn_order import resolve_turn_order
        from rpg_engine.models.combat import TurnOrder

        with capture_logs() as logs:
            resolve_turn_order(TurnOrder(actor_ids=["hero", "ghost"], round=1), roster)

        warnings = [entry for entry in logs if entry["log_level"] == "warning"]
        assert warnings[0]["event"] == "Dropping unresolved turn-order entries"
        assert warnings[0]["unresolved_ids"] == ["ghost"]

    def test_get_logger_logs_key_values(self) -> None:
        """Test loggers accept key/value events."""
        with capture_logs() as logs:
            get_logger("test").info("Actor scaled", actor_id="a1", cr=3)

        assert logs == [{"event": "Actor scaled", "actor_id": "a1", "cr": 3, "log_level": "info"}]


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture(autouse=True)
    def restore_structlog(self) -> Iterator[None]:
        """Put structlog back to its defaults after each test."""
        yield
        structlog.reset_defaults()

    def test_json_format_ends_with_json_renderer(self) -> None:
        """Test production output renders JSON lines."""
        configure_logging(level="WARNING", json_format=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert tag_engine in processors

    def test_console_format_ends_with_console_renderer(self) -> None:
        """Test development output renders to the console."""
        configure_logging(level="DEBUG")

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_unknown_level_falls_back_to_info(self) -> None:
        """Test a misspelled level name does not break configuration."""
        configure_logging(level="chatty")

        assert logging.getLogger().level == logging.INFO

    def test_tag_engine_keeps_existing_app(self) -> None:
        """Test an explicit app key is not overwritten."""
        assert tag_engine(None, "info", {"event": "x"})["app"] == "rpg_engine"
        assert tag_engine(None, "info", {"event": "x", "app": "host"})["app"] == "host"
