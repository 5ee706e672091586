"""Logging setup."""

from __future__ import annotations

from history_engine.telemetry.json_formatter import JSONFormatter, configure_logging

__all__ = ["JSONFormatter", "configure_logging"]
