"""Logging setup for the command line front end."""

from __future__ import annotations

from deploycheck.observability.logging import LoggingConfig, setup_logging, shutdown_logging

__all__ = ["LoggingConfig", "setup_logging", "shutdown_logging"]
