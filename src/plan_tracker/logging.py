"""Structured logging for plan-tracker.

Events are snake_case names with keyword context, e.g.
``logger.info("plan_saved", name="release", steps=3)``, rendered for a
console or as JSON lines on stderr.

The CLI configures logging on every invocation. Library and tool callers
get the settings-driven configuration the first time a PlanManager is
built, unless the host application configured structlog itself.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from plan_tracker.config import PlanSettings


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Resolve sys.stderr per logger so a replaced stream is always honoured
    return structlog.PrintLogger(file=sys.stderr)


def _renderer(log_format: str) -> list[Processor]:
    if log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    ]


def configure_logging(settings: "PlanSettings | None" = None) -> None:
    """Configure structlog from ``settings.log_level`` and ``settings.log_format``.

    Without settings, warnings and above are rendered for the console.
    """
    level_name = settings.log_level if settings is not None else "warning"
    log_format = settings.log_format if settings is not None else "console"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *_renderer(log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name.upper(), logging.WARNING)
        ),
        context_class=dict,
        logger_factory=_stderr_logger,
        # Module-level proxies must pick up reconfiguration
        cache_logger_on_first_use=False,
    )


def ensure_logging_configured(settings: "PlanSettings") -> None:
    """Configure logging from ``settings`` unless structlog is already configured."""
    if not structlog.is_configured():
        configure_logging(settings)


def bind_context(**kwargs: object) -> None:
    """Bind keys to every subsequent log event in the current context.

    Example:
        bind_context(command="list")
        logger.warning("plan_skipped", name="broken")  # includes command="list"
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all keys bound with bind_context()."""
    structlog.contextvars.clear_contextvars()


class Loggers:
    """Named loggers for plan-tracker components."""

    @staticmethod
    def cli() -> structlog.stdlib.BoundLogger:
        return structlog.get_logger("plan_tracker.cli")

    @staticmethod
    def manager() -> structlog.stdlib.BoundLogger:
        return structlog.get_logger("plan_tracker.manager")

    @staticmethod
    def store() -> structlog.stdlib.BoundLogger:
        return structlog.get_logger("plan_tracker.store")

    @staticmethod
    def tools() -> structlog.stdlib.BoundLogger:
        return structlog.get_logger("plan_tracker.tools")
