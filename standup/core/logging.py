from __future__ import annotations

import logging
from typing import Any

import structlog

# local runs read better in the console; every other env ships JSON
_CONSOLE_ENVS = frozenset({"local", "dev"})


def configure_logging(level: str = "INFO", *, env: str = "local", app_name: str = "standup-engine") -> None:
    """
    Configure structlog on top of stdlib logging for the whole service.

    Every event carries ``app`` and whatever the current standup run bound
    through ``bind_run_context``.
    """
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer: Any = (
        structlog.dev.ConsoleRenderer()
        if env.lower() in _CONSOLE_ENVS
        else structlog.processors.JSONRenderer()
    )

    def _add_app(_logger: Any, _method: str, event_dict: dict) -> dict:
        event_dict.setdefault("app", app_name)
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _add_app,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def bind_run_context(**values: Any) -> None:
    """Attach standup identifiers to every event logged by the current task."""
    structlog.contextvars.bind_contextvars(**values)


def clear_run_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(*, name: str | None = None, **kwargs: Any) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger(name)
    if kwargs:
        return logger.bind(**kwargs)
    return logger
