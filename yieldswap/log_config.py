"""structlog setup shared by the API server and embedding applications."""

import logging
import os

import structlog


def configure_logging(level: str | None = None, json: bool | None = None) -> None:
    """Configure structlog with level filtering.

    Args:
        level: Log level name. Defaults to YIELDSWAP_LOG_LEVEL, then INFO.
        json: Render JSON lines instead of the console renderer. Defaults to
            YIELDSWAP_LOG_JSON.
    """
    if level is None:
        level = os.environ.get("YIELDSWAP_LOG_LEVEL", "INFO")
    if json is None:
        json = os.environ.get("YIELDSWAP_LOG_JSON", "false").lower() in ("true", "1", "yes")

    log_level = logging.getLevelNamesMapping().get(level.upper())
    if log_level is None:
        raise ValueError(f"Unknown log level: {level}")

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )
