# ─────────────────────────────────────────────────────────────────────────────
# Logging Configuration — structlog, JSON in production
# ─────────────────────────────────────────────────────────────────────────────


import logging
import sys
from typing import Any

import structlog

# Event keys whose values must never reach a log sink.
_REDACTED_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "token",
        "api_key",
        "apikey",
        "gemini_api_key",
        "supabase_anon_key",
        "supabase_service_role_key",
        "image",
        "images",
    }
)

# Third-party loggers that log full request URLs or bodies at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "google_genai", "hpack")


def redact_secrets(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Replace credential and media fields with a placeholder."""
    for key in event_dict.keys() & _REDACTED_KEYS:
        event_dict[key] = "[redacted]"
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog for structured logging.

    JSON output emits one parseable object per line (timestamp, level,
    logger name, structured fields). Console output is for local development.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        redact_secrets,
    ]

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    # shared_processors already ran in structlog.configure(); running them
    # again here would duplicate timestamps and level tags.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
