"""structlog setup for the EcoWear API.

Every event is a single JSON line on stdout carrying the request's
correlation id. Credentials never reach the log: keys naming a password,
token, secret or authorization header are masked, as is any value that
looks like a bearer header.
"""

import logging
import sys
from typing import Any, Dict

import structlog

SERVICE_NAME = "ecowear-api"
REDACTED = "REDACTED"
SENSITIVE_KEY_PARTS = ("authorization", "token", "secret", "password")


def _log_level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor masking credentials in an event."""
    for key, value in event_dict.items():
        if key == "event":
            continue
        if any(part in key.lower() for part in SENSITIVE_KEY_PARTS):
            event_dict[key] = REDACTED
        elif isinstance(value, str) and value.lower().startswith("bearer "):
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """Route stdlib and structlog output to stdout as JSON.

    uvicorn's access log is quieted to WARNING since
    ``CorrelationIdMiddleware`` already logs each request.
    """
    level = _log_level(log_level)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger("uvicorn.access").setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger tagged with the service name and, optionally, a component."""
    logger = structlog.get_logger().bind(service=SERVICE_NAME)
    if component:
        logger = logger.bind(component=component)
    return logger
