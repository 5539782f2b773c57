"""structlog setup for PhotoVault.

Storage and ACL code logs dotted events such as ``objects.upload.received``
or ``objects.delivery.stream_failed`` with the object id as a key. Every
event is rendered as one JSON line through the stdlib root logger, and
``exc_info`` on an event becomes a formatted ``exception`` field.
"""

from __future__ import annotations

import logging

import structlog

LOG_FORMAT = "%(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


__all__ = ["configure_logging"]
