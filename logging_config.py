"""Structured logging (structlog on top of stdlib logging)."""

import logging
import os
import re
import sys

import structlog

SENSITIVE_PATTERN = re.compile(
    r"(password|passwd|secret|token|authorization|private_key|master_key)"
    r"""([=:]\s*["']?)([^\s,}"']+)""",
    re.IGNORECASE,
)
SENSITIVE_KEYS = {"token", "gateway_token", "password", "access_token", "customer_phone"}


def mask_sensitive_data(_, __, event_dict):
    """Processor that masks tokens, secrets and phone numbers in log values."""
    for key, value in list(event_dict.items()):
        if key in SENSITIVE_KEYS and value:
            event_dict[key] = "***MASKED***"
        elif isinstance(value, str):
            event_dict[key] = SENSITIVE_PATTERN.sub(r"\1\2***MASKED***", value)
    return event_dict


# Shared processors used by both structlog and stdlib logging
_shared_processors = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    mask_sensitive_data,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def configure_logging(level: str = None, fmt: str = None):
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    fmt = (fmt or os.getenv("LOG_FORMAT", "console")).lower()

    renderer = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            *_shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=_shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
