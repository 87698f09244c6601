from __future__ import annotations

import logging
import sys
from typing import cast

import structlog
from structlog.typing import EventDict, WrappedLogger

from realms_governance.observability.redaction import redact_sensitive


class RedactionProcessor:
    def __call__(self, _: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        return cast(EventDict, redact_sensitive(dict(event_dict)))


def _stderr_logger(*_: object) -> structlog.PrintLogger:
    # stdout carries command results; resolved per logger so redirected streams are honoured.
    return structlog.PrintLogger(sys.stderr)


def configure_logging(level: str = "INFO") -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            RedactionProcessor(),
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "realms_governance") -> structlog.stdlib.BoundLogger:
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
