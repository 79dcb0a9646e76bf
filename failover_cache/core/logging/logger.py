#!/usr/bin/env python3
"""
Structured Logging for the Failover Cache (structlog)

Every cache decision point logs one event carrying a ``stage`` identifier
(see ``Stage``), the endpoint involved and the error, if any. Events from one
caller request are tied together by a request id kept in a ContextVar, so
concurrent requests on the same event loop never mix their ids.

Processor chain:
    merge_contextvars -> add_request_id -> add_timestamp -> add_log_level
    -> add_log_level_name -> mask_cache_keys -> ... -> JSON / console renderer

Cache keys are captcha session identifiers; ``mask_cache_keys`` keeps only
their first characters so logs can be correlated without exposing them.

Author: System Architect
Date: 2026-10-12
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from failover_cache.core.config.settings import get_settings

# Request ID for the current task
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

# Characters of a cache key kept in log output
CACHE_KEY_VISIBLE_CHARS = 8


def add_request_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    STAGE-L.1: attach the caller's request id, when one is set.
    """
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """STAGE-L.2: ISO-8601 UTC timestamp with a trailing Z."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """STAGE-L.3: upper-case level name (structlog emits lower case)."""
    level = event_dict.get("level")
    if isinstance(level, str):
        event_dict["level"] = level.upper()
    return event_dict


def mask_cache_keys(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    STAGE-L.4: shorten ``cache_key`` fields.

    ``memc_fallback/0123456789abcdef`` is logged as ``memc_fallback/01234567...``.
    The namespace prefix (everything up to the last ``/`` or ``:``) is kept.
    """
    key = event_dict.get("cache_key")
    if not isinstance(key, str):
        return event_dict

    cut = max(key.rfind("/"), key.rfind(":")) + 1
    prefix, secret = key[:cut], key[cut:]
    if len(secret) > CACHE_KEY_VISIBLE_CHARS:
        event_dict["cache_key"] = f"{prefix}{secret[:CACHE_KEY_VISIBLE_CHARS]}..."
    return event_dict


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure structlog on top of stdlib logging.

    Call once at process start. Arguments left as None are read from
    ``settings.logging``.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: 'json' or 'console'
    """
    logging_settings = get_settings().logging
    log_level = (log_level or logging_settings.LOG_LEVEL).upper()
    log_format = log_format or logging_settings.LOG_FORMAT

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            mask_cache_keys,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(log_format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Usage:
        logger = get_logger(__name__)
        logger.warning("Failed to read primary backoff marker", stage=Stage.BACKOFF_CHECK.value)
    """
    return structlog.get_logger(name)


def set_request_id(request_id: str) -> None:
    """Tag every cache log event of the current request with ``request_id``."""
    request_id_ctx.set(request_id)


def get_request_id() -> str | None:
    return request_id_ctx.get()


def clear_request_id() -> None:
    request_id_ctx.set(None)


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage, message: str, level: str = "info", **kwargs
) -> None:
    """
    Log ``message`` at ``level`` with a ``stage`` field.

    ``stage`` may be a ``Stage`` member or a plain string.

    Usage:
        log_stage(logger, Stage.FALLBACK_WRITE, "Fallback entry written", cache_key=key, ttl=120)
    """
    stage_value = getattr(stage, "value", stage)
    getattr(logger, level.lower())(message, stage=stage_value, **kwargs)
