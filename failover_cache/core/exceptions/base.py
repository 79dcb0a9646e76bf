"""
Base Exception Class

Root of the failover cache exception tree. Themed subclasses live in
sibling modules (``cache.py``).

Collaborators raise these; the tiered executor turns them into
``CacheFault`` values, so callers of the public cache API never see them.

Author: System Architect
Date: 2026-10-12
"""

from typing import Any

from failover_cache.core.logging.logger import get_request_id


class FailoverCacheError(Exception):
    """
    Base exception for all failover cache errors.

    Attributes:
        message: Human-readable error message
        request_id: Request the error happened in. Defaults to the request
            id set with ``set_request_id`` for the current task.
        details: Structured context (host, port, command, original error)

    Example:
        raise CacheConnectionError(
            "memcached get timed out after 20ms",
            details={"host": "10.0.0.5", "port": 11211, "command": "get"},
        )
    """

    def __init__(
        self, message: str, request_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.request_id = request_id if request_id is not None else get_request_id()
        self.details = dict(details or {})
        super().__init__(message)

    @property
    def endpoint(self) -> str | None:
        """``host:port`` the error refers to, when known."""
        host = self.details.get("host")
        if host is None:
            return None
        port = self.details.get("port")
        return f"{host}:{port}" if port is not None else str(host)

    def to_dict(self) -> dict[str, Any]:
        """Log/JSON friendly representation."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def with_suggestion(self, suggestion: str) -> "FailoverCacheError":
        """Attach an operator hint; returns self for chaining."""
        self.details["suggestion"] = suggestion
        return self

    def with_context(self, **context) -> "FailoverCacheError":
        """Merge extra fields into ``details``; returns self for chaining."""
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        parts = [f"message='{self.message}'"]
        if self.request_id:
            parts.append(f"request_id='{self.request_id}'")
        if self.details:
            parts.append(f"details={self.details}")
        return f"{type(self).__name__}({', '.join(parts)})"

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        message: str | None = None,
        request_id: str | None = None,
        **details,
    ) -> "FailoverCacheError":
        """
        Wrap a socket or aiomcache exception, keeping its type and text.

        Example:
            except OSError as e:
                raise CacheConnectionError.from_exception(e, host="10.0.0.5", port=11211) from e
        """
        original = str(exc)
        return cls(
            message or original or type(exc).__name__,
            request_id=request_id,
            details={"original_error": type(exc).__name__, "original_message": original, **details},
        )
