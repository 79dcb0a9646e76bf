"""
Unit Tests for Core Exceptions

Tests for exception handling.
"""

import pytest

from failover_cache.core.exceptions import (
    CacheConnectionError,
    CacheError,
    CacheOperationError,
    FailoverCacheError,
    SharedStateError,
)
from failover_cache.core.logging.logger import clear_request_id, set_request_id


@pytest.mark.unit
class TestFailoverCacheError:
    """Test the base exception class."""

    def test_base_error_creation(self):
        error = FailoverCacheError("Test message")
        assert str(error) == "Test message"

    def test_base_error_default_values(self):
        error = FailoverCacheError("Test")
        assert error.details == {}
        assert error.request_id is None

    def test_details_are_copied(self):
        details = {"host": "10.0.0.5"}
        error = FailoverCacheError("Test", details=details)

        error.with_context(port=11211)

        assert details == {"host": "10.0.0.5"}
        assert error.details == {"host": "10.0.0.5", "port": 11211}

    def test_to_dict(self):
        error = CacheConnectionError("refused", request_id="req-1", details={"port": 11211})

        assert error.to_dict() == {
            "error_type": "CacheConnectionError",
            "message": "refused",
            "request_id": "req-1",
            "details": {"port": 11211},
        }

    def test_with_suggestion_is_chainable(self):
        error = SharedStateError("full").with_suggestion("raise SHARED_STATE_MAX_SIZE")

        assert isinstance(error, SharedStateError)
        assert error.details["suggestion"] == "raise SHARED_STATE_MAX_SIZE"

    def test_repr_includes_context(self):
        error = CacheOperationError("rejected", request_id="req-2", details={"command": "set"})

        text = repr(error)

        assert text.startswith("CacheOperationError(message='rejected'")
        assert "request_id='req-2'" in text
        assert "'command': 'set'" in text


@pytest.mark.unit
class TestFromException:
    """Test wrapping third-party exceptions."""

    def test_wraps_original_error(self):
        original = ConnectionRefusedError("Connection refused")

        error = CacheConnectionError.from_exception(original, host="10.0.0.5", port=11211)

        assert isinstance(error, CacheConnectionError)
        assert error.message == "Connection refused"
        assert error.details["original_error"] == "ConnectionRefusedError"
        assert error.details["host"] == "10.0.0.5"

    def test_empty_message_falls_back_to_class_name(self):
        error = CacheConnectionError.from_exception(EOFError())

        assert error.message == "EOFError"

    def test_explicit_message_wins(self):
        error = CacheOperationError.from_exception(ValueError("bad"), message="memcached set rejected")

        assert error.message == "memcached set rejected"
        assert error.details["original_message"] == "bad"


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize("cls", [CacheConnectionError, CacheOperationError, SharedStateError])
    def test_cache_errors_share_base(self, cls):
        error = cls("x")

        assert isinstance(error, CacheError)
        assert isinstance(error, FailoverCacheError)

    def test_connection_and_operation_errors_are_distinct(self):
        with pytest.raises(CacheConnectionError):
            try:
                raise CacheConnectionError("down")
            except CacheOperationError:
                pytest.fail("connection error caught as operation error")


@pytest.mark.unit
class TestRequestCorrelation:
    def test_request_id_taken_from_context(self):
        set_request_id("req-ctx")
        try:
            error = CacheConnectionError("down")
        finally:
            clear_request_id()

        assert error.request_id == "req-ctx"

    def test_explicit_request_id_wins(self):
        set_request_id("req-ctx")
        try:
            error = CacheConnectionError("down", request_id="req-explicit")
        finally:
            clear_request_id()

        assert error.request_id == "req-explicit"


@pytest.mark.unit
class TestEndpoint:
    def test_endpoint_from_details(self):
        error = CacheConnectionError("down", details={"host": "10.0.0.5", "port": 11211})

        assert error.endpoint == "10.0.0.5:11211"

    def test_endpoint_unknown(self):
        assert CacheOperationError("rejected").endpoint is None
