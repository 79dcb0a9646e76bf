"""
Unit Tests for Logging Module

Tests logger configuration, request context, and logging utilities.
"""

from unittest.mock import MagicMock, patch

import pytest

from failover_cache.core.config.constants import Stage
from failover_cache.core.logging.logger import (
    add_log_level_name,
    add_request_id,
    add_timestamp,
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    mask_cache_keys,
    set_request_id,
    setup_logging,
)


@pytest.mark.unit
class TestLoggerCreation:
    """Test logger creation and configuration."""

    def test_get_logger_returns_logger_instance(self):
        logger = get_logger(__name__)
        assert logger is not None
        assert hasattr(logger, "info")

    def test_setup_logging_configures_structlog(self):
        with patch("failover_cache.core.logging.logger.structlog.configure") as mock_configure:
            setup_logging(log_level="DEBUG", log_format="console")

        mock_configure.assert_called_once()
        processors = mock_configure.call_args.kwargs["processors"]
        assert add_request_id in processors
        assert add_timestamp in processors
        assert mask_cache_keys in processors

    def test_setup_logging_reads_settings_when_not_given(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")

        with patch("failover_cache.core.logging.logger.structlog.configure") as mock_configure:
            setup_logging()

        renderer = mock_configure.call_args.kwargs["processors"][-1]
        assert renderer.__class__.__name__ == "JSONRenderer"


@pytest.mark.unit
class TestRequestContext:
    """Test request ID context management."""

    def test_set_and_get_request_id(self):
        set_request_id("req-123")
        try:
            assert get_request_id() == "req-123"
        finally:
            clear_request_id()

    def test_clear_request_id(self):
        set_request_id("req-123")
        clear_request_id()

        assert get_request_id() is None

    def test_add_request_id_processor(self):
        set_request_id("req-456")
        try:
            event = add_request_id(None, "info", {"event": "x"})
        finally:
            clear_request_id()

        assert event["request_id"] == "req-456"

    def test_add_request_id_skips_when_unset(self):
        event = add_request_id(None, "info", {"event": "x"})

        assert "request_id" not in event


@pytest.mark.unit
class TestProcessors:
    def test_timestamp_is_utc_iso(self):
        event = add_timestamp(None, "info", {})

        assert event["timestamp"].endswith("Z")
        assert "T" in event["timestamp"]

    def test_level_is_upper_cased(self):
        assert add_log_level_name(None, "info", {"level": "warning"})["level"] == "WARNING"


@pytest.mark.unit
class TestLogStage:
    """Test log_stage helper."""

    def test_log_stage_uses_enum_value(self):
        logger = MagicMock()

        log_stage(logger, Stage.FALLBACK_WRITE, "written", cache_key="k")

        logger.info.assert_called_once_with("written", stage=Stage.FALLBACK_WRITE.value, cache_key="k")

    def test_log_stage_respects_level(self):
        logger = MagicMock()

        log_stage(logger, "MC.X", "boom", level="ERROR")

        logger.error.assert_called_once_with("boom", stage="MC.X")


@pytest.mark.unit
class TestMaskCacheKeys:
    def test_long_key_is_shortened(self):
        event = mask_cache_keys(None, "info", {"cache_key": "memc_fallback/0123456789abcdef"})

        assert event["cache_key"] == "memc_fallback/01234567..."

    def test_remote_prefix_is_kept(self):
        event = mask_cache_keys(None, "info", {"cache_key": "crowdsec:captcha:0123456789abcdef"})

        assert event["cache_key"] == "crowdsec:captcha:01234567..."

    def test_short_key_untouched(self):
        event = mask_cache_keys(None, "info", {"cache_key": "memc_fallback/abc"})

        assert event["cache_key"] == "memc_fallback/abc"

    def test_events_without_key_untouched(self):
        assert mask_cache_keys(None, "info", {"event": "x"}) == {"event": "x"}
