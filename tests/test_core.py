"""
Tests for the cross-cutting core: settings, errors and log formatting.
"""

from __future__ import annotations

import io
import json
import logging

import pytest
from pydantic import ValidationError

from damwatch.core.config import Settings
from damwatch.core.errors import (
    ConfigurationError,
    HazardEngineError,
    SiteProcessingError,
    SourceUnavailableError,
)
from damwatch.core.logging_config import (
    JSONFormatter,
    PrettyFormatter,
    get_site_context,
    reset_site_context,
    set_site_context,
    setup_logging,
)


def make_record(msg="hello", **extra):
    record = logging.LogRecord("damwatch.test", logging.WARNING, __file__, 10, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ═══════════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════════

class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.CACHE_TTL_SECONDS == 600
        assert s.BATCH_SIZE == 5
        assert s.SOURCE_TIMEOUT_SECONDS == 15.0
        assert s.SATELLITE_TIMEOUT_SECONDS == 20.0
        assert s.SOURCE_TIMEZONE == "Asia/Kolkata"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("CACHE_TTL_SECONDS", "120")
        monkeypatch.setenv("ENVIRONMENT", "production")
        s = Settings()
        assert s.CACHE_TTL_SECONDS == 120
        assert s.is_production

    def test_rejects_zero_batch_size(self):
        with pytest.raises(ValidationError):
            Settings(BATCH_SIZE=0)


# ═══════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════

class TestErrors:
    def test_hierarchy(self):
        for exc in (
            SourceUnavailableError("forecast", "HTTP 500"),
            SiteProcessingError("tehri", "boom"),
            ConfigurationError("bad"),
        ):
            assert isinstance(exc, HazardEngineError)

    def test_source_unavailable(self):
        exc = SourceUnavailableError("seismic", "timed out", status="timeout")
        assert exc.reason == "timed out"
        assert exc.to_dict() == {
            "code": "SOURCE_UNAVAILABLE",
            "message": "Source 'seismic' unavailable: timed out",
            "details": {"source": "seismic", "status": "timeout"},
        }

    def test_configuration_error_field(self):
        assert ConfigurationError("bad", field="latitude").details == {"field": "latitude"}


# ═══════════════════════════════════════════════════════════════════════════
# Logging
# ═══════════════════════════════════════════════════════════════════════════

class TestLogging:
    def test_json_formatter_promotes_extras(self):
        line = JSONFormatter().format(make_record(source="forecast", duration_ms=12))
        body = json.loads(line)
        assert body["level"] == "WARNING"
        assert body["source"] == "forecast"
        assert body["duration_ms"] == 12

    def test_json_formatter_includes_site_context(self):
        token = set_site_context(site_id="tehri")
        try:
            body = json.loads(JSONFormatter().format(make_record()))
        finally:
            reset_site_context(token)
        assert body["context"] == {"site_id": "tehri"}
        assert get_site_context() == {}

    def test_pretty_formatter_shows_site(self):
        token = set_site_context(site_id="idukki")
        try:
            line = PrettyFormatter().format(make_record("fetch failed"))
        finally:
            reset_site_context(token)
        assert "[idukki]" in line
        assert "fetch failed" in line

    def test_setup_logging_writes_to_given_stream(self, root_logging):
        stream = io.StringIO()
        setup_logging(Settings(ENVIRONMENT="production", LOG_LEVEL="INFO"), stream=stream)
        logging.getLogger("damwatch.test").info("chunk done", extra={"batch_index": 1})
        body = json.loads(stream.getvalue().splitlines()[-1])
        assert body["message"] == "chunk done"
        assert body["batch_index"] == 1
