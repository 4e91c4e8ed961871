"""
Centralised error handling — exception hierarchy.

Provides:
    • Domain-specific exception classes with a machine-readable error code
    • A consistent dict form for callers that surface errors (CLI, controllers)

Only ConfigurationError is meant to reach the calling layer. Upstream
failures are converted to error-tagged SourceResults at the client boundary,
and per-site failures are absorbed by the batch coordinator.

Usage:
    from damwatch.core.errors import (
        HazardEngineError,
        SourceUnavailableError,
        SiteProcessingError,
        ConfigurationError,
        SiteNotFoundError,
    )

    raise SiteNotFoundError("tehri")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class HazardEngineError(Exception):
    """Base exception for all engine errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "code": self.error_code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


class SourceUnavailableError(HazardEngineError):
    """An upstream source failed (network, timeout, HTTP status, payload)."""

    def __init__(self, source: str, message: str = "", **details: Any):
        super().__init__(
            message=f"Source '{source}' unavailable: {message}",
            error_code="SOURCE_UNAVAILABLE",
            details={"source": source, **details},
        )
        self.source = source
        self.reason = message


class SiteProcessingError(HazardEngineError):
    """Unexpected failure while building a snapshot or score for one site."""

    def __init__(self, site_id: str, message: str = "", **details: Any):
        super().__init__(
            message=f"Processing failed for site '{site_id}': {message}",
            error_code="SITE_PROCESSING_FAILED",
            details={"site_id": site_id, **details},
        )
        self.site_id = site_id
        self.reason = message


class ConfigurationError(HazardEngineError):
    """Invalid or missing identifiers at the engine boundary."""

    def __init__(self, message: str, *, field: Optional[str] = None, **details: Any):
        d = {**details}
        if field:
            d["field"] = field
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=d,
        )


class SiteNotFoundError(ConfigurationError):
    """Requested site id is not in the supplied registry."""

    def __init__(self, site_id: str):
        super().__init__(f"Site '{site_id}' not found", field="site_id", site_id=site_id)
        self.error_code = "SITE_NOT_FOUND"
        self.site_id = site_id
