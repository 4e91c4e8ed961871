"""
models.py — Alert records produced by the generator.

═══════════════════════════════════════════════════════════════════════════
SEVERITY MAPPING
═══════════════════════════════════════════════════════════════════════════

    Hazard level    Alert severity    Id tier
    ────────────    ──────────────    ───────
    HIGH            HIGH              high
    MEDIUM          MEDIUM            med
    LOW (≥ floor)   INFO              info
    LOW (< floor)   —                 —

Alerts are generated per scoring cycle and never persisted. Ids are stable
across cycles for the same site / hazard / tier, and unique within a cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict

from damwatch.risk.models import HazardKind

HAZARD_ID_PREFIX: Dict[HazardKind, str] = {
    HazardKind.FLOOD: "flood",
    HazardKind.LANDSLIDE: "ls",
}


class AlertSeverity(IntEnum):
    """Integer ordering enables ``>=`` filtering."""
    INFO = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def tier(self) -> str:
        return {AlertSeverity.HIGH: "high", AlertSeverity.MEDIUM: "med", AlertSeverity.INFO: "info"}[self]

    @classmethod
    def parse(cls, value: str) -> "AlertSeverity":
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown alert severity: {value!r}") from None


@dataclass
class Alert:
    id: str
    hazard: HazardKind
    severity: AlertSeverity
    location: str
    score: int
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    site_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.hazard.value.upper(),
            "severity": self.severity.name,
            "location": self.location,
            "site_id": self.site_id,
            "score": self.score,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
