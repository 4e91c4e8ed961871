"""
Risk value types shared by the scorer, reservoir estimator and predictor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List


class HazardKind(str, Enum):
    FLOOD = "flood"
    LANDSLIDE = "landslide"


class RiskLevel(str, Enum):
    """Discrete hazard severity."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class TrendLabel(str, Enum):
    """Direction of recent rainfall."""
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RiskScore:
    """
    One hazard score with its explanation.

    ``factors`` keeps the order in which the scoring checks fired.
    ``computed_at`` is the only field that is not a pure function of the
    inputs.
    """
    hazard: HazardKind
    score: int
    level: RiskLevel
    factors: List[str] = field(default_factory=list)
    computed_at: datetime = field(default_factory=_now)

    def same_result(self, other: "RiskScore") -> bool:
        """Equality ignoring the computation timestamp."""
        return (
            self.hazard == other.hazard
            and self.score == other.score
            and self.level == other.level
            and self.factors == other.factors
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hazard": self.hazard.value,
            "score": self.score,
            "level": self.level.value,
            "factors": list(self.factors),
            "computed_at": self.computed_at.isoformat(),
        }


@dataclass(frozen=True)
class Prediction:
    current: int
    predicted_24h: int
    trend: TrendLabel
    confidence: int

    @property
    def change(self) -> int:
        return self.predicted_24h - self.current

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "predicted_24h": self.predicted_24h,
            "trend": self.trend.value,
            "change": self.change,
            "confidence": self.confidence,
        }


@dataclass
class SiteRisk:
    """Both hazard scores for one snapshot."""
    flood: RiskScore
    landslide: RiskScore

    @property
    def overall(self) -> int:
        return max(self.flood.score, self.landslide.score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flood_risk": self.flood.to_dict(),
            "landslide_risk": self.landslide.to_dict(),
            "overall_risk": self.overall,
        }
