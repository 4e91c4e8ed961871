"""
scoring.py — Deterministic flood and landslide risk scoring.

Pure functions: no I/O, no randomness, no clock reads except the
``computed_at`` stamp on the returned RiskScore.

═══════════════════════════════════════════════════════════════════════════
FLOOD RISK (0–100)
═══════════════════════════════════════════════════════════════════════════

    Factor                          Thresholds (strictly greater)   Points
    ─────────────────────────────   ─────────────────────────────   ──────────────
    Reservoir level (%)             85 / 75 / 60 / 45               25 / 18 / 12 / 6
    Forecast rainfall max (mm)      100 / 60 / 35 / 15              25 / 20 / 14 / 7
    Historical 7-day total (mm)     200 / 120 / 60 / 25             20 / 15 / 10 / 5
    River discharge (m³/s)          5000 / 2000 / 500 / 100         20 / 15 / 10 / 5
    Rainfall trend                  increasing / stable             10 / 3

═══════════════════════════════════════════════════════════════════════════
LANDSLIDE RISK (0–100)
═══════════════════════════════════════════════════════════════════════════

    Factor                          Thresholds (strictly greater)   Points
    ─────────────────────────────   ─────────────────────────────   ──────────────
    Surface soil moisture (m³/m³)   0.45 / 0.35 / 0.25 / 0.15       25 / 18 / 12 / 5
    Rainfall accumulation (mm)      200 / 120 / 60 / 25             25 / 18 / 12 / 5
    Seismic (max magnitude)         5.5 / 4.5 / 3.5 / any event     25 / 18 / 12 / 5
    Region susceptibility           HIGH / MEDIUM zone              15 / 8
    Deep soil moisture (m³/m³)      0.40 / 0.30 / 0.20              10 / 6 / 3

═══════════════════════════════════════════════════════════════════════════
LEVELS
═══════════════════════════════════════════════════════════════════════════

    score ≥ 70  → HIGH
    score ≥ 40  → MEDIUM
    otherwise   → LOW

Each band that fires appends one human-readable factor, in the order the
checks are listed above. Missing inputs (None) score as 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from .models import HazardKind, RiskLevel, RiskScore, SiteRisk, TrendLabel

if TYPE_CHECKING:
    from damwatch.ingestion.snapshot import EnvironmentalSnapshot


# ═══════════════════════════════════════════════════════════════════════════
# Constants
# ═══════════════════════════════════════════════════════════════════════════

MAX_SCORE = 100
HIGH_THRESHOLD = 70
MEDIUM_THRESHOLD = 40

# (threshold, points, factor template) — first band whose threshold is
# exceeded wins.
Band = Tuple[float, int, str]

RESERVOIR_BANDS: Sequence[Band] = (
    (85, 25, "Critical reservoir level ({:.1f}%)"),
    (75, 18, "High reservoir level ({:.1f}%)"),
    (60, 12, "Elevated reservoir level ({:.1f}%)"),
    (45, 6, "Moderate reservoir level ({:.1f}%)"),
)

FORECAST_BANDS: Sequence[Band] = (
    (100, 25, "Extreme rainfall forecast ({:.1f} mm)"),
    (60, 20, "Very heavy rainfall forecast ({:.1f} mm)"),
    (35, 14, "Heavy rainfall forecast ({:.1f} mm)"),
    (15, 7, "Moderate rainfall forecast ({:.1f} mm)"),
)

HISTORICAL_BANDS: Sequence[Band] = (
    (200, 20, "Extreme cumulative rain ({:.1f} mm / 7d)"),
    (120, 15, "Very high cumulative rain ({:.1f} mm / 7d)"),
    (60, 10, "High cumulative rain ({:.1f} mm / 7d)"),
    (25, 5, "Moderate cumulative rain ({:.1f} mm / 7d)"),
)

DISCHARGE_BANDS: Sequence[Band] = (
    (5000, 20, "Very high river discharge ({:.0f} m³/s)"),
    (2000, 15, "High river discharge ({:.0f} m³/s)"),
    (500, 10, "Elevated river discharge ({:.0f} m³/s)"),
    (100, 5, "Moderate river discharge ({:.0f} m³/s)"),
)

TREND_POINTS: Dict[TrendLabel, int] = {
    TrendLabel.INCREASING: 10,
    TrendLabel.STABLE: 3,
}

# Soil bands are formatted as percent volume.
SURFACE_SOIL_BANDS: Sequence[Band] = (
    (0.45, 25, "Saturated soil ({:.1f}% vol.)"),
    (0.35, 18, "Very wet soil ({:.1f}% vol.)"),
    (0.25, 12, "Wet soil ({:.1f}% vol.)"),
    (0.15, 5, "Moderate soil moisture ({:.1f}% vol.)"),
)

ACCUMULATION_BANDS: Sequence[Band] = (
    (200, 25, "Extreme rain accumulation ({:.1f} mm)"),
    (120, 18, "Very high rain accumulation ({:.1f} mm)"),
    (60, 12, "High rain accumulation ({:.1f} mm)"),
    (25, 5, "Moderate rain accumulation ({:.1f} mm)"),
)

DEEP_SOIL_BANDS: Sequence[Band] = (
    (0.40, 10, "Deep soil saturated ({:.1f}% vol.)"),
    (0.30, 6, "Deep soil wet ({:.1f}% vol.)"),
    (0.20, 3, "Deep soil moderately moist ({:.1f}% vol.)"),
)

# (magnitude threshold, points, label); the last tier fires on any event.
SEISMIC_BANDS: Sequence[Tuple[float, int, str]] = (
    (5.5, 25, "Strong earthquake"),
    (4.5, 18, "Moderate-strong quake"),
    (3.5, 12, "Moderate quake"),
)
SEISMIC_ANY_EVENT = (5, "Minor seismic activity")

REGION_POINTS: Dict[RiskLevel, Tuple[int, str]] = {
    RiskLevel.HIGH: (15, "High landslide-prone zone ({})"),
    RiskLevel.MEDIUM: (8, "Moderate landslide-prone zone ({})"),
}


# ═══════════════════════════════════════════════════════════════════════════
# Region susceptibility
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LandslideZone:
    name: str
    level: RiskLevel
    states: Tuple[str, ...]


LANDSLIDE_PRONE_ZONES: Tuple[LandslideZone, ...] = (
    LandslideZone(
        "Western Ghats", RiskLevel.HIGH,
        ("Kerala", "Tamil Nadu", "Karnataka", "Maharashtra", "Goa"),
    ),
    LandslideZone(
        "Himalayas", RiskLevel.HIGH,
        ("Himachal Pradesh", "Uttarakhand", "Jammu & Kashmir"),
    ),
    LandslideZone(
        "Northeast Hills", RiskLevel.MEDIUM,
        ("Assam", "Meghalaya", "Mizoram", "Nagaland", "Manipur",
         "Arunachal Pradesh", "Tripura", "Sikkim"),
    ),
    LandslideZone(
        "Eastern Ghats", RiskLevel.MEDIUM,
        ("Odisha", "Andhra Pradesh", "Telangana"),
    ),
    LandslideZone(
        "Vindhya-Satpura", RiskLevel.LOW,
        ("Madhya Pradesh", "Chhattisgarh", "Jharkhand"),
    ),
)


def region_susceptibility(region: Optional[str]) -> RiskLevel:
    """
    Zone tier for an administrative region; LOW when unmapped.

    A tier name (``RiskLevel.HIGH`` or plain ``"HIGH"``) is returned as that
    tier rather than looked up as a region.
    """
    if region in RiskLevel.__members__:
        return RiskLevel(region)
    for zone in LANDSLIDE_PRONE_ZONES:
        if region in zone.states:
            return zone.level
    return RiskLevel.LOW


# ═══════════════════════════════════════════════════════════════════════════
# Scoring
# ═══════════════════════════════════════════════════════════════════════════

def classify_level(score: int) -> RiskLevel:
    if score >= HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if score >= MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _band(value: float, bands: Sequence[Band], scale: float = 1.0) -> Tuple[int, Optional[str]]:
    for threshold, points, template in bands:
        if value > threshold:
            return points, template.format(value * scale)
    return 0, None


def _finish(hazard: HazardKind, score: int, factors: List[str]) -> RiskScore:
    score = min(score, MAX_SCORE)
    return RiskScore(hazard=hazard, score=score, level=classify_level(score), factors=factors)


def flood_risk(
    reservoir_level: Optional[float],
    forecast_rainfall_max: Optional[float],
    historical_rainfall_sum: Optional[float],
    river_discharge_latest: Optional[float],
    rainfall_trend: Optional[TrendLabel],
) -> RiskScore:
    score = 0
    factors: List[str] = []

    for value, bands in (
        (reservoir_level, RESERVOIR_BANDS),
        (forecast_rainfall_max, FORECAST_BANDS),
        (historical_rainfall_sum, HISTORICAL_BANDS),
        (river_discharge_latest, DISCHARGE_BANDS),
    ):
        points, factor = _band(value or 0.0, bands)
        score += points
        if factor:
            factors.append(factor)

    if rainfall_trend is not None:
        trend = TrendLabel(rainfall_trend)
        if trend in TREND_POINTS:
            score += TREND_POINTS[trend]
            factors.append(f"Rainfall trend: {trend.value}")

    return _finish(HazardKind.FLOOD, score, factors)


def landslide_risk(
    surface_soil_moisture: Optional[float],
    rainfall_accumulation: Optional[float],
    max_earthquake_magnitude: Optional[float],
    earthquake_count: Optional[int],
    region: Optional[str],
    deep_soil_moisture: Optional[float],
) -> RiskScore:
    """
    ``region`` is an administrative region name looked up in
    LANDSLIDE_PRONE_ZONES, or a tier (``RiskLevel.HIGH`` or ``"HIGH"``) to use directly.
    """
    score = 0
    factors: List[str] = []

    points, factor = _band(surface_soil_moisture or 0.0, SURFACE_SOIL_BANDS, scale=100)
    score += points
    if factor:
        factors.append(factor)

    points, factor = _band(rainfall_accumulation or 0.0, ACCUMULATION_BANDS)
    score += points
    if factor:
        factors.append(factor)

    magnitude = max_earthquake_magnitude or 0.0
    count = earthquake_count or 0
    seismic = next(
        ((pts, label) for threshold, pts, label in SEISMIC_BANDS if magnitude > threshold),
        SEISMIC_ANY_EVENT if count > 0 else None,
    )
    if seismic is not None:
        score += seismic[0]
        factors.append(f"{seismic[1]} (M{magnitude:.1f}, {count} events)")

    tier = region_susceptibility(region)
    if tier in REGION_POINTS:
        pts, template = REGION_POINTS[tier]
        score += pts
        factors.append(template.format(region.value if isinstance(region, RiskLevel) else region))

    points, factor = _band(deep_soil_moisture or 0.0, DEEP_SOIL_BANDS, scale=100)
    score += points
    if factor:
        factors.append(factor)

    return _finish(HazardKind.LANDSLIDE, score, factors)


def compute_risk(snapshot: "EnvironmentalSnapshot") -> SiteRisk:
    """Both hazard scores from a snapshot; degraded fields score as 0."""
    flood = flood_risk(
        reservoir_level=snapshot.reservoir.level,
        forecast_rainfall_max=snapshot.forecast_rainfall_max,
        historical_rainfall_sum=snapshot.historical_rainfall_sum,
        river_discharge_latest=snapshot.river_discharge_latest,
        rainfall_trend=snapshot.reservoir.trend,
    )
    landslide = landslide_risk(
        surface_soil_moisture=snapshot.surface_soil_moisture,
        rainfall_accumulation=snapshot.historical_rainfall_sum,
        max_earthquake_magnitude=snapshot.max_earthquake_magnitude,
        earthquake_count=snapshot.earthquake_count,
        region=snapshot.site.state,
        deep_soil_moisture=snapshot.deep_soil_moisture,
    )
    return SiteRisk(flood=flood, landslide=landslide)
