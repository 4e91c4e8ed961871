"""
generator.py — Turn the two hazard scores for a site into alerts.

Rules, evaluated independently per hazard:

    level HIGH                   → one HIGH alert citing every factor
    level MEDIUM                 → one MEDIUM alert citing every factor
    level LOW and score ≥ floor  → one INFO alert citing the top two factors

Informational floors: flood 8, landslide 10.
At most one alert per hazard per call, so HIGH and MEDIUM never coexist for
the same hazard.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from damwatch.risk.models import HazardKind, RiskLevel, RiskScore
from .models import HAZARD_ID_PREFIX, Alert, AlertSeverity

INFO_FLOOR: Dict[HazardKind, int] = {
    HazardKind.FLOOD: 8,
    HazardKind.LANDSLIDE: 10,
}

INFO_FACTOR_COUNT = 2

_MESSAGES = {
    (HazardKind.FLOOD, AlertSeverity.HIGH): "HIGH FLOOD RISK at {name}. {factors}",
    (HazardKind.FLOOD, AlertSeverity.MEDIUM): "MODERATE FLOOD RISK at {name}. {factors}",
    (HazardKind.FLOOD, AlertSeverity.INFO): "Flood conditions normal at {name}. {factors}",
    (HazardKind.LANDSLIDE, AlertSeverity.HIGH): "HIGH LANDSLIDE RISK near {name}. {factors}",
    (HazardKind.LANDSLIDE, AlertSeverity.MEDIUM): "MODERATE LANDSLIDE RISK near {name}. {factors}",
    (HazardKind.LANDSLIDE, AlertSeverity.INFO): "Landslide conditions monitored near {name}. {factors}",
}

_NON_SLUG = re.compile(r"[^a-z0-9]")


def slugify(name: str) -> str:
    """Lower-case; every non-alphanumeric character becomes '-'."""
    return _NON_SLUG.sub("-", name.lower())


def alert_id(hazard: HazardKind, severity: AlertSeverity, site_name: str) -> str:
    return f"{HAZARD_ID_PREFIX[hazard]}-{severity.tier}-{slugify(site_name)}"


def _severity_for(risk: RiskScore) -> Optional[AlertSeverity]:
    if risk.level == RiskLevel.HIGH:
        return AlertSeverity.HIGH
    if risk.level == RiskLevel.MEDIUM:
        return AlertSeverity.MEDIUM
    if risk.score >= INFO_FLOOR[risk.hazard]:
        return AlertSeverity.INFO
    return None


def _alert_for(
    risk: RiskScore, site_name: str, timestamp: datetime, site_id: str,
) -> Optional[Alert]:
    severity = _severity_for(risk)
    if severity is None:
        return None
    factors = risk.factors if severity != AlertSeverity.INFO else risk.factors[:INFO_FACTOR_COUNT]
    return Alert(
        id=alert_id(risk.hazard, severity, site_name),
        hazard=risk.hazard,
        severity=severity,
        location=site_name,
        score=risk.score,
        message=_MESSAGES[(risk.hazard, severity)].format(name=site_name, factors="; ".join(factors)),
        timestamp=timestamp,
        site_id=site_id,
    )


def generate_alerts(
    flood: RiskScore,
    landslide: RiskScore,
    site_name: str,
    *,
    site_id: str = "",
    now: Optional[datetime] = None,
) -> List[Alert]:
    timestamp = now or datetime.now(timezone.utc)
    alerts: List[Alert] = []
    for risk in (flood, landslide):
        alert = _alert_for(risk, site_name, timestamp, site_id)
        if alert is not None:
            alerts.append(alert)
    return alerts
