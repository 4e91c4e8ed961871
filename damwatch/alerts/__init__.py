"""
alerts — Severity-tagged alerts derived from hazard scores.

Sub-modules:
    models     — Alert record and severity enum
    generator  — Score → alert rules and stable alert ids
"""

from .generator import alert_id, generate_alerts, slugify
from .models import Alert, AlertSeverity

__all__ = ["Alert", "AlertSeverity", "alert_id", "generate_alerts", "slugify"]
