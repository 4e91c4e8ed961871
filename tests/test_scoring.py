"""
Tests for deterministic flood / landslide scoring.

Covers:
    • Level thresholds (exact boundaries)
    • Each factor band and its explanation string
    • Factor ordering
    • Reference scenarios that saturate at 100
    • Determinism (repeat calls identical except timestamp)
    • Region susceptibility lookup
    • Missing inputs score as zero
"""

from __future__ import annotations

import pytest

from damwatch.risk.models import HazardKind, RiskLevel, TrendLabel
from damwatch.risk.scoring import (
    LANDSLIDE_PRONE_ZONES,
    classify_level,
    flood_risk,
    landslide_risk,
    region_susceptibility,
)


def flood(reservoir=0.0, forecast=0.0, historical=0.0, discharge=0.0, trend=TrendLabel.DECREASING):
    return flood_risk(reservoir, forecast, historical, discharge, trend)


def landslide(surface=0.0, rain=0.0, mag=0.0, count=0, region="Unmapped", deep=0.0):
    return landslide_risk(surface, rain, mag, count, region, deep)


# ═══════════════════════════════════════════════════════════════════════════
# Levels
# ═══════════════════════════════════════════════════════════════════════════

class TestClassifyLevel:
    @pytest.mark.parametrize("score,level", [
        (100, RiskLevel.HIGH),
        (70, RiskLevel.HIGH),
        (69, RiskLevel.MEDIUM),
        (40, RiskLevel.MEDIUM),
        (39, RiskLevel.LOW),
        (0, RiskLevel.LOW),
    ])
    def test_thresholds(self, score, level):
        assert classify_level(score) == level


# ═══════════════════════════════════════════════════════════════════════════
# Flood
# ═══════════════════════════════════════════════════════════════════════════

class TestFloodRisk:
    def test_reference_scenario_saturates(self):
        result = flood(90, 120, 250, 6000, TrendLabel.INCREASING)
        assert result.score == 100
        assert result.level == RiskLevel.HIGH
        assert result.hazard == HazardKind.FLOOD

    def test_reference_factors_in_check_order(self):
        result = flood(90, 120, 250, 6000, TrendLabel.INCREASING)
        assert result.factors == [
            "Critical reservoir level (90.0%)",
            "Extreme rainfall forecast (120.0 mm)",
            "Extreme cumulative rain (250.0 mm / 7d)",
            "Very high river discharge (6000 m³/s)",
            "Rainfall trend: increasing",
        ]

    @pytest.mark.parametrize("value,points", [(86, 25), (85, 18), (76, 18), (61, 12), (46, 6), (45, 0)])
    def test_reservoir_bands(self, value, points):
        assert flood(reservoir=value).score == points

    @pytest.mark.parametrize("value,points", [(101, 25), (61, 20), (36, 14), (16, 7), (15, 0)])
    def test_forecast_bands(self, value, points):
        assert flood(forecast=value).score == points

    @pytest.mark.parametrize("value,points", [(201, 20), (121, 15), (61, 10), (26, 5), (25, 0)])
    def test_historical_bands(self, value, points):
        assert flood(historical=value).score == points

    @pytest.mark.parametrize("value,points", [(5001, 20), (2001, 15), (501, 10), (101, 5), (100, 0)])
    def test_discharge_bands(self, value, points):
        assert flood(discharge=value).score == points

    @pytest.mark.parametrize("trend,points", [
        (TrendLabel.INCREASING, 10),
        (TrendLabel.STABLE, 3),
        (TrendLabel.DECREASING, 0),
    ])
    def test_trend(self, trend, points):
        assert flood(trend=trend).score == points

    def test_trend_accepts_plain_string(self):
        assert flood(trend="increasing").score == 10

    def test_missing_inputs_are_zero(self):
        result = flood_risk(None, None, None, None, None)
        assert result.score == 0
        assert result.factors == []
        assert result.level == RiskLevel.LOW

    def test_threshold_scenario_exactly_70(self):
        # 25 + 25 + 20 = 70
        result = flood(reservoir=90, forecast=120, historical=250)
        assert result.score == 70
        assert result.level == RiskLevel.HIGH

    def test_threshold_scenario_69(self):
        # 25 + 14 + 20 + 10
        result = flood(reservoir=90, forecast=36, historical=201, discharge=501)
        assert result.score == 69
        assert result.level == RiskLevel.MEDIUM

    def test_threshold_scenario_40_and_39(self):
        # 25 + 7 + 5 + 3
        forty = flood(90, 16, 26, 0, TrendLabel.STABLE)
        assert forty.score == 40
        assert forty.level == RiskLevel.MEDIUM
        # 6 + 20 + 10 + 3
        result = flood(50, 61, 61, 0, TrendLabel.STABLE)
        assert result.score == 39
        assert result.level == RiskLevel.LOW


# ═══════════════════════════════════════════════════════════════════════════
# Landslide
# ═══════════════════════════════════════════════════════════════════════════

class TestLandslideRisk:
    def test_reference_scenario_saturates(self):
        result = landslide(0.50, 250, 6.0, 2, RiskLevel.HIGH, 0.45)
        assert result.score == 100
        assert result.level == RiskLevel.HIGH
        assert result.hazard == HazardKind.LANDSLIDE

    def test_reference_scenario_with_region_name(self):
        result = landslide(0.50, 250, 6.0, 2, "Uttarakhand", 0.45)
        assert result.score == 100
        assert result.factors == [
            "Saturated soil (50.0% vol.)",
            "Extreme rain accumulation (250.0 mm)",
            "Strong earthquake (M6.0, 2 events)",
            "High landslide-prone zone (Uttarakhand)",
            "Deep soil saturated (45.0% vol.)",
        ]

    @pytest.mark.parametrize("value,points", [(0.46, 25), (0.36, 18), (0.26, 12), (0.16, 5), (0.15, 0)])
    def test_surface_soil_bands(self, value, points):
        assert landslide(surface=value).score == points

    @pytest.mark.parametrize("value,points", [(201, 25), (121, 18), (61, 12), (26, 5), (25, 0)])
    def test_accumulation_bands(self, value, points):
        assert landslide(rain=value).score == points

    @pytest.mark.parametrize("mag,count,points", [
        (5.6, 1, 25),
        (4.6, 1, 18),
        (3.6, 1, 12),
        (3.0, 4, 5),
        (0.0, 0, 0),
    ])
    def test_seismic_bands(self, mag, count, points):
        assert landslide(mag=mag, count=count).score == points

    def test_minor_seismic_factor_string(self):
        assert landslide(mag=2.7, count=3).factors == ["Minor seismic activity (M2.7, 3 events)"]

    @pytest.mark.parametrize("region,points", [
        ("Kerala", 15),
        ("Himachal Pradesh", 15),
        ("Assam", 8),
        ("Telangana", 8),
        ("Madhya Pradesh", 0),
        ("Rajasthan", 0),
        (RiskLevel.HIGH, 15),
        ("HIGH", 15),
        ("MEDIUM", 8),
        ("LOW", 0),
    ])
    def test_region_points(self, region, points):
        assert landslide(region=region).score == points

    def test_region_factor_string(self):
        assert landslide(region="Sikkim").factors == ["Moderate landslide-prone zone (Sikkim)"]

    @pytest.mark.parametrize("value,points", [(0.41, 10), (0.31, 6), (0.21, 3), (0.20, 0)])
    def test_deep_soil_bands(self, value, points):
        assert landslide(deep=value).score == points

    def test_missing_inputs_are_zero(self):
        result = landslide_risk(None, None, None, None, None, None)
        assert result.score == 0
        assert result.factors == []


# ═══════════════════════════════════════════════════════════════════════════
# Properties
# ═══════════════════════════════════════════════════════════════════════════

class TestDeterminism:
    def test_flood_repeatable(self):
        a = flood(77.3, 42.0, 130.0, 2500.0, TrendLabel.STABLE)
        b = flood(77.3, 42.0, 130.0, 2500.0, TrendLabel.STABLE)
        assert a.same_result(b)
        assert (a.score, a.level, a.factors) == (b.score, b.level, b.factors)

    def test_landslide_repeatable(self):
        a = landslide(0.33, 80.0, 4.0, 3, "Goa", 0.28)
        b = landslide(0.33, 80.0, 4.0, 3, "Goa", 0.28)
        assert a.same_result(b)

    @pytest.mark.parametrize("scale", [0.0, 1.0, 10.0, 1e6])
    def test_scores_bounded(self, scale):
        f = flood(90 * scale, 120 * scale, 250 * scale, 6000 * scale, TrendLabel.INCREASING)
        ls = landslide(0.5 * scale, 250 * scale, 6.0 * scale, int(2 * scale), "Kerala", 0.45 * scale)
        assert 0 <= f.score <= 100
        assert 0 <= ls.score <= 100


class TestRegionSusceptibility:
    def test_unmapped_defaults_low(self):
        assert region_susceptibility("Atlantis") == RiskLevel.LOW
        assert region_susceptibility(None) == RiskLevel.LOW

    def test_zone_table(self):
        names = [z.name for z in LANDSLIDE_PRONE_ZONES]
        assert names == ["Western Ghats", "Himalayas", "Northeast Hills", "Eastern Ghats", "Vindhya-Satpura"]

    def test_jammu_and_kashmir(self):
        assert region_susceptibility("Jammu & Kashmir") == RiskLevel.HIGH

    def test_tier_name_string_matches_enum(self):
        assert region_susceptibility("HIGH") == RiskLevel.HIGH
        assert landslide(region="HIGH").factors == landslide(region=RiskLevel.HIGH).factors
