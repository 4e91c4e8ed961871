"""
damwatch — Flood and landslide hazard engine for monitored dam sites.

Sub-packages:
    core       — settings, logging, errors, TTL cache
    spatial    — coordinates and haversine distance
    sites      — site registry validation and lookup
    ingestion  — upstream source clients and per-site snapshots
    risk       — reservoir estimate, hazard scoring, 24 h prediction
    alerts     — score → alert rules
    pipeline   — batch coordinator and the HazardEngine facade
"""

__version__ = "1.0.0"
