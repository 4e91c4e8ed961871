"""
Core package — cross-cutting concerns.

Modules:
    config          — environment variables & settings
    logging_config  — structured JSON / pretty console logging
    errors          — exception hierarchy
    cache           — in-process TTL cache for upstream source results
"""
