"""Externally supplied site registry: validation and lookup."""

from .models import Site, find_site, parse_sites

__all__ = ["Site", "find_site", "parse_sites"]
