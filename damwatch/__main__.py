"""
One-shot command line run over a JSON site registry.

    python -m damwatch sites.json                     # risk overview, all sites
    python -m damwatch sites.json --site tehri        # full assessment, one site
    python -m damwatch sites.json --alerts --severity HIGH
    python -m damwatch sites.json --reservoirs

The registry file holds a list of site records, or an object with a
``"sites"`` list.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

from damwatch.alerts.models import AlertSeverity
from damwatch.core.config import get_settings
from damwatch.core.errors import ConfigurationError
from damwatch.core.logging_config import setup_logging
from damwatch.pipeline.engine import HazardEngine
from damwatch.sites.models import Site, find_site, parse_sites

logger = logging.getLogger("damwatch.cli")


def load_registry(path: Path) -> List[Site]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read site registry {path}: {e}", field="registry") from e
    except ValueError as e:
        raise ConfigurationError(f"Site registry {path} is not valid JSON: {e}", field="registry") from e
    if isinstance(raw, dict):
        raw = raw.get("sites", [])
    if not isinstance(raw, list):
        raise ConfigurationError("Site registry must be a list of site records", field="registry")
    return parse_sites(raw)


async def run(args: argparse.Namespace) -> Any:
    sites = load_registry(Path(args.registry))
    config = get_settings()

    async with HazardEngine(config) as engine:
        if args.site:
            assessment = await engine.assess_site(find_site(sites, args.site))
            return assessment.to_dict()
        if args.alerts:
            severity = AlertSeverity.parse(args.severity) if args.severity else None
            feed = await engine.collect_alerts(sites, severity=severity, batch_size=args.batch_size)
            return feed.to_dict()
        if args.reservoirs:
            batch = await engine.reservoir_levels(sites, batch_size=args.batch_size)
            return {"reservoirs": [r.to_dict() for r in batch.results], **batch.to_dict()}
        overview = await engine.assess_all(sites, batch_size=args.batch_size)
        return overview.to_dict()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="damwatch",
        description="Flood and landslide risk for a set of monitored sites",
    )
    parser.add_argument("registry", help="JSON file with the site registry")
    parser.add_argument("--site", help="Assess a single site by id")
    parser.add_argument("--alerts", action="store_true", help="Print the alert feed instead of the overview")
    parser.add_argument(
        "--severity", choices=[s.name for s in AlertSeverity],
        help="Only alerts of this severity (with --alerts)",
    )
    parser.add_argument("--reservoirs", action="store_true", help="Print synthetic reservoir levels")
    parser.add_argument("--batch-size", type=int, help="Sites processed concurrently per chunk")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.severity and not args.alerts:
        parser.error("--severity requires --alerts")
    if args.batch_size is not None and args.batch_size < 1:
        parser.error("--batch-size must be >= 1")

    setup_logging(stream=sys.stderr)
    try:
        result = asyncio.run(run(args))
    except ConfigurationError as e:
        logger.error("%s", e.message)
        print(json.dumps({"error": e.to_dict()}, indent=2), file=sys.stderr)
        return 2

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
