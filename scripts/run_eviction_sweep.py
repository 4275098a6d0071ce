#!/usr/bin/env python3
"""Eviction sweep: void every agent silent past the inactivity threshold.

Runs one sweep against the configured store (PostgreSQL when DATABASE_URL
is set) and prints the report. Intended to be invoked daily by a job
runner; the threshold defaults to INACTIVITY_DAYS (7).

Usage:
    python scripts/run_eviction_sweep.py
    python scripts/run_eviction_sweep.py --threshold-days 10 --dry-run
    python scripts/run_eviction_sweep.py --json --environment development
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from territory.bootstrap.database import close_database_engine, database_configured
from territory.bootstrap.logging import configure_structlog
from territory.bootstrap.territory_services import build_territory_services
from territory.domain.models.sweep_report import SweepReport


def print_report(report: SweepReport) -> None:
    """Print a human-readable sweep report."""
    mode = " (dry run)" if report.dry_run else ""
    print(f"Eviction sweep{mode} at {report.started_at.isoformat()}")
    print(f"  Threshold: {report.threshold_days} days")
    print(f"  Checked:   {report.checked}")
    print(f"  Voided:    {len(report.voided)}")
    for summary in report.voided:
        print(
            f"    {summary.agent_id:24s} {summary.agent_name:20s} "
            f"from={summary.previous_resource_id or '-':20s} zone={summary.void_zone}"
        )
    if report.errors:
        print(f"  Errors:    {len(report.errors)}")
        for failure in report.errors:
            print(f"    {failure.agent_id}: {failure.error}")


async def run(args: argparse.Namespace) -> int:
    services = build_territory_services()
    await services.start()
    try:
        report = await services.sweeper.sweep(args.threshold_days, dry_run=args.dry_run)
    finally:
        await services.stop()
        await close_database_engine()

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print_report(report)
    return 1 if report.errors else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Run one eviction sweep")
    parser.add_argument(
        "--threshold-days",
        type=int,
        default=None,
        help="Inactivity threshold in days (default: INACTIVITY_DAYS or 7)",
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Report candidates without voiding"
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument(
        "--environment",
        default=None,
        help="Logging environment: production (JSON) or development (console)",
    )
    args = parser.parse_args()

    if args.threshold_days is not None and args.threshold_days < 1:
        parser.error("--threshold-days must be positive")

    configure_structlog(args.environment)
    if not database_configured():
        print(
            "DATABASE_URL is not set; sweeping an empty in-memory store.",
            file=sys.stderr,
        )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
