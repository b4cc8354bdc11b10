# -*- coding: utf-8 -*-
"""
Command line entry points.

Usage:
    python -m daylog.cli serve [--host 0.0.0.0] [--port 8000]
    python -m daylog.cli sync [--days 7]
    python -m daylog.cli trend [--days 90]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date, timedelta

from .app_db import init_app_db
from .config import settings
from .logs import configure_logging


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API server."""
    import uvicorn

    uvicorn.run("daylog.api:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    """Merge device uploads into the daily logs and refresh summaries of changed days."""
    from .services import get_services

    services = get_services()
    report = asyncio.run(services.sync.run(args.days, reason="cli"))

    print(f"Range: {report.start} .. {report.end}")
    if not report.changed:
        print("No changes.")
        return 0
    for day in report.changed:
        outcome = report.annotations.get(day)
        print(f"  {day}  {outcome.value if outcome else '-'}")
    print(f"{len(report.changed)} days changed")
    return 0


def cmd_trend(args: argparse.Namespace) -> int:
    """Print the smoothed weight trend."""
    from .services import get_services
    from .trend.engine import calculate

    services = get_services()
    today = date.today()
    samples = services.weights.history(today - timedelta(days=args.days - 1))
    goal = services.goals.current()
    result = calculate(
        samples,
        goal.target_kg if goal else None,
        goal.rate_kg_per_week if goal else None,
        today=today,
    )
    if result is None:
        print("No weight samples.")
        return 1

    low, high = result.confidence_range
    latest = services.weights.latest()
    print(f"Samples:   {result.sample_count}")
    if latest is not None:
        print(f"Latest:    {latest.value_kg:.1f} kg on {latest.date} ({latest.source.value})")
    print(f"7-day:     {result.avg_7d:.2f} kg ({low:.2f} - {high:.2f})")
    if result.avg_14d is not None:
        print(f"14-day:    {result.avg_14d:.2f} kg")
    print(f"Direction: {result.direction.value}")
    if goal is not None:
        print(f"Target:    {goal.target_kg:g} kg ({result.deviation_from_plan:+.2f} kg to go)")
        print(f"Projected: {result.projected_goal_date}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="daylog CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    sync_parser = subparsers.add_parser("sync", help="Merge device data for recent days")
    sync_parser.add_argument(
        "--days",
        type=int,
        default=settings.sync_days,
        help=f"Number of days back from today (default: {settings.sync_days})",
    )

    trend_parser = subparsers.add_parser("trend", help="Show the weight trend")
    trend_parser.add_argument(
        "--days",
        type=int,
        default=90,
        help="History window in days (default: 90)",
    )

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(settings.log_dir, settings.log_level)
    init_app_db(settings.app_db_path)

    commands = {
        "serve": cmd_serve,
        "sync": cmd_sync,
        "trend": cmd_trend,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
