"""
IEP Compliance Monitor - command line

Usage:
    iep-monitor init-db                          # Create tables
    iep-monitor scan --actor USER_ID             # Run a compliance scan (cron entry point)
    iep-monitor analytics --actor USER_ID -r month
    iep-monitor reports --actor USER_ID
    iep-monitor serve                            # Start the HTTP API
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, List

from rich.console import Console
from rich.table import Table

from iep_monitor.core.config import settings
from iep_monitor.core.database import AsyncSessionLocal, init_db, close_db
from iep_monitor.core.exceptions import IEPMonitorError
from iep_monitor.schemas.analytics import TIME_RANGE_DAYS, AnalyticsResult
from iep_monitor.schemas.compliance import ScanResult
from iep_monitor.services.analytics_service import AnalyticsService
from iep_monitor.services.compliance_scanner import ComplianceScanner
from iep_monitor.services.report_service import ReportService

console = Console()


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iep-monitor",
        description="Compliance alerts and caseload analytics for IEP case records",
    )
    parser.add_argument("--json", action="store_true", help="Print raw JSON instead of tables")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    scan_parser = subparsers.add_parser("scan", help="Run the compliance scan for an actor")
    scan_parser.add_argument("--actor", required=True, help="User id the alerts are addressed to")
    scan_parser.add_argument("--dedupe", action="store_true", default=None,
                             help="Skip alerts already raised in the current date bucket")

    analytics_parser = subparsers.add_parser("analytics", help="Show caseload analytics")
    analytics_parser.add_argument("--actor", required=True)
    analytics_parser.add_argument("-r", "--range", dest="time_range", default="year",
                                  choices=sorted(TIME_RANGE_DAYS))

    reports_parser = subparsers.add_parser("reports", help="List stored report snapshots")
    reports_parser.add_argument("--actor", required=True)
    reports_parser.add_argument("--limit", type=int, default=settings.REPORT_LIST_LIMIT)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve_parser.add_argument("--host", default=settings.SERVER_HOST)
    serve_parser.add_argument("--port", type=int, default=settings.SERVER_PORT)

    return parser


def render_scan(result: ScanResult) -> None:
    table = Table(title="Compliance Scan", show_header=True, header_style="bold cyan")
    table.add_column("Records")
    table.add_column("Alerts created")
    table.add_column("Skipped (dedup)")
    table.add_column("Failures")
    table.add_row(
        str(result.records_scanned),
        str(result.alerts_created),
        str(result.alerts_skipped),
        str(len(result.failures)),
    )
    console.print(table)
    for failure in result.failures:
        console.print(f"[yellow]! {failure.record_id}: {failure.reason}[/yellow]")


def render_analytics(result: AnalyticsResult) -> None:
    overview = Table(title=f"Overview ({result.time_range})", show_header=True, header_style="bold cyan")
    overview.add_column("Metric")
    overview.add_column("Value", justify="right")
    for name, value in result.overview.model_dump().items():
        overview.add_row(name.replace("_", " "), str(value))
    for name, value in result.compliance.model_dump().items():
        overview.add_row(name.replace("_", " "), str(value))
    console.print(overview)

    trends = Table(title="Trends", show_header=True, header_style="bold cyan")
    trends.add_column("Period")
    trends.add_column("Start")
    trends.add_column("Created", justify="right")
    trends.add_column("Active", justify="right")
    for bucket in result.trends:
        trends.add_row(str(bucket.period), bucket.date, str(bucket.cases_created), str(bucket.active_cases))
    console.print(trends)


async def _run(args: argparse.Namespace) -> int:
    if args.command == "init-db":
        await init_db()
        console.print("[green]Database tables created[/green]")
        return 0

    async with AsyncSessionLocal() as db:
        if args.command == "scan":
            result = await ComplianceScanner(db, dedupe=args.dedupe).scan(args.actor)
            if args.json:
                print(result.model_dump_json(indent=2))
            else:
                render_scan(result)
            return 1 if result.failures else 0

        if args.command == "analytics":
            result = await AnalyticsService(db).get_analytics(args.actor, args.time_range)
            if args.json:
                print(result.model_dump_json(indent=2))
            else:
                render_analytics(result)
            return 0

        if args.command == "reports":
            reports = await ReportService(db).list_reports(args.actor, args.limit)
            if args.json:
                print(json.dumps([
                    {"id": r.id, "report_type": r.report_type.value, "time_range": r.time_range,
                     "status": r.status.value, "created_at": r.created_at.isoformat()}
                    for r in reports
                ], indent=2))
                return 0
            table = Table(title="Reports", show_header=True, header_style="bold cyan")
            table.add_column("Id")
            table.add_column("Type")
            table.add_column("Range")
            table.add_column("Status")
            table.add_column("Created")
            for r in reports:
                table.add_row(r.id, r.report_type.value, r.time_range, r.status.value,
                              r.created_at.strftime("%Y-%m-%d %H:%M"))
            console.print(table)
            return 0

    return 2


def main(argv: Optional[List[str]] = None) -> int:
    args = create_parser().parse_args(argv)

    if args.command == "serve":
        import uvicorn
        uvicorn.run("iep_monitor.main:app", host=args.host, port=args.port)
        return 0

    async def runner() -> int:
        try:
            return await _run(args)
        finally:
            await close_db()

    try:
        return asyncio.run(runner())
    except IEPMonitorError as e:
        console.print(f"[red]{e.code}: {e.message}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
