"""
Command Line Entry Point

Usage:
    inventory-analytics report --tab aging --from 2024-01-01 --to 2024-01-31
    inventory-analytics report --fixture data.json --export fast_moving --format xlsx
    inventory-analytics serve --dev
"""

import argparse
import asyncio
import json
import os
import sys
from typing import List, Optional

import structlog

from inventory_analytics.analytics.engine import AnalyticsResult
from inventory_analytics.analytics.export import VIEW_COLUMNS, ExportFormat
from inventory_analytics.config import get_settings
from inventory_analytics.config.logging import configure_logging
from inventory_analytics.database.connection import close_database, get_session_factory, init_database
from inventory_analytics.exceptions import FetchError
from inventory_analytics.ingestion.sources import DataSource, InMemoryDataSource, SQLAlchemyDataSource
from inventory_analytics.service import AnalyticsService

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inventory-analytics",
        description="Inventory analytics reports and API server",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    report = subparsers.add_parser("report", help="Run one analysis pass")
    report.add_argument("--tab", default="all", help="aging, fast_moving, performance, trend or all")
    report.add_argument("--from", dest="from_date", help="Window start (ISO-8601)")
    report.add_argument("--to", dest="to_date", help="Window end (ISO-8601)")
    report.add_argument("--status", help="Order status filter")
    report.add_argument("--product", help="Product id filter")
    report.add_argument("--sort", help="Aging sort column")
    report.add_argument("--direction", help="asc or desc")
    report.add_argument("--top-n", type=int, help="Number of fast movers")
    report.add_argument("--fixture", help="Read rows from a JSON file instead of the database")
    report.add_argument("--export", choices=sorted(VIEW_COLUMNS), help="Write this view to a file")
    report.add_argument("--format", choices=[f.value for f in ExportFormat], help="Export format")
    report.add_argument("--output-dir", help="Export directory")
    report.add_argument("--json", action="store_true", help="Print the full result as JSON")

    serve = subparsers.add_parser("serve", help="Run the API server")
    serve.add_argument("--dev", action="store_true", help="Run in development mode with auto-reload")
    serve.add_argument("--host", default=None, help="Bind host")
    serve.add_argument("--port", type=int, default=None, help="Port to run on")
    serve.add_argument("--workers", type=int, default=int(os.getenv("WORKERS", 1)), help="Worker processes")

    return parser


def print_summary(result: AnalyticsResult) -> None:
    window = result.window
    print(f"Window: {window.from_date:%Y-%m-%d %H:%M} -> {window.to_date:%Y-%m-%d %H:%M} ({window.span_days} days)")
    if result.is_empty:
        print(result.message)
        return

    if result.aging is not None:
        aging = result.aging
        print(f"Aging: {len(aging.products)} in-stock products, {len(aging.aging_products)} aging")
        print(f"  total aging value {aging.total_aging_value:,.2f}, average age {aging.average_age} days, "
              f"{aging.critical_count} critical")
        for bucket in aging.aging_categories:
            print(f"  {bucket.label:<12} {bucket.count:>6} {bucket.value:>14,.2f}")

    if result.fast_moving is not None:
        fast = result.fast_moving
        print(f"Fast moving: {fast.total_quantity_sold} units over {fast.total_orders} orders")
        for row in fast.products:
            print(f"  {row['name']:<40} {row['total_quantity']:>8} {row['stock_status']}")

    if result.performance is not None:
        perf = result.performance
        counts = ", ".join(f"{tier} {count}" for tier, count in perf.tier_counts.items())
        print(f"Performance: {len(perf.executives)} executives ({counts})")
        for row in perf.executives[:10]:
            print(f"  {row['rank']:>3}. {row['executive_name']:<30} {row['total_orders']:>6} {row['performance']}")

    if result.trend is not None:
        trend = result.trend
        print(f"Trend: {len(trend.days)} days, {trend.total_orders} orders, revenue {trend.total_revenue:,.2f}")


async def _open_source(args: argparse.Namespace) -> DataSource:
    settings = get_settings()
    if args.fixture:
        return InMemoryDataSource.from_json(args.fixture)
    try:
        await init_database()
    except Exception as e:
        raise FetchError(f"Database unavailable: {e}", source="database") from e
    return SQLAlchemyDataSource(get_session_factory(), page_size=settings.analytics.fetch_page_size)


async def run_report(args: argparse.Namespace) -> int:
    settings = get_settings()
    try:
        source = await _open_source(args)
        service = AnalyticsService(source, settings.analytics)
        request = service.request(
            from_param=args.from_date,
            to_param=args.to_date,
            tab=args.export or args.tab,
            status=args.status,
            product=args.product,
            sort=args.sort,
            direction=args.direction,
            top_n=args.top_n,
        )

        if args.export:
            fmt = ExportFormat(args.format or settings.export.default_format)
            path = await service.export(request, args.export, args.output_dir or settings.export.output_dir, fmt)
            print(f"Exported {args.export} to {path}")
            return 0

        result = await service.run(request)
    except FetchError as e:
        logger.error("Report failed", error=str(e), source=e.source)
        print(e.user_message, file=sys.stderr)
        return 2
    finally:
        await close_database()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print_summary(result)
    return 0


def run_server(args: argparse.Namespace) -> None:
    import uvicorn

    settings = get_settings()
    host = args.host or settings.api_host
    port = args.port or settings.api_port

    if args.dev:
        uvicorn.run(
            "inventory_analytics.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["inventory_analytics"],
            log_level="debug",
            access_log=True,
        )
    else:
        uvicorn.run(
            "inventory_analytics.main:app",
            host=host,
            port=port,
            workers=args.workers,
            log_level=settings.monitoring.log_level.lower(),
            access_log=True,
            proxy_headers=True,
            forwarded_allow_ips="*",
            server_header=False,
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        run_server(args)
        return 0

    configure_logging(log_format="text", stream=sys.stderr)
    return asyncio.run(run_report(args))


if __name__ == "__main__":
    sys.exit(main())
