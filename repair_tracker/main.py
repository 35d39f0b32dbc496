"""Command line entry point for the repair tracker.

Read commands load the job list (from the spreadsheet, the local store, or
a JSON file given with --input) and run one computation. add, update and
delete go through the job service. Results are printed as JSON on stdout;
logs go to stderr.
"""

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from repair_tracker.config.environment import EnvironmentConfig
from repair_tracker.config.exceptions import ConfigurationError
from repair_tracker.config.loader import load_config
from repair_tracker.config.models import AppConfig
from repair_tracker.domain.models import JobRecord
from repair_tracker.export.rows import (
    COLUMN_LABELS,
    ExportRequest,
    build_export_rows,
    customer_rows,
    this_month_rows,
)
from repair_tracker.jobs.operations import sorted_newest_first
from repair_tracker.logging import get_logger
from repair_tracker.logging.config import configure_logging
from repair_tracker.normalization.dates import display_date
from repair_tracker.normalization.service import JobNormalizer
from repair_tracker.notifications.models import NotificationError
from repair_tracker.notifications.service import NotificationService
from repair_tracker.notifications.templates import TEMPLATES
from repair_tracker.notifications.whatsapp_client import WhatsAppClient
from repair_tracker.persistence.database import Database
from repair_tracker.persistence.exceptions import PersistenceError
from repair_tracker.reporting.engine import AggregationEngine
from repair_tracker.reporting.filters import PERIODS, filter_by_period, search_jobs
from repair_tracker.reporting.formatting import format_currency, format_percentage, month_name
from repair_tracker.services.job_service import JobService
from repair_tracker.sheets.client import SheetsClient
from repair_tracker.sheets.exceptions import SheetsError

logger = get_logger(__name__, component="cli")

REPORT_KINDS = ("daily", "weekly", "monthly", "yearly", "categories", "today")
WRITE_COMMANDS = ("add", "update", "delete")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repair-tracker",
        description="Repair shop job tracker - dashboard totals, reports, exports and customer messages",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="Read jobs from a JSON file (list of rows) instead of the spreadsheet",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("dashboard", help="Headline totals and today's figures")

    listing = commands.add_parser("list", help="Jobs, newest first")
    listing.add_argument("--search", default="", help="Customer name, mobile or device model")
    listing.add_argument("--period", choices=PERIODS, default="all")

    add = commands.add_parser("add", help="Record a new job")
    add.add_argument("--data", required=True, help="Job fields as a JSON object")

    update = commands.add_parser("update", help="Change fields of a job")
    update.add_argument("--id", dest="job_id", required=True, help="Job id or list position")
    update.add_argument("--data", required=True, help="Fields to change as a JSON object")

    delete = commands.add_parser("delete", help="Remove a job")
    delete.add_argument("--id", dest="job_id", required=True, help="Job id or list position")

    report = commands.add_parser("report", help="Period statistics")
    report.add_argument("kind", choices=REPORT_KINDS)
    report.add_argument("--days", type=int, default=None, help="Window for the daily report")
    report.add_argument("--month", default=None, help="YYYY-MM for the weekly report (default: current)")

    commands.add_parser("trends", help="This month compared with last month")

    export = commands.add_parser("export", help="Job rows for export")
    export.add_argument("--from", dest="from_date", type=date.fromisoformat, default=None)
    export.add_argument("--to", dest="to_date", type=date.fromisoformat, default=None)
    export.add_argument(
        "--columns",
        default=None,
        help=f"Comma separated columns ({', '.join(COLUMN_LABELS)})",
    )
    scope = export.add_mutually_exclusive_group()
    scope.add_argument("--customers", action="store_true", help="Unique customers only")
    scope.add_argument("--this-month", action="store_true", help="Jobs from the current month")

    notify = commands.add_parser("notify", help="Send a WhatsApp message about a job")
    notify.add_argument("--index", type=int, required=True, help="Position of the job in the list")
    notify.add_argument("--template", choices=sorted(TEMPLATES), default="job_completed")
    notify.add_argument("--to", default=None, help="Number to message instead of the job's mobile")

    return parser


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the log level.

    Priority for the log level: CLI > environment > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)
    env_config.log_level = log_level_override or env_config.log_level or app_config.logging.level
    return app_config, env_config


def load_jobs(
    input_path: Optional[Path], app_config: AppConfig, env_config: EnvironmentConfig
) -> List[JobRecord]:
    """
    Job list for this invocation.

    Raises:
        ValueError: If the input file is not a JSON list
        OSError: If the input file cannot be read
        SheetsError: If the spreadsheet fails and no local store can be used
        PersistenceError: If the local store fails
    """
    if input_path is not None:
        with open(input_path, "r", encoding="utf-8") as f:
            rows = json.load(f)
        if not isinstance(rows, list):
            raise ValueError(f"{input_path} must contain a JSON list of job rows")
        return JobNormalizer().normalize_all(rows)

    database = Database(env_config.database_url)
    try:
        return build_job_service(app_config, database).get_all_jobs()
    finally:
        database.close()


def build_job_service(app_config: AppConfig, database: Database) -> JobService:
    use_local = app_config.sheets.use_local_store
    sheets_client = None if use_local else SheetsClient.from_config(app_config.sheets)
    return JobService(sheets_client, database=database, use_local_store=use_local)


def run_write_command(args: argparse.Namespace, service: JobService) -> Any:
    """
    Execute add, update or delete against the job service.

    Raises:
        ValueError: If --data is not a JSON object or names an unknown field
        RecordNotFoundError: If --id matches no job
        SheetsError: If the spreadsheet write fails
    """
    if args.command == "delete":
        service.delete_job(args.job_id)
        return {"deleted": args.job_id}

    data = json.loads(args.data)
    if not isinstance(data, dict):
        raise ValueError("--data must be a JSON object")

    if args.command == "add":
        return service.add_job(data).to_sheet_payload()
    return service.update_job(args.job_id, data).to_sheet_payload()


def run_command(
    args: argparse.Namespace,
    jobs: Sequence[JobRecord],
    app_config: AppConfig,
    engine: Optional[AggregationEngine] = None,
) -> Tuple[Any, int]:
    """Execute one command; returns (JSON-ready payload, exit code)."""
    engine = engine or AggregationEngine(daily_window_days=app_config.reports.daily_window_days)
    symbol = app_config.reports.currency_symbol

    if args.command == "dashboard":
        totals = engine.totals(jobs)
        today = engine.today(jobs)
        return {
            "totals": totals.to_dict(),
            "today": today.to_dict(),
            "formatted": {
                "totalRevenue": format_currency(totals.total_revenue, symbol),
                "totalPartsCost": format_currency(totals.total_parts_cost, symbol),
                "netProfit": format_currency(totals.net_profit, symbol),
                "todayMargin": format_percentage(today.margin),
            },
        }, 0

    if args.command == "list":
        return _list(args, jobs, engine), 0

    if args.command == "report":
        return _report(args, jobs, engine), 0

    if args.command == "trends":
        comparison = engine.comparison(jobs)
        payload = comparison.to_dict()
        payload["labels"] = {
            "current": month_name(comparison.current.month),
            "previous": month_name(comparison.previous.month),
        }
        return payload, 0

    if args.command == "export":
        if args.customers:
            return customer_rows(jobs), 0
        columns = _split_columns(args.columns)
        if args.this_month:
            return this_month_rows(jobs, today=engine.clock(), columns=columns), 0
        request = ExportRequest(
            from_date=args.from_date,
            to_date=args.to_date,
            **({"columns": columns} if columns else {}),
        )
        return build_export_rows(jobs, request), 0

    if args.command == "notify":
        return _notify(args, jobs, app_config)

    raise ValueError(f"Unknown command: {args.command}")


def _list(args: argparse.Namespace, jobs: Sequence[JobRecord], engine: AggregationEngine) -> Any:
    # "index" is the position update/delete accept as --id
    positions = {id(job): index for index, job in enumerate(jobs)}
    selected = filter_by_period(search_jobs(jobs, args.search), args.period, today=engine.clock())
    rows = []
    for job in sorted_newest_first(selected):
        row = job.to_sheet_payload()
        row["date"] = display_date(job.date)
        rows.append({"index": positions[id(job)], **row})
    return rows


def _report(args: argparse.Namespace, jobs: Sequence[JobRecord], engine: AggregationEngine) -> Any:
    if args.kind == "daily":
        return [stats.to_dict() for stats in engine.daily(jobs, window_days=args.days)]
    if args.kind == "today":
        return engine.today(jobs).to_dict()
    if args.kind == "weekly":
        return [stats.to_dict() for stats in engine.weekly(jobs, args.month)]
    if args.kind == "monthly":
        return [stats.to_dict() for stats in engine.monthly(jobs)]
    if args.kind == "yearly":
        return [stats.to_dict() for stats in engine.yearly(jobs)]
    return [stats.to_dict() for stats in engine.categories(jobs)]


def _notify(
    args: argparse.Namespace, jobs: Sequence[JobRecord], app_config: AppConfig
) -> Tuple[Any, int]:
    if not 0 <= args.index < len(jobs):
        raise ValueError(f"Job index {args.index} is out of range (0-{len(jobs) - 1})")
    if not app_config.whatsapp.gateway_url:
        raise ConfigurationError(
            "WhatsApp gateway is not configured",
            suggestions=["Set WHATSAPP_GATEWAY_URL or whatsapp.gateway_url in config.yaml"],
        )

    service = NotificationService(
        WhatsAppClient.from_config(app_config.whatsapp), config=app_config.whatsapp
    )
    result = service.send_job_message(jobs[args.index], template=args.template, to=args.to)
    return result.to_dict(), 0 if result.status in ("sent", "skipped") else 1


def _split_columns(raw: Optional[str]) -> Optional[List[str]]:
    if not raw:
        return None
    return [column.strip() for column in raw.split(",") if column.strip()]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the repair tracker CLI.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )
        logger.debug(
            "Repair tracker starting",
            extra={"event": "service.starting", "command": args.command},
        )

        if args.command in WRITE_COMMANDS:
            if args.input is not None:
                raise ValueError(f"--input cannot be used with '{args.command}'")
            database = Database(env_config.database_url)
            try:
                payload = run_write_command(args, build_job_service(app_config, database))
            finally:
                database.close()
            exit_code = 0
        else:
            jobs = load_jobs(args.input, app_config, env_config)
            payload, exit_code = run_command(args, jobs, app_config)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except (SheetsError, PersistenceError, NotificationError) as e:
        logger.error(
            f"Command failed: {e}",
            extra={"event": "service.command.failed", "error_type": type(e).__name__},
        )
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
