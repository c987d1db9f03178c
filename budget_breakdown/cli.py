"""Command line entry point for budget breakdowns and weekly projections."""

from __future__ import annotations

import argparse
import json
from datetime import date, timedelta
from pathlib import Path
from typing import Iterable

from .config import BudgetConfig
from .excel import export_breakdown_workbook
from .formatting import (
    format_breakdown,
    format_category_totals,
    format_payment_summary,
    format_projected_expenses,
    format_projection,
    format_transactions,
    format_weekly_breakdown,
)
from .loader import BudgetFileError, ensure_csv_file, filter_by_date
from .logging_config import get_logger, setup_logging
from .periods import days_remaining, format_statement_period, statement_period_range
from .projection import parse_required_amount, parse_required_days
from .session import BudgetSession
from .summary import (
    build_actuals_breakdown,
    build_breakdown,
    build_payment_summary,
    build_weekly_breakdown,
)
from .workspace import build_snapshot

EXIT_CANCELLED = 0
EXIT_CSV_INIT_FAILED = 1
EXIT_WIRING_FAILED = 2

logger = get_logger(__name__)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Break down Josh and Anna's spending by criticality and category, "
            "and plan weekly budgets from a budget CSV."
        )
    )
    parser.add_argument(
        "--csv",
        dest="csv_path",
        type=Path,
        help="Path to the budget CSV. Defaults to BUDGET_CSV_PATH.",
    )
    parser.add_argument(
        "--legacy-split",
        action="store_true",
        help="Read rows with the line splitter used by older exports.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Write the report to the specified file instead of printing to stdout.",
    )
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        help="Override today's date when working out the statement period.",
    )
    parser.add_argument(
        "--period-start-day",
        type=int,
        default=13,
        help="Day of the month on which statement periods begin (default: 13).",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init", help="Create the budget CSV if it does not exist.")

    summary = commands.add_parser("summary", help="Show the per-person breakdown.")
    summary.add_argument(
        "--actuals-only",
        action="store_true",
        help="Leave projected expenses out of the breakdown.",
    )
    summary.add_argument(
        "--current-period",
        action="store_true",
        help="Only include transactions dated within the current statement period.",
    )

    person = commands.add_parser("person", help="List one person's transactions, Joint ones halved.")
    person.add_argument("name", help="Josh or Anna.")
    person.add_argument("--criticality", help="Essential or NonEssential.")

    goal = commands.add_parser("goal", help="Turn a spending goal into a weekly budget.")
    goal.add_argument("--person", required=True, help="Josh, Anna or Joint.")
    goal.add_argument("--criticality", required=True)
    goal.add_argument("--category", required=True)
    goal.add_argument("--goal", dest="goal_amount", required=True, help="Spending goal in dollars.")
    goal.add_argument(
        "--days",
        help="Days left in the budget cycle. Defaults to the rest of the statement period.",
    )
    goal.add_argument("--save", action="store_true", help="Persist the updated projections.")

    add = commands.add_parser("add-projected", help="Record a planned expense.")
    add.add_argument("--person", required=True, help="Josh, Anna or Joint.")
    add.add_argument("--criticality", required=True)
    add.add_argument("--subcategory", required=True)
    add.add_argument("--amount", required=True)
    add.add_argument("--save", action="store_true", help="Persist the updated projections.")

    remove = commands.add_parser("remove-projected", help="Remove planned expenses by position.")
    remove.add_argument("indices", nargs="+", type=int)
    remove.add_argument("--save", action="store_true", help="Persist the updated projections.")

    weekly = commands.add_parser(
        "weekly", help="Show spending per statement week for the current period."
    )
    weekly.add_argument("--category", help="Only include this category.")
    weekly.add_argument(
        "--details", action="store_true", help="List the transactions of each week."
    )

    rollover = commands.add_parser(
        "rollover", help="Archive the budget CSV and start a new statement period."
    )
    rollover.add_argument(
        "--from",
        dest="from_period",
        help="Period being closed. Defaults to the cached current period.",
    )
    rollover.add_argument(
        "--to",
        dest="to_period",
        help="New period label. Defaults to the period containing today.",
    )

    commands.add_parser("projections", help="List planned expenses.")
    commands.add_parser("payments", help="Show what each person owes per card.")

    importer = commands.add_parser("import", help="Append new transactions from another CSV.")
    importer.add_argument("import_path", type=Path)
    importer.add_argument("--save", action="store_true", help="Persist the merged transactions.")

    excel = commands.add_parser("export-excel", help="Write the breakdown to an Excel workbook.")
    excel.add_argument("workbook_path", type=Path)

    combined = commands.add_parser(
        "export-csv", help="Write transactions and projections to a single CSV."
    )
    combined.add_argument("export_path", type=Path)

    snapshot = commands.add_parser("snapshot", help="Write a hashed JSON snapshot of the workspace.")
    snapshot.add_argument("snapshot_path", type=Path)

    return parser.parse_args(argv)


def _load_config() -> BudgetConfig:
    try:
        config = BudgetConfig.from_env()
        setup_logging(config)
    except (OSError, ValueError) as exc:
        logger.error("Failed to initialise configuration: %s", exc)
        raise SystemExit(EXIT_WIRING_FAILED) from exc
    return config


def _prepare_csv(config: BudgetConfig, csv_path: Path | None) -> BudgetConfig:
    csv_path = csv_path or config.csv_path
    if csv_path is None:
        print("No budget CSV selected. Pass --csv or set BUDGET_CSV_PATH.")
        raise SystemExit(EXIT_CANCELLED)
    config = config.with_csv_path(csv_path)
    try:
        ensure_csv_file(config.csv_path)
    except BudgetFileError as exc:
        logger.error("Failed to initialise the budget CSV: %s", exc)
        raise SystemExit(EXIT_CSV_INIT_FAILED) from exc
    return config


def _days_left(args: argparse.Namespace) -> int:
    if args.days is not None:
        return parse_required_days(args.days)
    _, period_end = statement_period_range(args.as_of, args.period_start_day)
    return days_remaining(period_end, args.as_of)


def _run_command(args: argparse.Namespace, session: BudgetSession) -> str:
    command = args.command

    if command == "init":
        return f"Budget CSV ready: {session.csv_path}\n"

    if command == "summary":
        transactions = session.transactions
        heading = "Budget Breakdown"
        if args.current_period:
            start, end = statement_period_range(args.as_of, args.period_start_day)
            transactions = tuple(filter_by_date(transactions, start, end))
            heading += f" ({format_statement_period(start, end)})"
        if args.actuals_only:
            breakdown = build_actuals_breakdown(transactions)
            heading += " - actuals only"
        else:
            breakdown = build_breakdown(transactions, session.projected)
        return heading + "\n\n" + format_breakdown(breakdown)

    if command == "person":
        collection = session.collection
        transactions = collection.personalized_transactions(args.name, args.criticality)
        text = format_transactions(transactions)
        if args.criticality:
            totals = collection.category_totals(args.name, args.criticality)
            text += "\n\nCategory Totals\n" + format_category_totals(totals)
        return text + "\n"

    if command == "goal":
        goal_amount = parse_required_amount(args.goal_amount, "goal")
        days = _days_left(args)
        outcome = session.apply_goal(args.person, args.criticality, args.category, goal_amount, days)
        if args.save:
            session.save()
        return "\n".join(format_projection(p) for p in outcome.projections) + "\n"

    if command == "add-projected":
        amount = parse_required_amount(args.amount, "amount")
        session.add_projected(args.person, args.criticality, args.subcategory, amount)
        if args.save:
            session.save()
        return "Projected expense added.\n\n" + format_projected_expenses(session.projected) + "\n"

    if command == "remove-projected":
        session.remove_projected(args.indices)
        if args.save:
            session.save()
        return format_projected_expenses(session.projected) + "\n"

    if command == "weekly":
        start, end = statement_period_range(args.as_of, args.period_start_day)
        weeks = build_weekly_breakdown(session.transactions, args.category, start, end)
        heading = f"Weekly Breakdown ({format_statement_period(start, end)})"
        if args.category:
            heading += f" - {args.category}"
        return heading + "\n" + format_weekly_breakdown(weeks, args.details) + "\n"

    if command == "rollover":
        start, end = statement_period_range(args.as_of, args.period_start_day)
        new_period = args.to_period or format_statement_period(start, end)
        current = args.from_period or session.cache.current_statement_period
        if current is None:
            previous = statement_period_range(start - timedelta(days=1), args.period_start_day)
            current = format_statement_period(*previous)
        archive = session.rollover(new_period, current)
        return f"Archived {current} to {archive}; current period is now {new_period}.\n"

    if command == "projections":
        return format_projected_expenses(session.projected) + "\n"

    if command == "payments":
        return "Payment Summary\n" + format_payment_summary(build_payment_summary(session.transactions)) + "\n"

    if command == "import":
        if not args.import_path.exists():
            raise SystemExit(f"Import file not found: {args.import_path}")
        result = session.import_file(args.import_path, legacy_split=args.legacy_split)
        if args.save:
            session.save()
        return (
            f"{result.imported_count} transactions imported, "
            f"{len(result.duplicates)} duplicates skipped, "
            f"{len(result.skipped_lines)} malformed rows skipped.\n"
        )

    if command == "export-excel":
        path = export_breakdown_workbook(
            args.workbook_path,
            session.breakdown(),
            build_payment_summary(session.transactions),
            session.projected,
        )
        return f"Workbook written: {path}\n"

    if command == "export-csv":
        path = session.export_combined(args.export_path)
        return f"CSV written: {path}\n"

    if command == "snapshot":
        snapshot = build_snapshot(session.transactions, session.projected, session.cache)
        args.snapshot_path.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
        return f"Snapshot written: {args.snapshot_path}\n"

    raise SystemExit(f"Unknown command: {command}")


def run(argv: Iterable[str] | None = None) -> str:
    args = parse_args(argv)
    config = _prepare_csv(_load_config(), args.csv_path)

    try:
        session = BudgetSession.open(config, legacy_split=args.legacy_split)
        output_text = _run_command(args, session)
    except ValueError as exc:
        raise SystemExit(str(exc))
    except OSError as exc:
        logger.error("%s", exc)
        raise SystemExit(str(exc))

    if args.output:
        args.output.write_text(output_text, encoding="utf-8")
    else:
        print(output_text, end="")
    return output_text


def main() -> None:
    run()


if __name__ == "__main__":
    main()
