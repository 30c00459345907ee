"""
CLI Entry Point: payroll-calculate

Computes each worker's payable total and its per-company breakdown from
worker payload JSON files, with an aggregate across workers.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from payroll_allocator.core import format_amount
from payroll_allocator.report import result_to_json, results_to_markdown, summarize_results
from payroll_allocator.session import WorkerSession
from payroll_allocator.utils import console
from payroll_allocator.utils.contracts import ContractError, validate_output

logger = logging.getLogger(__name__)


def read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data: dict[str, Any] = json.load(handle)
        return data


def write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def write_markdown(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def load_calendars(path: Path | None) -> dict[str, Any]:
    """
    Load calendar hours keyed by worker id.

    A missing or unreadable file is not fatal: allocation continues without
    calendar hours.
    """
    if path is None:
        return {}
    try:
        return read_json(path)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Calendar hours unavailable (%s): %s", path, e)
        return {}


def apply_calendar(session: WorkerSession, calendar: dict[str, Any] | None) -> None:
    if not calendar or not calendar.get("period_start"):
        return
    try:
        period_start = date.fromisoformat(calendar["period_start"])
    except ValueError as e:
        logger.warning("Invalid calendar period for worker %s: %s", session.worker_id, e)
        return
    if session.period_start != period_start:
        session.change_period(period_start)
    session.receive_calendar_hours(period_start, calendar.get("hours_by_date"))


def output_human(rows: list[dict[str, Any]], summary: dict[str, Any]) -> None:
    for row in rows:
        console.print_step(row["worker_name"] or row["worker_id"] or "Worker")
        if row["company_breakdown"]:
            console.print_table(
                "Company Breakdown",
                ["Company", "Hours", "Amount"],
                [
                    [company["name"], f"{company['hours']:.2f}", format_amount(Decimal(str(company["amount"])))]
                    for company in row["company_breakdown"]
                ],
                numeric=["Hours", "Amount"],
            )
        print(f"Regular Hours: {row['regular_hours']:.2f}")
        print(f"Overtime Hours: {row['overtime_hours']:.2f}")
        print(f"Total Hours: {row['total_hours']:.2f}")
        print(f"Uses Calendar Hours: {row['uses_calendar_hours']}")
        print(f"Total Amount: {format_amount(Decimal(str(row['total_amount'])))}")
        print()

    if len(rows) > 1:
        print("Aggregate Across Workers:")
        print(f"Workers: {summary['worker_count']}")
        print(f"Total Hours: {summary['total_hours']:.2f}")
        print(f"Total Amount: {format_amount(Decimal(str(summary['total_amount'])))}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Allocate worker pay across the companies they work for.")
    parser.add_argument("payloads", nargs="+", type=Path, help="Worker payload JSON files.")
    parser.add_argument("--calendar", type=Path, default=None, help="Calendar hours JSON keyed by worker id.")
    parser.add_argument(
        "--auto-fill",
        choices=["none", "all"],
        default="none",
        help="Fill contract hours from calendar hours for every company that has them.",
    )
    parser.add_argument("--json", action="store_true", help="Output machine-readable JSON.")
    parser.add_argument("--json-out", type=Path, default=None, help="Write results JSON to this path.")
    parser.add_argument("--md-out", type=Path, default=None, help="Write a Markdown report to this path.")
    parser.add_argument("--strict", action="store_true", help="Fail when an output violates its data contract.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    missing = [str(path) for path in args.payloads if not path.exists()]
    if missing:
        sys.exit(f"File(s) not found: {', '.join(missing)}")

    calendars = load_calendars(args.calendar)
    output_mode = "STRICT" if args.strict else "REVIEW"

    rows: list[dict[str, Any]] = []
    results = []
    for path in args.payloads:
        try:
            payload = read_json(path)
            validate_output(payload, "worker_payload", mode="STRICT", source=str(path))
            session = WorkerSession.from_payload(payload)
        except (json.JSONDecodeError, ContractError, KeyError, ValueError) as e:
            sys.exit(f"Invalid worker payload {path}: {e}")

        apply_calendar(session, calendars.get(session.worker_id))
        if args.auto_fill == "all" and not session.toggle_all_auto_fill(True):
            message = f"No calendar hours to auto-fill for worker {session.worker_id}."
            if args.json:
                # Keep stdout parseable.
                logger.warning(message)
            else:
                console.print_warning(message)

        result = session.calculate()
        row = result_to_json(result, worker_id=session.worker_id, worker_name=session.worker_name)
        try:
            validate_output(row, "calculation_result", mode=output_mode, source=session.worker_id)
        except ContractError as e:
            sys.exit(str(e))
        results.append(result)
        rows.append(row)

    summary = summarize_results(results)
    report = {"results": rows, "summary": summary}

    if args.json_out:
        write_json(args.json_out, report)
    if args.md_out:
        write_markdown(args.md_out, results_to_markdown(rows, summary))

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        output_human(rows, summary)
        if args.json_out:
            console.print_success(f"Results JSON: {args.json_out}")
        if args.md_out:
            console.print_success(f"Markdown report: {args.md_out}")


if __name__ == "__main__":
    main()
