#!/usr/bin/env python3

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable

from payroll_allocator.allocation import (
    CalculationResult,
    OtherPaymentDetail,
    OtherPaymentsBucket,
)
from payroll_allocator.core import ZERO, as_float, company_sort_key, format_amount

SCHEMA_VERSION = "1.0.0"


def detail_to_json(detail: OtherPaymentDetail) -> dict[str, Any]:
    return {
        "id": detail.id,
        "label": detail.label,
        "amount": as_float(detail.amount),
        "category": detail.category.value,
        "type": detail.flow.value,
        "payment_method": detail.payment_method.value,
    }


def bucket_to_json(bucket: OtherPaymentsBucket) -> dict[str, Any]:
    return {
        "company_key": bucket.company_key,
        "company_name": bucket.company_name,
        "company_id": bucket.company_id,
        "incomes": as_float(bucket.incomes),
        "expenses": as_float(bucket.expenses),
        "total": as_float(bucket.total),
        "details": [detail_to_json(detail) for detail in bucket.details],
    }


def result_to_json(
    result: CalculationResult,
    worker_id: str | None = None,
    worker_name: str | None = None,
) -> dict[str, Any]:
    """Serialize a result; amounts are rounded to cents, hours to two decimals."""
    return {
        "schema_version": SCHEMA_VERSION,
        "worker_id": worker_id,
        "worker_name": worker_name,
        "total_amount": as_float(result.total_amount),
        "total_hours": as_float(result.total_hours),
        "regular_hours": as_float(result.regular_hours),
        "overtime_hours": as_float(result.overtime_hours),
        "uses_calendar_hours": result.uses_calendar_hours,
        "company_breakdown": [
            {
                "company_key": company.company_key,
                "company_id": company.company_id,
                "name": company.name,
                "hours": as_float(company.hours),
                "amount": as_float(company.amount),
                "other_payments": (
                    [detail_to_json(detail) for detail in company.other_payments]
                    if company.other_payments is not None
                    else None
                ),
            }
            for company in result.company_breakdown
        ],
        "other_payments_summary": {
            "by_company": [bucket_to_json(bucket) for bucket in result.other_payments_summary.by_company],
            "unassigned": bucket_to_json(result.other_payments_summary.unassigned),
        },
    }


def summarize_results(results: Iterable[CalculationResult]) -> dict[str, Any]:
    """
    Aggregate several workers' results for payroll-wide totals.

    Company totals are keyed by company key; entries from different workers
    that share a key are added together.
    """
    total_amount = ZERO
    regular_hours = ZERO
    overtime_hours = ZERO
    total_hours = ZERO
    companies: dict[str, dict[str, Any]] = {}
    worker_count = 0

    for result in results:
        worker_count += 1
        total_amount += result.total_amount
        regular_hours += result.regular_hours
        overtime_hours += result.overtime_hours
        total_hours += result.total_hours
        for company in result.company_breakdown:
            entry = companies.setdefault(
                company.company_key,
                {"company_key": company.company_key, "name": company.name, "hours": ZERO, "amount": ZERO},
            )
            entry["hours"] += company.hours
            entry["amount"] += company.amount

    ordered = sorted(companies.values(), key=lambda entry: (company_sort_key(entry["name"]), entry["company_key"]))
    return {
        "schema_version": SCHEMA_VERSION,
        "worker_count": worker_count,
        "total_amount": as_float(total_amount),
        "regular_hours": as_float(regular_hours),
        "overtime_hours": as_float(overtime_hours),
        "total_hours": as_float(total_hours),
        "companies": [
            {
                "company_key": entry["company_key"],
                "name": entry["name"],
                "hours": as_float(entry["hours"]),
                "amount": as_float(entry["amount"]),
            }
            for entry in ordered
        ],
    }


def results_to_markdown(rows: list[dict[str, Any]], summary: dict[str, Any] | None = None) -> str:
    """Render serialized results (see `result_to_json`) as a Markdown payroll report."""
    lines: list[str] = []

    lines.append(f"# Payroll Allocation Report (v{SCHEMA_VERSION})")
    lines.append("")

    for row in rows:
        title = row.get("worker_name") or row.get("worker_id") or "Worker"
        lines.append(f"## {title}")
        lines.append(f"- Total Amount: {format_amount(Decimal(str(row['total_amount'])))}")
        lines.append(f"- Regular Hours: {row['regular_hours']:.2f}")
        lines.append(f"- Overtime Hours: {row['overtime_hours']:.2f}")
        lines.append(f"- Uses Calendar Hours: `{row['uses_calendar_hours']}`")

        if row["company_breakdown"]:
            lines.append("")
            lines.append("| Company | Hours | Amount | Other Payments |")
            lines.append("| :--- | ---: | ---: | :--- |")
            for company in row["company_breakdown"]:
                others = company.get("other_payments") or []
                others_str = ", ".join(f"{item['label'] or item['category']} ({item['amount']:+.2f})" for item in others)
                lines.append(
                    f"| {company['name']} | {company['hours']:.2f} | "
                    f"{format_amount(Decimal(str(company['amount'])))} | {others_str or '-'} |"
                )
        lines.append("")

    if summary is not None and summary["worker_count"] > 1:
        lines.append("## Summary")
        lines.append(f"- Workers: {summary['worker_count']}")
        lines.append(f"- Total Amount: {format_amount(Decimal(str(summary['total_amount'])))}")
        lines.append(f"- Total Hours: {summary['total_hours']:.2f}")
        lines.append("")

    return "\n".join(lines)
