#!/usr/bin/env python3
"""
Allocation Engine

Turns contract inputs, the other-payments ledger and the manual form fields into
a per-company breakdown whose amounts always add up to the worker's total.

Two modes:
1. Flat (no contract data): a single base salary plus overtime and adjustments,
   with an empty company breakdown.
2. Company-aware: base pay comes from the contracts, overtime is paid at the
   hour-weighted average rate, and everything is spread across companies by
   their share of the regular hours.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping

from payroll_allocator.aggregator import CompanyAggregate, aggregate_contract_inputs
from payroll_allocator.core import (
    UNASSIGNED_COMPANY_KEY,
    UNKNOWN_COMPANY_KEY,
    ZERO,
    company_sort_key,
    is_valid_company_name,
    parse_amount,
)
from payroll_allocator.ledger import (
    OtherPaymentsLedger,
    PaymentCategory,
    PaymentFlow,
    PaymentMethod,
)
from payroll_allocator.worker_contracts import ContractEntry, ContractInput

OVERTIME_MULTIPLIER = Decimal("1.5")
RECONCILIATION_TOLERANCE = Decimal("0.01")
UNASSIGNED_COMPANY_NAME = "Unassigned"


@dataclass(frozen=True)
class ManualFields:
    base_salary: str = ""
    hours_worked: str = ""
    overtime_hours: str = "0"
    bonuses: str = "0"
    deductions: str = "0"
    period: str = "monthly"
    notes: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> ManualFields:
        payload = payload or {}
        defaults = cls()

        def text(key: str, default: str) -> str:
            value = payload.get(key)
            return default if value is None else str(value)

        return cls(
            base_salary=text("base_salary", defaults.base_salary),
            hours_worked=text("hours_worked", defaults.hours_worked),
            overtime_hours=text("overtime_hours", defaults.overtime_hours),
            bonuses=text("bonuses", defaults.bonuses),
            deductions=text("deductions", defaults.deductions),
            period=text("period", defaults.period),
            notes=text("notes", defaults.notes),
        )


@dataclass(frozen=True)
class OtherPaymentDetail:
    id: str
    label: str
    amount: Decimal
    category: PaymentCategory
    flow: PaymentFlow
    payment_method: PaymentMethod


@dataclass
class CompanyAllocation:
    company_key: str
    company_id: str | None
    name: str
    hours: Decimal
    amount: Decimal
    other_payments: list[OtherPaymentDetail] | None = None


@dataclass
class OtherPaymentsBucket:
    company_key: str
    company_name: str
    company_id: str | None = None
    incomes: Decimal = ZERO
    expenses: Decimal = ZERO
    details: list[OtherPaymentDetail] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.incomes - self.expenses

    def add(self, detail: OtherPaymentDetail) -> None:
        if detail.flow is PaymentFlow.INCOME:
            self.incomes += detail.amount
        else:
            self.expenses += -detail.amount
        self.details.append(detail)


@dataclass
class OtherPaymentsSummary:
    by_company: list[OtherPaymentsBucket]
    unassigned: OtherPaymentsBucket


@dataclass
class CalculationResult:
    total_amount: Decimal
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    company_breakdown: list[CompanyAllocation]
    uses_calendar_hours: bool
    other_payments_summary: OtherPaymentsSummary


def company_names_by_key(entries: Iterable[ContractEntry]) -> dict[str, str]:
    return {entry.company_key: entry.company_name for entry in entries}


def name_for_company_key(company_key: str, known_names: Mapping[str, str]) -> str:
    if company_key == UNASSIGNED_COMPANY_KEY:
        return UNASSIGNED_COMPANY_NAME
    if company_key in known_names:
        return known_names[company_key]
    if company_key.startswith("name:"):
        return company_key[len("name:") :]
    return company_key


def company_id_from_key(company_key: str) -> str | None:
    if company_key.startswith("id:"):
        return company_key[len("id:") :]
    return None


def ledger_company_key(company_key: str | None, known_names: Mapping[str, str]) -> str:
    # Items pinned to a nameless or invalid company are treated as unassigned.
    if not company_key or company_key == UNKNOWN_COMPANY_KEY:
        return UNASSIGNED_COMPANY_KEY
    if company_key == UNASSIGNED_COMPANY_KEY:
        return company_key
    name = name_for_company_key(company_key, known_names)
    if company_key.startswith("name:") or company_key in known_names:
        if not is_valid_company_name(name):
            return UNASSIGNED_COMPANY_KEY
    return company_key


def collect_adjustments(
    ledger: OtherPaymentsLedger,
    known_names: Mapping[str, str],
) -> dict[str, OtherPaymentsBucket]:
    """Group every non-zero ledger item by company key with its signed amount."""
    buckets: dict[str, OtherPaymentsBucket] = {}
    for category, item in ledger.iter_items():
        amount = item.parsed_amount
        if amount == ZERO:
            continue
        company_key = ledger_company_key(item.company_key, known_names)
        bucket = buckets.get(company_key)
        if bucket is None:
            bucket = OtherPaymentsBucket(
                company_key=company_key,
                company_name=name_for_company_key(company_key, known_names),
                company_id=company_id_from_key(company_key),
            )
            buckets[company_key] = bucket
        bucket.add(
            OtherPaymentDetail(
                id=item.id,
                label=item.label,
                amount=category.signed(amount),
                category=category,
                flow=category.flow,
                payment_method=item.payment_method,
            )
        )
    return buckets


def summarize_other_payments(adjustments: Mapping[str, OtherPaymentsBucket]) -> OtherPaymentsSummary:
    by_company = sorted(
        (bucket for key, bucket in adjustments.items() if key != UNASSIGNED_COMPANY_KEY),
        key=lambda bucket: (company_sort_key(bucket.company_name), bucket.company_key),
    )
    unassigned = adjustments.get(UNASSIGNED_COMPANY_KEY) or OtherPaymentsBucket(
        company_key=UNASSIGNED_COMPANY_KEY,
        company_name=UNASSIGNED_COMPANY_NAME,
    )
    return OtherPaymentsSummary(by_company=by_company, unassigned=unassigned)


def reconcile_breakdown(breakdown: list[CompanyAllocation], total_amount: Decimal) -> None:
    """Put any drift beyond one cent on the last entry so the sum matches the total."""
    if not breakdown:
        return
    computed = sum((item.amount for item in breakdown), ZERO)
    adjustment = total_amount - computed
    if abs(adjustment) > RECONCILIATION_TOLERANCE:
        breakdown[-1].amount += adjustment


def compute_flat_allocation(
    manual_fields: ManualFields,
    bonuses: Decimal,
    deductions: Decimal,
    overtime_hours: Decimal,
    other_payments_summary: OtherPaymentsSummary,
) -> CalculationResult:
    base_salary = parse_amount(manual_fields.base_salary)
    regular_hours = parse_amount(manual_fields.hours_worked)

    overtime_pay = ZERO
    if overtime_hours > ZERO and regular_hours > ZERO:
        overtime_pay = (base_salary / regular_hours) * overtime_hours * OVERTIME_MULTIPLIER

    return CalculationResult(
        total_amount=base_salary + overtime_pay + bonuses - deductions,
        total_hours=regular_hours + overtime_hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        company_breakdown=[],
        uses_calendar_hours=False,
        other_payments_summary=other_payments_summary,
    )


def allocate_by_company(
    companies: list[CompanyAggregate],
    adjustments: Mapping[str, OtherPaymentsBucket],
    total_amount: Decimal,
    base_amount_total: Decimal,
    amount_before_adjustments: Decimal,
    regular_hours: Decimal,
) -> list[CompanyAllocation]:
    base_by_key = {company.company_key: company for company in companies}
    extra_keys = sorted(
        (key for key in adjustments if key not in base_by_key),
        key=lambda key: (company_sort_key(adjustments[key].company_name), key),
    )
    ordered_keys = [company.company_key for company in companies] + extra_keys
    company_count = len(ordered_keys)

    # Pinned ledger amounts reach their company directly; only the rest
    # (overtime pay and the manual bonus/deduction fields) is spread by weight.
    pinned_net = sum((bucket.total for bucket in adjustments.values()), ZERO)
    extras = total_amount - base_amount_total - pinned_net

    breakdown: list[CompanyAllocation] = []
    for company_key in ordered_keys:
        base_entry = base_by_key.get(company_key)
        adjustment = adjustments.get(company_key)
        hours_share = base_entry.hours if base_entry is not None else ZERO

        if regular_hours > ZERO:
            weight = hours_share / regular_hours
            base_share = weight * base_amount_total
        else:
            weight = Decimal(1) / company_count
            base_share = base_amount_total / company_count if amount_before_adjustments > ZERO else ZERO

        amount = base_share + extras * weight + (adjustment.total if adjustment is not None else ZERO)

        source: CompanyAggregate | OtherPaymentsBucket = base_entry if base_entry is not None else adjustments[company_key]
        breakdown.append(
            CompanyAllocation(
                company_key=company_key,
                company_id=source.company_id,
                name=source.company_name,
                hours=hours_share,
                amount=amount,
                other_payments=list(adjustment.details) if adjustment is not None else None,
            )
        )

    reconcile_breakdown(breakdown, total_amount)
    return breakdown


def compute_allocation(
    contract_inputs: Mapping[str, ContractInput],
    contract_entries: Mapping[str, ContractEntry] | Iterable[ContractEntry],
    ledger: OtherPaymentsLedger | None = None,
    manual_fields: ManualFields | None = None,
) -> CalculationResult:
    """
    Compute the worker's total pay and its per-company breakdown.

    Pure and deterministic: identical inputs always give identical results.
    Malformed numbers count as zero and companies with an invalid name are left
    out; no input makes this function raise.
    """
    entries = list(contract_entries.values()) if isinstance(contract_entries, Mapping) else list(contract_entries)
    ledger = ledger or OtherPaymentsLedger()
    manual_fields = manual_fields or ManualFields()

    overtime_hours = parse_amount(manual_fields.overtime_hours)
    ledger_totals = ledger.totals()
    bonuses = parse_amount(manual_fields.bonuses) + ledger_totals.additions
    deductions = parse_amount(manual_fields.deductions) + ledger_totals.subtractions

    known_names = company_names_by_key(entries)
    adjustments = collect_adjustments(ledger, known_names)
    other_payments_summary = summarize_other_payments(adjustments)

    aggregates = aggregate_contract_inputs(contract_inputs, entries)
    if not aggregates.has_entries:
        return compute_flat_allocation(manual_fields, bonuses, deductions, overtime_hours, other_payments_summary)

    companies = [company for company in aggregates.company_list if is_valid_company_name(company.company_name)]
    regular_hours = sum((company.hours for company in companies), ZERO)
    base_amount_total = sum((company.base_amount for company in companies), ZERO)

    average_rate = ZERO
    if regular_hours > ZERO and base_amount_total > ZERO:
        average_rate = base_amount_total / regular_hours

    overtime_pay = ZERO
    if overtime_hours > ZERO and average_rate > ZERO:
        overtime_pay = overtime_hours * average_rate * OVERTIME_MULTIPLIER

    amount_before_adjustments = base_amount_total + overtime_pay
    total_amount = amount_before_adjustments + bonuses - deductions

    breakdown = allocate_by_company(
        companies,
        adjustments,
        total_amount,
        base_amount_total,
        amount_before_adjustments,
        regular_hours,
    )

    return CalculationResult(
        total_amount=total_amount,
        total_hours=regular_hours + overtime_hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        company_breakdown=breakdown,
        uses_calendar_hours=regular_hours > ZERO,
        other_payments_summary=other_payments_summary,
    )
