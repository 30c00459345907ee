#!/usr/bin/env python3

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping

from payroll_allocator.core import ZERO, company_sort_key, parse_amount, resolve_company_identity
from payroll_allocator.worker_contracts import ContractEntry, ContractInput


@dataclass
class CompanyAggregate:
    company_key: str
    company_id: str | None
    company_name: str
    hours: Decimal = ZERO
    base_amount: Decimal = ZERO


@dataclass
class ManualContractAggregates:
    has_entries: bool = False
    total_hours: Decimal = ZERO
    total_base_amount: Decimal = ZERO
    company_list: list[CompanyAggregate] = field(default_factory=list)


def contract_base_amount(contract_input: ContractInput | None, entry: ContractEntry) -> tuple[Decimal, Decimal]:
    """Return `(hours, base_amount)` for one contract."""
    contract_input = contract_input or ContractInput()
    hours = parse_amount(contract_input.hours)
    explicit_base = parse_amount(contract_input.base_salary)

    hourly_rate = parse_amount(contract_input.hourly_rate)
    if hourly_rate == ZERO:
        hourly_rate = entry.default_hourly_rate or ZERO

    if explicit_base > ZERO:
        return hours, explicit_base
    if hours > ZERO and hourly_rate > ZERO:
        return hours, hours * hourly_rate
    return hours, ZERO


def aggregate_contract_inputs(
    inputs: Mapping[str, ContractInput],
    contract_entries: Mapping[str, ContractEntry] | Iterable[ContractEntry],
) -> ManualContractAggregates:
    if isinstance(contract_entries, Mapping):
        entries = list(contract_entries.values())
    else:
        entries = list(contract_entries)

    aggregates = ManualContractAggregates()
    per_company: dict[str, CompanyAggregate] = {}

    for entry in entries:
        hours, base_amount = contract_base_amount(inputs.get(entry.contract_key), entry)

        if hours != ZERO or base_amount != ZERO:
            aggregates.has_entries = True
        aggregates.total_hours += hours
        aggregates.total_base_amount += base_amount

        company_key = resolve_company_identity(entry.company_id, entry.company_name)
        company = per_company.get(company_key)
        if company is None:
            company = CompanyAggregate(
                company_key=company_key,
                company_id=entry.company_id,
                company_name=entry.company_name,
            )
            per_company[company_key] = company
        company.hours += hours
        company.base_amount += base_amount

    aggregates.company_list = sorted(per_company.values(), key=lambda c: company_sort_key(c.company_name))
    return aggregates
