#!/usr/bin/env python3
"""
Auto-fill of contract hours from calendar-tracked hours.

Every function here is pure: it receives the current `AutoFillState` and
contract inputs and returns new ones. The caller (usually `WorkerSession`)
owns the state and threads it from call to call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Iterable, Mapping, NamedTuple

from payroll_allocator.core import ZERO, hours_to_input, parse_amount, round_hours, trim_to_none
from payroll_allocator.worker_contracts import CONTRACT_INPUT_FIELDS, CompanyGroup, ContractInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AutoFillState:
    enabled_groups: frozenset[str] = frozenset()
    auto_filled_keys: Mapping[str, frozenset[str]] = field(default_factory=dict)
    manual_overrides: frozenset[str] = frozenset()

    def is_enabled(self, company_key: str) -> bool:
        return company_key in self.enabled_groups


class AutoFillOutcome(NamedTuple):
    inputs: dict[str, ContractInput]
    state: AutoFillState
    accepted: bool = True


def calendar_hours_for_company(
    hours_by_date: Mapping[str, Any] | None,
    company_id: str | None = None,
    company_name: str | None = None,
) -> Decimal:
    """
    Total calendar hours for one company across every day of the period.

    Day summaries look like `{"companies": [{"companyId", "name", "hours"}]}`.
    Companies are matched by id first, then by trimmed, case-insensitive name.
    """
    totals: dict[str, dict[str, Any]] = {}
    for day_summary in (hours_by_date or {}).values():
        if not isinstance(day_summary, Mapping):
            continue
        companies = day_summary.get("companies")
        if not isinstance(companies, list):
            continue
        for company in companies:
            if not isinstance(company, Mapping):
                continue
            hours = parse_amount(company.get("hours"))
            if hours <= ZERO:
                continue
            entry_id = trim_to_none(company.get("companyId"))
            normalized_name = (trim_to_none(company.get("name")) or "").lower()
            key = entry_id or f"name:{normalized_name}"
            if key in totals:
                totals[key]["hours"] += hours
            else:
                totals[key] = {"company_id": entry_id, "normalized_name": normalized_name, "hours": hours}

    wanted_id = trim_to_none(company_id)
    if wanted_id:
        for entry in totals.values():
            if entry["company_id"] == wanted_id:
                return Decimal(entry["hours"])

    wanted_name = (trim_to_none(company_name) or "").lower()
    if wanted_name:
        for entry in totals.values():
            if entry["normalized_name"] == wanted_name:
                return Decimal(entry["hours"])

    return ZERO


def clear_auto_filled_hours(
    state: AutoFillState,
    inputs: Mapping[str, ContractInput],
    company_key: str,
) -> AutoFillOutcome:
    """Reset exactly the hours auto-fill wrote for this group and disable it."""
    filled_keys = state.auto_filled_keys.get(company_key, frozenset())
    updated = dict(inputs)
    for contract_key in sorted(filled_keys):
        existing = updated.get(contract_key)
        if existing is not None and existing.hours != "":
            updated[contract_key] = replace(existing, hours="")

    remaining = {key: keys for key, keys in state.auto_filled_keys.items() if key != company_key}
    new_state = replace(
        state,
        enabled_groups=state.enabled_groups - {company_key},
        auto_filled_keys=remaining,
    )
    return AutoFillOutcome(updated, new_state)


def apply_auto_fill_hours(
    state: AutoFillState,
    inputs: Mapping[str, ContractInput],
    group: CompanyGroup,
    calendar_hours: Decimal,
) -> AutoFillOutcome:
    if calendar_hours <= ZERO or not group.entries:
        logger.debug("No calendar hours for %s; auto-fill stays disabled.", group.company_key)
        outcome = clear_auto_filled_hours(state, inputs, group.company_key)
        return outcome._replace(accepted=False)

    per_entry = round_hours(calendar_hours / len(group.entries))
    new_hours = hours_to_input(per_entry)

    updated = dict(inputs)
    filled: set[str] = set()
    for entry in group.entries:
        if entry.contract_key in state.manual_overrides:
            continue
        existing = updated.get(entry.contract_key)
        if existing is not None:
            if existing.hours != new_hours:
                updated[entry.contract_key] = replace(existing, hours=new_hours)
        elif new_hours:
            updated[entry.contract_key] = ContractInput(hours=new_hours)
        filled.add(entry.contract_key)

    auto_filled = dict(state.auto_filled_keys)
    auto_filled[group.company_key] = frozenset(filled)
    new_state = replace(
        state,
        enabled_groups=state.enabled_groups | {group.company_key},
        auto_filled_keys=auto_filled,
    )
    return AutoFillOutcome(updated, new_state)


def toggle_auto_fill(
    state: AutoFillState,
    inputs: Mapping[str, ContractInput],
    group: CompanyGroup,
    enabled: bool,
    calendar_hours: Decimal,
) -> AutoFillOutcome:
    """
    Switch auto-fill on or off for one company group.

    Enabling is rejected (state stays disabled, `accepted` is False) when the
    calendar has no positive hours for the company.
    """
    if enabled:
        return apply_auto_fill_hours(state, inputs, group, calendar_hours)
    return clear_auto_filled_hours(state, inputs, group.company_key)


def toggle_all_auto_fill(
    state: AutoFillState,
    inputs: Mapping[str, ContractInput],
    groups: Iterable[CompanyGroup],
    enable: bool,
    calendar_hours: Mapping[str, Decimal],
) -> AutoFillOutcome:
    outcome = AutoFillOutcome(dict(inputs), state)
    any_enabled = False
    for group in groups:
        if enable:
            hours = calendar_hours.get(group.company_key, ZERO)
            outcome = apply_auto_fill_hours(outcome.state, outcome.inputs, group, hours)
            any_enabled = any_enabled or outcome.accepted
        else:
            outcome = clear_auto_filled_hours(outcome.state, outcome.inputs, group.company_key)

    if enable:
        return outcome._replace(accepted=any_enabled)
    return outcome._replace(accepted=True)


def refresh_auto_fill(
    state: AutoFillState,
    inputs: Mapping[str, ContractInput],
    groups: Iterable[CompanyGroup],
    calendar_hours: Mapping[str, Decimal],
) -> AutoFillOutcome:
    """Re-run auto-fill for every enabled group, e.g. after new calendar data arrives."""
    outcome = AutoFillOutcome(dict(inputs), state)
    for group in groups:
        if not outcome.state.is_enabled(group.company_key):
            continue
        hours = calendar_hours.get(group.company_key, ZERO)
        if hours > ZERO:
            outcome = apply_auto_fill_hours(outcome.state, outcome.inputs, group, hours)
        else:
            logger.info("Calendar hours for %s dropped to zero; disabling auto-fill.", group.company_key)
            outcome = clear_auto_filled_hours(outcome.state, outcome.inputs, group.company_key)
    return outcome._replace(accepted=True)


def record_manual_edit(
    state: AutoFillState,
    inputs: Mapping[str, ContractInput],
    contract_key: str,
    field_name: str,
    value: str | None,
) -> AutoFillOutcome:
    """
    Apply a user edit to one contract input.

    Typing hours marks the contract as manually overridden so later auto-fill
    passes leave it alone; clearing the field removes the marker.
    """
    if field_name not in CONTRACT_INPUT_FIELDS:
        raise ValueError(f"Unsupported contract input field: {field_name}")

    updated = dict(inputs)
    existing = updated.get(contract_key, ContractInput())
    if field_name == "hourly_rate":
        updated[contract_key] = replace(existing, hourly_rate=value)
    else:
        updated[contract_key] = replace(existing, **{field_name: value or ""})

    if field_name != "hours":
        return AutoFillOutcome(updated, state)

    if (value or "").strip():
        overrides = state.manual_overrides | {contract_key}
    else:
        overrides = state.manual_overrides - {contract_key}

    auto_filled = {key: keys - {contract_key} for key, keys in state.auto_filled_keys.items()}
    return AutoFillOutcome(updated, replace(state, manual_overrides=overrides, auto_filled_keys=auto_filled))
