#!/usr/bin/env python3

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from payroll_allocator.allocation import CalculationResult, ManualFields, compute_allocation
from payroll_allocator.autofill import (
    AutoFillOutcome,
    AutoFillState,
    calendar_hours_for_company,
    record_manual_edit,
    refresh_auto_fill,
    toggle_all_auto_fill,
    toggle_auto_fill,
)
from payroll_allocator.ledger import OtherPaymentsLedger
from payroll_allocator.worker_contracts import (
    CompanyContractStructure,
    ContractInput,
    build_company_lookup,
    build_contract_structure,
    contract_input_from_dict,
)

logger = logging.getLogger(__name__)

MANUAL_FIELD_NAMES = frozenset(f.name for f in fields(ManualFields))


@dataclass
class WorkerSession:
    """
    All mutable calculation state for one worker, threaded explicitly.

    Calendar data is keyed by the active period: hours that arrive for any
    other period are stale and ignored. Missing calendar data simply means
    zero calendar hours.
    """

    worker_id: str
    structure: CompanyContractStructure
    worker_name: str = ""
    inputs: dict[str, ContractInput] = field(default_factory=dict)
    ledger: OtherPaymentsLedger = field(default_factory=OtherPaymentsLedger)
    manual_fields: ManualFields = field(default_factory=ManualFields)
    auto_fill: AutoFillState = field(default_factory=AutoFillState)
    period_start: date | None = None
    hours_by_date: dict[str, Any] = field(default_factory=dict)

    def calendar_hours_by_group(self) -> dict[str, Decimal]:
        return {
            group.company_key: calendar_hours_for_company(self.hours_by_date, group.company_id, group.company_name)
            for group in self.structure.groups
        }

    def _apply(self, outcome: AutoFillOutcome) -> bool:
        self.inputs = outcome.inputs
        self.auto_fill = outcome.state
        return outcome.accepted

    def set_contract_input(self, contract_key: str, field_name: str, value: str | None) -> None:
        self._apply(record_manual_edit(self.auto_fill, self.inputs, contract_key, field_name, value))

    def set_manual_field(self, field_name: str, value: str) -> None:
        if field_name not in MANUAL_FIELD_NAMES:
            raise ValueError(f"Unsupported manual field: {field_name}")
        self.manual_fields = replace(self.manual_fields, **{field_name: value})

    def toggle_auto_fill(self, company_key: str, enabled: bool) -> bool:
        group = self.structure.group(company_key)
        hours = calendar_hours_for_company(self.hours_by_date, group.company_id, group.company_name)
        accepted = self._apply(toggle_auto_fill(self.auto_fill, self.inputs, group, enabled, hours))
        if enabled and not accepted:
            logger.info("Auto-fill for %s rejected: no calendar hours in the active period.", group.company_name)
        return accepted

    def toggle_all_auto_fill(self, enable: bool) -> bool:
        outcome = toggle_all_auto_fill(
            self.auto_fill,
            self.inputs,
            self.structure.groups,
            enable,
            self.calendar_hours_by_group(),
        )
        return self._apply(outcome)

    def refresh(self) -> None:
        self._apply(refresh_auto_fill(self.auto_fill, self.inputs, self.structure.groups, self.calendar_hours_by_group()))

    def change_period(self, period_start: date) -> None:
        self.period_start = period_start
        self.hours_by_date = {}
        self.refresh()

    def receive_calendar_hours(self, period_start: date, hours_by_date: Mapping[str, Any] | None) -> bool:
        if period_start != self.period_start:
            logger.debug(
                "Ignoring calendar hours for %s (worker %s): active period is %s.",
                period_start,
                self.worker_id,
                self.period_start,
            )
            return False
        self.hours_by_date = dict(hours_by_date or {})
        self.refresh()
        return True

    def calendar_fetch_failed(self, period_start: date, error: BaseException | str) -> None:
        if period_start != self.period_start:
            return
        logger.warning("Could not load calendar hours for worker %s: %s", self.worker_id, error)
        self.hours_by_date = {}
        self.refresh()

    def calculate(self) -> CalculationResult:
        return compute_allocation(self.inputs, self.structure.contract_map, self.ledger, self.manual_fields)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> WorkerSession:
        """
        Build a session from a worker payload (see `schemas/worker_payload.json`).

        Contract inputs in the payload count as typed by the user, so hours
        present there are protected from auto-fill.
        """
        lookup = dict(payload.get("company_lookup") or {})
        lookup.update(build_company_lookup(payload.get("company_relations")))
        structure = build_contract_structure(
            payload.get("company_contracts"),
            company_lookup=lookup,
            company_stats=payload.get("company_stats"),
        )

        session = cls(
            worker_id=str(payload.get("worker_id", "")),
            worker_name=str(payload.get("worker_name") or ""),
            structure=structure,
            ledger=OtherPaymentsLedger.from_dict(payload.get("other_payments")),
            manual_fields=ManualFields.from_dict(payload.get("manual_fields")),
        )

        for contract_key, raw_input in (payload.get("contract_inputs") or {}).items():
            if contract_key not in structure.contract_map:
                logger.warning("Skipping input for unknown contract %s (worker %s).", contract_key, session.worker_id)
                continue
            contract_input = contract_input_from_dict(raw_input)
            session.set_contract_input(contract_key, "base_salary", contract_input.base_salary)
            session.set_contract_input(contract_key, "hourly_rate", contract_input.hourly_rate)
            if contract_input.hours:
                session.set_contract_input(contract_key, "hours", contract_input.hours)

        calendar = payload.get("calendar") or {}
        if calendar.get("period_start"):
            period_start = date.fromisoformat(calendar["period_start"])
            session.change_period(period_start)
            session.receive_calendar_hours(period_start, calendar.get("hours_by_date"))

        auto_fill = payload.get("auto_fill") or []
        if auto_fill == "all":
            session.toggle_all_auto_fill(True)
        else:
            for company_key in auto_fill:
                session.toggle_auto_fill(company_key, True)

        return session
