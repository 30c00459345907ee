#!/usr/bin/env python3

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping

from payroll_allocator.core import (
    company_sort_key,
    is_valid_company_name,
    parse_optional_rate,
    resolve_company_identity,
    trim_to_none,
)


@dataclass(frozen=True)
class ContractEntry:
    contract_key: str
    company_key: str
    company_id: str | None
    company_name: str
    has_contract: bool
    label: str
    default_hourly_rate: Decimal | None = None
    description: str | None = None


@dataclass(frozen=True)
class ContractInput:
    hours: str = ""
    base_salary: str = ""
    hourly_rate: str | None = None


@dataclass
class CompanyGroup:
    company_key: str
    company_id: str | None
    company_name: str
    entries: list[ContractEntry] = field(default_factory=list)


@dataclass
class CompanyContractStructure:
    groups: list[CompanyGroup]
    contract_map: dict[str, ContractEntry]

    def group(self, company_key: str) -> CompanyGroup:
        for group in self.groups:
            if group.company_key == company_key:
                return group
        raise KeyError(f"Unknown company group: {company_key}")


CONTRACT_INPUT_FIELDS = ("hours", "base_salary", "hourly_rate")


def contract_input_from_dict(payload: Mapping[str, Any]) -> ContractInput:
    rate = payload.get("hourly_rate", payload.get("hourlyRate"))
    return ContractInput(
        hours=str(payload.get("hours") or ""),
        base_salary=str(payload.get("base_salary", payload.get("baseSalary")) or ""),
        hourly_rate=None if rate is None else str(rate),
    )


def build_company_lookup(relations: Iterable[Mapping[str, Any]] | None) -> dict[str, str]:
    lookup: dict[str, str] = {}
    for relation in relations or []:
        company_id = trim_to_none(relation.get("companyId"))
        company_name = trim_to_none(relation.get("companyName"))
        if company_id and company_name:
            lookup[company_id] = company_name
    return lookup


def contract_label(record: Mapping[str, Any], position: int) -> str:
    for key in ("label", "position", "description"):
        candidate = trim_to_none(record.get(key))
        if candidate:
            return candidate
    return f"Contract {position + 1}"


def build_contract_structure(
    company_contracts: Mapping[str, list[Mapping[str, Any]]] | None,
    company_lookup: Mapping[str, str] | None = None,
    company_stats: Mapping[str, Mapping[str, Any]] | None = None,
) -> CompanyContractStructure:
    """
    Normalize a worker's raw per-company contract records.

    Args:
        company_contracts: company name -> raw records
            `{id, hasContract, label?, position?, description?, hourlyRate?, companyId?}`.
        company_lookup: company id -> display name, used when a company is only
            known by id.
        company_stats: company name -> `{companyId}`; contributes names and the
            preferred id for each company.

    Returns:
        Groups ordered alphabetically by company name, each holding only the
        records flagged `hasContract`, and a flat `contract_key -> ContractEntry` map.
        Companies with an invalid display name or without any contract are dropped.
    """
    company_contracts = company_contracts or {}
    company_lookup = company_lookup or {}
    company_stats = company_stats or {}

    known_names = {
        name
        for name in list(company_contracts.keys()) + list(company_stats.keys())
        if isinstance(name, str) and name.strip()
    }

    groups: list[CompanyGroup] = []
    groups_by_key: dict[str, CompanyGroup] = {}
    contract_map: dict[str, ContractEntry] = {}

    for index, company_name in enumerate(sorted(known_names, key=lambda name: (company_sort_key(name), name))):
        trimmed_name = company_name.strip()
        stats = company_stats.get(company_name) or {}
        preferred_id = trim_to_none(stats.get("companyId"))
        resolved_name = trimmed_name or (company_lookup.get(preferred_id) if preferred_id else None)

        if resolved_name is None or not is_valid_company_name(resolved_name):
            continue

        records = [record for record in company_contracts.get(company_name) or [] if record.get("hasContract") is True]
        if not records:
            continue

        key_base = preferred_id or trimmed_name or f"company-{index}"
        entries: list[ContractEntry] = []
        for position, record in enumerate(records):
            raw_id = record.get("id")
            record_id = trim_to_none(raw_id) if isinstance(raw_id, (str, int)) and not isinstance(raw_id, bool) else None
            contract_key = f"{key_base}-{record_id or f'contract-{index}-{position}'}"

            label = contract_label(record, position)
            description = trim_to_none(record.get("description")) or trim_to_none(record.get("position"))
            entry_company_id = trim_to_none(record.get("companyId")) or preferred_id

            entry = ContractEntry(
                contract_key=contract_key,
                company_key=resolve_company_identity(entry_company_id, resolved_name),
                company_id=entry_company_id,
                company_name=resolved_name,
                has_contract=True,
                label=label,
                default_hourly_rate=parse_optional_rate(record.get("hourlyRate")),
                description=description if description and description != label else None,
            )
            contract_map[contract_key] = entry
            entries.append(entry)

        group_key = resolve_company_identity(preferred_id, resolved_name)
        existing = groups_by_key.get(group_key)
        if existing is not None:
            # Two names pointing at the same company id share one group.
            existing.entries.extend(entries)
            continue

        group = CompanyGroup(
            company_key=group_key,
            company_id=preferred_id,
            company_name=resolved_name,
            entries=entries,
        )
        groups_by_key[group_key] = group
        groups.append(group)

    return CompanyContractStructure(groups=groups, contract_map=contract_map)
