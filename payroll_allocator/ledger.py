#!/usr/bin/env python3

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Mapping
from uuid import uuid4

from payroll_allocator.core import ZERO, parse_amount, trim_to_none


class PaymentCategory(str, Enum):
    SUPPLEMENTS = "supplements"
    BONUSES = "bonuses"
    DISCOUNTS = "discounts"
    DEBTS = "debts"
    DEDUCTIONS = "deductions"

    @property
    def is_credit(self) -> bool:
        return self in CREDIT_CATEGORIES

    @property
    def flow(self) -> PaymentFlow:
        return PaymentFlow.INCOME if self.is_credit else PaymentFlow.EXPENSE

    def signed(self, amount: Decimal) -> Decimal:
        return amount if self.is_credit else -amount


class PaymentFlow(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    BANK = "bank"
    CASH = "cash"


CREDIT_CATEGORIES = frozenset({PaymentCategory.SUPPLEMENTS, PaymentCategory.BONUSES})
CATEGORY_ORDER = (
    PaymentCategory.SUPPLEMENTS,
    PaymentCategory.BONUSES,
    PaymentCategory.DISCOUNTS,
    PaymentCategory.DEBTS,
    PaymentCategory.DEDUCTIONS,
)
EDITABLE_FIELDS = ("label", "amount", "company_key", "payment_method")


@dataclass(frozen=True)
class OtherPaymentItem:
    id: str
    label: str = ""
    amount: str = ""
    company_key: str | None = None
    payment_method: PaymentMethod = PaymentMethod.BANK

    @property
    def parsed_amount(self) -> Decimal:
        return parse_amount(self.amount)


@dataclass(frozen=True)
class LedgerTotals:
    additions: Decimal
    subtractions: Decimal

    @property
    def net(self) -> Decimal:
        return self.additions - self.subtractions


@dataclass
class OtherPaymentsLedger:
    """
    Categorized ad-hoc credits and debits for one worker.

    Amounts are stored exactly as typed; they are parsed only when read.
    """

    entries: dict[PaymentCategory, list[OtherPaymentItem]] = field(
        default_factory=lambda: {category: [] for category in CATEGORY_ORDER}
    )

    def items(self, category: PaymentCategory | str) -> list[OtherPaymentItem]:
        return list(self.entries.get(PaymentCategory(category), []))

    def iter_items(self) -> Iterator[tuple[PaymentCategory, OtherPaymentItem]]:
        for category in CATEGORY_ORDER:
            for item in self.entries.get(category, []):
                yield category, item

    def add_item(
        self,
        category: PaymentCategory | str,
        *,
        item_id: str | None = None,
        label: str = "",
        amount: str = "",
        company_key: str | None = None,
        payment_method: PaymentMethod | str = PaymentMethod.BANK,
    ) -> OtherPaymentItem:
        item = OtherPaymentItem(
            id=item_id or str(uuid4()),
            label=label,
            amount=amount,
            company_key=company_key,
            payment_method=PaymentMethod(payment_method),
        )
        self.entries.setdefault(PaymentCategory(category), []).append(item)
        return item

    def update_item(self, category: PaymentCategory | str, item_id: str, field_name: str, value: Any) -> None:
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Unsupported other-payment field: {field_name}")

        if field_name == "payment_method":
            value = PaymentMethod(value)
        elif field_name == "company_key":
            value = trim_to_none(value)
        else:
            value = "" if value is None else str(value)

        category = PaymentCategory(category)
        self.entries[category] = [
            replace(item, **{field_name: value}) if item.id == item_id else item
            for item in self.entries.get(category, [])
        ]

    def remove_item(self, category: PaymentCategory | str, item_id: str) -> None:
        category = PaymentCategory(category)
        self.entries[category] = [item for item in self.entries.get(category, []) if item.id != item_id]

    def totals(self) -> LedgerTotals:
        additions = ZERO
        subtractions = ZERO
        for category, item in self.iter_items():
            amount = item.parsed_amount
            if amount == ZERO:
                continue
            if category.is_credit:
                additions += amount
            else:
                subtractions += amount
        return LedgerTotals(additions=additions, subtractions=subtractions)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> OtherPaymentsLedger:
        ledger = cls()
        for category in CATEGORY_ORDER:
            for raw in (payload or {}).get(category.value, []) or []:
                ledger.add_item(
                    category,
                    item_id=trim_to_none(raw.get("id")),
                    label=str(raw.get("label") or ""),
                    amount="" if raw.get("amount") is None else str(raw.get("amount")),
                    company_key=trim_to_none(raw.get("company_key", raw.get("companyKey"))),
                    payment_method=raw.get("payment_method", raw.get("paymentMethod")) or PaymentMethod.BANK,
                )
        return ledger

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            category.value: [
                {
                    "id": item.id,
                    "label": item.label,
                    "amount": item.amount,
                    "company_key": item.company_key,
                    "payment_method": item.payment_method.value,
                }
                for item in self.entries.get(category, [])
            ]
            for category in CATEGORY_ORDER
        }
