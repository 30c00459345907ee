#!/usr/bin/env python3

from __future__ import annotations

import math
import re
import unicodedata
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")
NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
WHITESPACE_RE = re.compile(r"\s+")

UNASSIGNED_COMPANY_KEY = "__unassigned__"
UNKNOWN_COMPANY_KEY = "sin"
INVALID_COMPANY_NAMES = frozenset({"empresa sin nombre", "sin empresa"})


def parse_amount(value: Any) -> Decimal:
    """
    Tolerant numeric parser for free-text amount and hour fields.

    Whitespace is stripped and every comma is read as a decimal point. Anything
    that is not a finite number in double range yields 0; this function never raises.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if is_double_range(value) else ZERO
    if isinstance(value, (int, float)):
        try:
            parsed = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return ZERO
        return parsed if is_double_range(parsed) else ZERO
    if not isinstance(value, str):
        return ZERO

    normalized = WHITESPACE_RE.sub("", value).replace(",", ".")
    if not normalized:
        return ZERO
    if not NUMBER_RE.fullmatch(normalized):
        return ZERO
    try:
        parsed = Decimal(normalized)
    except InvalidOperation:
        return ZERO
    return parsed if is_double_range(parsed) else ZERO


def is_double_range(value: Decimal) -> bool:
    return value.is_finite() and math.isfinite(float(value))


def parse_optional_rate(value: Any) -> Decimal | None:
    """Read `hourlyRate` from a raw contract record; strings and bools give None."""
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return parsed if is_double_range(parsed) else None


def quantize_cents(value: Decimal) -> Decimal:
    """Round half-up to 0.01 without losing integer digits of very large values."""
    if not value.is_finite():
        return value
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_hours(value: Decimal) -> Decimal:
    return quantize_cents(value)


def hours_to_input(value: Decimal) -> str:
    """Render hours the way a person would type them: `5`, `2.5`, `3.33`."""
    if value <= ZERO:
        return ""
    return format(value.normalize(), "f")


def trim_to_none(value: Any) -> str | None:
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    text = text.strip()
    return text or None


def is_valid_company_name(name: str | None) -> bool:
    normalized = (name or "").strip().lower()
    if not normalized:
        return False
    return normalized not in INVALID_COMPANY_NAMES


def resolve_company_identity(company_id: Any = None, company_name: Any = None) -> str:
    """
    Single precedence order for company identity:

    1. `id:<company id>` when an id is known.
    2. `name:<company name>` when only the name is known.
    3. `sin` when neither is available.
    """
    normalized_id = trim_to_none(company_id)
    if normalized_id:
        return f"id:{normalized_id}"
    normalized_name = trim_to_none(company_name)
    if normalized_name:
        return f"name:{normalized_name}"
    return UNKNOWN_COMPANY_KEY


def company_sort_key(name: str | None) -> str:
    # Accent- and case-insensitive ordering, so "Álvarez" sorts with "alvarez".
    decomposed = unicodedata.normalize("NFKD", name or "")
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return stripped.casefold()


def as_float(value: Decimal | None) -> float | None:
    if value is None:
        return None
    return float(quantize_cents(value))


def format_amount(value: Decimal | None) -> str:
    if value is None:
        return "n/a"
    return f"{quantize_cents(value):,.2f}"
