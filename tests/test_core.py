import unittest
from decimal import Decimal

import pytest

from payroll_allocator.core import (
    as_float,
    company_sort_key,
    format_amount,
    hours_to_input,
    is_valid_company_name,
    parse_amount,
    parse_optional_rate,
    resolve_company_identity,
    round_hours,
)


@pytest.mark.unit
class ParseAmountTests(unittest.TestCase):
    def test_plain_and_comma_decimals(self) -> None:
        self.assertEqual(parse_amount("12.5"), Decimal("12.5"))
        self.assertEqual(parse_amount(" 1,5 "), Decimal("1.5"))
        self.assertEqual(parse_amount("-3"), Decimal("-3"))

    def test_numbers_pass_through(self) -> None:
        self.assertEqual(parse_amount(10), Decimal("10"))
        self.assertEqual(parse_amount(2.25), Decimal("2.25"))
        self.assertEqual(parse_amount(Decimal("7.10")), Decimal("7.10"))

    def test_garbage_is_zero(self) -> None:
        for value in ["", "   ", "abc", "12abc", "NaN", "inf", "-Infinity", None, True, [], {}]:
            with self.subTest(value=value):
                self.assertEqual(parse_amount(value), Decimal("0"))

    def test_thousands_separator_with_comma_decimal_is_rejected(self) -> None:
        # Both separators become dots, leaving an unparseable number.
        self.assertEqual(parse_amount("1.234,56"), Decimal("0"))

    def test_non_finite_floats_are_zero(self) -> None:
        self.assertEqual(parse_amount(float("nan")), Decimal("0"))
        self.assertEqual(parse_amount(float("inf")), Decimal("0"))


@pytest.mark.unit
class CompanyIdentityTests(unittest.TestCase):
    def test_id_takes_precedence(self) -> None:
        self.assertEqual(resolve_company_identity("42", "Acme"), "id:42")
        self.assertEqual(resolve_company_identity(" 42 ", None), "id:42")

    def test_name_when_no_id(self) -> None:
        self.assertEqual(resolve_company_identity(None, " Acme "), "name:Acme")
        self.assertEqual(resolve_company_identity("  ", "Acme"), "name:Acme")

    def test_unknown_when_neither(self) -> None:
        self.assertEqual(resolve_company_identity(None, None), "sin")
        self.assertEqual(resolve_company_identity("", "  "), "sin")

    def test_invalid_names(self) -> None:
        self.assertFalse(is_valid_company_name(None))
        self.assertFalse(is_valid_company_name("   "))
        self.assertFalse(is_valid_company_name("Sin empresa"))
        self.assertFalse(is_valid_company_name(" EMPRESA SIN NOMBRE "))
        self.assertTrue(is_valid_company_name("Acme"))

    def test_sort_key_ignores_accents_and_case(self) -> None:
        names = ["zeta", "Ética", "alfa", "Beta"]
        self.assertEqual(sorted(names, key=company_sort_key), ["alfa", "Beta", "Ética", "zeta"])


def test_hours_to_input_trims_trailing_zeros():
    assert hours_to_input(round_hours(Decimal("10") / 2)) == "5"
    assert hours_to_input(round_hours(Decimal("5") / 2)) == "2.5"
    assert hours_to_input(round_hours(Decimal("10") / 3)) == "3.33"
    assert hours_to_input(Decimal("0")) == ""


def test_parse_optional_rate_only_accepts_numbers():
    assert parse_optional_rate(12.5) == Decimal("12.5")
    assert parse_optional_rate(10) == Decimal("10")
    assert parse_optional_rate("12") is None
    assert parse_optional_rate(True) is None
    assert parse_optional_rate(None) is None


def test_money_formatting_rounds_half_up():
    assert as_float(Decimal("106.665")) == 106.67
    assert as_float(None) is None
    assert format_amount(Decimal("1234.5")) == "1,234.50"
    assert format_amount(None) == "n/a"


def test_values_beyond_double_range_are_zero():
    assert parse_amount("1e400") == Decimal("0")
    assert parse_amount("1e999999") == Decimal("0")
    assert parse_amount("-1e999999") == Decimal("0")
    assert parse_amount(10**400) == Decimal("0")
    assert parse_amount(Decimal("1e400")) == Decimal("0")
    assert parse_amount("1e300") == Decimal("1e300")
    assert parse_optional_rate(10**400) is None


def test_rounding_keeps_large_values():
    assert round_hours(Decimal("1e30")) == Decimal("1e30")
    assert as_float(Decimal("1e30")) == 1e30
    assert format_amount(Decimal("1e27")) == "1,000,000,000,000,000,000,000,000,000.00"
    assert format_amount(Decimal("Infinity")) == "Infinity"
