import unittest
from decimal import Decimal

import pytest

from payroll_allocator.autofill import (
    AutoFillState,
    calendar_hours_for_company,
    record_manual_edit,
    refresh_auto_fill,
    toggle_all_auto_fill,
    toggle_auto_fill,
)
from payroll_allocator.worker_contracts import CompanyGroup, ContractEntry, ContractInput


def make_group(company_id: str, name: str, count: int) -> CompanyGroup:
    entries = [
        ContractEntry(
            contract_key=f"{company_id}-{index + 1}",
            company_key=f"id:{company_id}",
            company_id=company_id,
            company_name=name,
            has_contract=True,
            label=f"Contract {index + 1}",
        )
        for index in range(count)
    ]
    return CompanyGroup(company_key=f"id:{company_id}", company_id=company_id, company_name=name, entries=entries)


@pytest.mark.unit
class AutoFillTests(unittest.TestCase):
    def setUp(self) -> None:
        self.group = make_group("A", "Alpha", 2)
        self.state = AutoFillState()
        self.inputs: dict[str, ContractInput] = {}

    def test_enable_splits_hours_evenly(self) -> None:
        outcome = toggle_auto_fill(self.state, self.inputs, self.group, True, Decimal("10"))
        self.assertTrue(outcome.accepted)
        self.assertTrue(outcome.state.is_enabled("id:A"))
        self.assertEqual(outcome.inputs["A-1"].hours, "5")
        self.assertEqual(outcome.inputs["A-2"].hours, "5")
        self.assertEqual(outcome.state.auto_filled_keys["id:A"], frozenset({"A-1", "A-2"}))

    def test_manual_edit_survives_disable(self) -> None:
        outcome = toggle_auto_fill(self.state, self.inputs, self.group, True, Decimal("10"))
        outcome = record_manual_edit(outcome.state, outcome.inputs, "A-1", "hours", "7")
        self.assertIn("A-1", outcome.state.manual_overrides)

        outcome = toggle_auto_fill(outcome.state, outcome.inputs, self.group, False, Decimal("10"))
        self.assertFalse(outcome.state.is_enabled("id:A"))
        self.assertEqual(outcome.inputs["A-1"].hours, "7")
        self.assertEqual(outcome.inputs["A-2"].hours, "")

    def test_enable_is_idempotent(self) -> None:
        first = toggle_auto_fill(self.state, self.inputs, self.group, True, Decimal("10"))
        second = toggle_auto_fill(first.state, first.inputs, self.group, True, Decimal("10"))
        self.assertEqual(first.inputs, second.inputs)
        self.assertEqual(first.state, second.state)

    def test_overrides_are_never_overwritten(self) -> None:
        outcome = record_manual_edit(self.state, self.inputs, "A-1", "hours", "7")
        outcome = toggle_auto_fill(outcome.state, outcome.inputs, self.group, True, Decimal("10"))
        self.assertEqual(outcome.inputs["A-1"].hours, "7")
        self.assertEqual(outcome.inputs["A-2"].hours, "5")

        outcome = refresh_auto_fill(outcome.state, outcome.inputs, [self.group], {"id:A": Decimal("20")})
        self.assertEqual(outcome.inputs["A-1"].hours, "7")
        self.assertEqual(outcome.inputs["A-2"].hours, "10")

    def test_clearing_hours_removes_override(self) -> None:
        outcome = record_manual_edit(self.state, self.inputs, "A-1", "hours", "7")
        outcome = record_manual_edit(outcome.state, outcome.inputs, "A-1", "hours", "  ")
        self.assertNotIn("A-1", outcome.state.manual_overrides)

        outcome = toggle_auto_fill(outcome.state, outcome.inputs, self.group, True, Decimal("10"))
        self.assertEqual(outcome.inputs["A-1"].hours, "5")

    def test_enable_rejected_without_calendar_hours(self) -> None:
        outcome = toggle_auto_fill(self.state, self.inputs, self.group, True, Decimal("0"))
        self.assertFalse(outcome.accepted)
        self.assertFalse(outcome.state.is_enabled("id:A"))
        self.assertEqual(outcome.inputs, {})

    def test_refresh_disables_when_hours_drop_to_zero(self) -> None:
        outcome = toggle_auto_fill(self.state, self.inputs, self.group, True, Decimal("10"))
        outcome = refresh_auto_fill(outcome.state, outcome.inputs, [self.group], {})
        self.assertFalse(outcome.state.is_enabled("id:A"))
        self.assertEqual(outcome.inputs["A-1"].hours, "")
        self.assertEqual(outcome.inputs["A-2"].hours, "")

    def test_non_hours_edits_do_not_mark_override(self) -> None:
        outcome = record_manual_edit(self.state, self.inputs, "A-1", "base_salary", "100")
        self.assertEqual(outcome.inputs["A-1"].base_salary, "100")
        self.assertEqual(outcome.state.manual_overrides, frozenset())

    def test_unknown_field_raises(self) -> None:
        with self.assertRaises(ValueError):
            record_manual_edit(self.state, self.inputs, "A-1", "overtime", "1")


def test_uneven_split_rounds_to_cents():
    group = make_group("C", "Gamma", 3)
    outcome = toggle_auto_fill(AutoFillState(), {}, group, True, Decimal("10"))
    assert [outcome.inputs[entry.contract_key].hours for entry in group.entries] == ["3.33", "3.33", "3.33"]


def test_toggle_all_enables_only_groups_with_hours():
    alpha = make_group("A", "Alpha", 1)
    beta = make_group("B", "Beta", 1)
    outcome = toggle_all_auto_fill(
        AutoFillState(), {}, [alpha, beta], True, {"id:A": Decimal("8"), "id:B": Decimal("0")}
    )
    assert outcome.accepted
    assert outcome.state.enabled_groups == frozenset({"id:A"})
    assert outcome.inputs["A-1"].hours == "8"
    assert "B-1" not in outcome.inputs

    outcome = toggle_all_auto_fill(outcome.state, outcome.inputs, [alpha, beta], False, {})
    assert outcome.state.enabled_groups == frozenset()
    assert outcome.inputs["A-1"].hours == ""


def test_toggle_all_rejected_when_no_group_has_hours():
    outcome = toggle_all_auto_fill(AutoFillState(), {}, [make_group("A", "Alpha", 1)], True, {})
    assert not outcome.accepted


HOURS_BY_DATE = {
    "2025-01-02": {
        "companies": [
            {"companyId": "A", "name": "Alpha", "hours": 4},
            {"name": " beta ", "hours": 3},
        ]
    },
    "2025-01-03": {
        "companies": [
            {"companyId": "A", "name": "Alpha", "hours": "2,5"},
            {"name": "Beta", "hours": -1},
        ]
    },
    "2025-01-04": None,
}


def test_calendar_hours_by_id_then_name():
    assert calendar_hours_for_company(HOURS_BY_DATE, "A", "Whatever") == Decimal("6.5")
    assert calendar_hours_for_company(HOURS_BY_DATE, None, "BETA") == Decimal("3")
    assert calendar_hours_for_company(HOURS_BY_DATE, "missing", "alpha") == Decimal("6.5")
    assert calendar_hours_for_company(HOURS_BY_DATE, "missing", "Nobody") == Decimal("0")
    assert calendar_hours_for_company(None, "A", "Alpha") == Decimal("0")


def test_huge_calendar_hours_are_split():
    group = make_group("A", "Alpha", 2)
    outcome = toggle_auto_fill(AutoFillState(), {}, group, True, Decimal("1e30"))
    assert outcome.accepted
    assert outcome.inputs["A-1"].hours == "500000000000000000000000000000"
