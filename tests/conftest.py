import pytest
from typing import Any


@pytest.fixture
def worker_payload() -> dict[str, Any]:
    """Returns a worker payload with two companies and one calendar month."""
    return {
        "worker_id": "w-1",
        "worker_name": "Lucía Gómez",
        "company_contracts": {
            "Alpha": [
                {"id": "a1", "hasContract": True, "label": "Morning shift", "hourlyRate": 10},
                {"id": "a2", "hasContract": True, "label": "Evening shift", "hourlyRate": 10},
            ],
            "Beta": [{"id": "b1", "hasContract": True, "position": "Cleaner"}],
            "Sin empresa": [{"id": "x1", "hasContract": True}],
        },
        "company_stats": {"Alpha": {"companyId": "A"}},
        "contract_inputs": {
            "Beta-b1": {"hours": "5", "base_salary": "60"},
        },
        "manual_fields": {"overtime_hours": "2", "bonuses": "0", "deductions": "0"},
        "other_payments": {
            "bonuses": [{"id": "p1", "label": "Holiday bonus", "amount": "50", "company_key": "id:A"}],
            "deductions": [{"id": "p2", "label": "Advance", "amount": "20,00", "company_key": None}],
        },
        "calendar": {
            "period_start": "2025-03-01",
            "hours_by_date": {
                "2025-03-03": {"companies": [{"companyId": "A", "name": "Alpha", "hours": 6}]},
                "2025-03-04": {"companies": [{"companyId": "A", "name": "Alpha", "hours": 4}]},
            },
        },
        "auto_fill": ["id:A"],
    }
