import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent.parent / "schemas"


class ContractError(Exception):
    """Raised when a worker payload or calculation result violates its schema."""

    def __init__(self, message: str, violations: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.violations = violations or []


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a JSON schema shipped in `payroll_allocator/schemas`."""
    schema_path = SCHEMA_DIR / f"{schema_name}.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_name}")

    with open(schema_path, "r", encoding="utf-8") as f:
        return dict(json.load(f))


def describe_violations(data: Dict[str, Any], schema: Dict[str, Any]) -> List[str]:
    """Every violation as `<json path>: <message>`, ordered by path."""
    errors = sorted(Draft7Validator(schema).iter_errors(data), key=lambda error: error.json_path)
    return [f"{error.json_path}: {error.message}" for error in errors]


def validate_output(
    data: Dict[str, Any],
    schema_name: str,
    mode: str = "STRICT",
    source: Optional[str] = None,
) -> None:
    """
    Validate data against a JSON schema.

    Args:
        data: The dictionary to validate.
        schema_name: Name of the schema file (without .json extension).
        mode: 'STRICT' (raises error) or 'REVIEW' (logs warning).
        source: Where the data came from (file path, worker id), for the message.

    Raises:
        ContractError: If validation fails and mode is STRICT. All violations
            are listed, each with the path of the offending field.
    """
    try:
        schema = load_schema(schema_name)
    except FileNotFoundError as e:
        violations = [str(e)]
    else:
        violations = describe_violations(data, schema)

    if not violations:
        return

    label = f"{schema_name} ({source})" if source else schema_name
    msg = f"Data Contract Violation in {label}: " + "; ".join(violations)
    if mode == "STRICT":
        raise ContractError(msg, violations)
    logger.warning(msg)
