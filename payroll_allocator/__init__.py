from payroll_allocator.core import (
    UNASSIGNED_COMPANY_KEY,
    as_float,
    company_sort_key,
    is_valid_company_name,
    parse_amount,
    resolve_company_identity,
)
from payroll_allocator.worker_contracts import (
    CompanyContractStructure,
    CompanyGroup,
    ContractEntry,
    ContractInput,
    build_company_lookup,
    build_contract_structure,
)
from payroll_allocator.ledger import (
    OtherPaymentItem,
    OtherPaymentsLedger,
    PaymentCategory,
    PaymentFlow,
    PaymentMethod,
)
from payroll_allocator.autofill import (
    AutoFillOutcome,
    AutoFillState,
    calendar_hours_for_company,
    record_manual_edit,
    refresh_auto_fill,
    toggle_all_auto_fill,
    toggle_auto_fill,
)
from payroll_allocator.aggregator import ManualContractAggregates, aggregate_contract_inputs
from payroll_allocator.allocation import (
    CalculationResult,
    CompanyAllocation,
    ManualFields,
    OtherPaymentDetail,
    compute_allocation,
)
from payroll_allocator.session import WorkerSession
from payroll_allocator.report import result_to_json, results_to_markdown, summarize_results

__all__ = [
    "AutoFillOutcome",
    "AutoFillState",
    "CalculationResult",
    "CompanyAllocation",
    "CompanyContractStructure",
    "CompanyGroup",
    "ContractEntry",
    "ContractInput",
    "ManualContractAggregates",
    "ManualFields",
    "OtherPaymentDetail",
    "OtherPaymentItem",
    "OtherPaymentsLedger",
    "PaymentCategory",
    "PaymentFlow",
    "PaymentMethod",
    "UNASSIGNED_COMPANY_KEY",
    "WorkerSession",
    "aggregate_contract_inputs",
    "as_float",
    "build_company_lookup",
    "build_contract_structure",
    "calendar_hours_for_company",
    "company_sort_key",
    "compute_allocation",
    "is_valid_company_name",
    "parse_amount",
    "record_manual_edit",
    "refresh_auto_fill",
    "resolve_company_identity",
    "result_to_json",
    "results_to_markdown",
    "summarize_results",
    "toggle_all_auto_fill",
    "toggle_auto_fill",
]
