"""
Data Models Package

This package contains all Pydantic models used by the expense tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.transaction import (
    MAX_AMOUNT,
    BreakdownEntry,
    Money,
    PaginationMeta,
    SummaryResult,
    Transaction,
    TransactionCategory,
    TransactionFilter,
    TransactionIn,
    TransactionPage,
    TransactionType,
    utcnow,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "MAX_AMOUNT",
    "BreakdownEntry",
    "Money",
    "PaginationMeta",
    "SummaryResult",
    "Transaction",
    "TransactionCategory",
    "TransactionFilter",
    "TransactionIn",
    "TransactionPage",
    "TransactionType",
    "utcnow",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
