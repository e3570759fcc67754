"""
Summary and Category Breakdown Aggregators

Pure functions over an iterable of transactions. The flat file store
uses them directly; the database store computes the same numbers in SQL
and must agree with these definitions:

    total_income     = sum(amount) where type == income
    total_expenses   = sum(amount) where type == expense
    current_balance  = total_income - total_expenses
    percentage       = 100 * category_amount / sum of all expense amounts

Breakdown entries are ordered by amount descending, then by category
name ascending.
"""

from decimal import Decimal
from typing import Iterable

from expense_tracker.models.transaction import (
    BreakdownEntry,
    SummaryResult,
    Transaction,
    TransactionCategory,
    TransactionType,
)


ZERO = Decimal("0")


def summarize(records: Iterable[Transaction]) -> SummaryResult:
    """Totals over every record given. Empty input gives all zeros."""
    total_income = ZERO
    total_expenses = ZERO
    count = 0

    for txn in records:
        count += 1
        if txn.type == TransactionType.INCOME:
            total_income += txn.amount
        elif txn.type == TransactionType.EXPENSE:
            total_expenses += txn.amount

    return SummaryResult.from_totals(total_income, total_expenses, count)


def breakdown_by_category(records: Iterable[Transaction]) -> list[BreakdownEntry]:
    """
    Per-category expense totals with their percentage share.

    Income records are skipped. Empty input gives an empty list.
    """
    totals: dict[TransactionCategory, Decimal] = {}
    counts: dict[TransactionCategory, int] = {}

    for txn in records:
        if txn.type != TransactionType.EXPENSE:
            continue
        totals[txn.category] = totals.get(txn.category, ZERO) + txn.amount
        counts[txn.category] = counts.get(txn.category, 0) + 1

    grand_total = sum(totals.values(), ZERO)
    if not grand_total:
        return []

    entries = [
        BreakdownEntry(
            category=category,
            amount=amount,
            count=counts[category],
            percentage=float(amount * 100 / grand_total),
        )
        for category, amount in totals.items()
    ]
    return sort_breakdown(entries)


def sort_breakdown(entries: Iterable[BreakdownEntry]) -> list[BreakdownEntry]:
    """Amount descending; equal amounts by category name ascending."""
    return sorted(entries, key=lambda e: (-e.amount, e.category.value))
