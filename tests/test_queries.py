"""
Tests for the filter builder, pagination engine and aggregators.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from expense_tracker.models.transaction import (
    Transaction,
    TransactionCategory,
    TransactionType,
)
from expense_tracker.queries import (
    PageRequest,
    breakdown_by_category,
    build_filter,
    build_pagination,
    owner_filter,
    paginate,
    summarize,
)


class TestBuildFilter:
    """Tests for build_filter()."""

    def test_no_params_gives_empty_filter(self):
        """Test that omitting everything constrains nothing."""
        assert build_filter() == build_filter(type="", search="  ", category=None)
        f = build_filter()
        assert f.type is None and f.category is None and f.search is None

    def test_valid_type_kept(self):
        """Test income/expense are kept."""
        assert build_filter(type="income").type == TransactionType.INCOME
        assert build_filter(type="expense").type == TransactionType.EXPENSE

    def test_invalid_type_ignored(self):
        """Test that an unknown type is treated as absent."""
        assert build_filter(type="transfer").type is None

    def test_search_is_case_folded(self):
        """Test the search term is normalized for case-insensitive matching."""
        assert build_filter(search="  GROCERY ").search == "grocery"

    def test_dates_accept_iso_strings(self):
        """Test ISO dates and datetimes become calendar dates."""
        f = build_filter(start_date="2024-01-01", end_date="2024-01-31T23:59:59Z")
        assert f.start_date == date(2024, 1, 1)
        assert f.end_date == date(2024, 1, 31)

    def test_dates_accept_date_objects(self):
        """Test date and datetime objects are accepted."""
        f = build_filter(start_date=date(2024, 1, 1), end_date=datetime(2024, 2, 1, 10, 30))
        assert f.start_date == date(2024, 1, 1)
        assert f.end_date == date(2024, 2, 1)

    def test_unparseable_date_ignored(self):
        """Test that a garbage date is treated as absent."""
        assert build_filter(start_date="next tuesday").start_date is None

    def test_owner_filter(self):
        """Test owner_filter() sets only the owner."""
        f = owner_filter("user-1")
        assert f.owner_id == "user-1"
        assert f.type is None
        assert owner_filter().owner_id is None


class TestPagination:
    """Tests for the pagination engine."""

    @pytest.mark.parametrize(
        "page, limit, expected",
        [
            (None, None, (1, 10)),
            ("2", "5", (2, 5)),
            (3, 20, (3, 20)),
            ("abc", "xyz", (1, 10)),
            (0, -4, (1, 1)),
            ("", "", (1, 10)),
        ],
    )
    def test_from_params_coercion(self, page, limit, expected):
        """Test page/limit coercion and defaults."""
        request = PageRequest.from_params(page, limit)
        assert (request.page, request.limit) == expected

    def test_default_limit_override(self):
        """Test the configured default limit is used when none is given."""
        assert PageRequest.from_params(None, None, default_limit=25).limit == 25

    def test_offset(self):
        """Test offset arithmetic."""
        assert PageRequest(page=3, limit=10).offset == 20

    def test_pages_is_ceiling(self):
        """Test pages = ceil(total / limit)."""
        assert build_pagination(PageRequest(1, 10), 25).pages == 3
        assert build_pagination(PageRequest(1, 5), 25).pages == 5
        assert build_pagination(PageRequest(1, 10), 0).pages == 0

    def test_out_of_range_page_is_empty(self):
        """Test that a page past the end is empty, not an error."""
        records, meta = paginate(list(range(5)), PageRequest(page=4, limit=2))
        assert records == []
        assert meta.total == 5
        assert meta.pages == 3

    def test_pages_cover_everything_once(self):
        """Test that concatenating all pages reproduces the input."""
        items = list(range(23))
        request = PageRequest(page=1, limit=5)
        _, meta = paginate(items, request)

        collected = []
        for page in range(1, meta.pages + 1):
            chunk, _ = paginate(items, PageRequest(page=page, limit=5))
            collected.extend(chunk)
        assert collected == items


def _txn(make_payload, **overrides) -> Transaction:
    return Transaction.create(make_payload(**overrides))


class TestSummarize:
    """Tests for the summary aggregator."""

    def test_empty_input(self):
        """Test that no records gives all zeros."""
        summary = summarize([])
        assert summary.total_income == 0
        assert summary.total_expenses == 0
        assert summary.current_balance == 0
        assert summary.transaction_count == 0

    def test_scenario(self, scenario_payloads):
        """Test income 100, expenses 40 + 60."""
        records = [Transaction.create(p) for p in scenario_payloads]
        summary = summarize(records)
        assert summary.total_income == Decimal("100")
        assert summary.total_expenses == Decimal("100")
        assert summary.current_balance == Decimal("0")
        assert summary.transaction_count == 3

    def test_decimal_sums_are_exact(self, make_payload):
        """Test cent amounts add up without float drift."""
        records = [
            _txn(make_payload, amount=Decimal("0.10")),
            _txn(make_payload, amount=Decimal("0.20")),
        ]
        assert summarize(records).total_expenses == Decimal("0.30")

    def test_balance_invariant(self, make_payload):
        """Test current_balance == total_income - total_expenses."""
        records = [
            _txn(make_payload, type=TransactionType.INCOME, amount=Decimal("12.34"),
                 category=TransactionCategory.SALARY),
            _txn(make_payload, amount=Decimal("56.78")),
            _txn(make_payload, amount=Decimal("0.01")),
        ]
        summary = summarize(records)
        assert summary.current_balance == summary.total_income - summary.total_expenses
        assert summary.current_balance == Decimal("-44.45")


class TestBreakdown:
    """Tests for the category breakdown aggregator."""

    def test_empty_input(self):
        """Test that no records gives an empty list."""
        assert breakdown_by_category([]) == []

    def test_income_only_gives_empty(self, make_payload):
        """Test that income records are not part of the breakdown."""
        records = [_txn(make_payload, type=TransactionType.INCOME,
                        category=TransactionCategory.SALARY)]
        assert breakdown_by_category(records) == []

    def test_scenario(self, scenario_payloads):
        """Test bills 60 (60%) before food 40 (40%)."""
        records = [Transaction.create(p) for p in scenario_payloads]
        entries = breakdown_by_category(records)

        assert [e.category for e in entries] == [
            TransactionCategory.BILLS,
            TransactionCategory.FOOD,
        ]
        assert entries[0].amount == Decimal("60")
        assert entries[0].count == 1
        assert entries[0].percentage == pytest.approx(60.0)
        assert entries[1].percentage == pytest.approx(40.0)

    def test_groups_and_counts(self, make_payload):
        """Test per-category sums and counts."""
        records = [
            _txn(make_payload, amount=Decimal("10"), category=TransactionCategory.FOOD),
            _txn(make_payload, amount=Decimal("15"), category=TransactionCategory.FOOD),
            _txn(make_payload, amount=Decimal("5"), category=TransactionCategory.TRANSPORT),
        ]
        entries = breakdown_by_category(records)
        assert entries[0].category == TransactionCategory.FOOD
        assert entries[0].amount == Decimal("25")
        assert entries[0].count == 2
        assert entries[1].count == 1

    def test_ties_ordered_by_category_name(self, make_payload):
        """Test equal amounts sort by category name ascending."""
        records = [
            _txn(make_payload, amount=Decimal("20"), category=TransactionCategory.TRANSPORT),
            _txn(make_payload, amount=Decimal("20"), category=TransactionCategory.BILLS),
            _txn(make_payload, amount=Decimal("20"), category=TransactionCategory.FOOD),
        ]
        entries = breakdown_by_category(records)
        assert [e.category.value for e in entries] == ["bills", "food", "transport"]

    def test_percentages_sum_to_100(self, make_payload):
        """Test that shares add up to 100 within rounding tolerance."""
        records = [
            _txn(make_payload, amount=Decimal("33.33"), category=TransactionCategory.FOOD),
            _txn(make_payload, amount=Decimal("33.33"), category=TransactionCategory.BILLS),
            _txn(make_payload, amount=Decimal("33.34"), category=TransactionCategory.OTHER),
        ]
        entries = breakdown_by_category(records)
        assert sum(e.percentage for e in entries) == pytest.approx(100.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
