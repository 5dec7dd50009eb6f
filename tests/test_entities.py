"""Tests for domain entities."""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, date, UTC
from decimal import Decimal

from ledgerbook.domain.entities import (
    Account,
    ExpenseStatus,
    ImportDefaults,
    LedgerEffect,
    MonthTotals,
    NewTransaction,
    ParsedRow,
    PeriodSummary,
    TransactionKind,
)


class TestAccount:
    """Tests for Account entity."""

    def test_account_immutability(self):
        """Test that Account entities are immutable."""
        account = Account(id=1, name="Caixa", active=True, created_at=datetime.now(UTC))
        with pytest.raises(FrozenInstanceError):
            account.name = "Banco"

    def test_account_equality(self):
        """Test Account entity equality."""
        created_at = datetime.now(UTC)
        account1 = Account(id=1, name="Caixa", active=True, created_at=created_at)
        account2 = Account(id=1, name="Caixa", active=True, created_at=created_at)
        account3 = Account(id=2, name="Caixa", active=True, created_at=created_at)

        assert account1 == account2
        assert account1 != account3


class TestTransaction:
    """Tests for balance rules on transactions."""

    @pytest.mark.parametrize(
        "kind,status,contribution",
        [
            (TransactionKind.INCOME, ExpenseStatus.EXECUTED, Decimal("10.00")),
            (TransactionKind.INCOME, ExpenseStatus.SCHEDULED, Decimal("10.00")),
            (TransactionKind.EXPENSE, ExpenseStatus.EXECUTED, Decimal("-10.00")),
            (TransactionKind.EXPENSE, ExpenseStatus.SCHEDULED, Decimal("0")),
        ],
    )
    def test_balance_contribution(self, make_transaction, kind, status, contribution):
        """Test only income and executed expenses move balances."""
        assert make_transaction("2024-01-01", kind, "10.00", status=status).balance_contribution == contribution

    def test_legacy_expense_without_status(self, make_transaction):
        """Test a missing status counts as executed."""
        txn = make_transaction("2024-01-01", TransactionKind.EXPENSE, status=None)

        assert txn.effective_status == ExpenseStatus.EXECUTED
        assert txn.is_executed_expense
        assert not txn.is_scheduled_expense

    def test_new_transaction_contribution(self):
        """Test NewTransaction follows the same rules."""
        values = NewTransaction(
            date=date(2024, 1, 1),
            kind=TransactionKind.EXPENSE,
            description="Luz",
            amount=Decimal("80.00"),
            category_id=1,
            account_id=1,
            created_by=None,
            expense_status=ExpenseStatus.SCHEDULED,
        )
        assert values.balance_contribution == Decimal("0")


def test_ledger_effect_total():
    """Test the sum of all balance deltas."""
    effect = LedgerEffect(balance_deltas={1: Decimal("10.00"), 2: Decimal("-2.50")})
    assert effect.total_delta == Decimal("7.50")
    assert LedgerEffect().total_delta == Decimal("0")


def test_period_summary_balances():
    """Test period and accumulated balances ignore scheduled expenses."""
    summary = PeriodSummary(
        income=Decimal("100"),
        expense_executed=Decimal("30"),
        expense_scheduled=Decimal("50"),
        carry_in=Decimal("20"),
    )
    assert summary.balance_period == Decimal("70")
    assert summary.balance_accumulated == Decimal("90")


def test_month_totals():
    """Test month net and expense sum."""
    month = MonthTotals("2024-01", Decimal("100"), Decimal("30"), Decimal("50"))
    assert month.expense_all == Decimal("80")
    assert month.net == Decimal("70")


def test_import_defaults_category_for():
    """Test category by kind."""
    defaults = ImportDefaults(income_category_id=1, expense_category_id=2)

    assert defaults.category_for(TransactionKind.INCOME) == 1
    assert defaults.category_for(TransactionKind.EXPENSE) == 2


def test_parsed_row_selected():
    """Test a row is selected only when valid and included."""
    row = ParsedRow(row_number=2, raw="", date=None, kind=None, description="", amount=None, include=True)
    assert row.selected

    row.include = False
    assert not row.selected
