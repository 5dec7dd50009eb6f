"""Tests for balance calculations."""

import pytest
from datetime import date
from decimal import Decimal

from ledgerbook.domain.entities import ExpenseStatus, TransactionKind
from ledgerbook.domain.errors import NotFoundError, ValidationError
from ledgerbook.domain.ledger import (
    LedgerService,
    account_balances,
    carry_in,
    daily_running_balance,
    monthly_series,
    period_summary,
)

INCOME = TransactionKind.INCOME
EXPENSE = TransactionKind.EXPENSE
SCHEDULED = ExpenseStatus.SCHEDULED


@pytest.fixture
def ledger_rows(make_transaction):
    """A small two-account ledger spanning January and February 2024."""
    return [
        make_transaction("2024-01-05", INCOME, "1000.00", account_id=1),
        make_transaction("2024-01-10", EXPENSE, "200.00", account_id=1),
        make_transaction("2024-01-20", EXPENSE, "300.00", SCHEDULED, account_id=1),
        make_transaction("2024-02-01", INCOME, "500.00", account_id=2),
        make_transaction("2024-02-03", EXPENSE, "50.00", account_id=1),
        make_transaction("2024-02-03", EXPENSE, "25.00", account_id=2),
        make_transaction("2024-02-10", EXPENSE, "80.00", SCHEDULED, account_id=2),
    ]


class TestPureCalculations:
    """Tests for the calculations over in-memory transactions."""

    def test_carry_in_ignores_scheduled_expenses(self, ledger_rows):
        """Test carry-in counts income minus executed expenses only."""
        assert carry_in(ledger_rows, date(2024, 2, 1)) == Decimal("800.00")
        assert carry_in(ledger_rows, date(2024, 1, 5)) == Decimal("0.00")

    def test_carry_in_per_account(self, ledger_rows):
        """Test restricting carry-in to one account."""
        assert carry_in(ledger_rows, date(2024, 3, 1), account_id=1) == Decimal("750.00")
        assert carry_in(ledger_rows, date(2024, 3, 1), account_id=2) == Decimal("475.00")

    def test_period_summary(self, ledger_rows):
        """Test period sums and carry-in."""
        summary = period_summary(ledger_rows, date(2024, 2, 1), date(2024, 2, 29))

        assert summary.income == Decimal("500.00")
        assert summary.expense_executed == Decimal("75.00")
        assert summary.expense_scheduled == Decimal("80.00")
        assert summary.carry_in == Decimal("800.00")
        assert summary.balance_period == Decimal("425.00")
        assert summary.balance_accumulated == Decimal("1225.00")

    def test_balance_period_identity(self, ledger_rows):
        """Test income minus executed expenses equals the period balance."""
        start, end = date(2024, 1, 1), date(2024, 12, 31)
        summary = period_summary(ledger_rows, start, end)

        income = sum(t.amount for t in ledger_rows if t.kind == INCOME)
        executed = sum(t.amount for t in ledger_rows if t.is_executed_expense)
        assert summary.balance_period == income - executed

    @pytest.mark.parametrize("split", ["2024-01-01", "2024-01-10", "2024-01-21", "2024-02-03", "2024-03-01"])
    def test_carry_in_plus_period_is_accumulated(self, ledger_rows, split):
        """Test the accumulated balance identity for any split point."""
        start = date.fromisoformat(split)
        end = date(2024, 12, 31)
        summary = period_summary(ledger_rows, start, end)

        assert summary.carry_in == carry_in(ledger_rows, start)
        assert summary.carry_in + summary.balance_period == summary.balance_accumulated
        assert summary.balance_accumulated == carry_in(ledger_rows, date(2025, 1, 1))

    def test_period_summary_rejects_inverted_range(self, ledger_rows):
        """Test that start after end is rejected."""
        with pytest.raises(ValidationError):
            period_summary(ledger_rows, date(2024, 2, 1), date(2024, 1, 1))

    def test_daily_running_balance(self, ledger_rows):
        """Test per-day grouping and running balance."""
        days = daily_running_balance(ledger_rows, date(2024, 2, 1), date(2024, 2, 29))

        assert [d.date for d in days] == [date(2024, 2, 1), date(2024, 2, 3), date(2024, 2, 10)]
        assert [d.running_balance for d in days] == [
            Decimal("1300.00"),
            Decimal("1225.00"),
            Decimal("1225.00"),
        ]
        assert days[1].expense_executed == Decimal("75.00")
        assert len(days[1].transactions) == 2
        assert days[2].expense_scheduled == Decimal("80.00")

    def test_daily_running_balance_for_one_account(self, ledger_rows):
        """Test that other accounts are left out."""
        days = daily_running_balance(ledger_rows, date(2024, 2, 1), date(2024, 2, 29), account_id=1)

        assert [d.date for d in days] == [date(2024, 2, 3)]
        assert days[0].running_balance == Decimal("750.00")

    def test_account_balances(self, ledger_rows):
        """Test per-account balances sorted by name."""
        from ledgerbook.domain.entities import Account

        accounts = [
            Account(id=1, name="caixa", active=True, created_at=None),
            Account(id=2, name="Banco", active=False, created_at=None),
            Account(id=3, name="Poupança", active=True, created_at=None),
        ]
        balances = account_balances(accounts, ledger_rows, date(2024, 3, 1))

        assert [b.account.name for b in balances] == ["Banco", "caixa", "Poupança"]
        assert [b.balance for b in balances] == [
            Decimal("475.00"),
            Decimal("750.00"),
            Decimal("0.00"),
        ]

    def test_account_balances_are_idempotent(self, ledger_rows):
        """Test that recomputing on the same data gives the same result."""
        from ledgerbook.domain.entities import Account

        accounts = [Account(id=1, name="Caixa", active=True, created_at=None)]
        first = account_balances(accounts, ledger_rows, date(2024, 3, 1))
        second = account_balances(accounts, ledger_rows, date(2024, 3, 1))
        assert first == second

    def test_monthly_series(self, ledger_rows):
        """Test month buckets, oldest first."""
        months = monthly_series(ledger_rows, 3, date(2024, 2, 15))

        assert [m.key for m in months] == ["2023-12", "2024-01", "2024-02"]
        assert months[0].income == Decimal("0.00")
        assert months[1].income == Decimal("1000.00")
        assert months[1].expense_executed == Decimal("200.00")
        assert months[1].expense_scheduled == Decimal("300.00")
        assert months[1].expense_all == Decimal("500.00")
        assert months[1].net == Decimal("800.00")
        assert months[2].net == Decimal("425.00")

    def test_monthly_series_requires_one_month(self, ledger_rows):
        """Test months_back lower bound."""
        with pytest.raises(ValidationError):
            monthly_series(ledger_rows, 0, date(2024, 2, 15))


class TestLedgerService:
    """Tests for LedgerService against the database."""

    @pytest.fixture
    def seeded(self, transaction_service, admin_user, sample_account, second_account, sample_categories):
        def add(txn_date, kind, amount, account, status=ExpenseStatus.EXECUTED):
            category = "Ofertas" if kind == INCOME else "Energia"
            transaction_service.create_transaction(
                acting_user=admin_user,
                date=date.fromisoformat(txn_date),
                kind=kind,
                description="Entry",
                amount=Decimal(amount),
                category_id=sample_categories[category],
                account_id=account.id,
                expense_status=status,
            )

        add("2024-01-05", INCOME, "1000.00", sample_account)
        add("2024-01-10", EXPENSE, "200.00", sample_account)
        add("2024-01-20", EXPENSE, "300.00", sample_account, SCHEDULED)
        add("2024-02-01", INCOME, "500.00", second_account)
        add("2024-02-03", EXPENSE, "25.00", second_account)
        return sample_account, second_account

    def test_period_summary(self, temp_db, seeded):
        """Test summary over the whole ledger."""
        summary = LedgerService(temp_db).period_summary(date(2024, 2, 1), date(2024, 2, 29))

        assert summary.carry_in == Decimal("800.00")
        assert summary.income == Decimal("500.00")
        assert summary.balance_accumulated == Decimal("1275.00")

    def test_account_balances(self, temp_db, seeded):
        """Test balances as of an exclusive boundary."""
        balances = LedgerService(temp_db).account_balances(date(2024, 3, 1))
        assert {b.account.name: b.balance for b in balances} == {
            "Banco": Decimal("475.00"),
            "Caixa": Decimal("800.00"),
        }

    def test_dashboard(self, temp_db, seeded):
        """Test headline numbers for the current month."""
        board = LedgerService(temp_db).dashboard(months_back=2, today=date(2024, 1, 15))

        assert board.total_balance == Decimal("800.00")
        assert board.income_month == Decimal("1000.00")
        assert board.expense_month_all == Decimal("500.00")
        assert board.net_month_all == Decimal("500.00")
        assert [m.key for m in board.months] == ["2023-12", "2024-01"]
        assert len(board.account_balances) == 2

    def test_account_statement_hides_scheduled_rows(self, temp_db, seeded):
        """Test statement listing only executed movements."""
        caixa, _ = seeded
        statement = LedgerService(temp_db).account_statement(
            caixa.id, date(2024, 1, 1), date(2024, 1, 31)
        )

        assert statement.account.name == "Caixa"
        assert statement.summary.expense_scheduled == Decimal("300.00")
        assert [d.date for d in statement.days] == [date(2024, 1, 5), date(2024, 1, 10)]
        assert statement.days[-1].running_balance == Decimal("800.00")

    def test_account_statement_unknown_account(self, temp_db, seeded):
        """Test missing account."""
        with pytest.raises(NotFoundError):
            LedgerService(temp_db).account_statement(999, date(2024, 1, 1), date(2024, 1, 31))

    def test_daily_running_balance_rejects_inverted_range(self, temp_db, seeded):
        """Test inverted range."""
        with pytest.raises(ValidationError):
            LedgerService(temp_db).daily_running_balance(date(2024, 2, 1), date(2024, 1, 1))
