"""Ledger balance calculator.

One accounting rule applies everywhere: income always counts, expenses
count only once executed (legacy rows without a status are executed).
Scheduled expenses are reported next to the balances but never move them.

The module-level functions are pure and work on already-fetched
transactions; :class:`LedgerService` fetches from the record store and
delegates to them.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import (
    ZERO,
    Account,
    AccountBalance,
    AccountStatement,
    DailyBalance,
    Dashboard,
    MonthTotals,
    PeriodSummary,
    Transaction,
    TransactionKind,
)
from ledgerbook.domain.errors import NotFoundError, ValidationError, account_not_found
from ledgerbook.utils.date_parser import month_key, month_range


def check_range(start_date: date, end_date: date) -> None:
    """Reject inverted inclusive ranges.

    Raises:
        ValidationError: If start_date is after end_date
    """
    if start_date > end_date:
        raise ValidationError(
            f"Start date {start_date.isoformat()} is after end date {end_date.isoformat()}"
        )


def _in_scope(txn: Transaction, account_id: Optional[int]) -> bool:
    return account_id is None or txn.account_id == account_id


def carry_in(
    transactions: Iterable[Transaction], before_date: date, account_id: Optional[int] = None
) -> Decimal:
    """Balance of everything dated strictly before ``before_date``.

    Args:
        transactions: Transactions to consider
        before_date: Exclusive upper boundary
        account_id: Restrict to one account; None means the whole ledger
    """
    return sum(
        (
            t.balance_contribution
            for t in transactions
            if t.date < before_date and _in_scope(t, account_id)
        ),
        ZERO,
    )


def period_summary(
    transactions: Iterable[Transaction],
    start_date: date,
    end_date: date,
    account_id: Optional[int] = None,
) -> PeriodSummary:
    """Sum income and expenses of an inclusive range plus its carry-in.

    Transactions before ``start_date`` only feed the carry-in; transactions
    after ``end_date`` are ignored.
    """
    check_range(start_date, end_date)
    transactions = [t for t in transactions if _in_scope(t, account_id)]

    income = ZERO
    expense_executed = ZERO
    expense_scheduled = ZERO
    for t in transactions:
        if not start_date <= t.date <= end_date:
            continue
        if t.kind == TransactionKind.INCOME:
            income += t.amount
        elif t.is_executed_expense:
            expense_executed += t.amount
        else:
            expense_scheduled += t.amount

    return PeriodSummary(
        income=income,
        expense_executed=expense_executed,
        expense_scheduled=expense_scheduled,
        carry_in=carry_in(transactions, start_date),
    )


def daily_running_balance(
    transactions: Iterable[Transaction],
    start_date: date,
    end_date: date,
    account_id: Optional[int] = None,
) -> list[DailyBalance]:
    """Group an inclusive range by day with a running balance.

    Only days that have transactions are returned, in ascending order. The
    running balance starts at the carry-in and moves by income minus
    executed expenses each day.
    """
    check_range(start_date, end_date)
    transactions = [t for t in transactions if _in_scope(t, account_id)]

    by_day: dict[date, list[Transaction]] = defaultdict(list)
    for t in transactions:
        if start_date <= t.date <= end_date:
            by_day[t.date].append(t)

    running = carry_in(transactions, start_date)
    days = []
    for day in sorted(by_day):
        rows = by_day[day]
        income = sum((t.amount for t in rows if t.kind == TransactionKind.INCOME), ZERO)
        executed = sum((t.amount for t in rows if t.is_executed_expense), ZERO)
        scheduled = sum((t.amount for t in rows if t.is_scheduled_expense), ZERO)
        running += income - executed
        days.append(
            DailyBalance(
                date=day,
                income=income,
                expense_executed=executed,
                expense_scheduled=scheduled,
                running_balance=running,
                transactions=tuple(rows),
            )
        )
    return days


def account_balances(
    accounts: Iterable[Account], transactions: Iterable[Transaction], before_date: date
) -> list[AccountBalance]:
    """Balance of every account as of an exclusive boundary, sorted by name.

    Accounts without transactions (and inactive ones) are included.
    """
    totals: dict[int, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        if t.account_id is not None and t.date < before_date:
            totals[t.account_id] += t.balance_contribution

    return [
        AccountBalance(account=acc, balance=totals[acc.id])
        for acc in sorted(accounts, key=lambda a: (a.name.casefold(), a.id))
    ]


def monthly_series(
    transactions: Iterable[Transaction], months_back: int, today: date
) -> list[MonthTotals]:
    """Per-month totals of the last ``months_back`` months, oldest first.

    The current month is the last entry. Transactions outside the window
    are ignored.
    """
    if months_back < 1:
        raise ValidationError("months_back must be at least 1")

    current = today.replace(day=1)
    keys = [month_key(current - relativedelta(months=i)) for i in range(months_back - 1, -1, -1)]
    sums = {key: [ZERO, ZERO, ZERO] for key in keys}

    for t in transactions:
        bucket = sums.get(month_key(t.date))
        if bucket is None:
            continue
        if t.kind == TransactionKind.INCOME:
            bucket[0] += t.amount
        elif t.is_executed_expense:
            bucket[1] += t.amount
        else:
            bucket[2] += t.amount

    return [
        MonthTotals(key=key, income=inc, expense_executed=exe, expense_scheduled=sch)
        for key, (inc, exe, sch) in sums.items()
    ]


class LedgerService:
    """Balance queries over the record store."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def _up_to(self, end_date: date, account_id: Optional[int] = None) -> list[Transaction]:
        return self.db.list_transactions(end_date=end_date, account_id=account_id)

    def carry_in(self, before_date: date, account_id: Optional[int] = None) -> Decimal:
        """Balance of everything before ``before_date`` in the given scope."""
        transactions = self.db.list_transactions(before_date=before_date, account_id=account_id)
        return carry_in(transactions, before_date, account_id)

    def period_summary(
        self, start_date: date, end_date: date, account_id: Optional[int] = None
    ) -> PeriodSummary:
        """Summary of an inclusive range for one account or the whole ledger.

        Raises:
            ValidationError: If the range is inverted
        """
        check_range(start_date, end_date)
        return period_summary(self._up_to(end_date, account_id), start_date, end_date, account_id)

    def daily_running_balance(
        self, start_date: date, end_date: date, account_id: Optional[int] = None
    ) -> list[DailyBalance]:
        """Per-day totals and running balance of an inclusive range.

        Raises:
            ValidationError: If the range is inverted
        """
        check_range(start_date, end_date)
        return daily_running_balance(
            self._up_to(end_date, account_id), start_date, end_date, account_id
        )

    def account_balances(self, before_date: date) -> list[AccountBalance]:
        """Balance of every account as of an exclusive boundary."""
        transactions = self.db.list_transactions(before_date=before_date)
        return account_balances(self.db.list_accounts(), transactions, before_date)

    def monthly_series(self, months_back: int = 12, today: Optional[date] = None) -> list[MonthTotals]:
        """Totals for the last ``months_back`` calendar months, oldest first."""
        today = today or date.today()
        if months_back < 1:
            raise ValidationError("months_back must be at least 1")
        first = today.replace(day=1) - relativedelta(months=months_back - 1)
        _, next_month = month_range(month_key(today))
        transactions = self.db.list_transactions(start_date=first, before_date=next_month)
        return monthly_series(transactions, months_back, today)

    def dashboard(self, months_back: int = 12, today: Optional[date] = None) -> Dashboard:
        """Headline numbers: balances at the end of this month and month KPIs.

        Args:
            months_back: Number of months in the series (current month last)
            today: Reference date, defaults to the current date
        """
        today = today or date.today()
        _, next_month = month_range(month_key(today))
        months = self.monthly_series(months_back, today)
        balances = self.account_balances(next_month)
        current = months[-1]

        return Dashboard(
            total_balance=sum((b.balance for b in balances), ZERO),
            income_month=current.income,
            expense_month_all=current.expense_all,
            net_month_all=current.income - current.expense_all,
            months=tuple(months),
            account_balances=tuple(balances),
        )

    def account_statement(
        self, account_id: int, start_date: date, end_date: date
    ) -> AccountStatement:
        """Executed-only view of one account over an inclusive range.

        Scheduled expenses are left out of the listing entirely; the summary
        still reports their total for the period.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the range is inverted
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        check_range(start_date, end_date)

        transactions = self._up_to(end_date, account_id)
        summary = period_summary(transactions, start_date, end_date, account_id)
        executed_only = [t for t in transactions if not t.is_scheduled_expense]
        days = daily_running_balance(executed_only, start_date, end_date, account_id)

        return AccountStatement(
            account=account,
            start_date=start_date,
            end_date=end_date,
            summary=summary,
            days=tuple(days),
        )

