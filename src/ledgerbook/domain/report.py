"""Report aggregation.

Reports are read-only: they filter transactions and group them by
(kind, category, account). Expense groups split their total into executed
and scheduled amounts; income groups only carry a total.
"""

from datetime import timedelta
from decimal import Decimal
from typing import Iterable, Optional

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import (
    ZERO,
    ConsolidatedRow,
    ConsolidatedTotals,
    Report,
    ReportFilters,
    ReportSummary,
    StatusFilter,
    Transaction,
    TransactionKind,
)
from ledgerbook.domain.ledger import check_range

NO_CATEGORY = "Sem categoria"
NO_ACCOUNT = "Sem conta"
ALL_LABEL = "Todas"

DETAIL_COLUMNS = ("Data", "Tipo", "Status", "Descricao", "Categoria", "Conta", "Forma", "Valor")


def kind_label(kind: TransactionKind) -> str:
    return "Entrada" if kind == TransactionKind.INCOME else "Saída"


def status_label(txn: Transaction) -> str:
    if txn.kind == TransactionKind.INCOME:
        return "—"
    return "Executada" if txn.is_executed_expense else "Programada"


def passes_status(txn: Transaction, status: StatusFilter) -> bool:
    """Income always passes; expenses must match the requested status."""
    if status == StatusFilter.ALL or txn.kind == TransactionKind.INCOME:
        return True
    if status == StatusFilter.EXECUTED:
        return txn.is_executed_expense
    return txn.is_scheduled_expense


def summarize(transactions: Iterable[Transaction]) -> ReportSummary:
    """Income, executed and scheduled expense totals."""
    income = expense_executed = expense_scheduled = ZERO
    for t in transactions:
        if t.kind == TransactionKind.INCOME:
            income += t.amount
        elif t.is_executed_expense:
            expense_executed += t.amount
        else:
            expense_scheduled += t.amount
    return ReportSummary(
        income=income, expense_executed=expense_executed, expense_scheduled=expense_scheduled
    )


def consolidate(
    transactions: Iterable[Transaction],
    category_names: dict[int, str],
    account_names: dict[int, str],
) -> list[ConsolidatedRow]:
    """Group by (kind, category, account), largest total first.

    Groups with equal totals keep the order in which they first appeared.
    """
    groups: dict[tuple, dict] = {}
    for t in transactions:
        key = (t.kind, t.category_id, t.account_id)
        group = groups.get(key)
        if group is None:
            group = groups[key] = {"total": ZERO, "executed": ZERO, "scheduled": ZERO}
        if t.kind == TransactionKind.INCOME:
            group["total"] += t.amount
        else:
            if t.is_executed_expense:
                group["executed"] += t.amount
            else:
                group["scheduled"] += t.amount
            group["total"] = group["executed"] + group["scheduled"]

    rows = [
        ConsolidatedRow(
            kind=kind,
            category_id=category_id,
            category_name=category_names.get(category_id, NO_CATEGORY),
            account_id=account_id,
            account_name=account_names.get(account_id, NO_ACCOUNT),
            total=sums["total"],
            executed=sums["executed"],
            scheduled=sums["scheduled"],
        )
        for (kind, category_id, account_id), sums in groups.items()
    ]
    rows.sort(key=lambda r: r.total, reverse=True)
    return rows


def consolidated_totals(rows: Iterable[ConsolidatedRow]) -> ConsolidatedTotals:
    """Column totals of a consolidated table."""
    income = executed = scheduled = ZERO
    for r in rows:
        if r.kind == TransactionKind.INCOME:
            income += r.total
        else:
            executed += r.executed
            scheduled += r.scheduled
    return ConsolidatedTotals(income=income, expense_executed=executed, expense_scheduled=scheduled)


def detail_rows(report: Report) -> list[dict[str, object]]:
    """Flat table of the filtered transactions, one dict per row."""
    return [
        {
            "Data": t.date.isoformat(),
            "Tipo": kind_label(t.kind),
            "Status": status_label(t),
            "Descricao": t.description or "",
            "Categoria": report.category_names.get(t.category_id, "—"),
            "Conta": report.account_names.get(t.account_id, "—"),
            "Forma": t.payment_method or "",
            "Valor": t.amount,
        }
        for t in report.transactions
    ]


def detail_total(report: Report) -> Decimal:
    """Plain sum of the amounts listed in the detail table."""
    return sum((t.amount for t in report.transactions), ZERO)


class ReportService:
    """Builds reports from the record store."""

    def __init__(self, db: Database):
        """Initialize report service.

        Args:
            db: Database instance
        """
        self.db = db

    def build(self, filters: ReportFilters) -> Report:
        """Fetch, filter and aggregate transactions.

        Args:
            filters: Date range (inclusive), optional category/account,
                status filter and payment method substring

        Returns:
            Report with the filtered rows, summary and consolidated table

        Raises:
            ValidationError: If the date range is inverted
        """
        check_range(filters.start_date, filters.end_date)

        fetched = self.db.list_transactions(
            start_date=filters.start_date,
            before_date=filters.end_date + timedelta(days=1),
            category_id=filters.category_id,
            account_id=filters.account_id,
            payment_method=(filters.payment_method or "").strip() or None,
        )
        transactions = [t for t in fetched if passes_status(t, filters.status)]

        category_names = {c.id: c.name for c in self.db.list_categories()}
        account_names = {a.id: a.name for a in self.db.list_accounts()}

        rows = consolidate(transactions, category_names, account_names)
        return Report(
            filters=filters,
            category_label=self._label(filters.category_id, category_names, "Categoria"),
            account_label=self._label(filters.account_id, account_names, "Conta"),
            transactions=tuple(transactions),
            category_names=category_names,
            account_names=account_names,
            summary=summarize(transactions),
            consolidated=tuple(rows),
            totals=consolidated_totals(rows),
        )

    @staticmethod
    def _label(selected: Optional[int], names: dict[int, str], fallback: str) -> str:
        if selected is None:
            return ALL_LABEL
        return names.get(selected, fallback)
