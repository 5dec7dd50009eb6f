"""Domain model entities for ledgerbook.

These are pure data classes representing business concepts, independent of
database schema. Store rows are converted into these once, at the boundary,
so the rest of the engine never re-derives defaults such as the implicit
"executed" status of legacy expenses.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

ZERO = Decimal("0.00")


class TransactionKind(str, Enum):
    """Direction of a money movement."""

    INCOME = "income"
    EXPENSE = "expense"


class ExpenseStatus(str, Enum):
    """Whether an expense has actually left the account."""

    SCHEDULED = "scheduled"
    EXECUTED = "executed"


class StatusFilter(str, Enum):
    """Expense status filter used by reports."""

    ALL = "all"
    EXECUTED = "executed"
    SCHEDULED = "scheduled"


class UserRole(str, Enum):
    """Authorization role of a user."""

    ADMIN = "admin"
    VIEWER = "viewer"


@dataclass(frozen=True)
class User:
    """User domain entity."""

    id: int
    name: str
    role: UserRole
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Account domain entity."""

    id: int
    name: str
    active: bool
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Category domain entity."""

    id: int
    name: str
    kind: TransactionKind
    active: bool
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity.

    ``expense_status`` is always set for expenses and always None for
    income; the mapper normalizes legacy rows without a status.
    """

    id: int
    date: date
    kind: TransactionKind
    description: str
    amount: Decimal
    payment_method: Optional[str]
    category_id: Optional[int]
    account_id: Optional[int]
    created_by: Optional[int]
    expense_status: Optional[ExpenseStatus]
    executed_at: Optional[datetime]
    expense_doc_no: Optional[str]
    created_at: datetime

    @property
    def effective_status(self) -> ExpenseStatus:
        """Status used by balance rules; income always counts as executed."""
        if self.kind == TransactionKind.INCOME:
            return ExpenseStatus.EXECUTED
        return self.expense_status or ExpenseStatus.EXECUTED

    @property
    def is_executed_expense(self) -> bool:
        return (
            self.kind == TransactionKind.EXPENSE
            and self.effective_status == ExpenseStatus.EXECUTED
        )

    @property
    def is_scheduled_expense(self) -> bool:
        return (
            self.kind == TransactionKind.EXPENSE
            and self.effective_status == ExpenseStatus.SCHEDULED
        )

    @property
    def balance_contribution(self) -> Decimal:
        """Signed effect of this transaction on any balance."""
        if self.kind == TransactionKind.INCOME:
            return self.amount
        if self.is_executed_expense:
            return -self.amount
        return ZERO


@dataclass(frozen=True)
class NewTransaction:
    """Validated transaction ready to be inserted into the store."""

    date: date
    kind: TransactionKind
    description: str
    amount: Decimal
    category_id: int
    account_id: int
    created_by: Optional[int]
    payment_method: Optional[str] = None
    expense_status: Optional[ExpenseStatus] = None
    executed_at: Optional[datetime] = None
    expense_doc_no: Optional[str] = None

    @property
    def balance_contribution(self) -> Decimal:
        if self.kind == TransactionKind.INCOME:
            return self.amount
        if self.expense_status == ExpenseStatus.EXECUTED:
            return -self.amount
        return ZERO


@dataclass(frozen=True)
class Attachment:
    """Receipt or document attached to a transaction."""

    id: int
    transaction_id: int
    storage_path: Optional[str]
    external_url: Optional[str]
    original_name: str
    mime_type: Optional[str]
    size_bytes: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class LedgerEffect:
    """What a mutation did to the ledger.

    ``balance_deltas`` maps account ID to the signed change of that
    account's balance, so callers can update views without re-fetching.
    """

    transaction_ids: tuple[int, ...] = ()
    balance_deltas: dict[int, Decimal] = field(default_factory=dict)

    @property
    def total_delta(self) -> Decimal:
        return sum(self.balance_deltas.values(), ZERO)


class ImportRowError(str, Enum):
    """Reason an imported row was rejected, in validation order."""

    INVALID_DATE = "invalid_date"
    UNRECOGNIZED_KIND = "unrecognized_kind"
    INVALID_AMOUNT = "invalid_amount"
    NON_POSITIVE_AMOUNT = "non_positive_amount"
    EMPTY_DESCRIPTION = "empty_description"

    @property
    def message(self) -> str:
        return {
            ImportRowError.INVALID_DATE: "Invalid date (dd/mm/yyyy)",
            ImportRowError.UNRECOGNIZED_KIND: "Unrecognized type (CRÉDITO/DÉBITO)",
            ImportRowError.INVALID_AMOUNT: "Invalid amount",
            ImportRowError.NON_POSITIVE_AMOUNT: "Amount must be greater than 0",
            ImportRowError.EMPTY_DESCRIPTION: "Empty description",
        }[self]


@dataclass
class ParsedRow:
    """One data line of an import file, before it becomes a transaction.

    ``include``, ``account_id``, ``category_id`` and ``expense_status`` are
    editable by the user; everything else is derived from the raw line.
    """

    row_number: int
    raw: str
    date: Optional[date]
    kind: Optional[TransactionKind]
    description: str
    amount: Optional[Decimal]
    error: Optional[ImportRowError] = None
    include: bool = False
    account_id: Optional[int] = None
    category_id: Optional[int] = None
    expense_status: ExpenseStatus = ExpenseStatus.EXECUTED

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def selected(self) -> bool:
        return self.ok and self.include


@dataclass(frozen=True)
class ImportDefaults:
    """Targets pre-populated on every valid imported row."""

    account_id: Optional[int] = None
    income_category_id: Optional[int] = None
    expense_category_id: Optional[int] = None
    expense_status: ExpenseStatus = ExpenseStatus.EXECUTED

    def category_for(self, kind: Optional[TransactionKind]) -> Optional[int]:
        if kind == TransactionKind.EXPENSE:
            return self.expense_category_id
        return self.income_category_id


@dataclass(frozen=True)
class ImportPreview:
    """Parsed import file."""

    delimiter: str
    rows: tuple[ParsedRow, ...]

    @property
    def selected_rows(self) -> list[ParsedRow]:
        return [r for r in self.rows if r.selected]

    @property
    def invalid_rows(self) -> list[ParsedRow]:
        return [r for r in self.rows if not r.ok]


@dataclass(frozen=True)
class ImportResult:
    """Outcome of a committed import."""

    imported: int
    batch_count: int
    effect: LedgerEffect


@dataclass(frozen=True)
class PeriodSummary:
    """Sums of a date range plus the balance carried into it."""

    income: Decimal
    expense_executed: Decimal
    expense_scheduled: Decimal
    carry_in: Decimal

    @property
    def balance_period(self) -> Decimal:
        return self.income - self.expense_executed

    @property
    def balance_accumulated(self) -> Decimal:
        return self.carry_in + self.balance_period


@dataclass(frozen=True)
class DailyBalance:
    """Totals of one day and the running balance at its end."""

    date: date
    income: Decimal
    expense_executed: Decimal
    expense_scheduled: Decimal
    running_balance: Decimal
    transactions: tuple[Transaction, ...] = ()


@dataclass(frozen=True)
class AccountBalance:
    """Balance of one account as of an exclusive date boundary."""

    account: Account
    balance: Decimal


@dataclass(frozen=True)
class MonthTotals:
    """Totals of one calendar month."""

    key: str
    income: Decimal = ZERO
    expense_executed: Decimal = ZERO
    expense_scheduled: Decimal = ZERO

    @property
    def expense_all(self) -> Decimal:
        return self.expense_executed + self.expense_scheduled

    @property
    def net(self) -> Decimal:
        return self.income - self.expense_executed


@dataclass(frozen=True)
class Dashboard:
    """Headline numbers for the landing view."""

    total_balance: Decimal
    income_month: Decimal
    expense_month_all: Decimal
    net_month_all: Decimal
    months: tuple[MonthTotals, ...]
    account_balances: tuple[AccountBalance, ...]


@dataclass(frozen=True)
class AccountStatement:
    """Executed-only view of one account over a date range."""

    account: Account
    start_date: date
    end_date: date
    summary: PeriodSummary
    days: tuple[DailyBalance, ...]


@dataclass(frozen=True)
class ReportFilters:
    """Filters of a report; ``end_date`` is inclusive."""

    start_date: date
    end_date: date
    category_id: Optional[int] = None
    account_id: Optional[int] = None
    status: StatusFilter = StatusFilter.ALL
    payment_method: Optional[str] = None


@dataclass(frozen=True)
class ReportSummary:
    """KPI block of a report."""

    income: Decimal
    expense_executed: Decimal
    expense_scheduled: Decimal

    @property
    def net_executed(self) -> Decimal:
        return self.income - self.expense_executed

    @property
    def net_all(self) -> Decimal:
        return self.income - self.expense_executed - self.expense_scheduled


@dataclass(frozen=True)
class ConsolidatedRow:
    """One (kind, category, account) group of a report.

    For expense groups ``total == executed + scheduled``; income groups only
    populate ``total``.
    """

    kind: TransactionKind
    category_id: Optional[int]
    category_name: str
    account_id: Optional[int]
    account_name: str
    total: Decimal
    executed: Decimal = ZERO
    scheduled: Decimal = ZERO


@dataclass(frozen=True)
class ConsolidatedTotals:
    """Column totals of the consolidated table."""

    income: Decimal
    expense_executed: Decimal
    expense_scheduled: Decimal

    @property
    def expense_total(self) -> Decimal:
        return self.expense_executed + self.expense_scheduled

    @property
    def grand_total(self) -> Decimal:
        return self.income + self.expense_total


@dataclass(frozen=True)
class Report:
    """Filtered transactions with their aggregated views."""

    filters: ReportFilters
    category_label: str
    account_label: str
    transactions: tuple[Transaction, ...]
    category_names: dict[int, str]
    account_names: dict[int, str]
    summary: ReportSummary
    consolidated: tuple[ConsolidatedRow, ...]
    totals: ConsolidatedTotals
