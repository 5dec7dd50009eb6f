"""Transaction domain service."""

from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterable, Optional

import structlog

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import (
    ZERO,
    ExpenseStatus,
    LedgerEffect,
    NewTransaction,
    Transaction as TransactionEntity,
    TransactionKind,
    User,
)
from ledgerbook.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    category_not_found,
    transaction_not_found,
)
from ledgerbook.domain.recurrence import DocumentNumberAllocator, RecurrenceExpander, normalize_doc_no
from ledgerbook.domain.user import require_privileged
from ledgerbook.utils.amount_parser import quantize_amount
from ledgerbook.utils.date_parser import get_date_range, month_range

logger = structlog.get_logger(__name__)


class ViewMode(str, Enum):
    """Date windows offered by transaction listings."""

    TODAY = "today"
    NEXT_5_DAYS = "next5"
    LAST_5_DAYS = "last5"
    MONTH = "month"
    RANGE = "range"


def view_window(
    mode: ViewMode,
    today: Optional[date] = None,
    month: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> tuple[date, date]:
    """Resolve a listing mode into an inclusive date range.

    Args:
        mode: Listing mode
        today: Reference date, defaults to the current date
        month: YYYY-MM key for MONTH mode (defaults to today's month)
        start_date: First bound for RANGE mode
        end_date: Second bound for RANGE mode; bounds are swapped if inverted

    Raises:
        ValidationError: If RANGE mode lacks a bound
    """
    today = today or date.today()
    if mode == ViewMode.TODAY:
        return get_date_range("today", today)
    if mode == ViewMode.NEXT_5_DAYS:
        return get_date_range("next-5-days", today)
    if mode == ViewMode.LAST_5_DAYS:
        return get_date_range("last-5-days", today)
    if mode == ViewMode.MONTH:
        if month is None:
            return get_date_range("this-month", today)
        start, end = month_range(month)
        return (start, end - timedelta(days=1))

    if start_date is None or end_date is None:
        raise ValidationError("A range needs both a start and an end date")
    return (min(start_date, end_date), max(start_date, end_date))


def effect_of(
    added: Iterable[TransactionEntity | NewTransaction] = (),
    removed: Iterable[TransactionEntity] = (),
    transaction_ids: Iterable[int] = (),
) -> LedgerEffect:
    """Build the per-account balance change of adding and removing rows."""
    deltas: dict[int, Decimal] = defaultdict(lambda: ZERO)
    for t in added:
        if t.account_id is not None:
            deltas[t.account_id] += t.balance_contribution
    for t in removed:
        if t.account_id is not None:
            deltas[t.account_id] -= t.balance_contribution
    return LedgerEffect(
        transaction_ids=tuple(transaction_ids),
        balance_deltas={k: v for k, v in deltas.items() if v != ZERO},
    )


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database, clock: Optional[Callable[[], datetime]] = None):
        """Initialize transaction service.

        Args:
            db: Database instance
            clock: Source of "now" for executed_at stamps
        """
        self.db = db
        self.clock = clock or (lambda: datetime.now(UTC))
        self.allocator = DocumentNumberAllocator(db)
        self.expander = RecurrenceExpander(db, self.allocator)

    def validate_targets(
        self,
        kind: TransactionKind,
        category_id: Optional[int],
        account_id: Optional[int],
        allow_inactive: bool = False,
    ) -> None:
        """Check that a category of the right kind and an account exist.

        Raises:
            ValidationError: If a target is missing, inactive or of the wrong kind
            NotFoundError: If a target does not exist
        """
        if category_id is None:
            raise ValidationError("Choose a category")
        if account_id is None:
            raise ValidationError("Choose an account")

        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        if category.kind != kind:
            raise ValidationError(
                f"Category '{category.name}' is a {category.kind.value} category "
                f"and cannot hold {kind.value}"
            )

        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))

        if not allow_inactive:
            if not category.active:
                raise ValidationError(f"Category '{category.name}' is inactive")
            if not account.active:
                raise ValidationError(f"Account '{account.name}' is inactive")

    def _build(
        self,
        acting_user: User,
        txn_date: date,
        kind: TransactionKind,
        description: str,
        amount: Decimal,
        category_id: Optional[int],
        account_id: Optional[int],
        payment_method: Optional[str],
        expense_status: Optional[ExpenseStatus],
        expense_doc_no: Optional[str],
        allow_inactive: bool = False,
    ) -> NewTransaction:
        if txn_date is None:
            raise ValidationError("Date is required")
        description = (description or "").strip()
        if not description:
            raise ValidationError("Description is required")
        amount = quantize_amount(Decimal(amount))
        if amount <= 0:
            raise ValidationError("Amount must be greater than 0")

        self.validate_targets(kind, category_id, account_id, allow_inactive=allow_inactive)

        is_expense = kind == TransactionKind.EXPENSE
        status = (expense_status or ExpenseStatus.EXECUTED) if is_expense else None
        return NewTransaction(
            date=txn_date,
            kind=kind,
            description=description,
            amount=amount,
            category_id=category_id,
            account_id=account_id,
            created_by=acting_user.id,
            payment_method=(payment_method or "").strip() or None,
            expense_status=status,
            executed_at=self.clock() if status == ExpenseStatus.EXECUTED else None,
            expense_doc_no=expense_doc_no if is_expense else None,
        )

    def _get_or_raise(self, transaction_id: int) -> TransactionEntity:
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def create_transaction(
        self,
        acting_user: Optional[User],
        date: date,
        kind: TransactionKind,
        description: str,
        amount: Decimal,
        category_id: Optional[int],
        account_id: Optional[int],
        payment_method: Optional[str] = None,
        expense_status: ExpenseStatus = ExpenseStatus.EXECUTED,
        expense_doc_no: Optional[str] = None,
        recurrence_months: int = 1,
    ) -> LedgerEffect:
        """Create a transaction, or a monthly series of expenses.

        Args:
            acting_user: User performing the operation
            date: Transaction date (first date of a series)
            kind: Income or expense
            description: Free text, required
            amount: Positive amount
            category_id: Category matching ``kind``
            account_id: Account ID
            payment_method: Optional free text
            expense_status: Scheduled or executed (expenses only)
            expense_doc_no: Document number; allocated for the month when omitted
            recurrence_months: 1, or 2..60 for a recurring expense

        Returns:
            LedgerEffect with the new IDs and balance deltas

        Raises:
            ValidationError: If any field is invalid
            NotFoundError: If category or account does not exist
            SessionExpiredError: If there is no acting user
            PermissionDeniedError: If the acting user may not change data
        """
        user = require_privileged(acting_user)
        template = self._build(
            user,
            date,
            kind,
            description,
            amount,
            category_id,
            account_id,
            payment_method,
            expense_status,
            None,
        )
        rows = self.expander.expand(template, recurrence_months, expense_doc_no)
        ids = self.db.insert_transactions(rows)

        logger.info(
            "transactions_created",
            count=len(ids),
            kind=kind.value,
            account_id=account_id,
            first_id=ids[0] if ids else None,
        )
        return effect_of(added=rows, transaction_ids=ids)

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        kind: Optional[TransactionKind] = None,
        payment_method: Optional[str] = None,
    ) -> list[TransactionEntity]:
        """List transactions with optional filters, oldest first.

        Raises:
            ValidationError: If the date range is inverted
        """
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ValidationError("Start date must not be after end date")
        return self.db.list_transactions(
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            category_id=category_id,
            kind=kind,
            payment_method=payment_method,
        )

    def update_transaction(
        self,
        transaction_id: int,
        acting_user: Optional[User],
        date: Optional[date] = None,
        kind: Optional[TransactionKind] = None,
        description: Optional[str] = None,
        amount: Optional[Decimal] = None,
        category_id: Optional[int] = None,
        account_id: Optional[int] = None,
        payment_method: Optional[str] = None,
        expense_status: Optional[ExpenseStatus] = None,
        expense_doc_no: Optional[str] = None,
    ) -> LedgerEffect:
        """Edit a transaction; omitted fields keep their value.

        Switching to income clears the expense-only fields. Saving an
        executed expense stamps ``executed_at`` with the current time; a
        scheduled expense has none. An expense that has no document number
        gets the next one of its month.

        Returns:
            LedgerEffect describing the balance change

        Raises:
            NotFoundError: If the transaction, category or account is missing
            ValidationError: If the resulting transaction is invalid
        """
        user = require_privileged(acting_user)
        old = self._get_or_raise(transaction_id)

        new_kind = kind or old.kind
        new_category_id = category_id if category_id is not None else old.category_id
        new_account_id = account_id if account_id is not None else old.account_id
        if payment_method is None:
            payment_method = old.payment_method

        if new_kind == TransactionKind.EXPENSE:
            status = expense_status or old.expense_status or ExpenseStatus.EXECUTED
            if expense_doc_no is not None and expense_doc_no.strip():
                doc_no = normalize_doc_no(expense_doc_no)
            else:
                doc_no = old.expense_doc_no
        else:
            status = None
            doc_no = None

        values = self._build(
            user,
            date or old.date,
            new_kind,
            description if description is not None else old.description,
            amount if amount is not None else old.amount,
            new_category_id,
            new_account_id,
            payment_method,
            status,
            doc_no,
            allow_inactive=(
                new_category_id == old.category_id and new_account_id == old.account_id
            ),
        )
        if values.kind == TransactionKind.EXPENSE and not values.expense_doc_no:
            values = replace(values, expense_doc_no=self.allocator.next_doc_no(values.date))

        self.db.update_transaction(transaction_id, values)
        logger.info("transaction_updated", transaction_id=transaction_id)
        return effect_of(added=[values], removed=[old], transaction_ids=[transaction_id])

    def mark_executed(self, transaction_id: int, acting_user: Optional[User]) -> LedgerEffect:
        """Move a scheduled expense to executed, stamping ``executed_at``.

        Marking an executed expense again changes nothing.

        Raises:
            NotFoundError: If the transaction does not exist
            ValidationError: If the transaction is income
        """
        require_privileged(acting_user)
        txn = self._get_or_raise(transaction_id)
        if txn.kind != TransactionKind.EXPENSE:
            raise ValidationError("Only expenses can be marked as executed")
        if txn.is_executed_expense:
            return LedgerEffect(transaction_ids=(transaction_id,))

        self.db.mark_transaction_executed(transaction_id, self.clock())
        logger.info("transaction_executed", transaction_id=transaction_id)
        deltas = {txn.account_id: -txn.amount} if txn.account_id is not None else {}
        return LedgerEffect(transaction_ids=(transaction_id,), balance_deltas=deltas)

    def delete_transaction(self, transaction_id: int, acting_user: Optional[User]) -> LedgerEffect:
        """Delete a transaction together with its attachments.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        require_privileged(acting_user)
        txn = self._get_or_raise(transaction_id)
        self.db.delete_transaction(transaction_id)
        logger.info("transaction_deleted", transaction_id=transaction_id)
        return effect_of(removed=[txn], transaction_ids=[transaction_id])
