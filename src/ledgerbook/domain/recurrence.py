"""Recurring expenses and monthly document numbering.

Expense document numbers restart at 001 every calendar month. The next
number is read from the store as "highest number this month plus one"
and written back with the new rows; nothing locks the month in between,
so two concurrent submissions can receive the same number.
"""

from dataclasses import replace
from datetime import date
from typing import Optional

import structlog

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import NewTransaction, TransactionKind
from ledgerbook.domain.errors import ValidationError
from ledgerbook.utils.date_parser import add_months_keep_day, month_key, month_range
from ledgerbook.utils.text import only_digits

logger = structlog.get_logger(__name__)

DOC_NO_WIDTH = 3
MAX_DOC_NO_DIGITS = 6
MIN_RECURRENCE_MONTHS = 2
MAX_RECURRENCE_MONTHS = 60


def pad_doc_no(number: int) -> str:
    """Zero-pad a document number to three digits ("7" -> "007")."""
    return str(number).zfill(DOC_NO_WIDTH)


def normalize_doc_no(doc_no: str) -> str:
    """Normalize a user-typed document number.

    Non-digits are dropped and the value is padded; a value without any
    non-zero digit becomes "001".

    Raises:
        ValidationError: If the number has more than six digits
    """
    digits = only_digits(doc_no)
    if len(digits) > MAX_DOC_NO_DIGITS:
        raise ValidationError(f"Invalid document number '{doc_no}' (at most 6 digits)")
    return pad_doc_no(int(digits or 0) or 1)


def recurring_description(description: str, index: int, total: int) -> str:
    """Suffix a description with its position in a recurring series."""
    return f"{description} (recorrente {index}/{total})"


class DocumentNumberAllocator:
    """Allocates per-month expense document numbers from the record store."""

    def __init__(self, db: Database):
        self.db = db

    def next_doc_no(self, month: str | date) -> str:
        """Return the next free document number of a month.

        Args:
            month: Month key (YYYY-MM) or any date inside the month

        Returns:
            Highest existing number of the month plus one, padded ("001" if none)
        """
        key = month if isinstance(month, str) else month_key(month)
        start, end = month_range(key)
        last = self.db.get_max_expense_doc_no(start, end)
        last_number = int(only_digits(last) or 0) if last else 0
        return pad_doc_no(last_number + 1)


class RecurrenceExpander:
    """Turns one submitted entry into the rows to insert."""

    def __init__(self, db: Database, allocator: Optional[DocumentNumberAllocator] = None):
        """Initialize the expander.

        Args:
            db: Database instance
            allocator: Document number source, defaults to one over ``db``
        """
        self.db = db
        self.allocator = allocator or DocumentNumberAllocator(db)

    def expand(
        self, template: NewTransaction, months: int = 1, doc_no: Optional[str] = None
    ) -> list[NewTransaction]:
        """Expand a template into one row per month.

        Income yields exactly one row without expense fields. An expense
        yields ``months`` rows dated with :func:`add_months_keep_day`; the
        first row takes ``doc_no`` (or the next free number of its month)
        and later rows take the next free number of their own month, counting
        up when several rows land in the same month.

        Args:
            template: Validated first row
            months: 1 for a single entry, otherwise 2..60
            doc_no: Document number typed for the first row, if any

        Returns:
            Rows to insert, in date order

        Raises:
            ValidationError: If income recurs, months is out of range or the
                document number is invalid
        """
        if template.kind == TransactionKind.INCOME:
            if months != 1:
                raise ValidationError("Only expenses can recur")
            return [
                replace(template, expense_status=None, executed_at=None, expense_doc_no=None)
            ]

        if months != 1 and not MIN_RECURRENCE_MONTHS <= months <= MAX_RECURRENCE_MONTHS:
            raise ValidationError(
                f"Recurrence must be between {MIN_RECURRENCE_MONTHS} and "
                f"{MAX_RECURRENCE_MONTHS} months"
            )

        if doc_no is not None and doc_no.strip():
            first_doc_no = normalize_doc_no(doc_no)
        else:
            first_doc_no = self.allocator.next_doc_no(template.date)

        next_by_month: dict[str, int] = {}
        rows = []
        for i in range(months):
            row_date = add_months_keep_day(template.date, i)
            if i == 0:
                row_doc_no = first_doc_no
            else:
                key = month_key(row_date)
                if key not in next_by_month:
                    next_by_month[key] = int(self.allocator.next_doc_no(key))
                row_doc_no = pad_doc_no(next_by_month[key])
                next_by_month[key] += 1

            description = template.description
            if months > 1:
                description = recurring_description(description, i + 1, months)

            rows.append(
                replace(template, date=row_date, description=description, expense_doc_no=row_doc_no)
            )

        if months > 1:
            logger.info(
                "recurrence_expanded",
                months=months,
                first_date=rows[0].date.isoformat(),
                doc_numbers=[r.expense_doc_no for r in rows],
            )
        return rows
