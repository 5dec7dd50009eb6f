"""CSV import domain service.

Bank statements are read in two steps. Parsing turns the file into
:class:`ParsedRow` objects; rows that fail validation carry an
:class:`ImportRowError` instead of raising. Committing inserts the
selected rows in fixed-size batches. Batches are independent: when one
fails, the earlier ones stay saved.
"""

import re
from datetime import datetime, UTC
from pathlib import Path
from typing import Callable, Iterable, Optional

import structlog

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import (
    ExpenseStatus,
    ImportDefaults,
    ImportPreview,
    ImportResult,
    ImportRowError,
    LedgerEffect,
    NewTransaction,
    ParsedRow,
    TransactionKind,
    User,
)
from ledgerbook.domain.errors import (
    BatchImportError,
    SchemaMismatchError,
    StoreError,
    ValidationError,
)
from ledgerbook.domain.transaction import TransactionService, effect_of
from ledgerbook.domain.user import require_privileged
from ledgerbook.utils.amount_parser import parse_localized_amount
from ledgerbook.utils.date_parser import parse_localized_date
from ledgerbook.utils.text import normalize_text

logger = structlog.get_logger(__name__)

IMPORT_BATCH_SIZE = 200
IMPORTED_PAYMENT_METHOD = "Importado CSV"

# Display name -> normalized header name
EXPECTED_COLUMNS = {
    "Data": "data",
    "Transação": "transacao",
    "Tipo Transação": "tipo transacao",
    "Identificação": "identificacao",
    "Valor": "valor",
}

_INCOME_TOKENS = ("credito", "entrada", "receb")
_EXPENSE_TOKENS = ("debito", "saida", "pag")


def split_lines(text: str) -> list[str]:
    """Split text into trimmed, non-blank lines."""
    return [line.strip() for line in re.split(r"\r?\n", text) if line.strip()]


def detect_delimiter(text: str) -> str:
    """Pick ";" when the first non-blank line has more semicolons than commas."""
    lines = split_lines(text)
    first = lines[0] if lines else ""
    return ";" if first.count(";") > first.count(",") else ","


def split_line(line: str, delimiter: str) -> list[str]:
    """Split one line into trimmed fields.

    Any quote toggles quoting, even in the middle of a field, and the
    quote itself is dropped. Inside quotes the delimiter is literal text
    and a doubled quote stands for one quote.
    """
    fields = []
    current = []
    in_quotes = False
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == '"':
            if in_quotes and line[i + 1 : i + 2] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    fields.append("".join(current))
    return [field.strip() for field in fields]


def map_kind(transaction_type: str) -> Optional[TransactionKind]:
    """Classify a "Tipo Transação" value; None when unrecognized."""
    text = normalize_text(transaction_type)
    if any(token in text for token in _INCOME_TOKENS):
        return TransactionKind.INCOME
    if any(token in text for token in _EXPENSE_TOKENS):
        return TransactionKind.EXPENSE
    return None


def compose_description(transaction: str, identification: str) -> str:
    """Join the two free-text columns into one description."""
    if identification:
        return f"{transaction} - {identification}".strip()
    return transaction.strip()


def _column_indexes(header: list[str]) -> dict[str, int]:
    normalized = [normalize_text(h) for h in header]
    indexes = {}
    missing = []
    for display, name in EXPECTED_COLUMNS.items():
        if name in normalized:
            indexes[name] = normalized.index(name)
        else:
            missing.append(display)
    if missing:
        raise SchemaMismatchError(tuple(missing), tuple(EXPECTED_COLUMNS))
    return indexes


def parse_row(
    line: str,
    row_number: int,
    delimiter: str,
    indexes: dict[str, int],
    defaults: ImportDefaults,
) -> ParsedRow:
    """Parse and validate one data line.

    Validation stops at the first failure, in this order: date, kind,
    amount, positive amount, description.
    """
    cols = split_line(line, delimiter)

    def col(name: str) -> str:
        i = indexes[name]
        return cols[i] if i < len(cols) else ""

    try:
        txn_date = parse_localized_date(col("data"))
    except ValidationError:
        txn_date = None
    kind = map_kind(col("tipo transacao"))
    try:
        amount = parse_localized_amount(col("valor"))
    except ValidationError:
        amount = None
    description = compose_description(col("transacao"), col("identificacao"))

    if txn_date is None:
        error = ImportRowError.INVALID_DATE
    elif kind is None:
        error = ImportRowError.UNRECOGNIZED_KIND
    elif amount is None:
        error = ImportRowError.INVALID_AMOUNT
    elif amount <= 0:
        error = ImportRowError.NON_POSITIVE_AMOUNT
    elif not description:
        error = ImportRowError.EMPTY_DESCRIPTION
    else:
        error = None

    return ParsedRow(
        row_number=row_number,
        raw=line,
        date=txn_date,
        kind=kind,
        description=description,
        amount=amount,
        error=error,
        include=error is None,
        account_id=defaults.account_id,
        category_id=defaults.category_for(kind),
        expense_status=defaults.expense_status,
    )


def parse_text(text: str, defaults: Optional[ImportDefaults] = None) -> ImportPreview:
    """Parse a whole import file.

    The first non-blank line is the header. Every following non-blank line
    becomes a row; there is no row limit.

    Raises:
        SchemaMismatchError: If the header lacks required columns
    """
    defaults = defaults or ImportDefaults()
    text = text.removeprefix("\ufeff")
    lines = split_lines(text)
    delimiter = detect_delimiter(text)

    indexes = _column_indexes(split_line(lines[0], delimiter) if lines else [])
    rows = tuple(
        parse_row(line, row_number, delimiter, indexes, defaults)
        for row_number, line in enumerate(lines[1:], start=2)
    )
    return ImportPreview(delimiter=delimiter, rows=rows)


def apply_defaults(rows: Iterable[ParsedRow], defaults: ImportDefaults) -> None:
    """Re-apply default targets to every valid row, keeping unset defaults."""
    for row in rows:
        if not row.ok:
            continue
        row.account_id = defaults.account_id or row.account_id
        row.category_id = defaults.category_for(row.kind) or row.category_id
        row.expense_status = defaults.expense_status


def set_include(row: ParsedRow, include: bool) -> None:
    """Toggle whether a row will be imported.

    Raises:
        ValidationError: If an invalid row is switched on
    """
    if include and not row.ok:
        raise ValidationError(
            f"Row {row.row_number} cannot be imported: {row.error.message}"
        )
    row.include = include


def chunk(items: list, size: int) -> list[list]:
    """Split a list into consecutive chunks of at most ``size`` items."""
    return [items[i : i + size] for i in range(0, len(items), size)]


class CSVImportService:
    """Service for importing bank statement CSV files."""

    def __init__(
        self,
        db: Database,
        clock: Optional[Callable[[], datetime]] = None,
        batch_size: int = IMPORT_BATCH_SIZE,
    ):
        """Initialize CSV import service.

        Args:
            db: Database instance
            clock: Source of "now" for executed_at stamps
            batch_size: Rows per insert call
        """
        self.db = db
        self.clock = clock or (lambda: datetime.now(UTC))
        self.batch_size = batch_size
        self.transaction_service = TransactionService(db, clock=self.clock)

    def parse_text(self, text: str, defaults: Optional[ImportDefaults] = None) -> ImportPreview:
        """Parse CSV text into a preview.

        Raises:
            SchemaMismatchError: If the header lacks required columns
        """
        preview = parse_text(text, defaults)
        logger.info(
            "import_parsed",
            delimiter=preview.delimiter,
            rows=len(preview.rows),
            valid=len(preview.rows) - len(preview.invalid_rows),
            invalid=len(preview.invalid_rows),
        )
        return preview

    def parse_file(
        self, csv_file_path: str | Path, defaults: Optional[ImportDefaults] = None
    ) -> ImportPreview:
        """Read a UTF-8 file (BOM tolerated) and parse it.

        Raises:
            FileNotFoundError: If CSV file doesn't exist
            SchemaMismatchError: If the header lacks required columns
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")
        return self.parse_text(csv_path.read_text(encoding="utf-8-sig"), defaults)

    def _to_new_transaction(self, row: ParsedRow, user: User) -> NewTransaction:
        is_expense = row.kind == TransactionKind.EXPENSE
        status = row.expense_status if is_expense else None
        return NewTransaction(
            date=row.date,
            kind=row.kind,
            description=row.description,
            amount=row.amount,
            category_id=row.category_id,
            account_id=row.account_id,
            created_by=user.id,
            payment_method=IMPORTED_PAYMENT_METHOD,
            expense_status=status,
            executed_at=self.clock() if status == ExpenseStatus.EXECUTED else None,
        )

    def commit(self, rows: Iterable[ParsedRow], acting_user: Optional[User]) -> ImportResult:
        """Insert the selected rows (valid and included) in batches.

        Args:
            rows: Parsed rows, typically ``preview.rows``
            acting_user: User performing the import

        Returns:
            ImportResult with the number of rows and batches

        Raises:
            ValidationError: If nothing is selected or a selected row lacks
                an account or category, or targets are invalid
            BatchImportError: If a batch fails; earlier batches stay saved
        """
        user = require_privileged(acting_user)
        selected = [r for r in rows if r.selected]
        if not selected:
            raise ValidationError("No valid rows selected for import")

        incomplete = [r.row_number for r in selected if not r.account_id or not r.category_id]
        if incomplete:
            raise ValidationError(
                "Rows without account or category: "
                + ", ".join(str(n) for n in incomplete)
            )

        checked = set()
        for row in selected:
            target = (row.kind, row.category_id, row.account_id)
            if target not in checked:
                self.transaction_service.validate_targets(*target)
                checked.add(target)

        payload = [self._to_new_transaction(r, user) for r in selected]
        batches = chunk(payload, self.batch_size)
        ids: list[int] = []

        for i, batch in enumerate(batches, start=1):
            try:
                ids.extend(self.db.insert_transactions(batch))
            except StoreError as e:
                logger.error(
                    "import_batch_failed",
                    batch=i,
                    batch_count=len(batches),
                    committed_rows=len(ids),
                    detail=e.detail,
                )
                raise BatchImportError(i, len(batches), len(ids), e.detail)
            logger.info("import_batch_committed", batch=i, batch_count=len(batches), rows=len(batch))

        effect: LedgerEffect = effect_of(added=payload, transaction_ids=ids)
        logger.info("import_committed", imported=len(ids), batches=len(batches))
        return ImportResult(imported=len(ids), batch_count=len(batches), effect=effect)
