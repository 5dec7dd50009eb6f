"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidAmountError(ValidationError):
    """Amount text could not be parsed."""


class InvalidDateError(ValidationError):
    """Date text could not be parsed."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class SchemaMismatchError(ValidationError):
    """Import file header lacks required columns."""

    def __init__(self, missing: tuple[str, ...], expected: tuple[str, ...]):
        self.missing = tuple(missing)
        self.expected = tuple(expected)
        super().__init__(
            f"CSV header does not match. Expected: {', '.join(expected)}. "
            f"Missing: {', '.join(missing)}"
        )


class StoreError(DomainError):
    """Record store read or write failed."""

    def __init__(self, operation: str, detail: str, message: Optional[str] = None):
        self.operation = operation
        self.detail = detail
        super().__init__(message or f"{operation} failed: {detail}")


class BatchImportError(StoreError):
    """A batch of an import failed; earlier batches stay committed."""

    def __init__(
        self, batch_index: int, batch_count: int, committed_rows: int, detail: str
    ):
        self.batch_index = batch_index
        self.batch_count = batch_count
        self.committed_rows = committed_rows
        super().__init__(
            f"import batch {batch_index}/{batch_count}",
            detail,
            f"Import failed at batch {batch_index}/{batch_count}: {detail}. "
            f"{committed_rows} row{'s' if committed_rows != 1 else ''} from earlier "
            "batches were already imported and remain saved.",
        )


class ReferentialConflictError(DomainError):
    """Delete rejected because other records reference the entity."""


class SessionExpiredError(DomainError):
    """No authenticated user is available for the operation."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Session expired. Please log in again.")


class PermissionDeniedError(DomainError):
    """The current user may not perform the operation."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def user_not_found(user: int | str) -> str:
    """Return message for missing user."""
    return f"User '{user}' not found"


def delete_blocked(entity: str, name: str, transaction_count: int) -> str:
    """Return message when an account or category is still referenced."""
    return (
        f"Cannot delete {entity} '{name}': it is used by {transaction_count} "
        f"transaction{'s' if transaction_count != 1 else ''}. "
        f"Deactivate it instead."
    )
