"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date, datetime

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerbook.domain.entities import (
    User,
    UserRole,
    Account,
    Category,
    Transaction,
    TransactionKind,
    NewTransaction,
    Attachment,
)


class Database(ABC):
    """Abstract record store for ledgerbook.

    Reads return normalized domain entities. Failures surface as
    ``StoreError``; deleting a referenced row raises
    ``ReferentialConflictError``.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # User operations
    @abstractmethod
    def create_user(self, name: str, role: UserRole) -> int:
        """Create a user. Returns user ID."""
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def get_user_by_name(self, name: str) -> Optional[User]:
        """Get user by name."""
        pass

    @abstractmethod
    def list_users(self) -> list[User]:
        """List all users ordered by name."""
        pass

    @abstractmethod
    def update_user_role(self, user_id: int, role: UserRole) -> None:
        """Change the role of a user."""
        pass

    # Account operations
    @abstractmethod
    def create_account(self, name: str, active: bool = True) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, active_only: bool = False) -> list[Account]:
        """List accounts ordered by name."""
        pass

    @abstractmethod
    def update_account(
        self, account_id: int, name: Optional[str] = None, active: Optional[bool] = None
    ) -> None:
        """Update account name and/or active flag."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        """Count transactions referencing an account."""
        pass

    # Category operations
    @abstractmethod
    def create_category(self, name: str, kind: TransactionKind, active: bool = True) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def list_categories(
        self, kind: Optional[TransactionKind] = None, active_only: bool = False
    ) -> list[Category]:
        """List categories ordered by name, optionally filtered."""
        pass

    @abstractmethod
    def update_category(
        self, category_id: int, name: Optional[str] = None, active: Optional[bool] = None
    ) -> None:
        """Update category name and/or active flag."""
        pass

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        """Delete a category."""
        pass

    @abstractmethod
    def get_category_transaction_count(self, category_id: int) -> int:
        """Count transactions referencing a category."""
        pass

    # Transaction operations
    @abstractmethod
    def insert_transactions(self, transactions: list[NewTransaction]) -> list[int]:
        """Insert rows atomically in one call. Returns the generated IDs in order."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: int, values: NewTransaction) -> None:
        """Overwrite the editable fields of a transaction; ``created_by`` is kept."""
        pass

    @abstractmethod
    def mark_transaction_executed(self, transaction_id: int, executed_at: datetime) -> None:
        """Set an expense's status to executed and stamp ``executed_at``."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction and its attachments."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        before_date: Optional[date] = None,
        category_id: Optional[int] = None,
        account_id: Optional[int] = None,
        kind: Optional[TransactionKind] = None,
        payment_method: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions ordered by date then ID.

        Args:
            start_date: Only rows dated on or after this date
            end_date: Only rows dated on or before this date
            before_date: Only rows dated strictly before this date
            category_id: Equality filter on category
            account_id: Equality filter on account
            kind: Equality filter on kind
            payment_method: Case-insensitive substring filter
        """
        pass

    @abstractmethod
    def get_max_expense_doc_no(self, start_date: date, end_date_exclusive: date) -> Optional[str]:
        """Return the highest document number of expenses dated in ``[start, end)``.

        This is a plain read: two writers may observe the same maximum.
        """
        pass

    # Attachment operations
    @abstractmethod
    def create_attachment(
        self,
        transaction_id: int,
        original_name: str,
        storage_path: Optional[str] = None,
        external_url: Optional[str] = None,
        mime_type: Optional[str] = None,
        size_bytes: Optional[int] = None,
    ) -> int:
        """Create an attachment. Returns attachment ID."""
        pass

    @abstractmethod
    def get_attachment(self, attachment_id: int) -> Optional[Attachment]:
        """Get attachment by ID."""
        pass

    @abstractmethod
    def list_attachments(self, transaction_id: int) -> list[Attachment]:
        """List attachments of a transaction, oldest first."""
        pass

    @abstractmethod
    def delete_attachment(self, attachment_id: int) -> None:
        """Delete an attachment record."""
        pass
