"""Account domain service."""

from typing import Optional

import structlog

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import Account as AccountEntity, User
from ledgerbook.domain.errors import (
    NotFoundError,
    ReferentialConflictError,
    ValidationError,
    account_not_found,
    delete_blocked,
)
from ledgerbook.domain.user import require_privileged

logger = structlog.get_logger(__name__)


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_name(self, name: str, exclude_id: Optional[int] = None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required")
        for acc in self.db.list_accounts():
            if acc.id != exclude_id and acc.name.casefold() == name.casefold():
                raise ValidationError(f"Account with name '{name}' already exists")
        return name

    def _get_or_raise(self, account_id: int) -> AccountEntity:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def create_account(self, name: str, acting_user: Optional[User]) -> int:
        """Create a new account.

        Args:
            name: Account name
            acting_user: User performing the operation

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty or already exists
        """
        require_privileged(acting_user)
        name = self._check_name(name)
        account_id = self.db.create_account(name=name)
        logger.info("account_created", account_id=account_id)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def list_accounts(self, active_only: bool = False) -> list[AccountEntity]:
        """List accounts ordered by name.

        Args:
            active_only: Hide deactivated accounts (for new-entry pickers)
        """
        return self.db.list_accounts(active_only=active_only)

    def rename_account(self, account_id: int, name: str, acting_user: Optional[User]) -> None:
        """Rename an account.

        Raises:
            NotFoundError: If account not found
            ValidationError: If the name is empty or already exists
        """
        require_privileged(acting_user)
        self._get_or_raise(account_id)
        name = self._check_name(name, exclude_id=account_id)
        self.db.update_account(account_id, name=name)
        logger.info("account_renamed", account_id=account_id)

    def set_active(self, account_id: int, active: bool, acting_user: Optional[User]) -> None:
        """Activate or deactivate an account.

        Deactivated accounts disappear from pickers but keep their balance.
        """
        require_privileged(acting_user)
        self._get_or_raise(account_id)
        self.db.update_account(account_id, active=active)
        logger.info("account_active_changed", account_id=account_id, active=active)

    def delete_account(self, account_id: int, acting_user: Optional[User]) -> None:
        """Delete an account.

        Args:
            account_id: Account ID to delete
            acting_user: User performing the operation

        Raises:
            NotFoundError: If account not found
            ReferentialConflictError: If transactions reference the account
        """
        require_privileged(acting_user)
        account = self._get_or_raise(account_id)

        transaction_count = self.db.get_account_transaction_count(account_id)
        if transaction_count > 0:
            logger.warning(
                "account_delete_rejected", account_id=account_id, transactions=transaction_count
            )
            raise ReferentialConflictError(
                delete_blocked("account", account.name, transaction_count)
            )

        self.db.delete_account(account_id)
        logger.info("account_deleted", account_id=account_id)
