"""Category domain service."""

from typing import Optional

import structlog

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import Category as CategoryEntity, TransactionKind, User
from ledgerbook.domain.errors import (
    NotFoundError,
    ReferentialConflictError,
    ValidationError,
    category_not_found,
    delete_blocked,
)
from ledgerbook.domain.user import require_privileged

logger = structlog.get_logger(__name__)


class CategoryService:
    """Service for managing income and expense categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def _get_or_raise(self, category_id: int) -> CategoryEntity:
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    def _check_name(
        self, name: str, kind: TransactionKind, exclude_id: Optional[int] = None
    ) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")
        for cat in self.db.list_categories(kind=kind):
            if cat.id != exclude_id and cat.name.casefold() == name.casefold():
                raise ValidationError(
                    f"{kind.value.capitalize()} category '{name}' already exists"
                )
        return name

    def create_category(
        self, name: str, kind: TransactionKind, acting_user: Optional[User]
    ) -> int:
        """Create a category.

        Args:
            name: Category name, unique per kind
            kind: Whether the category holds income or expenses
            acting_user: User performing the operation

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is empty or already exists for the kind
        """
        require_privileged(acting_user)
        name = self._check_name(name, kind)
        category_id = self.db.create_category(name=name, kind=kind)
        logger.info("category_created", category_id=category_id, kind=kind.value)
        return category_id

    def get_category(self, category_id: int) -> Optional[CategoryEntity]:
        """Get category by ID.

        Args:
            category_id: Category ID

        Returns:
            Category entity or None if not found
        """
        return self.db.get_category(category_id)

    def list_categories(
        self, kind: Optional[TransactionKind] = None, active_only: bool = False
    ) -> list[CategoryEntity]:
        """List categories.

        Args:
            kind: Optional kind to filter by
            active_only: Hide deactivated categories (for new-entry pickers)

        Returns:
            List of category entities
        """
        return self.db.list_categories(kind=kind, active_only=active_only)

    def rename_category(self, category_id: int, name: str, acting_user: Optional[User]) -> None:
        """Rename a category."""
        require_privileged(acting_user)
        category = self._get_or_raise(category_id)
        name = self._check_name(name, category.kind, exclude_id=category_id)
        self.db.update_category(category_id, name=name)
        logger.info("category_renamed", category_id=category_id)

    def set_active(self, category_id: int, active: bool, acting_user: Optional[User]) -> None:
        """Activate or deactivate a category."""
        require_privileged(acting_user)
        self._get_or_raise(category_id)
        self.db.update_category(category_id, active=active)
        logger.info("category_active_changed", category_id=category_id, active=active)

    def delete_category(self, category_id: int, acting_user: Optional[User]) -> None:
        """Delete a category.

        Raises:
            NotFoundError: If category not found
            ReferentialConflictError: If transactions reference the category
        """
        require_privileged(acting_user)
        category = self._get_or_raise(category_id)

        transaction_count = self.db.get_category_transaction_count(category_id)
        if transaction_count > 0:
            logger.warning(
                "category_delete_rejected", category_id=category_id, transactions=transaction_count
            )
            raise ReferentialConflictError(
                delete_blocked("category", category.name, transaction_count)
            )

        self.db.delete_category(category_id)
        logger.info("category_deleted", category_id=category_id)
