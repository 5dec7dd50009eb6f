"""Utility for resolving account and category names to IDs."""

from typing import Optional

from ledgerbook.domain.account import AccountService
from ledgerbook.domain.category import CategoryService
from ledgerbook.domain.entities import TransactionKind
from ledgerbook.domain.errors import NotFoundError, ValidationError


def _as_id(value: str | int) -> Optional[int]:
    if isinstance(value, int):
        return value
    text = value.strip()
    return int(text) if text.isdigit() else None


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Args:
        account_service: AccountService instance
        account: Account name (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    account_id = _as_id(account)
    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise NotFoundError(f"Account ID {account_id} not found")
        return account_id

    wanted = account.strip().casefold()
    for acc in account_service.list_accounts():
        if acc.name.casefold() == wanted:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")


def resolve_category(
    category_service: CategoryService,
    category: str | int,
    kind: Optional[TransactionKind] = None,
) -> int:
    """Resolve category name or ID to category ID.

    The same name may exist once per kind, so ``kind`` disambiguates names.

    Raises:
        NotFoundError: If no category matches
        ValidationError: If the name matches categories of both kinds
    """
    category_id = _as_id(category)
    if category_id is not None:
        if category_service.get_category(category_id) is None:
            raise NotFoundError(f"Category ID {category_id} not found")
        return category_id

    wanted = category.strip().casefold()
    matches = [
        cat
        for cat in category_service.list_categories(kind=kind)
        if cat.name.casefold() == wanted
    ]
    if not matches:
        raise NotFoundError(f"Category '{category}' not found")
    if len(matches) > 1:
        raise ValidationError(
            f"Category '{category}' exists for both income and expense; "
            "pass the ID or the entry kind"
        )
    return matches[0].id
