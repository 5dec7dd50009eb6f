"""CLI helpers resolving names or IDs given on the command line."""

from __future__ import annotations

from typing import Optional

import click
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.category import CategoryService
from ledgerbook.domain.entities import TransactionKind, User
from ledgerbook.domain.errors import DomainError
from ledgerbook.domain.user import UserService
from ledgerbook.utils.account_resolver import resolve_account, resolve_category


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def resolve_category_or_exit(
    ctx: click.Context,
    category_service: CategoryService,
    category: str | int,
    kind: Optional[TransactionKind] = None,
) -> int:
    """Resolve category name or ID, or exit with a CLI error."""
    try:
        return resolve_category(category_service, category, kind)
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def acting_user_or_exit(ctx: click.Context) -> Optional[User]:
    """Return the user named by --user / LEDGERBOOK_USER, if any.

    Commands that change data pass the result to the services, which reject
    a missing or unprivileged user.
    """
    obj = ctx.obj
    try:
        return UserService(obj["db"]).resolve_user(obj.get("user_name"))
    except DomainError as exc:
        handle_domain_error(ctx, exc)
