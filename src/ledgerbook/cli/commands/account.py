"""Account management commands."""

from datetime import date, timedelta

import click
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.cli.resolution import acting_user_or_exit, resolve_account_or_exit
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.entities import ZERO
from ledgerbook.domain.errors import DomainError
from ledgerbook.domain.ledger import LedgerService
from ledgerbook.utils.amount_parser import format_currency_localized
from ledgerbook.utils.date_parser import parse_date


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.pass_context
def create_account(ctx, name: str):
    """Create a new account.

    Examples:
        ledgerbook account create "Caixa"
        ledgerbook account create "Banco do Brasil"
    """
    service = AccountService(ctx.obj["db"])
    acting_user = acting_user_or_exit(ctx)

    try:
        account_id = service.create_account(name=name, acting_user=acting_user)
        click.echo(f"Created account '{name.strip()}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide deactivated accounts")
@click.pass_context
def list_accounts(ctx, active_only: bool):
    """List all accounts."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(active_only=active_only)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        state = "active" if acc.active else "inactive"
        click.echo(f"ID: {acc.id:3d} | {acc.name:20s} | {state}")


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_account(ctx, account: str, new_name: str) -> None:
    """Rename an account.

    ACCOUNT can be an account name or ID.
    NEW_NAME is the new name for the account.

    Examples:
        ledgerbook account rename "Caixa" "Caixa Geral"
        ledgerbook account rename 1 "Conta Principal"
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acting_user = acting_user_or_exit(ctx)

    try:
        service.rename_account(account_id=account_id, name=new_name, acting_user=acting_user)
        click.echo(f"Renamed account to '{new_name.strip()}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def _set_active(ctx, account: str, active: bool) -> None:
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acting_user = acting_user_or_exit(ctx)

    try:
        service.set_active(account_id, active, acting_user)
    except DomainError as e:
        handle_domain_error(ctx, e)

    state = "Activated" if active else "Deactivated"
    click.echo(f"{state} account '{service.get_account(account_id).name}'")


@account_group.command("activate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def activate_account(ctx, account: str) -> None:
    """Allow new entries on an account again."""
    _set_active(ctx, account, True)


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str) -> None:
    """Stop new entries on an account; its history stays."""
    _set_active(ctx, account, False)


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID.

    The account can only be deleted if no transaction references it.
    Deactivate it instead to keep its history.

    Examples:
        ledgerbook account delete "Caixa"
        ledgerbook account delete 1 --yes
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acting_user = acting_user_or_exit(ctx)
    account_obj = service.get_account(account_id)

    # Confirm deletion
    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id, acting_user)
        click.echo(f"Deleted account '{account_obj.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("balances")
@click.option("--as-of", help="Include transactions up to this date (default: today)")
@click.pass_context
def account_balances(ctx, as_of: str | None) -> None:
    """Show the balance of every account.

    Scheduled expenses are not deducted.

    Examples:
        ledgerbook account balances
        ledgerbook account balances --as-of 2024-12-31
    """
    ledger = LedgerService(ctx.obj["db"])

    try:
        last_day = parse_date(as_of) if as_of else date.today()
        balances = ledger.account_balances(last_day + timedelta(days=1))
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not balances:
        click.echo("No accounts found.")
        return

    click.echo(f"\nBalances as of {last_day.isoformat()}:")
    click.echo("-" * 60)
    for item in balances:
        click.echo(f"{item.account.name:30s} {format_currency_localized(item.balance):>20s}")
    click.echo("-" * 60)
    total = sum((item.balance for item in balances), ZERO)
    click.echo(f"{'TOTAL':30s} {format_currency_localized(total):>20s}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
