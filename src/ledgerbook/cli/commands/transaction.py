"""Transaction management commands."""

import mimetypes
import time
from pathlib import Path

import click
from ledgerbook.cli.commands.add import (
    KIND_CHOICE,
    STATUS_CHOICE,
    echo_effect,
    parse_entry_amount,
)
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.cli.resolution import (
    acting_user_or_exit,
    resolve_account_or_exit,
    resolve_category_or_exit,
)
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.attachment import AttachmentService, LocalBlobStore
from ledgerbook.domain.category import CategoryService
from ledgerbook.domain.entities import ZERO, ExpenseStatus, TransactionKind
from ledgerbook.domain.errors import DomainError
from ledgerbook.domain.transaction import TransactionService, ViewMode, view_window
from ledgerbook.utils.amount_parser import format_currency_localized
from ledgerbook.utils.date_parser import parse_date

DEFAULT_ATTACHMENTS_DIR = Path.home() / ".ledgerbook" / "attachments"


def _status_text(txn) -> str:
    if txn.kind == TransactionKind.INCOME:
        return "-"
    return txn.effective_status.value


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--account", help="Account name or ID")
@click.option("--category", help="Category name or ID")
@click.option("--date", help="Transaction date (YYYY-MM-DD, DD/MM/YYYY or relative like 'today')")
@click.option("--amount", help="Positive amount (e.g., 123.45 or 1.234,56)")
@click.option("--description", help="Transaction description")
@click.option("--kind", type=KIND_CHOICE, help="Switching to income clears expense fields")
@click.option("--payment-method", help="Payment method")
@click.option("--status", type=STATUS_CHOICE, help="Expense status")
@click.option("--doc-no", help="Expense document number")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    account: str | None,
    category: str | None,
    date: str | None,
    amount: str | None,
    description: str | None,
    kind: str | None,
    payment_method: str | None,
    status: str | None,
    doc_no: str | None,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided.

    Examples:
        ledgerbook transaction update 1 --amount 75,00
        ledgerbook transaction update 1 --status scheduled --date 2024-02-10
        ledgerbook transaction update 1 --kind income --category "Ofertas"
    """
    db = ctx.obj["db"]
    transaction_service = TransactionService(db)
    account_service = AccountService(db)
    category_service = CategoryService(db)

    txn = transaction_service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    txn_kind = TransactionKind(kind.lower()) if kind else None
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, account_service, account)
    category_id = None
    if category is not None:
        category_id = resolve_category_or_exit(
            ctx, category_service, category, txn_kind or txn.kind
        )
    acting_user = acting_user_or_exit(ctx)

    try:
        effect = transaction_service.update_transaction(
            transaction_id=transaction_id,
            acting_user=acting_user,
            date=parse_date(date) if date is not None else None,
            kind=txn_kind,
            description=description,
            amount=parse_entry_amount(amount) if amount is not None else None,
            category_id=category_id,
            account_id=account_id,
            payment_method=payment_method,
            expense_status=ExpenseStatus(status.lower()) if status else None,
            expense_doc_no=doc_no,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated transaction {transaction_id}")
    echo_effect(effect, {a.id: a.name for a in account_service.list_accounts()})


@transaction_group.command("list")
@click.option("--today", "mode", flag_value=ViewMode.TODAY.value, help="Only today")
@click.option("--next-5-days", "mode", flag_value=ViewMode.NEXT_5_DAYS.value, help="Today and the next 5 days")
@click.option("--last-5-days", "mode", flag_value=ViewMode.LAST_5_DAYS.value, help="The last 5 days including today")
@click.option("--month", help="Calendar month as YYYY-MM (default: current month)")
@click.option("--start-date", help="Range start (YYYY-MM-DD or DD/MM/YYYY)")
@click.option("--end-date", help="Range end, inclusive")
@click.option("--account", help="Account name or ID")
@click.option("--category", help="Category name or ID")
@click.option("--kind", type=KIND_CHOICE, help="Only income or only expenses")
@click.option("--payment-method", help="Payment method contains this text")
@click.pass_context
def list_transactions(
    ctx,
    mode: str | None,
    month: str | None,
    start_date: str | None,
    end_date: str | None,
    account: str | None,
    category: str | None,
    kind: str | None,
    payment_method: str | None,
):
    """View transactions of a date window with optional filters.

    Without a window option the current month is shown. --start-date and
    --end-date may be given in any order.
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    account_service = AccountService(db)
    category_service = CategoryService(db)

    if start_date or end_date:
        view_mode = ViewMode.RANGE
    elif mode:
        view_mode = ViewMode(mode)
    else:
        view_mode = ViewMode.MONTH

    txn_kind = TransactionKind(kind.lower()) if kind else None
    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None
    category_id = (
        resolve_category_or_exit(ctx, category_service, category, txn_kind) if category else None
    )

    try:
        start, end = view_window(
            view_mode,
            month=month,
            start_date=parse_date(start_date) if start_date else None,
            end_date=parse_date(end_date) if end_date else None,
        )
        transactions = service.list_transactions(
            start_date=start,
            end_date=end,
            account_id=account_id,
            category_id=category_id,
            kind=txn_kind,
            payment_method=payment_method,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo(f"No transactions found between {start} and {end}.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts()}
    categories = {cat.id: cat.name for cat in category_service.list_categories()}

    click.echo(f"\nFound {len(transactions)} transaction(s) between {start} and {end}:")
    click.echo("-" * 120)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Kind':<8} {'Status':<10} {'Doc':<7} {'Amount':>16} "
        f"{'Account':<16} {'Category':<18} {'Description':<30}"
    )
    click.echo("-" * 120)

    for txn in transactions:
        click.echo(
            f"{txn.id:<6} {str(txn.date):<12} {txn.kind.value:<8} {_status_text(txn):<10} "
            f"{txn.expense_doc_no or '':<7} {format_currency_localized(txn.amount):>16} "
            f"{accounts.get(txn.account_id, '-')[:16]:<16} "
            f"{categories.get(txn.category_id, '-')[:18]:<18} {txn.description[:30]:<30}"
        )

    # Show totals
    income = sum((t.amount for t in transactions if t.kind == TransactionKind.INCOME), ZERO)
    executed = sum((t.amount for t in transactions if t.is_executed_expense), ZERO)
    scheduled = sum((t.amount for t in transactions if t.is_scheduled_expense), ZERO)
    click.echo("-" * 120)
    click.echo(
        f"{'TOTAL':<6} Income: {format_currency_localized(income)} | "
        f"Executed: {format_currency_localized(executed)} | "
        f"Scheduled: {format_currency_localized(scheduled)} | Count: {len(transactions)}"
    )


@transaction_group.command("execute")
@click.argument("transaction_id", type=int)
@click.pass_context
def execute_transaction(ctx, transaction_id: int) -> None:
    """Mark a scheduled expense as executed.

    Examples:
        ledgerbook transaction execute 12
    """
    db = ctx.obj["db"]
    acting_user = acting_user_or_exit(ctx)

    try:
        effect = TransactionService(db).mark_executed(transaction_id, acting_user)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not effect.balance_deltas:
        click.echo(f"Transaction {transaction_id} was already executed")
        return
    click.echo(f"Marked transaction {transaction_id} as executed")
    echo_effect(effect, {a.id: a.name for a in AccountService(db).list_accounts()})


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a transaction and its attachments.

    Examples:
        ledgerbook transaction delete 1
    """
    db = ctx.obj["db"]
    transaction_service = TransactionService(db)

    # Get transaction info for display
    txn = transaction_service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)
    acting_user = acting_user_or_exit(ctx)

    # Confirm deletion
    if not yes and not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        effect = transaction_service.delete_transaction(transaction_id, acting_user)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Deleted transaction {transaction_id}")
    echo_effect(effect, {a.id: a.name for a in AccountService(db).list_accounts()})


@transaction_group.command("attach")
@click.argument("transaction_id", type=int)
@click.option("--file", "file_path", type=click.Path(exists=True, dir_okay=False), help="File to store")
@click.option("--url", help="Link to a file kept elsewhere")
@click.option("--name", help="Display name (default: file name or URL)")
@click.option(
    "--storage-dir",
    type=click.Path(file_okay=False),
    envvar="LEDGERBOOK_ATTACHMENTS_DIR",
    help="Where stored files are kept (default: ~/.ledgerbook/attachments)",
)
@click.pass_context
def attach(
    ctx,
    transaction_id: int,
    file_path: str | None,
    url: str | None,
    name: str | None,
    storage_dir: str | None,
) -> None:
    """Attach a receipt to a transaction, by file or by link.

    Examples:
        ledgerbook transaction attach 3 --file recibo.pdf
        ledgerbook transaction attach 3 --url https://example.org/nota/123
    """
    if bool(file_path) == bool(url):
        click.echo("Error: Give exactly one of --file or --url", err=True)
        ctx.exit(1)

    service = AttachmentService(ctx.obj["db"], LocalBlobStore(storage_dir or DEFAULT_ATTACHMENTS_DIR))
    acting_user = acting_user_or_exit(ctx)

    try:
        if file_path:
            path = Path(file_path)
            attachment_id = service.upload_attachment(
                transaction_id,
                acting_user,
                filename=name or path.name,
                content=path.read_bytes(),
                timestamp_ms=int(time.time() * 1000),
                mime_type=mimetypes.guess_type(path.name)[0],
            )
        else:
            attachment_id = service.add_attachment(
                transaction_id, acting_user, original_name=name or url, external_url=url
            )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Attached {attachment_id} to transaction {transaction_id}")


@transaction_group.command("attachments")
@click.argument("transaction_id", type=int)
@click.option(
    "--storage-dir",
    type=click.Path(file_okay=False),
    envvar="LEDGERBOOK_ATTACHMENTS_DIR",
    help="Where stored files are kept (default: ~/.ledgerbook/attachments)",
)
@click.pass_context
def list_attachments(ctx, transaction_id: int, storage_dir: str | None) -> None:
    """List the attachments of a transaction with links to open them."""
    service = AttachmentService(ctx.obj["db"], LocalBlobStore(storage_dir or DEFAULT_ATTACHMENTS_DIR))

    attachments = service.list_attachments(transaction_id)
    if not attachments:
        click.echo(f"No attachments for transaction {transaction_id}.")
        return

    for attachment in attachments:
        try:
            link = service.link_for(attachment.id)
        except DomainError as e:
            link = f"unavailable ({e})"
        click.echo(f"{attachment.id:<6} {attachment.original_name:<30} {link}")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
