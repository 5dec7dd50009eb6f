"""Add transaction command."""

import click
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.cli.resolution import (
    acting_user_or_exit,
    resolve_account_or_exit,
    resolve_category_or_exit,
)
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.category import CategoryService
from ledgerbook.domain.entities import ExpenseStatus, LedgerEffect, TransactionKind
from ledgerbook.domain.errors import DomainError, InvalidAmountError
from ledgerbook.domain.transaction import TransactionService
from ledgerbook.utils.amount_parser import format_currency_localized, parse_localized_amount
from ledgerbook.utils.date_parser import parse_date

KIND_CHOICE = click.Choice([k.value for k in TransactionKind], case_sensitive=False)
STATUS_CHOICE = click.Choice([s.value for s in ExpenseStatus], case_sensitive=False)


def parse_entry_amount(text: str):
    """Parse an amount typed for a manual entry; signs are not accepted.

    Raises:
        InvalidAmountError: If the amount is negative or cannot be parsed
    """
    if text.strip().startswith(("-", "(")):
        raise InvalidAmountError(
            f"Amount '{text}' must be positive; use --kind to record an expense"
        )
    return parse_localized_amount(text)


def echo_effect(effect: LedgerEffect, account_names: dict[int, str]) -> None:
    """Print the balance change of a write, one line per account."""
    for account_id, delta in effect.balance_deltas.items():
        name = account_names.get(account_id, f"#{account_id}")
        sign = "+" if delta > 0 else ""
        click.echo(f"  Balance {name}: {sign}{format_currency_localized(delta)}")


@click.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--category", required=True, help="Category name or ID")
@click.option(
    "--date",
    required=True,
    help="Transaction date (YYYY-MM-DD, DD/MM/YYYY or relative like 'today', 'tomorrow')",
)
@click.option("--amount", required=True, help="Positive amount (e.g., 123.45 or 1.234,56)")
@click.option("--description", required=True, help="Transaction description")
@click.option("--kind", type=KIND_CHOICE, default="expense", show_default=True)
@click.option("--payment-method", help="Payment method (e.g., PIX, Dinheiro)")
@click.option(
    "--status",
    type=STATUS_CHOICE,
    default="executed",
    show_default=True,
    help="Expense status; scheduled expenses do not reduce the balance",
)
@click.option("--doc-no", help="Expense document number (default: next free number of the month)")
@click.option(
    "--recurring",
    type=int,
    default=1,
    show_default=True,
    help="Repeat an expense monthly for this many months (2-60)",
)
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    category: str,
    date: str,
    amount: str,
    description: str,
    kind: str,
    payment_method: str | None,
    status: str,
    doc_no: str | None,
    recurring: int,
):
    """Add a transaction manually.

    Examples:
        ledgerbook add --account Caixa --category Energia --date 2024-01-31 --amount 150,00 --description "Conta de luz"
        ledgerbook add --account Caixa --category Aluguel --date 2024-01-10 --amount 900 --description Aluguel --status scheduled --recurring 12
        ledgerbook add --account Banco --category Dízimos --kind income --date today --amount 1.234,56 --description "Culto domingo"
    """
    db = ctx.obj["db"]
    transaction_service = TransactionService(db)
    account_service = AccountService(db)
    category_service = CategoryService(db)
    txn_kind = TransactionKind(kind.lower())

    # Resolve names to IDs
    account_id = resolve_account_or_exit(ctx, account_service, account)
    category_id = resolve_category_or_exit(ctx, category_service, category, txn_kind)
    acting_user = acting_user_or_exit(ctx)

    try:
        txn_date = parse_date(date)
        txn_amount = parse_entry_amount(amount)
        effect = transaction_service.create_transaction(
            acting_user=acting_user,
            date=txn_date,
            kind=txn_kind,
            description=description,
            amount=txn_amount,
            category_id=category_id,
            account_id=account_id,
            payment_method=payment_method,
            expense_status=ExpenseStatus(status.lower()),
            expense_doc_no=doc_no,
            recurrence_months=recurring,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    count = len(effect.transaction_ids)
    click.echo(f"Created {count} transaction{'s' if count != 1 else ''}")
    for transaction_id in effect.transaction_ids:
        txn = transaction_service.get_transaction(transaction_id)
        doc = f" | Doc {txn.expense_doc_no}" if txn.expense_doc_no else ""
        click.echo(
            f"  {txn.id}: {txn.date} | {format_currency_localized(txn.amount)}{doc} | {txn.description}"
        )
    echo_effect(effect, {a.id: a.name for a in account_service.list_accounts()})


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
