"""Dashboard command."""

import click
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.domain.errors import DomainError
from ledgerbook.domain.ledger import LedgerService
from ledgerbook.utils.amount_parser import format_currency_localized


@click.command("dashboard")
@click.option("--months", default=12, show_default=True, help="Months in the history table")
@click.pass_context
def dashboard(ctx, months: int):
    """Show balances and the income/expense history of recent months."""
    try:
        board = LedgerService(ctx.obj["db"]).dashboard(months_back=months)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\n{'Total balance':<30} {format_currency_localized(board.total_balance):>20}")
    click.echo(f"{'Income this month':<30} {format_currency_localized(board.income_month):>20}")
    click.echo(f"{'Expenses this month':<30} {format_currency_localized(board.expense_month_all):>20}")
    click.echo(f"{'Result this month':<30} {format_currency_localized(board.net_month_all):>20}")

    if board.account_balances:
        click.echo("\nAccounts:")
        for item in board.account_balances:
            click.echo(f"  {item.account.name:<28} {format_currency_localized(item.balance):>20}")

    click.echo("\n" + "-" * 80)
    click.echo(f"{'Month':<10} {'Income':>16} {'Executed':>16} {'Scheduled':>16} {'Net':>16}")
    click.echo("-" * 80)
    for month in board.months:
        click.echo(
            f"{month.key:<10} {format_currency_localized(month.income):>16} "
            f"{format_currency_localized(month.expense_executed):>16} "
            f"{format_currency_localized(month.expense_scheduled):>16} "
            f"{format_currency_localized(month.net):>16}"
        )


def register_commands(cli):
    """Register dashboard command with main CLI."""
    cli.add_command(dashboard)
