"""Statement command: period summary and daily running balance."""

import click
from ledgerbook.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.cli.resolution import resolve_account_or_exit
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.errors import DomainError
from ledgerbook.domain.ledger import LedgerService
from ledgerbook.utils.amount_parser import format_currency_localized
from ledgerbook.utils.date_parser import get_date_range


def _money(value) -> str:
    return format_currency_localized(value)


@click.command("statement")
@click.option("--start-date", help="Start date (YYYY-MM-DD, DD/MM/YYYY or relative like 'this month')")
@click.option("--end-date", help="End date, inclusive")
@period_options
@click.option("--account", help="Account name or ID (default: whole ledger)")
@click.pass_context
def statement(ctx, start_date: str | None, end_date: str | None, account: str | None, **kwargs):
    """Show the balance summary of a period and its running balance per day.

    The balance only moves with income and executed expenses; scheduled
    expenses are listed separately. With --account the daily listing leaves
    scheduled expenses out. The default period is the current month.

    Examples:
        ledgerbook statement --this-month
        ledgerbook statement --start-date 2024-01-01 --end-date 2024-03-31 --account Caixa
    """
    db = ctx.obj["db"]
    ledger = LedgerService(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(kwargs),
        default_range=get_date_range("this-month"),
    )
    if start is None or end is None:
        click.echo("Error: Give both --start-date and --end-date", err=True)
        ctx.exit(1)

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        if account_id is not None:
            result = ledger.account_statement(account_id, start, end)
            summary, days = result.summary, result.days
            title = f"Statement of {result.account.name}"
        else:
            summary = ledger.period_summary(start, end)
            days = ledger.daily_running_balance(start, end)
            title = "Ledger statement"
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\n{title}: {start} to {end}")
    click.echo("=" * 70)
    click.echo(f"{'Carried in':<40} {_money(summary.carry_in):>20}")
    click.echo(f"{'Income':<40} {_money(summary.income):>20}")
    click.echo(f"{'Expenses executed':<40} {_money(summary.expense_executed):>20}")
    click.echo(f"{'Expenses scheduled':<40} {_money(summary.expense_scheduled):>20}")
    click.echo(f"{'Period balance':<40} {_money(summary.balance_period):>20}")
    click.echo(f"{'Accumulated balance':<40} {_money(summary.balance_accumulated):>20}")

    if not days:
        click.echo("\nNo transactions in this period.")
        return

    click.echo("\n" + "-" * 70)
    click.echo(f"{'Date':<12} {'Income':>14} {'Executed':>14} {'Scheduled':>14} {'Balance':>14}")
    click.echo("-" * 70)
    for day in days:
        click.echo(
            f"{str(day.date):<12} {_money(day.income):>14} {_money(day.expense_executed):>14} "
            f"{_money(day.expense_scheduled):>14} {_money(day.running_balance):>14}"
        )


def register_commands(cli):
    """Register statement command with main CLI."""
    cli.add_command(statement)
