"""Report command: consolidated and detailed reports with exports."""

from datetime import datetime
from pathlib import Path

import click
from ledgerbook.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.cli.resolution import resolve_account_or_exit, resolve_category_or_exit
from ledgerbook.domain import export
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.category import CategoryService
from ledgerbook.domain.entities import ReportFilters, StatusFilter, TransactionKind
from ledgerbook.domain.errors import DomainError
from ledgerbook.domain.report import ReportService, kind_label, status_label
from ledgerbook.utils.amount_parser import format_currency_localized
from ledgerbook.utils.date_parser import get_date_range

STATUS_CHOICE = click.Choice([s.value for s in StatusFilter], case_sensitive=False)
EXPORT_CHOICE = click.Choice(["csv", "xls", "print"], case_sensitive=False)

CONSOLIDATED_PREFIX = "relatorio-consolidado"
DETAIL_PREFIX = "relatorio-lancamentos"


def render_export(report, detail: bool, fmt: str, generated_at: datetime) -> tuple[str, str]:
    """Render a report export.

    Returns:
        Tuple of (default file name, document text)
    """
    prefix = DETAIL_PREFIX if detail else CONSOLIDATED_PREFIX
    if fmt == "csv":
        text = export.detail_csv(report) if detail else export.consolidated_csv(report)
        return export.export_file_name(prefix, report, "csv"), text
    if fmt == "xls":
        html = export.detail_excel_html(report) if detail else export.consolidated_excel_html(report)
        return export.export_file_name(prefix, report, "xls"), html

    if detail:
        document = export.detail_print_document(report, generated_at)
    else:
        document = export.consolidated_print_document(report, generated_at)
    return export.export_file_name(prefix, report, "html"), export.render_print_html(document)


def _echo_consolidated(report) -> None:
    click.echo("-" * 110)
    click.echo(f"{'Tipo':<8} {'Categoria':<26} {'Conta':<20} {'Total':>16} {'Exec':>16} {'Prog':>16}")
    click.echo("-" * 110)
    for row in report.consolidated:
        is_expense = row.kind == TransactionKind.EXPENSE
        executed = format_currency_localized(row.executed) if is_expense else "—"
        scheduled = format_currency_localized(row.scheduled) if is_expense else "—"
        click.echo(
            f"{kind_label(row.kind):<8} {row.category_name[:26]:<26} {row.account_name[:20]:<20} "
            f"{format_currency_localized(row.total):>16} {executed:>16} {scheduled:>16}"
        )
    totals = report.totals
    click.echo("-" * 110)
    click.echo(
        f"{'Totais':<56} {format_currency_localized(totals.grand_total):>16} "
        f"{format_currency_localized(totals.expense_executed):>16} "
        f"{format_currency_localized(totals.expense_scheduled):>16}"
    )


def _echo_detail(report) -> None:
    click.echo("-" * 110)
    for txn in report.transactions:
        click.echo(
            f"{str(txn.date):<12} {kind_label(txn.kind):<8} {status_label(txn):<11} "
            f"{txn.description[:30]:<30} {report.category_names.get(txn.category_id, '—')[:18]:<18} "
            f"{format_currency_localized(txn.amount):>16}"
        )
    click.echo("-" * 110)
    click.echo(f"Count: {len(report.transactions)}")


@click.command("report")
@click.option("--start-date", help="Start date (YYYY-MM-DD, DD/MM/YYYY or relative like 'this month')")
@click.option("--end-date", help="End date, inclusive")
@period_options
@click.option("--category", help="Category name or ID")
@click.option("--account", help="Account name or ID")
@click.option("--status", type=STATUS_CHOICE, default="all", show_default=True, help="Expense status filter")
@click.option("--payment-method", help="Payment method contains this text")
@click.option("--detail", is_flag=True, help="List transactions instead of the consolidated table")
@click.option("--export", "export_format", type=EXPORT_CHOICE, help="Write the report as csv, xls or printable html")
@click.option("--output", type=click.Path(dir_okay=False), help="Export file path (default: generated name in the current directory)")
@click.pass_context
def report(
    ctx,
    start_date: str | None,
    end_date: str | None,
    category: str | None,
    account: str | None,
    status: str,
    payment_method: str | None,
    detail: bool,
    export_format: str | None,
    output: str | None,
    **kwargs,
):
    """Show or export a report grouped by category and account.

    Income is always included; --status only filters expenses. The default
    period is the current month.

    Examples:
        ledgerbook report --this-month
        ledgerbook report --start-date 2024-01-01 --end-date 2024-12-31 --status executed --export csv
        ledgerbook report --last-month --detail --export print --output janeiro.html
    """
    db = ctx.obj["db"]

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

    filters = ReportFilters(
        start_date=start,
        end_date=end,
        category_id=resolve_category_or_exit(ctx, CategoryService(db), category) if category else None,
        account_id=resolve_account_or_exit(ctx, AccountService(db), account) if account else None,
        status=StatusFilter(status.lower()),
        payment_method=payment_method,
    )

    try:
        result = ReportService(db).build(filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if export_format:
        file_name, text = render_export(result, detail, export_format.lower(), datetime.now())
        path = Path(output or file_name)
        path.write_text(text, encoding="utf-8")
        click.echo(f"Exported report to {path}")
        return

    summary = result.summary
    click.echo(f"\nReport {start} to {end} | {export.status_pill(filters.status)}")
    click.echo(f"  Categoria: {result.category_label} | Conta: {result.account_label} | Forma: {export.payment_label(result)}")
    click.echo(f"  Entradas: {format_currency_localized(summary.income)}")
    click.echo(f"  Saídas executadas: {format_currency_localized(summary.expense_executed)}")
    click.echo(f"  Saídas programadas: {format_currency_localized(summary.expense_scheduled)}")
    click.echo(f"  Resultado (executado): {format_currency_localized(summary.net_executed)}")
    click.echo(f"  Resultado (total): {format_currency_localized(summary.net_all)}")

    if not result.transactions:
        click.echo("\nNo transactions found.")
        return

    if detail:
        _echo_detail(result)
    else:
        _echo_consolidated(result)


def register_commands(cli):
    """Register report command with main CLI."""
    cli.add_command(report)
