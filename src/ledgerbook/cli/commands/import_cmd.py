"""CSV import command."""

import click
from ledgerbook.cli.commands.add import echo_effect
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.cli.resolution import (
    acting_user_or_exit,
    resolve_account_or_exit,
    resolve_category_or_exit,
)
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.category import CategoryService
from ledgerbook.domain.csv_import import CSVImportService, set_include
from ledgerbook.domain.entities import ExpenseStatus, ImportDefaults, TransactionKind
from ledgerbook.domain.errors import DomainError
from ledgerbook.utils.amount_parser import format_currency_localized

STATUS_CHOICE = click.Choice([s.value for s in ExpenseStatus], case_sensitive=False)


def _echo_preview(preview) -> None:
    valid = len(preview.rows) - len(preview.invalid_rows)
    click.echo(f"\nParsed {len(preview.rows)} row(s) (delimiter '{preview.delimiter}'):")
    click.echo(f"  Valid: {valid}")
    click.echo(f"  Invalid: {len(preview.invalid_rows)}")
    for row in preview.invalid_rows:
        click.echo(f"    Row {row.row_number}: {row.error.message} | {row.raw}", err=True)

    selected = preview.selected_rows
    if selected:
        click.echo("-" * 100)
        for row in selected:
            click.echo(
                f"{row.row_number:<6} {str(row.date):<12} {row.kind.value:<8} "
                f"{format_currency_localized(row.amount):>16} {row.description[:50]}"
            )
        click.echo("-" * 100)


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--account", required=True, help="Account receiving every row (name or ID)")
@click.option("--income-category", help="Category for income rows (name or ID)")
@click.option("--expense-category", help="Category for expense rows (name or ID)")
@click.option(
    "--status",
    type=STATUS_CHOICE,
    default="executed",
    show_default=True,
    help="Status given to imported expenses",
)
@click.option("--exclude", type=int, multiple=True, help="Row number to leave out (repeatable)")
@click.option("--dry-run", is_flag=True, help="Only show the preview")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def import_csv(
    ctx,
    csv_file: str,
    account: str,
    income_category: str | None,
    expense_category: str | None,
    status: str,
    exclude: tuple[int, ...],
    dry_run: bool,
    yes: bool,
):
    """Import transactions from a bank statement CSV file.

    The file needs the columns Data, Transação, Tipo Transação, Identificação
    and Valor, separated by commas or semicolons. Rows are numbered as in
    the file, the header being row 1.

    Examples:
        ledgerbook import extrato.csv --account Banco --income-category Ofertas --expense-category Tarifas --dry-run
        ledgerbook import extrato.csv --account Banco --income-category Ofertas --expense-category Tarifas --exclude 4 --yes
    """
    db = ctx.obj["db"]
    service = CSVImportService(db)
    account_service = AccountService(db)
    category_service = CategoryService(db)

    defaults = ImportDefaults(
        account_id=resolve_account_or_exit(ctx, account_service, account),
        income_category_id=(
            resolve_category_or_exit(ctx, category_service, income_category, TransactionKind.INCOME)
            if income_category
            else None
        ),
        expense_category_id=(
            resolve_category_or_exit(ctx, category_service, expense_category, TransactionKind.EXPENSE)
            if expense_category
            else None
        ),
        expense_status=ExpenseStatus(status.lower()),
    )

    try:
        preview = service.parse_file(csv_file, defaults)
        rows_by_number = {row.row_number: row for row in preview.rows}
        for row_number in exclude:
            if row_number not in rows_by_number:
                click.echo(f"Error: Row {row_number} is not in the file", err=True)
                ctx.exit(1)
            set_include(rows_by_number[row_number], False)
    except DomainError as e:
        handle_domain_error(ctx, e)

    _echo_preview(preview)

    if dry_run:
        click.echo("Dry run: nothing imported.")
        return

    selected = preview.selected_rows
    if not selected:
        click.echo("Error: No valid rows selected for import", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Import {len(selected)} row(s)?"):
        click.echo("Import cancelled.")
        return

    acting_user = acting_user_or_exit(ctx)
    try:
        result = service.commit(preview.rows, acting_user)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result.imported} transactions")
    click.echo(f"  Batches: {result.batch_count}")
    echo_effect(result.effect, {a.id: a.name for a in account_service.list_accounts()})


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
