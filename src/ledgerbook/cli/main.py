"""Main CLI entry point."""

import click
from ledgerbook.database.factories import create_database
from ledgerbook.log import configure_logging

# Import and register all commands at module level
from ledgerbook.cli.commands import (
    account,
    add,
    category,
    dashboard,
    import_cmd,
    report,
    statement,
    transaction,
    user,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERBOOK_DB_PATH environment variable)",
    envvar="LEDGERBOOK_DB_PATH",
)
@click.option(
    "--user",
    "user_name",
    help="Acting user name or ID (overrides LEDGERBOOK_USER environment variable)",
    envvar="LEDGERBOOK_USER",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="LEDGERBOOK_LOG_LEVEL",
    help="Log verbosity on stderr",
)
@click.pass_context
def cli(ctx, db_path: str | None, user_name: str | None, log_level: str):
    """Ledgerbook - Ledger for small organizations.

    Record income and expenses per account and category, schedule recurring
    expenses with monthly document numbers, import bank statement CSV files
    and export consolidated reports.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["user_name"] = user_name
        ctx.call_on_close(db.disconnect)


# Register all commands
user.register_commands(cli)
account.register_commands(cli)
category.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
import_cmd.register_commands(cli)
statement.register_commands(cli)
dashboard.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
