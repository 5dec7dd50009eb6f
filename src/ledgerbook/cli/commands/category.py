"""Category management commands."""

import click
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.cli.resolution import acting_user_or_exit, resolve_category_or_exit
from ledgerbook.domain.category import CategoryService
from ledgerbook.domain.entities import TransactionKind
from ledgerbook.domain.errors import DomainError

KIND_CHOICE = click.Choice([k.value for k in TransactionKind], case_sensitive=False)


def _kind(value: str | None) -> TransactionKind | None:
    return TransactionKind(value.lower()) if value else None


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.option("--kind", type=KIND_CHOICE, help="Only income or only expense categories")
@click.option("--active-only", is_flag=True, help="Hide deactivated categories")
@click.pass_context
def list_categories(ctx, kind: str | None, active_only: bool):
    """List categories grouped by kind."""
    service = CategoryService(ctx.obj["db"])

    categories = service.list_categories(kind=_kind(kind), active_only=active_only)
    if not categories:
        click.echo("No categories found. Use 'category create' to add one.")
        return

    for group in TransactionKind:
        members = [c for c in categories if c.kind == group]
        if not members:
            continue
        click.echo(f"\n{group.value.capitalize()} categories:")
        for cat in members:
            suffix = "" if cat.active else " [inactive]"
            click.echo(f"  {cat.name} (ID: {cat.id}){suffix}")


@category_group.command("create")
@click.argument("name")
@click.option("--kind", type=KIND_CHOICE, default="expense", help="Category kind (default: expense)")
@click.pass_context
def create_category(ctx, name: str, kind: str):
    """Create a new category.

    The same name may be used once for income and once for expense.

    Examples:
        ledgerbook category create "Dízimos" --kind income
        ledgerbook category create "Energia"
    """
    service = CategoryService(ctx.obj["db"])
    acting_user = acting_user_or_exit(ctx)

    try:
        category_id = service.create_category(name=name, kind=_kind(kind), acting_user=acting_user)
        click.echo(f"Created {kind.lower()} category '{name.strip()}' (ID: {category_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("rename")
@click.argument("category", metavar="CATEGORY")
@click.argument("new_name", metavar="NEW_NAME")
@click.option("--kind", type=KIND_CHOICE, help="Kind, when the name exists for both")
@click.pass_context
def rename_category(ctx, category: str, new_name: str, kind: str | None):
    """Rename a category (name or ID)."""
    service = CategoryService(ctx.obj["db"])
    category_id = resolve_category_or_exit(ctx, service, category, _kind(kind))
    acting_user = acting_user_or_exit(ctx)

    try:
        service.rename_category(category_id, new_name, acting_user)
        click.echo(f"Renamed category to '{new_name.strip()}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def _set_active(ctx, category: str, kind: str | None, active: bool) -> None:
    service = CategoryService(ctx.obj["db"])
    category_id = resolve_category_or_exit(ctx, service, category, _kind(kind))
    acting_user = acting_user_or_exit(ctx)

    try:
        service.set_active(category_id, active, acting_user)
    except DomainError as e:
        handle_domain_error(ctx, e)

    state = "Activated" if active else "Deactivated"
    click.echo(f"{state} category '{service.get_category(category_id).name}'")


@category_group.command("activate")
@click.argument("category", metavar="CATEGORY")
@click.option("--kind", type=KIND_CHOICE, help="Kind, when the name exists for both")
@click.pass_context
def activate_category(ctx, category: str, kind: str | None):
    """Allow new entries on a category again."""
    _set_active(ctx, category, kind, True)


@category_group.command("deactivate")
@click.argument("category", metavar="CATEGORY")
@click.option("--kind", type=KIND_CHOICE, help="Kind, when the name exists for both")
@click.pass_context
def deactivate_category(ctx, category: str, kind: str | None):
    """Stop new entries on a category; its history stays."""
    _set_active(ctx, category, kind, False)


@category_group.command("delete")
@click.argument("category", metavar="CATEGORY")
@click.option("--kind", type=KIND_CHOICE, help="Kind, when the name exists for both")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_category(ctx, category: str, kind: str | None, yes: bool):
    """Delete a category that no transaction references."""
    service = CategoryService(ctx.obj["db"])
    category_id = resolve_category_or_exit(ctx, service, category, _kind(kind))
    acting_user = acting_user_or_exit(ctx)
    category_obj = service.get_category(category_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete category '{category_obj.name}' (ID: {category_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_category(category_id, acting_user)
        click.echo(f"Deleted category '{category_obj.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
