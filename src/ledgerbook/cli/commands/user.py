"""User management commands."""

import click
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.cli.resolution import acting_user_or_exit
from ledgerbook.domain.entities import UserRole
from ledgerbook.domain.errors import DomainError
from ledgerbook.domain.user import UserService

ROLE_CHOICE = click.Choice([r.value for r in UserRole], case_sensitive=False)


@click.group()
def user_group():
    """Manage users and roles."""
    pass


@user_group.command("create")
@click.argument("name", metavar="USER_NAME")
@click.option("--role", type=ROLE_CHOICE, default=UserRole.VIEWER.value, show_default=True)
@click.pass_context
def create_user(ctx, name: str, role: str):
    """Create a user.

    The first user created becomes an admin and needs no --user. Later
    users can only be created by an admin.

    Examples:
        ledgerbook user create "Ana"
        ledgerbook --user Ana user create "Bruno" --role viewer
    """
    service = UserService(ctx.obj["db"])
    acting_user = acting_user_or_exit(ctx)

    try:
        user_id = service.create_user(name=name, role=UserRole(role.lower()), acting_user=acting_user)
    except DomainError as e:
        handle_domain_error(ctx, e)

    created = service.get_user(user_id)
    click.echo(f"Created user '{created.name}' (ID: {user_id}, role: {created.role.value})")


@user_group.command("list")
@click.pass_context
def list_users(ctx):
    """List all users."""
    users = UserService(ctx.obj["db"]).list_users()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\nUsers:")
    click.echo("-" * 60)
    for u in users:
        click.echo(f"ID: {u.id:3d} | {u.name:20s} | Role: {u.role.value}")


@user_group.command("role")
@click.argument("user", metavar="USER")
@click.argument("role", type=ROLE_CHOICE)
@click.pass_context
def set_role(ctx, user: str, role: str):
    """Change the role of USER (name or ID).

    Examples:
        ledgerbook --user Ana user role Bruno admin
    """
    service = UserService(ctx.obj["db"])
    acting_user = acting_user_or_exit(ctx)

    try:
        target = service.resolve_user(user)
        service.set_role(target.id, UserRole(role.lower()), acting_user)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"User '{target.name}' is now {role.lower()}")


def register_commands(cli):
    """Register user commands with main CLI."""
    cli.add_command(user_group, name="user")
