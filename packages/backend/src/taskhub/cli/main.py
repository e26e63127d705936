"""TaskHub admin CLI — operator tasks that don't belong behind the API.

Usage:
    taskhub init-db                                  # Create tables from the models
    taskhub create-user boss@example.com --role manager
    taskhub purge-tokens                             # Drop expired refresh tokens

Every command takes --database-url (or TASKHUB_DATABASE_URL).
"""

from __future__ import annotations

import asyncio

import click

from taskhub.config import settings
from taskhub.db.engine import Database
from taskhub.db.models import Role
from taskhub.errors import TaskHubError
from taskhub.services.auth_service import AuthService
from taskhub.services.token_service import TokenService


def _run(coro):
    """Run an async coroutine from a synchronous Click handler."""
    return asyncio.run(coro)


async def _with_database(url: str, work):
    database = Database(url)
    try:
        return await work(database)
    finally:
        await database.close()


@click.group()
@click.option(
    "--database-url",
    envvar="TASKHUB_DATABASE_URL",
    default=settings.database_url,
    show_default=False,
    help="SQLAlchemy async URL of the TaskHub database.",
)
@click.pass_context
def cli(ctx: click.Context, database_url: str):
    """TaskHub administration."""
    ctx.ensure_object(dict)
    ctx.obj["database_url"] = database_url


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context):
    """Create all tables (use Alembic for real deployments)."""

    async def work(database: Database):
        await database.create_all()

    _run(_with_database(ctx.obj["database_url"], work))
    click.echo("Schema created.")


@cli.command("create-user")
@click.argument("email")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.USER.value,
    show_default=True,
)
@click.password_option()
@click.pass_context
def create_user(ctx: click.Context, email: str, role: str, password: str):
    """Provision an account with any role."""

    async def work(database: Database):
        async with database.session() as session:
            svc = AuthService(session, TokenService(settings, session))
            return await svc.register(email, password, Role(role))

    try:
        user = _run(_with_database(ctx.obj["database_url"], work))
    except TaskHubError as e:
        raise click.ClickException(e.message)
    click.echo(f"Created {user.role} #{user.id} <{user.email}>")


@cli.command("purge-tokens")
@click.pass_context
def purge_tokens(ctx: click.Context):
    """Delete refresh tokens whose stored expiry has passed."""

    async def work(database: Database):
        async with database.session() as session:
            return await TokenService(settings, session).purge_expired()

    removed = _run(_with_database(ctx.obj["database_url"], work))
    click.echo(f"Removed {removed} expired refresh token(s).")


if __name__ == "__main__":
    cli()
