"""Operator CLI: schema bootstrap, offline roster import, account bootstrap."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click
from pydantic import ValidationError as PayloadError
from rich.console import Console
from rich.table import Table

import scan2go.domain  # noqa: F401  (registers all models on Base.metadata)
from scan2go.core.exceptions import AppException
from scan2go.db.base import Base, async_session_factory, engine
from scan2go.repositories.student import StudentRepository
from scan2go.schemas.auth import CreateUserRequest
from scan2go.schemas.roster import ReconciliationReport
from scan2go.services.admin import AdminService
from scan2go.services.auth import AuthService

console = Console()


def _run(coro):
    async def _wrapped():
        try:
            return await coro
        finally:
            await engine.dispose()

    try:
        return asyncio.run(_wrapped())
    except AppException as exc:
        raise click.ClickException(exc.message) from exc
    except PayloadError as exc:
        raise click.ClickException(str(exc)) from exc


def show_report(report: ReconciliationReport) -> None:
    t = Table(title=report.message, show_lines=False)
    t.add_column("metric")
    t.add_column("value", justify="right")
    for label, value in (
        ("rows", report.total_rows),
        ("processed", report.processed),
        ("created", report.created),
        ("updated", report.updated),
        ("errors", report.errors),
        ("deactivated", report.deactivated_count),
        ("active students", report.total_active_students),
        ("inactive students", report.total_inactive_students),
    ):
        t.add_row(label, str(value))
    console.print(t)

    if report.deactivation_skipped:
        console.print("[yellow]Deactivation skipped[/]: roster contained no emails")
    if report.vendors_created:
        console.print("vendors created:", ", ".join(report.vendors_created))
    for line in report.error_details:
        console.print(f"[red]-[/] {line}")


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@click.group(help="Scan2Go maintenance commands")
@click.option("-v", "--verbose", is_flag=True, help="Log reconciliation details")
def cli(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)-8s | %(name)s | %(message)s",
    )


@cli.command("init-db", help="Create any missing tables")
def init_db() -> None:
    async def _go():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    _run(_go())
    console.print(f"[green]Schema ready[/] at [cyan]{engine.url.render_as_string(hide_password=True)}[/]")


@cli.command("import-roster", help="Reconcile the student registry against a roster CSV")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_roster(path: Path) -> None:
    async def _go() -> ReconciliationReport:
        async with async_session_factory() as session:
            return await AdminService(session).import_roster(path.read_bytes())

    show_report(_run(_go()))


@cli.command("activate-all", help="Reactivate every deactivated student")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
def activate_all(yes: bool) -> None:
    if not yes:
        click.confirm("Reactivate ALL students?", abort=True)

    async def _go() -> int:
        async with async_session_factory() as session:
            count = await StudentRepository(session).activate_all()
            await session.commit()
            return count

    console.print(f"[green]Reactivated[/] {_run(_go())} students")


@cli.command("create-admin", help="Bootstrap an admin account")
@click.option("--email", prompt=True)
@click.option("--name", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
def create_admin(email: str, name: str, password: str) -> None:
    async def _go():
        async with async_session_factory() as session:
            user = await AuthService(session).create_user(
                CreateUserRequest(name=name, email=email, password=password, role="admin")
            )
            await session.commit()
            return user

    user = _run(_go())
    console.print(f"[green]Admin created[/]: [cyan]{user.email}[/]")


if __name__ == "__main__":
    cli()
