"""Command Line Interface for ClinicDesk.

This module provides a CLI using Typer for working with the clinic data
adapters from a terminal: preparing a local database, managing the
professionals of an account and viewing today's agenda and the dashboard
statistics.

Every command runs as the account given by --user-id (or CLINIC_USER_ID).
Rows belonging to other accounts are never listed or modified.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from clinicdesk import __version__
from clinicdesk.adapters.notifiers import ConsoleNotifier
from clinicdesk.adapters.storage import DuckDBStore
from clinicdesk.domain.models import Professional, ProfessionalData, ProfessionalUpdate
from clinicdesk.domain.operations import OperationStatus
from clinicdesk.domain.ports import DataStorePort
from clinicdesk.infrastructure.config_manager import get_store_config
from clinicdesk.infrastructure.logging_config import setup_logging
from clinicdesk.infrastructure.settings import settings
from clinicdesk.main import ClinicSession, create_store

R = TypeVar('R')

# Initialize Typer app and Rich console
app = typer.Typer(
    name="clinicdesk",
    help="ClinicDesk: clinic data access from the command line",
    add_completion=False
)
console = Console()

USER_ID_OPTION = typer.Option(
    ...,
    "--user-id",
    "-u",
    envvar="CLINIC_USER_ID",
    help="Account whose records are read and written",
)


def create_store_cli() -> DataStorePort:
    """Create store adapter from the environment (CLI wrapper)."""
    try:
        return create_store(get_store_config())
    except Exception as e:
        console.print(f"[red]✗[/red] Failed to create store: {escape(str(e))}")
        raise typer.Exit(code=1)


def run_session(user_id: str, action: Callable[[ClinicSession], Awaitable[R]]) -> R:
    """Open a session signed in as `user_id`, run `action` and close it."""

    async def _run() -> R:
        async with ClinicSession(create_store_cli(), notifier=ConsoleNotifier()) as session:
            await session.sign_in(user_id)
            return await action(session)

    return asyncio.run(_run())


def _professional_table(professionals: List[Professional]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Nome", style="cyan")
    table.add_column("Tipo")
    table.add_column("Especialidade")
    table.add_column("Telefone")
    table.add_column("Status")
    for professional in professionals:
        table.add_row(
            professional.id,
            escape(professional.name),
            escape(professional.type or "-"),
            escape(professional.specialty or "-"),
            escape(professional.phone or "-"),
            escape(professional.status or "-"),
        )
    return table


@app.command("init-db")
def init_db() -> None:
    """Create the local DuckDB tables (professionals, patients, appointments, consultations)."""
    store = create_store_cli()
    if not isinstance(store, DuckDBStore):
        console.print("[yellow]⚠[/yellow] Schema of the hosted store is managed by the Supabase project")
        raise typer.Exit(code=1)

    try:
        result = store.initialize_schema()
        if result.is_failure():
            console.print(f"[red]✗[/red] {escape(result.error)}")
            raise typer.Exit(code=1)
        console.print(f"[green]✓[/green] Database ready: {store.db_path}")
    finally:
        asyncio.run(store.close())


@app.command()
def professionals(user_id: str = USER_ID_OPTION) -> None:
    """List the account's professionals ordered by name."""

    async def action(session: ClinicSession):
        found = await session.professionals.list()
        return found, session.professionals.operations.status("list")

    found, status = run_session(user_id, action)
    if status == OperationStatus.FAILED:
        raise typer.Exit(code=1)
    if not found:
        console.print("[dim]No professionals registered[/dim]")
        return
    console.print(_professional_table(found))


@app.command()
def professional(
    professional_id: str = typer.Argument(..., help="Professional id"),
    user_id: str = USER_ID_OPTION,
) -> None:
    """Show one professional."""

    async def action(session: ClinicSession):
        return await session.professionals.get_by_id(professional_id)

    found = run_session(user_id, action)
    if found is None:
        raise typer.Exit(code=1)

    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("ID:", found.id)
    info_table.add_row("Nome:", escape(found.name))
    info_table.add_row("Tipo:", escape(found.type or "-"))
    info_table.add_row("Registro:", escape(found.registration_number or "-"))
    info_table.add_row("Especialidade:", escape(found.specialty or "-"))
    info_table.add_row("Telefone:", escape(found.phone or "-"))
    info_table.add_row("E-mail:", escape(found.email or "-"))
    if found.start_time or found.end_time:
        info_table.add_row("Horário:", f"{found.start_time or '?'} - {found.end_time or '?'}")
    if found.attendance_days:
        info_table.add_row("Dias:", escape(", ".join(found.attendance_days)))
    if found.notes:
        info_table.add_row("Observações:", escape(found.notes))
    info_table.add_row("Status:", escape(found.status or "-"))
    console.print(info_table)


@app.command("add-professional")
def add_professional(
    name: str = typer.Option(..., "--name", help="Full name"),
    professional_type: str = typer.Option(..., "--type", help="Category (médico, dentista, ...)"),
    registration_number: str = typer.Option(..., "--registration", help="Council registration"),
    specialty: str = typer.Option(..., "--specialty", help="Clinical specialty"),
    phone: str = typer.Option(..., "--phone", help="Contact phone"),
    email: str = typer.Option(..., "--email", help="Contact e-mail"),
    start_time: Optional[str] = typer.Option(None, "--start-time", help="Start of attendance hours (HH:MM)"),
    end_time: Optional[str] = typer.Option(None, "--end-time", help="End of attendance hours (HH:MM)"),
    attendance_days: Optional[List[str]] = typer.Option(None, "--day", help="Attendance weekday (repeatable)"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Free-form notes"),
    status: Optional[str] = typer.Option("ativo", "--status", help="Record status"),
    user_id: str = USER_ID_OPTION,
) -> None:
    """Register a professional.

    Examples:
        clinicdesk add-professional --name "Dra. Ana" --type médico --registration CRM-123 \\
            --specialty Cardiologia --phone "11 99999-0000" --email ana@clinica.com --day seg --day qua
    """
    data = ProfessionalData(
        name=name,
        type=professional_type,
        registration_number=registration_number,
        specialty=specialty,
        phone=phone,
        email=email,
        start_time=start_time,
        end_time=end_time,
        attendance_days=attendance_days or None,
        notes=notes,
        status=status,
    )

    async def action(session: ClinicSession):
        return await session.professionals.create(data)

    created = run_session(user_id, action)
    if created is None:
        raise typer.Exit(code=1)
    console.print(created.id)


@app.command("update-professional")
def update_professional(
    professional_id: str = typer.Argument(..., help="Professional id"),
    name: Optional[str] = typer.Option(None, "--name"),
    professional_type: Optional[str] = typer.Option(None, "--type"),
    registration_number: Optional[str] = typer.Option(None, "--registration"),
    specialty: Optional[str] = typer.Option(None, "--specialty"),
    phone: Optional[str] = typer.Option(None, "--phone"),
    email: Optional[str] = typer.Option(None, "--email"),
    start_time: Optional[str] = typer.Option(None, "--start-time"),
    end_time: Optional[str] = typer.Option(None, "--end-time"),
    attendance_days: Optional[List[str]] = typer.Option(None, "--day"),
    notes: Optional[str] = typer.Option(None, "--notes"),
    status: Optional[str] = typer.Option(None, "--status"),
    user_id: str = USER_ID_OPTION,
) -> None:
    """Change selected fields of a professional; omitted options are left as they are."""
    given = {
        "name": name,
        "type": professional_type,
        "registration_number": registration_number,
        "specialty": specialty,
        "phone": phone,
        "email": email,
        "start_time": start_time,
        "end_time": end_time,
        "attendance_days": attendance_days or None,
        "notes": notes,
        "status": status,
    }
    changes = ProfessionalUpdate(**{field: value for field, value in given.items() if value is not None})
    if not changes.model_fields_set:
        console.print("[yellow]⚠[/yellow] Nothing to update")
        raise typer.Exit(code=1)

    async def action(session: ClinicSession):
        return await session.professionals.update(professional_id, changes)

    if run_session(user_id, action) is None:
        raise typer.Exit(code=1)


@app.command("remove-professional")
def remove_professional(
    professional_id: str = typer.Argument(..., help="Professional id"),
    user_id: str = USER_ID_OPTION,
) -> None:
    """Remove a professional."""

    async def action(session: ClinicSession):
        return await session.professionals.delete(professional_id)

    if not run_session(user_id, action):
        raise typer.Exit(code=1)


@app.command()
def agenda(user_id: str = USER_ID_OPTION) -> None:
    """Show today's appointments."""

    async def action(session: ClinicSession):
        adapter = session.today_appointments
        return adapter.appointments, adapter.operations.status("refresh")

    appointments, status = run_session(user_id, action)
    if status == OperationStatus.FAILED:
        console.print("[red]✗[/red] Failed to load today's appointments")
        raise typer.Exit(code=1)
    if not appointments:
        console.print("[dim]No appointments today[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Hora", justify="right")
    table.add_column("Paciente", style="cyan")
    table.add_column("Profissional")
    table.add_column("Tipo")
    table.add_column("Status")
    for appointment in appointments:
        table.add_row(
            appointment.time,
            escape(appointment.patient_name),
            escape(appointment.doctor_name),
            escape(appointment.type),
            escape(appointment.status),
        )
    console.print(table)


@app.command()
def stats(user_id: str = USER_ID_OPTION) -> None:
    """Show the dashboard statistics."""

    async def action(session: ClinicSession):
        adapter = session.stats
        return adapter.stats, adapter.operations.status("refresh")

    current, status = run_session(user_id, action)
    if status == OperationStatus.FAILED:
        console.print("[red]✗[/red] Failed to load dashboard statistics")
        raise typer.Exit(code=1)

    limits = current.limits
    summary_table = Table(show_header=False, box=None, padding=(0, 2))
    summary_table.add_row("Pacientes cadastrados:", f"[bold]{current.patients_registered}[/bold] / {limits.patients}")
    summary_table.add_row("Agendamentos hoje:", f"[bold]{current.appointments_today}[/bold] / {limits.appointments}")
    summary_table.add_row(
        "Consultas no mês:", f"[bold]{current.consultations_this_month}[/bold] / {limits.consultations}"
    )
    summary_table.add_row("Taxa de ocupação:", f"{current.occupancy_rate}%")
    console.print(summary_table)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(False, "--version", help="Show version information"),
) -> None:
    """ClinicDesk: clinic data access from the command line."""
    if version:
        console.print(f"{settings.app_name} v{__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()
    setup_logging(use_json=settings.log_json, log_level="DEBUG" if verbose else settings.log_level)


if __name__ == "__main__":
    app()
