"""
Main CLI application using Typer.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.memory_store import InMemoryStore
from ..adapters.smtp_transport import SMTPTransport
from ..adapters.supabase_client import SupabaseStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SalonBookError
from ..domain.times import day_of_week, format_date, format_time, parse_date, to_hhmm
from ..services.availability import AvailabilityCalculator, ReservationStore
from ..services.booking import BookingService
from ..services.notifications import EmailNotifier

app = typer.Typer(
    name="salonbook",
    help="Check appointment availability and manage salon bookings",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use the bundled demo data instead of Supabase."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug logging."),
]


@dataclass
class Runtime:
    config: AppConfig
    store: ReservationStore
    availability: AvailabilityCalculator
    booking: BookingService


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=verbose)],
        force=True,
    )


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    config_path = config_file or get_default_config_path()
    if mock and config_file is None and not config_path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _build_store(config: AppConfig, mock: bool) -> ReservationStore:
    if mock:
        return InMemoryStore.from_json(config.mock_data_file)

    if config.supabase is None:
        raise ValueError(
            "No supabase section in the config file. Add one or run with --mock."
        )
    if not config.supabase.service_role_key:
        raise ValueError(
            "Supabase service_role_key is missing. "
            "Set it in the config file or via SUPABASE_SERVICE_ROLE_KEY."
        )
    return SupabaseStore(
        url=config.supabase.url,
        service_role_key=config.supabase.service_role_key,
        timeout=config.supabase.timeout_seconds,
    )


def _build_notifier(config: AppConfig, mock: bool) -> Optional[EmailNotifier]:
    if mock or config.email is None:
        return None

    transport = SMTPTransport(
        host=config.email.host,
        port=config.email.port,
        username=config.email.username,
        password=config.email.password,
        use_tls=config.email.use_tls,
    )
    return EmailNotifier(
        transport,
        sender=config.email.from_address,
        salon_name=config.salon_name,
        max_retries=config.email.max_retries,
        base_delay=config.email.base_delay_seconds,
    )


def _build_runtime(config: AppConfig, mock: bool) -> Runtime:
    """Wire store, calculators and services together from the config."""
    store = _build_store(config, mock)
    availability = AvailabilityCalculator(store, config.slots.build_calculator())
    booking = BookingService(
        store,
        availability,
        policy=config.policy.to_policy(),
        timezone=config.timezone,
        notifier=_build_notifier(config, mock),
    )
    return Runtime(config=config, store=store, availability=availability, booking=booking)


def _start(config_file: Optional[Path], mock: bool, verbose: bool) -> Runtime:
    _configure_logging(verbose)
    config = _load_config(config_file, mock)
    if mock:
        console.print("[yellow]⚠  MOCK MODE: using demo data[/yellow]\n")
    return _build_runtime(config, mock)


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def slots(
    day: Annotated[str, typer.Argument(help="Date to check (YYYY-MM-DD)")],
    service: Annotated[Optional[str], typer.Option("--service", "-s", help="Only staff offering this service id")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List bookable time slots for a date.

    Examples:

        salonbook slots 2025-03-10 --mock
        salonbook slots 2025-03-10 --service 0b7e4f3a-8c21-4d6e-a5b9-2f3e4d5c6b01
    """
    try:
        runtime = _start(config_file, mock, verbose)
        result = asyncio.run(runtime.availability.list_time_slots(day, service))
    except (FileNotFoundError, ValueError, SalonBookError) as e:
        _fail(e)

    if not result:
        console.print(f"[yellow]No working hours on {format_date(day)}.[/yellow]")
        return

    table = Table(
        title=f"Slots for {format_date(day)}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Time", style="bold")
    table.add_column("Staff")
    table.add_column("Status")

    for slot in result:
        status = "[green]available[/green]" if slot.available else "[dim]booked[/dim]"
        table.add_row(format_time(slot.time), slot.staff_name or slot.staff_id, status)

    console.print(table)
    free = sum(1 for slot in result if slot.available)
    console.print(f"\n[bold green]{free}[/bold green] of {len(result)} slot(s) available\n")


@app.command()
def check(
    staff: Annotated[str, typer.Argument(help="Staff member id")],
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    at: Annotated[str, typer.Argument(metavar="TIME", help="Time (HH:MM, 24-hour)")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Check whether one staff member can take a booking at a given time.
    """
    try:
        runtime = _start(config_file, mock, verbose)
        available = asyncio.run(runtime.availability.is_slot_available(staff, day, at))
    except (FileNotFoundError, ValueError, SalonBookError) as e:
        _fail(e)

    when = f"{format_date(day)} at {format_time(at)}"
    if available:
        console.print(f"[green]✓ Available:[/green] {when}")
    else:
        console.print(f"[red]✗ Not available:[/red] {when}")
        raise typer.Exit(1)


@app.command()
def book(
    service: Annotated[str, typer.Option("--service", help="Service id")],
    staff: Annotated[str, typer.Option("--staff", help="Staff member id")],
    day: Annotated[str, typer.Option("--date", help="Date (YYYY-MM-DD)")],
    at: Annotated[str, typer.Option("--time", help="Time (HH:MM, 24-hour)")],
    name: Annotated[str, typer.Option("--name", help="Customer name")],
    email: Annotated[str, typer.Option("--email", help="Customer email")],
    phone: Annotated[Optional[str], typer.Option("--phone", help="Customer phone")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Notes for the stylist")] = None,
    user: Annotated[Optional[str], typer.Option("--user", help="Customer account id")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Create a pending reservation and send the confirmation email.
    """
    payload = {
        "service_id": service,
        "staff_id": staff,
        "booking_date": day,
        "booking_time": at,
        "notes": notes,
    }
    customer = {"name": name, "email": email, "phone": phone, "user_id": user}

    async def _create(booking: BookingService):
        reservation = await booking.create_reservation(payload, customer)
        await booking.wait_for_notifications()
        return reservation

    try:
        runtime = _start(config_file, mock, verbose)
        reservation = asyncio.run(_create(runtime.booking))
    except (FileNotFoundError, ValueError, SalonBookError) as e:
        _fail(e)

    console.print(Panel.fit(
        f"[bold green]✓ Booking created[/bold green]\n\n"
        f"[bold]Booking:[/bold] {reservation.id}\n"
        f"[bold]When:[/bold] {format_date(reservation.date)} at {format_time(reservation.time)}\n"
        f"[bold]Status:[/bold] {reservation.status.value}",
        title=runtime.config.salon_name
    ))


@app.command()
def cancel(
    reservation_id: Annotated[str, typer.Argument(help="Booking id")],
    user: Annotated[str, typer.Option("--user", help="Id of the customer who made the booking")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Cancel a booking before it starts.
    """
    async def _cancel(booking: BookingService):
        reservation = await booking.cancel_reservation(reservation_id, user_id=user)
        await booking.wait_for_notifications()
        return reservation

    try:
        runtime = _start(config_file, mock, verbose)
        reservation = asyncio.run(_cancel(runtime.booking))
    except (FileNotFoundError, ValueError, SalonBookError) as e:
        _fail(e)

    console.print(f"[green]✓ Booking {reservation.id} cancelled.[/green]")


@app.command()
def schedule(
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD); its weekday is shown")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show which staff members work on a date's weekday, and when.
    """
    try:
        runtime = _start(config_file, mock, verbose)
        target = parse_date(day)
        windows = asyncio.run(runtime.store.select_windows(day_of_week(target)))
    except (FileNotFoundError, ValueError, SalonBookError) as e:
        _fail(e)

    weekday = pendulum.date(target.year, target.month, target.day).format("dddd", locale="en")
    if not windows:
        console.print(f"[yellow]Nobody works on {weekday}s.[/yellow]")
        return

    table = Table(
        title=f"Working hours on {weekday}s",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Staff", style="bold yellow")
    table.add_column("From")
    table.add_column("Until")

    for window in windows:
        table.add_row(
            window.staff_name or window.staff_id,
            to_hhmm(window.start_time),
            to_hhmm(window.end_time),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def bookings(
    user: Annotated[str, typer.Option("--user", help="Customer account id")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List a customer's bookings, most recent appointment first.
    """
    try:
        runtime = _start(config_file, mock, verbose)
        result = asyncio.run(runtime.booking.list_reservations(user))
    except (FileNotFoundError, ValueError, SalonBookError) as e:
        _fail(e)

    if not result:
        console.print(f"[yellow]No bookings for {user}.[/yellow]")
        return

    table = Table(
        title=f"Bookings for {user}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Booking", style="dim")
    table.add_column("Date", style="bold")
    table.add_column("Time")
    table.add_column("Status")

    for reservation in result:
        table.add_row(
            reservation.id,
            format_date(reservation.date),
            format_time(reservation.time),
            reservation.status.value,
        )

    console.print(table)


@app.command()
def remind(
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Email reminders for tomorrow's confirmed appointments.

    Meant to run once a day from cron, e.g. at 09:00.
    """
    try:
        runtime = _start(config_file, mock, verbose)
        summary = asyncio.run(runtime.booking.send_reminders())
    except (FileNotFoundError, ValueError, SalonBookError) as e:
        _fail(e)

    console.print(
        f"Sent [bold green]{summary.sent}[/bold green] reminder(s) "
        f"out of {summary.total} booking(s)"
    )
    if summary.failed:
        console.print(f"[red]{summary.failed} reminder(s) failed[/red]")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonbook[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
