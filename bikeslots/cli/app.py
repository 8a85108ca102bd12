"""
Main CLI application using Typer.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..bootstrap import BookingApp, open_app
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BookingError
from ..domain.models import Actor, Booking, BookingStatus, Role, ServiceType

app = typer.Typer(
    name="bikeslots",
    help="Book bike-service slots without double-booking the workshop",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
UserOption = Annotated[int, typer.Option("--user", "-u", help="Id of the acting user")]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the config file if given or present, falling back to defaults."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)
    return AppConfig.load_or_default(get_default_config_path())


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@contextmanager
def _booking_app(config_file: Optional[Path]) -> Iterator[BookingApp]:
    """Open the application; config and booking errors exit with code 1."""
    try:
        config = _load_config(config_file)
    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(1)

    _configure_logging(config.log_level)
    try:
        with open_app(config) as booking_app:
            yield booking_app
    except BookingError as e:
        console.print(f"[bold red]{type(e).__name__}:[/bold red] {e}")
        raise typer.Exit(1)


def _format_amount(amount: int) -> str:
    """Prices are stored in paise."""
    return f"₹{amount / 100:.2f}"


def _bookings_table(title: str, bookings: list[Booking]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold yellow")
    table.add_column("Date")
    table.add_column("Slot")
    table.add_column("Service")
    table.add_column("Minutes", justify="right")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Amount", justify="right")

    for booking in bookings:
        table.add_row(
            str(booking.id),
            booking.date.isoformat(),
            str(booking.time_slot),
            str(booking.service_id),
            str(booking.duration_minutes),
            booking.service_type.value,
            booking.status.value,
            _format_amount(booking.total_amount),
        )
    return table


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    service_id: Annotated[int, typer.Argument(help="Service id")],
    config_file: ConfigOption = None,
):
    """
    Show the free start slots for a service on a date.

    Examples:

        bikeslots slots 2026-10-20 1
    """
    with _booking_app(config_file) as booking_app:
        free = booking_app.resolver.available_slots(date, service_id)

        if not free:
            console.print(
                "[yellow]⚠ No slots available for this date.[/yellow] "
                "Please try another date."
            )
            return

        console.print(f"[bold green]✓ {len(free)} free slot(s) on {date}:[/bold green]")
        console.print("  " + "  ".join(str(slot) for slot in free))


@app.command()
def book(
    user: UserOption,
    bike: Annotated[int, typer.Option("--bike", help="Bike id")],
    service: Annotated[int, typer.Option("--service", "-s", help="Service id")],
    date: Annotated[str, typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")],
    slot: Annotated[str, typer.Option("--slot", help="Start time (HH:MM)")],
    service_type: Annotated[ServiceType, typer.Option("--type", "-t", help="visit, pickup or home")] = ServiceType.VISIT,
    address: Annotated[Optional[str], typer.Option("--address", "-a", help="Required for pickup and home")] = None,
    config_file: ConfigOption = None,
):
    """
    Reserve a slot for one of your bikes.

    Examples:

        bikeslots book -u 1 --bike 1 -s 3 -d 2026-10-20 --slot 10:00
        bikeslots book -u 1 --bike 1 -s 1 -d 2026-10-20 --slot 14:00 -t home -a "12 MG Road"
    """
    with _booking_app(config_file) as booking_app:
        booking = booking_app.resolver.create_booking(
            {
                "bike_id": bike,
                "service_id": service,
                "date": date,
                "time_slot": slot,
                "service_type": service_type.value,
                "address": address,
            },
            user_id=user,
        )
        console.print(
            f"[bold green]✓ Booking {booking.id} created:[/bold green] "
            f"{booking.date.isoformat()} {booking.time_slot} "
            f"({booking.duration_minutes} min, {_format_amount(booking.total_amount)}) "
            f"- status {booking.status.value}"
        )


@app.command()
def cancel(
    booking_id: Annotated[int, typer.Argument(help="Booking id")],
    user: UserOption,
    config_file: ConfigOption = None,
):
    """
    Cancel one of your bookings and release its slots.
    """
    with _booking_app(config_file) as booking_app:
        booking = booking_app.manager.cancel_booking(booking_id, Actor(user_id=user))
        console.print(
            f"[green]✓ Booking {booking.id} cancelled.[/green] "
            f"{booking.date.isoformat()} {booking.time_slot} is free again."
        )


@app.command()
def status(
    booking_id: Annotated[int, typer.Argument(help="Booking id")],
    new_status: Annotated[BookingStatus, typer.Argument(help="New status")],
    user: UserOption,
    role: Annotated[Role, typer.Option("--role", "-r", help="Role of the acting user")] = Role.MECHANIC,
    config_file: ConfigOption = None,
):
    """
    Update a booking's status (admin and mechanic only).
    """
    with _booking_app(config_file) as booking_app:
        booking = booking_app.manager.update_status(
            {"booking_id": booking_id, "status": new_status.value},
            Actor(user_id=user, role=role),
        )
        console.print(f"[green]✓ Booking {booking.id} is now {booking.status.value}.[/green]")


@app.command()
def bookings(
    user: UserOption,
    role: Annotated[Role, typer.Option("--role", "-r", help="Role of the acting user")] = Role.USER,
    status_filter: Annotated[Optional[BookingStatus], typer.Option("--status", help="Only this status (staff)")] = None,
    config_file: ConfigOption = None,
):
    """
    List bookings: your own, or everyone's for staff.
    """
    with _booking_app(config_file) as booking_app:
        found = booking_app.manager.list_bookings(Actor(user_id=user, role=role), status=status_filter)

        if not found:
            console.print("[yellow]No bookings found.[/yellow]")
            return

        console.print()
        console.print(_bookings_table("Bookings", found))
        console.print()


@app.command()
def services(
    category: Annotated[Optional[str], typer.Option("--category", help="Only this category")] = None,
    config_file: ConfigOption = None,
):
    """
    List active services, cheapest first.
    """
    with _booking_app(config_file) as booking_app:
        catalog = booking_app.store.list_services(category=category)

        if not catalog:
            console.print("[yellow]No active services.[/yellow]")
            return

        table = Table(title="Services", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="bold yellow")
        table.add_column("Name")
        table.add_column("Category", style="dim")
        table.add_column("Minutes", justify="right")
        table.add_column("Price", justify="right")

        for entry in catalog:
            table.add_row(
                str(entry.id),
                entry.name,
                entry.category,
                str(entry.duration_minutes),
                _format_amount(entry.price),
            )

        console.print()
        console.print(table)
        console.print()


@app.command()
def add_bike(
    user: UserOption,
    brand: Annotated[str, typer.Option("--brand", help="Manufacturer")],
    model: Annotated[str, typer.Option("--model", help="Model name")],
    plate: Annotated[str, typer.Option("--plate", help="Number plate")],
    config_file: ConfigOption = None,
):
    """
    Register a bike for a user.
    """
    with _booking_app(config_file) as booking_app:
        bike = booking_app.store.add_bike(user_id=user, brand=brand, model=model, number_plate=plate)
        console.print(f"[green]✓ Bike {bike.id} registered:[/green] {bike.brand} {bike.model} ({bike.number_plate})")


@app.command()
def init_db(config_file: ConfigOption = None):
    """
    Create the database schema and seed the service catalog.
    """
    with _booking_app(config_file) as booking_app:
        console.print(
            f"[green]✓ Storage ready ({booking_app.config.storage.backend}).[/green] "
            f"{len(booking_app.store.list_services())} active services."
        )


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bikeslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
