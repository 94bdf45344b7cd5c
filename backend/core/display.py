"""Rich terminal UI components for the board CLI."""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from modules.assistant.models import RouteAnalysis
from modules.gate.models import GateSnapshot
from modules.listings.models import CargoListing, Listing, TruckListing
from modules.listings.queries import ProfileStats

console = Console()


def setup_logging(level: str = "INFO") -> None:
    """Route standard logging through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def format_timestamp(ms: Optional[int]) -> str:
    """Epoch milliseconds as a short UTC date-time."""
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def format_details(listing: Listing) -> str:
    """Kind-specific summary column."""
    match listing:
        case TruckListing():
            state = "empty" if listing.is_empty else "loaded"
            return f"{listing.truck_type.label}, {listing.capacity:g} t, {state}"
        case CargoListing():
            parts = [listing.cargo_type or "cargo", f"{listing.weight:g} t"]
            if listing.price is not None:
                parts.append(f"{listing.price:g} {listing.currency.value}")
            if listing.has_prepayment:
                parts.append("prepaid")
            return ", ".join(parts)


def listings_table(listings: Iterable[Listing], title: str = "Listings") -> Table:
    """Build a table with one row per listing."""
    table = Table(title=title, header_style="bold")
    table.add_column("Kind", style="cyan")
    table.add_column("Route")
    table.add_column("Details")
    table.add_column("Status")
    table.add_column("Created", style="dim")
    table.add_column("Expires", style="dim")
    table.add_column("Id", style="dim", overflow="fold")

    for listing in listings:
        route = f"{listing.from_city} → {listing.to_city}"
        if listing.urgent:
            route = f"[bold red]![/bold red] {route}"
        table.add_row(
            listing.kind,
            route,
            format_details(listing),
            listing.status.value,
            format_timestamp(listing.created_at),
            format_timestamp(listing.expires_at),
            listing.id,
        )
    return table


def print_listings(listings: list[Listing], title: str = "Listings", stale: bool = False) -> None:
    """Print listings, or a placeholder when there are none."""
    if stale:
        console.print("[yellow]Showing cached listings: the feed is unreachable[/yellow]")
    if not listings:
        console.print(f"[dim]{title}: nothing to show[/dim]")
        return
    console.print(listings_table(listings, title))


def print_profile(identity_id: str, stats: ProfileStats) -> None:
    console.print(
        f"[bold]{identity_id}[/bold]  total: {stats.total}  "
        f"[green]active: {stats.active}[/green]  [dim]closed: {stats.closed}[/dim]"
    )


def print_route_analysis(analysis: Optional[RouteAnalysis]) -> None:
    """Print route advice with numbered sources."""
    if analysis is None:
        console.print("[yellow]AI advice is unavailable right now[/yellow]")
        return
    console.print(Panel(Text(analysis.text, overflow="fold"), title="Route advice", border_style="blue"))
    for number, citation in enumerate(analysis.citations, start=1):
        console.print(f"[dim]{number}. {citation.title} - {citation.uri}[/dim]")


def print_gate(snapshot: GateSnapshot) -> None:
    line = f"[bold]Gate:[/bold] {snapshot.state.value}"
    if snapshot.is_verifying:
        line += f" ({snapshot.countdown_seconds}s left)"
    console.print(line)
