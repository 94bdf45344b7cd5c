"""
Freight Board - listing board for trucks and cargo.

Command-line front end over the board services: browse the live feed,
publish a listing through the subscription gate, and ask the AI assistant
for city suggestions or route advice.

Uses Supabase as the remote store when configured; otherwise an in-memory
feed (useful for trying the commands offline).
"""

import argparse
import asyncio
import sys

from core.container import ServiceContainer
from core.display import (
    console,
    print_gate,
    print_listings,
    print_profile,
    print_route_analysis,
    setup_logging,
)
from modules.listings import queries
from modules.listings.models import ListingKind
from shared.config import get_settings
from shared.exceptions import BoardError
from shared.models import Identity


async def run_list(container: ServiceContainer, args: argparse.Namespace) -> None:
    """Print the board once the first snapshot arrives."""
    sync = container.sync
    sync.start()
    try:
        if not await sync.wait_for_snapshot(timeout=args.wait):
            console.print(f"[yellow]No snapshot within {args.wait:g}s[/yellow]")
        listings = sync.active_listings()
    finally:
        sync.stop()

    from_query, to_query = queries.parse_route_query(args.route or "")
    from_query = args.from_city or from_query
    to_query = args.to_city or to_query
    if args.kind or from_query or to_query:
        listings = queries.search(listings, args.kind, from_query=from_query, to_query=to_query)
    if args.urgent:
        listings = queries.urgent(listings, limit=None)
    if args.mine:
        listings = queries.owned_by(listings, args.mine)
        print_profile(args.mine, queries.profile_stats(sync.store.listings(), args.mine))

    print_listings(listings, title="Freight Board", stale=sync.store.is_stale)


async def run_post(container: ServiceContainer, args: argparse.Namespace) -> None:
    """Publish a listing, passing the subscription gate first if needed."""
    container.identity.sign_in(Identity(id=args.user))
    gate = container.gate

    intent = gate.request_create(container.identity.current_identity(), args.kind)
    if intent is None:
        url = gate.user_triggered_external_action()
        console.print(f"Subscribe to continue: [link={url}]{url}[/link]")
        while not gate.snapshot.can_confirm:
            print_gate(gate.snapshot)
            await asyncio.sleep(container.settings.gate_tick_interval)
        if not args.yes:
            answer = console.input("Subscribed? [y/N] ").strip().lower()
            if answer not in ("y", "yes"):
                gate.abandon()
                console.print("[dim]Cancelled[/dim]")
                return
        intent = gate.confirm()

    data = {
        "kind": intent.value,
        "from_city": args.from_city,
        "to_city": args.to_city,
        "date": args.date,
        "urgent": args.urgent,
        "comment": args.comment,
        "contact_phone": args.phone,
    }
    if intent == ListingKind.TRUCK:
        data.update(truck_type=args.truck_type, capacity=args.capacity)
    else:
        data.update(weight=args.weight, cargo_type=args.cargo_type, price=args.price)

    listing = await container.lifecycle.create(data)
    if listing.is_local:
        console.print(f"[yellow]Saved locally as {listing.id}; will publish when the feed is back[/yellow]")
    else:
        console.print(f"[green]Published {listing.kind} listing {listing.id}[/green]")
    print_listings([listing], title="New listing")


async def run_suggest(container: ServiceContainer, args: argparse.Namespace) -> None:
    cities = await container.assistant.suggest_cities(args.partial)
    if not cities:
        console.print("[dim]No suggestions[/dim]")
    for city in cities:
        console.print(f"  {city}")


async def run_advise(container: ServiceContainer, args: argparse.Namespace) -> None:
    analysis = await container.assistant.analyze_route(
        args.from_city, args.to_city, ListingKind(args.kind), details=args.details
    )
    print_route_analysis(analysis)


COMMANDS = {
    "list": run_list,
    "post": run_post,
    "suggest": run_suggest,
    "advise": run_advise,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Freight Board: truck and cargo listings")
    parser.add_argument("--log-level", help="Override LOG_LEVEL (e.g. DEBUG)")
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="Show active listings")
    list_cmd.add_argument("--kind", choices=[k.value for k in ListingKind], help="Only this kind")
    list_cmd.add_argument("--from", dest="from_city", help="Origin city contains")
    list_cmd.add_argument("--to", dest="to_city", help="Destination city contains")
    list_cmd.add_argument("--route", help="Route as \"FROM в TO\"; --from and --to take precedence")
    list_cmd.add_argument("--urgent", action="store_true", help="Only urgent listings")
    list_cmd.add_argument("--mine", metavar="USER_ID", help="Only listings created by USER_ID")
    list_cmd.add_argument("--wait", type=float, default=10.0, help="Seconds to wait for the feed (default: 10)")

    post_cmd = commands.add_parser("post", help="Publish a listing")
    post_cmd.add_argument("kind", choices=[k.value for k in ListingKind])
    post_cmd.add_argument("--as", dest="user", required=True, help="Identity id to post as")
    post_cmd.add_argument("--from", dest="from_city", required=True)
    post_cmd.add_argument("--to", dest="to_city", required=True)
    post_cmd.add_argument("--date", default="")
    post_cmd.add_argument("--urgent", action="store_true")
    post_cmd.add_argument("--comment")
    post_cmd.add_argument("--phone")
    post_cmd.add_argument("--truck-type", default="TENT")
    post_cmd.add_argument("--capacity", type=float, help="Truck capacity in tons")
    post_cmd.add_argument("--weight", type=float, help="Cargo weight in tons")
    post_cmd.add_argument("--cargo-type", default="")
    post_cmd.add_argument("--price", type=float)
    post_cmd.add_argument("-y", "--yes", action="store_true", help="Confirm the subscription without asking")

    suggest_cmd = commands.add_parser("suggest", help="Suggest city names")
    suggest_cmd.add_argument("partial")

    advise_cmd = commands.add_parser("advise", help="AI pricing and border advice for a route")
    advise_cmd.add_argument("from_city")
    advise_cmd.add_argument("to_city")
    advise_cmd.add_argument("--kind", choices=[k.value for k in ListingKind], default=ListingKind.CARGO.value)
    advise_cmd.add_argument("--details")

    return parser


async def main(args: argparse.Namespace) -> int:
    """Run one command against a fresh container."""
    container = ServiceContainer(get_settings())
    try:
        await COMMANDS[args.command](container, args)
    except BoardError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        for error in e.details.get("errors", []):
            console.print(f"  [dim]{error.get('field')}: {error.get('message')}[/dim]")
        return 1
    finally:
        container.reset()
    return 0


if __name__ == "__main__":
    args = build_parser().parse_args()
    setup_logging(args.log_level or get_settings().log_level)
    sys.exit(asyncio.run(main(args)))
