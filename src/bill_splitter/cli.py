"""CLI for Bill Splitter using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .builder import BillBuilder
from .calculator import calculate_bill_amounts
from .config import Settings, load_settings
from .db import Database
from .exceptions import BillSplitterError, InputParseError
from .ledger import Ledger
from .models import Bill, BillSplit, Discount
from .parsing import parse_shares, parse_split
from .service import LedgerService
from .ui import confirm_action, prompt_bill_interactive

app = typer.Typer(
    name="bill-splitter",
    help="Split bills among friends and see who owes what",
)
participant_app = typer.Typer(help="Manage participants")
bill_app = typer.Typer(help="Record, edit and remove bills")
app.add_typer(participant_app, name="participant")
app.add_typer(bill_app, name="bill")

console = Console()

MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def open_service(verbose: bool = False) -> Iterator[LedgerService]:
    """Load settings and the stored ledger; report errors and exit 1."""
    setup_logging(verbose)
    db = None

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield LedgerService(settings, db)
    except BillSplitterError as e:
        console.print(f"\n[bold red]Error:[/bold red] {escape(str(e))}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


# ============================================================================
# Formatting
# ============================================================================


def format_money(amount: float, symbol: str = "₹", use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (₹85.02)
    Positive amounts have spaces:      ₹85.02
    """
    abs_amount = abs(amount)
    if amount < -0.005:
        if use_color:
            return f"({symbol}[red]{abs_amount:,.2f}[/red])"
        return f"({symbol}{abs_amount:,.2f})"
    if use_color:
        return f" [green]{symbol}{abs_amount:,.2f}[/green] "
    return f" {symbol}{abs_amount:,.2f} "


def describe_split(split: BillSplit, ledger: Ledger, symbol: str) -> str:
    """One-line description of a split: amount -> who."""
    names = {participant.id: participant.name for participant in ledger.participants}

    if split.shares is not None:
        targets = ", ".join(
            f"{names.get(pid, f'#{pid}')}×{weight}"
            for pid, weight in split.shares.items()
        )
    else:
        targets = ", ".join(names.get(pid, f"#{pid}") for pid in split.participant_ids)

    line = f"{symbol}{split.amount:,.2f} → {targets or '[dim]nobody[/dim]'}"
    if split.description:
        line += f" [dim]({split.description})[/dim]"
    return line


def describe_discount(discount: Discount, ledger: Ledger, symbol: str) -> str:
    """One-line description of a discount."""
    if discount.split_type == "proportional":
        return f"-{symbol}{discount.amount:,.2f} (proportional)"

    names = {participant.id: participant.name for participant in ledger.participants}
    weights = ", ".join(
        f"{names.get(pid, f'#{pid}')}×{weight}"
        for pid, weight in (discount.shares or {}).items()
    )
    return f"-{symbol}{discount.amount:,.2f} ({weights})"


def display_bill(bill: Bill, ledger: Ledger, settings: Settings):
    """Display a single bill with its per-participant amounts."""
    symbol = settings.currency_symbol

    console.print(f"\n[bold]Bill {bill.id}[/bold]")
    if bill.description:
        console.print(f"  Description: {bill.description}")
    console.print(f"  Date: {bill.created_at:%Y-%m-%d %H:%M}")
    console.print(f"  Total: {format_money(bill.total, symbol)}")

    if bill.splits:
        console.print("  Splits:")
        for split in bill.splits:
            console.print(f"    {describe_split(split, ledger, symbol)}")
    if bill.remaining_amount > 0:
        console.print(
            f"  Remaining amount: {symbol}{bill.remaining_amount:,.2f} (split equally)"
        )
    if bill.discount:
        console.print(
            f"  Discount: {describe_discount(bill.discount, ledger, symbol)}"
        )

    amounts = calculate_bill_amounts(ledger.participants, bill)
    table = Table(title="Share of this bill", show_header=True, header_style="bold magenta")
    table.add_column("Participant", style="cyan")
    table.add_column("Amount", justify="right", width=14)
    for participant in ledger.participants:
        table.add_row(participant.name, format_money(amounts[participant.id], symbol))

    console.print()
    console.print(table)


def display_summary(service: LedgerService):
    """Display the settlement summary."""
    symbol = service.settings.currency_symbol

    if not service.participants:
        console.print("[yellow]Summary will appear here.[/yellow]")
        console.print("[dim]Add participants and bills to see the breakdown.[/dim]")
        return
    if not service.bills:
        console.print("[yellow]Add some bills to see the summary.[/yellow]")
        return

    summary = service.summary()

    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Total amount: {format_money(summary.total, symbol)}")
    console.print(f"  Average per person: {format_money(summary.average, symbol)}")
    console.print()

    table = Table(
        title="Individual Breakdown", show_header=True, header_style="bold magenta"
    )
    table.add_column("#", justify="center", width=4)
    table.add_column("Participant", style="cyan")
    table.add_column("Amount", justify="right", width=14)
    table.add_column("% of total", justify="right", width=10)
    table.add_column("vs average", justify="right")

    for row in summary.rows:
        difference = row.difference_from_average
        if difference > 0.005:
            vs_average = f"[red]+{symbol}{difference:,.2f} above avg[/red]"
        elif difference < -0.005:
            vs_average = f"[green]-{symbol}{-difference:,.2f} below avg[/green]"
        else:
            vs_average = "[dim]average[/dim]"

        table.add_row(
            MEDALS.get(row.rank, str(row.participant.id)),
            row.participant.name,
            format_money(row.amount, symbol),
            f"{row.percentage:.1f}%",
            vs_average,
        )

    console.print(table)

    if summary.recent_bills:
        console.print("\n[bold]Recent Activity:[/bold]")
        for recent in summary.recent_bills:
            label = f"Bill #{recent.position}"
            if recent.bill.description:
                label += f" [dim]{recent.bill.description}[/dim]"
            console.print(f"  {label}: {format_money(recent.bill.total, symbol)}")


# ============================================================================
# Bill assembly
# ============================================================================


def apply_bill_options(
    builder: BillBuilder,
    ledger: Ledger,
    splits: list[str] | None,
    discount: float | None,
    discount_shares: str | None,
) -> Bill:
    """Apply --split/--discount options to a builder and build the bill."""
    if splits:
        for text in splits:
            spec = parse_split(text, ledger)
            builder.add_split(
                spec.amount,
                participant_ids=spec.participant_ids,
                shares=spec.shares,
                description=spec.description,
            )

    if discount_shares and discount is None:
        raise InputParseError("--discount-shares needs --discount")
    if discount is not None:
        if discount_shares:
            builder.set_discount(discount, "shares", parse_shares(discount_shares, ledger))
        else:
            builder.set_discount(discount)

    return builder.build()


# ============================================================================
# Participant commands
# ============================================================================


@participant_app.command("add")
def participant_add(
    name: str = typer.Argument(..., help="Participant name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add a participant."""
    with open_service(verbose) as service:
        participant = service.add_participant(name)
        console.print(
            f"[green]✓ Added {participant.name} (id {participant.id})[/green]"
        )


@participant_app.command("remove")
def participant_remove(
    reference: str = typer.Argument(..., help="Participant id or name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Remove a participant and take them out of every bill."""
    with open_service(verbose) as service:
        participant = service.remove_participant(reference)
        console.print(f"[green]✓ Removed {participant.name}[/green]")


@participant_app.command("list")
def participant_list(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List participants and what each owes."""
    with open_service(verbose) as service:
        if not service.participants:
            console.print("[yellow]No participants yet.[/yellow]")
            console.print("[dim]Add someone to get started![/dim]")
            return

        amounts = service.amounts()
        symbol = service.settings.currency_symbol

        table = Table(title="Participants", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", width=6)
        table.add_column("Name", style="cyan")
        table.add_column("Owes", justify="right", width=14)
        for participant in service.participants:
            table.add_row(
                str(participant.id),
                participant.name,
                format_money(amounts[participant.id], symbol),
            )
        console.print(table)


# ============================================================================
# Bill commands
# ============================================================================


@bill_app.command("add")
def bill_add(
    total: float | None = typer.Option(
        None, "--total", "-t", help="Total bill amount"
    ),
    description: str = typer.Option("", "--description", "-d", help="Description"),
    split: list[str] | None = typer.Option(
        None,
        "--split",
        "-s",
        help="AMOUNT:TARGETS[:DESCRIPTION], e.g. 40:alice,bob or 100:alice=1,bob=3",
    ),
    discount: float | None = typer.Option(None, "--discount", help="Discount amount"),
    discount_shares: str | None = typer.Option(
        None, "--discount-shares", help="Split the discount by weight, e.g. alice=1,bob=1"
    ),
    interactive: bool = typer.Option(
        False, "--interactive", "-i", help="Enter splits and discount interactively"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Record a new bill.

    Whatever part of the total is not covered by a --split is shared equally
    by all participants.
    """
    with open_service(verbose) as service:
        if not service.participants:
            console.print("[yellow]Add participants first.[/yellow]")
            return

        if interactive:
            builder = (
                BillBuilder(service.participants, total, description)
                if total is not None
                else None
            )
            bill = prompt_bill_interactive(service.ledger, builder)
            if bill is None:
                console.print("[yellow]No bill recorded.[/yellow]")
                return
        else:
            if total is None:
                raise InputParseError("--total is required (or use --interactive)")
            builder = BillBuilder(service.participants, total, description)
            bill = apply_bill_options(
                builder, service.ledger, split, discount, discount_shares
            )

        service.save_bill(bill)
        console.print(f"[green]✓ Added bill {bill.id}[/green]")
        display_bill(bill, service.ledger, service.settings)


@bill_app.command("edit")
def bill_edit(
    bill_id: str = typer.Argument(..., help="Bill id"),
    total: float | None = typer.Option(None, "--total", "-t", help="New total"),
    description: str | None = typer.Option(
        None, "--description", "-d", help="New description"
    ),
    split: list[str] | None = typer.Option(
        None, "--split", "-s", help="Replace all splits (repeatable)"
    ),
    clear_splits: bool = typer.Option(
        False, "--clear-splits", help="Remove all splits"
    ),
    discount: float | None = typer.Option(None, "--discount", help="New discount"),
    discount_shares: str | None = typer.Option(
        None, "--discount-shares", help="Split the discount by weight"
    ),
    no_discount: bool = typer.Option(False, "--no-discount", help="Remove the discount"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Edit a bill. Splits and discount are kept unless replaced."""
    with open_service(verbose) as service:
        existing = service.ledger.get_bill(bill_id)
        builder = BillBuilder.from_bill(existing, service.participants)

        if total is not None:
            builder.total = total
        if description is not None:
            builder.description = description.strip()
        if split or clear_splits:
            builder.splits = []
        if no_discount:
            builder.clear_discount()

        bill = apply_bill_options(
            builder, service.ledger, split, discount, discount_shares
        )
        service.save_bill(bill)
        console.print(f"[green]✓ Updated bill {bill.id}[/green]")
        display_bill(bill, service.ledger, service.settings)


@bill_app.command("remove")
def bill_remove(
    bill_id: str = typer.Argument(..., help="Bill id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Remove a bill."""
    with open_service(verbose) as service:
        service.remove_bill(bill_id)
        console.print(f"[green]✓ Removed bill {bill_id}[/green]")


@bill_app.command("show")
def bill_show(
    bill_id: str = typer.Argument(..., help="Bill id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show one bill and how it splits."""
    with open_service(verbose) as service:
        bill = service.ledger.get_bill(bill_id)
        display_bill(bill, service.ledger, service.settings)


@bill_app.command("list")
def bill_list(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List all bills."""
    with open_service(verbose) as service:
        if not service.bills:
            console.print("[yellow]No bills yet.[/yellow]")
            console.print('[dim]Run "bill-splitter bill add" to get started![/dim]')
            return

        symbol = service.settings.currency_symbol
        table = Table(title="Bills", show_header=True, header_style="bold magenta")
        table.add_column("#", justify="right", width=4)
        table.add_column("ID", style="dim", width=10)
        table.add_column("Date", width=10)
        table.add_column("Description", style="cyan", width=30)
        table.add_column("Total", justify="right", width=14)
        table.add_column("Splits", no_wrap=False)

        for index, bill in enumerate(service.bills, start=1):
            lines = [describe_split(s, service.ledger, symbol) for s in bill.splits]
            if bill.remaining_amount > 0:
                lines.append(f"{symbol}{bill.remaining_amount:,.2f} → everyone")
            if bill.discount:
                lines.append(describe_discount(bill.discount, service.ledger, symbol))

            desc = bill.description
            table.add_row(
                str(index),
                bill.id,
                f"{bill.created_at:%Y-%m-%d}",
                desc[:30] + "..." if len(desc) > 30 else desc,
                format_money(bill.total, symbol),
                "\n".join(lines),
            )

        console.print(table)


# ============================================================================
# Top-level commands
# ============================================================================


@app.command()
def summary(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show who owes what."""
    with open_service(verbose) as service:
        display_summary(service)


@app.command("export")
def export_ledger(
    path: Path = typer.Argument(..., help="JSON file to write"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Export participants and bills to a JSON file."""
    with open_service(verbose) as service:
        snapshot = service.export_snapshot(path)
        console.print(
            f"[green]✓ Exported {len(snapshot.participants)} participants and "
            f"{len(snapshot.bills)} bills to {path}[/green]"
        )


@app.command("import")
def import_ledger(
    path: Path = typer.Argument(..., help="JSON file to read"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Replace all data with the contents of a JSON export."""
    with open_service(verbose) as service:
        if not yes and (service.participants or service.bills):
            if not confirm_action("This replaces all current participants and bills."):
                console.print("[yellow]Cancelled.[/yellow]")
                return

        snapshot = service.import_snapshot(path)
        console.print(
            f"[green]✓ Imported {len(snapshot.participants)} participants and "
            f"{len(snapshot.bills)} bills[/green]"
        )


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Clear all participants and bills."""
    with open_service(verbose) as service:
        if not yes and not confirm_action(
            "Are you sure you want to clear all data? This action cannot be undone."
        ):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        service.clear()
        console.print("[green]✓ All data cleared[/green]")


if __name__ == "__main__":
    app()
