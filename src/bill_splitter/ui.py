"""Interactive UI components for bill entry."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .builder import AMOUNT_TOLERANCE, BillBuilder
from .exceptions import BillSplitterError
from .ledger import Ledger
from .models import Bill, Participant
from .parsing import parse_amount, parse_shares, parse_targets

logger = logging.getLogger(__name__)


class ParticipantCompleter(Completer):
    """Fuzzy search completer for participant names in a comma list."""

    def __init__(self, participants: list[Participant]):
        """Initialize the completer with the current participants."""
        self.participants = participants
        self.names = ["all"] + [participant.name for participant in participants]

    def get_completions(self, document: Document, complete_event: Any):
        """Complete the name after the last comma."""
        before = document.text_before_cursor
        head, _, current = before.rpartition(",")
        query = current.strip().lower()
        already = {token.strip().lower() for token in head.split(",") if token.strip()}

        for name in self.names:
            if name.lower() in already:
                continue
            if name == "all" and head.strip():
                continue
            if not query or self._fuzzy_match(query, name.lower()):
                yield Completion(
                    text=name,
                    start_position=-len(current.lstrip()),
                    display=name,
                )

    def _fuzzy_match(self, query: str, text: str) -> bool:
        """
        Fuzzy match: all characters in query must appear in order in text.

        Example:
            query="aln" matches "Alan"
            query="bb" matches "Bobby"
        """
        query_idx = 0
        for char in text:
            if query_idx < len(query) and char == query[query_idx]:
                query_idx += 1
        return query_idx == len(query)


def _prompt_splits(
    session: PromptSession, builder: BillBuilder, ledger: Ledger
) -> None:
    completer = ParticipantCompleter(ledger.participants)

    while builder.remaining > AMOUNT_TOLERANCE:
        print(f"\n   Remaining: {builder.remaining:.2f} (blank amount to finish)")
        amount_text = session.prompt("Split amount: ")
        if not amount_text.strip():
            return

        try:
            amount = parse_amount(amount_text)
            targets = session.prompt(
                "Split among (names, 'all', or name=weight): ",
                completer=completer,
                complete_while_typing=True,
            )
            participant_ids, shares = parse_targets(targets, ledger)
            description = session.prompt("Split description (optional): ")
            builder.add_split(
                amount,
                participant_ids=participant_ids,
                shares=shares,
                description=description,
            )
        except BillSplitterError as e:
            print(f"❌ {e}")
            continue

        print(f"   ✓ Added split of {amount:.2f}")


def _prompt_discount(
    session: PromptSession, builder: BillBuilder, ledger: Ledger
) -> None:
    completer = ParticipantCompleter(ledger.participants)

    while True:
        amount_text = session.prompt("\nDiscount amount (blank for none): ")
        if not amount_text.strip():
            return

        try:
            amount = parse_amount(amount_text)
            shares_text = session.prompt(
                "Discount shares as name=weight (blank = proportional): ",
                completer=completer,
            )
            if shares_text.strip():
                builder.set_discount(
                    amount, "shares", parse_shares(shares_text, ledger)
                )
            else:
                builder.set_discount(amount)
        except BillSplitterError as e:
            print(f"❌ {e}")
            continue

        print(f"   ✓ Discount of {amount:.2f} applied")
        return


def prompt_bill_interactive(
    ledger: Ledger,
    builder: BillBuilder | None = None,
    session: PromptSession | None = None,
) -> Bill | None:
    """
    Walk the user through entering a bill.

    Args:
        ledger: Ledger holding the current participants
        builder: Optional pre-filled builder (e.g. total and description
                 already given on the command line)
        session: Optional prompt session (injectable for tests)

    Returns:
        The built bill, or None if the user cancelled
    """
    if not ledger.participants:
        print("\n⚠️  Add participants first")
        return None

    session = session or PromptSession()

    try:
        if builder is None:
            while True:
                try:
                    total = parse_amount(session.prompt("Total bill amount: "))
                except BillSplitterError as e:
                    print(f"❌ {e}")
                    continue
                if total > 0:
                    break
                print("❌ Total must be greater than zero")

            description = session.prompt("Description (optional): ")
            builder = BillBuilder(ledger.participants, total, description)

        print(f"\n🧾 Bill total: {builder.total:.2f}")
        _prompt_splits(session, builder, ledger)
        _prompt_discount(session, builder, ledger)

        bill = builder.build()
        logger.info(f"Interactive entry built bill {bill.id}")
        return bill

    except KeyboardInterrupt:
        print("\n⏭️  Cancelled")
        return None
    except EOFError:
        return None


def confirm_action(message: str) -> bool:
    """
    Simple yes/no confirmation, defaulting to no.

    Args:
        message: What is about to happen

    Returns:
        True if confirmed, False otherwise
    """
    print(f"\n⚠️  {message}")

    try:
        response = input("   Continue? [y/N] ").strip().lower()
    except EOFError:
        return False

    return response in ("y", "yes")
