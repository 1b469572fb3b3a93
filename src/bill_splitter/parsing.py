"""Parsing of the compact split/share notation used on the command line.

Split spec:   AMOUNT:TARGETS[:DESCRIPTION]
Targets:      ``all``, a comma list of participant ids/names (equal split),
              or ``who=weight`` pairs (weighted split)

Examples:
    90:all
    40:alice,bob:drinks
    100:alice=1,bob=3
"""

import math

from pydantic import BaseModel

from .exceptions import InputParseError
from .ledger import Ledger


class SplitSpec(BaseModel):
    """A parsed --split value, ready for BillBuilder.add_split."""

    amount: float
    participant_ids: list[int] | None = None
    shares: dict[int, int] | None = None
    description: str = ""


def parse_amount(text: str) -> float:
    """Parse a positive, finite money amount."""
    try:
        amount = float(text.strip())
    except ValueError:
        raise InputParseError(f"'{text}' is not a valid amount") from None
    if not math.isfinite(amount):
        raise InputParseError(f"'{text}' is not a valid amount")
    return amount


def _tokens(text: str) -> list[str]:
    return [token.strip() for token in text.split(",") if token.strip()]


def parse_shares(text: str, ledger: Ledger) -> dict[int, int]:
    """Parse ``who=weight`` pairs into participant id -> weight."""
    shares: dict[int, int] = {}
    for token in _tokens(text):
        who, sep, weight = token.partition("=")
        if not sep:
            raise InputParseError(f"Expected who=weight, got '{token}'")
        try:
            value = int(weight.strip())
        except ValueError:
            raise InputParseError(f"Share weight '{weight}' is not a whole number") from None
        participant = ledger.find_participant(who)
        shares[participant.id] = shares.get(participant.id, 0) + value

    if not shares:
        raise InputParseError("No shares given")
    return shares


def parse_targets(text: str, ledger: Ledger) -> tuple[list[int] | None, dict[int, int] | None]:
    """
    Parse a target list into (participant_ids, shares); exactly one is set.

    Raises:
        InputParseError: If the notation is malformed
        ParticipantNotFoundError: If a name or id matches nobody
    """
    text = text.strip()
    if not text:
        raise InputParseError("No participants given")

    if text.lower() == "all":
        return [participant.id for participant in ledger.participants], None

    tokens = _tokens(text)
    weighted = ["=" in token for token in tokens]
    if all(weighted):
        return None, parse_shares(text, ledger)
    if any(weighted):
        raise InputParseError(
            f"Mix of equal and weighted targets in '{text}'; use one style"
        )

    ids = [ledger.find_participant(token).id for token in tokens]
    return ids, None


def parse_split(text: str, ledger: Ledger) -> SplitSpec:
    """Parse an ``AMOUNT:TARGETS[:DESCRIPTION]`` split spec."""
    parts = text.split(":", 2)
    if len(parts) < 2:
        raise InputParseError(
            f"Split '{text}' should look like AMOUNT:TARGETS[:DESCRIPTION]"
        )

    amount = parse_amount(parts[0])
    participant_ids, shares = parse_targets(parts[1], ledger)
    description = parts[2].strip() if len(parts) > 2 else ""

    return SplitSpec(
        amount=amount,
        participant_ids=participant_ids,
        shares=shares,
        description=description,
    )
