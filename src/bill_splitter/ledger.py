"""In-memory participant and bill collections."""

import logging
from collections.abc import Iterable

from .calculator import calculate_amounts
from .exceptions import (
    BillNotFoundError,
    InvalidParticipantError,
    ParticipantNotFoundError,
)
from .models import Bill, BillSplit, LedgerSnapshot, Participant

logger = logging.getLogger(__name__)


def _has_weight(shares: dict[int, int]) -> bool:
    return any(weight > 0 for weight in shares.values())


def strip_participant(bill: Bill, participant_id: int) -> Bill | None:
    """
    Remove every reference to a participant from a bill.

    Splits left with nobody (or only zero weights) are dropped, and their
    amount falls back into the bill's remaining amount so splits + remaining
    still add up to the total. A shares discount left with no positive weight
    is dropped.

    Returns:
        The updated bill, or None if the bill did not reference the participant
    """
    changed = False
    splits: list[BillSplit] = []

    for split in bill.splits:
        if participant_id not in split.referenced_ids():
            splits.append(split)
            continue

        changed = True
        if split.shares is not None:
            shares = {
                pid: weight
                for pid, weight in split.shares.items()
                if pid != participant_id
            }
            if _has_weight(shares):
                splits.append(split.model_copy(update={"shares": shares}))
        else:
            ids = [pid for pid in split.participant_ids if pid != participant_id]
            if ids:
                splits.append(split.model_copy(update={"participant_ids": ids}))

    discount = bill.discount
    if discount is not None and discount.shares and participant_id in discount.shares:
        changed = True
        shares = {
            pid: weight
            for pid, weight in discount.shares.items()
            if pid != participant_id
        }
        discount = (
            discount.model_copy(update={"shares": shares})
            if _has_weight(shares)
            else None
        )

    if not changed:
        return None

    allocated = sum(split.amount for split in splits)
    return bill.model_copy(
        update={
            "splits": splits,
            "discount": discount,
            "remaining_amount": max(0.0, bill.total - allocated),
        }
    )


class Ledger:
    """Caller-owned participant and bill lists.

    Every mutation goes through a method here; amounts are never stored but
    recomputed on demand by the settlement calculator.
    """

    def __init__(
        self,
        participants: Iterable[Participant] | None = None,
        bills: Iterable[Bill] | None = None,
    ):
        """Initialize the ledger."""
        self.participants: list[Participant] = list(participants or [])
        self.bills: list[Bill] = list(bills or [])

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot) -> "Ledger":
        """Build a ledger from an exported snapshot."""
        return cls(snapshot.participants, snapshot.bills)

    def snapshot(self) -> LedgerSnapshot:
        """Export the current state."""
        return LedgerSnapshot(
            participants=list(self.participants), bills=list(self.bills)
        )

    # ========================================================================
    # Participant operations
    # ========================================================================

    def next_participant_id(self) -> int:
        """Next free participant id (0 for an empty ledger)."""
        if not self.participants:
            return 0
        return max(participant.id for participant in self.participants) + 1

    def add_participant(self, name: str) -> Participant:
        """Add a participant with a trimmed, non-empty name."""
        name = name.strip()
        if not name:
            raise InvalidParticipantError("Participant name cannot be empty")

        participant = Participant(id=self.next_participant_id(), name=name)
        self.participants.append(participant)
        logger.info(f"Added participant {participant.name} (id {participant.id})")
        return participant

    def get_participant(self, participant_id: int) -> Participant:
        """Look up a participant by id."""
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        raise ParticipantNotFoundError(participant_id)

    def find_participant(self, reference: str) -> Participant:
        """
        Look up a participant by id or by name (case-insensitive).

        Names win over ids, so a participant called "2" is still reachable.
        """
        reference = reference.strip()
        for participant in self.participants:
            if participant.name.lower() == reference.lower():
                return participant
        if reference.isdigit():
            return self.get_participant(int(reference))
        raise ParticipantNotFoundError(reference)

    def remove_participant(self, participant_id: int) -> list[Bill]:
        """
        Remove a participant and cascade the removal through all bills.

        Returns:
            The bills that changed as a result
        """
        participant = self.get_participant(participant_id)
        self.participants = [p for p in self.participants if p.id != participant_id]

        changed: list[Bill] = []
        for index, bill in enumerate(self.bills):
            updated = strip_participant(bill, participant_id)
            if updated is not None:
                self.bills[index] = updated
                changed.append(updated)

        logger.info(
            f"Removed participant {participant.name} (id {participant_id}), "
            f"updated {len(changed)} bills"
        )
        return changed

    # ========================================================================
    # Bill operations
    # ========================================================================

    def get_bill(self, bill_id: str) -> Bill:
        """Look up a bill by id."""
        for bill in self.bills:
            if bill.id == bill_id:
                return bill
        raise BillNotFoundError(bill_id)

    def save_bill(self, bill: Bill) -> Bill:
        """
        Add a bill, or replace the bill with the same id.

        A replaced bill keeps its position and its original creation time.
        """
        for index, existing in enumerate(self.bills):
            if existing.id == bill.id:
                bill = bill.model_copy(update={"created_at": existing.created_at})
                self.bills[index] = bill
                logger.info(f"Updated bill {bill.id} (total {bill.total:.2f})")
                return bill

        self.bills.append(bill)
        logger.info(f"Added bill {bill.id} (total {bill.total:.2f})")
        return bill

    def remove_bill(self, bill_id: str) -> Bill:
        """Remove a bill by id and return it."""
        bill = self.get_bill(bill_id)
        self.bills = [b for b in self.bills if b.id != bill_id]
        logger.info(f"Removed bill {bill_id}")
        return bill

    def clear(self):
        """Drop all participants and bills."""
        self.participants = []
        self.bills = []
        logger.info("Cleared all data")

    # ========================================================================
    # Settlement
    # ========================================================================

    def amounts(self) -> dict[int, float]:
        """Recompute what each participant owes."""
        return calculate_amounts(self.participants, self.bills)
