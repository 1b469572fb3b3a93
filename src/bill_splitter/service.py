"""Service layer that composes the ledger with its SQLite store.

Every mutation updates the in-memory ledger, persists the affected rows in a
single write, and leaves the amounts to be recomputed from scratch.
"""

import logging
import math
from pathlib import Path

from pydantic import ValidationError

from .builder import AMOUNT_TOLERANCE
from .config import Settings
from .db import Database
from .exceptions import SnapshotError
from .ledger import Ledger
from .models import Bill, LedgerSnapshot, Participant, SettlementSummary
from .summary import summarize

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for recording participants and bills and settling them."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the service and load the stored ledger."""
        self.settings = settings
        self.db = database
        self.ledger = Ledger(database.load_participants(), database.load_bills())

        logger.debug(
            f"Loaded {len(self.ledger.participants)} participants and "
            f"{len(self.ledger.bills)} bills from {settings.database_path}"
        )

    @property
    def participants(self) -> list[Participant]:
        return self.ledger.participants

    @property
    def bills(self) -> list[Bill]:
        return self.ledger.bills

    # ========================================================================
    # Mutations
    # ========================================================================

    def add_participant(self, name: str) -> Participant:
        """Add a participant and persist it."""
        participant = self.ledger.add_participant(name)
        self.db.save_participant(participant)
        self._log_total()
        return participant

    def remove_participant(self, reference: str) -> Participant:
        """
        Remove a participant (by id or name) from the ledger and every bill.

        Returns:
            The removed participant
        """
        participant = self.ledger.find_participant(reference)
        changed = self.ledger.remove_participant(participant.id)
        self.db.remove_participant_cascade(participant.id, changed)
        self._log_total()
        return participant

    def save_bill(self, bill: Bill) -> Bill:
        """Add or replace a bill and persist it."""
        bill = self.ledger.save_bill(bill)
        self.db.save_bill(bill)
        self._log_total()
        return bill

    def remove_bill(self, bill_id: str) -> Bill:
        """Remove a bill and persist the removal."""
        bill = self.ledger.remove_bill(bill_id)
        self.db.delete_bill(bill_id)
        self._log_total()
        return bill

    def clear(self):
        """Delete all participants and bills."""
        self.ledger.clear()
        self.db.clear()

    # ========================================================================
    # Import / export
    # ========================================================================

    def export_snapshot(self, path: Path) -> LedgerSnapshot:
        """Write the ledger to a JSON file."""
        snapshot = self.ledger.snapshot()
        try:
            path.write_text(
                snapshot.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
            )
        except OSError as e:
            raise SnapshotError(f"Could not write {path}: {e}") from e

        logger.info(
            f"Exported {len(snapshot.participants)} participants and "
            f"{len(snapshot.bills)} bills to {path}"
        )
        return snapshot

    def import_snapshot(self, path: Path) -> LedgerSnapshot:
        """Replace the ledger with the contents of a JSON file."""
        try:
            snapshot = LedgerSnapshot.model_validate_json(
                path.read_text(encoding="utf-8")
            )
        except OSError as e:
            raise SnapshotError(f"Could not read {path}: {e}") from e
        except ValidationError as e:
            raise SnapshotError(f"{path} is not a valid ledger export:\n{e}") from e

        self._check_snapshot(snapshot, path)

        self.ledger = Ledger.from_snapshot(snapshot)
        self.db.replace_all(snapshot.participants, snapshot.bills)

        logger.info(
            f"Imported {len(snapshot.participants)} participants and "
            f"{len(snapshot.bills)} bills from {path}"
        )
        self._log_total()
        return snapshot

    def _check_snapshot(self, snapshot: LedgerSnapshot, path: Path):
        """Reject exports whose bills could not have been admitted."""
        ids = [participant.id for participant in snapshot.participants]
        if len(ids) != len(set(ids)):
            raise SnapshotError(f"{path} contains duplicate participant ids")
        bill_ids = [bill.id for bill in snapshot.bills]
        if len(bill_ids) != len(set(bill_ids)):
            raise SnapshotError(f"{path} contains duplicate bill ids")

        known = set(ids)
        for bill in snapshot.bills:
            if not math.isfinite(bill.total) or bill.total <= 0:
                raise SnapshotError(
                    f"Bill {bill.id} in {path} has a non-positive total"
                )

            allocated = bill.allocated_amount()
            if bill.remaining_amount < -AMOUNT_TOLERANCE or not math.isclose(
                allocated + bill.remaining_amount,
                bill.total,
                abs_tol=AMOUNT_TOLERANCE,
            ):
                raise SnapshotError(
                    f"Bill {bill.id} in {path}: splits ({allocated:.2f}) and "
                    f"remaining amount ({bill.remaining_amount:.2f}) do not add "
                    f"up to the total ({bill.total:.2f})"
                )

            referenced: set[int] = set()
            for split in bill.splits:
                referenced |= split.referenced_ids()
            if bill.discount is not None and bill.discount.shares:
                referenced |= set(bill.discount.shares)
            unknown = sorted(referenced - known)
            if unknown:
                raise SnapshotError(
                    f"Bill {bill.id} in {path} references unknown "
                    f"participant id(s): {unknown}"
                )

    # ========================================================================
    # Settlement
    # ========================================================================

    def amounts(self) -> dict[int, float]:
        """Recompute what each participant owes."""
        return self.ledger.amounts()

    def summary(self) -> SettlementSummary:
        """Build the display summary for the current ledger."""
        return summarize(
            self.ledger.participants,
            self.amounts(),
            self.ledger.bills,
            recent_count=self.settings.recent_activity_count,
        )

    def _log_total(self):
        total = sum(self.amounts().values())
        logger.info(
            f"Recomputed amounts for {len(self.ledger.participants)} participants "
            f"(total: {total:.2f})"
        )
