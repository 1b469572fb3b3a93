"""Pydantic domain models for Bill Splitter."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class BillSplitterModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Ledger Models
# ============================================================================


class Participant(BillSplitterModel):
    """A person taking part in the bills."""

    id: int
    name: str


class BillSplit(BillSplitterModel):
    """A slice of a bill's amount assigned to some participants.

    Equal mode uses ``participant_ids``; weighted mode uses ``shares``
    (participant id -> integer weight). When ``shares`` is present it wins.
    """

    amount: float
    participant_ids: list[int] = Field(default_factory=list)
    shares: dict[int, int] | None = None
    description: str = ""

    @property
    def is_weighted(self) -> bool:
        return self.shares is not None

    def referenced_ids(self) -> set[int]:
        """All participant ids this split mentions."""
        if self.shares is not None:
            return set(self.shares)
        return set(self.participant_ids)


class Discount(BillSplitterModel):
    """A deduction from a bill's cost."""

    amount: float
    split_type: Literal["proportional", "shares"] = "proportional"
    shares: dict[int, int] | None = None


class Bill(BillSplitterModel):
    """A recorded bill.

    ``remaining_amount`` is the part of ``total`` not covered by any split and
    is shared equally by every participant. It is derived from the splits
    when not given explicitly.
    """

    id: str
    total: float
    splits: list[BillSplit] = Field(default_factory=list)
    remaining_amount: float = 0.0
    description: str = ""
    discount: Discount | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def _derive_remaining_amount(self) -> "Bill":
        if "remaining_amount" not in self.model_fields_set:
            self.remaining_amount = self.unallocated_amount()
        return self

    def allocated_amount(self) -> float:
        """Sum of all split amounts."""
        return sum(split.amount for split in self.splits)

    def unallocated_amount(self) -> float:
        """Part of the total not covered by splits, never negative."""
        return max(0.0, self.total - self.allocated_amount())


# ============================================================================
# Snapshot Models
# ============================================================================


class LedgerSnapshot(BillSplitterModel):
    """Everything needed to restore a ledger (export/import shape)."""

    participants: list[Participant] = Field(default_factory=list)
    bills: list[Bill] = Field(default_factory=list)


# ============================================================================
# Summary Models
# ============================================================================


class SummaryRow(BillSplitterModel):
    """One participant's line in the settlement breakdown."""

    rank: int
    participant: Participant
    amount: float
    percentage: float  # of the overall total, 0-100
    difference_from_average: float  # signed: positive = above average


class RecentBill(BillSplitterModel):
    """A bill shown in the recent activity list."""

    position: int  # 1-based position in the bill list
    bill: Bill


class SettlementSummary(BillSplitterModel):
    """Aggregate view of the engine output for display."""

    total: float
    average: float
    rows: list[SummaryRow]
    recent_bills: list[RecentBill] = Field(default_factory=list)
