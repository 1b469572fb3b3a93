"""Admission-time validation for bills, splits and discounts."""

import logging
import math
import uuid
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from .exceptions import (
    BillValidationError,
    DiscountValidationError,
    SplitValidationError,
)
from .models import Bill, BillSplit, Discount, Participant

logger = logging.getLogger(__name__)

# Float slack when comparing a split against the remaining amount
AMOUNT_TOLERANCE = 1e-9


def generate_bill_id() -> str:
    """Generate a short random bill identifier."""
    return uuid.uuid4().hex[:8]


class BillBuilder:
    """Assembles a Bill, rejecting splits and discounts that break its rules."""

    def __init__(
        self,
        participants: Sequence[Participant],
        total: float,
        description: str = "",
        bill_id: str | None = None,
        created_at: datetime | None = None,
    ):
        """Start a new bill (or an edit, when bill_id/created_at are given)."""
        self.participants = list(participants)
        self.total = float(total)
        self.description = description.strip()
        self.bill_id = bill_id
        self.created_at = created_at
        self.splits: list[BillSplit] = []
        self.discount: Discount | None = None

    @classmethod
    def from_bill(
        cls, bill: Bill, participants: Sequence[Participant]
    ) -> "BillBuilder":
        """Load an existing bill for editing."""
        builder = cls(
            participants,
            total=bill.total,
            description=bill.description,
            bill_id=bill.id,
            created_at=bill.created_at,
        )
        builder.splits = [split.model_copy(deep=True) for split in bill.splits]
        builder.discount = (
            bill.discount.model_copy(deep=True) if bill.discount else None
        )
        return builder

    @property
    def remaining(self) -> float:
        """Amount of the total not yet assigned to a split."""
        return self.total - sum(split.amount for split in self.splits)

    def _check_known(self, ids: Iterable[int], error: type[Exception]) -> None:
        known = {participant.id for participant in self.participants}
        unknown = sorted(set(ids) - known)
        if unknown:
            raise error(f"Unknown participant id(s): {unknown}")

    def _check_shares(
        self, shares: Mapping[int, int], error: type[Exception]
    ) -> dict[int, int]:
        if any(weight < 0 for weight in shares.values()):
            raise error("Share weights cannot be negative")
        if not any(weight > 0 for weight in shares.values()):
            raise error("At least one participant needs a positive share")
        self._check_known(shares, error)
        return dict(shares)

    def add_split(
        self,
        amount: float,
        participant_ids: Sequence[int] | None = None,
        shares: Mapping[int, int] | None = None,
        description: str = "",
    ) -> BillSplit:
        """
        Add a split to the bill.

        Args:
            amount: Amount covered by this split
            participant_ids: Participants sharing the amount equally
            shares: Participant id -> weight, for a weighted split

        Returns:
            The accepted split

        Raises:
            SplitValidationError: If the split breaks any admission rule
        """
        if not math.isfinite(amount) or amount <= 0:
            raise SplitValidationError("Split amount must be greater than zero")
        if amount > self.remaining + AMOUNT_TOLERANCE:
            raise SplitValidationError(
                f"Split amount {amount:.2f} exceeds the remaining "
                f"{max(0.0, self.remaining):.2f}"
            )
        if (participant_ids is None) == (shares is None):
            raise SplitValidationError(
                "A split needs either participant ids or shares, not both"
            )

        if shares is not None:
            split = BillSplit(
                amount=amount,
                shares=self._check_shares(shares, SplitValidationError),
                description=description.strip(),
            )
        else:
            ids = list(dict.fromkeys(participant_ids or []))
            if not ids:
                raise SplitValidationError("Select at least one participant")
            self._check_known(ids, SplitValidationError)
            split = BillSplit(
                amount=amount, participant_ids=ids, description=description.strip()
            )

        self.splits.append(split)
        logger.debug(f"Added split of {amount:.2f}, remaining {self.remaining:.2f}")
        return split

    def remove_split(self, index: int) -> BillSplit:
        """Remove the split at ``index`` and return it."""
        try:
            return self.splits.pop(index)
        except IndexError:
            raise SplitValidationError(f"No split at position {index}") from None

    def set_discount(
        self,
        amount: float,
        split_type: str = "proportional",
        shares: Mapping[int, int] | None = None,
    ) -> Discount:
        """
        Attach a discount to the bill, replacing any previous one.

        Raises:
            DiscountValidationError: If the discount breaks any admission rule
        """
        if not math.isfinite(amount) or amount <= 0:
            raise DiscountValidationError("Discount must be greater than zero")
        if amount > self.total:
            raise DiscountValidationError(
                f"Discount {amount:.2f} exceeds the bill total {self.total:.2f}"
            )

        if split_type == "proportional":
            if shares is not None:
                raise DiscountValidationError(
                    "Proportional discounts do not take shares"
                )
            discount = Discount(amount=amount, split_type="proportional")
        elif split_type == "shares":
            if shares is None:
                raise DiscountValidationError("Shares discounts need shares")
            discount = Discount(
                amount=amount,
                split_type="shares",
                shares=self._check_shares(shares, DiscountValidationError),
            )
        else:
            raise DiscountValidationError(f"Unknown discount type '{split_type}'")

        self.discount = discount
        return discount

    def clear_discount(self):
        """Remove the discount, if any."""
        self.discount = None

    def build(self) -> Bill:
        """
        Produce the validated Bill.

        New bills get a fresh id and creation time; edits keep theirs.

        Raises:
            BillValidationError: If the total is not positive or the splits
                exceed it
        """
        if not math.isfinite(self.total) or self.total <= 0:
            raise BillValidationError("Bill total must be greater than zero")
        if self.remaining < -AMOUNT_TOLERANCE:
            raise BillValidationError(
                f"Splits add up to more than the bill total {self.total:.2f}"
            )
        if self.discount is not None and self.discount.amount > self.total:
            raise DiscountValidationError(
                f"Discount {self.discount.amount:.2f} exceeds the bill total "
                f"{self.total:.2f}"
            )

        bill = Bill(
            id=self.bill_id or generate_bill_id(),
            total=self.total,
            splits=list(self.splits),
            remaining_amount=(
                self.remaining if self.remaining > AMOUNT_TOLERANCE else 0.0
            ),
            description=self.description,
            discount=self.discount,
            created_at=self.created_at or datetime.now(),
        )

        logger.debug(
            f"Built bill {bill.id}: total {bill.total:.2f}, "
            f"{len(bill.splits)} splits, remaining {bill.remaining_amount:.2f}"
        )
        return bill
