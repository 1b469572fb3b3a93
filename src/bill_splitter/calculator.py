"""Settlement calculation: how much each participant owes across all bills."""

import logging
from collections.abc import Iterable, Mapping, Sequence

from .models import Bill, BillSplit, Discount, Participant

logger = logging.getLogger(__name__)


def _distribute(
    amounts: dict[int, float], weights: Mapping[int, float], amount: float
) -> None:
    """
    Add ``amount`` to ``amounts`` in proportion to ``weights``.

    Ids missing from ``amounts`` (unknown participants) still count towards
    the weight total but receive nothing. A zero weight total is a no-op.
    """
    total_weight = sum(weights.values())
    if total_weight == 0:
        return

    for participant_id, weight in weights.items():
        if participant_id in amounts:
            amounts[participant_id] += amount * weight / total_weight


def _equal_weights(participant_ids: Iterable[int]) -> dict[int, float]:
    """Unit weight per occurrence, so duplicate ids count twice."""
    weights: dict[int, float] = {}
    for participant_id in participant_ids:
        weights[participant_id] = weights.get(participant_id, 0.0) + 1.0
    return weights


def apply_split(amounts: dict[int, float], split: BillSplit) -> None:
    """Add one split's charge to the per-bill amounts."""
    if split.shares is not None:
        _distribute(amounts, split.shares, split.amount)
    else:
        _distribute(amounts, _equal_weights(split.participant_ids), split.amount)


def apply_discount(
    amounts: dict[int, float], discount: Discount, bill_total: float
) -> None:
    """
    Subtract a discount from the per-bill amounts.

    Proportional discounts follow each participant's own charge for this bill
    (``amounts`` must hold the pre-discount values for the bill alone, never
    the running total across bills).
    """
    if discount.split_type == "proportional":
        if bill_total <= 0:
            return
        ratios = {pid: amount / bill_total for pid, amount in amounts.items()}
        for participant_id, ratio in ratios.items():
            amounts[participant_id] -= ratio * discount.amount
    else:
        _distribute(amounts, discount.shares or {}, -discount.amount)


def calculate_bill_amounts(
    participants: Sequence[Participant], bill: Bill
) -> dict[int, float]:
    """
    Compute what each participant owes for a single bill.

    Steps:
    1. Charge every split (equal or weighted)
    2. Share the remaining amount equally among all participants
    3. Apply the discount, if any

    Args:
        participants: Current participants
        bill: The bill to settle

    Returns:
        Mapping of participant id to amount for this bill
    """
    amounts = {participant.id: 0.0 for participant in participants}

    for split in bill.splits:
        apply_split(amounts, split)

    if bill.remaining_amount > 0 and participants:
        per_person = bill.remaining_amount / len(participants)
        for participant in participants:
            amounts[participant.id] += per_person

    if bill.discount is not None:
        apply_discount(amounts, bill.discount, bill.total)

    return amounts


def calculate_amounts(
    participants: Sequence[Participant], bills: Iterable[Bill]
) -> dict[int, float]:
    """
    Compute the total each participant owes across all bills.

    This is a pure function: every call recomputes from scratch and never
    raises on malformed splits (empty or zero-weight splits contribute
    nothing). Negative results from large discounts are kept as is.

    Args:
        participants: Current participants
        bills: All recorded bills

    Returns:
        Mapping of participant id to amount owed, with a key for every
        participant (0.0 when they appear in no bill)
    """
    totals = {participant.id: 0.0 for participant in participants}

    bill_count = 0
    for bill in bills:
        bill_amounts = calculate_bill_amounts(participants, bill)
        for participant_id, amount in bill_amounts.items():
            totals[participant_id] += amount
        bill_count += 1
        logger.debug(f"Bill {bill.id}: {bill_amounts}")

    logger.debug(
        f"Settled {bill_count} bills across {len(totals)} participants "
        f"(total: {sum(totals.values()):.2f})"
    )

    return totals
