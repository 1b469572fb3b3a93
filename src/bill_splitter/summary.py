"""Display-side reductions over the settlement amounts."""

from collections.abc import Mapping, Sequence

from .models import Bill, Participant, RecentBill, SettlementSummary, SummaryRow


def summarize(
    participants: Sequence[Participant],
    amounts: Mapping[int, float],
    bills: Sequence[Bill],
    recent_count: int = 3,
) -> SettlementSummary:
    """
    Build the summary shown next to the bill list.

    Args:
        participants: Current participants
        amounts: Output of calculate_amounts
        bills: All bills, oldest first
        recent_count: How many of the latest bills to include

    Returns:
        Totals, the per-participant breakdown (largest amount first), and the
        latest bills (newest first)
    """
    total = sum(amounts.values())
    average = total / len(participants) if participants else 0.0

    ranked = sorted(
        participants, key=lambda p: amounts.get(p.id, 0.0), reverse=True
    )
    rows = []
    for rank, participant in enumerate(ranked, start=1):
        amount = amounts.get(participant.id, 0.0)
        rows.append(
            SummaryRow(
                rank=rank,
                participant=participant,
                amount=amount,
                percentage=amount / total * 100 if total > 0 else 0.0,
                difference_from_average=amount - average,
            )
        )

    recent = []
    if recent_count > 0:
        start = max(0, len(bills) - recent_count)
        for position in range(len(bills), start, -1):
            recent.append(RecentBill(position=position, bill=bills[position - 1]))

    return SettlementSummary(
        total=total, average=average, rows=rows, recent_bills=recent
    )
