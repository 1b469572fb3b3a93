"""Tests for summary reductions."""

import pytest

from bill_splitter.models import Bill, Participant
from bill_splitter.summary import summarize


@pytest.fixture
def participants():
    return [
        Participant(id=0, name="Alice"),
        Participant(id=1, name="Bob"),
        Participant(id=2, name="Carol"),
    ]


def test_totals_and_ranking(participants):
    """Rows are sorted by amount with percentage and distance from average."""
    amounts = {0: 20.0, 1: 50.0, 2: 30.0}

    summary = summarize(participants, amounts, [])

    assert summary.total == pytest.approx(100)
    assert summary.average == pytest.approx(100 / 3)
    assert [row.participant.name for row in summary.rows] == ["Bob", "Carol", "Alice"]
    assert [row.rank for row in summary.rows] == [1, 2, 3]
    assert summary.rows[0].percentage == pytest.approx(50)
    assert summary.rows[0].difference_from_average == pytest.approx(50 - 100 / 3)
    assert summary.rows[2].difference_from_average < 0


def test_missing_amounts_default_to_zero(participants):
    """Participants without an entry count as owing nothing."""
    summary = summarize(participants, {1: 10.0}, [])

    assert [row.amount for row in summary.rows] == [10.0, 0.0, 0.0]


def test_no_participants():
    """An empty ledger has a zero average instead of dividing by zero."""
    summary = summarize([], {}, [])

    assert summary.total == 0
    assert summary.average == 0
    assert summary.rows == []


def test_non_positive_total_gives_zero_percentages(participants):
    """Percentages are 0 when the total is not positive."""
    summary = summarize(participants, {0: 10.0, 1: -10.0, 2: 0.0}, [])

    assert all(row.percentage == 0 for row in summary.rows)


def test_recent_bills_newest_first(participants):
    """Recent activity lists the last bills, newest first, with positions."""
    bills = [Bill(id=f"b{i}", total=10 * i) for i in range(1, 6)]

    summary = summarize(participants, {}, bills, recent_count=3)

    assert [recent.position for recent in summary.recent_bills] == [5, 4, 3]
    assert [recent.bill.id for recent in summary.recent_bills] == ["b5", "b4", "b3"]


def test_recent_bills_fewer_than_count(participants):
    """With fewer bills than requested, all are shown."""
    bills = [Bill(id="b1", total=10)]

    summary = summarize(participants, {}, bills, recent_count=3)

    assert [recent.position for recent in summary.recent_bills] == [1]


def test_recent_bills_disabled(participants):
    """A count of zero hides recent activity."""
    bills = [Bill(id="b1", total=10)]

    assert summarize(participants, {}, bills, recent_count=0).recent_bills == []
