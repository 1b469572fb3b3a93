"""Tests for admission-time bill validation."""

from datetime import datetime

import pytest

from bill_splitter.builder import BillBuilder
from bill_splitter.exceptions import (
    BillValidationError,
    DiscountValidationError,
    SplitValidationError,
)
from bill_splitter.models import Participant


@pytest.fixture
def participants():
    """Two participants."""
    return [Participant(id=0, name="Alice"), Participant(id=1, name="Bob")]


@pytest.fixture
def builder(participants):
    """A builder for a bill of 100."""
    return BillBuilder(participants, total=100, description="  Dinner  ")


class TestAddSplit:
    """Split admission rules."""

    def test_equal_split_accepted(self, builder):
        """A valid equal split reduces the remaining amount."""
        split = builder.add_split(40, participant_ids=[0, 1], description="drinks")

        assert split.participant_ids == [0, 1]
        assert split.shares is None
        assert builder.remaining == pytest.approx(60)

    def test_duplicate_ids_collapsed(self, builder):
        """Selecting someone twice counts them once."""
        split = builder.add_split(40, participant_ids=[0, 0, 1])

        assert split.participant_ids == [0, 1]

    def test_weighted_split_accepted(self, builder):
        """A valid weighted split is stored with its shares."""
        split = builder.add_split(100, shares={0: 1, 1: 3})

        assert split.shares == {0: 1, 1: 3}
        assert builder.remaining == pytest.approx(0)

    @pytest.mark.parametrize("amount", [0, -5, float("nan"), float("inf")])
    def test_non_positive_amount_rejected(self, builder, amount):
        """Split amounts must be positive and finite."""
        with pytest.raises(SplitValidationError):
            builder.add_split(amount, participant_ids=[0])

    def test_amount_over_remaining_rejected(self, builder):
        """A split cannot exceed what is left of the total."""
        builder.add_split(70, participant_ids=[0])

        with pytest.raises(SplitValidationError, match="exceeds the remaining"):
            builder.add_split(30.01, participant_ids=[1])

    def test_amount_equal_to_remaining_accepted(self, builder):
        """Using up exactly the remaining amount is allowed."""
        builder.add_split(0.1 + 0.2, participant_ids=[0])
        builder.add_split(100 - 0.3, participant_ids=[1])

        assert builder.remaining == pytest.approx(0)

    def test_empty_participants_rejected(self, builder):
        """Equal splits need at least one participant."""
        with pytest.raises(SplitValidationError, match="at least one"):
            builder.add_split(10, participant_ids=[])

    def test_both_modes_rejected(self, builder):
        """A split is either equal or weighted."""
        with pytest.raises(SplitValidationError):
            builder.add_split(10, participant_ids=[0], shares={1: 1})

    def test_no_mode_rejected(self, builder):
        """A split must name who pays."""
        with pytest.raises(SplitValidationError):
            builder.add_split(10)

    def test_zero_shares_rejected(self, builder):
        """Weighted splits need at least one positive share."""
        with pytest.raises(SplitValidationError, match="positive share"):
            builder.add_split(10, shares={0: 0, 1: 0})

    def test_negative_shares_rejected(self, builder):
        """Share weights cannot be negative."""
        with pytest.raises(SplitValidationError, match="negative"):
            builder.add_split(10, shares={0: 2, 1: -1})

    def test_unknown_participant_rejected(self, builder):
        """Splits can only reference known participants."""
        with pytest.raises(SplitValidationError, match="Unknown"):
            builder.add_split(10, participant_ids=[0, 7])

    def test_remove_split(self, builder):
        """Removing a split frees its amount."""
        builder.add_split(40, participant_ids=[0])
        removed = builder.remove_split(0)

        assert removed.amount == 40
        assert builder.remaining == pytest.approx(100)

        with pytest.raises(SplitValidationError):
            builder.remove_split(0)


class TestDiscount:
    """Discount admission rules."""

    def test_proportional_discount(self, builder):
        """Proportional is the default discount type."""
        discount = builder.set_discount(20)

        assert discount.split_type == "proportional"
        assert discount.shares is None

    def test_shares_discount(self, builder):
        """Weighted discounts keep their shares."""
        discount = builder.set_discount(20, "shares", {0: 1, 1: 1})

        assert discount.shares == {0: 1, 1: 1}

    def test_set_discount_replaces_previous(self, builder):
        """Only one discount per bill."""
        builder.set_discount(20)
        builder.set_discount(5, "shares", {1: 1})

        assert builder.discount.amount == 5

    @pytest.mark.parametrize("amount", [0, -1, 100.01])
    def test_invalid_amount_rejected(self, builder, amount):
        """Discounts must be positive and no larger than the total."""
        with pytest.raises(DiscountValidationError):
            builder.set_discount(amount)

    def test_shares_discount_needs_positive_share(self, builder):
        """Weighted discounts need at least one positive share."""
        with pytest.raises(DiscountValidationError):
            builder.set_discount(10, "shares", {0: 0})

    def test_shares_discount_needs_shares(self, builder):
        """Weighted discounts without shares are rejected."""
        with pytest.raises(DiscountValidationError):
            builder.set_discount(10, "shares")

    def test_proportional_discount_rejects_shares(self, builder):
        """Proportional discounts take no shares."""
        with pytest.raises(DiscountValidationError):
            builder.set_discount(10, "proportional", {0: 1})

    def test_unknown_type_rejected(self, builder):
        """Only proportional and shares are supported."""
        with pytest.raises(DiscountValidationError, match="Unknown discount type"):
            builder.set_discount(10, "random")

    def test_clear_discount(self, builder):
        """Clearing removes the discount from the built bill."""
        builder.set_discount(10)
        builder.clear_discount()

        assert builder.build().discount is None


class TestBuild:
    """Building the final bill."""

    def test_build_new_bill(self, builder):
        """New bills get an id, a timestamp and a derived remaining amount."""
        builder.add_split(40, participant_ids=[0])
        bill = builder.build()

        assert bill.id
        assert bill.total == 100
        assert bill.description == "Dinner"
        assert bill.remaining_amount == pytest.approx(60)
        assert bill.allocated_amount() + bill.remaining_amount == pytest.approx(100)
        assert isinstance(bill.created_at, datetime)

    def test_new_bills_get_distinct_ids(self, participants):
        """Every new bill gets its own id."""
        first = BillBuilder(participants, 10).build()
        second = BillBuilder(participants, 10).build()

        assert first.id != second.id

    @pytest.mark.parametrize("total", [0, -10])
    def test_non_positive_total_rejected(self, participants, total):
        """Bills need a positive total."""
        with pytest.raises(BillValidationError):
            BillBuilder(participants, total).build()

    def test_float_leftover_not_stored_as_remaining(self, participants):
        """A rounding-sized leftover after the splits is stored as zero."""
        builder = BillBuilder(participants, total=100 + 1e-12)
        builder.add_split(100, participant_ids=[0])

        assert builder.build().remaining_amount == 0.0

    def test_splits_over_total_rejected(self, builder):
        """Lowering the total below the splits is caught at build time."""
        builder.add_split(80, participant_ids=[0])
        builder.total = 50

        with pytest.raises(BillValidationError, match="more than the bill total"):
            builder.build()

    def test_discount_over_total_rejected(self, builder):
        """Lowering the total below the discount is caught at build time."""
        builder.set_discount(80)
        builder.total = 50

        with pytest.raises(DiscountValidationError):
            builder.build()

    def test_edit_keeps_id_and_created_at(self, builder, participants):
        """Editing a bill preserves its identity and creation time."""
        builder.add_split(40, participant_ids=[0])
        builder.set_discount(10, "shares", {1: 1})
        original = builder.build()

        editor = BillBuilder.from_bill(original, participants)
        editor.add_split(60, shares={0: 1, 1: 1})
        edited = editor.build()

        assert edited.id == original.id
        assert edited.created_at == original.created_at
        assert len(edited.splits) == 2
        assert edited.remaining_amount == pytest.approx(0)
        assert edited.discount == original.discount
        # The original is untouched
        assert len(original.splits) == 1
