"""Tests for interactive UI helpers."""

import pytest
from prompt_toolkit.document import Document

from bill_splitter.builder import BillBuilder
from bill_splitter.ledger import Ledger
from bill_splitter.ui import (
    ParticipantCompleter,
    confirm_action,
    prompt_bill_interactive,
)


class ScriptedSession:
    """Stand-in for PromptSession that replays canned answers."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []

    def prompt(self, message, **kwargs):
        self.prompts.append(message)
        if not self.answers:
            raise EOFError
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer


@pytest.fixture
def ledger():
    """Alice (0), Bob (1), Bobby (2)."""
    ledger = Ledger()
    for name in ("Alice", "Bob", "Bobby"):
        ledger.add_participant(name)
    return ledger


def completions(completer, text):
    return [c.text for c in completer.get_completions(Document(text), None)]


class TestParticipantCompleter:
    """Name completion for comma lists."""

    def test_empty_shows_everyone(self, ledger):
        completer = ParticipantCompleter(ledger.participants)

        assert completions(completer, "") == ["all", "Alice", "Bob", "Bobby"]

    def test_fuzzy_match(self, ledger):
        completer = ParticipantCompleter(ledger.participants)

        assert completions(completer, "bb") == ["Bob", "Bobby"]
        assert completions(completer, "aie") == ["Alice"]

    def test_completes_after_comma_without_repeats(self, ledger):
        """Names already typed are not offered again, nor is 'all'."""
        completer = ParticipantCompleter(ledger.participants)

        assert completions(completer, "Bob, ") == ["Alice", "Bobby"]

    def test_start_position_covers_current_token(self, ledger):
        completer = ParticipantCompleter(ledger.participants)

        result = list(completer.get_completions(Document("Bob, al"), None))

        assert [c.text for c in result] == ["Alice"]
        assert result[0].start_position == -2


class TestPromptBill:
    """Interactive bill entry."""

    def test_full_entry(self, ledger):
        """Total, a split, a weighted split and a discount."""
        session = ScriptedSession(
            [
                "100",  # total
                "Dinner",  # description
                "40",  # split amount
                "Alice, Bob",  # targets
                "starters",  # split description
                "30",
                "bob=1,bobby=2",
                "",
                "",  # finish splits
                "10",  # discount
                "",  # proportional
            ]
        )

        bill = prompt_bill_interactive(ledger, session=session)

        assert bill is not None
        assert bill.description == "Dinner"
        assert bill.splits[0].participant_ids == [0, 1]
        assert bill.splits[0].description == "starters"
        assert bill.splits[1].shares == {1: 1, 2: 2}
        assert bill.remaining_amount == pytest.approx(30)
        assert bill.discount.split_type == "proportional"

    def test_invalid_split_is_retried(self, ledger):
        """A rejected split is reported and the prompt continues."""
        session = ScriptedSession(
            [
                "500",  # too large for the remaining 50
                "all",
                "",
                "50",
                "all",
                "",
                "",  # discount: none
            ]
        )
        builder = BillBuilder(ledger.participants, 50)

        bill = prompt_bill_interactive(ledger, builder=builder, session=session)

        assert len(bill.splits) == 1
        assert bill.splits[0].amount == 50
        assert bill.discount is None

    def test_float_leftover_ends_split_entry(self, ledger):
        """Splits stop once only a rounding-sized amount is left."""
        session = ScriptedSession(
            [
                "100",
                "all",
                "",
                "",  # discount: none
            ]
        )
        builder = BillBuilder(ledger.participants, 100 + 1e-12)

        bill = prompt_bill_interactive(ledger, builder=builder, session=session)

        assert bill is not None
        assert session.prompts.count("Split amount: ") == 1
        assert bill.remaining_amount == 0.0

    def test_bad_total_is_retried(self, ledger):
        """Non-numeric and non-positive totals are asked again."""
        session = ScriptedSession(["abc", "0", "20", "", "", ""])

        bill = prompt_bill_interactive(ledger, session=session)

        assert bill.total == 20

    def test_cancel(self, ledger):
        """Ctrl+C cancels the entry."""
        session = ScriptedSession([KeyboardInterrupt()])

        assert prompt_bill_interactive(ledger, session=session) is None

    def test_no_participants(self):
        """Nothing to enter without participants."""
        assert prompt_bill_interactive(Ledger(), session=ScriptedSession([])) is None


class TestConfirmAction:
    @pytest.mark.parametrize("answer,expected", [("y", True), ("YES", True), ("", False), ("n", False)])
    def test_answers(self, monkeypatch, answer, expected):
        monkeypatch.setattr("builtins.input", lambda _prompt: answer)

        assert confirm_action("Clear everything?") is expected
