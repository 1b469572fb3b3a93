"""Custom exceptions for Bill Splitter."""


class BillSplitterError(Exception):
    """Base exception for all Bill Splitter errors."""

    pass


class ConfigurationError(BillSplitterError):
    """Raised when configuration is invalid or missing."""

    pass


class InvalidParticipantError(BillSplitterError):
    """Raised when a participant cannot be created (e.g. blank name)."""

    pass


class ParticipantNotFoundError(BillSplitterError):
    """Raised when a participant id or name does not match anyone."""

    def __init__(self, reference: int | str, message: str | None = None):
        self.reference = reference
        super().__init__(message or f"No participant matches '{reference}'")


class BillNotFoundError(BillSplitterError):
    """Raised when a bill id does not exist in the ledger."""

    def __init__(self, bill_id: str, message: str | None = None):
        self.bill_id = bill_id
        super().__init__(message or f"Bill '{bill_id}' not found")


class AdmissionError(BillSplitterError):
    """Base class for admission-time validation errors."""

    pass


class BillValidationError(AdmissionError):
    """Raised when a bill cannot be accepted (e.g. non-positive total)."""

    pass


class SplitValidationError(AdmissionError):
    """Raised when a split is rejected by the bill builder."""

    pass


class DiscountValidationError(AdmissionError):
    """Raised when a discount is rejected by the bill builder."""

    pass


class SnapshotError(BillSplitterError):
    """Raised when a ledger export cannot be read or written."""

    pass


class InputParseError(BillSplitterError):
    """Raised when command-line or prompt input cannot be parsed."""

    pass
