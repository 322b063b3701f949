"""Assessment engine exceptions.

All errors are local and synchronous: the caller corrects its input and
invokes again. None of them is retried by the engine.
"""
from typing import Any, Sequence, Tuple


class AssessmentError(Exception):
    """Base exception for assessment engine failures."""
    pass


class InstrumentNotFoundError(AssessmentError):
    """Raised when an instrument id is not in the catalog."""

    def __init__(self, instrument_id: str):
        self.instrument_id = instrument_id
        super().__init__(f"Instrument not found: {instrument_id}")


class IncompleteResponseError(AssessmentError):
    """Raised when required questions were left unanswered."""

    def __init__(self, instrument_id: str, missing_ids: Sequence[str]):
        self.instrument_id = instrument_id
        self.missing_ids: Tuple[str, ...] = tuple(missing_ids)
        super().__init__(
            f"{instrument_id}: unanswered questions {', '.join(self.missing_ids)}"
        )


class InvalidAnswerValueError(AssessmentError):
    """Raised when an answer is not one of the question's option values."""

    def __init__(self, instrument_id: str, question_id: str, value: Any):
        self.instrument_id = instrument_id
        self.question_id = question_id
        self.value = value
        super().__init__(
            f"{instrument_id}: invalid answer {value!r} for question {question_id}"
        )


class CatalogConfigurationError(AssessmentError):
    """Raised at load time when instrument data is malformed."""
    pass


class AssignmentPermissionError(AssessmentError):
    """Raised when a non-clinician tries to change a subject's assignments."""
    pass
