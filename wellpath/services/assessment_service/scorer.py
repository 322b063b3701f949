"""Scoring evaluator - raw answers to total score and severity.

Scoring is a plain sum of the selected option values. Per-option values
carry each item's polarity, so reverse-scored items (PSS-10, CES-D) need
no special handling here.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, List, Mapping, Optional

from wellpath.shared.models import (
    UNSCORABLE_TOTAL,
    Instrument,
    Response,
    ScoreRange,
    ScoreResult,
)
from wellpath.shared.utils import hash_pii
from .catalog import InstrumentCatalog
from .config import ScoringConfig
from .errors import IncompleteResponseError, InvalidAnswerValueError

logger = logging.getLogger(__name__)


class ScoringEvaluator:
    """Scores questionnaire answers against the instrument catalog.

    Stateless apart from its injected catalog and config; evaluations for
    different subjects can run concurrently.
    """

    def __init__(
        self,
        catalog: InstrumentCatalog,
        config: Optional[ScoringConfig] = None,
    ):
        """Initialize evaluator with dependencies.

        Args:
            catalog: Loaded instrument catalog
            config: Scoring configuration
        """
        self.catalog = catalog
        self.config = config or ScoringConfig()

    def evaluate(self, instrument_id: str, answers: Mapping[str, Any]) -> ScoreResult:
        """Score one set of answers.

        Args:
            instrument_id: Catalog id of the questionnaire
            answers: question id -> selected option value

        Returns:
            ScoreResult with total, severity label and interpretation

        Raises:
            InstrumentNotFoundError: Unknown instrument id
            IncompleteResponseError: Required questions unanswered
            InvalidAnswerValueError: A value is not a defined option

        Logs:
            - SCORE_EVALUATED: After a successful evaluation
        """
        instrument = self.catalog.get(instrument_id)
        result = score_instrument(instrument, answers, self.config)

        logger.info(
            "SCORE_EVALUATED",
            extra={
                "instrument_id": instrument_id,
                "total_score": result.total_score,
                "severity_label": result.severity_label,
                "warning": result.warning,
            },
        )
        return result

    def build_response(
        self,
        instrument_id: str,
        subject_id: str,
        answers: Mapping[str, Any],
        completed_at: datetime,
    ) -> Response:
        """Score answers and wrap them in an immutable Response record.

        The Response is what the persistence collaborator stores. A retake
        calls this again and gets a new record with a new response_id.
        """
        result = self.evaluate(instrument_id, answers)
        response = Response(
            response_id=uuid.uuid4().hex,
            instrument_id=instrument_id,
            subject_id=subject_id,
            answers=dict(answers),
            total_score=result.total_score,
            severity_label=result.severity_label,
            interpretation=result.interpretation,
            completed_at=completed_at,
            warning=result.warning,
        )

        logger.info(
            "RESPONSE_CREATED",
            extra={
                "response_id": response.response_id,
                "instrument_id": instrument_id,
                "subject_id_hash": hash_pii(subject_id),
                "total_score": response.total_score,
            },
        )
        return response


def score_instrument(
    instrument: Instrument,
    answers: Mapping[str, Any],
    config: Optional[ScoringConfig] = None,
) -> ScoreResult:
    """Validate answers and compute the score for one instrument.

    Pure function: no logging of answer content, no side effects beyond
    the warning emitted for an unscorable total.
    """
    config = config or ScoringConfig()
    _validate_answers(instrument, answers, config)

    total_score = sum(answers[question.id] for question in instrument.questions)

    score_range = find_range(instrument, total_score)
    warning = None
    if score_range is None:
        score_range = instrument.scoring.ranges[0]
        warning = UNSCORABLE_TOTAL
        logger.warning(
            "SCORE_OUTSIDE_RANGES",
            extra={
                "instrument_id": instrument.id,
                "total_score": total_score,
                "fallback_label": score_range.label,
            },
        )

    return ScoreResult(
        instrument_id=instrument.id,
        total_score=total_score,
        severity_label=score_range.label,
        interpretation=score_range.interpretation,
        warning=warning,
    )


def find_range(instrument: Instrument, total_score: int) -> Optional[ScoreRange]:
    """First declared range containing the score, or None."""
    for score_range in instrument.scoring.ranges:
        if score_range.contains(total_score):
            return score_range
    return None


def _is_option_value(value: Any, option_values: frozenset) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value in option_values


def _validate_answers(
    instrument: Instrument,
    answers: Mapping[str, Any],
    config: ScoringConfig,
) -> None:
    missing: List[str] = [q for q in instrument.question_ids if q not in answers]
    if missing:
        raise IncompleteResponseError(instrument.id, missing)

    for question in instrument.questions:
        value = answers[question.id]
        if not _is_option_value(value, question.option_values):
            raise InvalidAnswerValueError(instrument.id, question.id, value)

    if config.reject_unknown_questions:
        known = set(instrument.question_ids)
        for question_id in answers:
            if question_id not in known:
                raise InvalidAnswerValueError(
                    instrument.id, question_id, answers[question_id]
                )
