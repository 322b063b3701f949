"""Questionnaire instrument and response domain models.

Instruments are immutable definitions loaded once from the catalog file.
Responses are immutable once created: retaking an instrument produces a new
Response, which is what lets trend analysis order results by completion time.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


# Marker placed on results whose total fell outside every authored range
UNSCORABLE_TOTAL = "unscorable_total"


class Role(Enum):
    """Caller role as resolved by the auth collaborator."""
    CLINICIAN = "clinician"
    SUBJECT = "subject"


class InstrumentCategory(Enum):
    """Clinical area an instrument screens for."""
    DEPRESSION = "depression"
    ANXIETY = "anxiety"
    PTSD = "ptsd"
    ADHD = "adhd"
    STRESS = "stress"
    OCD = "ocd"


@dataclass(frozen=True)
class Option:
    """A selectable answer. Several options may share the same value."""
    value: int
    label: str


@dataclass(frozen=True)
class Question:
    """A single questionnaire item with its ordered options."""
    id: str
    text: str
    options: Tuple[Option, ...]

    @property
    def option_values(self) -> frozenset:
        return frozenset(option.value for option in self.options)

    @property
    def min_value(self) -> int:
        return min(option.value for option in self.options)

    @property
    def max_value(self) -> int:
        return max(option.value for option in self.options)


@dataclass(frozen=True)
class ScoreRange:
    """Severity band: a contiguous score interval with its interpretation."""
    label: str
    min: int
    max: int
    interpretation: str

    def contains(self, score: int) -> bool:
        return self.min <= score <= self.max


@dataclass(frozen=True)
class ScoringSpec:
    """Score bounds and the ordered severity bands covering them."""
    min: int
    max: int
    ranges: Tuple[ScoreRange, ...]


@dataclass(frozen=True)
class InstrumentSummary:
    """Listing view of an instrument without its question text."""
    id: str
    name: str
    acronym: str
    description: str
    category: InstrumentCategory
    question_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "acronym": self.acronym,
            "description": self.description,
            "category": self.category.value,
            "question_count": self.question_count,
        }


@dataclass(frozen=True)
class Instrument:
    """A standardized screening questionnaire (PHQ-9, GAD-7, ...)."""
    id: str
    name: str
    acronym: str
    description: str
    category: InstrumentCategory
    questions: Tuple[Question, ...]
    scoring: ScoringSpec

    @property
    def question_ids(self) -> Tuple[str, ...]:
        return tuple(question.id for question in self.questions)

    @property
    def achievable_min(self) -> int:
        """Lowest total any complete set of answers can produce."""
        return sum(question.min_value for question in self.questions)

    @property
    def achievable_max(self) -> int:
        """Highest total any complete set of answers can produce."""
        return sum(question.max_value for question in self.questions)

    def summary(self) -> InstrumentSummary:
        return InstrumentSummary(
            id=self.id,
            name=self.name,
            acronym=self.acronym,
            description=self.description,
            category=self.category,
            question_count=len(self.questions),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "acronym": self.acronym,
            "description": self.description,
            "category": self.category.value,
            "questions": [
                {
                    "id": q.id,
                    "text": q.text,
                    "options": [{"value": o.value, "label": o.label} for o in q.options],
                }
                for q in self.questions
            ],
            "scoring": {
                "min": self.scoring.min,
                "max": self.scoring.max,
                "ranges": [
                    {
                        "label": r.label,
                        "min": r.min,
                        "max": r.max,
                        "interpretation": r.interpretation,
                    }
                    for r in self.scoring.ranges
                ],
            },
        }


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring one set of answers.

    warning is only set (to UNSCORABLE_TOTAL) when the total matched no
    authored range and the first range was used instead.
    """
    instrument_id: str
    total_score: int
    severity_label: str
    interpretation: str
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instrument_id": self.instrument_id,
            "total_score": self.total_score,
            "severity_label": self.severity_label,
            "interpretation": self.interpretation,
            "warning": self.warning,
        }


@dataclass(frozen=True)
class Response:
    """A completed questionnaire, handed to persistence as-is.

    answers is a read-only mapping so a stored Response cannot be edited
    in place.
    """
    response_id: str
    instrument_id: str
    subject_id: str
    answers: Mapping[str, int]
    total_score: int
    severity_label: str
    interpretation: str
    completed_at: datetime
    warning: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.answers, MappingProxyType):
            object.__setattr__(self, "answers", MappingProxyType(dict(self.answers)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response_id": self.response_id,
            "instrument_id": self.instrument_id,
            "subject_id": self.subject_id,
            "answers": dict(self.answers),
            "total_score": self.total_score,
            "severity_label": self.severity_label,
            "interpretation": self.interpretation,
            "completed_at": self.completed_at.isoformat(),
            "warning": self.warning,
        }
