"""Instrument catalog - immutable registry of questionnaire definitions.

Loaded once at startup from declarative JSON. Loading runs a validation
pass so that a mis-authored scoring table fails at startup instead of
producing a fallback severity at scoring time.
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from wellpath.shared.models import (
    Instrument,
    InstrumentCategory,
    InstrumentSummary,
    Option,
    Question,
    Role,
    ScoreRange,
    ScoringSpec,
)
from .config import resolve_instruments_path
from .errors import CatalogConfigurationError, InstrumentNotFoundError

logger = logging.getLogger(__name__)


class InstrumentCatalog:
    """Read-only lookup of instruments by id.

    Declared order is preserved for listing. Instances hold no mutable
    state after construction and can be shared across threads.
    """

    def __init__(self, instruments: Iterable[Instrument], validate: bool = True):
        """Build a catalog.

        Args:
            instruments: Instrument definitions in display order
            validate: Run find_catalog_problems() and refuse bad data

        Raises:
            CatalogConfigurationError: If validation finds any problem
        """
        instruments = tuple(instruments)
        if validate:
            problems = find_catalog_problems(instruments)
            if problems:
                logger.error(
                    "CATALOG_VALIDATION_FAILED",
                    extra={"problem_count": len(problems), "problems": problems},
                )
                raise CatalogConfigurationError(
                    "Invalid instrument catalog:\n  " + "\n  ".join(problems)
                )

        self._instruments = instruments
        self._by_id: Dict[str, Instrument] = {i.id: i for i in instruments}

        logger.info(
            "CATALOG_LOADED",
            extra={
                "instrument_count": len(instruments),
                "instrument_ids": [i.id for i in instruments],
            },
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InstrumentCatalog":
        """Build a catalog from the parsed JSON document."""
        return cls(parse_instruments(data))

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> "InstrumentCatalog":
        """Load and validate the catalog file.

        Args:
            path: JSON file; defaults to WELLPATH_INSTRUMENTS_PATH or the
                bundled instruments.json

        Raises:
            CatalogConfigurationError: If the file is missing, unreadable,
                or fails validation
        """
        catalog_path = resolve_instruments_path(path)
        try:
            with open(catalog_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(
                "CATALOG_FILE_UNREADABLE",
                extra={"path": str(catalog_path), "error": str(e)},
            )
            raise CatalogConfigurationError(
                f"Cannot read instrument catalog {catalog_path}: {e}"
            ) from e

        return cls.from_dict(data)

    def __len__(self) -> int:
        return len(self._instruments)

    def __contains__(self, instrument_id: str) -> bool:
        return instrument_id in self._by_id

    def get(self, instrument_id: str) -> Instrument:
        """Look up an instrument.

        Raises:
            InstrumentNotFoundError: If the id is not in the catalog
        """
        try:
            return self._by_id[instrument_id]
        except KeyError:
            raise InstrumentNotFoundError(instrument_id) from None

    def list(self) -> List[Instrument]:
        """All instruments in declared order."""
        return list(self._instruments)

    def list_visible(
        self,
        role: Role,
        assigned_ids: Iterable[str] = (),
    ) -> List[InstrumentSummary]:
        """Instruments a caller may see.

        Clinicians always see everything. A subject with no assignments
        sees everything; a subject with assignments sees only those, in
        catalog order. Assigned ids unknown to the catalog are ignored.

        Args:
            role: Caller role
            assigned_ids: The subject's assigned instrument ids

        Returns:
            InstrumentSummary list in catalog order
        """
        assigned = frozenset(assigned_ids)
        if role == Role.CLINICIAN or not assigned:
            visible = self._instruments
        else:
            visible = tuple(i for i in self._instruments if i.id in assigned)

        return [instrument.summary() for instrument in visible]


def parse_instruments(data: Dict[str, Any]) -> List[Instrument]:
    """Convert the catalog document into Instrument objects.

    Questions may give their options inline or name an entry in the
    top-level "option_sets" table.

    Raises:
        CatalogConfigurationError: If required fields are missing or
            reference unknown option sets or categories
    """
    option_sets = data.get("option_sets", {})
    raw_instruments = data.get("instruments")
    if not isinstance(raw_instruments, list):
        raise CatalogConfigurationError("Catalog must contain an 'instruments' list")

    instruments = []
    for raw in raw_instruments:
        try:
            instruments.append(_parse_instrument(raw, option_sets))
        except (KeyError, TypeError, ValueError) as e:
            instrument_id = raw.get("id", "<unknown>") if isinstance(raw, dict) else "<unknown>"
            raise CatalogConfigurationError(
                f"Malformed instrument {instrument_id}: {e!r}"
            ) from e
    return instruments


def _parse_instrument(raw: Dict[str, Any], option_sets: Dict[str, Any]) -> Instrument:
    questions = []
    for raw_question in raw["questions"]:
        raw_options = raw_question["options"]
        if isinstance(raw_options, str):
            if raw_options not in option_sets:
                raise ValueError(f"unknown option set '{raw_options}'")
            raw_options = option_sets[raw_options]
        questions.append(
            Question(
                id=raw_question["id"],
                text=raw_question["text"],
                options=tuple(
                    Option(value=o["value"], label=o["label"]) for o in raw_options
                ),
            )
        )

    scoring = raw["scoring"]
    return Instrument(
        id=raw["id"],
        name=raw["name"],
        acronym=raw["acronym"],
        description=raw.get("description", ""),
        category=InstrumentCategory(raw["category"]),
        questions=tuple(questions),
        scoring=ScoringSpec(
            min=scoring["min"],
            max=scoring["max"],
            ranges=tuple(
                ScoreRange(
                    label=r["label"],
                    min=r["min"],
                    max=r["max"],
                    interpretation=r["interpretation"],
                )
                for r in scoring["ranges"]
            ),
        ),
    )


def find_catalog_problems(instruments: Sequence[Instrument]) -> List[str]:
    """Check every instrument and return human-readable problems.

    An empty list means the catalog is sound: ids are unique, every
    question has integer options, and each instrument's ranges are
    ascending, non-overlapping and cover [min, max] without gaps.
    """
    problems: List[str] = []
    seen_ids = set()
    for instrument in instruments:
        if instrument.id in seen_ids:
            problems.append(f"{instrument.id}: duplicate instrument id")
        seen_ids.add(instrument.id)
        problems.extend(_instrument_problems(instrument))
    return problems


def _instrument_problems(instrument: Instrument) -> List[str]:
    prefix = instrument.id
    problems: List[str] = []

    if not instrument.questions:
        problems.append(f"{prefix}: has no questions")

    question_ids = set()
    options_ok = True
    for question in instrument.questions:
        if question.id in question_ids:
            problems.append(f"{prefix}: duplicate question id {question.id}")
        question_ids.add(question.id)

        if not question.options:
            problems.append(f"{prefix}: question {question.id} has no options")
            options_ok = False
        for option in question.options:
            if not _is_int(option.value):
                problems.append(
                    f"{prefix}: question {question.id} option "
                    f"'{option.label}' has non-integer value {option.value!r}"
                )
                options_ok = False

    problems.extend(_range_problems(instrument))

    # Totals the questions can actually produce must be scorable
    if instrument.questions and options_ok:
        spec = instrument.scoring
        if instrument.achievable_min < spec.min or instrument.achievable_max > spec.max:
            problems.append(
                f"{prefix}: achievable scores {instrument.achievable_min}-"
                f"{instrument.achievable_max} exceed scoring bounds {spec.min}-{spec.max}"
            )

    return problems


def _range_problems(instrument: Instrument) -> List[str]:
    prefix = instrument.id
    spec = instrument.scoring
    problems: List[str] = []

    if spec.min > spec.max:
        problems.append(f"{prefix}: scoring min {spec.min} exceeds max {spec.max}")
        return problems
    if not spec.ranges:
        problems.append(f"{prefix}: has no scoring ranges")
        return problems

    expected_start = spec.min
    for score_range in spec.ranges:
        if score_range.min > score_range.max:
            problems.append(
                f"{prefix}: range '{score_range.label}' min {score_range.min} "
                f"exceeds max {score_range.max}"
            )
            continue
        if score_range.min < expected_start:
            problems.append(
                f"{prefix}: range '{score_range.label}' overlaps or is out of order "
                f"(starts at {score_range.min}, expected {expected_start})"
            )
        elif score_range.min > expected_start:
            problems.append(
                f"{prefix}: gap in ranges, {expected_start}-{score_range.min - 1} "
                f"not covered"
            )
        expected_start = max(expected_start, score_range.max + 1)

    if expected_start <= spec.max:
        problems.append(
            f"{prefix}: ranges end at {expected_start - 1}, scoring max is {spec.max}"
        )
    elif expected_start - 1 > spec.max:
        problems.append(
            f"{prefix}: ranges extend to {expected_start - 1}, beyond scoring max {spec.max}"
        )

    return problems


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def load_catalog(path: Optional[str] = None) -> InstrumentCatalog:
    """Load the catalog once at startup. See InstrumentCatalog.from_file."""
    return InstrumentCatalog.from_file(path)
