"""Assessment Service: instrument catalog and questionnaire scoring.

Loads the standardized screening instruments (PHQ-9, GAD-7, PCL-5,
ASRS, PSS-10, Y-BOCS, CES-D) from declarative data and scores completed
answer sets into a total and a severity band.

Endpoints:
- GET /instruments - Instruments visible to the caller
- GET /instruments/<id> - Full instrument definition
- POST /assessments/evaluate - Score a set of answers
- POST /assignments - Change a subject's assigned instruments
- GET /health - Health check
"""

from .catalog import InstrumentCatalog, find_catalog_problems, load_catalog
from .config import ScoringConfig
from .errors import (
    AssessmentError,
    AssignmentPermissionError,
    CatalogConfigurationError,
    IncompleteResponseError,
    InstrumentNotFoundError,
    InvalidAnswerValueError,
)
from .scorer import ScoringEvaluator, score_instrument

__all__ = [
    "InstrumentCatalog",
    "find_catalog_problems",
    "load_catalog",
    "ScoringConfig",
    "AssessmentError",
    "AssignmentPermissionError",
    "CatalogConfigurationError",
    "IncompleteResponseError",
    "InstrumentNotFoundError",
    "InvalidAnswerValueError",
    "ScoringEvaluator",
    "score_instrument",
]
