"""Assessment Service configuration.

Instrument definitions are data, not code: they ship as instruments.json
next to this package and can be replaced by pointing
WELLPATH_INSTRUMENTS_PATH at another file.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_INSTRUMENTS_PATH = Path(__file__).parent / "data" / "instruments.json"

INSTRUMENTS_PATH_ENV = "WELLPATH_INSTRUMENTS_PATH"


@dataclass(frozen=True)
class ScoringConfig:
    """Configuration for the scoring evaluator."""

    # Reject answers for question ids the instrument does not define
    reject_unknown_questions: bool = True


def resolve_instruments_path(path: Optional[str] = None) -> Path:
    """Return the catalog file to load.

    Explicit argument first, then the environment, then the bundled file.
    """
    if path:
        return Path(path)
    env_path = os.getenv(INSTRUMENTS_PATH_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_INSTRUMENTS_PATH
