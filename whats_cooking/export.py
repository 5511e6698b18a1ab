from __future__ import annotations

"""
Turn predictions for the test corpus into (id, cuisine) pairs and the
submission CSV.
"""

import logging
from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from .constants import SUBMISSION_COLUMNS
from .errors import InputFormatError
from .multiclass import OneVsRestDecisionFunction

log = logging.getLogger(__name__)


def export_predictions(
    fn: OneVsRestDecisionFunction, ids: Sequence[str], X
) -> list[tuple[str, str]]:
    """Predicted cuisine per test recipe, in input order; ids are passed through untouched."""
    ids = list(ids)
    X_arr = np.asarray(X, dtype=float)
    if X_arr.ndim != 2 or X_arr.shape[0] != len(ids):
        raise InputFormatError(
            f"{len(ids)} ids but feature matrix has shape {X_arr.shape}", stage="export"
        )
    return list(zip(ids, fn.predict_many(X_arr)))


def write_submission(pairs: Sequence[tuple[str, str]], path: Path) -> pd.DataFrame:
    """Write an `id,cuisine` CSV. Nothing is written unless all pairs are available."""
    submission = pd.DataFrame(list(pairs), columns=list(SUBMISSION_COLUMNS), dtype=str)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    submission.to_csv(path, index=False)
    log.info("Wrote %d predictions to %s", len(submission), path)
    return submission
