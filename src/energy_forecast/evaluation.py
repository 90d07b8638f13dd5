"""
Holdout scoring

Compares a withheld window of generation (GWh) with its forecast table.
Months where either side is missing or non-finite are left out of every
score, and zero-generation months are left out of MAPE. A score with
nothing left to compare is NaN, not an error.
"""

from __future__ import annotations

import logging
from typing import Dict, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

ACTUAL_COL = "actual_gwh"
PREDICTED_COL = "predicted_gwh"
LOWER_COL = "lower_gwh"
UPPER_COL = "upper_gwh"

# Below this a month counts as zero generation (percentage error undefined)
ZERO_GENERATION_GWH = 1e-10


def _comparable(*columns) -> Tuple[np.ndarray, ...]:
    """Keep only the months where every column is finite"""
    arrays = [np.asarray(c, dtype=float) for c in columns]
    keep = np.logical_and.reduce([np.isfinite(a) for a in arrays])
    return tuple(a[keep] for a in arrays)


def mape(actual, predicted) -> float:
    """Mean absolute percentage error (%) over months with non-zero generation"""
    actual, predicted = _comparable(actual, predicted)
    producing = np.abs(actual) > ZERO_GENERATION_GWH
    if not producing.any():
        return np.nan
    return float(100 * np.mean(np.abs(predicted[producing] / actual[producing] - 1)))


def mae(actual, predicted) -> float:
    """Mean absolute error in GWh"""
    actual, predicted = _comparable(actual, predicted)
    if actual.size == 0:
        return np.nan
    return float(np.mean(np.abs(predicted - actual)))


def rmse(actual, predicted) -> float:
    """Root mean squared error in GWh"""
    actual, predicted = _comparable(actual, predicted)
    if actual.size == 0:
        return np.nan
    return float(np.sqrt(np.mean((predicted - actual) ** 2)))


def interval_coverage(actual, lower, upper) -> float:
    """Share (%) of withheld months whose actual lies inside [lower, upper]"""
    actual, lower, upper = _comparable(actual, lower, upper)
    if actual.size == 0:
        return np.nan
    return float(100 * np.mean((lower <= actual) & (actual <= upper)))


def score_holdout(table: pd.DataFrame) -> Dict[str, float]:
    """
    Score a holdout table (HoldoutResult.to_frame() layout).

    Args:
        table: Frame with actual_gwh and predicted_gwh; lower_gwh/upper_gwh
            add interval coverage

    Returns:
        {"mape", "mae", "rmse"} plus "coverage" when the band is present

    Raises:
        ValueError: actual_gwh or predicted_gwh missing
    """
    missing = [c for c in (ACTUAL_COL, PREDICTED_COL) if c not in table.columns]
    if missing:
        raise ValueError(f"[holdout] cannot score table without columns {missing}")

    actual = table[ACTUAL_COL].to_numpy()
    predicted = table[PREDICTED_COL].to_numpy()

    scores = {
        "mape": mape(actual, predicted),
        "mae": mae(actual, predicted),
        "rmse": rmse(actual, predicted),
    }
    if LOWER_COL in table.columns and UPPER_COL in table.columns:
        scores["coverage"] = interval_coverage(
            actual, table[LOWER_COL].to_numpy(), table[UPPER_COL].to_numpy()
        )

    n_skipped = len(table) - len(_comparable(actual, predicted)[0])
    if n_skipped:
        logger.debug(f"[holdout] {n_skipped} months without a comparable actual/forecast pair")

    return scores
