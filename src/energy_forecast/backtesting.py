"""
Step 7: Holdout validation

Refit the chosen specification with the trailing months withheld, forecast
exactly that window and score it against the actuals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict

import pandas as pd

from .errors import InsufficientDataError, NoConvergentModelError
from .evaluation import score_holdout
from .forecasting import ForecastResult, forecast
from .models import ConvergenceFailure, ModelSpec, fit_sarima
from .selection import FitFn
from .transforms import to_log

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class HoldoutResult:
    """Forecast over the withheld window, the actuals, and the error"""
    forecast: ForecastResult
    actual: pd.Series
    error_metric: float
    metrics: Dict[str, float] = field(default_factory=dict)

    def to_frame(self) -> pd.DataFrame:
        """Forecast table joined with the withheld actuals"""
        frame = self.forecast.to_frame()
        frame["actual_gwh"] = self.actual.to_numpy()
        return frame


def split_holdout(series: pd.Series, holdout_months: int):
    """Split into (train, holdout) at len - holdout_months"""
    if holdout_months < 1:
        raise ValueError(f"[holdout] holdout_months must be >= 1, got {holdout_months}")
    if holdout_months >= len(series):
        raise InsufficientDataError(
            f"[holdout] cannot withhold {holdout_months} of {len(series)} points"
        )
    cut = len(series) - holdout_months
    return series.iloc[:cut], series.iloc[cut:]


def validate_holdout(
    series: pd.Series,
    spec: ModelSpec,
    holdout_months: int = 12,
    confidence: float = 0.95,
    fit: FitFn = fit_sarima,
) -> HoldoutResult:
    """
    Fit on the prefix, forecast the withheld window, compare with actuals.

    Args:
        series: Monthly series in generation units (GWh)
        spec: Specification to refit (usually the selected one)
        holdout_months: Trailing months withheld from fitting
        confidence: Interval level for coverage
        fit: Fitting seam (defaults to fit_sarima)

    Returns:
        HoldoutResult with error_metric = MAPE (%) and mae/rmse/coverage in metrics

    Raises:
        InsufficientDataError: fewer than 2 * S points left for fitting
        NoConvergentModelError: the refit failed
    """
    train, actual = split_holdout(series, holdout_months)

    min_obs = 2 * spec.S
    if len(train) < min_obs:
        raise InsufficientDataError(
            f"[holdout] {series.name}: {len(train)} points before the holdout, need {min_obs}"
        )

    log_train = to_log(train)
    outcome = fit(log_train, spec)
    if isinstance(outcome, ConvergenceFailure):
        raise NoConvergentModelError(
            f"[holdout] {spec.label} failed to fit on {len(train)} points: {outcome.reason}",
            failures=[outcome],
        )

    result = forecast(outcome, log_train, holdout_months, confidence=confidence)
    table = result.to_frame()
    table["actual_gwh"] = actual.to_numpy()
    metrics = score_holdout(table)

    logger.info(
        f"[holdout] {series.name} {spec.label}: {holdout_months} months, "
        f"MAPE={metrics['mape']:.2f}% coverage={metrics['coverage']:.0f}%"
    )

    return HoldoutResult(
        forecast=result,
        actual=actual,
        error_metric=metrics["mape"],
        metrics=metrics,
    )
