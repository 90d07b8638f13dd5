"""
Step 6: Forecast and back-transform

Point forecasts and standard errors come from the fitted model on the log
scale; to_frame() exponentiates them into GWh with a normal-quantile band.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from scipy.stats import norm

from .models import FittedModel, ModelSpec

logger = logging.getLogger(__name__)


def z_score(confidence: float) -> float:
    """Two-sided normal quantile (0.95 -> 1.959964)"""
    if not 0 < confidence < 1:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    return float(norm.ppf(0.5 + confidence / 2))


def horizon_dates(last_date: pd.Timestamp, horizon_months: int) -> pd.DatetimeIndex:
    """The `horizon_months` month starts following `last_date`"""
    start = pd.Timestamp(last_date).to_period("M").to_timestamp() + pd.offsets.MonthBegin(1)
    return pd.date_range(start, periods=horizon_months, freq="MS", name="ds")


@dataclass(frozen=True, eq=False)
class ForecastResult:
    """Log-scale forecast for one series"""
    point_forecast: np.ndarray
    standard_error: np.ndarray
    horizon_dates: pd.DatetimeIndex
    confidence: float = 0.95
    source: Optional[str] = None
    spec: Optional[ModelSpec] = None

    def __len__(self) -> int:
        return len(self.point_forecast)

    def to_frame(self, confidence: Optional[float] = None) -> pd.DataFrame:
        """
        Back-transform to generation units.

        predicted = exp(mean); lower/upper = exp(mean -/+ z * se)

        Returns:
            DataFrame with columns [ds, predicted_gwh, lower_gwh, upper_gwh]
        """
        z = z_score(self.confidence if confidence is None else confidence)
        mean = np.asarray(self.point_forecast, dtype=float)
        se = np.asarray(self.standard_error, dtype=float)

        return pd.DataFrame({
            "ds": self.horizon_dates,
            "predicted_gwh": np.exp(mean),
            "lower_gwh": np.exp(mean - z * se),
            "upper_gwh": np.exp(mean + z * se),
        })


def forecast(
    fitted: FittedModel,
    series: pd.Series,
    horizon_months: int,
    confidence: float = 0.95,
) -> ForecastResult:
    """
    Forecast `horizon_months` steps past the end of the fitting series.

    The state-space prediction rolls the ARIMA difference equation forward
    and accumulates the forecast-error variance step by step.

    Args:
        fitted: Model returned by fit_sarima / select_best
        series: The series the model was fitted on (same length, log scale)
        horizon_months: Number of months to forecast (>= 1)
        confidence: Interval level in (0, 1) used by to_frame()

    Returns:
        ForecastResult on the log scale
    """
    if horizon_months < 1:
        raise ValueError(f"[forecast] horizon_months must be >= 1, got {horizon_months}")
    z_score(confidence)

    if fitted.results is None:
        raise ValueError(f"[forecast] {fitted.spec.label} has no fitted results to forecast from")
    if len(series) != fitted.nobs:
        raise ValueError(
            f"[forecast] series has {len(series)} points but "
            f"{fitted.spec.label} was fitted on {fitted.nobs}"
        )

    prediction = fitted.results.get_forecast(steps=horizon_months)
    mean = np.asarray(prediction.predicted_mean, dtype=float)
    se = np.asarray(prediction.se_mean, dtype=float)

    result = ForecastResult(
        point_forecast=mean,
        standard_error=se,
        horizon_dates=horizon_dates(series.index[-1], horizon_months),
        confidence=confidence,
        source=series.name,
        spec=fitted.spec,
    )
    logger.info(
        f"[forecast] {series.name} {fitted.spec.label}: {horizon_months} months "
        f"{result.horizon_dates[0]:%Y-%m} to {result.horizon_dates[-1]:%Y-%m} "
        f"at {confidence:.0%}"
    )
    return result
