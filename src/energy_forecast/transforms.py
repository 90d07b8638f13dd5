"""
Step 4: Stationarity transforms

Log scaling tames the growing variance of solar generation; first and
seasonal differencing remove trend and the yearly cycle. Every transform
takes and returns a pd.Series and never mutates its input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .errors import DomainError
from .models import SEASONAL_PERIOD

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StationarityReport:
    """Augmented Dickey-Fuller test outcome"""
    statistic: float
    p_value: float
    n_lags: int
    n_obs: int
    is_stationary: bool


def _check_lag(series: pd.Series, lag: int) -> None:
    if lag < 1:
        raise ValueError(f"lag must be >= 1, got {lag}")
    if len(series) <= lag:
        raise ValueError(f"[transform] series of length {len(series)} is too short for lag {lag}")


def to_log(series: pd.Series) -> pd.Series:
    """Natural log; DomainError if any value is <= 0 (or missing)"""
    values = series.astype(float)
    bad = ~(values > 0)
    if bad.any():
        first = values[bad].index[0]
        raise DomainError(
            f"[transform] {series.name}: log undefined for {int(bad.sum())} "
            f"non-positive values (first at {first}: {values[bad].iloc[0]})"
        )
    return np.log(values)


def difference(series: pd.Series, lag: int = 1) -> pd.Series:
    """x[i] - x[i-lag]; the first `lag` elements are dropped"""
    _check_lag(series, lag)
    return series.diff(lag).iloc[lag:]


def undifference(diffs: pd.Series, initial: pd.Series) -> pd.Series:
    """
    Invert difference() given the first `lag` original values.

    Args:
        diffs: Output of difference(series, lag)
        initial: series.iloc[:lag]

    Returns:
        Reconstructed series (initial values followed by the integrated diffs)
    """
    lag = len(initial)
    if lag < 1:
        raise ValueError("initial must contain at least one value")

    values = list(np.asarray(initial, dtype=float))
    for i, d in enumerate(np.asarray(diffs, dtype=float)):
        values.append(values[i] + d)

    index = initial.index.append(diffs.index)
    return pd.Series(values, index=index, name=diffs.name)


def to_log_diff(series: pd.Series, lag: int = 1) -> pd.Series:
    """
    log(x[i]) - log(x[i-lag]) for i >= lag.

    Differencing always shortens the series by `lag` elements.
    """
    _check_lag(series, lag)
    return difference(to_log(series), lag)


def to_seasonal_log_diff(series: pd.Series, period: int = SEASONAL_PERIOD) -> pd.Series:
    """Seasonal log difference at lag `period`"""
    return to_log_diff(series, lag=period)


def from_log_diff(diffs: pd.Series, initial: pd.Series) -> pd.Series:
    """Invert to_log_diff() given the first `lag` original (positive) values"""
    log_initial = to_log(initial)
    return np.exp(undifference(diffs, log_initial))


def check_stationarity(series: pd.Series, alpha: float = 0.05) -> StationarityReport:
    """
    Augmented Dickey-Fuller test.

    The null hypothesis is a unit root; p_value < alpha rejects it and the
    series is treated as stationary.
    """
    from statsmodels.tsa.stattools import adfuller

    clean = series.dropna().astype(float)
    statistic, p_value, n_lags, n_obs, _, _ = adfuller(clean.to_numpy(), autolag="AIC")

    report = StationarityReport(
        statistic=float(statistic),
        p_value=float(p_value),
        n_lags=int(n_lags),
        n_obs=int(n_obs),
        is_stationary=bool(p_value < alpha),
    )
    logger.info(
        f"[transform] ADF {series.name}: stat={report.statistic:.3f} "
        f"p={report.p_value:.4f} stationary={report.is_stationary}"
    )
    return report
