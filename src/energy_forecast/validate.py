"""
Step 3: Extract and validate a monthly series

Hard gates for data quality:
- Source must exist in the cleaned table
- At least two full seasonal cycles after dropping missing values
- No missing months between the first and last observation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

import pandas as pd

from .errors import GapError, InsufficientDataError
from .models import SEASONAL_PERIOD

logger = logging.getLogger(__name__)

DateLike = Union[str, pd.Timestamp, None]


@dataclass
class ValidationResult:
    """Results of monthly series validation"""
    is_valid: bool
    n_rows: int
    n_duplicates: int
    n_missing_months: int
    missing_months: List[pd.Timestamp]
    n_nulls: int
    value_min: float
    value_max: float
    is_monotonic: bool


def _month_start(value: DateLike) -> Optional[pd.Timestamp]:
    if value is None:
        return None
    ts = pd.Timestamp(value)
    return ts.to_period("M").to_timestamp()


def validate_monthly_index(series: pd.Series) -> ValidationResult:
    """
    Validate a monthly series for forecasting.

    Checks:
    1. No duplicate dates
    2. Every month between min and max present
    3. Monotonic increasing dates
    4. Value sanity (nulls, bounds)
    """
    index = pd.DatetimeIndex(series.index)
    n_duplicates = int(index.duplicated(keep=False).sum())
    is_monotonic = bool(index.is_monotonic_increasing)

    missing_months: List[pd.Timestamp] = []
    if len(index):
        expected = pd.date_range(index.min(), index.max(), freq="MS")
        missing_months = sorted(set(expected) - set(index))

    n_missing = len(missing_months)
    is_valid = (n_duplicates == 0) and (n_missing == 0) and is_monotonic

    return ValidationResult(
        is_valid=is_valid,
        n_rows=len(series),
        n_duplicates=n_duplicates,
        n_missing_months=n_missing,
        missing_months=missing_months[:10],  # First 10 only
        n_nulls=int(series.isna().sum()),
        value_min=float(series.min()) if len(series) else float("nan"),
        value_max=float(series.max()) if len(series) else float("nan"),
        is_monotonic=is_monotonic,
    )


def print_validation_report(result: ValidationResult) -> None:
    """Print a human-readable validation report"""
    status = "PASS" if result.is_valid else "FAIL"
    print(f"\n=== Validation Report: {status} ===")
    print(f"Rows: {result.n_rows}")
    print(f"Duplicates: {result.n_duplicates}")
    print(f"Missing months: {result.n_missing_months}")
    if result.missing_months:
        print(f"  First missing: {[m.strftime('%Y-%m') for m in result.missing_months[:5]]}")
    print(f"Null values: {result.n_nulls}")
    print(f"Value range: {result.value_min:.0f} to {result.value_max:.0f}")
    print(f"Monotonic: {result.is_monotonic}")


def resolve_source(cleaned: pd.DataFrame, source: str) -> str:
    """Case-insensitive lookup of a normalized source label"""
    labels = cleaned["source"].dropna().unique().tolist()
    matches = [label for label in labels if label.lower() == source.strip().lower()]
    if not matches:
        raise InsufficientDataError(
            f"[extract] unknown source {source!r}; available: {sorted(labels)}"
        )
    return matches[0]


def extract(
    cleaned: pd.DataFrame,
    source: str,
    start: DateLike = None,
    end: DateLike = None,
    season_length: int = SEASONAL_PERIOD,
) -> pd.Series:
    """
    Extract one source's monthly series within an inclusive date window.

    Args:
        cleaned: Output of prepare.clean()
        source: Source label (case-insensitive), e.g. "Solar"
        start: First month to keep (None = earliest)
        end: Last month to keep (None = latest)
        season_length: Seasonal period; 2 * season_length points required

    Returns:
        pd.Series of GWh with a monthly DatetimeIndex (freq="MS")

    Raises:
        InsufficientDataError: unknown source or too few observations
        GapError: a month is missing inside the observed range
    """
    label = resolve_source(cleaned, source)

    rows = cleaned[cleaned["source"] == label]
    start_ts, end_ts = _month_start(start), _month_start(end)
    if start_ts is not None:
        rows = rows[rows["ds"] >= start_ts]
    if end_ts is not None:
        rows = rows[rows["ds"] <= end_ts]

    rows = rows[rows["gwh"].notna()].sort_values("ds")

    min_obs = 2 * season_length
    if len(rows) < min_obs:
        raise InsufficientDataError(
            f"[extract] {label}: {len(rows)} observations in "
            f"[{start_ts or 'start'}, {end_ts or 'end'}], need at least {min_obs}"
        )

    series = pd.Series(
        rows["gwh"].to_numpy(dtype=float),
        index=pd.DatetimeIndex(rows["ds"], name="ds"),
        name=label,
    )

    result = validate_monthly_index(series)
    if not result.is_valid:
        first = [m.strftime("%Y-%m") for m in result.missing_months[:5]]
        raise GapError(
            f"[extract] {label}: {result.n_missing_months} missing months "
            f"(first: {first}), {result.n_duplicates} duplicate dates"
        )

    series = series.asfreq("MS")
    logger.info(
        f"[extract] {label}: {len(series)} months "
        f"{series.index.min():%Y-%m} to {series.index.max():%Y-%m}"
    )
    return series
