"""
Step 2: Clean raw records

Turn the raw EIA table into one row per (source, month):
1. Normalize labels ("Solar Energy Production" -> "Solar")
2. Map the "Not Available" sentinel to NaN; anything else non-numeric fails loud
3. Convert quadrillion BTU to GWh / TWh
4. Parse YYYYMM to the first day of the month (invalid months are dropped)
5. Sum duplicate (source, month) rows
"""

from __future__ import annotations

import logging
from typing import Iterable, List

import numpy as np
import pandas as pd

from .config import DEFAULT_LABEL_SUFFIXES
from .errors import ParseError, SchemaError

logger = logging.getLogger(__name__)

# Ratio of gigawatt-hours per quadrillion BTU
QBTU_TO_GWH = 293071.070172222215

NOT_AVAILABLE = "Not Available"

TOTAL_PREFIX = "Total"


def normalize_labels(
    descriptions: pd.Series,
    suffixes: Iterable[str] = DEFAULT_LABEL_SUFFIXES,
) -> pd.Series:
    """
    Remove every suffix token wherever it appears in the description.

    This is word removal, not trimming: "Nuclear Electric Power Production"
    loses " Production", " Power" and " Electric" and becomes "Nuclear".
    """
    labels = descriptions.astype(str)
    for token in suffixes:
        labels = labels.str.replace(token, "", regex=False)
    return labels.str.strip()


def parse_values(values: pd.Series, descriptions: pd.Series = None) -> pd.Series:
    """
    Convert raw Value strings to float quadrillion BTU.

    The exact sentinel "Not Available" maps to NaN. Any other value that is
    not a finite decimal number ("inf" and "Infinity" included) raises
    ParseError (no silent coercion).
    """
    text = values.astype(str).str.strip()
    sentinel = text == NOT_AVAILABLE

    numeric = pd.to_numeric(text.where(~sentinel), errors="coerce")
    bad = ~np.isfinite(numeric) & ~sentinel

    if bad.any():
        rows = []
        for idx in bad[bad].index[:5]:
            desc = descriptions.loc[idx] if descriptions is not None else "?"
            rows.append(f"row {idx} ({desc!r}): {values.loc[idx]!r}")
        raise ParseError(
            f"[clean] {int(bad.sum())} non-numeric values that are not "
            f"{NOT_AVAILABLE!r}: " + "; ".join(rows)
        )

    return numeric.astype(float)


def parse_year_month(yyyymm: pd.Series) -> pd.Series:
    """
    Map YYYYMM to the first calendar day of that month.

    Values that are not a valid year-month (EIA annual totals use month 13)
    become NaT so the caller can drop them.
    """
    text = yyyymm.astype(str).str.strip()
    return pd.to_datetime(text + "01", format="%Y%m%d", errors="coerce")


def clean(
    raw: pd.DataFrame,
    suffixes: Iterable[str] = DEFAULT_LABEL_SUFFIXES,
) -> pd.DataFrame:
    """
    Clean raw records into the canonical [source, ds, gwh, twh] table.

    Args:
        raw: DataFrame with Description, YYYYMM, Value columns
        suffixes: Tokens stripped from Description to build the source label

    Returns:
        DataFrame with one row per (source, ds), sorted by source then ds.
        gwh/twh are NaN when every contributing row was "Not Available".

    Raises:
        SchemaError: required columns are missing
        ParseError: a value is neither numeric nor the sentinel
    """
    missing = [c for c in ("Description", "YYYYMM", "Value") if c not in raw.columns]
    if missing:
        raise SchemaError(f"[clean] raw frame missing columns {missing}")

    suffixes = tuple(suffixes)
    value = parse_values(raw["Value"], raw["Description"])

    df = pd.DataFrame({
        "source": normalize_labels(raw["Description"], suffixes),
        "ds": parse_year_month(raw["YYYYMM"]),
        "gwh": value * QBTU_TO_GWH,
    })
    df["twh"] = df["gwh"] / 1000

    n_bad_dates = int(df["ds"].isna().sum())
    if n_bad_dates:
        logger.info(f"[clean] dropping {n_bad_dates} rows with no valid year-month")
    df = df[df["ds"].notna()]

    # min_count=1 keeps an all-NaN group NaN instead of 0
    cleaned = (
        df.groupby(["source", "ds"], as_index=False, sort=True)[["gwh", "twh"]]
        .sum(min_count=1)
        .reset_index(drop=True)
    )

    n_merged = len(df) - len(cleaned)
    if n_merged:
        logger.info(f"[clean] summed {n_merged} duplicate (source, month) rows")

    logger.info(
        f"[clean] {len(cleaned)} rows, {cleaned['source'].nunique()} sources, "
        f"{int(cleaned['gwh'].isna().sum())} missing values"
    )

    return cleaned


def list_sources(cleaned: pd.DataFrame, include_totals: bool = False) -> List[str]:
    """Sorted source labels, optionally without the "Total ..." aggregates"""
    sources = sorted(cleaned["source"].dropna().unique().tolist())
    if include_totals:
        return sources
    return [s for s in sources if not s.startswith(TOTAL_PREFIX)]


def total_series_label(suffixes: Iterable[str] = DEFAULT_LABEL_SUFFIXES) -> str:
    """Label of "Total Primary Energy Production" after normalization"""
    return normalize_labels(pd.Series(["Total Primary Energy Production"]), suffixes).iloc[0]


def pivot_sources(cleaned: pd.DataFrame, value_col: str = "gwh") -> pd.DataFrame:
    """Wide table: one column per source, monthly rows (for plotting)"""
    wide = cleaned.pivot(index="ds", columns="source", values=value_col)
    return wide.sort_index().astype(np.float64)
