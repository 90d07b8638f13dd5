"""
Charts for the batch run

Total production, production by source, and the forecast with its band.
Each function saves a PNG and returns the path.
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd

from .prepare import list_sources, pivot_sources

# Suppress matplotlib warnings for cleaner output
warnings.filterwarnings('ignore', category=UserWarning, module='matplotlib')

plt.rcParams['figure.figsize'] = (12, 6)
plt.rcParams['figure.dpi'] = 100


def _save(fig, output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)
    return output_path


def plot_total_generation(
    cleaned: pd.DataFrame,
    total_label: str,
    output_path: Path,
) -> Path:
    """Line chart of the total production series"""
    total = cleaned[cleaned["source"] == total_label].sort_values("ds")
    if total.empty:
        raise ValueError(f"No rows for total series {total_label!r}")

    fig, ax = plt.subplots()
    ax.plot(total["ds"], total["gwh"], color="black", linewidth=1)

    start, end = total["ds"].min(), total["ds"].max()
    ax.set_title(f"Total U.S. Primary Energy Production {start:%Y}-{end:%Y}")
    ax.set_xlabel("Year")
    ax.set_ylabel("Generation (gigawatt-hours)")
    ax.grid(alpha=0.3)

    return _save(fig, output_path)


def plot_generation_by_source(cleaned: pd.DataFrame, output_path: Path) -> Path:
    """One line per source (totals excluded)"""
    sources = list_sources(cleaned)
    wide = pivot_sources(cleaned[cleaned["source"].isin(sources)])

    fig, ax = plt.subplots()
    for source in wide.columns:
        ax.plot(wide.index, wide[source], label=source, linewidth=1)

    ax.set_title("U.S. Energy Production by Source")
    ax.set_xlabel("Year")
    ax.set_ylabel("Generation (gigawatt-hours)")
    ax.legend(loc="upper left", fontsize=8, ncol=2)
    ax.grid(alpha=0.3)

    return _save(fig, output_path)


def plot_forecast(
    history: pd.Series,
    forecast_df: pd.DataFrame,
    output_path: Path,
    confidence: float = 0.95,
    title: Optional[str] = None,
) -> Path:
    """History plus predicted_gwh with its [lower_gwh, upper_gwh] band"""
    fig, ax = plt.subplots()
    ax.plot(history.index, history.values, color="black", linewidth=1, label="Observed")
    ax.plot(forecast_df["ds"], forecast_df["predicted_gwh"], color="tab:orange", label="Forecast")
    ax.fill_between(
        forecast_df["ds"],
        forecast_df["lower_gwh"],
        forecast_df["upper_gwh"],
        color="tab:orange",
        alpha=0.25,
        label=f"{confidence:.0%} interval",
    )

    ax.set_title(title or f"{history.name} generation forecast")
    ax.set_xlabel("Year")
    ax.set_ylabel("Generation (gigawatt-hours)")
    ax.legend(loc="upper left")
    ax.grid(alpha=0.3)

    return _save(fig, output_path)
