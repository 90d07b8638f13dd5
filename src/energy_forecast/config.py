"""
Configuration + Settings

Remote source URL and request timeout come from env (prod) / .env (local).
PipelineConfig holds everything a batch run needs so every run logs the
same config.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from .models import REFERENCE_CANDIDATES, ModelSpec

EIA_MONTHLY_CSV_URL = "https://www.eia.gov/totalenergy/data/browser/csv.php?tbl=T01.02"

# Words stripped from EIA descriptions ("Solar Energy Production" -> "Solar")
DEFAULT_LABEL_SUFFIXES: Tuple[str, ...] = (
    " Production",
    " Energy",
    " Power",
    " Electric",
    " (Dry)",
    " Plant Liquids",
)


@dataclass
class Settings:
    """Connection settings for the EIA monthly CSV"""
    url: str = EIA_MONTHLY_CSV_URL
    timeout: float = 60.0
    max_retries: int = 3
    backoff_factor: float = 0.5


def load_settings(
    url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Settings:
    """
    Load settings from environment.

    Reads EIA_MONTHLY_CSV_URL and ENERGY_FORECAST_TIMEOUT from .env file or
    environment variables. Explicit arguments win over the environment.
    """
    load_dotenv()

    env_url = os.getenv("EIA_MONTHLY_CSV_URL") or EIA_MONTHLY_CSV_URL
    env_timeout = os.getenv("ENERGY_FORECAST_TIMEOUT", "").strip()

    if timeout is None and env_timeout:
        try:
            timeout = float(env_timeout)
        except ValueError:
            raise ValueError(
                f"ENERGY_FORECAST_TIMEOUT must be a number of seconds, got {env_timeout!r}"
            )

    return Settings(
        url=url or env_url,
        timeout=timeout if timeout is not None else 60.0,
    )


@dataclass(frozen=True)
class PipelineConfig:
    # Data parameters
    source: str = "Solar"
    start: Optional[str] = None
    end: Optional[str] = None
    label_suffixes: Tuple[str, ...] = DEFAULT_LABEL_SUFFIXES

    # Forecasting / model selection
    horizon_months: int = 60
    confidence: float = 0.95
    holdout_months: int = 12
    candidates: Tuple[ModelSpec, ...] = field(default=REFERENCE_CANDIDATES)

    # IO
    data_dir: str = "data"
    artifacts_dir: str = "artifacts"
    overwrite: bool = False
    make_plots: bool = True

    def run_id(self) -> str:
        return datetime.utcnow().strftime("%Y%m%d_%H%M%S")

    def data_path(self) -> Path:
        return Path(self.data_dir)

    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir)

    def raw_path(self) -> Path:
        return self.data_path() / "raw.parquet"

    def clean_path(self) -> Path:
        return self.data_path() / "clean.parquet"

    def clean_meta_path(self) -> Path:
        return self.data_path() / "clean.meta.json"

    def metadata_path(self) -> Path:
        return self.artifacts_path() / "metadata.json"

    def selection_path(self) -> Path:
        return self.artifacts_path() / "model_selection.json"

    def forecast_path(self) -> Path:
        return self.artifacts_path() / "forecast.parquet"

    def holdout_path(self) -> Path:
        return self.artifacts_path() / "holdout.parquet"

    def plots_path(self) -> Path:
        return self.artifacts_path() / "plots"
