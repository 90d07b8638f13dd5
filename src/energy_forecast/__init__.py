"""
Energy Forecast - EIA monthly energy production, cleaned and forecast

Simple, step-by-step modules:
1. ingest - Download the T01.02 monthly CSV
2. prepare - Normalize labels, sentinel -> NaN, BTU -> GWh, sum duplicates
3. validate - Extract one source's gap-free monthly series
4. transforms - Log / first / seasonal differencing, ADF test
5. selection - Fit candidate seasonal ARIMAs, keep minimum AIC
6. forecasting - Horizon forecast with a confidence band in GWh
7. backtesting - 12-month holdout check of the chosen specification
"""

from .backtesting import HoldoutResult, validate_holdout
from .config import PipelineConfig, Settings, load_settings
from .errors import (DomainError, FetchError, GapError, InsufficientDataError,
                     NoConvergentModelError, ParseError, PipelineError,
                     SchemaError)
from .forecasting import ForecastResult, forecast
from .ingest import load, parse_raw_csv
from .models import (REFERENCE_CANDIDATES, SEASONAL_PERIOD, ConvergenceFailure,
                     FittedModel, ModelSpec, fit_sarima)
from .prepare import QBTU_TO_GWH, clean, list_sources
from .selection import CandidateReport, SelectionResult, select_best
from .transforms import to_log, to_log_diff, to_seasonal_log_diff
from .validate import extract, validate_monthly_index

__all__ = [
    # Config
    "Settings",
    "load_settings",
    "PipelineConfig",
    # Errors
    "PipelineError",
    "FetchError",
    "SchemaError",
    "ParseError",
    "DomainError",
    "InsufficientDataError",
    "GapError",
    "NoConvergentModelError",
    # Data
    "load",
    "parse_raw_csv",
    "clean",
    "list_sources",
    "QBTU_TO_GWH",
    "extract",
    "validate_monthly_index",
    # Transforms
    "to_log",
    "to_log_diff",
    "to_seasonal_log_diff",
    # Models
    "ModelSpec",
    "FittedModel",
    "ConvergenceFailure",
    "fit_sarima",
    "REFERENCE_CANDIDATES",
    "SEASONAL_PERIOD",
    "select_best",
    "SelectionResult",
    "CandidateReport",
    # Forecasting
    "forecast",
    "ForecastResult",
    "validate_holdout",
    "HoldoutResult",
]
