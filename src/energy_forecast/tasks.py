"""
Pipeline tasks

These tasks are designed to be:
- pure over their inputs (each stage reads the previous stage's value)
- atomic on write, with model artifacts published only once every stage succeeded
- safe to rerun (raw/clean downloads are reused unless overwrite=True)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from .backtesting import HoldoutResult, validate_holdout
from .config import PipelineConfig, Settings, load_settings
from .errors import PipelineError
from .forecasting import forecast
from .ingest import load_from_settings
from .io_utils import atomic_write_json, atomic_write_parquet, ensure_dir, read_json
from .prepare import clean, total_series_label
from .selection import SelectionResult, select_best
from .transforms import to_log
from .validate import extract

logger = logging.getLogger(__name__)

Loader = Callable[[Settings], pd.DataFrame]


def ingest_raw(
    config: PipelineConfig,
    settings: Optional[Settings] = None,
    loader: Loader = load_from_settings,
) -> Path:
    """
    Task 1: Download the raw CSV and save data/raw.parquet
    """
    raw_path = config.raw_path()
    ensure_dir(raw_path.parent)

    if raw_path.exists() and not config.overwrite:
        logger.info(f"[ingest] raw exists, skipping: {raw_path}")
        return raw_path

    settings = settings or load_settings()
    df_raw = loader(settings)

    atomic_write_parquet(df_raw, raw_path)
    logger.info(f"[ingest] wrote raw: {raw_path} ({len(df_raw)} rows)")
    return raw_path


def prepare_clean(raw_path: Path, config: PipelineConfig) -> Path:
    """
    Task 2: Clean the raw table and save data/clean.parquet

    The cached table is reused only when it was built with the same label
    suffixes (recorded in data/clean.meta.json).
    """
    clean_path = config.clean_path()
    meta_path = config.clean_meta_path()
    suffixes = list(config.label_suffixes)

    if clean_path.exists() and not config.overwrite:
        cached = read_json(meta_path) if meta_path.exists() else {}
        if cached.get("label_suffixes") == suffixes:
            logger.info(f"[clean] clean exists, skipping: {clean_path}")
            return clean_path
        logger.info(f"[clean] cached labels built with other suffixes, rebuilding: {clean_path}")

    df_raw = pd.read_parquet(raw_path)
    df_clean = clean(df_raw, config.label_suffixes)

    atomic_write_parquet(df_clean, clean_path)
    atomic_write_json({"label_suffixes": suffixes, "n_rows": len(df_clean)}, meta_path)
    logger.info(f"[clean] wrote clean: {clean_path} ({len(df_clean)} rows)")
    return clean_path


def select_model(series: pd.Series, config: PipelineConfig) -> Tuple[SelectionResult, pd.Series]:
    """
    Task 3: Fit every candidate on log(series) and pick min AIC.

    Returns the selection and the log series it was fitted on.
    """
    log_series = to_log(series)
    selection = select_best(log_series, config.candidates)
    return selection, log_series


def forecast_horizon(
    selection: SelectionResult,
    log_series: pd.Series,
    config: PipelineConfig,
) -> pd.DataFrame:
    """
    Task 4: Forecast the horizon in GWh with its confidence band
    """
    result = forecast(
        selection.model,
        log_series,
        config.horizon_months,
        confidence=config.confidence,
    )
    return result.to_frame()


def holdout_check(
    series: pd.Series,
    selection: SelectionResult,
    config: PipelineConfig,
) -> HoldoutResult:
    """
    Task 5: Refit the selected spec without the trailing months and score it
    """
    return validate_holdout(
        series,
        selection.model.spec,
        holdout_months=config.holdout_months,
        confidence=config.confidence,
    )


def publish_artifacts(
    log_series: pd.Series,
    selection: SelectionResult,
    forecast_df: pd.DataFrame,
    holdout: Optional[HoldoutResult],
    config: PipelineConfig,
) -> Dict[str, str]:
    """
    Task 6: Write model_selection.json, forecast.parquet and holdout.parquet

    Runs only after every modeling stage has succeeded, so a failed run
    leaves no model artifact behind.
    """
    report = {
        "source": log_series.name,
        "n_obs": len(log_series),
        "start": log_series.index.min(),
        "end": log_series.index.max(),
        "selected": selection.model.spec.label,
        "selected_aic": selection.model.aic,
        "candidates": [r.to_dict() for r in selection.report],
    }
    paths = {
        "selection": atomic_write_json(report, config.selection_path()),
        "forecast": atomic_write_parquet(forecast_df, config.forecast_path()),
    }
    if holdout is not None:
        paths["holdout"] = atomic_write_parquet(holdout.to_frame(), config.holdout_path())

    for name, path in paths.items():
        logger.info(f"[publish] wrote {name}: {path}")
    return {name: str(path) for name, path in paths.items()}


def render_plots(
    cleaned: pd.DataFrame,
    series: pd.Series,
    forecast_df: pd.DataFrame,
    config: PipelineConfig,
) -> List[str]:
    """
    Task 7: Save the total, by-source and forecast charts
    """
    from .plots import plot_forecast, plot_generation_by_source, plot_total_generation

    out = config.plots_path()
    paths = [plot_generation_by_source(cleaned, out / "generation_by_source.png")]

    total_label = total_series_label(config.label_suffixes)
    if (cleaned["source"] == total_label).any():
        paths.append(plot_total_generation(cleaned, total_label, out / "total_generation.png"))
    else:
        logger.info(f"[plots] no {total_label!r} rows, skipping total chart")

    slug = str(series.name).lower().replace(" ", "_")
    paths.append(
        plot_forecast(series, forecast_df, out / f"{slug}_forecast.png", confidence=config.confidence)
    )

    logger.info(f"[plots] wrote {len(paths)} charts to {out}")
    return [str(p) for p in paths]


def run_full_pipeline(
    config: PipelineConfig,
    settings: Optional[Settings] = None,
    loader: Loader = load_from_settings,
) -> Dict:
    """
    Runs tasks in order and returns a summary dict.

    Selection, forecast and holdout are all computed before anything is
    written to the artifacts dir.
    """
    logger.info("=" * 60)
    logger.info("START PIPELINE")
    logger.info("=" * 60)

    run_id = config.run_id()
    logger.info(f"Pipeline run_id: {run_id}")

    try:
        raw = ingest_raw(config, settings=settings, loader=loader)
        clean_path = prepare_clean(raw, config)

        cleaned = pd.read_parquet(clean_path)
        series = extract(cleaned, config.source, config.start, config.end)

        selection, log_series = select_model(series, config)
        forecast_df = forecast_horizon(selection, log_series, config)
        holdout = holdout_check(series, selection, config) if config.holdout_months > 0 else None
    except PipelineError as e:
        logger.error(f"PIPELINE FAILED: {e}")
        raise

    published = publish_artifacts(log_series, selection, forecast_df, holdout, config)
    plots = render_plots(cleaned, series, forecast_df, config) if config.make_plots else []

    metadata = {
        "run_id": run_id,
        "finished_at": datetime.now(timezone.utc).isoformat(),
        "source": series.name,
        "series_start": series.index.min(),
        "series_end": series.index.max(),
        "n_obs": len(series),
        "horizon_months": config.horizon_months,
        "confidence": config.confidence,
        "holdout_months": config.holdout_months,
        "label_suffixes": list(config.label_suffixes),
    }
    atomic_write_json(metadata, config.metadata_path())

    out = {
        "run_id": run_id,
        "source": series.name,
        "n_obs": len(series),
        "series_range": f"{series.index.min():%Y-%m} to {series.index.max():%Y-%m}",
        "best_spec": selection.model.spec.label,
        "best_aic": round(selection.model.aic, 3),
        "failed_candidates": len(selection.failures),
        "forecast_path": published["forecast"],
        "selection_path": published["selection"],
        "forecast_last_gwh": round(float(forecast_df["predicted_gwh"].iloc[-1]), 1),
        "holdout_mape": round(holdout.error_metric, 2) if holdout is not None else None,
        "holdout_path": published.get("holdout"),
        "plots": plots,
    }

    logger.info("=" * 60)
    logger.info("PIPELINE COMPLETE")
    logger.info("=" * 60)
    return out
