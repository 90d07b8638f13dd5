from __future__ import annotations

import logging
from typing import List, Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from .config import PipelineConfig
from .errors import PipelineError
from .models import REFERENCE_CANDIDATES, ModelSpec
from .prepare import list_sources
from .tasks import ingest_raw, prepare_clean, run_full_pipeline

app = typer.Typer(add_completion=False, help="EIA monthly energy production forecasting")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )


def _parse_candidates(values: Optional[List[str]]):
    if not values:
        return REFERENCE_CANDIDATES
    try:
        return tuple(ModelSpec.parse(v) for v in values)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--candidate")


@app.command()
def run(
    source: str = "solar",
    horizon_months: int = 60,
    confidence: float = 0.95,
    start: Optional[str] = None,
    end: Optional[str] = None,
    holdout_months: int = 12,
    candidate: Optional[List[str]] = typer.Option(
        None, help="Candidate orders 'p,d,q,P,D,Q' (repeatable); defaults to the reference set"
    ),
    data_dir: str = "data",
    artifacts_dir: str = "artifacts",
    overwrite: bool = False,
    plots: bool = True,
    verbose: bool = False,
):
    """Select a seasonal ARIMA by AIC and forecast one source."""
    _configure_logging(verbose)

    if not 0 < confidence < 1:
        raise typer.BadParameter("must be in (0, 1)", param_hint="--confidence")

    cfg = PipelineConfig(
        source=source,
        start=start,
        end=end,
        horizon_months=horizon_months,
        confidence=confidence,
        holdout_months=holdout_months,
        candidates=_parse_candidates(candidate),
        data_dir=data_dir,
        artifacts_dir=artifacts_dir,
        overwrite=overwrite,
        make_plots=plots,
    )

    try:
        results = run_full_pipeline(cfg)
    except PipelineError as e:
        console.print(f"[bold red]Run failed:[/bold red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Pipeline Results")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for k, v in results.items():
        table.add_row(str(k), str(v))

    console.print(table)


@app.command()
def sources(
    data_dir: str = "data",
    overwrite: bool = False,
    include_totals: bool = False,
):
    """List the normalized source labels and their available months."""
    _configure_logging(False)
    cfg = PipelineConfig(data_dir=data_dir, overwrite=overwrite)

    try:
        clean_path = prepare_clean(ingest_raw(cfg), cfg)
    except PipelineError as e:
        console.print(f"[bold red]Load failed:[/bold red] {e}")
        raise typer.Exit(code=1)

    cleaned = pd.read_parquet(clean_path)
    available = cleaned[cleaned["gwh"].notna()]

    table = Table(title="Energy Sources")
    table.add_column("Source", style="cyan")
    table.add_column("First month", style="green")
    table.add_column("Last month", style="green")
    table.add_column("Months", justify="right")

    for label in list_sources(cleaned, include_totals=include_totals):
        rows = available[available["source"] == label]
        if rows.empty:
            table.add_row(label, "-", "-", "0")
            continue
        table.add_row(
            label,
            f"{rows['ds'].min():%Y-%m}",
            f"{rows['ds'].max():%Y-%m}",
            str(len(rows)),
        )

    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
