"""
Step 5: Model selection by AIC

Fits every candidate through the fitting seam, drops the ones that fail
(reporting why), and keeps the minimum AIC. Ties within `aic_tolerance`
go to the spec with fewer parameters, then to the earliest candidate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .errors import NoConvergentModelError
from .models import ConvergenceFailure, FitOutcome, FittedModel, ModelSpec, fit_sarima

logger = logging.getLogger(__name__)

FitFn = Callable[[pd.Series, ModelSpec], FitOutcome]


@dataclass(frozen=True)
class CandidateReport:
    """One row of the model-selection report"""
    spec: ModelSpec
    aic: Optional[float]
    converged: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "spec": self.spec.label,
            "order": list(self.spec.order),
            "seasonal_order": list(self.spec.seasonal_order),
            "n_params": self.spec.n_params,
            "aic": self.aic,
            "converged": self.converged,
            "error": self.error,
        }


@dataclass(frozen=True)
class SelectionResult:
    """Winning model plus the per-candidate report (in candidate order)"""
    model: FittedModel
    report: tuple

    @property
    def failures(self) -> List[CandidateReport]:
        return [r for r in self.report if not r.converged]

    def report_frame(self) -> pd.DataFrame:
        """Candidate report as a DataFrame (spec, aic, converged, error)"""
        frame = pd.DataFrame([r.to_dict() for r in self.report])
        frame["selected"] = frame["spec"] == self.model.spec.label
        return frame


def _pick_best(fitted: Sequence[FittedModel], aic_tolerance: float) -> FittedModel:
    """Min AIC; ties -> fewer params -> first listed (fitted keeps list order)"""
    best_aic = min(m.aic for m in fitted)
    tied = [m for m in fitted if m.aic - best_aic <= aic_tolerance]
    # min() returns the first of equal keys, preserving list order
    return min(tied, key=lambda m: m.n_params)


def select_best(
    series: pd.Series,
    candidates: Sequence[ModelSpec],
    fit: FitFn = fit_sarima,
    aic_tolerance: float = 1e-6,
) -> SelectionResult:
    """
    Fit each candidate and select the minimum-AIC model.

    Args:
        series: Series to fit (typically log-scaled, undifferenced)
        candidates: Caller-supplied ModelSpecs, in priority order for ties
        fit: Fitting seam returning FittedModel or ConvergenceFailure
        aic_tolerance: AIC differences at or below this count as ties

    Returns:
        SelectionResult with the winning FittedModel and a report row per candidate

    Raises:
        ValueError: empty candidate list
        NoConvergentModelError: every candidate failed
    """
    if not candidates:
        raise ValueError("[select] candidate list is empty")

    report: List[CandidateReport] = []
    fitted: List[FittedModel] = []

    logger.info(f"[select] fitting {len(candidates)} candidates on {len(series)} points")

    for spec in candidates:
        outcome = fit(series, spec)

        if isinstance(outcome, ConvergenceFailure):
            logger.warning(f"[select] {spec.label} failed: {outcome.reason}")
            report.append(CandidateReport(spec, None, False, outcome.reason))
            continue

        if not np.isfinite(outcome.aic):
            reason = f"non-finite AIC ({outcome.aic})"
            logger.warning(f"[select] {spec.label} failed: {reason}")
            report.append(CandidateReport(spec, None, False, reason))
            continue

        logger.info(f"[select] {spec.label}: AIC={outcome.aic:.3f}")
        report.append(CandidateReport(spec, float(outcome.aic), True))
        fitted.append(outcome)

    if not fitted:
        details = "; ".join(f"{r.spec.label}: {r.error}" for r in report)
        raise NoConvergentModelError(
            f"[select] all {len(candidates)} candidates failed ({details})",
            failures=report,
        )

    best = _pick_best(fitted, aic_tolerance)
    logger.info(
        f"[select] best={best.spec.label} AIC={best.aic:.3f} "
        f"({len(fitted)}/{len(candidates)} converged)"
    )

    return SelectionResult(model=best, report=tuple(report))
