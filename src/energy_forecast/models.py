"""
Seasonal ARIMA specifications and the fitting seam.

fit_sarima() is the only place that touches the optimizer. It never raises
for a bad candidate: it returns a ConvergenceFailure that the selector can
report, so selection logic can be tested with a fake fitter.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SEASONAL_PERIOD = 12


@dataclass(frozen=True)
class ModelSpec:
    """Non-seasonal (p, d, q) and seasonal (P, D, Q, S) orders"""
    p: int = 0
    d: int = 1
    q: int = 0
    P: int = 0
    D: int = 0
    Q: int = 0
    S: int = SEASONAL_PERIOD

    def __post_init__(self):
        for name in ("p", "d", "q", "P", "D", "Q"):
            if getattr(self, name) < 0:
                raise ValueError(f"ModelSpec.{name} must be >= 0, got {getattr(self, name)}")
        if self.S < 2:
            raise ValueError(f"ModelSpec.S must be >= 2, got {self.S}")

    @property
    def order(self) -> Tuple[int, int, int]:
        return (self.p, self.d, self.q)

    @property
    def seasonal_order(self) -> Tuple[int, int, int, int]:
        return (self.P, self.D, self.Q, self.S)

    @property
    def n_params(self) -> int:
        """AR + MA + seasonal AR + seasonal MA coefficients, plus the variance"""
        return self.p + self.q + self.P + self.Q + 1

    @property
    def label(self) -> str:
        return f"({self.p},{self.d},{self.q})({self.P},{self.D},{self.Q})[{self.S}]"

    @classmethod
    def parse(cls, text: str) -> "ModelSpec":
        """Parse "p,d,q,P,D,Q" (optionally with a 7th S value)"""
        parts = [int(x) for x in text.replace(" ", "").split(",") if x != ""]
        if len(parts) not in (6, 7):
            raise ValueError(f"Expected 'p,d,q,P,D,Q[,S]', got {text!r}")
        return cls(*parts)

    def __str__(self) -> str:
        return self.label


REFERENCE_CANDIDATES: Tuple[ModelSpec, ...] = (
    ModelSpec(0, 1, 0, 1, 0, 0),
    ModelSpec(0, 1, 1, 1, 0, 0),
    ModelSpec(1, 1, 0, 1, 0, 0),
    ModelSpec(1, 1, 1, 1, 0, 0),
    ModelSpec(0, 1, 1, 0, 1, 1),
    ModelSpec(1, 1, 1, 0, 1, 1),
    ModelSpec(1, 1, 1, 1, 1, 1),
)


@dataclass(frozen=True)
class FittedModel:
    """Read-only result of fitting one ModelSpec to one series"""
    spec: ModelSpec
    params: Dict[str, float]
    residuals: np.ndarray = field(repr=False, compare=False)
    loglik: float
    aic: float
    nobs: int
    results: Any = field(default=None, repr=False, compare=False)

    @property
    def n_params(self) -> int:
        return self.spec.n_params


@dataclass(frozen=True)
class ConvergenceFailure:
    """A candidate that could not be fitted, with the reason"""
    spec: ModelSpec
    reason: str


FitOutcome = Union[FittedModel, ConvergenceFailure]


def compute_aic(loglik: float, n_params: int) -> float:
    """AIC = -2 * logLikelihood + 2 * k"""
    return -2.0 * loglik + 2.0 * n_params


def fit_sarima(series: pd.Series, spec: ModelSpec, maxiter: int = 200) -> FitOutcome:
    """
    Fit a seasonal ARIMA by maximum likelihood.

    Differencing (d, D) is applied inside the state-space model, so the
    caller passes the undifferenced (typically log-scaled) series.

    Args:
        series: Regularly spaced numeric series
        spec: Orders to fit
        maxiter: Optimizer iteration cap

    Returns:
        FittedModel on success, ConvergenceFailure otherwise
    """
    from statsmodels.tools.sm_exceptions import ConvergenceWarning
    from statsmodels.tsa.statespace.sarimax import SARIMAX

    y = np.asarray(series, dtype=float)
    if not np.all(np.isfinite(y)):
        return ConvergenceFailure(spec, "series contains non-finite values")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            model = SARIMAX(y, order=spec.order, seasonal_order=spec.seasonal_order)
            results = model.fit(disp=False, maxiter=maxiter)
        except Exception as e:
            return ConvergenceFailure(spec, f"{type(e).__name__}: {e}")

    convergence_warnings = [w for w in caught if issubclass(w.category, ConvergenceWarning)]
    for w in caught:
        if w not in convergence_warnings:
            logger.debug(f"[fit] {spec.label}: {w.category.__name__}: {w.message}")

    if not (results.mle_retvals or {}).get("converged", True):
        return ConvergenceFailure(spec, "optimizer did not converge")
    if convergence_warnings:
        return ConvergenceFailure(spec, str(convergence_warnings[0].message))

    loglik = float(results.llf)
    if not np.isfinite(loglik):
        return ConvergenceFailure(spec, f"non-finite log-likelihood ({loglik})")

    fitted = FittedModel(
        spec=spec,
        params={name: float(v) for name, v in zip(results.param_names, results.params)},
        residuals=np.asarray(results.resid, dtype=float),
        loglik=loglik,
        aic=compute_aic(loglik, spec.n_params),
        nobs=len(y),
        results=results,
    )
    logger.debug(f"[fit] {spec.label}: loglik={loglik:.3f} aic={fitted.aic:.3f}")
    return fitted
