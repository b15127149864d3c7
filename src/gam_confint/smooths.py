"""
Confidence intervals for the fitted values of smooth terms.

Works directly on a fitted additive model rather than on precomputed
derivatives. The model supplies term-wise predictions with standard
errors; for simultaneous intervals the coefficient-to-grid mapping of
each term is rebuilt from the model's linear predictor matrix.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Literal, Protocol

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from gam_confint.confint import (
    check_level,
    check_terms,
    check_type,
    compute_intervals,
)
from gam_confint.intervals import IntervalTable, TermFunctional
from gam_confint.transforms import get_transform

logger = logging.getLogger(__name__)


@dataclass
class TermPrediction:
    """
    Term-wise predictions of an additive model.

    Attributes
    ----------
    fit : DataFrame of shape (n_samples, n_terms)
        Contribution of each term, one column per term labelled
        ``s(<covariate>)``.
    se_fit : DataFrame of shape (n_samples, n_terms)
        Standard errors of ``fit``.
    constant : float
        Intercept, centred out of the term contributions.
    """

    fit: pd.DataFrame
    se_fit: pd.DataFrame
    constant: float = 0.0


class SmoothModel(Protocol):
    """Fitted additive model as seen by :func:`confint_smooth`."""

    data: pd.DataFrame

    def smooth_terms(self) -> list[str]:
        """Covariate names of the model's smooth terms."""

    def predict_terms(self, newdata: pd.DataFrame) -> TermPrediction:
        """Term-wise predictions with standard errors."""

    def predict_matrix(self, newdata: pd.DataFrame) -> NDArray[np.floating]:
        """Linear predictor matrix of shape (n_samples, n_coef)."""

    def term_columns(self, term: str) -> NDArray[np.intp] | slice:
        """Coefficient columns belonging to a smooth term."""

    def vcov(self, unconditional: bool = False) -> NDArray[np.floating]:
        """Bayesian covariance matrix of the coefficients."""

    def linkinv(self, eta: NDArray[np.floating]) -> NDArray[np.floating]:
        """Inverse link function."""


def smooth_label(term: str) -> str:
    """Column label of a smooth term in term-wise predictions."""
    return f"s({term})"


def term_design(
    lp_matrix: NDArray[np.floating],
    columns: NDArray[np.intp] | slice,
) -> NDArray[np.floating]:
    """Linear predictor matrix zeroed outside one term's coefficients."""
    lp_matrix = np.atleast_2d(np.asarray(lp_matrix, dtype=np.float64))
    Xi = np.zeros_like(lp_matrix)
    Xi[:, columns] = lp_matrix[:, columns]
    return Xi


def confint_smooth(
    model: SmoothModel,
    parm: str | Iterable[str] | None = None,
    level: float = 0.95,
    newdata: pd.DataFrame | Mapping[str, Any] | None = None,
    type: Literal["confidence", "simultaneous"] = "confidence",
    nsim: int = 10000,
    shift: bool = False,
    transform: bool | str | Callable | None = True,
    unconditional: bool = False,
    random_state: int | np.random.Generator | np.random.RandomState | None = None,
) -> IntervalTable:
    """
    Point-wise or simultaneous intervals for smooth terms of a model.

    Intervals are computed on the link scale, optionally shifted by the
    model constant and then transformed, in that order.

    Args:
        model: Fitted additive model.
        parm: Term or terms to compute intervals for. Must be given.
        level: Confidence level, 0 < level < 1.
        newdata: Covariate values at which the smooths are evaluated. If
            None, the data the model was fitted to are used.
        type: "confidence" for point-wise or "simultaneous" intervals.
        nsim: Number of simulations for simultaneous intervals.
        shift: If True, add the model constant to the estimate and the
            limits.
        transform: True to apply the model's inverse link, False or None
            for values on the link scale, or a transform name or callable.
        unconditional: Use the covariance matrix corrected for smoothing
            parameter uncertainty (simultaneous intervals only).
        random_state: Seed or generator for the simulations.

    Returns:
        IntervalTable with columns term, x, lower, est and upper.

    Example:
        >>> ci = confint_smooth(model, parm="x1", type="confidence")
        >>> ci.to_frame().head()
    """
    if parm is None:
        raise ValueError("`parm` must be specified for smooth intervals")
    terms = check_terms(parm, model.smooth_terms(), where="model")
    level = check_level(level)
    type = check_type(type)
    ilink = get_transform(transform, model)

    if newdata is None:
        newdata = model.data
    newdata = pd.DataFrame(newdata)

    pred = model.predict_terms(newdata)
    lp_matrix = model.predict_matrix(newdata) if type == "simultaneous" else None

    functionals = {}
    for term in terms:
        label = smooth_label(term)
        Xi = None
        if lp_matrix is not None:
            Xi = term_design(lp_matrix, model.term_columns(term))
        functionals[term] = TermFunctional(
            est=pred.fit[label].to_numpy(),
            se=pred.se_fit[label].to_numpy(),
            Xi=Xi,
        )

    table = compute_intervals(
        functionals,
        level=level,
        type=type,
        covariance=lambda: model.vcov(unconditional=unconditional),
        nsim=nsim,
        random_state=random_state,
    )

    lower, est, upper = table.lower, table.est, table.upper
    if shift:
        logger.debug("Shifting smooths by model constant %.4f", pred.constant)
        lower = lower + pred.constant
        est = est + pred.constant
        upper = upper + pred.constant

    table.lower = np.asarray(ilink(lower), dtype=np.float64)
    table.est = np.asarray(ilink(est), dtype=np.float64)
    table.upper = np.asarray(ilink(upper), dtype=np.float64)
    table.x = (
        np.concatenate([newdata[term].to_numpy() for term in terms])
        if terms
        else np.empty(0)
    )

    return table
