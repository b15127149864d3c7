"""
Confidence intervals for derivatives of smooth terms.

Dispatches the requested terms of a derivatives object to the point-wise
or simultaneous interval calculator and stacks the results into one
table, one block of rows per term in the requested order.
"""

import logging
import numbers
import warnings
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Literal

import numpy as np
from numpy.typing import NDArray

from gam_confint.exceptions import (
    InvalidLevelError,
    InvalidModeError,
    NonPositiveStandardError,
    ParameterShapeWarning,
    UnknownTermError,
)
from gam_confint.intervals import (
    IntervalTable,
    TermFunctional,
    confidence_interval,
    simultaneous_interval,
)
from gam_confint.sampling import sample_coefficient_deviations

logger = logging.getLogger(__name__)

INTERVAL_TYPES = ("confidence", "simultaneous")


@dataclass
class Derivatives:
    """
    First derivatives of the smooth terms of a fitted model.

    Parameters
    ----------
    derivatives : mapping of str to TermFunctional
        Derivative functional of each smooth term, in model order.
    model : object, optional
        Fitted model exposing ``vcov(unconditional=...)``. Required for
        simultaneous intervals.
    unconditional : bool, default=False
        Request the covariance matrix corrected for smoothing parameter
        uncertainty.
    """

    derivatives: dict[str, TermFunctional]
    model: Any = None
    unconditional: bool = False

    def __post_init__(self) -> None:
        self.derivatives = dict(self.derivatives)
        for name, functional in self.derivatives.items():
            if not isinstance(functional, TermFunctional):
                raise TypeError(
                    f"Derivative of term '{name}' must be a TermFunctional, "
                    f"got {type(functional).__name__}"
                )

    @property
    def terms(self) -> list[str]:
        return list(self.derivatives)

    def __getitem__(self, term: str) -> TermFunctional:
        return self.derivatives[term]

    def covariance(self) -> NDArray[np.floating]:
        """Bayesian covariance matrix of the model coefficients."""
        if self.model is None:
            raise ValueError("Simultaneous intervals require the fitted model")
        return np.asarray(
            self.model.vcov(unconditional=self.unconditional), dtype=np.float64
        )


def check_terms(
    parm: str | Iterable[str] | None,
    available: list[str],
    where: str = "object",
) -> list[str]:
    """Requested terms in order; all available terms when ``parm`` is None."""
    if parm is None:
        return list(available)
    if isinstance(parm, str):
        parm = [parm]
    parm = list(parm)
    missing = [term for term in parm if term not in available]
    if missing:
        raise UnknownTermError(missing, where=where)
    return list(dict.fromkeys(parm))


def check_level(level: Any) -> float:
    """Validate the confidence level, keeping only its first element."""
    values = np.atleast_1d(np.asarray(level, dtype=object))
    if values.ndim > 1:
        values = values.ravel()
    if values.size == 0:
        raise InvalidLevelError("`level` should be a single numeric value, got none")
    if values.size > 1:
        warnings.warn(
            f"`level` should be length 1, but supplied length: {values.size}. "
            "Using the first only.",
            ParameterShapeWarning,
            stacklevel=3,
        )
    value = values[0]
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        raise InvalidLevelError(f"`level` should be numeric, but supplied: {value!r}")
    value = float(value)
    if not 0 < value < 1:
        raise InvalidLevelError(
            f"`level` should lie in interval (0, 1), but supplied: {value}"
        )
    return value


def check_type(type: str) -> str:
    if type not in INTERVAL_TYPES:
        valid = ", ".join(INTERVAL_TYPES)
        raise InvalidModeError(f"Unknown interval type '{type}'. Valid options: {valid}")
    return type


def check_standard_errors(functionals: Mapping[str, TermFunctional]) -> None:
    for term, functional in functionals.items():
        bad = np.flatnonzero(~(np.isfinite(functional.se) & (functional.se > 0)))
        if bad.size:
            index = int(bad[0])
            raise NonPositiveStandardError(term, index, float(functional.se[index]))


def compute_intervals(
    functionals: Mapping[str, TermFunctional],
    level: float,
    type: Literal["confidence", "simultaneous"],
    covariance: Callable[[], NDArray[np.floating]] | None = None,
    nsim: int = 10000,
    random_state: int | np.random.Generator | np.random.RandomState | None = None,
) -> IntervalTable:
    """
    Intervals for already validated terms.

    Parameters
    ----------
    functionals : mapping of str to TermFunctional
        Terms to process, in output order.
    level : float
        Confidence level in (0, 1).
    type : {"confidence", "simultaneous"}
        Interval type.
    covariance : callable, optional
        Returns the coefficient covariance matrix. Called once, and only
        for simultaneous intervals.
    nsim : int, default=10000
        Number of simulated coefficient deviations.
    random_state : int, Generator, RandomState or None
        Seed for the simulated deviations.

    Returns
    -------
    IntervalTable
    """
    check_standard_errors(functionals)

    if type == "simultaneous":
        if covariance is None:
            raise ValueError("Simultaneous intervals require a covariance matrix")
        missing_xi = [term for term, f in functionals.items() if f.Xi is None]
        if missing_xi:
            raise ValueError(
                f"Simultaneous intervals require Xi for terms: {', '.join(missing_xi)}"
            )
        # one draw shared by every term
        deviations = sample_coefficient_deviations(
            covariance(), nsim=nsim, random_state=random_state
        )
        logger.debug(
            "Simulated %d coefficient deviations of dimension %d",
            *deviations.shape,
        )

    terms, lowers, ests, uppers = [], [], [], []
    critical_values = {}
    for term, functional in functionals.items():
        if type == "simultaneous":
            crit, (lower, est, upper) = simultaneous_interval(
                functional, deviations, level
            )
        else:
            crit, (lower, est, upper) = confidence_interval(functional, level)
        logger.debug("Term %s: critical value %.4f", term, crit)

        critical_values[term] = crit
        terms.append(np.full(functional.n_points, term, dtype=object))
        lowers.append(lower)
        ests.append(est)
        uppers.append(upper)

    return IntervalTable(
        term=np.concatenate(terms) if terms else np.empty(0, dtype=object),
        lower=np.concatenate(lowers) if lowers else np.empty(0),
        est=np.concatenate(ests) if ests else np.empty(0),
        upper=np.concatenate(uppers) if uppers else np.empty(0),
        level=level,
        type=type,
        critical_values=critical_values,
    )


def confint(
    derivatives: Derivatives,
    parm: str | Iterable[str] | None = None,
    level: float = 0.95,
    type: Literal["confidence", "simultaneous"] = "confidence",
    nsim: int = 10000,
    random_state: int | np.random.Generator | np.random.RandomState | None = None,
) -> IntervalTable:
    """
    Point-wise or simultaneous intervals for derivatives of smooths.

    Args:
        derivatives: Estimated derivatives of the smooth terms.
        parm: Term or terms to compute intervals for. If None, all terms
            are used, in model order.
        level: Confidence level, 0 < level < 1. If a sequence is given a
            ParameterShapeWarning is issued and its first value is used.
        type: "confidence" for point-wise intervals or "simultaneous" for
            intervals covering the whole derivative curve of each term.
        nsim: Number of simulations for simultaneous intervals.
        random_state: Seed or generator for the simulations.

    Returns:
        IntervalTable with columns term, lower, est and upper.

    Raises:
        UnknownTermError: A requested term is not in ``derivatives``.
        InvalidLevelError: ``level`` is not a number in (0, 1).
        InvalidModeError: ``type`` is not a known interval type.
        NonPositiveStandardError: A standard error is not positive.
        InvalidCovarianceError: The model covariance cannot be sampled.

    Example:
        >>> ci = confint(fd, type="confidence")
        >>> sint = confint(fd, parm="x1", type="simultaneous",
        ...                nsim=1000, random_state=42)
        >>> sint.to_frame().head()
    """
    terms = check_terms(parm, derivatives.terms)
    level = check_level(level)
    type = check_type(type)

    return compute_intervals(
        {term: derivatives[term] for term in terms},
        level=level,
        type=type,
        covariance=derivatives.covariance,
        nsim=nsim,
        random_state=random_state,
    )
