"""
Point-wise and simultaneous intervals for a single smooth term.

A term is described by a linear functional of the model coefficients
evaluated on a grid: the point estimates, their standard errors and the
matrix Xi mapping coefficients to the grid. Point-wise intervals use a
normal critical value; simultaneous intervals use a critical value
calibrated on the maximum absolute standardized deviation of simulated
curves.
"""

from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray
from scipy import stats

from gam_confint.quantiles import type8_quantile


@dataclass
class TermFunctional:
    """
    Linear functional of the model coefficients for one term.

    Parameters
    ----------
    est : array-like of shape (n_points,)
        Point estimates on the evaluation grid.
    se : array-like of shape (n_points,)
        Standard errors of the estimates.
    Xi : array-like of shape (n_points, n_coef), optional
        Matrix mapping the coefficients to the grid, zero outside the
        columns of this term. Only needed for simultaneous intervals.
    """

    est: NDArray[np.floating]
    se: NDArray[np.floating]
    Xi: NDArray[np.floating] | None = None

    def __post_init__(self) -> None:
        self.est = np.asarray(self.est, dtype=np.float64).ravel()
        self.se = np.asarray(self.se, dtype=np.float64).ravel()
        if self.est.size == 0:
            raise ValueError("A term needs at least one evaluation point")
        if self.est.shape != self.se.shape:
            raise ValueError(
                f"est has {self.est.size} values but se has {self.se.size}"
            )
        if self.Xi is not None:
            self.Xi = np.atleast_2d(np.asarray(self.Xi, dtype=np.float64))
            if self.Xi.shape[0] != self.est.size:
                raise ValueError(
                    f"Xi has {self.Xi.shape[0]} rows, expected {self.est.size}"
                )

    @property
    def n_points(self) -> int:
        return self.est.size


@dataclass
class IntervalTable:
    """Stacked intervals for one or more terms."""

    term: NDArray[np.object_]
    lower: NDArray[np.floating]
    est: NDArray[np.floating]
    upper: NDArray[np.floating]
    level: float
    type: str
    x: NDArray | None = None
    critical_values: dict[str, float] = field(default_factory=dict)

    def __len__(self) -> int:
        return self.est.size

    @property
    def terms(self) -> list[str]:
        """Terms in the order they appear in the table."""
        return list(dict.fromkeys(self.term.tolist()))

    @property
    def columns(self) -> list[str]:
        if self.x is None:
            return ["term", "lower", "est", "upper"]
        return ["term", "x", "lower", "est", "upper"]

    def select(self, term: str) -> "IntervalTable":
        """Rows belonging to a single term."""
        mask = self.term == term
        if not np.any(mask):
            raise KeyError(term)
        return IntervalTable(
            term=self.term[mask],
            lower=self.lower[mask],
            est=self.est[mask],
            upper=self.upper[mask],
            level=self.level,
            type=self.type,
            x=None if self.x is None else self.x[mask],
            critical_values={term: self.critical_values[term]},
        )

    def to_frame(self) -> pd.DataFrame:
        """
        Table as a DataFrame.

        The ``term`` column is an ordered categorical whose categories
        follow the order in which terms were requested.
        """
        data = {"term": pd.Categorical(self.term, categories=self.terms, ordered=True)}
        if self.x is not None:
            data["x"] = self.x
        data["lower"] = self.lower
        data["est"] = self.est
        data["upper"] = self.upper
        return pd.DataFrame(data, columns=self.columns)

    def __str__(self) -> str:
        label = "Simultaneous" if self.type == "simultaneous" else "Point-wise"
        lines = [
            f"{label} Intervals",
            f"  Level: {self.level:.1%}",
            f"  Rows: {len(self)}",
        ]
        for term in self.terms:
            mask = self.term == term
            width = np.mean(self.upper[mask] - self.lower[mask])
            lines.append(
                f"  {term}: crit={self.critical_values[term]:.4f}, "
                f"mean width={width:.4f}"
            )
        return "\n".join(lines)


def pointwise_critical_value(level: float) -> float:
    """
    Two-sided normal critical value, Phi^-1(1 - (1 - level) / 2).

    For level=0.95 this is 1.959964.
    """
    return float(stats.norm.ppf(1 - (1 - level) / 2))


def max_abs_standardized_deviation(
    functional: TermFunctional,
    deviations: ArrayLike,
) -> NDArray[np.floating]:
    """
    Maximum absolute standardized deviation of each simulated curve.

    Parameters
    ----------
    functional : TermFunctional
        Term with ``Xi`` of shape (n_points, n_coef).
    deviations : array-like of shape (nsim, n_coef)
        Simulated coefficient deviations.

    Returns
    -------
    ndarray of shape (nsim,)
        max_i |(Xi @ deviations.T)[i, s]| / se[i] for each simulation s.
    """
    if functional.Xi is None:
        raise ValueError("Simultaneous intervals require the term's Xi matrix")
    deviations = np.atleast_2d(np.asarray(deviations, dtype=np.float64))
    if functional.Xi.shape[1] != deviations.shape[1]:
        raise ValueError(
            f"Xi has {functional.Xi.shape[1]} columns but the simulated "
            f"deviations have {deviations.shape[1]} coefficients"
        )

    sim_dev = functional.Xi @ deviations.T  # (n_points, nsim)
    abs_dev = np.abs(sim_dev / functional.se[:, np.newaxis])
    return np.max(abs_dev, axis=0)


def simultaneous_critical_value(
    functional: TermFunctional,
    deviations: ArrayLike,
    level: float,
) -> float:
    """Type 8 quantile of the max standardized deviations at ``level``."""
    masd = max_abs_standardized_deviation(functional, deviations)
    return type8_quantile(masd, level)


def term_interval(
    functional: TermFunctional,
    crit: float,
) -> tuple[NDArray[np.floating], NDArray[np.floating], NDArray[np.floating]]:
    """Lower, estimate and upper limits est -/+ crit * se."""
    half_width = crit * functional.se
    return functional.est - half_width, functional.est, functional.est + half_width


def confidence_interval(
    functional: TermFunctional,
    level: float,
) -> tuple[float, tuple[NDArray[np.floating], ...]]:
    """Point-wise interval; returns the critical value and the limits."""
    crit = pointwise_critical_value(level)
    return crit, term_interval(functional, crit)


def simultaneous_interval(
    functional: TermFunctional,
    deviations: ArrayLike,
    level: float,
) -> tuple[float, tuple[NDArray[np.floating], ...]]:
    """
    Simultaneous interval over the term's evaluation grid.

    The critical value is the ``level`` quantile of the maximum absolute
    standardized deviation across the grid, so the whole simulated curve
    lies inside the band with probability ``level``. It is never smaller
    than the point-wise critical value in expectation.
    """
    crit = simultaneous_critical_value(functional, deviations, level)
    return crit, term_interval(functional, crit)
