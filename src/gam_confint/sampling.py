"""
Joint simulation of coefficient deviations.

Draws zero-mean multivariate normal deviations from the Bayesian
covariance matrix of a fitted model's coefficients. The square root of
the covariance is taken by symmetric eigendecomposition so that
rank-deficient matrices, which arise routinely once smoothing parameter
uncertainty is accounted for, can be sampled from without failing.
"""

import logging
import numbers

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import linalg
from sklearn.utils import check_random_state
from sklearn.utils.validation import check_array

from gam_confint.exceptions import InvalidCovarianceError

logger = logging.getLogger(__name__)


def _as_generator(
    random_state: int | np.random.Generator | np.random.RandomState | None,
) -> np.random.Generator | np.random.RandomState:
    """Resolve a seed without ever touching the global numpy generator."""
    if random_state is None or isinstance(random_state, np.random.Generator):
        return np.random.default_rng(random_state)
    return check_random_state(random_state)


def covariance_sqrt(
    Vb: ArrayLike,
    tol: float = 1e-6,
    symmetry_tol: float = 1e-8,
) -> NDArray[np.floating]:
    """
    Matrix square root of a positive semi-definite covariance.

    Returns R with R.T @ R == Vb, computed from the eigendecomposition
    Vb = U diag(ev) U.T as R = diag(sqrt(ev)) U.T. Eigenvalues below
    ``tol * max(|ev|)`` are treated as zero.

    Parameters
    ----------
    Vb : array-like of shape (p, p)
        Symmetric positive semi-definite covariance matrix.
    tol : float, default=1e-6
        Relative tolerance below which eigenvalues are zeroed.
    symmetry_tol : float, default=1e-8
        Relative tolerance for the symmetry check.

    Returns
    -------
    ndarray of shape (p, p)

    Raises
    ------
    InvalidCovarianceError
        If Vb is not a finite, square, symmetric matrix or cannot be
        decomposed.
    """
    try:
        Vb = check_array(Vb, dtype=np.float64, ensure_min_samples=1)
    except ValueError as exc:
        raise InvalidCovarianceError(f"Invalid covariance matrix: {exc}") from exc

    n_rows, n_cols = Vb.shape
    if n_rows != n_cols:
        raise InvalidCovarianceError(
            f"Covariance matrix must be square, got shape {Vb.shape}"
        )

    scale = max(float(np.max(np.abs(Vb))), 1.0)
    if not np.allclose(Vb, Vb.T, rtol=0.0, atol=symmetry_tol * scale):
        raise InvalidCovarianceError("Covariance matrix is not symmetric")

    try:
        ev, U = linalg.eigh(Vb)
    except (linalg.LinAlgError, ValueError) as exc:
        raise InvalidCovarianceError(
            f"Eigendecomposition of covariance matrix failed: {exc}"
        ) from exc

    threshold = tol * float(np.max(np.abs(ev)))
    if np.any(ev < -threshold):
        logger.warning(
            "Covariance matrix has %d negative eigenvalue(s) (min %.3g); "
            "clamping to zero",
            int(np.sum(ev < -threshold)),
            float(ev.min()),
        )
    keep = ev > threshold
    logger.debug(
        "Covariance of dimension %d has numerical rank %d", n_rows, int(keep.sum())
    )
    ev = np.where(keep, ev, 0.0)

    return np.sqrt(ev)[:, np.newaxis] * U.T


def sample_coefficient_deviations(
    Vb: ArrayLike,
    nsim: int,
    random_state: int | np.random.Generator | np.random.RandomState | None = None,
    tol: float = 1e-6,
) -> NDArray[np.floating]:
    """
    Draw joint zero-mean deviations of the model coefficients.

    Parameters
    ----------
    Vb : array-like of shape (p, p)
        Covariance matrix of the coefficients.
    nsim : int
        Number of draws.
    random_state : int, Generator, RandomState or None, default=None
        Seed or generator. The same integer seed always gives the same
        draws; None draws fresh entropy.
    tol : float, default=1e-6
        Relative eigenvalue tolerance, see :func:`covariance_sqrt`.

    Returns
    -------
    ndarray of shape (nsim, p)
        Each row is a draw from N(0, Vb).

    Example:
        >>> Vb = np.array([[1.0, 0.5], [0.5, 1.0]])
        >>> S = sample_coefficient_deviations(Vb, nsim=10000, random_state=1)
        >>> np.cov(S, rowvar=False)  # close to Vb
    """
    if (
        not isinstance(nsim, numbers.Integral)
        or isinstance(nsim, bool)
        or nsim < 1
    ):
        raise ValueError(f"nsim must be a positive integer, got {nsim!r}")

    R = covariance_sqrt(Vb, tol=tol)
    rng = _as_generator(random_state)
    Z = rng.standard_normal(size=(int(nsim), R.shape[0]))

    return Z @ R
