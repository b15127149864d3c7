"""
Sample quantiles for simulated critical values.

Implements the "type 8" definition of Hyndman & Fan (1996), which is
approximately median-unbiased regardless of the underlying distribution.
Simultaneous critical values are sensitive to the quantile convention,
so this one is used everywhere a quantile of simulated statistics is
needed.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

# Tolerance applied to the plotting position before taking its integer
# part, so ranks that are exact in real arithmetic stay exact.
_FUZZ = 4 * np.finfo(np.float64).eps


def type8_quantile(
    sample: ArrayLike,
    q: float | ArrayLike,
) -> float | NDArray[np.floating]:
    """
    Type 8 sample quantile.

    With sorted values x_(1) <= ... <= x_(n), the plotting position is

        h = (n + 1/3) * q + 1/3

    and the quantile is (1 - g) * x_(j) + g * x_(j+1) with j = floor(h)
    and g = h - j. Order statistics below the first are taken as x_(1)
    and those beyond the last as x_(n).

    Parameters
    ----------
    sample : array-like
        Finite sample values. Flattened before use.
    q : float or array-like
        Probabilities in [0, 1].

    Returns
    -------
    float or ndarray
        Quantile(s), a float when ``q`` is a scalar.

    References
    ----------
    Hyndman, R. J. and Fan, Y. (1996). "Sample quantiles in statistical
    packages." The American Statistician 50, 361-365.
    """
    x = np.sort(np.asarray(sample, dtype=np.float64).ravel())
    n = x.size
    if n == 0:
        raise ValueError("Cannot compute a quantile of an empty sample")
    if not np.all(np.isfinite(x)):
        raise ValueError("Sample contains non-finite values")

    probs = np.asarray(q, dtype=np.float64)
    if np.any(np.isnan(probs)) or np.any((probs < 0) | (probs > 1)):
        raise ValueError(f"Probabilities must lie in [0, 1], got {q}")

    h = (n + 1 / 3) * probs + 1 / 3
    j = np.floor(h + _FUZZ)
    g = h - j
    g = np.where(np.abs(g) < _FUZZ, 0.0, g)

    # 1-based order statistics, clamped to the sample
    lo = np.clip(j, 1, n).astype(np.intp) - 1
    hi = np.clip(j + 1, 1, n).astype(np.intp) - 1

    # interpolate only between distinct order statistics
    exact = (g == 0) | (x[lo] == x[hi])
    result = np.where(exact, x[lo], (1 - g) * x[lo] + g * x[hi])

    if result.ndim == 0:
        return float(result)
    return result
