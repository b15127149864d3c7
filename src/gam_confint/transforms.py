"""
Transformations applied to smooth values and their interval limits.

Bands are computed on the scale of the linear predictor. To report them
on the response scale, the limits are passed through an inverse link or
any other monotone transform. All transforms are vectorized.
"""

from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray
from scipy import special


def identity(eta: NDArray[np.floating]) -> NDArray[np.floating]:
    """Identity transform (the link scale itself)."""
    return np.asarray(eta, dtype=np.float64)


def inverse_logit(eta: NDArray[np.floating]) -> NDArray[np.floating]:
    """
    Inverse of the logit link.

    mu = 1 / (1 + exp(-eta))
    """
    return special.expit(eta)


def inverse_probit(eta: NDArray[np.floating]) -> NDArray[np.floating]:
    """
    Inverse of the probit link, the standard normal CDF.
    """
    return special.ndtr(eta)


def inverse_cloglog(eta: NDArray[np.floating]) -> NDArray[np.floating]:
    """
    Inverse of the complementary log-log link.

    mu = 1 - exp(-exp(eta))
    """
    return -np.expm1(-np.exp(eta))


TRANSFORMS: dict[str, Callable[[NDArray[np.floating]], NDArray[np.floating]]] = {
    "identity": identity,
    "exp": np.exp,
    "logistic": inverse_logit,
    "probit": inverse_probit,
    "cloglog": inverse_cloglog,
}


def get_transform(
    transform: bool | str | Callable[[NDArray[np.floating]], NDArray[np.floating]] | None,
    model: Any = None,
) -> Callable[[NDArray[np.floating]], NDArray[np.floating]]:
    """
    Resolve the transform applied to smooth values.

    Parameters
    ----------
    transform : bool, str, callable or None
        - True: the model's inverse link, ``model.linkinv``
        - False or None: identity (values stay on the link scale)
        - str: name of a transform in ``TRANSFORMS``
        - callable: used as is
    model : object, optional
        Fitted model; required when ``transform`` is True.

    Returns
    -------
    callable
        Vectorized transform.
    """
    if transform is True:
        linkinv = getattr(model, "linkinv", None)
        if linkinv is None:
            raise ValueError("transform=True requires a model with a `linkinv` method")
        return linkinv
    if transform is False or transform is None:
        return identity
    if callable(transform):
        return transform
    if isinstance(transform, str):
        if transform not in TRANSFORMS:
            valid = ", ".join(TRANSFORMS.keys())
            raise ValueError(f"Unknown transform '{transform}'. Valid options: {valid}")
        return TRANSFORMS[transform]
    raise ValueError(
        f"transform must be a bool, a name or a callable, got {type(transform).__name__}"
    )
