"""
Confidence Intervals for Smooths

Point-wise and simultaneous confidence intervals for the derivatives and
fitted values of smooth terms in additive models.

Features:
- Point-wise (Wald) intervals from normal critical values
- Simultaneous intervals from the maximum absolute standardized
  deviation of simulated curves
- Rank-tolerant multivariate normal sampling via eigendecomposition
- Type 8 (median-unbiased) sample quantiles
- Intervals on the link or response scale, optionally shifted by the
  model constant
"""

from gam_confint.confint import (
    Derivatives,
    confint,
)
from gam_confint.exceptions import (
    InvalidCovarianceError,
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
    pointwise_critical_value,
    simultaneous_critical_value,
    simultaneous_interval,
)
from gam_confint.quantiles import type8_quantile
from gam_confint.sampling import (
    covariance_sqrt,
    sample_coefficient_deviations,
)
from gam_confint.smooths import (
    SmoothModel,
    TermPrediction,
    confint_smooth,
)
from gam_confint.transforms import get_transform

__version__ = "0.1.0"

__all__ = [
    # Intervals
    "confint",
    "confint_smooth",
    "Derivatives",
    "TermFunctional",
    "IntervalTable",
    "confidence_interval",
    "simultaneous_interval",
    "pointwise_critical_value",
    "simultaneous_critical_value",
    # Models
    "SmoothModel",
    "TermPrediction",
    "get_transform",
    # Simulation
    "sample_coefficient_deviations",
    "covariance_sqrt",
    "type8_quantile",
    # Errors
    "UnknownTermError",
    "InvalidLevelError",
    "InvalidModeError",
    "InvalidCovarianceError",
    "NonPositiveStandardError",
    "ParameterShapeWarning",
]
