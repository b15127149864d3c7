"""
Exceptions and warnings raised while computing confidence bands.

All errors subclass ValueError, so callers that only care about bad
arguments can catch that.
"""


class UnknownTermError(ValueError):
    """One or more requested terms are not available."""

    def __init__(self, missing: list[str], where: str = "object"):
        self.missing = list(missing)
        super().__init__(
            f"Terms: {', '.join(self.missing)} not found in `{where}`"
        )


class InvalidLevelError(ValueError):
    """Confidence level is non-numeric or outside (0, 1)."""


class InvalidModeError(ValueError):
    """Interval type is not one of the supported modes."""


class InvalidCovarianceError(ValueError):
    """Covariance matrix cannot be used for sampling."""


class NonPositiveStandardError(ValueError):
    """A standard error is zero, negative or not finite."""

    def __init__(self, term: str, index: int, value: float):
        self.term = term
        self.index = index
        self.value = value
        super().__init__(
            f"Standard error for term '{term}' must be positive, "
            f"got {value} at index {index}"
        )


class ParameterShapeWarning(UserWarning):
    """A scalar parameter was supplied with more than one value."""
