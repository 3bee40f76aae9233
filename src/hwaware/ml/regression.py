"""Cubic regression over (size, time) samples."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from hwaware.ml.linalg import polyval, solve_polynomial_fit

POLYNOMIAL_DEGREE = 3


@dataclass(frozen=True)
class Sample:
    """One observed execution: size in thousands of rows, time in ms."""

    size: float
    time_ms: float


@dataclass(frozen=True)
class Fit:
    """Polynomial coefficients plus the fit's error statistics."""

    coefficients: tuple[float, ...]
    mean_abs_error: float
    mean_rel_error: float

    def predict(self, size: float) -> float:
        return polyval(size, self.coefficients)


class RegressionFitter:
    """Fits a polynomial to a bucket and scores it.

    Errors are averaged over the whole bucket. With ``include_first=False``
    the first sample, which a bucket shares with its left neighbour, adds
    nothing to the sums but still counts in the divisor.
    """

    def __init__(self, degree: int = POLYNOMIAL_DEGREE):
        self.degree = degree

    def fit(self, samples: Sequence[Sample], include_first: bool = True) -> Fit:
        """Fit and score a bucket.

        Raises:
            InsufficientPointsError: If the bucket is shorter than degree + 1
            SingularMatrixError: If the normal equations are singular
        """
        sizes = [s.size for s in samples]
        times = [s.time_ms for s in samples]
        coefficients = solve_polynomial_fit(sizes, times, self.degree)

        abs_total = 0.0
        rel_total = 0.0
        start = 0 if include_first else 1
        for sample in samples[start:]:
            abs_error = abs(sample.time_ms - polyval(sample.size, coefficients))
            abs_total += abs_error
            rel_total += abs_error / sample.time_ms * 100

        n = len(samples)
        return Fit(
            coefficients=coefficients,
            mean_abs_error=abs_total / n,
            mean_rel_error=rel_total / n,
        )
