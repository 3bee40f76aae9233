"""Tests for the bucket regression fitter."""

import pytest

from hwaware.error_handling import FitError, InsufficientPointsError
from hwaware.ml.regression import Fit, RegressionFitter, Sample


def quadratic(size: float) -> float:
    return 2 * size**2 + 3


@pytest.fixture
def fitter():
    return RegressionFitter()


def test_exact_fit_has_no_error(fitter):
    samples = [Sample(s, quadratic(s)) for s in (1.0, 2.0, 3.0, 4.0, 5.0)]

    fit = fitter.fit(samples)

    assert fit.mean_abs_error == pytest.approx(0.0, abs=1e-6)
    assert fit.mean_rel_error == pytest.approx(0.0, abs=1e-6)
    assert fit.predict(6.0) == pytest.approx(quadratic(6.0))


def test_refit_is_idempotent(fitter):
    samples = [Sample(1.0, 5.0), Sample(2.0, 9.0), Sample(4.0, 7.0), Sample(8.0, 30.0), Sample(9.0, 28.0)]
    assert fitter.fit(samples) == fitter.fit(samples)


def test_excluding_first_sample_keeps_divisor(fitter):
    """The shared boundary sample is left out of the sums, not the count."""
    samples = [
        Sample(1.0, 10.0),
        Sample(2.0, 4.0),
        Sample(3.0, 9.0),
        Sample(4.0, 16.0),
        Sample(5.0, 26.0),
    ]

    with_first = fitter.fit(samples, include_first=True)
    without_first = fitter.fit(samples, include_first=False)

    assert with_first.coefficients == without_first.coefficients
    first_error = abs(samples[0].time_ms - with_first.predict(samples[0].size))
    n = len(samples)
    assert without_first.mean_abs_error == pytest.approx(
        with_first.mean_abs_error - first_error / n
    )
    assert without_first.mean_rel_error == pytest.approx(
        with_first.mean_rel_error - first_error / samples[0].time_ms * 100 / n
    )


def test_too_few_samples(fitter):
    with pytest.raises(InsufficientPointsError):
        fitter.fit([Sample(1.0, 1.0), Sample(2.0, 2.0), Sample(3.0, 3.0)])


def test_fit_errors_share_a_base_class():
    assert issubclass(InsufficientPointsError, FitError)


def test_lower_degree():
    fit = RegressionFitter(degree=1).fit([Sample(1.0, 2.0), Sample(2.0, 4.0)])
    assert fit.coefficients == pytest.approx((2.0, 0.0), abs=1e-9)
    assert isinstance(fit, Fit)
