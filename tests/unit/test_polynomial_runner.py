from __future__ import annotations

import numpy as np
import pytest
import statsmodels.api as sm

from sahie_forecasting import polynomial_runner
from sahie_forecasting.base import EstimatorKind
from sahie_forecasting.errors import SingularSystemError
from sahie_forecasting.polynomial_runner import forecast_polynomial, polynomial_design


def test_polynomial_design_columns_increase_in_power() -> None:
  design = polynomial_design(np.array([-1.0, 0.0, 2.0]), 2)

  np.testing.assert_allclose(design, [[1.0, -1.0, 1.0], [1.0, 0.0, 0.0], [1.0, 2.0, 4.0]])


def test_polynomial_fit_matches_statsmodels(long_series) -> None:
  years = np.array([obs.year for obs in long_series], dtype=float)
  values = np.array([obs.value for obs in long_series])
  design = polynomial_design(years - years.mean(), 2)
  expected = sm.OLS(values, design).fit()

  result = forecast_polynomial(long_series, 3)

  assert result.kind is EstimatorKind.QUADRATIC
  np.testing.assert_allclose(result.params.coefficients, expected.params, rtol=1e-6, atol=1e-9)
  assert result.r_squared == pytest.approx(expected.rsquared, rel=1e-6)


def test_polynomial_recovers_exact_quadratic() -> None:
  series = [(2015 + t, 80.0 + 0.5 * (t - 3) - 0.1 * (t - 3) ** 2) for t in range(7)]

  result = forecast_polynomial(series, 1, anchor_year=2021)

  assert result.params.center_year == pytest.approx(2018.0)
  assert result.forecast[0].year == 2022
  assert result.forecast[0].predicted == pytest.approx(80.0 + 0.5 * 4 - 0.1 * 16)
  assert result.r_squared == pytest.approx(1.0)


def test_polynomial_needs_degree_plus_two_points() -> None:
  assert forecast_polynomial([(2020, 80.0), (2021, 81.0), (2022, 83.0)], 2).is_empty


def test_polynomial_singular_fit_returns_empty(long_series, monkeypatch) -> None:
  def _singular(*args, **kwargs):
    raise SingularSystemError("singular", {"column": 2, "pivot": 0.0})

  monkeypatch.setattr(polynomial_runner, "least_squares", _singular)

  assert forecast_polynomial(long_series, 2).is_empty
