from __future__ import annotations

import numpy as np
import pytest

from sahie_forecasting import autoregressive_runner
from sahie_forecasting.autoregressive_runner import (
    forecast_autoregressive,
    lagged_design,
    roll_forward,
)
from sahie_forecasting.errors import SingularSystemError


def test_lagged_design_rows_and_targets() -> None:
  design, targets = lagged_design(np.array([1.0, 2.0, 3.0, 4.0]), 2)

  np.testing.assert_allclose(design, [[1.0, 2.0, 1.0], [1.0, 3.0, 2.0]])
  np.testing.assert_allclose(targets, [3.0, 4.0])


def test_ar2_exact_fit_on_five_points(rising_series) -> None:
  result = forecast_autoregressive(rising_series, 2)

  intercept, lag1, lag2 = result.params.coefficients
  assert intercept == pytest.approx(-25.0, abs=1e-4)
  assert lag1 == pytest.approx(2.0 / 3.0, abs=1e-6)
  assert lag2 == pytest.approx(2.0 / 3.0, abs=1e-6)
  assert result.params.window == (85.0, 87.0)
  assert result.forecast[0].predicted == pytest.approx(-25.0 + (87.0 + 85.0) * 2.0 / 3.0, abs=1e-4)


def test_roll_forward_does_not_mutate_window(rising_series) -> None:
  params = forecast_autoregressive(rising_series, 1).params

  first = roll_forward(params, 3)
  second = roll_forward(params, 3)

  assert params.window == (85.0, 87.0)
  assert first == second
  assert first[1] == pytest.approx(params.step((87.0, first[0])))


def test_autoregressive_needs_order_plus_two_points() -> None:
  assert forecast_autoregressive([(2020, 80.0), (2021, 81.0), (2022, 83.0)], 2).is_empty


def test_autoregressive_singular_fit_returns_empty(rising_series, monkeypatch) -> None:
  def _singular(*args, **kwargs):
    raise SingularSystemError("singular", {"column": 1, "pivot": 0.0})

  monkeypatch.setattr(autoregressive_runner, "least_squares", _singular)

  assert forecast_autoregressive(rising_series, 2).is_empty
