from __future__ import annotations

import pytest

from sahie_forecasting.arima_runner import forecast_arima, lag1_ratio


def test_lag1_ratio_is_clamped() -> None:
  assert lag1_ratio([1.0, 1.0, 1.0]) == pytest.approx(0.9)
  assert lag1_ratio([1.0, -1.0, 1.0]) == pytest.approx(-0.9)


def test_lag1_ratio_of_zero_series_is_zero() -> None:
  assert lag1_ratio([0.0, 0.0, 0.0]) == 0.0


def test_arima_integrates_differences_onto_last_value() -> None:
  series = [(2018, 80.0), (2019, 82.0), (2020, 84.0), (2021, 86.0), (2022, 88.0)]

  result = forecast_arima(series, 3)

  assert result.params.ar_coeff == pytest.approx(0.9)
  assert -0.9 <= result.params.ma_coeff <= 0.9
  assert result.r_squared == 0.7
  assert [point.year for point in result.forecast] == [2026, 2027, 2028]
  assert result.forecast[0].predicted > 88.0
  assert all(point.confidence == 0.72 for point in result.forecast)


def test_arima_needs_four_points() -> None:
  assert forecast_arima([(2020, 80.0), (2021, 81.0), (2022, 82.0)], 3).is_empty


def test_arima_rejects_non_positive_horizon() -> None:
  with pytest.raises(ValueError):
    forecast_arima([(2020, 80.0)], -1)
