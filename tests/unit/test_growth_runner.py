from __future__ import annotations

import pytest

from sahie_forecasting.growth_runner import forecast_cagr


def test_cagr_of_identical_values_is_flat() -> None:
  result = forecast_cagr([(2020, 50.0), (2021, 50.0)], 4)

  assert result.params.rate == 0.0
  assert [point.predicted for point in result.forecast] == [50.0] * 4


def test_cagr_compounds_from_last_value() -> None:
  result = forecast_cagr([(2010, 40.0), (2020, 80.0)], 2, anchor_year=2020)

  assert result.params.rate == pytest.approx(2 ** 0.1 - 1)
  assert result.forecast[0].predicted == pytest.approx(80.0 * 2 ** 0.1)
  assert result.forecast[1].predicted == pytest.approx(80.0 * 2 ** 0.2)


def test_cagr_is_empty_for_degenerate_inputs() -> None:
  assert forecast_cagr([(2020, 50.0)], 2).is_empty
  assert forecast_cagr([(2019, 0.0), (2020, 50.0)], 2).is_empty


def test_cagr_points_carry_no_confidence() -> None:
  result = forecast_cagr([(2019, 50.0), (2020, 51.0)], 1)

  assert result.forecast[0].confidence is None
  assert result.r_squared is None


def test_cagr_is_empty_when_last_value_is_not_positive() -> None:
  assert forecast_cagr([(2018, 50.0), (2022, -1.0)], 2).is_empty
  assert forecast_cagr([(2018, 50.0), (2022, 0.0)], 2).is_empty
