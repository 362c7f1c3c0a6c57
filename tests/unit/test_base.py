from __future__ import annotations

import math

import pytest

from sahie_forecasting.base import (
    EstimatorKind,
    EstimatorResult,
    ForecastPoint,
    LinearParams,
    Observation,
    prepare_series,
)
from sahie_forecasting.errors import InvalidSeriesError


def test_prepare_series_sorts_mixed_inputs() -> None:
  series = prepare_series([
      {"year": 2021, "value": "85.5"},
      (2019, 82),
      Observation(year=2020, value=83.0),
  ])

  assert series == (
      Observation(2019, 82.0),
      Observation(2020, 83.0),
      Observation(2021, 85.5),
  )


def test_prepare_series_rejects_duplicate_years() -> None:
  with pytest.raises(InvalidSeriesError) as exc:
    prepare_series([(2020, 80.0), (2020, 81.0)])

  assert exc.value.details == {"year": 2020}


def test_prepare_series_rejects_non_finite_values() -> None:
  with pytest.raises(InvalidSeriesError):
    prepare_series([(2020, math.nan)])


def test_prepare_series_rejects_unreadable_items() -> None:
  with pytest.raises(InvalidSeriesError):
    prepare_series([{"year": 2020}])


def test_prepare_series_keeps_out_of_range_values() -> None:
  assert prepare_series([(2020, 101.5)])[0].value == 101.5


def test_forecast_point_to_dict_omits_unset_fields() -> None:
  assert ForecastPoint(year=2026, predicted=88.1).to_dict() == {"year": 2026, "predicted": 88.1}

  payload = ForecastPoint(
      year=2024,
      predicted=90.0,
      confidence=0.8,
      lower_bound=89.0,
      upper_bound=91.0,
      is_gap_year=True,
      method_values={"cagr": 90.2},
      method_weights={"cagr": 1.0},
  ).to_dict()
  assert payload["is_gap_year"] is True
  assert payload["methods"] == {"cagr": 90.2}


def test_estimator_result_quality_prefers_positive_r_squared() -> None:
  point = ForecastPoint(year=2026, predicted=88.0, confidence=0.6)
  fitted = EstimatorResult(EstimatorKind.LINEAR_5YEAR, (point,), LinearParams(1.0, 0.0, 0.9))
  poor = EstimatorResult(EstimatorKind.LINEAR_5YEAR, (point,), LinearParams(1.0, 0.0, -0.2))

  assert fitted.quality == 0.9
  assert poor.quality == 0.6
  assert EstimatorResult(EstimatorKind.HOLTS).quality is None
  assert EstimatorResult(EstimatorKind.HOLTS).summary() == {}
