from __future__ import annotations

import pytest

from sahie_forecasting.base import ForecastPoint, TrendAnalysis, TrendDirection
from sahie_forecasting.ensemble import compute_forecast
from sahie_forecasting.explain import (
    INSUFFICIENT_EXPLANATION,
    INSUFFICIENT_SUMMARY,
    format_forecast_result,
    generate_detailed_explanation,
    generate_forecast_summary,
    method_contributions,
)

RISING_TREND = TrendAnalysis(
    direction=TrendDirection.STRONG_INCREASING,
    strength=0.99,
    change=7.0,
    percent_change=8.75,
    first_year=2018,
    last_year=2022,
)


def _points(values):
  return [ForecastPoint(year=2023 + offset, predicted=value) for offset, value in enumerate(values)]


def test_summary_names_first_and_fifth_year() -> None:
  summary = generate_forecast_summary(_points([88.6, 90.4, 91.9, 93.0, 93.9, 94.5]), RISING_TREND)

  assert summary == (
      "Historical trend is strongly increasing (increased by 8.75% from 2018 to 2022). "
      "Forecasted 2023: 88.6%. Forecasted 2027: 93.9%.")


def test_summary_uses_last_point_for_short_forecasts() -> None:
  summary = generate_forecast_summary(_points([88.6, 90.4]), RISING_TREND)

  assert summary.endswith("Forecasted 2024: 90.4%.")


def test_summary_of_empty_forecast() -> None:
  assert generate_forecast_summary([], RISING_TREND) == INSUFFICIENT_SUMMARY


def test_format_forecast_result_picks_direction_symbol() -> None:
  formatted = format_forecast_result(_points([88.6]), RISING_TREND)

  assert formatted.symbol == "⇑"
  assert formatted.forecast == tuple(_points([88.6]))


def test_detailed_explanation_walks_through_history_and_outlook(rising_series) -> None:
  result = compute_forecast(rising_series, 5)

  explanation = generate_detailed_explanation(result, rising_series, "Testville")
  paragraphs = explanation.split("\n\n")

  assert paragraphs[0].startswith("Looking at Testville's historical data from 2018 to 2022")
  assert "increase of 7.0 percentage points over 4 years" in paragraphs[0]
  assert "coverage has been increasing" in paragraphs[1]
  assert "by 2026 insurance coverage" in paragraphs[2]
  assert "most influential" in paragraphs[3]
  assert paragraphs[-1].startswith("Note: this forecast is based on 5 years of historical data")


def test_detailed_explanation_without_history(rising_series) -> None:
  result = compute_forecast(rising_series, 2)

  assert generate_detailed_explanation(result, []) == INSUFFICIENT_EXPLANATION


def test_method_contributions_are_sorted_shares(long_series) -> None:
  result = compute_forecast(long_series, 4)

  contributions = method_contributions(result)
  shares = [share for _, share in contributions]

  assert shares == sorted(shares, reverse=True)
  assert sum(shares) == pytest.approx(1.0, abs=1e-3)
