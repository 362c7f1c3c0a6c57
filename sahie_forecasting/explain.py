"""Human-readable summaries of ensemble forecasts."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .base import (
    EnsembleResult,
    EstimatorKind,
    ForecastPoint,
    SeriesLike,
    TrendAnalysis,
    TrendDirection,
    prepare_series,
)
from .config import RECENT_WINDOW

DIRECTION_SYMBOLS: Dict[TrendDirection, str] = {
    TrendDirection.STRONG_INCREASING: "⇑",
    TrendDirection.MODERATE_INCREASING: "↗",
    TrendDirection.WEAK_INCREASING: "↑",
    TrendDirection.STABLE: "→",
    TrendDirection.WEAK_DECREASING: "↓",
    TrendDirection.MODERATE_DECREASING: "↘",
    TrendDirection.STRONG_DECREASING: "⇓",
    TrendDirection.INSUFFICIENT_DATA: "?",
}

DIRECTION_TEXT: Dict[TrendDirection, str] = {
    TrendDirection.STRONG_INCREASING: "strongly increasing",
    TrendDirection.MODERATE_INCREASING: "moderately increasing",
    TrendDirection.WEAK_INCREASING: "slightly increasing",
    TrendDirection.STABLE: "stable",
    TrendDirection.WEAK_DECREASING: "slightly decreasing",
    TrendDirection.MODERATE_DECREASING: "moderately decreasing",
    TrendDirection.STRONG_DECREASING: "strongly decreasing",
}

INSUFFICIENT_SUMMARY = "Insufficient historical data for forecasting."
INSUFFICIENT_EXPLANATION = "Insufficient historical data for detailed analysis."


@dataclass(frozen=True)
class FormattedForecast:
  forecast: Tuple[ForecastPoint, ...]
  trend: TrendAnalysis
  symbol: str
  summary: str


def _headline_points(forecast: Sequence[ForecastPoint]) -> Tuple[ForecastPoint, ForecastPoint]:
  """The first forecast year and the fifth (or last, if shorter)."""
  first = forecast[0]
  fifth = forecast[4] if len(forecast) > 4 else forecast[-1]
  return first, fifth


def generate_forecast_summary(forecast: Sequence[ForecastPoint], trend: TrendAnalysis) -> str:
  if not forecast:
    return INSUFFICIENT_SUMMARY
  next_point, fifth_point = _headline_points(forecast)
  description = DIRECTION_TEXT.get(trend.direction, "uncertain")
  verb = "increased" if trend.percent_change > 0 else "decreased"
  return (
      f"Historical trend is {description} ({verb} by {abs(trend.percent_change):.2f}% "
      f"from {trend.first_year} to {trend.last_year}). "
      f"Forecasted {next_point.year}: {next_point.predicted:.1f}%. "
      f"Forecasted {fifth_point.year}: {fifth_point.predicted:.1f}%.")


def format_forecast_result(forecast: Sequence[ForecastPoint], trend: TrendAnalysis) -> FormattedForecast:
  return FormattedForecast(
      forecast=tuple(forecast),
      trend=trend,
      symbol=DIRECTION_SYMBOLS.get(trend.direction, "~"),
      summary=generate_forecast_summary(forecast, trend),
  )


def method_contributions(result: EnsembleResult) -> List[Tuple[str, float]]:
  """Mean normalized weight per method over the requested years, largest first."""
  points = result.horizon_points or result.forecast
  totals: Dict[str, float] = defaultdict(float)
  for point in points:
    for name, share in point.method_weights.items():
      totals[name] += share
  if not points:
    return []
  shares = [(name, total / len(points)) for name, total in totals.items()]
  return sorted(shares, key=lambda item: item[1], reverse=True)


def _describe_method(name: str, result: EnsembleResult) -> str:
  summary = result.methods.get(name, {})
  if name == EstimatorKind.LINEAR_5YEAR.value:
    direction = "steady upward" if summary.get("slope", 0.0) > 0 else "steady downward"
    return (f"5-year linear regression, which found a {direction} trend. This method focuses on "
            "recent patterns and works best when the data follows a consistent direction.")
  if name == EstimatorKind.HOLTS.value:
    return ("Holt's linear exponential smoothing, which tracks both level and trend components. "
            "It adapts to recent changes while keeping the trend information.")
  if name == EstimatorKind.ARIMA.value:
    return ("ARIMA(1,1,1) modeling, which combines autoregressive and moving-average terms on "
            "the year-over-year differences.")
  if name == EstimatorKind.QUADRATIC.value:
    shape = "accelerating or decelerating" if summary.get("r_squared", 0.0) > 0.7 else "varying"
    return ("quadratic regression, which detected a curved pattern rather than a straight line. "
            f"The rate of change has been {shape} over time.")
  if name == EstimatorKind.CAGR.value:
    rate = abs(summary.get("rate", 0.0)) * 100.0
    return (f"compound growth analysis, which calculated an average annual growth rate of {rate:.2f}%. "
            "It projects that the historical growth rate will continue.")
  if name == EstimatorKind.WEIGHTED_LINEAR.value:
    return ("recency-weighted linear regression, which emphasizes the latest years when "
            "fitting the trend line.")
  if name == EstimatorKind.AUTOREGRESSIVE.value:
    return ("an autoregressive model, which predicts each year from the values of the "
            "years just before it.")
  return "ensemble forecasting, which combines multiple methods for robust predictions."


def generate_detailed_explanation(
    result: EnsembleResult,
    series: SeriesLike,
    location_name: Optional[str] = None,
) -> str:
  """Plain-text paragraphs explaining why the forecast looks the way it does."""
  observations = prepare_series(series)
  if not observations or not result.forecast:
    return INSUFFICIENT_EXPLANATION

  place = location_name or "this area"
  first, last = observations[0], observations[-1]
  span = last.year - first.year
  recent = observations[-RECENT_WINDOW:]
  recent_change = recent[-1].value - recent[0].value
  points = result.horizon_points or result.forecast
  next_point, fifth_point = _headline_points(points)
  forecast_change = next_point.predicted - last.value

  paragraphs = []

  history = (f"Looking at {place}'s historical data from {first.year} to {last.year}, insurance "
             f"coverage started at {first.value:.1f}% and reached {last.value:.1f}% by {last.year}. ")
  if last.value > first.value + 1:
    history += (f"That's an increase of {last.value - first.value:.1f} percentage points over "
                f"{span} years, showing a clear upward trend.")
  elif last.value < first.value - 1:
    history += (f"That's a decrease of {first.value - last.value:.1f} percentage points over "
                f"{span} years, showing a downward trend.")
  else:
    history += "The values have remained relatively stable over this period."
  paragraphs.append(history)

  momentum = f"In the most recent {len(recent)} years ({recent[0].year}-{recent[-1].year}), "
  if abs(recent_change) > 0.5 and recent_change > 0:
    momentum += (f"coverage has been increasing, rising from {recent[0].value:.1f}% to "
                 f"{recent[-1].value:.1f}%. This upward momentum suggests the trend is likely to continue.")
  elif abs(recent_change) > 0.5:
    momentum += (f"coverage has been declining, dropping from {recent[0].value:.1f}% to "
                 f"{recent[-1].value:.1f}%. This downward trend may continue unless there's a policy change.")
  else:
    momentum += ("coverage has remained relatively stable, fluctuating within a narrow range. "
                 "Future values will likely stay close to the current level.")
  paragraphs.append(momentum)

  outlook = (f"Based on this pattern, the forecast predicts that by {next_point.year} insurance "
             f"coverage will be approximately {next_point.predicted:.1f}%. ")
  if forecast_change > 0.5:
    outlook += (f"That is {forecast_change:.1f} percentage points above the {last.year} value of "
                f"{last.value:.1f}%, following the upward trend seen in recent years. ")
  elif forecast_change < -0.5:
    outlook += (f"That is {abs(forecast_change):.1f} percentage points below the {last.year} value of "
                f"{last.value:.1f}%, reflecting the declining trend in the historical data. ")
  else:
    outlook += (f"That is very close to the {last.year} value of {last.value:.1f}%, reflecting "
                "the stable pattern observed over time. ")
  outlook += (f"Looking further ahead to {fifth_point.year}, coverage is expected to be around "
              f"{fifth_point.predicted:.1f}%.")
  paragraphs.append(outlook)

  contributions = method_contributions(result)
  if contributions:
    top_name, top_share = contributions[0]
    paragraphs.append(
        "The forecasting system combined multiple methods, and the most influential was "
        f"{_describe_method(top_name, result)} It contributed {top_share * 100:.0f}% of the "
        "method blend.")

  paragraphs.append(
      f"Note: this forecast is based on {len(observations)} years of historical data "
      f"({first.year}-{last.year}). Actual values may differ because of policy changes, economic "
      "conditions or other external events.")

  return "\n\n".join(paragraphs)
