"""Command-line entry point: forecast a SAHIE coverage series and chart it."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from sahie_forecasting import (
    ANCHOR_YEAR,
    EnsembleConfig,
    EnsembleResult,
    ForecastingError,
    Observation,
    analyze_trend,
    compute_forecast,
    format_forecast_result,
    generate_detailed_explanation,
    load_series_file,
)
from sahie_forecasting.logs import configure_logging, get_logger

logger = get_logger(__name__)

MAX_HORIZON_YEARS = 25


def _import_plotly():
  try:
    import plotly.graph_objects as go
  except ImportError as exc:  # pragma: no cover
    raise SystemExit("plotly is required for plotting; install with `pip install plotly`.") from exc
  return go


def build_forecast_figure(
    history: Sequence[Observation],
    result: EnsembleResult,
    *,
    location_name: Optional[str] = None,
):
  """Historical line, dashed ensemble forecast and its interval band."""
  if not history:
    raise ValueError("History must be non-empty for plotting.")
  if not result.forecast:
    raise ValueError("At least one forecast point is required for plotting.")
  go = _import_plotly()

  history_years = [obs.year for obs in history]
  history_values = [obs.value for obs in history]
  # Start the forecast trace at the last observation so the two lines connect.
  forecast_years = [history_years[-1]] + [point.year for point in result.forecast]
  forecast_values = [history_values[-1]] + [point.predicted for point in result.forecast]
  interval_years = [point.year for point in result.forecast]
  upper = [point.upper_bound for point in result.forecast]
  lower = [point.lower_bound for point in result.forecast]

  fig = go.Figure()
  fig.add_trace(
      go.Scatter(
          x=interval_years,
          y=upper,
          mode="lines",
          line=dict(color="rgba(139,92,246,0)"),
          showlegend=False,
          hoverinfo="skip",
      ))
  fig.add_trace(
      go.Scatter(
          x=interval_years,
          y=lower,
          mode="lines",
          line=dict(color="rgba(139,92,246,0)"),
          fill="tonexty",
          fillcolor="rgba(139,92,246,0.18)",
          name="confidence interval",
          hoverinfo="skip",
      ))
  fig.add_trace(
      go.Scatter(
          x=history_years,
          y=history_values,
          mode="lines+markers",
          name="historical",
          line=dict(color="#1f77b4", width=2.0),
          marker=dict(size=6),
      ))
  fig.add_trace(
      go.Scatter(
          x=forecast_years,
          y=forecast_values,
          mode="lines+markers",
          name="ensemble forecast",
          line=dict(color="#8b5cf6", width=2.0, dash="dash"),
          marker=dict(size=6),
      ))

  gap_points = result.gap_years
  if gap_points:
    fig.add_trace(
        go.Scatter(
            x=[point.year for point in gap_points],
            y=[point.predicted for point in gap_points],
            mode="markers",
            name="gap years (bridged)",
            marker=dict(color="white", size=8, line=dict(color="#8b5cf6", width=1.5)),
        ))

  title = "Health insurance coverage forecast"
  if location_name:
    title = f"{title}: {location_name}"
  fig.update_layout(
      template="simple_white",
      title=dict(text=title, x=0.5, xanchor="center"),
      hovermode="x unified",
      margin=dict(l=50, r=20, t=60, b=60),
      legend=dict(orientation="h", yanchor="bottom", y=-0.25, x=0.5, xanchor="center"),
      yaxis=dict(title="Insured (%)", showgrid=True, gridcolor="rgba(0,0,0,0.08)", zeroline=False),
      xaxis=dict(title="Year", showgrid=False, dtick=1),
  )
  return fig


def render_forecast_chart(fig, chart_path: str) -> Path:
  """Write the figure as HTML or a static image, falling back to HTML."""
  output_path = Path(chart_path)
  suffix = output_path.suffix.lower()
  try:
    if suffix in {".html", ".htm"}:
      fig.write_html(str(output_path), include_plotlyjs="cdn")
    else:
      fig.write_image(str(output_path), scale=2)
  except (ValueError, ImportError) as exc:
    fallback = output_path.with_suffix(output_path.suffix + ".html" if suffix else ".html")
    fig.write_html(str(fallback), include_plotlyjs="cdn")
    print(
        f"Plotly static export failed ({exc}). Saved interactive HTML to {fallback}",
        file=sys.stderr,
    )
    return fallback
  print(f"Saved chart to {chart_path}")
  return output_path


def _format_table(result: EnsembleResult) -> List[str]:
  lines = [f"{'year':>6}  {'predicted':>9}  {'lower':>6}  {'upper':>6}  {'conf':>5}"]
  for point in result.forecast:
    marker = "  (gap year)" if point.is_gap_year else ""
    lines.append(
        f"{point.year:>6}  {point.predicted:>8.1f}%  {point.lower_bound:>6.1f}  "
        f"{point.upper_bound:>6.1f}  {point.confidence:>5.2f}{marker}")
  return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
  parser = argparse.ArgumentParser(
      description="Forecast an annual health-insurance coverage series with the multi-method ensemble.")
  parser.add_argument("series", help="Path to a .csv (year,value columns) or .json historical series.")
  parser.add_argument("--horizon", type=int, default=5, help="Years to forecast after the anchor year (default: 5).")
  parser.add_argument(
      "--anchor-year",
      type=int,
      default=ANCHOR_YEAR,
      help=f"Reference current year; gap years up to it are bridged (default: {ANCHOR_YEAR}).",
  )
  parser.add_argument(
      "--continuous-variation",
      action="store_true",
      help="Keep the deterministic variation index running across gap years and forecast years.",
  )
  parser.add_argument("--location", help="Location name used in the explanation and chart title.")
  parser.add_argument("--chart-path", help="Optional output path for the forecast chart (.html, .png, ...).")
  parser.add_argument("--json", action="store_true", help="Print the forecast as JSON instead of a table.")
  parser.add_argument("--explain", action="store_true", help="Print the detailed plain-language explanation.")
  parser.add_argument("--log-level", default=None, help="Log level for diagnostics (default: LOG_LEVEL or WARNING).")

  args = parser.parse_args(argv)
  configure_logging(args.log_level)

  if args.horizon <= 0:
    raise SystemExit("horizon must be positive.")
  if args.horizon > MAX_HORIZON_YEARS:
    raise SystemExit(f"horizon is capped at {MAX_HORIZON_YEARS} years; requested {args.horizon}.")

  try:
    history = load_series_file(args.series)
    config = EnsembleConfig(anchor_year=args.anchor_year, continuous_variation=args.continuous_variation)
    result = compute_forecast(history, args.horizon, config=config)
  except FileNotFoundError as exc:
    raise SystemExit(f"Series file not found: {exc.filename}") from exc
  except ForecastingError as exc:
    logger.error("cli.forecast_failed", error=exc.message, **exc.details)
    raise SystemExit(exc.message) from exc

  trend = analyze_trend(history)
  formatted = format_forecast_result(result.forecast, trend)

  if args.json:
    payload = {
        "forecast": [point.to_dict() for point in result.forecast],
        "methods": result.methods,
        "weights": dict(result.weights),
        "trend": {
            "direction": trend.direction.value,
            "strength": trend.strength,
            "change": trend.change,
            "percent_change": trend.percent_change,
            "first_year": trend.first_year,
            "last_year": trend.last_year,
        },
        "summary": formatted.summary,
    }
    print(json.dumps(payload, indent=2))
  else:
    print(f"{formatted.symbol} {formatted.summary}")
    print()
    for line in _format_table(result):
      print(line)

  if args.explain:
    print()
    print(generate_detailed_explanation(result, history, args.location))

  if args.chart_path:
    fig = build_forecast_figure(history, result, location_name=args.location)
    render_forecast_chart(fig, args.chart_path)

  return 0


if __name__ == "__main__":
  raise SystemExit(main())
