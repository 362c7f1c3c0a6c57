"""Request objects and the historical-series provider seam."""

from __future__ import annotations

import inspect
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple, Union

from .base import EnsembleResult, Observation, SeriesLike, TrendAnalysis, prepare_series
from .config import EnsembleConfig
from .ensemble import compute_forecast
from .errors import InvalidSeriesError, SeriesProviderError
from .explain import FormattedForecast, format_forecast_result, generate_detailed_explanation
from .logs import get_logger
from .trend import analyze_trend

logger = get_logger(__name__)


@dataclass(frozen=True)
class SeriesKey:
  """Geography plus SAHIE demographic categories (0 means all)."""

  fips: str
  age_cat: int = 0
  sex_cat: int = 0
  ipr_cat: int = 0
  race_cat: int = 0

  @property
  def is_state(self) -> bool:
    return len(self.fips) == 2


@dataclass(frozen=True)
class ForecastRequest:
  key: SeriesKey
  horizon_years: int = 5
  config: EnsembleConfig = field(default_factory=EnsembleConfig)
  location_name: Optional[str] = None


@dataclass(frozen=True)
class ForecastReport:
  request: ForecastRequest
  history: Tuple[Observation, ...]
  result: EnsembleResult
  trend: TrendAnalysis
  formatted: FormattedForecast
  explanation: str


SeriesProvider = Callable[[SeriesKey], Union[SeriesLike, Awaitable[SeriesLike]]]


def _build_report(request: ForecastRequest, raw_series: Any) -> ForecastReport:
  history = prepare_series(raw_series)
  result = compute_forecast(history, request.horizon_years, config=request.config)
  trend = analyze_trend(history)
  logger.info("forecast.completed", fips=request.key.fips, observations=len(history),
              points=len(result.forecast), direction=trend.direction.value)
  return ForecastReport(
      request=request,
      history=history,
      result=result,
      trend=trend,
      formatted=format_forecast_result(result.forecast, trend),
      explanation=generate_detailed_explanation(result, history, request.location_name),
  )


def _fetch(provider: SeriesProvider, key: SeriesKey) -> Any:
  try:
    return provider(key)
  except Exception as exc:
    raise SeriesProviderError(f"Series provider failed for {key.fips}: {exc}", {"fips": key.fips}) from exc


def run_forecast(request: ForecastRequest, provider: SeriesProvider) -> ForecastReport:
  """Fetch the series once through a synchronous provider and forecast it."""
  raw_series = _fetch(provider, request.key)
  if inspect.isawaitable(raw_series):
    if inspect.iscoroutine(raw_series):
      raw_series.close()
    raise SeriesProviderError("Provider returned an awaitable; use arun_forecast instead.")
  return _build_report(request, raw_series)


async def arun_forecast(request: ForecastRequest, provider: SeriesProvider) -> ForecastReport:
  """Await the provider once, then run the synchronous forecasting core."""
  raw_series = _fetch(provider, request.key)
  if inspect.isawaitable(raw_series):
    try:
      raw_series = await raw_series
    except Exception as exc:
      raise SeriesProviderError(
          f"Series provider failed for {request.key.fips}: {exc}", {"fips": request.key.fips}) from exc
  return _build_report(request, raw_series)


def _import_pandas():
  try:
    import pandas as pd
  except ModuleNotFoundError as exc:  # pragma: no cover
    raise SystemExit(
        "pandas is required to read CSV series; install with `pip install pandas`."
    ) from exc
  return pd


def _records_from_json(payload: Any) -> Sequence[Any]:
  if isinstance(payload, dict):
    payload = payload.get("series", payload.get("data"))
  if not isinstance(payload, list):
    raise InvalidSeriesError("JSON series must be a list of {year, value} objects or {'series': [...]}.")
  return payload


def load_series_file(path: Union[str, Path]) -> Tuple[Observation, ...]:
  """Read a historical series from a ``.csv`` (year,value columns) or ``.json`` file."""
  path = Path(path)
  suffix = path.suffix.lower()
  if suffix == ".csv":
    pd = _import_pandas()
    frame = pd.read_csv(path)
    frame.columns = [str(col).strip().lower() for col in frame.columns]
    missing = {"year", "value"} - set(frame.columns)
    if missing:
      raise InvalidSeriesError(f"CSV series is missing columns: {sorted(missing)}.")
    frame = frame.dropna(subset=["year", "value"])
    records = list(zip(frame["year"].astype(int), frame["value"].astype(float)))
  elif suffix == ".json":
    try:
      payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
      raise InvalidSeriesError(f"Failed to decode JSON series from {path}.") from exc
    records = _records_from_json(payload)
  else:
    raise InvalidSeriesError(f"Unsupported series file type '{suffix}'; expected .csv or .json.")
  return prepare_series(records)
