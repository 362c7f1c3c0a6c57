from __future__ import annotations

import asyncio
import json

import pytest

from sahie_forecasting.base import Observation, TrendDirection
from sahie_forecasting.errors import InvalidSeriesError, SeriesProviderError
from sahie_forecasting.provider import (
    ForecastRequest,
    SeriesKey,
    arun_forecast,
    load_series_file,
    run_forecast,
)


def test_series_key_distinguishes_states_from_counties() -> None:
  assert SeriesKey("06").is_state
  assert not SeriesKey("06037", age_cat=1).is_state


def test_run_forecast_builds_full_report(rising_series) -> None:
  calls = []

  def provider(key: SeriesKey):
    calls.append(key)
    return rising_series

  request = ForecastRequest(key=SeriesKey("06"), location_name="California")
  report = run_forecast(request, provider)

  assert calls == [SeriesKey("06")]
  assert report.history[-1] == Observation(2022, 87.0)
  assert len(report.result.forecast) == 8
  assert report.trend.direction is TrendDirection.STRONG_INCREASING
  assert report.formatted.symbol == "⇑"
  assert "California" in report.explanation


def test_run_forecast_wraps_provider_failures() -> None:
  def provider(key: SeriesKey):
    raise ConnectionError("upstream unavailable")

  with pytest.raises(SeriesProviderError) as exc:
    run_forecast(ForecastRequest(key=SeriesKey("48")), provider)

  assert exc.value.details == {"fips": "48"}
  assert isinstance(exc.value.__cause__, ConnectionError)


def test_run_forecast_rejects_async_provider(rising_series) -> None:
  async def provider(key: SeriesKey):
    return rising_series

  with pytest.raises(SeriesProviderError):
    run_forecast(ForecastRequest(key=SeriesKey("06")), provider)


def test_arun_forecast_awaits_provider(rising_series) -> None:
  async def provider(key: SeriesKey):
    await asyncio.sleep(0)
    return rising_series

  request = ForecastRequest(key=SeriesKey("06"), horizon_years=2)
  report = asyncio.run(arun_forecast(request, provider))

  assert [point.year for point in report.result.horizon_points] == [2026, 2027]


def test_arun_forecast_accepts_sync_provider(rising_series) -> None:
  report = asyncio.run(arun_forecast(ForecastRequest(key=SeriesKey("06")), lambda key: rising_series))

  assert len(report.history) == 5


def test_arun_forecast_wraps_awaited_failures() -> None:
  async def provider(key: SeriesKey):
    raise TimeoutError("slow upstream")

  with pytest.raises(SeriesProviderError):
    asyncio.run(arun_forecast(ForecastRequest(key=SeriesKey("06")), provider))


def test_load_series_file_reads_csv(tmp_path) -> None:
  path = tmp_path / "series.csv"
  path.write_text("Year, Value\n2020,83.5\n2018,80\n2019,82\n")

  assert load_series_file(path) == (
      Observation(2018, 80.0),
      Observation(2019, 82.0),
      Observation(2020, 83.5),
  )


def test_load_series_file_reads_json_variants(tmp_path) -> None:
  listed = tmp_path / "listed.json"
  listed.write_text(json.dumps([{"year": 2019, "value": 82}, {"year": 2018, "value": 80}]))
  wrapped = tmp_path / "wrapped.json"
  wrapped.write_text(json.dumps({"series": [{"year": 2018, "value": 80}, {"year": 2019, "value": 82}]}))

  assert load_series_file(listed) == load_series_file(wrapped)


def test_load_series_file_rejects_bad_inputs(tmp_path) -> None:
  missing_column = tmp_path / "bad.csv"
  missing_column.write_text("year,rate\n2020,1\n")
  broken_json = tmp_path / "broken.json"
  broken_json.write_text("{not json")
  other = tmp_path / "series.txt"
  other.write_text("2020 80")

  for path in (missing_column, broken_json, other):
    with pytest.raises(InvalidSeriesError):
      load_series_file(path)
