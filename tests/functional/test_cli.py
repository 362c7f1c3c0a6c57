from __future__ import annotations

import json

import pytest

from sahie_forecasting import compute_forecast, prepare_series
from sahie_timeseries import build_forecast_figure, main


@pytest.fixture()
def series_csv(tmp_path, rising_series):
  path = tmp_path / "series.csv"
  lines = ["year,value"] + [f"{year},{value}" for year, value in rising_series]
  path.write_text("\n".join(lines) + "\n")
  return path


def test_main_prints_json_payload(series_csv, capsys) -> None:
  assert main([str(series_csv), "--json", "--horizon", "3"]) == 0

  payload = json.loads(capsys.readouterr().out)
  assert [point["year"] for point in payload["forecast"]] == [2023, 2024, 2025, 2026, 2027, 2028]
  assert payload["forecast"][0]["is_gap_year"] is True
  assert payload["methods"]["linear5Year"]["slope"] == pytest.approx(1.7)
  assert payload["trend"]["direction"] == "strong_increasing"
  assert payload["summary"].startswith("Historical trend is strongly increasing")


def test_main_prints_table_and_explanation(series_csv, capsys) -> None:
  main([str(series_csv), "--horizon", "2", "--explain", "--location", "Testville"])

  out = capsys.readouterr().out
  assert out.startswith("⇑ Historical trend is strongly increasing")
  assert "(gap year)" in out
  assert "Looking at Testville's historical data" in out


def test_main_without_gap_years(series_csv, capsys) -> None:
  main([str(series_csv), "--horizon", "2", "--anchor-year", "2022"])

  assert "(gap year)" not in capsys.readouterr().out


def test_main_writes_html_chart(series_csv, tmp_path) -> None:
  chart_path = tmp_path / "forecast.html"

  main([str(series_csv), "--chart-path", str(chart_path)])

  assert chart_path.exists()
  assert "plotly" in chart_path.read_text().lower()


@pytest.mark.parametrize("horizon", ["0", "26"])
def test_main_rejects_out_of_range_horizon(series_csv, horizon) -> None:
  with pytest.raises(SystemExit):
    main([str(series_csv), "--horizon", horizon])


def test_main_reports_missing_file(tmp_path) -> None:
  with pytest.raises(SystemExit) as exc:
    main([str(tmp_path / "missing.csv")])

  assert "not found" in str(exc.value)


def test_main_reports_short_history(tmp_path) -> None:
  path = tmp_path / "short.json"
  path.write_text(json.dumps([{"year": 2021, "value": 80}, {"year": 2022, "value": 81}]))

  with pytest.raises(SystemExit) as exc:
    main([str(path)])

  assert "at least 3 observations" in str(exc.value)


def test_build_forecast_figure_marks_gap_years(rising_series) -> None:
  history = prepare_series(rising_series)
  result = compute_forecast(history, 3)

  fig = build_forecast_figure(history, result, location_name="Testville")

  names = [trace.name for trace in fig.data]
  assert "historical" in names
  assert "gap years (bridged)" in names
  assert list(fig.data[names.index("ensemble forecast")].x)[0] == 2022
  assert "Testville" in fig.layout.title.text


def test_build_forecast_figure_requires_history(rising_series) -> None:
  result = compute_forecast(rising_series, 1)

  with pytest.raises(ValueError):
    build_forecast_figure((), result)
