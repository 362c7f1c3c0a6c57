"""Streamlit dashboard for interactive coverage forecasting."""

from __future__ import annotations

import io
from typing import List, Optional

import pandas as pd
import streamlit as st

from sahie_forecasting import (
    ANCHOR_YEAR,
    EnsembleConfig,
    ForecastingError,
    Observation,
    analyze_trend,
    compute_forecast,
    format_forecast_result,
    generate_detailed_explanation,
    prepare_series,
)
from sahie_forecasting.logs import configure_logging
from sahie_timeseries import MAX_HORIZON_YEARS, build_forecast_figure

configure_logging()

st.set_page_config(page_title="Coverage Forecast Explorer", layout="wide", page_icon="📈")

st.title("Coverage Forecast Explorer")
st.write(
    "Paste or upload an annual health-insurance coverage series (SAHIE percentages, one value per year) "
    "and project it forward with the multi-method ensemble. Gap years between the last observation and "
    "the anchor year are bridged before the requested horizon."
)

DEFAULT_SERIES = "year,value\n2018,80\n2019,82\n2020,83\n2021,85\n2022,87\n"


def _parse_series(text: str) -> List[Observation]:
  frame = pd.read_csv(io.StringIO(text))
  frame.columns = [str(col).strip().lower() for col in frame.columns]
  if not {"year", "value"} <= set(frame.columns):
    raise SystemExit("Series must have 'year' and 'value' columns.")
  frame = frame.dropna(subset=["year", "value"])
  return list(prepare_series(zip(frame["year"].astype(int), frame["value"].astype(float))))


st.markdown("### Step 1: Provide the historical series")
col_text, col_upload = st.columns([0.6, 0.4])
with col_text:
  series_text = st.text_area("CSV series", value=DEFAULT_SERIES, height=220)
with col_upload:
  uploaded = st.file_uploader("...or upload a CSV file", type=["csv"])
  location_name: Optional[str] = st.text_input("Location name", value="")

st.markdown("### Step 2: Forecast into the future")
col_horizon, col_anchor, col_variation = st.columns([1, 1, 1])
with col_horizon:
  horizon = st.slider("Forecast horizon (years)", min_value=1, max_value=MAX_HORIZON_YEARS, value=5)
with col_anchor:
  anchor_year = st.number_input("Anchor year", value=ANCHOR_YEAR, step=1)
with col_variation:
  continuous_variation = st.checkbox(
      "Continuous variation",
      value=False,
      help="Keep the deterministic variation pattern running across gap years and forecast years.",
  )

run_forecast = st.button("Run forecast", type="primary", use_container_width=True)

if run_forecast:
  try:
    raw_text = uploaded.getvalue().decode("utf-8") if uploaded is not None else series_text
    history = _parse_series(raw_text)
    config = EnsembleConfig(anchor_year=int(anchor_year), continuous_variation=continuous_variation)
    result = compute_forecast(history, int(horizon), config=config)
  except SystemExit as exc:
    st.error(str(exc))
  except ForecastingError as exc:
    st.error(exc.message)
  except (ValueError, pd.errors.ParserError) as exc:
    st.error(f"Could not read the series: {exc}")
  else:
    trend = analyze_trend(history)
    formatted = format_forecast_result(result.forecast, trend)
    st.subheader(f"{formatted.symbol} {formatted.summary}")
    st.plotly_chart(
        build_forecast_figure(history, result, location_name=location_name or None),
        use_container_width=True,
    )
    st.dataframe(pd.DataFrame([point.to_dict() for point in result.forecast]).drop(
        columns=["methods", "weights"], errors="ignore"))
    with st.expander("Why this forecast?"):
      st.markdown(generate_detailed_explanation(result, history, location_name or None))

with st.expander("Implementation details & methodology"):
  st.markdown(
      """
      **Estimators**: 5-year linear regression, Holt's linear smoothing, a simplified ARIMA(1,1,1),
      compound annual growth, quadratic regression, recency-weighted regression and AR(2). Each is fitted
      once on the full series.

      **Blending**: every year starts from the previous year's ensemble value. A damped trend projection
      (60%) is blended with the quality- and alignment-weighted method average (40%), then bounded by
      historical volatility and a realistic 96% ceiling.

      **Determinism**: the small year-to-year variation is a sine pattern of the forecast index, so the same
      input always yields the same forecast.
      """
  )
