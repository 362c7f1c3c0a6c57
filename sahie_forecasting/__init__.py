"""Coverage forecasting estimators, ensemble blender and explanations."""

from .arima_runner import forecast_arima
from .autoregressive_runner import forecast_autoregressive
from .base import (
    EnsembleResult,
    EstimatorKind,
    EstimatorResult,
    ForecastPoint,
    Observation,
    TrendAnalysis,
    TrendDirection,
    TrendRates,
    prepare_series,
)
from .config import ANCHOR_YEAR, REALISTIC_MAX, EnsembleConfig
from .ensemble import compute_forecast, run_estimators, synthesize_trend_rates
from .errors import (
    ForecastingError,
    InsufficientHistoryError,
    InvalidSeriesError,
    SeriesProviderError,
    SingularSystemError,
)
from .explain import format_forecast_result, generate_detailed_explanation, generate_forecast_summary
from .expsmooth_runner import forecast_holt_linear
from .growth_runner import forecast_cagr
from .linalg import least_squares, solve_linear_system
from .linear_runner import forecast_linear_5year, forecast_weighted_linear
from .moving_average_runner import forecast_moving_average
from .polynomial_runner import forecast_polynomial
from .provider import (
    ForecastReport,
    ForecastRequest,
    SeriesKey,
    arun_forecast,
    load_series_file,
    run_forecast,
)
from .trend import analyze_trend, score_method

__all__ = [
    "ANCHOR_YEAR",
    "REALISTIC_MAX",
    "EnsembleConfig",
    "EnsembleResult",
    "EstimatorKind",
    "EstimatorResult",
    "ForecastPoint",
    "ForecastReport",
    "ForecastRequest",
    "Observation",
    "SeriesKey",
    "TrendAnalysis",
    "TrendDirection",
    "TrendRates",
    "ForecastingError",
    "InsufficientHistoryError",
    "InvalidSeriesError",
    "SeriesProviderError",
    "SingularSystemError",
    "prepare_series",
    "least_squares",
    "solve_linear_system",
    "forecast_linear_5year",
    "forecast_weighted_linear",
    "forecast_holt_linear",
    "forecast_arima",
    "forecast_cagr",
    "forecast_polynomial",
    "forecast_autoregressive",
    "forecast_moving_average",
    "run_estimators",
    "synthesize_trend_rates",
    "compute_forecast",
    "analyze_trend",
    "score_method",
    "format_forecast_result",
    "generate_forecast_summary",
    "generate_detailed_explanation",
    "run_forecast",
    "arun_forecast",
    "load_series_file",
]
