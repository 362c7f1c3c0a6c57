"""Error types raised by the forecasting core."""

from __future__ import annotations

from typing import Any, Dict, Optional


class ForecastingError(Exception):
  """Base class for forecasting errors."""

  def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
    self.message = message
    self.details = details or {}
    super().__init__(message)


class InvalidSeriesError(ForecastingError):
  """Raised when a historical series cannot be normalized."""


class InsufficientHistoryError(ForecastingError):
  """Raised when a series is too short to produce an ensemble forecast."""

  def __init__(self, available: int, required: int, details: Optional[Dict[str, Any]] = None):
    message = f"Need at least {required} observations to forecast; got {available}."
    merged = {"available": available, "required": required}
    merged.update(details or {})
    super().__init__(message, merged)


class SingularSystemError(ForecastingError):
  """Raised when the normal equations have no stable solution."""


class SeriesProviderError(ForecastingError):
  """Raised when the injected series provider fails."""
