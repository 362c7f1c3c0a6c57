from __future__ import annotations

import dataclasses

import pytest

from sahie_forecasting.base import EstimatorKind
from sahie_forecasting.config import ANCHOR_YEAR, REALISTIC_MAX, EnsembleConfig


def test_defaults() -> None:
  config = EnsembleConfig()

  assert config.anchor_year == ANCHOR_YEAR == 2025
  assert config.realistic_max == REALISTIC_MAX == 96.0
  assert config.min_history == 3
  assert config.continuous_variation is False


def test_method_preferences() -> None:
  config = EnsembleConfig()

  assert config.preference(EstimatorKind.LINEAR_5YEAR) == 1.15
  assert config.preference(EstimatorKind.ARIMA) == 0.95
  assert config.preference(EstimatorKind.MOVING_AVERAGE) == 1.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"trend_blend": 1.5},
        {"recent_trend_weight": -0.1},
        {"realistic_max": 120.0},
        {"min_history": 1},
        {"recent_window": 1},
        {"polynomial_degree": 0},
        {"ar_order": 0},
        {"soft_cap_decay": 0.0},
    ],
)
def test_invalid_values_are_rejected(overrides) -> None:
  with pytest.raises(ValueError):
    EnsembleConfig(**overrides)


def test_config_is_frozen() -> None:
  with pytest.raises(dataclasses.FrozenInstanceError):
    EnsembleConfig().anchor_year = 2030
