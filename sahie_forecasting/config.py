"""Tunable constants for the estimators and the ensemble blender."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .base import EstimatorKind

ANCHOR_YEAR = 2025
REALISTIC_MAX = 96.0
ESTIMATOR_CEILING = 100.0
RECENT_WINDOW = 5

DEFAULT_METHOD_PREFERENCES: Mapping[EstimatorKind, float] = MappingProxyType({
    EstimatorKind.LINEAR_5YEAR: 1.15,
    EstimatorKind.CAGR: 1.15,
    EstimatorKind.HOLTS: 1.05,
    EstimatorKind.QUADRATIC: 1.05,
    EstimatorKind.ARIMA: 0.95,
    EstimatorKind.WEIGHTED_LINEAR: 1.0,
    EstimatorKind.AUTOREGRESSIVE: 1.0,
})


@dataclass(frozen=True)
class EnsembleConfig:
  """Immutable knobs for one ensemble forecast request.

  ``anchor_year`` is the reference "current year": estimators project the
  years after it and the blender bridges any gap between the last observation
  and it. ``continuous_variation`` keeps the sine variation index running
  across gap years and requested years instead of restarting at zero.
  """

  anchor_year: int = ANCHOR_YEAR
  realistic_max: float = REALISTIC_MAX
  soft_cap_decay: float = 3.0
  recent_window: int = RECENT_WINDOW
  recent_trend_weight: float = 0.7
  time_decay_rate: float = 0.05
  saturation_threshold: float = 80.0
  saturation_strength: float = 0.4
  trend_blend: float = 0.6
  quality_scale: float = 0.6
  min_quality_weight: float = 0.1
  min_method_weight: float = 0.01
  alignment_floor: float = 0.4
  min_alignment_span: float = 8.0
  alignment_span_factor: float = 2.5
  extreme_ceiling: float = 97.0
  extreme_drop: float = 8.0
  extreme_penalty: float = 0.4
  soft_ceiling: float = 94.0
  soft_drop: float = 5.0
  soft_penalty: float = 0.7
  variation_scale: float = 0.25
  continuous_variation: bool = False
  max_yearly_rise: float = 4.0
  max_yearly_fall: float = 3.0
  rise_rate_factor: float = 1.8
  fall_rate_factor: float = 1.5
  high_coverage_threshold: float = 90.0
  high_coverage_growth_share: float = 0.25
  high_coverage_decay_rate: float = 0.15
  interval_width: float = 1.5
  min_history: int = 3
  polynomial_degree: int = 2
  ar_order: int = 2
  method_preferences: Mapping[EstimatorKind, float] = field(
      default_factory=lambda: DEFAULT_METHOD_PREFERENCES)

  def __post_init__(self) -> None:
    if not 0.0 <= self.trend_blend <= 1.0:
      raise ValueError("trend_blend must lie in [0, 1].")
    if not 0.0 <= self.recent_trend_weight <= 1.0:
      raise ValueError("recent_trend_weight must lie in [0, 1].")
    if not 0.0 < self.realistic_max <= ESTIMATOR_CEILING:
      raise ValueError("realistic_max must lie in (0, 100].")
    if self.min_history < 2:
      raise ValueError("min_history must be at least 2.")
    if self.recent_window < 2:
      raise ValueError("recent_window must be at least 2.")
    if self.polynomial_degree < 1:
      raise ValueError("polynomial_degree must be positive.")
    if self.ar_order < 1:
      raise ValueError("ar_order must be positive.")
    if self.soft_cap_decay <= 0:
      raise ValueError("soft_cap_decay must be positive.")

  def preference(self, kind: EstimatorKind) -> float:
    return self.method_preferences.get(kind, 1.0)
