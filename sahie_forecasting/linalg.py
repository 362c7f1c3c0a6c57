"""Small dense least-squares solver used by the polynomial and AR estimators."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import SingularSystemError

PIVOT_TOLERANCE = 1e-12


def solve_linear_system(A: np.ndarray, b: np.ndarray) -> np.ndarray:
  """Solve ``A x = b`` by Gaussian elimination with partial pivoting.

  Each column is pivoted on the row with the largest absolute entry. A pivot
  smaller than ``PIVOT_TOLERANCE`` scaled by the largest entry of A raises
  SingularSystemError.
  """
  A = np.asarray(A, dtype=np.float64)
  b = np.asarray(b, dtype=np.float64)
  if A.ndim != 2 or A.shape[0] != A.shape[1]:
    raise ValueError("A must be a square matrix.")
  if b.shape != (A.shape[0],):
    raise ValueError("b must be a vector matching the rows of A.")

  n = A.shape[0]
  augmented = np.hstack([A, b.reshape(-1, 1)])
  tolerance = PIVOT_TOLERANCE * max(1.0, float(np.max(np.abs(A)))) if n else PIVOT_TOLERANCE

  for col in range(n):
    pivot_row = col + int(np.argmax(np.abs(augmented[col:, col])))
    if abs(augmented[pivot_row, col]) < tolerance:
      raise SingularSystemError(
          "Normal equations are singular; cannot solve least squares.",
          {"column": col, "pivot": float(augmented[pivot_row, col])},
      )
    if pivot_row != col:
      augmented[[col, pivot_row]] = augmented[[pivot_row, col]]

    for row in range(col + 1, n):
      factor = augmented[row, col] / augmented[col, col]
      augmented[row, col:] -= factor * augmented[col, col:]

  solution = np.zeros(n, dtype=np.float64)
  for row in range(n - 1, -1, -1):
    residual = augmented[row, n] - np.dot(augmented[row, row + 1:n], solution[row + 1:])
    solution[row] = residual / augmented[row, row]
  return solution


def least_squares(X: Sequence[Sequence[float]], y: Sequence[float]) -> np.ndarray:
  """Ordinary least squares via the normal equations ``X'X beta = X'y``."""
  X = np.asarray(X, dtype=np.float64)
  y = np.asarray(y, dtype=np.float64)
  if X.ndim != 2:
    raise ValueError("X must be a 2D design matrix.")
  if X.shape[0] != y.shape[0]:
    raise ValueError("X and y must have the same number of rows.")
  return solve_linear_system(X.T @ X, X.T @ y)


def r_squared(actual: Sequence[float], fitted: Sequence[float]) -> float:
  """Coefficient of determination, 0 when the actual values are constant."""
  actual = np.asarray(actual, dtype=np.float64)
  fitted = np.asarray(fitted, dtype=np.float64)
  if actual.shape != fitted.shape or actual.size < 2:
    return 0.0
  ss_res = float(np.sum((actual - fitted) ** 2))
  ss_tot = float(np.sum((actual - actual.mean()) ** 2))
  return 1.0 - ss_res / ss_tot if ss_tot != 0 else 0.0
