from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator, List, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from sahie_forecasting.base import Observation  # noqa: E402
from sahie_forecasting.logs import configure_logging  # noqa: E402


@pytest.fixture(autouse=True)
def quiet_logging() -> Iterator[None]:
  configure_logging("WARNING")
  yield


@pytest.fixture()
def rising_series() -> List[Tuple[int, float]]:
  return [(2018, 80.0), (2019, 82.0), (2020, 83.0), (2021, 85.0), (2022, 87.0)]


@pytest.fixture()
def long_series() -> List[Observation]:
  values = [78.5, 79.1, 80.4, 81.0, 84.2, 86.9, 88.1, 88.3, 88.0, 88.6, 89.1, 89.9, 90.4]
  return [Observation(year=2010 + offset, value=value) for offset, value in enumerate(values)]


@pytest.fixture()
def flat_series() -> List[Tuple[int, float]]:
  return [(year, 90.0) for year in range(2018, 2023)]


@pytest.fixture()
def noisy_series() -> List[Tuple[int, float]]:
  return [(2018, 60.0), (2019, 63.0), (2020, 61.0), (2021, 65.0), (2022, 64.0)]
