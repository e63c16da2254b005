# -*- coding: utf-8 -*-
"""Pytest configuration and fixtures.

This module provides builders for survey legs and a set of small survey
series shared by the LRUD, writer and linearizer tests.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from cavesurvey_lib.models import Leg
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Station
from cavesurvey_lib.models import Survey

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


# =============================================================================
# Leg Builders
# =============================================================================


def create_test_leg(
    from_id: int,
    to_id: int,
    length: float,
    compass: float,
    clino: float,
) -> Leg:
    """Create a leg between two numbered stations."""
    leg = Leg(from_station=Station(id=from_id), to_station=Station(id=to_id))
    leg.set_length(length)
    leg.set_compass(compass)
    leg.set_clino(clino)
    return leg


def create_splay_leg(from_id: int, length: float, compass: float, clino: float) -> Leg:
    """Create a splay leg with no to station."""
    leg = Leg(from_station=Station(id=from_id))
    leg.set_length(length)
    leg.set_compass(compass)
    leg.set_clino(clino)
    leg.set_splay(True)
    return leg


def survey_of(*series: Series) -> Survey:
    survey = Survey()
    for item in series:
        survey.add(item)
    return survey


# =============================================================================
# Series Builders
# =============================================================================


def forward3_series_with_3_splays() -> Series:
    """Three legs surveyed forwards (1-2, 2-3, 3-4), three splays per station."""
    series = Series(name="Test")

    series.add_leg(create_splay_leg(1, 0.74, 236.15, -6.85))
    series.add_leg(create_splay_leg(1, 0.87, 46.77, -82.61))
    series.add_leg(create_splay_leg(1, 1.68, 227.27, 67.16))
    series.add_leg(create_test_leg(1, 2, 5.05, 279.35, -25.23))

    series.add_leg(create_splay_leg(2, 0.58, 34.79, 1.49))
    series.add_leg(create_splay_leg(2, 1.16, 111.26, -85.03))
    series.add_leg(create_splay_leg(2, 2.83, 16.27, 74.62))
    series.add_leg(create_test_leg(2, 3, 5.02, 336.36, -13.85))

    series.add_leg(create_splay_leg(3, 0.41, 231.77, -3.06))
    series.add_leg(create_splay_leg(3, 3.73, 254.43, 80.33))
    series.add_leg(create_splay_leg(3, 0.54, 182.41, -84.02))
    series.add_leg(create_test_leg(3, 4, 3.19, 303.08, -33.11))

    series.add_leg(create_splay_leg(4, 0.53, 23.07, -5.56))
    series.add_leg(create_splay_leg(4, 4.46, 353.35, 80.60))
    series.add_leg(create_splay_leg(4, 1.45, 224.40, -78.95))

    return series


def backward3_series_with_splays() -> Series:
    """Three legs surveyed backwards (2-1, 3-2, 4-3), three splays per station."""
    series = Series(name="Test")

    series.add_leg(create_splay_leg(1, 0.74, 236.15, -6.85))
    series.add_leg(create_splay_leg(1, 0.87, 46.77, -82.61))
    series.add_leg(create_splay_leg(1, 1.68, 227.27, 67.16))
    series.add_leg(create_test_leg(2, 1, 5.05, 99.35, 25.23))

    series.add_leg(create_splay_leg(2, 0.58, 34.79, 1.49))
    series.add_leg(create_splay_leg(2, 1.16, 111.26, -85.03))
    series.add_leg(create_splay_leg(2, 2.83, 16.27, 74.62))
    series.add_leg(create_test_leg(3, 2, 5.02, 156.36, 13.85))

    series.add_leg(create_splay_leg(3, 0.41, 231.77, -3.06))
    series.add_leg(create_splay_leg(3, 3.73, 254.43, 80.33))
    series.add_leg(create_splay_leg(3, 0.54, 182.41, -84.02))
    series.add_leg(create_test_leg(4, 3, 3.19, 123.08, 33.11))

    series.add_leg(create_splay_leg(4, 0.53, 23.07, -5.56))
    series.add_leg(create_splay_leg(4, 4.46, 353.35, 80.60))
    series.add_leg(create_splay_leg(4, 1.45, 224.40, -78.95))

    return series


def forward5_series_with_4_splays() -> Series:
    """Five legs surveyed forwards, four splays at every station."""
    series = Series(name="Test")

    series.add_leg(create_splay_leg(1, 0.07, 194.15, 2))
    series.add_leg(create_splay_leg(1, 0.74, 16.15, -6))
    series.add_leg(create_splay_leg(1, 1.28, 227.27, 87))
    series.add_leg(create_splay_leg(1, 0.87, 46.77, -82))
    series.add_leg(create_test_leg(1, 2, 5.05, 279.15, -5.23))

    series.add_leg(create_splay_leg(2, 0.15, 217.28, -3))
    series.add_leg(create_splay_leg(2, 0.78, 34.79, 1))
    series.add_leg(create_splay_leg(2, 0.83, 16.27, 84))
    series.add_leg(create_splay_leg(2, 1.16, 111.26, -85))
    series.add_leg(create_test_leg(2, 3, 5.02, 336.26, -3.85))

    series.add_leg(create_splay_leg(3, 1.21, 231.77, 2))
    series.add_leg(create_splay_leg(3, 0.21, 45.17, -3))
    series.add_leg(create_splay_leg(3, 1.23, 254.43, 80))
    series.add_leg(create_splay_leg(3, 0.54, 182.41, -84))
    series.add_leg(create_test_leg(3, 4, 3.19, 303.38, -6))

    series.add_leg(create_splay_leg(4, 0.53, 228.49, -2))
    series.add_leg(create_splay_leg(4, 1.62, 60.07, -5))
    series.add_leg(create_splay_leg(4, 1.46, 353.35, 80))
    series.add_leg(create_splay_leg(4, 1.45, 224.40, -89))
    series.add_leg(create_test_leg(4, 5, 5.02, 26.42, -5.85))

    series.add_leg(create_splay_leg(5, 1.21, 251.77, 2))
    series.add_leg(create_splay_leg(5, 0.21, 45.17, -5))
    series.add_leg(create_splay_leg(5, 1.25, 254.45, 80))
    series.add_leg(create_splay_leg(5, 0.54, 182.41, -84))
    series.add_leg(create_test_leg(5, 6, 3.19, 297.57, -6))

    series.add_leg(create_splay_leg(6, 0.53, 228.69, -2))
    series.add_leg(create_splay_leg(6, 1.62, 60.07, -5))
    series.add_leg(create_splay_leg(6, 1.66, 353.35, 80))
    series.add_leg(create_splay_leg(6, 1.65, 226.60, -89))

    return series


def branched222_series_with_splays() -> Series:
    """T shaped series with three branches of two legs, surveyed forwards."""
    series = Series(name="Test")

    series.add_leg(create_splay_leg(1, 0.5, 330, 3))
    series.add_leg(create_splay_leg(1, 1.5, 150, -6))
    series.add_leg(create_splay_leg(1, 2, 60, 88))
    series.add_leg(create_splay_leg(1, 0.4, 60, -89))
    series.add_leg(create_test_leg(1, 2, 1.43, 61.61, -13.25))

    series.add_leg(create_splay_leg(2, 0.58, 327.33, -0.57))
    series.add_leg(create_splay_leg(2, 0.94, 171.13, -6.41))
    series.add_leg(create_splay_leg(2, 0.50, 258.56, -34.18))
    series.add_leg(create_test_leg(2, 3, 3.89, 73.29, -51.63))

    series.add_leg(create_splay_leg(3, 0.91, 252.72, -4.04))
    series.add_leg(create_splay_leg(3, 0.80, 250.31, -35.24))
    series.add_leg(create_splay_leg(3, 2.44, 239.99, 47.81))
    series.add_leg(create_test_leg(3, 4, 4.50, 170.72, 19.68))

    series.add_leg(create_splay_leg(4, 0.46, 71.39, -4.30))
    series.add_leg(create_splay_leg(4, 1.54, 358.12, 82.08))
    series.add_leg(create_splay_leg(4, 0.94, 170.44, -79.46))
    series.add_leg(create_splay_leg(4, 0.45, 220.38, -6.59))
    series.add_leg(create_test_leg(4, 5, 1.63, 131.27, 20.13))

    series.add_leg(create_splay_leg(5, 0.37, 242.14, -5.73))
    series.add_leg(create_splay_leg(5, 0.36, 39.38, -82.79))
    series.add_leg(create_splay_leg(5, 1.17, 258.11, 84.02))
    series.add_leg(create_splay_leg(5, 0.5, 41, 2))

    # Branch from station 3
    series.add_leg(create_test_leg(3, 6, 5.02, 336.36, -13.85))

    series.add_leg(create_splay_leg(6, 0.41, 231.77, -3.06))
    series.add_leg(create_splay_leg(6, 3.73, 254.43, 80.33))
    series.add_leg(create_splay_leg(6, 0.54, 182.41, -84.02))
    series.add_leg(create_test_leg(6, 7, 3.19, 303.08, -33.11))

    series.add_leg(create_splay_leg(7, 0.53, 23.07, -5.56))
    series.add_leg(create_splay_leg(7, 4.46, 353.35, 80.60))
    series.add_leg(create_splay_leg(7, 1.45, 224.40, -78.95))

    return series


# =============================================================================
# Series Fixtures
# =============================================================================


@pytest.fixture
def forward3_series() -> Series:
    return forward3_series_with_3_splays()


@pytest.fixture
def backward3_series() -> Series:
    return backward3_series_with_splays()


@pytest.fixture
def forward5_series() -> Series:
    return forward5_series_with_4_splays()


@pytest.fixture
def branched222_series() -> Series:
    return branched222_series_with_splays()


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def write_file(tmp_path: Path):
    """Return a helper writing text files below a temporary directory."""

    def _write(name: str, content: str, encoding: str = "utf-8") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding=encoding)
        return path

    return _write
