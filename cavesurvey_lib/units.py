# -*- coding: utf-8 -*-
"""Unit conversions and bearing arithmetic.

Lengths are stored internally in metres and angles in degrees. The helpers
here convert survey readings to and from those internal units, and provide
the bearing math used by the parsers and the LRUD reconstructor.
"""

import math

import numpy as np

from cavesurvey_lib.constants import FEET_PER_METRE
from cavesurvey_lib.enums import BearingUnit
from cavesurvey_lib.enums import GradientUnit
from cavesurvey_lib.enums import LengthUnit

# -----------------------------------------------------------------------------
# Lengths
# -----------------------------------------------------------------------------


def length_from_metres(value: float, unit: LengthUnit) -> float:
    """Convert a length in metres to the given unit."""
    match unit:
        case LengthUnit.FEET:
            return value * FEET_PER_METRE
        case LengthUnit.YARDS:
            return value * FEET_PER_METRE / 3
        case _:
            return value


def length_to_metres(value: float, unit: LengthUnit) -> float:
    """Convert a length in the given unit to metres."""
    match unit:
        case LengthUnit.FEET:
            return value / FEET_PER_METRE
        case LengthUnit.YARDS:
            return value * 3 / FEET_PER_METRE
        case _:
            return value


# -----------------------------------------------------------------------------
# Bearings
# -----------------------------------------------------------------------------


def bearing_from_degrees(value: float, unit: BearingUnit) -> float:
    match unit:
        case BearingUnit.GRADS:
            return value * 400 / 360
        case BearingUnit.MINUTES:
            return value * 60
        case _:
            return value


def bearing_to_degrees(value: float, unit: BearingUnit) -> float:
    match unit:
        case BearingUnit.GRADS:
            return value * 360 / 400
        case BearingUnit.MINUTES:
            return value / 60
        case _:
            return value


# -----------------------------------------------------------------------------
# Gradients
# -----------------------------------------------------------------------------


def gradient_from_degrees(value: float, unit: GradientUnit) -> float:
    """Convert a clino reading in degrees to the given unit.

    Percentage gradients are the tangent of the angle, times 100.
    """
    match unit:
        case GradientUnit.GRADS:
            return value * 400 / 360
        case GradientUnit.MINUTES:
            return value * 60
        case GradientUnit.PERCENT:
            return 100 * math.tan(math.pi * value / 180)
        case _:
            return value


def gradient_to_degrees(value: float, unit: GradientUnit) -> float:
    """Convert a clino reading in the given unit to degrees."""
    match unit:
        case GradientUnit.GRADS:
            return value * 360 / 400
        case GradientUnit.MINUTES:
            return value / 60
        case GradientUnit.PERCENT:
            return 180 * math.atan(value / 100) / math.pi
        case _:
            return value


# -----------------------------------------------------------------------------
# Bearing arithmetic
# -----------------------------------------------------------------------------


def adjust_bearing_within_range(
    bearing: float,
    minimum: float = 0.0,
    maximum: float = 360.0,
) -> float:
    """Wrap a bearing into the half open range ``[minimum, maximum)``."""
    while bearing < minimum:
        bearing += 360.0
    while bearing >= maximum:
        bearing -= 360.0
    return bearing


def bearing_difference(bearing1: float, bearing2: float) -> float:
    """Smallest absolute angle between two bearings, in ``[0, 180]``."""
    diff = abs(bearing1 - bearing2) % 360.0
    if diff > 180.0:
        diff = 360.0 - diff
    return diff


def average_compass_bearings(bearings: list[float]) -> float:
    """Average bearings as unit vectors so that 359 and 1 average to 0.

    Args:
        bearings: Bearings in degrees

    Returns:
        Mean bearing in degrees in ``[0, 360)``
    """
    radians = np.radians(np.asarray(bearings, dtype=float))
    mean = math.degrees(
        math.atan2(float(np.sin(radians).sum()), float(np.cos(radians).sum()))
    )
    return adjust_bearing_within_range(mean)


# -----------------------------------------------------------------------------
# Number formatting
# -----------------------------------------------------------------------------


def pad_number(value: float | None, decimals: int, width: int) -> str:
    """Format a number to fixed decimal places, right aligned to a minimum width.

    The text is never truncated when it is wider than ``width``. A missing
    value is written as zero.

    Args:
        value: Number to format
        decimals: Number of decimal places
        width: Minimum width of the returned string

    Returns:
        Formatted number
    """
    return f"{value or 0.0:.{decimals}f}".rjust(width)


def format_number(value: float) -> str:
    """Shortest plain decimal form of a number (``2``, ``-1.25``)."""
    text = f"{value:.8f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text
