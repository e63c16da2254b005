# -*- coding: utf-8 -*-
"""Generation of passage dimensions (LRUD) from splay shots.

Splays measured from a station are sorted into up, down, left and right
candidates relative to the passage direction at that station, and the best
candidate in each direction gives the passage dimension. Splays which match
a leg at the station (back shots, or shots along a side passage which was
surveyed later) are ignored.

Passage dimensions are stored on the leg starting at the station. Stations
which only ever end legs get a ``ToStationLrud`` record on the series.
"""

import logging
import math

from cavesurvey_lib import units
from cavesurvey_lib.constants import LRUD_ANGLE_TOLERANCE
from cavesurvey_lib.constants import LRUD_HORIZONTAL_THRESHOLD
from cavesurvey_lib.constants import LRUD_LENGTH_TOLERANCE
from cavesurvey_lib.constants import LRUD_VERTICAL_THRESHOLD
from cavesurvey_lib.models import Leg
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Survey
from cavesurvey_lib.models import ToStationLrud

logger = logging.getLogger(__name__)


def _compass(leg: Leg) -> float:
    return leg.compass if leg.compass is not None else 0.0


def _clino(leg: Leg) -> float:
    return leg.clino if leg.clino is not None else 0.0


def _extent_along_bearing(
    bearing: float, vector_length: float, vector_bearing: float
) -> float:
    """Distance a horizontal vector extends along another bearing."""
    difference = units.bearing_difference(bearing, vector_bearing)
    return vector_length * math.cos(math.pi * difference / 180)


def _find_best_horizontal_splay(
    splays: list[Leg], forward_bearing: float, left: bool
) -> Leg | None:
    """Pick the splay reaching furthest at right angles to the passage."""
    orthogonal = 270.0 if left else 90.0
    best_value = 0.0
    best: Leg | None = None
    for splay in splays:
        shot_corrected = _compass(splay) - forward_bearing
        if shot_corrected < 0:
            shot_corrected += 360
        extent = _extent_along_bearing(
            orthogonal, splay.horizontal_length, shot_corrected
        )
        if extent > best_value:
            best_value = extent
            best = splay
    return best


def _is_back_shot(splay: Leg, master: Leg, other_legs: list[Leg]) -> bool:
    """Check whether a splay repeats the master leg or any other leg."""
    back_shot = False
    test_legs = [master]
    for other in other_legs:
        reversed_leg = other.copy_leg()
        reversed_leg.reverse()
        test_legs.append(reversed_leg)

    for test_leg in test_legs:
        if (
            units.bearing_difference(_compass(test_leg), _compass(splay))
            >= LRUD_ANGLE_TOLERANCE
        ):
            continue
        if (
            units.bearing_difference(_clino(test_leg), _clino(splay))
            >= LRUD_ANGLE_TOLERANCE
        ):
            continue
        if test_leg.length is None or splay.length is None:
            continue
        if abs(test_leg.length - splay.length) < LRUD_LENGTH_TOLERANCE:
            back_shot = True
    return back_shot


def _generate_lrud_for_leg(
    series_name: str,
    master: Leg,
    splays: list[Leg],
    other_legs: list[Leg],
) -> None:
    """Set the LRUD of a leg from the splays measured at its from station.

    Args:
        series_name: Name of the series, for log messages
        master: Leg to set the passage dimensions on
        splays: Splays measured from the from station of the leg
        other_legs: Other legs arriving at the from station of the leg
    """
    left_shots: list[Leg] = []
    right_shots: list[Leg] = []
    up_shots: list[Leg] = []
    down_shots: list[Leg] = []

    # Previous leg is the one most in line with the onward leg
    best_prev: Leg | None = None
    best_prev_difference = 360.0
    for other in other_legs:
        difference = units.bearing_difference(_compass(other), _compass(master))
        if difference < best_prev_difference:
            best_prev_difference = difference
            best_prev = other

    master_bearing = _compass(master)
    bearing = master_bearing
    if best_prev is not None:
        bearing = units.average_compass_bearings(
            [master_bearing, _compass(best_prev)]
        )

    for splay in splays:
        if _is_back_shot(splay, master, other_legs):
            logger.info(
                "Ignoring splay from %s.%s with length of %s as splay too "
                "closely matching a leg and so assumed to be a back-shot.",
                series_name,
                splay.from_station.name,
                splay.length,
            )
            continue

        splay_clino = _clino(splay)
        if splay_clino > LRUD_VERTICAL_THRESHOLD:
            up_shots.append(splay)
        elif splay_clino < -LRUD_VERTICAL_THRESHOLD:
            down_shots.append(splay)

        if not -LRUD_HORIZONTAL_THRESHOLD < splay_clino < LRUD_HORIZONTAL_THRESHOLD:
            continue

        # Bearings relative to the onward leg pointing at zero degrees
        splay_corrected = _compass(splay) - master_bearing
        if splay_corrected < 0:
            splay_corrected += 360

        if best_prev is not None:
            prev_back_bearing = units.adjust_bearing_within_range(
                180 + _compass(best_prev) - master_bearing, 0, 360
            )
            if splay_corrected < prev_back_bearing:
                right_shots.append(splay)
            else:
                left_shots.append(splay)
            continue

        if (splay_corrected > LRUD_ANGLE_TOLERANCE) or (
            splay_corrected > 360 - LRUD_ANGLE_TOLERANCE
        ):
            if splay_corrected < 180 - LRUD_ANGLE_TOLERANCE:
                right_shots.append(splay)
            elif splay_corrected > 180 + LRUD_ANGLE_TOLERANCE:
                left_shots.append(splay)
            else:
                logger.info(
                    "Ignoring splay from %s.%s with bearing of %s as bearing is "
                    "< %s degrees off back bearing of leg.",
                    series_name,
                    splay.from_station.name,
                    splay.compass,
                    int(LRUD_ANGLE_TOLERANCE),
                )
        else:
            logger.info(
                "Ignoring splay from %s.%s with bearing of %s as bearing is "
                "< %s degrees off bearing of leg.",
                series_name,
                splay.from_station.name,
                splay.compass,
                int(LRUD_ANGLE_TOLERANCE),
            )

    # Splays are only flagged as used when each direction had a single choice
    keep_all_splays = any(
        len(shots) > 1 for shots in (up_shots, down_shots, left_shots, right_shots)
    )

    best_up: Leg | None = None
    best_value = 0.0
    for splay in up_shots:
        if _clino(splay) > best_value:
            best_value = _clino(splay)
            best_up = splay
    if best_up is not None:
        master.up = best_up.vertical_length
        if not keep_all_splays:
            best_up.used_for_lrud = True

    best_down: Leg | None = None
    best_value = 0.0
    for splay in down_shots:
        if _clino(splay) < best_value:
            best_value = _clino(splay)
            best_down = splay
    if best_down is not None:
        master.down = best_down.vertical_length
        if not keep_all_splays:
            best_down.used_for_lrud = True

    best_left = _find_best_horizontal_splay(left_shots, bearing, left=True)
    if best_left is not None:
        left_orthogonal = bearing - 90
        if left_orthogonal < 0:
            left_orthogonal += 360
        master.left = _extent_along_bearing(
            left_orthogonal, best_left.horizontal_length, _compass(best_left)
        )
        if not keep_all_splays:
            best_left.used_for_lrud = True

    best_right = _find_best_horizontal_splay(right_shots, bearing, left=False)
    if best_right is not None:
        right_orthogonal = bearing + 90
        if right_orthogonal >= 360:
            right_orthogonal -= 360
        master.right = _extent_along_bearing(
            right_orthogonal, best_right.horizontal_length, _compass(best_right)
        )
        if not keep_all_splays:
            best_right.used_for_lrud = True


def generate_lrud_from_splays(series: Series) -> None:
    """Generate LRUD data for the legs of a series from its splays.

    Each leg gets the passage dimensions at its from station, worked out
    from the splays measured at that station. Splays at stations which are
    not the start of any leg give ``ToStationLrud`` records on the series.
    Surface legs are ignored. Inner series are not processed.

    Args:
        series: Series to generate LRUD data for
    """
    cave_legs: list[Leg] = []
    splay_groups: list[list[Leg]] = []

    for leg in series.legs:
        if leg.surface:
            continue
        if not leg.splay:
            cave_legs.append(leg)
            continue
        station_name = leg.from_station.name
        for group in splay_groups:
            if group[0].from_station.name == station_name:
                group.append(leg)
                break
        else:
            splay_groups.append([leg])

    # Legs meeting at the from station of each leg, turned to arrive there
    previous_leg_groups: list[list[Leg]] = []
    for idx, leg in enumerate(cave_legs):
        start_name = leg.from_station.name.lower()
        group: list[Leg] = []
        for other_idx, other in enumerate(cave_legs):
            if other_idx == idx:
                continue
            if (
                other.to_station is not None
                and other.to_station.name.lower() == start_name
            ):
                group.append(other)
            elif other.from_station.name.lower() == start_name:
                reversed_leg = other.copy_leg()
                reversed_leg.reverse()
                group.append(reversed_leg)
        previous_leg_groups.append(group)

    stations_used: set[str] = set()
    for splays in splay_groups:
        station_name = splays[0].from_station.name
        remaining_legs: list[Leg] = []
        remaining_groups: list[list[Leg]] = []
        for leg, previous_legs in zip(cave_legs, previous_leg_groups, strict=True):
            if leg.from_station.name == station_name:
                _generate_lrud_for_leg(series.name, leg, splays, previous_legs)
                stations_used.add(station_name)
            else:
                remaining_legs.append(leg)
                remaining_groups.append(previous_legs)
        cave_legs = remaining_legs
        previous_leg_groups = remaining_groups

    # Remaining splays are at stations which only end legs
    for splays in splay_groups:
        station_name = splays[0].from_station.name
        if station_name in stations_used:
            continue

        for idx, leg in enumerate(series.legs):
            if (
                leg.splay
                or leg.to_station is None
                or leg.to_station.name != station_name
            ):
                continue

            lrud_leg = Leg(
                from_station=leg.to_station.model_copy(),
                compass=leg.compass,
                clino=leg.clino,
            )

            # Other legs ending here, as in a leap-frog survey
            other_legs: list[Leg] = []
            for other in series.legs[idx + 1 :]:
                if (
                    not other.splay
                    and other.to_station is not None
                    and other.to_station.name == station_name
                ):
                    reversed_leg = other.copy_leg()
                    reversed_leg.reverse()
                    other_legs.append(reversed_leg)

            _generate_lrud_for_leg(series.name, lrud_leg, splays, other_legs)
            series.to_station_lruds.append(
                ToStationLrud(
                    from_station=lrud_leg.from_station,
                    left=lrud_leg.left,
                    right=lrud_leg.right,
                    up=lrud_leg.up,
                    down=lrud_leg.down,
                )
            )
            break


def _generate_series_lrud(series: Series) -> None:
    generate_lrud_from_splays(series)
    for inner in series.inner_series:
        _generate_series_lrud(inner)


def generate_survey_lrud(survey: Survey) -> None:
    """Generate LRUD data from splays for every series in a survey."""
    for series in survey:
        _generate_series_lrud(series)
