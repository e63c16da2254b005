# -*- coding: utf-8 -*-
"""Parser for PocketTopo text exports.

A PocketTopo export starts with the cave name and units, followed by one
line of settings per trip and then the shot data::

    My Cave   (m, 360)

    [1]: 2012/05/26 1.50 "Entrance series"

    1.0	1.1	2.050	260.84	-56.40	[1]
    1.0	1.1	2.052	260.91	-56.38	[1]
    1.1	0.670	344.92	4.15	[1]
    1.1	3.0	0.000	0.00	0.00

Station names are ``series.station`` numbers. Repeated shots of a leg are
averaged into one leg. Shots without a to station are splays, and lines
with a zero length shot between two stations are equates.
"""

import dataclasses
import datetime
import logging
from enum import IntEnum

from cavesurvey_lib.constants import POCKETTOPO_DATE_FORMAT
from cavesurvey_lib.enums import BearingUnit
from cavesurvey_lib.enums import GradientUnit
from cavesurvey_lib.enums import LengthUnit
from cavesurvey_lib.models import Equate
from cavesurvey_lib.models import Leg
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Station
from cavesurvey_lib.models import Survey
from cavesurvey_lib.parsing import SurveyParser
from cavesurvey_lib.parsing import parse_data_string_into_items
from cavesurvey_lib.units import average_compass_bearings

logger = logging.getLogger(__name__)

HEADER_SEPARATOR = "   ("
SUPPORTED_UNITS = "(m, 360)"


class LineType(IntEnum):
    INVALID = -1
    BLANK = 0
    LEG = 1
    SPLAY = 2
    EQUATE = 3
    COMMENT = 4


class ReadState(IntEnum):
    HEADER = 0
    TRIP_SETTINGS = 1
    DATA = 2


@dataclasses.dataclass(frozen=True)
class Trip:
    """Settings for one survey trip."""

    code: str
    date: datetime.date
    declination: float
    comment: str = ""


@dataclasses.dataclass
class DataLine:
    """The fields of one shot line."""

    from_station: str = ""
    to_station: str = ""
    tape: float = 0.0
    compass: float = 0.0
    clino: float = 0.0
    trip: str = ""
    comment: str = ""
    line_type: LineType = LineType.INVALID

    @property
    def is_null_shot(self) -> bool:
        return self.tape == 0.0 and self.compass == 0.0 and self.clino == 0.0


def item_is_trip(item: str) -> bool:
    return len(item) > 2 and item.startswith("[") and item.endswith("]")


def item_is_zero_value(item: str) -> bool:
    """Check for ``0``, ``00`` or a ``0.0`` value with any number of zeros."""
    if len(item) > 2:
        return item.startswith("0.0") and all(char == "0" for char in item[3:])
    return all(char == "0" for char in item)


def splay_station_suffix(splay_count: int) -> str:
    """Letter suffix for the nth splay from a station (a-z, then aa, ab...)."""
    increment = splay_count - 1
    if splay_count < 27:
        return chr(ord("a") + increment)
    primary = (increment - 26) // 26
    secondary = increment % 26
    return chr(ord("a") + primary) + chr(ord("a") + secondary)


class PocketTopoParser(SurveyParser):
    """Parser for PocketTopo exported text data files.

    Attributes:
        errors: List of parsing errors and warnings encountered
    """

    format_name = "PocketTopo"

    # -------------------------------------------------------------------------
    # Line parsing
    # -------------------------------------------------------------------------

    def _parse_trip(self, line: str, line_no: int) -> Trip:
        items = parse_data_string_into_items(line)
        if len(items) < 3:
            raise self._error(
                "Invalid file header. Trip data does not contain at least 3 items "
                f"in line: {line}",
                line_no,
                line,
            )
        if len(items) > 4:
            raise self._error(
                "Invalid file header. Trip data contain more than 4 items in "
                f"line: {line}",
                line_no,
                line,
            )
        if not items[0].endswith(":"):
            raise self._error(
                f"Invalid file header. Unexpected trip code: {items[0]} in line: "
                f"{line}",
                line_no,
                line,
            )

        try:
            date = datetime.datetime.strptime(items[1], POCKETTOPO_DATE_FORMAT).date()
        except ValueError:
            raise self._error(
                f"Invalid trip date '{items[1]}'.", line_no, line
            ) from None

        return Trip(
            code=items[0][:-1],
            date=date,
            declination=self._parse_float(items[2], line_no, line),
            comment=items[3] if len(items) == 4 else "",
        )

    def _parse_data_line(self, line: str, line_no: int) -> DataLine:
        """Work out what a shot line holds from the number and kind of items.

        Splays have four values before the optional trip and comment, legs
        and equates have five::

            1.1 0.670 344.92 4.15 [1] "Splay with a comment."
            1.1 1.2 2.050 260.84 -56.40 [1]
            1.10 3.0 0.000 0.00 0.00

        A line with only a station and zero readings is blank, or just a
        comment if it has one.
        """
        items = parse_data_string_into_items(line)
        result = DataLine()
        if len(items) <= 4:
            return result

        trip_idx = -1
        comment_idx = -1
        if item_is_trip(items[-1]):
            trip_idx = len(items) - 1
        elif item_is_trip(items[-2]):
            trip_idx = len(items) - 2
            comment_idx = len(items) - 1
        elif len(items) > 5 or not item_is_zero_value(items[-1]):
            comment_idx = len(items) - 1

        result.from_station = items[0]
        if 4 in (trip_idx, comment_idx):
            result.tape = self._parse_float(items[1], line_no, line)
            result.compass = self._parse_float(items[2], line_no, line)
            result.clino = self._parse_float(items[3], line_no, line)
            if not result.is_null_shot:
                result.line_type = LineType.SPLAY
            elif comment_idx > 0:
                result.line_type = LineType.COMMENT
            else:
                result.line_type = LineType.BLANK
        elif 5 in (trip_idx, comment_idx) or trip_idx == comment_idx == -1:
            result.to_station = items[1]
            result.tape = self._parse_float(items[2], line_no, line)
            result.compass = self._parse_float(items[3], line_no, line)
            result.clino = self._parse_float(items[4], line_no, line)
            result.line_type = (
                LineType.EQUATE if result.is_null_shot else LineType.LEG
            )

        if trip_idx > 0:
            result.trip = items[trip_idx]
        if comment_idx > 0:
            result.comment = items[comment_idx]
        return result

    def _split_series_from_station(
        self, name: str, line_no: int, line: str
    ) -> tuple[int, int]:
        series_no, dot, station_no = name.partition(".")
        if not series_no or not dot:
            raise self._error(
                f"Invalid dot separated series and station name : {name}",
                line_no,
                line,
            )
        try:
            return int(series_no), int(station_no)
        except ValueError:
            raise self._error(
                f"Invalid dot separated series and station name : {name}",
                line_no,
                line,
            ) from None

    # -------------------------------------------------------------------------
    # Leg building
    # -------------------------------------------------------------------------

    @staticmethod
    def _average_shots(shots: list[Leg]) -> Leg | None:
        """Combine repeated shots of a leg into one leg."""
        if not shots:
            return None

        master = Leg(
            from_station=shots[0].from_station,
            to_station=shots[0].to_station,
        )
        master.set_length(sum(shot.length for shot in shots) / len(shots))
        master.set_compass(average_compass_bearings([shot.compass for shot in shots]))
        master.set_clino(sum(shot.clino for shot in shots) / len(shots))
        master.comment = "; ".join(shot.comment for shot in shots if shot.comment)
        return master

    @staticmethod
    def _new_series(name: str, trip_code: str, trips: list[Trip]) -> Series:
        series = Series(name=name)
        for trip in trips:
            if trip.code != trip_code:
                continue
            series.declination = trip.declination
            series.survey_date = trip.date
            if trip.comment:
                series.comment = trip.comment
        return series

    @staticmethod
    def _add_splays(series: Series, splays: list[Leg]) -> None:
        """Add splays with letter suffixed to station names.

        The suffixes carry on from the splays already in the series from
        the same station so that every splay station name is unique.
        """
        splay_count = 0
        last_from_name = ""
        for idx, shot in enumerate(splays):
            from_name = shot.from_station.name
            if idx == 0 or from_name != last_from_name:
                splay_count = sum(
                    1
                    for leg in series.legs
                    if leg.splay and leg.from_station.name == from_name
                )
            last_from_name = from_name
            splay_count += 1

            splay = shot.copy_leg()
            splay.to_station = series.create_station(
                from_name + splay_station_suffix(splay_count)
            )
            splay.set_splay(True)
            series.add_leg(splay)

    # -------------------------------------------------------------------------
    # Main entry point
    # -------------------------------------------------------------------------

    def parse_lines(
        self,
        lines: list[str],
        line_refs: list[str] | None = None,
    ) -> Survey:
        """Parse PocketTopo exported survey data.

        Args:
            lines: Lines of the PocketTopo text export
            line_refs: Optional ``path:lineNo`` reference for each line

        Returns:
            Survey with one top level series for the cave, holding a series
            for each PocketTopo series number

        Raises:
            SurveyParseException: If the data is not valid PocketTopo data
        """
        self._line_refs = line_refs or []

        survey = Survey()
        cave: Series | None = None
        trips: list[Trip] = []
        equates: list[Equate] = []
        state = ReadState.HEADER

        leg_shots: list[Leg] = []
        splay_shots: list[Leg] = []
        last_shot_start = ""
        last_to_station: int | None = None
        last_series_no = -1
        last_trip_code = ""
        active_series_no = -1
        series: Series | None = None

        # A final pass with no line flushes the last leg
        for line_no, raw_line in enumerate([*lines, None], start=1):
            if raw_line is not None and not raw_line:
                continue
            line = raw_line.strip() if raw_line is not None else None

            if state == ReadState.HEADER:
                pos = line.find(HEADER_SEPARATOR) if line is not None else -1
                if pos <= 0:
                    raise self._error(
                        "Invalid file header. Expected cave name followed by "
                        "units.",
                        line_no,
                        line or "",
                    )
                units = line[pos + len(HEADER_SEPARATOR) - 1 :]
                if units != SUPPORTED_UNITS:
                    raise self._error(
                        f"Invalid file header. Unsupported units: {units}",
                        line_no,
                        line,
                    )
                cave = Series(name=line[:pos].replace(" ", "_"))
                survey.add(cave)
                logger.info("Cave name: %s", cave.name)
                state = ReadState.TRIP_SETTINGS
                continue

            if state == ReadState.TRIP_SETTINGS:
                if line is not None and line.startswith("["):
                    trip = self._parse_trip(line, line_no)
                    trips.append(trip)
                    logger.info(
                        "Trip settings: %s %s %s",
                        trip.code,
                        trip.date,
                        trip.declination,
                    )
                    continue
                state = ReadState.DATA

            shot: Leg | None = None
            series_no = -1
            trip_code = ""
            if line is not None:
                data = self._parse_data_line(line, line_no)
                if data.line_type <= LineType.BLANK:
                    continue

                series_no, station_no = self._split_series_from_station(
                    data.from_station, line_no, line
                )
                shot = Leg(from_station=Station(id=station_no))
                shot.set_length(data.tape, LengthUnit.METRES)
                shot.set_compass(data.compass, BearingUnit.DEGREES)
                shot.set_clino(data.clino, GradientUnit.DEGREES)
                shot.comment = data.comment
                trip_code = data.trip

                if data.line_type in (LineType.LEG, LineType.EQUATE):
                    to_series_no, to_station_no = self._split_series_from_station(
                        data.to_station, line_no, line
                    )
                    shot.to_station = Station(id=to_station_no)
                    if data.line_type == LineType.EQUATE:
                        equates.append(
                            Equate.from_names(
                                f"{cave.name}.{series_no}",
                                shot.from_station.name,
                                f"{cave.name}.{to_series_no}",
                                shot.to_station.name,
                            )
                        )
                    elif series_no != to_series_no:
                        raise self._error(
                            "Legs linking different series must be zero length.",
                            line_no,
                            line,
                        )

                # Equates and comments carry no shot
                if shot.length <= 0:
                    continue
                from_name = data.from_station
            else:
                from_name = None

            to_id = shot.to_station.id if shot and shot.to_station else None
            new_leg = False
            if not last_shot_start:
                last_shot_start = from_name or ""
            elif from_name != last_shot_start:
                new_leg = True
            elif last_to_station is not None and to_id != last_to_station:
                # Different to station, or a splay after leg shots
                new_leg = True

            if new_leg:
                if active_series_no != last_series_no:
                    series = cave.find_inner_series_by_name(str(last_series_no))
                    if series is None:
                        series = self._new_series(
                            str(last_series_no), last_trip_code, trips
                        )
                        cave.add_series(series)
                    active_series_no = last_series_no

                self._add_splays(series, splay_shots)
                master = self._average_shots(leg_shots)
                if master is not None:
                    series.add_leg(master)

                leg_shots = []
                splay_shots = []
                last_shot_start = from_name or ""

            if shot is not None:
                if shot.to_station is None:
                    splay_shots.append(shot)
                else:
                    leg_shots.append(shot)
                last_series_no = series_no
                last_trip_code = trip_code
                last_to_station = to_id

        return self._finish(survey, equates, allow_missing_series=True)
