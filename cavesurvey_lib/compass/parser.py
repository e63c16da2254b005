# -*- coding: utf-8 -*-
"""Parser for Compass .DAT survey data files.

A Compass file holds one or more surveys of a cave, each made of a header
block followed by a table of shots, and terminated by a form feed line::

    Cave Name
    SURVEY NAME: A
    SURVEY DATE: 7 10 85  COMMENT:Entrance Passage
    SURVEY TEAM:
    Fred Smith, Jo Bloggs
    DECLINATION: 1.00  FORMAT: DDDDLUDRADLN  CORRECTIONS:  0.00 0.00 0.00

    FROM TO LENGTH BEARING INC LEFT UP DOWN RIGHT FLAGS COMMENTS

    A1 A2 12.50 45.00 -5.00 2.00 3.00 1.00 4.00
    \\f

Lengths and passage dimensions are in decimal feet. The cave becomes the
top level series, and each survey becomes an inner series of it. Stations
with the same name in different surveys are equated.
"""

import logging
from datetime import date
from enum import IntEnum

from cavesurvey_lib.constants import COMPASS_MISSING_LRUD_TOKENS
from cavesurvey_lib.constants import COMPASS_MISSING_READING
from cavesurvey_lib.enums import BearingUnit
from cavesurvey_lib.enums import GradientUnit
from cavesurvey_lib.enums import LengthUnit
from cavesurvey_lib.models import Equate
from cavesurvey_lib.models import Leg
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Survey
from cavesurvey_lib.parsing import SurveyParser
from cavesurvey_lib.parsing import clean_and_split_data_line
from cavesurvey_lib.units import average_compass_bearings
from cavesurvey_lib.units import length_to_metres

logger = logging.getLogger(__name__)

FORM_FEED = "\f"

#: Passage dimension columns, in the only order supported
LRUD_COLUMNS = ("left", "up", "down", "right")


class ReadState(IntEnum):
    CAVE_NAME = 0
    SURVEY_HEADER = 1
    CALIBRATION = 2
    COLUMN_HEADER = 3
    DATA = 4


class CompassParser(SurveyParser):
    """Parser for Compass .DAT survey data files.

    Attributes:
        errors: List of parsing errors and warnings encountered
    """

    format_name = "Compass"

    SURVEY_NAME = "SURVEY NAME:"
    SURVEY_DATE = "SURVEY DATE:"
    SURVEY_TEAM = "SURVEY TEAM:"
    DECLINATION = "DECLINATION:"
    FORMAT = "FORMAT:"
    CORRECTIONS = "CORRECTIONS:"
    COMMENT = "COMMENT:"
    FLAGS_PREFIX = "#|"

    # -------------------------------------------------------------------------
    # Header parsing
    # -------------------------------------------------------------------------

    def _parse_date(self, text: str, line_no: int, line: str) -> date:
        """Parse a ``M D YY`` survey date.

        Two digit years follow the usual pivot: 69-99 are 1900s, and 00-68
        are 2000s.
        """
        parts = clean_and_split_data_line(text)
        if len(parts) != 3:
            raise self._error(f"Invalid survey date '{text}'.", line_no, line)
        try:
            month, day, year = (int(part) for part in parts)
        except ValueError:
            raise self._error(
                f"Invalid survey date '{text}'.", line_no, line
            ) from None
        if len(parts[2]) <= 2:
            year += 1900 if year >= 69 else 2000
        try:
            return date(year, month, day)
        except ValueError:
            raise self._error(
                f"Invalid survey date '{text}'.", line_no, line
            ) from None

    def _parse_survey_header(
        self, lines: list[str], idx: int, series: Series
    ) -> int:
        """Parse the date, comment and team lines following a survey name.

        Args:
            lines: All lines being parsed
            idx: Index of the ``SURVEY NAME:`` line
            series: Series for the survey

        Returns:
            Index of the last line consumed by the header
        """
        idx += 1
        line_no = idx + 1
        if idx >= len(lines):
            raise self._error(
                "Did not find expected 'SURVEY DATE:' at start of line. Found: ",
                line_no,
            )
        date_line = lines[idx].strip()
        if not date_line.startswith(self.SURVEY_DATE):
            raise self._error(
                "Did not find expected 'SURVEY DATE:' at start of line. "
                f"Found: {date_line}",
                line_no,
                date_line,
            )

        comment_pos = date_line.find(self.COMMENT)
        if comment_pos == -1:
            date_end = comment_start = len(date_line)
        else:
            date_end = comment_pos
            comment_start = comment_pos + len(self.COMMENT)
        if comment_start <= 18:
            raise self._error(
                "Did not find expected 'COMMENT:' or valid length date string on "
                f"line. Found: {date_line}",
                line_no,
                date_line,
            )

        series.survey_date = self._parse_date(
            date_line[len(self.SURVEY_DATE) : date_end].strip(), line_no, date_line
        )
        series.comment = date_line[comment_start:].strip()

        idx += 1
        line_no = idx + 1
        team_line = lines[idx].strip() if idx < len(lines) else ""
        if not team_line.startswith(self.SURVEY_TEAM):
            raise self._error(
                "Did not find expected 'SURVEY TEAM:' at start of line. "
                f"Found: {team_line}",
                line_no,
                team_line,
            )

        # Team names are on the following line
        return idx + 1

    def _parse_calibration(self, line: str, line_no: int, series: Series) -> None:
        if not line.startswith(self.DECLINATION):
            raise self._error(
                "Did not find expected 'DECLINATION:' line.", line_no, line
            )

        format_pos = line.find(self.FORMAT)
        declination_end = (
            format_pos if format_pos > len(self.DECLINATION) else len(line)
        )
        declination = line[len(self.DECLINATION) : declination_end].strip()
        series.declination = -self._parse_float(declination, line_no, line)

        corrections_pos = line.find(self.CORRECTIONS)
        if corrections_pos > len(self.DECLINATION):
            corrections = clean_and_split_data_line(
                line[corrections_pos + len(self.CORRECTIONS) :].strip()
            )
            if len(corrections) < 3:
                raise self._error(
                    "Expected compass, clino and tape corrections.", line_no, line
                )
            series.set_compass_calibration(
                -self._parse_float(corrections[0], line_no, line),
                BearingUnit.DEGREES,
            )
            series.set_clino_calibration(
                -self._parse_float(corrections[1], line_no, line),
                GradientUnit.DEGREES,
            )
            series.set_tape_calibration(
                -self._parse_float(corrections[2], line_no, line),
                LengthUnit.FEET,
            )

    def _parse_column_header(self, line: str, line_no: int) -> bool:
        """Validate the column headings line.

        Returns:
            True if the data includes backsight columns
        """
        headings = clean_and_split_data_line(line)
        if len(headings) < 11 or headings[:4] != ["FROM", "TO", "LENGTH", "BEARING"]:
            raise self._error("Did not find expected data heading line.", line_no, line)
        if headings[4] not in ("INC", "DIP"):
            raise self._error("Did not find expected data heading line.", line_no, line)
        if headings[5:9] != ["LEFT", "UP", "DOWN", "RIGHT"]:
            raise self._error(
                "LRUD data heading indicates unsupported order. Currently only "
                "LEFT UP DOWN RIGHT field order is supported.",
                line_no,
                line,
            )

        if len(headings) > 12 and headings[9] == "AZM2" and headings[11:13] == [
            "FLAGS",
            "COMMENTS",
        ]:
            return True
        if headings[9:11] == ["FLAGS", "COMMENTS"]:
            return False
        raise self._error("Did not find expected data heading line.", line_no, line)

    # -------------------------------------------------------------------------
    # Shot parsing
    # -------------------------------------------------------------------------

    def _reading(self, item: str, line_no: int, line: str) -> float | None:
        value = self._parse_float(item, line_no, line)
        return None if value == COMPASS_MISSING_READING else value

    def _parse_shot(
        self,
        raw_line: str,
        line_no: int,
        series: Series,
        backsights: bool,
    ) -> Leg | None:
        """Parse a shot line into a leg.

        Returns:
            The leg, or None if the shot is to be ignored
        """
        line = raw_line.strip()
        data = clean_and_split_data_line(line)
        if len(data) < 2:
            raise self._error("Too few fields in survey shot line.", line_no, line)

        leg = Leg(
            from_station=series.create_station(data[0]),
            to_station=series.create_station(data[1]),
        )
        back_bearing: float | None = None
        back_clino: float | None = None

        for index, item in enumerate(data[:11]):
            match index:
                case 2:
                    leg.set_length(
                        self._parse_float(item, line_no, line), LengthUnit.FEET
                    )
                case 3:
                    leg.compass = self._reading(item, line_no, line)
                case 4:
                    leg.clino = self._reading(item, line_no, line)
                case 5 | 6 | 7 | 8:
                    if item in COMPASS_MISSING_LRUD_TOKENS:
                        continue
                    value = length_to_metres(
                        self._parse_float(item, line_no, line), LengthUnit.FEET
                    )
                    setattr(leg, LRUD_COLUMNS[index - 5], value)
                case 9 if backsights:
                    back_bearing = self._reading(item, line_no, line)
                case 10 if backsights:
                    back_clino = self._reading(item, line_no, line)

        # Flags and comment follow the fixed columns
        first_extra = 11 if backsights else 9
        flags_and_comment = ""
        if len(data) > first_extra:
            flags_and_comment = raw_line[raw_line.find(data[first_extra]) :]

        comment = flags_and_comment
        ignore_leg = False
        if flags_and_comment.startswith(self.FLAGS_PREFIX):
            flags_end = flags_and_comment.find("#", len(self.FLAGS_PREFIX))
            if flags_end > 1:
                flags = flags_and_comment[len(self.FLAGS_PREFIX) : flags_end]
                leg.duplicate = "L" in flags
                ignore_leg = "X" in flags
                comment = flags_and_comment[flags_end + 1 :].strip()
        leg.comment = comment

        if leg.length is None or leg.length <= -1:
            return None
        if (
            leg.from_station.name == leg.to_station.name
            and leg.length == 0
            and leg.clino == 0
            and leg.compass == 0
        ):
            return None
        if ignore_leg:
            logger.debug("Ignoring excluded shot %s (Line: %d)", leg, line_no)
            return None

        if backsights:
            self._apply_backsights(leg, back_bearing, back_clino)
        return leg

    @staticmethod
    def _apply_backsights(
        leg: Leg, back_bearing: float | None, back_clino: float | None
    ) -> None:
        """Reconcile the foresight readings of a leg with its backsights."""
        has_back = back_bearing is not None and back_clino is not None

        if (leg.compass is None or leg.clino is None) and has_back:
            # Use backsight readings only
            leg.reverse()
            leg.set_compass(back_bearing)
            leg.set_clino(back_clino)
        elif (
            leg.compass is not None
            and leg.clino is None
            and back_bearing is None
            and back_clino is not None
        ):
            leg.set_clino(-back_clino)
        elif (
            leg.compass is None
            and leg.clino is not None
            and back_bearing is not None
            and back_clino is None
        ):
            reversed_leg = leg.copy_leg()
            reversed_leg.reverse()
            reversed_leg.set_compass(back_bearing)
            reversed_leg.reverse()
            leg.compass = reversed_leg.compass
        elif has_back:
            reversed_leg = leg.copy_leg()
            reversed_leg.reverse()
            reversed_leg.set_compass(back_bearing)
            reversed_leg.set_clino(back_clino)
            reversed_leg.reverse()
            leg.set_compass(
                average_compass_bearings([leg.compass, reversed_leg.compass])
            )
            leg.set_clino((leg.clino + reversed_leg.clino) / 2)

    # -------------------------------------------------------------------------
    # Equates
    # -------------------------------------------------------------------------

    @staticmethod
    def _find_equates(cave: Series) -> list[Equate]:
        """Equate stations with the same name in different surveys."""
        equates: list[Equate] = []
        seen: set[tuple[str, str, str, str]] = set()
        surveys = cave.inner_series
        station_names = [
            [
                station.name
                for leg in series.legs
                for station in (leg.from_station, leg.to_station)
            ]
            for series in surveys
        ]
        station_sets = [set(names) for names in station_names]

        for idx1, series in enumerate(surveys):
            logger.info(
                "Searching for equivalent stations in series %d of %d...",
                idx1 + 1,
                len(surveys),
            )
            series1_name = f"{cave.name}.{series.name}"
            for name in station_names[idx1]:
                for idx2 in range(idx1 + 1, len(surveys)):
                    if name not in station_sets[idx2]:
                        continue
                    series2_name = f"{cave.name}.{surveys[idx2].name}"
                    key = (series1_name, name, series2_name, name)
                    reverse_key = (series2_name, name, series1_name, name)
                    if key in seen or reverse_key in seen:
                        continue
                    seen.add(key)
                    equates.append(
                        Equate.from_names(series1_name, name, series2_name, name)
                    )

        return equates

    # -------------------------------------------------------------------------
    # Main entry point
    # -------------------------------------------------------------------------

    def parse_lines(
        self,
        lines: list[str],
        line_refs: list[str] | None = None,
    ) -> Survey:
        """Parse Compass survey data.

        Args:
            lines: Lines of the Compass file
            line_refs: Optional ``path:lineNo`` reference for each line

        Returns:
            Survey with one top level series for the cave

        Raises:
            SurveyParseException: If the data is not valid Compass data
        """
        self._line_refs = line_refs or []
        if not lines:
            raise self._error("Empty survey data passed to Compass File Parser.", 0)

        survey = Survey()
        cave: Series | None = None
        live_series: Series | None = None
        backsights = False
        state = ReadState.CAVE_NAME

        idx = 0
        while idx < len(lines):
            line_no = idx + 1
            raw_line = lines[idx]
            line = raw_line if raw_line == FORM_FEED else raw_line.strip()
            idx += 1
            if not line:
                continue

            match state:
                case ReadState.CAVE_NAME:
                    cave = Series(name=line.replace(" ", "_"))
                    survey.add(cave)
                    state = ReadState.SURVEY_HEADER

                case ReadState.SURVEY_HEADER:
                    # Repeated cave names and other lines before a survey are ignored
                    if not line.startswith(self.SURVEY_NAME):
                        continue
                    live_series = Series(name=line[len(self.SURVEY_NAME) :].strip())
                    idx = self._parse_survey_header(lines, idx - 1, live_series) + 1
                    state = ReadState.CALIBRATION

                case ReadState.CALIBRATION:
                    self._parse_calibration(line, line_no, live_series)
                    state = ReadState.COLUMN_HEADER

                case ReadState.COLUMN_HEADER:
                    backsights = self._parse_column_header(line, line_no)
                    state = ReadState.DATA

                case ReadState.DATA:
                    if line == FORM_FEED:
                        cave.add_series(live_series)
                        live_series = None
                        state = ReadState.SURVEY_HEADER
                        continue
                    leg = self._parse_shot(raw_line, line_no, live_series, backsights)
                    if leg is not None:
                        live_series.add_leg(leg)

        # Final survey is not always followed by a form feed
        if live_series is not None and state == ReadState.DATA:
            cave.add_series(live_series)

        equates = self._find_equates(cave) if cave is not None else []
        return self._finish(survey, equates)
