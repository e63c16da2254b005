# -*- coding: utf-8 -*-
"""Parser for Survex .svx survey data files.

Series are built from named ``*begin``/``*end`` blocks. Supported commands
are ``*begin``, ``*end``, ``*equate``, ``*data``, ``*calibrate``, ``*date``,
``*units`` and ``*flags``. Anything else is logged and skipped.

``*include`` statements are resolved while the file is read (see
``cavesurvey_lib.io.read_text_file``), so the parser only ever sees one
list of lines.
"""

import dataclasses
import datetime
import logging
from enum import IntEnum

from cavesurvey_lib.constants import DATA_ORDER_BEARING
from cavesurvey_lib.constants import DATA_ORDER_DEPTHCHANGE
from cavesurvey_lib.constants import DATA_ORDER_FROM
from cavesurvey_lib.constants import DATA_ORDER_FROMDEPTH
from cavesurvey_lib.constants import DATA_ORDER_GRADIENT
from cavesurvey_lib.constants import DATA_ORDER_IGNOREALL
from cavesurvey_lib.constants import DATA_ORDER_LENGTH
from cavesurvey_lib.constants import DATA_ORDER_TO
from cavesurvey_lib.constants import DATA_ORDER_TODEPTH
from cavesurvey_lib.constants import DEFAULT_DATA_ORDER
from cavesurvey_lib.constants import SURVEX_DATE_FORMAT
from cavesurvey_lib.enums import BearingUnit
from cavesurvey_lib.enums import GradientUnit
from cavesurvey_lib.enums import LengthUnit
from cavesurvey_lib.models import Equate
from cavesurvey_lib.models import Leg
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Station
from cavesurvey_lib.models import Survey
from cavesurvey_lib.models import data_order_is_diving
from cavesurvey_lib.parsing import SurveyParser
from cavesurvey_lib.parsing import clean_and_split_data_line

logger = logging.getLogger(__name__)

COMMENT_CHAR = ";"
COMMAND_CHAR = "*"
ANONYMOUS_STATION = "-"

#: Clino readings given as words or symbols, in degrees
SPECIAL_CLINO_READINGS: dict[str, float] = {
    "-v": -90.0,
    "down": -90.0,
    "d": -90.0,
    "+v": 90.0,
    "up": 90.0,
    "u": 90.0,
    "-": 0.0,
    "level": 0.0,
}

NORMAL_DATA_ITEMS = (
    DATA_ORDER_FROM,
    DATA_ORDER_TO,
    DATA_ORDER_LENGTH,
    DATA_ORDER_BEARING,
    DATA_ORDER_GRADIENT,
    DATA_ORDER_IGNOREALL,
)

DIVING_DATA_ITEMS = (
    DATA_ORDER_FROM,
    DATA_ORDER_TO,
    DATA_ORDER_LENGTH,
    DATA_ORDER_BEARING,
    DATA_ORDER_FROMDEPTH,
    DATA_ORDER_TODEPTH,
    DATA_ORDER_DEPTHCHANGE,
    DATA_ORDER_IGNOREALL,
)

NOSURVEY_DATA_ITEMS = (
    DATA_ORDER_FROM,
    DATA_ORDER_TO,
)

#: Alternative names for data order items
DATA_ITEM_ALIASES: dict[str, str] = {
    "TAPE": DATA_ORDER_LENGTH,
    "COMPASS": DATA_ORDER_BEARING,
    "CLINO": DATA_ORDER_GRADIENT,
}

#: Every keyword which can follow the quantities in a ``*units`` command
UNIT_KEYWORDS = frozenset(
    {
        "metres",
        "meters",
        "metric",
        "yards",
        "feet",
        "degs",
        "degrees",
        "grads",
        "mils",
        "minutes",
        "percent",
        "percentage",
    }
)


class ReadState(IntEnum):
    OUTSIDE_BLOCK = 0
    IN_BLOCK = 1
    PASSAGE = 2


@dataclasses.dataclass(frozen=True)
class BlockContext:
    """Leg flags in force inside a ``*begin``/``*end`` block.

    Each block starts with a copy of the flags of the block containing it.
    The flags in force go back to those of the containing block when the
    block ends.
    """

    duplicate: bool = False
    splay: bool = False
    surface: bool = False
    nosurvey: bool = False


class SurvexParser(SurveyParser):
    """Parser for Survex .svx survey data files.

    Attributes:
        errors: List of parsing errors and warnings encountered
    """

    format_name = "Survex"
    multi_file = True

    def __init__(self) -> None:
        super().__init__()
        self._reset()

    def _reset(self) -> None:
        self._survey = Survey()
        self._series_stack: list[Series] = []
        self._name_stack: list[str] = []
        self._context_stack: list[BlockContext] = [BlockContext()]
        self._equates: list[Equate] = []
        self._live_series: Series | None = None
        self._data_order: list[str] = []
        self._state = ReadState.OUTSIDE_BLOCK

    @property
    def _context(self) -> BlockContext:
        return self._context_stack[-1]

    def _update_context(self, **changes: bool) -> None:
        self._context_stack[-1] = dataclasses.replace(self._context, **changes)

    def _require_series(self, command: str, line_no: int, line: str) -> Series:
        if self._live_series is None:
            raise self._error(
                f"{command} command found outside of any begin/end block.",
                line_no,
                line,
            )
        return self._live_series

    # -------------------------------------------------------------------------
    # Block commands
    # -------------------------------------------------------------------------

    def _begin(self, data: list[str], line_no: int, line: str) -> None:
        if len(data) > 2:
            raise self._error(
                "BEGIN/END blocks names containing spaces are not supported.",
                line_no,
                line,
            )

        self._state = ReadState.IN_BLOCK
        self._context_stack.append(dataclasses.replace(self._context))
        if len(data) < 2:
            # Anonymous block, only the flags are scoped to it
            return

        series = Series(name=data[1])
        if self._series_stack:
            parent = self._series_stack[-1]
            series.set_calibration_from(parent)
            self._data_order = parent.get_data_order()
        series.set_data_order(self._data_order)

        self._name_stack.append(data[1])
        self._series_stack.append(series)
        self._live_series = series

    def _end(self, data: list[str], line_no: int, line: str) -> None:
        if len(data) == 1:
            if len(self._context_stack) > 1:
                self._context_stack.pop()
            return

        end_name = data[1]
        if not self._name_stack:
            raise self._error(
                f"END of block '{end_name}' found without a matching BEGIN.",
                line_no,
                line,
            )
        begin_name = self._name_stack[-1]
        if begin_name.lower() != end_name.lower():
            raise self._error(
                "Names of begin end blocks do not match. "
                f"Begin={begin_name} End={end_name}.",
                line_no,
                line,
            )

        ended_series = self._series_stack.pop()
        self._name_stack.pop()
        if len(self._context_stack) > 1:
            self._context_stack.pop()

        if self._series_stack:
            self._live_series = self._series_stack[-1]
            self._live_series.add_series(ended_series)
            self._state = ReadState.IN_BLOCK
        else:
            self._survey.add(ended_series)
            self._live_series = None
            self._state = ReadState.OUTSIDE_BLOCK

    def _equate(self, data: list[str], line_no: int, line: str) -> None:
        if len(data) < 3:
            raise self._error(
                "EQUATE command did not contain two stations.", line_no, line
            )
        if not self._name_stack:
            raise self._error(
                "EQUATE command found outside of any begin/end block.",
                line_no,
                line,
            )
        prefix = ".".join(self._name_stack)
        self._equates.append(Equate.from_names(prefix, data[1], prefix, data[2]))

    # -------------------------------------------------------------------------
    # Data order commands
    # -------------------------------------------------------------------------

    def _parse_data_order(
        self,
        items: list[str],
        style: str,
        allowed: tuple[str, ...],
        aliases: dict[str, str],
        line_no: int,
        line: str,
    ) -> list[str]:
        """Validate the items of a ``*data`` command against a data style.

        Each item may appear only once. The two ways of giving depths in
        diving data (from and to depths, or a depth change) cannot be mixed,
        and a to depth must follow the from depth.
        """
        remaining = list(allowed)
        data_order: list[str] = []

        for raw_item in items:
            item = raw_item.upper()
            item = aliases.get(item, item)
            if item not in remaining:
                raise self._error(
                    f"Unsupported survex {style} data order. Term '{item}' is not "
                    "supported.",
                    line_no,
                    line,
                )
            data_order.append(item)
            remaining.remove(item)

            if item == DATA_ORDER_DEPTHCHANGE:
                for alternative in (DATA_ORDER_FROMDEPTH, DATA_ORDER_TODEPTH):
                    if alternative in remaining:
                        remaining.remove(alternative)
            elif item == DATA_ORDER_FROMDEPTH:
                if DATA_ORDER_DEPTHCHANGE in remaining:
                    remaining.remove(DATA_ORDER_DEPTHCHANGE)
                if DATA_ORDER_TODEPTH not in remaining:
                    raise self._error(
                        "Unsupported survex diving data order. todepth before "
                        "fromdepth is not supported.",
                        line_no,
                        line,
                    )

        return data_order

    def _data(self, data: list[str], line_no: int, line: str) -> None:
        self._update_context(nosurvey=False)
        if len(data) < 2:
            raise self._error(
                "DATA command did not contain a data style.", line_no, line
            )

        style = data[1].lower()
        if style == "passage":
            self._state = ReadState.PASSAGE
            return

        if style == "normal":
            allowed, aliases = NORMAL_DATA_ITEMS, DATA_ITEM_ALIASES
        elif style == "diving":
            allowed = DIVING_DATA_ITEMS
            aliases = {
                key: value
                for key, value in DATA_ITEM_ALIASES.items()
                if value != DATA_ORDER_GRADIENT
            }
        elif style == "nosurvey":
            allowed, aliases = NOSURVEY_DATA_ITEMS, {}
        else:
            raise self._error(
                f"Unsupported survex data command: {data[1]}", line_no, line
            )

        self._state = ReadState.IN_BLOCK
        logger.info(
            "Found %s data header at line %d. Checking format.", style, line_no
        )
        self._data_order = self._parse_data_order(
            data[2:], style, allowed, aliases, line_no, line
        )

        if style == "nosurvey":
            self._update_context(nosurvey=True)
            return

        if self._live_series is None:
            return

        # A series holds at most one normal and one diving data order
        current = self._live_series.get_data_order()
        current_is_diving = data_order_is_diving(current)
        if current and current_is_diving != (style == "diving"):
            self._live_series.set_data_order2(self._data_order)
        else:
            self._live_series.set_data_order(self._data_order)

    # -------------------------------------------------------------------------
    # Series settings commands
    # -------------------------------------------------------------------------

    def _calibrate(self, data: list[str], line_no: int, line: str) -> None:
        series = self._require_series("CALIBRATE", line_no, line)
        if len(data) != 3:
            raise self._error(
                "CALIBRATE command did not contain a single instrument type plus "
                "value.",
                line_no,
                line,
            )

        instrument = data[1].lower()
        value = self._parse_float(data[2], line_no, line)
        match instrument:
            case "tape":
                series.set_tape_calibration(value, series.length_unit)
            case "declination":
                series.declination = value
            case "compass":
                series.set_compass_calibration(value, series.bearing_unit)
            case "clino":
                series.set_clino_calibration(value, series.gradient_unit)
            case _:
                logger.info("Unsupported calibration '%s' ignored.", data[1])

    def _date(self, data: list[str], line_no: int, line: str) -> None:
        series = self._require_series("DATE", line_no, line)
        if len(data) < 2:
            logger.info(
                "DATE command without further data skipped for line: %s", line
            )
            return

        # Date ranges are given as start-end, only the start is kept
        text = data[1].split("-", 1)[0]
        for date_format in (SURVEX_DATE_FORMAT, "%Y.%m", "%Y"):
            try:
                series.survey_date = datetime.datetime.strptime(
                    text, date_format
                ).date()
                return
            except ValueError:
                continue
        raise self._error(f"Invalid survey date '{data[1]}'.", line_no, line)

    def _units(self, data: list[str], line_no: int, line: str) -> None:
        series = self._require_series("UNITS", line_no, line)
        if len(data) <= 2:
            return

        unit_idx = next(
            (
                idx
                for idx in range(2, len(data))
                if data[idx].lower() in UNIT_KEYWORDS
            ),
            0,
        )
        if unit_idx == 0:
            raise self._error(
                "UNITS command did not contain a category of measurement plus "
                "value.",
                line_no,
                line,
            )

        unit = data[unit_idx]
        for quantity in (item.lower() for item in data[1:unit_idx]):
            if quantity in ("tape", "length"):
                length_unit = LengthUnit.from_survex(unit)
                if length_unit is None:
                    raise self._error(
                        f"Unsupported length unit '{unit}'.", line_no, line
                    )
                series.length_unit = length_unit
            elif quantity == "depth":
                depth_unit = LengthUnit.from_survex(unit)
                if depth_unit is None:
                    raise self._error(
                        f"Unsupported depth unit '{unit}'.", line_no, line
                    )
                series.depth_unit = depth_unit
            elif quantity in ("compass", "bearing"):
                bearing_unit = BearingUnit.from_survex(unit)
                if bearing_unit is None:
                    raise self._error(
                        f"Unsupported bearing unit '{unit}'.", line_no, line
                    )
                series.bearing_unit = bearing_unit
            elif quantity in ("clino", "gradient"):
                gradient_unit = GradientUnit.from_survex(unit)
                if gradient_unit is None:
                    raise self._error(
                        f"Unsupported gradient unit '{unit}'.", line_no, line
                    )
                series.gradient_unit = gradient_unit
            else:
                raise self._error(
                    f"Unsupported unit type '{quantity.upper()}'.", line_no, line
                )

    def _flags(self, data: list[str]) -> None:
        negate = False
        for item in (flag.lower() for flag in data[1:]):
            if item == "not":
                negate = True
                continue
            if item in ("duplicate", "splay", "surface"):
                self._update_context(**{item: not negate})
            negate = False

    # -------------------------------------------------------------------------
    # Data lines
    # -------------------------------------------------------------------------

    def _parse_clino(
        self, item: str, series: Series, line_no: int, line: str
    ) -> tuple[float, GradientUnit]:
        special = SPECIAL_CLINO_READINGS.get(item.lower())
        if special is not None:
            return special, GradientUnit.DEGREES
        return self._parse_float(item, line_no, line), series.gradient_unit

    def _check_data_order(self, data: list[str], line_no: int, line: str) -> None:
        if not self._data_order:
            self._data_order = list(DEFAULT_DATA_ORDER)
        elif not self._context.nosurvey and len(self._data_order) < 5:
            raise self._error(
                "Last data order command did not contain enough items for a "
                "survey leg.",
                line_no,
                line,
            )

        if (
            len(data) > len(self._data_order)
            and self._data_order[-1] != DATA_ORDER_IGNOREALL
        ):
            raise self._error(
                "Last data order command did not contain enough items for data "
                "line.",
                line_no,
                line,
            )

    def _parse_leg(self, line: str, line_no: int, series: Series) -> None:
        """Parse a data line into a leg using the data order in force."""
        data = clean_and_split_data_line(line)
        self._check_data_order(data, line_no, line)
        context = self._context

        values: dict[str, str] = {}
        stations: dict[str, Station] = {}
        for role, item in zip(self._data_order, data):
            values[role] = item
            # Station ids are allocated in the order the names appear
            if role in (DATA_ORDER_FROM, DATA_ORDER_TO):
                stations[role] = series.create_station(item)

        if DATA_ORDER_FROM not in stations:
            raise self._error("Survey leg has no from station.", line_no, line)

        leg = Leg(
            from_station=stations[DATA_ORDER_FROM],
            to_station=stations.get(DATA_ORDER_TO),
        )
        if context.nosurvey:
            leg.set_nosurvey(True)

        if DATA_ORDER_LENGTH in values:
            length = self._parse_float(values[DATA_ORDER_LENGTH], line_no, line)
            if length < 0:
                self._add_warning(
                    f"Negative leg length ({values[DATA_ORDER_LENGTH]}) read from "
                    "Survex file.",
                    line_no,
                    line,
                )
            leg.set_length(length, series.length_unit)

        if DATA_ORDER_BEARING in values:
            bearing = values[DATA_ORDER_BEARING]
            if bearing == "-":
                leg.set_compass(0.0, BearingUnit.DEGREES)
            else:
                leg.set_compass(
                    self._parse_float(bearing, line_no, line), series.bearing_unit
                )

        if DATA_ORDER_GRADIENT in values:
            leg.set_clino(
                *self._parse_clino(values[DATA_ORDER_GRADIENT], series, line_no, line)
            )

        if DATA_ORDER_TODEPTH in values:
            from_depth = 0.0
            if DATA_ORDER_FROMDEPTH in values:
                from_depth = self._parse_float(
                    values[DATA_ORDER_FROMDEPTH], line_no, line
                )
            leg.set_depths(
                from_depth,
                self._parse_float(values[DATA_ORDER_TODEPTH], line_no, line),
                series.depth_unit,
            )
        elif DATA_ORDER_DEPTHCHANGE in values:
            leg.set_depth_change(
                self._parse_float(values[DATA_ORDER_DEPTHCHANGE], line_no, line),
                series.depth_unit,
            )

        if not context.nosurvey and (leg.length is None or leg.length <= -1):
            return

        leg.duplicate = context.duplicate
        if leg.to_station is not None and leg.to_station.name == ANONYMOUS_STATION:
            # Legs to anonymous stations are always splays
            leg.set_splay(True)
        elif context.splay:
            leg.set_splay(True)
        leg.surface = context.surface
        series.add_leg(leg)

    # -------------------------------------------------------------------------
    # Main entry point
    # -------------------------------------------------------------------------

    def _command(self, line: str, line_no: int) -> None:
        data = clean_and_split_data_line(line[1:])
        match data[0].lower():
            case "begin":
                self._begin(data, line_no, line)
            case "end":
                self._end(data, line_no, line)
            case "equate":
                self._equate(data, line_no, line)
            case "data":
                self._data(data, line_no, line)
            case "calibrate":
                self._calibrate(data, line_no, line)
            case "date":
                self._date(data, line_no, line)
            case "units":
                self._units(data, line_no, line)
            case "flags":
                self._flags(data)
            case _:
                logger.warning("Unsupported Survex command ignored: %s", data[0])

    def parse_lines(
        self,
        lines: list[str],
        line_refs: list[str] | None = None,
    ) -> Survey:
        """Parse Survex survey data.

        Args:
            lines: Lines of the Survex file, with any includes expanded
            line_refs: Optional ``path:lineNo`` reference for each line

        Returns:
            Survey with a top level series for each top level block

        Raises:
            SurveyParseException: If the data is not valid or not supported
        """
        self._line_refs = line_refs or []
        self._reset()

        for line_no, raw_line in enumerate(lines, start=1):
            line = raw_line.split(COMMENT_CHAR, 1)[0].strip()
            if not line:
                continue

            if line.startswith(COMMAND_CHAR):
                self._command(line, line_no)
                continue

            if self._live_series is None:
                raise self._error(
                    "Data line found outside of any begin/end block.",
                    line_no,
                    line,
                )

            # Passage data is regenerated from the legs on output
            if self._state == ReadState.IN_BLOCK:
                self._parse_leg(line, line_no, self._live_series)

        return self._finish(self._survey, self._equates)
