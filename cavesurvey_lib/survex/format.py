# -*- coding: utf-8 -*-
"""Formatting (serialization) of surveys as Survex .svx data.

Each series is written as a ``*BEGIN``/``*END`` block, with inner series
nested inside their parent block. Calibration and data order lines are only
written where they differ from the parent series.

Passage dimensions are written as ``*data passage`` blocks. Legs only carry
the LRUD measured at their from station, so the blocks are rebuilt by
chaining the stations of connected legs together:

1. each non splay leg adds its from station to the end (or start) of a block
   it joins on to, or starts a new block;
2. legs closing a loop get the LRUD line of their to station copied in;
3. block lines are refreshed from the leg joining each pair of stations, and
   blocks with a single station or with no LRUD data are dropped;
4. blocks ending at the station another block starts at are merged.
"""

import dataclasses
import logging

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
from cavesurvey_lib.constants import SURVEX_BLANK_LRUD
from cavesurvey_lib.constants import SURVEX_DATE_FORMAT
from cavesurvey_lib.constants import SURVEX_NAME_SUBSTITUTIONS
from cavesurvey_lib.constants import SURVEX_PASSAGE_HEADER
from cavesurvey_lib.enums import SplayFormat
from cavesurvey_lib.models import Leg
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Survey
from cavesurvey_lib.models import data_order_is_diving
from cavesurvey_lib.parsing import split_trip_comment
from cavesurvey_lib.units import format_number
from cavesurvey_lib.units import pad_number

logger = logging.getLogger(__name__)

#: Highest character code written to Survex names unchanged
LAST_ASCII_CODE = 126


@dataclasses.dataclass(frozen=True)
class PassageLine:
    """One station line of a passage data block.

    Attributes:
        station: Name of the station the LRUD was measured at
        lrud: Tab separated left, right, up and down values
        to_station: Name of the to station of the leg the LRUD came from
    """

    station: str
    lrud: str
    to_station: str | None = None


PassageBlock = list[PassageLine]


def survex_name(name: str) -> str:
    """Replace characters which Survex does not allow in names.

    Every character is substituted on its own, so the result is the same for
    the same input. Characters beyond the ASCII range become ``_asc<code>``.

    Args:
        name: Station or series name

    Returns:
        Name which is legal in Survex data
    """
    result = ""
    for char in name:
        if char in SURVEX_NAME_SUBSTITUTIONS:
            result += SURVEX_NAME_SUBSTITUTIONS[char]
        elif ord(char) > LAST_ASCII_CODE:
            result += f"_asc{ord(char)}"
        else:
            result += char
    return result


def data_order_for_leg(series: Series, leg_is_diving: bool) -> list[str]:
    """Data order to write a leg with, picking the secondary order if needed."""
    data_order = series.get_data_order()
    if not data_order:
        return list(DEFAULT_DATA_ORDER)

    data_order2 = series.get_data_order2()
    if data_order2 and data_order_is_diving(data_order) != leg_is_diving:
        return data_order2
    return data_order


def data_order_line(series: Series, leg_is_diving: bool) -> str:
    """Survex ``*data`` command for the data order used by a type of leg."""
    data_order = data_order_for_leg(series, leg_is_diving)
    style = "diving" if data_order_is_diving(data_order) else "normal"
    items = " ".join(item.lower() for item in data_order)
    return f"*data {style} {items}"


def has_lrud(leg: Leg) -> bool:
    return leg.left + leg.right + leg.up + leg.down > 0.0


def lrud_line(leg: Leg) -> PassageLine:
    """Passage data line for the LRUD measured at the from station of a leg."""
    lrud = "\t".join(pad_number(value, 2, 5) for value in leg.get_lrud())
    return PassageLine(
        station=leg.from_station.name,
        lrud=lrud,
        to_station=leg.to_station.name if leg.to_station is not None else None,
    )


@dataclasses.dataclass
class FlagState:
    """Survex flags currently switched on while writing the legs of a series."""

    duplicate: bool = False
    surface: bool = False
    splay: bool = False
    nosurvey: bool = False


class SurvexWriter:
    """Generates Survex format data from a survey."""

    def generate(
        self,
        survey: Survey,
        splay_format: SplayFormat = SplayFormat.FLAGGED,
    ) -> list[str]:
        """Generate Survex format data for a survey.

        Args:
            survey: Survey to write
            splay_format: How splay legs are written

        Returns:
            Text lines of Survex data
        """
        logger.info("Generating Survex format data...")

        # Top level series are compared against neutral calibration settings
        parent = Series(name="parent")

        lines: list[str] = []
        for series in survey:
            lines.extend(self._generate_series(series, parent, splay_format))
        return lines

    # -------------------------------------------------------------------------
    # Series blocks
    # -------------------------------------------------------------------------

    def _generate_series(
        self,
        series: Series,
        parent: Series,
        splay_format: SplayFormat,
    ) -> list[str]:
        block_name = survex_name(series.name)
        lines = [f"*BEGIN {block_name}"]

        if series.comment:
            lines.extend(f";{line}" for line in split_trip_comment(series.comment))
            lines.append("")

        if series.survey_date is not None:
            lines.append(f"*DATE {series.survey_date.strftime(SURVEX_DATE_FORMAT)}")

        lines.extend(self._calibration_lines(series, parent))
        lines.append("")

        if splay_format == SplayFormat.ANONYMOUS:
            lines.append("*alias station - ..")
            lines.append("")

        for link in series.links:
            prefix1 = f"{survex_name(link.series1)}." if link.series1 else ""
            prefix2 = f"{survex_name(link.series2)}." if link.series2 else ""
            lines.append(
                f"*EQUATE {prefix1}{survex_name(link.station1.name)} "
                f"{prefix2}{survex_name(link.station2.name)}"
            )
        lines.append("")

        skip_data_order = (
            series.has_data_order
            and parent.has_data_order
            and series.data_order == parent.data_order
            and not series.data_order2
            and not parent.data_order2
        )

        # Series with legs write the data order as part of the legs. Without
        # legs it is written here so that it applies to the inner series.
        if not skip_data_order and series.leg_count == 0 and series.has_data_order:
            lines.append(data_order_line(series, False))

        passage: list[PassageBlock] = []
        leg_lines, fix_lines, splay_flag_on = self._leg_lines(
            series, splay_format, passage, skip_data_order=skip_data_order
        )

        self._add_loop_closure_lines(series, passage)
        self._reprocess_passage_blocks(series, passage)
        self._combine_passage_blocks(passage)

        lines.extend(fix_lines)
        lines.extend(leg_lines)

        if splay_flag_on:
            lines.append("*FLAGS NOT SPLAY")

        if passage:
            lines.append("")
            for block in passage:
                lines.append(SURVEX_PASSAGE_HEADER)
                lines.extend(
                    f"{survex_name(line.station)}\t{line.lrud}" for line in block
                )

        for inner in series.inner_series:
            lines.extend(self._generate_series(inner, series, splay_format))

        lines.append(f"*END {block_name}")
        lines.append("")
        return lines

    @staticmethod
    def _calibration_lines(series: Series, parent: Series) -> list[str]:
        lines = []
        if series.declination != parent.declination:
            lines.append(
                f"*CALIBRATE declination {format_number(series.declination)}"
            )
        if series.get_tape_calibration() != parent.get_tape_calibration():
            lines.append(
                f"*CALIBRATE tape {pad_number(series.get_tape_calibration(), 2, 0)}"
            )
        if series.get_compass_calibration() != parent.get_compass_calibration():
            lines.append(
                "*CALIBRATE compass "
                f"{format_number(series.get_compass_calibration())}"
            )
        if series.get_clino_calibration() != parent.get_clino_calibration():
            lines.append(
                f"*CALIBRATE clino {format_number(series.get_clino_calibration())}"
            )
        return lines

    # -------------------------------------------------------------------------
    # Legs
    # -------------------------------------------------------------------------

    def _leg_lines(
        self,
        series: Series,
        splay_format: SplayFormat,
        passage: list[PassageBlock],
        *,
        skip_data_order: bool,
    ) -> tuple[list[str], list[str], bool]:
        """Write the legs of a series and gather its passage data.

        LRUD records for stations which only end legs are processed after the
        real legs, as legs with no to station.

        Returns:
            Leg lines, ``*FIX`` lines and whether the splay flag was left on
        """
        lines: list[str] = []
        fixes: list[str] = []
        flags = FlagState()
        splay_sequence = 0
        written_legs = 0
        last_leg_was_diving = False

        legs = list(series.legs)
        legs.extend(
            Leg(
                from_station=lrud.from_station,
                left=lrud.left,
                right=lrud.right,
                up=lrud.up,
                down=lrud.down,
            )
            for lrud in series.to_station_lruds
        )

        for index, leg in enumerate(legs):
            if index < series.leg_count and not series.has_data_order:
                if not leg.diving:
                    skip_data_order = True

            from_name = leg.from_station.name

            if leg.splay or leg.to_station is not None:
                if leg.to_station is None:
                    to_name = f"{from_name}-{splay_sequence}"
                    splay_sequence += 1
                else:
                    to_name = leg.to_station.name

                if leg.nosurvey or (leg.length or 0.0) > 0:
                    lines.extend(
                        self._flag_lines(series, leg, flags, splay_format)
                    )
                    if not (splay_format == SplayFormat.NONE and leg.splay):
                        first_leg = written_legs == 0
                        changed_type = (
                            bool(series.data_order2)
                            and last_leg_was_diving != leg.diving
                        )
                        if not leg.nosurvey and (
                            (first_leg and not skip_data_order)
                            or (not first_leg and changed_type)
                        ):
                            lines.append(data_order_line(series, leg.diving))
                        last_leg_was_diving = leg.diving
                        lines.append(
                            self._leg_line(
                                series,
                                leg,
                                survex_name(from_name),
                                survex_name(to_name),
                                splay_format,
                                nosurvey=flags.nosurvey,
                            )
                        )
                        written_legs += 1
                elif not leg.splay:
                    lines.append(
                        f"*EQUATE {survex_name(from_name)}\t{survex_name(to_name)}"
                    )

                for station in (leg.from_station, leg.to_station):
                    if station is None or not station.is_fixed:
                        continue
                    fix = (
                        f"*FIX {survex_name(station.name)}"
                        f"\t{format_number(station.easting)}"
                        f"\t{format_number(station.northing)}"
                        f"\t{format_number(station.altitude)}"
                    )
                    if fix not in fixes:
                        fixes.append(fix)

            if not leg.splay and not leg.surface:
                self._add_to_passage_blocks(series, leg, passage)

        return lines, fixes, flags.splay

    @staticmethod
    def _flag_lines(
        series: Series,
        leg: Leg,
        flags: FlagState,
        splay_format: SplayFormat,
    ) -> list[str]:
        """Data type and ``*FLAGS`` lines needed before a leg is written."""
        lines = []
        if leg.nosurvey and not flags.nosurvey:
            lines.append("*data nosurvey from to")
            flags.nosurvey = True
        elif not leg.nosurvey and flags.nosurvey:
            lines.append(data_order_line(series, leg.diving))
            flags.nosurvey = False

        setting = ""
        if leg.duplicate != flags.duplicate:
            setting += " DUPLICATE" if leg.duplicate else " NOT DUPLICATE"
            flags.duplicate = leg.duplicate
        if leg.surface != flags.surface:
            setting += " SURFACE" if leg.surface else " NOT SURFACE"
            flags.surface = leg.surface
        if splay_format == SplayFormat.FLAGGED and leg.splay != flags.splay:
            setting += " SPLAY" if leg.splay else " NOT SPLAY"
            flags.splay = leg.splay

        if setting:
            lines.append(f"*FLAGS{setting}")
        return lines

    @staticmethod
    def _leg_line(
        series: Series,
        leg: Leg,
        from_value: str,
        to_value: str,
        splay_format: SplayFormat,
        *,
        nosurvey: bool,
    ) -> str:
        """Tab separated leg line with the readings in the series data order."""
        data_order = data_order_for_leg(series, leg.diving)

        readings = {
            DATA_ORDER_LENGTH: (leg.get_length(), 5),
            DATA_ORDER_BEARING: (leg.get_compass(), 6),
            DATA_ORDER_GRADIENT: (leg.get_clino(), 6),
            DATA_ORDER_FROMDEPTH: (leg.get_from_depth(), 5),
            DATA_ORDER_TODEPTH: (leg.get_to_depth(), 5),
            DATA_ORDER_DEPTHCHANGE: (leg.get_depth_change(), 5),
        }

        line = ""
        for item in data_order:
            if item == DATA_ORDER_FROM:
                line += f"{from_value}\t"
            elif item == DATA_ORDER_TO:
                if splay_format == SplayFormat.ANONYMOUS and leg.splay:
                    line += "-\t"
                else:
                    line += f"{to_value}\t"
            elif not nosurvey and item in readings:
                value, width = readings[item]
                line += f"{pad_number(value, 2, width)}\t"

        if not leg.comment:
            return line.strip()
        if data_order[-1] != DATA_ORDER_IGNOREALL:
            line += ";"
        return line + leg.comment

    # -------------------------------------------------------------------------
    # Passage data blocks
    # -------------------------------------------------------------------------

    @staticmethod
    def _find_passage_block(
        series: Series,
        leg: Leg,
        passage: list[PassageBlock],
    ) -> tuple[int | None, bool]:
        """Find the block a leg joins on to.

        Returns:
            Index of the block (None for a new block) and whether the line
            goes at the front of the block
        """
        from_name = leg.from_station.name
        for idx, block in enumerate(passage):
            if leg.to_station is not None:
                to_name = leg.to_station.name
                if len(block) == 1 and block[0].station == to_name:
                    # Only station in the block, so the direction of the leg
                    # which started the block decides which end this goes on
                    return idx, block[0].to_station != from_name
                if block[-1].station == to_name:
                    return idx, False
                if block[0].station == to_name:
                    return idx, True

            # Look for a preceding leg ending at the from station of this leg
            for check in series.legs:
                if (
                    check.to_station is not None
                    and check.to_station.name == from_name
                    and block[-1].station == check.from_station.name
                ):
                    return idx, False

        return None, False

    def _add_to_passage_blocks(
        self,
        series: Series,
        leg: Leg,
        passage: list[PassageBlock],
    ) -> None:
        idx, at_front = self._find_passage_block(series, leg, passage)
        line = lrud_line(leg)
        if idx is None:
            passage.append([line])
        elif at_front:
            passage[idx].insert(0, line)
        else:
            passage[idx].append(line)

    @staticmethod
    def _add_loop_closure_lines(
        series: Series,
        passage: list[PassageBlock],
    ) -> None:
        """Add the to station of legs closing a loop to the passage data.

        A leg closing a loop ends at a station already written in another
        block, so its to station is missing from the block holding its from
        station. The line for the to station is copied from the other block.
        """
        for leg in series.legs:
            if leg.splay or leg.to_station is None or not has_lrud(leg):
                continue

            from_name = leg.from_station.name
            to_name = leg.to_station.name

            # Only legs whose to station has LRUD measured at it
            if not any(other.from_station.name == to_name for other in series.legs):
                continue

            if any(
                {line1.station, line2.station} == {from_name, to_name}
                for block in passage
                for line1, line2 in zip(block, block[1:])
            ):
                continue

            for block in passage:
                if block[-1].station == from_name:
                    at_front = False
                elif block[0].station == from_name:
                    at_front = True
                else:
                    continue

                line = next(
                    (
                        line
                        for source in passage
                        for line in source
                        if line.station == to_name
                    ),
                    None,
                )
                if line is not None:
                    if at_front:
                        block.insert(0, line)
                    else:
                        block.append(line)
                break

    @staticmethod
    def _reprocess_passage_blocks(
        series: Series,
        passage: list[PassageBlock],
    ) -> None:
        """Refresh block lines from matching legs and drop obsolete blocks.

        At junctions the LRUD first put in a block can come from a leg going
        to a different station than the next one in the block. Where a leg
        joins a line's station to the next station in the block, its LRUD
        replaces the line.
        """
        kept: list[PassageBlock] = []
        for block in passage:
            if len(block) < 2:
                continue

            no_lrud_data = True
            for idx in range(len(block) - 1):
                line1 = block[idx]
                line2 = block[idx + 1]

                for leg in series.legs:
                    if (
                        not leg.splay
                        and leg.to_station is not None
                        and has_lrud(leg)
                        and leg.from_station.name == line1.station
                        and leg.to_station.name == line2.station
                    ):
                        new_line = lrud_line(leg)
                        if new_line.lrud != line1.lrud:
                            block[idx] = new_line
                        break

                if SURVEX_BLANK_LRUD != line1.lrud or SURVEX_BLANK_LRUD != line2.lrud:
                    no_lrud_data = False

            if not no_lrud_data:
                kept.append(block)

        passage[:] = kept

    @staticmethod
    def _combine_passage_blocks(passage: list[PassageBlock]) -> None:
        """Merge blocks which start at the station another block ends at."""
        index = 0
        while index < len(passage):
            block = passage[index]
            merged = True
            while merged:
                merged = False
                for other_idx, other in enumerate(passage):
                    if other is block or other[0].station != block[-1].station:
                        continue
                    if other[0].lrud != block[-1].lrud:
                        logger.info(
                            "Unable to merge passage data blocks due to LRUD "
                            "data mismatch: Block ending %s=%s, "
                            "Block starting %s=%s",
                            block[-1].station,
                            block[-1].lrud,
                            other[0].station,
                            other[0].lrud,
                        )
                        continue
                    block.extend(other[1:])
                    del passage[other_idx]
                    if other_idx < index:
                        index -= 1
                    merged = True
                    break
            index += 1
