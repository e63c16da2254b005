# -*- coding: utf-8 -*-
"""Parser for survey centrelines drawn in AutoCAD DXF files.

Centrelines are read from the ``ENTITIES`` section of an ASCII DXF file.
Each ``POLYLINE`` (a run of ``VERTEX`` entities ended by ``SEQEND``) gives
one chain of points. Separate ``LINE`` entities are joined end to end into
chains. ``TEXT`` entities on the ``Labels`` layer which sit on a ``POINT``
on the ``Stations`` layer name the station at that position.

Every chain becomes a series of legs worked out from the point positions.
When the chains carry station labels (as in a DXF exported from a 3D
survey viewer) the legs are regrouped into one series per label prefix.
Otherwise each chain is a series, and chains are linked where they share
a point.
"""

import logging
import math
from enum import IntEnum

import numpy as np

from cavesurvey_lib.constants import DXF_MAX_LOOKAHEAD
from cavesurvey_lib.enums import BearingUnit
from cavesurvey_lib.enums import FixType
from cavesurvey_lib.enums import GradientUnit
from cavesurvey_lib.enums import LengthUnit
from cavesurvey_lib.models import Leg
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Station
from cavesurvey_lib.models import Survey
from cavesurvey_lib.parsing import SurveyParser

logger = logging.getLogger(__name__)

Point = tuple[float, float, float]

OUTER_SERIES_NAME = "SurveyFromDXF"
REBUILT_SERIES_NAME = "SurveyFromDXFExportedFrom3D"
LINES_SERIES_PREFIX = "SeriesFromLines"

POINT_CODES = ("10", "20", "30")
LINE_CODES = ("10", "20", "30", "11", "21", "31")

#: Lines searched after a LINE entity for its layer or entity marker
LINE_MARKER_LOOKAHEAD = 4


class ScanState(IntEnum):
    HEADER = 0
    FIND_ENTITY = 1
    FIND_VERTEX = 2


def spherical_bearing(x: float, y: float) -> float:
    """Bearing in degrees of the direction ``(x, y)``, in the range [0, 360).

    ``x`` is the east and ``y`` the north component.
    """
    if x == 0:
        return 180.0 if y < 0 else 0.0
    if y == 0:
        return 270.0 if x < 0 else 90.0

    angle = math.atan(x / y) * 180 / math.pi
    if y < 0:
        return 180 + angle
    if x < 0:
        return 360 + angle
    return angle


def name_prefix(name: str) -> str:
    """Everything before the last dot in a station name."""
    pos = name.rfind(".")
    return name[:pos] if pos > -1 else ""


def shortened_name(name: str) -> str:
    """Everything after the last dot in a station name."""
    return name[name.rfind(".") + 1 :]


def matching_points(point: Point, points: list[Point]) -> list[int]:
    return [idx for idx, other in enumerate(points) if other == point]


def map_labels_to_chain(
    chain: list[Point], label_points: list[Point], labels: list[str]
) -> list[str | None]:
    """Label for each point of a chain, or None where a point has no label."""
    chain_labels: list[str | None] = []
    for point in chain:
        matches = matching_points(point, label_points)
        chain_labels.append(labels[matches[0]] if matches else None)
    return chain_labels


def series_from_chain(
    chain: list[Point], name: str, labels: list[str | None]
) -> Series:
    """Build a series of legs joining the points of a chain.

    The first station of the chain is fixed at its position. Points at the
    same position as the one before are skipped, unless the chain has only
    the two points.
    """
    series = Series(name=name)
    points = np.asarray(chain, dtype=float)

    for idx in range(1, len(points)):
        from_station = Station(id=idx - 1, label=labels[idx - 1] or "")
        to_station = Station(id=idx, label=labels[idx] or "")
        if idx == 1:
            east, north, altitude = points[0]
            from_station.set_fixed(
                FixType.OTHER, float(east), float(north), float(altitude)
            )

        dx, dy, dz = points[idx] - points[idx - 1]
        if dx == 0 and dy == 0 and dz == 0 and len(points) != 2:
            continue

        horizontal = float(np.hypot(dx, dy))
        length = float(np.hypot(horizontal, dz))
        clino = spherical_bearing(float(dz), horizontal)
        if clino > 90:
            clino -= 360

        leg = Leg(from_station=from_station, to_station=to_station)
        leg.set_length(length, LengthUnit.METRES)
        leg.set_compass(spherical_bearing(float(dx), float(dy)), BearingUnit.DEGREES)
        leg.set_clino(clino, GradientUnit.DEGREES)
        series.add_leg(leg)

    return series


def join_lines(segments: list[tuple[Point, Point]]) -> list[list[Point]]:
    """Join line segments which share end points into chains.

    Segments are only joined at exactly matching coordinates. A segment can
    be joined in either direction.
    """
    remaining = list(segments)
    chains: list[list[Point]] = []

    while remaining:
        first, last = remaining.pop(0)
        chain = [first, last]

        added = True
        while added:
            added = False
            unmatched: list[tuple[Point, Point]] = []
            for start, end in remaining:
                if chain[0] == start:
                    chain.insert(0, end)
                elif chain[0] == end:
                    chain.insert(0, start)
                elif chain[-1] == start:
                    chain.append(end)
                elif chain[-1] == end:
                    chain.append(start)
                else:
                    unmatched.append((start, end))
                    continue
                added = True
            remaining = unmatched

        chains.append(chain)

    return chains


class DxfParser(SurveyParser):
    """Parser for survey centrelines in AutoCAD DXF files.

    Attributes:
        errors: List of parsing errors and warnings encountered
    """

    format_name = "DXF"

    def __init__(self) -> None:
        super().__init__()
        self._lines: list[str] = []

    # -------------------------------------------------------------------------
    # Line access
    # -------------------------------------------------------------------------

    def _get(self, idx: int) -> str:
        if idx >= len(self._lines):
            raise self._error("Unexpected end of DXF data.", len(self._lines))
        return self._lines[idx].strip()

    def _scan_for(
        self, idx: int, *tokens: str, limit: int = DXF_MAX_LOOKAHEAD
    ) -> int | None:
        """Index of the first of the next ``limit`` lines matching a token."""
        wanted = {token.lower() for token in tokens}
        for offset in range(1, limit + 1):
            if idx + offset >= len(self._lines):
                return None
            if self._lines[idx + offset].strip().lower() in wanted:
                return idx + offset
        return None

    def _rounded_value(self, idx: int) -> float:
        """Read a coordinate value, rounded half up to 4 decimal places."""
        text = self._get(idx)
        value = self._parse_float(text, idx + 1, text)
        return math.floor(value * 10000 + 0.5) / 10000

    def _read_values(
        self, idx: int, codes: tuple[str, ...]
    ) -> tuple[int, tuple[float, ...] | None]:
        """Read group code and value pairs following a line.

        Returns:
            Tuple of (index of last line read, values). Values are None if
            the group codes do not match those expected.
        """
        values: list[float] = []
        for code in codes:
            idx += 1
            if self._get(idx) != code:
                return idx, None
            idx += 1
            values.append(self._rounded_value(idx))
        return idx, tuple(values)

    # -------------------------------------------------------------------------
    # Entities
    # -------------------------------------------------------------------------

    def _read_vertex(self, idx: int) -> tuple[int, Point | None]:
        marker = self._scan_for(idx, "AcDbEntity")
        if marker is not None:
            marker = self._scan_for(marker, "AcDbVertex")
        if marker is not None:
            marker = self._scan_for(marker, "AcDb3dPolylineVertex")
        if marker is None:
            return idx, None
        return self._read_values(marker, POINT_CODES)

    def _read_line(self, idx: int) -> tuple[int, tuple[Point, Point] | None]:
        """Read the end points of a LINE entity.

        The entity marker or the ``CentreLine`` layer name is expected within
        a few lines. If neither is found the coordinates are expected to
        follow directly.
        """
        marker = idx
        token = ""
        for _ in range(LINE_MARKER_LOOKAHEAD):
            marker += 1
            token = self._get(marker).lower()
            if token in ("acdbentity", "centreline"):
                break
        allow_any = marker - idx == LINE_MARKER_LOOKAHEAD

        if not allow_any and token not in ("acdbentity", "centreline"):
            return marker, None
        if token != "centreline" and not allow_any:
            line_marker = self._scan_for(marker, "AcDbLine")
            if line_marker is None:
                return marker, None
            marker = line_marker

        idx, values = self._read_values(marker, LINE_CODES)
        if values is None:
            return idx, None
        return idx, (values[:3], values[3:])

    def _read_label(self, idx: int) -> tuple[int, tuple[Point, str] | None]:
        """Read a station label from a TEXT entity on the Labels layer.

        The label is only used if it is followed by a POINT on the Stations
        layer at the same position.
        """
        idx += 2
        if self._get(idx).lower() != "labels":
            return idx, None

        idx, label_point = self._read_values(idx, POINT_CODES)
        if label_point is None:
            return idx, None

        name = self._get(idx + 4)
        idx += 6
        if self._get(idx).lower() != "point":
            return idx, None
        idx += 2
        if self._get(idx).lower() != "stations":
            return idx, None

        idx, station_point = self._read_values(idx, POINT_CODES)
        if station_point is None or station_point != label_point:
            return idx, None
        return idx, (label_point, name)

    # -------------------------------------------------------------------------
    # Series building
    # -------------------------------------------------------------------------

    @staticmethod
    def _find_series_for_station(outer: Series, station_name: str) -> int:
        """Index of the inner series named by a station name prefix.

        The series is created if it does not exist yet.

        Returns:
            Index of the series, or -1 if the station name has no prefix
        """
        prefix = name_prefix(station_name)
        if not prefix:
            return -1
        for idx, series in enumerate(outer.inner_series):
            if series.name.lower() == prefix.lower():
                return idx
        outer.add_series(Series(name=prefix))
        return len(outer.inner_series) - 1

    def _rebuild_from_labels(
        self,
        outer: Series,
        chains: list[list[Point]],
        label_points: list[Point],
        labels: list[str],
    ) -> Series:
        """Regroup legs into series named by the prefixes of their labels.

        Where the labels of the two stations of a leg have different prefixes,
        another label at the same position with a matching prefix is looked
        for, and a link is added between the two names of the station.
        """
        rebuilt = Series(name=REBUILT_SERIES_NAME)

        for series, chain in zip(outer.inner_series, chains, strict=True):
            for leg_idx, leg in enumerate(series.legs):
                from_name = leg.from_station.name
                from_series = self._find_series_for_station(rebuilt, from_name)
                if from_series < 0:
                    continue

                to_name = leg.to_station.name
                to_series = self._find_series_for_station(rebuilt, to_name)
                leg_series = from_series
                from_prefix = name_prefix(from_name)
                to_prefix = name_prefix(to_name)

                if to_series != from_series and from_prefix and to_prefix:
                    swapped = False
                    to_points = matching_points(chain[leg_idx + 1], label_points)
                    if len(to_points) > 1:
                        for label in (labels[idx] for idx in to_points):
                            if name_prefix(label) != from_prefix:
                                continue
                            leg.to_station.label = label
                            rebuilt.add_link(
                                rebuilt.inner_series[from_series].name,
                                Station(id=0, label=shortened_name(label)),
                                rebuilt.inner_series[to_series].name,
                                Station(id=0, label=shortened_name(to_name)),
                            )
                            swapped = True
                            break

                    from_points = matching_points(chain[leg_idx], label_points)
                    if not swapped and len(from_points) > 1:
                        for label in (labels[idx] for idx in from_points):
                            if name_prefix(label) != to_prefix:
                                continue
                            leg.from_station.label = label
                            rebuilt.add_link(
                                rebuilt.inner_series[from_series].name,
                                Station(id=0, label=shortened_name(from_name)),
                                rebuilt.inner_series[to_series].name,
                                Station(id=0, label=shortened_name(label)),
                            )
                            leg_series = to_series
                            break

                leg.from_station.label = shortened_name(leg.from_station.name)
                leg.to_station.label = shortened_name(leg.to_station.name)
                rebuilt.inner_series[leg_series].add_leg(leg)

        return rebuilt

    @staticmethod
    def _link_chains(
        outer: Series,
        chains: list[list[Point]],
        chain_labels: list[list[str | None]],
    ) -> None:
        """Link stations at the same position in different chains.

        Only the first station of the first series stays fixed.
        """
        for series_idx, chain in enumerate(chains):
            series = outer.inner_series[series_idx]
            for point_idx, point in enumerate(chain):
                for other_idx, other_chain in enumerate(chains):
                    for other_point_idx in matching_points(point, other_chain):
                        # Within a chain, each pair is linked once
                        if other_idx != series_idx or other_point_idx > point_idx:
                            outer.add_link(
                                series.name,
                                Station(
                                    id=point_idx,
                                    label=chain_labels[series_idx][point_idx] or "",
                                ),
                                outer.inner_series[other_idx].name,
                                Station(
                                    id=other_point_idx,
                                    label=chain_labels[other_idx][other_point_idx]
                                    or "",
                                ),
                            )
                        if series_idx > 0 and series.legs:
                            series.legs[0].from_station.clear_fix()

    # -------------------------------------------------------------------------
    # Main entry point
    # -------------------------------------------------------------------------

    def parse_lines(
        self,
        lines: list[str],
        line_refs: list[str] | None = None,
    ) -> Survey:
        """Parse survey centrelines from DXF data.

        Args:
            lines: Lines of the DXF file
            line_refs: Optional ``path:lineNo`` reference for each line

        Returns:
            Survey with one top level series holding a series for each chain
            of legs (or for each station name prefix when labelled)

        Raises:
            SurveyParseException: If a coordinate value is not a number or
                the data ends part way through an entity
        """
        self._line_refs = line_refs or []
        self._lines = lines

        logger.info(
            "Generating survey data from lines and polylines in DXF data file"
        )
        outer = Series(name=OUTER_SERIES_NAME)
        chains: list[list[Point]] = []
        chain_labels: list[list[str | None]] = []
        segments: list[tuple[Point, Point]] = []
        label_points: list[Point] = []
        labels: list[str] = []
        mapped_labels_found = False

        polyline_count = 0
        vertex_count = 0
        line_count = 0
        leg_count = 0
        line_name = ""
        chain: list[Point] = []
        state = ScanState.HEADER

        idx = 0
        while idx < len(lines):
            token = lines[idx].strip().upper()

            if state == ScanState.HEADER:
                if token == "ENTITIES":
                    state = ScanState.FIND_ENTITY

            elif state == ScanState.FIND_ENTITY:
                if token == "POLYLINE":
                    marker = self._scan_for(idx, "AcDbEntity")
                    if marker is not None:
                        idx = marker + 2
                        polyline_count += 1
                        line_name = self._get(idx).replace(" ", "_")
                        chain = []
                        state = ScanState.FIND_VERTEX
                elif token == "LINE":
                    line_count += 1
                    idx, segment = self._read_line(idx)
                    if segment is not None:
                        segments.append(segment)
                elif token == "TEXT":
                    idx, label = self._read_label(idx)
                    if label is not None:
                        label_points.append(label[0])
                        labels.append(label[1])

            elif token == "VERTEX":
                vertex_count += 1
                idx, point = self._read_vertex(idx)
                if point is None:
                    self._add_warning(
                        f"Bad vertex in polyline '{line_name}' skipped.", idx + 1
                    )
                    state = ScanState.FIND_ENTITY
                else:
                    chain.append(point)

            elif token == "SEQEND":
                series_name = line_name
                suffix = 1
                while outer.find_inner_series_by_name(series_name) is not None:
                    series_name = f"{line_name}{suffix}"
                    suffix += 1

                point_labels = map_labels_to_chain(chain, label_points, labels)
                outer.add_series(series_from_chain(chain, series_name, point_labels))
                leg_count += max(len(chain) - 1, 0)
                chains.append(chain)
                chain_labels.append(point_labels)
                if point_labels and point_labels[0] is not None:
                    mapped_labels_found = True
                chain = []
                state = ScanState.FIND_ENTITY

            idx += 1

        for chain_no, line_chain in enumerate(join_lines(segments), start=1):
            point_labels = map_labels_to_chain(line_chain, label_points, labels)
            if labels:
                mapped_labels_found = True
            series = series_from_chain(
                line_chain, f"{LINES_SERIES_PREFIX}{chain_no}", point_labels
            )
            # Chains with all points in one place give no legs
            if series.leg_count > 0:
                chains.append(line_chain)
                chain_labels.append(point_labels)
                outer.add_series(series)
                leg_count += len(line_chain) - 1

        if mapped_labels_found:
            outer = self._rebuild_from_labels(outer, chains, label_points, labels)
        else:
            self._link_chains(outer, chains, chain_labels)

        survey = Survey()
        survey.add(outer)

        logger.info(
            "Processed %d survey legs in %d series.",
            leg_count,
            len(outer.inner_series),
        )
        logger.info("Found:")
        logger.info(
            "Polylines: %d containing %d line segments.", polyline_count, vertex_count
        )
        logger.info("Lines: %d", line_count)
        logger.info("Total line segments: %d", line_count + vertex_count)

        return self._finish(survey, [])
