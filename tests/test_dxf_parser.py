# -*- coding: utf-8 -*-
"""Tests for the DXF centreline parser."""

import pytest

from cavesurvey_lib.dxf.parser import DxfParser
from cavesurvey_lib.dxf.parser import join_lines
from cavesurvey_lib.dxf.parser import spherical_bearing
from cavesurvey_lib.enums import Severity
from cavesurvey_lib.errors import SurveyParseException

# =============================================================================
# DXF builders
# =============================================================================


def _coords(point, codes=("10", "20", "30")) -> list[str]:
    lines = []
    for code, value in zip(codes, point, strict=True):
        lines += [code, str(value)]
    return lines


def polyline(layer: str, points: list[tuple]) -> list[str]:
    lines = ["0", "POLYLINE", "5", "1F", "100", "AcDbEntity", "8", layer]
    lines += ["100", "AcDb3dPolyline", "66", "1", "70", "8"]
    for point in points:
        lines += ["0", "VERTEX", "5", "20", "100", "AcDbEntity", "8", layer]
        lines += ["100", "AcDbVertex", "100", "AcDb3dPolylineVertex"]
        lines += [*_coords(point), "70", "32"]
    return [*lines, "0", "SEQEND"]


def line(start: tuple, end: tuple) -> list[str]:
    return [
        "0",
        "LINE",
        "8",
        "CentreLine",
        *_coords(start),
        *_coords(end, ("11", "21", "31")),
    ]


def label(name: str, point: tuple) -> list[str]:
    return [
        "0",
        "TEXT",
        "8",
        "Labels",
        *_coords(point),
        "40",
        "0.5",
        "1",
        name,
        "0",
        "POINT",
        "8",
        "Stations",
        *_coords(point),
    ]


def dxf(*entities: list[str]) -> list[str]:
    lines = ["0", "SECTION", "2", "ENTITIES"]
    for entity in entities:
        lines += entity
    return [*lines, "0", "ENDSEC", "0", "EOF"]


POINTS = [(0.0, 0.0, 0.0), (10.0, 0.0, 0.0), (10.0, 10.0, 5.0)]

# =============================================================================
# Tests
# =============================================================================


class TestSphericalBearing:
    """Tests for bearings worked out from coordinate differences."""

    @pytest.mark.parametrize(
        ("x", "y", "expected"),
        [
            (0.0, 1.0, 0.0),
            (1.0, 0.0, 90.0),
            (0.0, -1.0, 180.0),
            (-1.0, 0.0, 270.0),
            (1.0, 1.0, 45.0),
            (1.0, -1.0, 135.0),
            (-1.0, -1.0, 225.0),
            (-1.0, 1.0, 315.0),
        ],
    )
    def test_quadrants(self, x, y, expected):
        """Test bearings in each quadrant and along each axis."""
        assert spherical_bearing(x, y) == pytest.approx(expected)


class TestJoinLines:
    """Tests for joining line segments into chains."""

    def test_segments_joined_either_way(self):
        """Test that segments are joined whichever way round they were drawn."""
        a, b, c, d = (0, 0, 0), (1, 0, 0), (2, 0, 0), (3, 0, 0)

        chains = join_lines([(b, c), (a, b), (d, c)])

        assert chains == [[a, b, c, d]]

    def test_separate_chains(self):
        """Test that segments without shared points stay apart."""
        a, b, c, d = (0, 0, 0), (1, 0, 0), (5, 0, 0), (6, 0, 0)

        assert join_lines([(a, b), (c, d)]) == [[a, b], [c, d]]


class TestDxfPolylines:
    """Tests for reading centrelines drawn as polylines."""

    def test_legs_from_vertices(self):
        """Test that each pair of vertices gives a leg."""
        survey = DxfParser().parse_lines(dxf(polyline("Centre Line", POINTS)))

        outer = survey[0]
        assert outer.name == "SurveyFromDXF"
        series = outer.inner_series[0]
        assert series.name == "Centre_Line"
        assert series.leg_count == 2

        first, second = series.legs
        assert first.length == pytest.approx(10.0)
        assert first.compass == pytest.approx(90.0)
        assert first.clino == pytest.approx(0.0)
        assert second.length == pytest.approx(11.1803, abs=0.0001)
        assert second.compass == pytest.approx(0.0)
        assert second.clino == pytest.approx(26.565, abs=0.001)

    def test_first_station_fixed(self):
        """Test that the chain start is fixed at its position."""
        survey = DxfParser().parse_lines(dxf(polyline("CL", POINTS[1:])))

        station = survey[0].inner_series[0].legs[0].from_station
        assert station.is_fixed
        assert (station.easting, station.northing, station.altitude) == (
            10.0,
            0.0,
            0.0,
        )

    def test_shared_points_linked(self):
        """Test that polylines meeting at a point are linked."""
        survey = DxfParser().parse_lines(
            dxf(polyline("CL", POINTS[:2]), polyline("CL", POINTS[1:]))
        )

        outer = survey[0]
        assert [series.name for series in outer.inner_series] == ["CL", "CL1"]
        link = outer.links[0]
        assert (link.series1, link.station1.id) == ("CL", 1)
        assert (link.series2, link.station2.id) == ("CL1", 0)
        assert outer.inner_series[0].legs[0].from_station.is_fixed
        assert not outer.inner_series[1].legs[0].from_station.is_fixed

    def test_bad_vertex_warning(self):
        """Test that a polyline with a broken vertex is skipped with a warning."""
        data = dxf(["0", "POLYLINE", "100", "AcDbEntity", "8", "CL"])
        data[-4:-4] = ["0", "VERTEX", "8", "CL", "10", "1.0", "0", "SEQEND"]
        parser = DxfParser()

        survey = parser.parse_lines(data)

        assert survey[0].inner_series == []
        assert parser.errors[0].severity == Severity.WARNING
        assert "Bad vertex" in parser.errors[0].message

    def test_invalid_coordinate(self):
        """Test that a coordinate which is not a number is an error."""
        data = dxf(polyline("CL", [("abc", 0.0, 0.0), (1.0, 0.0, 0.0)]))

        with pytest.raises(SurveyParseException, match="Invalid number 'abc'"):
            DxfParser().parse_lines(data)


class TestDxfLines:
    """Tests for reading centrelines drawn as separate lines."""

    def test_lines_joined_into_series(self):
        """Test that lines sharing end points give one series."""
        data = dxf(
            line((0.0, 0.0, 0.0), (3.0, 4.0, 0.0)),
            line((3.0, 4.0, -2.0), (3.0, 4.0, 0.0)),
        )

        survey = DxfParser().parse_lines(data)

        series = survey[0].inner_series[0]
        assert series.name == "SeriesFromLines1"
        assert series.leg_count == 2
        first, second = series.legs
        assert first.length == pytest.approx(5.0)
        assert first.compass == pytest.approx(36.8699, abs=0.0001)
        assert second.length == pytest.approx(2.0)
        assert second.clino == pytest.approx(-90.0)


class TestDxfLabels:
    """Tests for centrelines with station labels."""

    def test_series_from_label_prefixes(self):
        """Test that labelled legs are grouped by their station name prefix."""
        names = ["cave.1", "cave.2", "cave.3"]
        data = dxf(
            *(label(name, point) for name, point in zip(names, POINTS, strict=True)),
            polyline("CL", POINTS),
        )

        survey = DxfParser().parse_lines(data)

        outer = survey[0]
        assert outer.name == "SurveyFromDXFExportedFrom3D"
        assert [series.name for series in outer.inner_series] == ["cave"]
        legs = outer.inner_series[0].legs
        assert [(leg.from_station.name, leg.to_station.name) for leg in legs] == [
            ("1", "2"),
            ("2", "3"),
        ]
