# -*- coding: utf-8 -*-
"""Tests for Survex format generation."""

import datetime

import pytest

from cavesurvey_lib.constants import SURVEX_PASSAGE_HEADER
from cavesurvey_lib.enums import FixType
from cavesurvey_lib.enums import SplayFormat
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Station
from cavesurvey_lib.survex.format import SurvexWriter
from cavesurvey_lib.survex.format import data_order_line
from cavesurvey_lib.survex.format import survex_name
from tests.conftest import create_splay_leg
from tests.conftest import create_test_leg
from tests.conftest import survey_of


def _generate(*series: Series, splay_format=SplayFormat.FLAGGED) -> list[str]:
    return SurvexWriter().generate(survey_of(*series), splay_format)


def _passage_blocks(lines: list[str]) -> list[list[str]]:
    """Collect the station lines following each passage data header."""
    blocks: list[list[str]] = []
    current: list[str] | None = None
    for line in lines:
        if line == SURVEX_PASSAGE_HEADER:
            current = []
            blocks.append(current)
        elif current is not None:
            if not line or line.startswith("*"):
                current = None
            else:
                current.append(line)
    return blocks


# =============================================================================
# Names
# =============================================================================


class TestSurvexName:
    """Tests for the substitution of characters Survex does not allow."""

    def test_plain_name_unchanged(self):
        """Test that alphanumeric names are written unchanged."""
        assert survex_name("Entrance1") == "Entrance1"

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("big chamber", "big_chamber"),
            ("st#1", "st_hs1"),
            ("a/b", "a_fsb"),
            ("(x)", "_obx_cb"),
            ("1+2", "1_pl2"),
        ],
    )
    def test_punctuation_substituted(self, name, expected):
        """Test mnemonic substitution of punctuation characters."""
        assert survex_name(name) == expected

    def test_non_ascii_substituted(self):
        """Test that characters beyond ASCII are written as their code."""
        assert survex_name("Gouffre_é") == "Gouffre__asc233"

    def test_substitution_is_repeatable(self):
        """Test that the same name always gives the same result."""
        assert survex_name("a b!") == survex_name("a b!") == "a_b_ex"


# =============================================================================
# Series Blocks
# =============================================================================


class TestSeriesBlocks:
    """Tests for the layout of series blocks."""

    def test_single_leg(self):
        """Test the output for a series with a single leg."""
        series = Series(name="Main")
        series.add_leg(create_test_leg(1, 2, 2.5, 10.0, -5.0))

        assert _generate(series) == [
            "*BEGIN Main",
            "",
            "",
            "1\t2\t 2.50\t 10.00\t -5.00",
            "*END Main",
            "",
        ]

    def test_series_name_substituted(self):
        """Test that series names are made legal for Survex."""
        series = Series(name="Main Passage")
        series.add_leg(create_test_leg(1, 2, 1.0, 0.0, 0.0))

        lines = _generate(series)

        assert lines[0] == "*BEGIN Main_Passage"
        assert "*END Main_Passage" in lines

    def test_comment_and_date(self):
        """Test that trip comments and dates are written in the block header."""
        series = Series(
            name="Trip",
            comment="First line\rSecond line",
            survey_date=datetime.date(2024, 3, 5),
        )
        series.add_leg(create_test_leg(1, 2, 1.0, 0.0, 0.0))

        lines = _generate(series)

        assert lines[:5] == [
            "*BEGIN Trip",
            ";First line",
            ";Second line",
            "",
            "*DATE 2024.03.05",
        ]

    def test_calibration_lines(self):
        """Test that calibrations differing from the parent are written."""
        series = Series(name="Cal", declination=2.5)
        series.set_tape_calibration(0.1)
        series.set_compass_calibration(-1.0)
        series.add_leg(create_test_leg(1, 2, 1.0, 0.0, 0.0))

        lines = _generate(series)

        assert "*CALIBRATE declination 2.5" in lines
        assert "*CALIBRATE tape 0.10" in lines
        assert "*CALIBRATE compass -1" in lines
        assert not any(line.startswith("*CALIBRATE clino") for line in lines)

    def test_inner_calibration_matching_parent_not_repeated(self):
        """Test that inner series only write calibrations which change."""
        outer = Series(name="Outer", declination=1.5)
        inner = Series(name="Inner", declination=1.5)
        inner.add_leg(create_test_leg(1, 2, 1.0, 0.0, 0.0))
        outer.add_series(inner)

        lines = _generate(outer)

        assert lines.count("*CALIBRATE declination 1.5") == 1

    def test_nested_series(self):
        """Test that inner series are written inside their parent block."""
        outer = Series(name="Cave")
        outer.add_leg(create_test_leg(1, 2, 1.0, 0.0, 0.0))
        inner = Series(name="Branch")
        inner.add_leg(create_test_leg(1, 2, 1.0, 90.0, 0.0))
        outer.add_series(inner)

        lines = _generate(outer)

        begin_inner = lines.index("*BEGIN Branch")
        assert lines.index("*BEGIN Cave") < begin_inner
        assert begin_inner < lines.index("*END Branch") < lines.index("*END Cave")

    def test_links_written_as_equates(self):
        """Test that series links are written with series prefixes."""
        outer = Series(name="Cave")
        outer.add_link("", Station(id=4), "inner", Station(id=1))
        outer.add_link("a", Station(id=2), "b", Station(id=7))

        lines = _generate(outer)

        assert "*EQUATE 4 inner.1" in lines
        assert "*EQUATE a.2 b.7" in lines


# =============================================================================
# Legs
# =============================================================================


class TestLegLines:
    """Tests for the leg lines of a series."""

    def test_leg_comment(self):
        """Test that leg comments are written after a semicolon."""
        series = Series(name="Main")
        leg = create_test_leg(1, 2, 2.5, 10.0, -5.0)
        leg.comment = "Wet"
        series.add_leg(leg)

        assert "1\t2\t 2.50\t 10.00\t -5.00\t;Wet" in _generate(series)

    def test_zero_length_leg_written_as_equate(self):
        """Test that a zero length leg equates its stations."""
        series = Series(name="Main")
        series.add_leg(create_test_leg(1, 2, 0.0, 0.0, 0.0))

        assert "*EQUATE 1\t2" in _generate(series)

    def test_data_order_written_for_first_leg(self):
        """Test that a series with a data order writes it before the legs."""
        series = Series(name="Main")
        series.set_data_order(["FROM", "TO", "BEARING", "LENGTH", "GRADIENT"])
        series.add_leg(create_test_leg(1, 2, 2.5, 10.0, -5.0))

        lines = _generate(series)

        idx = lines.index("*data normal from to bearing length gradient")
        assert lines[idx + 1] == "1\t2\t 10.00\t 2.50\t -5.00"

    def test_data_order_line_for_diving_order(self):
        """Test that diving data orders are written as diving data."""
        series = Series(name="Dive")
        series.set_data_order(["FROM", "TO", "LENGTH", "BEARING", "DEPTHCHANGE"])

        assert data_order_line(series, True) == (
            "*data diving from to length bearing depthchange"
        )

    def test_duplicate_flags(self):
        """Test that duplicate flags are switched on and off around legs."""
        series = Series(name="Main")
        leg = create_test_leg(1, 2, 1.0, 0.0, 0.0)
        leg.duplicate = True
        series.add_leg(leg)
        series.add_leg(create_test_leg(2, 3, 1.0, 0.0, 0.0))

        lines = _generate(series)
        first = lines.index("1\t2\t 1.00\t  0.00\t  0.00")
        second = lines.index("2\t3\t 1.00\t  0.00\t  0.00")

        assert lines[first - 1] == "*FLAGS DUPLICATE"
        assert lines[second - 1] == "*FLAGS NOT DUPLICATE"

    def test_surface_flag(self):
        """Test that surface legs are flagged."""
        series = Series(name="Main")
        leg = create_test_leg(1, 2, 1.0, 0.0, 0.0)
        leg.surface = True
        series.add_leg(leg)

        assert "*FLAGS SURFACE" in _generate(series)

    def test_nosurvey_leg(self):
        """Test that nosurvey legs are written with only their stations."""
        series = Series(name="Main")
        leg = create_test_leg(1, 2, 0.0, 0.0, 0.0)
        leg.set_nosurvey(True)
        series.add_leg(leg)
        series.add_leg(create_test_leg(2, 3, 1.0, 0.0, 0.0))

        lines = _generate(series)

        idx = lines.index("*data nosurvey from to")
        assert lines[idx + 1] == "1\t2"
        assert lines[idx + 2] == "*data normal from to length bearing gradient"
        assert lines[idx + 3] == "2\t3\t 1.00\t  0.00\t  0.00"

    def test_fixed_stations(self):
        """Test that fixed stations are written once as fix lines."""
        series = Series(name="Main")
        leg = create_test_leg(1, 2, 1.0, 0.0, 0.0)
        leg.from_station.set_fixed(FixType.GPS, 100.0, 200.0, 50.5)
        series.add_leg(leg)
        other = create_test_leg(1, 3, 1.0, 90.0, 0.0)
        other.from_station.set_fixed(FixType.GPS, 100.0, 200.0, 50.5)
        series.add_leg(other)

        lines = _generate(series)

        assert lines.count("*FIX 1\t100\t200\t50.5") == 1


# =============================================================================
# Splays
# =============================================================================


class TestSplays:
    """Tests for the output of splay legs."""

    @pytest.fixture
    def series(self) -> Series:
        series = Series(name="Main")
        series.add_leg(create_splay_leg(1, 1.2, 90.0, 0.0))
        series.add_leg(create_test_leg(1, 2, 2.5, 10.0, -5.0))
        return series

    def test_flagged_splays(self, series):
        """Test that splays are written to numbered stations inside flags."""
        lines = _generate(series)

        assert lines[3:7] == [
            "*FLAGS SPLAY",
            "1\t1-0\t 1.20\t 90.00\t  0.00",
            "*FLAGS NOT SPLAY",
            "1\t2\t 2.50\t 10.00\t -5.00",
        ]

    def test_anonymous_splays(self, series):
        """Test that anonymous splays are written to the station alias."""
        lines = _generate(series, splay_format=SplayFormat.ANONYMOUS)

        assert "*alias station - .." in lines
        assert "1\t-\t 1.20\t 90.00\t  0.00" in lines
        assert not any(line.startswith("*FLAGS") for line in lines)

    def test_no_splays(self, series):
        """Test that splays can be left out of the output."""
        lines = _generate(series, splay_format=SplayFormat.NONE)

        assert not any("1-0" in line for line in lines)
        assert "1\t2\t 2.50\t 10.00\t -5.00" in lines

    def test_trailing_splays_switch_flag_off(self):
        """Test that the splay flag is switched off after the last leg."""
        series = Series(name="Main")
        series.add_leg(create_test_leg(1, 2, 2.5, 10.0, -5.0))
        series.add_leg(create_splay_leg(2, 1.2, 90.0, 0.0))

        lines = _generate(series)

        assert lines[lines.index("2\t2-0\t 1.20\t 90.00\t  0.00") + 1] == (
            "*FLAGS NOT SPLAY"
        )


# =============================================================================
# Passage Data
# =============================================================================


class TestPassageData:
    """Tests for LRUD passage data blocks generated from splays."""

    def test_forward_legs(self, forward3_series):
        """Test passage data for legs surveyed in the direction of travel."""
        survey = survey_of(forward3_series)
        survey.generate_lrud_from_splays()

        lines = SurvexWriter().generate(survey, SplayFormat.FLAGGED)

        assert len(lines) == 34
        assert lines[27] == SURVEX_PASSAGE_HEADER
        assert _passage_blocks(lines) == [
            [
                "1\t 0.51\t 0.00\t 1.55\t 0.86",
                "2\t 0.00\t 0.58\t 2.73\t 1.16",
                "3\t 0.41\t 0.00\t 3.68\t 0.54",
                "4\t 0.00\t 0.52\t 4.40\t 1.42",
            ]
        ]

    def test_backward_legs(self, backward3_series):
        """Test passage data for legs surveyed against the direction of travel."""
        survey = survey_of(backward3_series)
        survey.generate_lrud_from_splays()

        lines = SurvexWriter().generate(survey, SplayFormat.FLAGGED)

        assert len(lines) == 34
        assert lines[27] == SURVEX_PASSAGE_HEADER
        assert _passage_blocks(lines) == [
            [
                "4\t 0.52\t 0.00\t 4.40\t 1.42",
                "3\t 0.00\t 0.41\t 3.68\t 0.54",
                "2\t 0.58\t 0.00\t 2.73\t 1.16",
                "1\t 0.00\t 0.51\t 1.55\t 0.86",
            ]
        ]

    def test_forward_legs_four_splays(self, forward5_series):
        """Test passage data with four splays at every station."""
        survey = survey_of(forward5_series)
        survey.generate_lrud_from_splays()

        lines = SurvexWriter().generate(survey, SplayFormat.FLAGGED)

        assert len(lines) == 54
        assert lines[45] == SURVEX_PASSAGE_HEADER
        assert _passage_blocks(lines) == [
            [
                "1\t 0.07\t 0.73\t 1.28\t 0.86",
                "2\t 0.15\t 0.78\t 0.83\t 1.16",
                "3\t 1.21\t 0.21\t 1.21\t 0.54",
                "4\t 0.47\t 1.56\t 1.44\t 1.45",
                "5\t 1.21\t 0.19\t 1.23\t 0.54",
                "6\t 0.49\t 1.36\t 1.63\t 1.65",
            ]
        ]

    def test_branched_legs(self, branched222_series):
        """Test that a branching series gives one passage block per branch."""
        survey = survey_of(branched222_series)
        survey.generate_lrud_from_splays()

        lines = SurvexWriter().generate(survey, SplayFormat.FLAGGED)

        assert len(lines) == 60
        assert lines[48] == SURVEX_PASSAGE_HEADER
        assert _passage_blocks(lines) == [
            [
                "1\t 0.50\t 1.49\t 2.00\t 0.40",
                "2\t 0.57\t 0.91\t 0.00\t 0.28",
                "3\t 0.00\t 1.59\t 1.81\t 0.46",
                "4\t 0.45\t 0.42\t 1.53\t 0.92",
                "5\t 0.50\t 0.34\t 1.16\t 0.36",
            ],
            [
                "3\t 1.59\t 0.00\t 1.81\t 0.46",
                "6\t 0.41\t 0.00\t 3.68\t 0.54",
                "7\t 0.00\t 0.52\t 4.40\t 1.42",
            ],
        ]

    def test_no_passage_data_without_lrud(self):
        """Test that legs with no LRUD data give no passage blocks."""
        series = Series(name="Main")
        series.add_leg(create_test_leg(1, 2, 1.0, 0.0, 0.0))
        series.add_leg(create_test_leg(2, 3, 1.0, 0.0, 0.0))

        lines = _generate(series)

        assert SURVEX_PASSAGE_HEADER not in lines

    def test_manual_lrud(self):
        """Test passage data from LRUD values set on the legs."""
        series = Series(name="Main")
        leg1 = create_test_leg(1, 2, 1.0, 0.0, 0.0)
        leg1.set_lrud(1.0, 2.0, 3.0, 4.0)
        leg2 = create_test_leg(2, 3, 1.0, 0.0, 0.0)
        leg2.set_lrud(0.5, 0.5, 1.0, 0.25)
        series.add_leg(leg1)
        series.add_leg(leg2)

        assert _passage_blocks(_generate(series)) == [
            [
                "1\t 1.00\t 2.00\t 3.00\t 4.00",
                "2\t 0.50\t 0.50\t 1.00\t 0.25",
            ]
        ]
