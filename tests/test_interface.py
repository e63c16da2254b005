# -*- coding: utf-8 -*-
"""Tests for the unified conversion interface."""

import datetime
import os

import orjson
import pytest
from deepdiff import DeepDiff

from cavesurvey_lib.enums import InputFormat
from cavesurvey_lib.enums import OutputFormat
from cavesurvey_lib.enums import SplaysOption
from cavesurvey_lib.interface import CaveSurveyInterface
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Survey
from tests.conftest import create_splay_leg
from tests.conftest import create_test_leg
from tests.conftest import survey_of

SURVEX_DATA = (
    "*begin cave\n*date 2024.01.02\n1 2 5.0 10 -5\n2 3 4.0 20 0\n*end cave\n"
)

CONVERSION_DATE = datetime.datetime(2024, 1, 3, 14, 5, 6)


@pytest.fixture
def survey() -> Survey:
    series = Series(name="Main")
    series.add_leg(create_splay_leg(1, 1.2, 90.0, 0.0))
    series.add_leg(create_test_leg(1, 2, 2.5, 10.0, -5.0))
    return survey_of(series)


class TestLoadSurvey:
    """Tests for loading survey data files."""

    def test_format_from_extension(self, write_file):
        """Test that the format is detected from the file extension."""
        path = write_file("cave.svx", SURVEX_DATA)

        survey = CaveSurveyInterface.load_survey(path)

        assert survey[0].name == "cave"
        assert survey[0].leg_count == 2

    def test_explicit_format(self, write_file):
        """Test loading a file with an explicit format."""
        path = write_file("cave.in", SURVEX_DATA)

        survey = CaveSurveyInterface.load_survey(path, InputFormat.SURVEX)

        assert survey[0].leg_count == 2

    def test_unknown_extension(self, write_file):
        """Test that an unknown extension without a format raises."""
        path = write_file("cave.xyz", SURVEX_DATA)

        with pytest.raises(ValueError, match="Unknown file extension"):
            CaveSurveyInterface.load_survey(path)

    def test_parse_lines(self):
        """Test parsing lines already in memory."""
        survey = CaveSurveyInterface.parse_lines(
            SURVEX_DATA.splitlines(), InputFormat.SURVEX
        )

        assert survey[0].survey_date == datetime.date(2024, 1, 2)


class TestGenerateOutput:
    """Tests for generating output data."""

    def test_survex_default_flags_splays(self, survey):
        """Test that Survex output writes flagged splays by default."""
        lines = CaveSurveyInterface.generate_output(survey, OutputFormat.SURVEX)

        assert "*FLAGS SPLAY" in lines

    def test_survex_without_splays(self, survey):
        """Test that Survex splays can be switched off."""
        lines = CaveSurveyInterface.generate_output(
            survey, OutputFormat.SURVEX, SplaysOption.NONE
        )

        assert "*FLAGS SPLAY" not in lines
        assert not any("1-0" in line for line in lines)

    def test_survex_anonymous_splays(self, survey):
        """Test that Survex splays can go to the anonymous station."""
        lines = CaveSurveyInterface.generate_output(
            survey, OutputFormat.SURVEX, SplaysOption.ANON
        )

        assert "1\t-\t 1.20\t 90.00\t  0.00" in lines

    def test_toporobot_header_date(self, survey):
        """Test that the Toporobot header carries the conversion date."""
        lines = CaveSurveyInterface.generate_output(
            survey, OutputFormat.TOPOROBOT, today=CONVERSION_DATE
        )

        assert lines[2] == "    -4     1   1   1   1 24/01/03 14:05:06  CaveSurvey"

    def test_json_roundtrip(self, survey):
        """Test that the JSON output loads back into the same survey."""
        lines = CaveSurveyInterface.generate_output(survey, OutputFormat.JSON)

        data = orjson.loads("\n".join(lines))
        reloaded = Survey.model_validate(data)

        ddiff = DeepDiff(
            survey.model_dump(mode="json"),
            reloaded.model_dump(mode="json"),
            ignore_order=True,
        )
        assert ddiff == {}, ddiff

    def test_json_content(self, survey):
        """Test the JSON form of a leg."""
        data = orjson.loads(CaveSurveyInterface.to_json(survey))

        leg = data["series"][0]["legs"][1]
        assert leg["from_station"]["id"] == 1
        assert leg["to_station"]["id"] == 2
        assert leg["length"] == 2.5
        assert leg["splay"] is False


class TestConvertFile:
    """Tests for converting files between formats."""

    def test_survex_to_json(self, write_file, tmp_path):
        """Test that the converted survey is written to the output file."""
        input_path = write_file("cave.svx", SURVEX_DATA)
        output_path = tmp_path / "cave.json"

        CaveSurveyInterface.convert_file(
            input_path, output_path, InputFormat.SURVEX, OutputFormat.JSON
        )

        expected = CaveSurveyInterface.load_survey(input_path).model_dump(mode="json")
        ddiff = DeepDiff(expected, orjson.loads(output_path.read_bytes()))
        assert ddiff == {}, ddiff

    def test_written_lines(self, write_file, tmp_path):
        """Test that the lines returned are the lines written."""
        input_path = write_file("cave.svx", SURVEX_DATA)
        output_path = tmp_path / "out.svx"

        lines = CaveSurveyInterface.convert_file(
            input_path,
            output_path,
            InputFormat.SURVEX,
            OutputFormat.SURVEX,
            generate_lrud=True,
        )

        assert lines[0] == "*BEGIN cave"
        assert output_path.read_bytes().decode().split(os.linesep) == lines
