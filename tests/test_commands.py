# -*- coding: utf-8 -*-
"""Tests for the convert command."""

import orjson
import pytest

from cavesurvey_lib.commands.convert import convert
from cavesurvey_lib.commands.convert import splays_option_from_flags
from cavesurvey_lib.enums import SplaysOption

SURVEX_DATA = "*begin cave\n1 2 5.0 10 -5\n2 3 4.0 20 0\n*end cave\n"


class TestSplaysOption:
    """Tests for combining the splay flags."""

    @pytest.mark.parametrize(
        ("splays", "nosplays", "anonsplays", "expected"),
        [
            (False, False, False, SplaysOption.DEFAULT),
            (True, False, False, SplaysOption.NAMED),
            (False, True, False, SplaysOption.NONE),
            (False, False, True, SplaysOption.ANON),
            (True, False, True, SplaysOption.ANON),
            (False, True, True, SplaysOption.NONE),
        ],
    )
    def test_flags(self, splays, nosplays, anonsplays, expected):
        """Test the splay option selected by each flag combination."""
        option = splays_option_from_flags(
            splays=splays, nosplays=nosplays, anonsplays=anonsplays
        )

        assert option == expected


class TestConvertCommand:
    """Tests for running the convert command."""

    def test_convert_to_json(self, write_file, tmp_path):
        """Test a conversion with formats detected from the extensions."""
        input_path = write_file("cave.svx", SURVEX_DATA)
        output_path = tmp_path / "cave.json"

        result = convert(["-i", str(input_path), "-o", str(output_path)])

        assert result == 0
        data = orjson.loads(output_path.read_bytes())
        assert data["series"][0]["name"] == "cave"

    def test_explicit_formats(self, write_file, tmp_path):
        """Test a conversion with formats given as letter codes."""
        input_path = write_file("cave.in", SURVEX_DATA)
        output_path = tmp_path / "cave.out"

        result = convert(
            ["-i", str(input_path), "-o", str(output_path), "-f", "s", "-t", "t"]
        )

        assert result == 0
        assert output_path.exists()

    def test_missing_input_file(self, tmp_path):
        """Test that a missing input file fails."""
        result = convert(
            ["-i", str(tmp_path / "missing.svx"), "-o", str(tmp_path / "out.svx")]
        )

        assert result == 1

    def test_unknown_input_extension(self, write_file, tmp_path):
        """Test that an input format which cannot be detected fails."""
        input_path = write_file("cave.xyz", SURVEX_DATA)

        result = convert(["-i", str(input_path), "-o", str(tmp_path / "out.svx")])

        assert result == 1

    def test_unknown_output_extension(self, write_file, tmp_path):
        """Test that an output format which cannot be detected fails."""
        input_path = write_file("cave.svx", SURVEX_DATA)

        result = convert(["-i", str(input_path), "-o", str(tmp_path / "out.xyz")])

        assert result == 1

    def test_invalid_data(self, write_file, tmp_path):
        """Test that invalid survey data fails."""
        input_path = write_file("cave.svx", "1 2 5.0 10 -5\n")

        result = convert(["-i", str(input_path), "-o", str(tmp_path / "out.svx")])

        assert result == 1

    def test_invalid_format_letter(self, write_file, tmp_path):
        """Test that an unknown format letter is rejected by the argument parser."""
        input_path = write_file("cave.svx", SURVEX_DATA)

        with pytest.raises(SystemExit):
            convert(
                ["-i", str(input_path), "-o", str(tmp_path / "out"), "-f", "x"]
            )

    def test_conflicting_splay_flags(self, write_file, tmp_path):
        """Test that splays cannot be both switched on and off."""
        input_path = write_file("cave.svx", SURVEX_DATA)

        with pytest.raises(SystemExit):
            convert(
                [
                    "-i",
                    str(input_path),
                    "-o",
                    str(tmp_path / "out.svx"),
                    "--splays",
                    "--nosplays",
                ]
            )
