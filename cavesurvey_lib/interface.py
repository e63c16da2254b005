# -*- coding: utf-8 -*-
"""Unified interface for cave survey file conversion.

This module provides the primary entry point for reading survey data files
into the survey model and writing the model out again:

- Reading: File → Lines → Parser → Survey
- Writing: Survey → Writer → Lines → File
"""

import datetime
import logging
from pathlib import Path

import orjson

from cavesurvey_lib.compass.parser import CompassParser
from cavesurvey_lib.constants import DEFAULT_ENCODING
from cavesurvey_lib.constants import JSON_ENCODING
from cavesurvey_lib.dxf.parser import DxfParser
from cavesurvey_lib.enums import InputFormat
from cavesurvey_lib.enums import OutputFormat
from cavesurvey_lib.enums import SplayFormat
from cavesurvey_lib.enums import SplaysOption
from cavesurvey_lib.io import write_text_file
from cavesurvey_lib.models import Survey
from cavesurvey_lib.parsing import SurveyParser
from cavesurvey_lib.pockettopo.parser import PocketTopoParser
from cavesurvey_lib.survex.format import SurvexWriter
from cavesurvey_lib.survex.parser import SurvexParser
from cavesurvey_lib.toporobot.format import ToporobotWriter

logger = logging.getLogger(__name__)

PARSERS: dict[InputFormat, type[SurveyParser]] = {
    InputFormat.COMPASS: CompassParser,
    InputFormat.DXF: DxfParser,
    InputFormat.POCKETTOPO: PocketTopoParser,
    InputFormat.SURVEX: SurvexParser,
}


class CaveSurveyInterface:
    """Unified interface for cave survey file I/O.

    Example:
        survey = CaveSurveyInterface.load_survey(Path("cave.svx"))
        survey.generate_lrud_from_splays()

        lines = CaveSurveyInterface.generate_output(survey, OutputFormat.SURVEX)
        CaveSurveyInterface.save_json(survey, Path("cave.json"))
    """

    # -------------------------------------------------------------------------
    # Loading Methods (File → Model)
    # -------------------------------------------------------------------------

    @staticmethod
    def parse_lines(
        lines: list[str],
        input_format: InputFormat,
        line_refs: list[str] | None = None,
    ) -> Survey:
        """Parse lines of survey data in the given format.

        Raises:
            SurveyParseException: If the data is not valid for the format
        """
        parser = PARSERS[input_format]()
        return parser.parse_lines(lines, line_refs)

    @staticmethod
    def load_survey(
        path: Path,
        input_format: InputFormat | None = None,
        *,
        encoding: str = DEFAULT_ENCODING,
    ) -> Survey:
        """Load a survey data file.

        Args:
            path: Path to the survey data file
            input_format: Format of the file (detected from the file
                extension if not given)
            encoding: Character encoding of the file

        Returns:
            Parsed survey

        Raises:
            ValueError: If no format is given and the extension is unknown
            SurveyParseException: If the data is not valid for the format
        """
        path = Path(path)
        if input_format is None:
            input_format = InputFormat.from_extension(path.suffix)
            if input_format is None:
                raise ValueError(f"Unknown file extension: `{path.suffix}`")

        parser = PARSERS[input_format]()
        return parser.parse_file(path, encoding=encoding)

    # -------------------------------------------------------------------------
    # Output Methods (Model → Lines)
    # -------------------------------------------------------------------------

    @staticmethod
    def generate_output(
        survey: Survey,
        output_format: OutputFormat,
        splays_option: SplaysOption = SplaysOption.DEFAULT,
        today: datetime.datetime | None = None,
    ) -> list[str]:
        """Generate survey data lines in the given output format.

        Survex output includes splays unless they are switched off. Toporobot
        output only includes them when they were asked for.

        Args:
            survey: Survey to write
            output_format: Format to generate
            splays_option: Splay handling option
            today: Date written in Toporobot headers (defaults to now)

        Returns:
            Text lines of the output data
        """
        match output_format:
            case OutputFormat.SURVEX:
                match splays_option:
                    case SplaysOption.NONE:
                        splay_format = SplayFormat.NONE
                    case SplaysOption.ANON:
                        splay_format = SplayFormat.ANONYMOUS
                    case _:
                        splay_format = SplayFormat.FLAGGED
                return SurvexWriter().generate(survey, splay_format)

            case OutputFormat.TOPOROBOT:
                output_splays = splays_option in (
                    SplaysOption.NAMED,
                    SplaysOption.ANON,
                )
                return ToporobotWriter().generate(
                    survey,
                    today or datetime.datetime.now(),  # noqa: DTZ005
                    output_splays,
                )

            case OutputFormat.JSON:
                return CaveSurveyInterface.to_json(survey).splitlines()

            case _:
                raise ValueError(f"Unsupported output format: `{output_format}`")

    # -------------------------------------------------------------------------
    # JSON Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def to_json(survey: Survey) -> str:
        """Serialize a survey to an indented JSON string."""
        json_bytes = orjson.dumps(
            survey.model_dump(mode="json"),
            option=orjson.OPT_INDENT_2,
        )
        return json_bytes.decode(JSON_ENCODING)

    @staticmethod
    def save_json(survey: Survey, path: Path) -> None:
        Path(path).write_text(
            CaveSurveyInterface.to_json(survey), encoding=JSON_ENCODING
        )

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def convert_file(
        input_path: Path,
        output_path: Path,
        input_format: InputFormat,
        output_format: OutputFormat,
        splays_option: SplaysOption = SplaysOption.DEFAULT,
        *,
        generate_lrud: bool = False,
        encoding: str = DEFAULT_ENCODING,
        today: datetime.datetime | None = None,
    ) -> list[str]:
        """Read a survey data file and write it out in another format.

        Args:
            input_path: File to convert
            output_path: File to write
            input_format: Format of the input file
            output_format: Format to write
            splays_option: Splay handling option
            generate_lrud: Generate LRUD data from splays before writing
            encoding: Character encoding used to read and write the files
            today: Date written in Toporobot headers (defaults to now)

        Returns:
            Lines written to the output file

        Raises:
            SurveyParseException: If the input data is not valid
            SurveyModelError: If the survey cannot be written in the format
        """
        logger.info(
            "Reading data file '%s' with format %s. Splays option: %s",
            input_path,
            input_format.display_name,
            splays_option.description,
        )
        survey = CaveSurveyInterface.load_survey(
            input_path, input_format, encoding=encoding
        )

        if generate_lrud:
            logger.info("Generating LRUD data from splays...")
            survey.generate_lrud_from_splays()

        lines = CaveSurveyInterface.generate_output(
            survey, output_format, splays_option, today
        )

        if lines:
            logger.info("Writing output file: %s", output_path)
            write_text_file(lines, output_path, encoding=encoding)

        return lines
