# -*- coding: utf-8 -*-
"""Convert command for cave survey data files.

Reads Compass, DXF, PocketTopo or Survex data and writes it out as Survex,
Toporobot or JSON data.
"""

import argparse
import logging
from pathlib import Path

from cavesurvey_lib.constants import DEFAULT_ENCODING
from cavesurvey_lib.enums import InputFormat
from cavesurvey_lib.enums import OutputFormat
from cavesurvey_lib.enums import SplaysOption
from cavesurvey_lib.errors import SurveyModelError
from cavesurvey_lib.errors import SurveyParseException
from cavesurvey_lib.interface import CaveSurveyInterface

logger = logging.getLogger(__name__)


class ConversionError(Exception):
    """Error raised for invalid conversion operations."""


def _input_format(value: str) -> InputFormat:
    """Input format from its name or its single letter code."""
    try:
        return InputFormat(value.lower())
    except ValueError:
        return InputFormat.from_letter_code(value)


def _output_format(value: str) -> OutputFormat:
    """Output format from its name or its single letter code."""
    try:
        return OutputFormat(value.lower())
    except ValueError:
        return OutputFormat.from_letter_code(value)


def splays_option_from_flags(
    *,
    splays: bool,
    nosplays: bool,
    anonsplays: bool,
) -> SplaysOption:
    """Combine the splay command line flags into one splay option.

    Anonymous splays only apply when splays are not switched off.
    """
    option = SplaysOption.DEFAULT
    if nosplays:
        option = SplaysOption.NONE
    elif splays:
        option = SplaysOption.NAMED

    if anonsplays and option != SplaysOption.NONE:
        option = SplaysOption.ANON
    return option


def _resolve_formats(
    input_path: Path,
    output_path: Path,
    input_format: InputFormat | None,
    output_format: OutputFormat | None,
) -> tuple[InputFormat, OutputFormat]:
    if input_format is None:
        input_format = InputFormat.from_extension(input_path.suffix)
        if input_format is None:
            raise ConversionError(
                f"Cannot determine input format for: {input_path}"
            )

    if output_format is None:
        output_format = OutputFormat.from_extension(output_path.suffix)
        if output_format is None:
            raise ConversionError(
                f"Cannot determine output format for: {output_path}"
            )

    return input_format, output_format


def convert(args: list[str]) -> int:
    """Entry point for the convert command."""
    parser = argparse.ArgumentParser(
        prog="cavesurvey convert",
        description="Convert cave survey data files between formats",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cavesurvey convert -i cave.svx -o cave.text            # Survex to Toporobot
  cavesurvey convert -i cave.txt -o cave.svx --lrud      # PocketTopo to Survex
  cavesurvey convert -i cave.dat -o cave.json            # Compass to JSON
  cavesurvey convert -i data.in -o data.out -f p -t s    # Explicit formats

Input formats:  compass (c), dxf (d), pockettopo (p), survex (s)
Output formats: survex (s), toporobot (t), json (j)

Notes:
  - Formats are detected from the file extensions if not specified
  - Survex output includes splays unless --nosplays is given
  - Toporobot output only includes splays if --splays or --anonsplays is given
""",
    )

    parser.add_argument(
        "-i",
        "--input-file",
        type=Path,
        required=True,
        help="Input file path (.dat, .dxf, .txt or .svx)",
    )
    parser.add_argument(
        "-o",
        "--output-file",
        type=Path,
        required=True,
        help="Output file path (.svx, .text or .json)",
    )
    parser.add_argument(
        "-f",
        "--from",
        type=_input_format,
        default=None,
        dest="input_format",
        help="Input format name or letter (auto-detected if not specified)",
    )
    parser.add_argument(
        "-t",
        "--to",
        type=_output_format,
        default=None,
        dest="output_format",
        help="Output format name or letter (auto-detected if not specified)",
    )

    splays_group = parser.add_mutually_exclusive_group()
    splays_group.add_argument(
        "--splays",
        action="store_true",
        help="Write splay legs to named stations",
    )
    splays_group.add_argument(
        "--nosplays",
        action="store_true",
        help="Do not write splay legs",
    )
    parser.add_argument(
        "--anonsplays",
        action="store_true",
        help="Write splay legs to anonymous stations",
    )
    parser.add_argument(
        "--lrud",
        action="store_true",
        help="Generate LRUD data from splays before writing",
    )
    parser.add_argument(
        "--charset",
        default=DEFAULT_ENCODING,
        help=f"Character encoding of the files (default: {DEFAULT_ENCODING})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages",
    )

    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        if not parsed_args.input_file.exists():
            raise FileNotFoundError(
                f"Input file not found: {parsed_args.input_file}"
            )

        input_format, output_format = _resolve_formats(
            parsed_args.input_file,
            parsed_args.output_file,
            parsed_args.input_format,
            parsed_args.output_format,
        )

        CaveSurveyInterface.convert_file(
            parsed_args.input_file,
            parsed_args.output_file,
            input_format,
            output_format,
            splays_option_from_flags(
                splays=parsed_args.splays,
                nosplays=parsed_args.nosplays,
                anonsplays=parsed_args.anonsplays,
            ),
            generate_lrud=parsed_args.lrud,
            encoding=parsed_args.charset,
        )

    except (ConversionError, FileNotFoundError) as e:
        logger.error(e)  # noqa: TRY400
        return 1
    except SurveyParseException as e:
        logger.error("Failed to parse survey data: %s", e)  # noqa: TRY400
        return 1
    except SurveyModelError as e:
        logger.error("Failed to convert survey data: %s", e)  # noqa: TRY400
        return 1

    return 0
