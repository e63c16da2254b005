# -*- coding: utf-8 -*-
"""Helpers shared by the survey data parsers."""

import logging
import re
from pathlib import Path

from cavesurvey_lib.constants import DEFAULT_ENCODING
from cavesurvey_lib.enums import Severity
from cavesurvey_lib.equates import process_equates
from cavesurvey_lib.errors import SourceLocation
from cavesurvey_lib.errors import SurveyParseError
from cavesurvey_lib.errors import SurveyParseException
from cavesurvey_lib.io import read_text_file
from cavesurvey_lib.models import Equate
from cavesurvey_lib.models import Survey

logger = logging.getLogger(__name__)

MULTIPLE_SPACES = re.compile(r" {2,}")

SUMMARY_BANNER = (
    "============================ Cave Survey Data Summary "
    "============================"
)


def parse_data_string_into_items(data: str) -> list[str]:
    """Split a line into items separated by spaces or tabs.

    Whitespace inside double quotes does not split an item, and the quotes
    themselves are dropped. A pair of quotes with nothing between them gives
    an empty item.

    Args:
        data: Line of data items

    Returns:
        List of data items
    """
    items: list[str] = []
    current = ""
    inside_quotes = False

    for char in data:
        if inside_quotes:
            if char == '"':
                items.append(current)
                current = ""
                inside_quotes = False
            else:
                current += char
        elif char == '"':
            inside_quotes = True
        elif char in (" ", "\t"):
            if current:
                items.append(current)
                current = ""
        else:
            current += char

    if current:
        items.append(current)

    return items


def clean_and_split_data_line(data: str) -> list[str]:
    """Collapse all whitespace in a line and split it into items."""
    return MULTIPLE_SPACES.sub(" ", data.replace("\t", " ").strip()).split(" ")


def split_trip_comment(comment: str) -> list[str]:
    """Split a comment into lines at ``\\r`` (literal or escaped) separators."""
    return comment.replace("\\r", "\r").split("\r")


def log_survey_debug_data(survey: Survey) -> None:
    logger.debug(SUMMARY_BANNER)
    for line in survey.debug_summary():
        logger.debug(line)


class SurveyParser:
    """Base class for the survey data parsers.

    Subclasses implement ``parse_lines``. Data errors are raised as
    ``SurveyParseException`` and also recorded in ``errors``, along with any
    warnings, so that callers can report everything found during a parse.

    Attributes:
        errors: List of parsing errors and warnings encountered
    """

    #: Input format name used in log messages
    format_name: str = "survey"

    #: Read Survex style ``*include`` statements in ``parse_file``
    multi_file: bool = False

    def __init__(self) -> None:
        """Initialize a new parser with empty error list."""
        self.errors: list[SurveyParseError] = []
        self._source: str = "<string>"
        self._line_refs: list[str] = []

    def _location(self, line_no: int, text: str = "") -> SourceLocation:
        """Location of a 1-based line number in the lines being parsed."""
        line_ref = None
        if 0 < line_no <= len(self._line_refs):
            line_ref = self._line_refs[line_no - 1]
        return SourceLocation(
            source=self._source,
            line=line_no,
            line_ref=line_ref,
            text=text,
        )

    def _error(
        self, message: str, line_no: int, text: str = ""
    ) -> SurveyParseException:
        """Record a data error and return the exception for it to be raised."""
        exc = SurveyParseException(message, self._location(line_no, text))
        self.errors.append(exc.to_error())
        return exc

    def _add_warning(self, message: str, line_no: int, text: str = "") -> None:
        """Record and log a warning."""
        location = self._location(line_no, text)
        self.errors.append(
            SurveyParseError(
                severity=Severity.WARNING,
                message=message,
                location=location,
            )
        )
        logger.warning("%s %s", message, location)

    def _parse_float(self, item: str, line_no: int, text: str = "") -> float:
        try:
            return float(item)
        except ValueError:
            raise self._error(
                f"Invalid number '{item}'.", line_no, text
            ) from None

    def _finish(
        self,
        survey: Survey,
        equates: list[Equate],
        *,
        allow_missing_series: bool = False,
    ) -> Survey:
        """Resolve the equates gathered while parsing and log the result."""
        process_equates(equates, survey, allow_missing_series=allow_missing_series)
        log_survey_debug_data(survey)
        return survey

    def parse_lines(
        self,
        lines: list[str],
        line_refs: list[str] | None = None,
    ) -> Survey:
        raise NotImplementedError

    def parse_file(
        self,
        path: Path,
        *,
        encoding: str = DEFAULT_ENCODING,
    ) -> Survey:
        """Read and parse a survey data file.

        Args:
            path: Path to the survey data file
            encoding: Character encoding of the file

        Returns:
            Parsed survey
        """
        self._source = str(path)
        lines, line_refs = read_text_file(
            Path(path), encoding=encoding, multi_file=self.multi_file
        )
        return self.parse_lines(lines, line_refs or None)
