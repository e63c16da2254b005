# -*- coding: utf-8 -*-
"""Error handling for cave survey parsing and processing.

Two tiers of errors are used:

- ``SurveyParseException`` for bad input data, raised by the parsers with
  the line number (or ``path:line`` reference) where the problem was found.
- ``SurveyModelError`` for violated model invariants, such as an equate
  referring to a series which does not exist.

``SurveyParseError`` is a plain record of an error or warning which the
parsers collect in their ``errors`` list.
"""

from dataclasses import dataclass

from cavesurvey_lib.enums import Severity


@dataclass(frozen=True)
class SourceLocation:
    """Tracks the source location of a line for error reporting.

    Attributes:
        source: The source file name or identifier
        line: Line number (1-based) in the parsed line list
        line_ref: ``path:lineNo`` reference for multi-file input
        text: The text of the offending line
    """

    source: str = "<string>"
    line: int | None = None
    line_ref: str | None = None
    text: str = ""

    def __str__(self) -> str:
        """Format as human-readable location string."""
        if self.line_ref:
            return f"(Line ref: {self.line_ref})"
        return f"(Line: {self.line})"


@dataclass(frozen=True)
class SurveyParseError:
    """Represents a parsing error or warning with source location.

    This is a data record for storing error information, not an exception.
    Use SurveyParseException for raising errors.

    Attributes:
        severity: ERROR or WARNING
        message: Human-readable error message
        location: Source location where error occurred (optional)
    """

    severity: Severity
    message: str
    location: SourceLocation | None = None

    def __str__(self) -> str:
        """Format as human-readable error string."""
        base = f"{self.severity.value}: {self.message}"
        if self.location:
            base += f" {self.location}"
            if self.location.text:
                base += f"\n  {self.location.text}"
        return base


class SurveyParseException(Exception):  # noqa: N818
    """Exception raised for invalid survey data.

    Attributes:
        message: Error message
        location: Source location where error occurred
    """

    def __init__(self, message: str, location: SourceLocation | None = None):
        self.message = message
        self.location = location
        super().__init__(str(self))

    def __str__(self) -> str:
        """Format as human-readable exception string."""
        if self.location:
            return f"{self.message} {self.location}"
        return self.message

    def to_error(self) -> SurveyParseError:
        """Convert exception to SurveyParseError record."""
        return SurveyParseError(
            severity=Severity.ERROR,
            message=self.message,
            location=self.location,
        )


class SurveyModelError(RuntimeError):
    """Raised when an operation would break the consistency of the model."""
