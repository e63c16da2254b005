# -*- coding: utf-8 -*-
"""Enumerations for cave survey data.

This module contains the enumerations shared by the data model, the
format parsers and the writers: measurement units, station fix types,
splay output options and the supported input/output formats.
"""

from enum import Enum


class LengthUnit(str, Enum):
    """Unit for length, depth and passage dimension measurements."""

    METRES = "metres"
    FEET = "feet"
    YARDS = "yards"

    @classmethod
    def from_survex(cls, token: str) -> "LengthUnit | None":
        """Get the length unit for a Survex `*UNITS` value.

        Args:
            token: Unit keyword (case-insensitive)

        Returns:
            LengthUnit or None if the keyword is not a length unit
        """
        mapping = {
            "metres": cls.METRES,
            "meters": cls.METRES,
            "metric": cls.METRES,
            "feet": cls.FEET,
            "yards": cls.YARDS,
        }
        return mapping.get(token.lower())


class BearingUnit(str, Enum):
    """Unit for compass bearing measurements."""

    DEGREES = "degrees"
    GRADS = "grads"
    MINUTES = "minutes"

    @classmethod
    def from_survex(cls, token: str) -> "BearingUnit | None":
        """Get the bearing unit for a Survex `*UNITS` value."""
        mapping = {
            "degs": cls.DEGREES,
            "degrees": cls.DEGREES,
            "grads": cls.GRADS,
            "mils": cls.GRADS,
            "minutes": cls.MINUTES,
        }
        return mapping.get(token.lower())


class GradientUnit(str, Enum):
    """Unit for clino (inclination) measurements."""

    DEGREES = "degrees"
    GRADS = "grads"
    MINUTES = "minutes"
    PERCENT = "percent"

    @classmethod
    def from_survex(cls, token: str) -> "GradientUnit | None":
        """Get the gradient unit for a Survex `*UNITS` value."""
        mapping = {
            "degs": cls.DEGREES,
            "degrees": cls.DEGREES,
            "grads": cls.GRADS,
            "mils": cls.GRADS,
            "percent": cls.PERCENT,
            "percentage": cls.PERCENT,
            "minutes": cls.MINUTES,
        }
        return mapping.get(token.lower())


class FixType(str, Enum):
    """How the position of a fixed station was obtained.

    Attributes:
        NONE: Station is not fixed
        GPS: Position from a GPS reading
        OTHER: Position from another source (e.g. a map or CAD drawing)
    """

    NONE = "none"
    GPS = "gps"
    OTHER = "other"


class SplayFormat(str, Enum):
    """How splay legs are written to Survex output.

    Attributes:
        NONE: Splays are not written
        FLAGGED: Splays are written with named stations inside `*FLAGS SPLAY`
        ANONYMOUS: Splays are written to the anonymous station `-`
    """

    NONE = "none"
    FLAGGED = "flagged"
    ANONYMOUS = "anonymous"


class SplaysOption(str, Enum):
    """Splay handling option selected for a conversion.

    Attributes:
        NAMED: Output splays with named stations
        NONE: Do not output splays
        DEFAULT: Use the writer's default behaviour
        ANON: Output splays to anonymous stations
    """

    NAMED = "named"
    NONE = "none"
    DEFAULT = "default"
    ANON = "anon"

    @property
    def description(self) -> str:
        """Human readable description used in conversion log messages."""
        return {
            SplaysOption.NONE: "None",
            SplaysOption.ANON: "Anonymous",
            SplaysOption.DEFAULT: "Default",
            SplaysOption.NAMED: "Named to Stations",
        }[self]


class InputFormat(str, Enum):
    """Survey data formats which can be read.

    Attributes:
        COMPASS: Compass .dat survey data
        DXF: AutoCAD DXF centreline drawing
        POCKETTOPO: PocketTopo text export
        SURVEX: Survex .svx source
    """

    COMPASS = "compass"
    DXF = "dxf"
    POCKETTOPO = "pockettopo"
    SURVEX = "survex"

    @property
    def display_name(self) -> str:
        """Format name used in log messages."""
        return {
            InputFormat.COMPASS: "Compass",
            InputFormat.DXF: "DXF",
            InputFormat.POCKETTOPO: "PocketTopo",
            InputFormat.SURVEX: "Survex",
        }[self]

    @classmethod
    def from_extension(cls, ext: str) -> "InputFormat | None":
        """Get input format from a file extension.

        Args:
            ext: File extension (with or without dot, case-insensitive)

        Returns:
            InputFormat or None if not recognized
        """
        ext_lower = ext.lower().lstrip(".")
        mapping = {
            "dat": cls.COMPASS,
            "dxf": cls.DXF,
            "txt": cls.POCKETTOPO,
            "svx": cls.SURVEX,
        }
        return mapping.get(ext_lower)

    @classmethod
    def from_letter_code(cls, code: str) -> "InputFormat":
        """Get input format from a single letter code (c, d, p or s).

        Raises:
            ValueError: If the code is not a known input format letter
        """
        mapping = {
            "c": cls.COMPASS,
            "d": cls.DXF,
            "p": cls.POCKETTOPO,
            "s": cls.SURVEX,
        }
        try:
            return mapping[code.lower()]
        except KeyError:
            raise ValueError(
                f"Unknown data format letter code: `{code}`"
            ) from None


class OutputFormat(str, Enum):
    """Survey data formats which can be written.

    Attributes:
        SURVEX: Survex .svx source
        TOPOROBOT: Toporobot .text data
        JSON: JSON dump of the survey data model
    """

    SURVEX = "survex"
    TOPOROBOT = "toporobot"
    JSON = "json"

    @property
    def display_name(self) -> str:
        """Format name used in log messages."""
        return {
            OutputFormat.SURVEX: "Survex",
            OutputFormat.TOPOROBOT: "Toporobot",
            OutputFormat.JSON: "JSON",
        }[self]

    @classmethod
    def from_extension(cls, ext: str) -> "OutputFormat | None":
        """Get output format from a file extension.

        Args:
            ext: File extension (with or without dot, case-insensitive)

        Returns:
            OutputFormat or None if not recognized
        """
        ext_lower = ext.lower().lstrip(".")
        mapping = {
            "svx": cls.SURVEX,
            "text": cls.TOPOROBOT,
            "json": cls.JSON,
        }
        return mapping.get(ext_lower)

    @classmethod
    def from_letter_code(cls, code: str) -> "OutputFormat":
        """Get output format from a single letter code (s, t or j).

        Raises:
            ValueError: If the code is not a known output format letter
        """
        mapping = {
            "s": cls.SURVEX,
            "t": cls.TOPOROBOT,
            "j": cls.JSON,
        }
        try:
            return mapping[code.lower()]
        except KeyError:
            raise ValueError(
                f"Unknown data format letter code: `{code}`"
            ) from None


class Severity(str, Enum):
    """Severity level for parse errors.

    Attributes:
        ERROR: Critical parsing error
        WARNING: Non-fatal warning
    """

    ERROR = "error"
    WARNING = "warning"
