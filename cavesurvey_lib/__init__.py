# -*- coding: utf-8 -*-
"""Cave Survey Library.

A Python library for converting cave survey data between formats. Reads
Compass .dat, Survex .svx, PocketTopo .txt and AutoCAD .dxf data into one
survey model, and writes Survex, Toporobot or JSON data.

Usage:
    # Load a survey (format detected from the file extension)
    from cavesurvey_lib import CaveSurveyInterface
    survey = CaveSurveyInterface.load_survey(Path("cave.txt"))

    # Rebuild passage dimensions from splay shots
    survey.generate_lrud_from_splays()

    for series in survey:
        print(f"Series: {series.name} ({series.leg_count} legs)")

    # Write the survey as Survex data
    lines = CaveSurveyInterface.generate_output(survey, OutputFormat.SURVEX)
"""

__version__ = "0.1.0"

# Constants
from cavesurvey_lib.constants import DEFAULT_ENCODING
from cavesurvey_lib.constants import JSON_ENCODING

# Enums
from cavesurvey_lib.enums import BearingUnit
from cavesurvey_lib.enums import FixType
from cavesurvey_lib.enums import GradientUnit
from cavesurvey_lib.enums import InputFormat
from cavesurvey_lib.enums import LengthUnit
from cavesurvey_lib.enums import OutputFormat
from cavesurvey_lib.enums import Severity
from cavesurvey_lib.enums import SplayFormat
from cavesurvey_lib.enums import SplaysOption
from cavesurvey_lib.errors import SourceLocation
from cavesurvey_lib.errors import SurveyModelError
from cavesurvey_lib.errors import SurveyParseError
from cavesurvey_lib.errors import SurveyParseException
from cavesurvey_lib.interface import CaveSurveyInterface
from cavesurvey_lib.io import read_text_file
from cavesurvey_lib.io import write_text_file
from cavesurvey_lib.models import Equate
from cavesurvey_lib.models import Leg
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import SeriesLink
from cavesurvey_lib.models import Station
from cavesurvey_lib.models import Survey
from cavesurvey_lib.models import ToStationLrud

__all__ = [
    # Constants
    "DEFAULT_ENCODING",
    "JSON_ENCODING",
    # Enums
    "BearingUnit",
    # I/O
    "CaveSurveyInterface",
    # Models
    "Equate",
    "FixType",
    "GradientUnit",
    "InputFormat",
    "Leg",
    "LengthUnit",
    "OutputFormat",
    "Series",
    "SeriesLink",
    "Severity",
    # Errors
    "SourceLocation",
    "SplayFormat",
    "SplaysOption",
    "Station",
    "Survey",
    "SurveyModelError",
    "SurveyParseError",
    "SurveyParseException",
    "ToStationLrud",
    "read_text_file",
    "write_text_file",
]
