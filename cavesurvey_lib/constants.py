# -*- coding: utf-8 -*-
"""Constants used throughout the cavesurvey_lib library.

This module centralizes all constant values to ensure consistency
and avoid magic numbers/strings scattered across the codebase.
"""

# -----------------------------------------------------------------------------
# File Encodings
# -----------------------------------------------------------------------------

#: Default encoding used to read and write survey text files
DEFAULT_ENCODING = "utf-8"

#: Encoding used for JSON files
JSON_ENCODING = "utf-8"

# -----------------------------------------------------------------------------
# Unit Conversions
# -----------------------------------------------------------------------------

#: Number of feet in one metre
FEET_PER_METRE: float = 3.28083989501312

# -----------------------------------------------------------------------------
# Data Order Items (Survex style field roles)
# -----------------------------------------------------------------------------

DATA_ORDER_FROM = "FROM"
DATA_ORDER_TO = "TO"
DATA_ORDER_LENGTH = "LENGTH"
DATA_ORDER_BEARING = "BEARING"
DATA_ORDER_GRADIENT = "GRADIENT"
DATA_ORDER_IGNOREALL = "IGNOREALL"
DATA_ORDER_FROMDEPTH = "FROMDEPTH"
DATA_ORDER_TODEPTH = "TODEPTH"
DATA_ORDER_DEPTHCHANGE = "DEPTHCHANGE"

#: Survex default data order for normal legs
DEFAULT_DATA_ORDER: tuple[str, ...] = (
    DATA_ORDER_FROM,
    DATA_ORDER_TO,
    DATA_ORDER_LENGTH,
    DATA_ORDER_BEARING,
    DATA_ORDER_GRADIENT,
)

#: Data order items which mark an order as a diving order
DIVING_DATA_ORDER_ITEMS: tuple[str, ...] = (
    DATA_ORDER_DEPTHCHANGE,
    DATA_ORDER_FROMDEPTH,
)

# -----------------------------------------------------------------------------
# Date Formats
# -----------------------------------------------------------------------------

#: Date format used by Survex `*DATE` commands
SURVEX_DATE_FORMAT = "%Y.%m.%d"

#: Date format used in PocketTopo trip lines
POCKETTOPO_DATE_FORMAT = "%Y/%m/%d"

#: Date and time format used in the Toporobot header
TOPOROBOT_DATETIME_FORMAT = "%y/%m/%d %H:%M:%S"

# -----------------------------------------------------------------------------
# LRUD Reconstruction
# -----------------------------------------------------------------------------

#: Bearing and clino tolerance (degrees) for matching splays to legs
LRUD_ANGLE_TOLERANCE: float = 3.0

#: Length tolerance (metres) for matching splays to legs
LRUD_LENGTH_TOLERANCE: float = 0.2

#: Splays steeper than this (degrees) are up/down candidates
LRUD_VERTICAL_THRESHOLD: float = 20.0

#: Splays shallower than this (degrees) are left/right candidates
LRUD_HORIZONTAL_THRESHOLD: float = 70.0

# -----------------------------------------------------------------------------
# Compass Format
# -----------------------------------------------------------------------------

#: Reading value used by Compass for a missing measurement
COMPASS_MISSING_READING: float = -999.0

#: LRUD tokens used by Compass to indicate a missing passage dimension
COMPASS_MISSING_LRUD_TOKENS: tuple[str, ...] = ("-9999.00", "-9.90")

# -----------------------------------------------------------------------------
# Survex Format
# -----------------------------------------------------------------------------

#: LRUD values line with no passage data
SURVEX_BLANK_LRUD = " 0.00\t 0.00\t 0.00\t 0.00"

#: Header line of Survex passage data blocks
SURVEX_PASSAGE_HEADER = "*data passage station left right up down"

#: Mnemonic substitutions for characters not allowed in Survex names
SURVEX_NAME_SUBSTITUTIONS: dict[str, str] = {
    " ": "_",
    "!": "_ex",
    '"': "_dq",
    "#": "_hs",
    "$": "_dl",
    "%": "_pc",
    "&": "_am",
    "'": "_sq",
    "(": "_ob",
    ")": "_cb",
    "*": "_as",
    "+": "_pl",
    ",": "_cm",
    "/": "_fs",
    ":": "_co",
    ";": "_sc",
    "<": "_lt",
    "=": "_eq",
    ">": "_gt",
    "?": "_qm",
    "@": "_at",
    "[": "_os",
    "\\": "_bs",
    "]": "_cs",
    "^": "_ht",
    "`": "_gr",
    "{": "_oc",
    "|": "_pi",
    "}": "_cc",
    "~": "_ti",
}

# -----------------------------------------------------------------------------
# DXF Format
# -----------------------------------------------------------------------------

#: Maximum number of lines scanned ahead for a DXF group code
DXF_MAX_LOOKAHEAD: int = 15

# -----------------------------------------------------------------------------
# Toporobot Format
# -----------------------------------------------------------------------------

#: Toporobot LRUD fields for a station with no passage data
TOPOROBOT_BLANK_LRUD = "    0.00    0.00    0.00    0.00"

#: Name of the synthetic root series used when flattening a survey
TOPOROBOT_ROOT_SERIES = "root"

#: Toporobot file header, filled in with the conversion date
TOPOROBOT_HEADER: tuple[str, ...] = (
    "    -6     1   1   1   1 Cave Name",
    "    -5     1   1   1   1        0.00        0.00        0.00     1     0",
    "    -4     1   1   1   1 {date_time}  CaveSurvey",
    "    -3     1   1   1   1",
    "    -2     1   1   1   1 {date}  Converted     Data          0    0.00   0   1",
    "    -1     1   1   1   1  360.00  360.00    0.05    1.00    1.00  100.00    0.00",
)
