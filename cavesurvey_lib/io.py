# -*- coding: utf-8 -*-
"""Text file I/O for survey data files.

Parsers work on lists of already decoded lines. These helpers read a file
into such a list, optionally expanding Survex ``*include`` statements in
place, and write a list of generated lines back out.
"""

import logging
import os
from pathlib import Path

from cavesurvey_lib.constants import DEFAULT_ENCODING

logger = logging.getLogger(__name__)

INCLUDE_COMMAND = "*include"
SURVEX_EXTENSION = ".svx"


# --- Reading Functions ---


def _include_path(line: str) -> str:
    """Extract the file path from an ``*include`` line."""
    path = line[len(INCLUDE_COMMAND) :].split(";", 1)[0].strip()
    if len(path) > 1 and path.startswith('"') and path.endswith('"'):
        path = path[1:-1]
    return path


def _resolve_include(including_file: Path, include: str) -> Path:
    """Locate an included file relative to the file including it.

    Survex allows the ``.svx`` extension to be left off, so when the file
    does not exist as named the lower case and then upper case extension
    are tried.
    """
    folder = including_file.parent
    candidate = folder / include
    if Path(include).suffix.lower() != SURVEX_EXTENSION and not candidate.exists():
        candidate = folder / f"{include}{SURVEX_EXTENSION}"
        if not candidate.exists():
            candidate = folder / f"{include}{SURVEX_EXTENSION.upper()}"
    return candidate


def _read_lines(
    path: Path,
    encoding: str,
    multi_file: bool,
    line_refs: list[str],
) -> list[str]:
    try:
        with path.open(mode="r", encoding=encoding, errors="replace") as f:
            text = f.read()
    except OSError as e:
        logger.error("Unable to read file '%s': %s", path, e.strerror or e)
        return []

    raw_lines = text.split("\n")
    if raw_lines and raw_lines[-1] == "":
        raw_lines.pop()

    lines: list[str] = []
    for line_no, line in enumerate(raw_lines, start=1):
        if multi_file:
            if line.strip().lower().startswith(INCLUDE_COMMAND):
                include_file = _resolve_include(path, _include_path(line.strip()))
                logger.info("Including file: %s", include_file)
                lines.extend(
                    _read_lines(include_file, encoding, multi_file, line_refs)
                )
                continue
            line_refs.append(f"{path}:{line_no}")
        lines.append(line)

    return lines


def read_text_file(
    path: Path,
    *,
    encoding: str = DEFAULT_ENCODING,
    multi_file: bool = False,
) -> tuple[list[str], list[str]]:
    """Read a text file into a list of lines.

    With ``multi_file`` set, each Survex ``*include`` line is replaced by the
    lines of the file it names (recursively), and a ``path:lineNo``
    reference is recorded for every line returned so that errors can be
    reported against the file the line came from.

    A file which cannot be read is logged as an error and gives no lines.

    Args:
        path: File to read
        encoding: Character encoding of the file
        multi_file: Expand ``*include`` statements

    Returns:
        Tuple of (lines, line_refs). ``line_refs`` is empty unless
        ``multi_file`` is set.
    """
    line_refs: list[str] = []
    lines = _read_lines(Path(path), encoding, multi_file, line_refs)
    return lines, line_refs


# --- Writing Functions ---


def write_text_file(
    lines: list[str],
    path: Path,
    *,
    encoding: str = DEFAULT_ENCODING,
) -> None:
    """Write lines to a text file, separated by the platform line separator.

    No line separator is written after the last line.

    Args:
        lines: Lines to write
        path: File to write
        encoding: Character encoding of the file
    """
    with Path(path).open(mode="w", encoding=encoding, newline="") as f:
        f.write(os.linesep.join(lines))
