# -*- coding: utf-8 -*-
"""Resolution of equates into series links.

Parsers collect an ``Equate`` for each pair of equivalent stations they
find. Once the whole survey has been read, ``process_equates`` turns each
equate into a ``SeriesLink`` held by the innermost series which contains
both of the equated series.
"""

import logging

from cavesurvey_lib.errors import SurveyModelError
from cavesurvey_lib.models import Equate
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Station
from cavesurvey_lib.models import Survey

logger = logging.getLogger(__name__)


def _descend(series: Series, path: list[str]) -> Series:
    """Follow a path of inner series names down from a series."""
    live_series = series
    for name in path:
        inner = live_series.find_inner_series_by_name(name)
        if inner is None:
            raise SurveyModelError(
                f"Equate series name '{name}' did not match any inner series name."
            )
        live_series = inner
    return live_series


def _find_top_series(survey: Survey, name: str) -> Series | None:
    for series in survey:
        if series.name.lower() == name.lower():
            return series
    return None


def _link_station(
    parent: Series,
    path: list[str],
    station_name: str,
    allow_missing_series: bool,
) -> Station:
    """Create the station for one side of an equate.

    With ``allow_missing_series`` an unmatched inner series gives an
    unlinked station with id 0 instead of an error. PocketTopo exports
    often equate to stations in series which are not in the file.
    """
    if not path:
        return parent.create_station(station_name)

    try:
        series = _descend(parent, path)
    except SurveyModelError:
        if not allow_missing_series:
            raise
        logger.debug(
            "Equate to station '%s' in missing series '%s'",
            station_name,
            ".".join(path),
        )
        return Station(id=0, label=station_name)

    return series.create_station(station_name)


def _has_link(
    series: Series,
    series1: str,
    station1: Station,
    series2: str,
    station2: Station,
) -> bool:
    """Check for an existing link between two stations, in either direction."""
    first = (series1.lower(), station1.name)
    second = (series2.lower(), station2.name)
    for link in series.links:
        ends = {
            (link.series1.lower(), link.station1.name),
            (link.series2.lower(), link.station2.name),
        }
        if ends == {first, second}:
            return True
    return False


def process_equates(
    equates: list[Equate],
    survey: Survey,
    *,
    allow_missing_series: bool = False,
) -> None:
    """Convert equates gathered while parsing into series links.

    The series path of each side of an equate is a dot separated path from
    a top level series. The common start of the two paths locates the parent
    series, which receives a link between the stations, with each station
    path relative to the parent.

    Args:
        equates: Equates to process
        survey: Survey holding all the series named by the equates
        allow_missing_series: Create unlinked stations for equates into
            inner series which do not exist, instead of raising

    Raises:
        SurveyModelError: If an equate names a series which is not in the
            survey
    """
    for equate in equates:
        if len(equate.series1) > len(equate.series2):
            outer_series, outer_station = equate.series2, equate.station2
            inner_series, inner_station = equate.series1, equate.station1
        else:
            outer_series, outer_station = equate.series1, equate.station1
            inner_series, inner_station = equate.series2, equate.station2

        outer_path = outer_series.split(".")
        inner_path = inner_series.split(".")
        parent_path: list[str] = []

        while (
            outer_path
            and inner_path
            and outer_path[0].lower() == inner_path[0].lower()
        ):
            parent_path.append(outer_path.pop(0))
            inner_path.pop(0)

        if not parent_path:
            raise SurveyModelError(
                "Series in equate did not match any series name. "
                f"Series1: '{equate.series1}'. Series2: '{equate.series2}'."
            )

        live_series = _find_top_series(survey, parent_path[0])
        if live_series is None:
            raise SurveyModelError(
                f"Equate series outer name '{parent_path[0]}' did not match any "
                "cave name."
            )
        live_series = _descend(live_series, parent_path[1:])

        station1 = _link_station(
            live_series, outer_path, outer_station, allow_missing_series
        )
        station2 = _link_station(
            live_series, inner_path, inner_station, allow_missing_series
        )

        series1 = ".".join(outer_path)
        series2 = ".".join(inner_path)
        if _has_link(live_series, series1, station1, series2, station2):
            logger.debug(
                "Skipping repeated equate %s.%s = %s.%s",
                equate.series1,
                equate.station1,
                equate.series2,
                equate.station2,
            )
            continue

        live_series.add_link(series1, station1, series2, station2)
