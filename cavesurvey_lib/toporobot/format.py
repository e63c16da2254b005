# -*- coding: utf-8 -*-
"""Formatting (serialization) of surveys as Toporobot text data.

Toporobot only supports numbered stations in unbranched chains of legs, so
the survey is converted before it is written:

1. All series, including inner series, are flattened into one series. Station
   names are expanded to the full dotted series path, and linked stations are
   all renamed to the first name in their link group so the links become
   implicit.
2. The flattened series is split into linked linear chains.

Series and station names of the input are therefore not kept, and stations
are renumbered by their position in each chain.
"""

import datetime
import logging

from cavesurvey_lib.constants import TOPOROBOT_BLANK_LRUD
from cavesurvey_lib.constants import TOPOROBOT_DATETIME_FORMAT
from cavesurvey_lib.constants import TOPOROBOT_HEADER
from cavesurvey_lib.constants import TOPOROBOT_ROOT_SERIES
from cavesurvey_lib.models import Leg
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Survey
from cavesurvey_lib.models import ToStationLrud
from cavesurvey_lib.toporobot.linearize import convert_to_linear_series
from cavesurvey_lib.units import pad_number

logger = logging.getLogger(__name__)


def lrud_fields(left: float, right: float, up: float, down: float) -> str:
    """Fixed width LRUD fields. Negative down values are written as zero."""
    return "".join(
        pad_number(value, 2, 8) for value in (left, right, up, max(down, 0.0))
    )


def station_index(chain: Series, station_id: int) -> int | None:
    """1 based position of a station along a chain, 0 for its first station."""
    for idx, leg in enumerate(chain.legs):
        if leg.from_station.id == station_id:
            return idx
    if chain.legs and chain.legs[-1].to_station.id == station_id:
        return chain.leg_count
    return None


def _canonical_name(name: str, link_groups: list[list[str]]) -> str:
    for group in link_groups:
        if any(other.lower() == name.lower() for other in group[1:]):
            name = group[0]
    return name


class ToporobotWriter:
    """Generates Toporobot format data from a survey."""

    def __init__(self) -> None:
        self._terminal_lruds: list[ToStationLrud] = []

    def generate(
        self,
        survey: Survey,
        default_date: datetime.datetime,
        output_splays: bool = False,
    ) -> list[str]:
        """Generate Toporobot format data for a survey.

        Args:
            survey: Survey to write
            default_date: Date and time written in the file header
            output_splays: Include splay legs in the output

        Returns:
            Text lines of Toporobot data

        Raises:
            SurveyModelError: If the legs cannot be split into linked chains
        """
        logger.info("Generating Toporobot format data...")

        flattened = self.convert_to_single_series(survey, output_splays)
        linear = convert_to_linear_series(flattened)
        chains = linear.inner_series

        date_time = default_date.strftime(TOPOROBOT_DATETIME_FORMAT)
        date = f"{date_time[6:8]}/{date_time[3:5]}/{date_time[0:2]}"
        lines = [
            line.format(date_time=date_time, date=date) for line in TOPOROBOT_HEADER
        ]

        # Where several chains link to the same station, all links go to the
        # first chain seen for it. Otherwise groups of chains can end up linked
        # among themselves but not to each other.
        preferred_chains: dict[int, int] = {}

        for series_no, chain in enumerate(chains, start=1):
            lines.append(f"{series_no:6d}    -2   1   1   1 Series {chain.name}")
            lines.append(
                self._link_line(series_no, chain, linear, preferred_chains)
            )

            lines.append(
                f"{series_no:6d}{0:6d}   1   1   1    0.00    0.00    0.00"
                f"{lrud_fields(*chain.legs[0].get_lrud())}"
            )

            for idx, leg in enumerate(chain.legs):
                # Toporobot holds the LRUD on the to station of each leg
                if idx + 1 < chain.leg_count:
                    lrud = lrud_fields(*chain.legs[idx + 1].get_lrud())
                else:
                    lrud = self._terminal_lrud(leg)

                lines.append(
                    f"{series_no:6d}{idx + 1:6d}   1   1   1"
                    f"{pad_number(leg.get_length(), 2, 8)}"
                    f"{pad_number(leg.get_compass(), 2, 8)}"
                    f"{pad_number(leg.get_clino(), 2, 8)}"
                    f"{lrud}"
                )

        return lines

    def _terminal_lrud(self, leg: Leg) -> str:
        """LRUD cached for the end station of the last leg of a chain."""
        for idx, record in enumerate(self._terminal_lruds):
            if record.from_station.name == leg.to_station.name:
                del self._terminal_lruds[idx]
                return lrud_fields(record.left, record.right, record.up, record.down)
        return TOPOROBOT_BLANK_LRUD

    @staticmethod
    def _link_line(
        series_no: int,
        chain: Series,
        linear: Series,
        preferred_chains: dict[int, int],
    ) -> str:
        """Line linking the first and last station of a chain to other chains.

        An unlinked end is linked to the chain itself, which is how Toporobot
        represents a chain with no connection.
        """
        chains = linear.inner_series
        start_series, start_station = series_no, 0
        end_series, end_station = series_no, chain.leg_count
        found_first_link = False

        for link in linear.links:
            if link.series1 != chain.name:
                continue

            if chain.legs[0].from_station.id == link.station1.id:
                link_to_start = True
            elif chain.legs[-1].to_station.id == link.station1.id:
                link_to_start = False
            else:
                continue

            link_idx = next(
                (idx for idx, other in enumerate(chains) if other.name == link.series2),
                None,
            )
            if link_idx is None:
                continue

            station_id = link.station2.id
            target_idx = preferred_chains.setdefault(station_id, link_idx)
            if target_idx == series_no - 1:
                target_idx = link_idx

            target_station = station_index(chains[target_idx], station_id)
            if target_station is None and target_idx != link_idx:
                target_idx = link_idx
                target_station = station_index(chains[target_idx], station_id)
            if target_station is None:
                logger.warning(
                    "Station %s not found in linked series %s.",
                    link.station2.name,
                    chains[target_idx].name,
                )
                continue

            if link_to_start:
                start_series, start_station = target_idx + 1, target_station
            else:
                end_series, end_station = target_idx + 1, target_station

            if found_first_link:
                break
            found_first_link = True

        return (
            f"{series_no:6d}    -1   1   1   1"
            f"{start_series:8d}{start_station:8d}"
            f"{end_series:8d}{end_station:8d}"
            f"{chain.leg_count:8d}       3       0"
        )

    # -------------------------------------------------------------------------
    # Flattening
    # -------------------------------------------------------------------------

    def convert_to_single_series(
        self,
        survey: Survey,
        output_splays: bool = False,
    ) -> Series:
        """Flatten a survey into one series of legs with fully qualified names.

        LRUD records for stations which only end legs are kept by the writer,
        renamed with the same fully qualified names, for writing at the end
        of each chain.

        Args:
            survey: Survey to flatten
            output_splays: Keep splay legs

        Returns:
            Series named ``root`` holding every leg of the survey
        """
        logger.info("Flattening survey series hierarchy...")

        root = Series(name=TOPOROBOT_ROOT_SERIES)
        self._terminal_lruds = []
        link_groups: list[list[str]] = []

        # All links are gathered before any legs are renamed
        for series in survey:
            self._gather_links(series, root.name, link_groups)

        for series in survey:
            self._add_legs(series, root, root.name, link_groups, output_splays)

        for group in link_groups:
            logger.info("Linked:%s", ":".join(group))

        return root

    def _gather_links(
        self,
        series: Series,
        prefix: str,
        link_groups: list[list[str]],
    ) -> None:
        logger.info("Processing links from series: %s", series.name)
        full_name = f"{prefix}.{series.name}"

        for link in series.links:
            series1 = f".{link.series1}" if link.series1 else ""
            series2 = f".{link.series2}" if link.series2 else ""
            station1 = f"{full_name}{series1}.{link.station1.name}"
            station2 = f"{full_name}{series2}.{link.station2.name}"

            # The first name in a group is used for every station in it
            new_group = True
            for group in link_groups:
                for name in group:
                    if name.lower() == station1.lower():
                        group.append(station2)
                        new_group = False
                        break
                    if name.lower() == station2.lower():
                        group.append(station1)
                        new_group = False
                        break
            if new_group:
                link_groups.append([station1, station2])

        for inner in series.inner_series:
            self._gather_links(inner, full_name, link_groups)

    def _add_legs(
        self,
        series: Series,
        root: Series,
        prefix: str,
        link_groups: list[list[str]],
        output_splays: bool,
    ) -> None:
        logger.info("Processing legs from series: %s", series.name)
        full_name = f"{prefix}.{series.name}"

        for idx in range(series.leg_count):
            leg = series.get_leg_corrected(idx)
            if leg.splay and not output_splays:
                continue
            if leg.to_station is None:
                logger.debug("Skipping leg with no to station: %s", leg)
                continue

            from_name = _canonical_name(
                f"{full_name}.{leg.from_station.name}", link_groups
            )
            to_name = _canonical_name(f"{full_name}.{leg.to_station.name}", link_groups)

            leg.from_station = root.create_station(from_name)
            leg.to_station = root.create_station(to_name)
            root.add_leg(leg)

        for record in series.to_station_lruds:
            renamed = record.model_copy(deep=True)
            renamed.from_station.label = f"{full_name}.{record.from_station.name}"
            self._terminal_lruds.append(renamed)

        for inner in series.inner_series:
            self._add_legs(inner, root, full_name, link_groups, output_splays)
