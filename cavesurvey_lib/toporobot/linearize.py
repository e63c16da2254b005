# -*- coding: utf-8 -*-
"""Split a branching survey series into linked linear chains.

Toporobot data can only hold unbranched chains of legs, linked to each other
by their first or last station. Stations are identified by id alone, so
stations with different names but the same id are the same station.
"""

import logging

from cavesurvey_lib.errors import SurveyModelError
from cavesurvey_lib.models import Leg
from cavesurvey_lib.models import Series
from cavesurvey_lib.models import Station

logger = logging.getLogger(__name__)


def _crosses_existing_chain(chains: list[Series], station: Station) -> bool:
    """Check whether a station is in the middle of an already built chain.

    The last leg of each chain is not checked, as a chain ending at the
    station can be linked to. Only to stations are checked because every
    from station except the first one is also the to station of a leg.
    """
    return any(
        leg.to_station is not None and leg.to_station.id == station.id
        for chain in chains
        for leg in chain.legs[:-1]
    )


def _find_chain_with_station(
    station_id: int,
    exclude_idx: int,
    chains: list[Series],
) -> int | None:
    for idx, chain in enumerate(chains):
        if idx == exclude_idx:
            continue
        for leg in chain.legs:
            if leg.from_station.id == station_id:
                return idx
            if leg.to_station is not None and leg.to_station.id == station_id:
                return idx
    return None


def _build_chain(
    remaining: list[Leg],
    chain: Series,
    chains: list[Series],
) -> None:
    """Move legs from ``remaining`` on to either end of ``chain``.

    Passes are made over the remaining legs until a pass adds no leg. A leg
    is rejected if it would loop back on to a station already in the chain,
    or join the chain in the middle of a chain built earlier.
    """
    used_ids: set[int] = set()
    last_station_id: int | None = None

    legs_added = True
    while legs_added:
        legs_added = False

        idx = 0
        while idx < len(remaining):
            leg = remaining[idx]
            added = False

            if chain.leg_count == 0 or last_station_id == leg.from_station.id:
                if leg.to_station.id not in used_ids and not (
                    chain.leg_count > 0
                    and _crosses_existing_chain(chains, leg.from_station)
                ):
                    chain.add_leg(leg)
                    last_station_id = leg.to_station.id
                    used_ids.add(leg.to_station.id)
                    added = True

            elif leg.to_station.id == chain.legs[0].from_station.id:
                if leg.from_station.id not in used_ids and (
                    not _crosses_existing_chain(chains, leg.to_station)
                ):
                    chain.add_leg(leg, 0)
                    used_ids.add(leg.from_station.id)
                    added = True

            if added:
                del remaining[idx]
                legs_added = True
            else:
                idx += 1


def _chain_name(series_in: Series, chain: Series, number: int) -> str:
    """Name a chain after the series prefix of its first to station.

    The from station name of the first leg is not used, as equating has often
    replaced it with the name of a station in another series.
    """
    station_name = series_in.mapped_station_name(chain.legs[0].to_station.id)
    prefix = f"{series_in.name}-{station_name}"
    dot_pos = station_name.rfind(".")
    if dot_pos > 0:
        prefix = station_name[:dot_pos]
    return f"{number}-{prefix}"


def convert_to_linear_series(series_in: Series) -> Series:
    """Split a single survey series into linear chains without branches or loops.

    The input series is not changed.

    Args:
        series_in: Series with legs but no inner series. Every leg must have
            a to station.

    Returns:
        Series holding no legs itself, with the chains as inner series and
        links joining the first and last station of each chain to another
        chain containing the same station

    Raises:
        SurveyModelError: If the series contains inner series, or if some
            legs cannot be linked to any chain
    """
    if series_in.inner_series:
        raise SurveyModelError("Nested series cannot be converted to linear chains.")

    output = Series(name=series_in.name)
    chains = output.inner_series
    remaining = list(series_in.legs)

    while True:
        chain = Series(name=series_in.name)
        chain.set_calibration_from(series_in)

        _build_chain(remaining, chain, chains)
        if chain.leg_count == 0:
            break

        chain.name = _chain_name(series_in, chain, len(chains) + 1)
        output.add_series(chain)

    if remaining:
        raise SurveyModelError(
            "Some legs could not be linked to other legs in the series."
        )

    logger.info("Linking series:")
    for idx, chain in enumerate(chains):
        first_station = chain.legs[0].from_station
        end_station = chain.legs[-1].to_station

        # End links are added even when the start is linked, otherwise loops
        # are never closed and groups of chains can end up unconnected
        for label, station in (("start", first_station), ("end", end_station)):
            match_idx = _find_chain_with_station(station.id, idx, chains)
            if match_idx is None:
                continue
            logger.info(
                "Series: %s %s stn linked to %s",
                chain.name,
                label,
                chains[match_idx].name,
            )
            output.add_link(chain.name, station, chains[match_idx].name, station)

    return output
