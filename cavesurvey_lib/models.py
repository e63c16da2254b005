# -*- coding: utf-8 -*-
"""Core data models for cave survey data.

This module contains the Pydantic models shared by every parser and writer:
- Station: A named survey station, optionally fixed to a position
- Leg: A shot between two stations (or a splay from one station)
- ToStationLrud: Passage dimensions at a station which only ends legs
- SeriesLink: A link joining a station in one series to another series
- Equate: A station equivalence gathered while parsing
- StationNameInterner: Maps station names to integer ids for a series
- Series: A named group of legs, possibly containing inner series
- Survey: The top level list of series

All readings are stored in fixed internal units:
- Length/Depth/LRUD: metres
- Bearing/Clino: degrees

Unset readings are stored as ``None``.
"""

from __future__ import annotations

import datetime  # noqa: TC003
import math
import re
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel
from pydantic import Field
from pydantic import PrivateAttr
from pydantic import field_serializer
from pydantic import field_validator

from cavesurvey_lib import units
from cavesurvey_lib.constants import DIVING_DATA_ORDER_ITEMS
from cavesurvey_lib.enums import BearingUnit
from cavesurvey_lib.enums import FixType
from cavesurvey_lib.enums import GradientUnit
from cavesurvey_lib.enums import LengthUnit
from cavesurvey_lib.errors import SurveyModelError

INTEGER_NAME = re.compile(r"^[+-]?\d+$")


def data_order_is_diving(data_order: list[str]) -> bool:
    """Check whether a data order describes diving data."""
    return any(item in data_order for item in DIVING_DATA_ORDER_ITEMS)


class Station(BaseModel):
    """A survey station.

    Stations are identified by ``id`` within their series. Stations with a
    name which is not an integer get a negative id from the series
    ``StationNameInterner``.

    Attributes:
        id: Station id, unique within a series
        label: Station name (empty to use the id as the name)
        comment: Free text comment
        fix_type: How the station position was fixed (if at all)
        easting: Fixed position easting
        northing: Fixed position northing
        altitude: Fixed position altitude
        entrance: Station is a cave entrance
    """

    id: int
    label: str = ""
    comment: str = ""
    fix_type: FixType = FixType.NONE
    easting: float = 0.0
    northing: float = 0.0
    altitude: float = 0.0
    entrance: bool = False

    def __str__(self) -> str:
        return self.name

    @property
    def name(self) -> str:
        """Station name, or the id as text if the station has no label."""
        return self.label or str(self.id)

    @property
    def is_fixed(self) -> bool:
        return self.fix_type != FixType.NONE

    def set_fixed(
        self,
        fix_type: FixType,
        easting: float,
        northing: float,
        altitude: float,
    ) -> None:
        self.fix_type = fix_type
        self.easting = easting
        self.northing = northing
        self.altitude = altitude

    def clear_fix(self) -> None:
        self.fix_type = FixType.NONE
        self.easting = 0.0
        self.northing = 0.0
        self.altitude = 0.0


class Leg(BaseModel):
    """A survey leg between two stations.

    All measurements are stored in internal units (metres, degrees). The
    LRUD passage dimensions apply to the ``from_station``.

    A diving leg records depths instead of a clino. A diving leg with no
    ``from_depth`` is a depth change leg, with the change of depth stored
    in ``to_depth``.
    """

    from_station: Station
    to_station: Station | None = None
    length: float | None = None
    compass: float | None = None
    clino: float | None = None
    from_depth: float | None = None
    to_depth: float | None = None
    comment: str = ""

    left: float = 0.0
    right: float = 0.0
    up: float = 0.0
    down: float = 0.0

    splay: bool = False
    duplicate: bool = False
    surface: bool = False
    nosurvey: bool = False
    diving: bool = False
    used_for_lrud: bool = False

    def __str__(self) -> str:
        text = self.from_station.name
        if self.to_station is not None:
            text += f" - {self.to_station.name}"
        return text

    # -----------------------------
    # Readings
    # -----------------------------

    def get_length(self, unit: LengthUnit = LengthUnit.METRES) -> float | None:
        if self.length is None:
            return None
        return units.length_from_metres(self.length, unit)

    def set_length(self, value: float, unit: LengthUnit = LengthUnit.METRES) -> None:
        self.length = units.length_to_metres(value, unit)

    def get_compass(self, unit: BearingUnit = BearingUnit.DEGREES) -> float | None:
        if self.compass is None:
            return None
        return units.bearing_from_degrees(self.compass, unit)

    def set_compass(
        self, value: float, unit: BearingUnit = BearingUnit.DEGREES
    ) -> None:
        self.compass = units.bearing_to_degrees(value, unit)

    def get_clino(self, unit: GradientUnit = GradientUnit.DEGREES) -> float | None:
        if self.clino is None:
            return None
        return units.gradient_from_degrees(self.clino, unit)

    def set_clino(
        self, value: float, unit: GradientUnit = GradientUnit.DEGREES
    ) -> None:
        """Set the clino reading. A leg with a clino is not a diving leg."""
        self.clino = units.gradient_to_degrees(value, unit)
        self.diving = False

    def get_lrud(
        self, unit: LengthUnit = LengthUnit.METRES
    ) -> tuple[float, float, float, float]:
        """Get the (left, right, up, down) passage dimensions."""
        return (
            units.length_from_metres(self.left, unit),
            units.length_from_metres(self.right, unit),
            units.length_from_metres(self.up, unit),
            units.length_from_metres(self.down, unit),
        )

    def set_lrud(
        self,
        left: float,
        right: float,
        up: float,
        down: float,
        unit: LengthUnit = LengthUnit.METRES,
    ) -> None:
        self.left = units.length_to_metres(left, unit)
        self.right = units.length_to_metres(right, unit)
        self.up = units.length_to_metres(up, unit)
        self.down = units.length_to_metres(down, unit)

    # -----------------------------
    # Depths
    # -----------------------------

    @property
    def is_depth_change_leg(self) -> bool:
        return self.diving and self.from_depth is None

    def get_depth_change(self, unit: LengthUnit = LengthUnit.METRES) -> float | None:
        if self.to_depth is None:
            return None
        if self.is_depth_change_leg:
            return units.length_from_metres(self.to_depth, unit)
        if self.from_depth is None:
            return None
        return units.length_from_metres(self.to_depth - self.from_depth, unit)

    def set_depth_change(
        self, change: float, unit: LengthUnit = LengthUnit.METRES
    ) -> None:
        self.from_depth = None
        self.to_depth = units.length_to_metres(change, unit)
        self.diving = True
        self.nosurvey = False

    def get_from_depth(self, unit: LengthUnit = LengthUnit.METRES) -> float | None:
        if self.from_depth is None:
            return None
        return units.length_from_metres(self.from_depth, unit)

    def get_to_depth(self, unit: LengthUnit = LengthUnit.METRES) -> float | None:
        if self.to_depth is None:
            return None
        return units.length_from_metres(self.to_depth, unit)

    def set_depths(
        self,
        from_depth: float,
        to_depth: float,
        unit: LengthUnit = LengthUnit.METRES,
    ) -> None:
        self.from_depth = units.length_to_metres(from_depth, unit)
        self.to_depth = units.length_to_metres(to_depth, unit)
        self.diving = True
        self.nosurvey = False

    # -----------------------------
    # Flags
    # -----------------------------

    def set_splay(self, splay: bool) -> None:
        self.splay = splay
        if splay:
            self.nosurvey = False

    def set_nosurvey(self, nosurvey: bool) -> None:
        self.nosurvey = nosurvey
        if nosurvey:
            self.splay = False

    # -----------------------------
    # Geometry
    # -----------------------------

    @property
    def horizontal_length(self) -> float:
        length = self.length or 0.0
        clino = self.clino or 0.0
        return abs(length * math.cos(math.radians(clino)))

    @property
    def vertical_length(self) -> float:
        length = self.length or 0.0
        clino = self.clino or 0.0
        return abs(length * math.sin(math.radians(clino)))

    def reverse(self) -> None:
        """Reverse the direction of the leg in place.

        Reversing a leg twice restores the original readings.
        """
        self.from_station, self.to_station = self.to_station, self.from_station

        if self.compass is not None:
            self.compass = units.adjust_bearing_within_range(self.compass + 180)

        if self.diving:
            if self.is_depth_change_leg:
                if self.to_depth is not None:
                    self.to_depth = -self.to_depth
            else:
                self.from_depth, self.to_depth = self.to_depth, self.from_depth
            if self.clino is not None:
                self.clino = -self.clino
        else:
            if self.clino is not None:
                self.set_clino(-self.clino)
            self.from_depth = None
            self.to_depth = None

    def copy_leg(self) -> Leg:
        """Return a copy of the leg which shares no state with this one."""
        return self.model_copy(deep=True)


class ToStationLrud(BaseModel):
    """Passage dimensions at a station which is only ever a leg end point."""

    from_station: Station
    left: float = 0.0
    right: float = 0.0
    up: float = 0.0
    down: float = 0.0


class SeriesLink(BaseModel):
    """Join between a station in one series and a station in another.

    Series paths are dot separated paths relative to the series holding the
    link. An empty path refers to the series holding the link itself.
    """

    series1: str
    station1: Station
    series2: str
    station2: Station


class Equate(BaseModel):
    """Equivalence between two fully qualified stations.

    Use ``Equate.from_names`` to build an equate from a series prefix and a
    station name which may itself contain further series names.
    """

    series1: str
    station1: str
    series2: str
    station2: str

    @staticmethod
    def _split_station_ref(prefix: str, station_name: str) -> tuple[str, str]:
        full_ref = f"{prefix}.{station_name}"
        pos = full_ref.rfind(".")
        if pos <= 0:
            raise SurveyModelError("Equate does not contain a series name and station.")
        return full_ref[:pos], full_ref[pos + 1 :]

    @classmethod
    def from_names(
        cls,
        prefix1: str,
        station_name1: str,
        prefix2: str,
        station_name2: str,
    ) -> Equate:
        series1, station1 = cls._split_station_ref(prefix1, station_name1)
        series2, station2 = cls._split_station_ref(prefix2, station_name2)
        return cls(
            series1=series1,
            station1=station1,
            series2=series2,
            station2=station2,
        )


class StationNameInterner(BaseModel):
    """Maps station names to integer station ids for one series.

    Integer station names map to their own value. Any other name is given
    the next free negative id the first time it is seen, and the same id on
    any later lookup (names are compared ignoring case). The name for a
    negative id ``n`` is stored at index ``-n - 1`` of ``names``.
    """

    names: list[str] = Field(default_factory=list)

    _ids: dict[str, int] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._ids = {name.lower(): -(idx + 1) for idx, name in enumerate(self.names)}

    def station_id(self, name: str) -> int:
        if INTEGER_NAME.match(name):
            return int(name)

        key = name.lower()
        if key not in self._ids:
            self.names.append(name)
            self._ids[key] = -len(self.names)
        return self._ids[key]

    def name_for(self, station_id: int) -> str:
        if station_id < 0:
            return self.names[-station_id - 1]
        return str(station_id)


class Series(BaseModel):
    """A survey series.

    A series holds a list of legs and may contain inner series. Legs are
    stored exactly as read; calibration corrections are only applied by
    ``get_leg_corrected``.

    Attributes:
        name: Series name
        comment: Free text comment (may contain ``\\r`` separated lines)
        survey_date: Date of the survey trip
        legs: Survey legs in the order they were read
        inner_series: Child series
        links: Links between stations of this series and other series
        to_station_lruds: Passage data for stations only ending legs
        declination: Magnetic declination (degrees)
        tape_calibration: Tape zero error (metres)
        compass_calibration: Compass zero error (degrees)
        clino_calibration: Clino zero error (degrees)
        clino_scale_factor: Clino scale factor
        data_order: Field order of the data lines read for this series
        data_order2: Second field order, used in mixed normal/diving series
    """

    name: str = ""
    comment: str = ""
    survey_date: datetime.date | None = None

    legs: list[Leg] = Field(default_factory=list)
    inner_series: list[Series] = Field(default_factory=list)
    links: list[SeriesLink] = Field(default_factory=list)
    to_station_lruds: list[ToStationLrud] = Field(default_factory=list)

    declination: float = 0.0
    tape_calibration: float = 0.0
    compass_calibration: float = 0.0
    clino_calibration: float = 0.0
    clino_scale_factor: float = 1.0

    length_unit: LengthUnit = LengthUnit.METRES
    depth_unit: LengthUnit = LengthUnit.METRES
    bearing_unit: BearingUnit = BearingUnit.DEGREES
    gradient_unit: GradientUnit = GradientUnit.DEGREES

    data_order: list[str] = Field(default_factory=list)
    data_order2: list[str] = Field(default_factory=list)

    station_names: StationNameInterner = Field(
        default_factory=StationNameInterner,
        exclude=True,
    )

    def __str__(self) -> str:
        return self.name or "Survey Series"

    @field_serializer("comment")
    @classmethod
    def serialize_empty_as_none(cls, v: str) -> str | None:
        return None if v == "" else v

    @field_validator("comment", mode="before")
    @classmethod
    def normalize_comment(cls, value: str | None) -> str:
        """Read a missing comment, written as null in JSON, as empty."""
        return "" if value is None else value

    # -----------------------------
    # Legs
    # -----------------------------

    @property
    def leg_count(self) -> int:
        return len(self.legs)

    def add_leg(self, leg: Leg, position: int | None = None) -> None:
        """Add a copy of a leg, at the end or at the given position."""
        if position is None:
            self.legs.append(leg.copy_leg())
        else:
            self.legs.insert(position, leg.copy_leg())

    def remove_leg(self, index: int) -> Leg:
        return self.legs.pop(index)

    def get_leg_raw(self, index: int) -> Leg:
        return self.legs[index]

    def get_leg_corrected(self, index: int) -> Leg:
        """Return a copy of a leg with the instrument calibrations applied.

        Only readings within the valid range of the instrument are
        corrected. LRUD dimensions are never corrected.

        Args:
            index: Index of the leg in the series

        Returns:
            Corrected copy of the leg
        """
        original = self.legs[index]
        corrected = original.copy_leg()

        if original.length is not None:
            corrected.length = original.length - self.tape_calibration

        if original.compass is not None and 0 <= original.compass <= 360:
            corrected.compass = original.compass - (
                self.compass_calibration + self.declination
            )

        if original.clino is not None and -90 <= original.clino <= 180:
            corrected.clino = (
                original.clino - self.clino_calibration
            ) * self.clino_scale_factor

        return corrected

    def remove_splays_used_for_lrud(self) -> None:
        self.legs = [leg for leg in self.legs if not (leg.splay and leg.used_for_lrud)]

    # -----------------------------
    # Inner series and links
    # -----------------------------

    def add_series(self, series: Series) -> None:
        self.inner_series.append(series)

    def find_inner_series_by_name(self, name: str) -> Series | None:
        for series in self.inner_series:
            if series.name.lower() == name.lower():
                return series
        return None

    def add_link(
        self,
        series1: str,
        station1: Station,
        series2: str,
        station2: Station,
    ) -> None:
        self.links.append(
            SeriesLink(
                series1=series1,
                station1=station1,
                series2=series2,
                station2=station2,
            )
        )

    # -----------------------------
    # Stations
    # -----------------------------

    def station_id_for_name(self, name: str) -> int:
        return self.station_names.station_id(name)

    def mapped_station_name(self, station_id: int) -> str:
        return self.station_names.name_for(station_id)

    def create_station(self, name: str) -> Station:
        """Create a station with the id mapped to its name in this series."""
        return Station(id=self.station_id_for_name(name), label=name)

    # -----------------------------
    # Calibration
    # -----------------------------

    def get_tape_calibration(self, unit: LengthUnit = LengthUnit.METRES) -> float:
        return units.length_from_metres(self.tape_calibration, unit)

    def set_tape_calibration(
        self, value: float, unit: LengthUnit = LengthUnit.METRES
    ) -> None:
        self.tape_calibration = units.length_to_metres(value, unit)

    def get_compass_calibration(
        self, unit: BearingUnit = BearingUnit.DEGREES
    ) -> float:
        return units.bearing_from_degrees(self.compass_calibration, unit)

    def set_compass_calibration(
        self, value: float, unit: BearingUnit = BearingUnit.DEGREES
    ) -> None:
        self.compass_calibration = units.bearing_to_degrees(value, unit)

    def get_clino_calibration(
        self, unit: GradientUnit = GradientUnit.DEGREES
    ) -> float:
        return units.gradient_from_degrees(self.clino_calibration, unit)

    def set_clino_calibration(
        self,
        value: float,
        unit: GradientUnit = GradientUnit.DEGREES,
        scale_factor: float = 1.0,
    ) -> None:
        self.clino_calibration = units.gradient_to_degrees(value, unit)
        self.clino_scale_factor = scale_factor

    def set_calibration_from(self, other: Series) -> None:
        """Copy declination and instrument calibrations from another series."""
        self.declination = other.declination
        self.tape_calibration = other.tape_calibration
        self.compass_calibration = other.compass_calibration
        self.clino_calibration = other.clino_calibration
        self.clino_scale_factor = other.clino_scale_factor

    # -----------------------------
    # Data order
    # -----------------------------

    @property
    def has_data_order(self) -> bool:
        return len(self.data_order) > 0

    def get_data_order(self) -> list[str]:
        return list(self.data_order)

    def set_data_order(self, data_order: list[str]) -> None:
        self.data_order = list(data_order)

    def get_data_order2(self) -> list[str]:
        return list(self.data_order2)

    def set_data_order2(self, data_order: list[str]) -> None:
        self.data_order2 = list(data_order)


class Survey(BaseModel):
    """A cave survey: an ordered list of top level series."""

    name: str = ""
    series: list[Series] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.series)

    def __getitem__(self, index: int) -> Series:
        return self.series[index]

    def __iter__(self) -> Iterator[Series]:  # type: ignore[override]
        return iter(self.series)

    def add(self, series: Series) -> None:
        self.series.append(series)

    def generate_lrud_from_splays(self) -> None:
        """Generate LRUD data from splays for every series in the survey."""
        from cavesurvey_lib.lrud import generate_survey_lrud  # noqa: PLC0415

        generate_survey_lrud(self)

    def debug_summary(self) -> list[str]:
        """Describe the series hierarchy, one line per series."""
        lines = [f"Survey contains {len(self.series)} top level series."]

        def _describe(series: Series, path: str) -> None:
            full_path = f"{path}/{series.name}" if path else series.name
            line = f"Series: {full_path}"
            if series.leg_count > 0:
                line += f" ({series.leg_count} legs)"
            if series.inner_series:
                line += f" (contains {len(series.inner_series)} child series)"
            lines.append(line)
            for inner in series.inner_series:
                _describe(inner, full_path)

        for series in self.series:
            _describe(series, "")
        return lines
