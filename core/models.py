"""Typed records produced by the loaders and the join.

Everything here is a frozen dataclass. Keyed collections inside records are
exposed as read-only mappings; the loaders own the only mutable state while
a dataset is being built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Generic, Literal, Mapping, Optional, Protocol, Tuple, TypeVar

from core.errors import ResourceUnavailable

LocationKind = Literal["city", "company_city"]

T = TypeVar("T")


@dataclass(frozen=True)
class CityEconomics:
    name: str
    mean_salary_adjusted: float
    mean_salary_unadjusted: float
    mean_salary_unadjusted_all_occupations: float
    quantity_software_jobs: int
    median_home_price: int
    cost_of_living_average: float
    rent_average: float


@dataclass(frozen=True)
class LocationInfo:
    city: str
    state_id: str
    fips: int
    latitude: float
    longitude: float
    population: int
    density: int

    @property
    def key(self) -> str:
        return f"{self.city}, {self.state_id}"


@dataclass(frozen=True)
class JoinedCity:
    """City economics joined with gazetteer coordinates.

    ``id`` is assigned densely from 0 by the join and is only stable for the
    lifetime of one load.
    """

    id: int
    name: str
    mean_salary_adjusted: float
    mean_salary_unadjusted: float
    mean_salary_unadjusted_all_occupations: float
    quantity_software_jobs: int
    median_home_price: int
    cost_of_living_average: float
    rent_average: float
    fips: int
    latitude: float
    longitude: float
    population: int
    density: int
    kind: LocationKind = field(default="city", init=False)


@dataclass(frozen=True)
class CompensationRecord:
    level: str
    title: str
    total_yearly_comp: int
    city: str


@dataclass(frozen=True)
class CitySummary:
    """Sufficient statistics for one (company, city) pair."""

    total_comp: int = 0
    num_jobs: int = 0

    @property
    def average_total_comp(self) -> int:
        if self.num_jobs == 0:
            return 0
        return self.total_comp // self.num_jobs

    def add(self, comp: int) -> "CitySummary":
        return CitySummary(total_comp=self.total_comp + comp, num_jobs=self.num_jobs + 1)


@dataclass(frozen=True, eq=False)
class Company:
    name: str
    min_total_yearly_comp: int
    max_total_yearly_comp: int
    city_jobs: Mapping[str, Tuple[CompensationRecord, ...]]
    city_summaries: Mapping[str, CitySummary]
    avg_total_comp_by_level: Mapping[str, int]
    avg_total_comp_all_levels: int

    @property
    def num_datapoints(self) -> int:
        return sum(s.num_jobs for s in self.city_summaries.values())

    @property
    def num_locations(self) -> int:
        return len(self.city_summaries)

    @property
    def num_levels(self) -> int:
        return len(self.avg_total_comp_by_level)

    @property
    def comp_spread(self) -> int:
        return self.max_total_yearly_comp - self.min_total_yearly_comp


@dataclass(frozen=True)
class CompanyCityView:
    """One row of a company's per-city ranking, placed on the map."""

    id: int
    company: str
    name: str
    total_comp: int
    num_jobs: int
    average_total_comp: int
    latitude: float
    longitude: float
    kind: LocationKind = field(default="company_city", init=False)


class MapLocation(Protocol):
    """Shared accessors of the two location variants (see ``kind``)."""

    id: int
    name: str
    latitude: float
    longitude: float
    kind: LocationKind


@dataclass(frozen=True)
class LoadWarning:
    dataset: str
    line_number: int
    kind: str
    message: str


@dataclass(frozen=True)
class LoadResult(Generic[T]):
    data: Mapping[str, T]
    warnings: Tuple[LoadWarning, ...] = ()
    error: Optional[ResourceUnavailable] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def frozen_mapping(values: Mapping[str, T]) -> Mapping[str, T]:
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class RGBColor:
    red: float
    green: float
    blue: float

    @property
    def hex(self) -> str:
        return "#{:02x}{:02x}{:02x}".format(*(round(c * 255) for c in (self.red, self.green, self.blue)))


@dataclass(frozen=True)
class ColorConfig:
    low_color: RGBColor
    high_color: RGBColor
    value_range: Tuple[float, float]


LIGHT_GREEN = RGBColor(0.2, 0.8, 0.8)
LIGHT_BLUE = RGBColor(0.7, 0.7, 1.0)
LIGHT_PURPLE = RGBColor(1.0, 0.7, 1.0)
LIGHT_ORANGE = RGBColor(1.0, 0.9, 0.7)

DARK_GREEN = RGBColor(0.0, 0.5, 0.5)
DARK_BLUE = RGBColor(0.0, 0.0, 0.8)
DARK_PURPLE = RGBColor(0.5, 0.0, 0.5)
DARK_ORANGE = RGBColor(0.8, 0.4, 0.0)

GRAY = RGBColor(0.5, 0.5, 0.5)
