"""Ranked and filtered views over one loaded :class:`InsightsData`.

All methods are pure functions of the loaded data and their arguments. Lists
are sorted with Python's stable sort, so entities with equal metric values
keep their load order.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from core.data import InsightsData, normalize_company_name
from core.errors import NotFound
from core.filters import CITY_METRICS, COMPANY_CITY_METRICS, COMPANY_METRICS, DEFAULTS, DashboardFilters
from core.models import Company, CompanyCityView, JoinedCity, MapLocation


def _metric(options: dict, metric: str, family: str):
    try:
        return options[metric]
    except KeyError:
        raise ValueError(f"Unknown {family} metric: {metric!r}") from None


class InsightsQueries:
    def __init__(self, data: InsightsData) -> None:
        self.data = data

    # ---- cities ----
    def top_cities(self, metric: str, n: int) -> List[JoinedCity]:
        spec = _metric(CITY_METRICS, metric, "city")
        if n <= 0:
            return []
        ranked = sorted(self.data.cities, key=spec.value, reverse=True)
        return ranked[:n]

    def city_by_name(self, name: str) -> JoinedCity:
        idx = self.data.city_index.get(name)
        if idx is None:
            raise NotFound("city", name)
        return self.data.cities[idx]

    # ---- companies ----
    def company_by_name(self, name: str) -> Company:
        company = self.data.companies.get(normalize_company_name(name))
        if company is None:
            raise NotFound("company", name)
        return company

    def top_company_cities(self, company: str, metric: str, n: int) -> List[CompanyCityView]:
        """Rank a company's located cities; ids are local to this result."""
        _metric(COMPANY_CITY_METRICS, metric, "company-city")
        found = self.company_by_name(company)
        if n <= 0:
            return []

        located = [
            (city, summary) for city, summary in found.city_summaries.items() if city in self.data.city_index
        ]
        if metric == "num_jobs":
            located.sort(key=lambda item: item[1].num_jobs, reverse=True)
        else:
            located.sort(key=lambda item: item[1].average_total_comp, reverse=True)

        out: List[CompanyCityView] = []
        for view_id, (city, summary) in enumerate(located[:n]):
            joined = self.city_by_name(city)
            out.append(
                CompanyCityView(
                    id=view_id,
                    company=found.name,
                    name=city,
                    total_comp=summary.total_comp,
                    num_jobs=summary.num_jobs,
                    average_total_comp=summary.average_total_comp,
                    latitude=joined.latitude,
                    longitude=joined.longitude,
                )
            )
        return out

    def companies_above_threshold(
        self, min_datapoints: int = DEFAULTS.min_datapoints, metric: str = "average_total_comp"
    ) -> List[Company]:
        spec = _metric(COMPANY_METRICS, metric, "company")
        eligible = [c for c in self.data.companies.values() if c.num_datapoints > min_datapoints]
        return sorted(eligible, key=spec.value, reverse=True)

    def search_company_names(self, query: str) -> List[str]:
        names = sorted(self.data.companies)
        if not query:
            return names
        q = query.lower()
        return [name for name in names if q in name.lower()]

    def nationwide_avg_comp(self, company: str) -> int:
        return self.company_by_name(company).avg_total_comp_all_levels

    def num_datapoints(self, company: str) -> int:
        return self.company_by_name(company).num_datapoints

    def sorted_levels(self, company: str) -> List[Tuple[str, int]]:
        levels = self.company_by_name(company).avg_total_comp_by_level
        return sorted(levels.items(), key=lambda item: item[1], reverse=True)

    # ---- mode-aware ----
    def current_locations(self, filters: DashboardFilters) -> Sequence[MapLocation]:
        if filters.mode != "company_city":
            return self.top_cities(filters.city_metric, filters.top_n)
        if not filters.selected_company:
            return []
        try:
            return self.top_company_cities(filters.selected_company, filters.company_city_metric, filters.top_n)
        except NotFound:
            return []
