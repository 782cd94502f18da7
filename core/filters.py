from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Optional

from core.models import (
    DARK_BLUE,
    DARK_GREEN,
    DARK_ORANGE,
    DARK_PURPLE,
    LIGHT_BLUE,
    LIGHT_GREEN,
    LIGHT_ORANGE,
    LIGHT_PURPLE,
    RGBColor,
)

Mode = Literal["city", "company_city", "company"]
CityMetric = Literal["adjusted_salary", "unadjusted_salary", "software_jobs", "home_price"]
CompanyCityMetric = Literal["average_total_comp", "num_jobs"]
CompanyMetric = Literal["average_total_comp", "num_datapoints"]


@dataclass(frozen=True)
class MetricSpec:
    key: str
    title: str
    attr: str
    low_color: RGBColor
    high_color: RGBColor
    value_format: str = "$,.0f"

    def value(self, entity: object) -> float:
        return float(getattr(entity, self.attr))


CITY_METRICS: Dict[str, MetricSpec] = {
    "adjusted_salary": MetricSpec("adjusted_salary", "Adjusted Salary", "mean_salary_adjusted", LIGHT_GREEN, DARK_GREEN),
    "unadjusted_salary": MetricSpec("unadjusted_salary", "Unadjusted Salary", "mean_salary_unadjusted", LIGHT_BLUE, DARK_BLUE),
    "software_jobs": MetricSpec("software_jobs", "Software Jobs", "quantity_software_jobs", LIGHT_PURPLE, DARK_PURPLE, ",d"),
    "home_price": MetricSpec("home_price", "Home Price", "median_home_price", LIGHT_ORANGE, DARK_ORANGE),
}

COMPANY_CITY_METRICS: Dict[str, MetricSpec] = {
    "average_total_comp": MetricSpec(
        "average_total_comp", "Average Total Compensation", "average_total_comp", LIGHT_GREEN, DARK_GREEN
    ),
    "num_jobs": MetricSpec("num_jobs", "Number of Jobs", "num_jobs", LIGHT_BLUE, DARK_BLUE, ",d"),
}

COMPANY_METRICS: Dict[str, MetricSpec] = {
    "average_total_comp": MetricSpec(
        "average_total_comp", "Average Total Compensation", "avg_total_comp_all_levels", LIGHT_GREEN, DARK_GREEN
    ),
    "num_datapoints": MetricSpec("num_datapoints", "Number of Datapoints", "num_datapoints", LIGHT_BLUE, DARK_BLUE, ",d"),
}


@dataclass(frozen=True)
class QueryDefaults:
    top_n: int = 10
    min_datapoints: int = 20
    comparison_slots: int = 4
    search_results: int = 5


DEFAULTS = QueryDefaults()


@dataclass(frozen=True)
class DashboardFilters:
    mode: Mode = "city"
    city_metric: CityMetric = "adjusted_salary"
    company_city_metric: CompanyCityMetric = "average_total_comp"
    company_metric: CompanyMetric = "average_total_comp"
    top_n: int = DEFAULTS.top_n
    selected_company: Optional[str] = None
    company_query: str = ""
    min_datapoints: int = DEFAULTS.min_datapoints

    @property
    def is_company_city_mode(self) -> bool:
        return self.mode == "company_city"

    @property
    def metric(self) -> str:
        """The metric that drives sorting and coloring in the active mode."""
        if self.mode == "company_city":
            return self.company_city_metric
        if self.mode == "company":
            return self.company_metric
        return self.city_metric

    @property
    def metric_spec(self) -> MetricSpec:
        if self.mode == "company_city":
            return COMPANY_CITY_METRICS[self.company_city_metric]
        if self.mode == "company":
            return COMPANY_METRICS[self.company_metric]
        return CITY_METRICS[self.city_metric]


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except Exception:
        return default


def _pick(value: object, options: Dict[str, MetricSpec], default: str) -> str:
    key = str(value) if value is not None else ""
    return key if key in options else default


def normalize_filters(raw: dict) -> DashboardFilters:
    mode = raw.get("mode") or "city"
    if mode not in ("city", "company_city", "company"):
        mode = "city"

    top_n = max(1, min(200, _as_int(raw.get("top_n", DEFAULTS.top_n), DEFAULTS.top_n)))
    min_datapoints = max(0, _as_int(raw.get("min_datapoints", DEFAULTS.min_datapoints), DEFAULTS.min_datapoints))

    selected_company = (raw.get("selected_company") or "").strip() or None
    company_query = (raw.get("company_query") or "").strip()

    return DashboardFilters(
        mode=mode,
        city_metric=_pick(raw.get("city_metric"), CITY_METRICS, "adjusted_salary"),  # type: ignore[arg-type]
        company_city_metric=_pick(raw.get("company_city_metric"), COMPANY_CITY_METRICS, "average_total_comp"),  # type: ignore[arg-type]
        company_metric=_pick(raw.get("company_metric"), COMPANY_METRICS, "average_total_comp"),  # type: ignore[arg-type]
        top_n=top_n,
        selected_company=selected_company,
        company_query=company_query,
        min_datapoints=min_datapoints,
    )
