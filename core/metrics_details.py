from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from core.charts import ranked_bar_chart, to_vega_spec
from core.data import InsightsData, round_half_up
from core.errors import NotFound
from core.models import JoinedCity
from core.queries import InsightsQueries


def home_to_salary_ratio(city: JoinedCity) -> Optional[float]:
    if city.mean_salary_adjusted <= 0:
        return None
    return city.median_home_price / city.mean_salary_adjusted


def software_jobs_per_1000(city: JoinedCity) -> Optional[float]:
    if city.population <= 0:
        return None
    return city.quantity_software_jobs / city.population * 1000


def urbanization_score(city: JoinedCity) -> Optional[float]:
    # ln(density) is zero at density 1.
    if city.population <= 0 or city.density <= 1:
        return None
    return math.log(city.population) / math.log(city.density)


def compute_city_detail(data: InsightsData, name: str) -> Dict[str, Any]:
    try:
        city = InsightsQueries(data).city_by_name(name)
    except NotFound as exc:
        return {"city": None, "insights": {}, "error": str(exc)}

    return {
        "city": asdict(city),
        "insights": {
            "home_to_salary_ratio": round_half_up(home_to_salary_ratio(city), 1),
            "software_jobs_per_1000": round_half_up(software_jobs_per_1000(city), 2),
            "urbanization_score": round_half_up(urbanization_score(city), 2),
        },
        "error": None,
    }


def compute_company_detail(data: InsightsData, name: str) -> Dict[str, Any]:
    queries = InsightsQueries(data)
    try:
        company = queries.company_by_name(name)
    except NotFound as exc:
        return {"company": None, "levels": [], "charts": {}, "error": str(exc)}

    levels = [{"level": level, "avg_total_comp": avg} for level, avg in queries.sorted_levels(company.name)]
    charts: Dict[str, Any] = {}
    if levels:
        charts["levels"] = to_vega_spec(
            ranked_bar_chart(
                pd.DataFrame(levels),
                label_col="level",
                value_col="avg_total_comp",
                value_title="Average Total Compensation",
                value_format="$,.0f",
            )
        )

    return {
        "company": {
            "name": company.name,
            "avg_total_comp_all_levels": company.avg_total_comp_all_levels,
            "min_total_yearly_comp": company.min_total_yearly_comp,
            "max_total_yearly_comp": company.max_total_yearly_comp,
            "spread": company.comp_spread,
        },
        "levels": levels,
        "distribution": {
            "total_locations": company.num_locations,
            "total_positions": company.num_datapoints,
            "unique_levels": company.num_levels,
        },
        "charts": charts,
        "error": None,
    }


def compute_company_city_detail(data: InsightsData, company_name: str, city_name: str) -> Dict[str, Any]:
    queries = InsightsQueries(data)
    try:
        company = queries.company_by_name(company_name)
        summary = company.city_summaries.get(city_name)
        if summary is None:
            raise NotFound("company city", f"{company.name} / {city_name}")
    except NotFound as exc:
        return {"company_city": None, "city": None, "error": str(exc)}

    try:
        city: Optional[JoinedCity] = queries.city_by_name(city_name)
    except NotFound:
        city = None

    salary_unadjusted = city.mean_salary_unadjusted if city is not None else 0.0
    ratio = summary.average_total_comp / (salary_unadjusted or 1)

    return {
        "company_city": {
            "company": company.name,
            "name": city_name,
            "average_total_comp": summary.average_total_comp,
            "nationwide_avg_comp": company.avg_total_comp_all_levels,
            "num_jobs": summary.num_jobs,
            "company_to_city_ratio": round_half_up(ratio, 1),
        },
        "city": {
            "mean_salary_adjusted": city.mean_salary_adjusted if city is not None else 0.0,
            "mean_salary_unadjusted": salary_unadjusted,
            "quantity_software_jobs": city.quantity_software_jobs if city is not None else None,
        },
        "error": None,
    }
