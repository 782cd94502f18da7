from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from core.charts import map_pins_chart, ranked_bar_chart, to_vega_spec
from core.data import InsightsData
from core.errors import NotFound
from core.filters import CITY_METRICS, COMPANY_CITY_METRICS, COMPANY_METRICS, DEFAULTS, DashboardFilters
from core.queries import InsightsQueries


def compute_locations(filters: DashboardFilters, data: InsightsData) -> Dict[str, Any]:
    """Map pins and list rows for the active mode (cities or one company's cities)."""
    queries = InsightsQueries(data)
    company_mode = filters.is_company_city_mode
    spec = COMPANY_CITY_METRICS[filters.company_city_metric] if company_mode else CITY_METRICS[filters.city_metric]

    error: Optional[str] = None
    search_results: List[str] = []
    if company_mode:
        if filters.company_query:
            search_results = queries.search_company_names(filters.company_query)[: DEFAULTS.search_results]
        if not filters.selected_company:
            error = "Select a company to see its cities."
        else:
            try:
                queries.company_by_name(filters.selected_company)
            except NotFound as exc:
                error = str(exc)

    locations = queries.current_locations(filters)
    rows: List[Dict[str, Any]] = []
    for rank, loc in enumerate(locations, start=1):
        row = asdict(loc)
        row["rank"] = rank
        row["value"] = spec.value(loc)
        row["color"] = data.color_scale.color_for(spec.key, loc).hex
        rows.append(row)

    if not rows and error is None and not data.cities:
        error = "No city data available."

    charts: Dict[str, Any] = {}
    if rows:
        df = pd.DataFrame(rows)
        charts = {
            "map": to_vega_spec(
                map_pins_chart(df, value_col="value", value_title=spec.title, value_format=spec.value_format)
            ),
            "ranking": to_vega_spec(
                ranked_bar_chart(df, label_col="name", value_col="value", value_title=spec.title, value_format=spec.value_format)
            ),
        }

    return {
        "filters": asdict(filters),
        "mode": "company_city" if company_mode else "city",
        "metric": spec.key,
        "metric_title": spec.title,
        "metric_format": spec.value_format,
        "locations": rows,
        "search_results": search_results,
        "charts": charts,
        "error": error,
    }


def compute_companies(filters: DashboardFilters, data: InsightsData) -> Dict[str, Any]:
    """Companies with enough datapoints to browse, ranked by the company metric."""
    queries = InsightsQueries(data)
    spec = COMPANY_METRICS[filters.company_metric]
    companies = queries.companies_above_threshold(filters.min_datapoints, filters.company_metric)

    rows = [
        {
            "rank": rank,
            "company": c.name,
            "avg_total_comp": c.avg_total_comp_all_levels,
            "num_datapoints": c.num_datapoints,
            "num_locations": c.num_locations,
            "min_total_yearly_comp": c.min_total_yearly_comp,
            "max_total_yearly_comp": c.max_total_yearly_comp,
            "value": spec.value(c),
        }
        for rank, c in enumerate(companies, start=1)
    ]

    charts: Dict[str, Any] = {}
    if rows:
        top = pd.DataFrame(rows).head(filters.top_n)
        charts = {
            "ranking": to_vega_spec(
                ranked_bar_chart(top, label_col="company", value_col="value", value_title=spec.title, value_format=spec.value_format)
            )
        }

    return {
        "filters": asdict(filters),
        "metric": spec.key,
        "metric_title": spec.title,
        "min_datapoints": filters.min_datapoints,
        "companies": rows,
        "charts": charts,
        "error": None if data.companies else "No company data available.",
    }
