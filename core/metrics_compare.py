from __future__ import annotations

from typing import Any, Dict, List, Literal, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

from core.data import InsightsData
from core.errors import NotFound
from core.filters import DEFAULTS
from core.queries import InsightsQueries

ComparisonMode = Literal["city", "company_city", "company"]
Highlight = Literal["best", "worst", "neutral"]


class MetricRow(NamedTuple):
    title: str
    attr: str
    lower_is_better: bool
    unit: str


CITY_ROWS: List[MetricRow] = [
    MetricRow("Adjusted Mean Salary", "mean_salary_adjusted", False, "$"),
    MetricRow("Unadjusted Mean Salary", "mean_salary_unadjusted", False, "$"),
    MetricRow("Software Jobs", "quantity_software_jobs", False, ""),
    MetricRow("Median Home Price", "median_home_price", True, "$"),
    MetricRow("Cost of Living", "cost_of_living_average", True, ""),
    MetricRow("Average Rent", "rent_average", True, "$"),
    MetricRow("Population", "population", False, ""),
    MetricRow("Density", "density", False, "/km²"),
]

COMPANY_CITY_ROWS: List[MetricRow] = [
    MetricRow("Average Total Yearly Comp", "average_total_comp", False, "$"),
    MetricRow("Number of Jobs", "num_jobs", False, ""),
]

COMPANY_ROWS: List[MetricRow] = [
    MetricRow("Average Total Compensation", "avg_total_comp_all_levels", False, "$"),
    MetricRow("Total Datapoints", "num_datapoints", False, ""),
]

ROWS_BY_MODE: Dict[str, List[MetricRow]] = {
    "city": CITY_ROWS,
    "company_city": COMPANY_CITY_ROWS,
    "company": COMPANY_ROWS,
}


def add_to_queue(queue: Sequence[str], key: str, slots: int = DEFAULTS.comparison_slots) -> Tuple[str, ...]:
    """Append ``key`` unless it is already queued or the queue is full."""
    if key in queue or len(queue) >= slots:
        return tuple(queue)
    return tuple(queue) + (key,)


def remove_from_queue(queue: Sequence[str], key: str) -> Tuple[str, ...]:
    return tuple(k for k in queue if k != key)


def highlight(values: Sequence[float], lower_is_better: bool) -> List[Highlight]:
    """Label each value; the highest wins over the lowest when all are equal."""
    if not values:
        return []
    high, low = max(values), min(values)
    out: List[Highlight] = []
    for v in values:
        if v == high:
            out.append("worst" if lower_is_better else "best")
        elif v == low:
            out.append("best" if lower_is_better else "worst")
        else:
            out.append("neutral")
    return out


def _resolve(
    queries: InsightsQueries, mode: str, key: str, company: Optional[str]
) -> Tuple[str, Dict[str, float]]:
    if mode == "city":
        city = queries.city_by_name(key)
        return city.name, {row.attr: float(getattr(city, row.attr)) for row in CITY_ROWS}
    if mode == "company":
        found = queries.company_by_name(key)
        return found.name, {row.attr: float(getattr(found, row.attr)) for row in COMPANY_ROWS}

    found = queries.company_by_name(company or "")
    summary = found.city_summaries.get(key)
    if summary is None:
        raise NotFound("company city", f"{found.name} / {key}")
    return key, {"average_total_comp": float(summary.average_total_comp), "num_jobs": float(summary.num_jobs)}


def compute_comparison(
    data: InsightsData, mode: ComparisonMode, keys: Sequence[str], *, company: Optional[str] = None
) -> Dict[str, Any]:
    if mode not in ROWS_BY_MODE:
        raise ValueError(f"Unknown comparison mode: {mode!r}")
    queries = InsightsQueries(data)

    items: List[Tuple[str, Dict[str, float]]] = []
    missing: List[str] = []
    for key in list(keys)[: DEFAULTS.comparison_slots]:
        try:
            items.append(_resolve(queries, mode, key, company))
        except NotFound:
            missing.append(key)

    payload: Dict[str, Any] = {"mode": mode, "items": [name for name, _ in items], "missing": missing, "rows": [], "table": []}
    if len(items) < 2:
        payload["error"] = "Select at least 2 items"
        return payload

    for row in ROWS_BY_MODE[mode]:
        values = [metrics[row.attr] for _, metrics in items]
        payload["rows"].append(
            {
                "title": row.title,
                "unit": row.unit,
                "lower_is_better": row.lower_is_better,
                "values": values,
                "highlight": highlight(values, row.lower_is_better),
            }
        )

    table = pd.DataFrame(
        {name: [metrics[row.attr] for row in ROWS_BY_MODE[mode]] for name, metrics in items},
        index=[row.title for row in ROWS_BY_MODE[mode]],
    )
    payload["table"] = table.reset_index().rename(columns={"index": "metric"}).to_dict(orient="records")
    payload["error"] = None
    return payload
