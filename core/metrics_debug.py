from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.data import InsightsData


def compute_debug(data: InsightsData) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "files": list(data.files),
        "errors": dict(data.errors),
        "row_counts": {
            "cities_rows": len(data.city_economics),
            "joined_cities_rows": len(data.cities),
            "companies_rows": len(data.companies),
            "company_datapoints": sum(c.num_datapoints for c in data.companies.values()),
            "locations_rows": len(data.locations),
        },
        "warning_counts": [],
        "unmatched_cities": [],
        "warning_samples": [],
    }

    rows = [asdict(w) for warnings in data.warnings.values() for w in warnings]
    if not rows:
        return payload

    df = pd.DataFrame(rows)
    counts = df.groupby(["dataset", "kind"]).size().reset_index(name="count").sort_values("count", ascending=False)
    payload["warning_counts"] = counts.to_dict(orient="records")
    payload["unmatched_cities"] = sorted(set(data.city_economics) - set(data.city_index))
    payload["warning_samples"] = df.groupby("dataset").head(5).to_dict(orient="records")
    return payload
