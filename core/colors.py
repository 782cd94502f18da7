"""Linear color scales for map pins and list icons.

Ranges are computed once from the full in-scope entity set (all joined
cities, or every company-city summary) and padded by 10% of the span on each
side, so the same metric keeps comparable colors across different top-N cuts.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Sequence, Tuple

from core.filters import CITY_METRICS, COMPANY_CITY_METRICS, MetricSpec
from core.models import GRAY, ColorConfig, Company, JoinedCity, RGBColor

RANGE_PADDING = 0.1


def calculate_range(values: Iterable[float]) -> Tuple[float, float]:
    vals = list(values)
    if not vals:
        return 0.0, 0.0
    low, high = min(vals), max(vals)
    padding = (high - low) * RANGE_PADDING
    return low - padding, high + padding


def normalize(value: float, value_range: Tuple[float, float]) -> float:
    low, high = value_range
    if high == low:
        return 0.5
    normalized = (value - low) / (high - low)
    return max(0.0, min(1.0, normalized))


def interpolate(low: RGBColor, high: RGBColor, t: float) -> RGBColor:
    return RGBColor(
        red=low.red + (high.red - low.red) * t,
        green=low.green + (high.green - low.green) * t,
        blue=low.blue + (high.blue - low.blue) * t,
    )


def build_config(spec: MetricSpec, values: Iterable[float]) -> ColorConfig:
    return ColorConfig(low_color=spec.low_color, high_color=spec.high_color, value_range=calculate_range(values))


def _company_city_values(companies: Iterable[Company], metric: str) -> list:
    out = []
    for company in companies:
        for summary in company.city_summaries.values():
            if metric == "num_jobs":
                out.append(float(summary.num_jobs))
            else:
                out.append(float(summary.average_total_comp))
    return out


def _metrics_for(kind: str) -> Mapping[str, MetricSpec]:
    return CITY_METRICS if kind == "city" else COMPANY_CITY_METRICS


def color_for(metric: str, entity: object, entities_in_scope: Sequence[object]) -> RGBColor:
    """One-shot form of :meth:`ColorScale.color_for` for an explicit scope."""
    kind = getattr(entity, "kind", "")
    spec = _metrics_for(kind).get(metric) if kind in ("city", "company_city") else None
    if spec is None:
        return GRAY
    config = build_config(spec, (spec.value(e) for e in entities_in_scope))
    return interpolate(config.low_color, config.high_color, normalize(spec.value(entity), config.value_range))


class ColorScale:
    """Per-metric color configs for one loaded data snapshot."""

    def __init__(self, cities: Sequence[JoinedCity], companies: Iterable[Company]) -> None:
        companies = list(companies)
        self.city_configs: Dict[str, ColorConfig] = {
            key: build_config(spec, (spec.value(c) for c in cities)) for key, spec in CITY_METRICS.items()
        }
        self.company_city_configs: Dict[str, ColorConfig] = {
            key: build_config(spec, _company_city_values(companies, key)) for key, spec in COMPANY_CITY_METRICS.items()
        }

    def config_for(self, metric: str, kind: str) -> ColorConfig:
        configs = self.city_configs if kind == "city" else self.company_city_configs
        return configs[metric]

    def color_for(self, metric: str, entity: object) -> RGBColor:
        kind = getattr(entity, "kind", "")
        specs = _metrics_for(kind)
        if kind not in ("city", "company_city") or metric not in specs:
            return GRAY
        config = self.config_for(metric, kind)
        value = specs[metric].value(entity)
        return interpolate(config.low_color, config.high_color, normalize(value, config.value_range))
