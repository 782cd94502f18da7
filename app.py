import logging
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from core import data as dc
from core.filters import CITY_METRICS, COMPANY_CITY_METRICS, COMPANY_METRICS, DEFAULTS, normalize_filters
from core.metrics_compare import add_to_queue, compute_comparison, remove_from_queue
from core.metrics_debug import compute_debug
from core.metrics_details import compute_city_detail, compute_company_city_detail, compute_company_detail
from core.metrics_locations import compute_companies, compute_locations
from core.queries import InsightsQueries

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

HIGHLIGHT_STYLES = {
    "best": "background-color: rgba(22,163,74,0.12); color: #15803d;",
    "worst": "background-color: rgba(220,38,38,0.12); color: #b91c1c;",
    "neutral": "background-color: rgba(37,99,235,0.08); color: #1d4ed8;",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin: 6px 0 12px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .swatch {display:inline-block;width:12px;height:12px;border-radius:6px;margin-right:6px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def format_filter_summary(filters) -> str:
    mode_chip = {"city": "Mode: Cities", "company_city": "Mode: Company cities", "company": "Mode: Companies"}[filters.mode]
    metric_chip = f"Metric: {filters.metric_spec.title}"
    company_chip = f"Company: {filters.selected_company}" if filters.selected_company else "Company: none"
    return "".join(f"<span class='chip'>{txt}</span>" for txt in [mode_chip, metric_chip, company_chip])


def format_value(value: Optional[float], unit: str = "") -> str:
    if value is None:
        return "N/A"
    if unit == "$":
        return dc.format_currency_0(value)
    text = f"{value:,.0f}" if float(value).is_integer() else f"{value:,.1f}"
    return f"{text}{unit}"


def render_chart(payload: Dict[str, Any], key: str):
    spec = (payload.get("charts") or {}).get(key)
    if spec:
        st.vega_lite_chart(spec, use_container_width=True)


def render_comparison(payload: Dict[str, Any]):
    if payload.get("missing"):
        st.caption(f"Not found: {', '.join(payload['missing'])}")
    if payload.get("error"):
        st.info(payload["error"])
        return
    items: List[str] = payload["items"]
    header = "".join(f"<th>{name}</th>" for name in items)
    body = []
    for row in payload["rows"]:
        cells = "".join(
            f"<td style='{HIGHLIGHT_STYLES[h]} padding:6px 10px;'>{format_value(v, row['unit'])}</td>"
            for v, h in zip(row["values"], row["highlight"])
        )
        body.append(f"<tr><td><b>{row['title']}</b></td>{cells}</tr>")
    st.markdown(f"<table><tr><th></th>{header}</tr>{''.join(body)}</table>", unsafe_allow_html=True)


def render_city_detail(name: str):
    detail = compute_city_detail(data, name)
    if detail["error"]:
        st.warning(detail["error"])
        return
    city = detail["city"]
    insights = detail["insights"]
    st.subheader(city["name"])
    cols = st.columns(4)
    cols[0].metric("Adjusted Salary", format_value(city["mean_salary_adjusted"], "$"))
    cols[1].metric("Unadjusted Salary", format_value(city["mean_salary_unadjusted"], "$"))
    cols[2].metric("Median Home Price", format_value(city["median_home_price"], "$"))
    cols[3].metric("Software Jobs", format_value(city["quantity_software_jobs"]))
    cols = st.columns(4)
    cols[0].metric("Average Rent", format_value(city["rent_average"], "$"))
    cols[1].metric("Cost of Living Index", f"{city['cost_of_living_average']:.1f}")
    cols[2].metric("Population", format_value(city["population"]))
    cols[3].metric("Density", format_value(city["density"], "/km²"))
    cols = st.columns(3)
    cols[0].metric("Home Price to Salary Ratio", format_value(insights["home_to_salary_ratio"]))
    cols[1].metric("Software Jobs per 1,000 People", format_value(insights["software_jobs_per_1000"]))
    cols[2].metric("Urbanization Score", format_value(insights["urbanization_score"]))


def render_company_city_detail(company: str, city: str):
    detail = compute_company_city_detail(data, company, city)
    if detail["error"]:
        st.warning(detail["error"])
        return
    cc = detail["company_city"]
    st.subheader(f"{cc['company']} in {cc['name']}")
    cols = st.columns(4)
    cols[0].metric("City Average", format_value(cc["average_total_comp"], "$"))
    cols[1].metric("National Average", format_value(cc["nationwide_avg_comp"], "$"))
    cols[2].metric("Ratio Company/City", f"{cc['company_to_city_ratio']:.1f}x")
    cols[3].metric("Number of Datapoints", format_value(cc["num_jobs"]))
    city_info = detail["city"]
    st.caption(
        f"City mean salary (adjusted) {format_value(city_info['mean_salary_adjusted'], '$')} · "
        f"software jobs in city {format_value(city_info['quantity_software_jobs'])}"
    )


def render_company_detail(name: str):
    detail = compute_company_detail(data, name)
    if detail["error"]:
        st.warning(detail["error"])
        return
    company = detail["company"]
    st.subheader(company["name"])
    cols = st.columns(4)
    cols[0].metric("Average Total Comp (all levels)", format_value(company["avg_total_comp_all_levels"], "$"))
    cols[1].metric("Minimum", format_value(company["min_total_yearly_comp"], "$"))
    cols[2].metric("Maximum", format_value(company["max_total_yearly_comp"], "$"))
    cols[3].metric("Spread", format_value(company["spread"], "$"))
    dist = detail["distribution"]
    st.caption(
        f"{dist['total_locations']} locations · {dist['total_positions']} positions · {dist['unique_levels']} levels"
    )
    render_chart(detail, "levels")


# ---------- UI setup ----------
st.set_page_config(page_title="Software Job Insights", layout="wide")
inject_base_styles()
st.title("Software Job Insights")
st.caption("Salaries, software jobs and housing costs across US cities, by company.")

data = dc.load_dashboard_data()
queries = InsightsQueries(data)
for dataset, message in data.errors.items():
    st.warning(f"{dataset}: {message}. Showing what could be loaded.")
if not data.cities and not data.companies:
    st.error(f"No data found. Place the CSV files in {dc.DATA_DIR}.")
    st.stop()

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    page = st.radio("Navigate", ["Map", "List", "Compare", "Data Quality"], index=0)

    st.markdown("---")
    st.markdown("### Filters")
    mode = st.radio(
        "Browse",
        ["city", "company_city", "company"],
        format_func=lambda m: {"city": "Cities", "company_city": "Company cities", "company": "Companies"}[m],
    )
    raw_filters: Dict[str, Any] = {"mode": mode}
    if mode == "city":
        raw_filters["city_metric"] = st.selectbox(
            "Metric", list(CITY_METRICS), format_func=lambda k: CITY_METRICS[k].title
        )
        raw_filters["top_n"] = st.slider("Number of Cities", min_value=5, max_value=30, value=DEFAULTS.top_n, step=5)
    elif mode == "company_city":
        raw_filters["company_city_metric"] = st.selectbox(
            "Metric", list(COMPANY_CITY_METRICS), format_func=lambda k: COMPANY_CITY_METRICS[k].title
        )
        query = st.text_input("Search companies", "")
        matches = queries.search_company_names(query)
        raw_filters["company_query"] = query
        raw_filters["selected_company"] = st.selectbox("Company", matches[:200], index=None)
        raw_filters["top_n"] = st.slider("Number of Cities", min_value=5, max_value=30, value=DEFAULTS.top_n, step=5)
    else:
        raw_filters["company_metric"] = st.selectbox(
            "Metric", list(COMPANY_METRICS), format_func=lambda k: COMPANY_METRICS[k].title
        )
        raw_filters["min_datapoints"] = st.number_input(
            "Minimum datapoints", min_value=0, value=DEFAULTS.min_datapoints, step=5
        )

filters = normalize_filters(raw_filters)
st.markdown(f"<div class='chip-row'>{format_filter_summary(filters)}</div>", unsafe_allow_html=True)


def location_payload() -> Dict[str, Any]:
    try:
        return compute_locations(filters, data)
    except Exception:
        logger.exception("compute_locations failed")
        return {"locations": [], "charts": {}, "error": "Could not compute locations."}


if page == "Map":
    if filters.mode == "company":
        st.info("Pick Cities or Company cities to see the map.")
    else:
        payload = location_payload()
        if payload.get("error"):
            st.info(payload["error"])
        render_chart(payload, "map")

elif page == "List":
    if filters.mode == "company":
        payload = compute_companies(filters, data)
        if payload["companies"]:
            st.dataframe(pd.DataFrame(payload["companies"]).drop(columns=["value"]), hide_index=True, use_container_width=True)
            render_chart(payload, "ranking")
            chosen = st.selectbox("Details for", [r["company"] for r in payload["companies"]], index=None)
            if chosen:
                render_company_detail(chosen)
        else:
            st.info(payload.get("error") or "No companies above the datapoint threshold.")
    else:
        payload = location_payload()
        if payload.get("error"):
            st.info(payload["error"])
        for row in payload["locations"]:
            st.markdown(
                f"<span class='swatch' style='background:{row['color']}'></span>"
                f"**{row['rank']}. {row['name']}** · {format_value(row['value'], '$' if payload['metric_format'].startswith('$') else '')}",
                unsafe_allow_html=True,
            )
        names = [row["name"] for row in payload["locations"]]
        chosen = st.selectbox("Details for", names, index=None)
        if chosen and filters.is_company_city_mode:
            render_company_city_detail(filters.selected_company or "", chosen)
        elif chosen:
            render_city_detail(chosen)

elif page == "Compare":
    queue_key = f"compare_queue_{filters.mode}"
    queue = st.session_state.setdefault(queue_key, ())
    if filters.mode == "company":
        options = [c.name for c in queries.companies_above_threshold(filters.min_datapoints, filters.company_metric)]
    else:
        options = [loc.name for loc in queries.current_locations(filters)]
    c1, c2 = st.columns([3, 1])
    pick = c1.selectbox("Add item", [o for o in options if o not in queue], index=None)
    if c2.button("Add", disabled=pick is None or len(queue) >= DEFAULTS.comparison_slots):
        st.session_state[queue_key] = add_to_queue(queue, pick)
        st.rerun()
    for key in queue:
        if st.button(f"Remove {key}", key=f"rm-{key}"):
            st.session_state[queue_key] = remove_from_queue(queue, key)
            st.rerun()
    render_comparison(compute_comparison(data, filters.mode, queue, company=filters.selected_company))

else:
    dq = compute_debug(data)
    st.json(dq["row_counts"])
    if dq["errors"]:
        st.error(dq["errors"])
    if dq["warning_counts"]:
        st.dataframe(pd.DataFrame(dq["warning_counts"]), hide_index=True, use_container_width=True)
    if dq["unmatched_cities"]:
        with st.expander(f"Cities without a location match ({len(dq['unmatched_cities'])})"):
            st.write(dq["unmatched_cities"])
    if dq["warning_samples"]:
        with st.expander("Sample warnings"):
            st.dataframe(pd.DataFrame(dq["warning_samples"]), hide_index=True, use_container_width=True)
