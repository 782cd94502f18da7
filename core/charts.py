from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def map_pins_chart(df: pd.DataFrame, *, value_col: str, value_title: str, value_format: str) -> alt.Chart:
    """Longitude/latitude scatter where every pin carries its own precomputed color."""
    hover = alt.selection_point(fields=["name"], on="mouseover", empty="all")
    return (
        alt.Chart(df)
        .mark_circle(size=120, stroke="#374151", strokeWidth=0.5)
        .encode(
            x=alt.X("longitude:Q", title="Longitude", scale=alt.Scale(zero=False), axis=alt.Axis(grid=False)),
            y=alt.Y("latitude:Q", title="Latitude", scale=alt.Scale(zero=False), axis=alt.Axis(gridDash=[4, 4])),
            color=alt.Color("color:N", scale=None),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.4)),
            tooltip=[
                alt.Tooltip("name:N", title="Location"),
                alt.Tooltip(f"{value_col}:Q", title=value_title, format=value_format),
            ],
        )
        .add_params(hover)
        .properties(height=420)
    )


def ranked_bar_chart(df: pd.DataFrame, *, label_col: str, value_col: str, value_title: str, value_format: str) -> alt.Chart:
    color = alt.Color("color:N", scale=None) if "color" in df.columns else alt.value("#0f766e")
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            y=alt.Y(f"{label_col}:N", sort="-x", title=None),
            x=alt.X(f"{value_col}:Q", title=value_title, axis=alt.Axis(format="~s", gridDash=[4, 4])),
            color=color,
            tooltip=[alt.Tooltip(f"{label_col}:N"), alt.Tooltip(f"{value_col}:Q", title=value_title, format=value_format)],
        )
        .properties(height=max(160, 24 * len(df)))
    )
