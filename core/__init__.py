"""Core (UI-agnostic) job insights logic.

This package contains:
- CSV tokenizing and dataset loading (cities, companies, locations)
- the city join and the ranked / filtered queries over it
- color scales for the selected metric
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
