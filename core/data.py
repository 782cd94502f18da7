from __future__ import annotations

import logging
import math
import os
from collections import Counter
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from core.colors import ColorScale
from core.csv_parser import parse_line, split_lines
from core.errors import ResourceUnavailable, RowMalformed
from core.models import (
    CityEconomics,
    CitySummary,
    Company,
    CompensationRecord,
    JoinedCity,
    LoadResult,
    LoadWarning,
    LocationInfo,
    frozen_mapping,
)

logger = logging.getLogger(__name__)

DATA_DIR = Path(os.getenv("JOB_INSIGHTS_DATA_DIR") or Path(__file__).resolve().parents[1] / "data")

CITIES_FILE = "SoftwareDeveloperIncomeExpensesperUSACity.csv"
COMPANIES_FILE = "Levels_Fyi_Salary_Data.csv"
LOCATIONS_FILE = "uscities.csv"

# Column positions are a contract of each fixture file, not read from the header.
CITY_COLUMNS = {
    "mean_salary_adjusted": 2,
    "mean_salary_unadjusted": 3,
    "mean_salary_unadjusted_all_occupations": 4,
    "quantity_software_jobs": 5,
    "median_home_price": 6,
    "name": 7,
    "cost_of_living_average": 8,
    "rent_average": 9,
}

COMPANY_COLUMNS = {
    "company": 1,
    "level": 2,
    "title": 3,
    "total_yearly_comp": 4,
    "city": 5,
}

LOCATION_COLUMNS = {
    "city": 0,
    "state_id": 2,
    "fips": 4,
    "latitude": 6,
    "longitude": 7,
    "population": 8,
    "density": 9,
}

Row = Tuple[int, List[str]]


def get_source_files(data_dir: Optional[Path] = None) -> Dict[str, Path]:
    base = Path(data_dir) if data_dir is not None else DATA_DIR
    return {
        "cities": base / CITIES_FILE,
        "companies": base / COMPANIES_FILE,
        "locations": base / LOCATIONS_FILE,
    }


def file_signature(files: Mapping[str, Path]) -> Tuple[Tuple[str, str, Optional[float]], ...]:
    sig = []
    for dataset, path in files.items():
        mtime = path.stat().st_mtime if path.exists() else None
        sig.append((dataset, str(path), mtime))
    return tuple(sig)


def read_resource(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise ResourceUnavailable(path, "not found") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ResourceUnavailable(path, str(exc)) from exc


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_currency_0(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"${float(value):,.0f}"


# ---------------- Row helpers ----------------
def parse_float(value: str, column: str) -> float:
    try:
        out = float(value)
    except ValueError:
        raise RowMalformed("bad_number", f"{column}: {value!r} is not a number") from None
    if not math.isfinite(out):
        raise RowMalformed("bad_number", f"{column}: {value!r} is not finite")
    return out


def parse_int(value: str, column: str) -> int:
    """Parse as float, then truncate toward zero (``"12.9"`` -> 12)."""
    return int(parse_float(value, column))


def read_rows(text: str, dataset: str, warnings: List[LoadWarning]) -> List[Row]:
    """Tokenize every data line whose field count matches the header.

    Returns ``(line_number, fields)`` pairs, line numbers 1-based as in an
    editor. Mismatched rows are reported in ``warnings`` and skipped.
    """
    lines = split_lines(text)
    if not lines:
        return []
    expected = len(parse_line(lines[0]))
    rows: List[Row] = []
    for idx, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        fields = parse_line(line)
        if len(fields) != expected:
            warnings.append(
                LoadWarning(dataset, idx, "field_count", f"expected {expected} fields, found {len(fields)}")
            )
            continue
        rows.append((idx, fields))
    return rows


def _log_warnings(dataset: str, warnings: Sequence[LoadWarning]) -> None:
    if not warnings:
        return
    counts = Counter(w.kind for w in warnings)
    summary = ", ".join(f"{kind}={n}" for kind, n in sorted(counts.items()))
    logger.warning("%s: dropped or skipped %d rows (%s)", dataset, len(warnings), summary)
    for w in warnings:
        logger.debug("%s line %d: %s (%s)", w.dataset, w.line_number, w.message, w.kind)


# ---------------- Loaders ----------------
def _require_columns(fields: List[str], columns: Mapping[str, int]) -> None:
    needed = max(columns.values()) + 1
    if len(fields) < needed:
        raise RowMalformed("short_row", f"expected at least {needed} fields, found {len(fields)}")


def _city_from_row(fields: List[str]) -> CityEconomics:
    _require_columns(fields, CITY_COLUMNS)
    name = fields[CITY_COLUMNS["name"]]
    if not name:
        raise RowMalformed("missing_key", "city name is empty")
    return CityEconomics(
        name=name,
        mean_salary_adjusted=parse_float(fields[CITY_COLUMNS["mean_salary_adjusted"]], "mean_salary_adjusted"),
        mean_salary_unadjusted=parse_float(fields[CITY_COLUMNS["mean_salary_unadjusted"]], "mean_salary_unadjusted"),
        mean_salary_unadjusted_all_occupations=parse_float(
            fields[CITY_COLUMNS["mean_salary_unadjusted_all_occupations"]], "mean_salary_unadjusted_all_occupations"
        ),
        quantity_software_jobs=parse_int(fields[CITY_COLUMNS["quantity_software_jobs"]], "quantity_software_jobs"),
        median_home_price=parse_int(fields[CITY_COLUMNS["median_home_price"]], "median_home_price"),
        cost_of_living_average=parse_float(fields[CITY_COLUMNS["cost_of_living_average"]], "cost_of_living_average"),
        rent_average=parse_float(fields[CITY_COLUMNS["rent_average"]], "rent_average"),
    )


def _location_from_row(fields: List[str]) -> LocationInfo:
    _require_columns(fields, LOCATION_COLUMNS)
    city = fields[LOCATION_COLUMNS["city"]]
    state_id = fields[LOCATION_COLUMNS["state_id"]]
    if not city or not state_id:
        raise RowMalformed("missing_key", "city or state id is empty")
    return LocationInfo(
        city=city,
        state_id=state_id,
        fips=parse_int(fields[LOCATION_COLUMNS["fips"]], "fips"),
        latitude=parse_float(fields[LOCATION_COLUMNS["latitude"]], "latitude"),
        longitude=parse_float(fields[LOCATION_COLUMNS["longitude"]], "longitude"),
        population=parse_int(fields[LOCATION_COLUMNS["population"]], "population"),
        density=parse_int(fields[LOCATION_COLUMNS["density"]], "density"),
    )


def normalize_company_name(name: str) -> str:
    return name.strip().title()


def _compensation_from_row(fields: List[str]) -> Tuple[str, CompensationRecord]:
    _require_columns(fields, COMPANY_COLUMNS)
    company = normalize_company_name(fields[COMPANY_COLUMNS["company"]])
    city = fields[COMPANY_COLUMNS["city"]]
    if not company or not city:
        raise RowMalformed("missing_key", "company or city is empty")
    record = CompensationRecord(
        level=fields[COMPANY_COLUMNS["level"]],
        title=fields[COMPANY_COLUMNS["title"]],
        total_yearly_comp=parse_int(fields[COMPANY_COLUMNS["total_yearly_comp"]], "total_yearly_comp"),
        city=city,
    )
    return company, record


def _load_unique(
    text: str,
    dataset: str,
    build: Callable[[List[str]], object],
    key: Callable[[object], str],
) -> LoadResult:
    warnings: List[LoadWarning] = []
    out: Dict[str, object] = {}
    for line_number, fields in read_rows(text, dataset, warnings):
        try:
            record = build(fields)
        except RowMalformed as exc:
            warnings.append(LoadWarning(dataset, line_number, exc.kind, exc.reason))
            continue
        k = key(record)
        if k in out:
            warnings.append(LoadWarning(dataset, line_number, "duplicate_key", f"{k!r} already loaded"))
            continue
        out[k] = record
    _log_warnings(dataset, warnings)
    return LoadResult(data=frozen_mapping(out), warnings=tuple(warnings))


def load_cities(text: str) -> LoadResult:
    return _load_unique(text, "cities", _city_from_row, lambda c: c.name)


def load_locations(text: str) -> LoadResult:
    return _load_unique(text, "locations", _location_from_row, lambda loc: loc.key)


class _CompanyAccumulator:
    """Mutable per-company state, only alive while the companies file is read."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.min_comp: Optional[int] = None
        self.max_comp: Optional[int] = None
        self.city_jobs: Dict[str, List[CompensationRecord]] = {}
        self.city_summaries: Dict[str, CitySummary] = {}

    def add(self, record: CompensationRecord) -> None:
        comp = record.total_yearly_comp
        self.min_comp = comp if self.min_comp is None else min(self.min_comp, comp)
        self.max_comp = comp if self.max_comp is None else max(self.max_comp, comp)
        self.city_jobs.setdefault(record.city, []).append(record)
        self.city_summaries[record.city] = self.city_summaries.get(record.city, CitySummary()).add(comp)

    def finalize(self) -> Company:
        level_sums: Dict[str, int] = {}
        level_counts: Dict[str, int] = {}
        total = 0
        count = 0
        for records in self.city_jobs.values():
            for record in records:
                level_sums[record.level] = level_sums.get(record.level, 0) + record.total_yearly_comp
                level_counts[record.level] = level_counts.get(record.level, 0) + 1
                total += record.total_yearly_comp
                count += 1
        by_level = {level: level_sums[level] // level_counts[level] for level in level_sums}
        return Company(
            name=self.name,
            min_total_yearly_comp=self.min_comp or 0,
            max_total_yearly_comp=self.max_comp or 0,
            city_jobs=frozen_mapping({city: tuple(recs) for city, recs in self.city_jobs.items()}),
            city_summaries=frozen_mapping(self.city_summaries),
            avg_total_comp_by_level=frozen_mapping(by_level),
            avg_total_comp_all_levels=total // count if count else 0,
        )


def load_companies(text: str) -> LoadResult:
    warnings: List[LoadWarning] = []
    accumulators: Dict[str, _CompanyAccumulator] = {}
    for line_number, fields in read_rows(text, "companies", warnings):
        try:
            company, record = _compensation_from_row(fields)
        except RowMalformed as exc:
            warnings.append(LoadWarning("companies", line_number, exc.kind, exc.reason))
            continue
        if company not in accumulators:
            accumulators[company] = _CompanyAccumulator(company)
        accumulators[company].add(record)

    # Aggregates are computed once, after every row is in.
    companies = {name: acc.finalize() for name, acc in accumulators.items()}
    _log_warnings("companies", warnings)
    return LoadResult(data=frozen_mapping(companies), warnings=tuple(warnings))


def _load_file(path: Path, loader: Callable[[str], LoadResult]) -> LoadResult:
    try:
        text = read_resource(path)
    except ResourceUnavailable as exc:
        logger.warning("%s; continuing with an empty dataset", exc)
        return LoadResult(data=frozen_mapping({}), warnings=(), error=exc)
    return loader(text)


def load_cities_file(path: Path) -> LoadResult:
    return _load_file(path, load_cities)


def load_companies_file(path: Path) -> LoadResult:
    return _load_file(path, load_companies)


def load_locations_file(path: Path) -> LoadResult:
    return _load_file(path, load_locations)


# ---------------- Join ----------------
def join_cities(
    cities: Mapping[str, CityEconomics], locations: Mapping[str, LocationInfo]
) -> Tuple[Tuple[JoinedCity, ...], Mapping[str, int], Tuple[LoadWarning, ...]]:
    joined: List[JoinedCity] = []
    index: Dict[str, int] = {}
    warnings: List[LoadWarning] = []
    for name, econ in cities.items():
        loc = locations.get(name)
        if loc is None:
            warnings.append(LoadWarning("join", 0, "unmatched_city", f"no location for {name!r}"))
            continue
        city_id = len(joined)
        joined.append(
            JoinedCity(
                id=city_id,
                name=name,
                mean_salary_adjusted=econ.mean_salary_adjusted,
                mean_salary_unadjusted=econ.mean_salary_unadjusted,
                mean_salary_unadjusted_all_occupations=econ.mean_salary_unadjusted_all_occupations,
                quantity_software_jobs=econ.quantity_software_jobs,
                median_home_price=econ.median_home_price,
                cost_of_living_average=econ.cost_of_living_average,
                rent_average=econ.rent_average,
                fips=loc.fips,
                latitude=loc.latitude,
                longitude=loc.longitude,
                population=loc.population,
                density=loc.density,
            )
        )
        index[name] = city_id
    _log_warnings("join", warnings)
    return tuple(joined), frozen_mapping(index), tuple(warnings)


# ---------------- Public API ----------------
@dataclass(frozen=True, eq=False)
class InsightsData:
    """Everything one load produced. Built fully before it is handed out."""

    cities: Tuple[JoinedCity, ...]
    city_index: Mapping[str, int]
    city_economics: Mapping[str, CityEconomics]
    locations: Mapping[str, LocationInfo]
    companies: Mapping[str, Company]
    color_scale: ColorScale
    warnings: Mapping[str, Tuple[LoadWarning, ...]] = field(default_factory=lambda: frozen_mapping({}))
    errors: Mapping[str, str] = field(default_factory=lambda: frozen_mapping({}))
    files: Tuple[str, ...] = ()

    @property
    def is_degraded(self) -> bool:
        return bool(self.errors)


def build_insights_data(
    cities: LoadResult, companies: LoadResult, locations: LoadResult, files: Sequence[str] = ()
) -> InsightsData:
    joined, index, join_warnings = join_cities(cities.data, locations.data)
    errors = {
        dataset: str(result.error)
        for dataset, result in (("cities", cities), ("companies", companies), ("locations", locations))
        if result.error is not None
    }
    return InsightsData(
        cities=joined,
        city_index=index,
        city_economics=cities.data,
        locations=locations.data,
        companies=companies.data,
        color_scale=ColorScale(joined, companies.data.values()),
        warnings=frozen_mapping(
            {
                "cities": cities.warnings,
                "companies": companies.warnings,
                "locations": locations.warnings,
                "join": join_warnings,
            }
        ),
        errors=frozen_mapping(errors),
        files=tuple(files),
    )


def load_insights_data(data_dir: Optional[Path] = None) -> InsightsData:
    files = get_source_files(data_dir)
    cities = load_cities_file(files["cities"])
    companies = load_companies_file(files["companies"])
    locations = load_locations_file(files["locations"])
    data = build_insights_data(
        cities, companies, locations, files=[p.name for p in files.values() if p.exists()]
    )
    logger.info(
        "Loaded %d cities (%d located), %d companies, %d locations",
        len(data.city_economics),
        len(data.cities),
        len(data.companies),
        len(data.locations),
    )
    return data


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, str, Optional[float]], ...]) -> InsightsData:
    data_dir = Path(files_sig[0][1]).parent
    return load_insights_data(data_dir)


def load_dashboard_data(data_dir: Optional[Path] = None) -> InsightsData:
    files = get_source_files(data_dir)
    return _load_dashboard_data_cached(file_signature(files))
