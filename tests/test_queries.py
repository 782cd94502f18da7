"""
Join and Query Tests.

Tests for join_cities and InsightsQueries:
- dense ids and the name index
- top-N rankings for cities and company cities
- company lookup, threshold filter and name search

Run with:
    pytest tests/test_queries.py -v
"""

import pytest

from core.data import join_cities, load_cities, load_locations
from core.errors import InsightsError, NotFound
from core.filters import DashboardFilters
from core.queries import InsightsQueries
from tests.conftest import CITIES_CSV, LOCATIONS_CSV, UNLOCATED_COMPANY_CSV, companies_csv, make_data


# ============================================================================
# Join
# ============================================================================

class TestJoinCities:
    """Tests for join_cities."""

    def test_unmatched_city_dropped(self):
        """Test a city without a location row is left out and reported."""
        joined, index, warnings = join_cities(load_cities(CITIES_CSV).data, load_locations(LOCATIONS_CSV).data)

        assert [c.name for c in joined] == ["Austin, TX", "Seattle, WA", "Dayton, OH"]
        assert "Nowhere, ZZ" not in index
        assert [(w.dataset, w.kind) for w in warnings] == [("join", "unmatched_city")]

    def test_ids_are_dense_and_indexed(self, data):
        """Test ids run 0..n-1 and the index resolves every name to its city."""
        assert [c.id for c in data.cities] == list(range(len(data.cities)))
        assert len(data.city_index) == len(data.cities)
        for name, idx in data.city_index.items():
            assert 0 <= idx < len(data.cities)
            assert data.cities[idx].name == name

    def test_joined_fields(self, data):
        """Test economics and gazetteer fields both land on the joined city."""
        austin = data.cities[data.city_index["Austin, TX"]]

        assert austin.kind == "city"
        assert austin.median_home_price == 800000
        assert austin.latitude == pytest.approx(30.3005)
        assert austin.population == 1687311
        assert austin.fips == 48453


# ============================================================================
# Cities
# ============================================================================

class TestTopCities:
    """Tests for InsightsQueries.top_cities."""

    def test_sorted_descending(self, queries):
        """Test cities come back highest metric first."""
        names = [c.name for c in queries.top_cities("adjusted_salary", 3)]

        assert names == ["Austin, TX", "Seattle, WA", "Dayton, OH"]
        assert len(set(names)) == len(names)
        assert [c.name for c in queries.top_cities("home_price", 3)] == ["Seattle, WA", "Austin, TX", "Dayton, OH"]

    def test_length_is_min_of_n_and_size(self, queries):
        """Test n caps the result and a large n returns everything."""
        assert len(queries.top_cities("software_jobs", 2)) == 2
        assert len(queries.top_cities("software_jobs", 50)) == 3
        assert queries.top_cities("software_jobs", 0) == []
        assert queries.top_cities("software_jobs", -1) == []

    def test_does_not_reorder_source(self, data, queries):
        """Test ranking leaves the joined sequence untouched."""
        before = [c.name for c in data.cities]
        queries.top_cities("home_price", 3)

        assert [c.name for c in data.cities] == before

    def test_ties_keep_load_order(self):
        """Test equal metric values keep their join order."""
        cities = CITIES_CSV.replace("110000,100000,60000,5000", "110000,100000,60000,70000")
        queries = InsightsQueries(make_data(cities_text=cities))

        names = [c.name for c in queries.top_cities("software_jobs", 2)]
        assert names == ["Seattle, WA", "Dayton, OH"]

    def test_unknown_metric(self, queries):
        """Test an unknown metric key is a ValueError."""
        with pytest.raises(ValueError):
            queries.top_cities("happiness", 3)

    def test_city_by_name(self, queries):
        """Test lookup by exact name and NotFound for the rest."""
        assert queries.city_by_name("Dayton, OH").quantity_software_jobs == 5000
        with pytest.raises(NotFound) as exc:
            queries.city_by_name("Nowhere, ZZ")
        assert isinstance(exc.value, KeyError)
        assert isinstance(exc.value, InsightsError)
        assert str(exc.value) == "city not found: 'Nowhere, ZZ'"


# ============================================================================
# Companies
# ============================================================================

class TestTopCompanyCities:
    """Tests for InsightsQueries.top_company_cities."""

    def test_only_located_cities(self, queries):
        """Test a company city with no joined city is not returned."""
        views = queries.top_company_cities("Apple", "average_total_comp", 10)

        assert [v.name for v in views] == ["Seattle, WA", "Austin, TX"]
        assert all(v.kind == "company_city" for v in views)

    def test_fresh_ids(self, queries):
        """Test view ids are local to the result."""
        views = queries.top_company_cities("Apple", "num_jobs", 10)

        assert [v.id for v in views] == [0, 1]
        assert [v.name for v in views] == ["Austin, TX", "Seattle, WA"]

    def test_view_carries_summary_and_coordinates(self, queries):
        """Test the view has the summary numbers and the city's coordinates."""
        austin = queries.top_company_cities("apple", "num_jobs", 1)[0]

        assert austin.company == "Apple"
        assert austin.num_jobs == 2
        assert austin.total_comp == 320000
        assert austin.average_total_comp == 160000
        assert austin.latitude == pytest.approx(30.3005)

    def test_unknown_company(self, queries):
        """Test an unknown company raises NotFound."""
        with pytest.raises(NotFound):
            queries.top_company_cities("Initech", "num_jobs", 10)

    def test_company_without_located_cities(self):
        """Test a known company whose only city has no location is an empty ranking."""
        queries = InsightsQueries(make_data(companies_text=UNLOCATED_COMPANY_CSV))

        assert queries.company_by_name("Initrode").num_datapoints == 1
        assert queries.top_company_cities("Initrode", "average_total_comp", 10) == []

    def test_zero_n(self, queries):
        """Test n of zero is an empty ranking."""
        assert queries.top_company_cities("Apple", "num_jobs", 0) == []


class TestCompanyQueries:
    """Tests for company lookup, threshold and search."""

    def test_threshold_is_strict(self):
        """Test 19 and 20 datapoints are excluded and 21 is kept."""
        queries = InsightsQueries(make_data(companies_text=companies_csv({"Alpha": 19, "Beta": 20, "Gamma": 21})))

        names = [c.name for c in queries.companies_above_threshold(20, "average_total_comp")]
        assert names == ["Gamma"]

    def test_threshold_as_only_argument(self):
        """Test the threshold can be passed alone and the default metric applies."""
        queries = InsightsQueries(make_data(companies_text=companies_csv({"Alpha": 19, "Gamma": 21})))

        assert [c.name for c in queries.companies_above_threshold(20)] == ["Gamma"]
        assert [c.name for c in queries.companies_above_threshold()] == ["Gamma"]

    def test_threshold_sorted_by_metric(self, queries):
        """Test eligible companies are ranked by the chosen metric."""
        by_comp = [c.name for c in queries.companies_above_threshold(1, "average_total_comp")]
        by_count = [c.name for c in queries.companies_above_threshold(1, "num_datapoints")]

        assert by_comp == ["Apple", "Google"]
        assert by_count == ["Apple", "Google"]
        assert queries.companies_above_threshold(3, metric="num_datapoints") == [queries.company_by_name("Apple")]

    def test_search(self, queries):
        """Test search is a case-insensitive substring match in name order."""
        assert queries.search_company_names("") == ["Apple", "Google"]
        assert queries.search_company_names("GOO") == ["Google"]
        assert queries.search_company_names(" ") == []
        assert queries.search_company_names("le") == ["Apple", "Google"]
        assert queries.search_company_names("zzz") == []

    def test_company_helpers(self, queries):
        """Test nationwide average, datapoints and level ordering."""
        assert queries.nationwide_avg_comp("Apple") == 192500
        assert queries.num_datapoints("Google") == 2
        assert queries.sorted_levels("Apple") == [("L5", 250000), ("ICT3", 200000), ("L4", 160000)]


class TestCurrentLocations:
    """Tests for the mode-aware location list."""

    def test_city_mode(self, queries):
        """Test city mode returns the top cities for the city metric."""
        filters = DashboardFilters(mode="city", city_metric="home_price", top_n=2)

        assert [c.name for c in queries.current_locations(filters)] == ["Seattle, WA", "Austin, TX"]

    def test_company_city_mode(self, queries):
        """Test company-city mode ranks the selected company's cities."""
        filters = DashboardFilters(mode="company_city", selected_company="Google", company_city_metric="average_total_comp")

        assert [v.name for v in queries.current_locations(filters)] == ["Dayton, OH", "Seattle, WA"]

    def test_company_city_mode_without_company(self, queries):
        """Test no selection, or an unknown one, yields no locations."""
        assert queries.current_locations(DashboardFilters(mode="company_city")) == []
        assert queries.current_locations(DashboardFilters(mode="company_city", selected_company="Initech")) == []
