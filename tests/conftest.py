"""
Pytest configuration and shared fixtures for the job insights core.

This file provides:
- Small CSV blobs shaped like the three source files
- An on-disk data directory holding those blobs
- A fully built InsightsData and its query service
"""

import pytest

from core.data import build_insights_data, load_cities, load_companies, load_locations
from core.queries import InsightsQueries

CITIES_CSV = "\n".join(
    [
        "Rank,Metro,Mean Software Developer Salary (adjusted),Mean Software Developer Salary (unadjusted),"
        "Mean Unadjusted Salary (all occupations),Number of Software Developer Jobs,Median Home Price,City,"
        "Cost of Living avg,Rent avg",
        '1,"Austin-Round Rock, TX",150000.4,180000.6,90000,50000,800000,"Austin, TX",102.3,2200.7',
        '2,"Seattle-Tacoma, WA",140000,190000,85000,70000,900000.9,"Seattle, WA",150.1,2500',
        '3,"Dayton, OH",110000,100000,60000,5000,200000,"Dayton, OH",80.5,900',
        '4,"Nowhere, ZZ",100000,100000,50000,100,100000,"Nowhere, ZZ",90,1000',
        "5,Short,1,2",
        '6,"Boise, ID",abc,1,1,1,1,"Boise, ID",1,1',
        "",
    ]
)

LOCATIONS_CSV = "\n".join(
    [
        "city,city_ascii,state_id,state_name,county_fips,county_name,lat,lng,population,density",
        '"Austin","Austin","TX","Texas","48453","Travis","30.3005","-97.7522","1687311","1181.4"',
        '"Seattle","Seattle","WA","Washington","53033","King","47.6211","-122.3244","3438221","3550"',
        '"Dayton","Dayton","OH","Ohio","39113","Montgomery","39.7805","-84.2003","721625","942"',
        '"San Jose","San Jose","CA","California","06085","Santa Clara","37.3012","-121.8480","1752784","2253"',
        '"Brokenville","Brokenville","TX","Texas","48001","Anderson","31.0","-95.0","300","n/a"',
    ]
)

COMPANIES_CSV = "\n".join(
    [
        "timestamp,company,level,title,totalyearlycompensation,location",
        '6/7/2017 11:33:27,apple,L4,Software Engineer,150000,"Austin, TX"',
        '6/7/2017 11:33:27,Apple,L4,Software Engineer,170000,"Austin, TX"',
        '6/8/2017 09:10:11,Apple,L5,Software Engineer,250000,"Seattle, WA"',
        '6/9/2017 10:00:00,APPLE,ICT3,Software Engineer,200000,"San Jose, CA"',
        '6/9/2017 12:00:00,Google,L3,Software Engineer,180000,"Seattle, WA"',
        '6/9/2017 12:30:00,Google,L4,Software Engineer,181001,"Dayton, OH"',
        '6/10/2017 08:00:00,Amazon,L5,SDE,lots,"Seattle, WA"',
        "6/10/2017 08:00:00,Amazon,L5",
    ]
)

UNLOCATED_COMPANY_CSV = COMPANIES_CSV + '\n6/11/2017 09:00:00,Initrode,L3,Software Engineer,120000,"San Jose, CA"'


def companies_csv(counts):
    """Build a companies blob where each company has ``counts[name]`` rows in Austin."""
    lines = ["timestamp,company,level,title,totalyearlycompensation,location"]
    for name, count in counts.items():
        for i in range(count):
            lines.append(f'1/1/2020 00:00:00,{name},L{i % 3},Engineer,{100000 + i},"Austin, TX"')
    return "\n".join(lines)


def make_data(cities_text=CITIES_CSV, companies_text=COMPANIES_CSV, locations_text=LOCATIONS_CSV):
    return build_insights_data(load_cities(cities_text), load_companies(companies_text), load_locations(locations_text))


@pytest.fixture
def data():
    return make_data()


@pytest.fixture
def queries(data):
    return InsightsQueries(data)


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "SoftwareDeveloperIncomeExpensesperUSACity.csv").write_text(CITIES_CSV, encoding="utf-8")
    (tmp_path / "Levels_Fyi_Salary_Data.csv").write_text(COMPANIES_CSV, encoding="utf-8")
    (tmp_path / "uscities.csv").write_text(LOCATIONS_CSV, encoding="utf-8")
    return tmp_path
