"""Shared fixtures: small excerpts of colony.csv and stressor.csv."""

import io

import pandas as pd
import pytest

from fetch_data import clean_colony, clean_stressor


COLONY_CSV = """\
year,months,state,colony_n,colony_max,colony_lost,colony_lost_pct,colony_added,colony_reno,colony_reno_pct
2015,January-March,Alabama,7000,7000,1800,26,2800,250,4
2015,April-June,Alabama,7500,7500,860,12,1900,170,2
2015,January-March,California,1440000,1690000,255000,15,250000,124000,7
2015,April-June,California,1340000,1540000,119000,8,131000,183000,12
2015,January-March,Other States,61000,70000,9600,16,7700,2700,4
2015,January-March,United States,2824610,NA,500020,18,373250,271220,9
2016,January-March,Alabama,8000,8500,1000,12,1200,NA,NA
2016,January-March,California,1120000,1340000,297000,22,212000,55000,4
2016,January-March,Other States,58000,66000,8000,14,6000,2000,3
2016,January-March,United States,2662190,NA,460780,17,340300,170130,6
2019,April-June,Alabama,NA,NA,NA,NA,NA,NA,NA
2019,April-June,California,NA,NA,NA,NA,NA,NA,NA
"""

STRESSOR_CSV = """\
year,months,state,stressor,stress_pct
2015,January-March,Alabama,Varroa mites,10
2015,January-March,Alabama,Pesticides,2.2
2015,April-June,Alabama,Varroa mites,16.7
2015,April-June,Alabama,Pesticides,NA
2015,January-March,California,Varroa mites,24.7
2015,January-March,California,Pesticides,3.5
2015,January-March,United States,Varroa mites,29.2
2016,January-March,Alabama,Varroa mites,20
2016,January-March,Alabama,Pesticides,4
2016,January-March,California,Varroa mites,30
2016,January-March,California,Pesticides,6
"""


@pytest.fixture
def raw_colony() -> pd.DataFrame:
    return pd.read_csv(io.StringIO(COLONY_CSV))


@pytest.fixture
def raw_stressor() -> pd.DataFrame:
    return pd.read_csv(io.StringIO(STRESSOR_CSV))


@pytest.fixture
def colony(raw_colony) -> pd.DataFrame:
    return clean_colony(raw_colony)


@pytest.fixture
def stressor(raw_stressor) -> pd.DataFrame:
    return clean_stressor(raw_stressor)
