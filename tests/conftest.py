import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

SAMPLE_CSV = """INCIDENT_KEY,OCCUR_DATE,OCCUR_TIME,BORO,LOC_OF_OCCUR_DESC,PRECINCT,STATISTICAL_MURDER_FLAG,PERP_RACE,VIC_RACE,X_COORD_CD,Y_COORD_CD,Latitude,Longitude,Lon_Lat
1001,01/05/2020,23:30:00,BROOKLYN,OUTSIDE,75,true,BLACK,BLACK,1017542,183769,40.67,-73.89,POINT (-73.89 40.67)
1002,02/14/2021,06:00:00,BROOKLYN,,73,false,,WHITE HISPANIC,1009053,186586,40.68,-73.92,POINT (-73.92 40.68)
1003,07/04/2019,12:15:30,QUEENS,INSIDE,103,false,WHITE,,1040153,193894,40.70,-73.80,POINT (-73.80 40.70)
1004,11/30/2022,00:45:00,STATEN ISLAND,,120,true,,BLACK,962353,171947,40.64,-74.08,POINT (-74.08 40.64)
"""


def make_raw(**columns) -> pd.DataFrame:
    """Four-row raw table in the source schema; keyword args replace whole columns."""
    data = {
        "INCIDENT_KEY": ["1001", "1002", "1003", "1004"],
        "OCCUR_DATE": ["01/05/2020", "02/14/2021", "07/04/2019", "11/30/2022"],
        "OCCUR_TIME": ["23:30:00", "06:00:00", "12:15:30", "00:45:00"],
        "BORO": ["BROOKLYN", "BROOKLYN", "QUEENS", "STATEN ISLAND"],
        "LOC_OF_OCCUR_DESC": ["OUTSIDE", None, "INSIDE", None],
        "STATISTICAL_MURDER_FLAG": ["true", "false", "false", "true"],
        "PERP_RACE": ["BLACK", "", "WHITE", ""],
        "VIC_RACE": ["BLACK", "WHITE HISPANIC", "", "BLACK"],
        "X_COORD_CD": [1017542, 1009053, 1040153, 962353],
        "Y_COORD_CD": [183769, 186586, 193894, 171947],
        "Latitude": [40.67, 40.68, 40.70, 40.64],
        "Longitude": [-73.89, -73.92, -73.80, -74.08],
        "Lon_Lat": ["POINT (-73.89 40.67)", "POINT (-73.92 40.68)",
                    "POINT (-73.80 40.70)", "POINT (-74.08 40.64)"],
    }
    data.update(columns)
    return pd.DataFrame(data)


@pytest.fixture
def raw_df():
    return make_raw()


@pytest.fixture
def sample_csv(tmp_path):
    path = tmp_path / "shootings.csv"
    path.write_text(SAMPLE_CSV)
    return path


@pytest.fixture
def sample_csv_text():
    return SAMPLE_CSV
