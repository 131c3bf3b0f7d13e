import pandas as pd
import pytest

from core.data import clear_cache, parse_csv


SAMPLE_CSV = """country,city,yearmonth,impdate,graduationdate,totalreportingsdp,totalreportingsdp_imp,nac_wraadj_int,NCU,ar,ma
US,NYC,2023m2,2023m1,Jan-25,12,13,5,0.4,1,0
US,NYC,2023m1,2023m1,Jan-25,10,11,4,0.4,1,0
US,NYC,2023m10,2023m1,Jan-25,15,,6,0.4,1,0
US,Boston,2023m1,2023m3,Mar-23,7,7,2,0.9,2,1
Kenya,Nairobi,2022m12,2023m1,Feb-23,3,3,1,1.1,0,1
"""


@pytest.fixture(autouse=True)
def _fresh_cache():
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def sample_df() -> pd.DataFrame:
    return parse_csv(SAMPLE_CSV)


@pytest.fixture
def two_row_df() -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"country": "US", "city": "NYC", "yearmonth": "2023m1", "impdate": "2023m1", "graduationdate": "Jan-25", "totalreportingsdp": 10},
            {"country": "US", "city": "NYC", "yearmonth": "2023m2", "impdate": "2023m1", "graduationdate": "Jan-25", "totalreportingsdp": 12},
        ]
    )
