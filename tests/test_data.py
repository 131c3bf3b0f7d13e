import pandas as pd
import pytest
import requests

from core import data as dd
from core.data import LoadError, load_dashboard_data, load_dataset, parse_csv, read_dataset, sheet_export_url, time_key_column


class _FakeResponse:
    def __init__(self, status_code=200, content=b""):
        self.status_code = status_code
        self.content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_parse_csv_types_and_blank_lines():
    text = "country,city,yearmonth,x,label\nUS,NYC,2023m1,10,a\n\nUS,NYC,2023m2,1.5,7\n"
    df = parse_csv(text)
    assert len(df) == 2
    assert df["yearmonth"].tolist() == ["2023m1", "2023m2"]
    assert df["x"].tolist() == [10.0, 1.5]
    # mixed text column: numeric cells become numbers, others stay strings
    assert df["label"].tolist() == ["a", 7]


def test_parse_csv_short_rows_are_padded():
    df = parse_csv("country,city,yearmonth,x\nUS,NYC\n")
    assert len(df) == 1
    assert df["city"].iloc[0] == "NYC"
    assert pd.isna(df["x"].iloc[0])


def test_trailing_delimiter_keeps_header_mapping():
    df = parse_csv("country,city,yearmonth\nUS,NYC,2023m1,\nUS,NYC,2023m2,\n")
    assert list(df.columns) == ["country", "city", "yearmonth"]
    assert df["country"].tolist() == ["US", "US"]
    assert df["city"].tolist() == ["NYC", "NYC"]
    assert df["yearmonth"].tolist() == ["2023m1", "2023m2"]


def test_row_with_extra_fields_keeps_other_rows():
    df = parse_csv("country,city,yearmonth\nUS,NYC,2023m1\nUS,NYC,2023m2,stray\nUS,Boston,2023m1\n")
    assert list(df.columns) == ["country", "city", "yearmonth"]
    assert df["city"].tolist() == ["NYC", "NYC", "Boston"]
    assert df["yearmonth"].tolist() == ["2023m1", "2023m2", "2023m1"]


def test_key_columns_stay_strings():
    df = parse_csv("country,city,yearmonth\nUS,123,2023m1\n")
    assert df["city"].iloc[0] == "123"


def test_parse_empty_text():
    assert parse_csv("").empty


def test_read_dataset_from_file(tmp_path):
    path = tmp_path / "data.csv"
    path.write_bytes("\ufeffcountry,city\nCôte d'Ivoire,Abidjan\n".encode("utf-8"))
    df = read_dataset(str(path))
    assert df.to_dict(orient="records") == [{"country": "Côte d'Ivoire", "city": "Abidjan"}]


def test_read_dataset_missing_file(tmp_path):
    with pytest.raises(LoadError):
        read_dataset(str(tmp_path / "missing.csv"))


def test_read_dataset_rejects_non_utf8(tmp_path):
    path = tmp_path / "data.csv"
    path.write_bytes(b"country\n\xff\xfe\n")
    with pytest.raises(LoadError):
        read_dataset(str(path))


def test_read_dataset_http_error(monkeypatch):
    monkeypatch.setattr(dd.requests, "get", lambda url, timeout: _FakeResponse(status_code=404))
    with pytest.raises(LoadError):
        read_dataset("https://example.com/data.csv")


def test_read_dataset_over_http(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return _FakeResponse(content=b"country,city\nUS,NYC\n")

    monkeypatch.setattr(dd.requests, "get", fake_get)
    df = read_dataset("https://example.com/data.csv")
    assert df["city"].tolist() == ["NYC"]
    assert calls == [("https://example.com/data.csv", dd.REQUEST_TIMEOUT)]


def test_load_dataset_failure_returns_empty(monkeypatch, caplog):
    def boom(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(dd.requests, "get", boom)
    df = load_dataset("https://example.com/data.csv")
    assert df.empty
    assert "Error loading data" in caplog.text


def test_load_dashboard_data_reports_error_and_retries(monkeypatch):
    responses = [requests.ConnectionError("offline"), _FakeResponse(content=b"country,city\nUS,NYC\n")]

    def fake_get(url, timeout):
        r = responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r

    monkeypatch.setattr(dd.requests, "get", fake_get)
    first = load_dashboard_data("https://example.com/data.csv")
    assert first["dataset"].empty and first["error"]
    second = load_dashboard_data("https://example.com/data.csv")
    assert second["error"] is None
    assert second["countries"] == ["US"]


def test_default_source_prefers_local_file(monkeypatch, tmp_path):
    monkeypatch.setattr(dd, "LOCAL_CSV_PATH", tmp_path / "dataset.csv")
    assert dd.default_source() == sheet_export_url()
    (tmp_path / "dataset.csv").write_text("country,city\n", encoding="utf-8")
    assert dd.default_source() == str(tmp_path / "dataset.csv")


def test_time_key_column():
    assert time_key_column(pd.DataFrame(columns=["yearmonth", "reportingdate"])) == "yearmonth"
    assert time_key_column(pd.DataFrame(columns=["reportingdate"])) == "reportingdate"
    assert time_key_column(pd.DataFrame(columns=["x"])) is None
