"""Tests for demand history parsing and hourly normalization."""

from datetime import timedelta

import pandas as pd
import pytest

from gridpulse.exceptions import InvalidInputError
from gridpulse.services.normalizer import hourly_history, resample_hourly
from gridpulse.services.parser import parse_demand_history


# ── Parser ─────────────────────────────────────────────────────────────────────

def test_semicolon_csv_with_decimal_comma():
    data = "fecha;demanda_mw\n01/03/2024 00:00;1000,5\n01/03/2024 01:00;1100\n".encode()
    df = parse_demand_history(data, "demanda.csv")
    assert list(df.columns) == ["ts", "demand_mw"]
    assert df["demand_mw"].tolist() == [1000.5, 1100.0]
    assert df["ts"].iloc[0] == pd.Timestamp(2024, 3, 1, 0, 0)


def test_kw_column_converted_to_mw():
    data = b"timestamp,kw\n2024-01-01 00:00,1000\n2024-01-01 01:00,2500\n"
    df = parse_demand_history(data, "load.csv")
    assert df["demand_mw"].tolist() == [1.0, 2.5]


def test_kwh_quarter_hours_converted_to_average_mw():
    data = (
        b"timestamp,kwh\n"
        b"2024-01-01 00:00,250\n"
        b"2024-01-01 00:15,250\n"
        b"2024-01-01 00:30,250\n"
    )
    df = parse_demand_history(data, "meter.csv")
    assert df["demand_mw"].tolist() == pytest.approx([1.0, 1.0, 1.0])


def test_missing_demand_column_rejected():
    data = b"timestamp,a,b\n2024-01-01 00:00,1,2\n"
    with pytest.raises(InvalidInputError):
        parse_demand_history(data, "bad.csv")


def test_empty_file_rejected():
    with pytest.raises(InvalidInputError):
        parse_demand_history(b"", "empty.csv")


def test_corrupt_workbook_rejected():
    with pytest.raises(InvalidInputError):
        parse_demand_history(b"not really a workbook", "hist.xlsx")


def test_legacy_xls_rejected():
    with pytest.raises(InvalidInputError):
        parse_demand_history(b"\xd0\xcf\x11\xe0 legacy biff", "hist.xls")


def test_xlsx_workbook(tmp_path):
    path = tmp_path / "history.xlsx"
    pd.DataFrame(
        {"fecha": pd.date_range("2024-01-01", periods=3, freq="1h"), "demanda_mw": [900, 950, 1000]}
    ).to_excel(path, index=False, engine="openpyxl")
    df = parse_demand_history(path.read_bytes(), "history.xlsx")
    assert df["demand_mw"].tolist() == [900, 950, 1000]


# ── Normalizer ─────────────────────────────────────────────────────────────────

def test_quarter_hours_averaged_per_hour():
    ts = pd.date_range("2024-01-01 00:00", periods=8, freq="15min")
    df = pd.DataFrame({"ts": ts, "demand_mw": [1, 2, 3, 4, 10, 10, 10, 10]})
    hourly = resample_hourly(df)
    assert hourly.tolist() == [2.5, 10.0]
    assert str(hourly.index.tz) == "America/Bogota"


def test_short_gaps_forward_filled_long_gaps_dropped():
    ts = pd.to_datetime(["2024-01-01 00:00", "2024-01-01 05:00"])
    df = pd.DataFrame({"ts": ts, "demand_mw": [100.0, 200.0]})
    hourly = resample_hourly(df)
    assert len(hourly) == 6
    assert hourly.iloc[1:3].tolist() == [100.0, 100.0]
    assert hourly.iloc[3:5].isna().all()

    points = hourly_history(df)
    assert len(points) == 4
    assert points[-1].total_demand == 200.0
    assert points[-1].timestamp - points[0].timestamp == timedelta(hours=5)


def test_aware_timestamps_converted_to_grid_time():
    ts = pd.to_datetime(["2024-01-01 05:00", "2024-01-01 06:00"]).tz_localize("UTC")
    df = pd.DataFrame({"ts": ts, "demand_mw": [1.0, 2.0]})
    [first, _] = hourly_history(df)
    assert first.timestamp.hour == 0
    assert first.timestamp.utcoffset() == timedelta(hours=-5)
