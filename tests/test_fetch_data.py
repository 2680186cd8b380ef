"""Tests for download caching, schema typing and cleaning."""

import numpy as np
import pandas as pd
import pytest
import requests

import fetch_data
from fetch_data import (
    COLONY_SCHEMA,
    STRESSOR_SCHEMA,
    SchemaError,
    apply_schema,
    clean_names,
    drop_national_rows,
    fetch_csv,
    load_cleaned,
    parse_number,
    validate,
)
from conftest import COLONY_CSV


class FakeResponse:
    def __init__(self, text: str, status: int = 200):
        self.text = text
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def fake_get(monkeypatch):
    calls = []

    def _get(url, headers=None, timeout=None):
        calls.append(url)
        return FakeResponse(COLONY_CSV)

    monkeypatch.setattr(fetch_data.requests, "get", _get)
    return calls


# ─────────────────────────────────────────────────────────────────────────────
# fetch_csv
# ─────────────────────────────────────────────────────────────────────────────

def test_fetch_csv_downloads_and_caches(tmp_path, fake_get):
    cache = tmp_path / "raw" / "colony.csv"
    df = fetch_csv("https://example.test/colony.csv", cache)

    assert fake_get == ["https://example.test/colony.csv"]
    assert cache.exists()
    assert "colony_lost" in df.columns
    assert len(df) == 12


def test_fetch_csv_reuses_cache(tmp_path, fake_get):
    cache = tmp_path / "colony.csv"
    fetch_csv("https://example.test/colony.csv", cache)
    fetch_csv("https://example.test/colony.csv", cache)

    assert len(fake_get) == 1


def test_fetch_csv_force_refresh_downloads_again(tmp_path, fake_get):
    cache = tmp_path / "colony.csv"
    fetch_csv("https://example.test/colony.csv", cache)
    fetch_csv("https://example.test/colony.csv", cache, force_refresh=True)

    assert len(fake_get) == 2


def test_fetch_csv_http_error_propagates(tmp_path, monkeypatch):
    monkeypatch.setattr(
        fetch_data.requests, "get",
        lambda url, headers=None, timeout=None: FakeResponse("", status=404),
    )
    cache = tmp_path / "colony.csv"

    with pytest.raises(requests.HTTPError):
        fetch_csv("https://example.test/colony.csv", cache)
    assert not cache.exists()


# ─────────────────────────────────────────────────────────────────────────────
# Cleaning utilities
# ─────────────────────────────────────────────────────────────────────────────

def test_clean_names_snake_case():
    df = pd.DataFrame(columns=["Colony N", " colony-lost %", "Year"])
    assert list(clean_names(df).columns) == ["colony_n", "colony_lost", "year"]


def test_parse_number_strips_formatting():
    out = parse_number(pd.Series(["1,234", "12%", "NA", "(Z)", None, " 7 "]))

    assert out.dtype == "float64"
    assert out[0] == 1234
    assert out[1] == 12
    assert out[2:5].isna().all()
    assert out[5] == 7


def test_parse_number_passes_numeric_through():
    out = parse_number(pd.Series([1, 2, 3]))
    assert out.dtype == "float64"
    assert out.tolist() == [1.0, 2.0, 3.0]


def test_apply_schema_types_and_orders_columns(raw_stressor):
    shuffled = raw_stressor[["stress_pct", "stressor", "state", "months", "year"]].assign(extra=1)
    out = apply_schema(shuffled, STRESSOR_SCHEMA)

    assert list(out.columns) == list(STRESSOR_SCHEMA)
    assert str(out["year"].dtype) == "Int64"
    assert out["state"].dtype == "string"
    assert out["stress_pct"].dtype == "float64"
    assert out["stress_pct"].isna().sum() == 1


def test_apply_schema_missing_column_raises(raw_colony):
    with pytest.raises(SchemaError, match="colony_lost_pct"):
        apply_schema(raw_colony.drop(columns=["colony_lost_pct"]), COLONY_SCHEMA)


def test_clean_colony_keeps_every_row_and_sorts(colony):
    assert len(colony) == 12
    assert colony["year"].is_monotonic_increasing
    assert list(colony.columns) == list(COLONY_SCHEMA)


def test_drop_national_rows(colony):
    states = drop_national_rows(colony)["state"]
    assert "United States" not in set(states)
    assert "Other States" in set(states)
    assert len(states) == 10


def test_load_cleaned_round_trip(tmp_path, colony):
    path = tmp_path / "colony.csv"
    colony.to_csv(path, index=False)

    loaded = load_cleaned(path, COLONY_SCHEMA)
    pd.testing.assert_frame_equal(loaded, colony)


def test_load_cleaned_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="fetch_data.py"):
        load_cleaned(tmp_path / "nope.csv", COLONY_SCHEMA)


def test_validate_passes_on_clean_data(colony, stressor, capsys):
    validate(colony, stressor)
    assert "All checks passed" in capsys.readouterr().out


def test_validate_rejects_negative_losses(colony, stressor):
    bad = colony.copy()
    bad.loc[0, "colony_lost"] = -np.float64(5)
    with pytest.raises(AssertionError, match="negative"):
        validate(bad, stressor)
