"""
scripts/fetch_data.py
=====================
Acquire and clean the USDA honey bee colony survey, as published by
TidyTuesday (2022-01-11):

  colony.csv    — colonies per state and quarter: starting count, maximum,
                  lost, added, renovated (counts and percentages).
  stressor.csv  — percent of colonies affected by each stressor (varroa
                  mites, other pests/parasites, diseases, pesticides, other,
                  unknown) per state and quarter.

Both files are downloaded once and cached in data/raw/ so subsequent runs
are instant.  Use --refresh to force a re-download.

Usage:
    python scripts/fetch_data.py             # uses cache when available
    python scripts/fetch_data.py --refresh   # forces re-download

─────────────────────────────────────────────────────────────────────────────
R → Python translation guide
─────────────────────────────────────────────────────────────────────────────
  R                                   Python / pandas equivalent
  ─────────────────────────────────── ────────────────────────────────────────
  readr::read_csv(url)                requests.get(url) + pandas.read_csv()
  readr::read_csv(col_types = cols(   apply_schema(df, COLONY_SCHEMA)
      year = col_integer(), ...))
  janitor::clean_names()              clean_names() below
  readr::parse_number()               parse_number() below
  dplyr::filter(state != "...")       df[df["state"] != "..."]
  stopifnot()                         assert condition, "message"
─────────────────────────────────────────────────────────────────────────────
"""

import io
import sys
import argparse
from pathlib import Path

import requests
import pandas as pd


# ─────────────────────────────────────────────────────────────────────────────
# Path setup
# ─────────────────────────────────────────────────────────────────────────────
# scripts/ → project root.  R equivalent: here::here()
PROJECT_ROOT = Path(__file__).resolve().parent.parent
RAW_DIR      = PROJECT_ROOT / "data" / "raw"
CLEANED_DIR  = PROJECT_ROOT / "data" / "cleaned"

# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────
TIDYTUESDAY_BASE = (
    "https://raw.githubusercontent.com/rfordatascience/tidytuesday/"
    "master/data/2022/2022-01-11"
)
COLONY_URL   = f"{TIDYTUESDAY_BASE}/colony.csv"
STRESSOR_URL = f"{TIDYTUESDAY_BASE}/stressor.csv"

RAW_COLONY       = RAW_DIR / "colony.csv"
RAW_STRESSOR     = RAW_DIR / "stressor.csv"
CLEANED_COLONY   = CLEANED_DIR / "colony.csv"
CLEANED_STRESSOR = CLEANED_DIR / "stressor.csv"

# The survey publishes national totals alongside the states.
NATIONAL_ROWS = ("United States",)

HEADERS = {"User-Agent": "Mozilla/5.0 (research; bee-colony-viz/1.0; non-commercial)"}

# ─────────────────────────────────────────────────────────────────────────────
# Schemas — named, typed fields checked every time a file is loaded
# ─────────────────────────────────────────────────────────────────────────────
# "Int64" (capital I) is pandas' nullable integer; "string" is the nullable
# string dtype; "float64" holds counts so missing quarters can be NaN.
COLONY_SCHEMA = {
    "year":            "Int64",
    "months":          "string",
    "state":           "string",
    "colony_n":        "float64",
    "colony_max":      "float64",
    "colony_lost":     "float64",
    "colony_lost_pct": "float64",
    "colony_added":    "float64",
    "colony_reno":     "float64",
    "colony_reno_pct": "float64",
}

STRESSOR_SCHEMA = {
    "year":       "Int64",
    "months":     "string",
    "state":      "string",
    "stressor":   "string",
    "stress_pct": "float64",
}


class SchemaError(ValueError):
    """Raised when a table is missing columns its schema requires."""


# =============================================================================
# Download (with cache)
# =============================================================================

def fetch_csv(url: str, cache_path: Path, force_refresh: bool = False) -> pd.DataFrame:
    """
    Return the CSV at `url`, downloading it only when the cache is missing.

    R equivalent:
        if (!file.exists(path)) download.file(url, path)
        readr::read_csv(path)

    Network errors propagate as requests.RequestException; main() decides
    what to do with them.
    """
    if cache_path.exists() and not force_refresh:
        print(f"[cache] Using cached file: {cache_path.name}")
        return pd.read_csv(cache_path)

    print(f"[fetch] Downloading: {url}")
    resp = requests.get(url, headers=HEADERS, timeout=30)
    resp.raise_for_status()

    cache_path.parent.mkdir(parents=True, exist_ok=True)
    cache_path.write_text(resp.text, encoding="utf-8")
    print(f"[cache] Saved raw download → {cache_path.name}")

    return pd.read_csv(io.StringIO(resp.text))


# =============================================================================
# CLEANING utilities
# =============================================================================

def clean_names(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardise all column names to lowercase snake_case.

    R equivalent: janitor::clean_names()
    """
    df = df.copy()
    df.columns = (
        df.columns
        .astype(str)
        .str.strip()
        .str.lower()
        .str.replace(r"[^a-z0-9]+", "_", regex=True)  # non-alphanumeric → underscore
        .str.strip("_")
    )
    return df


def parse_number(series: pd.Series) -> pd.Series:
    """
    Strip numeric formatting characters (commas, %, whitespace) then coerce
    to float, turning unparseable values such as "NA" or "(Z)" into NaN.

    R equivalent: readr::parse_number()
    """
    if pd.api.types.is_numeric_dtype(series):
        return series.astype("float64")
    # Missing cells become "" so str() never turns them into "None"
    cleaned = (
        series
        .astype(object)
        .where(series.notna(), "")
        .astype(str)
        .str.replace(r"[,%\s]", "", regex=True)
        .replace("", float("nan"))
    )
    return pd.to_numeric(cleaned, errors="coerce").astype("float64")


def apply_schema(df: pd.DataFrame, schema: dict[str, str]) -> pd.DataFrame:
    """
    Select and type the schema's columns, in schema order.

    Matching columns by name alone lets a renamed or misspelt column slip
    through as all-missing; checking the schema up front turns that into an
    immediate SchemaError that names what is absent.
    """
    df = clean_names(df)
    missing = [c for c in schema if c not in df.columns]
    if missing:
        raise SchemaError(f"Missing column(s) {missing}. Got: {list(df.columns)}")

    out = pd.DataFrame(index=df.index)
    for col, dtype in schema.items():
        if dtype == "string":
            out[col] = df[col].astype("string").str.strip()
        elif dtype == "Int64":
            # round() first: astype("Int64") refuses non-integral floats
            out[col] = parse_number(df[col]).round().astype("Int64")
        else:
            out[col] = parse_number(df[col]).astype(dtype)
    return out.reset_index(drop=True)


def drop_national_rows(df: pd.DataFrame, state_col: str = "state") -> pd.DataFrame:
    """Remove the survey's national-total rows, keeping only regions."""
    return df[~df[state_col].isin(NATIONAL_ROWS)].reset_index(drop=True)


def clean_colony(df: pd.DataFrame) -> pd.DataFrame:
    """Type the colony table and drop rows that carry no year or state."""
    df = apply_schema(df, COLONY_SCHEMA)
    df = df.dropna(subset=["year", "state"])
    return df.sort_values(["year", "state"], kind="stable").reset_index(drop=True)


def clean_stressor(df: pd.DataFrame) -> pd.DataFrame:
    """Type the stressor table and drop rows that carry no year, state or stressor."""
    df = apply_schema(df, STRESSOR_SCHEMA)
    df = df.dropna(subset=["year", "state", "stressor"])
    return df.sort_values(["year", "state", "stressor"], kind="stable").reset_index(drop=True)


# =============================================================================
# Loading cleaned data (used by the visualize_* scripts)
# =============================================================================

def load_cleaned(path: Path, schema: dict[str, str]) -> pd.DataFrame:
    """
    Read a cleaned CSV and re-apply its schema.

    CSV files do not remember dtypes, so every reader re-checks the columns
    instead of trusting whatever pandas infers.
    """
    if not path.exists():
        raise FileNotFoundError(
            f"Cleaned data not found at {path}. Run 'python scripts/fetch_data.py' first."
        )
    return apply_schema(pd.read_csv(path), schema)


# =============================================================================
# Data validation
# =============================================================================

def validate(colony: pd.DataFrame, stressor: pd.DataFrame) -> None:
    """
    Run sanity checks on the cleaned tables and print a summary report.

    R equivalent: stopifnot() + summary()
    """
    print("\n[validate] ── Quality Checks ─────────────────────────────────────")
    for name, df in (("colony", colony), ("stressor", stressor)):
        print(f"  {name:<9} {df.shape[0]:>5} rows × {df.shape[1]} cols  |  "
              f"years {int(df['year'].min())}–{int(df['year'].max())}  |  "
              f"{df['state'].nunique()} regions")

    print("\n  Null counts per colony column:")
    for col, n in colony.isnull().sum().items():
        status = "✓" if n == 0 else f"⚠  {n} nulls"
        print(f"    {col:<18} {status}")

    assert colony["year"].notna().all(),   "Found null colony years — check raw data!"
    assert stressor["year"].notna().all(), "Found null stressor years — check raw data!"
    assert (colony["year"] >= 2015).all(), "Found a year before the survey began (2015)"
    assert (colony["colony_lost"].dropna() >= 0).all(), "Found a negative colony loss"
    pct = colony["colony_lost_pct"].dropna()
    assert ((pct >= 0) & (pct <= 100)).all(), "colony_lost_pct outside 0–100"
    assert stressor["stressor"].nunique() >= 2, "Expected several stressor categories"

    print("\n[validate] All checks passed ✓")


# =============================================================================
# MAIN
# =============================================================================

def main(force_refresh: bool = False) -> None:
    print("=" * 62)
    print("  Bee Colony Losses — Data Acquisition & Cleaning")
    print("=" * 62)

    try:
        raw_colony   = fetch_csv(COLONY_URL, RAW_COLONY, force_refresh=force_refresh)
        raw_stressor = fetch_csv(STRESSOR_URL, RAW_STRESSOR, force_refresh=force_refresh)
    except requests.RequestException as e:
        print(
            f"\n[error] Download failed: {e}\n"
            "        Check your internet connection, or re-run once the\n"
            "        TidyTuesday repository is reachable."
        )
        sys.exit(1)

    print(f"[info]  Raw colony   — shape: {raw_colony.shape}")
    print(f"[info]  Raw stressor — shape: {raw_stressor.shape}")

    try:
        colony   = clean_colony(raw_colony)
        stressor = clean_stressor(raw_stressor)
    except SchemaError as e:
        print(f"[error] Unexpected file layout: {e}")
        sys.exit(1)

    print(f"[clean] Colony columns:   {list(colony.columns)}")
    print(f"[clean] Stressor columns: {list(stressor.columns)}")
    print(f"[info]  Stressor categories: {sorted(stressor['stressor'].unique())}")

    print("\n[info]  ── Colony Overview ──────────────────────────────────────")
    print(colony.head().to_string(index=False))
    print(colony.describe().round(1).to_string())

    validate(colony, stressor)

    CLEANED_DIR.mkdir(parents=True, exist_ok=True)
    colony.to_csv(CLEANED_COLONY, index=False)
    stressor.to_csv(CLEANED_STRESSOR, index=False)
    print(f"\n[done]  Cleaned data saved → {CLEANED_DIR}")
    print("        Run 'python scripts/visualize_losses.py' and "
          "'python scripts/visualize_map.py' to build the articles.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Fetch and clean the USDA bee colony survey (TidyTuesday 2022-01-11).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Force re-download even if cached files exist in data/raw/.",
    )
    args = parser.parse_args()
    main(force_refresh=args.refresh)
