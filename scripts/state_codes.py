"""
scripts/state_codes.py
======================
State name → USPS two-letter code, for the choropleth map.

plotly's built-in US geometry (locationmode="USA-states") identifies each
state by its postal code, so the map article has to attach one to every row.

The table covers every state except Alaska and Nevada, which the survey
folds into "Other States".  Those two, and the survey's aggregate rows
("Other States", "United States"), come back as a missing code and the
map simply leaves them blank.

R equivalent:
    codes <- tibble(state = state.name, code = state.abb)
    left_join(df, codes, by = "state")
"""

from types import MappingProxyType

import pandas as pd


# MappingProxyType is a read-only view: STATE_CODES["X"] = "Y" raises
# TypeError, so the table cannot drift while a report is being built.
STATE_CODES = MappingProxyType({
    "Alabama":        "AL",
    "Arizona":        "AZ",
    "Arkansas":       "AR",
    "California":     "CA",
    "Colorado":       "CO",
    "Connecticut":    "CT",
    "Delaware":       "DE",
    "Florida":        "FL",
    "Georgia":        "GA",
    "Hawaii":         "HI",
    "Idaho":          "ID",
    "Illinois":       "IL",
    "Indiana":        "IN",
    "Iowa":           "IA",
    "Kansas":         "KS",
    "Kentucky":       "KY",
    "Louisiana":      "LA",
    "Maine":          "ME",
    "Maryland":       "MD",
    "Massachusetts":  "MA",
    "Michigan":       "MI",
    "Minnesota":      "MN",
    "Mississippi":    "MS",
    "Missouri":       "MO",
    "Montana":        "MT",
    "Nebraska":       "NE",
    "New Hampshire":  "NH",
    "New Jersey":     "NJ",
    "New Mexico":     "NM",
    "New York":       "NY",
    "North Carolina": "NC",
    "North Dakota":   "ND",
    "Ohio":           "OH",
    "Oklahoma":       "OK",
    "Oregon":         "OR",
    "Pennsylvania":   "PA",
    "Rhode Island":   "RI",
    "South Carolina": "SC",
    "South Dakota":   "SD",
    "Tennessee":      "TN",
    "Texas":          "TX",
    "Utah":           "UT",
    "Vermont":        "VT",
    "Virginia":       "VA",
    "Washington":     "WA",
    "West Virginia":  "WV",
    "Wisconsin":      "WI",
    "Wyoming":        "WY",
})


def lookup_code(name: str) -> str | None:
    """Return the two-letter code for a state name, or None if unmapped."""
    if not isinstance(name, str):
        return None
    return STATE_CODES.get(name.strip())


def annotate_state_codes(
    df: pd.DataFrame,
    state_col: str = "state",
    code_col: str = "state_code",
) -> pd.DataFrame:
    """
    Add a code column next to the state names.

    Unmapped names get pandas' <NA> (the column uses the nullable "string"
    dtype) rather than raising, so one unexpected region never aborts a map.
    """
    df = df.copy()
    df[code_col] = df[state_col].map(lookup_code).astype("string")

    unmapped = sorted(df.loc[df[code_col].isna(), state_col].dropna().astype(str).unique())
    if unmapped:
        print(f"[info]  No state code for: {unmapped} — left blank on the map")
    return df


def state_annotations(states) -> pd.DataFrame:
    """
    Build the per-row metadata table that sits beside a state-labelled wide
    table: same index, one row per state, with its code and a hover label.

    The wide table carries only numbers; the map needs codes positionally
    aligned with its rows, which is what this table provides.
    """
    index = pd.Index(states, name="state")
    codes = pd.array([lookup_code(s) for s in index], dtype="string")
    return pd.DataFrame(
        {"state_code": codes, "label": [str(s) for s in index]},
        index=index,
    )
