"""
scripts/tidy.py
===============
Group / summarise / pivot helpers shared by both bee-colony articles.

Every chart in this project is fed one of two table shapes:

  LONG   — one row per key tuple, measures as columns.  Grammar-of-graphics
           renderers (plotnine, plotly.express) consume this by column name.
  WIDE   — one dimension in the row labels, another across the columns.
           Matrix renderers (matplotlib, plotly.graph_objects) consume this
           positionally.

The helpers here build both shapes and refuse to guess when the data is
ambiguous: a reshape that would write two source rows into the same cell, or
a row label that is not unique, raises instead of silently keeping one.

─────────────────────────────────────────────────────────────────────────────
R → Python translation guide
─────────────────────────────────────────────────────────────────────────────
  R / tidyverse                       Python (this module)
  ─────────────────────────────────── ────────────────────────────────────────
  drop_na(state, year) |>             aggregate(df, ["state", "year"],
    group_by(state, year) |>                    {"colony_lost": "sum"})
    summarise(x = sum(x, na.rm=TRUE))
  pivot_wider(names_from, values_from) pivot_wider(df, names_from, values_from)
  pivot_longer(cols, names_to, ...)   pivot_longer(df, cols, names_to, ...)
  column_to_rownames("state")         promote_row_labels(df, "state")
─────────────────────────────────────────────────────────────────────────────
"""

import pandas as pd


# Summary functions the articles use.  Both skip missing values, which is
# pandas' default and matches R's na.rm = TRUE.
AGGREGATIONS = ("sum", "mean")


class DuplicateKeyError(ValueError):
    """Raised when a reshape would write more than one row into one cell."""


class NonUniqueLabelError(ValueError):
    """Raised when a column promoted to row labels contains duplicates."""


def _as_list(cols) -> list:
    if isinstance(cols, str):
        return [cols]
    return list(cols)


def _require_columns(df: pd.DataFrame, cols: list) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise KeyError(f"Columns not found: {missing}. Got: {list(df.columns)}")


def _describe_keys(keys: pd.DataFrame, limit: int = 5) -> str:
    tuples = [tuple(row) for row in keys.drop_duplicates().head(limit).itertuples(index=False)]
    more = len(keys.drop_duplicates()) - len(tuples)
    suffix = f" (+{more} more)" if more > 0 else ""
    return ", ".join(str(t if len(t) > 1 else t[0]) for t in tuples) + suffix


# =============================================================================
# Aggregation
# =============================================================================

def aggregate(
    df: pd.DataFrame,
    keys,
    aggregations: dict[str, str],
) -> pd.DataFrame:
    """
    Collapse sub-period observations into one row per grouping-key tuple.

    R equivalent:
        df |>
            drop_na(all_of(keys)) |>
            group_by(across(all_of(keys))) |>
            summarise(colony_lost = sum(colony_lost, na.rm = TRUE),
                      colony_lost_pct = mean(colony_lost_pct, na.rm = TRUE))

    `aggregations` maps each measure column to "sum" or "mean".  pandas'
    sum() treats NaN as contributing nothing (an all-NaN group sums to 0);
    mean() leaves NaN out of both numerator and denominator.

    Rows with a missing value in any key column are dropped first, the same
    as the R notebooks' drop_na() before group_by().
    """
    keys = _as_list(keys)
    _require_columns(df, keys + list(aggregations))

    bad = {col: fn for col, fn in aggregations.items() if fn not in AGGREGATIONS}
    if bad:
        raise ValueError(f"Unsupported aggregation(s) {bad}; use one of {AGGREGATIONS}")

    complete = df.dropna(subset=keys)
    dropped = len(df) - len(complete)
    if dropped:
        print(f"[tidy]  Dropped {dropped} row(s) with a missing {'/'.join(keys)}")

    # as_index=False keeps the keys as ordinary columns (like summarise()),
    # so the result is directly usable by column-name renderers.
    out = (
        complete
        .groupby(keys, as_index=False, sort=True)
        .agg(aggregations)
    )
    return out[keys + list(aggregations)].reset_index(drop=True)


# =============================================================================
# Reshaping
# =============================================================================

def pivot_wider(
    df: pd.DataFrame,
    names_from: str,
    values_from: str,
    id_cols=None,
    values_fill=None,
) -> pd.DataFrame:
    """
    Spread one categorical column across new columns (long → wide).

    R equivalent:
        tidyr::pivot_wider(df, names_from = stressor, values_from = stress_pct)

    The id columns (by default every column except names_from/values_from)
    must identify a row once names_from is added to them.  tidyr warns and
    builds list-columns when they don't; pandas' pivot_table() would quietly
    average.  Here it is an error: DuplicateKeyError lists the offending keys.
    """
    if id_cols is None:
        id_cols = [c for c in df.columns if c not in (names_from, values_from)]
    id_cols = _as_list(id_cols)
    _require_columns(df, id_cols + [names_from, values_from])

    # A missing name has no column to go to; drop it like a missing group key
    unnamed = df[names_from].isna()
    if unnamed.any():
        print(f"[tidy]  Dropped {int(unnamed.sum())} row(s) with a missing {names_from}")
        df = df[~unnamed]

    cell = id_cols + [names_from]
    dupes = df.duplicated(subset=cell, keep=False)
    if dupes.any():
        raise DuplicateKeyError(
            f"Duplicate key on reshape: {int(dupes.sum())} rows share a "
            f"{tuple(cell)} cell: {_describe_keys(df.loc[dupes, cell])}"
        )

    if id_cols:
        wide = df.pivot(index=id_cols, columns=names_from, values=values_from)
    else:
        # No id columns: everything collapses into a single row.
        wide = df.set_index(names_from)[[values_from]].T
    if values_fill is not None:
        wide = wide.fillna(values_fill)

    # pivot() leaves the names_from label on the column axis; clear it so the
    # result prints and exports like an ordinary table.
    wide.columns.name = None
    return wide.reset_index(drop=not id_cols)


def pivot_longer(
    df: pd.DataFrame,
    cols,
    names_to: str = "name",
    values_to: str = "value",
    drop_na: bool = False,
) -> pd.DataFrame:
    """
    Gather several columns into name/value pairs (wide → long).

    R equivalent:
        tidyr::pivot_longer(df, cols = c(colony_lost, colony_added),
                            names_to = "flow", values_to = "colonies")

    DataFrame.melt() stacks column-by-column; the stable sort afterwards
    restores tidyr's row-major order, so each input row's values stay
    together in the order the columns were listed.

    A table with named row labels (e.g. from promote_row_labels()) gets
    them back as an id column first, like tibble::rownames_to_column().
    An unnamed index is positional and is dropped.
    """
    labelled = any(name is not None for name in df.index.names)
    df = df.reset_index(drop=not labelled)
    cols = _as_list(cols)
    _require_columns(df, cols)
    id_cols = [c for c in df.columns if c not in cols]

    clash = {names_to, values_to} & set(id_cols)
    if clash:
        raise ValueError(f"names_to/values_to collide with existing columns: {sorted(clash)}")

    long = df.melt(
        id_vars=id_cols,
        value_vars=cols,
        var_name=names_to,
        value_name=values_to,
        ignore_index=False,
    )
    long = long.sort_index(kind="stable").reset_index(drop=True)

    if drop_na:
        long = long.dropna(subset=[values_to]).reset_index(drop=True)
    return long


# =============================================================================
# Row labels
# =============================================================================

def promote_row_labels(df: pd.DataFrame, column: str) -> pd.DataFrame:
    """
    Move a column into the row index.

    R equivalent: tibble::column_to_rownames(df, "state")

    Matrix renderers line data up by label, so the labels must be unique and
    present.  Duplicates raise NonUniqueLabelError.
    """
    _require_columns(df, [column])

    labels = df[column]
    if labels.isna().any():
        raise ValueError(f"Column '{column}' has {int(labels.isna().sum())} missing label(s)")

    dupes = labels[labels.duplicated(keep=False)]
    if not dupes.empty:
        raise NonUniqueLabelError(
            f"Non-unique label in '{column}': {sorted(dupes.astype(str).unique())}"
        )

    return df.set_index(column)
