"""
scripts/visualize_losses.py
===========================
Article 1 — "Where are the bees going?"

Two questions, each drawn twice: once with plotnine (grammar of graphics,
fed a LONG table by column name) and once with matplotlib (procedural,
fed a WIDE label-indexed table by position).  Comparing the two is the
point of the article.

  A. Which states lose the most colonies?
     colony.csv → sum colony_n and colony_lost by state → scatter.
  B. Which stressors hit colonies hardest, year by year?
     stressor.csv → mean stress_pct by stressor × year → stacked bars.

Usage:
    python scripts/visualize_losses.py
    python scripts/visualize_losses.py --output-dir output/article1

Output:
    output/state_losses_plotnine.png      output/state_losses_matplotlib.png
    output/stressors_plotnine.png         output/stressors_matplotlib.png

─────────────────────────────────────────────────────────────────────────────
ggplot2 → plotnine is nearly a copy-paste:
  ggplot(df, aes(x, y)) + geom_point()   p9.ggplot(df, p9.aes("x", "y")) + p9.geom_point()
The only real difference is that column names are quoted strings.

ggplot2 → matplotlib is a change of mindset: there is no data frame in the
call, just arrays.  The wide table's row labels become tick labels / point
labels, and each column is one call to ax.bar() or ax.scatter().
─────────────────────────────────────────────────────────────────────────────
"""

import sys
import argparse
from pathlib import Path

import numpy as np
import pandas as pd
import plotnine as p9
import matplotlib.pyplot as plt

from chart_style import (
    PAL, THOUSANDS, PERCENT, SOURCE_NOTE,
    apply_style, stressor_color, thousands_fmt,
    add_header, add_footer, new_figure, save_square_png,
)
from fetch_data import (
    PROJECT_ROOT, CLEANED_COLONY, CLEANED_STRESSOR,
    COLONY_SCHEMA, STRESSOR_SCHEMA,
    load_cleaned, drop_national_rows,
)
from tidy import aggregate, pivot_wider, promote_row_labels


OUTPUT_DIR = PROJECT_ROOT / "output"

# How many of the biggest-loss states get a text label on the scatter
N_LABELLED = 6


# =============================================================================
# Data shaping
# =============================================================================

def state_totals(colony: pd.DataFrame) -> pd.DataFrame:
    """
    Analysis A, long shape: one row per state, colony counts summed over
    every quarter in the survey.

    R equivalent:
        colony |>
            filter(state != "United States") |>
            group_by(state) |>
            summarise(colony_n = sum(colony_n, na.rm = TRUE),
                      colony_lost = sum(colony_lost, na.rm = TRUE))
    """
    return aggregate(
        drop_national_rows(colony),
        "state",
        {"colony_n": "sum", "colony_lost": "sum"},
    )


def state_matrix(totals: pd.DataFrame) -> pd.DataFrame:
    """Analysis A, wide shape: the same totals with state names as row labels."""
    return promote_row_labels(totals, "state")


def stressors_by_year(stressor: pd.DataFrame) -> pd.DataFrame:
    """
    Analysis B, long shape: average share of colonies affected by each
    stressor, per year, across all reporting states and quarters.
    """
    return aggregate(
        drop_national_rows(stressor),
        ["stressor", "year"],
        {"stress_pct": "mean"},
    )


def stressor_matrix(long: pd.DataFrame) -> pd.DataFrame:
    """
    Analysis B, wide shape: years as row labels, one column per stressor.

    R equivalent:
        long |>
            pivot_wider(names_from = stressor, values_from = stress_pct) |>
            column_to_rownames("year")
    """
    wide = pivot_wider(long, names_from="stressor", values_from="stress_pct", id_cols="year")
    return promote_row_labels(wide, "year")


# =============================================================================
# plotnine (grammar of graphics, long tables)
# =============================================================================

def _axis_labels(breaks) -> list[str]:
    return [thousands_fmt(b, None) for b in breaks]


def gg_state_scatter(totals: pd.DataFrame) -> p9.ggplot:
    """Scatter of colonies lost against colonies kept, one point per state."""
    top = totals.nlargest(N_LABELLED, "colony_lost")
    return (
        p9.ggplot(totals, p9.aes(x="colony_n", y="colony_lost"))
        + p9.geom_point(color=PAL["honey"], size=3, alpha=0.85)
        + p9.geom_point(data=top, color=PAL["loss"], size=3.5)
        + p9.geom_text(
            data=top,
            mapping=p9.aes(label="state"),
            nudge_y=totals["colony_lost"].max() * 0.035,
            size=8,
            color=PAL["text"],
        )
        + p9.scale_x_continuous(labels=_axis_labels)
        + p9.scale_y_continuous(labels=_axis_labels)
        + p9.labs(
            title="California's hives dwarf every other state — and so do its losses",
            subtitle="Colonies (summed over every quarter) vs. colonies lost, by state, 2015–2021",
            x="Colonies",
            y="Colonies lost",
            caption=SOURCE_NOTE,
        )
        + p9.theme_minimal(base_size=11)
        + p9.theme(
            figure_size=(7.2, 7.2),
            plot_background=p9.element_rect(fill=PAL["bg"], color=PAL["bg"]),
            panel_grid_minor=p9.element_blank(),
            plot_title=p9.element_text(weight="bold"),
        )
    )


def gg_stressor_bars(long: pd.DataFrame) -> p9.ggplot:
    """Stacked columns: one column per year, one segment per stressor."""
    # plotnine treats integer x as continuous; a string year gives one
    # discrete column per year, like factor(year) in ggplot2.
    data = long.assign(year=long["year"].astype(str))
    stressors = sorted(data["stressor"].unique())
    return (
        p9.ggplot(data, p9.aes(x="year", y="stress_pct", fill="stressor"))
        + p9.geom_col(position="stack", width=0.75)
        + p9.scale_fill_manual(values={s: stressor_color(s) for s in stressors})
        + p9.scale_y_continuous(labels=lambda breaks: [f"{b:.0f}%" for b in breaks])
        + p9.labs(
            title="Varroa mites are the bees' biggest problem, every year",
            subtitle="Average share of colonies affected by each stressor (stacked), by year",
            x="",
            y="Colonies affected (average %)",
            fill="Stressor",
            caption=SOURCE_NOTE,
        )
        + p9.theme_minimal(base_size=11)
        + p9.theme(
            figure_size=(7.2, 7.2),
            plot_background=p9.element_rect(fill=PAL["bg"], color=PAL["bg"]),
            panel_grid_major_x=p9.element_blank(),
            legend_position="bottom",
            plot_title=p9.element_text(weight="bold"),
        )
    )


def save_ggplot(plot: p9.ggplot, path: Path) -> Path:
    """plotnine draws onto an ordinary matplotlib Figure; export it the same way."""
    return save_square_png(plot.draw(), path)


# =============================================================================
# matplotlib (procedural, wide label-indexed tables)
# =============================================================================

def mpl_state_scatter(matrix: pd.DataFrame) -> plt.Figure:
    """Same scatter as gg_state_scatter(), drawn from the state-labelled table."""
    apply_style()
    fig = new_figure()
    ax  = fig.add_axes([0.12, 0.12, 0.82, 0.66])

    ax.scatter(
        matrix["colony_n"], matrix["colony_lost"],
        color=PAL["honey"], s=40, alpha=0.85,
        edgecolors="white", linewidths=0.8, zorder=3,
    )

    # Row labels are the state names: no separate name column needed
    top = matrix.nlargest(N_LABELLED, "colony_lost")
    ax.scatter(top["colony_n"], top["colony_lost"], color=PAL["loss"], s=55, zorder=4)
    for state, row in top.iterrows():
        ax.annotate(
            state,
            xy=(row["colony_n"], row["colony_lost"]),
            xytext=(6, 4), textcoords="offset points",
            fontsize=8, color=PAL["text"],
        )

    ax.xaxis.set_major_formatter(THOUSANDS)
    ax.yaxis.set_major_formatter(THOUSANDS)
    ax.set_xlabel("Colonies", color=PAL["subtext"], fontsize=9)
    ax.set_ylabel("Colonies lost", color=PAL["subtext"], fontsize=9)
    ax.set_xlim(left=0)
    ax.set_ylim(bottom=0)

    add_header(
        fig,
        "CALIFORNIA'S HIVES DWARF EVERY OTHER STATE",
        "Colonies (summed over every quarter) vs. colonies lost, by state, 2015–2021.\n"
        "Bigger beekeeping states lose more colonies in absolute terms.",
    )
    add_footer(fig)
    return fig


def mpl_stressor_bars(matrix: pd.DataFrame) -> plt.Figure:
    """Stacked bars from the year × stressor matrix: one ax.bar() per column."""
    apply_style()
    fig = new_figure()
    ax  = fig.add_axes([0.12, 0.16, 0.82, 0.62])

    years  = [str(y) for y in matrix.index]
    x      = np.arange(len(years))
    # R equivalent: geom_col(position = "stack") — here we keep the running
    # top of each bar ourselves and pass it as `bottom`.
    bottom = np.zeros(len(years))

    for stressor in matrix.columns:
        heights = matrix[stressor].fillna(0).to_numpy(dtype=float)
        ax.bar(
            x, heights, bottom=bottom, width=0.72,
            color=stressor_color(stressor), label=stressor,
            edgecolor=PAL["bg"], linewidth=0.6, zorder=3,
        )
        bottom += heights

    ax.set_xticks(x)
    ax.set_xticklabels(years)
    ax.yaxis.set_major_formatter(PERCENT)
    ax.grid(axis="x", visible=False)
    ax.set_ylabel("Colonies affected (average %)", color=PAL["subtext"], fontsize=9)
    ax.legend(
        loc="upper center", bbox_to_anchor=(0.5, -0.07),
        ncol=3, frameon=False, fontsize=8,
    )

    add_header(
        fig,
        "VARROA MITES ARE THE BIGGEST PROBLEM, EVERY YEAR",
        "Average share of colonies affected by each stressor, stacked, by year.\n"
        "A colony can suffer several stressors, so totals exceed 100%.",
    )
    add_footer(fig)
    return fig


# =============================================================================
# MAIN
# =============================================================================

def main(output_dir: Path = OUTPUT_DIR) -> None:
    print("=" * 58)
    print("  Bee Colony Losses — Article 1")
    print("=" * 58)

    try:
        colony   = load_cleaned(CLEANED_COLONY, COLONY_SCHEMA)
        stressor = load_cleaned(CLEANED_STRESSOR, STRESSOR_SCHEMA)
    except FileNotFoundError as e:
        print(f"\n[error] {e}")
        sys.exit(1)
    print(f"[data]  Loaded {len(colony)} colony rows, {len(stressor)} stressor rows")

    # ── A: losses by state ───────────────────────────────────────────────────
    totals = state_totals(colony)
    matrix = state_matrix(totals)
    worst  = totals.loc[totals["colony_lost"].idxmax()]
    print(f"[story] Most colonies lost: {worst['state']} ({worst['colony_lost']:,.0f})")

    save_ggplot(gg_state_scatter(totals), output_dir / "state_losses_plotnine.png")
    save_square_png(mpl_state_scatter(matrix), output_dir / "state_losses_matplotlib.png")

    # ── B: stressors by year ─────────────────────────────────────────────────
    by_year = stressors_by_year(stressor)
    smatrix = stressor_matrix(by_year)
    print(f"[data]  Stressor matrix: {smatrix.shape[0]} years × {smatrix.shape[1]} stressors")
    top = smatrix.mean().idxmax()
    print(f"[story] Stressor with the highest average share: {top} ({smatrix[top].mean():.1f}%)")

    save_ggplot(gg_stressor_bars(by_year), output_dir / "stressors_plotnine.png")
    save_square_png(mpl_stressor_bars(smatrix), output_dir / "stressors_matplotlib.png")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Render article 1: colony losses and stressors.")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=OUTPUT_DIR,
        help="Directory for the rendered PNGs (default: output/).",
    )
    args = parser.parse_args()
    main(output_dir=args.output_dir)
