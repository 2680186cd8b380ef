"""
scripts/visualize_map.py
========================
Article 2 — "A map of loss"

  C. How does the share of colonies lost move across the country, year to
     year?  colony.csv → mean colony_lost_pct by state × year → animated
     choropleth, built twice:
       * plotly.express from the LONG table (column names: state_code,
         year, colony_lost_pct), one frame per year.
       * plotly.graph_objects from the WIDE state × year matrix plus a
         parallel annotation table holding each row's state code.  Every
         matrix column becomes one animation frame, aligned by position.
  D. Are beekeepers replacing what they lose?  colony.csv → sum lost /
     added / renovated colonies by year.  The summary comes out wide (one
     column per flow); plotnine wants it long, so it is gathered with
     pivot_longer(), while matplotlib uses it as-is with years as row labels.

Usage:
    python scripts/visualize_map.py
    python scripts/visualize_map.py --measure colony_reno_pct

Output:
    output/loss_map_express.html        output/loss_map_matrix.html
    output/colony_flows_plotnine.png    output/colony_flows_matplotlib.png

─────────────────────────────────────────────────────────────────────────────
R → Python notes
─────────────────────────────────────────────────────────────────────────────
  plotly::plot_geo(df, locationmode = "USA-states",   px.choropleth(df, locationmode="USA-states",
                   frame = ~year)                                   animation_frame="year")
  tidyr::pivot_longer(c(lost, added, reno))           pivot_longer(df, [...])
  htmlwidgets::saveWidget(p, "map.html")              fig.write_html("map.html")
─────────────────────────────────────────────────────────────────────────────
"""

import sys
import argparse
from pathlib import Path

import numpy as np
import pandas as pd
import plotnine as p9
import plotly.express as px
import plotly.graph_objects as go
import matplotlib.pyplot as plt

from chart_style import (
    PAL, THOUSANDS, SOURCE_NOTE, FLOW_COLORS, FLOW_LABELS,
    apply_style, thousands_fmt, add_header, add_footer, new_figure, save_square_png,
)
from fetch_data import (
    PROJECT_ROOT, CLEANED_COLONY, COLONY_SCHEMA,
    load_cleaned, drop_national_rows,
)
from state_codes import annotate_state_codes, state_annotations
from tidy import aggregate, pivot_wider, pivot_longer, promote_row_labels


OUTPUT_DIR = PROJECT_ROOT / "output"

MAP_MEASURES = {
    "colony_lost_pct": "Colonies lost (%)",
    "colony_reno_pct": "Colonies renovated (%)",
}
FLOWS = ["colony_lost", "colony_added", "colony_reno"]

# Sequential scale for loss: pale wax → deep rust
COLOR_SCALE = [[0.0, "#FBF0D0"], [0.5, "#E0A100"], [1.0, "#B23A2E"]]
HOVER_LABEL = {"font_size": 13, "font_family": "Helvetica Neue, Arial, sans-serif"}


# =============================================================================
# Data shaping
# =============================================================================

def loss_by_state_year(colony: pd.DataFrame, measure: str = "colony_lost_pct") -> pd.DataFrame:
    """
    Analysis C, long shape: average quarterly percentage per state and year,
    with the two-letter code the map needs.

    R equivalent:
        colony |>
            group_by(state, year) |>
            summarise(colony_lost_pct = mean(colony_lost_pct, na.rm = TRUE)) |>
            left_join(state_codes, by = "state")
    """
    long = aggregate(drop_national_rows(colony), ["state", "year"], {measure: "mean"})
    return annotate_state_codes(long)


def loss_matrix(long: pd.DataFrame, measure: str = "colony_lost_pct") -> pd.DataFrame:
    """Analysis C, wide shape: states as row labels, one column per year."""
    wide = pivot_wider(long, names_from="year", values_from=measure, id_cols="state")
    return promote_row_labels(wide, "state")


def colony_flows(colony: pd.DataFrame) -> pd.DataFrame:
    """Analysis D: colonies lost, added and renovated per year (summed over states)."""
    return aggregate(drop_national_rows(colony), "year", {f: "sum" for f in FLOWS})


def flows_long(flows: pd.DataFrame) -> pd.DataFrame:
    """Gather the three flow columns into flow/colonies pairs for plotnine."""
    return pivot_longer(flows, FLOWS, names_to="flow", values_to="colonies")


# =============================================================================
# Maps
# =============================================================================

def _color_range(values) -> tuple[float, float]:
    # One fixed range for every frame, so colours mean the same thing each year
    vals = pd.Series(np.asarray(values, dtype=float).ravel()).dropna()
    hi = float(vals.max()) if not vals.empty else 1.0
    return 0.0, hi


def _z_values(series: pd.Series) -> list:
    """NaN → None so plotly leaves the state blank instead of colouring it."""
    return [None if pd.isna(v) else float(v) for v in series]


def express_loss_map(long: pd.DataFrame, measure: str = "colony_lost_pct") -> go.Figure:
    """Animated choropleth from the long table, by column name."""
    mapped = long[long["state_code"].notna()]
    skipped = len(long) - len(mapped)
    if skipped:
        print(f"[info]  {skipped} row(s) without a state code are not drawn")

    # plotly animates frames in order of appearance
    mapped = (
        mapped
        .sort_values(["year", "state"], kind="stable")
        .assign(year=lambda d: d["year"].astype(int),
                state=lambda d: d["state"].astype(str),
                state_code=lambda d: d["state_code"].astype(str))
    )
    label = MAP_MEASURES.get(measure, measure)

    fig = px.choropleth(
        mapped,
        locations="state_code",
        locationmode="USA-states",
        scope="usa",
        color=measure,
        animation_frame="year",
        range_color=_color_range(mapped[measure]),
        color_continuous_scale=COLOR_SCALE,
        labels={measure: label, "year": "Year"},
        hover_name="state",
    )
    fig.update_layout(
        title_text=f"{label}, average of the quarterly survey, by state",
        title_x=0.5,
        paper_bgcolor=PAL["bg"],
        geo=dict(bgcolor=PAL["bg"], lakecolor=PAL["bg"]),
    )
    fig.update_traces(hoverlabel=HOVER_LABEL)
    # update_traces() only reaches the first frame's trace
    for frame in fig.frames:
        frame.data[0].hoverlabel = HOVER_LABEL
    return fig


def matrix_loss_map(
    matrix: pd.DataFrame,
    annotations: pd.DataFrame,
    measure: str = "colony_lost_pct",
) -> go.Figure:
    """
    Animated choropleth from the state × year matrix.

    Nothing here refers to a state by name: row i of the matrix is drawn at
    annotations["state_code"][i].  That is why both tables must share one
    index, and why the matrix rows must be unique.
    """
    if not matrix.index.equals(annotations.index):
        raise ValueError("Matrix and annotation rows are not aligned")

    codes  = [None if pd.isna(c) else str(c) for c in annotations["state_code"]]
    labels = list(annotations["label"])
    zmin, zmax = _color_range(matrix.to_numpy(dtype=float, na_value=np.nan))
    label  = MAP_MEASURES.get(measure, measure)

    def trace(year) -> go.Choropleth:
        return go.Choropleth(
            locations=codes,
            z=_z_values(matrix[year]),
            text=labels,
            locationmode="USA-states",
            zmin=zmin, zmax=zmax,
            colorscale=COLOR_SCALE,
            colorbar=dict(title=label),
            hovertemplate="%{text}<br>%{z:.1f}%<extra></extra>",
            hoverlabel=HOVER_LABEL,
        )

    years  = list(matrix.columns)
    frames = [go.Frame(data=[trace(y)], name=str(y)) for y in years]

    slider_steps = [
        dict(
            method="animate",
            label=str(y),
            args=[[str(y)], dict(mode="immediate", frame=dict(duration=700, redraw=True))],
        )
        for y in years
    ]

    fig = go.Figure(data=[trace(years[0])] if years else [], frames=frames)
    fig.update_layout(
        title_text=f"{label}, average of the quarterly survey, by state",
        title_x=0.5,
        paper_bgcolor=PAL["bg"],
        geo=dict(scope="usa", bgcolor=PAL["bg"], lakecolor=PAL["bg"]),
        updatemenus=[dict(
            type="buttons",
            showactive=False,
            x=0.05, y=0.05,
            buttons=[dict(
                label="Play",
                method="animate",
                args=[None, dict(frame=dict(duration=700, redraw=True), fromcurrent=True)],
            )],
        )],
        sliders=[dict(active=0, currentvalue=dict(prefix="Year: "), steps=slider_steps)],
    )
    return fig


def save_html(fig: go.Figure, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # include_plotlyjs="cdn" keeps the file small; needs a network to view
    fig.write_html(path, include_plotlyjs="cdn")
    print(f"[done]  Map saved → {path}")
    return path


# =============================================================================
# Colony flows
# =============================================================================

def gg_flow_bars(long: pd.DataFrame) -> p9.ggplot:
    """Dodged columns: lost / added / renovated side by side for each year."""
    data = long.assign(
        year=long["year"].astype(str),
        flow=pd.Categorical(
            long["flow"].map(FLOW_LABELS),
            categories=[FLOW_LABELS[f] for f in FLOWS],
        ),
    )
    return (
        p9.ggplot(data, p9.aes(x="year", y="colonies", fill="flow"))
        + p9.geom_col(position="dodge", width=0.8)
        + p9.scale_fill_manual(values={FLOW_LABELS[f]: FLOW_COLORS[f] for f in FLOWS})
        + p9.scale_y_continuous(labels=lambda breaks: [thousands_fmt(b, None) for b in breaks])
        + p9.labs(
            title="Beekeepers keep rebuilding what they lose",
            subtitle="Colonies lost, added and renovated per year, all reporting states",
            x="",
            y="Colonies",
            fill="",
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


def mpl_flow_bars(matrix: pd.DataFrame) -> plt.Figure:
    """Grouped bars from the year-labelled flows table, one ax.bar() per flow."""
    apply_style()
    fig = new_figure()
    ax  = fig.add_axes([0.12, 0.16, 0.82, 0.62])

    years = [str(y) for y in matrix.index]
    x     = np.arange(len(years))
    width = 0.8 / len(FLOWS)

    for i, flow in enumerate(FLOWS):
        # Offset each flow within the year slot: -width, 0, +width
        ax.bar(
            x + (i - (len(FLOWS) - 1) / 2) * width,
            matrix[flow].to_numpy(dtype=float),
            width=width,
            color=FLOW_COLORS[flow],
            label=FLOW_LABELS[flow],
            zorder=3,
        )

    ax.set_xticks(x)
    ax.set_xticklabels(years)
    ax.yaxis.set_major_formatter(THOUSANDS)
    ax.grid(axis="x", visible=False)
    ax.set_ylabel("Colonies", color=PAL["subtext"], fontsize=9)
    ax.legend(loc="upper center", bbox_to_anchor=(0.5, -0.07), ncol=3, frameon=False, fontsize=8)

    add_header(
        fig,
        "BEEKEEPERS KEEP REBUILDING WHAT THEY LOSE",
        "Colonies lost, added and renovated per year, all reporting states.\n"
        "2019 is short one quarter: April–June was not surveyed.",
    )
    add_footer(fig)
    return fig


# =============================================================================
# MAIN
# =============================================================================

def main(output_dir: Path = OUTPUT_DIR, measure: str = "colony_lost_pct") -> None:
    print("=" * 58)
    print("  Bee Colony Losses — Article 2")
    print("=" * 58)

    try:
        colony = load_cleaned(CLEANED_COLONY, COLONY_SCHEMA)
    except FileNotFoundError as e:
        print(f"\n[error] {e}")
        sys.exit(1)
    print(f"[data]  Loaded {len(colony)} colony rows")

    # ── C: the map ───────────────────────────────────────────────────────────
    long   = loss_by_state_year(colony, measure)
    matrix = loss_matrix(long, measure)
    notes  = state_annotations(matrix.index)
    print(f"[data]  Map matrix: {matrix.shape[0]} states × {matrix.shape[1]} years")

    latest = matrix.columns.max()
    worst  = matrix[latest].idxmax()
    print(f"[story] Highest {measure} in {latest}: {worst} ({matrix.loc[worst, latest]:.1f}%)")

    save_html(express_loss_map(long, measure), output_dir / "loss_map_express.html")
    save_html(matrix_loss_map(matrix, notes, measure), output_dir / "loss_map_matrix.html")

    # ── D: flows ─────────────────────────────────────────────────────────────
    flows = colony_flows(colony)
    net = flows["colony_added"] + flows["colony_reno"] - flows["colony_lost"]
    print(f"[story] Years where added + renovated exceeded losses: "
          f"{int((net > 0).sum())} of {len(flows)}")

    save_square_png(gg_flow_bars(flows_long(flows)).draw(), output_dir / "colony_flows_plotnine.png")
    save_square_png(mpl_flow_bars(promote_row_labels(flows, "year")), output_dir / "colony_flows_matplotlib.png")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Render article 2: loss map and colony flows.")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=OUTPUT_DIR,
        help="Directory for the rendered maps and PNGs (default: output/).",
    )
    parser.add_argument(
        "--measure",
        choices=sorted(MAP_MEASURES),
        default="colony_lost_pct",
        help="Percentage column to map (default: colony_lost_pct).",
    )
    args = parser.parse_args()
    main(output_dir=args.output_dir, measure=args.measure)
