"""Article 1: table shaping and chart builders."""

import matplotlib.pyplot as plt
import plotnine as p9
import pytest
from PIL import Image

from chart_style import PAL, PX, save_square_png, thousands_fmt
from visualize_losses import (
    gg_state_scatter,
    gg_stressor_bars,
    mpl_state_scatter,
    mpl_stressor_bars,
    state_matrix,
    state_totals,
    stressor_matrix,
    stressors_by_year,
)


def test_state_totals_sum_every_quarter(colony):
    totals = state_totals(colony)

    assert list(totals.columns) == ["state", "colony_n", "colony_lost"]
    assert "United States" not in set(totals["state"])
    alabama = totals.set_index("state").loc["Alabama"]
    # 2019 April-June is all NA and contributes nothing
    assert alabama["colony_lost"] == 1800 + 860 + 1000
    assert alabama["colony_n"] == 7000 + 7500 + 8000


def test_state_matrix_is_labelled_by_state(colony):
    matrix = state_matrix(state_totals(colony))

    assert "state" not in matrix.columns
    assert matrix.index.is_unique
    assert set(matrix.index) == {"Alabama", "California", "Other States"}


def test_stressors_by_year_means_skip_missing(stressor):
    long = stressors_by_year(stressor)
    pest = long[(long["stressor"] == "Pesticides") & (long["year"] == 2015)]["stress_pct"].iloc[0]

    # Alabama 2.2, Alabama NA, California 3.5
    assert pest == pytest.approx((2.2 + 3.5) / 2)
    # national row excluded: 29.2 would pull the mean up
    varroa = long[(long["stressor"] == "Varroa mites") & (long["year"] == 2015)]["stress_pct"].iloc[0]
    assert varroa == pytest.approx((10 + 16.7 + 24.7) / 3)


def test_stressor_matrix_years_by_stressor(stressor):
    matrix = stressor_matrix(stressors_by_year(stressor))

    assert list(matrix.index) == [2015, 2016]
    assert list(matrix.columns) == ["Pesticides", "Varroa mites"]
    assert matrix.loc[2016, "Varroa mites"] == pytest.approx(25.0)


def test_ggplot_builders_use_long_tables(colony, stressor):
    scatter = gg_state_scatter(state_totals(colony))
    bars = gg_stressor_bars(stressors_by_year(stressor))

    assert isinstance(scatter, p9.ggplot)
    assert isinstance(bars, p9.ggplot)
    assert {"state", "colony_n", "colony_lost"} <= set(scatter.data.columns)
    # years become discrete labels
    assert set(bars.data["year"]) == {"2015", "2016"}


def test_mpl_stressor_bars_one_series_per_column(stressor):
    matrix = stressor_matrix(stressors_by_year(stressor))
    fig = mpl_stressor_bars(matrix)
    try:
        ax = fig.axes[0]
        labels = [t.get_text() for t in ax.get_legend().get_texts()]
        assert labels == ["Pesticides", "Varroa mites"]
        assert [t.get_text() for t in ax.get_xticklabels()] == ["2015", "2016"]
    finally:
        plt.close(fig)


def test_mpl_state_scatter_exports_square_png(colony, tmp_path):
    fig = mpl_state_scatter(state_matrix(state_totals(colony)))
    path = save_square_png(fig, tmp_path / "out" / "scatter.png")

    with Image.open(path) as img:
        assert img.size == (PX, PX)


@pytest.mark.parametrize("value, expected", [
    (0, "0"),
    (250_000, "250K"),
    (1_000_000, "1M"),
    (1_500_000, "1.5M"),
])
def test_thousands_fmt(value, expected):
    assert thousands_fmt(value, None) == expected


def test_palette_holds_only_colours_in_use():
    assert set(PAL) == {
        "bg", "honey", "loss", "added", "reno",
        "grid", "spine", "text", "subtext",
    }
