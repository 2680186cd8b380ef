"""Article 2: loss map tables, the two map builders, colony flows."""

import matplotlib.pyplot as plt
import pandas as pd
import plotnine as p9
import pytest

from state_codes import state_annotations
from visualize_map import (
    FLOWS,
    colony_flows,
    express_loss_map,
    flows_long,
    gg_flow_bars,
    loss_by_state_year,
    loss_matrix,
    matrix_loss_map,
    mpl_flow_bars,
)
from tidy import promote_row_labels


@pytest.fixture
def long(colony):
    return loss_by_state_year(colony)


def test_loss_by_state_year_adds_codes(long):
    assert list(long.columns) == ["state", "year", "colony_lost_pct", "state_code"]
    assert not long.duplicated(subset=["state", "year"]).any()

    ca_2015 = long[(long["state"] == "California") & (long["year"] == 2015)]
    assert ca_2015["colony_lost_pct"].iloc[0] == pytest.approx((15 + 8) / 2)
    assert ca_2015["state_code"].iloc[0] == "CA"
    other = long[long["state"] == "Other States"]["state_code"]
    assert other.isna().all()


def test_loss_matrix_states_by_year(long):
    matrix = loss_matrix(long)

    assert list(matrix.index) == ["Alabama", "California", "Other States"]
    assert list(matrix.columns) == [2015, 2016, 2019]
    assert matrix.loc["Alabama", 2016] == pytest.approx(12.0)
    assert pd.isna(matrix.loc["Other States", 2019])


def test_express_map_one_frame_per_year(long):
    fig = express_loss_map(long)

    assert [f.name for f in fig.frames] == ["2015", "2016", "2019"]
    # Other States has no code and is left out
    assert set(fig.data[0].locations) == {"AL", "CA"}


def test_matrix_map_frames_follow_columns(long):
    matrix = loss_matrix(long)
    fig = matrix_loss_map(matrix, state_annotations(matrix.index))

    assert [f.name for f in fig.frames] == ["2015", "2016", "2019"]
    first = fig.frames[0].data[0]
    assert list(first.locations) == ["AL", "CA", None]
    assert first.z[0] == pytest.approx((26 + 12) / 2)
    # the all-NA 2019 quarter draws blank states
    assert all(z is None for z in fig.frames[2].data[0].z)
    assert [s["label"] for s in fig.layout.sliders[0].steps] == ["2015", "2016", "2019"]


def test_matrix_map_rejects_misaligned_annotations(long):
    matrix = loss_matrix(long)
    notes = state_annotations(list(reversed(matrix.index)))

    with pytest.raises(ValueError, match="not aligned"):
        matrix_loss_map(matrix, notes)


def test_colony_flows_sum_states(colony):
    flows = colony_flows(colony)

    assert list(flows.columns) == ["year"] + FLOWS
    f2015 = flows[flows["year"] == 2015].iloc[0]
    assert f2015["colony_lost"] == 1800 + 860 + 255000 + 119000 + 9600
    # the all-NA 2019 quarter sums to zero instead of disappearing
    assert flows[flows["year"] == 2019]["colony_added"].iloc[0] == 0


def test_flows_long_gathers_three_rows_per_year(colony):
    flows = colony_flows(colony)
    long = flows_long(flows)

    assert len(long) == 3 * len(flows)
    assert list(long["flow"][:3]) == FLOWS
    assert set(long.columns) == {"year", "flow", "colonies"}


def test_flow_charts_build(colony):
    flows = colony_flows(colony)

    assert isinstance(gg_flow_bars(flows_long(flows)), p9.ggplot)

    fig = mpl_flow_bars(promote_row_labels(flows, "year"))
    try:
        labels = [t.get_text() for t in fig.axes[0].get_legend().get_texts()]
        assert labels == ["Lost", "Added", "Renovated"]
    finally:
        plt.close(fig)
