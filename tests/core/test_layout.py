"""列/行の layout solver（`teul.core.layout`）のテスト。"""

from __future__ import annotations

import numpy as np
import pytest

from teul.core.grid_config import ColumnGridConfig, RowGridConfig
from teul.core.layout import (
    MIN_BAND_SIZE,
    column_width,
    module_size,
    row_height,
    solve_columns,
    solve_rows,
)


def test_four_column_percent_layout() -> None:
    cols = ColumnGridConfig(
        count=4,
        margin=8,
        margin_unit="percent",
        gutter_size=4,
        gutter_unit="percent",
    )
    layout = solve_columns(cols, 800, 600)

    assert layout.margin_px == pytest.approx(64.0)
    assert layout.gutter_px == pytest.approx(32.0)
    assert layout.band_size == pytest.approx(144.0)
    assert [b.start for b in layout.bands] == pytest.approx([64.0, 240.0, 416.0, 592.0])
    assert all(b.size == pytest.approx(144.0) for b in layout.bands)
    assert layout.bands[-1].end == pytest.approx(736.0)
    assert layout.extent == 600.0


def test_band_count_and_spacing_invariants() -> None:
    cols = ColumnGridConfig(count=12, margin=24, gutter_size=16)
    layout = solve_columns(cols, 1440, 900)

    assert len(layout.bands) == 12
    assert layout.bands[0].start == pytest.approx(24.0)
    starts = layout.starts()
    assert np.allclose(np.diff(starts), layout.band_size + layout.gutter_px)
    assert [b.index for b in layout.bands] == list(range(12))


def test_single_band_has_no_gutter() -> None:
    layout = solve_columns(ColumnGridConfig(count=1, margin=10, gutter_size=50), 200, 100)
    assert layout.band_size == pytest.approx(180.0)
    assert layout.bands[0].start == pytest.approx(10.0)


def test_column_width_is_clamped_to_one_pixel() -> None:
    # 100 - 2*40 - 9*10 < 0 でも帯は 10 本、幅は 1px
    cols = ColumnGridConfig(count=10, margin=40, gutter_size=10)
    layout = solve_columns(cols, 100, 100)

    assert len(layout.bands) == 10
    assert layout.band_size == MIN_BAND_SIZE
    # クリップしない（軸長を超えても位置はそのまま進む）
    assert layout.bands[-1].start == pytest.approx(40.0 + 9 * 11.0)
    assert column_width(cols, 100) < 0


def test_row_height_uses_same_floor_as_columns() -> None:
    rows = RowGridConfig(count=6, margin=20, gutter_size=30)
    layout = solve_rows(rows, 120, 400)

    assert layout.band_size == MIN_BAND_SIZE
    assert row_height(rows, 120) < 0
    assert all(b.size > 0 for b in layout.bands)


def test_rows_resolve_percent_against_height() -> None:
    rows = RowGridConfig(count=3, margin=10, margin_unit="percent", gutter_size=5, gutter_unit="percent")
    layout = solve_rows(rows, 1000, 500)

    assert layout.margin_px == pytest.approx(100.0)
    assert layout.gutter_px == pytest.approx(50.0)
    assert layout.band_size == pytest.approx((800.0 - 100.0) / 3)
    assert layout.extent == 500.0


def test_zero_axis_length_degrades_without_error() -> None:
    layout = solve_columns(ColumnGridConfig(count=3, margin=5, margin_unit="percent"), 0, 0)
    assert len(layout.bands) == 3
    assert layout.band_size == MIN_BAND_SIZE


def test_negative_axis_length_is_rejected() -> None:
    with pytest.raises(ValueError):
        solve_columns(ColumnGridConfig(count=3), -1, 100)


def test_edges_shape() -> None:
    layout = solve_columns(ColumnGridConfig(count=5, gutter_size=10), 540, 100)
    edges = layout.edges()
    assert edges.shape == (5, 2)
    assert edges[0].tolist() == pytest.approx([0.0, 100.0])
    assert edges[1].tolist() == pytest.approx([110.0, 210.0])


def test_module_size() -> None:
    w, h = module_size(
        ColumnGridConfig(count=4, margin=20, gutter_size=20),
        RowGridConfig(count=2, margin=20, gutter_size=20),
        800,
        600,
    )
    assert w == pytest.approx((760.0 - 60.0) / 4)
    assert h == pytest.approx((560.0 - 20.0) / 2)


_UNIT_PAIRS = [("px", "px"), ("percent", "percent"), ("px", "percent"), ("percent", "px")]


@pytest.mark.parametrize("count", [1, 2, 5, 12, 40])
@pytest.mark.parametrize("axis_length", [0.0, 1.0, 37.5, 800.0])
@pytest.mark.parametrize(("margin_unit", "gutter_unit"), _UNIT_PAIRS)
@pytest.mark.parametrize(("margin", "gutter"), [(0.0, 0.0), (10.0, 4.0), (60.0, 30.0)])
def test_solvers_always_emit_count_bands_of_at_least_one_pixel(
    count: int,
    axis_length: float,
    margin_unit: str,
    gutter_unit: str,
    margin: float,
    gutter: float,
) -> None:
    fields = dict(
        count=count,
        margin=margin,
        margin_unit=margin_unit,
        gutter_size=gutter,
        gutter_unit=gutter_unit,
    )
    for layout in (
        solve_columns(ColumnGridConfig(**fields), axis_length, 100.0),
        solve_rows(RowGridConfig(**fields), axis_length, 100.0),
    ):
        assert len(layout.bands) == count
        assert min(b.size for b in layout.bands) >= MIN_BAND_SIZE
        assert np.all(np.diff(layout.starts()) > 0) or count == 1
