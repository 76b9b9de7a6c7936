"""host コマンド payload（`teul.host.commands`）のテスト。"""

from __future__ import annotations

import pytest

from teul.core.grid_config import (
    BaselineGridConfig,
    ColumnGridConfig,
    GridColor,
    GridConfig,
    RowGridConfig,
)
from teul.core.records import GridPreset
from teul.host.commands import (
    build_apply_grid_message,
    build_create_grid_frame_message,
    build_notify_message,
    build_selection_request,
    generate_frame_name,
    layout_grids_payload,
    preset_frame_name,
)


def _config() -> GridConfig:
    return GridConfig(
        columns=ColumnGridConfig(
            count=4,
            margin=8,
            margin_unit="percent",
            gutter_size=4,
            gutter_unit="percent",
            color=GridColor(255, 0, 0, 0.1),
        ),
        rows=RowGridConfig(count=3, margin=10.5, gutter_size=12),
        baseline=BaselineGridConfig(height=8, offset=4),
    )


def test_apply_grid_message_shape() -> None:
    msg = build_apply_grid_message(_config(), 800, 600)

    assert msg["type"] == "apply-grid"
    assert msg["width"] == 800
    assert msg["height"] == 600
    assert msg["replaceExisting"] is True
    assert set(msg["config"]) == {"columns", "rows", "baseline"}


def test_layout_grid_payload_resolves_pixels() -> None:
    payload = layout_grids_payload(_config(), 800, 600)

    cols = payload["columns"]
    assert cols["pattern"] == "COLUMNS"
    assert cols["count"] == 4
    assert cols["offset"] == 64
    assert cols["gutterSize"] == 32
    assert cols["alignment"] == "STRETCH"
    assert cols["color"] == pytest.approx({"r": 1.0, "g": 0.0, "b": 0.0, "a": 0.1})

    rows = payload["rows"]
    assert rows["pattern"] == "ROWS"
    # 0.5 は切り上げ
    assert rows["offset"] == 11
    assert rows["gutterSize"] == 12

    base = payload["baseline"]
    assert base["pattern"] == "GRID"
    assert base["sectionSize"] == 8.0
    assert base["offset"] == 4.0
    assert base["alignment"] == "MIN"


def test_empty_config_payload() -> None:
    msg = build_apply_grid_message(GridConfig(), 100, 100, replace_existing=False)
    assert msg["config"] == {}
    assert msg["replaceExisting"] is False


def test_builders_do_not_validate_sizes() -> None:
    msg = build_apply_grid_message(_config(), 0, -10)
    assert msg["width"] == 0
    assert msg["height"] == -10


def test_create_grid_frame_message() -> None:
    msg = build_create_grid_frame_message(_config(), 1440, 900, frame_name="Hero")

    assert msg["type"] == "create-grid-frame"
    assert msg["frameName"] == "Hero"
    assert msg["width"] == 1440
    assert msg["height"] == 900
    assert msg["positionNearSelection"] is True
    assert msg["config"]["columns"]["offset"] == round(1440 * 0.08)


def test_create_grid_frame_message_generates_name() -> None:
    msg = build_create_grid_frame_message(_config(), 800, 600, position_near_selection=False)
    assert msg["frameName"] == "Grid - Custom - 4col × 3row"
    assert msg["positionNearSelection"] is False


def test_generate_frame_name() -> None:
    assert generate_frame_name(name="Swiss", columns=12) == "Grid - Swiss - 12col"
    assert generate_frame_name(name="Swiss", columns=12, rows=8) == "Grid - Swiss - 12col"
    assert generate_frame_name(name="Mod", columns=6, rows=8, is_modular=True) == "Grid - Mod - 6col × 8row"
    assert generate_frame_name() == "Grid - Custom"


def test_preset_frame_name() -> None:
    preset = GridPreset(
        id="b",
        name="Baseline 8",
        description="",
        category="baseline",
        config=GridConfig(baseline=BaselineGridConfig(height=8)),
    )
    assert preset_frame_name(preset) == "Grid - Baseline 8"


def test_notify_and_selection_request() -> None:
    assert build_notify_message("hello") == {"type": "notify", "text": "hello"}
    assert build_selection_request() == {"type": "get-selection-for-grid"}
