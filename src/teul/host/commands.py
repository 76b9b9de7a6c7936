"""
どこで: `src/teul/host/commands.py`。
何を: GridConfig と対象サイズから、host へ送るコマンド payload（dict）を組み立てる。
なぜ: host との境界を純関数に閉じ、I/O（送信）から切り離して検査できるようにするため。
"""

from __future__ import annotations

import math
from typing import Any

from teul.core.grid_config import (
    BaselineGridConfig,
    ColumnGridConfig,
    GridColor,
    GridConfig,
    RowGridConfig,
)
from teul.core.records import GridPreset
from teul.core.units import resolve

APPLY_GRID = "apply-grid"
CREATE_GRID_FRAME = "create-grid-frame"
NOTIFY = "notify"
GET_SELECTION_FOR_GRID = "get-selection-for-grid"


def _round_px(value: float) -> int:
    # 0.5 は切り上げ（round() の偶数丸めにしない）
    return int(math.floor(float(value) + 0.5))


def _color_payload(color: GridColor) -> dict[str, float]:
    r, g, b, a = color.to_rgba01()
    return {"r": r, "g": g, "b": b, "a": a}


def column_layout_grid(config: ColumnGridConfig, width: float) -> dict[str, Any]:
    """列設定を host の layout grid（COLUMNS）に変換する。margin/gutter は px に丸める。"""

    return {
        "pattern": "COLUMNS",
        "alignment": config.alignment,
        "gutterSize": _round_px(resolve(config.gutter_size, config.gutter_unit, width)),
        "count": config.count,
        "offset": _round_px(resolve(config.margin, config.margin_unit, width)),
        "visible": config.visible,
        "color": _color_payload(config.color),
    }


def row_layout_grid(config: RowGridConfig, height: float) -> dict[str, Any]:
    """行設定を host の layout grid（ROWS）に変換する。"""

    return {
        "pattern": "ROWS",
        "alignment": config.alignment,
        "gutterSize": _round_px(resolve(config.gutter_size, config.gutter_unit, height)),
        "count": config.count,
        "offset": _round_px(resolve(config.margin, config.margin_unit, height)),
        "visible": config.visible,
        "color": _color_payload(config.color),
    }


def baseline_layout_grid(config: BaselineGridConfig) -> dict[str, Any]:
    """ベースライン設定を host の layout grid（GRID）に変換する。常に上端揃え。"""

    return {
        "pattern": "GRID",
        "alignment": "MIN",
        "gutterSize": 0,
        "count": 1,
        "sectionSize": config.height,
        "offset": config.offset,
        "visible": config.visible,
        "color": _color_payload(config.color),
    }


def layout_grids_payload(config: GridConfig, width: float, height: float) -> dict[str, Any]:
    """GridConfig を `{"columns": ..., "rows": ..., "baseline": ...}` に変換する（None は省く）。"""

    out: dict[str, Any] = {}
    if config.columns is not None:
        out["columns"] = column_layout_grid(config.columns, width)
    if config.rows is not None:
        out["rows"] = row_layout_grid(config.rows, height)
    if config.baseline is not None:
        out["baseline"] = baseline_layout_grid(config.baseline)
    return out


def generate_frame_name(
    *,
    name: str | None = None,
    columns: int | None = None,
    rows: int | None = None,
    is_modular: bool = False,
) -> str:
    """フレーム名 `"Grid - <name> - <N>col × <M>row"` を返す。

    name が無ければ `Custom`。行数は modular のときだけ付ける。
    """

    parts = ["Grid", name or "Custom"]
    specs: list[str] = []
    if columns:
        specs.append(f"{int(columns)}col")
    if is_modular and rows:
        specs.append(f"{int(rows)}row")
    if specs:
        parts.append(" × ".join(specs))
    return " - ".join(parts)


def grid_config_frame_name(config: GridConfig, source: str | None = None) -> str:
    return generate_frame_name(
        name=source,
        columns=None if config.columns is None else config.columns.count,
        rows=None if config.rows is None else config.rows.count,
        is_modular=config.columns is not None and config.rows is not None,
    )


def preset_frame_name(preset: GridPreset) -> str:
    return grid_config_frame_name(preset.config, source=preset.name)


def build_apply_grid_message(
    config: GridConfig,
    width: float,
    height: float,
    replace_existing: bool = True,
) -> dict[str, Any]:
    """選択中のフレームに grid を guide として描かせるコマンドを返す。

    Notes
    -----
    - width/height は検証しない（正であることは呼び出し側の前提条件）。
    - `replaceExisting=True` なら host は既存の grid を消してから適用する。
    """

    return {
        "type": APPLY_GRID,
        "config": layout_grids_payload(config, width, height),
        "width": width,
        "height": height,
        "replaceExisting": bool(replace_existing),
    }


def build_create_grid_frame_message(
    config: GridConfig,
    width: float,
    height: float,
    frame_name: str | None = None,
    position_near_selection: bool = True,
) -> dict[str, Any]:
    """grid 付きの新しいフレームを作らせるコマンドを返す。

    frame_name が無ければ設定から生成する。配置の詳細は host が決める。
    """

    return {
        "type": CREATE_GRID_FRAME,
        "config": layout_grids_payload(config, width, height),
        "frameName": frame_name or grid_config_frame_name(config),
        "width": width,
        "height": height,
        "positionNearSelection": bool(position_near_selection),
    }


def build_notify_message(text: str) -> dict[str, Any]:
    """ユーザー向けの一時メッセージを表示させるコマンドを返す。"""

    return {"type": NOTIFY, "text": str(text)}


def build_selection_request() -> dict[str, Any]:
    """現在の選択状態の問い合わせコマンドを返す。"""

    return {"type": GET_SELECTION_FOR_GRID}


__all__ = [
    "APPLY_GRID",
    "CREATE_GRID_FRAME",
    "GET_SELECTION_FOR_GRID",
    "NOTIFY",
    "baseline_layout_grid",
    "build_apply_grid_message",
    "build_create_grid_frame_message",
    "build_notify_message",
    "build_selection_request",
    "column_layout_grid",
    "generate_frame_name",
    "grid_config_frame_name",
    "layout_grids_payload",
    "preset_frame_name",
    "row_layout_grid",
]
