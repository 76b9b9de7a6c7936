# src/teul/core/preview.py
# grid 設定をプレビュー用の線分配列（coords, offsets）に展開するモデルと変換ロジック。

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np

from .grid_config import GridColor, GridConfig
from .layout import AxisLayout, baseline_lines, solve_columns, solve_rows

PreviewKind = Literal["columns", "rows", "baseline"]


@dataclass(frozen=True, slots=True)
class PreviewGeometry:
    """プレビュー用のポリライン集合。

    Parameters
    ----------
    coords : np.ndarray
        float64 型 shape (N, 2) の頂点配列（px）。
    offsets : np.ndarray
        int32 型 shape (M+1,) のポリライン開始インデックス配列。

    Notes
    -----
    不変性を契約とし、配列は writeable=False で保持する。
    offsets と coords の整合性はコンストラクタ内で検証する。
    """

    coords: np.ndarray
    offsets: np.ndarray

    def __post_init__(self) -> None:
        coords = np.asarray(self.coords, dtype=np.float64)
        offsets = np.asarray(self.offsets)

        if coords.size == 0:
            coords = coords.reshape(0, 2)
        if coords.ndim != 2 or coords.shape[1] != 2:
            raise ValueError("coords は shape (N,2) の 2 次元配列である必要がある")

        if offsets.ndim != 1:
            raise ValueError("offsets は 1 次元配列である必要がある")
        if offsets.dtype != np.int32:
            offsets = offsets.astype(np.int32, copy=False)
        if offsets.size == 0:
            raise ValueError("offsets は少なくとも 1 要素を含む必要がある")
        if offsets[0] != 0:
            raise ValueError("offsets[0] は 0 である必要がある")
        if offsets[-1] != coords.shape[0]:
            raise ValueError("offsets[-1] は coords 行数と一致する必要がある")
        if np.any(np.diff(offsets) < 0):
            raise ValueError("offsets は単調非減少である必要がある")

        coords.setflags(write=False)
        offsets.setflags(write=False)
        object.__setattr__(self, "coords", coords)
        object.__setattr__(self, "offsets", offsets)

    @property
    def n_lines(self) -> int:
        return int(self.offsets.shape[0] - 1)


def _segments(segments: np.ndarray) -> PreviewGeometry:
    """shape (M, 2, 2) の線分列を PreviewGeometry にして返す。"""

    m = int(segments.shape[0])
    coords = segments.reshape(m * 2, 2)
    offsets = np.arange(0, 2 * m + 1, 2, dtype=np.int32)
    return PreviewGeometry(coords=coords, offsets=offsets)


def empty_preview_geometry() -> PreviewGeometry:
    return PreviewGeometry(
        coords=np.zeros((0, 2), dtype=np.float64),
        offsets=np.zeros((1,), dtype=np.int32),
    )


def _vertical_edges(layout: AxisLayout) -> PreviewGeometry:
    if not layout.bands:
        return empty_preview_geometry()
    xs = layout.edges().reshape(-1)
    y1 = float(layout.extent)
    segments = np.stack(
        [np.stack([xs, np.zeros_like(xs)], axis=1), np.stack([xs, np.full_like(xs, y1)], axis=1)],
        axis=1,
    )
    return _segments(segments)


def _horizontal_edges(layout: AxisLayout) -> PreviewGeometry:
    if not layout.bands:
        return empty_preview_geometry()
    ys = layout.edges().reshape(-1)
    x1 = float(layout.extent)
    segments = np.stack(
        [np.stack([np.zeros_like(ys), ys], axis=1), np.stack([np.full_like(ys, x1), ys], axis=1)],
        axis=1,
    )
    return _segments(segments)


@dataclass(frozen=True, slots=True)
class PreviewLayer:
    """プレビュー 1 レイヤ（columns / rows / baseline のどれか）。

    accents は線ごとの強調フラグ。baseline 以外は全て False。
    """

    kind: PreviewKind
    color: GridColor
    geometry: PreviewGeometry
    accents: tuple[bool, ...]


def grid_preview(config: GridConfig, width: float, height: float) -> tuple[PreviewLayer, ...]:
    """GridConfig を (width, height) の矩形上の線分レイヤ列に展開して返す。

    Notes
    -----
    - columns: 各帯の左右端の縦線（帯 1 本につき 2 本）。
    - rows: 各帯の上下端の横線（帯 1 本につき 2 本）。
    - baseline: 各ベースラインの横線。
    - visible=False のサブ grid は出さない。クリップもしない。
    """

    out: list[PreviewLayer] = []

    if config.columns is not None and config.columns.visible:
        geom = _vertical_edges(solve_columns(config.columns, width, height))
        out.append(
            PreviewLayer(
                kind="columns",
                color=config.columns.color,
                geometry=geom,
                accents=(False,) * geom.n_lines,
            )
        )

    if config.rows is not None and config.rows.visible:
        geom = _horizontal_edges(solve_rows(config.rows, height, width))
        out.append(
            PreviewLayer(
                kind="rows",
                color=config.rows.color,
                geometry=geom,
                accents=(False,) * geom.n_lines,
            )
        )

    if config.baseline is not None and config.baseline.visible:
        lines = list(baseline_lines(config.baseline, height))
        if lines:
            ys = np.asarray([line.y for line in lines], dtype=np.float64)
            segments = np.stack(
                [
                    np.stack([np.zeros_like(ys), ys], axis=1),
                    np.stack([np.full_like(ys, float(width)), ys], axis=1),
                ],
                axis=1,
            )
            geom = _segments(segments)
        else:
            geom = empty_preview_geometry()
        out.append(
            PreviewLayer(
                kind="baseline",
                color=config.baseline.color,
                geometry=geom,
                accents=tuple(line.accent for line in lines),
            )
        )

    return tuple(out)


def concat_preview_geometries(*geometries: PreviewGeometry) -> PreviewGeometry:
    """複数の PreviewGeometry を連結して 1 つにまとめる。"""

    if not geometries:
        return empty_preview_geometry()

    total_coords = np.concatenate([g.coords for g in geometries], axis=0)

    new_offsets: list[int] = [0]
    offset_base = 0
    for g in geometries:
        # 先頭 0 を除いた差分部分だけをシフトして足し込む。
        new_offsets.extend((g.offsets[1:].astype(np.int64) + offset_base).tolist())
        offset_base += int(g.offsets[-1])

    return PreviewGeometry(coords=total_coords, offsets=np.asarray(new_offsets, dtype=np.int32))


__all__ = [
    "PreviewGeometry",
    "PreviewKind",
    "PreviewLayer",
    "concat_preview_geometries",
    "empty_preview_geometry",
    "grid_preview",
]
