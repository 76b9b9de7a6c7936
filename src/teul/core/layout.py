# どこで: `src/teul/core/layout.py`。
# 何を: grid 設定と軸長から、列/行の帯（位置+幅）とベースライン線の位置列を計算する。
# なぜ: プレビューと host への適用が同じ幾何計算を共有するため。

"""layout solver（columns / rows / baseline）。

列と行は同じアルゴリズムを軸だけ替えて使う:

1. `margin_px = resolve(margin, margin_unit, axis_length)`
2. `gutter_px = resolve(gutter_size, gutter_unit, axis_length)`
3. `available = axis_length - 2 * margin_px`
4. `total_gutter = gutter_px * max(0, count - 1)`
5. `band_size = max(1, (available - total_gutter) / count)`
6. 帯は `margin_px` から `band_size + gutter_px` ずつ進めて `count` 本ちょうど出す。

Notes
-----
- 5 の下限 1px は、軸長が足りない設定でも幅 0 以下の帯を出さないためのクランプ。
  エラーにはしない（幾何の縮退は想定内の挙動）。
- solver はクリップしない。帯の合計が軸長を超えても `count` 本を返し、
  はみ出しの処理は描画側に任せる。
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from .grid_config import BaselineGridConfig, ColumnGridConfig, RowGridConfig
from .units import resolve

# 帯幅の下限（px）。
MIN_BAND_SIZE = 1.0
# ベースラインの強調線の間隔（先頭の線から数えて 4 本ごと）。
BASELINE_ACCENT_EVERY = 4


@dataclass(frozen=True, slots=True)
class Band:
    """1 本の帯。start は軸上の開始位置（px）、size は帯幅（px）。"""

    index: int
    start: float
    size: float

    @property
    def end(self) -> float:
        return self.start + self.size


@dataclass(frozen=True, slots=True)
class AxisLayout:
    """列または行の解決結果。

    Attributes
    ----------
    axis_length:
        計算に使った軸長（列なら幅、行なら高さ）。
    extent:
        直交方向の長さ。計算には使わず、そのまま持ち回る。
    """

    axis_length: float
    extent: float
    margin_px: float
    gutter_px: float
    band_size: float
    bands: tuple[Band, ...]

    def starts(self) -> np.ndarray:
        """帯の開始位置を float64 の配列で返す。"""

        return np.asarray([b.start for b in self.bands], dtype=np.float64)

    def edges(self) -> np.ndarray:
        """帯の (start, end) を shape (count, 2) の配列で返す。"""

        return np.asarray([(b.start, b.end) for b in self.bands], dtype=np.float64).reshape(-1, 2)


def _raw_band_size(
    *,
    count: int,
    margin_px: float,
    gutter_px: float,
    axis_length: float,
) -> float:
    available = float(axis_length) - 2.0 * float(margin_px)
    total_gutter = float(gutter_px) * max(0, int(count) - 1)
    return (available - total_gutter) / int(count)


def _solve_axis(
    config: ColumnGridConfig | RowGridConfig,
    *,
    axis_length: float,
    extent: float,
) -> AxisLayout:
    axis = float(axis_length)
    if axis < 0.0:
        raise ValueError(f"axis_length は 0 以上である必要がある: got={axis}")

    margin_px = resolve(config.margin, config.margin_unit, axis)
    gutter_px = resolve(config.gutter_size, config.gutter_unit, axis)
    size = max(
        MIN_BAND_SIZE,
        _raw_band_size(
            count=config.count,
            margin_px=margin_px,
            gutter_px=gutter_px,
            axis_length=axis,
        ),
    )

    starts = margin_px + np.arange(config.count, dtype=np.float64) * (size + gutter_px)
    bands = tuple(
        Band(index=i, start=float(x), size=float(size)) for i, x in enumerate(starts.tolist())
    )
    return AxisLayout(
        axis_length=axis,
        extent=float(extent),
        margin_px=float(margin_px),
        gutter_px=float(gutter_px),
        band_size=float(size),
        bands=bands,
    )


def solve_columns(config: ColumnGridConfig, axis_length: float, height: float) -> AxisLayout:
    """列の帯を左から順に返す。height は直交方向の長さ（そのまま持ち回る）。"""

    return _solve_axis(config, axis_length=axis_length, extent=height)


def solve_rows(config: RowGridConfig, axis_length: float, width: float) -> AxisLayout:
    """行の帯を上から順に返す。

    Notes
    -----
    列と同じ 1px の下限を適用する（利用可能な高さが gutter 合計に満たない場合でも負の高さを出さない）。
    """

    return _solve_axis(config, axis_length=axis_length, extent=width)


def column_width(config: ColumnGridConfig, width: float) -> float:
    """クランプ前の列幅を返す（検証用。負になり得る）。"""

    return _raw_band_size(
        count=config.count,
        margin_px=resolve(config.margin, config.margin_unit, width),
        gutter_px=resolve(config.gutter_size, config.gutter_unit, width),
        axis_length=width,
    )


def row_height(config: RowGridConfig, height: float) -> float:
    """クランプ前の行高を返す（検証用。負になり得る）。"""

    return _raw_band_size(
        count=config.count,
        margin_px=resolve(config.margin, config.margin_unit, height),
        gutter_px=resolve(config.gutter_size, config.gutter_unit, height),
        axis_length=height,
    )


def module_size(
    columns: ColumnGridConfig,
    rows: RowGridConfig,
    width: float,
    height: float,
) -> tuple[float, float]:
    """modular grid の 1 モジュールの (幅, 高さ) を返す。"""

    return (
        solve_columns(columns, width, height).band_size,
        solve_rows(rows, height, width).band_size,
    )


@dataclass(frozen=True, slots=True)
class BaselineLine:
    """ベースライン 1 本。accent は強調表示用のフラグ（index から導出）。"""

    index: int
    y: float
    accent: bool


@dataclass(frozen=True, slots=True)
class BaselineLines:
    """ベースライン線の列（遅延・有限・再開可能）。

    `y = offset + index * height` を `y < extent` の間だけ出す。
    イテレートするたびに先頭から作り直すので、何度回しても同じ列になる。
    """

    height: float
    offset: float
    extent: float

    def __post_init__(self) -> None:
        # 有限・正の height と有限の offset でなければ列が終わらない
        if not math.isfinite(self.height) or not self.height > 0.0:
            raise ValueError(f"height は正の有限値である必要がある: got={self.height}")
        if not math.isfinite(self.offset):
            raise ValueError(f"offset は有限値である必要がある: got={self.offset}")
        if not math.isfinite(self.extent):
            raise ValueError(f"extent は有限値である必要がある: got={self.extent}")

    def __iter__(self) -> Iterator[BaselineLine]:
        i = 0
        while True:
            y = self.offset + i * self.height
            if y >= self.extent:
                return
            yield BaselineLine(index=i, y=float(y), accent=(i % BASELINE_ACCENT_EVERY == 0))
            i += 1

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def positions(self) -> np.ndarray:
        """線の y 座標を float64 の配列で返す。"""

        return np.fromiter((line.y for line in self), dtype=np.float64)


def baseline_lines(config: BaselineGridConfig, extent: float) -> BaselineLines:
    """ベースライン設定と軸長（高さ）から線の列を返す。"""

    return BaselineLines(
        height=float(config.height),
        offset=float(config.offset),
        extent=float(extent),
    )


__all__ = [
    "AxisLayout",
    "BASELINE_ACCENT_EVERY",
    "Band",
    "BaselineLine",
    "BaselineLines",
    "MIN_BAND_SIZE",
    "baseline_lines",
    "column_width",
    "module_size",
    "row_height",
    "solve_columns",
    "solve_rows",
]
