# どこで: `src/teul/core/units.py`。
# 何を: margin / gutter の値（percent または px）を軸長基準の px へ変換する。
# なぜ: 単位解釈を 1 箇所に閉じ、layout/scaling/host payload で同じ規則を共有するため。

"""単位変換（unit resolver）。

- `percent`: 軸長に対する百分率。`px = (value / 100) * axis_length`
- `px`: 絶対値（ピクセル）。そのまま返す。

resolver 自体は暗黙のリスケールを行わない。プレビュー用に参照サイズと軸長が
異なる場合は、呼び出し側が `teul.core.scaling` で事前にスケールしてから渡す。
"""

from __future__ import annotations

from typing import Literal

from .errors import InvalidUnitError

GridUnit = Literal["percent", "px"]

UNIT_PERCENT: GridUnit = "percent"
UNIT_PX: GridUnit = "px"

GRID_UNITS: tuple[str, ...] = (UNIT_PERCENT, UNIT_PX)


def check_unit(unit: object) -> str:
    """unit が既知の単位タグなら str として返す。未知なら InvalidUnitError。"""

    if not isinstance(unit, str) or unit not in GRID_UNITS:
        raise InvalidUnitError(f"未知の単位です（percent / px のみ）: got={unit!r}")
    return unit


def percent_to_pixels(percent: float, axis_length: float) -> float:
    """百分率（0..100）を px に変換して返す。"""

    return (float(percent) / 100.0) * float(axis_length)


def pixels_to_percent(pixels: float, axis_length: float) -> float:
    """px を百分率（0..100）に変換して返す。軸長 0 のときは 0。"""

    axis = float(axis_length)
    if axis == 0.0:
        return 0.0
    return (float(pixels) / axis) * 100.0


def resolve(value: float, unit: str, axis_length: float) -> float:
    """値を軸長基準の px に変換して返す。

    Parameters
    ----------
    value : float
        margin / gutter の大きさ。
    unit : str
        `"percent"` または `"px"`。
    axis_length : float
        基準となる軸長（列なら幅、行/ベースラインなら高さ）。

    Raises
    ------
    InvalidUnitError
        unit が未知のタグの場合。
    """

    u = check_unit(unit)
    if u == UNIT_PERCENT:
        return percent_to_pixels(value, axis_length)
    return float(value)


def from_pixels(pixels: float, unit: str, axis_length: float) -> float:
    """px 値を指定単位の値へ戻して返す（`resolve()` の逆変換）。"""

    u = check_unit(unit)
    if u == UNIT_PERCENT:
        return pixels_to_percent(pixels, axis_length)
    return float(pixels)


__all__ = [
    "GRID_UNITS",
    "GridUnit",
    "UNIT_PERCENT",
    "UNIT_PX",
    "check_unit",
    "from_pixels",
    "percent_to_pixels",
    "pixels_to_percent",
    "resolve",
]
