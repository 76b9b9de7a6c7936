# どこで: `src/teul/core/grid_config.py`。
# 何を: grid 設定（columns / rows / baseline）と色の不変データ型を定義する。
# なぜ: layout/scaling/host payload/codec が同じ値型を共有し、不変条件を生成時に 1 回だけ検証するため。

"""grid 設定の値型。

- `GridColor`: RGB は 0..255、alpha は 0..1。
- `ColumnGridConfig` / `RowGridConfig`: 本数・margin・gutter（それぞれ単位つき）。
- `BaselineGridConfig`: 行送り（height）と開始位置（offset）。
- `GridConfig`: 上記 3 つの任意の組み合わせ。すべて None の「空 grid」も有効な値。

すべて frozen dataclass。変更は `dataclasses.replace()` で新しい値を作る。
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Literal

from .units import UNIT_PX, check_unit

GridAlignment = Literal["MIN", "CENTER", "MAX", "STRETCH"]
GRID_ALIGNMENTS: tuple[str, ...] = ("MIN", "CENTER", "MAX", "STRETCH")

GridPattern = Literal["none", "column", "row", "modular", "baseline", "combined"]

_CSS_RGB_RE = re.compile(r"rgba?\((\d+),\s*(\d+),\s*(\d+)(?:,\s*([\d.]+))?\)")


@dataclass(frozen=True, slots=True)
class GridColor:
    """grid 線の色。r/g/b は 0..255、a は 0..1。"""

    r: float
    g: float
    b: float
    a: float = 1.0

    def __post_init__(self) -> None:
        for name in ("r", "g", "b"):
            v = float(getattr(self, name))
            if not 0.0 <= v <= 255.0:
                raise ValueError(f"GridColor.{name} は 0..255 である必要がある: got={v}")
            object.__setattr__(self, name, v)
        a = float(self.a)
        if not 0.0 <= a <= 1.0:
            raise ValueError(f"GridColor.a は 0..1 である必要がある: got={a}")
        object.__setattr__(self, "a", a)

    @classmethod
    def from_rgba01(cls, r: float, g: float, b: float, a: float = 1.0) -> GridColor:
        """0..1 の RGBA から GridColor を作る。"""

        return cls(
            r=round(float(r) * 255.0, 6),
            g=round(float(g) * 255.0, 6),
            b=round(float(b) * 255.0, 6),
            a=float(a),
        )

    @classmethod
    def from_css(cls, css: str, alpha: float = 0.1) -> GridColor:
        """`#rrggbb` / `rgb(...)` / `rgba(...)` を解釈して返す。

        解釈できない文字列は既定の column 色（赤）に alpha を付けて返す。
        """

        s = str(css).strip()
        if s.startswith("#") and len(s) >= 7:
            try:
                return cls(
                    r=int(s[1:3], 16),
                    g=int(s[3:5], 16),
                    b=int(s[5:7], 16),
                    a=alpha,
                )
            except ValueError:
                pass
        m = _CSS_RGB_RE.match(s)
        if m:
            a = float(m.group(4)) if m.group(4) else alpha
            return cls(r=int(m.group(1)), g=int(m.group(2)), b=int(m.group(3)), a=a)
        return cls(
            r=DEFAULT_COLUMN_COLOR.r,
            g=DEFAULT_COLUMN_COLOR.g,
            b=DEFAULT_COLUMN_COLOR.b,
            a=alpha,
        )

    def to_rgba01(self) -> tuple[float, float, float, float]:
        """0..1 の (r, g, b, a) を返す（host 側の色表現）。"""

        return (self.r / 255.0, self.g / 255.0, self.b / 255.0, self.a)

    def to_css(self) -> str:
        """CSS の `rgba(...)` 文字列を返す。"""

        return f"rgba({round(self.r)}, {round(self.g)}, {round(self.b)}, {self.a})"


DEFAULT_COLUMN_COLOR = GridColor(255, 51, 51, 0.1)
DEFAULT_ROW_COLOR = GridColor(51, 102, 255, 0.1)
DEFAULT_BASELINE_COLOR = GridColor(51, 204, 230, 0.15)


def _validate_axis_fields(config: object, *, label: str) -> None:
    """ColumnGridConfig / RowGridConfig 共通の検証と型の正規化。"""

    count = getattr(config, "count")
    if isinstance(count, bool) or int(count) != count:
        raise ValueError(f"{label}.count は整数である必要がある: got={count!r}")
    if int(count) < 1:
        raise ValueError(f"{label}.count は 1 以上である必要がある: got={count!r}")
    object.__setattr__(config, "count", int(count))

    for name in ("margin", "gutter_size"):
        v = float(getattr(config, name))
        if not math.isfinite(v):
            raise ValueError(f"{label}.{name} は有限値である必要がある: got={v}")
        if v < 0.0:
            raise ValueError(f"{label}.{name} は 0 以上である必要がある: got={v}")
        object.__setattr__(config, name, v)

    check_unit(getattr(config, "margin_unit"))
    check_unit(getattr(config, "gutter_unit"))

    alignment = str(getattr(config, "alignment"))
    if alignment not in GRID_ALIGNMENTS:
        raise ValueError(f"{label}.alignment が不正です: got={alignment!r}")
    object.__setattr__(config, "visible", bool(getattr(config, "visible")))


@dataclass(frozen=True, slots=True)
class ColumnGridConfig:
    """列 grid（縦の分割）。margin/gutter は幅基準で解決する。"""

    count: int
    margin: float = 0.0
    margin_unit: str = UNIT_PX
    gutter_size: float = 0.0
    gutter_unit: str = UNIT_PX
    color: GridColor = DEFAULT_COLUMN_COLOR
    alignment: str = "STRETCH"
    visible: bool = True

    def __post_init__(self) -> None:
        _validate_axis_fields(self, label="columns")


@dataclass(frozen=True, slots=True)
class RowGridConfig:
    """行 grid（横の分割）。margin/gutter は高さ基準で解決する。"""

    count: int
    margin: float = 0.0
    margin_unit: str = UNIT_PX
    gutter_size: float = 0.0
    gutter_unit: str = UNIT_PX
    color: GridColor = DEFAULT_ROW_COLOR
    alignment: str = "STRETCH"
    visible: bool = True

    def __post_init__(self) -> None:
        _validate_axis_fields(self, label="rows")


@dataclass(frozen=True, slots=True)
class BaselineGridConfig:
    """ベースライン grid。height は行送り（px, 正）、offset は上端からの開始位置（px）。"""

    height: float
    offset: float = 0.0
    color: GridColor = DEFAULT_BASELINE_COLOR
    visible: bool = True

    def __post_init__(self) -> None:
        height = float(self.height)
        if not math.isfinite(height) or not height > 0.0:
            raise ValueError(f"baseline.height は正の有限値である必要がある: got={height}")
        offset = float(self.offset)
        if not math.isfinite(offset):
            raise ValueError(f"baseline.offset は有限値である必要がある: got={offset}")
        object.__setattr__(self, "height", height)
        object.__setattr__(self, "offset", offset)
        object.__setattr__(self, "visible", bool(self.visible))


@dataclass(frozen=True, slots=True)
class GridConfig:
    """columns / rows / baseline の任意の組み合わせ。

    Notes
    -----
    - 3 つとも None の値は「空 grid」として有効。
    - 組み合わせに排他制約は無い（modular = columns + rows、combined = columns + baseline など）。
    """

    columns: ColumnGridConfig | None = None
    rows: RowGridConfig | None = None
    baseline: BaselineGridConfig | None = None

    @property
    def is_empty(self) -> bool:
        return self.columns is None and self.rows is None and self.baseline is None

    @property
    def pattern(self) -> GridPattern:
        """設定の組み合わせから grid の種類を返す。"""

        if self.columns is not None and self.rows is not None:
            return "modular"
        if self.baseline is not None and (self.columns is not None or self.rows is not None):
            return "combined"
        if self.columns is not None:
            return "column"
        if self.rows is not None:
            return "row"
        if self.baseline is not None:
            return "baseline"
        return "none"


__all__ = [
    "BaselineGridConfig",
    "ColumnGridConfig",
    "DEFAULT_BASELINE_COLOR",
    "DEFAULT_COLUMN_COLOR",
    "DEFAULT_ROW_COLOR",
    "GRID_ALIGNMENTS",
    "GridAlignment",
    "GridColor",
    "GridConfig",
    "GridPattern",
    "RowGridConfig",
]
