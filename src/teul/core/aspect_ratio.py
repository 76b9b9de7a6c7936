# どこで: `src/teul/core/aspect_ratio.py`。
# 何を: アスペクト比ラベル（"16:9" / "1:√2" など）の解釈と、比率の表示名を提供する。
# なぜ: preset のプレビュー/フレーム作成で参照高さを決めるため。

from __future__ import annotations

import math
import re

from .records import GridPreset

DEFAULT_BASE_WIDTH = 800

_RATIO_RE = re.compile(r"(\d+(?:\.\d+)?)\s*:\s*(\d+(?:\.\d+)?)")

# (名前, 比率, 表示ラベル)
COMMON_ASPECT_RATIOS: tuple[tuple[str, float, str], ...] = (
    ("A-series (ISO 216)", 1.414, "1:√2"),
    ("Golden Ratio", 1.618, "1:φ"),
    ("Classic 2:3", 1.5, "2:3"),
    ("Photo 3:4", 1.333, "3:4"),
    ("Square", 1.0, "1:1"),
    ("Widescreen 16:9", 1.778, "16:9"),
    ("Cinema 2.35:1", 2.35, "2.35:1"),
    ("Letter (US)", 1.294, "8.5:11"),
)

# category ごとの既定フレームサイズ（aspect_ratio が無い preset 用）。
_CATEGORY_FRAME_SIZES: dict[str, tuple[int, int]] = {
    "poster": (800, 1132),
    "editorial": (800, 1040),
    "web-ui": (1440, 900),
}


def parse_aspect_ratio(label: str, base_width: int = DEFAULT_BASE_WIDTH) -> tuple[int, int]:
    """アスペクト比ラベルを解釈し、base_width 基準の (width, height) を返す。

    Notes
    -----
    - `√2` / `1.414` を含むラベルは A 判（縦）、`φ` / `1.618` は黄金比（縦）として扱う。
    - `a:b` 形式は `height = round(base_width * b / a)`。
    - 解釈できない場合は 4:3 にフォールバックする。
    """

    text = str(label)
    w = int(base_width)
    if "√2" in text or "1.414" in text:
        return (w, round(w * 1.414))
    if "φ" in text or "1.618" in text:
        return (w, round(w * 1.618))

    m = _RATIO_RE.search(text)
    if m:
        a = float(m.group(1))
        b = float(m.group(2))
        if a and b:
            return (w, round(w * (b / a)))

    return (w, round(w * 0.75))


def preset_frame_dimensions(
    preset: GridPreset,
    base_width: int = DEFAULT_BASE_WIDTH,
) -> tuple[int, int]:
    """preset の推奨フレームサイズ (width, height) を返す。"""

    if preset.aspect_ratio:
        return parse_aspect_ratio(preset.aspect_ratio, base_width)
    size = _CATEGORY_FRAME_SIZES.get(preset.category)
    if size is not None:
        return size
    w = int(base_width)
    return (w, round(w * 1.414))


def _simple_fraction(ratio: float, *, max_denominator: int = 20) -> tuple[int, int] | None:
    for b in range(1, max_denominator + 1):
        for a in range(1, max_denominator + 1):
            if abs(a / b - ratio) < 0.02:
                return (a, b)
    return None


def aspect_ratio_name(ratio: float, tolerance: float = 0.05) -> str:
    """比率（width / height）に近い一般的な比率の表示ラベルを返す。

    一覧に無ければ簡単な分数（"5:4" など）、それも無ければ小数 2 桁の文字列を返す。
    0 以下や非有限の比率は 1（正方形）として扱う。
    """

    r = float(ratio)
    if not math.isfinite(r) or r <= 0.0:
        r = 1.0
    normalized = r if r >= 1.0 else 1.0 / r
    for _name, common, display in COMMON_ASPECT_RATIOS:
        if abs(normalized - common) < float(tolerance):
            return display

    frac = _simple_fraction(normalized)
    if frac is None:
        return f"{normalized:.2f}"
    a, b = frac
    # 縦長は分数を反転して表示する
    return f"{a}:{b}" if r >= 1.0 else f"{b}:{a}"


def calculate_aspect_ratio(width: float, height: float) -> float:
    """width / height を返す。height が 0 なら 1。"""

    if float(height) == 0.0:
        return 1.0
    return float(width) / float(height)


__all__ = [
    "COMMON_ASPECT_RATIOS",
    "DEFAULT_BASE_WIDTH",
    "aspect_ratio_name",
    "calculate_aspect_ratio",
    "parse_aspect_ratio",
    "preset_frame_dimensions",
]
