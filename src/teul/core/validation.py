# どこで: `src/teul/core/validation.py`。
# 何を: GridConfig を対象矩形に対して検査し、エラー/警告メッセージを返す。
# なぜ: 幾何の縮退は solver 側でクランプするため、使いにくい設定は別途ユーザーに知らせる必要があるため。

"""GridConfig の検査。

- `validate_grid_config()`: 使い勝手の観点の警告（狭すぎる列など）。
- `validate_grid_for_host()`: host の layout grid として適用できるかの検査。

どちらも例外は送出せず、`ValidationResult` を返す。
メッセージは UI にそのまま表示する想定なので英語で返す。
"""

from __future__ import annotations

from dataclasses import dataclass

from .grid_config import GridConfig
from .layout import column_width, row_height
from .units import resolve

# host（layout grid）が受け付ける列/行数の上限。
HOST_MAX_COUNT = 100


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


def validate_grid_config(config: GridConfig, width: float, height: float) -> ValidationResult:
    """使い勝手の警告を返す。警告が 1 つでもあれば valid=False。"""

    warnings: list[str] = []

    if config.columns is not None:
        if column_width(config.columns, width) < 10:
            warnings.append("Columns may be too narrow (< 10px each)")
        if config.columns.count > 24:
            warnings.append("Very high column count (> 24) may be difficult to use")
        margin_px = resolve(config.columns.margin, config.columns.margin_unit, width)
        if margin_px > float(width) * 0.25:
            warnings.append("Margins exceed 25% of frame width")

    if config.rows is not None:
        if row_height(config.rows, height) < 10:
            warnings.append("Rows may be too short (< 10px each)")

    if config.baseline is not None:
        if config.baseline.height < 4:
            warnings.append("Baseline height may be too small (< 4px)")
        if config.baseline.height > 48:
            warnings.append("Baseline height is quite large (> 48px)")

    return ValidationResult(valid=not warnings, warnings=tuple(warnings))


def validate_grid_for_host(config: GridConfig, width: float, height: float) -> ValidationResult:
    """host へ適用できない設定をエラー、注意点を警告として返す。"""

    errors: list[str] = []
    warnings: list[str] = []

    if config.columns is not None:
        cols = config.columns
        if cols.count > HOST_MAX_COUNT:
            errors.append(f"Column count exceeds host maximum ({HOST_MAX_COUNT})")
        if resolve(cols.margin, cols.margin_unit, width) * 2 >= float(width):
            errors.append("Column margins exceed frame width")
        if resolve(cols.gutter_size, cols.gutter_unit, width) >= float(width):
            errors.append("Column gutter exceeds frame width")

    if config.rows is not None:
        rows = config.rows
        if rows.count > HOST_MAX_COUNT:
            errors.append(f"Row count exceeds host maximum ({HOST_MAX_COUNT})")
        if resolve(rows.margin, rows.margin_unit, height) * 2 >= float(height):
            errors.append("Row margins exceed frame height")

    if config.baseline is not None:
        if config.baseline.height < 1:
            errors.append("Baseline height must be at least 1px")
        if config.baseline.height > float(height):
            warnings.append("Baseline height exceeds frame height")
        if config.baseline.offset < 0:
            warnings.append("Baseline offset is negative")

    return ValidationResult(valid=not errors, errors=tuple(errors), warnings=tuple(warnings))


__all__ = [
    "HOST_MAX_COUNT",
    "ValidationResult",
    "validate_grid_config",
    "validate_grid_for_host",
]
