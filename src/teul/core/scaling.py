# どこで: `src/teul/core/scaling.py`。
# 何を: 参照矩形で作られた GridConfig を、別サイズの対象矩形向けに変換する。
# なぜ: 同じ grid を任意サイズのフレームへ「見た目の比率を保って」適用できるようにするため。

"""grid scaler。

`preserve_proportions=True`:
    - count は構造なので変えない。
    - percent 値はすでに解像度非依存なのでそのまま。
    - px 値は軸ごとの比（列は `target_w / ref_w`、行は `target_h / ref_h`）で拡縮する。
    - baseline の height / offset は `target_h / ref_h` で拡縮する。

`preserve_proportions=False`:
    - すべての値をそのまま通す（「同じレシピ」を適用する）。

どちらのモードでも入力は変更せず、新しい GridConfig を返す。
"""

from __future__ import annotations

import logging
from dataclasses import replace

from .errors import InvalidReferenceSizeError
from .grid_config import BaselineGridConfig, ColumnGridConfig, GridConfig, RowGridConfig
from .units import UNIT_PX

_logger = logging.getLogger(__name__)


def _check_reference_size(ref_w: float, ref_h: float) -> None:
    if not float(ref_w) > 0.0 or not float(ref_h) > 0.0:
        raise InvalidReferenceSizeError(
            f"参照サイズは正である必要がある: got=({ref_w!r}, {ref_h!r})"
        )


def _scale_axis(
    config: ColumnGridConfig | RowGridConfig,
    factor: float,
) -> ColumnGridConfig | RowGridConfig:
    margin = config.margin * factor if config.margin_unit == UNIT_PX else config.margin
    gutter = config.gutter_size * factor if config.gutter_unit == UNIT_PX else config.gutter_size
    return replace(config, margin=margin, gutter_size=gutter)


def _scale_baseline(config: BaselineGridConfig, factor: float) -> BaselineGridConfig:
    return replace(config, height=config.height * factor, offset=config.offset * factor)


def scale_grid(
    config: GridConfig,
    ref_w: float,
    ref_h: float,
    target_w: float,
    target_h: float,
    *,
    preserve_proportions: bool = True,
) -> GridConfig:
    """GridConfig を対象矩形向けに変換して返す。

    Parameters
    ----------
    config : GridConfig
        参照矩形 `(ref_w, ref_h)` に対して作られた設定。
    target_w, target_h : float
        適用先の矩形サイズ。
    preserve_proportions : bool
        True なら px 値を軸ごとの比で拡縮する。False なら値をそのまま通す。

    Raises
    ------
    InvalidReferenceSizeError
        ref_w / ref_h が正でない場合。
    """

    _check_reference_size(ref_w, ref_h)

    if not preserve_proportions:
        return GridConfig(columns=config.columns, rows=config.rows, baseline=config.baseline)

    sx = float(target_w) / float(ref_w)
    sy = float(target_h) / float(ref_h)

    columns = None if config.columns is None else _scale_axis(config.columns, sx)
    rows = None if config.rows is None else _scale_axis(config.rows, sy)
    baseline = None if config.baseline is None else _scale_baseline(config.baseline, sy)
    return GridConfig(columns=columns, rows=rows, baseline=baseline)  # type: ignore[arg-type]


def scale_grid_or_original(
    config: GridConfig,
    ref_w: float,
    ref_h: float,
    target_w: float,
    target_h: float,
    *,
    preserve_proportions: bool = True,
) -> GridConfig:
    """`scale_grid()` と同じ。参照サイズが不正なら警告を出して元の設定を返す。"""

    try:
        return scale_grid(
            config,
            ref_w,
            ref_h,
            target_w,
            target_h,
            preserve_proportions=preserve_proportions,
        )
    except InvalidReferenceSizeError as exc:
        _logger.warning("grid のスケールをスキップ（未スケールの設定を使う）: %s", exc)
        return config


def needs_scaling(
    ref_size: tuple[float, float],
    target_size: tuple[float, float],
    *,
    tolerance_px: float = 1.0,
) -> bool:
    """参照サイズと対象サイズが tolerance_px を超えて異なるなら True を返す。"""

    rw, rh = ref_size
    tw, th = target_size
    tol = float(tolerance_px)
    return abs(float(rw) - float(tw)) > tol or abs(float(rh) - float(th)) > tol


__all__ = [
    "needs_scaling",
    "scale_grid",
    "scale_grid_or_original",
]
