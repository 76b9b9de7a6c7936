"""
どこで: `src/teul/host/session.py`。
何を: 選択状態を追跡し、grid を選択フレームへ適用/新規フレームとして作成するコマンドを host へ送る。
なぜ: 「scale → payload 組み立て → 送信」の流れと、未選択時の縮退（通知のみ）を 1 箇所にまとめるため。
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from teul.core.aspect_ratio import preset_frame_dimensions
from teul.core.grid_config import GridConfig
from teul.core.records import GridPreset
from teul.core.runtime_config import runtime_config
from teul.core.scaling import needs_scaling, scale_grid_or_original

from .commands import (
    build_apply_grid_message,
    build_create_grid_frame_message,
    build_notify_message,
    build_selection_request,
    preset_frame_name,
)
from .port import NO_SELECTION, HostPort, SelectionInfo

_logger = logging.getLogger(__name__)

SELECT_FRAME_FIRST = "Please select a frame first"


class GridSession:
    """host port を介して grid を適用するセッション。

    Parameters
    ----------
    port : HostPort
        host との送受信口。
    reference_size : tuple[float, float] | None
        grid を作成した矩形。None なら `runtime_config().reference_size`。
    preserve_proportions : bool | None
        スケールモード。None なら `runtime_config().preserve_proportions`。

    Notes
    -----
    送信は fire-and-forget。host からの応答（適用成功など）は扱わない。
    """

    def __init__(
        self,
        port: HostPort,
        *,
        reference_size: tuple[float, float] | None = None,
        preserve_proportions: bool | None = None,
    ) -> None:
        cfg = runtime_config()
        self._port = port
        self.reference_size = cfg.reference_size if reference_size is None else reference_size
        self.preserve_proportions = (
            cfg.preserve_proportions if preserve_proportions is None else bool(preserve_proportions)
        )
        self._tolerance_px = cfg.scale_tolerance_px
        self._base_width = cfg.frame_base_width
        self._selection = NO_SELECTION
        self._unsubscribe = port.on_message(self._handle_message)

    def _handle_message(self, message: Mapping[str, Any]) -> None:
        info = SelectionInfo.from_message(message)
        if info is not None:
            self._selection = info

    @property
    def selection(self) -> SelectionInfo:
        return self._selection

    @property
    def can_apply(self) -> bool:
        return self._selection.can_apply

    def request_selection(self) -> None:
        """現在の選択状態を host に問い合わせる（応答は on_message で届く）。"""

        self._port.send(build_selection_request())

    def notify(self, text: str) -> None:
        self._port.send(build_notify_message(text))

    def apply(
        self,
        config: GridConfig,
        *,
        reference_size: tuple[float, float] | None = None,
        replace_existing: bool = True,
    ) -> bool:
        """選択中のフレームへ grid を適用する。送信したら True。

        フレームが選択されていなければ通知だけ送って False を返す
        （呼び出し側は代わりに `create_frame()` を提示する）。
        """

        sel = self._selection
        if not sel.can_apply:
            self.notify(SELECT_FRAME_FIRST)
            return False

        assert sel.width is not None and sel.height is not None
        ref = self.reference_size if reference_size is None else reference_size
        target = (sel.width, sel.height)

        scaled = config
        if needs_scaling(ref, target, tolerance_px=self._tolerance_px):
            scaled = scale_grid_or_original(
                config,
                ref[0],
                ref[1],
                target[0],
                target[1],
                preserve_proportions=self.preserve_proportions,
            )

        self._port.send(
            build_apply_grid_message(scaled, sel.width, sel.height, replace_existing=replace_existing)
        )
        _logger.debug("apply-grid を送信: frame=%s size=%sx%s", sel.name, sel.width, sel.height)
        return True

    def create_frame(
        self,
        config: GridConfig,
        width: float,
        height: float,
        *,
        frame_name: str | None = None,
        position_near_selection: bool = True,
    ) -> None:
        """grid 付きの新しいフレームを作らせる。"""

        self._port.send(
            build_create_grid_frame_message(
                config,
                width,
                height,
                frame_name=frame_name,
                position_near_selection=position_near_selection,
            )
        )

    def create_frame_from_preset(
        self,
        preset: GridPreset,
        *,
        base_width: int | None = None,
        position_near_selection: bool = True,
    ) -> tuple[int, int]:
        """preset の推奨サイズでフレームを作らせ、使ったサイズ (w, h) を返す。"""

        w, h = preset_frame_dimensions(preset, self._base_width if base_width is None else base_width)
        self.create_frame(
            preset.config,
            w,
            h,
            frame_name=preset_frame_name(preset),
            position_near_selection=position_near_selection,
        )
        return (w, h)

    def close(self) -> None:
        """受信ハンドラの登録を解除する。"""

        self._unsubscribe()


__all__ = ["GridSession", "SELECT_FRAME_FIRST"]
