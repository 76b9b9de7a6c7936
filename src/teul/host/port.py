# どこで: `src/teul/host/port.py`。
# 何を: host（デザインツール）とのメッセージ送受信口（port）と、選択状態メッセージの型を定義する。
# なぜ: グローバルな送信チャネルを直接参照せず、注入された port 経由で送受信するため。

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

SELECTION_INFO = "selection-info"

MessageHandler = Callable[[Mapping[str, Any]], None]


def _positive(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0.0


class HostPort(Protocol):
    """host との送受信口。

    - `send()` は fire-and-forget（応答を待たない）。
    - `on_message()` は受信ハンドラを登録し、登録解除用の関数を返す。
    """

    def send(self, command: Mapping[str, Any]) -> None: ...

    def on_message(self, handler: MessageHandler) -> Callable[[], None]: ...


@dataclass(frozen=True, slots=True)
class SelectionInfo:
    """host が報告する現在の選択状態。"""

    has_selection: bool
    is_frame: bool
    width: float | None = None
    height: float | None = None
    name: str | None = None

    @property
    def can_apply(self) -> bool:
        """grid を適用できる選択（正の有限サイズを持つフレーム）なら True。"""

        return (
            self.has_selection
            and self.is_frame
            and _positive(self.width)
            and _positive(self.height)
        )

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> SelectionInfo | None:
        """`selection-info` メッセージを解釈して返す。他の種類なら None。

        サイズ/名前が欠けている場合は None として保持する。
        """

        if message.get("type") != SELECTION_INFO:
            return None

        def _size(key: str) -> float | None:
            v = message.get(key)
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                return None
            return float(v)

        name = message.get("name")
        return cls(
            has_selection=bool(message.get("hasSelection", False)),
            is_frame=bool(message.get("isFrame", False)),
            width=_size("width"),
            height=_size("height"),
            name=None if name is None else str(name),
        )


NO_SELECTION = SelectionInfo(has_selection=False, is_frame=False)


__all__ = [
    "HostPort",
    "MessageHandler",
    "NO_SELECTION",
    "SELECTION_INFO",
    "SelectionInfo",
]
