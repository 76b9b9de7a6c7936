# どこで: `src/teul/core/preset_registry.py`。
# 何を: 組み込み grid preset（読み取り専用カタログ）の id -> GridPreset レジストリを提供する。
# なぜ: カタログの中身（外部データ）と、検索/カテゴリ絞り込みの規則を分離するため。

from __future__ import annotations

from collections.abc import ItemsView, Iterable

from .records import GridPreset, matches_query


class GridPresetRegistry:
    """preset の id -> GridPreset を保持するレジストリ。登録順を保つ。"""

    def __init__(self, presets: Iterable[GridPreset] = ()) -> None:
        self._items: dict[str, GridPreset] = {}
        for preset in presets:
            self.register(preset)

    def register(self, preset: GridPreset, *, overwrite: bool = False) -> None:
        """preset を登録する。同じ id が既にあり overwrite=False なら ValueError。"""

        pid = str(preset.id)
        if not overwrite and pid in self._items:
            raise ValueError(f"preset '{pid}' は既に登録されている")
        self._items[pid] = preset

    def __contains__(self, preset_id: object) -> bool:
        return str(preset_id) in self._items

    def __len__(self) -> int:
        return len(self._items)

    def items(self) -> ItemsView[str, GridPreset]:
        """登録済みエントリの (id, preset) ビューを返す。"""

        return self._items.items()

    def get(self, preset_id: str) -> GridPreset | None:
        """id に対応する preset を返す。未登録なら None を返す。"""

        return self._items.get(str(preset_id))

    def search(self, query: str = "", *, category: str | None = None) -> list[GridPreset]:
        """名前/説明/タグの部分一致（大文字小文字無視）と category で絞り込む。

        category が None または `"all"` なら絞り込まない。空クエリは全件（登録順）。
        """

        out: list[GridPreset] = []
        for preset in self._items.values():
            if category not in (None, "all") and preset.category != category:
                continue
            if not matches_query(
                query, name=preset.name, description=preset.description, tags=preset.tags
            ):
                continue
            out.append(preset)
        return out

    def categories(self) -> list[str]:
        """登録済み preset の category を初出順で返す。"""

        seen: dict[str, None] = {}
        for preset in self._items.values():
            seen.setdefault(preset.category, None)
        return list(seen)


__all__ = ["GridPresetRegistry"]
