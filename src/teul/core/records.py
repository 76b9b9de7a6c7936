# どこで: `src/teul/core/records.py`。
# 何を: preset（読み取り専用）と保存済み grid（ユーザー所有）のレコード型を定義する。
# なぜ: ストア/codec/プリセットカタログが同じレコード表現を使うため。

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .grid_config import GridConfig

GRID_CATEGORIES: tuple[str, ...] = (
    "classic-swiss",
    "editorial",
    "poster",
    "web-ui",
    "modular",
    "baseline",
    "combined",
    "custom",
)

DEFAULT_SAVED_CATEGORY = "custom"


def normalize_tags(tags: Iterable[object] | None) -> tuple[str, ...]:
    """tags を重複なし・順序保持の str タプルにして返す。空文字は捨てる。"""

    if tags is None:
        return ()
    if isinstance(tags, str):
        raise TypeError("tags は文字列の iterable である必要がある（str 単体は不可）")
    out: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        s = str(tag).strip()
        if not s or s in seen:
            continue
        seen.add(s)
        out.append(s)
    return tuple(out)


def matches_query(query: str, *, name: str, description: str, tags: Iterable[str]) -> bool:
    """name / description / tags のいずれかに query が部分一致（大文字小文字無視）すれば True。

    空白だけのクエリは常に True。
    """

    q = str(query).strip().lower()
    if not q:
        return True
    return q in name.lower() or q in description.lower() or any(q in t.lower() for t in tags)


@dataclass(frozen=True, slots=True)
class GridPreset:
    """組み込み preset 1 件。カタログ（外部データ）から供給される。

    `aspect_ratio` は "1:1" / "16:9" / "√2" のようなラベルで、
    プレビュー/フレーム作成時の参照高さを決めるためだけに使う。
    """

    id: str
    name: str
    description: str
    category: str
    config: GridConfig
    tags: tuple[str, ...] = ()
    aspect_ratio: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", normalize_tags(self.tags))


@dataclass(frozen=True, slots=True)
class GridDraft:
    """`SavedGridStore.create()` の入力。id/timestamp はストアが割り当てる。"""

    name: str
    config: GridConfig
    description: str = ""
    category: str = DEFAULT_SAVED_CATEGORY
    tags: tuple[str, ...] = ()
    source: str | None = None
    detected_data: Mapping[str, Any] | None = None
    aspect_ratio: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", normalize_tags(self.tags))


@dataclass(frozen=True, slots=True)
class SavedGrid:
    """ユーザーが保存した grid 1 件。

    Attributes
    ----------
    id:
        ストアが生成時に割り当てる一意な ID。再利用しない。
    created_at / updated_at:
        epoch ミリ秒。
    detected_data:
        解析ステップ由来の不透明なメタデータ。core は解釈しない。

    Notes
    -----
    レコード自体は不変値。編集はストアが同じ位置のレコードを差し替えて表現する。
    UI が保持するのは id だけにし、変更のたびに id で引き直す。
    """

    id: str
    name: str
    description: str
    category: str
    config: GridConfig
    created_at: int
    updated_at: int
    tags: tuple[str, ...] = ()
    source: str | None = None
    detected_data: Mapping[str, Any] | None = None
    aspect_ratio: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", normalize_tags(self.tags))
        object.__setattr__(self, "created_at", int(self.created_at))
        object.__setattr__(self, "updated_at", int(self.updated_at))


def draft_from_preset(preset: GridPreset, *, name: str | None = None) -> GridDraft:
    """preset を元にした保存用ドラフトを返す（source に preset 名を記録する）。"""

    return GridDraft(
        name=preset.name if name is None else str(name),
        config=preset.config,
        description=preset.description,
        category=DEFAULT_SAVED_CATEGORY,
        tags=preset.tags,
        source=preset.name,
        aspect_ratio=preset.aspect_ratio,
    )


__all__ = [
    "DEFAULT_SAVED_CATEGORY",
    "GRID_CATEGORIES",
    "GridDraft",
    "GridPreset",
    "SavedGrid",
    "draft_from_preset",
    "matches_query",
    "normalize_tags",
]
