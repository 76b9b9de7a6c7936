"""保存済み grid ストア（`teul.storage.grid_store`）の CRUD / 永続化のテスト。"""

from __future__ import annotations

import itertools
import json
import logging
from collections.abc import Callable

import pytest

from teul.core.grid_config import BaselineGridConfig, ColumnGridConfig, GridConfig, RowGridConfig
from teul.core.records import GridDraft
from teul.storage.grid_store import STORAGE_VERSION, SavedGridStore
from teul.storage.persistence import MemoryPersistence


def _fixed_clock(ms: int = 1_700_000_000_000) -> Callable[[], int]:
    return lambda: ms


def _sequential_ids() -> Callable[[int], str]:
    counter = itertools.count(1)
    return lambda ts: f"custom-{ts}-{next(counter)}"


def _store(persistence: MemoryPersistence | None = None) -> SavedGridStore:
    return SavedGridStore(
        MemoryPersistence() if persistence is None else persistence,
        clock=_fixed_clock(),
        id_factory=_sequential_ids(),
    )


def _draft(name: str = "Swiss 12", **kwargs) -> GridDraft:
    return GridDraft(
        name=name,
        config=GridConfig(columns=ColumnGridConfig(count=12, margin=24, gutter_size=16)),
        **kwargs,
    )


def test_create_assigns_id_and_timestamps() -> None:
    persistence = MemoryPersistence()
    store = _store(persistence)

    grid = store.create(_draft(description="twelve", tags=("swiss", "swiss", "print")))

    assert grid.id
    assert grid.created_at == grid.updated_at
    assert grid.tags == ("swiss", "print")
    assert grid.category == "custom"
    assert store.grids() == (grid,)
    assert store.get(grid.id) == grid
    assert grid.id in store
    assert store.count() == len(store) == 1
    assert persistence.writes == 1

    saved = json.loads(persistence.text or "")
    assert saved["version"] == STORAGE_VERSION
    assert saved["grids"][0]["id"] == grid.id
    assert isinstance(saved["lastUpdated"], int)


def test_create_appends_in_insertion_order() -> None:
    store = _store()
    a = store.create(_draft("A"))
    b = store.create(_draft("B"))
    assert [g.id for g in store.grids()] == [a.id, b.id]


def test_timestamps_strictly_increase_with_frozen_clock() -> None:
    store = _store()
    a = store.create(_draft("A"))
    b = store.create(_draft("B"))
    assert b.created_at > a.created_at

    store.update(a.id, name="A2")
    updated = store.get(a.id)
    assert updated is not None
    assert updated.updated_at > b.created_at
    assert updated.created_at == a.created_at


def test_ids_are_never_reused() -> None:
    ids = iter(["same", "same", "other"])
    store = SavedGridStore(MemoryPersistence(), clock=_fixed_clock(), id_factory=lambda ts: next(ids))

    a = store.create(_draft("A"))
    b = store.create(_draft("B"))
    assert (a.id, b.id) == ("same", "other")

    store.delete("same")
    stuck = SavedGridStore(MemoryPersistence(), id_factory=lambda ts: "same")
    stuck.create(_draft())
    with pytest.raises(RuntimeError):
        stuck.create(_draft())


def test_default_ids_are_prefixed() -> None:
    store = SavedGridStore(MemoryPersistence())
    a = store.create(_draft())
    b = store.create(_draft())
    assert a.id.startswith("custom-")
    assert a.id != b.id


def test_store_reloads_from_persistence() -> None:
    persistence = MemoryPersistence()
    store = _store(persistence)
    grid = store.create(
        GridDraft(
            name="Full",
            config=GridConfig(
                columns=ColumnGridConfig(count=6, margin=5, margin_unit="percent"),
                rows=RowGridConfig(count=4),
                baseline=BaselineGridConfig(height=8, offset=2),
            ),
            description="all parts",
            tags=("a", "b"),
            source="Preset X",
            detected_data={"frames": 2},
            aspect_ratio="16:9",
        )
    )

    reloaded = _store(persistence)
    assert reloaded.grids() == (grid,)


def test_new_records_after_reload_are_later_than_loaded_ones() -> None:
    persistence = MemoryPersistence()
    first = _store(persistence).create(_draft())

    # 時計が過去を指していても、ロード済みのレコードより後の timestamp になる
    store = SavedGridStore(persistence, clock=_fixed_clock(1), id_factory=_sequential_ids())
    second = store.create(_draft("later"))
    assert second.created_at > first.created_at
    assert second.id != first.id


def test_corrupt_storage_loads_empty(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="teul.storage.grid_store"):
        store = _store(MemoryPersistence("{not json"))
    assert store.grids() == ()
    assert any(r.levelno == logging.WARNING for r in caplog.records)

    assert _store(MemoryPersistence("[1, 2]")).grids() == ()


def test_malformed_stored_record_is_skipped(caplog: pytest.LogCaptureFixture) -> None:
    persistence = MemoryPersistence()
    good = _store(persistence).create(_draft())
    data = json.loads(persistence.text or "")
    data["grids"].append({"id": "broken"})
    persistence.text = json.dumps(data)

    with caplog.at_level(logging.WARNING, logger="teul.storage.grid_store"):
        store = _store(persistence)
    assert store.grids() == (good,)
    assert caplog.records


def test_unknown_storage_version_is_migrated() -> None:
    persistence = MemoryPersistence()
    good = _store(persistence).create(_draft())
    data = json.loads(persistence.text or "")
    data["version"] = 0
    persistence.text = json.dumps(data)

    assert _store(persistence).grids() == (good,)


def test_update_merges_and_persists() -> None:
    persistence = MemoryPersistence()
    store = _store(persistence)
    grid = store.create(_draft())
    new_config = GridConfig(baseline=BaselineGridConfig(height=6))

    out = store.update(grid.id, {"name": "Renamed"}, config=new_config, tags=["x"])

    updated = store.get(grid.id)
    assert updated is not None
    assert out == (updated,)
    assert updated.name == "Renamed"
    assert updated.config == new_config
    assert updated.tags == ("x",)
    assert updated.description == grid.description
    # 以前に取得したレコードは変わらない
    assert grid.name == "Swiss 12"
    assert persistence.writes == 2


def test_update_missing_id_is_noop(caplog: pytest.LogCaptureFixture) -> None:
    persistence = MemoryPersistence()
    store = _store(persistence)
    grid = store.create(_draft())

    with caplog.at_level(logging.DEBUG, logger="teul.storage.grid_store"):
        out = store.update("missing", name="x")
    assert out == (grid,)
    assert persistence.writes == 1
    assert caplog.records


def test_update_rejects_managed_or_unknown_fields() -> None:
    store = _store()
    grid = store.create(_draft())

    with pytest.raises(ValueError):
        store.update(grid.id, id="other")
    with pytest.raises(ValueError):
        store.update(grid.id, created_at=0)
    with pytest.raises(ValueError):
        store.update(grid.id, {"colour": "red"})
    # 未知フィールドは id が無くてもエラー
    with pytest.raises(ValueError):
        store.update("missing", updated_at=0)
    assert store.get(grid.id) == grid


def test_delete_is_idempotent() -> None:
    persistence = MemoryPersistence()
    store = _store(persistence)
    a = store.create(_draft("A"))
    b = store.create(_draft("B"))

    assert store.delete(a.id) == (b,)
    assert store.delete(a.id) == (b,)
    assert store.get(a.id) is None
    assert persistence.writes == 3


def test_duplicate_creates_copy() -> None:
    store = _store()
    src = store.create(_draft(tags=("swiss",), source="Preset"))

    copy = store.duplicate(src.id)

    assert copy is not None
    assert copy.id != src.id
    assert copy.name == "Swiss 12 (Copy)"
    assert copy.config == src.config
    assert copy.tags == src.tags
    assert copy.source == "Preset"
    assert copy.created_at == copy.updated_at
    assert copy.created_at > src.created_at
    assert store.grids() == (src, copy)


def test_duplicate_missing_returns_none() -> None:
    persistence = MemoryPersistence()
    store = _store(persistence)
    assert store.duplicate("missing") is None
    assert persistence.writes == 0


def test_search() -> None:
    store = _store()
    a = store.create(_draft("Swiss Poster", tags=("print",)))
    b = store.create(_draft("Web", description="Landing page POSTER"))
    c = store.create(_draft("App", tags=("Mobile",)))

    assert store.search("") == [a, b, c]
    assert store.search("  ") == [a, b, c]
    assert store.search("poster") == [a, b]
    assert store.search("mobile") == [c]
    assert store.search("PRINT") == [a]
    assert store.search("nothing") == []


def test_clear() -> None:
    persistence = MemoryPersistence()
    store = _store(persistence)
    store.create(_draft())
    store.clear()

    assert store.grids() == ()
    assert persistence.read() is None
    assert _store(persistence).grids() == ()
