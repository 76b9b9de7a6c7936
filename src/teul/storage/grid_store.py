# どこで: `src/teul/storage/grid_store.py`。
# 何を: ユーザーが保存した grid のコレクション（CRUD / 検索 / 複製 / import / export）を管理する。
# なぜ: 永続化先の唯一の書き手として、ID の一意性と timestamp の整合をここで保証するため。

"""保存済み grid ストア。

コレクションはメモリ上の list を正とし、変更のたびに永続化先へ書き戻す。
永続化先（`PersistenceAdapter`）はコンストラクタで注入する。

保存形式（永続化先）::

    {"version": 1, "grids": [...], "lastUpdated": <epoch ms>}

書き出し形式（export / import）::

    {"type": "teul-grids", "version": 1, "exportedAt": "<ISO-8601>", "grids": [...]}

不変条件
--------
- id は生成時に割り当て、再利用しない（ロード/発行済みの id 全体と重複しないことを確認する）。
- timestamp（epoch ms）はストア内で単調増加。同じミリ秒内の操作でも後の操作ほど大きい。
- 読み取りは `grids()` / `get()` を経由する。返すのはスナップショットなので、
  変更操作のあとは id で引き直す。

並行性
------
シングルスレッド前提でロックは持たない。`import_from_file()` の await 中に
他の変更操作を呼ばないのは呼び出し側の責務。
"""

from __future__ import annotations

import asyncio
import datetime as _dt
import json
import logging
import time
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from teul.core.codec import decode_saved_grid, encode_saved_grid
from teul.core.errors import ImportFormatError
from teul.core.records import GridDraft, SavedGrid, matches_query

from .export_paths import export_output_path
from .persistence import PersistenceAdapter

_logger = logging.getLogger(__name__)

STORAGE_VERSION = 1
EXPORT_DOCUMENT_TYPE = "teul-grids"
EXPORT_VERSION = 1
SUPPORTED_IMPORT_VERSIONS = frozenset({1})

COPY_SUFFIX = " (Copy)"

# update() で変更してよいフィールド。id / created_at / updated_at はストアが管理する。
_UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "category",
        "tags",
        "config",
        "source",
        "detected_data",
        "aspect_ratio",
    }
)

_ID_ATTEMPTS = 100

ImportMode = Literal["replace", "merge"]


def _epoch_ms() -> int:
    return time.time_ns() // 1_000_000


def _random_id(timestamp_ms: int) -> str:
    return f"custom-{int(timestamp_ms)}-{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True, slots=True)
class ImportResult:
    """import の結果。失敗時は grids=None で error に理由が入る。"""

    success: bool
    grids: tuple[SavedGrid, ...] | None = None
    error: str | None = None
    count: int = 0


def _migrate(data: Mapping[str, Any]) -> list[Any]:
    """古い/未知の保存形式から grids 配列を取り出す（現状は移行処理なし）。"""

    grids = data.get("grids")
    return list(grids) if isinstance(grids, list) else []


class SavedGridStore:
    """保存済み grid のコレクション。

    Parameters
    ----------
    persistence : PersistenceAdapter
        永続化先。構築時に 1 回だけ読み込む。
    clock : Callable[[], int] | None
        epoch ミリ秒を返す関数。None なら実時計。
    id_factory : Callable[[int], str] | None
        timestamp から新しい id を作る関数。None なら `custom-<ms>-<random>`。
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        *,
        clock: Callable[[], int] | None = None,
        id_factory: Callable[[int], str] | None = None,
    ) -> None:
        self._persistence = persistence
        self._clock = _epoch_ms if clock is None else clock
        self._id_factory = _random_id if id_factory is None else id_factory
        self._issued_ids: set[str] = set()
        self._last_ts = 0
        self._grids: list[SavedGrid] = self._load()
        self._track(self._grids)

    # ------------------------------------------------------------------
    # 内部: ロード/保存/採番
    # ------------------------------------------------------------------

    def _load(self) -> list[SavedGrid]:
        text = self._persistence.read()
        if text is None:
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            _logger.warning("保存済み grid の読み込みに失敗（空で開始）: %s", exc)
            return []
        if not isinstance(data, dict):
            _logger.warning("保存済み grid の形式が不正（空で開始）: type=%s", type(data).__name__)
            return []

        if data.get("version") != STORAGE_VERSION:
            items = _migrate(data)
        else:
            raw = data.get("grids")
            items = list(raw) if isinstance(raw, list) else []

        out: list[SavedGrid] = []
        seen: set[str] = set()
        for i, item in enumerate(items):
            try:
                grid = decode_saved_grid(item, context=f"grids[{i}]")
            except ImportFormatError as exc:
                _logger.warning("不正な保存済み grid を読み飛ばす: %s", exc)
                continue
            if grid.id in seen:
                _logger.warning("重複した id の保存済み grid を読み飛ばす: id=%s", grid.id)
                continue
            seen.add(grid.id)
            out.append(grid)
        return out

    def _save(self) -> None:
        payload = {
            "version": STORAGE_VERSION,
            "grids": [encode_saved_grid(g) for g in self._grids],
            "lastUpdated": int(self._clock()),
        }
        self._persistence.write(json.dumps(payload, ensure_ascii=False))

    def _track(self, grids: list[SavedGrid]) -> None:
        for g in grids:
            self._issued_ids.add(g.id)
            self._last_ts = max(self._last_ts, g.created_at, g.updated_at)

    def _now(self) -> int:
        ts = int(self._clock())
        if ts <= self._last_ts:
            ts = self._last_ts + 1
        self._last_ts = ts
        return ts

    def _new_id(self, timestamp_ms: int) -> str:
        for _ in range(_ID_ATTEMPTS):
            candidate = str(self._id_factory(timestamp_ms))
            if candidate and candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate
        raise RuntimeError("一意な grid id を生成できませんでした（id_factory を確認してください）")

    def _index_of(self, grid_id: str) -> int | None:
        for i, g in enumerate(self._grids):
            if g.id == grid_id:
                return i
        return None

    # ------------------------------------------------------------------
    # 読み取り
    # ------------------------------------------------------------------

    def grids(self) -> tuple[SavedGrid, ...]:
        """現在のコレクションのスナップショットを挿入順で返す。"""

        return tuple(self._grids)

    def get(self, grid_id: str) -> SavedGrid | None:
        i = self._index_of(grid_id)
        return None if i is None else self._grids[i]

    def __contains__(self, grid_id: object) -> bool:
        return isinstance(grid_id, str) and self._index_of(grid_id) is not None

    def __len__(self) -> int:
        return len(self._grids)

    def count(self) -> int:
        return len(self._grids)

    def search(self, query: str) -> list[SavedGrid]:
        """name / description / tags の部分一致（大文字小文字無視）で絞り込む。

        空クエリは全件。並びは挿入順のまま。
        """

        return [
            g
            for g in self._grids
            if matches_query(query, name=g.name, description=g.description, tags=g.tags)
        ]

    # ------------------------------------------------------------------
    # 変更
    # ------------------------------------------------------------------

    def create(self, draft: GridDraft) -> SavedGrid:
        """draft から新しい SavedGrid を作り、末尾に追加して保存する。"""

        ts = self._now()
        grid = SavedGrid(
            id=self._new_id(ts),
            name=draft.name,
            description=draft.description,
            category=draft.category,
            config=draft.config,
            created_at=ts,
            updated_at=ts,
            tags=draft.tags,
            source=draft.source,
            detected_data=None if draft.detected_data is None else dict(draft.detected_data),
            aspect_ratio=draft.aspect_ratio,
        )
        self._grids.append(grid)
        self._save()
        return grid

    def update(
        self,
        grid_id: str,
        changes: Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> tuple[SavedGrid, ...]:
        """id のレコードに changes をマージし、updated_at を進めて保存する。

        Notes
        -----
        - id が無い場合は何もしない（直前に別操作で削除された場合を想定した no-op）。
        - 変更できないフィールド（id / created_at / updated_at）や未知のフィールド名は ValueError。
        """

        merged: dict[str, Any] = dict(changes or {})
        merged.update(fields)
        unknown = set(merged) - _UPDATABLE_FIELDS
        if unknown:
            names = ", ".join(sorted(unknown))
            raise ValueError(f"update できないフィールドです: {names}")

        i = self._index_of(grid_id)
        if i is None:
            _logger.debug("update: id が見つからないため何もしない: id=%s", grid_id)
            return self.grids()

        if merged.get("detected_data") is not None:
            merged["detected_data"] = dict(merged["detected_data"])
        self._grids[i] = replace(self._grids[i], **merged, updated_at=self._now())
        self._save()
        return self.grids()

    def delete(self, grid_id: str) -> tuple[SavedGrid, ...]:
        """id のレコードを削除する。存在しなければ何もしない（冪等）。"""

        i = self._index_of(grid_id)
        if i is None:
            _logger.debug("delete: id が見つからないため何もしない: id=%s", grid_id)
            return self.grids()
        del self._grids[i]
        self._save()
        return self.grids()

    def duplicate(self, grid_id: str) -> SavedGrid | None:
        """id のレコードを複製して末尾に追加する。元が無ければ None。

        複製は新しい id / timestamp を持ち、名前に ` (Copy)` を付ける。config は同じ値。
        """

        source = self.get(grid_id)
        if source is None:
            _logger.debug("duplicate: id が見つからないため何もしない: id=%s", grid_id)
            return None

        ts = self._now()
        copy = replace(
            source,
            id=self._new_id(ts),
            name=f"{source.name}{COPY_SUFFIX}",
            created_at=ts,
            updated_at=ts,
            detected_data=None if source.detected_data is None else dict(source.detected_data),
        )
        self._grids.append(copy)
        self._save()
        return copy

    def clear(self) -> None:
        """全件削除し、永続化先も消す。"""

        self._grids = []
        self._persistence.clear()

    # ------------------------------------------------------------------
    # export / import
    # ------------------------------------------------------------------

    def export_all(self) -> dict[str, Any]:
        """全件を書き出し形式の dict で返す。"""

        return {
            "type": EXPORT_DOCUMENT_TYPE,
            "version": EXPORT_VERSION,
            "exportedAt": _dt.datetime.now(_dt.timezone.utc).isoformat(),
            "grids": [encode_saved_grid(g) for g in self._grids],
        }

    def export_json(self) -> str:
        return json.dumps(self.export_all(), ensure_ascii=False, indent=2)

    def export_to_file(self, path: str | Path | None = None, *, run_id: str | None = None) -> Path:
        """書き出しファイルを保存してパスを返す。path が None なら `export_output_path()`。"""

        out = export_output_path(run_id=run_id) if path is None else Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        with out.open("w", encoding="utf-8", newline="\n") as f:
            f.write(self.export_json())
        return out

    @staticmethod
    def _decode_document(document: object) -> list[SavedGrid]:
        if not isinstance(document, Mapping):
            raise ImportFormatError("import ドキュメントは object である必要があります")
        doc_type = document.get("type")
        if doc_type != EXPORT_DOCUMENT_TYPE:
            raise ImportFormatError(f"未対応のファイル形式です: type={doc_type!r}")
        version = document.get("version")
        if version is None:
            raise ImportFormatError("version がありません")
        if (
            isinstance(version, bool)
            or not isinstance(version, int)
            or version not in SUPPORTED_IMPORT_VERSIONS
        ):
            raise ImportFormatError(f"未対応の version です: version={version!r}")
        raw = document.get("grids")
        if not isinstance(raw, list):
            raise ImportFormatError("grids 配列がありません")

        grids = [decode_saved_grid(item, context=f"grids[{i}]") for i, item in enumerate(raw)]
        seen: set[str] = set()
        for g in grids:
            if g.id in seen:
                raise ImportFormatError(f"grids に重複した id があります: id={g.id!r}")
            seen.add(g.id)
        return grids

    def import_from(
        self,
        document: Mapping[str, Any] | str | bytes,
        *,
        mode: ImportMode = "replace",
    ) -> ImportResult:
        """書き出し形式のドキュメントを取り込む。

        Parameters
        ----------
        document : Mapping | str | bytes
            `export_all()` の dict、またはその JSON テキスト。
        mode : {"replace", "merge"}
            `replace`: コレクションを丸ごと置き換える（id と並びを保持）。
            `merge`: 取り込んだレコードに新しい id を振り、既存の前に追加する。

        Notes
        -----
        失敗時（形式/version 不正、JSON 不正）はコレクションを変更せず、
        `success=False` と理由を返す。
        """

        if mode not in ("replace", "merge"):
            raise ValueError(f"未知の import mode です: got={mode!r}")

        if isinstance(document, (str, bytes)):
            try:
                document = json.loads(document)
            except json.JSONDecodeError as exc:
                return ImportResult(success=False, error=f"JSON として読めません: {exc.msg}")
            except UnicodeDecodeError as exc:
                return ImportResult(success=False, error=f"UTF-8 として読めません: {exc.reason}")

        try:
            imported = self._decode_document(document)
        except ImportFormatError as exc:
            _logger.info("import を拒否: %s", exc)
            return ImportResult(success=False, error=str(exc))

        if mode == "replace":
            self._grids = list(imported)
            self._track(self._grids)
        else:
            renamed = [replace(g, id=self._new_id(self._now())) for g in imported]
            self._track(renamed)
            self._grids = renamed + self._grids

        self._save()
        _logger.info("保存済み grid を import: mode=%s count=%d", mode, len(imported))
        return ImportResult(success=True, grids=self.grids(), count=len(imported))

    async def import_from_file(
        self,
        path: str | Path,
        *,
        mode: ImportMode = "replace",
    ) -> ImportResult:
        """ファイルを読み込んで `import_from()` する。

        ファイル読み取りの 1 回だけが await（中断点）になる。読み取りに失敗した場合は
        コレクションを変更せず `success=False` を返す。
        """

        p = Path(path)
        try:
            text = await asyncio.to_thread(p.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            _logger.info("import ファイルを読み込めません: path=%s err=%s", p, exc)
            return ImportResult(success=False, error=f"ファイルを読み込めません: {p}")
        return self.import_from(text, mode=mode)


__all__ = [
    "COPY_SUFFIX",
    "EXPORT_DOCUMENT_TYPE",
    "EXPORT_VERSION",
    "ImportMode",
    "ImportResult",
    "STORAGE_VERSION",
    "SUPPORTED_IMPORT_VERSIONS",
    "SavedGridStore",
]
