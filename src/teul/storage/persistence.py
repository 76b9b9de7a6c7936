# どこで: `src/teul/storage/persistence.py`。
# 何を: 保存済み grid ストアの永続化先（read / write / clear）を抽象化し、メモリ実装とファイル実装を提供する。
# なぜ: ストアを永続化先から切り離し、テストではメモリ実装に差し替えられるようにするため。

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol


class PersistenceAdapter(Protocol):
    """ストアの永続化先。テキスト（JSON）をそのまま読み書きする。"""

    def read(self) -> str | None:
        """保存済みテキストを返す。未保存なら None。"""
        ...

    def write(self, text: str) -> None: ...

    def clear(self) -> None: ...


class MemoryPersistence:
    """プロセス内メモリに保持する永続化先。"""

    def __init__(self, text: str | None = None) -> None:
        self.text = text
        self.writes = 0

    def read(self) -> str | None:
        return self.text

    def write(self, text: str) -> None:
        self.text = str(text)
        self.writes += 1

    def clear(self) -> None:
        self.text = None


class JsonFilePersistence:
    """UTF-8 の JSON ファイルに保存する永続化先。

    Notes
    -----
    - 書き込みは同じディレクトリの一時ファイルへ書いてから `os.replace()` で置き換える。
    - 親ディレクトリは書き込み時に作成する。
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def read(self) -> str | None:
        if not self.path.is_file():
            return None
        return self.path.read_text(encoding="utf-8")

    def write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(str(text))
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


__all__ = [
    "JsonFilePersistence",
    "MemoryPersistence",
    "PersistenceAdapter",
]
