# どこで: `src/teul/storage/export_paths.py`。
# 何を: 保存済み grid の書き出しファイルのパスを決める。
# なぜ: 書き出し先ディレクトリ（config）と日付入りファイル名の規則を 1 箇所にまとめるため。

from __future__ import annotations

import datetime as _dt
import re
from pathlib import Path

from teul.core.runtime_config import export_root_dir

EXPORT_FILE_PREFIX = "teul-grids"


def _sanitize_run_id(run_id: str) -> str:
    """run_id をファイル名の一部として使える形に正規化して返す。"""

    return re.sub(r"[^A-Za-z0-9._-]+", "_", str(run_id))


def _run_id_suffix(run_id: str | None) -> str:
    """run_id の接尾辞（例: `_v1`）を返す。未指定/空なら空文字を返す。"""

    if run_id is None:
        return ""
    s = str(run_id).strip()
    if not s:
        return ""
    sanitized = _sanitize_run_id(s).strip("_")
    if not sanitized:
        return ""
    return f"_{sanitized}"


def export_file_name(day: _dt.date | None = None, *, run_id: str | None = None) -> str:
    """書き出しファイル名 `teul-grids-YYYY-MM-DD[_<run_id>].json` を返す。"""

    d = _dt.date.today() if day is None else day
    return f"{EXPORT_FILE_PREFIX}-{d.isoformat()}{_run_id_suffix(run_id)}.json"


def export_output_path(
    export_dir: str | Path | None = None,
    *,
    day: _dt.date | None = None,
    run_id: str | None = None,
) -> Path:
    """書き出しファイルのパスを返す。export_dir が None なら config の `paths.export_dir`。"""

    base = export_root_dir() if export_dir is None else Path(export_dir)
    return base / export_file_name(day, run_id=run_id)


__all__ = [
    "EXPORT_FILE_PREFIX",
    "export_file_name",
    "export_output_path",
]
