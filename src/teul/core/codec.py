# どこで: `src/teul/core/codec.py`。
# 何を: GridConfig / SavedGrid の JSON encode/decode を提供する。
# なぜ: 永続化/書き出しのスキーマを値型から分離し、スキーマ変更の影響範囲を局所化するため。

"""GridConfig / SavedGrid の JSON codec。

値型（`teul.core.grid_config` / `teul.core.records`）を JSON 化可能な dict に変換し、
その逆（JSON デコード結果から値型を復元）も提供する。

読み方（入口）
---------------
- `encode_grid_config()` / `encode_saved_grid()`: 保存側（値 -> dict）
- `decode_grid_config()` / `decode_saved_grid()`: 復元側（dict -> 値）

Notes
-----
- キーは camelCase（`gutterSize`, `marginUnit`, `createdAt` など）。書き出しファイルの互換のため。
- 色は r/g/b を 0..255、a を 0..1 で保存する。
- decode は未知キーを無視する。必須キーの欠落や値の不正は `ImportFormatError` にする。
  メッセージにはどのフィールドで失敗したかを含める。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .errors import ImportFormatError
from .grid_config import (
    DEFAULT_BASELINE_COLOR,
    DEFAULT_COLUMN_COLOR,
    DEFAULT_ROW_COLOR,
    BaselineGridConfig,
    ColumnGridConfig,
    GridColor,
    GridConfig,
    RowGridConfig,
)
from .records import DEFAULT_SAVED_CATEGORY, SavedGrid


def encode_color(color: GridColor) -> dict[str, float]:
    return {"r": color.r, "g": color.g, "b": color.b, "a": color.a}


def _encode_axis(config: ColumnGridConfig | RowGridConfig) -> dict[str, Any]:
    return {
        "count": config.count,
        "margin": config.margin,
        "marginUnit": config.margin_unit,
        "gutterSize": config.gutter_size,
        "gutterUnit": config.gutter_unit,
        "alignment": config.alignment,
        "visible": config.visible,
        "color": encode_color(config.color),
    }


def encode_grid_config(config: GridConfig) -> dict[str, Any]:
    """GridConfig を JSON 化可能な dict に変換して返す。None のサブ grid はキーごと省く。"""

    out: dict[str, Any] = {}
    if config.columns is not None:
        out["columns"] = _encode_axis(config.columns)
    if config.rows is not None:
        out["rows"] = _encode_axis(config.rows)
    if config.baseline is not None:
        out["baseline"] = {
            "height": config.baseline.height,
            "offset": config.baseline.offset,
            "visible": config.baseline.visible,
            "color": encode_color(config.baseline.color),
        }
    return out


def encode_saved_grid(grid: SavedGrid) -> dict[str, Any]:
    """SavedGrid を JSON 化可能な dict に変換して返す。None の任意フィールドは省く。"""

    out: dict[str, Any] = {
        "id": grid.id,
        "name": grid.name,
        "description": grid.description,
        "category": grid.category,
        "tags": list(grid.tags),
        "config": encode_grid_config(grid.config),
        "createdAt": grid.created_at,
        "updatedAt": grid.updated_at,
    }
    if grid.source is not None:
        out["source"] = grid.source
    if grid.detected_data is not None:
        out["detectedData"] = dict(grid.detected_data)
    if grid.aspect_ratio is not None:
        out["aspectRatio"] = grid.aspect_ratio
    return out


def _require_mapping(obj: object, *, context: str) -> Mapping[str, Any]:
    if not isinstance(obj, Mapping):
        raise ImportFormatError(f"{context} は object である必要があります: got={type(obj).__name__}")
    return obj


def _require(obj: Mapping[str, Any], key: str, *, context: str) -> Any:
    if key not in obj:
        raise ImportFormatError(f"{context}.{key} がありません")
    return obj[key]


def _as_number(value: Any, *, context: str) -> float:
    # bool は int の subclass だが、数値として受けると事故りやすいので除外する。
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ImportFormatError(f"{context} は数値である必要があります: got={value!r}")
    return float(value)


def decode_color(obj: object, *, context: str, default: GridColor) -> GridColor:
    """色 dict を GridColor に復元する。obj が None なら default を返す。"""

    if obj is None:
        return default
    m = _require_mapping(obj, context=context)
    try:
        return GridColor(
            r=_as_number(_require(m, "r", context=context), context=f"{context}.r"),
            g=_as_number(_require(m, "g", context=context), context=f"{context}.g"),
            b=_as_number(_require(m, "b", context=context), context=f"{context}.b"),
            a=_as_number(m.get("a", 1.0), context=f"{context}.a"),
        )
    except ImportFormatError:
        raise
    except ValueError as exc:
        raise ImportFormatError(f"{context} が不正です: {exc}") from exc


def _decode_axis(
    obj: object,
    *,
    cls: type[ColumnGridConfig] | type[RowGridConfig],
    context: str,
    default_color: GridColor,
) -> ColumnGridConfig | RowGridConfig:
    m = _require_mapping(obj, context=context)
    count = _require(m, "count", context=context)
    if isinstance(count, bool) or not isinstance(count, int):
        raise ImportFormatError(f"{context}.count は整数である必要があります: got={count!r}")
    try:
        return cls(
            count=count,
            margin=_as_number(m.get("margin", 0.0), context=f"{context}.margin"),
            margin_unit=str(m.get("marginUnit", "px")),
            gutter_size=_as_number(m.get("gutterSize", 0.0), context=f"{context}.gutterSize"),
            gutter_unit=str(m.get("gutterUnit", "px")),
            color=decode_color(m.get("color"), context=f"{context}.color", default=default_color),
            alignment=str(m.get("alignment", "STRETCH")),
            visible=bool(m.get("visible", True)),
        )
    except ImportFormatError:
        raise
    except ValueError as exc:
        raise ImportFormatError(f"{context} が不正です: {exc}") from exc


def decode_grid_config(obj: object, *, context: str = "config") -> GridConfig:
    """dict から GridConfig を復元して返す。

    Raises
    ------
    ImportFormatError
        obj が dict でない、または各サブ grid の値が不正な場合。
    """

    m = _require_mapping(obj, context=context)

    columns = None
    if m.get("columns") is not None:
        columns = _decode_axis(
            m["columns"],
            cls=ColumnGridConfig,
            context=f"{context}.columns",
            default_color=DEFAULT_COLUMN_COLOR,
        )

    rows = None
    if m.get("rows") is not None:
        rows = _decode_axis(
            m["rows"],
            cls=RowGridConfig,
            context=f"{context}.rows",
            default_color=DEFAULT_ROW_COLOR,
        )

    baseline = None
    if m.get("baseline") is not None:
        ctx = f"{context}.baseline"
        b = _require_mapping(m["baseline"], context=ctx)
        try:
            baseline = BaselineGridConfig(
                height=_as_number(_require(b, "height", context=ctx), context=f"{ctx}.height"),
                offset=_as_number(b.get("offset", 0.0), context=f"{ctx}.offset"),
                color=decode_color(b.get("color"), context=f"{ctx}.color", default=DEFAULT_BASELINE_COLOR),
                visible=bool(b.get("visible", True)),
            )
        except ImportFormatError:
            raise
        except ValueError as exc:
            raise ImportFormatError(f"{ctx} が不正です: {exc}") from exc

    return GridConfig(columns=columns, rows=rows, baseline=baseline)  # type: ignore[arg-type]


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _as_timestamp(value: Any, *, context: str) -> int:
    return int(_as_number(value, context=context))


def decode_saved_grid(obj: object, *, context: str = "grid") -> SavedGrid:
    """dict から SavedGrid を復元して返す。

    Notes
    -----
    - `updatedAt` が無い古いレコードは `createdAt` で補う。
    - `tags` は list 以外なら不正として扱う。
    """

    m = _require_mapping(obj, context=context)

    grid_id = _require(m, "id", context=context)
    if not isinstance(grid_id, str) or not grid_id:
        raise ImportFormatError(f"{context}.id は空でない文字列である必要があります: got={grid_id!r}")
    name = _require(m, "name", context=context)
    if not isinstance(name, str):
        raise ImportFormatError(f"{context}.name は文字列である必要があります: got={name!r}")

    tags = m.get("tags", [])
    if not isinstance(tags, list):
        raise ImportFormatError(f"{context}.tags は配列である必要があります: got={tags!r}")

    detected = m.get("detectedData")
    if detected is not None and not isinstance(detected, Mapping):
        raise ImportFormatError(f"{context}.detectedData は object である必要があります")

    created_at = _as_timestamp(_require(m, "createdAt", context=context), context=f"{context}.createdAt")
    updated_raw = m.get("updatedAt")
    updated_at = (
        created_at
        if updated_raw is None
        else _as_timestamp(updated_raw, context=f"{context}.updatedAt")
    )

    return SavedGrid(
        id=grid_id,
        name=name,
        description=str(m.get("description", "")),
        category=str(m.get("category", DEFAULT_SAVED_CATEGORY)),
        config=decode_grid_config(_require(m, "config", context=context), context=f"{context}.config"),
        created_at=created_at,
        updated_at=updated_at,
        tags=tuple(str(t) for t in tags),
        source=_optional_str(m.get("source")),
        detected_data=None if detected is None else dict(detected),
        aspect_ratio=_optional_str(m.get("aspectRatio")),
    )


__all__ = [
    "decode_color",
    "decode_grid_config",
    "decode_saved_grid",
    "encode_color",
    "encode_grid_config",
    "encode_saved_grid",
]
