"""GridConfig / SavedGrid の JSON codec（`teul.core.codec`）のテスト。"""

from __future__ import annotations

import json

import pytest

from teul.core.codec import (
    decode_grid_config,
    decode_saved_grid,
    encode_grid_config,
    encode_saved_grid,
)
from teul.core.errors import ImportFormatError
from teul.core.grid_config import (
    DEFAULT_BASELINE_COLOR,
    BaselineGridConfig,
    ColumnGridConfig,
    GridColor,
    GridConfig,
    RowGridConfig,
)
from teul.core.records import SavedGrid


def _saved_grid() -> SavedGrid:
    return SavedGrid(
        id="custom-1-abc",
        name="Swiss 12",
        description="12 columns",
        category="custom",
        config=GridConfig(
            columns=ColumnGridConfig(
                count=12, margin=5, margin_unit="percent", gutter_size=16, color=GridColor(10, 20, 30, 0.5)
            ),
            baseline=BaselineGridConfig(height=8, offset=2),
        ),
        created_at=1000,
        updated_at=2000,
        tags=("swiss", "poster"),
        source="Swiss Poster",
        detected_data={"confidence": 0.9},
        aspect_ratio="1:√2",
    )


def test_encode_saved_grid_uses_camel_case_keys() -> None:
    data = encode_saved_grid(_saved_grid())

    assert data["createdAt"] == 1000
    assert data["updatedAt"] == 2000
    assert data["aspectRatio"] == "1:√2"
    assert data["detectedData"] == {"confidence": 0.9}
    assert data["tags"] == ["swiss", "poster"]
    cols = data["config"]["columns"]
    assert cols["marginUnit"] == "percent"
    assert cols["gutterSize"] == 16.0
    assert cols["color"] == {"r": 10.0, "g": 20.0, "b": 30.0, "a": 0.5}
    assert "rows" not in data["config"]
    # JSON 化できること
    json.dumps(data)


def test_encode_omits_absent_optional_fields() -> None:
    grid = SavedGrid(
        id="x",
        name="x",
        description="",
        category="custom",
        config=GridConfig(),
        created_at=1,
        updated_at=1,
    )
    data = encode_saved_grid(grid)
    assert "source" not in data
    assert "detectedData" not in data
    assert "aspectRatio" not in data
    assert data["config"] == {}


def test_decode_restores_saved_grid() -> None:
    grid = _saved_grid()
    restored = decode_saved_grid(json.loads(json.dumps(encode_saved_grid(grid))))
    assert restored == grid


def test_decode_grid_config_fills_defaults() -> None:
    cfg = decode_grid_config(
        {
            "rows": {"count": 4},
            "baseline": {"height": 6},
            "unknownKey": True,
        }
    )
    assert cfg.rows == RowGridConfig(count=4)
    assert cfg.baseline is not None
    assert cfg.baseline.offset == 0.0
    assert cfg.baseline.color == DEFAULT_BASELINE_COLOR
    assert cfg.columns is None


def test_decode_saved_grid_without_updated_at() -> None:
    data = encode_saved_grid(_saved_grid())
    del data["updatedAt"]
    assert decode_saved_grid(data).updated_at == 1000


@pytest.mark.parametrize(
    ("patch", "needle"),
    [
        ({"id": ""}, "grid.id"),
        ({"name": 3}, "grid.name"),
        ({"tags": "swiss"}, "grid.tags"),
        ({"createdAt": "yesterday"}, "grid.createdAt"),
        ({"config": []}, "grid.config"),
        ({"config": {"columns": {"count": True}}}, "grid.config.columns.count"),
        ({"config": {"columns": {"count": 3, "marginUnit": "em"}}}, "grid.config.columns"),
        ({"config": {"baseline": {"height": 0}}}, "grid.config.baseline"),
        ({"config": {"rows": {"count": 2, "color": {"r": 300, "g": 0, "b": 0}}}}, "grid.config.rows.color"),
    ],
)
def test_decode_errors_name_the_field(patch: dict, needle: str) -> None:
    data = encode_saved_grid(_saved_grid())
    data.update(patch)
    with pytest.raises(ImportFormatError) as excinfo:
        decode_saved_grid(data)
    assert needle in str(excinfo.value)


def test_decode_requires_config_and_created_at() -> None:
    data = encode_saved_grid(_saved_grid())
    del data["config"]
    with pytest.raises(ImportFormatError):
        decode_saved_grid(data)

    data = encode_saved_grid(_saved_grid())
    del data["createdAt"]
    with pytest.raises(ImportFormatError):
        decode_saved_grid(data)


def test_encode_grid_config_roundtrip_through_json() -> None:
    cfg = _saved_grid().config
    assert decode_grid_config(json.loads(json.dumps(encode_grid_config(cfg)))) == cfg
