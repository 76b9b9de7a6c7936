# どこで: `src/teul/core/runtime_config.py`。
# 何を: config.yaml による実行時設定（探索・ロード・キャッシュ）を提供する。
# なぜ: 保存先パスやスケール既定値をユーザーが指定できるようにするため。

"""実行時設定（`config.yaml`）の探索・ロード・キャッシュを担当する。

このモジュールは、以下を提供する:

- `config.yaml` を「同梱デフォルト → ユーザー設定（任意）」の順に適用して `RuntimeConfig` を構築
- 探索パス（CWD / HOME）と、明示指定（`set_config_path()`）の両方に対応
- 1 回ロードした結果をプロセス内でキャッシュ（設定を切り替える場合は `set_config_path()` で破棄）

入出力 / 副作用
----------------
- 入力: 同梱 `teul/resource/default_config.yaml`、任意でユーザーの `config.yaml`
- 出力: `RuntimeConfig`（不変データ）
- 副作用: ファイル読み取り、YAML パース、モジュールグローバルへのキャッシュ保存

実装メモ
--------
- ユーザー設定の適用は `dict.update()`（トップレベルの浅い上書き）で行う。
  ネストした mapping は「部分的にマージ」されず「丸ごと置換」される。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

_SUPPORTED_CONFIG_VERSION = 1


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """teul の実行時設定。

    Attributes
    ----------
    config_path:
        実際に採用されたユーザー設定ファイルのパス。無ければ None（同梱デフォルトのみ）。
    store_path:
        保存済み grid の JSON ファイル。
    export_dir:
        `SavedGridStore.export_to_file()` の既定の書き出し先。
    frame_base_width:
        preset からフレームを作るときの基準幅（px）。
    reference_size:
        参照サイズを持たない grid の作成矩形 (w, h)。
    preserve_proportions:
        選択フレームへ適用するときの既定のスケールモード。
    scale_tolerance_px:
        この差以下ならスケールしない（px）。
    """

    config_path: Path | None
    store_path: Path
    export_dir: Path
    frame_base_width: int
    reference_size: tuple[float, float]
    preserve_proportions: bool
    scale_tolerance_px: float


# `set_config_path()` で指定される「明示 config」のパス。
_EXPLICIT_CONFIG_PATH: Path | None = None
# `runtime_config()` のプロセス内キャッシュ。設定を切り替える場合は破棄する。
_CONFIG_CACHE: RuntimeConfig | None = None


def set_config_path(path: str | Path | None) -> None:
    """以降の設定探索で使う明示 config パスを設定する。

    Notes
    -----
    - `path` を None にすると明示指定を解除し、既定の探索に戻る。
    - 設定が変わるため、`runtime_config()` のキャッシュを破棄する。
    """

    global _EXPLICIT_CONFIG_PATH, _CONFIG_CACHE
    _EXPLICIT_CONFIG_PATH = None if path is None else Path(str(path)).expanduser()
    _CONFIG_CACHE = None


def _default_config_candidates() -> tuple[Path, ...]:
    """既定の `config.yaml` 探索候補を返す（先勝ち）。"""

    return (
        Path.cwd() / ".teul" / "config.yaml",
        Path.home() / ".config" / "teul" / "config.yaml",
    )


def _expand_path_text(text: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(str(text))))


def _as_mapping(value: Any, *, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    raise RuntimeError(f"{key} は mapping である必要があります: got={value!r}")


def _as_path(value: Any, *, key: str) -> Path:
    if value is None or not str(value).strip():
        raise RuntimeError(f"{key} が未設定です（同梱 default_config.yaml を確認してください）")
    return _expand_path_text(str(value).strip())


def _as_float(value: Any, *, key: str) -> float:
    if value is None:
        raise RuntimeError(f"{key} が未設定です（同梱 default_config.yaml を確認してください）")
    try:
        return float(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は数値である必要があります: got={value!r}") from exc


def _as_bool(value: Any, *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and int(value) in (0, 1):
        return bool(int(value))
    raise RuntimeError(f"{key} は bool である必要があります: got={value!r}")


def _as_float_pair(value: Any, *, key: str) -> tuple[float, float]:
    try:
        seq = list(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は [w, h] の配列である必要があります: got={value!r}") from exc
    if len(seq) != 2:
        raise RuntimeError(f"{key} は [w, h] の配列である必要があります: got={value!r}")
    try:
        return (float(seq[0]), float(seq[1]))
    except Exception as exc:
        raise RuntimeError(f"{key} は [w, h] の数値配列である必要があります: got={value!r}") from exc


def _load_yaml_text(text: str, *, source: str) -> dict[str, Any]:
    """YAML テキストを読み、トップレベル mapping を dict として返す。空なら `{}`。"""

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"config.yaml の読み込みに失敗しました: source={source}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"config.yaml は mapping である必要があります: source={source}")
    return dict(data)


def _load_yaml_config(path: Path) -> dict[str, Any]:
    return _load_yaml_text(path.read_text(encoding="utf-8"), source=str(path))


def _load_packaged_default_config() -> dict[str, Any]:
    """同梱 default_config.yaml をロードして dict を返す。"""

    blob = (
        resources.files("teul")
        .joinpath("resource")
        .joinpath("default_config.yaml")
        .read_text(encoding="utf-8")
    )
    return _load_yaml_text(blob, source="teul/resource/default_config.yaml")


def runtime_config() -> RuntimeConfig:
    """実行時設定を返す（プロセス内キャッシュ）。

    適用順（後勝ち、トップレベルの浅い上書き）:

    1) 同梱 `teul/resource/default_config.yaml`
    2) 探索で見つかった `config.yaml`（任意）
    3) `set_config_path()` で明示指定された `config.yaml`（任意）

    Raises
    ------
    FileNotFoundError
        明示指定された config が存在しない場合。
    RuntimeError
        version や値の型が不正な場合。
    """

    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    explicit_path = _EXPLICIT_CONFIG_PATH
    if explicit_path is not None and not explicit_path.is_file():
        raise FileNotFoundError(f"config.yaml が見つかりません: {explicit_path}")

    discovered_path: Path | None = None
    for candidate in _default_config_candidates():
        if candidate.is_file():
            discovered_path = candidate
            break

    payload = _load_packaged_default_config()
    if discovered_path is not None:
        payload.update(_load_yaml_config(discovered_path))
    if explicit_path is not None:
        payload.update(_load_yaml_config(explicit_path))

    version = payload.get("version")
    if version is None:
        raise RuntimeError("config.yaml の version が未設定です")
    try:
        version_i = int(version)
    except Exception as exc:
        raise RuntimeError(f"config.yaml の version は整数である必要があります: got={version!r}") from exc
    if version_i != _SUPPORTED_CONFIG_VERSION:
        raise RuntimeError(f"未対応の config.yaml version です: got={version_i}")

    paths = _as_mapping(payload.get("paths"), key="paths")
    frame = _as_mapping(payload.get("frame"), key="frame")
    scaling = _as_mapping(payload.get("scaling"), key="scaling")

    base_width = _as_float(frame.get("base_width"), key="frame.base_width")
    if base_width <= 0:
        raise ValueError(f"frame.base_width は正である必要があります: got={base_width}")
    if frame.get("reference_size") is None:
        raise RuntimeError("frame.reference_size が未設定です（同梱 default_config.yaml を確認してください）")
    reference_size = _as_float_pair(frame.get("reference_size"), key="frame.reference_size")
    if reference_size[0] <= 0 or reference_size[1] <= 0:
        raise ValueError(f"frame.reference_size は正である必要があります: got={reference_size}")

    tolerance = _as_float(scaling.get("tolerance_px"), key="scaling.tolerance_px")
    if tolerance < 0:
        raise ValueError(f"scaling.tolerance_px は 0 以上である必要があります: got={tolerance}")

    cfg = RuntimeConfig(
        config_path=explicit_path or discovered_path,
        store_path=_as_path(paths.get("store_path"), key="paths.store_path"),
        export_dir=_as_path(paths.get("export_dir"), key="paths.export_dir"),
        frame_base_width=int(base_width),
        reference_size=reference_size,
        preserve_proportions=_as_bool(
            scaling.get("preserve_proportions"), key="scaling.preserve_proportions"
        ),
        scale_tolerance_px=float(tolerance),
    )
    _CONFIG_CACHE = cfg
    return cfg


def default_store_path() -> Path:
    """保存済み grid の既定ファイルパスを返す（`runtime_config().store_path`）。"""

    return Path(runtime_config().store_path)


def export_root_dir() -> Path:
    """書き出しファイルの既定ディレクトリを返す（`runtime_config().export_dir`）。"""

    return Path(runtime_config().export_dir)


__all__ = [
    "RuntimeConfig",
    "default_store_path",
    "export_root_dir",
    "runtime_config",
    "set_config_path",
]
