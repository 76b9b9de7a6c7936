# どこで: `src/teul/core/errors.py`。
# 何を: grid エンジン/ストアが送出する例外型を定義する。
# なぜ: 呼び出し側が「単位不正」「参照サイズ不正」「import 形式不正」を型で区別できるようにするため。

from __future__ import annotations


class InvalidUnitError(ValueError):
    """未知の単位タグが渡された（`percent` / `px` 以外）。

    単位は閉じた列挙なので、通常は発生しない。プログラミングエラーとして扱う。
    """


class InvalidReferenceSizeError(ValueError):
    """スケーリングの参照矩形が正でない。

    呼び出し側は未スケールの設定へフォールバックしてよい。
    """


class ImportFormatError(ValueError):
    """import ドキュメントの形式/バージョンが不正。"""


__all__ = [
    "ImportFormatError",
    "InvalidReferenceSizeError",
    "InvalidUnitError",
]
