from __future__ import annotations

import pytest

from teul.core.errors import InvalidUnitError
from teul.core.units import (
    check_unit,
    from_pixels,
    percent_to_pixels,
    pixels_to_percent,
    resolve,
)


def test_resolve_percent_is_fraction_of_axis() -> None:
    assert resolve(8, "percent", 800) == pytest.approx(64.0)
    assert resolve(4, "percent", 800) == pytest.approx(32.0)
    assert resolve(0, "percent", 800) == 0.0


def test_resolve_px_passes_value_through() -> None:
    # 軸長が違っても px は暗黙にリスケールしない
    assert resolve(24, "px", 800) == 24.0
    assert resolve(24, "px", 1600) == 24.0
    assert resolve(24, "px", 0) == 24.0


def test_resolve_rejects_unknown_unit() -> None:
    with pytest.raises(InvalidUnitError):
        resolve(10, "em", 800)
    with pytest.raises(InvalidUnitError):
        check_unit(None)


def test_invalid_unit_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        check_unit("absolute")


def test_percent_pixel_conversions() -> None:
    assert percent_to_pixels(50, 300) == pytest.approx(150.0)
    assert pixels_to_percent(150, 300) == pytest.approx(50.0)
    assert pixels_to_percent(10, 0) == 0.0


def test_from_pixels_inverts_resolve() -> None:
    assert from_pixels(resolve(12.5, "percent", 640), "percent", 640) == pytest.approx(12.5)
    assert from_pixels(17.0, "px", 640) == 17.0
