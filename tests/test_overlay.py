from __future__ import annotations

import pytest

from calc_core.overlay import (
    MAX_SCALE,
    MIN_FIT_ZOOM,
    Rect,
    ViewState,
    clamp_translate,
    client_to_percent,
    drag_to_region,
    hotspot_style,
    pan,
    region_of,
    round2,
    wheel_zoom,
    zoom_to_rect,
)


def test_round2_half_up() -> None:
    assert round2(0.125) == 0.13
    assert round2(2.3451) == pytest.approx(2.35)
    assert round2(10) == 10


def test_client_to_percent_unzoomed() -> None:
    rect = Rect(left=100, top=50, width=800, height=400)
    assert client_to_percent(500, 250, rect) == (50.0, 50.0)


def test_client_to_percent_zoomed() -> None:
    # Container scaled 2x and panned by -100 natural pixels on x.
    rect = Rect(left=0, top=0, width=1600, height=800)
    x, y = client_to_percent(400, 400, rect, scale=2, translate_x=-100)
    assert x == pytest.approx(300 / 800 * 100)
    assert y == pytest.approx(50.0)


def test_drag_any_direction() -> None:
    assert drag_to_region((40, 30), (10, 10)) == {"x": 10, "y": 10, "width": 30, "height": 20}


def test_drag_clamps_and_rejects_tiny() -> None:
    assert drag_to_region((-5, 90), (20, 120)) == {"x": 0, "y": 90, "width": 20, "height": 10}
    assert drag_to_region((10, 10), (10.3, 40)) is None


def test_clamp_translate() -> None:
    assert clamp_translate(-50, -50, 1.0, 100, 100) == (0.0, 0.0)
    assert clamp_translate(10, -500, 2.0, 100, 100) == (0.0, -50.0)


def test_wheel_zoom() -> None:
    view = wheel_zoom(ViewState(2.0, -10.0, -10.0), 0, 0, -250, 100, 100)
    assert view.scale == pytest.approx(3.0)
    assert view.translate_x == pytest.approx(-15.0)
    assert view.translate_y == pytest.approx(-15.0)
    assert wheel_zoom(ViewState(MAX_SCALE), 10, 10, -100, 100, 100) == ViewState(MAX_SCALE)
    assert wheel_zoom(ViewState(), 50, 50, 100, 100, 100) == ViewState()


def test_pan_only_when_zoomed() -> None:
    assert pan(ViewState(), -20, -20, 100, 100) == ViewState()
    assert pan(ViewState(2.0), -20, -200, 100, 100) == ViewState(2.0, -10.0, -50.0)


def test_zoom_to_rect() -> None:
    view = zoom_to_rect({"x": 0, "y": 0, "width": 10, "height": 10}, 100, 100)
    assert view.scale == MAX_SCALE
    assert view == ViewState(MAX_SCALE, 0.0, 0.0)

    wide = zoom_to_rect({"x": 0, "y": 40, "width": 100, "height": 20}, 100, 100)
    assert wide.scale == MIN_FIT_ZOOM
    assert wide.translate_x == pytest.approx(100 / 3 - 50)
    assert wide.translate_y == pytest.approx(100 / 3 - 50)


def test_region_of() -> None:
    record = {"svg_x": 1, "svg_y": 2, "svg_width": 3, "svg_height": 4, "map_x": 1}
    assert region_of(record, "svg") == {"x": 1.0, "y": 2.0, "width": 3.0, "height": 4.0}
    assert region_of(record, "map") is None


def test_hotspot_style() -> None:
    style = hotspot_style({"x": 5, "y": 40, "width": 4, "height": 4}, "COMPLETE")
    assert style["z_index"] == 60
    assert style["tooltip_above"] is True
    assert style["dot"] == "#22c55e"
    top = hotspot_style({"x": 5, "y": 10, "width": 4, "height": 4}, None)
    assert top["tooltip_above"] is False
    assert top["dot"] == "#9ca3af"
