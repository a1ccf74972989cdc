"""
Overlay geometry for the panel photo.

All regions are stored as percentages of the untransformed image
(0..100 on both axes), so they survive any display size. The view may be
zoomed (scale 1..5) and panned (translate in natural pixels, <= 0).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

MIN_SCALE = 1.0
MAX_SCALE = 5.0
ZOOM_SENSITIVITY = 0.002
ZOOM_PADDING = 1.4
MIN_FIT_ZOOM = 1.5
MIN_REGION_PCT = 0.5
TOOLTIP_FLIP_Y = 15

STATUS_COLORS = {
    "NOT_ONBOARDED": {"border": "rgba(156,163,175,0.5)", "bg": "rgba(156,163,175,0.1)", "dot": "#d1d5db"},
    "PLANNED": {"border": "rgba(148,163,184,0.5)", "bg": "rgba(148,163,184,0.1)", "dot": "#94a3b8"},
    "IN_PROGRESS": {"border": "rgba(251,191,36,0.5)", "bg": "rgba(251,191,36,0.1)", "dot": "#fbbf24"},
    "COMPLETE": {"border": "rgba(34,197,94,0.5)", "bg": "rgba(34,197,94,0.1)", "dot": "#22c55e"},
    "HAS_ISSUES": {"border": "rgba(239,68,68,0.5)", "bg": "rgba(239,68,68,0.1)", "dot": "#ef4444"},
}
DEFAULT_COLORS = {"border": "rgba(96,165,250,0.5)", "bg": "rgba(96,165,250,0.1)", "dot": "#9ca3af"}


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class ViewState:
    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0


def round2(value: float) -> float:
    """Half-up rounding to 2 decimals."""
    return math.floor(value * 100 + 0.5) / 100


def client_to_percent(
    client_x: float,
    client_y: float,
    rect: Rect,
    scale: float = 1.0,
    translate_x: float = 0.0,
    translate_y: float = 0.0,
) -> tuple[float, float]:
    """Screen point -> percent of the untransformed image.

    `rect` is the on-screen box of the transformed container, so it already
    includes the zoom; the width/height are divided back by `scale`.
    """
    adjusted_x = (client_x - rect.left) / scale - translate_x
    adjusted_y = (client_y - rect.top) / scale - translate_y
    natural_w = rect.width / scale
    natural_h = rect.height / scale
    if natural_w <= 0 or natural_h <= 0:
        return 0.0, 0.0
    return adjusted_x / natural_w * 100, adjusted_y / natural_h * 100


def _clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, value))


def drag_to_region(start: tuple[float, float], end: tuple[float, float]) -> dict[str, float] | None:
    """Normalize a drag (any direction) into {x, y, width, height}; None if too small."""
    x0, y0 = _clamp_pct(start[0]), _clamp_pct(start[1])
    x1, y1 = _clamp_pct(end[0]), _clamp_pct(end[1])
    x, y = min(x0, x1), min(y0, y1)
    w, h = abs(x1 - x0), abs(y1 - y0)
    if w < MIN_REGION_PCT or h < MIN_REGION_PCT:
        return None
    return {"x": round2(x), "y": round2(y), "width": round2(w), "height": round2(h)}


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))


def clamp_translate(
    translate_x: float, translate_y: float, scale: float, width: float, height: float
) -> tuple[float, float]:
    if scale <= 1:
        return 0.0, 0.0
    max_tx = width * (scale - 1) / scale
    max_ty = height * (scale - 1) / scale
    return max(-max_tx, min(0.0, translate_x)), max(-max_ty, min(0.0, translate_y))


def wheel_zoom(
    view: ViewState, cursor_x: float, cursor_y: float, delta_y: float, width: float, height: float
) -> ViewState:
    """Zoom around the cursor (container-relative pixels); the point under it stays put."""
    new_scale = clamp_scale(view.scale * (1 - delta_y * ZOOM_SENSITIVITY))
    if new_scale == view.scale:
        return view
    factor = new_scale / view.scale
    tx = cursor_x / view.scale - cursor_x / new_scale + view.translate_x * factor
    ty = cursor_y / view.scale - cursor_y / new_scale + view.translate_y * factor
    tx, ty = clamp_translate(tx, ty, new_scale, width, height)
    return ViewState(new_scale, tx, ty)


def pan(view: ViewState, dx: float, dy: float, width: float, height: float) -> ViewState:
    if view.scale <= 1:
        return view
    tx, ty = clamp_translate(
        view.translate_x + dx / view.scale, view.translate_y + dy / view.scale, view.scale, width, height
    )
    return ViewState(view.scale, tx, ty)


def zoom_to_rect(
    region: Mapping[str, float],
    content_w: float,
    content_h: float,
    view_w: float | None = None,
    view_h: float | None = None,
) -> ViewState:
    """Fit a percent region into the viewport with padding, at least MIN_FIT_ZOOM."""
    view_w = content_w if view_w is None else view_w
    view_h = content_h if view_h is None else view_h
    sec_w = region["width"] / 100 * content_w
    sec_h = region["height"] / 100 * content_h
    center_x = (region["x"] + region["width"] / 2) / 100 * content_w
    center_y = (region["y"] + region["height"] / 2) / 100 * content_h
    if sec_w <= 0 or sec_h <= 0:
        fit = MAX_SCALE
    else:
        fit = min(view_w / (sec_w * ZOOM_PADDING), view_h / (sec_h * ZOOM_PADDING))
    scale = max(MIN_FIT_ZOOM, min(MAX_SCALE, fit))
    tx = content_w / (2 * scale) - center_x
    ty = content_h / (2 * scale) - center_y
    tx, ty = clamp_translate(tx, ty, scale, view_w, view_h)
    return ViewState(scale, tx, ty)


def region_of(record: Mapping[str, Any], prefix: str) -> dict[str, float] | None:
    """Read a stored region (`map_*` on instances, `svg_*` on sections); None unless complete."""
    keys = ("x", "y", "width", "height")
    values = [record.get(f"{prefix}_{k}") for k in keys]
    if any(v is None for v in values):
        return None
    return {k: float(v) for k, v in zip(keys, values)}


def hotspot_style(region: Mapping[str, float], build_status: str | None) -> dict[str, Any]:
    colors = STATUS_COLORS.get(build_status or "", DEFAULT_COLORS)
    return {
        "left": region["x"],
        "top": region["y"],
        "width": region["width"],
        "height": region["height"],
        "z_index": math.floor(100 - region["y"] + 0.5),
        "tooltip_above": region["y"] > TOOLTIP_FLIP_Y,
        "border": colors["border"],
        "background": colors["bg"],
        "dot": colors["dot"],
    }
