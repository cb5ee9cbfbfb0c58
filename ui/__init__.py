"""Headless presentation helpers for the onboarding overlay."""

from .overlay import OverlayView, Point, SpotlightGeometry, build_overlay_view, primary_label
from .probe import ElementProbe, HeadlessPage, Rect

__all__ = [
    "ElementProbe",
    "HeadlessPage",
    "OverlayView",
    "Point",
    "Rect",
    "SpotlightGeometry",
    "build_overlay_view",
    "primary_label",
]
