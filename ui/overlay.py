from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config import get_settings
from tutorial.engine import SequencerState
from tutorial.script import TutorialScript, TutorialStep

from .probe import Rect


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class SpotlightGeometry:
    padding: float = 12
    pointer_offset_x: float = 60
    pointer_offset_y: float = 25
    caption_gap: float = 24

    @classmethod
    def from_settings(cls) -> "SpotlightGeometry":
        settings = get_settings().get("spotlight", {})
        offset = settings.get("pointerOffset", {})
        return cls(
            padding=settings.get("padding", cls.padding),
            pointer_offset_x=offset.get("x", cls.pointer_offset_x),
            pointer_offset_y=offset.get("y", cls.pointer_offset_y),
            caption_gap=settings.get("captionGap", cls.caption_gap),
        )

    def spotlight(self, target: Rect) -> Rect:
        return target.expand(self.padding)

    def pointer(self, target: Rect) -> Point:
        return Point(target.x - self.pointer_offset_x, target.y + target.height / 2 - self.pointer_offset_y)

    def caption(self, target: Rect) -> Point:
        return Point(target.x + target.width / 2, target.bottom + self.caption_gap)


@dataclass
class OverlayView:
    """Everything the presentation layer needs to draw the tutorial overlay."""

    mode: str
    title: str = ""
    description: str = ""
    detail: str = ""
    primary_label: str = ""
    progress: List[bool] = field(default_factory=list)
    spotlight: Optional[Rect] = None
    pointer: Optional[Point] = None
    caption: Optional[Point] = None
    completion: Dict[str, str] = field(default_factory=dict)


def primary_label(step: TutorialStep, index: int, step_count: int) -> str:
    if step.interactive:
        return "Entendido"
    if index < step_count - 1:
        return "Siguiente"
    return "Finalizar"


def build_overlay_view(
    script: TutorialScript,
    state: SequencerState,
    target: Optional[Rect] = None,
    geometry: Optional[SpotlightGeometry] = None,
) -> OverlayView:
    if not state.started or state.closed:
        return OverlayView(mode="hidden")
    if state.finished:
        completion = dict(script.completion)
        return OverlayView(
            mode="final",
            title=completion.get("title", ""),
            description=completion.get("subtitle", ""),
            primary_label=completion.get("button", ""),
            completion=completion,
        )

    step = script.steps[state.current_index]
    progress = [index <= state.current_index for index in range(len(script))]
    if not state.awaiting_action:
        return OverlayView(
            mode="card",
            title=step.title,
            description=step.description,
            detail=step.detail,
            primary_label=primary_label(step, state.current_index, len(script)),
            progress=progress,
        )

    geometry = geometry or SpotlightGeometry.from_settings()
    view = OverlayView(mode="spotlight", description=step.description, progress=progress)
    if target is not None:
        view.spotlight = geometry.spotlight(target)
        view.pointer = geometry.pointer(target)
        view.caption = geometry.caption(target)
    return view


__all__ = ["OverlayView", "Point", "SpotlightGeometry", "build_overlay_view", "primary_label"]
