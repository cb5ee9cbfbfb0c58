"""Analytics helpers for onboarding walkthrough engagement."""

from __future__ import annotations

from typing import Optional

from .metrics import MetricsExporter


class TutorialAnalytics:
    """Records walkthrough lifecycle events through a :class:`MetricsExporter`."""

    def __init__(self, exporter: Optional[MetricsExporter] = None) -> None:
        self._exporter = exporter or MetricsExporter()

    @property
    def exporter(self) -> MetricsExporter:
        return self._exporter

    def track_tutorial_start(self, tutorial_id: str) -> None:
        self._exporter.record("tutorial_started", {"tutorial": tutorial_id})

    def track_step_engaged(self, tutorial_id: str, step_id: str, index: int) -> None:
        self._exporter.record(
            "tutorial_step_engaged",
            {"tutorial": tutorial_id, "step": step_id, "index": index},
        )

    def track_step_completed(self, tutorial_id: str, step_id: str, *, interactive: bool) -> None:
        self._exporter.record(
            "tutorial_step_completed",
            {"tutorial": tutorial_id, "step": step_id, "interactive": interactive},
        )

    def track_tutorial_completed(self, tutorial_id: str, steps_completed: int) -> None:
        self._exporter.record(
            "tutorial_completed",
            {"tutorial": tutorial_id, "steps": steps_completed},
        )

    def track_tutorial_skipped(self, tutorial_id: str, step_id: str, index: int) -> None:
        self._exporter.record(
            "tutorial_skipped",
            {"tutorial": tutorial_id, "step": step_id, "index": index},
        )

    def track_tutorial_acknowledged(self, tutorial_id: str, *, skipped: bool) -> None:
        self._exporter.record(
            "tutorial_acknowledged",
            {"tutorial": tutorial_id, "skipped": skipped},
        )


__all__ = ["TutorialAnalytics"]
