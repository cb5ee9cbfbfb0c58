"""In-process collection of onboarding analytics events."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional


@dataclass(frozen=True)
class MetricsEvent:
    """A named analytics event and its payload."""

    name: str
    payload: Dict[str, object]

    @property
    def tutorial(self) -> Optional[str]:
        value = self.payload.get("tutorial")
        return str(value) if value else None


class MetricsExporter:
    """Buffers events and forwards each one to an optional sink."""

    def __init__(self, emitter: Optional[Callable[[MetricsEvent], None]] = None) -> None:
        self._events: List[MetricsEvent] = []
        self._emitter = emitter
        self._lock = threading.Lock()

    def record(self, name: str, payload: Optional[Dict[str, object]] = None) -> MetricsEvent:
        event = MetricsEvent(name=name, payload=dict(payload or {}))
        with self._lock:
            self._events.append(event)
        if self._emitter is not None:
            self._emitter(event)
        return event

    @property
    def events(self) -> List[MetricsEvent]:
        with self._lock:
            return list(self._events)

    def named(self, name: str) -> List[MetricsEvent]:
        return [event for event in self.events if event.name == name]

    def export_counts(self) -> Dict[str, int]:
        """Count events per ``name:tutorial`` key (or bare name without a tutorial)."""
        counts: Dict[str, int] = {}
        for event in self.events:
            key = f"{event.name}:{event.tutorial}" if event.tutorial else event.name
            counts[key] = counts.get(key, 0) + 1
        return counts

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


__all__ = ["MetricsEvent", "MetricsExporter"]
