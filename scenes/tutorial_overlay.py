"""Host-side controller that wires the tutorial sequencer to the page."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from config import TutorialTimings, configure_logging, get_settings, get_tutorial_timings
from storage import OnboardingFlagStore
from tutorial.engine import SequencerEvent, TutorialSequencer
from tutorial.timers import Scheduler, ThreadingScheduler, TimerHandle
from tutorial.validation import listener_events, validate_action
from ui.overlay import OverlayView, SpotlightGeometry, build_overlay_view
from ui.probe import ElementProbe, Rect

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]

_REBIND_EVENTS = frozenset({"started", "advanced", "armed"})
_TEARDOWN_EVENTS = frozenset({"finished", "skipped", "completed"})


@dataclass(frozen=True)
class ListenerBinding:
    """Event listeners attached to the current step's target element."""

    element_id: str
    action: str
    events: Tuple[str, ...]
    wait_for_target: bool

    def matches(self, event: str, element_id: str) -> bool:
        return element_id == self.element_id and event in self.events


class TutorialOverlayScene:
    """Owns polling, listener binding, skip confirmation and persistence."""

    def __init__(
        self,
        probe: ElementProbe,
        *,
        sequencer: Optional[TutorialSequencer] = None,
        scheduler: Optional[Scheduler] = None,
        flag_store: Optional[OnboardingFlagStore] = None,
        timings: Optional[TutorialTimings] = None,
        geometry: Optional[SpotlightGeometry] = None,
        confirm: Optional[Confirm] = None,
        on_ready: Optional[Callable[[str], None]] = None,
    ) -> None:
        configure_logging()
        self.probe = probe
        self.scheduler = scheduler or ThreadingScheduler()
        self.sequencer = sequencer or TutorialSequencer.from_script_id(scheduler=self.scheduler)
        self.flag_store = flag_store or OnboardingFlagStore()
        self.timings = timings or get_tutorial_timings()
        self.geometry = geometry or SpotlightGeometry.from_settings()
        self.skip_prompt: str = get_settings().get("tutorial", {}).get(
            "skipConfirmation", "¿Seguro que quieres saltar el tutorial?"
        )
        self._confirm = confirm
        self._on_ready = on_ready
        self._lock = threading.RLock()
        self._binding: Optional[ListenerBinding] = None
        self._target_rect: Optional[Rect] = None
        self._position_handle: Optional[TimerHandle] = None
        self._visibility_handle: Optional[TimerHandle] = None
        self._ready_handle: Optional[TimerHandle] = None
        self._unsubscribe = self.sequencer.subscribe(self._on_sequencer_event)

    # -- lifecycle ---------------------------------------------------------

    def should_start(self) -> bool:
        return not self.flag_store.has_seen()

    def start(self) -> OverlayView:
        self.sequencer.start()
        return self.view()

    def start_if_needed(self) -> bool:
        if not self.should_start():
            logger.debug("Onboarding already seen; tutorial not started")
            return False
        self.sequencer.start()
        return True

    def next(self) -> bool:
        return self.sequencer.advance_manual()

    def request_skip(self, confirm: Optional[Confirm] = None) -> bool:
        """Skip the walkthrough if the confirmation callback agrees."""
        confirm = confirm or self._confirm
        if confirm is not None and not confirm(self.skip_prompt):
            logger.debug("Skip declined")
            return False
        return self.sequencer.skip()

    def acknowledge_final(self) -> bool:
        if not self.sequencer.complete():
            return False
        self.flag_store.mark_seen()
        return True

    def close(self) -> None:
        with self._lock:
            self._teardown()
        self._unsubscribe()

    # -- host inputs -------------------------------------------------------

    def dispatch_ui_event(self, event: str, element_id: str) -> bool:
        """Forward a DOM event on ``element_id`` if it belongs to the current step."""
        with self._lock:
            binding = self._binding
            if binding is None or not binding.matches(event, element_id):
                return False
            if binding.wait_for_target and not self.sequencer.state.target_ready:
                return False
            validated = validate_action(binding.action, self.probe, element_id)
            return self.sequencer.report_action(binding.action, element_id, validated)

    # -- read side ---------------------------------------------------------

    @property
    def binding(self) -> Optional[ListenerBinding]:
        with self._lock:
            return self._binding

    @property
    def target_rect(self) -> Optional[Rect]:
        with self._lock:
            return self._target_rect

    @property
    def polling(self) -> Tuple[bool, bool]:
        """Whether the (position, visibility) polls are currently scheduled."""
        with self._lock:
            return self._position_handle is not None, self._visibility_handle is not None

    def view(self) -> OverlayView:
        with self._lock:
            return build_overlay_view(
                self.sequencer.script,
                self.sequencer.state,
                self._target_rect,
                self.geometry,
            )

    # -- internals ---------------------------------------------------------

    def _on_sequencer_event(self, event: SequencerEvent) -> None:
        if event.name in _REBIND_EVENTS:
            self._bind_current_step()
        elif event.name in _TEARDOWN_EVENTS:
            with self._lock:
                self._teardown()
        elif event.name == "ready" and self._on_ready is not None:
            self._on_ready(event.step_id)

    def _bind_current_step(self) -> None:
        with self._lock:
            self._teardown()
            self._target_rect = None
            state = self.sequencer.state
            if state.finished or state.closed:
                return
            step = self.sequencer.current_step
            target = step.target_element_id
            if target is None:
                return
            self._refresh_position()
            self._position_handle = self.scheduler.call_every(self.timings.position_poll, self._refresh_position)
            if not state.awaiting_action:
                return
            self._binding = ListenerBinding(
                element_id=target,
                action=step.action or "",
                events=listener_events(step.action),
                wait_for_target=step.wait_for_target,
            )
            if step.wait_for_target:
                self._visibility_handle = self.scheduler.call_every(
                    self.timings.visibility_poll, self._poll_visibility
                )
            logger.debug("Bound %s listeners on %s", ",".join(self._binding.events), target)

    def _refresh_position(self) -> None:
        with self._lock:
            target = self.sequencer.current_step.target_element_id
            rect = self.probe.bounding_box(target) if target else None
            if rect is not None:
                self._target_rect = rect

    def _poll_visibility(self) -> None:
        with self._lock:
            binding = self._binding
            if binding is None or self._visibility_handle is None:
                return
            if not self.probe.is_visible(binding.element_id):
                return
            self._visibility_handle.cancel()
            self._visibility_handle = None
            element_id = binding.element_id
            self._ready_handle = self.scheduler.call_later(
                self.timings.ready_delay, lambda: self._announce_ready(element_id)
            )

    def _announce_ready(self, element_id: str) -> None:
        with self._lock:
            self._ready_handle = None
            if self._binding is None or self._binding.element_id != element_id:
                return
            self.sequencer.report_target_visible(element_id)

    def _teardown(self) -> None:
        for handle in (self._position_handle, self._visibility_handle, self._ready_handle):
            if handle is not None:
                handle.cancel()
        self._position_handle = None
        self._visibility_handle = None
        self._ready_handle = None
        self._binding = None


__all__ = ["ListenerBinding", "TutorialOverlayScene"]
