"""Tutorial sequencer driving the scripted onboarding walkthrough."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

from analytics import TutorialAnalytics
from config import get_settings, get_tutorial_timings

from .script import TutorialScript, TutorialStep, load_script
from .timers import Debouncer, Scheduler, ThreadingScheduler, TimerHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SequencerState:
    """Copy of the sequencer's run-time state handed to the host."""

    current_index: int = 0
    awaiting_action: bool = False
    finished: bool = False
    started: bool = False
    skipped: bool = False
    target_ready: bool = False
    closed: bool = False


@dataclass(frozen=True)
class SequencerEvent:
    """Notification emitted to subscribers after a state transition."""

    name: str
    index: int
    step_id: str


Listener = Callable[[SequencerEvent], None]


class TutorialSequencer:
    """Ordered onboarding script gated on manual confirmation or verified actions.

    The host reports what it observes (clicks on "Next", target visibility,
    validated actions) and reads state back; it never mutates state directly.
    """

    def __init__(
        self,
        script: TutorialScript,
        *,
        scheduler: Optional[Scheduler] = None,
        analytics: Optional[TutorialAnalytics] = None,
        debounce: Optional[float] = None,
        settle_delay: Optional[float] = None,
        arm_interactive_on_enter: Optional[bool] = None,
    ) -> None:
        timings = get_tutorial_timings()
        if arm_interactive_on_enter is None:
            arm_interactive_on_enter = bool(
                get_settings().get("tutorial", {}).get("armInteractiveOnEnter", True)
            )
        self._script = script
        self._scheduler = scheduler or ThreadingScheduler()
        self._analytics = analytics or TutorialAnalytics()
        self._settle_delay = timings.settle_delay if settle_delay is None else settle_delay
        self._arm_on_enter = arm_interactive_on_enter
        self._debouncer = Debouncer(
            self._scheduler,
            timings.debounce if debounce is None else debounce,
            self._on_action_debounced,
        )
        self._settle_handle: Optional[TimerHandle] = None
        self._state = SequencerState()
        self._listeners: List[Listener] = []
        self._outbox: List[SequencerEvent] = []
        self._lock = threading.RLock()

    @classmethod
    def from_script_id(cls, script_id: Optional[str] = None, **kwargs: object) -> "TutorialSequencer":
        script_id = script_id or get_settings().get("tutorial", {}).get("defaultScript", "ahorramax_onboarding")
        return cls(load_script(script_id), **kwargs)

    # -- read side ---------------------------------------------------------

    @property
    def script(self) -> TutorialScript:
        return self._script

    @property
    def analytics(self) -> TutorialAnalytics:
        return self._analytics

    @property
    def state(self) -> SequencerState:
        with self._lock:
            return self._state

    @property
    def current_step(self) -> TutorialStep:
        with self._lock:
            return self._script.steps[self._state.current_index]

    @property
    def advance_pending(self) -> bool:
        with self._lock:
            return self._settle_handle is not None or self._debouncer.pending

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            state = self._state
            step = self._script.steps[state.current_index]
            return {
                "tutorial": self._script.id,
                "step": step.id,
                "index": state.current_index,
                "stepCount": len(self._script),
                "awaitingAction": state.awaiting_action,
                "targetReady": state.target_ready,
                "finished": state.finished,
                "skipped": state.skipped,
            }

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # -- inbound operations ------------------------------------------------

    def start(self) -> SequencerState:
        with self._lock:
            if self._state.closed:
                raise RuntimeError("tutorial already completed; create a new sequencer")
            self._cancel_pending()
            self._state = SequencerState(started=True)
            self._analytics.track_tutorial_start(self._script.id)
            logger.info("Tutorial %s started with %d steps", self._script.id, len(self._script))
            self._emit("started")
            self._enter_step(0)
            state = self._state
        self._flush()
        return state

    def advance_manual(self) -> bool:
        """Handle a "Next" / "Entendido" confirmation from the host."""
        with self._lock:
            if not self._is_running():
                return False
            step = self.current_step
            if step.interactive:
                if self._state.awaiting_action:
                    return False
                self._state = replace(self._state, awaiting_action=True)
                logger.debug("Step %s armed manually", step.id)
                self._emit("armed")
            else:
                self._finish_current_step()
        self._flush()
        return True

    def report_target_visible(self, element_id: str) -> bool:
        with self._lock:
            step = self._armed_step()
            if step is None or not step.wait_for_target or self._state.target_ready:
                return False
            if element_id != step.target_element_id:
                return False
            self._state = replace(self._state, target_ready=True)
            logger.debug("Target %s ready for step %s", element_id, step.id)
            self._emit("ready")
        self._flush()
        return True

    def report_action(self, action: str, element_id: str, validated: bool) -> bool:
        """Accept an action report for the armed step.

        Valid reports are debounced and then advance the step after the
        settle delay. An invalid report drops a debounced report that has
        not fired yet. Returns whether the report was accepted.
        """
        with self._lock:
            step = self._armed_step()
            if step is None or action != step.action or element_id != step.target_element_id:
                logger.debug("Ignoring action %s on %s", action, element_id)
                return False
            if self._settle_handle is not None:
                return False
            if not validated:
                logger.debug("Action %s on %s did not validate", action, element_id)
                self._debouncer.cancel()
                return False
            self._debouncer(self._state.current_index)
            return True

    def skip(self) -> bool:
        with self._lock:
            if not self._is_running():
                return False
            step = self.current_step
            self._cancel_pending()
            self._state = replace(self._state, finished=True, skipped=True, awaiting_action=False)
            self._analytics.track_tutorial_skipped(self._script.id, step.id, self._state.current_index)
            logger.info("Tutorial %s skipped at step %s", self._script.id, step.id)
            self._emit("skipped")
        self._flush()
        return True

    def complete(self) -> bool:
        """Close a finished run once the final screen has been acknowledged."""
        with self._lock:
            if not self._state.finished or self._state.closed:
                return False
            self._cancel_pending()
            self._state = replace(self._state, closed=True)
            self._analytics.track_tutorial_acknowledged(self._script.id, skipped=self._state.skipped)
            logger.info("Tutorial %s acknowledged", self._script.id)
            self._emit("completed")
        self._flush()
        return True

    # -- internals ---------------------------------------------------------

    def _is_running(self) -> bool:
        return self._state.started and not self._state.finished and not self._state.closed

    def _armed_step(self) -> Optional[TutorialStep]:
        if not self._is_running() or not self._state.awaiting_action:
            return None
        return self._script.steps[self._state.current_index]

    def _on_action_debounced(self, index: int) -> None:
        with self._lock:
            if self._armed_step() is None or self._state.current_index != index:
                return
            if self._settle_handle is not None:
                return
            self._settle_handle = self._scheduler.call_later(
                self._settle_delay, lambda: self._on_action_settled(index)
            )

    def _on_action_settled(self, index: int) -> None:
        with self._lock:
            self._settle_handle = None
            if self._armed_step() is None or self._state.current_index != index:
                return
            logger.info("Action %s completed", self.current_step.action)
            self._finish_current_step()
        self._flush()

    def _finish_current_step(self) -> None:
        step = self.current_step
        self._analytics.track_step_completed(self._script.id, step.id, interactive=step.interactive)
        next_index = self._state.current_index + 1
        if next_index > self._script.last_index:
            self._cancel_pending()
            self._state = replace(self._state, finished=True, awaiting_action=False)
            self._analytics.track_tutorial_completed(self._script.id, len(self._script))
            logger.info("Tutorial %s finished", self._script.id)
            self._emit("finished")
            return
        self._enter_step(next_index)

    def _enter_step(self, index: int) -> None:
        self._cancel_pending()
        step = self._script.steps[index]
        armed = step.interactive and self._arm_on_enter
        self._state = replace(
            self._state,
            current_index=index,
            awaiting_action=armed,
            target_ready=False,
        )
        self._analytics.track_step_engaged(self._script.id, step.id, index)
        if index:
            logger.info("Advancing to step %s (%d/%d)", step.id, index + 1, len(self._script))
            self._emit("advanced")
        if armed:
            self._emit("armed")

    def _cancel_pending(self) -> None:
        self._debouncer.cancel()
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None

    def _emit(self, name: str) -> None:
        index = self._state.current_index
        self._outbox.append(SequencerEvent(name=name, index=index, step_id=self._script.steps[index].id))

    def _flush(self) -> None:
        with self._lock:
            events, self._outbox = self._outbox, []
            listeners = list(self._listeners)
        for event in events:
            for listener in listeners:
                listener(event)


__all__ = ["SequencerEvent", "SequencerState", "TutorialSequencer"]
