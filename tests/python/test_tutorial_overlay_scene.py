from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path

from analytics import MetricsExporter, TutorialAnalytics
from config import TutorialTimings
from scenes.tutorial_overlay import TutorialOverlayScene
from storage import OnboardingFlagStore
from tutorial.engine import TutorialSequencer
from tutorial.script import load_script
from tutorial.timers import ManualScheduler
from ui.probe import HeadlessPage, Rect

READY = 0.35  # visibility poll (0.1) + ready delay (0.2) with margin
SETTLE = 0.5

# (event, element, value to type, selected flag)
WALKTHROUGH = [
    ("click", "balance-add-btn", None, None),
    ("input", "add-money-input", "100", None),
    ("click", "add-money-submit", None, None),
    ("click", "add-expense-btn", None, None),
    ("click", "category-restaurantes", None, "true"),
    ("change", "expense-amount-input", "20", None),
    ("blur", "expense-description-input", "Almuerzo", None),
    ("click", "save-expense-btn", None, None),
]


class TutorialOverlaySceneTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tempdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tempdir.cleanup)
        self.store = OnboardingFlagStore(Path(self.tempdir.name) / "onboarding.json")
        self.scheduler = ManualScheduler()
        self.metrics = MetricsExporter()
        self.page = HeadlessPage()
        for offset, (_, element, _, _) in enumerate(WALKTHROUGH):
            self.page.mount(element, Rect(100, 100 + offset * 50, 80, 40), value="")
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        self.addCleanup(self._restore_logging, handlers, level)
        self.ready_steps = []
        self.prompts = []
        self.scene = self._make_scene()
        self.addCleanup(self.scene.close)

    @staticmethod
    def _restore_logging(handlers, level) -> None:
        root = logging.getLogger()
        for handler in list(root.handlers):
            if handler not in handlers:
                root.removeHandler(handler)
        root.setLevel(level)

    def _make_scene(self) -> TutorialOverlayScene:
        sequencer = TutorialSequencer(
            load_script("ahorramax_onboarding"),
            scheduler=self.scheduler,
            analytics=TutorialAnalytics(exporter=self.metrics),
            debounce=0.1,
            settle_delay=0.3,
            arm_interactive_on_enter=True,
        )
        return TutorialOverlayScene(
            self.page,
            sequencer=sequencer,
            scheduler=self.scheduler,
            flag_store=self.store,
            timings=TutorialTimings(),
            on_ready=self.ready_steps.append,
        )

    def _perform(self, event: str, element: str, value, selected) -> None:
        if value is not None:
            self.page.set_value(element, value)
        if selected is not None:
            self.page.set_attribute(element, "data-selected", selected)
        self.assertTrue(self.scene.dispatch_ui_event(event, element), element)

    def _walk_actions(self, count: int) -> None:
        for event, element, value, selected in WALKTHROUGH[:count]:
            self.scheduler.advance(READY)
            self._perform(event, element, value, selected)
            self.scheduler.advance(SETTLE)

    def test_starts_only_when_not_seen(self) -> None:
        self.assertTrue(self.scene.should_start())
        self.assertTrue(self.scene.start_if_needed())
        self.store.mark_seen()
        other = self._make_scene()
        self.addCleanup(other.close)
        self.assertFalse(other.start_if_needed())
        self.assertFalse(other.sequencer.state.started)

    def test_welcome_card(self) -> None:
        self.assertEqual(self.scene.view().mode, "hidden")
        view = self.scene.start()
        self.assertEqual(view.mode, "card")
        self.assertEqual(view.title, "¡Bienvenido a AhorraMax!")
        self.assertEqual(view.primary_label, "Siguiente")
        self.assertEqual(view.progress[:2], [True, False])
        self.assertIsNone(self.scene.binding)
        self.assertEqual(self.scene.polling, (False, False))

    def test_binding_and_polls_follow_current_step(self) -> None:
        self.scene.start()
        self.scene.next()
        binding = self.scene.binding
        self.assertEqual(binding.element_id, "balance-add-btn")
        self.assertEqual(binding.events, ("click",))
        self.assertEqual(self.scene.polling, (True, True))

        self.scheduler.advance(READY)
        self.assertEqual(self.ready_steps, ["click-add-money"])
        self.assertEqual(self.scene.polling, (True, False))

        self._perform("click", "balance-add-btn", None, None)
        self.scheduler.advance(SETTLE)
        binding = self.scene.binding
        self.assertEqual(binding.element_id, "add-money-input")
        self.assertEqual(binding.events, ("input", "change", "blur"))
        self.assertEqual(self.scene.polling, (True, True))

    def test_events_before_target_ready_are_ignored(self) -> None:
        self.scene.start()
        self.scene.next()
        self.assertFalse(self.scene.dispatch_ui_event("click", "balance-add-btn"))
        self.scheduler.advance(0.15)
        self.assertFalse(self.scene.dispatch_ui_event("click", "balance-add-btn"))
        self.scheduler.advance(0.2)
        self.assertTrue(self.scene.dispatch_ui_event("click", "balance-add-btn"))

    def test_events_for_other_elements_or_types_are_ignored(self) -> None:
        self.scene.start()
        self.scene.next()
        self.scheduler.advance(READY)
        self.assertFalse(self.scene.dispatch_ui_event("click", "add-money-submit"))
        self.assertFalse(self.scene.dispatch_ui_event("input", "balance-add-btn"))

    def test_hidden_target_keeps_waiting(self) -> None:
        self.page.unmount("balance-add-btn")
        self.scene.start()
        self.scene.next()
        self.scheduler.advance(5.0)
        self.assertEqual(self.ready_steps, [])
        self.assertFalse(self.scene.dispatch_ui_event("click", "balance-add-btn"))
        self.assertEqual(self.scene.polling, (True, True))

        # the dialog opens late; the poll picks the button up
        self.page.mount("balance-add-btn", Rect(10, 10, 30, 30))
        self.scheduler.advance(READY)
        self.assertEqual(self.ready_steps, ["click-add-money"])

    def test_invalid_input_does_not_advance(self) -> None:
        self.scene.start()
        self.scene.next()
        self._walk_actions(1)
        self.scheduler.advance(READY)
        self.page.set_value("add-money-input", "0")
        self.assertFalse(self.scene.dispatch_ui_event("input", "add-money-input"))
        self.scheduler.advance(SETTLE)
        self.assertEqual(self.scene.sequencer.state.current_index, 2)

        self.page.set_value("add-money-input", "100")
        self.assertTrue(self.scene.dispatch_ui_event("input", "add-money-input"))
        self.assertTrue(self.scene.dispatch_ui_event("change", "add-money-input"))
        self.scheduler.advance(SETTLE)
        self.assertEqual(self.scene.sequencer.state.current_index, 3)

    def test_cleared_input_inside_debounce_window_keeps_waiting(self) -> None:
        self.scene.start()
        self.scene.next()
        self._walk_actions(1)
        self.scheduler.advance(READY)
        self.page.set_value("add-money-input", "5")
        self.assertTrue(self.scene.dispatch_ui_event("input", "add-money-input"))
        self.scheduler.advance(0.03)
        self.page.set_value("add-money-input", "")
        self.assertFalse(self.scene.dispatch_ui_event("input", "add-money-input"))
        self.scheduler.advance(1.0)
        self.assertEqual(self.scene.sequencer.state.current_index, 2)

        self.page.set_value("add-money-input", "100")
        self.assertTrue(self.scene.dispatch_ui_event("input", "add-money-input"))
        self.scheduler.advance(SETTLE)
        self.assertEqual(self.scene.sequencer.state.current_index, 3)

    def test_spotlight_tracks_layout_changes(self) -> None:
        self.scene.start()
        self.scene.next()
        view = self.scene.view()
        self.assertEqual(view.mode, "spotlight")
        self.assertEqual(view.description, "Haz clic en el botón + de Balance Total")
        self.assertEqual(view.spotlight, Rect(88, 88, 104, 64))

        self.page.move("balance-add-btn", Rect(300, 400, 80, 40))
        self.scheduler.advance(0.25)
        view = self.scene.view()
        self.assertEqual(view.spotlight, Rect(288, 388, 104, 64))
        self.assertEqual((view.pointer.x, view.pointer.y), (240, 395))

    def test_spotlight_keeps_last_rect_when_target_goes_missing(self) -> None:
        self.scene.start()
        self.scene.next()
        self.assertEqual(self.scene.view().spotlight, Rect(88, 88, 104, 64))

        self.page.unmount("balance-add-btn")
        self.scheduler.advance(0.25)
        self.assertEqual(self.scene.target_rect, Rect(100, 100, 80, 40))
        self.assertEqual(self.scene.view().spotlight, Rect(88, 88, 104, 64))

    def test_new_step_does_not_reuse_previous_rect(self) -> None:
        self.page.unmount("add-money-input")
        self.scene.start()
        self.scene.next()
        self._walk_actions(1)
        self.assertEqual(self.scene.sequencer.state.current_index, 2)
        self.assertIsNone(self.scene.target_rect)
        self.assertIsNone(self.scene.view().spotlight)

    def test_scene_installs_log_handler(self) -> None:
        names = [handler.get_name() for handler in logging.getLogger().handlers]
        self.assertEqual(names.count("ahorramax"), 1)
        other = self._make_scene()
        self.addCleanup(other.close)
        names = [handler.get_name() for handler in logging.getLogger().handlers]
        self.assertEqual(names.count("ahorramax"), 1)

    def test_full_walkthrough_persists_flag(self) -> None:
        self.scene.start()
        self.scene.next()
        self._walk_actions(len(WALKTHROUGH))

        state = self.scene.sequencer.state
        self.assertEqual(state.current_index, 9)
        view = self.scene.view()
        self.assertEqual(view.mode, "card")
        self.assertEqual(view.primary_label, "Finalizar")
        self.assertTrue(all(view.progress))

        self.assertTrue(self.scene.next())
        view = self.scene.view()
        self.assertEqual(view.mode, "final")
        self.assertEqual(view.primary_label, "Empezar a Ahorrar")
        self.assertIsNone(self.scene.binding)
        self.assertEqual(self.scene.polling, (False, False))
        self.assertFalse(self.store.has_seen())

        self.assertTrue(self.scene.acknowledge_final())
        self.assertTrue(self.store.has_seen())
        self.assertEqual(self.scene.view().mode, "hidden")
        self.assertEqual(len(self.ready_steps), 8)
        self.assertEqual(self.scheduler.pending(), 0)

    def test_skip_requires_confirmation(self) -> None:
        self.scene.start()
        self.scene.next()
        self._walk_actions(3)
        self.assertEqual(self.scene.sequencer.state.current_index, 4)

        def decline(prompt: str) -> bool:
            self.prompts.append(prompt)
            return False

        self.assertFalse(self.scene.request_skip(decline))
        self.assertEqual(self.prompts, ["¿Seguro que quieres saltar el tutorial?"])
        self.assertFalse(self.scene.sequencer.state.finished)

        self.assertTrue(self.scene.request_skip(lambda prompt: True))
        state = self.scene.sequencer.state
        self.assertTrue(state.finished)
        self.assertTrue(state.skipped)
        self.assertEqual(state.current_index, 4)
        self.assertEqual(self.scene.view().mode, "final")
        self.assertIsNone(self.scene.binding)

        self.assertTrue(self.scene.acknowledge_final())
        self.assertTrue(self.store.has_seen())

    def test_acknowledge_before_finish_is_ignored(self) -> None:
        self.scene.start()
        self.assertFalse(self.scene.acknowledge_final())
        self.assertFalse(self.store.has_seen())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
