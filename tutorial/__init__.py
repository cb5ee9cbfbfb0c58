"""Onboarding tutorial: scripts, sequencer, timers and action validation."""

from .engine import SequencerEvent, SequencerState, TutorialSequencer
from .script import ScriptError, TutorialScript, TutorialStep, load_script
from .timers import Debouncer, ManualScheduler, Scheduler, ThreadingScheduler

__all__ = [
    "Debouncer",
    "ManualScheduler",
    "Scheduler",
    "ScriptError",
    "SequencerEvent",
    "SequencerState",
    "ThreadingScheduler",
    "TutorialScript",
    "TutorialSequencer",
    "TutorialStep",
    "load_script",
]
