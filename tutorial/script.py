"""Step and script definitions for onboarding walkthroughs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

SCRIPTS_PATH = Path(__file__).with_name("scripts")


class ScriptError(ValueError):
    """Raised when a tutorial script definition is malformed."""


@dataclass(frozen=True)
class TutorialStep:
    """Single stage of an onboarding walkthrough."""

    id: str
    title: str
    description: str
    detail: str = ""
    interactive: bool = False
    action: Optional[str] = None
    target_element_id: Optional[str] = None
    wait_for_target: bool = False


@dataclass(frozen=True)
class TutorialScript:
    """Ordered, immutable sequence of steps plus the final screen copy."""

    id: str
    title: str
    description: str
    steps: Tuple[TutorialStep, ...]
    completion: Dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def last_index(self) -> int:
        return len(self.steps) - 1

    def step_ids(self) -> List[str]:
        return [step.id for step in self.steps]

    def index_of(self, step_id: str) -> int:
        for index, step in enumerate(self.steps):
            if step.id == step_id:
                return index
        raise KeyError(step_id)


class ScriptLoader:
    """Abstract loader for tutorial scripts."""

    def load(self, script_id: str) -> Dict[str, object]:  # pragma: no cover - interface
        raise NotImplementedError


class FileSystemScriptLoader(ScriptLoader):
    """Loads tutorial definitions from ``tutorial/scripts``."""

    def __init__(self, base_path: Path = SCRIPTS_PATH) -> None:
        self._base_path = base_path

    def load(self, script_id: str) -> Dict[str, object]:
        path = self._base_path / f"{script_id}.json"
        if not path.exists():
            raise FileNotFoundError(f"Tutorial script '{script_id}' not found at {path}")
        with path.open("r", encoding="utf-8") as handle:
            try:
                return json.load(handle)
            except json.JSONDecodeError as exc:
                raise ScriptError(f"Tutorial script '{script_id}' is not valid JSON: {exc}") from exc


def parse_step(raw: Dict[str, object]) -> TutorialStep:
    step_id = raw.get("id")
    if not isinstance(step_id, str) or not step_id.strip():
        raise ScriptError("step id must be a non-empty string")
    interactive = bool(raw.get("interactive", False))
    action = raw.get("action")
    target = raw.get("target")
    if interactive and (not action or not target):
        raise ScriptError(f"interactive step '{step_id}' needs both an action and a target")
    return TutorialStep(
        id=step_id,
        title=str(raw.get("title", "")),
        description=str(raw.get("description", "")),
        detail=str(raw.get("detail", "")),
        interactive=interactive,
        action=str(action) if interactive else None,
        target_element_id=str(target) if interactive else None,
        wait_for_target=bool(raw.get("waitForTarget", False)) if interactive else False,
    )


def parse_script(raw: Dict[str, object]) -> TutorialScript:
    steps = tuple(parse_step(entry) for entry in raw.get("steps", []))
    if not steps:
        raise ScriptError("a tutorial script needs at least one step")
    seen: set[str] = set()
    for step in steps:
        if step.id in seen:
            raise ScriptError(f"duplicate step id '{step.id}'")
        seen.add(step.id)
    return TutorialScript(
        id=str(raw.get("id", "")),
        title=str(raw.get("title", "")),
        description=str(raw.get("description", "")),
        steps=steps,
        completion={key: str(value) for key, value in dict(raw.get("completion", {})).items()},
    )


def load_script(script_id: str, loader: Optional[ScriptLoader] = None) -> TutorialScript:
    return parse_script((loader or FileSystemScriptLoader()).load(script_id))


__all__ = [
    "FileSystemScriptLoader",
    "ScriptError",
    "ScriptLoader",
    "TutorialScript",
    "TutorialStep",
    "load_script",
    "parse_script",
    "parse_step",
]
