from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

_SETTINGS_PATH = Path(__file__).with_name("settings.json")
_LOG_HANDLER_NAME = "ahorramax"


@lru_cache(maxsize=1)
def get_settings() -> Dict[str, Any]:
    """Return the parsed settings.json contents.

    The configuration is cached for subsequent lookups; tests reset it with
    ``get_settings.cache_clear()``.
    """
    with _SETTINGS_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@dataclass(frozen=True)
class TutorialTimings:
    """Tutorial timer values, in seconds."""

    debounce: float = 0.1
    settle_delay: float = 0.3
    visibility_poll: float = 0.1
    ready_delay: float = 0.2
    position_poll: float = 0.2


def get_tutorial_timings() -> TutorialTimings:
    settings = get_settings().get("tutorial", {})
    defaults = TutorialTimings()

    def seconds(key: str, fallback: float) -> float:
        value = settings.get(key)
        if not isinstance(value, (int, float)) or value < 0:
            return fallback
        return value / 1000.0

    return TutorialTimings(
        debounce=seconds("debounceMs", defaults.debounce),
        settle_delay=seconds("settleDelayMs", defaults.settle_delay),
        visibility_poll=seconds("visibilityPollMs", defaults.visibility_poll),
        ready_delay=seconds("readyDelayMs", defaults.ready_delay),
        position_poll=seconds("positionPollMs", defaults.position_poll),
    )


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stream handler to the root logger using the configured format.

    Repeated calls only update the level.
    """
    settings = get_settings().get("logging", {})
    root = logging.getLogger()
    root.setLevel((level or settings.get("level", "INFO")).upper())
    if not any(handler.get_name() == _LOG_HANDLER_NAME for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_LOG_HANDLER_NAME)
        handler.setFormatter(
            logging.Formatter(settings.get("format", "%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        )
        root.addHandler(handler)
    return root


__all__ = ["TutorialTimings", "configure_logging", "get_settings", "get_tutorial_timings"]
