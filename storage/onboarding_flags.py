from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional

from config import get_settings

logger = logging.getLogger(__name__)

_DEFAULT_STORAGE_PATH = (
    Path(os.getenv("AHORRAMAX_STATE_PATH", ""))
    if os.getenv("AHORRAMAX_STATE_PATH")
    else Path(__file__).resolve().parent.parent / "data" / "onboarding.json"
)


class OnboardingFlagStore:
    """Persists whether the user already went through the onboarding tutorial."""

    def __init__(self, path: Optional[os.PathLike[str] | str] = None, *, key: Optional[str] = None) -> None:
        self._path = Path(path) if path is not None else _DEFAULT_STORAGE_PATH
        self._key = key or get_settings().get("onboarding", {}).get("storageKey", "hasSeenTutorial")
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def key(self) -> str:
        return self._key

    def has_seen(self) -> bool:
        with self._lock:
            value = self._load().get(self._key, False)
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return value is True

    def mark_seen(self) -> None:
        with self._lock:
            data = self._load()
            data[self._key] = True
            self._persist(data)
        logger.info("Onboarding marked as seen in %s", self._path)

    def reset(self) -> None:
        """Forget the flag so the tutorial runs again on next start."""
        with self._lock:
            data = self._load()
            if self._key in data:
                del data[self._key]
                self._persist(data)

    def _load(self) -> Dict[str, object]:
        if not self._path.exists():
            return {}
        with self._path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError:
                logger.warning("Ignoring unreadable onboarding state at %s", self._path)
                return {}
        if isinstance(data, dict):
            return data
        return {}

    def _persist(self, data: Dict[str, object]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=2)
        tmp_path.replace(self._path)


__all__ = ["OnboardingFlagStore"]
