"""Validation predicates for interactive tutorial actions.

Each interactive step names an action tag. Value actions inspect the target
element before a report counts; every other tag is a plain click that is
valid as soon as the event fires.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
    from ui.probe import ElementProbe

AMOUNT_ACTIONS = frozenset({"enter-amount", "enter-expense-amount"})
DESCRIPTION_ACTION = "enter-description"
CATEGORY_ACTION = "select-category"
SELECTED_ATTRIBUTE = "data-selected"
MIN_DESCRIPTION_LENGTH = 3

VALUE_EVENTS: Tuple[str, ...] = ("input", "change", "blur")
CLICK_EVENTS: Tuple[str, ...] = ("click",)


def is_positive_amount(value: Optional[str]) -> bool:
    if value is None:
        return False
    text = str(value).strip()
    if not text:
        return False
    try:
        amount = float(text)
    except ValueError:
        return False
    return math.isfinite(amount) and amount > 0


def has_min_length(text: Optional[str], minimum: int = MIN_DESCRIPTION_LENGTH) -> bool:
    if text is None:
        return False
    return len(str(text).strip()) >= minimum


def is_selected(flag: object) -> bool:
    return flag is True or flag == "true"


def requires_value(action: Optional[str]) -> bool:
    return bool(action) and "enter" in action


def listener_events(action: Optional[str]) -> Tuple[str, ...]:
    """DOM events the host listens to on the step target for ``action``."""
    return VALUE_EVENTS if requires_value(action) else CLICK_EVENTS


def validate_action(action: Optional[str], probe: "ElementProbe", element_id: str) -> bool:
    if action in AMOUNT_ACTIONS:
        return is_positive_amount(probe.value(element_id))
    if action == DESCRIPTION_ACTION:
        return has_min_length(probe.value(element_id))
    if action == CATEGORY_ACTION:
        return is_selected(probe.attribute(element_id, SELECTED_ATTRIBUTE))
    return True


__all__ = [
    "AMOUNT_ACTIONS",
    "CATEGORY_ACTION",
    "DESCRIPTION_ACTION",
    "has_min_length",
    "is_positive_amount",
    "is_selected",
    "listener_events",
    "requires_value",
    "validate_action",
]
