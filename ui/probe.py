"""Element inspection used by the tutorial host."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def has_area(self) -> bool:
        return self.width > 0 and self.height > 0

    def expand(self, padding: float) -> "Rect":
        return Rect(
            x=self.x - padding,
            y=self.y - padding,
            width=self.width + 2 * padding,
            height=self.height + 2 * padding,
        )


class ElementProbe:
    """Read-only view of the host UI, keyed by element id."""

    def is_visible(self, element_id: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def bounding_box(self, element_id: str) -> Optional[Rect]:  # pragma: no cover - interface
        raise NotImplementedError

    def value(self, element_id: str) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError

    def attribute(self, element_id: str, name: str) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError


@dataclass
class HeadlessElement:
    rect: Rect = Rect(0, 0, 0, 0)
    value: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    hidden: bool = False


class HeadlessPage(ElementProbe):
    """In-memory element tree standing in for a rendered page.

    An element counts as visible only when it is mounted, not hidden and laid
    out with a non-empty box.
    """

    def __init__(self) -> None:
        self._elements: Dict[str, HeadlessElement] = {}

    def mount(
        self,
        element_id: str,
        rect: Optional[Rect] = None,
        *,
        value: Optional[str] = None,
        attributes: Optional[Dict[str, str]] = None,
        hidden: bool = False,
    ) -> HeadlessElement:
        element = HeadlessElement(
            rect=rect or Rect(0, 0, 0, 0),
            value=value,
            attributes=dict(attributes or {}),
            hidden=hidden,
        )
        self._elements[element_id] = element
        return element

    def unmount(self, element_id: str) -> None:
        self._elements.pop(element_id, None)

    def element(self, element_id: str) -> HeadlessElement:
        return self._elements[element_id]

    def set_value(self, element_id: str, value: Optional[str]) -> None:
        self._elements[element_id].value = value

    def set_attribute(self, element_id: str, name: str, value: str) -> None:
        self._elements[element_id].attributes[name] = value

    def move(self, element_id: str, rect: Rect) -> None:
        self._elements[element_id].rect = rect

    def set_hidden(self, element_id: str, hidden: bool) -> None:
        self._elements[element_id].hidden = hidden

    def is_visible(self, element_id: str) -> bool:
        element = self._elements.get(element_id)
        return element is not None and not element.hidden and element.rect.has_area

    def bounding_box(self, element_id: str) -> Optional[Rect]:
        element = self._elements.get(element_id)
        return element.rect if element is not None else None

    def value(self, element_id: str) -> Optional[str]:
        element = self._elements.get(element_id)
        return element.value if element is not None else None

    def attribute(self, element_id: str, name: str) -> Optional[str]:
        element = self._elements.get(element_id)
        if element is None:
            return None
        return element.attributes.get(name)


__all__ = ["ElementProbe", "HeadlessElement", "HeadlessPage", "Rect"]
