"""Slide/element model — the contract between the decoder, the editor and the encoder.

Bounding boxes are always in canvas pixels (a fixed 16:9 space, 960x540 by
default).  Conversion from the archive's native unit happens once, at
ingestion; nothing downstream re-derives it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ElementKind(Enum):
    """What an element renders."""
    TEXT = "text"
    IMAGE = "image"
    CHART = "chart"       # Reference to a chart owned by the charting layer


class Alignment(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


# ---------------------------------------------------------------------------
# Geometry and styling primitives
# ---------------------------------------------------------------------------

@dataclass
class BoundingBox:
    """Axis-aligned box in canvas pixels."""
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y,
                "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "BoundingBox":
        return cls(x=d["x"], y=d["y"], width=d["width"], height=d["height"])


@dataclass
class TextStyle:
    """Block-level style of a text element.  Every field has a default."""
    font_size_px: int = 14
    color: str = "#333333"
    bold: bool = False
    italic: bool = False
    alignment: Alignment = Alignment.LEFT
    font_family: str = "Arial"

    def to_dict(self) -> dict:
        return {
            "font_size_px": self.font_size_px,
            "color": self.color,
            "bold": self.bold,
            "italic": self.italic,
            "alignment": self.alignment.value,
            "font_family": self.font_family,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TextStyle":
        return cls(
            font_size_px=d.get("font_size_px", 14),
            color=d.get("color", "#333333"),
            bold=d.get("bold", False),
            italic=d.get("italic", False),
            alignment=Alignment(d.get("alignment", "left")),
            font_family=d.get("font_family", "Arial"),
        )


@dataclass
class Background:
    """Slide background: an inline image (data URL) or a solid '#RRGGBB' colour."""
    image: str | None = None
    color: str | None = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {}
        if self.image:
            d["image"] = self.image
        if self.color:
            d["color"] = self.color
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Background":
        return cls(image=d.get("image"), color=d.get("color"))


# ---------------------------------------------------------------------------
# Element
# ---------------------------------------------------------------------------

@dataclass
class Element:
    """A single positioned item on a slide.

    ``content`` holds the text for TEXT elements and a base64 data URL for
    IMAGE elements.  CHART elements carry only ``chart_id``; the chart
    definition stays with the charting layer and is resolved lazily.
    """
    id: str
    kind: ElementKind
    box: BoundingBox
    z_order: int = 0
    content: str | None = None
    style: TextStyle | None = None
    chart_id: str | None = None

    @property
    def dom_id(self) -> str:
        """Identifier of the element's on-screen node in the editor."""
        return f"element-{self.id}"

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "box": self.box.to_dict(),
            "z_order": self.z_order,
        }
        if self.content is not None:
            d["content"] = self.content
        if self.style:
            d["style"] = self.style.to_dict()
        if self.chart_id:
            d["chart_id"] = self.chart_id
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Element":
        return cls(
            id=str(d["id"]),
            kind=ElementKind(d["kind"]),
            box=BoundingBox.from_dict(d["box"]),
            z_order=d.get("z_order", 0),
            content=d.get("content"),
            style=TextStyle.from_dict(d["style"]) if d.get("style") else None,
            chart_id=d.get("chart_id"),
        )


# ---------------------------------------------------------------------------
# Slide
# ---------------------------------------------------------------------------

@dataclass
class Slide:
    """One slide: an optional background and the elements it exclusively owns.

    List order is insertion order only; rendering order is ``z_order``
    (ties broken by list position).
    """
    id: str
    elements: list[Element] = field(default_factory=list)
    background: Background | None = None

    def get_element(self, element_id: str) -> Element | None:
        for el in self.elements:
            if el.id == element_id:
                return el
        return None

    def ordered_elements(self) -> list[Element]:
        """Elements in paint order (back to front)."""
        return sorted(self.elements, key=lambda el: el.z_order)

    def add_element(self, element: Element) -> Element:
        """Append an element on top of everything already on the slide."""
        element.z_order = len(self.elements) + 1
        self.elements.append(element)
        return element

    def bring_to_front(self, element_id: str) -> None:
        self._reorder(element_id, front=True)

    def send_to_back(self, element_id: str) -> None:
        self._reorder(element_id, front=False)

    def _reorder(self, element_id: str, front: bool) -> None:
        target = self.get_element(element_id)
        if target is None:
            raise KeyError(element_id)
        max_z = max((el.z_order for el in self.elements), default=0)
        target.z_order = max_z + 1 if front else 0
        self.elements.sort(key=lambda el: el.z_order)
        for i, el in enumerate(self.elements, start=1):
            el.z_order = i

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"id": self.id}
        if self.background and (self.background.image or self.background.color):
            d["background"] = self.background.to_dict()
        d["elements"] = [el.to_dict() for el in self.elements]
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Slide":
        return cls(
            id=str(d["id"]),
            elements=[Element.from_dict(e) for e in d.get("elements", [])],
            background=Background.from_dict(d["background"]) if d.get("background") else None,
        )
