"""Shape extractor — turns one slide's shape tree into placed elements.

Each shape runs through a state-free pipeline and ends as a
:class:`ShapeOutcome`: either placed (carrying its Element) or skipped with
a :class:`SkipReason`.  Nothing that goes wrong inside one shape affects
the other shapes of the slide.

Known limitation: text style is block-level.  The first run in the shape
that carries run properties decides font size, weight, slant, colour and
family for the whole text element; later runs' formatting is dropped.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from lxml import etree

from deckbridge.errors import MalformedGeometry, ResourceMissing
from deckbridge.schema.config import ExchangeConfig
from deckbridge.schema.models import (
    Alignment,
    BoundingBox,
    Element,
    ElementKind,
    TextStyle,
)
from deckbridge.schema.units import font_px_from_hundredths, pixels_from_native

from .archive import ArchiveReader
from .images import load_image
from .relationships import RelationshipMap
from .xmlnav import (
    all_children_by_local_name,
    direct_child_by_local_name,
    first_child_by_local_name,
    local_name,
    qualified_attribute,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SHAPE_TAGS = ("sp", "pic", "cxnSp", "graphicFrame")

_ALIGN_CODES = {
    "ctr": Alignment.CENTER,
    "r": Alignment.RIGHT,
    "l": Alignment.LEFT,
}

_TRUE_VALUES = ("1", "true")


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

class SkipReason(Enum):
    """Why a shape did not become an element."""
    NO_TRANSFORM = "no_transform"
    MALFORMED_GEOMETRY = "malformed_geometry"
    BELOW_THRESHOLD = "below_threshold"
    UNSUPPORTED_KIND = "unsupported_kind"
    RESOURCE_MISSING = "resource_missing"
    EMPTY_TEXT = "empty_text"


@dataclass
class ShapeOutcome:
    """Result of extracting one shape: Placed (element set) or Skipped (reason set)."""
    index: int                   # Position among the slide's shapes
    shape_name: str
    element: Element | None = None
    reason: SkipReason | None = None
    detail: str = ""

    @property
    def placed(self) -> bool:
        return self.element is not None

    def __str__(self) -> str:
        label = self.shape_name or f"shape {self.index}"
        if self.placed:
            return f"{label}: placed as {self.element.kind.value}"
        msg = f"{label}: skipped ({self.reason.value})"
        if self.detail:
            msg += f" — {self.detail}"
        return msg


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _shape_name(shape) -> str:
    nv = first_child_by_local_name(shape, "cNvPr")
    return nv.get("name", "") if nv is not None else ""


def _int_attr(node, name: str) -> int:
    """Integer attribute; absent means 0, non-numeric is MalformedGeometry."""
    raw = node.get(name)
    if raw is None or raw == "":
        return 0
    try:
        return int(raw)
    except ValueError:
        raise MalformedGeometry(f"{local_name(node)}@{name}={raw!r} is not an integer")


def embed_id(blip) -> str | None:
    """Embedded relationship id of a blip.

    ``r:embed`` is checked first and wins when both forms are present.
    """
    rel_id = qualified_attribute(blip, "embed")
    if rel_id:
        return rel_id
    return blip.get("embed") or None


def _flag(node, name: str) -> bool:
    return (node.get(name) or "").lower() in _TRUE_VALUES


def _find_shapes(slide_root) -> list:
    tree = first_child_by_local_name(slide_root, "spTree")
    if tree is None:
        tree = slide_root
    return [el for el in tree.iterdescendants(etree.Element)
            if local_name(el) in SHAPE_TAGS and not _in_shadowed_fallback(el)]


def _in_shadowed_fallback(el) -> bool:
    """True inside an ``mc:Fallback`` whose ``mc:Choice`` already holds shapes."""
    for ancestor in el.iterancestors(etree.Element):
        if local_name(ancestor) != "Fallback":
            continue
        alternate = ancestor.getparent()
        if alternate is None:
            continue
        for choice in alternate.iterchildren(etree.Element):
            if local_name(choice) == "Choice" and any(
                    local_name(d) in SHAPE_TAGS
                    for d in choice.iterdescendants(etree.Element)):
                return True
    return False


# ---------------------------------------------------------------------------
# ShapeExtractor
# ---------------------------------------------------------------------------

class ShapeExtractor:
    """Extracts text and picture shapes from one slide.

    Parameters
    ----------
    archive : ArchiveReader
        The open archive (for image blobs).
    rels : RelationshipMap
        Relationship map of the slide being extracted.
    scale : float
        Pixels per EMU (see :func:`deckbridge.schema.units.scale_factor`).
    config : ExchangeConfig
    id_prefix : str
        Prefix for generated element ids, unique per slide.
    """

    def __init__(self, archive: ArchiveReader, rels: RelationshipMap,
                 scale: float, config: ExchangeConfig | None = None,
                 id_prefix: str = "el") -> None:
        self.archive = archive
        self.rels = rels
        self.scale = scale
        self.config = config or ExchangeConfig()
        self.id_prefix = id_prefix

    def extract(self, slide_root) -> list[ShapeOutcome]:
        """Run every shape of the slide through the pipeline, in tree order."""
        outcomes = []
        for index, shape in enumerate(_find_shapes(slide_root)):
            outcome = self.extract_shape(index, shape)
            if not outcome.placed:
                logger.debug("%s %s", self.rels.part_path, outcome)
            outcomes.append(outcome)
        return outcomes

    def extract_shape(self, index: int, shape) -> ShapeOutcome:
        name = _shape_name(shape)

        xfrm = first_child_by_local_name(shape, "xfrm")
        if xfrm is None:
            return ShapeOutcome(index, name, reason=SkipReason.NO_TRANSFORM)

        try:
            box = self._read_box(xfrm)
        except MalformedGeometry as exc:
            return ShapeOutcome(index, name, reason=SkipReason.MALFORMED_GEOMETRY,
                                detail=str(exc))

        min_px = self.config.min_visible_px
        if box.width < min_px or box.height < min_px:
            return ShapeOutcome(index, name, reason=SkipReason.BELOW_THRESHOLD,
                                detail=f"{box.width}x{box.height}px")

        blip_fill = first_child_by_local_name(shape, "blipFill")
        if blip_fill is not None:
            return self._image_outcome(index, name, blip_fill, box)

        tx_body = first_child_by_local_name(shape, "txBody")
        if tx_body is not None:
            return self._text_outcome(index, name, tx_body, box)

        return ShapeOutcome(index, name, reason=SkipReason.UNSUPPORTED_KIND,
                            detail=local_name(shape))

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def _read_box(self, xfrm) -> BoundingBox:
        off = first_child_by_local_name(xfrm, "off")
        ext = first_child_by_local_name(xfrm, "ext")
        if off is None or ext is None:
            raise MalformedGeometry("transform lacks offset or extent")
        return BoundingBox(
            x=max(0, pixels_from_native(_int_attr(off, "x"), self.scale)),
            y=max(0, pixels_from_native(_int_attr(off, "y"), self.scale)),
            width=pixels_from_native(_int_attr(ext, "cx"), self.scale),
            height=pixels_from_native(_int_attr(ext, "cy"), self.scale),
        )

    # ------------------------------------------------------------------
    # Pictures
    # ------------------------------------------------------------------

    def _image_outcome(self, index: int, name: str, blip_fill,
                       box: BoundingBox) -> ShapeOutcome:
        blip = first_child_by_local_name(blip_fill, "blip")
        try:
            data_url = load_image(self.archive, self.rels,
                                  embed_id(blip) if blip is not None else None)
        except ResourceMissing as exc:
            return ShapeOutcome(index, name, reason=SkipReason.RESOURCE_MISSING,
                                detail=str(exc))
        element = Element(
            id=f"{self.id_prefix}-img-{index}",
            kind=ElementKind.IMAGE,
            box=box,
            content=data_url,
        )
        return ShapeOutcome(index, name, element=element)

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def _text_outcome(self, index: int, name: str, tx_body,
                      box: BoundingBox) -> ShapeOutcome:
        text, style = self.read_text_body(tx_body)
        if not text.strip():
            return ShapeOutcome(index, name, reason=SkipReason.EMPTY_TEXT)

        box = BoundingBox(
            x=box.x,
            y=box.y,
            width=max(self.config.text_min_width_px, box.width),
            height=max(self.config.text_min_height_px, box.height),
        )
        element = Element(
            id=f"{self.id_prefix}-text-{index}",
            kind=ElementKind.TEXT,
            box=box,
            content=text,
            style=style,
        )
        return ShapeOutcome(index, name, element=element)

    def read_text_body(self, tx_body) -> tuple[str, TextStyle]:
        """Concatenate paragraphs (newline-separated) and capture the block style."""
        base = self.config.default_style
        style = TextStyle(
            font_size_px=base.font_size_px,
            color=base.color,
            bold=base.bold,
            italic=base.italic,
            alignment=base.alignment,
            font_family=base.font_family,
        )
        styled = False
        paragraphs_text = []

        for paragraph in all_children_by_local_name(tx_body, "p"):
            p_pr = direct_child_by_local_name(paragraph, "pPr")
            if p_pr is not None:
                alignment = _ALIGN_CODES.get(p_pr.get("algn", ""))
                if alignment is not None:
                    style.alignment = alignment

            parts = []
            for run in all_children_by_local_name(paragraph, "r"):
                t = first_child_by_local_name(run, "t")
                if t is None or not t.text:
                    continue
                parts.append(t.text)
                r_pr = direct_child_by_local_name(run, "rPr")
                if not styled and r_pr is not None:
                    self._apply_run_properties(style, r_pr)
                    styled = True
            paragraphs_text.append("".join(parts))

        return "\n".join(paragraphs_text), style

    @staticmethod
    def _apply_run_properties(style: TextStyle, r_pr) -> None:
        sz = r_pr.get("sz")
        if sz:
            try:
                style.font_size_px = font_px_from_hundredths(int(sz))
            except ValueError:
                pass  # keep default size
        if _flag(r_pr, "b"):
            style.bold = True
        if _flag(r_pr, "i"):
            style.italic = True

        # Only a direct RGB fill; scheme colours and gradients keep the default
        solid_fill = direct_child_by_local_name(r_pr, "solidFill")
        srgb = direct_child_by_local_name(solid_fill, "srgbClr")
        if srgb is not None and srgb.get("val"):
            style.color = f"#{srgb.get('val')}"

        latin = direct_child_by_local_name(r_pr, "latin")
        if latin is not None and latin.get("typeface"):
            style.font_family = latin.get("typeface")
