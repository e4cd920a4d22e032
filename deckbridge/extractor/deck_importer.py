"""Deck importer — decodes a whole .pptx archive into the slide/element model.

Pipeline per archive:

1. Open the container (the only fatal step: :class:`ArchiveCorrupt`).
2. Read the page width from ``ppt/presentation.xml`` (fallback 10 inches).
3. Discover ``ppt/slides/slide<N>.xml`` and order by N numerically.
4. Per slide: relationships -> background -> shapes -> elements.

Per-slide and per-shape problems are absorbed into the :class:`DecodeReport`.

Usage::

    from deckbridge.extractor import import_deck

    report = import_deck(Path("deck.pptx").read_bytes())
    if report.is_empty:
        print("No recognizable text or images found.")
    slides = report.slides
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from deckbridge.errors import ResourceMissing
from deckbridge.schema.config import ExchangeConfig
from deckbridge.schema.models import Background, Slide
from deckbridge.schema.units import scale_factor

from .archive import ArchiveReader
from .images import load_image
from .relationships import RelationshipMap, load_relationships
from .shapes import ShapeExtractor, ShapeOutcome, SkipReason, embed_id
from .xmlnav import direct_child_by_local_name, first_child_by_local_name

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PRESENTATION_PART = "ppt/presentation.xml"
SLIDE_PATTERN = re.compile(r"ppt/slides/slide(\d+)\.xml")


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------

@dataclass
class SlideReport:
    """What happened to one slide part."""
    part_path: str
    slide_id: str | None = None          # None if the slide was not emitted
    outcomes: list[ShapeOutcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def placed(self) -> list[ShapeOutcome]:
        return [o for o in self.outcomes if o.placed]

    @property
    def skipped(self) -> list[ShapeOutcome]:
        return [o for o in self.outcomes if not o.placed]


@dataclass
class DecodeReport:
    """Output of :meth:`DeckImporter.import_bytes`."""
    slides: list[Slide] = field(default_factory=list)
    slide_reports: list[SlideReport] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    document_width_emu: int | None = None
    scale_factor: float = 0.0

    @property
    def is_empty(self) -> bool:
        """True when no slide produced any element ("nothing recognizable")."""
        return not any(slide.elements for slide in self.slides)

    @property
    def element_count(self) -> int:
        return sum(len(s.elements) for s in self.slides)

    def skipped(self, reason: SkipReason | None = None) -> list[ShapeOutcome]:
        """Skipped shapes across all slides, optionally of one reason."""
        return [o for r in self.slide_reports for o in r.skipped
                if reason is None or o.reason == reason]

    def summary(self) -> str:
        return (
            f"Imported {len(self.slides)} slide(s), "
            f"{self.element_count} element(s), "
            f"{len(self.skipped())} shape(s) skipped"
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def slide_number(path: str) -> int | None:
    """Numeric suffix of a slide part path, e.g. 12 for ``ppt/slides/slide12.xml``."""
    m = SLIDE_PATTERN.fullmatch(path)
    return int(m.group(1)) if m else None


def slide_label(path: str) -> str | None:
    """Digits of a slide part name as written, e.g. ``"01"`` for ``slide01.xml``."""
    m = SLIDE_PATTERN.fullmatch(path)
    return m.group(1) if m else None


def order_slide_paths(paths: list[str]) -> list[str]:
    """Slide part paths sorted by numeric suffix (1, 2, ..., 10, 11)."""
    numbered = [(slide_number(p), p) for p in paths]
    return [p for n, p in sorted((n, p) for n, p in numbered if n is not None)]


def read_document_width(archive: ArchiveReader) -> int | None:
    """Declared page width (EMU) from ``sldSz@cx``, or None if unavailable."""
    root = archive.read_xml(PRESENTATION_PART)
    size = first_child_by_local_name(root, "sldSz")
    if size is None:
        return None
    try:
        cx = int(size.get("cx", "0"))
    except ValueError:
        return None
    return cx if cx > 0 else None


# ---------------------------------------------------------------------------
# DeckImporter
# ---------------------------------------------------------------------------

class DeckImporter:
    """Decodes .pptx archives into Slide lists.

    Holds configuration only; every call opens its own archive handle.
    """

    def __init__(self, config: ExchangeConfig | None = None) -> None:
        self.config = config or ExchangeConfig()

    def import_file(self, path: str | Path) -> DecodeReport:
        with ArchiveReader.from_path(path) as archive:
            return self._decode(archive)

    def import_bytes(self, data: bytes) -> DecodeReport:
        """Decode raw archive bytes.  Raises ArchiveCorrupt only."""
        with ArchiveReader(data) as archive:
            return self._decode(archive)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _decode(self, archive: ArchiveReader) -> DecodeReport:
        report = DecodeReport()

        try:
            report.document_width_emu = read_document_width(archive)
        except ResourceMissing as exc:
            report.warnings.append(f"Could not read slide size: {exc}")
        if report.document_width_emu is None:
            report.warnings.append(
                "Slide size not declared; assuming "
                f"{self.config.fallback_document_width_emu} EMU page width")
        report.scale_factor = scale_factor(
            self.config.canvas_width_px,
            report.document_width_emu,
            self.config.fallback_document_width_emu,
        )

        for path in order_slide_paths(archive.match(SLIDE_PATTERN)):
            slide_report = SlideReport(part_path=path)
            report.slide_reports.append(slide_report)
            slide = self._decode_slide(archive, path, report.scale_factor, slide_report)
            if slide is not None:
                report.slides.append(slide)
            for w in slide_report.warnings:
                logger.warning("%s: %s", path, w)
                report.warnings.append(f"{path}: {w}")

        if report.is_empty:
            report.warnings.append("No recognizable text or images found")
        return report

    def _decode_slide(self, archive: ArchiveReader, path: str, scale: float,
                      slide_report: SlideReport) -> Slide | None:
        label = slide_label(path)
        try:
            root = archive.read_xml(path)
        except ResourceMissing as exc:
            slide_report.warnings.append(str(exc))
            return None
        if root is None:
            slide_report.warnings.append("slide part could not be read")
            return None

        try:
            rels = load_relationships(archive, path, self.config.root_content_prefix)
        except ResourceMissing as exc:
            slide_report.warnings.append(f"relationships ignored: {exc}")
            rels = RelationshipMap(part_path=path)

        extractor = ShapeExtractor(archive, rels, scale, self.config,
                                   id_prefix=f"s{label}")
        slide_report.outcomes = extractor.extract(root)

        slide = Slide(
            id=f"imported-slide-{label}",
            background=self._read_background(archive, root, rels, slide_report),
        )
        for outcome in slide_report.placed:
            slide.add_element(outcome.element)
        slide_report.slide_id = slide.id
        return slide

    def _read_background(self, archive: ArchiveReader, root, rels: RelationshipMap,
                         slide_report: SlideReport) -> Background | None:
        """Slide-level solid RGB or picture background, if declared."""
        bg_pr = direct_child_by_local_name(first_child_by_local_name(root, "bg"), "bgPr")
        if bg_pr is None:
            return None

        srgb = direct_child_by_local_name(
            direct_child_by_local_name(bg_pr, "solidFill"), "srgbClr")
        if srgb is not None and srgb.get("val"):
            return Background(color=f"#{srgb.get('val')}")

        blip = direct_child_by_local_name(
            direct_child_by_local_name(bg_pr, "blipFill"), "blip")
        if blip is not None:
            try:
                return Background(image=load_image(archive, rels, embed_id(blip)))
            except ResourceMissing as exc:
                slide_report.warnings.append(f"background image ignored: {exc}")
        return None


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def import_deck(data: bytes, config: ExchangeConfig | None = None) -> DecodeReport:
    """One-shot convenience: decode archive bytes into a DecodeReport."""
    return DeckImporter(config).import_bytes(data)
