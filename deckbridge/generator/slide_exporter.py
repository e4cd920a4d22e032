"""Slide exporter — editor slides plus element snapshots -> .pptx archive.

One output slide per editor slide.  Each element is captured by the
rasterizer (keyed by its ``element-<id>`` DOM id) and placed as a picture.
Placement goes through a fraction of the editing canvas, scaled by the fixed
output page (10 x 5.625 inches by default), never through the page size the
slides were originally imported from.

Usage::

    from deckbridge.generator import SlideExporter

    exporter = SlideExporter()
    result = exporter.export(slides, rasterizer)
    result.write("custom_report.pptx")
"""

import io
import logging
from pathlib import Path
from typing import Callable

from pptx.util import Inches

from deckbridge.errors import RenderCaptureFailed
from deckbridge.schema.config import ExchangeConfig
from deckbridge.schema.models import Element, Slide
from deckbridge.schema.units import place_on_page

from .deck_writer import (
    CaptureFailure,
    ExportResult,
    Placement,
    hex_to_rgb,
    blank_layout,
    open_presentation,
    require_rasterizer,
    save_presentation,
)
from .snapshots import Rasterizer, Snapshot, capture, capture_async, snapshot_from_result

logger = logging.getLogger(__name__)

# (slide index, element) -> Snapshot, or raises RenderCaptureFailed
_SnapshotSource = Callable[[int, Element], Snapshot]


class SlideExporter:
    """Encodes a slide list into a .pptx archive.

    Parameters
    ----------
    config : ExchangeConfig, optional
        Canvas and output page geometry.
    template : str or Path, optional
        A .pptx whose masters/layouts the output should use.
    """

    def __init__(self, config: ExchangeConfig | None = None,
                 template: str | Path | None = None) -> None:
        self.config = config or ExchangeConfig()
        self.template = template

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def export(self, slides: list[Slide], rasterizer: Rasterizer) -> ExportResult:
        """Capture every element synchronously and build the archive."""
        require_rasterizer(rasterizer)
        prs = self._open()

        def source(slide_index: int, el: Element) -> Snapshot:
            return capture(rasterizer, el.dom_id, el.dom_id)

        return self._build(prs, slides, source)

    async def export_async(self, slides: list[Slide],
                           rasterizer: Rasterizer) -> ExportResult:
        """Await captures one at a time, in output order, then build the archive."""
        require_rasterizer(rasterizer)
        prs = self._open()
        captured: dict[tuple[int, str], Snapshot | RenderCaptureFailed] = {}
        for slide_index, slide in enumerate(slides):
            for el in slide.ordered_elements():
                try:
                    captured[(slide_index, el.id)] = await capture_async(
                        rasterizer, el.dom_id, el.dom_id)
                except RenderCaptureFailed as exc:
                    captured[(slide_index, el.id)] = exc

        def source(slide_index: int, el: Element) -> Snapshot:
            snap = captured[(slide_index, el.id)]
            if isinstance(snap, RenderCaptureFailed):
                raise snap
            return snap

        return self._build(prs, slides, source)

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def _open(self):
        cfg = self.config
        return open_presentation(cfg.page_width_in, cfg.page_height_in, self.template)

    def _build(self, prs, slides: list[Slide], source: _SnapshotSource) -> ExportResult:
        layout = blank_layout(prs)
        result = ExportResult(content=b"", slide_count=0)

        for slide_index, slide_data in enumerate(slides):
            slide = prs.slides.add_slide(layout)
            self._apply_background(slide, slide_data, slide_index, result)

            for el in slide_data.ordered_elements():
                try:
                    snap = source(slide_index, el)
                except RenderCaptureFailed as exc:
                    logger.warning("Failed to capture %s: %s", el.dom_id, exc)
                    result.failures.append(
                        CaptureFailure(slide_index, el.dom_id, str(exc)))
                    continue
                self._place(slide, slide_index, el, snap, result)

        result.slide_count = len(prs.slides)
        result.content = save_presentation(prs)
        return result

    def element_placement(self, el: Element) -> tuple[float, float, float, float]:
        """(left, top, width, height) in output inches for an element's box."""
        cfg = self.config
        return place_on_page(
            el.box.x, el.box.y, el.box.width, el.box.height,
            cfg.canvas_width_px, cfg.canvas_height_px,
            cfg.page_width_in, cfg.page_height_in,
        )

    def _place(self, slide, slide_index: int, el: Element, snap: Snapshot,
               result: ExportResult) -> None:
        left, top, width, height = self.element_placement(el)
        slide.shapes.add_picture(
            io.BytesIO(snap.data),
            Inches(left), Inches(top), Inches(width), Inches(height),
        )
        result.placements.append(
            Placement(slide_index, el.dom_id, left, top, width, height))

    def _apply_background(self, slide, slide_data: Slide, slide_index: int,
                          result: ExportResult) -> None:
        bg = slide_data.background
        if bg is None:
            return
        if bg.image:
            cfg = self.config
            try:
                snap = snapshot_from_result(bg.image, "background")
            except RenderCaptureFailed as exc:
                msg = f"slide {slide_index}: background image skipped ({exc})"
                logger.warning(msg)
                result.warnings.append(msg)
            else:
                slide.shapes.add_picture(
                    io.BytesIO(snap.data), 0, 0,
                    Inches(cfg.page_width_in), Inches(cfg.page_height_in),
                )
                return
        if bg.color:
            try:
                fill = slide.background.fill
                fill.solid()
                fill.fore_color.rgb = hex_to_rgb(bg.color)
            except (ValueError, TypeError) as exc:
                result.warnings.append(
                    f"slide {slide_index}: background colour {bg.color!r} ignored ({exc})")


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def export_slides(slides: list[Slide], rasterizer: Rasterizer,
                  config: ExchangeConfig | None = None) -> ExportResult:
    """One-shot convenience: export slides with a synchronous rasterizer."""
    return SlideExporter(config).export(slides, rasterizer)
