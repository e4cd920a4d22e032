"""Dashboard exporter — one slide per chart widget, behind a title slide.

Widgets are found in a live dashboard region (HTML) by their marker class
(``report-widget``); each widget's heading and metadata caption come from
the ``widget-title`` / ``widget-meta`` nodes inside it.  The rasterizer
captures each widget and the screenshot is fitted into a fixed content
rectangle below a heading and a thin separator rule.

Usage::

    from deckbridge.generator import DashboardExporter, ProjectInfo

    info = ProjectInfo(name="Brand Pulse", description="Q3 listening",
                       filters=[DashboardFilter("channel", "Twitter")])
    result = DashboardExporter().export(info, page_html, rasterizer)
"""

import datetime
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path

from lxml import etree
from lxml import html as lxml_html
from pptx.enum.shapes import MSO_CONNECTOR, MSO_SHAPE
from pptx.enum.text import PP_ALIGN
from pptx.util import Inches, Pt

from deckbridge.errors import RenderCaptureFailed
from deckbridge.schema.config import DashboardDesign, ExchangeConfig
from deckbridge.schema.units import contain_fit

from .deck_writer import (
    CaptureFailure,
    ExportResult,
    Placement,
    blank_layout,
    hex_to_rgb,
    open_presentation,
    require_rasterizer,
    save_presentation,
)
from .snapshots import Rasterizer, Snapshot, capture, capture_async

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass
class DashboardFilter:
    """One active dashboard filter."""
    column: str
    value: str


@dataclass
class ProjectInfo:
    """What the title slide says about the project."""
    name: str
    description: str = ""
    filters: list[DashboardFilter] = field(default_factory=list)
    generated_at: datetime.datetime | None = None


@dataclass
class Widget:
    """A chart widget discovered in the dashboard region."""
    index: int              # 0-based, document order
    title: str
    meta: str
    node: object            # lxml element of the widget container

    @property
    def dom_id(self) -> str:
        node_id = self.node.get("id") if self.node is not None else None
        return node_id or f"widget-{self.index + 1}"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def filter_summary(filters: list[DashboardFilter]) -> str:
    """``column=value, column=value`` for the title slide."""
    return ", ".join(f"{f.column}={f.value}" for f in filters)


def _class_xpath(css_class: str, axis: str = "descendant-or-self") -> str:
    return (f"{axis}::*[contains(concat(' ', normalize-space(@class), ' '), "
            f"' {css_class} ')]")


def _first_text(node, css_class: str) -> str:
    matches = node.xpath(_class_xpath(css_class, axis="descendant"))
    if not matches:
        return ""
    return " ".join(matches[0].text_content().split())


def find_widgets(region, design: DashboardDesign | None = None) -> list[Widget]:
    """Widgets marked with the widget class, in document order.

    ``region`` is an HTML string/bytes or an already-parsed lxml element.
    """
    design = design or DashboardDesign()
    if isinstance(region, (str, bytes)):
        if not region.strip():
            return []
        try:
            root = lxml_html.fromstring(region)
        except etree.ParserError:
            # markup with no content, e.g. only a comment
            return []
    else:
        root = region
    widgets = []
    for index, node in enumerate(root.xpath(_class_xpath(design.widget_class))):
        widgets.append(Widget(
            index=index,
            title=_first_text(node, design.title_class) or f"Chart {index + 1}",
            meta=_first_text(node, design.meta_class),
            node=node,
        ))
    return widgets


# ---------------------------------------------------------------------------
# DashboardExporter
# ---------------------------------------------------------------------------

class DashboardExporter:
    """Builds the whole-dashboard report deck.

    Parameters
    ----------
    config : ExchangeConfig, optional
        Output page size and the :class:`DashboardDesign`.
    template : str or Path, optional
        A .pptx whose masters/layouts the output should use.
    """

    def __init__(self, config: ExchangeConfig | None = None,
                 template: str | Path | None = None) -> None:
        self.config = config or ExchangeConfig()
        self.design = self.config.dashboard
        self.template = template

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def export(self, info: ProjectInfo, region, rasterizer: Rasterizer) -> ExportResult:
        """Capture each widget synchronously and build the deck."""
        require_rasterizer(rasterizer)
        prs = self._open()
        widgets = find_widgets(region, self.design)
        snapshots = {}
        for w in widgets:
            try:
                snapshots[w.index] = capture(rasterizer, w, w.dom_id)
            except RenderCaptureFailed as exc:
                snapshots[w.index] = exc
        return self._build(prs, info, widgets, snapshots)

    async def export_async(self, info: ProjectInfo, region,
                           rasterizer: Rasterizer) -> ExportResult:
        """Await each widget capture in document order, then build the deck."""
        require_rasterizer(rasterizer)
        prs = self._open()
        widgets = find_widgets(region, self.design)
        snapshots = {}
        for w in widgets:
            try:
                snapshots[w.index] = await capture_async(rasterizer, w, w.dom_id)
            except RenderCaptureFailed as exc:
                snapshots[w.index] = exc
        return self._build(prs, info, widgets, snapshots)

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def _open(self):
        cfg = self.config
        return open_presentation(cfg.page_width_in, cfg.page_height_in, self.template)

    def _build(self, prs, info: ProjectInfo, widgets: list[Widget],
               snapshots: dict[int, Snapshot | RenderCaptureFailed]) -> ExportResult:
        prs.core_properties.title = info.name
        prs.core_properties.author = self.design.author
        layout = blank_layout(prs)
        result = ExportResult(content=b"", slide_count=0)

        self._title_slide(prs.slides.add_slide(layout), info)

        if not widgets:
            result.warnings.append("No dashboard widgets found")

        for w in widgets:
            snap = snapshots.get(w.index)
            if not isinstance(snap, Snapshot):
                msg = str(snap) if snap is not None else "not captured"
                logger.warning("Failed to capture widget index %d: %s", w.index, msg)
                result.failures.append(CaptureFailure(len(prs.slides), w.title, msg))
                continue
            slide_index = len(prs.slides)
            self._widget_slide(prs.slides.add_slide(layout), w, snap,
                               slide_index, result)

        result.slide_count = len(prs.slides)
        result.content = save_presentation(prs)
        return result

    def _title_slide(self, slide, info: ProjectInfo) -> None:
        d = self.design
        page_w = self.config.page_width_in

        bar = slide.shapes.add_shape(MSO_SHAPE.RECTANGLE, 0, 0,
                                     Inches(page_w), Inches(0.15))
        bar.fill.solid()
        bar.fill.fore_color.rgb = hex_to_rgb(d.accent)
        bar.line.fill.background()

        self._add_text(slide, d.heading_text, 0.5, 1.5, page_w * 0.9, 0.4,
                       d.heading_size_pt, d.heading_color, bold=True)
        self._add_text(slide, info.name, 0.5, 2.0, page_w * 0.9, 0.9,
                       d.project_title_size_pt, d.title_color, bold=True)

        summary = filter_summary(info.filters)
        if summary:
            self._add_text(slide, f"Filters Applied: {summary}",
                           0.5, 3.0, page_w * 0.9, 0.4,
                           d.filters_size_pt, d.filters_color, italic=True)

        self._add_text(slide, info.description or "", 0.5, 3.5, page_w * 0.8, 1.2,
                       d.description_size_pt, d.description_color)

        generated = info.generated_at or datetime.datetime.now()
        self._add_text(slide, f"Generated on: {generated:%Y-%m-%d %H:%M}",
                       0.5, 5.0, 4.0, 0.4, d.timestamp_size_pt, d.muted_color)

    def _widget_slide(self, slide, widget: Widget, snap: Snapshot,
                      slide_index: int, result: ExportResult) -> None:
        d = self.design

        self._add_text(slide, widget.title, d.content_left_in, 0.4,
                       d.content_width_in, 0.5,
                       d.widget_title_size_pt, d.widget_title_color, bold=True)

        rule = slide.shapes.add_connector(
            MSO_CONNECTOR.STRAIGHT,
            Inches(d.content_left_in), Inches(0.9),
            Inches(d.content_left_in + d.content_width_in), Inches(0.9),
        )
        rule.line.color.rgb = hex_to_rgb(d.accent)
        rule.line.width = Pt(2)

        if widget.meta:
            self._add_text(slide, widget.meta, d.content_left_in, 1.0,
                           d.content_width_in, 0.3,
                           d.meta_size_pt, d.muted_color, italic=True)

        left, top, width, height = contain_fit(
            snap.width_px, snap.height_px,
            d.content_left_in, d.content_top_in,
            d.content_width_in, d.content_height_in,
        )
        slide.shapes.add_picture(io.BytesIO(snap.data), Inches(left), Inches(top),
                                 Inches(width), Inches(height))
        result.placements.append(
            Placement(slide_index, widget.title, left, top, width, height))

        self._add_text(slide, d.footer_text, 8.5, 5.3, 1.5, 0.3,
                       d.footer_size_pt, d.footer_color)

    def _add_text(self, slide, text: str, left: float, top: float,
                  width: float, height: float, size_pt: float, color: str,
                  bold: bool = False, italic: bool = False,
                  align=PP_ALIGN.LEFT):
        txbox = slide.shapes.add_textbox(
            Inches(left), Inches(top), Inches(width), Inches(height),
        )
        tf = txbox.text_frame
        tf.word_wrap = True
        p = tf.paragraphs[0]
        p.alignment = align
        run = p.add_run()
        run.text = text
        run.font.name = self.design.font
        run.font.size = Pt(size_pt)
        run.font.bold = bold
        run.font.italic = italic
        run.font.color.rgb = hex_to_rgb(color)
        return txbox


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def export_dashboard(info: ProjectInfo, region, rasterizer: Rasterizer,
                     config: ExchangeConfig | None = None) -> ExportResult:
    """One-shot convenience: export a dashboard region with a synchronous rasterizer."""
    return DashboardExporter(config).export(info, region, rasterizer)
