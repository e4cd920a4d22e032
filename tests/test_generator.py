"""Tests for the encode pipeline: snapshots, slide export, dashboard export."""

import asyncio
import base64
import datetime
import io

import pytest
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.util import Inches

from deckbridge.errors import ExportLibraryUnavailable, RenderCaptureFailed
from deckbridge.generator.dashboard_exporter import (
    DashboardExporter,
    DashboardFilter,
    ProjectInfo,
    export_dashboard,
    filter_summary,
    find_widgets,
)
from deckbridge.generator.deck_writer import (
    custom_report_filename,
    dashboard_filename,
    hex_to_rgb,
)
from deckbridge.generator.slide_exporter import SlideExporter, export_slides
from deckbridge.generator.snapshots import (
    capture,
    capture_async,
    decode_data_url,
    encode_data_url,
    snapshot_from_result,
)
from deckbridge.schema.config import ExchangeConfig
from deckbridge.schema.models import (
    Background,
    BoundingBox,
    Element,
    ElementKind,
    Slide,
    TextStyle,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _bytes_to_prs(pptx_bytes: bytes) -> Presentation:
    """Load a Presentation from bytes."""
    return Presentation(io.BytesIO(pptx_bytes))


def _pictures(slide):
    return [s for s in slide.shapes if s.shape_type == MSO_SHAPE_TYPE.PICTURE]


def _slide_text(slide) -> str:
    return "\n".join(s.text_frame.text for s in slide.shapes if s.has_text_frame)


def _element(el_id, x, y, w, h, kind=ElementKind.TEXT):
    return Element(id=el_id, kind=kind, box=BoundingBox(x, y, w, h),
                   content=el_id, style=TextStyle() if kind is ElementKind.TEXT else None)


@pytest.fixture
def slides():
    first = Slide(id="slide-1")
    first.add_element(_element("title", 480, 270, 480, 270))
    first.add_element(_element("logo", 0, 0, 96, 54, kind=ElementKind.IMAGE))
    return [first, Slide(id="slide-2")]


DASHBOARD_HTML = """
<html><body><main id="dashboard">
  <section class="card report-widget" id="w-sales">
    <h3 class="widget-title">  Sales
        by Day </h3>
    <p class="widget-meta">Bar chart, 30 rows</p>
    <canvas></canvas>
  </section>
  <section class="report-widget"><div class="chart"></div></section>
  <section class="report-widgets">not a widget</section>
</main></body></html>
"""


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

class TestDataUrls:
    def test_decode(self, png):
        mime, data = decode_data_url(encode_data_url(png))
        assert mime == "image/png"
        assert data == png

    def test_not_a_data_url(self):
        with pytest.raises(ValueError):
            decode_data_url("https://example.com/a.png")

    def test_plain_payload(self):
        assert decode_data_url("data:text/plain,hello") == ("text/plain", b"hello")


class TestSnapshots:
    def test_bytes_result(self, png):
        snap = snapshot_from_result(png)
        assert (snap.width_px, snap.height_px) == (8, 6)
        assert snap.aspect == pytest.approx(8 / 6)

    def test_data_url_result(self, png):
        snap = snapshot_from_result("data:image/png;base64," + base64.b64encode(png).decode())
        assert snap.data == png

    @pytest.mark.parametrize("result", [None, 42, b"", b"not an image", "data:,"])
    def test_unusable_results(self, result):
        with pytest.raises(RenderCaptureFailed):
            snapshot_from_result(result, "element-x")

    def test_rasterizer_error_wrapped(self):
        def boom(ref):
            raise RuntimeError("canvas tainted")

        with pytest.raises(RenderCaptureFailed) as exc_info:
            capture(boom, "element-x", "element-x")
        assert exc_info.value.target == "element-x"
        assert "canvas tainted" in str(exc_info.value)

    def test_sync_capture_rejects_coroutines(self, png):
        async def rasterize(ref):
            return png

        with pytest.raises(RenderCaptureFailed):
            capture(rasterize, "element-x")

    def test_async_capture(self, png):
        async def rasterize(ref):
            return png

        snap = asyncio.run(capture_async(rasterize, "element-x"))
        assert snap.data == png

    def test_async_capture_accepts_sync_rasterizer(self, png):
        snap = asyncio.run(capture_async(lambda ref: png, "element-x"))
        assert snap.width_px == 8


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestWriterHelpers:
    def test_hex_to_rgb(self):
        assert hex_to_rgb("#0047BA") == RGBColor(0x00, 0x47, 0xBA)

    def test_dashboard_filename(self):
        assert dashboard_filename("Brand Pulse", datetime.date(2026, 3, 9)) == (
            "Brand Pulse_Report_2026-03-09.pptx")

    def test_custom_report_filename(self):
        assert custom_report_filename("Q3/Review") == "Q3_Review_CustomReport.pptx"

    def test_filename_of_blank_name(self):
        assert custom_report_filename("") == "Project_CustomReport.pptx"


# ---------------------------------------------------------------------------
# Slide export
# ---------------------------------------------------------------------------

class TestSlideExporter:
    def test_one_output_slide_per_input_slide(self, slides, rasterizer):
        result = SlideExporter().export(slides, rasterizer)
        prs = _bytes_to_prs(result.content)
        assert len(prs.slides) == 2 == result.slide_count
        assert len(_pictures(prs.slides[0])) == 2
        assert len(_pictures(prs.slides[1])) == 0

    def test_page_size(self, slides, rasterizer):
        prs = _bytes_to_prs(SlideExporter().export(slides, rasterizer).content)
        assert prs.slide_width == Inches(10)
        assert prs.slide_height == Inches(5.625)

    def test_placement_by_canvas_fraction(self, slides, rasterizer):
        result = SlideExporter().export(slides, rasterizer)
        pic = _pictures(_bytes_to_prs(result.content).slides[0])[0]
        assert (pic.left, pic.top) == (Inches(5.0), Inches(2.8125))
        assert (pic.width, pic.height) == (Inches(5.0), Inches(2.8125))
        placement = result.placements[0]
        assert (placement.left, placement.top, placement.width, placement.height) == (
            5.0, 2.8125, 5.0, 2.8125)

    def test_rasterizer_gets_dom_ids_in_z_order(self, slides, rasterizer):
        slides[0].send_to_back("logo")
        SlideExporter().export(slides, rasterizer)
        assert rasterizer.calls == ["element-logo", "element-title"]

    def test_pictures_painted_in_z_order(self, slides, rasterizer):
        slides[0].send_to_back("logo")
        prs = _bytes_to_prs(SlideExporter().export(slides, rasterizer).content)
        lefts = [p.left for p in _pictures(prs.slides[0])]
        assert lefts == [Inches(0), Inches(5.0)]

    def test_failed_capture_skips_element(self, slides, png):
        def rasterize(ref):
            if ref == "element-logo":
                raise RuntimeError("offscreen")
            return png

        result = SlideExporter().export(slides, rasterize)
        assert not result.complete
        assert [f.ref for f in result.failures] == ["element-logo"]
        assert result.failures[0].slide_index == 0
        assert len(_pictures(_bytes_to_prs(result.content).slides[0])) == 1

    def test_data_url_rasterizer(self, slides, png):
        url = encode_data_url(png)
        result = export_slides(slides, lambda ref: url)
        assert result.complete
        assert len(result.placements) == 2

    def test_async_export(self, slides, png):
        seen = []

        async def rasterize(ref):
            await asyncio.sleep(0)
            seen.append(ref)
            return png

        result = asyncio.run(SlideExporter().export_async(slides, rasterize))
        assert result.complete
        assert seen == ["element-title", "element-logo"]
        assert [p.ref for p in result.placements] == seen

    def test_sync_export_with_async_rasterizer_fails_per_element(self, slides, png):
        async def rasterize(ref):
            return png

        result = SlideExporter().export(slides, rasterize)
        assert len(result.failures) == 2
        assert result.slide_count == 2

    def test_missing_rasterizer(self, slides):
        with pytest.raises(ExportLibraryUnavailable):
            SlideExporter().export(slides, None)

    def test_unusable_template(self, slides, rasterizer, tmp_path):
        bad = tmp_path / "template.pptx"
        bad.write_bytes(b"not a deck")
        with pytest.raises(ExportLibraryUnavailable):
            SlideExporter(template=bad).export(slides, rasterizer)
        assert rasterizer.calls == []

    def test_unusable_template_async_captures_nothing(self, slides, png, tmp_path):
        bad = tmp_path / "template.pptx"
        bad.write_bytes(b"not a deck")
        calls = []

        async def rasterize(ref):
            calls.append(ref)
            return png

        with pytest.raises(ExportLibraryUnavailable):
            asyncio.run(SlideExporter(template=bad).export_async(slides, rasterize))
        assert calls == []

    def test_background_color(self, rasterizer):
        slide = Slide(id="s", background=Background(color="#112233"))
        prs = _bytes_to_prs(SlideExporter().export([slide], rasterizer).content)
        assert prs.slides[0].background.fill.fore_color.rgb == RGBColor(0x11, 0x22, 0x33)

    def test_background_image_is_full_bleed_and_first(self, png, rasterizer):
        slide = Slide(id="s", background=Background(image=encode_data_url(png)))
        slide.add_element(_element("t", 480, 270, 480, 270))
        prs = _bytes_to_prs(SlideExporter().export([slide], rasterizer).content)
        pictures = _pictures(prs.slides[0])
        assert len(pictures) == 2
        assert (pictures[0].left, pictures[0].top) == (0, 0)
        assert (pictures[0].width, pictures[0].height) == (Inches(10), Inches(5.625))

    def test_unreadable_background_image_warns(self, rasterizer):
        slide = Slide(id="s", background=Background(image="data:image/png;base64,AAAA"))
        result = SlideExporter().export([slide], rasterizer)
        assert result.warnings
        assert result.warnings[0].startswith("slide 0: background image")

    def test_custom_canvas(self, rasterizer):
        config = ExchangeConfig(canvas_width_px=1920, canvas_height_px=1080)
        slide = Slide(id="s")
        slide.add_element(_element("t", 960, 540, 960, 540))
        result = SlideExporter(config).export([slide], rasterizer)
        assert result.placements[0].left == pytest.approx(5.0)


# ---------------------------------------------------------------------------
# Dashboard export
# ---------------------------------------------------------------------------

class TestWidgetDiscovery:
    def test_find_widgets(self):
        widgets = find_widgets(DASHBOARD_HTML)
        assert len(widgets) == 2
        assert widgets[0].title == "Sales by Day"
        assert widgets[0].meta == "Bar chart, 30 rows"
        assert widgets[0].dom_id == "w-sales"

    def test_title_fallback(self):
        widget = find_widgets(DASHBOARD_HTML)[1]
        assert widget.title == "Chart 2"
        assert widget.meta == ""
        assert widget.dom_id == "widget-2"

    def test_no_widgets(self):
        assert find_widgets("<div><p>empty</p></div>") == []

    @pytest.mark.parametrize("page", ["", "   \n  ", b""])
    def test_blank_page(self, page):
        assert find_widgets(page) == []

    def test_filter_summary(self):
        filters = [DashboardFilter("channel", "Twitter"), DashboardFilter("lang", "en")]
        assert filter_summary(filters) == "channel=Twitter, lang=en"
        assert filter_summary([]) == ""


class TestDashboardExporter:
    @pytest.fixture
    def info(self):
        return ProjectInfo(
            name="Brand Pulse",
            description="Weekly listening summary",
            filters=[DashboardFilter("channel", "Twitter")],
            generated_at=datetime.datetime(2026, 1, 2, 3, 4),
        )

    def test_title_plus_one_slide_per_widget(self, info, rasterizer):
        result = DashboardExporter().export(info, DASHBOARD_HTML, rasterizer)
        prs = _bytes_to_prs(result.content)
        assert len(prs.slides) == 3 == result.slide_count
        assert [w.index for w in rasterizer.calls] == [0, 1]
        assert prs.core_properties.title == "Brand Pulse"

    def test_title_slide_text(self, info, rasterizer):
        prs = _bytes_to_prs(DashboardExporter().export(info, DASHBOARD_HTML, rasterizer).content)
        text = _slide_text(prs.slides[0])
        assert "Social Listening Report" in text
        assert "Brand Pulse" in text
        assert "Filters Applied: channel=Twitter" in text
        assert "Weekly listening summary" in text
        assert "Generated on: 2026-01-02 03:04" in text

    def test_no_filters_line_without_filters(self, info, rasterizer):
        info.filters = []
        prs = _bytes_to_prs(DashboardExporter().export(info, DASHBOARD_HTML, rasterizer).content)
        assert "Filters Applied" not in _slide_text(prs.slides[0])

    def test_widget_slide(self, info, rasterizer):
        prs = _bytes_to_prs(DashboardExporter().export(info, DASHBOARD_HTML, rasterizer).content)
        text = _slide_text(prs.slides[1])
        assert "Sales by Day" in text
        assert "Bar chart, 30 rows" in text
        assert "RealData Intelligence" in text
        assert "Chart 2" in _slide_text(prs.slides[2])

    def test_snapshot_contain_fitted(self, info, rasterizer):
        result = DashboardExporter().export(info, DASHBOARD_HTML, rasterizer)
        placement = result.placements[0]
        # 8x6 px snapshot in a 9x4 in box: height-bound
        assert placement.height == pytest.approx(4.0)
        assert placement.width == pytest.approx(4.0 * 8 / 6)
        assert placement.top == pytest.approx(1.3)
        assert placement.left == pytest.approx(0.5 + (9.0 - 4.0 * 8 / 6) / 2)
        pic = _pictures(_bytes_to_prs(result.content).slides[1])[0]
        assert abs(pic.height - Inches(4.0)) <= 1

    def test_failed_widget_gets_no_slide(self, info, png):
        def rasterize(widget):
            if widget.index == 0:
                raise RuntimeError("chart not rendered")
            return png

        result = DashboardExporter().export(info, DASHBOARD_HTML, rasterize)
        assert result.slide_count == 2
        assert [f.ref for f in result.failures] == ["Sales by Day"]
        assert [p.ref for p in result.placements] == ["Chart 2"]

    def test_no_widgets_title_only(self, info, rasterizer):
        result = export_dashboard(info, "<div></div>", rasterizer)
        assert result.slide_count == 1
        assert "No dashboard widgets found" in result.warnings


    def test_empty_page_title_only(self, info, rasterizer):
        result = DashboardExporter().export(info, "", rasterizer)
        assert result.slide_count == 1
        assert "No dashboard widgets found" in result.warnings

    def test_unusable_template_captures_nothing(self, info, rasterizer, tmp_path):
        bad = tmp_path / "template.pptx"
        bad.write_bytes(b"not a deck")
        with pytest.raises(ExportLibraryUnavailable):
            DashboardExporter(template=bad).export(info, DASHBOARD_HTML, rasterizer)
        assert rasterizer.calls == []

    def test_unusable_template_async_captures_nothing(self, info, png, tmp_path):
        bad = tmp_path / "template.pptx"
        bad.write_bytes(b"not a deck")
        calls = []

        async def rasterize(widget):
            calls.append(widget)
            return png

        with pytest.raises(ExportLibraryUnavailable):
            asyncio.run(DashboardExporter(template=bad).export_async(
                info, DASHBOARD_HTML, rasterize))
        assert calls == []
    def test_async_export(self, info, png):
        async def rasterize(widget):
            await asyncio.sleep(0)
            return png

        result = asyncio.run(DashboardExporter().export_async(info, DASHBOARD_HTML, rasterize))
        assert result.slide_count == 3
        assert result.complete

    def test_missing_rasterizer(self, info):
        with pytest.raises(ExportLibraryUnavailable):
            DashboardExporter().export(info, DASHBOARD_HTML, "not callable")

    def test_custom_markers(self, info, rasterizer):
        config = ExchangeConfig.from_dict({"dashboard": {"markers": {"widget_class": "tile"}}})
        html = '<div><div class="tile"><b class="widget-title">Reach</b></div></div>'
        result = DashboardExporter(config).export(info, html, rasterizer)
        assert result.slide_count == 2
        assert result.placements[0].ref == "Reach"
