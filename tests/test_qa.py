"""Tests for the QA validation module."""

import pytest

from deckbridge.generator.dashboard_exporter import DashboardExporter, ProjectInfo
from deckbridge.generator.slide_exporter import SlideExporter
from deckbridge.qa.validator import ExportValidator, Issue, QAResult, validate_export
from deckbridge.schema.config import ExchangeConfig
from deckbridge.schema.models import BoundingBox, Element, ElementKind, Slide


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def slides():
    slide = Slide(id="s1")
    slide.add_element(Element(id="a", kind=ElementKind.TEXT,
                              box=BoundingBox(0, 0, 480, 270), content="a"))
    slide.add_element(Element(id="b", kind=ElementKind.IMAGE,
                              box=BoundingBox(480, 270, 480, 270)))
    return [slide, Slide(id="s2")]


@pytest.fixture
def exported(slides, rasterizer):
    return SlideExporter().export(slides, rasterizer)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

class TestQAResult:
    def test_empty_passes(self):
        result = QAResult()
        assert result.passed
        assert result.summary() == "QA PASS: 0 error(s), 0 warning(s)"

    def test_errors_fail(self):
        result = QAResult(issues=[
            Issue("error", 0, "", "slide_count", "bad"),
            Issue("warning", 1, "element-a", "bounds", "off page"),
        ])
        assert not result.passed
        assert len(result.errors) == 1
        assert len(result.warnings) == 1
        assert "slide 1 / element-a" in result.report()

    def test_issue_str(self):
        issue = Issue("error", -1, "", "dimensions", "too wide")
        assert str(issue) == "[ERROR] slide -1: too wide"


# ---------------------------------------------------------------------------
# ExportValidator
# ---------------------------------------------------------------------------

class TestExportValidator:
    def test_clean_export_passes(self, slides, exported):
        qa = ExportValidator(slides).validate(exported.content, exported)
        assert qa.passed, qa.report()
        assert qa.issues == []

    def test_structural_checks_without_result(self, slides, exported):
        assert validate_export(slides, exported.content).passed

    def test_slide_count_mismatch(self, slides, exported):
        qa = ExportValidator(slides + [Slide(id="s3")]).validate(exported.content)
        assert not qa.passed
        assert [i.category for i in qa.errors] == ["slide_count"]

    def test_picture_count_mismatch(self, slides, exported):
        slides[0].add_element(Element(id="c", kind=ElementKind.TEXT,
                                      box=BoundingBox(0, 0, 10, 10), content="c"))
        qa = ExportValidator(slides).validate(exported.content)
        assert [i.category for i in qa.errors] == ["picture_count"]

    def test_capture_failures_are_expected(self, slides, png):
        def rasterize(ref):
            if ref == "element-b":
                raise RuntimeError("hidden")
            return png

        result = SlideExporter().export(slides, rasterize)
        assert ExportValidator(slides).validate(result.content, result).passed
        assert not ExportValidator(slides).validate(result.content).passed

    def test_reordered_output_detected(self, slides, exported, rasterizer):
        slides[0].send_to_back("b")
        reordered = SlideExporter().export(slides, rasterizer)
        qa = ExportValidator(slides).validate(reordered.content, exported)
        assert [i.category for i in qa.errors] == ["placement", "placement"]

    def test_dimension_mismatch(self, slides, exported):
        config = ExchangeConfig(page_width_in=13.333, page_height_in=7.5)
        qa = ExportValidator(slides, config).validate(exported.content)
        assert {i.category for i in qa.errors} == {"dimensions"}

    def test_off_page_picture_warns(self, rasterizer):
        slide = Slide(id="s")
        slide.add_element(Element(id="wide", kind=ElementKind.IMAGE,
                                  box=BoundingBox(800, 0, 400, 100)))
        result = SlideExporter().export([slide], rasterizer)
        qa = ExportValidator([slide]).validate(result.content, result)
        assert qa.passed
        assert [i.category for i in qa.warnings] == ["bounds"]

    def test_unreadable_archive(self, slides):
        qa = ExportValidator(slides).validate(b"not a pptx")
        assert [i.category for i in qa.errors] == ["unreadable"]

    def test_dashboard(self, rasterizer):
        html = ('<div><div class="report-widget"><h2 class="widget-title">A</h2></div>'
                '<div class="report-widget"></div></div>')
        result = DashboardExporter().export(ProjectInfo(name="P"), html, rasterizer)
        qa = ExportValidator([]).validate_dashboard(result.content, result)
        assert qa.passed, qa.report()

