"""QA validator — reads an exported .pptx back and checks it against its slides.

Confirms the export contract: one output slide per editor slide, page size,
one picture per captured element (plus the full-bleed background), pictures
painted in z-order at their expected placement, and every picture on the
page.  Uses python-pptx to read the archive back.

Usage::

    from deckbridge.qa import ExportValidator

    validator = ExportValidator(slides)
    qa = validator.validate(result.content, result)
    assert qa.passed, qa.report()
"""

import io
import zipfile
from dataclasses import dataclass, field

from pptx import Presentation
from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.exc import PackageNotFoundError
from pptx.util import Inches

from deckbridge.generator.deck_writer import ExportResult
from deckbridge.schema.config import ExchangeConfig
from deckbridge.schema.models import Slide

# Inches() truncates to whole EMU; allow that much drift per coordinate
_EMU_TOLERANCE = 2


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class Issue:
    """A single QA issue found during validation."""
    severity: str       # "error" or "warning"
    slide_index: int    # -1 for presentation-level issues
    ref: str            # element dom id, "" for slide-level issues
    category: str       # e.g. "slide_count", "picture_count", "bounds"
    message: str

    def __str__(self) -> str:
        loc = f"slide {self.slide_index}"
        if self.ref:
            loc += f" / {self.ref}"
        return f"[{self.severity.upper()}] {loc}: {self.message}"


@dataclass
class QAResult:
    """Aggregated result of QA validation."""
    issues: list[Issue] = field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        """One-line summary string."""
        status = "PASS" if self.passed else "FAIL"
        return (
            f"QA {status}: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)"
        )

    def report(self) -> str:
        """Multi-line report of all issues."""
        lines = [self.summary()]
        for issue in self.issues:
            lines.append(f"  {issue}")
        return "\n".join(lines)

    def _add(self, severity: str, slide_index: int, category: str,
             message: str, ref: str = "") -> None:
        self.issues.append(Issue(severity, slide_index, ref, category, message))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _picture_shapes(slide) -> list:
    """Picture shapes on a slide, in paint order."""
    return [s for s in slide.shapes if s.shape_type == MSO_SHAPE_TYPE.PICTURE]


def _close(a: int, b: int) -> bool:
    return abs(int(a) - int(b)) <= _EMU_TOLERANCE


# ---------------------------------------------------------------------------
# ExportValidator
# ---------------------------------------------------------------------------

class ExportValidator:
    """Validates an exported archive against the slides it was built from.

    Parameters
    ----------
    slides : list[Slide]
        The slide list passed to the exporter.
    config : ExchangeConfig, optional
        Must match the exporter's config (page size).
    """

    def __init__(self, slides: list[Slide],
                 config: ExchangeConfig | None = None) -> None:
        self.slides = slides
        self.config = config or ExchangeConfig()

    def validate(self, pptx_bytes: bytes,
                 export: ExportResult | None = None) -> QAResult:
        """Run all checks.

        ``export`` is the exporter's result; when given, elements it reports
        as capture failures are not expected in the output and placements are
        compared shape by shape.
        """
        result = QAResult()
        prs = self._open(pptx_bytes, result)
        if prs is None:
            return result

        self._check_dimensions(prs, result)
        self._check_slide_count(prs, len(self.slides), result)

        if len(prs.slides) == len(self.slides):
            failed = {(f.slide_index, f.ref) for f in export.failures} if export else set()
            for index, slide_data in enumerate(self.slides):
                self._check_slide(prs, prs.slides[index], index, slide_data,
                                  failed, export, result)
        return result

    def validate_dashboard(self, pptx_bytes: bytes, export: ExportResult) -> QAResult:
        """Check a dashboard export: title slide plus one slide per placed widget."""
        result = QAResult()
        prs = self._open(pptx_bytes, result)
        if prs is None:
            return result
        self._check_dimensions(prs, result)
        self._check_slide_count(prs, 1 + len(export.placements), result)
        for placement in export.placements:
            if placement.slide_index >= len(prs.slides):
                continue
            pictures = _picture_shapes(prs.slides[placement.slide_index])
            if len(pictures) != 1:
                result._add("error", placement.slide_index, "picture_count",
                            f"Expected 1 widget snapshot, found {len(pictures)}",
                            ref=placement.ref)
            for pic in pictures:
                self._check_bounds(prs, pic, placement.slide_index,
                                   placement.ref, result)
        return result

    # ------------------------------------------------------------------
    # Presentation-level checks
    # ------------------------------------------------------------------

    def _open(self, pptx_bytes: bytes, result: QAResult):
        try:
            return Presentation(io.BytesIO(pptx_bytes))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
            result._add("error", -1, "unreadable", f"Archive cannot be opened: {exc}")
            return None

    def _check_slide_count(self, prs, expected: int, result: QAResult) -> None:
        actual = len(prs.slides)
        if actual != expected:
            result._add("error", -1, "slide_count",
                        f"Expected {expected} slides, got {actual}")

    def _check_dimensions(self, prs, result: QAResult) -> None:
        expected_w = Inches(self.config.page_width_in)
        expected_h = Inches(self.config.page_height_in)
        if not _close(prs.slide_width, expected_w):
            result._add("error", -1, "dimensions",
                        f"Slide width {prs.slide_width} != expected {expected_w}")
        if not _close(prs.slide_height, expected_h):
            result._add("error", -1, "dimensions",
                        f"Slide height {prs.slide_height} != expected {expected_h}")

    # ------------------------------------------------------------------
    # Per-slide checks
    # ------------------------------------------------------------------

    def _check_slide(self, prs, slide, index: int, slide_data: Slide,
                     failed: set, export: ExportResult | None,
                     result: QAResult) -> None:
        pictures = _picture_shapes(slide)
        has_bg_picture = bool(slide_data.background and slide_data.background.image)
        if has_bg_picture and export is not None and any(
                w.startswith(f"slide {index}: background image") for w in export.warnings):
            has_bg_picture = False

        expected_refs = [el.dom_id for el in slide_data.ordered_elements()
                         if (index, el.dom_id) not in failed]
        expected_count = len(expected_refs) + (1 if has_bg_picture else 0)
        if len(pictures) != expected_count:
            result._add("error", index, "picture_count",
                        f"Expected {expected_count} pictures, found {len(pictures)}")
            return

        element_pictures = pictures[1:] if has_bg_picture else pictures
        for pic, ref in zip(element_pictures, expected_refs):
            self._check_bounds(prs, pic, index, ref, result)

        if export is None:
            return
        for pic, placement in zip(element_pictures, export.placements_on(index)):
            if not (_close(pic.left, Inches(placement.left))
                    and _close(pic.top, Inches(placement.top))
                    and _close(pic.width, Inches(placement.width))
                    and _close(pic.height, Inches(placement.height))):
                result._add("error", index, "placement",
                            "Picture geometry does not match its placement "
                            "(order or position changed)", ref=placement.ref)

    def _check_bounds(self, prs, pic, index: int, ref: str, result: QAResult) -> None:
        right = pic.left + pic.width
        bottom = pic.top + pic.height
        if (pic.left < 0 or pic.top < 0
                or right > prs.slide_width + _EMU_TOLERANCE
                or bottom > prs.slide_height + _EMU_TOLERANCE):
            result._add("warning", index, "bounds",
                        "Picture extends beyond the page", ref=ref)


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def validate_export(slides: list[Slide], pptx_bytes: bytes,
                    export: ExportResult | None = None,
                    config: ExchangeConfig | None = None) -> QAResult:
    """One-shot convenience: validate an exported archive."""
    return ExportValidator(slides, config).validate(pptx_bytes, export)
