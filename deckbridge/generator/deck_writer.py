"""Shared plumbing of the two export flows: presentation setup, results, helpers.

Output is built entirely through python-pptx's slide/shape/picture API; no
output XML is authored by hand.
"""

import datetime
import io
import re
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.exc import PackageNotFoundError
from pptx.util import Inches

from deckbridge.errors import ExportLibraryUnavailable

_BLANK_LAYOUT_INDEX = 6   # "Blank" in the default template
_UNSAFE_FILENAME = re.compile(r"[^\w.\- ]+")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class Placement:
    """Where one snapshot landed, in output inches."""
    slide_index: int        # 0-based output slide index
    ref: str                # element dom id or widget title
    left: float
    top: float
    width: float
    height: float


@dataclass
class CaptureFailure:
    """An element or widget skipped because its snapshot could not be captured."""
    slide_index: int
    ref: str
    message: str

    def __str__(self) -> str:
        return f"slide {self.slide_index} / {self.ref}: {self.message}"


@dataclass
class ExportResult:
    """Output of an export flow."""
    content: bytes
    slide_count: int
    placements: list[Placement] = field(default_factory=list)
    failures: list[CaptureFailure] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True when every element/widget was captured."""
        return not self.failures

    def placements_on(self, slide_index: int) -> list[Placement]:
        return [p for p in self.placements if p.slide_index == slide_index]

    def summary(self) -> str:
        return (
            f"Exported {self.slide_count} slide(s), "
            f"{len(self.placements)} snapshot(s) placed, "
            f"{len(self.failures)} capture failure(s)"
        )

    def write(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.content)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def hex_to_rgb(hex_color: str) -> RGBColor:
    """Convert '#RRGGBB' hex string to an RGBColor."""
    h = hex_color.lstrip("#")
    return RGBColor(*bytes.fromhex(h))


def require_rasterizer(rasterizer) -> None:
    if rasterizer is None or not callable(rasterizer):
        raise ExportLibraryUnavailable(
            "No rasterizer available; snapshots cannot be captured")


def open_presentation(width_in: float, height_in: float,
                      template: str | Path | None = None):
    """Create the output presentation, sized to the fixed output page.

    Raises ExportLibraryUnavailable if the template cannot be opened or
    has no layouts to build slides from.
    """
    try:
        prs = Presentation(str(template)) if template else Presentation()
    except (PackageNotFoundError, zipfile.BadZipFile, OSError, KeyError, ValueError) as exc:
        raise ExportLibraryUnavailable(
            f"Presentation template {template} cannot be opened: {exc}") from exc
    if len(prs.slide_layouts) == 0:
        raise ExportLibraryUnavailable("Presentation template has no slide layouts")
    prs.slide_width = Inches(width_in)
    prs.slide_height = Inches(height_in)
    return prs


def blank_layout(prs):
    """The 'Blank' layout, falling back to index 6, then the last layout."""
    for layout in prs.slide_layouts:
        if layout.name == "Blank":
            return layout
    layouts = prs.slide_layouts
    if len(layouts) > _BLANK_LAYOUT_INDEX:
        return layouts[_BLANK_LAYOUT_INDEX]
    return layouts[len(layouts) - 1]


def save_presentation(prs) -> bytes:
    buf = io.BytesIO()
    prs.save(buf)
    return buf.getvalue()


def _safe_name(name: str) -> str:
    cleaned = _UNSAFE_FILENAME.sub("_", name).strip()
    return cleaned or "Project"


def dashboard_filename(project_name: str,
                       date: datetime.date | None = None) -> str:
    """``<project>_Report_<YYYY-MM-DD>.pptx``"""
    date = date or datetime.date.today()
    return f"{_safe_name(project_name)}_Report_{date.isoformat()}.pptx"


def custom_report_filename(project_name: str) -> str:
    """``<project>_CustomReport.pptx``"""
    return f"{_safe_name(project_name)}_CustomReport.pptx"
