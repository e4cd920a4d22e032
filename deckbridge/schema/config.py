"""Engine configuration — canvas geometry, import thresholds, export page and branding.

Every constant the decode and encode pipelines use lives here so a deployment
can override it from YAML (see :mod:`deckbridge.schema.loader`).
"""

from dataclasses import dataclass, field

from .models import TextStyle
from .units import DEFAULT_DOCUMENT_WIDTH_EMU


# ---------------------------------------------------------------------------
# Dashboard export design
# ---------------------------------------------------------------------------

@dataclass
class DashboardDesign:
    """Look of the dashboard export: title slide plus one slide per widget."""
    # Marker classes on the live dashboard region
    widget_class: str = "report-widget"
    title_class: str = "widget-title"
    meta_class: str = "widget-meta"

    # Colors
    accent: str = "#0047BA"
    title_color: str = "#003366"
    heading_color: str = "#666666"
    filters_color: str = "#E07A5F"
    description_color: str = "#444444"
    muted_color: str = "#888888"
    widget_title_color: str = "#333333"
    footer_color: str = "#CCCCCC"

    # Copy
    heading_text: str = "Social Listening Report"
    footer_text: str = "RealData Intelligence"
    author: str = "RealData Intelligence"

    # Typography (points)
    font: str = "Arial"
    heading_size_pt: float = 14.0
    project_title_size_pt: float = 44.0
    filters_size_pt: float = 12.0
    description_size_pt: float = 16.0
    timestamp_size_pt: float = 12.0
    widget_title_size_pt: float = 24.0
    meta_size_pt: float = 11.0
    footer_size_pt: float = 10.0

    # Widget content rectangle (inches)
    content_left_in: float = 0.5
    content_top_in: float = 1.3
    content_width_in: float = 9.0
    content_height_in: float = 4.0

    def to_dict(self) -> dict:
        return {
            "markers": {
                "widget_class": self.widget_class,
                "title_class": self.title_class,
                "meta_class": self.meta_class,
            },
            "colors": {
                "accent": self.accent,
                "title_color": self.title_color,
                "heading_color": self.heading_color,
                "filters_color": self.filters_color,
                "description_color": self.description_color,
                "muted_color": self.muted_color,
                "widget_title_color": self.widget_title_color,
                "footer_color": self.footer_color,
            },
            "copy": {
                "heading_text": self.heading_text,
                "footer_text": self.footer_text,
                "author": self.author,
            },
            "typography": {
                "font": self.font,
                "heading_size_pt": self.heading_size_pt,
                "project_title_size_pt": self.project_title_size_pt,
                "filters_size_pt": self.filters_size_pt,
                "description_size_pt": self.description_size_pt,
                "timestamp_size_pt": self.timestamp_size_pt,
                "widget_title_size_pt": self.widget_title_size_pt,
                "meta_size_pt": self.meta_size_pt,
                "footer_size_pt": self.footer_size_pt,
            },
            "content_box": {
                "left_in": self.content_left_in,
                "top_in": self.content_top_in,
                "width_in": self.content_width_in,
                "height_in": self.content_height_in,
            },
        }

    @classmethod
    def from_dict(cls, d: dict) -> "DashboardDesign":
        default = cls()
        markers = d.get("markers", {})
        colors = d.get("colors", {})
        copy = d.get("copy", {})
        typo = d.get("typography", {})
        box = d.get("content_box", {})
        return cls(
            widget_class=markers.get("widget_class", default.widget_class),
            title_class=markers.get("title_class", default.title_class),
            meta_class=markers.get("meta_class", default.meta_class),
            accent=colors.get("accent", default.accent),
            title_color=colors.get("title_color", default.title_color),
            heading_color=colors.get("heading_color", default.heading_color),
            filters_color=colors.get("filters_color", default.filters_color),
            description_color=colors.get("description_color", default.description_color),
            muted_color=colors.get("muted_color", default.muted_color),
            widget_title_color=colors.get("widget_title_color", default.widget_title_color),
            footer_color=colors.get("footer_color", default.footer_color),
            heading_text=copy.get("heading_text", default.heading_text),
            footer_text=copy.get("footer_text", default.footer_text),
            author=copy.get("author", default.author),
            font=typo.get("font", default.font),
            heading_size_pt=typo.get("heading_size_pt", default.heading_size_pt),
            project_title_size_pt=typo.get("project_title_size_pt", default.project_title_size_pt),
            filters_size_pt=typo.get("filters_size_pt", default.filters_size_pt),
            description_size_pt=typo.get("description_size_pt", default.description_size_pt),
            timestamp_size_pt=typo.get("timestamp_size_pt", default.timestamp_size_pt),
            widget_title_size_pt=typo.get("widget_title_size_pt", default.widget_title_size_pt),
            meta_size_pt=typo.get("meta_size_pt", default.meta_size_pt),
            footer_size_pt=typo.get("footer_size_pt", default.footer_size_pt),
            content_left_in=box.get("left_in", default.content_left_in),
            content_top_in=box.get("top_in", default.content_top_in),
            content_width_in=box.get("width_in", default.content_width_in),
            content_height_in=box.get("height_in", default.content_height_in),
        )


# ---------------------------------------------------------------------------
# ExchangeConfig — top-level container
# ---------------------------------------------------------------------------

@dataclass
class ExchangeConfig:
    """All tunables of the interchange engine."""
    # Editor canvas (16:9)
    canvas_width_px: int = 960
    canvas_height_px: int = 540
    min_visible_px: int = 5

    # Import
    fallback_document_width_emu: int = DEFAULT_DOCUMENT_WIDTH_EMU
    root_content_prefix: str = "ppt/"
    text_min_width_px: int = 50
    text_min_height_px: int = 20
    default_style: TextStyle = field(default_factory=TextStyle)

    # Export page (inches)
    page_width_in: float = 10.0
    page_height_in: float = 5.625

    dashboard: DashboardDesign = field(default_factory=DashboardDesign)

    def to_dict(self) -> dict:
        return {
            "canvas": {
                "width_px": self.canvas_width_px,
                "height_px": self.canvas_height_px,
                "min_visible_px": self.min_visible_px,
            },
            "import": {
                "fallback_document_width_emu": self.fallback_document_width_emu,
                "root_content_prefix": self.root_content_prefix,
                "text_min_width_px": self.text_min_width_px,
                "text_min_height_px": self.text_min_height_px,
                "default_style": self.default_style.to_dict(),
            },
            "page": {
                "width_in": self.page_width_in,
                "height_in": self.page_height_in,
            },
            "dashboard": self.dashboard.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict | None) -> "ExchangeConfig":
        d = d or {}
        canvas = d.get("canvas", {})
        imp = d.get("import", {})
        page = d.get("page", {})
        return cls(
            canvas_width_px=canvas.get("width_px", 960),
            canvas_height_px=canvas.get("height_px", 540),
            min_visible_px=canvas.get("min_visible_px", 5),
            fallback_document_width_emu=imp.get(
                "fallback_document_width_emu", DEFAULT_DOCUMENT_WIDTH_EMU),
            root_content_prefix=imp.get("root_content_prefix", "ppt/"),
            text_min_width_px=imp.get("text_min_width_px", 50),
            text_min_height_px=imp.get("text_min_height_px", 20),
            default_style=TextStyle.from_dict(imp.get("default_style", {})),
            page_width_in=page.get("width_in", 10.0),
            page_height_in=page.get("height_in", 5.625),
            dashboard=DashboardDesign.from_dict(d.get("dashboard", {})),
        )
