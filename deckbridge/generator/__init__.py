"""Archive encode package — slides (or a live dashboard) plus snapshots -> .pptx.

Modules:
    snapshots: rasterizer calls, data URL handling, snapshot verification
    deck_writer: presentation setup, ExportResult, filenames
    slide_exporter: per-editor-slide export keyed by element DOM ids
    dashboard_exporter: per-widget dashboard export behind a title slide
"""

from .dashboard_exporter import (
    DashboardExporter,
    DashboardFilter,
    ProjectInfo,
    Widget,
    export_dashboard,
    filter_summary,
    find_widgets,
)
from .deck_writer import (
    CaptureFailure,
    ExportResult,
    Placement,
    custom_report_filename,
    dashboard_filename,
)
from .slide_exporter import SlideExporter, export_slides
from .snapshots import Snapshot, decode_data_url, encode_data_url

__all__ = [
    "CaptureFailure",
    "DashboardExporter",
    "DashboardFilter",
    "ExportResult",
    "Placement",
    "ProjectInfo",
    "SlideExporter",
    "Snapshot",
    "Widget",
    "custom_report_filename",
    "dashboard_filename",
    "decode_data_url",
    "encode_data_url",
    "export_dashboard",
    "export_slides",
    "filter_summary",
    "find_widgets",
]
