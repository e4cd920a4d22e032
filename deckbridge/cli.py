"""CLI entry point for deckbridge.

Drives the decode and encode pipelines from files on disk.  Snapshots that a
live editor would rasterize are read from a directory of PNGs named after the
element's DOM id (``element-<id>.png``) or the widget's id (``widget-<n>.png``).

Usage::

    # Decode a deck into an editable slide list
    deckbridge import deck.pptx -o slides.yaml

    # Encode an edited slide list back into a deck
    deckbridge export slides.yaml --snapshots shots/ -o report.pptx

    # Export every widget on a dashboard page behind a title slide
    deckbridge dashboard page.html --snapshots shots/ \\
        --name "Brand Pulse" --filter channel=Twitter

    # Check an exported deck against the slides it came from
    deckbridge validate report.pptx --slides slides.yaml

    # Any command accepts an engine config
    deckbridge --config engine.yaml import deck.pptx -o slides.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

from deckbridge.errors import ArchiveCorrupt, ExportLibraryUnavailable
from deckbridge.extractor.deck_importer import DeckImporter
from deckbridge.generator.dashboard_exporter import (
    DashboardExporter,
    DashboardFilter,
    ProjectInfo,
)
from deckbridge.generator.deck_writer import custom_report_filename, dashboard_filename
from deckbridge.generator.slide_exporter import SlideExporter
from deckbridge.qa.validator import ExportValidator
from deckbridge.schema.loader import load_config, load_slides, save_slides


# ---------------------------------------------------------------------------
# Config and snapshots
# ---------------------------------------------------------------------------

def _load_config(args):
    """Load the ExchangeConfig from --config, or the defaults."""
    if args.config:
        path = Path(args.config)
        if not path.exists():
            _error(f"Config file not found: {path}")
        return load_config(path)
    return load_config(None)


def _snapshot_dir(args) -> Path:
    path = Path(args.snapshots)
    if not path.is_dir():
        _error(f"Snapshot directory not found: {path}")
    return path


def directory_rasterizer(directory: Path, key=lambda ref: str(ref)):
    """A rasterizer that returns ``<directory>/<key(ref)>.png`` as bytes."""
    def rasterize(ref) -> bytes:
        return (directory / f"{key(ref)}.png").read_bytes()
    return rasterize


def _parse_filter(text: str) -> DashboardFilter:
    column, sep, value = text.partition("=")
    if not sep or not column:
        raise argparse.ArgumentTypeError(f"expected column=value, got {text!r}")
    return DashboardFilter(column.strip(), value.strip())


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_import(args):
    """Decode a .pptx into a slide list."""
    config = _load_config(args)
    deck = Path(args.deck)
    if not deck.exists():
        _error(f"Deck not found: {deck}")

    _info(f"Decoding {deck}")
    try:
        report = DeckImporter(config).import_file(deck)
    except ArchiveCorrupt as exc:
        _error(str(exc))

    _info(report.summary())
    if args.verbose:
        for slide_report in report.slide_reports:
            for outcome in slide_report.skipped:
                _info(f"{slide_report.part_path}: {outcome}")

    if report.is_empty:
        _warn("No recognizable text or images found")
        sys.exit(1)
    for w in report.warnings:
        _warn(w)

    output = Path(args.output)
    save_slides(report.slides, output)
    _info(f"Written: {output}")


def cmd_export(args):
    """Encode a slide list plus snapshots into a .pptx."""
    config = _load_config(args)
    slides_path = Path(args.slides)
    if not slides_path.exists():
        _error(f"Slides file not found: {slides_path}")
    slides = load_slides(slides_path)
    rasterizer = directory_rasterizer(_snapshot_dir(args))

    _info(f"Exporting {len(slides)} slide(s)")
    try:
        result = SlideExporter(config, template=args.template).export(slides, rasterizer)
    except ExportLibraryUnavailable as exc:
        _error(str(exc))

    for failure in result.failures:
        _warn(f"Skipped {failure}")
    for w in result.warnings:
        _warn(w)
    _info(result.summary())

    output = Path(args.output or custom_report_filename(args.name))
    result.write(output)
    _info(f"Written: {output} ({len(result.content):,} bytes)")


def cmd_dashboard(args):
    """Export every widget of a dashboard page behind a title slide."""
    config = _load_config(args)
    page = Path(args.page)
    if not page.exists():
        _error(f"Dashboard page not found: {page}")
    rasterizer = directory_rasterizer(_snapshot_dir(args), key=lambda w: w.dom_id)

    info = ProjectInfo(name=args.name, description=args.description or "",
                       filters=args.filter or [])
    try:
        result = DashboardExporter(config, template=args.template).export(
            info, page.read_bytes(), rasterizer)
    except ExportLibraryUnavailable as exc:
        _error(str(exc))

    for failure in result.failures:
        _warn(f"Skipped {failure}")
    for w in result.warnings:
        _warn(w)
    _info(result.summary())

    output = Path(args.output or dashboard_filename(args.name))
    result.write(output)
    _info(f"Written: {output} ({len(result.content):,} bytes)")


def cmd_validate(args):
    """Validate an exported .pptx against its slide list."""
    config = _load_config(args)
    pptx_path = Path(args.pptx)
    if not pptx_path.exists():
        _error(f"PPTX file not found: {pptx_path}")
    slides_path = Path(args.slides)
    if not slides_path.exists():
        _error(f"Slides file not found: {slides_path}")

    validator = ExportValidator(load_slides(slides_path), config)
    qa_result = validator.validate(pptx_path.read_bytes())

    print(qa_result.report())
    sys.exit(0 if qa_result.passed else 1)


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _info(msg):
    print(f"  {msg}", file=sys.stderr)


def _warn(msg):
    print(f"  WARNING: {msg}", file=sys.stderr)


def _error(msg):
    print(f"  ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="deckbridge",
        description="Convert slide-deck archives to and from editable slide lists.",
    )
    parser.add_argument(
        "--config",
        help="Path to an engine config YAML file.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Library log level (default: WARNING).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---- import ----
    imp = subparsers.add_parser(
        "import",
        help="Decode a PPTX into a slide list YAML.",
    )
    imp.add_argument("deck", help="Path to the .pptx to decode.")
    imp.add_argument(
        "-o", "--output",
        required=True,
        help="Output slide list YAML path.",
    )
    imp.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="List every skipped shape and why.",
    )
    imp.set_defaults(func=cmd_import)

    # ---- export ----
    exp = subparsers.add_parser(
        "export",
        help="Encode a slide list YAML plus snapshots into a PPTX.",
    )
    exp.add_argument("slides", help="Path to the slide list YAML.")
    _add_export_args(exp)
    exp.set_defaults(func=cmd_export)

    # ---- dashboard ----
    dash = subparsers.add_parser(
        "dashboard",
        help="Export dashboard widgets behind a title slide.",
    )
    dash.add_argument("page", help="Path to the dashboard HTML.")
    _add_export_args(dash)
    dash.add_argument(
        "--description",
        help="Project description for the title slide.",
    )
    dash.add_argument(
        "--filter",
        action="append",
        type=_parse_filter,
        metavar="COLUMN=VALUE",
        help="Active filter to list on the title slide (repeatable).",
    )
    dash.set_defaults(func=cmd_dashboard)

    # ---- validate ----
    val = subparsers.add_parser(
        "validate",
        help="Check an exported PPTX against its slide list.",
    )
    val.add_argument("pptx", help="Path to the PPTX file to validate.")
    val.add_argument(
        "--slides",
        required=True,
        help="Slide list YAML the PPTX was exported from.",
    )
    val.set_defaults(func=cmd_validate)

    return parser


def _add_export_args(parser):
    """Add the arguments shared by both export commands."""
    parser.add_argument(
        "--snapshots",
        required=True,
        help="Directory of PNG snapshots named after their DOM id.",
    )
    parser.add_argument(
        "--name",
        default="Project",
        help="Project name (title slide and default file name).",
    )
    parser.add_argument(
        "--template",
        help="Optional .pptx whose layouts the output should use.",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output PPTX path (default derived from --name).",
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    args.func(args)


if __name__ == "__main__":
    main()
