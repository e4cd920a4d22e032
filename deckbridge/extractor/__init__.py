"""Archive decode package — .pptx bytes in, Slide list out.

Modules:
    archive: zip container lookup
    xmlnav: namespace-agnostic element lookup
    relationships: per-slide relationship id -> archive path
    images: picture blobs -> inline data URLs
    shapes: per-shape extraction with explicit skip outcomes
    deck_importer: slide ordering and whole-deck assembly
"""

from .archive import ArchiveReader
from .deck_importer import (
    DeckImporter,
    DecodeReport,
    SlideReport,
    import_deck,
    order_slide_paths,
)
from .relationships import RelationshipMap, load_relationships, normalize_target
from .shapes import ShapeExtractor, ShapeOutcome, SkipReason
from .xmlnav import all_children_by_local_name, first_child_by_local_name

__all__ = [
    "ArchiveReader",
    "DeckImporter",
    "DecodeReport",
    "RelationshipMap",
    "ShapeExtractor",
    "ShapeOutcome",
    "SkipReason",
    "SlideReport",
    "all_children_by_local_name",
    "first_child_by_local_name",
    "import_deck",
    "load_relationships",
    "normalize_target",
    "order_slide_paths",
]
