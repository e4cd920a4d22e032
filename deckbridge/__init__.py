"""deckbridge — slide-deck archive interchange engine.

Decodes a .pptx archive into the editor's slide/element model and encodes a
slide/element model, together with rendered snapshots, back into a .pptx.

Subpackages:
    schema: slide/element model, unit conversion, configuration
    extractor: archive decode (zip, relationships, shapes, images)
    generator: archive encode (editor slides, dashboard widgets)
    qa: read-back validation of exported archives
"""

from .errors import (
    ArchiveCorrupt,
    DeckBridgeError,
    ExportLibraryUnavailable,
    MalformedGeometry,
    RenderCaptureFailed,
    ResourceMissing,
)

__version__ = "0.3.0"

__all__ = [
    "ArchiveCorrupt",
    "DeckBridgeError",
    "ExportLibraryUnavailable",
    "MalformedGeometry",
    "RenderCaptureFailed",
    "ResourceMissing",
]
