"""Error taxonomy for the decode and encode pipelines.

Only container-level and precondition-level errors (``ArchiveCorrupt``,
``ExportLibraryUnavailable``) escape the public API.  The others are raised
inside a single shape, slide or capture and converted into skip outcomes or
failure records by the pipeline that owns them.
"""


class DeckBridgeError(Exception):
    """Base class for every deckbridge error."""


class ArchiveCorrupt(DeckBridgeError):
    """The container itself cannot be opened (not a zip, truncated, ...)."""


class ResourceMissing(DeckBridgeError):
    """An expected part, relationship target or image blob is absent or unreadable."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class MalformedGeometry(DeckBridgeError):
    """Transform attributes are non-numeric or missing."""


class RenderCaptureFailed(DeckBridgeError):
    """The rasterizer could not produce a usable snapshot for one element."""

    def __init__(self, message: str, target: str = ""):
        super().__init__(message)
        self.target = target


class ExportLibraryUnavailable(DeckBridgeError):
    """Export preconditions are not met (no rasterizer, unusable template)."""
