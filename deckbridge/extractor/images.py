"""Image asset loader — embedded relationship id -> inline base64 data URL."""

import base64
import mimetypes
import posixpath

from deckbridge.errors import ResourceMissing

from .archive import ArchiveReader
from .relationships import RelationshipMap

# Formats mimetypes does not know on every platform
_EXTRA_MIME_TYPES = {
    ".emf": "image/x-emf",
    ".wmf": "image/x-wmf",
    ".jfif": "image/jpeg",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
}


def guess_mime_type(path: str) -> str:
    ext = posixpath.splitext(path)[1].lower()
    if ext in _EXTRA_MIME_TYPES:
        return _EXTRA_MIME_TYPES[ext]
    mime, _ = mimetypes.guess_type(path)
    return mime or "application/octet-stream"


def to_data_url(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def load_image(archive: ArchiveReader, rels: RelationshipMap,
               rel_id: str | None) -> str:
    """Resolve ``rel_id`` through ``rels`` and inline the target as a data URL.

    Raises ResourceMissing when the id is empty, unmapped, or its target
    cannot be read from the archive.
    """
    if not rel_id:
        raise ResourceMissing("Picture has no embedded relationship id")
    path = rels.resolve(rel_id)
    if path is None:
        raise ResourceMissing(
            f"Relationship {rel_id!r} not found in {rels.part_path}")
    data = archive.read_bytes(path)
    if data is None:
        raise ResourceMissing(f"Image part {path} is missing", path=path)
    return to_data_url(data, guess_mime_type(path))
