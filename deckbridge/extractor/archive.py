"""Archive reader — byte/text/XML lookup over a .pptx zip container.

Only opening the container can fail fatally (:class:`ArchiveCorrupt`).  A
missing entry is reported as ``None``; callers decide whether that matters.
"""

import io
import re
import zipfile
from pathlib import Path

from lxml import etree

from deckbridge.errors import ArchiveCorrupt, ResourceMissing

# Hardened parser: no DTD entity expansion, no network fetches.
_XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True,
                              remove_blank_text=False, huge_tree=False)


def parse_xml(data: bytes, path: str = "") -> etree._Element:
    """Parse XML bytes, raising ResourceMissing if the part is unreadable."""
    try:
        return etree.fromstring(data, parser=_XML_PARSER)
    except etree.XMLSyntaxError as exc:
        raise ResourceMissing(f"Unparsable XML part {path or '<bytes>'}: {exc}",
                              path=path) from exc


class ArchiveReader:
    """Read-only view of one archive for the duration of one decode.

    Parameters
    ----------
    data : bytes
        Raw archive content.
    """

    def __init__(self, data: bytes) -> None:
        try:
            self._zip = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as exc:
            raise ArchiveCorrupt(f"Not a readable zip container: {exc}") from exc
        self._names = [info.filename for info in self._zip.infolist()
                       if not info.is_dir()]
        self._cache: dict[str, bytes] = {}

    @classmethod
    def from_path(cls, path: str | Path) -> "ArchiveReader":
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise ArchiveCorrupt(f"Cannot read archive {path}: {exc}") from exc
        return cls(data)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def names(self) -> list[str]:
        """All entry paths, in container order."""
        return list(self._names)

    def exists(self, path: str) -> bool:
        return path in self._names

    def match(self, pattern: str | re.Pattern) -> list[str]:
        """Entry paths whose full name matches ``pattern``."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        return [name for name in self._names if regex.fullmatch(name)]

    def read_bytes(self, path: str) -> bytes | None:
        """Entry content, or ``None`` if the entry is absent or unreadable."""
        if path in self._cache:
            return self._cache[path]
        if path not in self._names:
            return None
        try:
            data = self._zip.read(path)
        except (zipfile.BadZipFile, KeyError, OSError, EOFError,
                NotImplementedError, RuntimeError):
            # CRC mismatch, truncated, encrypted or unsupported compression:
            # treat as absent
            return None
        self._cache[path] = data
        return data

    def read_text(self, path: str, encoding: str = "utf-8") -> str | None:
        data = self.read_bytes(path)
        if data is None:
            return None
        return data.decode(encoding, errors="replace")

    def read_xml(self, path: str) -> etree._Element | None:
        """Parsed root of an XML entry, ``None`` if absent.

        Raises ResourceMissing if the entry exists but is not well-formed.
        """
        data = self.read_bytes(path)
        if data is None:
            return None
        return parse_xml(data, path)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._zip.close()
        self._cache.clear()

    def __enter__(self) -> "ArchiveReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
