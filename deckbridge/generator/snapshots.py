"""Snapshot capture — calls the external rasterizer and normalises its result.

The rasterizer is a collaborator: given a reference to an on-screen element
it returns a raster snapshot, either as a ``data:image/...;base64,`` URL or
as raw image bytes.  Anything it raises, and anything unusable it returns,
becomes :class:`RenderCaptureFailed` for that one element.
"""

import base64
import binascii
import inspect
import io
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from PIL import Image, UnidentifiedImageError

from deckbridge.errors import RenderCaptureFailed

Rasterizer = Callable[[Any], "str | bytes | Awaitable[str | bytes]"]

DATA_URL_PREFIX = "data:"


# ---------------------------------------------------------------------------
# Data URLs
# ---------------------------------------------------------------------------

def decode_data_url(url: str) -> tuple[str, bytes]:
    """Split a data URL into (mime type, payload bytes).

    Raises ValueError if ``url`` is not a data URL or its payload is not
    valid base64.
    """
    url = url.strip()
    if not url.startswith(DATA_URL_PREFIX) or "," not in url:
        raise ValueError("not a data URL")
    header, payload = url[len(DATA_URL_PREFIX):].split(",", 1)
    params = header.split(";")
    mime = params[0] or "text/plain"
    if "base64" in params[1:]:
        try:
            return mime, base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"invalid base64 payload: {exc}") from exc
    return mime, payload.encode("utf-8")


def encode_data_url(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

@dataclass
class Snapshot:
    """A captured raster and its pixel size."""
    data: bytes
    width_px: int
    height_px: int

    @property
    def aspect(self) -> float:
        return self.width_px / self.height_px if self.height_px else 1.0


def snapshot_from_result(result: Any, target: str = "") -> Snapshot:
    """Turn a rasterizer result (data URL or bytes) into a verified Snapshot."""
    if isinstance(result, str):
        try:
            _, data = decode_data_url(result)
        except ValueError as exc:
            raise RenderCaptureFailed(f"unusable snapshot: {exc}", target) from exc
    elif isinstance(result, (bytes, bytearray)):
        data = bytes(result)
    else:
        raise RenderCaptureFailed(
            f"rasterizer returned {type(result).__name__}, expected data URL or bytes",
            target)

    if not data:
        raise RenderCaptureFailed("empty snapshot", target)
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError) as exc:
        raise RenderCaptureFailed(f"snapshot is not a readable image: {exc}", target) from exc
    return Snapshot(data=data, width_px=width, height_px=height)


def capture(rasterizer: Rasterizer, ref: Any, target: str = "") -> Snapshot:
    """Synchronously capture one snapshot.

    A coroutine-returning rasterizer is rejected here; use
    :func:`capture_async` for those.
    """
    try:
        result = rasterizer(ref)
    except Exception as exc:
        raise RenderCaptureFailed(f"rasterizer failed: {exc}", target) from exc
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise RenderCaptureFailed(
            "rasterizer is asynchronous; use the async export entry point", target)
    return snapshot_from_result(result, target)


async def capture_async(rasterizer: Rasterizer, ref: Any, target: str = "") -> Snapshot:
    """Capture one snapshot, awaiting the rasterizer if it is asynchronous."""
    try:
        result = rasterizer(ref)
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        raise RenderCaptureFailed(f"rasterizer failed: {exc}", target) from exc
    return snapshot_from_result(result, target)
