from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Awaitable, Callable
from urllib.parse import unquote_to_bytes

from poster_finder.core.errors import EmptyPayloadError
from poster_finder.host.base import HostDocument, HostNode, ImagePaint, accepts_children
from poster_finder.services.channel import UIChannel, snack

logger = logging.getLogger(__name__)

INSERT_FAILED = "Error inserting poster"

Downloader = Callable[[str], Awaitable[bytes]]


def decode_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:"):
        raise ValueError("Malformed data URI")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload)
        except binascii.Error as exc:
            raise ValueError("Data URI has an invalid base64 payload") from exc
    return unquote_to_bytes(payload)


async def load_image_bytes(source: bytes | str, *, download: Downloader) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
    elif isinstance(source, str):
        if source.startswith("data:"):
            data = decode_data_uri(source)
        else:
            logger.info("fetching poster bytes url=%s", source)
            data = await download(source)
    else:
        raise TypeError(f"Unsupported image source: {type(source).__name__}")

    if len(data) == 0:
        raise EmptyPayloadError("Image data is empty")
    return data


def _fallback_rectangle(host: HostDocument, target: Any, paint: ImagePaint) -> HostNode:
    rect = host.create_rectangle()
    rect.name = f"{getattr(target, 'name', '') or 'Poster'} poster"
    rect.resize(target.width, target.height)
    rect.fills = [paint]
    if accepts_children(target):
        # Child coordinates are relative to the parent.
        rect.x = 0
        rect.y = 0
        target.append_child(rect)
    else:
        rect.x = target.x
        rect.y = target.y
        host.append_to_page(rect)
    return rect


def apply_image_fill(
    host: HostDocument,
    node: Any,
    paint: ImagePaint,
    *,
    fallback: bool,
) -> Any | None:
    """Replace the node's fills with ``paint``; return the node that took it."""

    failure: Exception | None = None
    if hasattr(node, "fills"):
        try:
            node.fills = [paint]
            return node
        except Exception as exc:
            failure = exc

    if not fallback:
        logger.warning("node cannot take an image fill node=%r", node, exc_info=failure)
        return None

    logger.info("placing poster on a substitute rectangle node=%r", node, exc_info=failure)
    return _fallback_rectangle(host, node, paint)


async def insert_poster(
    host: HostDocument,
    channel: UIChannel,
    node: Any,
    source: bytes | str,
    *,
    download: Downloader,
    fallback: bool = True,
) -> bool:
    """Fill ``node`` with the poster image; report any failure as a snackbar."""

    try:
        data = await load_image_bytes(source, download=download)
        image = host.create_image(data)
        paint = ImagePaint(image_hash=image.hash)
        placed = apply_image_fill(host, node, paint, fallback=fallback)
        return placed is not None
    except Exception:
        logger.exception("insert_poster failed node=%r", node)
        snack(channel, INSERT_FAILED)
        return False
