"""
Loads frame rasters from their URI-like references.

Supported references are ``data:`` URLs, ``http://`` and ``https://`` URLs,
``file://`` URLs and plain file system paths. Every failure, whether the
bytes can not be fetched or not be decoded, surfaces as
:class:`~storystag.exceptions.ImageLoadError` so that no partially loaded
frame ever reaches an encoder.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
import os
from urllib.error import URLError
from urllib.parse import unquote_to_bytes, urlparse
from urllib.request import urlopen

import PIL.Image
import filetype

from .config import settings
from .exceptions import ImageLoadError

logger = logging.getLogger(__name__)

HTTP_PROTOCOL_URL_HEADER = "http://"
HTTPS_PROTOCOL_URL_HEADER = "https://"
FILE_PROTOCOL_URL_HEADER = "file://"
DATA_URL_HEADER = "data:"


def _describe(reference: str) -> str:
    """Shortens data URLs for log and error messages."""
    if reference.startswith(DATA_URL_HEADER):
        return reference[:40] + "..." if len(reference) > 40 else reference
    return reference


def decode_data_url(data_url: str) -> bytes:
    """Extracts the payload of a data URL.

    :param data_url: Data URL like 'data:image/png;base64,...'
    :return: The raw bytes
    """
    if "," not in data_url:
        raise ValueError("Invalid data URL format - missing comma separator")
    header, encoded = data_url.split(",", 1)
    if header.endswith(";base64"):
        return base64.b64decode(encoded, validate=True)
    return unquote_to_bytes(encoded)


def _fetch_url(url: str) -> bytes:
    with urlopen(url, timeout=settings.FETCH_TIMEOUT) as response:
        return response.read()


async def fetch_bytes(reference: str) -> bytes:
    """Fetches the raw bytes a frame reference points to.

    :param reference: The frame's image reference
    :return: The raw (still encoded) image bytes
    """
    try:
        if reference.startswith(DATA_URL_HEADER):
            return decode_data_url(reference)
        if reference.startswith(HTTP_PROTOCOL_URL_HEADER) or reference.startswith(
            HTTPS_PROTOCOL_URL_HEADER
        ):
            return await asyncio.to_thread(_fetch_url, reference)
        path = reference
        if reference.startswith(FILE_PROTOCOL_URL_HEADER):
            path = unquote_to_bytes(urlparse(reference).path).decode("utf-8")
        if not os.path.exists(path):
            raise ImageLoadError(f"Frame source not found: {_describe(reference)}")
        with open(path, "rb") as f:
            return f.read()
    except ImageLoadError:
        raise
    except (URLError, OSError, ValueError, binascii.Error) as e:
        raise ImageLoadError(
            f"Failed to fetch frame source {_describe(reference)}: {e}"
        ) from e


def decode_image(data: bytes, reference: str = "<bytes>") -> PIL.Image.Image:
    """Fully decodes image bytes into an RGBA PIL image.

    :param data: Encoded image bytes
    :param reference: Source description for error messages
    :return: The decoded image
    """
    kind = filetype.guess(data)
    if kind is not None and not kind.mime.startswith("image/"):
        raise ImageLoadError(
            f"Frame source {_describe(reference)} is {kind.mime}, not an image"
        )
    try:
        with PIL.Image.open(io.BytesIO(data)) as handle:
            handle.load()
            image = handle.convert("RGBA")
    except (OSError, ValueError, SyntaxError, PIL.Image.DecompressionBombError) as e:
        raise ImageLoadError(
            f"Failed to decode frame source {_describe(reference)}: {e}"
        ) from e
    if image.width == 0 or image.height == 0:
        raise ImageLoadError(f"Frame source {_describe(reference)} is empty")
    return image


async def load_image(reference: str) -> PIL.Image.Image:
    """Fetches and decodes one frame raster.

    :param reference: The frame's image reference
    :return: The decoded RGBA image
    :raises ImageLoadError: If the raster can not be fetched or decoded
    """
    data = await fetch_bytes(reference)
    image = decode_image(data, reference)
    logger.debug(f"Loaded frame {_describe(reference)} ({image.width}x{image.height})")
    return image
