"""
Image input/output for the cropper.

This module resolves image locators to files, decodes them with Pillow,
extracts crop regions and writes the cropped result as a PNG into the
application cache.

Functions:
    resolve_locator: Turn a locator string (path or file:// URI) into a Path
    decode_image: Open and fully load an image, raising DecodeError on failure
    materialize: Extract the pixel region bounded by a crop rectangle
    save_cropped_png: Write a cropped image to a new cropped_*.png file
    crop_to_file: Decode, crop and save in one call (worker friendly)
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Union
from urllib.parse import unquote, urlparse

from PIL import Image

from SB_Libs.CropLib.crop_geometry import CropRectangle
from SB_Libs.constants import (
    CROPPED_FILE_PREFIX,
    CROPPED_FILE_SUFFIX,
    DEFAULT_OUTPUT_FORMAT,
    FILE_URI_SCHEME,
)
from SB_Libs.errors import DecodeError, ExtractionError

logger = logging.getLogger(__name__)

# Modes Pillow can write straight to PNG
PNG_SAFE_MODES = {"1", "L", "LA", "I", "P", "RGB", "RGBA"}


def resolve_locator(locator: Union[str, Path]) -> Path:
    """
    Resolve an image locator to a filesystem path.

    Accepts plain paths and ``file://`` URIs (percent-encoding is decoded).

    Raises:
        DecodeError: If the locator is empty or uses an unsupported scheme
    """
    if isinstance(locator, Path):
        return locator

    text = str(locator or "").strip()
    if not text:
        raise DecodeError("Empty image locator")

    if text.startswith(FILE_URI_SCHEME):
        parsed = urlparse(text)
        return Path(unquote(parsed.path))

    if "://" in text:
        raise DecodeError(f"Unsupported locator scheme: {text}")

    return Path(text)


def decode_image(locator: Union[str, Path]) -> Any:
    """
    Open and fully decode an image.

    Args:
        locator: Path or file:// URI of the image

    Returns:
        A loaded PIL Image

    Raises:
        DecodeError: If the file is missing, unreadable, denied or not an image
    """
    path = resolve_locator(locator)
    try:
        with Image.open(path) as opened:
            opened.load()
            image = opened.copy()
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Cannot decode image {locator}: {exc}") from exc

    logger.debug(f"Decoded {path} ({image.width}x{image.height}, {image.mode})")
    return image


def materialize(rect: CropRectangle, source_image: Any) -> Any:
    """
    Extract the pixel region bounded by the integer-truncated rectangle.

    Args:
        rect: Crop rectangle in image pixel space
        source_image: A PIL Image, or a locator to decode first

    Returns:
        A new PIL Image holding only the cropped pixels

    Raises:
        ExtractionError: If the source cannot be decoded or the rectangle
            is empty or lies outside the image bounds
    """
    if isinstance(source_image, (str, Path)):
        try:
            source_image = decode_image(source_image)
        except DecodeError as exc:
            raise ExtractionError(str(exc)) from exc

    if source_image is None:
        raise ExtractionError("No source image to crop")

    left, top, right, bottom = rect.as_box()
    width, height = source_image.size

    if right <= left or bottom <= top:
        raise ExtractionError(f"Empty crop region {rect.as_box()}")

    if left < 0 or top < 0 or right > width or bottom > height:
        raise ExtractionError(
            f"Crop region {rect.as_box()} lies outside image bounds {width}x{height}"
        )

    try:
        cropped = source_image.crop((left, top, right, bottom))
        cropped.load()
    except (OSError, ValueError) as exc:
        raise ExtractionError(f"Cannot extract crop region: {exc}") from exc

    return cropped


def save_cropped_png(image: Any, cache_dir: Path) -> str:
    """
    Save a cropped image as a new ``cropped_*.png`` file in ``cache_dir``.

    Returns:
        The locator (file path string) of the written file

    Raises:
        OSError: If the cache directory cannot be created or written
    """
    cache_dir.mkdir(parents=True, exist_ok=True)

    if image.mode not in PNG_SAFE_MODES:
        image = image.convert("RGBA")

    handle, name = tempfile.mkstemp(prefix=CROPPED_FILE_PREFIX, suffix=CROPPED_FILE_SUFFIX, dir=str(cache_dir))
    try:
        with os.fdopen(handle, "wb") as out:
            image.save(out, format=DEFAULT_OUTPUT_FORMAT)
    except Exception:
        Path(name).unlink(missing_ok=True)
        raise

    logger.info(f"Saved cropped image to {name}")
    return name


def crop_to_file(locator: Union[str, Path], rect: CropRectangle, cache_dir: Path) -> str:
    """
    Decode ``locator``, crop it to ``rect`` and save the result as PNG.

    Raises:
        DecodeError: If the source image cannot be decoded
        ExtractionError: If the rectangle cannot be extracted
    """
    source = decode_image(locator)
    cropped = materialize(rect, source)
    return save_cropped_png(cropped, cache_dir)
