"""
Notification artwork for StatBuddy.

Builds the two images the sticky notification shows: a small thumbnail used
as the large icon, and a square monochrome icon rendered to the cache and
tracked by an IconRegistry.

Classes:
    IconRegistry: Owned map from generated icon ids to icon files

Functions:
    make_thumbnail: Aspect-preserving downscale to a maximum side length
    make_notification_icon: Square, padded, desaturated icon
"""

import logging
import zlib
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image, ImageOps

from SB_Libs.constants import (
    DEFAULT_OUTPUT_FORMAT,
    ICON_DIR_NAME,
    ICON_PADDING,
    ICON_SIZE,
    TEMP_ICON_NAME,
    THUMBNAIL_SIZE,
)

logger = logging.getLogger(__name__)


def make_thumbnail(image: Any, max_size: int = THUMBNAIL_SIZE) -> Any:
    """
    Shrink ``image`` so its longer side is ``max_size``.

    Images that already fit are returned as-is.
    """
    width, height = image.size
    if width <= max_size and height <= max_size:
        return image

    ratio = width / height
    if ratio > 1:
        target_width = max_size
        target_height = max(1, int(max_size / ratio))
    else:
        target_width = max(1, int(max_size * ratio))
        target_height = max_size

    return image.resize((target_width, target_height), Image.LANCZOS)


def make_notification_icon(image: Any, size: int = ICON_SIZE, padding: int = ICON_PADDING) -> Any:
    """
    Render a square monochrome icon from ``image``.

    The shorter side is scaled to ``size - 2 * padding`` and the image is
    centered on a transparent canvas; whatever overflows the canvas along the
    longer side is cut off. Colour is removed but alpha is kept.

    Returns:
        A ``size`` x ``size`` RGBA image
    """
    source = image.convert("RGBA")
    width, height = source.size
    inner = size - 2 * padding
    if inner <= 0:
        raise ValueError(f"Icon padding {padding} leaves no room in a {size}px icon")

    if width > height:
        scale = inner / height
        left = (size - width * scale) / 2
        top = padding
    else:
        scale = inner / width
        left = padding
        top = (size - height * scale) / 2

    scaled = source.resize(
        (max(1, round(width * scale)), max(1, round(height * scale))),
        Image.LANCZOS,
    )

    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    canvas.paste(scaled, (int(round(left)), int(round(top))), scaled)

    grey = ImageOps.grayscale(canvas)
    result = Image.merge("RGBA", (grey, grey, grey, canvas.getchannel("A")))
    return result


class IconRegistry:
    """
    Tracks generated notification icons.

    Each icon file gets a stable id derived from its path. The registry is
    owned by one notification service instance rather than shared globally.
    """

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self._icons: Dict[int, Path] = {}
        self.current_icon_id: Optional[int] = None

    def register(self, icon_path: Path) -> int:
        icon_id = zlib.crc32(str(icon_path).encode("utf-8"))
        self._icons[icon_id] = Path(icon_path)
        return icon_id

    def get(self, icon_id: int) -> Optional[Path]:
        return self._icons.get(icon_id)

    def create_icon(self, image: Any) -> Optional[int]:
        """
        Render, save and register a notification icon for ``image``.

        The caller decides when the icon becomes ``current_icon_id``.

        Returns:
            The icon id, or None if the icon could not be written
        """
        icon_dir = self.cache_dir / ICON_DIR_NAME
        icon_path = icon_dir / TEMP_ICON_NAME
        try:
            icon = make_notification_icon(image)
            icon_dir.mkdir(parents=True, exist_ok=True)
            icon.save(icon_path, format=DEFAULT_OUTPUT_FORMAT)
        except (OSError, ValueError) as exc:
            logger.error(f"Failed to save notification icon: {exc}")
            return None

        return self.register(icon_path)

    def clear(self) -> None:
        self._icons.clear()
        self.current_icon_id = None
