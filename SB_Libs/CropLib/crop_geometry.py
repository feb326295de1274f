"""
Crop rectangle geometry for StatBuddy.

This module holds the pure 2D math behind the square cropper: building the
default centered square, moving it under drag input, and mapping it onto a
letterboxed display canvas for overlay rendering.

All rectangles are expressed in the source image's pixel space unless noted
otherwise. Every function returns a new value; nothing here mutates its input.

Classes:
    CropRectangle: Crop edges in image pixel space
    DisplayRectangle: Crop edges in canvas space plus the fit transform

Functions:
    initialize_centered_square: Largest centered square inside the image
    translate: All-or-nothing move of a rectangle inside the image bounds
    to_display_space: Map a rectangle onto a letterboxed canvas
    from_display_space: Inverse of to_display_space
    display_delta_to_image: Convert a canvas drag delta into image pixels
    grid_lines: Rule-of-thirds guide segments
    recenter_square: Center a square keeping its current size
    reset_square: Center the largest square (default crop)
"""

from dataclasses import dataclass
from typing import List, Tuple

Point = Tuple[float, float]
LineSegment = Tuple[Point, Point]


@dataclass(frozen=True)
class CropRectangle:
    """Crop rectangle in image coordinates."""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def as_box(self) -> Tuple[int, int, int, int]:
        """Integer-truncated (left, top, right, bottom) box for pixel extraction."""
        left = int(self.left)
        top = int(self.top)
        return (left, top, left + int(self.width), top + int(self.height))

    def is_within(self, image_width: float, image_height: float) -> bool:
        return (
            0 <= self.left < self.right <= image_width
            and 0 <= self.top < self.bottom <= image_height
        )


@dataclass(frozen=True)
class DisplayRectangle:
    """Crop rectangle mapped onto a canvas, with the transform that produced it."""
    left: float
    top: float
    right: float
    bottom: float
    scale: float
    offset_x: float
    offset_y: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


def _check_dimensions(image_width: float, image_height: float) -> None:
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {image_width}x{image_height}")


def _centered_square(size: float, image_width: float, image_height: float) -> CropRectangle:
    left = (image_width - size) / 2
    top = (image_height - size) / 2
    return CropRectangle(left, top, left + size, top + size)


def initialize_centered_square(image_width: float, image_height: float) -> CropRectangle:
    """
    Build the largest square that fits inside the image, centered.

    Args:
        image_width: Source image width in pixels
        image_height: Source image height in pixels

    Returns:
        A square CropRectangle of side min(width, height)

    Raises:
        ValueError: If either dimension is not positive
    """
    _check_dimensions(image_width, image_height)
    return _centered_square(min(image_width, image_height), image_width, image_height)


def translate(
    rect: CropRectangle,
    dx: float,
    dy: float,
    image_width: float,
    image_height: float,
) -> CropRectangle:
    """
    Shift all four edges by (dx, dy).

    The move is all-or-nothing: if any shifted edge would leave
    [0, image_width] x [0, image_height], the input rectangle is returned
    unchanged instead of being clamped against the wall.
    """
    moved = CropRectangle(rect.left + dx, rect.top + dy, rect.right + dx, rect.bottom + dy)
    if (
        moved.left >= 0
        and moved.right <= image_width
        and moved.top >= 0
        and moved.bottom <= image_height
    ):
        return moved
    return rect


def fit_transform(
    image_width: float,
    image_height: float,
    canvas_width: float,
    canvas_height: float,
) -> Tuple[float, float, float]:
    """Return (scale, offset_x, offset_y) for a centered fit-inside of the image."""
    _check_dimensions(image_width, image_height)
    scale = min(canvas_width / image_width, canvas_height / image_height)
    offset_x = (canvas_width - image_width * scale) / 2
    offset_y = (canvas_height - image_height * scale) / 2
    return scale, offset_x, offset_y


def to_display_space(
    rect: CropRectangle,
    image_width: float,
    image_height: float,
    canvas_width: float,
    canvas_height: float,
) -> DisplayRectangle:
    """
    Map an image-space rectangle onto a letterboxed canvas.

    The image is scaled uniformly to fit inside the canvas and centered;
    each edge maps as ``image_coord * scale + offset``.
    """
    scale, offset_x, offset_y = fit_transform(image_width, image_height, canvas_width, canvas_height)
    return DisplayRectangle(
        left=rect.left * scale + offset_x,
        top=rect.top * scale + offset_y,
        right=rect.right * scale + offset_x,
        bottom=rect.bottom * scale + offset_y,
        scale=scale,
        offset_x=offset_x,
        offset_y=offset_y,
    )


def from_display_space(display: DisplayRectangle) -> CropRectangle:
    """Map a canvas rectangle back into image space using its own transform."""
    if display.scale <= 0:
        raise ValueError(f"Display scale must be positive, got {display.scale}")
    return CropRectangle(
        left=(display.left - display.offset_x) / display.scale,
        top=(display.top - display.offset_y) / display.scale,
        right=(display.right - display.offset_x) / display.scale,
        bottom=(display.bottom - display.offset_y) / display.scale,
    )


def display_delta_to_image(dx: float, dy: float, scale: float) -> Tuple[float, float]:
    """Convert a drag delta measured on the canvas into image pixels."""
    if scale <= 0:
        return 0.0, 0.0
    return dx / scale, dy / scale


def grid_lines(rect) -> List[LineSegment]:
    """
    Rule-of-thirds guides for a rectangle.

    Works for both CropRectangle and DisplayRectangle. Returns two vertical
    segments followed by two horizontal ones.
    """
    third_width = (rect.right - rect.left) / 3
    third_height = (rect.bottom - rect.top) / 3

    lines: List[LineSegment] = []
    for i in (1, 2):
        x = rect.left + third_width * i
        lines.append(((x, rect.top), (x, rect.bottom)))
    for i in (1, 2):
        y = rect.top + third_height * i
        lines.append(((rect.left, y), (rect.right, y)))
    return lines


def recenter_square(rect: CropRectangle, image_width: float, image_height: float) -> CropRectangle:
    """
    Center a square crop in the image keeping the rectangle's current width.

    Used by the "re-center" control. The size never exceeds min(width, height).
    """
    _check_dimensions(image_width, image_height)
    size = min(rect.width, image_width, image_height)
    if size <= 0:
        return initialize_centered_square(image_width, image_height)
    return _centered_square(size, image_width, image_height)


def reset_square(image_width: float, image_height: float) -> CropRectangle:
    """Restore the default crop (used by the "reset" control)."""
    return initialize_centered_square(image_width, image_height)
