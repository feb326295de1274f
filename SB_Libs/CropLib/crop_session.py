"""
Interactive crop state.

A CropSession owns the single crop rectangle for one image and applies
discrete input events to it (drag start / move / end and the two reset
buttons). Each drag move is a pure function of the previous rectangle, so
events must be fed in the order they arrive.
"""

import logging
from typing import List, Optional, Tuple

from SB_Libs.CropLib.crop_geometry import (
    CropRectangle,
    DisplayRectangle,
    LineSegment,
    display_delta_to_image,
    grid_lines,
    initialize_centered_square,
    recenter_square,
    reset_square,
    to_display_space,
    translate,
)

logger = logging.getLogger(__name__)


class CropSession:
    """
    Crop state for a single decoded image.

    Example:
        >>> session = CropSession(800, 600)
        >>> session.rect
        CropRectangle(left=100.0, top=0.0, right=700.0, bottom=600.0)
        >>> session.drag_start(0, 0)
        >>> session.drag_move(50, 0).left
        150.0
    """

    def __init__(self, image_width: float, image_height: float):
        self.image_width = float(image_width)
        self.image_height = float(image_height)
        self.rect: CropRectangle = initialize_centered_square(self.image_width, self.image_height)
        self._drag_origin: Optional[Tuple[float, float]] = None

    @property
    def is_dragging(self) -> bool:
        return self._drag_origin is not None

    def drag_start(self, x: float, y: float) -> None:
        self._drag_origin = (x, y)

    def drag_move(self, dx: float, dy: float) -> CropRectangle:
        """Apply an image-space delta. Out-of-bounds moves are ignored whole."""
        moved = translate(self.rect, dx, dy, self.image_width, self.image_height)
        if moved is self.rect:
            logger.debug(f"Rejected crop move ({dx}, {dy}) at {self.rect}")
        self.rect = moved
        return self.rect

    def drag_move_display(self, dx: float, dy: float, canvas_width: float, canvas_height: float) -> CropRectangle:
        """Apply a delta measured on a canvas of the given size."""
        scale = self.display(canvas_width, canvas_height).scale
        image_dx, image_dy = display_delta_to_image(dx, dy, scale)
        return self.drag_move(image_dx, image_dy)

    def drag_end(self) -> None:
        self._drag_origin = None

    def recenter(self) -> CropRectangle:
        self.rect = recenter_square(self.rect, self.image_width, self.image_height)
        return self.rect

    def reset(self) -> CropRectangle:
        self.rect = reset_square(self.image_width, self.image_height)
        return self.rect

    def display(self, canvas_width: float, canvas_height: float) -> DisplayRectangle:
        return to_display_space(self.rect, self.image_width, self.image_height, canvas_width, canvas_height)

    def grid(self, canvas_width: float, canvas_height: float) -> List[LineSegment]:
        return grid_lines(self.display(canvas_width, canvas_height))
