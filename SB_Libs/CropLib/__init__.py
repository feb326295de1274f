"""
CropLib - Square crop geometry and image I/O

This module provides the crop rectangle math, the interactive crop
session and the decode/extract/save helpers used by the crop dialog.
"""

from SB_Libs.CropLib.crop_geometry import (
    CropRectangle,
    DisplayRectangle,
    initialize_centered_square,
    translate,
    to_display_space,
    from_display_space,
    display_delta_to_image,
    grid_lines,
    recenter_square,
    reset_square,
)
from SB_Libs.CropLib.crop_session import CropSession
from SB_Libs.CropLib.image_io import (
    resolve_locator,
    decode_image,
    materialize,
    save_cropped_png,
    crop_to_file,
)

__all__ = [
    "CropRectangle",
    "DisplayRectangle",
    "initialize_centered_square",
    "translate",
    "to_display_space",
    "from_display_space",
    "display_delta_to_image",
    "grid_lines",
    "recenter_square",
    "reset_square",
    "CropSession",
    "resolve_locator",
    "decode_image",
    "materialize",
    "save_cropped_png",
    "crop_to_file",
]
