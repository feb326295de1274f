"""
LibraryLib - Image library state and persistence

This module holds the saved image list, the active image pointer and the
notification flag, persists them, and wires them to the notification service.
"""

from SB_Libs.LibraryLib.prefs_store import PreferencesStore
from SB_Libs.LibraryLib.image_library import (
    ImageLibrary,
    LibraryChange,
    LibrarySnapshot,
)
from SB_Libs.LibraryLib.library_controller import LibraryController

__all__ = [
    "PreferencesStore",
    "ImageLibrary",
    "LibraryChange",
    "LibrarySnapshot",
    "LibraryController",
]
