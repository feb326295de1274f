"""
SB_Libs - StatBuddy Library Modules

This package contains core functionality for StatBuddy,
organized into specialized sub-packages:

- CropLib: Crop rectangle geometry, crop sessions and image I/O
- LibraryLib: Image library state, preferences persistence and wiring
- NotifyLib: Sticky notification rendering, icons and periodic refresh
- TaskLib: Cancellable background decode/encode tasks
"""

__version__ = "0.1.0"
