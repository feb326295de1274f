"""
Constants and configuration values for StatBuddy.

This module centralizes all constant values, magic numbers, and
configuration settings used throughout the application.
"""

# Application directories and files
APP_DIR_NAME = ".statbuddy"
CACHE_DIR_NAME = "cache"
CONFIG_FILENAME = "statbuddy_config.json"
PREFS_FILENAME = "statbuddy_prefs.json"

# Preference keys
KEY_NOTIFICATION_ACTIVE = "notification_active"
KEY_ACTIVE_IMAGE_URI = "active_image_uri"
KEY_SAVED_IMAGES = "saved_images"

# Locator handling
FILE_URI_SCHEME = "file://"

# Crop output
CROPPED_FILE_PREFIX = "cropped_"
CROPPED_FILE_SUFFIX = ".png"
DEFAULT_OUTPUT_FORMAT = "PNG"

# Notification icons
ICON_DIR_NAME = "notification_icons"
TEMP_ICON_NAME = "temp_notification_icon.png"
ICON_SIZE = 96
ICON_PADDING = 8
THUMBNAIL_SIZE = 64

# Notification service
UPDATE_INTERVAL_SECONDS = 15.0
FUTURE_TIME_OFFSET_MS = 100000000
NOTIFICATION_TITLE_PLAYING = "Playing"
NOTIFICATION_TITLE_PAUSED = "Paused"
NOTIFICATION_TITLE_PREFIX = "⚡ "
NOTIFICATION_TEXT = "StatBuddy running"
NOTIFICATION_AUDIO_SUFFIX = " (device audio playing)"
NOTIFICATION_SUB_TEXT = "! StatBuddy notification"
PRIORITY_MAX = "max"
CATEGORY_CALL = "call"

# Background tasks
DEFAULT_MAX_WORKERS = 2
TASK_KEY_CROP_DECODE = "crop-decode"
TASK_KEY_CROP_SAVE = "crop-save"
TASK_KEY_NOTIFICATION_IMAGE = "notification-image"

# UI constants
DEFAULT_WINDOW_WIDTH = 900
DEFAULT_WINDOW_HEIGHT = 640
CROP_DIALOG_WIDTH = 800
CROP_DIALOG_HEIGHT = 700
LIBRARY_GRID_ICON_SIZE = 128
CROP_MASK_COLOR = "#80000000"
CROP_BORDER_COLOR = "#ffffff"
CROP_GRID_COLOR = "#80ffffff"

# Supported file formats
SUPPORTED_STANDARD_IMAGES = (".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".webp")
IMAGE_FILE_FILTER = "Images (" + " ".join(f"*{ext}" for ext in SUPPORTED_STANDARD_IMAGES) + ")"
