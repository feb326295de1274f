"""
Preferences storage for StatBuddy.

This module persists the image library state as a small JSON key-value file.

The file holds three keys:
- notification_active: whether the sticky notification should be showing
- active_image_uri: locator of the active image (or null)
- saved_images: list of saved image locators, in library order

Reads are forgiving: a missing, unreadable or malformed file yields defaults.
Writes replace the file atomically and raise PersistenceError on failure.

Classes:
    PreferencesStore: Key-value store backed by a JSON file
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from SB_Libs.constants import (
    KEY_ACTIVE_IMAGE_URI,
    KEY_NOTIFICATION_ACTIVE,
    KEY_SAVED_IMAGES,
)
from SB_Libs.errors import PersistenceError

logger = logging.getLogger(__name__)


def _normalize_images(value: Any) -> List[str]:
    """Keep string locators only, dropping blanks and duplicates but keeping order."""
    if not isinstance(value, (list, tuple)):
        return []

    images: List[str] = []
    seen = set()
    for item in value:
        if not isinstance(item, str):
            continue
        locator = item.strip()
        if not locator or locator in seen:
            continue
        seen.add(locator)
        images.append(locator)
    return images


class PreferencesStore:
    """Persist the notification flag, the active image and the saved image list."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load_all(self) -> Dict[str, Any]:
        """
        Load every key with defaults filled in.

        Returns:
            Dict with notification_active, active_image_uri and saved_images
        """
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            payload = {}
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {exc}")
            payload = {}

        if not isinstance(payload, dict):
            payload = {}

        active = payload.get(KEY_ACTIVE_IMAGE_URI)
        if not isinstance(active, str) or not active.strip():
            active = None

        return {
            KEY_NOTIFICATION_ACTIVE: bool(payload.get(KEY_NOTIFICATION_ACTIVE, False)),
            KEY_ACTIVE_IMAGE_URI: active,
            KEY_SAVED_IMAGES: _normalize_images(payload.get(KEY_SAVED_IMAGES)),
        }

    def save_all(self, notification_active: bool, active_image: Optional[str], saved_images: List[str]) -> None:
        """
        Write the full state in one atomic replace.

        Raises:
            PersistenceError: If the file cannot be written
        """
        payload = {
            KEY_NOTIFICATION_ACTIVE: bool(notification_active),
            KEY_ACTIVE_IMAGE_URI: active_image,
            KEY_SAVED_IMAGES: list(saved_images),
        }
        self._write(payload)

    def _write(self, payload: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handle, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(handle, "w", encoding="utf-8") as out:
                    json.dump(payload, out, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Cannot write preferences to {self.path}: {exc}") from exc

