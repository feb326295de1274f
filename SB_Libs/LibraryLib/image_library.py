"""
Image library state for StatBuddy.

The ImageLibrary owns the ordered list of known images, which one is active,
and whether the sticky notification is supposed to be showing. It is a plain
state holder: it never starts or stops the notification itself. Views either
poll ``snapshot()`` or ``subscribe()`` to change events.

When a PreferencesStore is supplied, the full state is written after every
mutation and read back on construction. Persistence failures are logged and
ignored; the in-memory state stays authoritative for the session.

Classes:
    LibrarySnapshot: Immutable view of the library state
    LibraryChange: Change event delivered to subscribers
    ImageLibrary: Mutable library state with publish/subscribe
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from SB_Libs.LibraryLib.prefs_store import PreferencesStore
from SB_Libs.constants import (
    KEY_ACTIVE_IMAGE_URI,
    KEY_NOTIFICATION_ACTIVE,
    KEY_SAVED_IMAGES,
)
from SB_Libs.errors import PersistenceError

logger = logging.getLogger(__name__)

# Change kinds
CHANGE_LOADED = "loaded"
CHANGE_ADDED = "added"
CHANGE_REPLACED = "replaced"
CHANGE_ACTIVE = "active_changed"
CHANGE_NOTIFICATION = "notification_toggled"


@dataclass(frozen=True)
class LibrarySnapshot:
    images: Tuple[str, ...]
    active_image: Optional[str]
    notification_active: bool


@dataclass(frozen=True)
class LibraryChange:
    """A single mutation. ``previous`` and ``current`` are full snapshots."""
    kind: str
    previous: LibrarySnapshot
    current: LibrarySnapshot

    @property
    def active_changed(self) -> bool:
        return self.previous.active_image != self.current.active_image


Subscriber = Callable[[LibraryChange], None]


class ImageLibrary:
    """
    Ordered, duplicate-free collection of image locators plus the active pointer.

    Args:
        store: Optional PreferencesStore for durable state
        require_membership: When True, set_active_image() ignores locators
            that are not in the library. Off by default so an image can be
            previewed without saving it first.
    """

    def __init__(self, store: Optional[PreferencesStore] = None, require_membership: bool = False):
        self._store = store
        self.require_membership = require_membership
        self._images: List[str] = []
        self._active_image: Optional[str] = None
        self._notification_active = False
        self._subscribers: List[Subscriber] = []

        if store is not None:
            self._hydrate()

    # State access

    @property
    def images(self) -> List[str]:
        return list(self._images)

    @property
    def active_image(self) -> Optional[str]:
        return self._active_image

    @property
    def notification_active(self) -> bool:
        return self._notification_active

    def __len__(self) -> int:
        return len(self._images)

    def __contains__(self, locator: object) -> bool:
        return locator in self._images

    def snapshot(self) -> LibrarySnapshot:
        return LibrarySnapshot(tuple(self._images), self._active_image, self._notification_active)

    # Subscription

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register ``callback`` for change events.

        Returns:
            A callable that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, kind: str, previous: LibrarySnapshot) -> None:
        change = LibraryChange(kind, previous, self.snapshot())
        for callback in list(self._subscribers):
            try:
                callback(change)
            except Exception:
                logger.exception(f"Library subscriber failed on '{kind}' change")

    # Mutations

    def add_image(self, locator: str) -> bool:
        """
        Append ``locator`` unless it is already present.

        The added image becomes active whenever no image is active, which
        covers the first image added to an empty library.

        Returns:
            True if the library changed
        """
        previous = self.snapshot()
        added = False
        if locator not in self._images:
            self._images.append(locator)
            added = True

        # Any add fills an empty active slot, not only the first add.
        if self._active_image is None:
            self._active_image = locator

        if not added and previous.active_image == self._active_image:
            return False

        logger.debug(f"Added image {locator} (active: {self._active_image})")
        self._persist()
        self._publish(CHANGE_ADDED, previous)
        return True

    def replace_image(self, old_locator: str, new_locator: str) -> bool:
        """
        Replace ``old_locator`` in place with ``new_locator``.

        If the old image was active, the new one becomes active. A missing
        ``old_locator`` is a silent no-op.

        Returns:
            True if a replacement happened
        """
        try:
            index = self._images.index(old_locator)
        except ValueError:
            logger.debug(f"Replace skipped, {old_locator} not in library")
            return False

        previous = self.snapshot()
        if new_locator in self._images and new_locator != old_locator:
            # Keep the list duplicate-free: the replacement takes the old slot.
            self._images.remove(new_locator)
            index = self._images.index(old_locator)
        self._images[index] = new_locator

        if self._active_image == old_locator:
            self._active_image = new_locator

        logger.debug(f"Replaced image {old_locator} with {new_locator}")
        self._persist()
        self._publish(CHANGE_REPLACED, previous)
        return True

    def set_active_image(self, locator: Optional[str]) -> bool:
        """
        Mark ``locator`` as the active image.

        Returns:
            False if the call was ignored because ``require_membership`` is
            set and the locator is not in the library
        """
        if self.require_membership and locator is not None and locator not in self._images:
            logger.warning(f"Ignoring active image {locator}: not in library")
            return False

        previous = self.snapshot()
        self._active_image = locator
        self._persist()
        self._publish(CHANGE_ACTIVE, previous)
        return True

    def set_notification_active(self, active: bool) -> None:
        """Record whether the notification should show. Starting it is the caller's job."""
        previous = self.snapshot()
        self._notification_active = bool(active)
        self._persist()
        self._publish(CHANGE_NOTIFICATION, previous)

    # Persistence

    def _hydrate(self) -> None:
        if not self._store.exists():
            logger.debug(f"No saved library state at {self._store.path}")
            return
        previous = self.snapshot()
        try:
            state = self._store.load_all()
        except PersistenceError as exc:
            logger.error(f"Could not load library state: {exc}")
            return

        self._images = list(state[KEY_SAVED_IMAGES])
        self._active_image = state[KEY_ACTIVE_IMAGE_URI]
        self._notification_active = state[KEY_NOTIFICATION_ACTIVE]
        logger.info(f"Loaded {len(self._images)} saved image(s), notification active: {self._notification_active}")
        self._publish(CHANGE_LOADED, previous)

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save_all(self._notification_active, self._active_image, self._images)
        except PersistenceError as exc:
            logger.error(f"Could not persist library state: {exc}")
