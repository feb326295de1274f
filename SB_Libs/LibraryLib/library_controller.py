"""
Glue between the image library and the sticky notification.

ImageLibrary only records state. LibraryController is where user actions
turn into notification commands: toggling the notification sends START or
STOP, and changing the active image while the notification shows sends a
fresh START so the new image is displayed.
"""

import logging
from typing import Optional

from SB_Libs.LibraryLib.image_library import ImageLibrary
from SB_Libs.NotifyLib.notification_service import StickyNotificationService

logger = logging.getLogger(__name__)


class LibraryController:
    """
    Applies user actions to the library and drives the notification service.

    Args:
        library: The image library state
        service: The notification service receiving START/STOP
        resume: Restart the notification if the loaded state says it was on
    """

    def __init__(self, library: ImageLibrary, service: StickyNotificationService, resume: bool = True):
        self.library = library
        self.service = service

        if resume and library.notification_active:
            logger.info("Resuming notification from saved state")
            self.service.start(library.active_image)

    def add_image(self, locator: str) -> None:
        previous_active = self.library.active_image
        self.library.add_image(locator)
        self._sync_active(previous_active)

    def replace_image(self, old_locator: str, new_locator: str) -> bool:
        previous_active = self.library.active_image
        replaced = self.library.replace_image(old_locator, new_locator)
        if replaced:
            self._sync_active(previous_active)
        return replaced

    def set_active_image(self, locator: Optional[str]) -> bool:
        previous_active = self.library.active_image
        accepted = self.library.set_active_image(locator)
        if accepted:
            self._sync_active(previous_active)
        return accepted

    def set_notification_active(self, active: bool) -> None:
        self.library.set_notification_active(active)
        if active:
            self.service.start(self.library.active_image)
        else:
            self.service.stop()

    def toggle_notification(self) -> bool:
        active = not self.library.notification_active
        self.set_notification_active(active)
        return active

    def _sync_active(self, previous_active: Optional[str]) -> None:
        if not self.library.notification_active:
            return
        if self.library.active_image == previous_active:
            return
        logger.debug(f"Active image changed to {self.library.active_image}, refreshing notification")
        self.service.start(self.library.active_image)
