"""
NotifyLib - Sticky notification service

Modules:
    notification_icons: Thumbnail and monochrome icon rendering, IconRegistry
    notification_service: START/STOP command handling and periodic refresh
"""

from SB_Libs.NotifyLib.notification_icons import (
    IconRegistry,
    make_thumbnail,
    make_notification_icon,
)
from SB_Libs.NotifyLib.notification_service import (
    ServiceConfig,
    NotificationContent,
    NotificationSink,
    RefreshTimer,
    StickyNotificationService,
)

__all__ = [
    "IconRegistry",
    "make_thumbnail",
    "make_notification_icon",
    "ServiceConfig",
    "NotificationContent",
    "NotificationSink",
    "RefreshTimer",
    "StickyNotificationService",
]
