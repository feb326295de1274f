"""
Sticky notification service for StatBuddy.

The service renders the active image as a persistent, high-priority
notification and keeps it on top by republishing it on a timer with a
timestamp far in the future. It is driven by two commands, START and STOP,
plus PLAY and PAUSE from the notification's own action button.

Rendering is delegated to a NotificationSink. The desktop app uses a system
tray icon; tests use an in-memory sink.

Supported commands:
- start(locator): show the notification, decoding the image if it changed;
  a None locator clears the displayed image
- stop(): withdraw the notification and release everything
- play() / pause(): toggle the playback state shown in the notification
- refresh(): republish with a fresh timestamp (called by the timer)

Classes:
    ServiceConfig: Tunables for the service
    NotificationContent: Everything a sink needs to draw the notification
    NotificationSink: Rendering interface
    RefreshTimer: Background periodic callback
    StickyNotificationService: Command handler and state owner
"""

import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from SB_Libs.CropLib.image_io import decode_image
from SB_Libs.NotifyLib.notification_icons import IconRegistry, make_thumbnail
from SB_Libs.TaskLib.decode_tasks import BackgroundTasks
from SB_Libs.constants import (
    CATEGORY_CALL,
    FUTURE_TIME_OFFSET_MS,
    NOTIFICATION_AUDIO_SUFFIX,
    NOTIFICATION_SUB_TEXT,
    NOTIFICATION_TEXT,
    NOTIFICATION_TITLE_PAUSED,
    NOTIFICATION_TITLE_PLAYING,
    NOTIFICATION_TITLE_PREFIX,
    PRIORITY_MAX,
    TASK_KEY_NOTIFICATION_IMAGE,
    THUMBNAIL_SIZE,
    UPDATE_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)


@dataclass
class ServiceConfig:
    """Configuration for the sticky notification service.

    Attributes:
        update_interval: Seconds between republishes (default: 15)
        thumbnail_size: Longest side of the large icon in pixels (default: 64)
        future_offset_ms: How far ahead the notification timestamp is set
        text: Body text
        sub_text: Secondary line
    """
    update_interval: float = UPDATE_INTERVAL_SECONDS
    thumbnail_size: int = THUMBNAIL_SIZE
    future_offset_ms: int = FUTURE_TIME_OFFSET_MS
    text: str = NOTIFICATION_TEXT
    sub_text: str = NOTIFICATION_SUB_TEXT

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceConfig":
        """Create from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        config = cls(**filtered)
        if config.update_interval <= 0:
            raise ValueError(f"update_interval must be positive, got {config.update_interval}")
        if config.thumbnail_size <= 0:
            raise ValueError(f"thumbnail_size must be positive, got {config.thumbnail_size}")
        return config


@dataclass
class NotificationContent:
    title: str
    text: str
    sub_text: str
    when_ms: int
    playing: bool
    image_locator: Optional[str] = None
    large_icon: Any = None
    small_icon_id: Optional[int] = None
    priority: str = PRIORITY_MAX
    category: str = CATEGORY_CALL
    ongoing: bool = True
    silent: bool = True
    extras: Dict[str, Any] = field(default_factory=dict)


class NotificationSink:
    """Draws notifications. Subclasses override publish() and withdraw()."""

    def publish(self, content: NotificationContent) -> None:
        raise NotImplementedError

    def withdraw(self) -> None:
        raise NotImplementedError


class RefreshTimer:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread until stopped."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self.stop()
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="statbuddy-refresh", daemon=True
        )
        self._thread.start()

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Periodic notification update failed")

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval + 1.0)


class StickyNotificationService:
    """
    Owns the notification state and handles START/STOP/PLAY/PAUSE.

    Args:
        sink: Where notifications are drawn
        cache_dir: Directory for generated icon files
        config: Service tunables
        tasks: Background runner for image decoding
        audio_probe: Returns True when other audio is playing on the device
        clock: Returns the current time in seconds
    """

    def __init__(
        self,
        sink: NotificationSink,
        cache_dir: Path,
        config: Optional[ServiceConfig] = None,
        tasks: Optional[BackgroundTasks] = None,
        audio_probe: Optional[Callable[[], bool]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.sink = sink
        self.config = config or ServiceConfig()
        self.icons = IconRegistry(cache_dir)
        self._owns_tasks = tasks is None
        self.tasks = tasks or BackgroundTasks(max_workers=1)
        self.audio_probe = audio_probe or (lambda: False)
        self.clock = clock

        self._lock = threading.RLock()
        self._timer = RefreshTimer(self.config.update_interval, self.refresh)
        self.running = False
        self.playing = False
        self.foreground_audio = False
        self.image_locator: Optional[str] = None
        self.thumbnail: Any = None
        self._decoding = False

    # Commands

    def start(self, locator: Optional[str] = None) -> None:
        """Handle START. Repeating the current locator does not decode again."""
        with self._lock:
            was_running = self.running
            self.running = True
            self.playing = True

            if locator is None:
                self.tasks.cancel(TASK_KEY_NOTIFICATION_IMAGE)
                self._decoding = False
                self.image_locator = None
                self.thumbnail = None
                self.icons.current_icon_id = None
                self._publish()
            elif locator == self.image_locator and (self.thumbnail is not None or self._decoding):
                logger.debug(f"START with unchanged image {locator}, skipping decode")
                if not self._decoding:
                    self._publish()
            else:
                self.image_locator = locator
                self.thumbnail = None
                self.icons.current_icon_id = None
                self._decoding = True
                self.tasks.submit(
                    TASK_KEY_NOTIFICATION_IMAGE,
                    self._load_artwork,
                    locator,
                    on_result=lambda result: self._on_artwork(locator, result),
                    on_error=lambda error: self._on_artwork_error(locator, error),
                )

            restart_timer = not was_running or not self._timer.running

        if restart_timer:
            self._timer.start()
        logger.info(f"Notification started (image: {locator})")

    def stop(self) -> None:
        """Handle STOP: cancel refreshes and decodes, drop artwork, withdraw."""
        self._timer.stop()
        with self._lock:
            self.tasks.cancel(TASK_KEY_NOTIFICATION_IMAGE)
            self._decoding = False
            self.running = False
            self.playing = False
            self.image_locator = None
            self.thumbnail = None
            self.icons.clear()
            try:
                self.sink.withdraw()
            except Exception:
                logger.exception("Failed to withdraw notification")
        logger.info("Notification stopped")

    def play(self) -> None:
        self._set_playing(True)

    def pause(self) -> None:
        self._set_playing(False)

    def toggle_playback(self) -> None:
        self._set_playing(not self.playing)

    def refresh(self) -> None:
        """Republish with a fresh timestamp and re-check device audio."""
        with self._lock:
            if not self.running:
                return
            try:
                self.foreground_audio = bool(self.audio_probe())
            except Exception:
                logger.exception("Audio probe failed")
                self.foreground_audio = False
            if not self._decoding:
                self._publish()

    def shutdown(self) -> None:
        self.stop()
        if self._owns_tasks:
            self.tasks.shutdown(wait=False)

    # Rendering

    def build_content(self) -> NotificationContent:
        state = NOTIFICATION_TITLE_PLAYING if self.playing else NOTIFICATION_TITLE_PAUSED
        text = self.config.text
        if self.foreground_audio:
            text += NOTIFICATION_AUDIO_SUFFIX
        return NotificationContent(
            title=f"{NOTIFICATION_TITLE_PREFIX}{state}",
            text=text,
            sub_text=self.config.sub_text,
            when_ms=int(self.clock() * 1000) + self.config.future_offset_ms,
            playing=self.playing,
            image_locator=self.image_locator if self.thumbnail is not None else None,
            large_icon=self.thumbnail,
            small_icon_id=self.icons.current_icon_id,
        )

    def _publish(self) -> None:
        try:
            self.sink.publish(self.build_content())
        except Exception:
            logger.exception("Failed to update notification")

    def _set_playing(self, playing: bool) -> None:
        with self._lock:
            if not self.running:
                logger.debug("Ignoring playback change while stopped")
                return
            self.playing = playing
            if not self._decoding:
                self._publish()

    # Artwork loading

    def _load_artwork(self, locator: str) -> Tuple[Any, Optional[int]]:
        source = decode_image(locator)
        thumbnail = make_thumbnail(source, self.config.thumbnail_size)
        icon_id = self.icons.create_icon(source)
        return thumbnail, icon_id

    def _on_artwork(self, locator: str, result: Tuple[Any, Optional[int]]) -> None:
        with self._lock:
            if not self.running or locator != self.image_locator:
                logger.debug(f"Discarding stale artwork for {locator}")
                return
            self.thumbnail, icon_id = result
            self.icons.current_icon_id = icon_id
            self._decoding = False
            self._publish()

    def _on_artwork_error(self, locator: str, error: BaseException) -> None:
        logger.error(f"Image loading error for {locator}: {error}")
        with self._lock:
            if not self.running or locator != self.image_locator:
                return
            self.thumbnail = None
            self.icons.current_icon_id = None
            self._decoding = False
            self._publish()
