import logging
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from PyQt5.QtCore import QObject, Qt, pyqtSignal
from PyQt5.QtGui import QIcon, QPixmap
from PyQt5.QtWidgets import (
    QAction,
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMenu,
    QPushButton,
    QStyle,
    QSystemTrayIcon,
    QVBoxLayout,
    QWidget,
)

from SB_Libs.CropLib.crop_window import CropDialog, pil_to_pixmap
from SB_Libs.CropLib.image_io import resolve_locator
from SB_Libs.LibraryLib.image_library import ImageLibrary, LibraryChange
from SB_Libs.LibraryLib.library_controller import LibraryController
from SB_Libs.LibraryLib.library_window import LibraryWindow
from SB_Libs.LibraryLib.prefs_store import PreferencesStore
from SB_Libs.NotifyLib.notification_service import (
    NotificationContent,
    NotificationSink,
    StickyNotificationService,
)
from SB_Libs.TaskLib.decode_tasks import BackgroundTasks
from SB_Libs.app_config import AppConfig, load_app_config
from SB_Libs.constants import DEFAULT_WINDOW_HEIGHT, DEFAULT_WINDOW_WIDTH, IMAGE_FILE_FILTER
from SB_Libs.errors import DecodeError

logger = logging.getLogger(__name__)


class UiDispatcher(QObject):
    """Runs callables on the thread that owns this object (the GUI thread)."""

    posted = pyqtSignal(object)

    def __init__(self) -> None:
        super().__init__()
        self.posted.connect(self._run, Qt.QueuedConnection)

    def post(self, callback: Callable[[], None]) -> None:
        self.posted.emit(callback)

    def _run(self, callback: Callable[[], None]) -> None:
        callback()


class TrayNotificationSink(NotificationSink):
    """Shows the sticky notification as a system tray icon with a tooltip."""

    def __init__(self, dispatcher: UiDispatcher, on_toggle_playback: Callable[[], None], on_stop: Callable[[], None]) -> None:
        self.dispatcher = dispatcher
        self.tray = QSystemTrayIcon()
        self.fallback_icon = QApplication.style().standardIcon(QStyle.SP_MediaPlay)

        menu = QMenu()
        self.action_play_pause = QAction("Play/Pause", menu)
        self.action_stop = QAction("Stop", menu)
        self.action_play_pause.triggered.connect(on_toggle_playback)
        self.action_stop.triggered.connect(on_stop)
        menu.addAction(self.action_play_pause)
        menu.addAction(self.action_stop)
        self.menu = menu
        self.tray.setContextMenu(menu)

    def publish(self, content: NotificationContent) -> None:
        self.dispatcher.post(lambda: self._show(content))

    def withdraw(self) -> None:
        self.dispatcher.post(self.tray.hide)

    def _show(self, content: NotificationContent) -> None:
        if content.large_icon is not None:
            self.tray.setIcon(QIcon(pil_to_pixmap(content.large_icon)))
        else:
            self.tray.setIcon(self.fallback_icon)
        self.tray.setToolTip(f"{content.title}\n{content.text}\n{content.sub_text}")
        self.action_play_pause.setText("Pause" if content.playing else "Play")
        self.tray.show()


class StatBuddyMainWindow(QMainWindow):
    def __init__(self, config: AppConfig, controller: LibraryController, tasks: BackgroundTasks) -> None:
        super().__init__()
        self.config = config
        self.controller = controller
        self.tasks = tasks
        self.setWindowTitle("StatBuddy")
        self.resize(DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)

        self._build_ui()
        self._connect_signals()
        self._unsubscribe = controller.library.subscribe(self.on_library_changed)
        self.refresh_view()

    def _build_ui(self) -> None:
        central = QWidget(self)
        self.setCentralWidget(central)

        root = QVBoxLayout(central)
        buttons = QHBoxLayout()

        self.label_active_preview = QLabel("No active image")
        self.label_active_preview.setAlignment(Qt.AlignCenter)
        self.label_active_preview.setMinimumSize(360, 360)
        self.label_active_preview.setStyleSheet("border: 1px solid #888;")
        self.label_status = QLabel("")

        self.btn_pick_image = QPushButton("Pick Image")
        self.btn_library = QPushButton("Image Library")
        self.btn_toggle_notification = QPushButton("Start Notification")

        buttons.addWidget(self.btn_pick_image)
        buttons.addWidget(self.btn_library)
        buttons.addWidget(self.btn_toggle_notification)

        root.addWidget(self.label_active_preview, stretch=1)
        root.addWidget(self.label_status)
        root.addLayout(buttons)

    def _connect_signals(self) -> None:
        self.btn_pick_image.clicked.connect(self.pick_image)
        self.btn_library.clicked.connect(self.open_library)
        self.btn_toggle_notification.clicked.connect(self.toggle_notification)

    def pick_image(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Select Image", "", IMAGE_FILE_FILTER)
        if not file_path:
            return

        cropped = self.crop(file_path)
        if cropped:
            self.controller.add_image(cropped)

    def crop(self, locator: str) -> Optional[str]:
        dialog = CropDialog(locator, self.tasks, self.config.cache_dir, self)
        if dialog.exec_() == CropDialog.Accepted:
            return dialog.cropped_locator
        return None

    def open_library(self) -> None:
        LibraryWindow(self.controller, recrop=self.crop, parent=self).exec_()

    def toggle_notification(self) -> None:
        self.controller.toggle_notification()

    def on_library_changed(self, change: LibraryChange) -> None:
        self.refresh_view()

    def refresh_view(self) -> None:
        library = self.controller.library
        active = library.notification_active
        self.btn_toggle_notification.setText("Stop Notification" if active else "Start Notification")
        self.label_status.setText(f"{len(library)} saved image(s) - notification {'on' if active else 'off'}")
        self._set_preview(library.active_image)

    def _set_preview(self, locator: Optional[str]) -> None:
        if not locator:
            self.label_active_preview.setText("No active image")
            return
        try:
            path: Path = resolve_locator(locator)
        except DecodeError:
            self.label_active_preview.setText("Preview failed")
            return
        pixmap = QPixmap(str(path))
        if pixmap.isNull():
            self.label_active_preview.setText("Preview failed")
            return
        self.label_active_preview.setPixmap(pixmap.scaled(
            self.label_active_preview.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        ))

    def closeEvent(self, event: Any) -> None:
        self._unsubscribe()
        super().closeEvent(event)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_app_config()
    config.ensure_dirs()
    logger.info(f"Starting StatBuddy with data directory {config.data_dir}")

    app = QApplication(sys.argv)
    app.setQuitOnLastWindowClosed(True)

    dispatcher = UiDispatcher()
    tasks = BackgroundTasks(max_workers=config.max_workers, dispatch=dispatcher.post)

    sink = TrayNotificationSink(
        dispatcher,
        on_toggle_playback=lambda: service.toggle_playback(),
        on_stop=lambda: controller.set_notification_active(False),
    )
    service = StickyNotificationService(sink, config.cache_dir, config=config.service, tasks=tasks)

    library = ImageLibrary(PreferencesStore(config.prefs_path), require_membership=config.require_membership)
    controller = LibraryController(library, service)

    window = StatBuddyMainWindow(config, controller, tasks)
    window.show()

    try:
        return app.exec_()
    finally:
        service.shutdown()
        tasks.shutdown(wait=False)


if __name__ == "__main__":
    sys.exit(main())
