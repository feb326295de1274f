from pathlib import Path
from typing import Callable, Optional

from PyQt5.QtCore import QSize, Qt
from PyQt5.QtGui import QIcon, QPixmap
from PyQt5.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QLabel,
    QListView,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from SB_Libs.CropLib.image_io import resolve_locator
from SB_Libs.LibraryLib.image_library import LibraryChange
from SB_Libs.LibraryLib.library_controller import LibraryController
from SB_Libs.constants import LIBRARY_GRID_ICON_SIZE
from SB_Libs.errors import DecodeError

ACTIVE_MARK = "★ "


class LibraryWindow(QDialog):
    """Grid of saved images. Selecting one makes it the notification image."""

    def __init__(
        self,
        controller: LibraryController,
        recrop: Optional[Callable[[str], Optional[str]]] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.controller = controller
        self.recrop = recrop
        self.setWindowTitle("Image Library")
        self.resize(720, 520)

        self._build_ui()
        self._connect_signals()
        self._unsubscribe = controller.library.subscribe(self.on_library_changed)
        self.populate()

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        buttons = QHBoxLayout()

        self.images_grid = QListWidget()
        self.images_grid.setViewMode(QListView.IconMode)
        self.images_grid.setIconSize(QSize(LIBRARY_GRID_ICON_SIZE, LIBRARY_GRID_ICON_SIZE))
        self.images_grid.setResizeMode(QListView.Adjust)
        self.images_grid.setMovement(QListView.Static)
        self.images_grid.setSpacing(8)

        self.label_empty = QLabel("No saved images yet.")
        self.label_empty.setAlignment(Qt.AlignCenter)

        self.btn_set_active = QPushButton("Use for Notification")
        self.btn_recrop = QPushButton("Crop Again")
        self.btn_close = QPushButton("Close")

        buttons.addWidget(self.btn_set_active)
        buttons.addWidget(self.btn_recrop)
        buttons.addStretch(1)
        buttons.addWidget(self.btn_close)

        root.addWidget(self.label_empty)
        root.addWidget(self.images_grid, stretch=1)
        root.addLayout(buttons)

        self.btn_recrop.setVisible(self.recrop is not None)

    def _connect_signals(self) -> None:
        self.images_grid.itemDoubleClicked.connect(self.on_item_activated)
        self.btn_set_active.clicked.connect(self.set_selected_active)
        self.btn_recrop.clicked.connect(self.recrop_selected)
        self.btn_close.clicked.connect(self.accept)

    def populate(self) -> None:
        library = self.controller.library
        self.images_grid.clear()
        for locator in library.images:
            item = QListWidgetItem(self._icon_for(locator), self._label_for(locator, library.active_image))
            item.setData(Qt.UserRole, locator)
            item.setToolTip(locator)
            self.images_grid.addItem(item)
        self.label_empty.setVisible(len(library) == 0)

    def _label_for(self, locator: str, active: Optional[str]) -> str:
        try:
            name = resolve_locator(locator).name
        except DecodeError:
            name = locator
        return f"{ACTIVE_MARK}{name}" if locator == active else name

    def _icon_for(self, locator: str) -> QIcon:
        try:
            path: Path = resolve_locator(locator)
        except DecodeError:
            return QIcon()
        pixmap = QPixmap(str(path))
        if pixmap.isNull():
            return QIcon()
        return QIcon(pixmap.scaled(
            LIBRARY_GRID_ICON_SIZE,
            LIBRARY_GRID_ICON_SIZE,
            Qt.KeepAspectRatio,
            Qt.SmoothTransformation,
        ))

    def _selected_locator(self) -> Optional[str]:
        item = self.images_grid.currentItem()
        if item is None:
            return None
        return item.data(Qt.UserRole)

    def on_library_changed(self, change: LibraryChange) -> None:
        if change.previous.images != change.current.images or change.active_changed:
            self.populate()

    def on_item_activated(self, item: QListWidgetItem) -> None:
        self.controller.set_active_image(item.data(Qt.UserRole))

    def set_selected_active(self) -> None:
        locator = self._selected_locator()
        if locator is not None:
            self.controller.set_active_image(locator)

    def recrop_selected(self) -> None:
        locator = self._selected_locator()
        if locator is None or self.recrop is None:
            return
        new_locator = self.recrop(locator)
        if new_locator:
            self.controller.replace_image(locator, new_locator)

    def done(self, result: int) -> None:
        self._unsubscribe()
        super().done(result)
