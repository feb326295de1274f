from io import BytesIO
from pathlib import Path
from typing import Any, Optional

from PyQt5.QtCore import QPointF, QRectF, Qt
from PyQt5.QtGui import QColor, QPainter, QPainterPath, QPen, QPixmap
from PyQt5.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from SB_Libs.CropLib.crop_session import CropSession
from SB_Libs.CropLib.image_io import crop_to_file, decode_image
from SB_Libs.TaskLib.decode_tasks import BackgroundTasks
from SB_Libs.constants import (
    CROP_BORDER_COLOR,
    CROP_DIALOG_HEIGHT,
    CROP_DIALOG_WIDTH,
    CROP_GRID_COLOR,
    CROP_MASK_COLOR,
    TASK_KEY_CROP_DECODE,
    TASK_KEY_CROP_SAVE,
)


def pil_to_pixmap(image: Any) -> QPixmap:
    buffer = BytesIO()
    image.convert("RGBA").save(buffer, format="PNG")
    pixmap = QPixmap()
    pixmap.loadFromData(buffer.getvalue(), "PNG")
    return pixmap


class CropCanvas(QWidget):
    """Draws the image letterboxed with the crop overlay and turns drags into moves."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.session: Optional[CropSession] = None
        self.pixmap: Optional[QPixmap] = None
        self._last_pos: Optional[QPointF] = None
        self.setMinimumSize(400, 400)
        self.setStyleSheet("background-color: black;")

    def set_image(self, image: Any, session: CropSession) -> None:
        self.pixmap = pil_to_pixmap(image)
        self.session = session
        self.update()

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("black"))
        if self.session is None or self.pixmap is None:
            return

        display = self.session.display(self.width(), self.height())
        image_rect = QRectF(
            display.offset_x,
            display.offset_y,
            self.session.image_width * display.scale,
            self.session.image_height * display.scale,
        )
        painter.setRenderHint(QPainter.SmoothPixmapTransform)
        painter.drawPixmap(image_rect, self.pixmap, QRectF(self.pixmap.rect()))

        crop_rect = QRectF(display.left, display.top, display.width, display.height)

        # Dim everything outside the crop
        mask = QPainterPath()
        mask.addRect(QRectF(self.rect()))
        hole = QPainterPath()
        hole.addRect(crop_rect)
        painter.fillPath(mask.subtracted(hole), QColor(CROP_MASK_COLOR))

        painter.setPen(QPen(QColor(CROP_BORDER_COLOR), 2))
        painter.drawRect(crop_rect)

        painter.setPen(QPen(QColor(CROP_GRID_COLOR), 1))
        for (x1, y1), (x2, y2) in self.session.grid(self.width(), self.height()):
            painter.drawLine(QPointF(x1, y1), QPointF(x2, y2))

    def mousePressEvent(self, event) -> None:
        if self.session is None or event.button() != Qt.LeftButton:
            return
        self._last_pos = QPointF(event.pos())
        self.session.drag_start(self._last_pos.x(), self._last_pos.y())

    def mouseMoveEvent(self, event) -> None:
        if self.session is None or self._last_pos is None:
            return
        pos = QPointF(event.pos())
        delta = pos - self._last_pos
        self._last_pos = pos
        self.session.drag_move_display(delta.x(), delta.y(), self.width(), self.height())
        self.update()

    def mouseReleaseEvent(self, event) -> None:
        if self.session is None:
            return
        self._last_pos = None
        self.session.drag_end()


class CropDialog(QDialog):
    """
    Square crop dialog.

    Decoding and saving run on ``tasks``; closing the dialog cancels both.
    After ``exec_()`` returns Accepted, ``cropped_locator`` holds the new file.
    """

    def __init__(self, locator: str, tasks: BackgroundTasks, cache_dir: Path, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.locator = locator
        self.tasks = tasks
        self.cache_dir = cache_dir
        self.session: Optional[CropSession] = None
        self.cropped_locator: Optional[str] = None

        self.setWindowTitle("Crop Image")
        self.resize(CROP_DIALOG_WIDTH, CROP_DIALOG_HEIGHT)

        self._build_ui()
        self._connect_signals()
        self._set_busy(True)

        self.tasks.submit(
            TASK_KEY_CROP_DECODE,
            decode_image,
            locator,
            on_result=self.on_image_decoded,
            on_error=self.on_decode_failed,
        )

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        buttons = QHBoxLayout()

        self.label_status = QLabel("Loading image...")
        self.label_status.setAlignment(Qt.AlignCenter)
        self.canvas = CropCanvas(self)

        self.btn_recenter = QPushButton("Re-center")
        self.btn_reset = QPushButton("Reset")
        self.btn_cancel = QPushButton("Cancel")
        self.btn_confirm = QPushButton("Confirm")

        buttons.addWidget(self.btn_recenter)
        buttons.addWidget(self.btn_reset)
        buttons.addStretch(1)
        buttons.addWidget(self.btn_cancel)
        buttons.addWidget(self.btn_confirm)

        root.addWidget(self.label_status)
        root.addWidget(self.canvas, stretch=1)
        root.addLayout(buttons)

    def _connect_signals(self) -> None:
        self.btn_recenter.clicked.connect(self.recenter)
        self.btn_reset.clicked.connect(self.reset)
        self.btn_cancel.clicked.connect(self.reject)
        self.btn_confirm.clicked.connect(self.confirm)

    def _set_busy(self, busy: bool) -> None:
        for button in (self.btn_recenter, self.btn_reset, self.btn_confirm):
            button.setEnabled(not busy and self.session is not None)
        self.label_status.setVisible(busy)

    def on_image_decoded(self, image: Any) -> None:
        self.session = CropSession(image.width, image.height)
        self.canvas.set_image(image, self.session)
        self._set_busy(False)

    def on_decode_failed(self, error: BaseException) -> None:
        QMessageBox.warning(self, "Cannot Open Image", str(error))
        self.reject()

    def recenter(self) -> None:
        if self.session is not None:
            self.session.recenter()
            self.canvas.update()

    def reset(self) -> None:
        if self.session is not None:
            self.session.reset()
            self.canvas.update()

    def confirm(self) -> None:
        if self.session is None:
            return
        self.label_status.setText("Saving...")
        self._set_busy(True)
        self.tasks.submit(
            TASK_KEY_CROP_SAVE,
            crop_to_file,
            self.locator,
            self.session.rect,
            self.cache_dir,
            on_result=self.on_crop_saved,
            on_error=self.on_crop_failed,
        )

    def on_crop_saved(self, locator: str) -> None:
        self.cropped_locator = locator
        self.accept()

    def on_crop_failed(self, error: BaseException) -> None:
        self._set_busy(False)
        QMessageBox.warning(self, "Crop Failed", str(error))

    def done(self, result: int) -> None:
        self.tasks.cancel(TASK_KEY_CROP_DECODE)
        if result != QDialog.Accepted:
            self.tasks.cancel(TASK_KEY_CROP_SAVE)
        super().done(result)
