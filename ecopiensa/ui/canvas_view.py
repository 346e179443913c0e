"""
Canvas view widget for the Ecopiensa editor.

The CanvasView shows the editor surface stretched over the whole widget and
forwards mouse and keyboard input to the Editor. Pointer positions are
rescaled from display pixels to working-canvas units first, so the editor
never sees widget coordinates.
"""

from typing import Optional

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QKeyEvent, QMouseEvent, QPainter
from PySide6.QtWidgets import QWidget

from ecopiensa.editor.editor import Editor
from ecopiensa.services.logging_service import get_logger


class CanvasView(QWidget):
    """
    Displays the composite and drives the editor with pointer events.

    Args:
        editor: The editor to display and control.
        parent: Optional parent widget.
    """

    def __init__(self, editor: Editor, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._editor = editor
        self._pressed = False

        self._setup_widget()
        self._editor.changed.connect(self.update)

    def _setup_widget(self) -> None:
        """Configure widget properties."""
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(200, 200)

    @property
    def editor(self) -> Editor:
        return self._editor

    # ─── Coordinate Conversion ────────────────────────────────────────────

    def widget_to_canvas(self, pos: QPointF) -> QPointF:
        """Convert widget coordinates to working-canvas coordinates."""
        canvas_w, canvas_h = self._editor.canvas_size
        width = max(1, self.width())
        height = max(1, self.height())
        return QPointF(pos.x() * canvas_w / width, pos.y() * canvas_h / height)

    # ─── Painting ─────────────────────────────────────────────────────────

    def paintEvent(self, event) -> None:
        """Paint the editor surface scaled to the widget."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(26, 26, 26))
        painter.drawImage(QRectF(self.rect()), self._editor.surface)
        painter.end()

    # ─── Event Handlers ───────────────────────────────────────────────────

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self._pressed = True
            pos = self.widget_to_canvas(event.position())
            self._editor.pointer_down(pos.x(), pos.y())

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if not self._pressed:
            return
        pos = self.widget_to_canvas(event.position())
        self._editor.pointer_move(pos.x(), pos.y())

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton and self._pressed:
            self._pressed = False
            pos = self.widget_to_canvas(event.position())
            self._editor.pointer_up(pos.x(), pos.y())

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if not self._editor.key_press(event.key()):
            super().keyPressEvent(event)
