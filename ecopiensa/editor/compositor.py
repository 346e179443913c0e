"""
Compositor for the Ecopiensa editor.

The Compositor owns the ordered layer stack (index 0 is the bottom) and the
working surface. Rendering paints, in order:
- The background color
- Every layer, bottom to top
- Pending smart guides as dashed lines
- Selection decoration for the active layer (box, resize and rotate handles)

It is also the single owner of the active layer id.
"""

import math
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QImage, QPainter, QPen

from ecopiensa.editor.layers import LayerBase
from ecopiensa.editor.snapping import Guide, GuideOrientation
from ecopiensa.services.logging_service import get_logger

SELECTION_COLOR = QColor("#00ff9d")
GUIDE_COLOR = QColor("#ff00ff")
HANDLE_SIZE = 12
ROTATE_STICK_LENGTH = 30
ROTATE_KNOB_RADIUS = 6


class AlignMode(Enum):
    """How align() moves the active layer relative to the canvas center."""
    CENTER = "center"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class Compositor:
    """
    Ordered layer stack plus the surface it is flattened onto.
    """

    def __init__(
        self,
        width: int = 1080,
        height: int = 1080,
        background_color: str = "#1a1a1a",
    ) -> None:
        self._logger = get_logger(__name__)
        self._width = width
        self._height = height
        self.background_color = QColor(background_color)

        self._layers: List[LayerBase] = []
        self._active_id: Optional[str] = None
        self._guides: List[Guide] = []

        self._surface = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
        self._surface.fill(self.background_color)

    # ─── Canvas ───────────────────────────────────────────────────────────

    @property
    def size(self) -> Tuple[int, int]:
        return (self._width, self._height)

    @property
    def surface(self) -> QImage:
        """The image produced by the last render()."""
        return self._surface

    # ─── Layer Stack ──────────────────────────────────────────────────────

    @property
    def layers(self) -> Tuple[LayerBase, ...]:
        """Layers bottom to top."""
        return tuple(self._layers)

    def index_of(self, layer: LayerBase) -> int:
        return self._layers.index(layer)

    def add_layer(self, layer: LayerBase) -> None:
        """Append a layer on top of the stack."""
        self._layers.append(layer)
        self._logger.info(f"Layer added: {layer!r} (stack size {len(self._layers)})")

    def remove_layer(self, layer: LayerBase) -> bool:
        """Drop a layer from the stack; clears the active id if it pointed at it."""
        if layer not in self._layers:
            return False
        self._layers.remove(layer)
        if self._active_id == layer.id:
            self._active_id = None
        self._logger.info(f"Layer removed: {layer.id}")
        return True

    def layer_at(self, x: float, y: float) -> Optional[LayerBase]:
        """Find the topmost layer at a canvas point."""
        for layer in reversed(self._layers):
            if layer.hit_test(x, y):
                return layer
        return None

    # ─── Selection ────────────────────────────────────────────────────────

    def set_active(self, layer: Optional[LayerBase]) -> None:
        """Make ``layer`` the single active layer, or clear it with None."""
        self._active_id = layer.id if layer is not None else None

    @property
    def active_layer(self) -> Optional[LayerBase]:
        if self._active_id is None:
            return None
        for layer in self._layers:
            if layer.id == self._active_id:
                return layer
        return None

    def is_active(self, layer: LayerBase) -> bool:
        return layer.id == self._active_id

    # ─── Ordering & Alignment ─────────────────────────────────────────────

    def send_to_back(self) -> bool:
        """Move the active layer to index 0. Returns True if the order changed."""
        layer = self.active_layer
        if layer is None:
            return False
        index = self._layers.index(layer)
        if index == 0:
            return False
        self._layers.pop(index)
        self._layers.insert(0, layer)
        return True

    def bring_to_front(self) -> bool:
        """Move the active layer to the top. Returns True if the order changed."""
        layer = self.active_layer
        if layer is None:
            return False
        index = self._layers.index(layer)
        if index == len(self._layers) - 1:
            return False
        self._layers.pop(index)
        self._layers.append(layer)
        return True

    def align(self, mode: Union[AlignMode, str]) -> bool:
        """
        Align the active layer's scaled box with the canvas center.

        Args:
            mode: AlignMode or its string value ("center", "horizontal",
                  "vertical").

        Returns:
            True if a layer was moved.
        """
        mode = AlignMode(mode)
        layer = self.active_layer
        if layer is None:
            return False

        if mode in (AlignMode.CENTER, AlignMode.HORIZONTAL):
            layer.x = (self._width - layer.scaled_width) / 2
        if mode in (AlignMode.CENTER, AlignMode.VERTICAL):
            layer.y = (self._height - layer.scaled_height) / 2
        return True

    # ─── Guides ───────────────────────────────────────────────────────────

    @property
    def guides(self) -> Tuple[Guide, ...]:
        return tuple(self._guides)

    def set_guides(self, guides: Iterable[Guide]) -> None:
        self._guides = list(guides)

    def clear_guides(self) -> None:
        self._guides.clear()

    # ─── Rendering ────────────────────────────────────────────────────────

    def render(self, include_decorations: bool = True) -> QImage:
        """
        Flatten the stack onto the surface.

        Args:
            include_decorations: Draw guides and the selection box on top.

        Returns:
            The surface image.
        """
        painter = QPainter(self._surface)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)

        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
        painter.fillRect(QRectF(0, 0, self._width, self._height), self.background_color)
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_SourceOver)

        for layer in self._layers:
            layer.render(painter)

        if include_decorations:
            self._draw_guides(painter)
            active = self.active_layer
            if active is not None:
                self._draw_selection(painter, active)

        painter.end()
        return self._surface

    def _draw_guides(self, painter: QPainter) -> None:
        """Draw pending smart guides across the whole canvas."""
        if not self._guides:
            return

        pen = QPen(GUIDE_COLOR)
        pen.setWidth(1)
        pen.setStyle(Qt.PenStyle.DashLine)
        painter.setPen(pen)

        for guide in self._guides:
            if guide.orientation == GuideOrientation.VERTICAL:
                painter.drawLine(
                    QPointF(guide.position, 0), QPointF(guide.position, self._height)
                )
            else:
                painter.drawLine(
                    QPointF(0, guide.position), QPointF(self._width, guide.position)
                )

    def _draw_selection(self, painter: QPainter, layer: LayerBase) -> None:
        """Draw the box, resize handle and rotate handle in the layer's rotated frame."""
        painter.save()

        w = layer.scaled_width
        h = layer.scaled_height
        center = layer.center

        painter.translate(center)
        painter.rotate(math.degrees(layer.rotation))
        painter.translate(-center)

        # Box
        pen = QPen(SELECTION_COLOR)
        pen.setWidth(2)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(QRectF(layer.x, layer.y, w, h))

        # Bottom-right resize handle
        half = HANDLE_SIZE / 2
        painter.fillRect(
            QRectF(layer.x + w - half, layer.y + h - half, HANDLE_SIZE, HANDLE_SIZE),
            QColor(255, 255, 255),
        )

        # Rotate handle: stick above the top edge ending in a knob
        knob = QPointF(center.x(), layer.y - ROTATE_STICK_LENGTH)
        painter.drawLine(QPointF(center.x(), layer.y), knob)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(SELECTION_COLOR)
        painter.drawEllipse(knob, ROTATE_KNOB_RADIUS, ROTATE_KNOB_RADIUS)

        painter.restore()
