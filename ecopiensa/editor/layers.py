"""
Layer models for the Ecopiensa editor.

A layer is an independently transformable object on the canvas. Each layer
knows how to:
- Paint itself on a QPainter through the shared transform pipeline
- Hit-test a canvas point against its scaled bounding box
- Report its scaled bounding box and rotation center

Layer Types:
- RasterLayer: Decoded image with a private RGBA buffer, crop rectangle and
  pixel tools (magic wand, eraser, flood fill)
- TextLayer: Single line of text whose box is measured while painting
"""

import math
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Optional, Tuple
from uuid import uuid4

import numpy as np
from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QFont, QFontMetricsF, QImage, QPainter

from ecopiensa.editor import pixels as pixel_ops
from ecopiensa.services.logging_service import get_logger

logger = get_logger(__name__)


class LayerType(Enum):
    """Enum for layer types."""
    RASTER = auto()
    TEXT = auto()


class LayerBase(ABC):
    """
    Base class for all layers.

    Holds the geometry shared by every layer variant. ``width`` and
    ``height`` are always the unscaled content size; the on-canvas box is
    ``width * scale_x`` by ``height * scale_y``, rotated about its center.
    """

    def __init__(self) -> None:
        self.id: str = str(uuid4())
        self.x: float = 0.0
        self.y: float = 0.0
        self.width: float = 0.0
        self.height: float = 0.0
        self.scale_x: float = 1.0
        self.scale_y: float = 1.0
        self.rotation: float = 0.0  # Radians
        self._opacity: float = 1.0
        self.visible: bool = True
        self.locked: bool = False

    @property
    @abstractmethod
    def layer_type(self) -> LayerType:
        """Return the type of this layer."""
        pass

    @abstractmethod
    def paint_content(self, painter: QPainter) -> None:
        """
        Paint the layer content in local, unscaled coordinates.

        Args:
            painter: The QPainter, already transformed by render().
        """
        pass

    @property
    def opacity(self) -> float:
        return self._opacity

    @opacity.setter
    def opacity(self, value: float) -> None:
        self._opacity = max(0.0, min(1.0, float(value)))

    @property
    def scaled_width(self) -> float:
        return self.width * self.scale_x

    @property
    def scaled_height(self) -> float:
        return self.height * self.scale_y

    @property
    def bounding_rect(self) -> QRectF:
        """Scaled, unrotated box in canvas coordinates."""
        return QRectF(self.x, self.y, self.scaled_width, self.scaled_height)

    @property
    def center(self) -> QPointF:
        """Rotation center in canvas coordinates."""
        return QPointF(
            self.x + self.scaled_width / 2,
            self.y + self.scaled_height / 2,
        )

    def hit_test(self, x: float, y: float) -> bool:
        """
        Test if a canvas point lies inside the scaled box (edges included).

        Rotation is not taken into account.
        """
        return (
            self.x <= x <= self.x + self.scaled_width
            and self.y <= y <= self.y + self.scaled_height
        )

    def to_local(self, x: float, y: float) -> Tuple[float, float]:
        """Map a canvas point into unscaled layer coordinates (rotation ignored)."""
        return (x - self.x) / self.scale_x, (y - self.y) / self.scale_y

    def render(self, painter: QPainter) -> None:
        """
        Paint the layer through the transform pipeline.

        Order: opacity, rotate about the center, move to position, scale,
        then draw content. Rotation must come before scale.
        """
        if not self.visible:
            return

        painter.save()
        painter.setOpacity(self._opacity)

        center = self.center
        painter.translate(center)
        painter.rotate(math.degrees(self.rotation))
        painter.translate(-center)

        painter.translate(self.x, self.y)
        painter.scale(self.scale_x, self.scale_y)

        self.paint_content(painter)
        painter.restore()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(x={self.x:.1f}, y={self.y:.1f}, "
            f"w={self.width:.1f}, h={self.height:.1f}, "
            f"scale=({self.scale_x:.3f}, {self.scale_y:.3f}))"
        )


class RasterLayer(LayerBase):
    """
    Image layer backed by a private RGBA buffer.

    The buffer keeps the size of the decoded image for the layer's whole
    life. Cropping only changes which part of it is composited.
    """

    def __init__(self, image: QImage) -> None:
        super().__init__()
        self._pixels: np.ndarray = pixel_ops.qimage_to_rgba(image)
        self._cached_image: Optional[QImage] = None
        self.revision: int = 0

        buffer_h, buffer_w = self._pixels.shape[:2]
        self.width = float(buffer_w)
        self.height = float(buffer_h)
        self._crop: Tuple[int, int, int, int] = (0, 0, buffer_w, buffer_h)

    @property
    def layer_type(self) -> LayerType:
        return LayerType.RASTER

    @property
    def buffer_size(self) -> Tuple[int, int]:
        """(width, height) of the pixel buffer."""
        return self._pixels.shape[1], self._pixels.shape[0]

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the RGBA buffer."""
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    @property
    def crop(self) -> Tuple[int, int, int, int]:
        """Visible source region as (x, y, w, h) in buffer pixels."""
        return self._crop

    def set_crop(self, x: int, y: int, w: int, h: int) -> None:
        """
        Show only part of the buffer. Pixels outside the crop are kept.

        The rectangle is clamped into the buffer and must keep at least one
        pixel. The layer's unscaled size follows the crop size.
        """
        buffer_w, buffer_h = self.buffer_size
        x = max(0, min(int(x), buffer_w - 1))
        y = max(0, min(int(y), buffer_h - 1))
        w = max(1, min(int(w), buffer_w - x))
        h = max(1, min(int(h), buffer_h - y))

        self._crop = (x, y, w, h)
        self.width = float(w)
        self.height = float(h)

    def reset_crop(self) -> None:
        """Show the full buffer again."""
        buffer_w, buffer_h = self.buffer_size
        self.set_crop(0, 0, buffer_w, buffer_h)

    def _buffer_point(self, x: float, y: float) -> Tuple[float, float]:
        """Map a canvas point to buffer coordinates through scale and crop."""
        local_x, local_y = self.to_local(x, y)
        return local_x + self._crop[0], local_y + self._crop[1]

    def _touch(self) -> None:
        self.revision += 1
        self._cached_image = None

    def to_qimage(self) -> QImage:
        """QImage of the whole buffer, rebuilt only after pixel writes."""
        if self._cached_image is None:
            self._cached_image = pixel_ops.rgba_to_qimage(self._pixels)
        return self._cached_image

    def paint_content(self, painter: QPainter) -> None:
        crop_x, crop_y, crop_w, crop_h = self._crop
        painter.drawImage(
            QRectF(0, 0, self.width, self.height),
            self.to_qimage(),
            QRectF(crop_x, crop_y, crop_w, crop_h),
        )

    def sample_color(self, x: float, y: float) -> Optional[pixel_ops.RGBA]:
        """
        Read the buffer pixel under a canvas point.

        Returns:
            (r, g, b, a), or None when the point falls outside the layer or
            the buffer.
        """
        local_x, local_y = self.to_local(x, y)
        if local_x < 0 or local_y < 0 or local_x > self.width or local_y > self.height:
            return None

        buffer_x = int(local_x + self._crop[0])
        buffer_y = int(local_y + self._crop[1])
        buffer_w, buffer_h = self.buffer_size
        if not (0 <= buffer_x < buffer_w and 0 <= buffer_y < buffer_h):
            return None

        r, g, b, a = (int(v) for v in self._pixels[buffer_y, buffer_x])
        return r, g, b, a

    def remove_color(
        self,
        target_r: int,
        target_g: int,
        target_b: int,
        tolerance: int = 30,
    ) -> int:
        """
        Magic wand: clear alpha of every pixel near the target color.

        Applies to the whole buffer, not just a connected region.

        Returns:
            Number of pixels made transparent.
        """
        count = pixel_ops.remove_color(
            self._pixels, (target_r, target_g, target_b), tolerance
        )
        if count:
            self._touch()
        logger.debug(
            f"Magic wand on {self.id}: rgb=({target_r}, {target_g}, {target_b}) "
            f"tolerance={tolerance} cleared={count}"
        )
        return count

    def apply_eraser(self, x: float, y: float, radius: float) -> bool:
        """
        Erase a filled circle around a canvas point.

        Uses DestinationOut so the stamp can only remove alpha.

        Returns:
            False when the circle misses the buffer and nothing was written.
        """
        buffer_x, buffer_y = self._buffer_point(x, y)
        buffer_w, buffer_h = self.buffer_size
        if (
            buffer_x + radius < 0
            or buffer_y + radius < 0
            or buffer_x - radius >= buffer_w
            or buffer_y - radius >= buffer_h
        ):
            logger.debug(f"Eraser stamp outside buffer on {self.id}")
            return False

        image = self.to_qimage().copy()
        painter = QPainter(image)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_DestinationOut)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor(0, 0, 0, 255))
        painter.drawEllipse(QPointF(buffer_x, buffer_y), radius, radius)
        painter.end()

        self._pixels = pixel_ops.qimage_to_rgba(image)
        self._touch()
        return True

    def flood_fill(self, x: float, y: float, color: pixel_ops.RGBA) -> int:
        """
        Bucket fill the region under a canvas point.

        Args:
            x: Canvas X.
            y: Canvas Y.
            color: (r, g, b, a) written to every filled pixel.

        Returns:
            Number of pixels written; zero for points outside the buffer or
            when the start pixel already has the fill color.
        """
        buffer_x, buffer_y = self._buffer_point(x, y)
        start_x = math.floor(buffer_x)
        start_y = math.floor(buffer_y)

        count = pixel_ops.flood_fill(self._pixels, start_x, start_y, tuple(color))
        if count:
            self._touch()
        logger.debug(f"Flood fill on {self.id} at ({start_x}, {start_y}): filled={count}")
        return count


class TextLayer(LayerBase):
    """
    Single line text layer.

    Width and height come from the font metrics. They start as a rough
    estimate and are measured again whenever text, font or size changes,
    and before every paint.
    """

    def __init__(
        self,
        text: str = "Nuevo Texto",
        font: str = "Outfit",
        size: int = 60,
        color: str = "#ffffff",
    ) -> None:
        super().__init__()
        self._text = text
        self._font = font
        self._size = size
        self.color = color
        self.align = "center"  # left, center, right

        # Rough estimate until the first measure
        self.width = len(text) * (size * 0.6)
        self.height = float(size)

    @property
    def layer_type(self) -> LayerType:
        return LayerType.TEXT

    @property
    def text(self) -> str:
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        self._text = value
        self.remeasure()

    @property
    def font(self) -> str:
        """Font family name."""
        return self._font

    @font.setter
    def font(self, value: str) -> None:
        self._font = value
        self.remeasure()

    @property
    def size(self) -> int:
        """Font size in pixels."""
        return self._size

    @size.setter
    def size(self, value: int) -> None:
        self._size = int(value)
        self.remeasure()

    def _get_font(self) -> QFont:
        font = QFont(self._font)
        font.setPixelSize(max(1, int(self._size)))
        return font

    def _alignment(self) -> Qt.AlignmentFlag:
        horizontal = {
            "left": Qt.AlignmentFlag.AlignLeft,
            "center": Qt.AlignmentFlag.AlignHCenter,
            "right": Qt.AlignmentFlag.AlignRight,
        }.get(self.align, Qt.AlignmentFlag.AlignHCenter)
        return horizontal | Qt.AlignmentFlag.AlignTop

    def measure(self) -> Tuple[float, float]:
        """Return (width, height) of the text with the current font."""
        metrics = QFontMetricsF(self._get_font())
        return metrics.horizontalAdvance(self._text), metrics.height()

    def remeasure(self) -> None:
        """Replace the box with the measured text size."""
        self.width, self.height = self.measure()

    def paint_content(self, painter: QPainter) -> None:
        self.remeasure()
        painter.setFont(self._get_font())
        box = QRectF(0, 0, self.width, self.height)
        flags = self._alignment()

        # Drop shadow
        painter.setPen(QColor(0, 0, 0, 128))
        painter.drawText(box.translated(2, 2), flags, self._text)

        painter.setPen(QColor(self.color))
        painter.drawText(box, flags, self._text)
