"""
Editor facade for the Ecopiensa editor.

The Editor wires the compositor, the interaction controller and the image
loader together and is the only object outside collaborators talk to:
tool palettes call set_tool(), upload handlers call add_image_layer(),
the canvas view forwards pointer and key events in working-canvas
coordinates, and the export button calls export().

All mutation happens on the thread the Editor lives on.
"""

from typing import Optional, Union

from PySide6.QtCore import QObject, Signal, Slot
from PySide6.QtGui import QImage

from ecopiensa.editor.compositor import AlignMode, Compositor
from ecopiensa.editor.controller import InteractionController
from ecopiensa.editor.export import export_image, to_data_url
from ecopiensa.editor.image_loader import ImageLoader, ImageSource, decode_image
from ecopiensa.editor.layers import LayerBase, RasterLayer, TextLayer
from ecopiensa.editor.tools import ToolType
from ecopiensa.services.config_service import ConfigService
from ecopiensa.services.logging_service import get_logger

# Oversized images are fit to this share of the canvas width
FIT_WIDTH_RATIO = 0.8


class Editor(QObject):
    """
    Layered compositing editor.

    Signals:
        changed: Emitted after every redraw of the composite.
        layer_added: Emitted with the new layer.
        selection_changed: Emitted with the active layer or None.
        load_failed: Emitted with a description of an undecodable source.
    """

    changed = Signal()
    layer_added = Signal(object)
    selection_changed = Signal(object)
    load_failed = Signal(str)

    def __init__(
        self,
        config: Optional[ConfigService] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._config = config or ConfigService(persist=False)

        width, height = self._config.canvas_size
        self._compositor = Compositor(width, height, self._config.background_color)
        self._controller = InteractionController(
            self._compositor,
            redraw=self.render,
            wand_tolerance=self._config.wand_tolerance,
            eraser_radius=self._config.eraser_radius,
            snap_threshold=self._config.snap_threshold,
        )
        self._last_active: Optional[LayerBase] = None

        self._loader = ImageLoader(self)
        self._loader.image_decoded.connect(self._on_image_decoded)
        self._loader.decode_failed.connect(self.load_failed)

        self.render()

    # ─── Accessors ────────────────────────────────────────────────────────

    @property
    def compositor(self) -> Compositor:
        return self._compositor

    @property
    def controller(self) -> InteractionController:
        return self._controller

    @property
    def loader(self) -> ImageLoader:
        return self._loader

    @property
    def canvas_size(self) -> tuple:
        return self._compositor.size

    @property
    def surface(self) -> QImage:
        return self._compositor.surface

    @property
    def layers(self) -> tuple:
        return self._compositor.layers

    @property
    def active_layer(self) -> Optional[LayerBase]:
        return self._compositor.active_layer

    @property
    def tool(self) -> ToolType:
        return self._controller.tool.tool_type

    # ─── Rendering ────────────────────────────────────────────────────────

    def render(self) -> None:
        """Redraw the composite and notify listeners."""
        self._compositor.render()
        active = self._compositor.active_layer
        if active is not self._last_active:
            self._last_active = active
            self.selection_changed.emit(active)
        self.changed.emit()

    # ─── Layer Management ─────────────────────────────────────────────────

    def add_image_layer(self, source: ImageSource) -> Optional[RasterLayer]:
        """
        Decode ``source`` and add it as the new active layer.

        Images wider than the canvas are scaled down to 80% of the canvas
        width. The layer is centered.

        Returns:
            The new layer, or None if the source could not be decoded.
        """
        image = decode_image(source)
        if image is None:
            return None
        return self._append_image(image)

    def add_image_layer_async(self, source: ImageSource) -> None:
        """Decode ``source`` on a worker; the layer is added when it is done."""
        self._loader.load(source)

    @Slot(QImage)
    def _on_image_decoded(self, image: QImage) -> None:
        self._append_image(image)

    def _append_image(self, image: QImage) -> RasterLayer:
        layer = RasterLayer(image)
        canvas_w, canvas_h = self._compositor.size

        if layer.width > canvas_w:
            ratio = canvas_w / layer.width
            layer.scale_x = ratio * FIT_WIDTH_RATIO
            layer.scale_y = ratio * FIT_WIDTH_RATIO

        layer.x = (canvas_w - layer.scaled_width) / 2
        layer.y = (canvas_h - layer.scaled_height) / 2

        self._add_layer(layer)
        return layer

    def add_text_layer(self) -> TextLayer:
        """Add a placeholder text layer in the middle of the canvas."""
        defaults = self._config.text_defaults
        layer = TextLayer(
            self._config.text_placeholder,
            font=defaults["font"],
            size=int(defaults["size"]),
            color=defaults["color"],
        )
        layer.remeasure()
        canvas_w, canvas_h = self._compositor.size
        layer.x = (canvas_w - layer.scaled_width) / 2
        layer.y = (canvas_h - layer.scaled_height) / 2

        self._add_layer(layer)
        return layer

    def _add_layer(self, layer: LayerBase) -> None:
        self._compositor.add_layer(layer)
        self._compositor.set_active(layer)
        self.layer_added.emit(layer)
        self.render()

    def delete_active_layer(self) -> bool:
        """Remove the active layer. Returns False if nothing was active."""
        layer = self._compositor.active_layer
        if layer is None:
            return False
        self._compositor.remove_layer(layer)
        self.render()
        return True

    def select_layer(self, layer: Optional[LayerBase]) -> None:
        """Make ``layer`` active (None clears the selection)."""
        self._compositor.set_active(layer)
        self.render()

    # ─── Tools & Properties ───────────────────────────────────────────────

    def set_tool(self, tool: Union[ToolType, str]) -> None:
        """Switch the active tool; takes effect on the next pointer event."""
        self._controller.set_tool(tool)

    def update_text_properties(
        self,
        size: Optional[int] = None,
        color: Optional[str] = None,
        font: Optional[str] = None,
    ) -> bool:
        """
        Change font size, color or family of the active text layer.

        Ignored unless the active layer is a TextLayer. The box is measured
        again right away, so hit-testing matches even for hidden layers.

        Returns:
            True if a text layer was updated.
        """
        layer = self._compositor.active_layer
        if not isinstance(layer, TextLayer):
            return False

        if size is not None:
            layer.size = int(size)
        if color is not None:
            layer.color = color
        if font is not None:
            layer.font = font
        self.render()
        return True

    # ─── Alignment & Z-Order ──────────────────────────────────────────────

    def align_selected_layer(self, mode: Union[AlignMode, str]) -> None:
        if self._compositor.align(mode):
            self.render()

    def send_to_back(self) -> None:
        if self._compositor.send_to_back():
            self.render()

    def bring_to_front(self) -> None:
        if self._compositor.bring_to_front():
            self.render()

    # ─── Input ────────────────────────────────────────────────────────────

    def pointer_down(self, x: float, y: float) -> None:
        self._controller.pointer_down(x, y)

    def pointer_move(self, x: float, y: float) -> None:
        self._controller.pointer_move(x, y)

    def pointer_up(self, x: float = 0.0, y: float = 0.0) -> None:
        self._controller.pointer_up(x, y)

    def key_press(self, key: int) -> bool:
        return self._controller.key_press(key)

    # ─── Export ───────────────────────────────────────────────────────────

    def export(self, fmt: Optional[str] = None, quality: Optional[int] = None) -> bytes:
        """
        Encode the flattened canvas without selection decoration.

        Format and quality default to the configured export settings.
        """
        fmt = fmt or self._config.export_format
        quality = self._config.export_quality if quality is None else quality
        payload = export_image(self._compositor, fmt, quality)
        self.changed.emit()
        return payload

    def export_data_url(self, fmt: Optional[str] = None, quality: Optional[int] = None) -> str:
        fmt = fmt or self._config.export_format
        return to_data_url(self.export(fmt, quality), fmt)
