"""
Tool framework for the Ecopiensa editor.

The interaction controller resolves handles and layer hits itself; once a
layer has been hit it hands the press to the current tool, and while a drag
is in progress it forwards pointer moves to the same tool.

Tools:
- MoveTool: Drag layers with smart-guide snapping
- WandTool: Magic wand, clears every pixel near the clicked color
- BucketTool: Flood fill with opaque white
- EraserTool: Stamp transparent circles while dragging

Raster tools fall back to the plain drag behaviour on text layers.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Union

from ecopiensa.editor.layers import LayerBase, RasterLayer
from ecopiensa.editor.pixels import RGBA
from ecopiensa.editor.snapping import snap_position
from ecopiensa.services.logging_service import get_logger

if TYPE_CHECKING:
    from ecopiensa.editor.controller import InteractionController


# Bucket fill color
BUCKET_FILL_COLOR: RGBA = (255, 255, 255, 255)


class ToolType(Enum):
    """Enum for tool types; values are the names collaborators pass in."""
    MOVE = "move"
    WAND = "wand"
    BUCKET = "bucket"
    ERASER = "eraser"


class ToolBase(ABC):
    """
    Base class for all tools.

    The default press behaviour starts a drag that remembers the offset
    between the pointer and the layer origin.
    """

    def __init__(self) -> None:
        self._logger = get_logger(__name__)

    @property
    @abstractmethod
    def tool_type(self) -> ToolType:
        """Return the type of this tool."""
        pass

    def on_layer_press(
        self,
        layer: LayerBase,
        x: float,
        y: float,
        controller: "InteractionController",
    ) -> None:
        """
        Handle a press that hit ``layer`` (already made active).

        The controller redraws after this returns.
        """
        controller.begin_drag(x - layer.x, y - layer.y)

    def on_drag(
        self,
        layer: LayerBase,
        x: float,
        y: float,
        controller: "InteractionController",
    ) -> None:
        """Handle a pointer move while dragging ``layer``."""
        pass


class MoveTool(ToolBase):
    """
    Move tool: translate the active layer.

    Every move recomputes the smart guides from scratch.
    """

    @property
    def tool_type(self) -> ToolType:
        return ToolType.MOVE

    def on_drag(
        self,
        layer: LayerBase,
        x: float,
        y: float,
        controller: "InteractionController",
    ) -> None:
        if layer.locked:
            return

        offset_x, offset_y = controller.drag_offset
        compositor = controller.compositor
        result = snap_position(
            layer,
            x - offset_x,
            y - offset_y,
            compositor.size,
            compositor.layers,
            controller.snap_threshold,
        )

        layer.x = result.x
        layer.y = result.y
        compositor.set_guides(result.guides)
        controller.redraw()


class WandTool(ToolBase):
    """
    Magic wand: sample the clicked pixel and remove that color everywhere
    in the layer.
    """

    @property
    def tool_type(self) -> ToolType:
        return ToolType.WAND

    def on_layer_press(
        self,
        layer: LayerBase,
        x: float,
        y: float,
        controller: "InteractionController",
    ) -> None:
        if not isinstance(layer, RasterLayer):
            super().on_layer_press(layer, x, y, controller)
            return

        sample = layer.sample_color(x, y)
        if sample is None:
            self._logger.debug(f"Wand sample outside buffer at ({x:.1f}, {y:.1f})")
            return

        r, g, b, _ = sample
        layer.remove_color(r, g, b, controller.wand_tolerance)


class BucketTool(ToolBase):
    """Bucket: flood fill the clicked region with opaque white."""

    @property
    def tool_type(self) -> ToolType:
        return ToolType.BUCKET

    def on_layer_press(
        self,
        layer: LayerBase,
        x: float,
        y: float,
        controller: "InteractionController",
    ) -> None:
        if not isinstance(layer, RasterLayer):
            super().on_layer_press(layer, x, y, controller)
            return

        layer.flood_fill(x, y, BUCKET_FILL_COLOR)


class EraserTool(ToolBase):
    """Eraser: one stamp on press, then one per pointer move."""

    @property
    def tool_type(self) -> ToolType:
        return ToolType.ERASER

    def on_layer_press(
        self,
        layer: LayerBase,
        x: float,
        y: float,
        controller: "InteractionController",
    ) -> None:
        if not isinstance(layer, RasterLayer):
            super().on_layer_press(layer, x, y, controller)
            return

        controller.begin_drag(x - layer.x, y - layer.y)
        layer.apply_eraser(x, y, controller.eraser_radius)

    def on_drag(
        self,
        layer: LayerBase,
        x: float,
        y: float,
        controller: "InteractionController",
    ) -> None:
        if not isinstance(layer, RasterLayer):
            return
        layer.apply_eraser(x, y, controller.eraser_radius)
        controller.redraw()


def create_tool(tool_type: Union[ToolType, str]) -> ToolBase:
    """
    Factory function to create tools by type.

    Args:
        tool_type: A ToolType or its string value ("move", "wand", ...).

    Returns:
        A new instance of the requested tool.
    """
    tool_classes = {
        ToolType.MOVE: MoveTool,
        ToolType.WAND: WandTool,
        ToolType.BUCKET: BucketTool,
        ToolType.ERASER: EraserTool,
    }

    try:
        tool_type = ToolType(tool_type)
    except ValueError:
        raise ValueError(f"Unknown tool type: {tool_type}") from None

    return tool_classes[tool_type]()
