"""
Interaction controller for the Ecopiensa editor.

Turns pointer and keyboard input (already in working-canvas coordinates)
into layer mutations. States:

- IDLE: nothing in progress
- DRAGGING: the current tool receives pointer moves (move, eraser)
- RESIZING: a handle of the active layer is being dragged, either the
  bottom-right corner (CORNER) or the knob above the top edge (ROTATE)

Press resolution order: handles of the active layer, then layers from the
top of the stack down, then "nothing hit" which clears the selection.
"""

import math
from enum import Enum, auto
from typing import Callable, Optional, Tuple, Union

from PySide6.QtCore import Qt

from ecopiensa.editor.compositor import Compositor
from ecopiensa.editor.tools import ToolBase, ToolType, create_tool
from ecopiensa.services.logging_service import get_logger

# Handle hitbox half-size in canvas units
HANDLE_HITBOX = 30
# Rotate handle hitbox spans this range above the top edge
ROTATE_HANDLE_NEAR = 15
ROTATE_HANDLE_FAR = 45
# Scale factors never drop below this while resizing
MIN_SCALE = 0.1


class InteractionState(Enum):
    IDLE = auto()
    DRAGGING = auto()
    RESIZING = auto()


class ResizeMode(Enum):
    CORNER = auto()
    ROTATE = auto()


class InteractionController:
    """
    Pointer/keyboard state machine driving the compositor's layers.

    Args:
        compositor: The layer stack to mutate.
        redraw: Called whenever the composite needs repainting.
        wand_tolerance: Per-channel tolerance for the magic wand.
        eraser_radius: Radius of each eraser stamp.
        snap_threshold: Smart-guide distance.
    """

    def __init__(
        self,
        compositor: Compositor,
        redraw: Optional[Callable[[], None]] = None,
        wand_tolerance: int = 30,
        eraser_radius: float = 20.0,
        snap_threshold: float = 10.0,
    ) -> None:
        self._logger = get_logger(__name__)
        self.compositor = compositor
        self._redraw = redraw
        self.wand_tolerance = wand_tolerance
        self.eraser_radius = eraser_radius
        self.snap_threshold = snap_threshold

        self._tool: ToolBase = create_tool(ToolType.MOVE)
        self._state = InteractionState.IDLE
        self._resize_mode: Optional[ResizeMode] = None
        self._drag_offset: Tuple[float, float] = (0.0, 0.0)
        self._aspect_ratio: float = 1.0

    # ─── State ────────────────────────────────────────────────────────────

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def resize_mode(self) -> Optional[ResizeMode]:
        return self._resize_mode

    @property
    def drag_offset(self) -> Tuple[float, float]:
        """Pointer minus layer origin, captured when the drag started."""
        return self._drag_offset

    @property
    def tool(self) -> ToolBase:
        return self._tool

    def set_tool(self, tool_type: Union[ToolType, str]) -> None:
        """Switch tools. No redraw until the next pointer event."""
        self._tool = create_tool(tool_type)
        self._logger.debug(f"Tool set to {self._tool.tool_type.value}")

    def redraw(self) -> None:
        if self._redraw is not None:
            self._redraw()

    def begin_drag(self, offset_x: float, offset_y: float) -> None:
        """Enter DRAGGING with the given pointer-to-origin offset."""
        self._state = InteractionState.DRAGGING
        self._drag_offset = (offset_x, offset_y)

    def _reset(self) -> None:
        self._state = InteractionState.IDLE
        self._resize_mode = None

    # ─── Handles ──────────────────────────────────────────────────────────

    def hit_test_handle(self, x: float, y: float) -> Optional[ResizeMode]:
        """Return the handle of the active layer under (x, y), if any."""
        layer = self.compositor.active_layer
        if layer is None:
            return None

        w = layer.scaled_width
        h = layer.scaled_height

        # Bottom-right corner
        if (
            layer.x + w - HANDLE_HITBOX <= x <= layer.x + w + HANDLE_HITBOX
            and layer.y + h - HANDLE_HITBOX <= y <= layer.y + h + HANDLE_HITBOX
        ):
            return ResizeMode.CORNER

        # Knob above the top edge
        if (
            layer.x + w / 2 - HANDLE_HITBOX <= x <= layer.x + w / 2 + HANDLE_HITBOX
            and layer.y - ROTATE_HANDLE_FAR <= y <= layer.y - ROTATE_HANDLE_NEAR
        ):
            return ResizeMode.ROTATE

        return None

    # ─── Pointer Events ───────────────────────────────────────────────────

    def pointer_down(self, x: float, y: float) -> None:
        """Handle a pointer press at canvas coordinates."""
        handle = self.hit_test_handle(x, y)
        if handle is not None:
            self._state = InteractionState.RESIZING
            self._resize_mode = handle
            layer = self.compositor.active_layer
            if layer.height > 0:
                self._aspect_ratio = layer.width / layer.height
            self._logger.debug(f"Start {handle.name.lower()} on {layer.id}")
            return

        hit = self.compositor.layer_at(x, y)
        if hit is None:
            self.compositor.set_active(None)
            self.redraw()
            return

        self.compositor.set_active(hit)
        self._tool.on_layer_press(hit, x, y, self)
        self.redraw()

    def pointer_move(self, x: float, y: float) -> None:
        """Handle a pointer move at canvas coordinates."""
        layer = self.compositor.active_layer
        if layer is None or self._state == InteractionState.IDLE:
            return

        if self._state == InteractionState.RESIZING:
            if layer.locked:
                return
            if self._resize_mode == ResizeMode.CORNER:
                self._resize_corner(layer, x)
            else:
                self._rotate(layer, x, y)
            self.redraw()
            return

        self._tool.on_drag(layer, x, y, self)

    def pointer_up(self, x: float = 0.0, y: float = 0.0) -> None:
        """Handle a pointer release; ends any drag and drops the guides."""
        self._reset()
        self.compositor.clear_guides()
        self.redraw()

    def _resize_corner(self, layer, x: float) -> None:
        """Scale from the bottom-right corner, keeping the press-time aspect ratio."""
        if layer.width <= 0 or layer.height <= 0:
            return
        new_w = x - layer.x
        new_h = new_w / self._aspect_ratio
        layer.scale_x = max(MIN_SCALE, new_w / layer.width)
        layer.scale_y = max(MIN_SCALE, new_h / layer.height)

    def _rotate(self, layer, x: float, y: float) -> None:
        """Point the top-edge handle at the pointer."""
        center = layer.center
        angle = math.atan2(y - center.y(), x - center.x())
        # The handle sits above the center, a quarter turn from angle 0
        layer.rotation = angle + math.pi / 2

    # ─── Keyboard ─────────────────────────────────────────────────────────

    def key_press(self, key: int) -> bool:
        """
        Handle a key press.

        Returns True if the event was handled.
        """
        if key in (Qt.Key.Key_Delete, Qt.Key.Key_Backspace):
            layer = self.compositor.active_layer
            if layer is not None:
                self.compositor.remove_layer(layer)
                self._reset()
                self.redraw()
                return True
        return False
