"""
Smart-guide snapping for dragged layers.

While a layer is dragged its candidate position is checked against the
canvas center and against the left/top edges of the other layers. Each
match snaps that axis and yields a Guide the compositor draws as a dashed
line until the drag ends.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Tuple

from ecopiensa.editor.layers import LayerBase


class GuideOrientation(Enum):
    """A vertical guide marks an x position, a horizontal guide a y position."""
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


@dataclass(frozen=True)
class Guide:
    """A transient alignment line spanning the canvas."""
    orientation: GuideOrientation
    position: float


@dataclass
class SnapResult:
    """Snapped position plus the guides that produced it."""
    x: float
    y: float
    guides: List[Guide] = field(default_factory=list)


def snap_position(
    layer: LayerBase,
    x: float,
    y: float,
    canvas_size: Tuple[int, int],
    others: Iterable[LayerBase],
    threshold: float = 10.0,
) -> SnapResult:
    """
    Snap a candidate position for ``layer``.

    The canvas center is checked first on both axes, then every other
    layer's left and top edge. A later match on the same axis overrides an
    earlier one, so with several candidates the last one wins.

    Args:
        layer: The layer being dragged (its scaled size is used).
        x: Candidate left edge.
        y: Candidate top edge.
        canvas_size: (width, height) of the working canvas.
        others: Layers to align against; ``layer`` itself is skipped.
        threshold: Distance below which an axis snaps.
    """
    width = layer.scaled_width
    height = layer.scaled_height
    center_x = canvas_size[0] / 2
    center_y = canvas_size[1] / 2
    result = SnapResult(x, y)

    # Canvas center
    if abs(x + width / 2 - center_x) < threshold:
        result.x = center_x - width / 2
        result.guides.append(Guide(GuideOrientation.VERTICAL, center_x))
    if abs(y + height / 2 - center_y) < threshold:
        result.y = center_y - height / 2
        result.guides.append(Guide(GuideOrientation.HORIZONTAL, center_y))

    # Other layers' edges, compared against the unsnapped candidate
    for other in others:
        if other is layer:
            continue
        if abs(x - other.x) < threshold:
            result.x = other.x
            result.guides.append(Guide(GuideOrientation.VERTICAL, other.x))
        if abs(y - other.y) < threshold:
            result.y = other.y
            result.guides.append(Guide(GuideOrientation.HORIZONTAL, other.y))

    return result
