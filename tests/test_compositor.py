"""
Tests for the compositor.

Covers:
- Layer stack: add, remove, topmost hit
- Single active layer
- Z-order moves and canvas alignment
- Decorations (selection box, handles, guides) stay out of clean renders
"""
import pytest

from ecopiensa.editor.compositor import AlignMode, Compositor
from ecopiensa.editor.snapping import Guide, GuideOrientation
from conftest import raster_layer


@pytest.fixture
def stack(compositor):
    """Three overlapping layers, bottom to top."""
    layers = [
        raster_layer(100, 100, x=0, y=0),
        raster_layer(100, 100, x=50, y=50),
        raster_layer(100, 100, x=500, y=500),
    ]
    for layer in layers:
        compositor.add_layer(layer)
    return layers


# ══════════════════════════════════════════════════════════════════════════
# Layer stack
# ══════════════════════════════════════════════════════════════════════════

class TestLayerStack:

    def test_layers_keep_insertion_order(self, compositor, stack):
        assert compositor.layers == tuple(stack)
        assert compositor.index_of(stack[2]) == 2

    def test_layer_at_returns_topmost(self, compositor, stack):
        assert compositor.layer_at(75, 75) is stack[1]
        assert compositor.layer_at(10, 10) is stack[0]
        assert compositor.layer_at(300, 300) is None

    def test_layer_at_includes_hidden_layers(self, compositor, stack):
        stack[1].visible = False
        assert compositor.layer_at(75, 75) is stack[1]

    def test_remove_active_clears_selection(self, compositor, stack):
        compositor.set_active(stack[1])
        assert compositor.remove_layer(stack[1])
        assert compositor.active_layer is None
        assert stack[1] not in compositor.layers

    def test_remove_unknown_layer(self, compositor, stack):
        assert not compositor.remove_layer(raster_layer())
        assert len(compositor.layers) == 3

    def test_default_canvas(self):
        compositor = Compositor()
        assert compositor.size == (1080, 1080)
        assert compositor.surface.width() == 1080


# ══════════════════════════════════════════════════════════════════════════
# Selection
# ══════════════════════════════════════════════════════════════════════════

class TestSelection:

    def test_at_most_one_active_layer(self, compositor, stack):
        compositor.set_active(stack[0])
        compositor.set_active(stack[2])
        assert [compositor.is_active(layer) for layer in stack] == [False, False, True]
        assert compositor.active_layer is stack[2]

    def test_clear_selection(self, compositor, stack):
        compositor.set_active(stack[0])
        compositor.set_active(None)
        assert compositor.active_layer is None


# ══════════════════════════════════════════════════════════════════════════
# Z-order
# ══════════════════════════════════════════════════════════════════════════

class TestOrdering:

    def test_send_to_back(self, compositor, stack):
        compositor.set_active(stack[2])
        assert compositor.send_to_back()
        assert compositor.layers == (stack[2], stack[0], stack[1])

    def test_bring_to_front(self, compositor, stack):
        compositor.set_active(stack[0])
        assert compositor.bring_to_front()
        assert compositor.layers == (stack[1], stack[2], stack[0])

    def test_send_to_back_at_bottom_is_no_op(self, compositor, stack):
        compositor.set_active(stack[0])
        assert not compositor.send_to_back()
        assert compositor.layers == tuple(stack)

    def test_bring_to_front_at_top_is_no_op(self, compositor, stack):
        compositor.set_active(stack[2])
        assert not compositor.bring_to_front()
        assert compositor.layers == tuple(stack)

    def test_ordering_without_selection(self, compositor, stack):
        assert not compositor.send_to_back()
        assert not compositor.bring_to_front()
        assert compositor.layers == tuple(stack)


# ══════════════════════════════════════════════════════════════════════════
# Alignment
# ══════════════════════════════════════════════════════════════════════════

class TestAlign:

    @pytest.fixture
    def layer(self, compositor):
        layer = raster_layer(100, 50, x=3, y=7)
        layer.scale_x = layer.scale_y = 2.0
        compositor.add_layer(layer)
        compositor.set_active(layer)
        return layer

    def test_center(self, compositor, layer):
        assert compositor.align(AlignMode.CENTER)
        assert (layer.x, layer.y) == (440, 490)

    def test_horizontal_only_moves_x(self, compositor, layer):
        compositor.align("horizontal")
        assert (layer.x, layer.y) == (440, 7)

    def test_vertical_only_moves_y(self, compositor, layer):
        compositor.align("vertical")
        assert (layer.x, layer.y) == (3, 490)

    def test_unknown_mode(self, compositor, layer):
        with pytest.raises(ValueError):
            compositor.align("diagonal")

    def test_no_active_layer(self, compositor):
        assert not compositor.align(AlignMode.CENTER)


# ══════════════════════════════════════════════════════════════════════════
# Rendering
# ══════════════════════════════════════════════════════════════════════════

class TestDecorations:

    def test_no_decorations_without_selection_or_guides(self, compositor, stack):
        clean = compositor.render(include_decorations=False).copy()
        assert compositor.render().copy() == clean

    def test_selection_is_drawn_only_with_decorations(self, compositor, stack):
        clean = compositor.render(include_decorations=False).copy()
        compositor.set_active(stack[2])
        assert compositor.render().copy() != clean
        assert compositor.render(include_decorations=False).copy() == clean

    def test_resize_handle_is_white(self, compositor, stack):
        compositor.set_active(stack[2])
        surface = compositor.render()
        color = surface.pixelColor(600, 600)
        assert (color.red(), color.green(), color.blue()) == (255, 255, 255)

    def test_guides_are_drawn_until_cleared(self, compositor, stack):
        clean = compositor.render().copy()
        compositor.set_guides([Guide(GuideOrientation.VERTICAL, 540.0)])
        assert compositor.render().copy() != clean

        compositor.clear_guides()
        assert compositor.guides == ()
        assert compositor.render().copy() == clean
