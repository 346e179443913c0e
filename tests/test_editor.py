"""
Tests for the Editor facade.

Covers:
- Image layers: fitting, centering, decoding failures
- Background decoding
- Text layers and text properties
- Alignment, ordering, deletion and export through the facade
- Signals
"""
import pytest
from PySide6.QtCore import QUrl
from PySide6.QtGui import QImage

from ecopiensa.editor.editor import Editor
from ecopiensa.editor.layers import RasterLayer, TextLayer
from ecopiensa.editor.tools import ToolType
from ecopiensa.services.config_service import ConfigService
from conftest import png_bytes, solid_image


# ══════════════════════════════════════════════════════════════════════════
# Image layers
# ══════════════════════════════════════════════════════════════════════════

class TestImageLayers:

    def test_small_image_is_centered_unscaled(self, editor):
        layer = editor.add_image_layer(png_bytes(800, 600))

        assert isinstance(layer, RasterLayer)
        assert (layer.scale_x, layer.scale_y) == (1.0, 1.0)
        assert (layer.x, layer.y) == (140, 240)
        assert editor.active_layer is layer
        assert editor.layers == (layer,)

    def test_wide_image_is_fit_to_canvas(self, editor):
        layer = editor.add_image_layer(png_bytes(2000, 1500))

        assert layer.scale_x == pytest.approx(0.432)
        assert layer.scale_y == pytest.approx(0.432)
        assert layer.scaled_width == pytest.approx(864)
        assert layer.scaled_height == pytest.approx(648)
        assert layer.x == pytest.approx(108)
        assert layer.y == pytest.approx(216)

    def test_tall_image_is_not_scaled(self, editor):
        layer = editor.add_image_layer(solid_image(100, 2000))
        assert layer.scale_x == 1.0
        assert layer.y == pytest.approx(-460)

    def test_undecodable_bytes_add_nothing(self, editor):
        assert editor.add_image_layer(b"definitely not an image") is None
        assert editor.layers == ()

    def test_file_path_source(self, editor, tmp_path):
        path = tmp_path / "photo.png"
        path.write_bytes(png_bytes(10, 10))
        assert editor.add_image_layer(path) is not None
        assert editor.add_image_layer(str(path)) is not None
        assert editor.add_image_layer(QUrl.fromLocalFile(str(path))) is not None
        assert len(editor.layers) == 3

    def test_missing_file_adds_nothing(self, editor, tmp_path):
        assert editor.add_image_layer(tmp_path / "missing.png") is None

    def test_remote_url_is_not_fetched(self, editor):
        assert editor.add_image_layer(QUrl("https://example.com/a.png")) is None

    def test_new_layer_goes_on_top(self, editor):
        first = editor.add_image_layer(solid_image(10, 10))
        second = editor.add_image_layer(solid_image(10, 10))
        assert editor.layers == (first, second)
        assert editor.active_layer is second

    def test_layer_added_signal(self, editor, qtbot):
        with qtbot.waitSignal(editor.layer_added) as blocker:
            layer = editor.add_image_layer(solid_image(10, 10))
        assert blocker.args == [layer]


# ══════════════════════════════════════════════════════════════════════════
# Background decoding
# ══════════════════════════════════════════════════════════════════════════

class TestAsyncLoading:

    def test_async_decode_adds_layer(self, editor, qtbot):
        with qtbot.waitSignal(editor.layer_added, timeout=5000) as blocker:
            editor.add_image_layer_async(png_bytes(800, 600))

        layer = blocker.args[0]
        assert editor.layers == (layer,)
        assert (layer.x, layer.y) == (140, 240)

    def test_async_decode_failure(self, editor, qtbot):
        with qtbot.waitSignal(editor.load_failed, timeout=5000):
            editor.add_image_layer_async(b"garbage")
        assert editor.layers == ()


# ══════════════════════════════════════════════════════════════════════════
# Text layers
# ══════════════════════════════════════════════════════════════════════════

class TestTextLayers:

    def test_add_text_layer_uses_defaults(self, editor):
        layer = editor.add_text_layer()
        assert isinstance(layer, TextLayer)
        assert layer.text == "Doble clic..."
        assert (layer.font, layer.size, layer.color) == ("Outfit", 60, "#ffffff")
        assert editor.active_layer is layer

    def test_add_text_layer_is_centered_on_measured_box(self, editor):
        layer = editor.add_text_layer()
        assert layer.width == pytest.approx(layer.measure()[0])
        assert layer.x + layer.scaled_width / 2 == pytest.approx(540)
        assert layer.y + layer.scaled_height / 2 == pytest.approx(540)

    def test_text_defaults_come_from_config(self):
        config = ConfigService(persist=False)
        config.set("text_defaults", {"size": 24})
        layer = Editor(config).add_text_layer()
        assert layer.size == 24
        assert layer.font == "Outfit"

    def test_update_text_properties(self, editor):
        layer = editor.add_text_layer()
        assert editor.update_text_properties(size=80, color="#ff0000")
        assert (layer.size, layer.color, layer.font) == (80, "#ff0000", "Outfit")

    def test_update_text_properties_remeasures_hidden_layer(self, editor):
        layer = editor.add_text_layer()
        layer.visible = False
        assert editor.update_text_properties(size=200)
        assert (layer.width, layer.height) == pytest.approx(layer.measure())

    def test_renders_after_text_change_are_stable(self, editor):
        editor.add_text_layer()
        editor.update_text_properties(size=140)
        first = editor.surface.copy()
        editor.render()
        assert editor.surface.copy() == first

    def test_update_text_properties_ignores_raster_layers(self, editor):
        editor.add_image_layer(solid_image(10, 10))
        assert not editor.update_text_properties(size=80)

    def test_update_text_properties_without_selection(self, editor):
        assert not editor.update_text_properties(color="#000000")


# ══════════════════════════════════════════════════════════════════════════
# Facade operations
# ══════════════════════════════════════════════════════════════════════════

class TestOperations:

    def test_set_tool(self, editor):
        editor.set_tool("eraser")
        assert editor.tool == ToolType.ERASER

    def test_align_selected_layer(self, editor):
        layer = editor.add_image_layer(solid_image(100, 100))
        layer.x, layer.y = 0, 0
        editor.align_selected_layer("vertical")
        assert (layer.x, layer.y) == (0, 490)

    def test_z_order(self, editor):
        first = editor.add_image_layer(solid_image(10, 10))
        second = editor.add_image_layer(solid_image(10, 10))
        editor.send_to_back()
        assert editor.layers == (second, first)
        editor.select_layer(second)
        editor.bring_to_front()
        assert editor.layers == (first, second)

    def test_delete_active_layer(self, editor):
        editor.add_image_layer(solid_image(10, 10))
        assert editor.delete_active_layer()
        assert editor.layers == ()
        assert not editor.delete_active_layer()

    def test_pointer_events_drive_selection(self, editor, qtbot):
        layer = editor.add_image_layer(solid_image(100, 100))
        with qtbot.waitSignal(editor.selection_changed) as blocker:
            editor.pointer_down(5, 5)
            editor.pointer_up(5, 5)
        assert blocker.args == [None]
        assert editor.active_layer is None

        editor.pointer_down(540, 540)
        assert editor.active_layer is layer

    def test_every_redraw_emits_changed(self, editor, qtbot):
        editor.add_image_layer(solid_image(100, 100))
        with qtbot.waitSignal(editor.changed):
            editor.pointer_down(540, 540)

    def test_export_defaults_to_png(self, editor):
        editor.add_image_layer(solid_image(100, 100))
        payload = editor.export()
        assert payload.startswith(b"\x89PNG")
        assert editor.active_layer is not None

    def test_export_data_url(self, editor):
        assert editor.export_data_url().startswith("data:image/png;base64,")

    def test_surface_matches_canvas(self, editor):
        assert editor.canvas_size == (1080, 1080)
        surface = editor.surface
        assert isinstance(surface, QImage)
        assert (surface.width(), surface.height()) == (1080, 1080)
