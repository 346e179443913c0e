"""
Tests for flattened export.
"""
import base64

import pytest
from PySide6.QtGui import QImage

from ecopiensa.editor.export import ExportError, export_image, to_data_url
from ecopiensa.editor.snapping import Guide, GuideOrientation
from conftest import raster_layer


@pytest.fixture
def layer(compositor):
    layer = raster_layer(200, 100, x=100, y=100)
    compositor.add_layer(layer)
    return layer


def test_export_is_a_full_canvas_png(compositor, layer):
    payload = export_image(compositor)
    assert payload.startswith(b"\x89PNG")

    image = QImage.fromData(payload)
    assert (image.width(), image.height()) == (1080, 1080)
    color = image.pixelColor(150, 150)
    assert (color.red(), color.green(), color.blue()) == (255, 0, 0)


def test_selection_never_reaches_export(compositor, layer):
    plain = export_image(compositor)
    compositor.set_active(layer)
    assert export_image(compositor) == plain


def test_active_layer_is_restored(compositor, layer):
    compositor.set_active(layer)
    export_image(compositor)
    assert compositor.active_layer is layer


def test_guides_never_reach_export(compositor, layer):
    plain = export_image(compositor)
    compositor.set_guides([Guide(GuideOrientation.HORIZONTAL, 540.0)])
    assert export_image(compositor) == plain


def test_unknown_format_raises(compositor, layer):
    with pytest.raises(ExportError):
        export_image(compositor, "NOT-A-FORMAT")
    assert compositor.active_layer is None


def test_unknown_format_still_restores_selection(compositor, layer):
    compositor.set_active(layer)
    with pytest.raises(ExportError):
        export_image(compositor, "NOT-A-FORMAT")
    assert compositor.active_layer is layer


@pytest.mark.parametrize("fmt, subtype", [("PNG", "png"), ("jpg", "jpeg"), ("WEBP", "webp")])
def test_data_url_prefix(fmt, subtype):
    url = to_data_url(b"abc", fmt)
    prefix = f"data:image/{subtype};base64,"
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix):]) == b"abc"
