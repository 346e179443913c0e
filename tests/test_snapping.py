"""
Tests for smart-guide snapping.
"""
import pytest

from ecopiensa.editor.snapping import Guide, GuideOrientation, snap_position
from conftest import raster_layer


CANVAS = (1080, 1080)


def test_snaps_to_canvas_center():
    layer = raster_layer(100, 100)
    result = snap_position(layer, 487, 495, CANVAS, [layer])
    assert (result.x, result.y) == (490, 490)
    assert result.guides == [
        Guide(GuideOrientation.VERTICAL, 540),
        Guide(GuideOrientation.HORIZONTAL, 540),
    ]


def test_threshold_is_strict():
    layer = raster_layer(100, 100)
    result = snap_position(layer, 480, 0, CANVAS, [])
    assert result.x == 480
    assert result.guides == []


def test_snaps_to_other_layer_edges():
    layer = raster_layer(50, 50)
    other = raster_layer(10, 10, x=300, y=200)
    result = snap_position(layer, 305, 195, CANVAS, [layer, other])
    assert (result.x, result.y) == (300, 200)
    assert result.guides == [
        Guide(GuideOrientation.VERTICAL, 300),
        Guide(GuideOrientation.HORIZONTAL, 200),
    ]


def test_last_match_wins():
    layer = raster_layer(50, 50)
    first = raster_layer(10, 10, x=300, y=900)
    second = raster_layer(10, 10, x=306, y=900)
    result = snap_position(layer, 303, 0, CANVAS, [first, second])
    assert result.x == 306
    assert [guide.position for guide in result.guides] == [300, 306]


def test_dragged_layer_is_ignored():
    layer = raster_layer(50, 50, x=100, y=100)
    result = snap_position(layer, 104, 104, CANVAS, [layer])
    assert (result.x, result.y) == (104, 104)


@pytest.mark.parametrize("threshold, snapped", [(5.0, False), (20.0, True)])
def test_custom_threshold(threshold, snapped):
    layer = raster_layer(50, 50)
    other = raster_layer(10, 10, x=300, y=900)
    result = snap_position(layer, 310, 0, CANVAS, [other], threshold)
    assert (result.x == 300) is snapped
