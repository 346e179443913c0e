"""
Shared fixtures for the Ecopiensa editor tests.

Provides solid-color images, encoded image bytes and ready-made
compositor/controller/editor instances. Qt runs on the offscreen platform.
"""
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QColor, QImage

from ecopiensa.editor.compositor import Compositor
from ecopiensa.editor.controller import InteractionController
from ecopiensa.editor.editor import Editor
from ecopiensa.editor.layers import RasterLayer
from ecopiensa.services.config_service import ConfigService


# ── Helpers ─────────────────────────────────────────────────────────────

def solid_image(width, height, color=(255, 0, 0, 255)):
    """QImage filled with one RGBA color."""
    image = QImage(width, height, QImage.Format.Format_RGBA8888)
    image.fill(QColor(*color))
    return image


def png_bytes(width, height, color=(0, 128, 255, 255)):
    """PNG-encoded solid image."""
    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    solid_image(width, height, color).save(buffer, "PNG")
    buffer.close()
    return bytes(data.data())


def raster_layer(width=100, height=100, x=0.0, y=0.0, color=(255, 0, 0, 255)):
    layer = RasterLayer(solid_image(width, height, color))
    layer.x = x
    layer.y = y
    return layer


# ── Fixtures ────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _qt_app(qapp):
    """Every test gets a QApplication (fonts and image codecs need one)."""
    return qapp


@pytest.fixture
def compositor():
    return Compositor(1080, 1080)


@pytest.fixture
def redraws():
    """List recording one entry per redraw callback."""
    return []


@pytest.fixture
def controller(compositor, redraws):
    return InteractionController(compositor, redraw=lambda: redraws.append(1))


@pytest.fixture
def config():
    return ConfigService(persist=False)


@pytest.fixture
def editor(config):
    return Editor(config)
