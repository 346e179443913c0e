"""
Flattened export of the composite.

The export never shows selection decoration or guides: the active layer is
deselected for the capture and restored afterwards.
"""

import base64

from PySide6.QtCore import QBuffer, QByteArray, QIODevice

from ecopiensa.editor.compositor import Compositor
from ecopiensa.services.logging_service import get_logger

logger = get_logger(__name__)


class ExportError(RuntimeError):
    """Raised when the image encoder rejects the requested format."""


def export_image(compositor: Compositor, fmt: str = "PNG", quality: int = -1) -> bytes:
    """
    Encode the flattened canvas.

    Args:
        compositor: The stack to flatten.
        fmt: Image format handed to Qt's encoder as-is ("PNG", "JPEG", "WEBP"...).
        quality: Encoder quality (0-100, -1 for the encoder default), passed through.

    Returns:
        The encoded image bytes.

    Raises:
        ExportError: If the encoder cannot write ``fmt``.
    """
    active = compositor.active_layer
    compositor.set_active(None)
    try:
        surface = compositor.render(include_decorations=False)

        data = QByteArray()
        buffer = QBuffer(data)
        buffer.open(QIODevice.OpenModeFlag.WriteOnly)
        ok = surface.save(buffer, fmt, quality)
        buffer.close()
    finally:
        compositor.set_active(active)
        compositor.render()

    if not ok:
        raise ExportError(f"Could not encode canvas as {fmt!r}")

    payload = bytes(data.data())
    logger.info(f"Exported canvas as {fmt} ({len(payload)} bytes)")
    return payload


def to_data_url(payload: bytes, fmt: str = "PNG") -> str:
    """Wrap encoded bytes as a base64 data URL."""
    subtype = fmt.lower()
    if subtype == "jpg":
        subtype = "jpeg"
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:image/{subtype};base64,{encoded}"
