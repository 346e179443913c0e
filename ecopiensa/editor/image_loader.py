"""
Image decoding for new raster layers.

decode_image() turns whatever a collaborator hands over (an already decoded
QImage, raw encoded bytes, a file path or a local file URL) into a QImage.

ImageLoader runs the same decode on a QThreadPool worker. Results are
emitted as signals; because the loader lives on the GUI thread, Qt delivers
them there through a queued connection, so only the GUI thread ever touches
the layer stack. There is no cancellation or timeout: a decode that never
finishes never reports back.
"""

from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QByteArray, QObject, QRunnable, QThreadPool, QUrl, Signal
from PySide6.QtGui import QImage

from ecopiensa.services.logging_service import get_logger

logger = get_logger(__name__)

ImageSource = Union[QImage, bytes, bytearray, QByteArray, str, Path, QUrl]


def describe_source(source: ImageSource) -> str:
    """Short label for log messages."""
    if isinstance(source, QImage):
        return f"QImage {source.width()}x{source.height()}"
    if isinstance(source, (bytes, bytearray, QByteArray)):
        return f"{len(source)} bytes"
    if isinstance(source, QUrl):
        return source.toString()
    return str(source)


def decode_image(source: ImageSource) -> Optional[QImage]:
    """
    Decode an image source.

    Returns:
        A non-null QImage, or None when the source is unsupported or
        cannot be decoded.
    """
    image: Optional[QImage] = None

    if isinstance(source, QImage):
        image = QImage(source)
    elif isinstance(source, (bytes, bytearray)):
        image = QImage.fromData(bytes(source))
    elif isinstance(source, QByteArray):
        image = QImage.fromData(source)
    elif isinstance(source, QUrl):
        if source.isLocalFile():
            image = QImage(source.toLocalFile())
        else:
            logger.warning(f"Only local URLs can be decoded: {source.toString()}")
    elif isinstance(source, (str, Path)):
        path = Path(source)
        if path.is_file():
            image = QImage(str(path))
        else:
            logger.warning(f"Image file not found: {path}")
    else:
        logger.warning(f"Unsupported image source type: {type(source).__name__}")

    if image is None or image.isNull():
        logger.warning(f"Could not decode image from {describe_source(source)}")
        return None
    return image


class _DecodeSignals(QObject):
    """Signals for a decode job (QRunnable cannot emit by itself)."""

    decoded = Signal(QImage)
    failed = Signal(str)


class _DecodeJob(QRunnable):
    """Decode one source on a pool thread."""

    def __init__(self, source: ImageSource, signals: _DecodeSignals) -> None:
        super().__init__()
        self._source = source
        self._signals = signals

    def run(self) -> None:
        image = decode_image(self._source)
        if image is None:
            self._signals.failed.emit(describe_source(self._source))
        else:
            self._signals.decoded.emit(image)


class ImageLoader(QObject):
    """
    Decodes image sources in the background.

    Concurrent loads are not ordered: each job reports whenever it is done.

    Signals:
        image_decoded: Emitted on the loader's thread with the decoded QImage.
        decode_failed: Emitted with a description of the source that failed.
    """

    image_decoded = Signal(QImage)
    decode_failed = Signal(str)

    def __init__(
        self,
        parent: Optional[QObject] = None,
        pool: Optional[QThreadPool] = None,
    ) -> None:
        super().__init__(parent)
        self._pool = pool or QThreadPool.globalInstance()
        self._signals = _DecodeSignals(self)
        self._signals.decoded.connect(self.image_decoded)
        self._signals.failed.connect(self.decode_failed)

    def load(self, source: ImageSource) -> None:
        """Queue ``source`` for decoding."""
        logger.debug(f"Queued decode of {describe_source(source)}")
        self._pool.start(_DecodeJob(source, self._signals))
