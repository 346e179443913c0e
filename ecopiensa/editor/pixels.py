"""
Pixel buffer helpers for raster layers.

Raster layers keep their pixels in a NumPy array of shape (height, width, 4)
holding non-premultiplied RGBA bytes. This module converts between that
array and QImage, and implements the whole-buffer algorithms that work on it:

- remove_color: global magic-wand transparency (not connected)
- flood_fill: 4-connected region fill with an explicit stack
"""

from typing import Tuple

import numpy as np
from PySide6.QtGui import QImage

# Per-channel threshold for flood fill membership. Independent of the
# magic wand tolerance.
FLOOD_FILL_THRESHOLD = 10

RGBA = Tuple[int, int, int, int]


def qimage_to_rgba(image: QImage) -> np.ndarray:
    """
    Copy a QImage into a new (h, w, 4) uint8 RGBA array.

    The image is converted to Format_RGBA8888 first, so any source format
    Qt can decode is accepted.
    """
    converted = image.convertToFormat(QImage.Format.Format_RGBA8888)
    width, height = converted.width(), converted.height()
    stride = converted.bytesPerLine()

    raw = np.frombuffer(converted.constBits(), dtype=np.uint8, count=converted.sizeInBytes())
    rows = raw.reshape(height, stride)[:, : width * 4]
    return rows.reshape(height, width, 4).copy()


def rgba_to_qimage(pixels: np.ndarray) -> QImage:
    """Build a detached RGBA8888 QImage from an (h, w, 4) uint8 array."""
    height, width = pixels.shape[:2]
    data = np.ascontiguousarray(pixels, dtype=np.uint8).tobytes()
    image = QImage(data, width, height, width * 4, QImage.Format.Format_RGBA8888)
    # Keep a copy because the Python-owned bytes may be freed
    return image.copy()


def remove_color(
    pixels: np.ndarray,
    target: Tuple[int, int, int],
    tolerance: int,
) -> int:
    """
    Make every visible pixel close to ``target`` fully transparent.

    A pixel matches when its alpha is nonzero and each of R, G, B differs
    from the target by strictly less than ``tolerance``. Works in place.

    Returns:
        Number of pixels whose alpha was cleared.
    """
    rgb = pixels[..., :3].astype(np.int16)
    diff = np.abs(rgb - np.asarray(target, dtype=np.int16))
    mask = (pixels[..., 3] != 0) & np.all(diff < tolerance, axis=-1)

    count = int(np.count_nonzero(mask))
    if count:
        pixels[..., 3][mask] = 0
    return count


def flood_fill(pixels: np.ndarray, x: int, y: int, color: RGBA) -> int:
    """
    Fill the 4-connected region around (x, y) with ``color``, in place.

    Membership is decided against the start pixel on the buffer as it was
    before filling: every channel (R, G, B, A) must differ by strictly less
    than FLOOD_FILL_THRESHOLD. Spans are grown along rows and seeds for the
    rows above and below are pushed on an explicit stack, so region size
    never affects call depth.

    Returns:
        Number of pixels written. Zero when (x, y) is outside the buffer or
        the start pixel already equals ``color``.
    """
    height, width = pixels.shape[:2]
    if not (0 <= x < width and 0 <= y < height):
        return 0

    fill = np.asarray(color, dtype=np.uint8)
    start = pixels[y, x].copy()
    if np.array_equal(start, fill):
        return 0

    diff = np.abs(pixels.astype(np.int16) - start.astype(np.int16))
    matches = np.all(diff < FLOOD_FILL_THRESHOLD, axis=-1)
    filled = np.zeros((height, width), dtype=bool)

    stack = [(x, y)]
    while stack:
        cx, cy = stack.pop()
        if filled[cy, cx] or not matches[cy, cx]:
            continue

        # === Grow the span left and right === #
        row = matches[cy]
        left = cx
        while left > 0 and row[left - 1] and not filled[cy, left - 1]:
            left -= 1
        right = cx
        while right < width - 1 and row[right + 1] and not filled[cy, right + 1]:
            right += 1

        filled[cy, left:right + 1] = True

        # === Seed one pixel per open run in the neighbouring rows === #
        for ny in (cy - 1, cy + 1):
            if not 0 <= ny < height:
                continue
            open_run = matches[ny, left:right + 1] & ~filled[ny, left:right + 1]
            if not open_run.any():
                continue
            starts = open_run & ~np.concatenate(([False], open_run[:-1]))
            for offset in np.flatnonzero(starts):
                stack.append((left + int(offset), ny))

    pixels[filled] = fill
    return int(np.count_nonzero(filled))
