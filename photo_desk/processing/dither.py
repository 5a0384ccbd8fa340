from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from PIL import Image

from ..config import EPD_SIZE
from ..errors import WrongDimensions
from .palette import PALETTE, RGB, nearest_palette_index
from .types import IndexedImage


logger = logging.getLogger(__name__)

# Floyd-Steinberg weights. Together with the row-major scan they define the
# output bit for bit, so they must not change.
_RIGHT = 7 / 16
_BELOW_LEFT = 3 / 16
_BELOW = 5 / 16
_BELOW_RIGHT = 1 / 16


def _spread(row: List[float], offset: int, error: Tuple[float, float, float], weight: float) -> None:
    for channel in range(3):
        value = row[offset + channel] + error[channel] * weight
        row[offset + channel] = 0.0 if value < 0.0 else 255.0 if value > 255.0 else value


def quantize(
    pixels: Image.Image,
    palette: Sequence[RGB] = PALETTE,
    *,
    size: Optional[Tuple[int, int]] = EPD_SIZE,
) -> IndexedImage:
    """Map ``pixels`` onto ``palette`` with Floyd-Steinberg error diffusion.

    Pixels are visited row by row, left to right. Alpha is ignored. ``size``
    is the only accepted input size; pass ``None`` to accept any size.
    """

    if not palette:
        raise ValueError("palette must not be empty")
    if size is not None and tuple(pixels.size) != tuple(size):
        raise WrongDimensions(size, pixels.size)

    logger.info("Remapping %dx%d image to %d colour palette", pixels.width, pixels.height, len(palette))

    width, height = pixels.size
    raw = pixels.convert("RGB").tobytes()
    stride = width * 3
    out = bytearray(width * height)

    below: Optional[List[float]] = [float(value) for value in raw[:stride]]
    for y in range(height):
        current = below
        if y + 1 < height:
            start = (y + 1) * stride
            below = [float(value) for value in raw[start : start + stride]]
        else:
            below = None

        base = y * width
        for x in range(width):
            offset = x * 3
            accumulated = (current[offset], current[offset + 1], current[offset + 2])
            index = nearest_palette_index(accumulated, palette)
            out[base + x] = index

            chosen = palette[index]
            error = (
                accumulated[0] - chosen[0],
                accumulated[1] - chosen[1],
                accumulated[2] - chosen[2],
            )
            if error == (0.0, 0.0, 0.0):
                continue

            if x + 1 < width:
                _spread(current, offset + 3, error, _RIGHT)
            if below is not None:
                if x > 0:
                    _spread(below, offset - 3, error, _BELOW_LEFT)
                _spread(below, offset, error, _BELOW)
                if x + 1 < width:
                    _spread(below, offset + 3, error, _BELOW_RIGHT)

    return IndexedImage(width, height, bytes(out))
