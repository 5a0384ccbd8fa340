from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence, Union

from PIL import Image

from ..config import EPD_HEIGHT, EPD_SIZE, EPD_WIDTH
from .crop import crop_to_panel
from .dither import quantize
from .epd import encode
from .palette import PALETTE, RGB, flat_palette
from .types import IndexedImage


logger = logging.getLogger(__name__)


def convert_image(source: Image.Image) -> bytes:
    """Turn an arbitrary photo into panel-ready EPD bytes."""

    logger.info("Converting %dx%d image", source.width, source.height)
    panel = crop_to_panel(source, EPD_WIDTH, EPD_HEIGHT)
    return encode(quantize(panel, PALETTE))


def to_panel(source: Image.Image) -> Image.Image:
    if source.size == EPD_SIZE:
        return source
    return crop_to_panel(source, EPD_WIDTH, EPD_HEIGHT)


def render_preview(img: IndexedImage, palette: Sequence[RGB] = PALETTE) -> Image.Image:
    """Paint ``img`` with its palette colours for viewing on a normal screen."""

    last = len(palette) - 1
    clamp = bytes(min(value, last) for value in range(256))
    preview = Image.frombytes("P", img.size, img.indices.translate(clamp))
    preview.putpalette(flat_palette(palette))
    return preview.convert("RGB")


def load_panel_png(path: Union[str, Path]) -> Image.Image:
    with Image.open(path) as img:
        return img.convert("RGBA")
