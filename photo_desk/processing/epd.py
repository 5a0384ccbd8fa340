"""Reader and writer for the packed ``EPD7`` panel format.

Layout (little-endian)::

    0   4 bytes  magic "EPD7"
    4   1 byte   version (1)
    5   u32      width
    9   u32      height
    13  ...      height * ceil(width / 2) bytes, two 4-bit palette indices
                 per byte, high nibble first, each row packed on its own

The header follows the Waveshare 7.3" (F) picture format.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Optional, Tuple, Union

from ..config import EPD_SIZE
from ..errors import BadMagic, Truncated, UnsupportedVersion, WrongDimensions
from .palette import WHITE
from .types import IndexedImage


MAGIC = b"EPD7"
VERSION = 1
HEADER = struct.Struct("<4sBII")

# Fills the low nibble of the last byte of an odd-width row.
PADDING_INDEX = WHITE

SizeCheck = Optional[Tuple[int, int]]


def packed_row_size(width: int) -> int:
    return (width + 1) // 2


def encode(img: IndexedImage, *, size: SizeCheck = EPD_SIZE) -> bytes:
    if size is not None and img.size != tuple(size):
        raise WrongDimensions(size, img.size)

    invalid = [value for value in set(img.indices) if value > 0x0F]
    if invalid:
        raise ValueError(f"Palette index {max(invalid)} does not fit in 4 bits")

    width, height = img.size
    out = bytearray(HEADER.pack(MAGIC, VERSION, width, height))
    for y in range(height):
        row = img.row(y)
        for x in range(0, width - 1, 2):
            out.append((row[x] << 4) | row[x + 1])
        if width % 2:
            out.append((row[width - 1] << 4) | PADDING_INDEX)
    return bytes(out)


def decode(data: bytes, *, size: SizeCheck = EPD_SIZE) -> IndexedImage:
    """Rebuild the indexed image stored in ``data``.

    With the default ``size`` a stream declaring any other resolution is
    rejected; ``size=None`` trusts the header.
    """

    data = bytes(data)
    if data[: len(MAGIC)] != MAGIC:
        raise BadMagic(data[: len(MAGIC)])
    if len(data) < HEADER.size:
        raise Truncated(HEADER.size, len(data))

    _, version, width, height = HEADER.unpack_from(data)
    if version != VERSION:
        raise UnsupportedVersion(version)
    if size is not None and (width, height) != tuple(size):
        raise WrongDimensions(size, (width, height))

    row_bytes = packed_row_size(width)
    expected = HEADER.size + row_bytes * height
    if len(data) < expected:
        raise Truncated(expected, len(data))

    out = bytearray(width * height)
    pos = 0
    for y in range(height):
        start = HEADER.size + y * row_bytes
        for byte in data[start : start + row_bytes]:
            out[pos] = byte >> 4
            pos += 1
            # The low nibble of an odd row's last byte is padding.
            if pos < (y + 1) * width:
                out[pos] = byte & 0x0F
                pos += 1
    return IndexedImage(width, height, bytes(out))


def save_epd(path: Union[str, Path], img: IndexedImage, *, size: SizeCheck = EPD_SIZE) -> None:
    Path(path).write_bytes(encode(img, size=size))


def load_epd(path: Union[str, Path], *, size: SizeCheck = EPD_SIZE) -> IndexedImage:
    return decode(Path(path).read_bytes(), size=size)
