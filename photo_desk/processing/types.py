from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class CropWindow:
    """A rectangle inside a source image, in source pixel coordinates."""

    x: int
    y: int
    width: int
    height: int
    score: float = field(default=0.0, compare=False)

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """The window as a Pillow ``(left, upper, right, lower)`` box."""
        return self.x, self.y, self.x + self.width, self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0


@dataclass(frozen=True)
class IndexedImage:
    """Palette indices, one byte per pixel, row-major from the top-left."""

    width: int
    height: int
    indices: bytes

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid size {self.width}x{self.height}")
        if not isinstance(self.indices, bytes):
            object.__setattr__(self, "indices", bytes(self.indices))
        if len(self.indices) != self.width * self.height:
            raise ValueError(
                f"Expected {self.width * self.height} indices for a "
                f"{self.width}x{self.height} image, got {len(self.indices)}"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def pixel(self, x: int, y: int) -> int:
        return self.indices[y * self.width + x]

    def row(self, y: int) -> bytes:
        start = y * self.width
        return self.indices[start : start + self.width]
