from __future__ import annotations

from typing import Sequence, Tuple


RGB = Tuple[int, int, int]

# Index order is fixed by the panel firmware.
PALETTE: Tuple[RGB, ...] = (
    (0, 0, 0),  # black
    (255, 255, 255),  # white
    (0, 255, 0),  # green
    (0, 0, 255),  # blue
    (255, 0, 0),  # red
    (255, 255, 0),  # yellow
    (255, 128, 0),  # orange
)

PALETTE_NAMES: Tuple[str, ...] = ("black", "white", "green", "blue", "red", "yellow", "orange")

WHITE = 1


def flat_palette(palette: Sequence[RGB] = PALETTE) -> Tuple[int, ...]:
    """The palette as the 768 channel values of a Pillow "P" image."""
    flat: Tuple[int, ...] = tuple(channel for rgb in palette for channel in rgb)
    return flat + (0,) * (768 - len(flat))


def color_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Weighted ("redmean") squared RGB distance.

    The channel weights shift with the mean red level, which tracks perceived
    difference much better than plain Euclidean RGB at no extra cost.
    """

    rmean = (a[0] + b[0]) / 2.0
    dr = a[0] - b[0]
    dg = a[1] - b[1]
    db = a[2] - b[2]
    return (2.0 + rmean / 256.0) * dr * dr + 4.0 * dg * dg + (2.0 + (255.0 - rmean) / 256.0) * db * db


def nearest_palette_index(rgb: Sequence[float], palette: Sequence[RGB] = PALETTE) -> int:
    if not palette:
        raise ValueError("palette must not be empty")

    best_index = 0
    best_distance = float("inf")
    for index, color in enumerate(palette):
        distance = color_distance(rgb, color)
        # Strict comparison keeps the lowest index on ties.
        if distance < best_distance:
            best_distance = distance
            best_index = index
    return best_index
