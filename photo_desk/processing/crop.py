from __future__ import annotations

import logging
import math
from typing import Iterable, List, Tuple

from PIL import Image, ImageFilter, ImageOps

from ..config import EPD_HEIGHT, EPD_WIDTH
from ..errors import InvalidTarget, SourceTooSmall
from .types import CropWindow


logger = logging.getLogger(__name__)

# Longest side of the downscaled copy the saliency map is computed on.
ANALYSIS_SIZE = 256

DETAIL_WEIGHT = 1.0
SATURATION_WEIGHT = 0.4
SKIN_WEIGHT = 1.8

SKIN_COLOR = (0.78, 0.57, 0.44)
SKIN_THRESHOLD = 0.8
SKIN_MIN_LUMA = 0.2

# Width of the edge band, as a fraction of the window's short side.
BOUNDARY_BAND = 0.06
BOUNDARY_WEIGHT = 0.05

SCALE_STEP = 0.1
TIE_EPSILON = 1e-9


def _normalized(vector: Tuple[float, float, float]) -> Tuple[float, float, float]:
    mag = math.sqrt(sum(value * value for value in vector))
    return vector[0] / mag, vector[1] / mag, vector[2] / mag


_SKIN = _normalized(SKIN_COLOR)


def _edge_map(gray: Image.Image) -> Image.Image:
    width, height = gray.size
    if width < 3 or height < 3:
        return Image.new("L", gray.size, 0)
    edges = gray.filter(ImageFilter.FIND_EDGES)
    # Pillow copies the outermost ring through unfiltered; blank it out so the
    # image frame does not read as detail.
    return ImageOps.expand(edges.crop((1, 1, width - 1, height - 1)), border=1, fill=0)


def _skin_score(r: int, g: int, b: int) -> float:
    mag = math.sqrt(r * r + g * g + b * b)
    if mag == 0:
        return 0.0
    luma = (0.299 * r + 0.587 * g + 0.114 * b) / 255.0
    if luma < SKIN_MIN_LUMA:
        return 0.0
    distance = math.sqrt(
        (r / mag - _SKIN[0]) ** 2 + (g / mag - _SKIN[1]) ** 2 + (b / mag - _SKIN[2]) ** 2
    )
    similarity = 1.0 - distance
    if similarity <= SKIN_THRESHOLD:
        return 0.0
    return (similarity - SKIN_THRESHOLD) / (1.0 - SKIN_THRESHOLD)


def saliency_map(img: Image.Image) -> List[float]:
    """Per-pixel interest of ``img`` as a row-major list of floats.

    Combines luminance edges, brightness-weighted saturation and skin tone.
    """

    rgb = img.convert("RGB")
    pixels = rgb.tobytes()
    edges = _edge_map(rgb.convert("L")).tobytes()
    _, saturation, value = (band.tobytes() for band in rgb.convert("HSV").split())

    out: List[float] = []
    for i, (edge, sat, val) in enumerate(zip(edges, saturation, value)):
        r, g, b = pixels[3 * i : 3 * i + 3]
        out.append(
            DETAIL_WEIGHT * edge / 255.0
            + SATURATION_WEIGHT * (sat / 255.0) * (val / 255.0)
            + SKIN_WEIGHT * _skin_score(r, g, b)
        )
    return out


class _SummedArea:
    """Summed-area table: any rectangle sum in constant time."""

    def __init__(self, values: List[float], width: int, height: int) -> None:
        self.width = width
        self.height = height
        stride = width + 1
        table = [0.0] * (stride * (height + 1))
        for y in range(height):
            running = 0.0
            row = y * width
            above = y * stride
            here = (y + 1) * stride
            for x in range(width):
                running += values[row + x]
                table[here + x + 1] = table[above + x + 1] + running
        self._table = table
        self._stride = stride

    def total(self) -> float:
        return self.sum(0, 0, self.width, self.height)

    def sum(self, x0: int, y0: int, x1: int, y1: int) -> float:
        if x1 <= x0 or y1 <= y0:
            return 0.0
        t = self._table
        s = self._stride
        return t[y1 * s + x1] - t[y0 * s + x1] - t[y1 * s + x0] + t[y0 * s + x0]


def _largest_window(source_size: Tuple[int, int], target_width: int, target_height: int) -> Tuple[int, int]:
    src_w, src_h = source_size
    if src_w * target_height >= src_h * target_width:
        return src_h * target_width // target_height, src_h
    return src_w, src_w * target_height // target_width


def _window_sizes(
    largest: Tuple[int, int], target_width: int, target_height: int, min_scale: float
) -> Iterable[Tuple[int, int]]:
    max_w, max_h = largest
    yield max_w, max_h
    scale = 1.0 - SCALE_STEP
    while scale >= min_scale - TIE_EPSILON:
        width = int(max_w * scale)
        height = min(max_h, int(round(width * target_height / target_width)))
        if width < target_width or height < target_height:
            break
        yield width, height
        scale -= SCALE_STEP


def _offsets(span: int, step: int) -> List[int]:
    return sorted(set(range(0, span + 1, step)) | {span, span // 2})


def _score(
    table: _SummedArea,
    box: Tuple[int, int, int, int],
    total: float,
    mean: float,
) -> float:
    x0, y0, x1, y1 = box
    inside = table.sum(x0, y0, x1, y1)
    captured = inside / total if total > 0 else 0.0
    if mean <= 0:
        return captured

    band = max(1, int(round(min(x1 - x0, y1 - y0) * BOUNDARY_BAND)))
    strips = []
    # Only window edges that cut into the picture are penalised.
    if x0 > 0:
        strips.append((x0, y0, x0 + band, y1))
    if x1 < table.width:
        strips.append((x1 - band, y0, x1, y1))
    if y0 > 0:
        strips.append((x0, y0, x1, y0 + band))
    if y1 < table.height:
        strips.append((x0, y1 - band, x1, y1))

    boundary = 0.0
    for sx0, sy0, sx1, sy1 in strips:
        area = max(1, (sx1 - sx0) * (sy1 - sy0))
        boundary = max(boundary, table.sum(sx0, sy0, sx1, sy1) / area / mean)
    return captured - BOUNDARY_WEIGHT * boundary


def select_crop(
    source: Image.Image,
    target_width: int,
    target_height: int,
    *,
    step: int = 8,
    min_scale: float = 0.6,
) -> CropWindow:
    """Find the most interesting window of the target aspect ratio in ``source``.

    The returned window is in source coordinates and at least
    ``target_width x target_height``; resizing it to the exact target size is
    left to the caller (see :func:`crop_to_panel`). ``step`` is the candidate
    spacing in analysis pixels and ``min_scale`` the smallest window tried,
    relative to the largest one that fits.
    """

    if target_width <= 0 or target_height <= 0:
        raise InvalidTarget(f"Target size must be positive, got {target_width}x{target_height}")

    src_w, src_h = source.size
    max_w, max_h = _largest_window(source.size, target_width, target_height)
    if max_w < target_width or max_h < target_height:
        raise SourceTooSmall(
            f"A {src_w}x{src_h} source cannot hold a {target_width}x{target_height} window"
        )

    factor = min(1.0, ANALYSIS_SIZE / max(src_w, src_h))
    analysis_w = max(1, int(round(src_w * factor)))
    analysis_h = max(1, int(round(src_h * factor)))
    small = source.convert("RGB").resize((analysis_w, analysis_h), Image.BOX)
    table = _SummedArea(saliency_map(small), analysis_w, analysis_h)
    total = table.total()
    mean = total / (analysis_w * analysis_h)
    fx = analysis_w / src_w
    fy = analysis_h / src_h

    center_x = src_w / 2.0
    center_y = src_h / 2.0
    best: CropWindow | None = None
    best_distance = 0.0

    for width, height in _window_sizes((max_w, max_h), target_width, target_height, min_scale):
        step_x = max(1, int(round(step / fx)))
        step_y = max(1, int(round(step / fy)))
        for y in _offsets(src_h - height, step_y):
            for x in _offsets(src_w - width, step_x):
                ax0 = int(round(x * fx))
                ay0 = int(round(y * fy))
                ax1 = max(ax0 + 1, min(analysis_w, int(round((x + width) * fx))))
                ay1 = max(ay0 + 1, min(analysis_h, int(round((y + height) * fy))))
                score = _score(table, (ax0, ay0, ax1, ay1), total, mean)

                candidate = CropWindow(x, y, width, height, score)
                cx, cy = candidate.center
                distance = (cx - center_x) ** 2 + (cy - center_y) ** 2
                if best is None or score > best.score + TIE_EPSILON or (
                    abs(score - best.score) <= TIE_EPSILON and distance < best_distance
                ):
                    best = candidate
                    best_distance = distance

    if best is None:
        raise SourceTooSmall(f"No {target_width}x{target_height} window fits a {src_w}x{src_h} source")
    logger.debug(
        "Best crop for %dx%d source: x%d y%d w%d h%d (%.4f)",
        src_w,
        src_h,
        best.x,
        best.y,
        best.width,
        best.height,
        best.score,
    )
    return best


def crop_to_panel(source: Image.Image, width: int = EPD_WIDTH, height: int = EPD_HEIGHT) -> Image.Image:
    """Crop the best window out of ``source`` and resample it to ``width x height``."""

    window = select_crop(source, width, height)
    if source.mode not in ("RGB", "RGBA"):
        has_alpha = source.mode in ("LA", "PA") or "transparency" in source.info
        source = source.convert("RGBA" if has_alpha else "RGB")
    return source.crop(window.box).resize((width, height), Image.LANCZOS)
