"""Crop, quantize and pack images for the 7-colour panel."""

from .crop import crop_to_panel, saliency_map, select_crop
from .dither import quantize
from .epd import decode, encode, load_epd, save_epd
from .palette import PALETTE, PALETTE_NAMES, color_distance, nearest_palette_index
from .pipeline import convert_image, load_panel_png, render_preview, to_panel
from .types import CropWindow, IndexedImage

__all__ = [
    "crop_to_panel",
    "saliency_map",
    "select_crop",
    "quantize",
    "decode",
    "encode",
    "load_epd",
    "save_epd",
    "PALETTE",
    "PALETTE_NAMES",
    "color_distance",
    "nearest_palette_index",
    "convert_image",
    "load_panel_png",
    "render_preview",
    "to_panel",
    "CropWindow",
    "IndexedImage",
]
