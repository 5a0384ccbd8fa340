import random

import pytest
from PIL import Image

from photo_desk.errors import InvalidTarget, SourceTooSmall
from photo_desk.processing import crop
from photo_desk.processing.crop import crop_to_panel, saliency_map, select_crop


GREY = (128, 128, 128)
SKIN = (224, 172, 138)
GREEN = (40, 200, 40)


@pytest.mark.parametrize("target", [(0, 480), (800, 0), (-5, 480)])
def test_non_positive_target_is_invalid(target):
    src = Image.new("RGB", (1600, 960), color=GREY)

    with pytest.raises(InvalidTarget):
        select_crop(src, *target)


@pytest.mark.parametrize("size", [(400, 300), (1600, 400), (700, 2000), (0, 0)])
def test_source_smaller_than_target_is_rejected(size):
    src = Image.new("RGB", size, color=GREY)

    with pytest.raises(SourceTooSmall):
        select_crop(src, 800, 480)


def test_window_stays_inside_random_sources():
    rng = random.Random(42)
    for _ in range(12):
        width = rng.randint(800, 2600)
        height = rng.randint(480, 2000)
        src = Image.effect_noise((width, height), rng.randint(10, 90)).convert("RGB")

        window = select_crop(src, 800, 480)

        assert 0 <= window.x and 0 <= window.y
        assert window.x + window.width <= width
        assert window.y + window.height <= height
        assert window.width >= 800 and window.height >= 480
        # Aspect ratio holds to within a pixel of rounding.
        assert abs(window.width * 480 - window.height * 800) <= 800


def test_exact_size_source_uses_whole_image():
    src = Image.new("RGB", (800, 480), color=GREY)

    window = select_crop(src, 800, 480)

    assert window.box == (0, 0, 800, 480)


def test_featureless_source_is_centre_cropped():
    src = Image.new("RGB", (1600, 480), color=GREY)

    window = select_crop(src, 800, 480)

    assert (window.x, window.y, window.width, window.height) == (400, 0, 800, 480)


def test_detail_pulls_the_window():
    src = Image.new("RGB", (1600, 480), color=GREY)
    src.paste(Image.effect_noise((200, 480), 80).convert("RGB"), (1300, 0))

    window = select_crop(src, 800, 480)

    assert window.x <= 1300
    assert window.x + window.width >= 1500


def test_skin_tones_pull_the_window():
    src = Image.new("RGB", (800, 1600), color=GREY)
    src.paste(Image.new("RGB", (800, 200), color=SKIN), (0, 1100))

    window = select_crop(src, 800, 480)

    assert window.y <= 1100
    assert window.y + window.height >= 1300


def test_skin_interior_scores_above_its_colour_twin():
    # Same HSV saturation and value, so only the skin term tells them apart.
    skin = saliency_map(Image.new("RGB", (10, 10), color=SKIN))
    twin = saliency_map(Image.new("RGB", (10, 10), color=(138, 172, 224)))

    assert len(skin) == 100
    assert twin[55] < 0.2
    assert skin[55] - twin[55] > 1.0


def test_saturated_interior_outscores_grey():
    green = saliency_map(Image.new("RGB", (10, 10), color=GREEN))
    grey = saliency_map(Image.new("RGB", (10, 10), color=GREY))

    assert grey[55] == 0
    # 0.4 * (204 / 255) * (200 / 255)
    assert green[55] == pytest.approx(0.251, abs=0.005)


def test_boundary_penalty_avoids_cutting_through_a_subject(monkeypatch):
    src = Image.new("RGB", (3200, 480), color=GREY)
    src.paste(Image.new("RGB", (1000, 480), color=GREEN), (0, 0))
    src.paste(Image.new("RGB", (700, 480), color=GREEN), (1750, 0))

    window = select_crop(src, 800, 480)

    # The smaller block fits whole; any window on the larger one slices it.
    assert window.x <= 1750
    assert window.x + window.width >= 2450

    monkeypatch.setattr(crop, "BOUNDARY_WEIGHT", 0.0)
    window = select_crop(src, 800, 480)

    assert window.x + window.width <= 1000


def test_crop_to_panel_resizes_to_target():
    src = Image.effect_noise((1200, 1200), 40).convert("RGB")

    panel = crop_to_panel(src)

    assert panel.size == (800, 480)
    assert panel.mode == "RGB"


def test_crop_to_panel_keeps_alpha():
    src = Image.new("RGBA", (1000, 700), color=(10, 20, 30, 128))

    panel = crop_to_panel(src)

    assert panel.mode == "RGBA"
    assert panel.getpixel((400, 240))[3] == 128
