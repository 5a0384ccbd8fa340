import io

import pytest
from PIL import Image

from photo_desk.app import SERVICE_NAME, create_app
from photo_desk.config import DeskSettings
from photo_desk.errors import NoThumbnailFound
from photo_desk.infrastructure.cache import forget_last_good, remember_last_good
from photo_desk.processing.epd import decode


class FakeClient:
    def __init__(self, image=None, error=None):
        self.image = image
        self.error = error

    def get_recent_photo(self):
        if self.error is not None:
            raise self.error
        return self.image


def _png(size, color=(30, 120, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def _clear_last_good():
    forget_last_good()
    yield
    forget_last_good()


@pytest.fixture
def settings(tmp_path):
    return DeskSettings(
        api_key="secret",
        photo_api_url="https://photos.example",
        port=3005,
        samples_dir=str(tmp_path / "samples"),
        timeout=5.0,
        retries=0,
        log_level="INFO",
    )


def _client(settings, photo_client):
    return create_app(settings, client=photo_client).test_client()


def test_health(settings):
    response = _client(settings, FakeClient()).get("/health")

    assert response.status_code == 200
    assert response.get_json()["status"] == "healthy"
    assert response.get_json()["service"] == SERVICE_NAME


def test_recent_returns_epd_bytes(settings):
    photo = Image.effect_noise((1000, 700), 40).convert("RGB")

    response = _client(settings, FakeClient(image=photo)).get("/recent")

    assert response.status_code == 200
    assert response.mimetype == "image/epd"
    assert "max-age=5" in response.headers["Cache-Control"]
    assert decode(response.data).size == (800, 480)


def test_recent_failure_without_cache_is_500(settings):
    response = _client(settings, FakeClient(error=NoThumbnailFound())).get("/recent")

    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to fetch recent photo"}


def test_recent_failure_serves_last_good(settings):
    remember_last_good(b"EPD7-cached")

    response = _client(settings, FakeClient(error=NoThumbnailFound())).get("/recent")

    assert response.status_code == 200
    assert response.data == b"EPD7-cached"


def test_convert_raw_body(settings):
    response = _client(settings, FakeClient()).post(
        "/convert", data=_png((960, 576)), content_type="image/png"
    )

    assert response.status_code == 200
    assert response.mimetype == "image/epd"
    assert len(response.data) == 13 + 480 * 400


def test_convert_multipart_upload(settings):
    response = _client(settings, FakeClient()).post(
        "/convert",
        data={"image": (io.BytesIO(_png((800, 480))), "photo.png")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    assert decode(response.data).size == (800, 480)


def test_convert_rejects_small_images(settings):
    response = _client(settings, FakeClient()).post(
        "/convert", data=_png((100, 100)), content_type="image/png"
    )

    assert response.status_code == 400
    assert "error" in response.get_json()


def test_convert_rejects_garbage(settings):
    client = _client(settings, FakeClient())

    assert client.post("/convert", data=b"hello", content_type="image/png").status_code == 400
    assert client.post("/convert", data=b"", content_type="image/png").status_code == 400


def test_samples_are_served(settings):
    client = _client(settings, FakeClient())
    with open(f"{settings.samples_dir}/hello.epd", "wb") as handle:
        handle.write(b"EPD7")

    response = client.get("/samples/hello.epd")

    assert response.status_code == 200
    assert response.data == b"EPD7"
    assert client.get("/samples/missing.epd").status_code == 404


def test_convert_rejects_truncated_png(settings):
    buffer = io.BytesIO()
    Image.effect_noise((1000, 700), 60).convert("RGB").save(buffer, "PNG")

    response = _client(settings, FakeClient()).post(
        "/convert", data=buffer.getvalue()[:5000], content_type="image/png"
    )

    assert response.status_code == 400
    assert "error" in response.get_json()


def test_recent_oversized_thumbnail_falls_back_to_last_good(settings):
    remember_last_good(b"EPD7-cached")
    client = FakeClient(error=Image.DecompressionBombError("too many pixels"))

    response = _client(settings, client).get("/recent")

    assert response.status_code == 200
    assert response.data == b"EPD7-cached"
