from __future__ import annotations

import io
import logging
import random
import time
from typing import Any, Callable, Mapping

import requests
from PIL import Image

from ..config import SETTINGS, DeskSettings
from ..errors import InvalidApiResponse, NoThumbnailFound, PhotoApiError


logger = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]


class PhotoClient:
    """Picks a random favourite from an Immich-style photo API."""

    def __init__(
        self,
        settings: DeskSettings = SETTINGS,
        session_factory: SessionFactory | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._session_factory = session_factory or requests.Session
        self._session = self._create_session()
        self._rng = rng or random.Random()

    def _create_session(self) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"User-Agent": "photo-desk/1.0", "x-api-key": self._settings.api_key})
        return session

    def _get(self, path: str, params: Mapping[str, str] | None = None) -> requests.Response:
        url = f"{self._settings.photo_api_url}{path}"
        last_exception: Exception | None = None
        for attempt in range(1, self._settings.retries + 2):
            try:
                response = self._session.get(url, params=params, timeout=self._settings.timeout)
            except requests.RequestException as exc:
                logger.warning("Photo API request to %s failed (attempt %d): %s", url, attempt, exc)
                last_exception = exc
                time.sleep(0.4 * attempt)
                continue
            logger.info("GET %s -> %s", url, response.status_code)
            if not response.ok:
                raise InvalidApiResponse(f"{url} returned HTTP {response.status_code}")
            return response
        raise PhotoApiError(f"Photo API unreachable: {last_exception}") from last_exception

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise InvalidApiResponse(f"Response is not JSON: {exc}") from exc

    def get_favorite_bucket(self) -> str:
        buckets = self._json(
            self._get("/api/timeline/buckets", {"isFavorite": "true", "isTrashed": "false"})
        )
        if not isinstance(buckets, list):
            raise InvalidApiResponse("Expected a list of time buckets")
        if not buckets:
            raise NoThumbnailFound("No favourite time buckets")
        try:
            return str(self._rng.choice(buckets)["timeBucket"])
        except (KeyError, TypeError) as exc:
            raise InvalidApiResponse("Time bucket without a timeBucket field") from exc

    def get_photo_from_bucket(self, time_bucket: str) -> str:
        info = self._json(
            self._get(
                "/api/timeline/bucket",
                {
                    "isFavorite": "true",
                    "isTrashed": "false",
                    "timeBucket": time_bucket,
                    "withStacked": "true",
                },
            )
        )
        try:
            ids = info["id"]
        except (KeyError, TypeError) as exc:
            raise InvalidApiResponse("Bucket response has no id list") from exc
        if not ids:
            raise NoThumbnailFound()
        return str(ids[0])

    def download_image(self, asset_id: str) -> bytes:
        return self._get(f"/api/assets/{asset_id}/thumbnail", {"size": "preview"}).content

    def get_recent_photo(self) -> Image.Image:
        bucket = self.get_favorite_bucket()
        logger.info("Chose time bucket %s", bucket)
        asset_id = self.get_photo_from_bucket(bucket)
        logger.info("Downloading asset %s", asset_id)
        data = self.download_image(asset_id)
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (OSError, Image.DecompressionBombError) as exc:
            raise InvalidApiResponse(f"Asset {asset_id} is not a readable image") from exc
        logger.info("Got an image of %dx%d", img.width, img.height)
        return img
