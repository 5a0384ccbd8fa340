from __future__ import annotations

import io
import logging
import os

from flask import Flask, jsonify, request, send_from_directory
from PIL import Image

from .config import SETTINGS, DeskSettings, configure_logging
from .errors import ImageValidationError, PhotoDeskError
from .infrastructure.cache import last_good_epd
from .infrastructure.photos import PhotoClient
from .infrastructure.responses import send_epd
from .processing.pipeline import convert_image

APP_VERSION = "1.0.0"
SERVICE_NAME = "photo-desk-server"

logger = logging.getLogger(__name__)


def create_app(settings: DeskSettings = SETTINGS, client: PhotoClient | None = None) -> Flask:
    configure_logging(settings)
    app = Flask(__name__)
    photos = client or PhotoClient(settings)
    samples_dir = os.path.abspath(settings.samples_dir)
    os.makedirs(samples_dir, exist_ok=True)

    @app.route("/recent")
    def recent():
        try:
            epd = convert_image(photos.get_recent_photo())
        except (PhotoDeskError, OSError, Image.DecompressionBombError) as exc:
            logger.error("Error fetching recent photo: %s", exc)
            cached = last_good_epd()
            if cached:
                return send_epd(cached, remember=False)
            return jsonify(error="Failed to fetch recent photo"), 500
        return send_epd(epd)

    @app.route("/convert", methods=["POST"])
    def convert():
        upload = request.files.get("image")
        data = upload.read() if upload is not None else request.get_data()
        if not data:
            return jsonify(error="No image supplied"), 400
        try:
            with Image.open(io.BytesIO(data)) as src:
                src.load()
                epd = convert_image(src)
        except (OSError, Image.DecompressionBombError) as exc:
            logger.warning("Rejected upload: %s", exc)
            return jsonify(error="Unreadable image"), 400
        except ImageValidationError as exc:
            return jsonify(error=str(exc)), 400
        return send_epd(epd, remember=False)

    @app.route("/health")
    def health():
        return jsonify(status="healthy", service=SERVICE_NAME, version=APP_VERSION)

    @app.route("/samples/<path:filename>")
    def samples(filename: str):
        return send_from_directory(samples_dir, filename)

    logger.info("Serving static files from: %s", samples_dir)
    return app
