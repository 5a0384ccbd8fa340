from __future__ import annotations

import io

from flask import send_file

from .cache import remember_last_good


EPD_MIMETYPE = "image/epd"


def send_epd(data: bytes, *, remember: bool = True):
    if remember:
        remember_last_good(data)
    response = send_file(io.BytesIO(data), mimetype=EPD_MIMETYPE)
    response.headers["Cache-Control"] = "public, max-age=5"
    return response
