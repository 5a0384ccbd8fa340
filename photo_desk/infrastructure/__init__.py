"""Infrastructure helpers for the photo API and HTTP responses."""

from .cache import forget_last_good, last_good_epd, remember_last_good
from .photos import PhotoClient
from .responses import EPD_MIMETYPE, send_epd

__all__ = [
    "forget_last_good",
    "last_good_epd",
    "remember_last_good",
    "PhotoClient",
    "EPD_MIMETYPE",
    "send_epd",
]
