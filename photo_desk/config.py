import logging
import os
from dataclasses import dataclass
from typing import Tuple


EPD_WIDTH = 800
EPD_HEIGHT = 480
EPD_SIZE: Tuple[int, int] = (EPD_WIDTH, EPD_HEIGHT)


@dataclass(frozen=True)
class DeskSettings:
    api_key: str
    photo_api_url: str
    port: int
    samples_dir: str
    timeout: float
    retries: int
    log_level: str

    @classmethod
    def from_env(cls) -> "DeskSettings":
        return cls(
            api_key=os.getenv("PHOTO_API_KEY", ""),
            photo_api_url=os.getenv("PHOTO_API_URL", "").rstrip("/"),
            port=int(os.getenv("PORT", "3005")),
            samples_dir=os.getenv("SAMPLES_DIR", "samples"),
            timeout=float(os.getenv("PHOTO_API_TIMEOUT", "30.0")),
            retries=int(os.getenv("PHOTO_API_RETRIES", "2")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


SETTINGS = DeskSettings.from_env()


def configure_logging(settings: DeskSettings = SETTINGS) -> logging.Logger:
    logging.basicConfig(level=settings.log_level)
    return logging.getLogger("photo-desk")
