from __future__ import annotations

from typing import Optional


_last_good_epd: bytes = b""


def remember_last_good(data: bytes) -> None:
    global _last_good_epd
    _last_good_epd = data


def last_good_epd() -> Optional[bytes]:
    return _last_good_epd or None


def forget_last_good() -> None:
    remember_last_good(b"")
