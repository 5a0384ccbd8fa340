"""Typed failures raised by the conversion core and the photo API client."""

from __future__ import annotations

from typing import Tuple


Size = Tuple[int, int]


class PhotoDeskError(Exception):
    """Base class for every error raised by this package."""


class ImageValidationError(PhotoDeskError, ValueError):
    """A conversion input was rejected. Never retried internally."""


class InvalidTarget(ImageValidationError):
    pass


class SourceTooSmall(ImageValidationError):
    pass


class WrongDimensions(ImageValidationError):
    def __init__(self, expected: Size, actual: Size) -> None:
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        super().__init__(
            f"Wrong dimensions: {self.actual[0]}x{self.actual[1]}"
            f" (expected {self.expected[0]}x{self.expected[1]})"
        )


class DecodeError(ImageValidationError):
    """The byte stream is not a readable EPD image."""


class BadMagic(DecodeError):
    def __init__(self, magic: bytes) -> None:
        self.magic = bytes(magic)
        super().__init__(f"Bad magic bytes: {self.magic!r}")


class UnsupportedVersion(DecodeError):
    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"Unsupported EPD version: {version}")


class Truncated(DecodeError):
    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Truncated EPD data: expected {expected} bytes, got {actual}")


class PhotoApiError(PhotoDeskError, RuntimeError):
    """The remote photo service could not provide an image."""


class NoThumbnailFound(PhotoApiError):
    def __init__(self, message: str = "No thumbnail found in API response") -> None:
        super().__init__(message)


class InvalidApiResponse(PhotoApiError):
    def __init__(self, message: str = "Invalid API response format") -> None:
        super().__init__(message)
