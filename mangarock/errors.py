"""Exceptions raised by the MangaRock client and download pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class MangaRockError(Exception):
    """Base error for everything raised by this package.

    The CLI catches this and prints a one-line message instead of a traceback.
    """


class APIError(MangaRockError):
    """The metadata API could not be reached or answered with an error code."""


class NotFoundError(MangaRockError):
    """A requested chapter or author does not exist upstream."""


class DownloadCancelled(MangaRockError):
    """A batch was stopped by a cancel signal or deadline."""


class FetchError(MangaRockError):
    """Retrieving a page failed (transport error, bad status or short body)."""

    def __init__(self, locator: str, cause: object) -> None:
        self.locator = locator
        self.cause = cause
        super().__init__(f"Could not fetch {locator}: {cause}")


class WriteError(MangaRockError):
    """Creating the destination directory or writing a page failed."""

    def __init__(self, path: Union[str, Path], cause: object) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Could not write {path}: {cause}")


class DecodeError(MangaRockError):
    """A container payload could not be interpreted as an image."""

    def __init__(self, reason: object, path: Optional[Union[str, Path]] = None) -> None:
        self.path = Path(path) if path is not None else None
        self.reason = reason
        if path is None:
            message = f"Could not decode container: {reason}"
        else:
            message = f"Could not decode {path}: {reason}"
        super().__init__(message)


class EncodeError(MangaRockError):
    """A decoded raster could not be written in the output format."""

    def __init__(self, path: Union[str, Path], cause: object) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Could not encode {path}: {cause}")
