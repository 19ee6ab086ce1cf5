"""Utility helpers for page naming and path handling."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from .errors import WriteError

logger = logging.getLogger("mangarock")

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
PARTIAL_SUFFIX = ".part"


def slugify(value: str, fallback: str = "chapter") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def normalize_index(index: int) -> str:
    """Render a page ordinal, zero-padding only the single-digit ones.

    Indices of 100 and above sort before ``"20-..."`` in a directory listing.
    Existing downloads depend on these names, so the width stays as is.
    """
    if index < 10:
        return f"0{index}"
    return str(index)


def locator_basename(locator: str) -> str:
    """Return the part of ``locator`` after its last ``/``."""
    return locator.rsplit("/", 1)[-1]


def page_filename(index: int, locator: str) -> str:
    """Local filename for the ``index``-th page, e.g. ``03-007.mri``."""
    return f"{normalize_index(index)}-{locator_basename(locator)}"


def normalize_suffix(suffix: str) -> str:
    """``"mri"`` and ``".MRI"`` both become ``".mri"``."""
    suffix = suffix.strip().lower()
    if suffix and not suffix.startswith("."):
        suffix = "." + suffix
    return suffix


def ensure_directory(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteError(directory, exc) from exc


def write_atomic(destination: Path, data: bytes) -> None:
    """Write ``data`` to ``destination`` via a temporary sibling and a rename.

    The final name only ever holds a complete payload.
    """
    partial = destination.with_name(destination.name + PARTIAL_SUFFIX)
    try:
        partial.write_bytes(data)
        os.replace(partial, destination)
    except OSError as exc:
        try:
            partial.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.debug("Could not remove %s", partial)
        raise WriteError(destination, exc) from exc
