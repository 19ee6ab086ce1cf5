"""Decoding of MangaRock ``.mri`` page containers into PNG images.

An MRI file is a WebP image with its first 15 bytes (``RIFF``, the RIFF
size and ``WEBPVP8``) removed and every remaining byte XORed with ``0x65``.
Some CDN mirrors serve pages as plain images instead; those are recognised
by signature and opened as they are.
"""

from __future__ import annotations

import io
import logging
import struct
import time
from pathlib import Path
from typing import List, Optional, Union

from filetype import guess
from PIL import Image

from .config import CONTAINER_SUFFIX, OUTPUT_SUFFIX
from .errors import DecodeError, EncodeError, WriteError
from .models import ConversionResult, FailurePolicy
from .utils import normalize_suffix, write_atomic

logger = logging.getLogger("mangarock")

XOR_KEY = 0x65
WEBP_PREFIX = b"WEBPVP8"
HEADER_SIZE = 15  # "RIFF" + le32 size + "WEBPVP8"
VP8_VARIANTS = {b" ", b"L", b"X"}

_XOR_TABLE = bytes(value ^ XOR_KEY for value in range(256))


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect an ordinary image payload; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def mri_to_webp(data: bytes) -> bytes:
    """Rebuild the WebP byte stream hidden in an MRI payload."""
    if not data:
        raise DecodeError("empty payload")
    body = data.translate(_XOR_TABLE)
    if body[:1] not in VP8_VARIANTS:
        raise DecodeError(f"unexpected chunk tag {b'VP8' + body[:1]!r}")
    return b"RIFF" + struct.pack("<I", len(data) + 7) + WEBP_PREFIX + body


def _open_image(payload: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(payload))
        image.load()
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(exc) from exc
    return image


def decode_mri(data: bytes) -> Image.Image:
    """Decode an MRI payload (or a plain image payload) into a raster."""
    if detect_image_format(data):
        return _open_image(data)
    return _open_image(mri_to_webp(data))


def encode_mri(image: Image.Image) -> bytes:
    """Produce an MRI payload for ``image`` using lossless WebP."""
    buffer = io.BytesIO()
    image.save(buffer, format="WEBP", lossless=True)
    webp = buffer.getvalue()
    if webp[:4] != b"RIFF" or webp[8:HEADER_SIZE] != WEBP_PREFIX:
        raise EncodeError("<memory>", "Pillow produced an unexpected WebP header")
    return webp[HEADER_SIZE:].translate(_XOR_TABLE)


def output_path_for(source: Path) -> Path:
    return source.with_suffix(OUTPUT_SUFFIX)


def convert_file(source: Union[str, Path]) -> Path:
    """Decode ``source`` and write its PNG sibling; returns the PNG path."""
    source = Path(source)
    try:
        data = source.read_bytes()
    except OSError as exc:
        raise DecodeError(exc, source) from exc

    try:
        image = decode_mri(data)
    except DecodeError as exc:
        raise DecodeError(exc.reason, source) from exc

    destination = output_path_for(source)
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise EncodeError(destination, exc) from exc
    write_atomic(destination, buffer.getvalue())
    logger.debug("Converted %s -> %s", source.name, destination.name)
    return destination


def list_containers(directory: Path, suffix: Optional[str] = CONTAINER_SUFFIX) -> List[Path]:
    """Container files in ``directory``, in lexicographic order.

    ``suffix`` may be given with or without its leading dot. Without a
    ``suffix`` every regular file except finished outputs is taken.
    """
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise DecodeError(exc, directory) from exc
    files = [entry for entry in entries if entry.is_file()]
    suffix = normalize_suffix(suffix or "")
    if suffix:
        return [entry for entry in files if entry.suffix.lower() == suffix]
    return [entry for entry in files if entry.suffix.lower() != OUTPUT_SUFFIX]


def convert_directory(
    directory: Union[str, Path],
    suffix: Optional[str] = CONTAINER_SUFFIX,
    policy: FailurePolicy = FailurePolicy.ABORT,
) -> List[ConversionResult]:
    """Convert every container file in ``directory`` to PNG.

    Under :attr:`FailurePolicy.ABORT` the first failing file stops the batch
    and its error is raised; PNGs already written stay. Under
    :attr:`FailurePolicy.COLLECT` each failure is recorded and the rest of
    the directory is still converted.
    """
    directory = Path(directory)
    sources = list_containers(directory, suffix)
    results: List[ConversionResult] = []

    start = time.perf_counter()
    for source in sources:
        try:
            output = convert_file(source)
        except (DecodeError, EncodeError, WriteError) as exc:
            if policy is FailurePolicy.ABORT:
                raise
            logger.warning("Skipping %s: %s", source.name, exc)
            results.append(ConversionResult(source, None, error=exc))
            continue
        results.append(ConversionResult(source, output))

    elapsed = time.perf_counter() - start
    converted = sum(1 for result in results if result.ok)
    logger.info(
        "Converted %d/%d files in %s in %.2fs",
        converted,
        len(sources),
        directory,
        elapsed,
    )
    return results
