"""Retrieve page payloads over HTTP."""

from __future__ import annotations

import io
import logging
import threading
from typing import BinaryIO, Optional

import requests

from .config import ClientConfig
from .errors import DownloadCancelled, FetchError

logger = logging.getLogger("mangarock")


def _check_cancel(cancel: Optional[threading.Event], locator: str) -> None:
    if cancel is not None and cancel.is_set():
        raise DownloadCancelled(f"Cancelled while fetching {locator}")


def stream_page(
    locator: str,
    sink: BinaryIO,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    cancel: Optional[threading.Event] = None,
) -> int:
    """Stream the payload behind ``locator`` into ``sink``.

    Returns the number of bytes written. A body shorter than the advertised
    ``Content-Length`` or a connection dropped mid-stream raises
    :class:`FetchError`; whatever already reached ``sink`` must be discarded
    by the caller.
    """
    config = config or ClientConfig()
    _check_cancel(cancel, locator)
    if session is None:
        with requests.Session() as owned:
            return stream_page(locator, sink, config=config, session=owned, cancel=cancel)

    logger.debug("GET %s", locator)
    try:
        resp = session.get(
            locator,
            headers=config.headers,
            timeout=config.timeout,
            stream=True,
        )
    except requests.RequestException as exc:
        raise FetchError(locator, exc) from exc

    with resp:
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise FetchError(locator, exc) from exc

        expected = resp.headers.get("Content-Length")
        written = 0
        try:
            for chunk in resp.iter_content(chunk_size=config.chunk_size):
                _check_cancel(cancel, locator)
                if not chunk:
                    continue
                sink.write(chunk)
                written += len(chunk)
        except requests.RequestException as exc:
            raise FetchError(locator, exc) from exc

    # Content-Encoding makes the header describe the compressed size.
    if expected and expected.isdigit() and not resp.headers.get("Content-Encoding"):
        if written < int(expected):
            raise FetchError(
                locator, f"truncated body ({written} of {expected} bytes)"
            )
    return written


def fetch_page(
    locator: str,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    cancel: Optional[threading.Event] = None,
) -> bytes:
    """Return the full payload behind ``locator``."""
    buffer = io.BytesIO()
    stream_page(locator, buffer, config=config, session=session, cancel=cancel)
    return buffer.getvalue()
