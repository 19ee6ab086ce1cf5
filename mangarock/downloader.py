"""Materialize the pages of a chapter into a local directory."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence

import requests

from .config import ClientConfig
from .errors import DownloadCancelled, FetchError, WriteError
from .fetcher import fetch_page
from .models import Chapter, FailurePolicy, PageResult
from .utils import ensure_directory, page_filename, write_atomic

logger = logging.getLogger("mangarock")


def save_page(
    index: int,
    locator: str,
    directory: Path,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    cancel: Optional[threading.Event] = None,
) -> Path:
    """Fetch one page and store it as ``<directory>/<index>-<basename>``."""
    ensure_directory(directory)
    destination = directory / page_filename(index, locator)
    data = fetch_page(locator, config=config, session=session, cancel=cancel)
    write_atomic(destination, data)
    logger.info("Saved page %d to %s (%d bytes)", index, destination, len(data))
    return destination


def _check_stop(
    cancel: Optional[threading.Event], deadline: Optional[float], locator: str
) -> None:
    if cancel is not None and cancel.is_set():
        raise DownloadCancelled(f"Download cancelled before {locator}")
    if deadline is not None and time.monotonic() >= deadline:
        raise DownloadCancelled(f"Deadline passed before {locator}")


def download_pages(
    locators: Sequence[str],
    directory: Path,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    policy: FailurePolicy = FailurePolicy.ABORT,
    cancel: Optional[threading.Event] = None,
    deadline: Optional[float] = None,
) -> List[PageResult]:
    """Download ``locators`` into ``directory`` sequentially, in order.

    With :attr:`FailurePolicy.ABORT` the first :class:`FetchError` or
    :class:`WriteError` is raised and later pages are never attempted. Pages
    written before the failure are left in place. With
    :attr:`FailurePolicy.COLLECT` every page is attempted and failures are
    reported in the returned list, which is in ordinal order either way.

    A set ``cancel`` event or an expired ``deadline`` (a
    :func:`time.monotonic` value) raises :class:`DownloadCancelled` under
    both policies.
    """
    directory = Path(directory)
    config = config or ClientConfig()
    owns_session = session is None
    session = session or requests.Session()

    results: List[PageResult] = []
    start = time.perf_counter()
    try:
        for index, locator in enumerate(locators):
            _check_stop(cancel, deadline, locator)
            path = directory / page_filename(index, locator)
            try:
                save_page(
                    index,
                    locator,
                    directory,
                    config=config,
                    session=session,
                    cancel=cancel,
                )
            except (FetchError, WriteError) as exc:
                if policy is FailurePolicy.ABORT:
                    raise
                logger.warning("Page %d failed: %s", index, exc)
                results.append(PageResult(index, locator, path, error=exc))
                continue
            results.append(PageResult(index, locator, path))
    finally:
        if owns_session:
            session.close()

    failed = sum(1 for result in results if not result.ok)
    logger.info(
        "Downloaded %d/%d pages to %s in %.2fs",
        len(results) - failed,
        len(results),
        directory,
        time.perf_counter() - start,
    )
    return results


def download_chapter(
    chapter: Chapter,
    directory: Path,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    policy: FailurePolicy = FailurePolicy.ABORT,
    cancel: Optional[threading.Event] = None,
    deadline: Optional[float] = None,
) -> List[PageResult]:
    """Download every page of a resolved chapter into ``directory``."""
    logger.info(
        "Downloading chapter %s (%s): %d pages",
        chapter.id,
        chapter.name,
        len(chapter.pages),
    )
    return download_pages(
        chapter.pages,
        directory,
        config=config,
        session=session,
        policy=policy,
        cancel=cancel,
        deadline=deadline,
    )
