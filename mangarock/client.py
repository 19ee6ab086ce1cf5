"""Client for the MangaRock web API.

Every endpoint answers with an envelope ``{"code": 0, "data": ...}``; any
other code is reported as :class:`APIError`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import requests

from .config import ClientConfig
from .errors import APIError, NotFoundError
from .models import Author, Chapter, Manga, SingleManga

logger = logging.getLogger("mangarock")

T = TypeVar("T")


def _parse(factory: Callable[[Dict[str, Any]], T], record: Any) -> T:
    """Map one API record, reporting malformed fields as :class:`APIError`."""
    if not isinstance(record, dict):
        raise APIError(f"Unexpected record: {record!r}")
    try:
        return factory(record)
    except (TypeError, ValueError, AttributeError) as exc:
        raise APIError(f"Malformed record {record.get('oid', '?')}: {exc}") from exc


class MangaRockClient:
    """Thin request/response mapping over the MangaRock endpoints."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._owns_session = session is None
        self._session = session or requests.Session()

    @property
    def session(self) -> requests.Session:
        return self._session

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "MangaRockClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, str]] = None,
        body: Any = None,
    ) -> Any:
        query = dict(self.config.options)
        if params:
            query.update(params)
        logger.debug("%s %s params=%s", method, url, query)
        try:
            resp = self._session.request(
                method,
                url,
                params=query or None,
                json=body,
                headers=self.config.headers,
                timeout=self.config.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise APIError(f"Could not {method} {url}: {exc}") from exc

        try:
            payload = resp.json()
        except ValueError as exc:
            raise APIError(f"Could not decode response from {url}") from exc
        if not isinstance(payload, dict):
            raise APIError(f"Unexpected response from {url}: {payload!r}")
        code = payload.get("code")
        if code != 0:
            raise APIError(f"Response code {code} from {url}")
        return payload.get("data")

    def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        return self._request("GET", self.config.api_url + path, params=params)

    def _post(
        self, path: str, body: Any = None, params: Optional[Dict[str, str]] = None
    ) -> Any:
        return self._request("POST", self.config.api_url + path, params=params, body=body)

    def _meta(self, ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        data = self._request("POST", self.config.meta_url, body=list(ids))
        if not isinstance(data, dict):
            raise APIError("Meta lookup did not return an object")
        return data

    def mangas(self, ids: Sequence[str]) -> List[Manga]:
        """Resolve manga ids in the given order, dropping unknown ones."""
        if not ids:
            return []
        records = self._meta(ids)
        return [_parse(Manga.from_dict, records[oid]) for oid in ids if oid in records]

    def authors(self, ids: Sequence[str]) -> List[Author]:
        if not ids:
            return []
        records = self._meta(ids)
        return [_parse(Author.from_dict, records[oid]) for oid in ids if oid in records]

    def _attach_authors(self, mangas: List[Manga]) -> List[Manga]:
        ids: List[str] = []
        for manga in mangas:
            ids.extend(oid for oid in manga.author_ids if oid not in ids)
        by_id = {author.id: author for author in self.authors(ids)}
        for manga in mangas:
            manga.authors = [by_id[oid] for oid in manga.author_ids if oid in by_id]
            if manga.authors:
                manga.author = manga.authors[0]
        return mangas

    def latest(self) -> List[Manga]:
        """Latest mangas, re-resolved through the meta endpoint with authors."""
        data = self._get("/mrs_latest") or []
        ids = [item["oid"] for item in data if isinstance(item, dict) and "oid" in item]
        return self._attach_authors(self.mangas(ids))

    def manga(self, manga_id: str) -> SingleManga:
        data = self._post("/info", params={"oid": manga_id})
        if not isinstance(data, dict):
            raise NotFoundError(f"Manga {manga_id} not found")
        manga = _parse(SingleManga.from_dict, data)
        if manga.authors:
            manga.author = manga.authors[0]
        return manga

    def chapter(self, manga_id: str, chapter_id: str) -> Chapter:
        """Return the chapter ``chapter_id`` of ``manga_id`` with its pages."""
        manga = self.manga(manga_id)
        pages = self._post("/pages", params={"oid": chapter_id})
        if not isinstance(pages, list):
            raise APIError(f"Unexpected page list for chapter {chapter_id}")

        for chapter in manga.chapters:
            if chapter.id != chapter_id:
                continue
            chapter.pages = [str(page) for page in pages]
            return chapter
        raise NotFoundError(f"Chapter {chapter_id} not found in manga {manga_id}")

    def author(self, author_id: str) -> Tuple[Author, List[Manga]]:
        """Return an author and the mangas attributed to them."""
        found = self.authors([author_id])
        if not found:
            raise NotFoundError(f"Author with id {author_id} not found")
        author = found[0]

        data = self._get("/mrs_serie_related_author", params={"oid": author_id}) or []
        ids = [item["oid"] for item in data if isinstance(item, dict) and "oid" in item]
        mangas = self.mangas(ids)
        for manga in mangas:
            manga.author = author
        return author, mangas

    def search(self, query: str) -> List[str]:
        """Manga ids matching ``query``."""
        data = self._post("/mrs_search", body={"type": "series", "keywords": query})
        if data is None:
            return []
        if not isinstance(data, list):
            raise APIError("Search did not return a list of ids")
        return [str(oid) for oid in data]
