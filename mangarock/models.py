"""Data models used throughout the client and download pipeline."""

from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


class FailurePolicy(enum.Enum):
    """What a batch does when one item fails."""

    ABORT = "abort"
    COLLECT = "collect"


def _parse_timestamp(value: Any) -> Optional[dt.datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return dt.datetime.fromtimestamp(value, tz=dt.timezone.utc)
    if isinstance(value, str):
        try:
            return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


@dataclass
class Category:
    """Rich category attached to a manga."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(id=data.get("oid", ""), name=data.get("name", ""))


@dataclass
class Author:
    """Author of a manga. ``role`` is only set when listed through a manga."""

    id: str
    name: str
    thumbnail: str = ""
    role: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Author":
        return cls(
            id=data.get("oid", ""),
            name=data.get("name", ""),
            thumbnail=data.get("thumbnail") or "",
            role=data.get("role") or "",
        )


@dataclass
class Chapter:
    """A named, ordered sequence of page locators.

    ``pages`` is empty until the chapter is resolved through
    :meth:`mangarock.client.MangaRockClient.chapter`.
    """

    id: str
    name: str
    order: int = 0
    pages: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chapter":
        return cls(
            id=data.get("oid", ""),
            name=data.get("name", ""),
            order=int(data.get("order") or 0),
            pages=list(data.get("pages") or []),
        )


@dataclass
class Manga:
    """Manga as returned by endpoints that list several of them."""

    id: str
    name: str
    author: Optional[Author] = None
    authors: List[Author] = field(default_factory=list)
    author_ids: List[str] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)
    rank: int = 0
    updated_chapters: int = 0
    new_chapters: List[Chapter] = field(default_factory=list)
    completed: bool = False
    thumbnail: str = ""
    updated_at: Optional[dt.datetime] = None

    @staticmethod
    def _common_fields(data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": data.get("oid", ""),
            "name": data.get("name", ""),
            "authors": [Author.from_dict(a) for a in data.get("authors") or []],
            "author_ids": list(data.get("author_ids") or []),
            "genres": list(data.get("genres") or []),
            "rank": int(data.get("rank") or 0),
            "updated_chapters": int(data.get("updated_chapters") or 0),
            "new_chapters": [
                Chapter.from_dict(c) for c in data.get("new_chapters") or []
            ],
            # The API really spells it this way.
            "completed": bool(data.get("cmpleted", data.get("completed", False))),
            "thumbnail": data.get("thumbnail") or "",
            "updated_at": _parse_timestamp(data.get("updated_at")),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manga":
        return cls(**cls._common_fields(data))


@dataclass
class SingleManga(Manga):
    """Manga with the extra fields returned when requested on its own."""

    description: str = ""
    chapters: List[Chapter] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    cover: str = ""
    artworks: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SingleManga":
        return cls(
            **cls._common_fields(data),
            description=data.get("description") or "",
            chapters=[Chapter.from_dict(c) for c in data.get("chapters") or []],
            categories=[
                Category.from_dict(c) for c in data.get("rich_categories") or []
            ],
            cover=data.get("cover") or "",
            artworks=list(data.get("artworks") or []),
            aliases=list(data.get("alias") or []),
        )


@dataclass
class PageResult:
    """Outcome of downloading one page of a chapter."""

    index: int
    locator: str
    path: Path
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ConversionResult:
    """Outcome of converting one container file."""

    source: Path
    output: Optional[Path]
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
