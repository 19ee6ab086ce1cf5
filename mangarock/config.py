"""Configuration objects and constants for the MangaRock client."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from .models import FailurePolicy

API_URL = "https://api.mangarockhd.com/query/web401"
META_URL = "https://api.mangarockhd.com/meta"
DEFAULT_USER_AGENT = "mangarock-python/0.1"

CONTAINER_SUFFIX = ".mri"
OUTPUT_SUFFIX = ".png"


def _freeze(options: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(options))


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings shared by the metadata client and the page fetcher.

    ``options`` are extra query parameters sent with every API call, e.g.
    ``{"country": "Japan"}``.
    """

    api_url: str = API_URL
    meta_url: str = META_URL
    options: Mapping[str, str] = field(default_factory=dict)
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    chunk_size: int = 64 * 1024

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", _freeze(self.options))

    @property
    def headers(self) -> dict:
        return {"User-Agent": self.user_agent}


@dataclass(frozen=True)
class DownloadConfig:
    """Top-level settings that control chapter downloads and conversion."""

    output_root: Path
    convert: bool = False
    policy: FailurePolicy = FailurePolicy.ABORT
