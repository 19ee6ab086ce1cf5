"""Stand-ins for requests sessions used by the tests."""

from __future__ import annotations

import io
from typing import Callable, Dict, List, Optional, Union

import requests
from PIL import Image

from mangarock.mri import encode_mri


class FakeResponse:
    def __init__(
        self,
        content: bytes = b"",
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        json_data: object = None,
        fail_after: Optional[int] = None,
        chunk: int = 4,
    ) -> None:
        self.content = content
        self.status_code = status_code
        self.headers = dict(headers or {})
        self._json = json_data
        self._fail_after = fail_after
        self._chunk = chunk
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self) -> None:
        self.closed = True

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def iter_content(self, chunk_size: int = 1):
        sent = 0
        for start in range(0, len(self.content), self._chunk):
            if self._fail_after is not None and sent >= self._fail_after:
                raise requests.exceptions.ChunkedEncodingError("connection broken")
            piece = self.content[start : start + self._chunk]
            sent += len(piece)
            yield piece

    def json(self):
        if self._json is None:
            raise ValueError("no json")
        return self._json


Route = Union[FakeResponse, Exception]


class FakeSession:
    """Serves canned responses for GET by URL and records every call."""

    def __init__(
        self,
        routes: Optional[Dict[str, Route]] = None,
        handler: Optional[Callable[..., Route]] = None,
    ) -> None:
        self.routes = routes or {}
        self.handler = handler
        self.calls: List[tuple] = []
        self.closed = False

    def _respond(self, route: Route) -> FakeResponse:
        if isinstance(route, Exception):
            raise route
        return route

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append(("GET", url, kwargs))
        if url not in self.routes:
            return FakeResponse(status_code=404)
        return self._respond(self.routes[url])

    def request(self, method: str, url: str, **kwargs) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        assert self.handler is not None
        return self._respond(
            self.handler(method, url, kwargs.get("params") or {}, kwargs.get("json"))
        )

    def close(self) -> None:
        self.closed = True


def sample_image(width: int = 6, height: int = 4) -> Image.Image:
    image = Image.new("RGB", (width, height))
    for x in range(width):
        for y in range(height):
            image.putpixel((x, y), (x * 40 % 256, y * 60 % 256, (x + y) * 25 % 256))
    return image


def sample_mri(width: int = 6, height: int = 4) -> bytes:
    return encode_mri(sample_image(width, height))


def sample_png() -> bytes:
    buffer = io.BytesIO()
    sample_image().save(buffer, format="PNG")
    return buffer.getvalue()
