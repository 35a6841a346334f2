from __future__ import annotations

from typing import Any, Dict, List, Optional

import aiohttp
import pytest

from tripguide.services.cache import TTLCache
from tripguide.services.storage import MemoryKeyValueStore


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, content_type: str = "application/json"):
        self.status = status
        self._payload = payload
        self.headers = {"Content-Type": content_type}

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientResponseError(None, (), status=self.status)

    async def json(self, content_type: Optional[str] = "application/json"):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Stands in for aiohttp.ClientSession; replies are queued per URL.

    A reply is a FakeResponse or an exception instance to raise.
    """

    def __init__(self, replies: Optional[Dict[str, List[Any]]] = None):
        self.replies = {url: list(items) for url, items in (replies or {}).items()}
        self.calls: List[Dict[str, Any]] = []

    def _next(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        queue = self.replies.get(url)
        if not queue:
            raise AssertionError(f"unexpected {method} {url}")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        return reply

    def post(self, url: str, **kwargs):
        return self._next("POST", url, **kwargs)

    def get(self, url: str, **kwargs):
        return self._next("GET", url, **kwargs)

    def urls(self) -> List[str]:
        return [c["url"] for c in self.calls]


def element(el_id: int, name: Optional[str] = None, el_type: str = "node", **tags: str) -> Dict[str, Any]:
    data: Dict[str, Any] = {"id": el_id, "type": el_type}
    if el_type == "node":
        data.update({"lat": 55.6761, "lon": 12.5683})
    else:
        data["center"] = {"lat": 55.677, "lon": 12.57}
    if name is not None:
        tags = {"name": name, **tags}
    if tags:
        data["tags"] = tags
    return data


def overpass_json(*elements: Dict[str, Any]) -> FakeResponse:
    return FakeResponse(payload={"elements": list(elements)})


def named(count: int, start: int = 1) -> List[Dict[str, Any]]:
    return [element(i, f"Place {i}", tourism="attraction") for i in range(start, start + count)]


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(MemoryKeyValueStore(), ttl_s=24 * 60 * 60, clock=clock)


