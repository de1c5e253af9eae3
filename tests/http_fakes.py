"""Stand-ins for aiohttp sessions that replay scripted responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Self

import aiohttp
from yarl import URL


@dataclass
class FakeResponse:
    status: int = 200
    json_data: Any = None
    text_data: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    method: str = "GET"
    url: str = "http://test"

    @property
    def request_info(self) -> aiohttp.RequestInfo:
        url = URL(self.url)
        return aiohttp.RequestInfo(url=url, method=self.method, headers={}, real_url=url)

    async def json(self) -> Any:
        return self.json_data

    async def text(self) -> str:
        return self.text_data

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> bool:
        return False


class FakeSession:
    """Answers get/post calls in order from per-method queues and records them."""

    def __init__(
        self,
        *,
        get_responses: list[FakeResponse | Exception] | None = None,
        post_responses: list[FakeResponse | Exception] | None = None,
    ) -> None:
        self._queues: dict[str, list[FakeResponse | Exception]] = {
            "GET": list(get_responses or []),
            "POST": list(post_responses or []),
        }
        self.requests: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("GET", url, kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("POST", url, kwargs)

    def last_params(self) -> dict[str, Any]:
        return self.requests[-1][2].get("params") or {}

    def _respond(self, method: str, url: str, kwargs: dict[str, Any]) -> FakeResponse:
        self.requests.append((method, url, kwargs))
        queue = self._queues[method]
        if not queue:
            msg = f"No fake {method} response left for {url}"
            raise AssertionError(msg)
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response
