"""Shared test fixtures."""

from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from cacaw_search.settings import CREDENTIAL_ENV_VARS


@dataclass
class RecordedCall:
    url: str
    params: dict[str, Any]
    headers: dict[str, str]


@dataclass
class FakeHttp:
    """Stand-in for ``httpx.AsyncClient.get``.

    Every call is recorded; the reply is built from ``status``, ``payload``
    and ``headers``, or ``error`` is raised instead.
    """

    status: int = 200
    payload: Any = None
    content: bytes | None = None
    headers: dict[str, str] = field(default_factory=dict)
    error: Exception | None = None
    calls: list[RecordedCall] = field(default_factory=list)

    async def get(self, client: httpx.AsyncClient, url: str, **kwargs: Any) -> httpx.Response:
        self.calls.append(
            RecordedCall(
                url=str(url),
                params=dict(kwargs.get("params") or {}),
                headers=dict(kwargs.get("headers") or {}),
            )
        )
        if self.error is not None:
            raise self.error
        request = httpx.Request("GET", url)
        if self.content is not None:
            return httpx.Response(
                self.status, content=self.content, headers=self.headers, request=request
            )
        return httpx.Response(
            self.status, json=self.payload, headers=self.headers, request=request
        )

    @property
    def last(self) -> RecordedCall:
        return self.calls[-1]


@pytest.fixture
def fake_http(monkeypatch: pytest.MonkeyPatch) -> FakeHttp:
    """Patch httpx so no request leaves the process."""
    fake = FakeHttp()

    async def fake_get(self: httpx.AsyncClient, url: str, **kwargs: Any) -> httpx.Response:
        return await fake.get(self, url, **kwargs)

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get)
    return fake


@pytest.fixture(autouse=True)
def _no_credentials_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for env_var in CREDENTIAL_ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)
