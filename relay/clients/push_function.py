from __future__ import annotations

from typing import Any

import httpx

from relay.config import RelaySettings


class PushFunctionClient:
    def __init__(
        self, url: str, *, internal_token: str | None = None, timeout: float = 5.0
    ) -> None:
        self._url = url
        self._internal_token = internal_token
        self._client = httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: RelaySettings) -> "PushFunctionClient":
        return cls(
            str(settings.push_function_url),
            internal_token=settings.push_internal_token,
            timeout=settings.relay_timeout_seconds,
        )

    def _headers(self) -> dict[str, str]:
        if self._internal_token:
            return {"X-Internal-Token": self._internal_token}
        return {}

    @property
    def timeout(self) -> httpx.Timeout:
        return self._client.timeout

    async def post(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.post(self._url, json=payload, headers=self._headers())
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        await self._client.aclose()
