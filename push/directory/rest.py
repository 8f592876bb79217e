from __future__ import annotations

from typing import Any

import httpx

from push.directory.base import DirectoryError
from push.schemas.push import ActorProfile, DeviceEndpoint, DevicePlatform


class RestDirectory:
    """Reads ``push_tokens`` and ``profiles`` through PostgREST."""

    def __init__(self, *, base_url: str, service_key: str, timeout: float = 10.0) -> None:
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            timeout=timeout,
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Accept": "application/json",
            },
        )

    async def _fetch(self, table: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        try:
            response = await self._client.get(f"/{table}", params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise DirectoryError(f"Lookup on {table} failed: {exc}") from exc
        if not isinstance(data, list):
            raise DirectoryError(f"Unexpected response from {table}")
        return data

    async def list_endpoints(
        self, recipient_id: str, platform: DevicePlatform
    ) -> list[DeviceEndpoint]:
        rows = await self._fetch(
            "push_tokens",
            {
                "select": "token,platform",
                "user_id": f"eq.{recipient_id}",
                "platform": f"eq.{platform.value}",
            },
        )
        return [
            DeviceEndpoint(token=row["token"], platform=row.get("platform") or platform)
            for row in rows
            if row.get("token")
        ]

    async def get_actor_profile(self, actor_id: str) -> ActorProfile | None:
        rows = await self._fetch(
            "profiles",
            {"select": "display_name,username", "id": f"eq.{actor_id}", "limit": 1},
        )
        if not rows:
            return None
        return ActorProfile.model_validate(rows[0])

    async def close(self) -> None:
        await self._client.aclose()
