from __future__ import annotations

import json
from typing import Any

import httpx


class APNsError(Exception):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"APNs error: {status_code} - {body}")
        self.status_code = status_code
        self.body = body
        self.reason = _parse_reason(body)


def _parse_reason(body: str) -> str | None:
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("reason"):
        return str(data["reason"])
    return None


class APNsClient:
    """HTTP/2 client for the APNs provider API."""

    def __init__(self, *, host: str, bundle_id: str, timeout: float = 10.0) -> None:
        self._bundle_id = bundle_id
        self._client = httpx.AsyncClient(
            base_url=f"https://{host}", timeout=timeout, http2=True
        )

    def _headers(self, credential: str) -> dict[str, str]:
        return {
            "authorization": f"bearer {credential}",
            "apns-topic": self._bundle_id,
            "apns-push-type": "alert",
            "apns-priority": "10",
        }

    @property
    def timeout(self) -> httpx.Timeout:
        return self._client.timeout

    async def send(self, device_token: str, credential: str, payload: dict[str, Any]) -> None:
        response = await self._client.post(
            f"/3/device/{device_token}",
            json=payload,
            headers=self._headers(credential),
        )
        if not response.is_success:
            raise APNsError(response.status_code, response.text)

    async def close(self) -> None:
        await self._client.aclose()
