from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from push.apns_client import APNsError
from push.schemas.push import DeliveryOutcome, DeliverySummary, DeviceEndpoint, PushMessage

logger = logging.getLogger(__name__)


class PushSender(Protocol):
    async def send(self, device_token: str, credential: str, payload: dict) -> None: ...

    async def close(self) -> None: ...


class DeliveryDispatcher:
    """Fan one message out to many device endpoints.

    Every delivery is awaited; a failing endpoint is recorded in its outcome
    and never cancels its siblings.
    """

    def __init__(self, sender: PushSender) -> None:
        self._sender = sender

    async def _deliver(
        self, endpoint: DeviceEndpoint, credential: str, payload: dict
    ) -> DeliveryOutcome:
        try:
            await self._sender.send(endpoint.token, credential, payload)
        except APNsError as exc:
            logger.warning(
                "push.delivery_failed",
                extra={"status_code": exc.status_code, "reason": exc.reason},
            )
            return DeliveryOutcome(
                endpoint_token=endpoint.token,
                succeeded=False,
                error_detail=str(exc),
                status_code=exc.status_code,
                reason=exc.reason,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("push.delivery_failed", extra={"error": repr(exc)})
            return DeliveryOutcome(
                endpoint_token=endpoint.token,
                succeeded=False,
                error_detail=str(exc) or exc.__class__.__name__,
            )
        return DeliveryOutcome(endpoint_token=endpoint.token, succeeded=True)

    async def dispatch(
        self,
        credential: str,
        message: PushMessage,
        endpoints: list[DeviceEndpoint],
    ) -> DeliverySummary:
        payload = message.to_apns_payload()
        outcomes = await asyncio.gather(
            *(self._deliver(endpoint, credential, payload) for endpoint in endpoints)
        )
        return DeliverySummary(outcomes=list(outcomes))

    async def close(self) -> None:
        await self._sender.close()
