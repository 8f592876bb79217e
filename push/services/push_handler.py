"""Entry point that turns one notification row into a batch of APNs pushes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from push.apns_client import APNsClient
from push.config import PushSettings
from push.database import create_engine
from push.directory.base import ActorNotFoundError, Directory, DirectoryError
from push.directory.rest import RestDirectory
from push.directory.sql import SqlDirectory
from push.schemas.notification import NotificationEvent
from push.schemas.push import DevicePlatform, PushMessage
from push.services.composer import compose_notification
from push.services.dispatcher import DeliveryDispatcher
from push.services.resolver import RecipientResolver
from push.token_signer import APNsTokenSigner

logger = logging.getLogger(__name__)


class CredentialSigner(Protocol):
    async def get_token(self) -> str: ...


@dataclass(slots=True)
class HandlerResponse:
    status_code: int
    body: dict[str, Any]


class PushNotificationHandler:
    def __init__(
        self,
        *,
        resolver: RecipientResolver,
        signer: CredentialSigner,
        dispatcher: DeliveryDispatcher,
        app_name: str = "ThisDay",
    ) -> None:
        self._resolver = resolver
        self._signer = signer
        self._dispatcher = dispatcher
        self._app_name = app_name

    async def handle(self, raw: bytes | str | dict[str, Any]) -> HandlerResponse:
        """Process a trigger payload; never raises.

        The database trigger that calls us must not fail or retry its insert
        because of push problems, so every error becomes a response.
        """

        try:
            if isinstance(raw, dict):
                event = NotificationEvent.model_validate(raw)
            else:
                event = NotificationEvent.model_validate_json(raw)
            return await self.process(event)
        except Exception as exc:  # noqa: BLE001
            logger.exception("push.handler_failed")
            return HandlerResponse(500, {"error": str(exc) or exc.__class__.__name__})

    async def process(self, event: NotificationEvent) -> HandlerResponse:
        endpoints = await self._resolver.list_endpoints(event.recipient_id)
        if not endpoints:
            logger.info("push.no_endpoints", extra={"recipient_id": event.recipient_id})
            return HandlerResponse(200, {"message": "No device tokens found"})

        try:
            actor = await self._resolver.get_actor_profile(event.actor_id)
        except ActorNotFoundError as exc:
            logger.warning("push.actor_missing", extra={"actor_id": exc.actor_id})
            return HandlerResponse(400, {"error": str(exc)})
        except DirectoryError as exc:
            logger.warning(
                "push.actor_missing",
                extra={"actor_id": event.actor_id, "error": str(exc)},
            )
            return HandlerResponse(400, {"error": "Actor not found"})

        content = compose_notification(event.type, actor, app_name=self._app_name)
        credential = await self._signer.get_token()
        message = PushMessage(
            title=content.title,
            body=content.body,
            type=event.type,
            post_id=event.post_id,
            actor_id=event.actor_id,
        )
        summary = await self._dispatcher.dispatch(credential, message, endpoints)

        logger.info(
            "push.batch_sent",
            extra={
                "recipient_id": event.recipient_id,
                "type": event.type,
                "succeeded": summary.succeeded,
                "total": summary.total,
            },
        )
        if summary.unregistered_tokens:
            # Not pruned here: the service only reads the directory.
            logger.info(
                "push.tokens_unregistered",
                extra={
                    "recipient_id": event.recipient_id,
                    "count": len(summary.unregistered_tokens),
                },
            )

        body: dict[str, Any] = {
            "message": f"Sent {summary.succeeded}/{summary.total} push notifications"
        }
        if summary.errors:
            body["errors"] = summary.errors
        return HandlerResponse(200, body)

    async def close(self) -> None:
        await self._resolver.close()
        await self._dispatcher.close()


def build_directory(settings: PushSettings) -> Directory:
    if settings.directory_backend == "sql":
        if not settings.database_url:
            raise ValueError("DATABASE_URL is required for the sql directory backend")
        return SqlDirectory(create_engine(str(settings.database_url)))
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for the rest directory backend"
        )
    return RestDirectory(
        base_url=str(settings.supabase_url),
        service_key=settings.supabase_service_role_key,
        timeout=settings.directory_timeout_seconds,
    )


def build_apns_client(settings: PushSettings) -> APNsClient:
    return APNsClient(
        host=settings.apns_host,
        bundle_id=settings.apns_bundle_id,
        timeout=settings.apns_timeout_seconds,
    )


def build_push_handler(settings: PushSettings) -> PushNotificationHandler:
    resolver = RecipientResolver(
        build_directory(settings), platform=DevicePlatform(settings.push_platform)
    )
    signer = APNsTokenSigner(
        key_id=settings.apns_key_id,
        team_id=settings.apns_team_id,
        private_key=settings.apns_private_key,
        ttl_seconds=settings.apns_token_ttl_seconds,
    )
    dispatcher = DeliveryDispatcher(build_apns_client(settings))
    return PushNotificationHandler(
        resolver=resolver,
        signer=signer,
        dispatcher=dispatcher,
        app_name=settings.app_name,
    )
