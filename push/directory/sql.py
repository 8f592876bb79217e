from __future__ import annotations

import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select

from push.database import create_session_factory
from push.directory.base import DirectoryError
from push.models import Profiles, PushTokens
from push.schemas.push import ActorProfile, DeviceEndpoint, DevicePlatform


def _parse_id(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except (TypeError, ValueError):
        return None


def endpoints_statement(recipient_id: uuid.UUID, platform: DevicePlatform):
    return select(PushTokens).where(
        PushTokens.user_id == recipient_id,
        PushTokens.platform == platform.value,
    )


def profile_statement(actor_id: uuid.UUID):
    return select(Profiles).where(Profiles.id == actor_id)


class SqlDirectory:
    """Reads ``push_tokens`` and ``profiles`` straight from Postgres.

    Both tables key users by ``uuid``; an id that is not a UUID cannot match
    any row.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = create_session_factory(engine)

    async def list_endpoints(
        self, recipient_id: str, platform: DevicePlatform
    ) -> list[DeviceEndpoint]:
        user_id = _parse_id(recipient_id)
        if user_id is None:
            return []
        try:
            async with self._session_factory() as session:
                result = await session.execute(endpoints_statement(user_id, platform))
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise DirectoryError(f"Lookup on push_tokens failed: {exc}") from exc
        return [DeviceEndpoint(token=row.token, platform=row.platform) for row in rows]

    async def get_actor_profile(self, actor_id: str) -> ActorProfile | None:
        profile_id = _parse_id(actor_id)
        if profile_id is None:
            return None
        try:
            async with self._session_factory() as session:
                result = await session.execute(profile_statement(profile_id))
                profile = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise DirectoryError(f"Lookup on profiles failed: {exc}") from exc
        if profile is None:
            return None
        return ActorProfile(display_name=profile.display_name, username=profile.username)

    async def close(self) -> None:
        await self._engine.dispose()
