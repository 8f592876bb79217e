from __future__ import annotations

from push.directory.base import ActorNotFoundError, Directory
from push.schemas.push import ActorProfile, DeviceEndpoint, DevicePlatform


class RecipientResolver:
    def __init__(
        self, directory: Directory, *, platform: DevicePlatform = DevicePlatform.IOS
    ) -> None:
        self._directory = directory
        self._platform = platform

    async def list_endpoints(self, recipient_id: str) -> list[DeviceEndpoint]:
        return await self._directory.list_endpoints(recipient_id, self._platform)

    async def get_actor_profile(self, actor_id: str) -> ActorProfile:
        profile = await self._directory.get_actor_profile(actor_id)
        if profile is None:
            raise ActorNotFoundError(actor_id)
        return profile

    async def close(self) -> None:
        await self._directory.close()
