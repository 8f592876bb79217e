from __future__ import annotations

from typing import Protocol

from push.schemas.push import ActorProfile, DeviceEndpoint, DevicePlatform


class DirectoryError(Exception):
    """Lookup against the directory service failed."""


class ActorNotFoundError(Exception):
    def __init__(self, actor_id: str) -> None:
        super().__init__("Actor not found")
        self.actor_id = actor_id


class Directory(Protocol):
    async def list_endpoints(
        self, recipient_id: str, platform: DevicePlatform
    ) -> list[DeviceEndpoint]: ...

    async def get_actor_profile(self, actor_id: str) -> ActorProfile | None: ...

    async def close(self) -> None: ...
