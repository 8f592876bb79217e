from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

# APNs reasons that mean the device token will never be valid again.
STALE_TOKEN_REASONS = frozenset({"Unregistered", "BadDeviceToken", "ExpiredToken"})


class DevicePlatform(str, Enum):
    IOS = "ios"


class DeviceEndpoint(BaseModel):
    token: str
    platform: DevicePlatform = DevicePlatform.IOS


class ActorProfile(BaseModel):
    display_name: Optional[str] = None
    username: str

    @property
    def name(self) -> str:
        if self.display_name and self.display_name.strip():
            return self.display_name
        return self.username


class NotificationContent(BaseModel):
    title: str
    body: str


class PushMessage(BaseModel):
    title: str
    body: str
    type: str
    post_id: Optional[str] = None
    actor_id: Optional[str] = None

    def to_apns_payload(self) -> dict[str, Any]:
        return {
            "aps": {
                "alert": {"title": self.title, "body": self.body},
                "sound": "default",
                "badge": 1,
            },
            "type": self.type,
            "post_id": self.post_id,
            "actor_id": self.actor_id,
        }


class DeliveryOutcome(BaseModel):
    endpoint_token: str
    succeeded: bool
    error_detail: Optional[str] = None
    status_code: Optional[int] = None
    reason: Optional[str] = None


class DeliverySummary(BaseModel):
    outcomes: list[DeliveryOutcome] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def errors(self) -> list[str]:
        return [
            outcome.error_detail or "Unknown error"
            for outcome in self.outcomes
            if not outcome.succeeded
        ]

    @property
    def unregistered_tokens(self) -> list[str]:
        return [
            outcome.endpoint_token
            for outcome in self.outcomes
            if outcome.reason in STALE_TOKEN_REASONS
        ]
