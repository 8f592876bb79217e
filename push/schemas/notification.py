from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationKind(str, Enum):
    LIKE = "like"
    FOLLOW = "follow"
    COMMENT = "comment"


class NotificationEvent(BaseModel):
    """Row inserted into ``notifications``, as sent by the database trigger."""

    model_config = ConfigDict(frozen=True)

    recipient_id: str
    actor_id: str
    type: str = Field(description="like, follow or comment; other values are still accepted")
    post_id: Optional[str] = None
    comment_id: Optional[str] = None
