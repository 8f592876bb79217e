import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import Column
from sqlmodel import Field, SQLModel


class PushTokens(SQLModel, table=True):
    __tablename__ = "push_tokens"

    id: Optional[uuid.UUID] = Field(
        default=None, sa_column=Column(sa.Uuid(), primary_key=True)
    )
    user_id: uuid.UUID = Field(sa_column=Column(sa.Uuid(), index=True, nullable=False))
    token: str = Field(index=True, nullable=False)
    platform: str = Field(default="ios", nullable=False)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Profiles(SQLModel, table=True):
    __tablename__ = "profiles"

    id: uuid.UUID = Field(sa_column=Column(sa.Uuid(), primary_key=True))
    username: str = Field(nullable=False)
    display_name: Optional[str] = None
