from functools import lru_cache
from typing import Literal

from pydantic import AnyUrl, field_validator
from pydantic_settings import BaseSettings


class PushSettings(BaseSettings):
    app_env: str = "development"
    app_name: str = "ThisDay"
    log_level: str = "INFO"

    apns_key_id: str
    apns_team_id: str
    apns_private_key: str
    apns_bundle_id: str = "com.thisday.app"
    apns_environment: str = "development"
    apns_timeout_seconds: float = 10.0
    # Apple rejects provider tokens older than one hour.
    apns_token_ttl_seconds: int = 0

    push_platform: str = "ios"
    push_internal_token: str | None = None

    directory_backend: Literal["rest", "sql"] = "rest"
    supabase_url: AnyUrl | None = None
    supabase_service_role_key: str | None = None
    database_url: AnyUrl | None = None
    directory_timeout_seconds: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @field_validator("apns_private_key")
    @classmethod
    def _normalize_private_key(cls, value: str) -> str:
        return value.replace("\\n", "\n").strip()

    @field_validator("apns_token_ttl_seconds")
    @classmethod
    def _check_token_ttl(cls, value: int) -> int:
        if value < 0 or value > 3000:
            raise ValueError("apns_token_ttl_seconds must be between 0 and 3000")
        return value

    @property
    def apns_host(self) -> str:
        if self.apns_environment == "production":
            return "api.push.apple.com"
        return "api.sandbox.push.apple.com"


@lru_cache
def get_settings() -> PushSettings:
    return PushSettings()
