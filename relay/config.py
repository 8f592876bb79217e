from functools import lru_cache

from pydantic import AnyUrl
from pydantic_settings import BaseSettings


class RelaySettings(BaseSettings):
    push_function_url: AnyUrl
    push_internal_token: str | None = None
    relay_timeout_seconds: float = 5.0

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> RelaySettings:
    return RelaySettings()
