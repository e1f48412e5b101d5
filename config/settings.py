"""Configuration management using pydantic-settings."""
from pathlib import Path
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


def sanitize_cache_dir(value) -> Path:
    """Rewrite parent-directory hops ("../") to "./"."""
    return Path(str(value).replace("../", "./"))


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Cache settings
    cache_enabled: bool = True
    cache_directory: Path = Path("./cache")
    # Owning user/group applied to a freshly created cache directory
    cache_owner: Optional[str] = None

    # TTL per cache namespace (seconds)
    server_info_ttl_seconds: int = 600
    # 0 = always refetch, result is still written to the cache
    player_info_ttl_seconds: int = 0

    # Upstream
    user_agent: str = ""
    snapshot_base_url: str = "https://keeper.battlelog.com"

    # "requests" = pooled session, "httpx" = streamed read
    http_transport: Literal["requests", "httpx"] = "requests"
    connect_timeout_seconds: float = 5.0
    request_timeout_seconds: float = 5.0

    @field_validator("cache_directory", mode="before")
    @classmethod
    def _sanitize_cache_directory(cls, value):
        return sanitize_cache_dir(value)

    @field_validator("user_agent")
    @classmethod
    def _ignore_short_user_agent(cls, value: str) -> str:
        # Single characters are treated as unset
        return value if len(value) > 1 else ""

    class Config:
        env_prefix = "battlelog_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()


def get_settings() -> Settings:
    """Settings provider, overridable as a FastAPI dependency."""
    return settings
