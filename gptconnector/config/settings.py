"""Runtime settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GPTCONNECTOR_", extra="ignore")

    log_level: str = "info"
    # empty string keeps logging on stderr only
    log_file: str = ""

    upstream_base_url: str = "https://api.openai.com/v1"
    upstream_timeout_seconds: float = 120.0
    upstream_max_connections: int = 20
    upstream_max_keepalive_connections: int = 5
    upload_purpose: str = "user_data"

    debug_excerpt_max_len: int = Field(default=2000, ge=80)


settings = Settings()
