"""
Application configuration using Pydantic Settings.

Configuration values can be set via environment variables (prefixed with
``FRONTDOOR_``, nested fields separated by ``__``) or a .env file.
They are read once at startup.
"""

from typing import Literal, Optional

from jinja2 import Environment, TemplateSyntaxError
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from frontdoor.core.logging_config import LOG_LEVELS

DEFAULT_ACCESS_LOG_TEMPLATE = (
    '{{ ctx.remote_addr }} - {{ identity }} '
    '[{{ start.strftime("%d/%b/%Y:%H:%M:%S %z") }}] '
    '"{{ ctx.method }} {{ ctx.uri }} {{ ctx.proto }}" '
    '{{ response.status }} {{ response.size|default("-", true) }} '
    '"{{ ctx.referer }}" "{{ ctx.user_agent }}"'
)


class StorageSettings(BaseModel):
    """Settings for one object store."""

    type: Literal["local", "s3"] = "local"

    # Local storage root directory
    path: str = ""

    # S3 compatible storage
    bucket: str = ""
    base_path: str = ""
    endpoint_url: Optional[str] = None
    region: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None

    # Redirect clients to a signed URL instead of proxying the bytes
    serve_direct: bool = False
    url_expiry: int = Field(default=300, gt=0)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FRONTDOOR_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "frontdoor"
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    json_logging: bool = True
    log_file: Optional[str] = None

    # Router log
    disable_router_log: bool = False
    router_log_level: str = "INFO"

    # Access log
    enable_access_log: bool = False
    access_log_template: str = DEFAULT_ACCESS_LOG_TEMPLATE

    # Static assets
    static_root_path: str = "."
    custom_path: str = "custom"
    static_cache_max_age: int = 6 * 60 * 60
    enable_robots_txt: bool = True

    # Whether 500 responses carry the fault and its traceback
    expose_panic_details: bool = True

    # Object storage
    avatar_storage: StorageSettings = Field(
        default_factory=lambda: StorageSettings(path="data/avatars")
    )
    repo_avatar_storage: StorageSettings = Field(
        default_factory=lambda: StorageSettings(path="data/repo-avatars")
    )

    # Import string ("module:attribute") of the application behind the fast router
    legacy_app: Optional[str] = None

    @field_validator("log_level", "router_log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize level names and reject unknown ones"""
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("access_log_template")
    @classmethod
    def validate_access_log_template(cls, value: str) -> str:
        """Reject access log templates that do not parse"""
        try:
            Environment().parse(value)
        except TemplateSyntaxError as e:
            raise ValueError(f"Invalid access log template: {e}") from e
        return value


# Global settings instance
settings = Settings()
