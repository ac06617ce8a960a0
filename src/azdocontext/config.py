"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (AZDOCONTEXT__AZURE__ORGANIZATION_URL=https://dev.azure.com/org)
  2. azdocontext.yaml       (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. Only the organization URL and personal access
token have no usable default; ``Settings.require_credentials`` checks them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from azdocontext.errors import AzdoContextError, ErrorCode


def _find_config_file() -> str | None:
    """Return the path of the first azdocontext.yaml found, or None."""
    candidates = [
        Path("azdocontext.yaml"),
        Path(platformdirs.user_config_dir("azdocontext")) / "azdocontext.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class AzureSettings(BaseModel):
    organization_url: str = ""
    personal_access_token: SecretStr = SecretStr("")
    default_project: str | None = None
    http_timeout_seconds: float = Field(default=120.0, ge=1.0)
    api_version: str = "7.1"


class CacheSettings(BaseModel):
    ttl_seconds: float = Field(default=300.0, ge=1.0)


class RetrySettings(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    base_delay_seconds: float = Field(default=1.0, ge=0.0)
    # Each domain service gets its own ceiling
    wiki_max_delay_seconds: float = Field(default=5.0, ge=0.0)
    test_plan_max_delay_seconds: float = Field(default=10.0, ge=0.0)
    work_item_max_delay_seconds: float = Field(default=10.0, ge=0.0)
    projects_max_delay_seconds: float = Field(default=10.0, ge=0.0)


class SearchSettings(BaseModel):
    batch_size: int = Field(default=5, ge=1)
    batch_delay_seconds: float = Field(default=0.1, ge=0.0)
    max_content_length: int = Field(default=2000, ge=100)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: AZDOCONTEXT__CACHE__TTL_SECONDS=60
        env_prefix="AZDOCONTEXT__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    azure: AzureSettings = AzureSettings()
    cache: CacheSettings = CacheSettings()
    retry: RetrySettings = RetrySettings()
    search: SearchSettings = SearchSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )

    def require_credentials(self) -> None:
        """Raise if the organization URL or access token is missing."""
        missing = []
        if not self.azure.organization_url:
            missing.append("AZDOCONTEXT__AZURE__ORGANIZATION_URL")
        if not self.azure.personal_access_token.get_secret_value():
            missing.append("AZDOCONTEXT__AZURE__PERSONAL_ACCESS_TOKEN")
        if missing:
            raise AzdoContextError(
                code=ErrorCode.INVALID_CONFIG,
                message=f"Missing required settings: {', '.join(missing)}",
                suggestion="Set the environment variables or add them to azdocontext.yaml.",
                recoverable=False,
            )
