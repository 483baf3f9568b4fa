"""
Configuration for the skybox client.

Settings are read from environment variables prefixed with SKYBOX_ and
from an optional .env file (in the working directory, then in the per-user
config directory). A SkyboxSettings instance is passed explicitly into the
discovery, correlation and paging entry points rather than read from
module globals.

Example usage:
    from skybox.config import SkyboxSettings

    settings = SkyboxSettings(discovery_timeout_seconds=3.0)
    print(settings.browse_identity)
"""

import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .urn import SKY_BROWSE, SKY_PLAY, ServiceIdentity

APP_NAME = "skybox"


def get_user_config_dir() -> Path:
    """Return the per-user configuration directory for skybox."""
    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".config" / APP_NAME


class SkyboxSettings(BaseSettings):
    """Tunables for discovery, HTTP and content listing."""

    model_config = SettingsConfigDict(
        env_prefix="SKYBOX_",
        extra="ignore",
        case_sensitive=False,
        env_file=(".env", str(get_user_config_dir() / ".env")),
        env_file_encoding="utf-8",
    )

    discovery_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How long to wait for SSDP responses.",
    )
    discovery_max_responses: int = Field(
        default=2,
        ge=1,
        description="Stop listening once this many distinct responses have arrived.",
    )
    discovery_mx: int = Field(
        default=2,
        ge=1,
        le=5,
        description="MX (maximum response delay) advertised in M-SEARCH requests.",
    )
    page_size: int = Field(
        default=25,
        ge=1,
        description="RequestedCount for each Browse call.",
    )
    user_agent: str = Field(
        default="SKY_skyplus",
        min_length=1,
        description="User-Agent the box expects on every HTTP request.",
    )
    http_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Per-request HTTP timeout; None waits indefinitely.",
    )
    play_service: str = Field(
        default=str(SKY_PLAY),
        description="URN of the playback service.",
    )
    browse_service: str = Field(
        default=str(SKY_BROWSE),
        description="URN of the content browsing service.",
    )
    preferences_path: Optional[Path] = Field(
        default=None,
        description="Where the selected device is stored (default: user config dir).",
    )

    @field_validator("play_service", "browse_service")
    @classmethod
    def _check_service_urn(cls, value: str) -> str:
        return str(ServiceIdentity.parse(value))

    @property
    def play_identity(self) -> ServiceIdentity:
        return ServiceIdentity.parse(self.play_service)

    @property
    def browse_identity(self) -> ServiceIdentity:
        return ServiceIdentity.parse(self.browse_service)

    @property
    def device_file(self) -> Path:
        return self.preferences_path or get_user_config_dir() / "device.json"
