"""Auction server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class AuctionServerSettings(BaseSettings):
    model_config = {"env_prefix": "AUCTION_"}

    max_rooms: int = Field(default=100, ge=1)
    log_dir: str = Field(default="backend/logs/auction", min_length=1)
    cors_origins: list[str] = ["http://localhost:5173"]
    # missing or unreadable file falls back to the built-in sample pool
    player_pool_path: str | None = "backend/data/players.json"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
