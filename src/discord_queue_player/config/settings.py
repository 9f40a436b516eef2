"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import SearchLimit, SearchTimeout, VolumePercent

DEFAULT_FILTERS: dict[str, str] = {
    "3d": "apulsator=hz=0.125",
    "bassboost": "bass=g=10,dynaudnorm=f=150:g=15",
    "echo": "aecho=0.8:0.9:1000:0.3",
    "flanger": "flanger",
    "gate": "agate",
    "haas": "haas",
    "karaoke": "stereotools=mlev=0.1",
    "nightcore": "asetrate=48000*1.25,aresample=48000,bass=g=5",
    "reverse": "areverse",
    "vaporwave": "asetrate=48000*0.8,aresample=48000,atempo=1.1",
    "mcompand": "mcompand",
    "phaser": "aphaser",
    "tremolo": "tremolo",
    "surround": "surround",
    "earwax": "earwax",
}


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: str = Field(
        default="!",
        min_length=1,
        max_length=5,
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )


class PlayerSettings(BaseModel):
    """Playback policy threaded into the playback controller.

    - ``emit_new_song_only``: suppress ``playSong`` when the next song is the
      same one again (single-song repeat, or a duplicate up next).
    - ``save_previous_songs``: keep full songs in history instead of ids only.
      Stepping back to a previous song needs this.
    - ``leave_on_finish`` / ``leave_on_stop``: leave the voice channel when the
      queue runs out / is stopped.
    - ``filter_age_restricted``: drop age-restricted songs unless the target
      channel is marked NSFW.
    - ``search_songs``: number of search results offered; above 1 the
      requester picks one by replying within ``search_cooldown`` seconds.
    """

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    emit_new_song_only: bool = False
    save_previous_songs: bool = True
    leave_on_finish: bool = False
    leave_on_stop: bool = True
    filter_age_restricted: bool = Field(
        default=True, validation_alias=AliasChoices("filter_age_restricted", "age_filter")
    )
    search_songs: SearchLimit = 1
    search_cooldown: SearchTimeout = 60.0
    default_volume: VolumePercent = 50


class AudioSettings(BaseModel):
    """Audio resolution and stream configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    ytdlp_format: str = "bestaudio/best"
    ffmpeg_before_options: str = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    ffmpeg_options: str = "-vn"
    ffmpeg_executable: str = "ffmpeg"
    youtube_cookie: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("youtube_cookie", "cookie"),
    )
    cookie_file: str | None = None
    filters: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_FILTERS))


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__COMMAND_PREFIX (nested with ``__``)
    - PLAYER__SEARCH_SONGS, PLAYER__LEAVE_ON_FINISH, ...
    - AUDIO__YTDLP_FORMAT, AUDIO__FILTERS (JSON object), ...
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        strict=True,
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    player: PlayerSettings = Field(default_factory=PlayerSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
