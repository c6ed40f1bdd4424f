"""Site configuration.

Settings come from ``.scriptorium.toml`` in the site root, overridden by
``SCRIPTORIUM_SECTION__KEY`` environment variables. The ``publication``
section carries the preset name and post type overrides that
``scriptorium.bootstrap`` resolves into a :class:`~scriptorium.core.context.Publication`.
"""

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from scriptorium.core.exceptions import ConfigurationError
from scriptorium.core.types import SyndicationTarget

CONFIG_FILENAME = ".scriptorium.toml"


def deep_merge(destination: dict[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    """Merge source into destination, with source values overwriting."""
    for key, value in source.items():
        if isinstance(value, Mapping) and key in destination and isinstance(destination[key], Mapping):
            destination[key] = deep_merge(dict(destination[key]), value)
        else:
            destination[key] = value
    return destination


class ApplicationSettings(BaseModel):
    """Application-wide settings."""

    time_zone: str = Field(default="UTC", description="IANA time zone, 'UTC' or 'server'")
    log_level: str = Field(default="INFO", description="Root logging level")


class PathsSettings(BaseModel):
    """Path configuration.

    All paths are relative to the 'site_root' unless absolute.
    site_root defaults to current working directory.
    """

    site_root: Path = Field(
        default_factory=Path.cwd,
        description="Root directory of the site (defaults to current working directory)",
    )
    content_dir: Path = Field(default=Path("."), description="Directory the file store writes into")
    db_path: Path | None = Field(
        default=Path(".scriptorium/index.duckdb"),
        description="DuckDB index file; unset to run without an index",
    )

    @property
    def abs_content_dir(self) -> Path:
        return self._resolve(self.content_dir)

    @property
    def abs_db_path(self) -> Path | None:
        if self.db_path is None:
            return None
        return self._resolve(self.db_path)

    def _resolve(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return self.site_root / path


class PublicationSettings(BaseModel):
    """Publication configuration.

    ``post_types`` holds overrides keyed by ``type``; entries may be partial
    and are merged over the preset's post types.
    """

    me: str = Field(default="http://localhost", description="Publication URL")
    preset: str = Field(default="jekyll", description="Preset name")
    slug_separator: str = Field(default="-", description="Separator used when generating slugs")
    syndication_targets: list[SyndicationTarget] = Field(default_factory=list)
    post_types: list[dict[str, Any]] = Field(default_factory=list)


class ScriptoriumConfig(BaseSettings):
    """Root configuration for Scriptorium.

    Supports environment variable overrides with the pattern:
    SCRIPTORIUM_SECTION__KEY (e.g., SCRIPTORIUM_APPLICATION__TIME_ZONE)
    """

    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    paths: PathsSettings = Field(default_factory=PathsSettings)
    publication: PublicationSettings = Field(default_factory=PublicationSettings)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="SCRIPTORIUM_",
        env_nested_delimiter="__",
    )

    @classmethod
    def load(cls, site_root: Path | None = None) -> "ScriptoriumConfig":
        """Loads configuration from .scriptorium.toml and environment variables.

        Priority (highest to lowest):
        1. Environment variables (SCRIPTORIUM_SECTION__KEY)
        2. Config file (.scriptorium.toml)
        3. Defaults
        """
        root_path = site_root if site_root is not None else Path.cwd()
        config_file = root_path / CONFIG_FILENAME

        file_settings: dict[str, Any] = {}
        if config_file.is_file():
            try:
                with config_file.open("rb") as f:
                    file_settings = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                msg = f"{config_file}: {exc}"
                raise ConfigurationError(msg) from exc

        env_settings = cls().model_dump(exclude_unset=True)
        merged_config = deep_merge(file_settings, env_settings)
        merged_config.setdefault("paths", {})["site_root"] = root_path

        try:
            return cls.model_validate(merged_config)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc
