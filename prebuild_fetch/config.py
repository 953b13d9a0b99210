"""Configuration for prebuild-fetch using pydantic-settings.

Settings come from environment variables with the PREBUILD_ prefix. The
variables npm exports to install scripts (npm_package_version,
npm_package_config_prebuildUrl, npm_package_config_prebuildChecksum,
npm_package_json) and HTTPS_PROXY are honoured as fallbacks.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .digest import DEFAULT_CHUNK_SIZE
from .models import ArtifactSpec, CachePaths

logger = logging.getLogger(__name__)

VERSION_PLACEHOLDER = "${npm_package_version}"


class Settings(BaseSettings):
    """Install configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PREBUILD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    install_root: Path = Path(".")
    staging_name: str = "unverified-prebuild.tmp"
    archive_name: str = "prebuild.tar.gz"

    url_template: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "PREBUILD_URL_TEMPLATE", "npm_package_config_prebuildUrl"
        ),
    )
    checksum: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "PREBUILD_CHECKSUM", "npm_package_config_prebuildChecksum"
        ),
    )
    version: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("PREBUILD_VERSION", "npm_package_version"),
    )
    package_json: Optional[Path] = Field(
        None,
        validation_alias=AliasChoices("PREBUILD_PACKAGE_JSON", "npm_package_json"),
    )
    proxy: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("PREBUILD_PROXY", "HTTPS_PROXY"),
    )

    user_agent: str = "prebuild-fetch/0.1"
    timeout_seconds: float = 30.0
    max_redirects: int = 10
    chunk_size: int = DEFAULT_CHUNK_SIZE

    max_attempts: int = 1
    backoff_multiplier: float = 1.0
    backoff_min: float = 1.0
    backoff_max: float = 30.0

    extract: bool = True
    extract_dir: Optional[Path] = None

    @property
    def staging_path(self) -> Path:
        return self.install_root / self.staging_name

    @property
    def final_path(self) -> Path:
        return self.install_root / self.archive_name

    @property
    def extract_target(self) -> Path:
        return self.extract_dir if self.extract_dir is not None else self.install_root

    def ensure_dirs(self) -> None:
        """Create the install root if it doesn't exist."""
        self.install_root.mkdir(parents=True, exist_ok=True)
        logger.debug("Ensured directory: %s", self.install_root)


def get_settings() -> Settings:
    """Load settings from environment and ensure the install root exists."""
    s = Settings()
    s.ensure_dirs()
    return s


def _read_package_json(path: Path) -> Dict[str, Any]:
    """Read ``version`` and ``config`` from an npm package.json."""
    try:
        pkg = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cannot read package metadata from {path}: {exc}") from exc
    config = pkg.get("config") or {}
    return {
        "version": pkg.get("version"),
        "url_template": config.get("prebuildUrl"),
        "checksum": config.get("prebuildChecksum"),
    }


def render_url(template: str, version: Optional[str]) -> str:
    """Substitute the npm version placeholder in a URL template."""
    if VERSION_PLACEHOLDER not in template:
        return template
    if not version:
        raise ValueError(
            f"URL template contains {VERSION_PLACEHOLDER} but no version is configured"
        )
    return template.replace(VERSION_PLACEHOLDER, version)


def resolve_artifact(settings: Settings) -> ArtifactSpec:
    """Build the ArtifactSpec for this install.

    package.json values (when ``settings.package_json`` is set) are the base;
    explicitly configured settings override them.

    Raises:
        ValueError: If a checksum is configured without a usable URL.
    """
    values: Dict[str, Any] = {"version": None, "url_template": None, "checksum": None}
    if settings.package_json is not None:
        values.update(_read_package_json(settings.package_json))
        logger.debug("Loaded package metadata from %s", settings.package_json)

    for key in values:
        explicit = getattr(settings, key)
        # An explicit empty checksum turns verification off.
        if explicit or (key == "checksum" and explicit is not None):
            values[key] = explicit

    checksum = values["checksum"]
    template = values["url_template"]
    if not checksum:
        return ArtifactSpec(source_url=template or "", expected_digest_hex=None)
    if not template:
        raise ValueError("A prebuild checksum is configured but no prebuild URL")

    return ArtifactSpec(
        source_url=render_url(template, values["version"]),
        expected_digest_hex=checksum,
    )


def cache_paths(settings: Settings) -> CachePaths:
    return CachePaths(final_path=settings.final_path, staging_path=settings.staging_path)
