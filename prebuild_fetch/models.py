"""Pydantic models shared across the pipeline."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .digest import DIGEST_HEX_LENGTH

_HEX_RE = re.compile(rf"^[0-9a-f]{{{DIGEST_HEX_LENGTH}}}$")


class CacheStatus(str, Enum):
    """How ``ensure_artifact`` satisfied the request."""

    SKIPPED = "skipped"
    UP_TO_DATE = "up_to_date"
    DOWNLOADED = "downloaded"


class ArtifactSpec(BaseModel):
    """The (url, expected digest) pair handled by one invocation."""

    model_config = ConfigDict(frozen=True)

    source_url: str = ""
    expected_digest_hex: Optional[str] = None

    @field_validator("expected_digest_hex", mode="before")
    @classmethod
    def _normalize_digest(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip().lower()
        if not value:
            return None
        if not _HEX_RE.match(value):
            raise ValueError(
                f"expected digest must be {DIGEST_HEX_LENGTH} hex characters, got {value!r}"
            )
        return value

    @model_validator(mode="after")
    def _url_required_for_verification(self) -> "ArtifactSpec":
        if self.expected_digest_hex and not self.source_url:
            raise ValueError("source_url is required when a digest is expected")
        return self

    @property
    def verification_requested(self) -> bool:
        return self.expected_digest_hex is not None


class CachePaths(BaseModel):
    """Final (verified) and staging (unverified) archive locations."""

    model_config = ConfigDict(frozen=True)

    final_path: Path
    staging_path: Path

    @model_validator(mode="after")
    def _distinct(self) -> "CachePaths":
        if self.final_path.resolve() == self.staging_path.resolve():
            raise ValueError("staging_path and final_path must differ")
        return self


class DownloadOutcome(BaseModel):
    """Result of a single streamed fetch."""

    digest_hex: str
    bytes_written: int


class InstallReport(BaseModel):
    """Summary of one install run."""

    source_url: str
    status: CacheStatus
    archive_path: Optional[str] = None
    extracted_to: Optional[str] = None
    extracted_members: int = 0
    warnings: List[str] = Field(default_factory=list)

    @property
    def extracted(self) -> bool:
        """Return True when the archive was unpacked during this run."""
        return self.extracted_to is not None
