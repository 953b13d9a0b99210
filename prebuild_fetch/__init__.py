"""prebuild-fetch — install-time download, verification and caching of prebuilt archives."""

from .config import Settings, cache_paths, get_settings, resolve_artifact
from .digest import DigestSink, digest_file, finalize, new_digest_stream, verify
from .errors import (
    DigestMismatchError,
    DigestStateError,
    ExtractError,
    FetchError,
    FilesystemError,
    HttpStatusError,
    NetworkError,
    PrebuildError,
    RedirectLoopError,
)
from .extract import ExtractResult, extract_archive
from .fetch import ensure_artifact
from .install import run_install
from .models import ArtifactSpec, CachePaths, CacheStatus, DownloadOutcome, InstallReport

__all__ = [
    "Settings",
    "get_settings",
    "resolve_artifact",
    "cache_paths",
    "DigestSink",
    "new_digest_stream",
    "finalize",
    "verify",
    "digest_file",
    "ensure_artifact",
    "extract_archive",
    "ExtractResult",
    "run_install",
    "ArtifactSpec",
    "CachePaths",
    "CacheStatus",
    "DownloadOutcome",
    "InstallReport",
    "PrebuildError",
    "FetchError",
    "HttpStatusError",
    "RedirectLoopError",
    "DigestMismatchError",
    "FilesystemError",
    "NetworkError",
    "ExtractError",
    "DigestStateError",
]
