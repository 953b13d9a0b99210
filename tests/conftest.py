"""Shared test fixtures for prebuild-fetch tests."""

import hashlib
import io
import os
import tarfile
from pathlib import Path
from typing import Callable, Dict

import httpx
import pytest

from prebuild_fetch.config import Settings
from prebuild_fetch.models import ArtifactSpec, CachePaths

ARCHIVE_URL = "https://releases.example.com/v1.2.3/prebuild.tar.gz"

_ENV_PREFIXES = ("PREBUILD_", "NPM_PACKAGE_", "HTTPS_PROXY")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's npm/proxy environment out of every test."""
    for key in list(os.environ):
        if key.upper().startswith(_ENV_PREFIXES):
            monkeypatch.delenv(key, raising=False)


def _tarball(files: Dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture
def payload() -> bytes:
    """A small gzipped tarball standing in for the prebuilt archive."""
    return _tarball({
        "build/Release/addon.node": b"\x7fELF fake native addon",
        "build/Release/README": b"prebuilt for tests\n",
    })


@pytest.fixture
def unsafe_payload() -> bytes:
    """A tarball with one member that escapes the destination directory."""
    return _tarball({
        "build/ok.txt": b"fine",
        "../escape.txt": b"should never be written",
    })


@pytest.fixture
def payload_digest(payload: bytes) -> str:
    return hashlib.sha256(payload).hexdigest()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        install_root=tmp_path,
        backoff_min=0.0,
        backoff_max=0.0,
        backoff_multiplier=0.0,
    )


@pytest.fixture
def paths(settings: Settings) -> CachePaths:
    return CachePaths(final_path=settings.final_path, staging_path=settings.staging_path)


@pytest.fixture
def spec(payload_digest: str) -> ArtifactSpec:
    return ArtifactSpec(source_url=ARCHIVE_URL, expected_digest_hex=payload_digest)


@pytest.fixture
def make_client() -> Callable[..., httpx.Client]:
    """Build an httpx client backed by a MockTransport handler."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler))

    return _make
