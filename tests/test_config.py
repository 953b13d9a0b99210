"""Unit tests for configuration and artifact resolution."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from prebuild_fetch.config import (
    VERSION_PLACEHOLDER,
    Settings,
    cache_paths,
    render_url,
    resolve_artifact,
)

DIGEST = "0f" * 32
TEMPLATE = f"https://github.com/acme/addon/releases/download/v{VERSION_PLACEHOLDER}/addon.tar.gz"


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        s = Settings()
        assert s.install_root == Path(".")
        assert s.staging_name == "unverified-prebuild.tmp"
        assert s.archive_name == "prebuild.tar.gz"
        assert s.timeout_seconds == 30.0
        assert s.max_redirects == 10
        assert s.max_attempts == 1
        assert s.proxy is None
        assert s.checksum is None
        assert s.extract is True

    def test_env_prefix(self) -> None:
        with patch.dict(os.environ, {"PREBUILD_TIMEOUT_SECONDS": "60.0", "PREBUILD_MAX_REDIRECTS": "3"}):
            s = Settings()
            assert s.timeout_seconds == 60.0
            assert s.max_redirects == 3

    def test_npm_environment(self) -> None:
        env = {
            "npm_package_version": "1.4.0",
            "npm_package_config_prebuildUrl": TEMPLATE,
            "npm_package_config_prebuildChecksum": DIGEST,
        }
        with patch.dict(os.environ, env):
            s = Settings()
            assert s.version == "1.4.0"
            assert s.url_template == TEMPLATE
            assert s.checksum == DIGEST

    def test_https_proxy_environment(self) -> None:
        with patch.dict(os.environ, {"HTTPS_PROXY": "http://proxy.corp:8080"}):
            assert Settings().proxy == "http://proxy.corp:8080"

    def test_prefixed_proxy(self) -> None:
        with patch.dict(os.environ, {"PREBUILD_PROXY": "http://other:3128"}):
            assert Settings().proxy == "http://other:3128"

    def test_paths(self, tmp_path: Path) -> None:
        s = Settings(install_root=tmp_path)
        paths = cache_paths(s)
        assert paths.final_path == tmp_path / "prebuild.tar.gz"
        assert paths.staging_path == tmp_path / "unverified-prebuild.tmp"
        assert s.extract_target == tmp_path

    def test_ensure_dirs(self, tmp_path: Path) -> None:
        s = Settings(install_root=tmp_path / "deep" / "root")
        s.ensure_dirs()
        assert (tmp_path / "deep" / "root").is_dir()


class TestRenderUrl:
    def test_substitutes_every_placeholder(self) -> None:
        t = f"https://x/{VERSION_PLACEHOLDER}/a-{VERSION_PLACEHOLDER}.tgz"
        assert render_url(t, "2.0.1") == "https://x/2.0.1/a-2.0.1.tgz"

    def test_no_placeholder_needs_no_version(self) -> None:
        assert render_url("https://x/a.tgz", None) == "https://x/a.tgz"

    def test_missing_version_raises(self) -> None:
        with pytest.raises(ValueError, match="no version"):
            render_url(TEMPLATE, None)


class TestResolveArtifact:
    def test_from_settings(self) -> None:
        spec = resolve_artifact(Settings(url_template=TEMPLATE, version="1.0.0", checksum=DIGEST))
        assert spec.source_url == "https://github.com/acme/addon/releases/download/v1.0.0/addon.tar.gz"
        assert spec.expected_digest_hex == DIGEST

    def test_no_checksum_means_no_verification(self) -> None:
        spec = resolve_artifact(Settings(url_template=TEMPLATE))
        assert spec.verification_requested is False

    def test_checksum_without_url_raises(self) -> None:
        with pytest.raises(ValueError, match="no prebuild URL"):
            resolve_artifact(Settings(checksum=DIGEST))

    def test_package_json(self, tmp_path: Path) -> None:
        pkg = tmp_path / "package.json"
        pkg.write_text(json.dumps({
            "name": "@acme/addon",
            "version": "3.1.4",
            "config": {"prebuildUrl": TEMPLATE, "prebuildChecksum": DIGEST},
        }), encoding="utf-8")
        spec = resolve_artifact(Settings(package_json=pkg))
        assert spec.source_url.endswith("/v3.1.4/addon.tar.gz")
        assert spec.expected_digest_hex == DIGEST

    def test_package_json_from_npm_env(self, tmp_path: Path) -> None:
        pkg = tmp_path / "package.json"
        pkg.write_text(json.dumps({"version": "0.9.0", "config": {"prebuildUrl": TEMPLATE}}), encoding="utf-8")
        with patch.dict(os.environ, {"npm_package_json": str(pkg)}):
            spec = resolve_artifact(Settings())
        assert spec.verification_requested is False
        assert spec.source_url == TEMPLATE

    def test_explicit_settings_override_package_json(self, tmp_path: Path) -> None:
        pkg = tmp_path / "package.json"
        pkg.write_text(json.dumps({
            "version": "3.1.4",
            "config": {"prebuildUrl": TEMPLATE, "prebuildChecksum": DIGEST},
        }), encoding="utf-8")
        spec = resolve_artifact(Settings(package_json=pkg, version="4.0.0"))
        assert "/v4.0.0/" in spec.source_url

    def test_unreadable_package_json(self, tmp_path: Path) -> None:
        bad = tmp_path / "package.json"
        bad.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="package metadata"):
            resolve_artifact(Settings(package_json=bad))

    def test_empty_checksum_overrides_package_json(self, tmp_path: Path) -> None:
        pkg = tmp_path / "package.json"
        pkg.write_text(json.dumps({
            "version": "3.1.4",
            "config": {"prebuildUrl": TEMPLATE, "prebuildChecksum": DIGEST},
        }), encoding="utf-8")
        spec = resolve_artifact(Settings(package_json=pkg, checksum=""))
        assert spec.verification_requested is False
        assert spec.expected_digest_hex is None

    def test_empty_checksum_env_overrides_package_json(self, tmp_path: Path) -> None:
        pkg = tmp_path / "package.json"
        pkg.write_text(json.dumps({
            "version": "3.1.4",
            "config": {"prebuildUrl": TEMPLATE, "prebuildChecksum": DIGEST},
        }), encoding="utf-8")
        with patch.dict(os.environ, {"PREBUILD_CHECKSUM": ""}):
            spec = resolve_artifact(Settings(package_json=pkg))
        assert spec.verification_requested is False
