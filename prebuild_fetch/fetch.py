"""Fetch-verify-cache pipeline: local digest check, bounded redirects, streamed download."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import httpx

from .config import Settings
from .digest import digest_file, finalize, new_digest_stream, verify
from .errors import (
    DigestMismatchError,
    FilesystemError,
    HttpStatusError,
    NetworkError,
    RedirectLoopError,
)
from .models import ArtifactSpec, CachePaths, CacheStatus, DownloadOutcome

logger = logging.getLogger(__name__)


def _is_redirect(resp: httpx.Response) -> bool:
    return 300 <= resp.status_code < 400 and "location" in resp.headers


def _client(settings: Settings, proxy_endpoint: Optional[str]) -> httpx.Client:
    # _download follows redirects itself; proxy comes only from configuration.
    return httpx.Client(
        timeout=settings.timeout_seconds,
        follow_redirects=False,
        trust_env=False,
        proxy=proxy_endpoint or None,
        headers={
            "user-agent": settings.user_agent,
            "accept": "application/octet-stream, */*;q=0.8",
        },
    )


def _is_cached(final_path: Path, expected: str, chunk_size: int) -> bool:
    """Return True when ``final_path`` already holds the expected bytes."""
    try:
        actual = digest_file(final_path, chunk_size)
    except FileNotFoundError:
        logger.debug("No local build artifact at %s", final_path)
        return False
    except OSError as exc:
        logger.warning(
            "Cannot read local build artifact %s (%s); treating as not cached",
            final_path, exc,
        )
        return False

    if verify(actual, expected):
        logger.info("local build artifact is up-to-date")
        return True

    logger.info("local build artifact is outdated (hash=%s)", actual[:12])
    return False


def _stream_to_staging(
    resp: httpx.Response, staging_path: Path, chunk_size: int
) -> DownloadOutcome:
    """Write the body to staging and the digest sink in a single pass."""
    sink = new_digest_stream()
    written = 0
    try:
        staging_path.parent.mkdir(parents=True, exist_ok=True)
        with staging_path.open("wb") as out:
            for chunk in resp.iter_bytes(chunk_size):
                out.write(chunk)
                sink.write(chunk)
                written += len(chunk)
    except OSError as exc:
        raise FilesystemError(staging_path, str(exc)) from exc

    digest_hex = finalize(sink)
    logger.debug("Wrote %d bytes to %s (hash=%s)", written, staging_path, digest_hex[:12])
    return DownloadOutcome(digest_hex=digest_hex, bytes_written=written)


def _download(
    client: httpx.Client, url: str, staging_path: Path, settings: Settings
) -> DownloadOutcome:
    """GET ``url`` following at most ``settings.max_redirects`` redirects.

    Raises:
        HttpStatusError: On a final status other than 200.
        RedirectLoopError: When the redirect chain exceeds the bound.
        NetworkError: On transport failures, including mid-stream drops.
        FilesystemError: When the staging file cannot be written.
    """
    target = url
    for _hop in range(settings.max_redirects + 1):
        logger.info("downloading %s", target)
        try:
            with client.stream("GET", target) as resp:
                if _is_redirect(resp):
                    target = str(resp.url.join(resp.headers["location"]))
                    logger.info("following redirect to %s", target)
                    continue

                if resp.status_code != 200:
                    logger.error("HTTP %d for %s", resp.status_code, target)
                    raise HttpStatusError(resp.status_code, resp.reason_phrase, target)

                return _stream_to_staging(resp, staging_path, settings.chunk_size)
        except httpx.TransportError as exc:
            raise NetworkError(target, str(exc) or type(exc).__name__) from exc

    raise RedirectLoopError(url, settings.max_redirects)


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Cannot remove unverified download %s: %s", path, exc)


def _publish(paths: CachePaths) -> None:
    """Move the verified staging file over the final path in one rename."""
    try:
        os.replace(paths.staging_path, paths.final_path)
    except OSError as exc:
        raise FilesystemError(paths.final_path, str(exc)) from exc


def ensure_artifact(
    spec: ArtifactSpec,
    paths: CachePaths,
    proxy_endpoint: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    client: Optional[httpx.Client] = None,
) -> CacheStatus:
    """Make sure ``paths.final_path`` holds bytes matching ``spec``.

    Args:
        spec: Source URL and expected SHA-256 hex digest.
        paths: Final and staging locations.
        proxy_endpoint: Optional HTTP(S) forward proxy URL.
        settings: Timeouts, redirect bound and chunk size. Uses defaults if
            not provided.
        client: Pre-built httpx client. When given, ``proxy_endpoint`` is not
            applied and the client is left open.

    Returns:
        SKIPPED when no digest is expected, UP_TO_DATE when the cached file
        already matches, DOWNLOADED after a verified fetch was published.

    Raises:
        FetchError: Any pipeline failure; see ``prebuild_fetch.errors``.
    """
    s = settings or Settings()

    if not spec.verification_requested:
        logger.info("(no checksum provided; assuming local build)")
        return CacheStatus.SKIPPED

    expected = spec.expected_digest_hex
    if _is_cached(paths.final_path, expected, s.chunk_size):
        return CacheStatus.UP_TO_DATE

    if client is None:
        with _client(s, proxy_endpoint) as owned:
            outcome = _download(owned, spec.source_url, paths.staging_path, s)
    else:
        if proxy_endpoint:
            logger.debug("Injected client in use; proxy %s not applied", proxy_endpoint)
        outcome = _download(client, spec.source_url, paths.staging_path, s)

    if not verify(outcome.digest_hex, expected):
        _discard(paths.staging_path)
        raise DigestMismatchError(expected, outcome.digest_hex)

    _publish(paths)
    logger.info(
        "Fetched OK: %s (%d bytes, hash=%s)",
        paths.final_path, outcome.bytes_written, outcome.digest_hex[:12],
    )
    return CacheStatus.DOWNLOADED
