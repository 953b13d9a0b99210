"""Install entry point: resolve the artifact, ensure it is cached, extract it."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import Settings, cache_paths, get_settings, resolve_artifact
from .errors import NetworkError
from .extract import extract_archive
from .fetch import ensure_artifact
from .models import CacheStatus, InstallReport

logger = logging.getLogger(__name__)


def _retry_decorator(settings: Settings):
    # Only transport failures; status errors and digest mismatches surface at once.
    return retry(
        retry=retry_if_exception_type(NetworkError),
        stop=stop_after_attempt(max(1, settings.max_attempts)),
        wait=wait_exponential(
            multiplier=settings.backoff_multiplier,
            min=settings.backoff_min,
            max=settings.backoff_max,
        ),
        reraise=True,
    )


def run_install(
    settings: Optional[Settings] = None,
    *,
    client: Optional[httpx.Client] = None,
) -> InstallReport:
    """Fetch (if needed), verify and extract the prebuilt archive.

    Args:
        settings: Install settings. Loaded from the environment if not provided.
        client: Optional httpx client handed through to ``ensure_artifact``.

    Returns:
        InstallReport describing what happened.

    Raises:
        ValueError: On incomplete or malformed configuration.
        PrebuildError: On any fetch, verification or extraction failure.
    """
    s = settings or get_settings()
    spec = resolve_artifact(s)
    paths = cache_paths(s)

    @_retry_decorator(s)
    def _ensure() -> CacheStatus:
        return ensure_artifact(spec, paths, s.proxy, settings=s, client=client)

    status = _ensure()
    report = InstallReport(source_url=spec.source_url, status=status)
    if status is CacheStatus.SKIPPED:
        return report

    report.archive_path = str(paths.final_path)
    if not s.extract:
        logger.info("Extraction disabled; archive left at %s", paths.final_path)
        return report

    logger.info("extracting...")
    result = extract_archive(paths.final_path, s.extract_target)
    report.extracted_to = str(result.dest_dir)
    report.extracted_members = result.members
    report.warnings.extend(result.warnings)
    return report
