"""Unpack a verified tar archive into the install root."""

from __future__ import annotations

import logging
import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .errors import ExtractError

logger = logging.getLogger(__name__)


@dataclass
class ExtractResult:
    """What was unpacked and what was skipped."""

    dest_dir: Path
    members: int = 0
    warnings: List[str] = field(default_factory=list)


def extract_archive(archive_path: Path, dest_dir: Path) -> ExtractResult:
    """Extract ``archive_path`` into ``dest_dir``.

    Members rejected by ``tarfile.data_filter`` (paths escaping ``dest_dir``,
    absolute links, device nodes) are skipped and reported as warnings.

    Raises:
        ExtractError: If the archive cannot be opened or a member cannot be
            written.
    """
    dest_dir = Path(dest_dir)
    result = ExtractResult(dest_dir=dest_dir)
    if not hasattr(tarfile, "data_filter"):
        raise ExtractError(
            f"Cannot safely extract {archive_path}: this Python lacks tarfile.data_filter"
        )

    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        with tarfile.open(archive_path, "r:*") as tar:
            for member in tar:
                try:
                    safe = tarfile.data_filter(member, str(dest_dir))
                except tarfile.FilterError as exc:
                    msg = f"skipped {member.name}: {exc}"
                    logger.warning("Extraction warning: %s", msg)
                    result.warnings.append(msg)
                    continue
                tar.extract(safe, dest_dir, filter="fully_trusted")
                result.members += 1
    except (tarfile.TarError, OSError) as exc:
        raise ExtractError(
            f"Failed to extract {archive_path}: {exc}", warnings=result.warnings
        ) from exc

    logger.info("Extracted %d member(s) into %s", result.members, dest_dir)
    return result
