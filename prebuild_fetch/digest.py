"""Streaming SHA-256 digest sink and comparison helpers."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional

from .errors import DigestStateError

DIGEST_ALGORITHM = "sha256"
DIGEST_HEX_LENGTH = 64
DEFAULT_CHUNK_SIZE = 64 * 1024


class DigestSink:
    """Write-only accumulator for an ordered byte stream.

    Chunks may be of any size. ``finalize`` is terminal: afterwards the sink
    rejects both writes and a second finalize.
    """

    def __init__(self) -> None:
        self._hash = hashlib.new(DIGEST_ALGORITHM)
        self._digest: Optional[str] = None
        self.bytes_seen = 0

    @property
    def finalized(self) -> bool:
        return self._digest is not None

    def write(self, chunk: bytes) -> int:
        if self.finalized:
            raise DigestStateError("write() called on a finalized digest sink")
        self._hash.update(chunk)
        self.bytes_seen += len(chunk)
        return len(chunk)

    def finalize(self) -> str:
        if self.finalized:
            raise DigestStateError("digest sink was already finalized")
        self._digest = self._hash.hexdigest()
        return self._digest


def new_digest_stream() -> DigestSink:
    return DigestSink()


def finalize(sink: DigestSink) -> str:
    """Close ``sink`` and return its lowercase hex digest."""
    return sink.finalize()


def verify(actual_hex: Optional[str], expected_hex: Optional[str]) -> bool:
    """Exact, case-insensitive digest comparison. Empty values never match."""
    if not actual_hex or not expected_hex:
        return False
    if len(actual_hex) != len(expected_hex):
        return False
    return actual_hex.lower() == expected_hex.lower()


def digest_file(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Hash an existing file without reading it into memory.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    sink = new_digest_stream()
    with Path(path).open("rb") as f:
        for block in iter(lambda: f.read(chunk_size), b""):
            sink.write(block)
    return finalize(sink)
