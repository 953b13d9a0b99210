"""Exception hierarchy for prebuild-fetch."""

from __future__ import annotations

from typing import List, Optional


class PrebuildError(Exception):
    """Base class for every error raised by this package."""


class DigestStateError(PrebuildError):
    """A digest sink was used after it had been finalized."""


class FetchError(PrebuildError):
    """Base class for failures of the fetch-verify-cache pipeline."""


class HttpStatusError(FetchError):
    """The server answered with a status other than 200 or a usable redirect."""

    def __init__(self, code: int, message: str, url: str) -> None:
        self.code = code
        self.message = message
        self.url = url
        super().__init__(f"HTTP error: {code} {message} ({url})")


class RedirectLoopError(FetchError):
    """The redirect chain grew longer than the configured hop bound."""

    def __init__(self, url: str, max_redirects: int) -> None:
        self.url = url
        self.max_redirects = max_redirects
        super().__init__(
            f"Exceeded {max_redirects} redirects while resolving {url}"
        )


class DigestMismatchError(FetchError):
    """Downloaded bytes do not hash to the expected digest."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Digest mismatch. Expected {expected} got {actual}")


class NetworkError(FetchError):
    """The transport failed (connection, timeout, dropped stream)."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Network error fetching {url}: {reason}")


class FilesystemError(FetchError):
    """Staging or final path could not be written, renamed or removed."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Filesystem error on {path}: {reason}")


class ExtractError(PrebuildError):
    """The archive could not be extracted."""

    def __init__(self, message: str, warnings: Optional[List[str]] = None) -> None:
        self.warnings = list(warnings or [])
        super().__init__(message)
