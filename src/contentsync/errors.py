"""Domain exceptions for contentsync.

Every error raised by the sync engine, the content write path or the
discovery layer derives from ContentSyncError so callers can catch the
whole family in one place. The API layer maps them to HTTP responses.
"""

from __future__ import annotations


class ContentSyncError(Exception):
    """Base class for all contentsync errors."""


# -----------------------------------------------------------------------------
# Content write path
# -----------------------------------------------------------------------------


class ContentNotFoundError(ContentSyncError):
    """Content record does not exist (or is not visible to the caller)."""

    def __init__(self, content_id: int | str):
        self.content_id = content_id
        super().__init__(f"Content {content_id} not found")


class ContentValidationError(ContentSyncError):
    """A record draft or patch failed validation."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"Content validation failed: {', '.join(self.errors)}")


class MissingExternalIdError(ContentSyncError):
    """An externally sourced item has no external identifier."""

    def __init__(self, title: str | None = None):
        self.title = title
        super().__init__("External ID is required for synchronization")


# -----------------------------------------------------------------------------
# Provider
# -----------------------------------------------------------------------------


class ProviderError(ContentSyncError):
    """The external metadata provider failed a call.

    ``transient`` marks failures worth retrying on the next pass
    (timeouts, 5xx) as opposed to bad credentials or malformed requests.
    """

    def __init__(self, message: str, *, status_code: int | None = None, transient: bool = False):
        self.status_code = status_code
        self.transient = transient
        super().__init__(message)


class ProviderRateLimitError(ProviderError):
    """The provider rejected a call because of rate limiting or quota."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message, status_code=status_code, transient=True)


# -----------------------------------------------------------------------------
# Ingestion
# -----------------------------------------------------------------------------


class SyncInProgressError(ContentSyncError):
    """A sync pass was requested while another one is running."""

    def __init__(self) -> None:
        super().__init__("Sync operation already in progress")


class ChannelNotFoundError(ContentSyncError):
    """The configured channel handle could not be resolved."""

    def __init__(self, handle: str):
        self.handle = handle
        super().__init__(f"Channel not found: {handle}")


class IngestionFailedError(ContentSyncError):
    """A sync pass aborted before completing.

    The original exception is available as ``cause`` and ``__cause__``.
    """

    def __init__(self, cause: BaseException | str):
        self.cause = cause
        message = cause if isinstance(cause, str) else str(cause) or type(cause).__name__
        super().__init__(f"Sync operation failed: {message}")


# -----------------------------------------------------------------------------
# Cache
# -----------------------------------------------------------------------------


class CacheError(ContentSyncError):
    """A cache eviction could not be completed."""
