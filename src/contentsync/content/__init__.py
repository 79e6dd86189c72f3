"""Canonical content records and the write path."""

from contentsync.content.models import ContentDraft, ContentPatch, ContentRecord
from contentsync.content.service import ContentService
from contentsync.content.store import ContentStore, InMemoryContentStore, utc_now
from contentsync.content.validation import ContentValidator

__all__ = [
    "ContentDraft",
    "ContentPatch",
    "ContentRecord",
    "ContentService",
    "ContentStore",
    "ContentValidator",
    "InMemoryContentStore",
    "utc_now",
]
