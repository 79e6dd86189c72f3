"""Technical validation for content writes.

Checks column limits, URL shape and the publish invariant. Every write,
whether it comes from the API or from the sync engine, goes through the
same validator.
"""

from __future__ import annotations

import logging
from datetime import datetime
from urllib.parse import urlparse

from contentsync.content.models import ContentDraft, ContentPatch, ContentRecord
from contentsync.errors import ContentValidationError

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 500
MAX_EXTERNAL_ID_LENGTH = 100
MAX_CHANNEL_LENGTH = 500
MAX_URL_LENGTH = 2000


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class ContentValidator:
    """Validates drafts and patches against storage constraints."""

    def validate_draft(self, draft: ContentDraft, now: datetime) -> None:
        errors: list[str] = []

        if not draft.title or not draft.title.strip():
            errors.append("Title is required")
        self._check_fields(
            errors,
            title=draft.title,
            external_id=draft.external_id,
            external_channel=draft.external_channel,
            video_url=draft.video_url,
            thumbnail_url=draft.thumbnail_url,
        )
        if draft.is_published:
            self._check_publish_time(errors, draft.published_at, now)

        self._raise_if_any(errors)

    def validate_patch(self, existing: ContentRecord, patch: ContentPatch, now: datetime) -> None:
        errors: list[str] = []

        if patch.title is not None and not patch.title.strip():
            errors.append("Title cannot be empty")
        self._check_fields(
            errors,
            title=patch.title,
            external_id=patch.external_id,
            external_channel=patch.external_channel,
            video_url=patch.video_url,
            thumbnail_url=patch.thumbnail_url,
        )

        becomes_published = patch.is_published is True and not existing.is_published
        if becomes_published:
            published_at = patch.published_at or existing.published_at
            self._check_publish_time(errors, published_at, now)

        self._raise_if_any(errors)

    def _check_fields(
        self,
        errors: list[str],
        *,
        title: str | None,
        external_id: str | None,
        external_channel: str | None,
        video_url: str | None,
        thumbnail_url: str | None,
    ) -> None:
        if title and len(title) > MAX_TITLE_LENGTH:
            errors.append(f"Title must be under {MAX_TITLE_LENGTH} characters")
        if external_id and len(external_id) > MAX_EXTERNAL_ID_LENGTH:
            errors.append(f"External ID must be under {MAX_EXTERNAL_ID_LENGTH} characters")
        if external_channel and len(external_channel) > MAX_CHANNEL_LENGTH:
            errors.append(f"External channel must be under {MAX_CHANNEL_LENGTH} characters")

        for label, url in (("Video URL", video_url), ("Thumbnail URL", thumbnail_url)):
            if not url:
                continue
            if len(url) > MAX_URL_LENGTH:
                errors.append(f"{label} must be under {MAX_URL_LENGTH} characters")
            elif not is_valid_url(url):
                errors.append(f"{label} must be a valid URL")

    def _check_publish_time(
        self, errors: list[str], published_at: datetime | None, now: datetime
    ) -> None:
        if published_at is None:
            errors.append("Published content requires a publish timestamp")
        elif published_at > now:
            errors.append("Publish timestamp cannot be in the future")

    def _raise_if_any(self, errors: list[str]) -> None:
        if errors:
            logger.warning(f"Validation failed: {', '.join(errors)}")
            raise ContentValidationError(errors)
