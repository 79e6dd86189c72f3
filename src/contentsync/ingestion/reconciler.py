"""Idempotent reconciliation of external items into canonical records.

For each item:
- no external id: MissingExternalIdError
- no record with that external id: create
- record exists and title, body and thumbnail match: skip (no write, no event)
- otherwise: update

Writes go through ContentService so sync and direct writes share one
validation and persistence path. Creates are made with notify=False; the
engine batches their events after the pass. Updates publish immediately
with the action label derived from publication state.
"""

from __future__ import annotations

import logging
import re

from contentsync.content.models import ContentDraft, ContentPatch, ContentRecord
from contentsync.content.service import ContentService
from contentsync.errors import MissingExternalIdError
from contentsync.ingestion.models import ReconcileAction, ReconcileOutcome, VideoItem
from contentsync.ingestion.provider import watch_url

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 5000
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def format_description(description: str, external_id: str) -> str:
    """Render an item description as a record body with a watch link footer."""
    if len(description) > MAX_DESCRIPTION_LENGTH:
        description = f"{description[:MAX_DESCRIPTION_LENGTH]}..."
    body = _EXCESS_NEWLINES.sub("\n\n", description).strip()
    return f"{body}\n\n---\n\nWatch on YouTube: {watch_url(external_id)}"


class Reconciler:
    """Maps external items onto canonical records."""

    def __init__(self, content_service: ContentService, auto_publish: bool = True):
        self.content_service = content_service
        self.auto_publish = auto_publish

    def to_draft(self, item: VideoItem, external_id: str) -> ContentDraft:
        return ContentDraft(
            title=item.title,
            body=format_description(item.description, external_id),
            thumbnail_url=item.thumbnail_url,
            video_url=watch_url(external_id),
            external_id=external_id,
            external_channel=item.channel_title or None,
            is_published=self.auto_publish,
            published_at=item.published_at,
        )

    @staticmethod
    def has_changes(existing: ContentRecord, draft: ContentDraft) -> bool:
        return (
            existing.title != draft.title
            or existing.body != draft.body
            or existing.thumbnail_url != draft.thumbnail_url
        )

    async def reconcile(self, item: VideoItem) -> ReconcileOutcome:
        if not item.external_id:
            raise MissingExternalIdError(item.title)

        draft = self.to_draft(item, item.external_id)
        existing = await self.content_service.store.find_by_external_id(item.external_id)

        if existing is None:
            logger.info(f'Creating new content from YouTube: "{item.title}"')
            record = await self.content_service.create_content(draft, notify=False)
            return ReconcileOutcome(ReconcileAction.CREATED, record.id)

        if not self.has_changes(existing, draft):
            logger.debug(f'Skipping update for: "{existing.title}" (no changes)')
            return ReconcileOutcome(ReconcileAction.SKIPPED, existing.id)

        patch = ContentPatch(
            title=draft.title,
            body=draft.body,
            thumbnail_url=draft.thumbnail_url,
            is_published=True if self.auto_publish else None,
        )
        logger.debug(f'Updating YouTube content: "{existing.title}"')
        record, _ = await self.content_service.update_content(existing.id, patch)
        return ReconcileOutcome(ReconcileAction.UPDATED, record.id)
