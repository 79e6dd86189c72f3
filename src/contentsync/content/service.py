"""Content write path.

Every create, update and delete goes through ContentService, whether it
comes from the API or from the sync engine. The service validates, writes
to the canonical store and then publishes an invalidation event. Event
publication never fails the write.
"""

from __future__ import annotations

import logging

from contentsync.content.models import ContentDraft, ContentPatch, ContentRecord
from contentsync.content.store import Clock, ContentStore, utc_now
from contentsync.content.validation import ContentValidator
from contentsync.errors import ContentNotFoundError
from contentsync.events.publisher import ContentEventPublisher
from contentsync.events.schemas import ContentAction

logger = logging.getLogger(__name__)


class ContentService:
    """Validated writes against the canonical store."""

    def __init__(
        self,
        store: ContentStore,
        publisher: ContentEventPublisher,
        validator: ContentValidator | None = None,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.publisher = publisher
        self.validator = validator or ContentValidator()
        self._clock = clock

    async def create_content(self, draft: ContentDraft, notify: bool = True) -> ContentRecord:
        """Create a record.

        With notify=False the caller takes over event publication (the sync
        engine batches its created events after a pass).
        """
        now = self._clock()
        if draft.is_published and draft.published_at is None:
            draft.published_at = now
        self.validator.validate_draft(draft, now)

        record = await self.store.create(draft)
        if notify:
            await self.publisher.publish_content_updated(record.id, ContentAction.CREATED)

        logger.info(f'Content created: "{record.title}" (ID: {record.id})')
        return record

    async def update_content(
        self,
        content_id: int,
        patch: ContentPatch,
        notify: bool = True,
    ) -> tuple[ContentRecord, ContentAction]:
        """Apply a patch and return the record with the action it represents."""
        existing = await self.find_content_by_id(content_id)

        now = self._clock()
        if patch.is_published and not existing.is_published and existing.published_at is None:
            patch.published_at = patch.published_at or now
        self.validator.validate_patch(existing, patch, now)

        updated = await self.store.update(content_id, patch)
        action = self.determine_action(existing, patch)
        if notify:
            await self.publisher.publish_content_updated(updated.id, action)

        logger.info(f'Content updated: "{updated.title}" ({content_id}) - {action.value}')
        return updated, action

    async def delete_content(self, content_id: int) -> None:
        existing = await self.find_content_by_id(content_id)
        if existing.is_published:
            logger.warning(f'Deleting published content: "{existing.title}" ({content_id})')

        await self.store.delete(content_id)
        await self.publisher.publish_content_deleted(content_id)

        logger.info(f'Content deleted: {content_id} - "{existing.title}"')

    async def find_content_by_id(self, content_id: int) -> ContentRecord:
        record = await self.store.find_by_id(content_id)
        if record is None:
            raise ContentNotFoundError(content_id)
        return record

    @staticmethod
    def determine_action(existing: ContentRecord, patch: ContentPatch) -> ContentAction:
        """Label an update by its effect on publication state."""
        if existing.is_published and patch.is_published is False:
            return ContentAction.UNPUBLISHED
        if not existing.is_published and patch.is_published is True:
            return ContentAction.PUBLISHED
        return ContentAction.UPDATED
