"""Tests for content record types."""

from datetime import UTC, datetime

from contentsync.content.models import ContentPatch, ContentRecord

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=UTC)


class TestContentRecord:
    """Test record serialization."""

    def test_dict_round_trip(self) -> None:
        record = ContentRecord(
            id=7,
            title="Episode",
            body="Body",
            thumbnail_url=None,
            video_url="https://www.youtube.com/watch?v=x",
            external_id="x",
            external_channel="Channel",
            is_published=True,
            published_at=NOW,
            created_at=NOW,
            updated_at=NOW,
        )
        assert ContentRecord.from_dict(record.to_dict()) == record

    def test_naive_timestamps_read_as_utc(self) -> None:
        record = ContentRecord.from_dict(
            {
                "id": 1,
                "title": "t",
                "created_at": "2026-01-10T12:00:00",
                "updated_at": "2026-01-10T12:00:00",
            }
        )
        assert record.created_at == NOW
        assert record.published_at is None


class TestContentPatch:
    def test_changes_skips_unset_fields(self) -> None:
        patch = ContentPatch(title="New", is_published=False)
        assert patch.changes() == {"title": "New", "is_published": False}
