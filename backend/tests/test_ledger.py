"""Tests for the engagement ledger and target registry."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.core.exceptions import DuplicateInteraction, TargetNotFound
from boardcore.models import Post, Question, VoteType
from boardcore.services.ledger import EngagementLedger, LedgerKind
from boardcore.services.targets import TargetKind, find_target, get_target

from conftest import AUTHOR_ID, OTHER_READER_ID, READER_ID


class TestTargetLookup:
    """Tests for find_target / get_target."""

    async def test_find_live_target(self, test_db: AsyncSession, sample_post: Post):
        target = await find_target(test_db, TargetKind.POST, sample_post.id, include_deleted=False)
        assert target is sample_post

    async def test_deleted_target_hidden_unless_requested(
        self, test_db: AsyncSession, sample_post: Post
    ):
        sample_post.mark_deleted()
        await test_db.commit()

        hidden = await find_target(test_db, TargetKind.POST, sample_post.id, include_deleted=False)
        visible = await find_target(test_db, TargetKind.POST, sample_post.id, include_deleted=True)

        assert hidden is None
        assert visible is sample_post

    async def test_get_target_raises_for_missing(self, test_db: AsyncSession):
        with pytest.raises(TargetNotFound) as exc_info:
            await get_target(test_db, TargetKind.QUESTION, 9999, include_deleted=False)

        assert exc_info.value.status_code == 404
        assert exc_info.value.resource == "question"

    def test_kind_capabilities(self):
        assert TargetKind.POST.is_likeable and not TargetKind.POST.is_votable
        assert TargetKind.ANSWER.is_votable and not TargetKind.ANSWER.is_likeable


class TestEngagementLedger:
    """Tests for EngagementLedger."""

    async def test_record_and_find(self, test_db: AsyncSession, sample_post: Post):
        ledger = EngagementLedger(test_db)

        record = await ledger.record(LedgerKind.POST_LIKE, sample_post.id, READER_ID)

        assert record.id is not None
        found = await ledger.find(LedgerKind.POST_LIKE, sample_post.id, READER_ID)
        assert found is record
        assert await ledger.find(LedgerKind.POST_LIKE, sample_post.id, OTHER_READER_ID) is None

    async def test_duplicate_record_rejected(self, test_db: AsyncSession, sample_post: Post):
        ledger = EngagementLedger(test_db)
        await ledger.record(LedgerKind.BOOKMARK, sample_post.id, READER_ID)

        with pytest.raises(DuplicateInteraction):
            await ledger.record(LedgerKind.BOOKMARK, sample_post.id, READER_ID)

        assert await ledger.count(LedgerKind.BOOKMARK, sample_post.id) == 1

    async def test_kinds_are_independent(self, test_db: AsyncSession, sample_post: Post):
        """A like and a bookmark by the same user on the same post coexist."""
        ledger = EngagementLedger(test_db)

        await ledger.record(LedgerKind.POST_LIKE, sample_post.id, READER_ID)
        await ledger.record(LedgerKind.BOOKMARK, sample_post.id, READER_ID)

        assert await ledger.count(LedgerKind.POST_LIKE, sample_post.id) == 1
        assert await ledger.count(LedgerKind.BOOKMARK, sample_post.id) == 1

    async def test_vote_record_requires_type(self, test_db: AsyncSession, sample_question: Question):
        ledger = EngagementLedger(test_db)

        with pytest.raises(ValueError):
            await ledger.record(LedgerKind.QUESTION_VOTE, sample_question.id, READER_ID)

    async def test_count_by_vote_type(self, test_db: AsyncSession, sample_question: Question):
        ledger = EngagementLedger(test_db)
        await ledger.record(LedgerKind.QUESTION_VOTE, sample_question.id, READER_ID, vote_type=VoteType.UP)
        await ledger.record(LedgerKind.QUESTION_VOTE, sample_question.id, OTHER_READER_ID, vote_type=VoteType.DOWN)
        await ledger.record(LedgerKind.QUESTION_VOTE, sample_question.id, 10, vote_type=VoteType.UP)

        assert await ledger.count(LedgerKind.QUESTION_VOTE, sample_question.id) == 3
        assert await ledger.count(LedgerKind.QUESTION_VOTE, sample_question.id, vote_type=VoteType.UP) == 2
        assert await ledger.count(LedgerKind.QUESTION_VOTE, sample_question.id, vote_type=VoteType.DOWN) == 1

    async def test_remove(self, test_db: AsyncSession, sample_post: Post):
        ledger = EngagementLedger(test_db)
        await ledger.record(LedgerKind.POST_LIKE, sample_post.id, READER_ID)

        assert await ledger.remove(LedgerKind.POST_LIKE, sample_post.id, READER_ID) is True
        assert await ledger.remove(LedgerKind.POST_LIKE, sample_post.id, READER_ID) is False
        assert await ledger.count(LedgerKind.POST_LIKE, sample_post.id) == 0

    async def test_find_many(self, test_db: AsyncSession, sample_question: Question):
        ledger = EngagementLedger(test_db)
        other = Question(title="다른 질문", content="본문", author_id=AUTHOR_ID)
        test_db.add(other)
        await test_db.flush()

        await ledger.record(LedgerKind.QUESTION_VOTE, sample_question.id, READER_ID, vote_type=VoteType.UP)

        records = await ledger.find_many(LedgerKind.QUESTION_VOTE, [sample_question.id, other.id], READER_ID)

        assert set(records) == {sample_question.id}
        assert records[sample_question.id].vote_type == VoteType.UP
        assert await ledger.find_many(LedgerKind.QUESTION_VOTE, [], READER_ID) == {}

    async def test_views_append_without_uniqueness(self, test_db: AsyncSession, sample_post: Post):
        ledger = EngagementLedger(test_db)
        first = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

        await ledger.record(LedgerKind.POST_VIEW, sample_post.id, READER_ID, at=first)
        await ledger.record(LedgerKind.POST_VIEW, sample_post.id, READER_ID, at=first + timedelta(days=2))

        assert await ledger.count(LedgerKind.POST_VIEW, sample_post.id) == 2
        latest = await ledger.find(LedgerKind.POST_VIEW, sample_post.id, READER_ID)
        assert latest.viewed_at.replace(tzinfo=timezone.utc) == first + timedelta(days=2)

    async def test_views_cannot_be_removed(self, test_db: AsyncSession, sample_post: Post):
        ledger = EngagementLedger(test_db)

        with pytest.raises(ValueError):
            await ledger.remove(LedgerKind.POST_VIEW, sample_post.id, READER_ID)
