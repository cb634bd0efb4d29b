"""
Notes API Backend — Request Pipeline Unit Tests
=================================================

What:  Tests for NotePipeline gate ordering, ownership and soft-delete rules.
How:   The repository and identity provider are AsyncMocks; no database,
       no HTTP.

Test Strategy:
    ✅ Authentication runs before anything else touches input or data
    ✅ Missing and foreign notes are indistinguishable (both 403)
    ✅ Deleted notes cannot be updated; deleting twice is a no-op
    ✅ Unexpected errors propagate out of the pipeline untouched
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import OTHER_TOKEN, USER_TOKEN
from app.exceptions import Failure, FailureKind, IdentityProviderError
from app.schemas.note import DeleteResponse, NotePayload, NoteResponse
from app.services.note_pipeline import NotePipeline, RequestContext, parse_note_id
from app.services.token_verifier import TokenVerifier


def _ctx(token: str = USER_TOKEN) -> RequestContext:
    return RequestContext(authorization=f"Bearer {token}" if token else None, request_id="test")


@pytest.fixture
def pipeline(identity_provider, mock_repository) -> NotePipeline:
    return NotePipeline(verifier=TokenVerifier(identity_provider), repository=mock_repository)


class TestParseNoteId:

    @pytest.mark.parametrize("raw, expected", [("1", 1), ("42", 42), (" 7 ", 7), (9, 9)])
    def test_valid(self, raw, expected):
        assert parse_note_id(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "0", "-1", "1.5", "", None, "٣", "1e3"])
    def test_invalid(self, raw):
        result = parse_note_id(raw)
        assert isinstance(result, Failure)
        assert result.kind == FailureKind.INVALID_ID
        assert result.message == "Invalid note id"


class TestAuthenticationFirst:

    @pytest.mark.asyncio
    async def test_create_without_token_skips_validation(self, pipeline, mock_repository):
        result = await pipeline.create_note(_ctx(token=""), {"title": ""})
        assert result.kind == FailureKind.MISSING_TOKEN
        mock_repository.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_with_bad_token_beats_bad_id(self, pipeline, mock_repository):
        result = await pipeline.update_note(_ctx("forged"), "abc", {"title": "t"})
        assert result.kind == FailureKind.INVALID_TOKEN
        mock_repository.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_without_token(self, pipeline, mock_repository):
        result = await pipeline.delete_note(_ctx(token=""), "1")
        assert result.kind == FailureKind.MISSING_TOKEN
        mock_repository.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_with_bad_token(self, pipeline, mock_repository):
        result = await pipeline.list_notes(_ctx("forged"))
        assert result.kind == FailureKind.INVALID_TOKEN
        mock_repository.list_active.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_context_records_user(self, pipeline, mock_repository):
        mock_repository.list_active.return_value = []
        ctx = _ctx()
        await pipeline.list_notes(ctx)
        assert ctx.user.id == "user-1"

    @pytest.mark.asyncio
    async def test_provider_outage_propagates(self, pipeline, identity_provider):
        identity_provider.resolve_user.side_effect = IdentityProviderError("down")
        with pytest.raises(IdentityProviderError):
            await pipeline.list_notes(_ctx())


class TestCreateNote:

    @pytest.mark.asyncio
    async def test_creates_for_caller(self, pipeline, mock_repository, make_note):
        mock_repository.create.return_value = make_note(note_id=5, title="Hello", content=None)

        result = await pipeline.create_note(_ctx(), {"title": "Hello", "userId": "user-2"})

        assert isinstance(result, NoteResponse)
        assert result.id == 5
        mock_repository.create.assert_awaited_once_with("user-1", "Hello", None)

    @pytest.mark.asyncio
    async def test_invalid_body(self, pipeline, mock_repository):
        result = await pipeline.create_note(_ctx(), {"title": "x" * 201})
        assert result.kind == FailureKind.VALIDATION
        mock_repository.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_error_propagates(self, pipeline, mock_repository):
        mock_repository.create.side_effect = OperationalError("INSERT", {}, Exception("db down"))
        with pytest.raises(OperationalError):
            await pipeline.create_note(_ctx(), {"title": "t"})


class TestListNotes:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "limit, offset, expected",
        [
            (None, None, (10, 0)),
            ("5", "2", (5, 2)),
            ("500", "0", (100, 0)),
            ("0", "-3", (10, 0)),
            ("abc", "xyz", (10, 0)),
            ("5abc", "2x", (5, 2)),
            ("1.5", " 3", (1, 3)),
            ("10", str(2**70), (10, 2**63 - 1)),
        ],
    )
    async def test_paging_is_clamped(self, pipeline, mock_repository, limit, offset, expected):
        mock_repository.list_active.return_value = []

        await pipeline.list_notes(_ctx(), limit=limit, offset=offset)

        mock_repository.list_active.assert_awaited_once_with("user-1", *expected)

    @pytest.mark.asyncio
    async def test_returns_responses(self, pipeline, mock_repository, make_note):
        mock_repository.list_active.return_value = [make_note(note_id=2), make_note(note_id=1)]

        result = await pipeline.list_notes(_ctx())

        assert [n.id for n in result] == [2, 1]


class TestUpdateNote:

    @pytest.mark.asyncio
    async def test_updates_owned_note(self, pipeline, mock_repository, make_note):
        mock_repository.find_by_id.return_value = make_note(note_id=3)
        mock_repository.update.return_value = make_note(note_id=3, title="new", content="body")

        result = await pipeline.update_note(_ctx(), "3", {"title": "new", "content": "body"})

        assert isinstance(result, NoteResponse)
        assert result.title == "new"
        mock_repository.update.assert_awaited_once_with(3, "new", "body")

    @pytest.mark.asyncio
    async def test_invalid_id_before_body(self, pipeline, mock_repository):
        result = await pipeline.update_note(_ctx(), "abc", {"title": ""})
        assert result.kind == FailureKind.INVALID_ID
        mock_repository.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_body_before_lookup(self, pipeline, mock_repository):
        result = await pipeline.update_note(_ctx(), "3", {"content": "no title"})
        assert result.kind == FailureKind.VALIDATION
        mock_repository.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_title_gate(self, pipeline, mock_repository):
        empty = NotePayload.model_construct(title="", content=None)
        with patch("app.services.note_pipeline.validate_note_payload", return_value=empty):
            result = await pipeline.update_note(_ctx(), "3", {"title": ""})

        assert result.kind == FailureKind.TITLE_REQUIRED
        assert result.message == "Title required"
        mock_repository.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_and_foreign_look_the_same(self, pipeline, mock_repository, make_note):
        mock_repository.find_by_id.return_value = None
        missing = await pipeline.update_note(_ctx(), "99", {"title": "t"})

        mock_repository.find_by_id.return_value = make_note(note_id=3, user_id="user-2")
        foreign = await pipeline.update_note(_ctx(), "3", {"title": "t"})

        assert missing == foreign == Failure.forbidden()
        mock_repository.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deleted_note(self, pipeline, mock_repository, make_note):
        mock_repository.find_by_id.return_value = make_note(
            note_id=3, deleted_at=datetime.now(timezone.utc)
        )

        result = await pipeline.update_note(_ctx(), "3", {"title": "t"})

        assert result.kind == FailureKind.ALREADY_DELETED
        assert result.message == "Cannot modify deleted note"
        mock_repository.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deleted_during_update(self, pipeline, mock_repository, make_note):
        mock_repository.find_by_id.return_value = make_note(note_id=3)
        mock_repository.update.return_value = None

        result = await pipeline.update_note(_ctx(), "3", {"title": "t"})

        assert result.kind == FailureKind.ALREADY_DELETED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_id", [str(2**31), str(2**63), "1" + "0" * 20])
    async def test_id_beyond_key_range_is_forbidden(self, pipeline, mock_repository, raw_id):
        result = await pipeline.update_note(_ctx(), raw_id, {"title": "t"})

        assert result == Failure.forbidden()
        mock_repository.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_largest_key_is_looked_up(self, pipeline, mock_repository):
        mock_repository.find_by_id.return_value = None

        result = await pipeline.update_note(_ctx(), str(2**31 - 1), {"title": "t"})

        assert result == Failure.forbidden()
        mock_repository.find_by_id.assert_awaited_once_with(2**31 - 1)

    @pytest.mark.asyncio
    async def test_foreign_deleted_note_is_forbidden(self, pipeline, mock_repository, make_note):
        mock_repository.find_by_id.return_value = make_note(
            note_id=3, user_id="user-2", deleted_at=datetime.now(timezone.utc)
        )
        result = await pipeline.update_note(_ctx(), "3", {"title": "t"})
        assert result.kind == FailureKind.FORBIDDEN


class TestDeleteNote:

    @pytest.mark.asyncio
    async def test_deletes_owned_note(self, pipeline, mock_repository, make_note):
        mock_repository.find_by_id.return_value = make_note(note_id=4)

        result = await pipeline.delete_note(_ctx(), "4")

        assert result == DeleteResponse(success=True)
        mock_repository.soft_delete.assert_awaited_once_with(4)

    @pytest.mark.asyncio
    async def test_foreign_note(self, pipeline, mock_repository, make_note):
        mock_repository.find_by_id.return_value = make_note(note_id=4, user_id="user-1")

        result = await pipeline.delete_note(_ctx(OTHER_TOKEN), "4")

        assert result.kind == FailureKind.FORBIDDEN
        mock_repository.soft_delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_delete_is_noop(self, pipeline, mock_repository, make_note):
        mock_repository.find_by_id.return_value = make_note(
            note_id=4, deleted_at=datetime.now(timezone.utc)
        )

        result = await pipeline.delete_note(_ctx(), "4")

        assert result == DeleteResponse(success=True)
        mock_repository.soft_delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_id_beyond_key_range_is_forbidden(self, pipeline, mock_repository):
        result = await pipeline.delete_note(_ctx(), str(2**63))

        assert result == Failure.forbidden()
        mock_repository.find_by_id.assert_not_awaited()
        mock_repository.soft_delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_id(self, pipeline, mock_repository):
        result = await pipeline.delete_note(_ctx(), "0")
        assert result.kind == FailureKind.INVALID_ID
        mock_repository.find_by_id.assert_not_awaited()
