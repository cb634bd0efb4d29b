"""
Notes API Backend — Request Pipeline (Authorization Core)
===========================================================

What:  Composes the token verifier, input validator and note repository into
       the four note operations, enforcing ownership and soft-delete rules.
Why:   This is the only place with branching business rules; routes only
       translate HTTP in and out.
How:   Each operation runs a fixed sequence of gates. A gate returns either
       its value or a `Failure`; the first Failure ends the operation and is
       returned to the route. Exceptions are left for unexpected failures.

Gate order (authenticate first, before any data is touched):

    create:  auth → validate body → create
    list:    auth → clamp paging → list active
    update:  auth → note id → validate body → title → lookup+owner → not deleted → update
    delete:  auth → note id → lookup+owner → soft delete

    lookup+owner answers Forbidden both for a missing note and for someone
    else's note, so callers cannot probe which ids exist.

Concurrency:
    No locks. Two updates racing on one note both succeed; the last write
    wins at the store.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from app.exceptions import Failure, Outcome
from app.models.note import ID_MAX, Note
from app.schemas.note import (
    DeleteResponse,
    NotePayload,
    NoteResponse,
    UserIdentity,
    clamp_pagination,
)
from app.services.note_repository import NoteRepository
from app.services.token_verifier import TokenVerifier
from app.services.validation import validate_note_payload

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    """
    Per-request state handed from the route to the pipeline.

    `user` is filled in by the authentication gate so that downstream code
    (and the access log) can see who made the request.
    """

    authorization: Optional[str] = None
    request_id: str = ""
    user: Optional[UserIdentity] = None


def parse_note_id(raw: Any) -> Outcome[int]:
    """Accept only positive base-10 integers (e.g. "12"); anything else is InvalidId."""
    text = str(raw).strip() if raw is not None else ""
    if not text.isdigit() or not text.isascii():
        return Failure.invalid_id()
    note_id = int(text)
    if note_id <= 0:
        return Failure.invalid_id()
    return note_id


class NotePipeline:
    """Owner-scoped note operations behind authentication."""

    def __init__(self, verifier: TokenVerifier, repository: NoteRepository):
        self.verifier = verifier
        self.repository = repository

    # ── Gates ─────────────────────────────────────────────────────────────

    async def _authenticate(self, ctx: RequestContext) -> Outcome[UserIdentity]:
        outcome = await self.verifier.verify(ctx.authorization)
        if isinstance(outcome, Failure):
            logger.info("[%s] Authentication refused: %s", ctx.request_id, outcome.message)
            return outcome
        ctx.user = outcome
        return outcome

    async def _owned_note(self, note_id: int, user: UserIdentity) -> Outcome[Note]:
        # Ids the key column cannot hold never exist; the store would reject them
        if note_id > ID_MAX:
            return Failure.forbidden()
        note = await self.repository.find_by_id(note_id)
        if note is None or str(note.user_id) != str(user.id):
            return Failure.forbidden()
        return note

    # ── Operations ────────────────────────────────────────────────────────

    async def create_note(self, ctx: RequestContext, body: Any) -> Outcome[NoteResponse]:
        user = await self._authenticate(ctx)
        if isinstance(user, Failure):
            return user

        payload = validate_note_payload(body)
        if isinstance(payload, Failure):
            return payload

        note = await self.repository.create(user.id, payload.title, payload.content)
        return NoteResponse.from_note(note)

    async def list_notes(
        self, ctx: RequestContext, limit: Any = None, offset: Any = None
    ) -> Outcome[List[NoteResponse]]:
        user = await self._authenticate(ctx)
        if isinstance(user, Failure):
            return user

        page_limit, page_offset = clamp_pagination(limit, offset)
        notes = await self.repository.list_active(user.id, page_limit, page_offset)
        return [NoteResponse.from_note(note) for note in notes]

    async def update_note(
        self, ctx: RequestContext, raw_id: Any, body: Any
    ) -> Outcome[NoteResponse]:
        user = await self._authenticate(ctx)
        if isinstance(user, Failure):
            return user

        note_id = parse_note_id(raw_id)
        if isinstance(note_id, Failure):
            return note_id

        payload = validate_note_payload(body)
        if isinstance(payload, Failure):
            return payload
        # The schema already enforces a minimum length; this gate stays as a
        # second check on the update path.
        if not _has_title(payload):
            return Failure.title_required()

        note = await self._owned_note(note_id, user)
        if isinstance(note, Failure):
            logger.info("[%s] Update of note %s forbidden for %s", ctx.request_id, note_id, user.id)
            return note
        if note.is_deleted:
            return Failure.already_deleted()

        updated = await self.repository.update(note_id, payload.title, payload.content)
        if updated is None:
            # Deleted between the state check and the write
            return Failure.already_deleted()
        return NoteResponse.from_note(updated)

    async def delete_note(self, ctx: RequestContext, raw_id: Any) -> Outcome[DeleteResponse]:
        user = await self._authenticate(ctx)
        if isinstance(user, Failure):
            return user

        note_id = parse_note_id(raw_id)
        if isinstance(note_id, Failure):
            return note_id

        note = await self._owned_note(note_id, user)
        if isinstance(note, Failure):
            logger.info("[%s] Delete of note %s forbidden for %s", ctx.request_id, note_id, user.id)
            return note

        # Deleting twice is a no-op: the first deleted_at is kept.
        if note.is_deleted:
            logger.info("[%s] Note %s already deleted", ctx.request_id, note_id)
            return DeleteResponse(success=True)

        await self.repository.soft_delete(note_id)
        return DeleteResponse(success=True)


def _has_title(payload: NotePayload) -> bool:
    return bool(payload.title)
