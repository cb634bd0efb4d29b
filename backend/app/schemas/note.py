"""
Notes API Backend — Pydantic Request/Response Schemas
======================================================

What:  Pydantic models defining the API contract between client and backend.
Why:   Every endpoint has an explicit request and response shape, validated
       at the boundary instead of passing untyped dicts around.
How:   Responses use camelCase aliases (`userId`, `createdAt`, `deletedAt`),
       which FastAPI emits because it serializes response models by alias.
"""

import re
from datetime import datetime
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.note import CONTENT_MAX_LENGTH, TITLE_MAX_LENGTH, Note

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
# Largest OFFSET the store accepts (64-bit signed)
MAX_PAGE_OFFSET = 2**63 - 1

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)", re.ASCII)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NotePayload(BaseModel):
    """
    Body of POST /notes and PUT /notes/{id}.

    Unknown keys are ignored. Titles are taken verbatim (no trimming), so a
    title made of spaces is accepted as long as it is 1–200 characters.
    `content` may be omitted but not sent as null.
    """

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    content: Optional[str] = Field(default=None, max_length=CONTENT_MAX_LENGTH)

    @field_validator("content", mode="before")
    @classmethod
    def reject_null_content(cls, v: Any) -> Any:
        # Runs only for a value that was sent; the omitted default skips it
        if v is None:
            raise ValueError("Content must be a string")
        return v


def _parse_int(raw: Any) -> Optional[int]:
    """Leading base-10 integer of a query value, or None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    match = _LEADING_INT.match(str(raw))
    return int(match.group(1)) if match else None


def clamp_pagination(limit: Any = None, offset: Any = None) -> Tuple[int, int]:
    """
    Normalize raw `limit` / `offset` query values.

    limit:  default 10 when absent, non-integer or < 1; capped at 100
    offset: default 0 when absent, non-integer or negative; capped at 2**63 - 1

    Only the leading integer of a value counts: "5abc" is 5, "1.5" is 1.
    """
    parsed_limit = _parse_int(limit)
    if parsed_limit is None or parsed_limit < 1:
        parsed_limit = DEFAULT_PAGE_LIMIT
    parsed_offset = _parse_int(offset)
    if parsed_offset is None or parsed_offset < 0:
        parsed_offset = 0
    return min(parsed_limit, MAX_PAGE_LIMIT), min(parsed_offset, MAX_PAGE_OFFSET)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """Full representation of a note, as returned by create, list and update."""

    id: int
    title: str
    content: Optional[str] = None
    user_id: str
    created_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_note(cls, note: Note) -> "NoteResponse":
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            user_id=note.user_id,
            created_at=note.created_at,
            deleted_at=note.deleted_at,
        )


class DeleteResponse(BaseModel):
    """Body of a successful DELETE /notes/{id}."""

    success: bool = True


class UserIdentity(BaseModel):
    """The caller as resolved by the identity provider."""

    id: str
    email: Optional[str] = None


class FieldViolation(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """
    Uniform error body for every non-2xx answer.

    `details` is present only for validation failures, or for unexpected
    errors when running in development mode.

    Example:
        {"error": "Invalid input",
         "details": {"fields": [{"field": "title", "message": "Title too long"}]}}
    """

    error: str
    details: Optional[dict] = None


NoteListResponse = List[NoteResponse]
