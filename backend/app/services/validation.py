"""
Notes API Backend — Input Validator
=====================================

What:  Turns a raw request body into a `NotePayload` or a validation `Failure`.
How:   Pure function over the pydantic schema; no I/O.
Who:   Called by the pipeline on the create and update paths.

Failure details list one entry per violated field so clients can show the
message next to the right input:
    {"fields": [{"field": "title", "message": "Title too long"}]}
"""

from typing import Any, Dict, List, Tuple

from pydantic import ValidationError as PydanticValidationError

from app.exceptions import Failure, Outcome
from app.schemas.note import FieldViolation, NotePayload

# (field, pydantic error type) → client-facing message
_MESSAGES: Dict[Tuple[str, str], str] = {
    ("title", "missing"): "Title is required",
    ("title", "string_too_short"): "Title is required",
    ("title", "string_too_long"): "Title too long",
    ("content", "string_too_long"): "Content too long",
    ("content", "value_error"): "Content must be a string",
}


def _violations(exc: PydanticValidationError) -> List[Dict[str, str]]:
    violations = []
    for error in exc.errors():
        loc = error.get("loc") or ("body",)
        field = ".".join(str(part) for part in loc)
        message = _MESSAGES.get((field, error["type"]), error["msg"])
        violations.append(FieldViolation(field=field, message=message).model_dump())
    return violations


def validate_note_payload(payload: Any) -> Outcome[NotePayload]:
    """
    Validate a note body.

    Returns:
        NotePayload on success.
        Failure(VALIDATION) when the body is not an object or any field is
        missing, mistyped or out of range.
    """
    if not isinstance(payload, dict):
        return Failure.validation(
            [FieldViolation(field="body", message="Expected a JSON object").model_dump()]
        )
    try:
        return NotePayload.model_validate(payload)
    except PydanticValidationError as exc:
        return Failure.validation(_violations(exc))
