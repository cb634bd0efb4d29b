"""
Notes API Backend — Failure Taxonomy & Exception Hierarchy
============================================================

What:  Defines every way a request can fail, split in two families.
How:
    1. Known failures are VALUES. Each pipeline gate returns either its
       result or a `Failure`; the pipeline composes gates explicitly and the
       route turns a `Failure` into its status code and error body.
    2. Unexpected failures are EXCEPTIONS. Store outages, provider outages
       and programming errors propagate untouched to the global error mapper
       registered in main.py, which logs them and answers 500 (or the
       exception's own `status_code`).

Known failures:
    FailureKind
    ├── MISSING_TOKEN     → 401 "Missing token"
    ├── INVALID_TOKEN     → 401 "Invalid token"
    ├── VALIDATION        → 400 "Invalid input" (+ per-field details)
    ├── TITLE_REQUIRED    → 400 "Title required" (update path only)
    ├── INVALID_ID        → 400 "Invalid note id"
    ├── FORBIDDEN         → 403 "Forbidden" (absent OR foreign note)
    └── ALREADY_DELETED   → 400 "Cannot modify deleted note"

Unexpected failures:
    NotesAPIError (base, carries status_code)
    └── IdentityProviderError → 500 (provider unreachable / 5xx)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, TypeVar, Union


class FailureKind(str, Enum):
    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"
    VALIDATION = "validation"
    TITLE_REQUIRED = "title_required"
    INVALID_ID = "invalid_id"
    FORBIDDEN = "forbidden"
    ALREADY_DELETED = "already_deleted"


_STATUS_BY_KIND: Dict[FailureKind, int] = {
    FailureKind.MISSING_TOKEN: 401,
    FailureKind.INVALID_TOKEN: 401,
    FailureKind.VALIDATION: 400,
    FailureKind.TITLE_REQUIRED: 400,
    FailureKind.INVALID_ID: 400,
    FailureKind.FORBIDDEN: 403,
    FailureKind.ALREADY_DELETED: 400,
}


@dataclass(frozen=True)
class Failure:
    """
    A known, expected reason to reject a request.

    Attributes:
        kind:     Machine-readable category (decides the status code)
        message:  The `error` string returned to the client
        details:  Optional structured context returned as `details`
    """

    kind: FailureKind
    message: str
    details: Optional[Dict[str, Any]] = field(default=None)

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self.kind]

    # ── Constructors, one per taxonomy entry ──────────────────────────────

    @classmethod
    def missing_token(cls) -> "Failure":
        return cls(FailureKind.MISSING_TOKEN, "Missing token")

    @classmethod
    def invalid_token(cls) -> "Failure":
        return cls(FailureKind.INVALID_TOKEN, "Invalid token")

    @classmethod
    def validation(cls, violations: List[Dict[str, str]]) -> "Failure":
        """`violations` is a list of {"field": ..., "message": ...} entries."""
        return cls(FailureKind.VALIDATION, "Invalid input", {"fields": violations})

    @classmethod
    def title_required(cls) -> "Failure":
        return cls(FailureKind.TITLE_REQUIRED, "Title required")

    @classmethod
    def invalid_id(cls) -> "Failure":
        return cls(FailureKind.INVALID_ID, "Invalid note id")

    @classmethod
    def forbidden(cls) -> "Failure":
        return cls(FailureKind.FORBIDDEN, "Forbidden")

    @classmethod
    def already_deleted(cls) -> "Failure":
        return cls(FailureKind.ALREADY_DELETED, "Cannot modify deleted note")


T = TypeVar("T")

# What a gate returns: its value, or the reason it refused
Outcome = Union[T, Failure]


class NotesAPIError(Exception):
    """
    Base exception for unexpected application errors.

    Attributes:
        message:      Description logged server-side (exposed only in development)
        status_code:  HTTP status the error mapper answers with
        context:      Additional debug info (logged, never returned)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.context = context or {}
        super().__init__(self.message)


class IdentityProviderError(NotesAPIError):
    """
    Raised when the identity provider cannot answer a token lookup.

    When:    Transport errors after tenacity retries are exhausted, or a 5xx
             answer from the provider.
    HTTP:    500 (a provider outage is an infrastructure failure, not a
             rejected token, so it must never surface as 401)
    """

    def __init__(
        self,
        message: str = "Identity provider is unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
