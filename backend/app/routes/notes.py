"""
Notes API Backend — Notes Route Handlers
==========================================

What:  HTTP binding for the four note operations.
How:   Each handler builds a RequestContext, calls the NotePipeline and
       either returns the pipeline's model (200) or converts its Failure into
       a JSON error response.

Route Inventory:
    POST   /notes        create a note for the caller
    GET    /notes        list the caller's active notes (limit/offset)
    PUT    /notes/{id}   update one of the caller's notes
    DELETE /notes/{id}   soft-delete one of the caller's notes

Bodies and the id path parameter are taken raw (not typed by FastAPI) so the
pipeline's own gates decide between 400 "Invalid note id" and 400 "Invalid
input" instead of FastAPI's generic 422.
"""

import logging
from typing import Any, List, Optional, Union

from fastapi import APIRouter, Body, Depends, Header, Query, Request
from fastapi.responses import JSONResponse

from app.exceptions import Failure
from app.schemas.note import DeleteResponse, ErrorResponse, NoteResponse
from app.services.note_pipeline import NotePipeline, RequestContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])

_ERRORS = {
    400: {"description": "Invalid input or note id", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Note absent or owned by someone else", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


def get_pipeline(request: Request) -> NotePipeline:
    """Dependency: the pipeline built by the lifespan (or injected by tests)."""
    return request.app.state.services.pipeline


def get_context(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> RequestContext:
    return RequestContext(
        authorization=authorization,
        request_id=getattr(request.state, "request_id", ""),
    )


def failure_response(failure: Failure) -> JSONResponse:
    """Render a known failure as `{"error": ..., "details"?: ...}`."""
    body = ErrorResponse(error=failure.message, details=failure.details)
    return JSONResponse(
        status_code=failure.status_code,
        content=body.model_dump(exclude_none=True),
    )


def _respond(request: Request, ctx: RequestContext, outcome: Any) -> Any:
    if ctx.user is not None:
        request.state.user_id = ctx.user.id
    if isinstance(outcome, Failure):
        return failure_response(outcome)
    return outcome


@router.post(
    "/notes",
    response_model=NoteResponse,
    responses={k: v for k, v in _ERRORS.items() if k != 403},
    summary="Create a note",
)
async def create_note(
    request: Request,
    body: Any = Body(default=None),
    ctx: RequestContext = Depends(get_context),
    pipeline: NotePipeline = Depends(get_pipeline),
) -> Union[NoteResponse, JSONResponse]:
    outcome = await pipeline.create_note(ctx, body)
    return _respond(request, ctx, outcome)


@router.get(
    "/notes",
    response_model=List[NoteResponse],
    responses={k: v for k, v in _ERRORS.items() if k in (401, 500)},
    summary="List the caller's active notes, newest first",
)
async def list_notes(
    request: Request,
    limit: Optional[str] = Query(default=None, description="Page size (default 10, max 100)"),
    offset: Optional[str] = Query(default=None, description="Notes to skip (default 0)"),
    ctx: RequestContext = Depends(get_context),
    pipeline: NotePipeline = Depends(get_pipeline),
) -> Union[List[NoteResponse], JSONResponse]:
    outcome = await pipeline.list_notes(ctx, limit=limit, offset=offset)
    return _respond(request, ctx, outcome)


@router.put(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses=_ERRORS,
    summary="Update one of the caller's notes",
)
async def update_note(
    request: Request,
    note_id: str,
    body: Any = Body(default=None),
    ctx: RequestContext = Depends(get_context),
    pipeline: NotePipeline = Depends(get_pipeline),
) -> Union[NoteResponse, JSONResponse]:
    outcome = await pipeline.update_note(ctx, note_id, body)
    return _respond(request, ctx, outcome)


@router.delete(
    "/notes/{note_id}",
    response_model=DeleteResponse,
    responses=_ERRORS,
    summary="Soft-delete one of the caller's notes",
)
async def delete_note(
    request: Request,
    note_id: str,
    ctx: RequestContext = Depends(get_context),
    pipeline: NotePipeline = Depends(get_pipeline),
) -> Union[DeleteResponse, JSONResponse]:
    outcome = await pipeline.delete_note(ctx, note_id)
    return _respond(request, ctx, outcome)
