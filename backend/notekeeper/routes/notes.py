"""
NoteKeeper Backend: Notes Route Handlers
=========================================

What:  The five note endpoints under /api.
How:   FastAPI parses the path id and the JSON body and validates them
       against NoteCreate / NoteUpdate before the handler runs; failures
       are turned into InvalidIdError / MalformedBodyError /
       ValidationFailedError by the RequestValidationError handler in
       main.py. Handlers then check existence, call the repository and
       return the resulting resource.

Route Inventory:
    GET    /api/notes        200  list, newest first
    POST   /api/notes        201  created note
    GET    /api/notes/{id}   200  note
    PATCH  /api/notes/{id}   200  updated note
    DELETE /api/notes/{id}   204  empty body

Error bodies (see main.py for the mapping table):
    400  {"error": "Invalid note Id"}
    400  {"error": "Invalid JSON in request body"}
    400  {"errors": [{"field": ..., "code": ..., "message": ...}]}
    404  {"error": "Note not found"}
    500  {"error": "Failed to ... note(s)"}
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from notekeeper.exceptions import NotFoundError
from notekeeper.schemas.note import (
    ErrorResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
    ValidationErrorResponse,
)
from notekeeper.services.note_repository import NoteRepository, get_note_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])

# Generic 500 messages per endpoint, looked up by route name in main.py
INTERNAL_ERROR_MESSAGES = {
    "list_notes": "Failed to fetch notes",
    "create_note": "Failed to create note",
    "get_note": "Failed to fetch note",
    "update_note": "Failed to update note",
    "delete_note": "Failed to delete note",
}

_BAD_REQUEST = {
    "description": "Invalid id, malformed JSON, or validation failure",
    "model": ValidationErrorResponse,
}
_NOT_FOUND = {"description": "Note not found", "model": ErrorResponse}
_SERVER_ERROR = {"description": "Server error", "model": ErrorResponse}


@router.get(
    "/notes",
    response_model=List[NoteResponse],
    responses={500: _SERVER_ERROR},
    summary="List all notes",
    description="Returns every note ordered by creation time, newest first. No pagination.",
)
async def list_notes(
    repo: NoteRepository = Depends(get_note_repository),
) -> List[NoteResponse]:
    notes = await repo.find_all()
    return [NoteResponse.model_validate(note) for note in notes]


@router.post(
    "/notes",
    status_code=status.HTTP_201_CREATED,
    response_model=NoteResponse,
    responses={400: _BAD_REQUEST, 500: _SERVER_ERROR},
    summary="Create a note",
)
async def create_note(
    payload: NoteCreate,
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteResponse:
    """
    Create a note from {title, content}.

    The title is stored trimmed; content is stored exactly as sent.
    Returns the created row including its id and timestamps.
    """
    note = await repo.create(title=payload.title, content=payload.content)
    await repo.commit()
    return NoteResponse.model_validate(note)


@router.get(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={400: _BAD_REQUEST, 404: _NOT_FOUND, 500: _SERVER_ERROR},
    summary="Get a single note by id",
)
async def get_note(
    note_id: int,
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteResponse:
    note = await repo.find_by_id(note_id)
    if note is None:
        raise NotFoundError(resource="Note", resource_id=note_id)
    return NoteResponse.model_validate(note)


@router.patch(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={400: _BAD_REQUEST, 404: _NOT_FOUND, 500: _SERVER_ERROR},
    summary="Partially update a note",
)
async def update_note(
    note_id: int,
    payload: NoteUpdate,
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteResponse:
    """
    Update title and/or content. Omitted fields keep their value;
    updatedAt is refreshed on every successful call, even an empty patch.
    """
    if not await repo.exists(note_id):
        raise NotFoundError(resource="Note", resource_id=note_id)

    note = await repo.update(note_id, payload.model_dump(exclude_unset=True))
    if note is None:
        # Deleted between the update and the re-read
        logger.warning("Note %s disappeared during update", note_id)
        raise NotFoundError(resource="Note", resource_id=note_id)
    await repo.commit()
    return NoteResponse.model_validate(note)


@router.delete(
    "/notes/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={400: _BAD_REQUEST, 404: _NOT_FOUND, 500: _SERVER_ERROR},
    summary="Delete a note",
)
async def delete_note(
    note_id: int,
    repo: NoteRepository = Depends(get_note_repository),
) -> Response:
    if not await repo.exists(note_id):
        raise NotFoundError(resource="Note", resource_id=note_id)

    await repo.delete(note_id)
    await repo.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
