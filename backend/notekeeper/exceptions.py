"""
NoteKeeper Backend: Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions, one per error kind the API exposes.
How:   Each exception carries a client-safe message and an optional context
       dict (logged, never returned). The handlers in `main.py` translate
       them to HTTP responses through a single status-code table.
Who:   Raised by route handlers, the validation layer and the client.

Exception Hierarchy:
    NoteKeeperError (base)
    ├── InvalidIdError         → 400  path id is not an integer
    ├── MalformedBodyError     → 400  request body is not valid JSON
    ├── ValidationFailedError  → 400  body violates the note schema
    ├── NotFoundError          → 404  no row for the id
    ├── InternalError          → 500  storage fault or unexpected error
    ├── ConfigurationError     (startup only, never reaches a client)
    └── NotesApiError          (client side: non-2xx response from the API)
"""

from typing import Any, Dict, List, Optional


class NoteKeeperError(Exception):
    """
    Base exception for all NoteKeeper application errors.

    Attributes:
        message:  Client-facing error description (safe to return)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class InvalidIdError(NoteKeeperError):
    """Raised when a path id cannot be parsed as an integer."""

    def __init__(
        self,
        raw_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if raw_id is not None:
            ctx["raw_id"] = raw_id
        super().__init__(message="Invalid note Id", context=ctx)


class MalformedBodyError(NoteKeeperError):
    """Raised when the request body is not parseable JSON."""

    def __init__(
        self,
        message: str = "Invalid JSON in request body",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationFailedError(NoteKeeperError):
    """
    Raised when a note payload violates the schema.

    `errors` is a list of field issues (dicts with field, code and message),
    returned to the client as the `errors` array:

        {
            "errors": [
                {"field": "title", "code": "string_too_short", "message": "Title is required"}
            ]
        }
    """

    def __init__(
        self,
        errors: List[Dict[str, Any]],
        message: str = "Validation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.errors = errors


class NotFoundError(NoteKeeperError):
    """
    Raised when a requested note does not exist.

    The repository returns None for missing rows; route handlers convert
    that into this exception.
    """

    def __init__(
        self,
        resource: str = "Note",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class InternalError(NoteKeeperError):
    """
    Raised (or synthesized by the handlers) for storage faults and bugs.

    The message returned to the client is always generic; the cause is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "An internal error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(NoteKeeperError):
    """Raised at startup when required configuration is missing or invalid."""

    def __init__(
        self,
        message: str = "Configuration validation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotesApiError(NoteKeeperError):
    """
    Raised by the Python client when the API answers with a non-2xx status.

    Attributes:
        status_code:  HTTP status of the response
        errors:       Field issues from a 400 validation response, else []
    """

    def __init__(
        self,
        status_code: int,
        message: str = "Request failed",
        errors: Optional[List[Dict[str, Any]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code
        self.errors = errors or []
