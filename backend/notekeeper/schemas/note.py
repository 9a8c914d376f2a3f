"""
NoteKeeper Backend: Pydantic Request/Response Schemas
======================================================

What:  The note validation rules and the JSON shapes of the API.
How:   Request models (NoteCreate / NoteUpdate) declare the rules; FastAPI
       applies them to request bodies and `validate_note_payload()` applies
       them anywhere else (the Python client validates before sending).
       Validator errors are normalized into FieldIssue objects with the
       fixed human-readable messages below.

Rules:
    title    string, surrounding whitespace stripped, 1..255 characters
    content  string, at least 1 character, no upper bound, not stripped
    Unknown keys (including `id`) are ignored and dropped.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, StringConstraints, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

TITLE_MIN_LENGTH = 1
TITLE_MAX_LENGTH = 255
CONTENT_MIN_LENGTH = 1

TITLE_REQUIRED = "Title is required"
TITLE_TOO_LONG = "Title is too long"
CONTENT_REQUIRED = "Content is required"

TitleStr = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=TITLE_MIN_LENGTH,
        max_length=TITLE_MAX_LENGTH,
    ),
]
ContentStr = Annotated[str, StringConstraints(min_length=CONTENT_MIN_LENGTH)]

# (field, pydantic error type) → message returned to clients
FIELD_MESSAGES: Dict[tuple, str] = {
    ("title", "missing"): TITLE_REQUIRED,
    ("title", "null_value"): TITLE_REQUIRED,
    ("title", "string_too_short"): TITLE_REQUIRED,
    ("title", "string_too_long"): TITLE_TOO_LONG,
    ("content", "missing"): CONTENT_REQUIRED,
    ("content", "null_value"): CONTENT_REQUIRED,
    ("content", "string_too_short"): CONTENT_REQUIRED,
}


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    """Body of POST /api/notes. Both fields are required."""
    title: TitleStr = Field(description="Note title (1-255 characters after trimming)")
    content: ContentStr = Field(description="Note body (at least 1 character)")


class NoteUpdate(BaseModel):
    """
    Body of PATCH /api/notes/{id}.

    Any subset of fields, including none. A field that is present must
    satisfy the same rule as on create; an explicit null is rejected.
    """
    title: Optional[TitleStr] = Field(default=None, description="New title")
    content: Optional[ContentStr] = Field(default=None, description="New content")

    @field_validator("title", "content", mode="before")
    @classmethod
    def reject_null(cls, v: Any, info: ValidationInfo) -> Any:
        # Defaults are not validated, so this only sees explicit nulls
        if v is None:
            raise PydanticCustomError(
                "null_value",
                "{field} must not be null",
                {"field": info.field_name},
            )
        return v


# ══════════════════════════════════════════════════════════════════════════
# Validation Results
# ══════════════════════════════════════════════════════════════════════════


class FieldIssue(BaseModel):
    """One field-level violation, as returned in the `errors` array."""
    field: str = Field(description="Offending field, or 'body' for the whole payload")
    code: str = Field(description="Machine-readable violation code")
    message: str = Field(description="Human-readable description")


class NoteValidationResult(BaseModel):
    """
    Outcome of validate_note_payload(): either normalized data or issues.

    Exactly one of `data` / `errors` is meaningful; check `success`.
    """
    data: Optional[Dict[str, str]] = None
    errors: List[FieldIssue] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def field_issues(errors: Sequence[Dict[str, Any]]) -> List[FieldIssue]:
    """
    Convert raw Pydantic error dicts into FieldIssue objects.

    Accepts both plain model errors and FastAPI request errors, whose
    location is prefixed with "body".
    """
    issues = []
    for err in errors:
        loc = tuple(err.get("loc", ()))
        if loc and loc[0] == "body":
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) or "body"
        code = err.get("type", "value_error")
        message = FIELD_MESSAGES.get((field, code), err.get("msg", "Invalid value"))
        issues.append(FieldIssue(field=field, code=code, message=message))
    return issues


def validate_note_payload(payload: Any, partial: bool = False) -> NoteValidationResult:
    """
    Validate an arbitrary object against the note rules.

    Args:
        payload: Decoded JSON (usually a dict; anything else is reported
                 as a 'body' issue).
        partial: Use the update variant (all fields optional).

    Returns:
        NoteValidationResult with `data` holding only the supplied fields
        (title already stripped) or `errors` listing every violation.
    """
    model = NoteUpdate if partial else NoteCreate
    try:
        parsed = model.model_validate(payload)
    except PydanticValidationError as exc:
        return NoteValidationResult(errors=field_issues(exc.errors()))
    return NoteValidationResult(data=parsed.model_dump(exclude_unset=True))


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    Wire representation of a note.

    Serialized with camelCase keys:
        {"id": 1, "title": "...", "content": "...",
         "createdAt": "2024-01-15T12:00:00Z", "updatedAt": "..."}
    """
    id: int = Field(description="Note identifier")
    title: str = Field(description="Note title")
    content: str = Field(description="Note body")
    created_at: datetime = Field(description="Creation time (ISO 8601, UTC)")
    updated_at: datetime = Field(description="Last modification time (ISO 8601, UTC)")

    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive datetimes; everything is stored in UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ErrorResponse(BaseModel):
    """
    Error body for single-message failures (400 bad id / JSON, 404, 500).

    `detail` is only present when the server runs with DEBUG enabled.
    """
    error: str = Field(description="Human-readable error message")
    detail: Optional[str] = Field(default=None, description="Debug-only exception detail")


class ValidationErrorResponse(BaseModel):
    """Error body for schema violations (400)."""
    errors: List[FieldIssue] = Field(description="Field-level violations")
