"""
NoteKeeper Client: Notes API Client
====================================

What:  Async Python client for the /api/notes endpoints.
How:   httpx.AsyncClient for transport, QueryCache for reads, tenacity for
       read retries.

Read path (list_notes, get_note):
    1. Serve from cache while the entry is fresh (5 minutes by default)
    2. Otherwise GET, retrying up to 3 times on transport errors and 5xx
       responses with exponential backoff (capped at 30s)
    3. Store the result; entries unused for 10 minutes are evicted

Write path (create_note, update_note, delete_note):
    - Payloads are validated locally with the server's schema first; an
      invalid payload raises ValidationFailedError without a request
    - Never retried
    - On success: create and delete invalidate ("notes",); update also
      invalidates ("note", id); delete drops ("note", id)

Usage:
    async with NotesClient("http://localhost:8000/api") as client:
        note = await client.create_note("Buy milk", "2 liters")
        notes = await client.list_notes()
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from notekeeper.client.query_cache import QueryCache, QueryKey
from notekeeper.exceptions import NotesApiError, ValidationFailedError
from notekeeper.schemas.note import NoteResponse, validate_note_payload

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api"
DEFAULT_READ_RETRIES = 3

NOTES_KEY: QueryKey = ("notes",)


def note_key(note_id: int) -> QueryKey:
    return ("note", note_id)


def is_retryable(exc: BaseException) -> bool:
    """Transport failures and server-side (5xx) errors are worth retrying."""
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, NotesApiError) and exc.status_code >= 500


class NotesClient:
    """
    Cached, retrying client for the notes API.

    Args:
        base_url:      API root, including the /api prefix.
        http_client:   Pre-built httpx.AsyncClient (tests pass one wired
                       to the ASGI app or a MockTransport). Not closed by
                       aclose() when supplied.
        cache:         QueryCache to use; a default one is created.
        read_retries:  Retries after the first failed read attempt.
        retry_wait:    tenacity wait strategy between read attempts.
        timeout:       Per-request timeout in seconds for the owned client.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        cache: Optional[QueryCache] = None,
        read_retries: int = DEFAULT_READ_RETRIES,
        retry_wait: Optional[wait_base] = None,
        timeout: float = 10.0,
    ):
        self._owns_http_client = http_client is None
        self.http = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        self.cache = cache if cache is not None else QueryCache()
        self.read_retries = read_retries
        self.retry_wait = retry_wait if retry_wait is not None else wait_exponential(
            multiplier=1, min=1, max=30
        )

    async def __aenter__(self) -> "NotesClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.http.aclose()

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_notes(self) -> List[NoteResponse]:
        """All notes, newest first."""
        return await self._cached_read(
            NOTES_KEY,
            "/notes",
            lambda body: [NoteResponse.model_validate(item) for item in body],
        )

    async def get_note(self, note_id: int) -> NoteResponse:
        """A single note. Raises NotesApiError(404) when it does not exist."""
        return await self._cached_read(
            note_key(note_id),
            f"/notes/{note_id}",
            NoteResponse.model_validate,
        )

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_note(self, title: str, content: str) -> NoteResponse:
        data = self._validated({"title": title, "content": content}, partial=False)
        response = await self._request("POST", "/notes", json=data)
        note = NoteResponse.model_validate(response.json())

        self.cache.invalidate(NOTES_KEY)
        return note

    async def update_note(
        self,
        note_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> NoteResponse:
        """Send only the fields that were given (None means "leave as is")."""
        payload = {}
        if title is not None:
            payload["title"] = title
        if content is not None:
            payload["content"] = content

        data = self._validated(payload, partial=True)
        response = await self._request("PATCH", f"/notes/{note_id}", json=data)
        note = NoteResponse.model_validate(response.json())

        self.cache.invalidate(NOTES_KEY)
        self.cache.invalidate(note_key(note_id))
        return note

    async def delete_note(self, note_id: int) -> None:
        await self._request("DELETE", f"/notes/{note_id}")

        self.cache.invalidate(NOTES_KEY)
        self.cache.remove(note_key(note_id))

    # ── Internals ─────────────────────────────────────────────────────────

    @staticmethod
    def _validated(payload: Dict[str, Any], partial: bool) -> Dict[str, Any]:
        result = validate_note_payload(payload, partial=partial)
        if not result.success:
            raise ValidationFailedError(errors=[issue.model_dump() for issue in result.errors])
        return result.data

    async def _cached_read(self, key: QueryKey, path: str, parse) -> Any:
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.read_retries + 1),
            wait=self.retry_wait,
            retry=retry_if_exception(is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self._request("GET", path)

        result = parse(response.json())
        self.cache.set(key, result)
        return result

    async def _request(self, method: str, path: str, json: Any = None) -> httpx.Response:
        response = await self.http.request(method, path, json=json)
        if response.is_error:
            raise self._api_error(response)
        return response

    @staticmethod
    def _api_error(response: httpx.Response) -> NotesApiError:
        """Build a NotesApiError from an error response ({error} or {errors})."""
        try:
            body = response.json()
        except ValueError:
            body = None

        message = response.reason_phrase or "Request failed"
        errors = None
        if isinstance(body, dict):
            message = body.get("error") or message
            errors = body.get("errors")
            if errors:
                message = "; ".join(issue.get("message", "") for issue in errors)

        logger.warning(
            "%s %s failed with %d: %s",
            response.request.method,
            response.request.url.path,
            response.status_code,
            message,
        )
        return NotesApiError(status_code=response.status_code, message=message, errors=errors)
