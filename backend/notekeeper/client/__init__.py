"""
NoteKeeper Client
=================

Python counterpart of the browser data-fetching layer: a cached,
retrying HTTP client for the notes API.

    from notekeeper.client import NotesClient
"""

from notekeeper.client.api_client import NotesClient
from notekeeper.client.query_cache import QueryCache

__all__ = ["NotesClient", "QueryCache"]
