"""
NoteKeeper Backend: Middleware Package
=======================================

Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → [Unhandled errors → 500] → Route Handler

    Request ID runs first so the access log line and every handler log
    line of a request share the same correlation id.
"""
