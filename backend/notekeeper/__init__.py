"""
NoteKeeper Backend: Application Package
=======================================

What: The `notekeeper` package, a small REST backend for plain-text notes.
Who:  Imported by uvicorn (`notekeeper.main:app`), Alembic, pytest and the
      bundled Python client.

Layering:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  HTTP parsing and status codes
    ├─────────────────────────────────────┤
    │     Repository (Data Access)        │  Queries against `notes`
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  Async engine and sessions
    └─────────────────────────────────────┘

    The `client` subpackage sits outside this stack and talks to the
    routes over HTTP.
"""

__version__ = "1.0.0"
