"""
NoteKeeper Backend: Services Layer
===================================

Data access used by the route handlers.

Service Inventory:
    - NoteRepository: CRUD façade over the `notes` table, one instance per
      request session (see `get_note_repository`)
"""
