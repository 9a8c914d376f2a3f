"""
NoteKeeper Backend: API Routes Package
=======================================

Route Inventory:
    - notes.py:   GET/POST       /api/notes
                  GET/PATCH/DELETE /api/notes/{id}
    - health.py:  GET            /health

Routes stay thin: parse the request, call the repository, shape the
response. Status codes for failures come from the exception handlers in
main.py.
"""
