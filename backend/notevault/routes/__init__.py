# Routes package init
"""
NoteVault Backend — API Routes Package
========================================

Route Inventory:
    - notes.py:        GET/POST /notes, GET/PUT/DELETE /notes/{id}
    - attachments.py:  GET /attachments/{id}   (streamed download)
    - stats.py:        GET /db/stats
    - health.py:       GET /health

Routes are thin: they extract request data, call a service with the
request's NoteStore, and return a response model. Business rules live in
notevault.services.
"""
