# Services package init
"""
NoteVault Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and MongoDB (persistence).

Service Inventory (leaves first):
    - codec:              base64 text ⇄ BSON binary payload
    - attachment_builder: raw attachment list → AttachmentEntry objects
    - note_store:         note documents in MongoDB, incl. attachment projection
    - attachment_stream:  AttachmentEntry → lazily streamed HTTP download
    - note_service:       orchestrates builder + store for the note routes

Routes never talk to the driver directly; they receive a NoteStore through
FastAPI's dependency injection and hand it to the services.
"""
