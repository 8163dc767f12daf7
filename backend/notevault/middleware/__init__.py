# Middleware package init
"""
NoteVault Backend — Middleware Package
========================================

Request path (outermost first):
    Request ID → Rate Limit → Logging → GZip → CORS → route

    Request ID runs first so that rate-limit rejections and access-log lines
    already carry the correlation ID.
"""
