"""
NoteVault Backend — MongoDB Client Management
===============================================

What:  Async MongoDB client, collection accessor and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   A single pymongo AsyncMongoClient (which owns its own connection pool)
       is created lazily on first use and shared by every request.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Client is created on the first request (or at startup when indexes are
       ensured); closed during application shutdown.

Why lazy creation:
    The app must be importable (and testable with dependency overrides) on a
    machine with no MongoDB. Nothing touches the network until a store
    operation actually runs.

Persisted layout:
    One collection of note documents. Attachments are embedded as a
    sub-array of binary-bearing sub-documents; there is no attachments
    collection.
"""

import logging
from typing import Optional

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection

from notevault.config import settings
from notevault.services.note_store import NoteStore

logger = logging.getLogger(__name__)

_client: Optional[AsyncMongoClient] = None


def get_client() -> AsyncMongoClient:
    """Return the process-wide client, creating it on first call."""
    global _client
    if _client is None:
        _client = AsyncMongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
            tz_aware=True,
        )
        logger.info(
            "MongoDB client created (db=%s, collection=%s)",
            settings.mongodb_db,
            settings.mongodb_collection,
        )
    return _client


def get_notes_collection() -> AsyncCollection:
    return get_client()[settings.mongodb_db][settings.mongodb_collection]


async def get_note_store() -> NoteStore:
    """
    FastAPI dependency that provides the note store for a request.

    The store is a thin stateless wrapper around the shared collection, so
    building one per request is free. Tests replace this dependency with an
    in-memory fake through app.dependency_overrides.
    """
    return NoteStore(get_notes_collection())


async def close_client() -> None:
    """
    What:  Closes the client and every pooled connection.
    When:  Called during application shutdown (lifespan handler).
    """
    global _client
    if _client is not None:
        await _client.close()
        _client = None
        logger.info("MongoDB client closed")
