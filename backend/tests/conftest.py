"""
NoteVault Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Tests run without a MongoDB server: store-level tests drive a mocked
       pymongo collection, everything above the store uses an in-memory fake.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_collection: MagicMock/AsyncMock stand-in for AsyncCollection
    ├── fake_store: In-memory NoteStore with the same semantics
    ├── note_payload: Valid POST /notes body
    └── test_client: HTTPX AsyncClient wired to create_app() and fake_store
"""

import os

# Settings are read on first import of notevault.config, so these go first
os.environ["MONGODB_URI"] = "mongodb://localhost:27017"
os.environ["MONGODB_DB"] = "notevault_test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

import copy
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

from notevault.exceptions import ConflictError, NotFoundError
from notevault.models.note import AttachmentEntry
from notevault.services.note_store import parse_object_id


# ══════════════════════════════════════════════════════════════════════════
# In-Memory Note Store
# ══════════════════════════════════════════════════════════════════════════

def _without_content(document: Dict[str, Any]) -> Dict[str, Any]:
    projected = copy.deepcopy(document)
    for item in projected.get("attachments", []):
        item.pop("content", None)
    return projected


class FakeNoteStore:
    """
    In-memory NoteStore.

    Mirrors NoteStore's observable behavior: id validation before lookup,
    version bookkeeping, conflict detection, newest-first ordering and the
    content-free projection on every note read.
    """

    def __init__(self) -> None:
        self.documents: Dict[ObjectId, Dict[str, Any]] = {}
        self.reachable = True
        self.writes = 0

    async def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        document = copy.deepcopy(fields)
        document["_id"] = ObjectId()
        document["version"] = 1
        self.documents[document["_id"]] = document
        self.writes += 1
        return _without_content(document)

    async def list_notes(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        documents = list(self.documents.values())
        if search and search.strip():
            term = search.strip().lower()
            documents = [
                doc for doc in documents
                if term in doc["title"].lower() or term in doc["content"].lower()
            ]
        documents.sort(key=lambda doc: (doc["createdAt"], doc["_id"]), reverse=True)
        return [_without_content(doc) for doc in documents]

    async def get(self, note_id: str) -> Dict[str, Any]:
        oid = parse_object_id(note_id)
        if oid not in self.documents:
            raise NotFoundError(resource="note", resource_id=note_id)
        return _without_content(self.documents[oid])

    async def update(
        self,
        note_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Dict[str, Any]:
        oid = parse_object_id(note_id)
        document = self.documents.get(oid)
        if document is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        if expected_version is not None and document["version"] != expected_version:
            raise ConflictError(
                note_id=note_id,
                expected_version=expected_version,
                current_version=document["version"],
            )
        document.update(copy.deepcopy(fields))
        document["version"] += 1
        self.writes += 1
        return _without_content(document)

    async def delete(self, note_id: str) -> None:
        oid = parse_object_id(note_id)
        if self.documents.pop(oid, None) is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        self.writes += 1

    async def find_attachment_by_id(self, attachment_id: str) -> AttachmentEntry:
        parse_object_id(attachment_id, resource="attachment")
        for document in self.documents.values():
            for item in document.get("attachments", []):
                if item["_id"] == attachment_id:
                    return AttachmentEntry.from_document(item)
        raise NotFoundError(resource="attachment", resource_id=attachment_id)

    async def stats(self) -> Dict[str, Any]:
        return {"db": "notevault_test", "collections": 1, "objects": len(self.documents)}

    async def ping(self) -> bool:
        return self.reachable


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_collection():
    """
    Provides a mock pymongo AsyncCollection.

    find() and sort() are synchronous in the async driver (they build a
    cursor); to_list() and every write are awaited.

    Usage:
        mock_collection.find_one.return_value = {"_id": oid, ...}
        store = NoteStore(mock_collection)
    """
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock()
    collection.create_index = AsyncMock()
    collection.database.command = AsyncMock(return_value={"ok": 1.0})

    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value.sort.return_value = cursor
    return collection


@pytest.fixture
def fake_store():
    return FakeNoteStore()


@pytest.fixture
def note_payload():
    """A valid create/update body with one attachment ("Hello")."""
    return {
        "title": "Quarterly plan",
        "content": "<p>Draft</p>",
        "priority": "high",
        "createdAt": "2024-05-01T10:00:00Z",
        "attachments": [
            {"name": "spec.pdf", "type": "application/pdf", "content": "SGVsbG8="},
        ],
    }


@pytest_asyncio.fixture
async def test_client(fake_store):
    """
    Provides an async HTTP test client for endpoint testing.

    ASGITransport does not run the lifespan, so no MongoDB client is ever
    created; every route receives fake_store through the dependency override.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from notevault.database import get_note_store
    from notevault.main import create_app

    app = create_app()
    app.dependency_overrides[get_note_store] = lambda: fake_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
