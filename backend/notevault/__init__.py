"""
NoteVault Backend — Application Package Initializer
=====================================================

What: The `notevault` package: a notes API whose notes carry embedded
      binary attachments.
Who:  Imported by uvicorn (notevault.main:app) and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Codec, builder, streaming
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← BSON documents + Pydantic
    ├─────────────────────────────────────┤
    │      Note Store (Persistence)       │  ← pymongo async collection
    └─────────────────────────────────────┘

    Attachments live inside their note's document; there is no separate
    attachment collection and no filesystem storage.
"""

__version__ = "1.0.0"
