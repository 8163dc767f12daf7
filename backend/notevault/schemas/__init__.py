"""Pydantic request and response schemas for the NoteVault API."""
