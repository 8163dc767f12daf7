"""NoteVault persistence models: BSON document shapes for notes and attachments."""
