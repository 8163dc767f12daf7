"""
NoteVault Backend — Database Stats Route
==========================================

What:  GET /db/stats returns MongoDB's dbStats output for the notes database.
Who:   Operators checking storage growth; embedded attachments make
       `dataSize` grow quickly.
"""

import json

from bson import json_util
from fastapi import APIRouter, Depends

from notevault.database import get_note_store
from notevault.schemas.note import DbStatsResponse, ErrorResponse
from notevault.services.note_store import NoteStore

router = APIRouter(tags=["Database"])


@router.get(
    "/db/stats",
    response_model=DbStatsResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="Database statistics",
)
async def db_stats(store: NoteStore = Depends(get_note_store)) -> DbStatsResponse:
    raw = await store.stats()
    # Replica sets add BSON Timestamps ($clusterTime, operationTime)
    stats = json.loads(json_util.dumps(raw, json_options=json_util.RELAXED_JSON_OPTIONS))
    return DbStatsResponse(stats=stats)
