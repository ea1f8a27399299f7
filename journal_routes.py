import csv
import io
import logging
from typing import Any, Dict, Iterable, List

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pymongo.errors import PyMongoError

from analytics import mood_trend_pipeline, trend_rows, window_start
from chat_service import ERROR_REPLY, ChatResponder
from database import Repository
from dependencies import get_chat_repository, get_chat_responder, get_journal_repository
from errors import ApiError, not_found, storage_error
from schemas import (
    ChatMessageOut,
    ChatRequest,
    ChatResponse,
    JournalEntryCreate,
    JournalEntryOut,
    JournalEntryUpdate,
    MessageResponse,
    MoodTrend,
)

router = APIRouter(prefix="/api/journal", tags=["Journal"])
logger = logging.getLogger(__name__)

CHAT_HISTORY_LIMIT = 50
CSV_COLUMNS = ["date", "mood", "title", "content", "tags", "moodScore"]


def parse_entry_id(entry_id: str) -> ObjectId:
    try:
        return ObjectId(entry_id)
    except (InvalidId, TypeError):
        raise ApiError(400, "Invalid id", "invalid_id")


# -------- Literal paths first, so they are not captured by /{entry_id} --------

@router.get("", response_model=List[JournalEntryOut], summary="List journal entries, newest first")
async def list_entries(entries: Repository = Depends(get_journal_repository)):
    try:
        docs = await entries.find_all()
    except PyMongoError as e:
        logger.error(f"Error fetching journal entries: {e}")
        raise storage_error("Failed to fetch journal entries")
    return [JournalEntryOut.from_document(d) for d in docs]


def _csv_rows(docs: Iterable[Dict[str, Any]]):
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    def flush() -> str:
        value = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        return value

    writer.writerow(CSV_COLUMNS)
    yield flush()
    for d in docs:
        date = d.get("date")
        writer.writerow([
            date.isoformat() if date else "",
            d.get("mood", ""),
            d.get("title", ""),
            (d.get("content") or "").replace("\n", " "),
            ";".join(d.get("tags") or []),
            "" if d.get("moodScore") is None else d["moodScore"],
        ])
        yield flush()


@router.get("/export", summary="Export journal entries as CSV")
async def export_entries(entries: Repository = Depends(get_journal_repository)):
    try:
        docs = await entries.find_all()
    except PyMongoError as e:
        logger.error(f"Error exporting journal entries: {e}")
        raise storage_error("Failed to export journal entries")

    return StreamingResponse(_csv_rows(reversed(docs)), media_type="text/csv", headers={
        "Content-Disposition": "attachment; filename=journal.csv"
    })


@router.post("/chat", response_model=ChatResponse, summary="Talk to the support chatbot")
async def chat(
    payload: ChatRequest,
    chats: Repository = Depends(get_chat_repository),
    responder: ChatResponder = Depends(get_chat_responder),
):
    if not payload.message or not payload.message.strip():
        raise ApiError(400, "Message is required", "validation_error")

    try:
        reply = await responder.generate(payload.message)
        await chats.insert({"message": payload.message, "response": reply})
    except Exception:
        # the chat endpoint never fails visibly
        logger.exception("Chat error")
        return ChatResponse(response=ERROR_REPLY)
    return ChatResponse(response=reply)


@router.get("/chat/history", response_model=List[ChatMessageOut], summary="Most recent chat exchanges")
async def chat_history(chats: Repository = Depends(get_chat_repository)):
    try:
        docs = await chats.find_all(limit=CHAT_HISTORY_LIMIT)
    except PyMongoError as e:
        logger.error(f"Error fetching chat history: {e}")
        raise storage_error("Failed to fetch chat history")
    return [ChatMessageOut.from_document(d) for d in docs]


@router.get("/analytics/mood-trends", response_model=List[MoodTrend], summary="Mood counts per day, last 30 days")
async def get_mood_trends(entries: Repository = Depends(get_journal_repository)):
    since = window_start()
    try:
        results = await entries.aggregate(mood_trend_pipeline(since))
    except PyMongoError as e:
        logger.error(f"Error computing mood trends: {e}")
        raise storage_error("Failed to compute mood trends")
    return [MoodTrend(**row) for row in trend_rows(results)]


# -------- Single entry --------

@router.get(
    "/{entry_id}",
    response_model=JournalEntryOut,
    summary="Get a journal entry by ID",
    responses={404: {"description": "Entry not found."}},
)
async def get_entry(entry_id: str, entries: Repository = Depends(get_journal_repository)):
    oid = parse_entry_id(entry_id)
    try:
        doc = await entries.find_by_id(oid)
    except PyMongoError as e:
        logger.error(f"Error retrieving journal entry {entry_id}: {e}")
        raise storage_error("Failed to retrieve journal entry")
    if doc is None:
        raise not_found()
    return JournalEntryOut.from_document(doc)


@router.post("", response_model=JournalEntryOut, status_code=201, summary="Create a journal entry")
async def create_entry(entry: JournalEntryCreate, entries: Repository = Depends(get_journal_repository)):
    try:
        doc = await entries.insert(entry.model_dump(by_alias=True))
    except PyMongoError as e:
        logger.error(f"Error creating journal entry: {e}")
        raise storage_error("Failed to create journal entry")
    logger.info(f"Created journal entry {doc['_id']}")
    return JournalEntryOut.from_document(doc)


@router.put(
    "/{entry_id}",
    response_model=JournalEntryOut,
    summary="Update a journal entry",
    description="Merge the supplied fields into an existing entry; fields left out stay as they are.",
    responses={404: {"description": "Entry not found."}},
)
async def update_entry(
    entry_id: str,
    entry: JournalEntryUpdate,
    entries: Repository = Depends(get_journal_repository),
):
    oid = parse_entry_id(entry_id)
    try:
        doc = await entries.update_by_id(oid, entry.model_dump(exclude_unset=True, by_alias=True))
    except PyMongoError as e:
        logger.error(f"Error updating journal entry {entry_id}: {e}")
        raise storage_error("Failed to update journal entry")
    if doc is None:
        raise not_found()
    return JournalEntryOut.from_document(doc)


@router.delete(
    "/{entry_id}",
    response_model=MessageResponse,
    summary="Delete a journal entry",
    responses={404: {"description": "Entry not found."}},
)
async def delete_entry(entry_id: str, entries: Repository = Depends(get_journal_repository)):
    oid = parse_entry_id(entry_id)
    try:
        doc = await entries.delete_by_id(oid)
    except PyMongoError as e:
        logger.error(f"Error deleting journal entry {entry_id}: {e}")
        raise storage_error("Failed to delete journal entry")
    if doc is None:
        raise not_found()
    logger.info(f"Deleted journal entry {entry_id}")
    return MessageResponse(message="Entry deleted successfully")
