from fastapi import Depends, Request
from pymongo.asynchronous.database import AsyncDatabase

import database
from chat_service import ChatResponder
from database import ASSESSMENT_COLLECTION, CHAT_COLLECTION, JOURNAL_COLLECTION, Repository
from errors import ApiError


def get_database() -> AsyncDatabase:
    if database.db is None:
        raise ApiError(500, "Database not configured", "database_unavailable")
    return database.db


def get_journal_repository(db: AsyncDatabase = Depends(get_database)) -> Repository:
    return Repository(db[JOURNAL_COLLECTION])


def get_assessment_repository(db: AsyncDatabase = Depends(get_database)) -> Repository:
    return Repository(db[ASSESSMENT_COLLECTION], track_updates=False)


def get_chat_repository(db: AsyncDatabase = Depends(get_database)) -> Repository:
    return Repository(db[CHAT_COLLECTION], timestamp_field="timestamp", track_updates=False)


def get_chat_responder(request: Request) -> ChatResponder:
    return request.app.state.chat_responder
