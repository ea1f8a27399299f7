import copy
import itertools
import json
from datetime import datetime, timezone

import httpx
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

from chat_service import ChatResponder
from dependencies import (
    get_assessment_repository,
    get_chat_repository,
    get_chat_responder,
    get_journal_repository,
)
from main import app

CHAT_API_URL = "https://inference.test/models/demo"


class FakeRepository:
    """In-memory stand-in for database.Repository."""

    def __init__(self, timestamp_field="createdAt", track_updates=True):
        self.timestamp_field = timestamp_field
        self.track_updates = track_updates
        self.docs = []
        self.fail = False
        self.pipelines = []
        self._seq = itertools.count()

    def _check(self):
        if self.fail:
            raise PyMongoError("connection refused")

    def _ordered(self, reverse):
        return sorted(self.docs, key=lambda d: (d[self.timestamp_field], d["_seq"]), reverse=reverse)

    @staticmethod
    def _public(doc):
        out = copy.deepcopy(doc)
        out.pop("_seq", None)
        return out

    async def insert(self, data):
        self._check()
        now = datetime.now(timezone.utc)
        payload = {**data}
        payload.setdefault(self.timestamp_field, now)
        if self.track_updates:
            payload["updatedAt"] = now
        payload["_id"] = ObjectId()
        payload["_seq"] = next(self._seq)
        self.docs.append(payload)
        return self._public(payload)

    async def find_all(self, limit=0):
        self._check()
        docs = self._ordered(reverse=True)
        if limit:
            docs = docs[:limit]
        return [self._public(d) for d in docs]

    async def find_by_id(self, oid):
        self._check()
        for d in self.docs:
            if d["_id"] == oid:
                return self._public(d)
        return None

    async def update_by_id(self, oid, changes):
        self._check()
        for d in self.docs:
            if d["_id"] == oid:
                d.update(changes)
                if self.track_updates:
                    d["updatedAt"] = datetime.now(timezone.utc)
                return self._public(d)
        return None

    async def delete_by_id(self, oid):
        self._check()
        for i, d in enumerate(self.docs):
            if d["_id"] == oid:
                return self._public(self.docs.pop(i))
        return None

    async def aggregate(self, pipeline):
        self._check()
        self.pipelines.append(pipeline)
        return run_pipeline([self._public(d) for d in self.docs], pipeline)


def _resolve(doc, expr):
    """Evaluate a "$field" path or a $dateToString expression against ``doc``."""
    if isinstance(expr, str) and expr.startswith("$"):
        return doc.get(expr[1:])
    if isinstance(expr, dict) and "$dateToString" in expr:
        spec = expr["$dateToString"]
        value = _resolve(doc, spec["date"])
        return value.astimezone(timezone.utc).strftime(spec["format"]) if value else None
    return expr


def _dotted(doc, path):
    for part in path.split("."):
        doc = doc.get(part) if isinstance(doc, dict) else None
    return doc


def run_pipeline(docs, pipeline):
    """Evaluates the $match/$group/$sort stages the repository sends."""
    for stage in pipeline:
        (op, arg), = stage.items()
        if op == "$match":
            for field, cond in arg.items():
                docs = [d for d in docs if d.get(field) is not None and d[field] >= cond["$gte"]]
        elif op == "$group":
            groups = {}
            for d in docs:
                key = {k: _resolve(d, v) for k, v in arg["_id"].items()}
                key = {k: v for k, v in key.items() if v is not None}
                groups.setdefault(tuple(sorted(key.items())), (key, []))[1].append(d)
            out = []
            for key, members in groups.values():
                row = {"_id": key}
                for name, acc in arg.items():
                    if name == "_id":
                        continue
                    if "$sum" in acc:
                        row[name] = acc["$sum"] * len(members)
                    elif "$avg" in acc:
                        values = [v for v in (_resolve(m, acc["$avg"]) for m in members) if v is not None]
                        row[name] = sum(values) / len(values) if values else None
                out.append(row)
            docs = out
        elif op == "$sort":
            for path, direction in reversed(list(arg.items())):
                docs.sort(
                    key=lambda d: (_dotted(d, path) is not None, _dotted(d, path) or ""),
                    reverse=direction < 0,
                )
    return docs


class StubChatService:
    """httpx.MockTransport handler imitating the inference API."""

    def __init__(self, suffix=" You are not alone in this."):
        self.suffix = suffix
        self.status_code = 200
        self.payload = None
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.payload is not None:
            return httpx.Response(self.status_code, json=self.payload)
        body = json.loads(request.content)
        return httpx.Response(self.status_code, json=[{"generated_text": body["inputs"] + self.suffix}])


@pytest.fixture
def journal_repo():
    return FakeRepository()


@pytest.fixture
def assessment_repo():
    return FakeRepository(track_updates=False)


@pytest.fixture
def chat_repo():
    return FakeRepository(timestamp_field="timestamp", track_updates=False)


@pytest.fixture
def chat_service():
    return StubChatService()


@pytest.fixture
def responder(chat_service):
    client = httpx.AsyncClient(transport=httpx.MockTransport(chat_service))
    return ChatResponder(CHAT_API_URL, api_key="hf_test", timeout=1.0, client=client)


@pytest.fixture
def client(journal_repo, assessment_repo, chat_repo, responder):
    app.dependency_overrides[get_journal_repository] = lambda: journal_repo
    app.dependency_overrides[get_assessment_repository] = lambda: assessment_repo
    app.dependency_overrides[get_chat_repository] = lambda: chat_repo
    app.dependency_overrides[get_chat_responder] = lambda: responder
    yield TestClient(app)
    app.dependency_overrides.clear()
