from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from django.conf import settings
from pymongo import MongoClient
from pymongo.database import Database

MEMORY_BACKEND = "memory"


@dataclass
class MongoConnection:
    """Process-wide MongoClient, created on first use and reused afterwards.

    ``database()`` returns ``None`` when the memory backend is configured; the
    services then fall back to their in-process document lists.
    """

    _client: Optional[MongoClient] = field(init=False, default=None, repr=False)
    _client_key: Any = field(init=False, default=None, repr=False)

    def uses_memory(self) -> bool:
        return settings.STORE_BACKEND == MEMORY_BACKEND

    def client(self) -> MongoClient:
        key = (settings.MONGO_URL, settings.MONGO_TIMEOUT_MS)
        if self._client is None or self._client_key != key:
            self.close()
            self._client = MongoClient(settings.MONGO_URL, serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS)
            self._client_key = key
        return self._client

    def database(self) -> Optional[Database]:
        if self.uses_memory():
            return None
        return self.client()[settings.MONGO_DB]

    def close(self) -> None:
        target = self._client
        if target is None:
            return
        try:
            target.close()
        finally:
            self._client = None
            self._client_key = None


mongo_connection = MongoConnection()


def new_document_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:16]}"


def serialize(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Map the stored ``_id`` onto the public ``id`` key."""
    if document is None:
        return None
    serialized = {key: value for key, value in document.items() if key not in ("_id", "score")}
    if "_id" in document:
        serialized["id"] = str(document["_id"])
    return serialized


def serialize_many(documents: Iterable[Dict[str, Any]] | None) -> List[Dict[str, Any]]:
    if not documents:
        return []
    return [serialize(document) for document in documents if document is not None]
