from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

import structlog
from django.conf import settings
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import OperationFailure

from ...common.services.mongo_client import (
    mongo_connection,
    new_document_id,
    serialize,
    serialize_many,
)

logger = structlog.get_logger(__name__)

SORT_FIELDS = ("title", "price", "rating", "datePublished")
SEARCH_FIELDS = ("title", "author", "description", "tags")


def _sort_value(value: Any) -> Any:
    # Missing values sort before everything else, like MongoDB's null ordering.
    if value is None:
        return (0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    return (2, str(value))


def sort_documents(documents: Iterable[Dict[str, Any]], keys: List[tuple]) -> List[Dict[str, Any]]:
    result = list(documents)
    # Stable sorts applied from the least significant key outwards.
    for key, direction in reversed(keys):
        result.sort(key=lambda item: _sort_value(item.get(key)), reverse=direction == DESCENDING)
    return result


def matches_query(book: Dict[str, Any], query: str) -> bool:
    """Case-insensitive substring match over the searchable book fields."""
    needle = query.lower()
    for name in SEARCH_FIELDS:
        value = book.get(name)
        values = value if isinstance(value, list) else [value]
        if any(isinstance(item, str) and needle in item.lower() for item in values):
            return True
    return False


@dataclass
class MongoCatalogService:
    _memory_books: List[Dict[str, Any]] = field(default_factory=list)

    def db(self):
        return mongo_connection.database()

    def list_books(self, sort: str = "title", order: str = "asc", skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        sort_direction = DESCENDING if order == "desc" else ASCENDING
        return self._find({}, [(sort, sort_direction)], limit=limit, skip=skip)

    def get_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        database = self.db()
        if database is None:
            return serialize(self._memory_book(book_id))
        return serialize(database.books.find_one({"_id": book_id}))

    def get_books(self, book_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = list(dict.fromkeys(book_ids))
        database = self.db()
        if database is None:
            found = [book for book in self._memory_books if book.get("_id") in ids]
        else:
            found = database.books.find({"_id": {"$in": ids}})
        return {book["id"]: book for book in serialize_many(found)}

    def featured_books(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self._find({"featured": True}, [("rating", DESCENDING)], limit=limit)

    def books_by_genre(self, genre: str, limit: int = 50) -> List[Dict[str, Any]]:
        return self._find({"genre": genre}, [("rating", DESCENDING)], limit=limit)

    def top_rated_books(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self._find(
            {"reviewCount": {"$gt": 0}},
            [("rating", DESCENDING), ("reviewCount", DESCENDING)],
            limit=limit,
        )

    def books_in_stock(self, limit: int = 100) -> List[Dict[str, Any]]:
        return self._find({"inStock": True}, [("title", ASCENDING)], limit=limit)

    def search_books(self, query: str, limit: int = 50) -> List[Dict[str, Any]]:
        database = self.db()
        if database is None:
            return serialize_many([book for book in self._memory_books if matches_query(book, query)][:limit])
        if settings.SEARCH_USE_TEXT_INDEX:
            try:
                cursor = (
                    database.books.find({"$text": {"$search": query}}, {"score": {"$meta": "textScore"}})
                    .sort([("score", {"$meta": "textScore"})])
                    .limit(limit)
                )
                books = serialize_many(cursor)
            except OperationFailure as exc:
                logger.warning("text_search_unavailable", query=query, error=str(exc))
            else:
                if books:
                    return books
        return self._find(self.substring_filter(query), [("title", ASCENDING)], limit=limit)

    @staticmethod
    def substring_filter(query: str) -> Dict[str, Any]:
        pattern = re.escape(query)
        return {"$or": [{name: {"$regex": pattern, "$options": "i"}} for name in SEARCH_FIELDS]}

    def create_book(self, data: Dict[str, Any]) -> Dict[str, Any]:
        document = dict(data)
        if "id" in document:
            document.setdefault("_id", str(document.pop("id")))
        document.setdefault("_id", new_document_id("book"))
        document.setdefault("rating", 0.0)
        document.setdefault("reviewCount", 0)
        document.setdefault("inStock", True)
        document.setdefault("featured", False)
        database = self.db()
        if database is None:
            self._memory_books.append(document)
        else:
            database.books.insert_one(document)
        return serialize(document)

    def update_book(self, book_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Set ``updates`` on an existing book; unknown ids are left alone."""
        database = self.db()
        if database is None:
            book = self._memory_book(book_id)
            if book is None:
                return None
            book.update(updates)
            return serialize(book)
        result = database.books.find_one_and_update(
            {"_id": book_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        return serialize(result)

    def book_ids(self) -> List[str]:
        database = self.db()
        if database is None:
            return [str(book["_id"]) for book in self._memory_books]
        return [str(document["_id"]) for document in database.books.find({}, {"_id": 1})]

    def _find(
        self,
        filters: Dict[str, Any],
        sort: List[tuple],
        limit: int,
        skip: int = 0,
    ) -> List[Dict[str, Any]]:
        database = self.db()
        if database is None:
            data = [book for book in self._memory_books if self._memory_match(book, filters)]
            return serialize_many(sort_documents(data, sort)[skip : skip + limit])
        cursor = database.books.find(filters).sort(sort).skip(skip).limit(limit)
        return serialize_many(cursor)

    def _memory_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        for book in self._memory_books:
            if str(book.get("_id")) == str(book_id):
                return book
        return None

    def _memory_match(self, book: Dict[str, Any], filters: Dict[str, Any]) -> bool:
        checks: Dict[str, Callable[[Any], bool]] = {
            "featured": lambda expected: book.get("featured") is expected,
            "inStock": lambda expected: book.get("inStock") is expected,
            "genre": lambda expected: self._has_genre(book, expected),
            "reviewCount": lambda expected: (book.get("reviewCount") or 0) > expected["$gt"],
        }
        return all(checks[name](expected) for name, expected in filters.items())

    @staticmethod
    def _has_genre(book: Dict[str, Any], expected: Any) -> bool:
        # Arrays match by membership, scalars by equality.
        genre = book.get("genre")
        if isinstance(genre, list):
            return expected in genre
        return genre == expected


mongo_service = MongoCatalogService()
