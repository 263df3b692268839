from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

import structlog
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ...catalog.services.mongo_service import mongo_service, sort_documents
from ...common.services.mongo_client import mongo_connection, new_document_id, serialize, serialize_many

logger = structlog.get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class MongoCartService:
    """The single, global shopping cart: one line per ``bookId``."""

    _memory_items: List[Dict[str, Any]] = field(default_factory=list)

    def db(self):
        return mongo_connection.database()

    def list_items(self) -> List[Dict[str, Any]]:
        database = self.db()
        if database is None:
            return serialize_many(sort_documents(self._memory_items, [("addedAt", DESCENDING)]))
        return serialize_many(database.cart.find({}).sort([("addedAt", DESCENDING)]))

    def get_item_by_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        database = self.db()
        if database is None:
            return serialize(self._memory_item_by_book(book_id))
        return serialize(database.cart.find_one({"bookId": book_id}))

    def add_item(self, book_id: str, quantity: int) -> Dict[str, Any]:
        """Add ``quantity`` copies of a book, merging into its existing line.

        MongoDB applies the increment atomically in one upsert. The memory
        store does a plain read-modify-write, so concurrent callers there can
        lose increments.
        """
        database = self.db()
        if database is None:
            existing = self._memory_item_by_book(book_id)
            if existing is not None:
                existing["quantity"] = existing.get("quantity", 0) + quantity
                existing["addedAt"] = _now()
                return serialize(existing)
            document = {"_id": new_document_id("cart"), "bookId": book_id, "quantity": quantity, "addedAt": _now()}
            self._memory_items.append(document)
            return serialize(document)

        try:
            document = self._upsert(database, book_id, quantity)
        except DuplicateKeyError:
            # A concurrent first insert won the unique index; the line exists now.
            logger.info("cart_upsert_retry", book_id=book_id)
            document = self._upsert(database, book_id, quantity)
        return serialize(document)

    def _upsert(self, database, book_id: str, quantity: int) -> Dict[str, Any]:
        return database.cart.find_one_and_update(
            {"bookId": book_id},
            {
                "$inc": {"quantity": quantity},
                "$set": {"addedAt": _now()},
                "$setOnInsert": {"_id": new_document_id("cart")},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    def update_item(self, item_id: str, quantity: int) -> bool:
        """Set an item's quantity; zero or less removes it. False if unknown."""
        if quantity <= 0:
            return self.remove_item(item_id)
        database = self.db()
        if database is None:
            item = self._memory_item(item_id)
            if item is None:
                return False
            item["quantity"] = quantity
            return True
        result = database.cart.update_one({"_id": item_id}, {"$set": {"quantity": quantity}})
        return result.matched_count > 0

    def remove_item(self, item_id: str) -> bool:
        database = self.db()
        if database is None:
            item = self._memory_item(item_id)
            if item is None:
                return False
            self._memory_items.remove(item)
            return True
        result = database.cart.delete_one({"_id": item_id})
        return result.deleted_count > 0

    def clear(self) -> int:
        database = self.db()
        if database is None:
            removed = len(self._memory_items)
            self._memory_items.clear()
            return removed
        return database.cart.delete_many({}).deleted_count

    def summary(self) -> Dict[str, Any]:
        items = self.list_items()
        books = mongo_service.get_books(item["bookId"] for item in items)
        subtotal = Decimal("0")
        for item in items:
            book = books.get(item["bookId"])
            if book is None:
                logger.warning("cart_item_book_missing", item_id=item["id"], book_id=item["bookId"])
                continue
            subtotal += Decimal(str(book.get("price", 0))) * item["quantity"]
        return {
            "items": len(items),
            "subtotal": float(subtotal.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
        }

    def _memory_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        for item in self._memory_items:
            if str(item.get("_id")) == str(item_id):
                return item
        return None

    def _memory_item_by_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        for item in self._memory_items:
            if item.get("bookId") == book_id:
                return item
        return None


mongo_cart = MongoCartService()
