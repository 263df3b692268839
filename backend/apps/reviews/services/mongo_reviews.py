from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Tuple

import structlog
from pymongo import ASCENDING, DESCENDING

from ...catalog.services.mongo_service import mongo_service, sort_documents
from ...common.services.mongo_client import mongo_connection, new_document_id, serialize, serialize_many

logger = structlog.get_logger(__name__)

REVIEW_SORT_FIELDS = ("timestamp", "rating")


def average_rating(total: int, count: int) -> float:
    """Mean rating rounded half-up to one decimal; 0.0 when there are no reviews."""
    if count == 0:
        return 0.0
    mean = Decimal(total) / Decimal(count)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass
class MongoReviewService:
    _memory_reviews: List[Dict[str, Any]] = field(default_factory=list)

    def db(self):
        return mongo_connection.database()

    def create_review(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Persist a validated review, then refresh its book's rating aggregates.

        The two writes are independent: a failed refresh is logged and the
        review is still returned, leaving the book stale until the next
        refresh (see ``recompute_all_book_stats``).
        """
        document = dict(data)
        document["_id"] = new_document_id("review")
        document["timestamp"] = document.get("timestamp") or datetime.now(timezone.utc).isoformat()
        document["verified"] = bool(document.get("verified", False))
        database = self.db()
        if database is None:
            self._memory_reviews.append(document)
        else:
            database.reviews.insert_one(document)
        logger.info("review_created", review_id=document["_id"], book_id=document["bookId"])

        try:
            self.refresh_book_stats(document["bookId"])
        except Exception as exc:
            logger.error(
                "book_stats_refresh_failed",
                book_id=document["bookId"],
                error=str(exc),
                exc_info=exc,
            )
        return serialize(document)

    def list_reviews_for_book(
        self, book_id: str, sort: str = "timestamp", order: str = "desc", limit: int = 50
    ) -> List[Dict[str, Any]]:
        sort_direction = ASCENDING if order == "asc" else DESCENDING
        database = self.db()
        if database is None:
            data = [review for review in self._memory_reviews if review.get("bookId") == book_id]
            return serialize_many(sort_documents(data, [(sort, sort_direction)])[:limit])
        cursor = database.reviews.find({"bookId": book_id}).sort([(sort, sort_direction)]).limit(limit)
        return serialize_many(cursor)

    def list_reviews(self, limit: int = 100) -> List[Dict[str, Any]]:
        database = self.db()
        if database is None:
            return serialize_many(sort_documents(self._memory_reviews, [("timestamp", DESCENDING)])[:limit])
        cursor = database.reviews.find({}).sort([("timestamp", DESCENDING)]).limit(limit)
        return serialize_many(cursor)

    def rating_totals(self, book_id: str) -> Tuple[int, int]:
        """Return ``(sum of ratings, review count)`` for ``book_id``."""
        database = self.db()
        if database is None:
            ratings = [int(review["rating"]) for review in self._memory_reviews if review.get("bookId") == book_id]
            return sum(ratings), len(ratings)
        pipeline = [
            {"$match": {"bookId": book_id}},
            {"$group": {"_id": None, "total": {"$sum": "$rating"}, "count": {"$sum": 1}}},
        ]
        rows = list(database.reviews.aggregate(pipeline))
        if not rows:
            return 0, 0
        return int(rows[0]["total"]), int(rows[0]["count"])

    def refresh_book_stats(self, book_id: str) -> Optional[Dict[str, Any]]:
        """Recompute ``rating``/``reviewCount`` for one book from its reviews.

        Returns the updated book, or ``None`` when no such book exists (no
        book is created).
        """
        total, count = self.rating_totals(book_id)
        updates = {"reviewCount": count, "rating": average_rating(total, count)}
        book = mongo_service.update_book(book_id, updates)
        if book is None:
            logger.info("book_stats_refresh_skipped", book_id=book_id, reason="missing_book")
        else:
            logger.info("book_stats_refreshed", book_id=book_id, **updates)
        return book


mongo_reviews = MongoReviewService()
