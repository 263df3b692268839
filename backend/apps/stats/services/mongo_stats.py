from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List

from ...cart.services.mongo_cart import mongo_cart
from ...catalog.services.mongo_service import mongo_service
from ...common.services.mongo_client import mongo_connection
from ...reviews.services.mongo_reviews import mongo_reviews

GENRE_PIPELINE: List[Dict[str, Any]] = [
    # Deduplicate inside each book so a repeated genre counts once.
    {"$project": {"genre": {"$setUnion": [{"$ifNull": ["$genre", []]}, []]}}},
    {"$unwind": "$genre"},
    {"$group": {"_id": "$genre", "count": {"$sum": 1}}},
    {"$sort": {"count": -1, "_id": 1}},
]

RATING_PIPELINE: List[Dict[str, Any]] = [
    {"$group": {"_id": None, "avgRating": {"$avg": "$rating"}}},
]


@dataclass
class MongoStatsService:
    """Store-wide counters, recomputed on every call."""

    def db(self):
        return mongo_connection.database()

    def collect(self) -> Dict[str, Any]:
        database = self.db()
        if database is None:
            return self._memory_stats()
        books = database.books
        rating_rows = list(books.aggregate(RATING_PIPELINE))
        average = rating_rows[0]["avgRating"] if rating_rows else None
        return {
            "totalBooks": books.count_documents({}),
            "totalReviews": database.reviews.count_documents({}),
            "cartItems": database.cart.count_documents({}),
            "featuredBooks": books.count_documents({"featured": True}),
            "inStockBooks": books.count_documents({"inStock": True}),
            "averageRating": round(average or 0, 2),
            "genres": [{"genre": row["_id"], "count": row["count"]} for row in books.aggregate(GENRE_PIPELINE)],
        }

    def _memory_stats(self) -> Dict[str, Any]:
        books = mongo_service._memory_books
        ratings = [
            book["rating"]
            for book in books
            if isinstance(book.get("rating"), (int, float)) and not isinstance(book.get("rating"), bool)
        ]
        genres: Counter = Counter()
        for book in books:
            genres.update(set(book.get("genre") or []))
        return {
            "totalBooks": len(books),
            "totalReviews": len(mongo_reviews._memory_reviews),
            "cartItems": len(mongo_cart._memory_items),
            "featuredBooks": sum(1 for book in books if book.get("featured") is True),
            "inStockBooks": sum(1 for book in books if book.get("inStock") is True),
            "averageRating": round(sum(ratings) / len(ratings), 2) if ratings else 0,
            "genres": [
                {"genre": genre, "count": count}
                for genre, count in sorted(genres.items(), key=lambda pair: (-pair[1], pair[0]))
            ],
        }


mongo_stats = MongoStatsService()
