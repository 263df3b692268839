"""Collection validators and indexes for the bookstore database."""
from __future__ import annotations

from typing import Any, Dict, List

import structlog
from pymongo import ASCENDING, DESCENDING, TEXT, IndexModel

logger = structlog.get_logger(__name__)

COLLECTION_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "books": {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["_id", "title", "author", "price", "isbn"],
            "properties": {
                "_id": {"bsonType": "string"},
                "title": {"bsonType": "string", "minLength": 1},
                "author": {"bsonType": "string", "minLength": 1},
                "description": {"bsonType": "string"},
                "price": {"bsonType": ["double", "int"], "minimum": 0},
                "image": {"bsonType": "string"},
                "isbn": {"bsonType": "string", "pattern": "^978-[0-9]{10}$"},
                "genre": {"bsonType": "array", "items": {"bsonType": "string"}},
                "tags": {"bsonType": "array", "items": {"bsonType": "string"}},
                "datePublished": {"bsonType": "string"},
                "pages": {"bsonType": "int", "minimum": 1},
                "language": {"bsonType": "string"},
                "publisher": {"bsonType": "string"},
                "rating": {"bsonType": ["double", "int"], "minimum": 0, "maximum": 5},
                "reviewCount": {"bsonType": "int", "minimum": 0},
                "inStock": {"bsonType": "bool"},
                "featured": {"bsonType": "bool"},
            },
        }
    },
    "reviews": {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["_id", "bookId", "author", "rating", "title", "comment", "timestamp"],
            "properties": {
                "_id": {"bsonType": "string"},
                "bookId": {"bsonType": "string"},
                "author": {"bsonType": "string", "minLength": 1},
                "rating": {"bsonType": "int", "minimum": 1, "maximum": 5},
                "title": {"bsonType": "string", "minLength": 1},
                "comment": {"bsonType": "string", "minLength": 1},
                "timestamp": {"bsonType": "string"},
                "verified": {"bsonType": "bool"},
            },
        }
    },
    "cart": {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["_id", "bookId", "quantity", "addedAt"],
            "properties": {
                "_id": {"bsonType": "string"},
                "bookId": {"bsonType": "string"},
                "quantity": {"bsonType": "int", "minimum": 1},
                "addedAt": {"bsonType": "string"},
            },
        }
    },
}

COLLECTION_INDEXES: Dict[str, List[IndexModel]] = {
    "books": [
        IndexModel(
            [("title", TEXT), ("author", TEXT), ("description", TEXT), ("tags", TEXT)],
            name="text_search",
        ),
        IndexModel([("featured", ASCENDING)], name="featured_idx"),
        IndexModel([("genre", ASCENDING)], name="genre_idx"),
        IndexModel([("rating", DESCENDING)], name="rating_idx"),
        IndexModel([("datePublished", DESCENDING)], name="date_published_idx"),
        IndexModel([("inStock", ASCENDING)], name="in_stock_idx"),
    ],
    "reviews": [
        IndexModel([("bookId", ASCENDING)], name="book_id_idx"),
        IndexModel([("rating", DESCENDING)], name="rating_idx"),
        IndexModel([("timestamp", DESCENDING)], name="timestamp_idx"),
        IndexModel([("verified", ASCENDING)], name="verified_idx"),
    ],
    "cart": [
        # One line per book; the atomic cart upsert relies on it.
        IndexModel([("bookId", ASCENDING)], name="book_id_idx", unique=True),
        IndexModel([("addedAt", DESCENDING)], name="added_at_idx"),
    ],
}


def initialize_database(database) -> Dict[str, int]:
    """Create or update every collection validator and build its indexes.

    Returns the number of indexes ensured per collection.
    """
    existing = set(database.list_collection_names())
    created: Dict[str, int] = {}
    for name, validator in COLLECTION_SCHEMAS.items():
        if name in existing:
            database.command({"collMod": name, "validator": validator})
            logger.info("collection_validator_updated", collection=name)
        else:
            database.create_collection(name, validator=validator)
            logger.info("collection_created", collection=name)
        indexes = COLLECTION_INDEXES.get(name, [])
        if indexes:
            database[name].create_indexes(indexes)
        created[name] = len(indexes)
        logger.info("collection_indexes_ensured", collection=name, count=len(indexes))
    return created
