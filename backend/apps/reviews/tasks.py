from __future__ import annotations

from typing import Any, Dict, Optional

from celery import shared_task
import structlog

from ..catalog.services.mongo_service import mongo_service
from .services.mongo_reviews import mongo_reviews

logger = structlog.get_logger(__name__)


@shared_task
def recompute_book_stats(book_id: str) -> Optional[Dict[str, Any]]:
    return mongo_reviews.refresh_book_stats(book_id)


@shared_task
def recompute_all_book_stats() -> int:
    """Rebuild rating aggregates for every book; heals drift from failed refreshes."""
    processed = 0
    for book_id in mongo_service.book_ids():
        mongo_reviews.refresh_book_stats(book_id)
        processed += 1
    logger.info("book_stats_recomputed", books=processed)
    return processed
