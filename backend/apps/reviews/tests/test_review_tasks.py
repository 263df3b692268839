from apps.catalog.services.mongo_service import mongo_service
from apps.reviews.services.mongo_reviews import mongo_reviews
from apps.reviews.tasks import recompute_all_book_stats, recompute_book_stats


def test_recompute_book_stats_task_returns_updated_book(make_book):
    make_book(id="book-1")
    mongo_reviews._memory_reviews.append({"_id": "r1", "bookId": "book-1", "rating": 4})

    book = recompute_book_stats.run("book-1")

    assert book["reviewCount"] == 1
    assert book["rating"] == 4.0


def test_recompute_all_book_stats_heals_drift(make_book):
    make_book(id="book-1", rating=1.0, reviewCount=7)
    make_book(id="book-2", rating=4.0, reviewCount=2)
    mongo_reviews._memory_reviews.extend(
        [
            {"_id": "r1", "bookId": "book-1", "rating": 5},
            {"_id": "r2", "bookId": "book-1", "rating": 4},
        ]
    )

    processed = recompute_all_book_stats.run()

    assert processed == 2
    assert mongo_service.get_book("book-1")["reviewCount"] == 2
    assert mongo_service.get_book("book-1")["rating"] == 4.5
    assert mongo_service.get_book("book-2")["reviewCount"] == 0
    assert mongo_service.get_book("book-2")["rating"] == 0.0
