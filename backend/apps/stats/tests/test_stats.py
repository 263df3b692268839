from django.urls import reverse
from rest_framework.test import APIClient

from apps.cart.services.mongo_cart import mongo_cart
from apps.reviews.services.mongo_reviews import mongo_reviews
from apps.stats.services.mongo_stats import mongo_stats


def test_stats_on_empty_store():
    client = APIClient()
    response = client.get(reverse("stats"))

    assert response.status_code == 200
    assert response.json() == {
        "stats": {
            "totalBooks": 0,
            "totalReviews": 0,
            "cartItems": 0,
            "featuredBooks": 0,
            "inStockBooks": 0,
            "averageRating": 0,
            "genres": [],
        }
    }


def test_stats_counts_and_genre_breakdown(make_book):
    make_book(rating=4.0, featured=True, inStock=True, genre=["Fantasy", "Adventure"])
    make_book(rating=3.5, featured=False, inStock=False, genre=["Fantasy", "Fantasy"])
    make_book(rating=5.0, featured=True, inStock=True, genre=["Poetry"])
    mongo_reviews._memory_reviews.extend([{"_id": "r1"}, {"_id": "r2"}])
    mongo_cart.add_item("book-x", 1)

    stats = APIClient().get(reverse("stats")).json()["stats"]

    assert stats["totalBooks"] == 3
    assert stats["totalReviews"] == 2
    assert stats["cartItems"] == 1
    assert stats["featuredBooks"] == 2
    assert stats["inStockBooks"] == 2
    assert stats["averageRating"] == 4.17
    assert stats["genres"] == [
        {"genre": "Fantasy", "count": 2},
        {"genre": "Adventure", "count": 1},
        {"genre": "Poetry", "count": 1},
    ]


class FakeCollection:
    def __init__(self, counts=None, aggregates=None):
        self.counts = counts or {}
        self.aggregates = aggregates or []

    def count_documents(self, filters):
        return self.counts.get(str(filters), 0)

    def aggregate(self, pipeline):
        return iter(self.aggregates.pop(0))


class FakeDatabase:
    def __init__(self):
        self.books = FakeCollection(
            counts={"{}": 12, "{'featured': True}": 3, "{'inStock': True}": 9},
            aggregates=[[{"_id": None, "avgRating": 4.23456}], [{"_id": "Drama", "count": 5}]],
        )
        self.reviews = FakeCollection(counts={"{}": 40})
        self.cart = FakeCollection(counts={"{}": 2})


def test_mongo_stats_use_store_aggregations(monkeypatch):
    monkeypatch.setattr(mongo_stats, "db", lambda: FakeDatabase())

    stats = mongo_stats.collect()

    assert stats == {
        "totalBooks": 12,
        "totalReviews": 40,
        "cartItems": 2,
        "featuredBooks": 3,
        "inStockBooks": 9,
        "averageRating": 4.23,
        "genres": [{"genre": "Drama", "count": 5}],
    }
