import pytest
from django.urls import reverse
from pymongo.errors import ServerSelectionTimeoutError
from rest_framework.test import APIClient

from apps.catalog.services.mongo_service import mongo_service
from apps.reviews import views as review_views
from apps.reviews.services.mongo_reviews import mongo_reviews


def _review(**overrides):
    payload = {"author": "Sara", "rating": 5, "title": "Loved it", "comment": "Could not put it down."}
    payload.update(overrides)
    return payload


def test_create_review_requires_valid_rating():
    client = APIClient()
    response = client.post(reverse("book-reviews", args=["1"]), _review(rating=6))
    assert response.status_code == 400
    assert response.json() == {"detail": "Rating must be between 1 and 5"}


@pytest.mark.parametrize("rating", [0, 4.5, "four", True])
def test_create_review_rejects_non_integral_or_out_of_range_rating(rating):
    client = APIClient()
    response = client.post(reverse("book-reviews", args=["1"]), _review(rating=rating), format="json")
    assert response.status_code == 400
    assert mongo_reviews._memory_reviews == []


def test_create_review_lists_missing_fields():
    client = APIClient()
    response = client.post(
        reverse("book-reviews", args=["1"]),
        {"author": "  ", "rating": 3},
        format="json",
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "Missing required fields: author, title, comment"}
    assert mongo_reviews._memory_reviews == []


@pytest.mark.parametrize("body", ["hello", [1, 2], 42])
def test_non_object_review_body_is_rejected(body):
    client = APIClient()
    response = client.post(reverse("book-reviews", args=["1"]), body, format="json")

    assert response.status_code == 400
    assert response.json() == {"detail": "Missing required fields: author, rating, title, comment"}
    assert mongo_reviews._memory_reviews == []


def test_first_review_sets_book_aggregates(make_book):
    book = make_book(id="book-1", rating=0.0, reviewCount=0)

    client = APIClient()
    response = client.post(reverse("book-reviews", args=[book["id"]]), _review(rating=5), format="json")

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Review created successfully"
    assert data["review"]["bookId"] == "book-1"
    assert data["review"]["id"].startswith("review-")
    assert data["review"]["verified"] is False
    assert data["review"]["timestamp"]

    updated = mongo_service.get_book("book-1")
    assert updated["reviewCount"] == 1
    assert updated["rating"] == 5.0


def test_each_review_increments_review_count_and_recomputes_mean(make_book):
    make_book(id="book-2")
    client = APIClient()

    for expected_count, rating in enumerate([5, 5, 4], start=1):
        response = client.post(reverse("book-reviews", args=["book-2"]), _review(rating=rating), format="json")
        assert response.status_code == 201
        assert mongo_service.get_book("book-2")["reviewCount"] == expected_count

    assert mongo_service.get_book("book-2")["rating"] == 4.7


def test_form_encoded_rating_is_accepted(make_book):
    make_book(id="book-3")
    client = APIClient()
    response = client.post(reverse("book-reviews", args=["book-3"]), _review(rating="3"))
    assert response.status_code == 201
    assert response.json()["review"]["rating"] == 3


def test_review_for_unknown_book_is_created_without_creating_a_book():
    client = APIClient()
    response = client.post(reverse("book-reviews", args=["ghost"]), _review(), format="json")

    assert response.status_code == 201
    assert mongo_service.get_book("ghost") is None
    assert len(mongo_reviews._memory_reviews) == 1


def test_failed_aggregate_refresh_does_not_fail_review(make_book, monkeypatch):
    make_book(id="book-4", rating=0.0, reviewCount=0)

    def failing_update(book_id, updates):
        raise ServerSelectionTimeoutError("store unreachable")

    monkeypatch.setattr(mongo_service, "update_book", failing_update)

    client = APIClient()
    response = client.post(reverse("book-reviews", args=["book-4"]), _review(), format="json")

    assert response.status_code == 201
    assert len(mongo_reviews._memory_reviews) == 1
    # The book stays stale until the next refresh.
    [stored] = mongo_service._memory_books
    assert stored["reviewCount"] == 0


def test_review_spam_is_rejected(make_book, monkeypatch):
    make_book(id="book-5")
    monkeypatch.setattr(review_views, "anti_spam_check", lambda author: True)

    client = APIClient()
    response = client.post(reverse("book-reviews", args=["book-5"]), _review(), format="json")

    assert response.status_code == 429
    assert mongo_reviews._memory_reviews == []


def test_list_reviews_for_book_newest_first():
    mongo_reviews._memory_reviews.extend(
        [
            {"_id": "r1", "bookId": "b", "rating": 3, "timestamp": "2024-01-01T00:00:00+00:00"},
            {"_id": "r2", "bookId": "b", "rating": 5, "timestamp": "2024-03-01T00:00:00+00:00"},
            {"_id": "r3", "bookId": "c", "rating": 1, "timestamp": "2024-02-01T00:00:00+00:00"},
        ]
    )

    client = APIClient()
    response = client.get(reverse("book-reviews", args=["b"]))

    assert response.status_code == 200
    assert [review["id"] for review in response.json()] == ["r2", "r1"]

    by_rating = client.get(reverse("book-reviews", args=["b"]), {"sort": "rating", "order": "asc"})
    assert [review["id"] for review in by_rating.json()] == ["r1", "r2"]


def test_review_listing_all_and_filtered():
    mongo_reviews._memory_reviews.extend(
        [
            {"_id": "r1", "bookId": "b", "rating": 3, "timestamp": "2024-01-01T00:00:00+00:00"},
            {"_id": "r2", "bookId": "c", "rating": 5, "timestamp": "2024-03-01T00:00:00+00:00"},
        ]
    )

    client = APIClient()
    everything = client.get(reverse("review-list")).json()
    filtered = client.get(reverse("review-list"), {"bookId": "b"}).json()

    assert everything["count"] == 2
    assert [review["id"] for review in everything["reviews"]] == ["r2", "r1"]
    assert filtered == {"count": 1, "reviews": [{"id": "r1", "bookId": "b", "rating": 3,
                                                  "timestamp": "2024-01-01T00:00:00+00:00"}]}
