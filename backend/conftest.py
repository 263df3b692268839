import pytest

from apps.cart.services.mongo_cart import mongo_cart
from apps.catalog.services.mongo_service import mongo_service
from apps.reviews.services.mongo_reviews import mongo_reviews


def _clear_memory_store():
    mongo_service._memory_books.clear()
    mongo_reviews._memory_reviews.clear()
    mongo_cart._memory_items.clear()


@pytest.fixture(autouse=True)
def memory_store(settings):
    settings.STORE_BACKEND = "memory"
    _clear_memory_store()
    yield
    _clear_memory_store()


@pytest.fixture(autouse=True)
def no_redis_limits(monkeypatch):
    # Views import the helpers directly, so patch them where they are used.
    monkeypatch.setattr("apps.common.throttling.rate_limit_hit", lambda scope, identifier: False)
    monkeypatch.setattr("apps.reviews.views.anti_spam_check", lambda author: False)


@pytest.fixture
def make_book():
    def _make_book(**overrides):
        data = {
            "title": "The Silent Library",
            "author": "Amina Yusuf",
            "description": "A quiet mystery set among old shelves.",
            "price": 12.5,
            "isbn": "978-0000000001",
            "genre": ["Mystery"],
            "tags": ["library", "mystery"],
            "datePublished": "2021-04-01",
            "inStock": True,
            "featured": False,
        }
        data.update(overrides)
        return mongo_service.create_book(data)

    return _make_book
