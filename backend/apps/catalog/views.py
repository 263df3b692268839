from rest_framework import permissions, status, viewsets
from rest_framework.response import Response

from ..common.params import choice_param, int_param
from ..reviews.services.mongo_reviews import mongo_reviews
from .services.mongo_service import SORT_FIELDS, mongo_service

MAX_PAGE_SIZE = 100
MAX_PAGE = 100_000


class BookViewSet(viewsets.ViewSet):
    permission_classes = [permissions.AllowAny]
    failure_messages = {
        "list": "Failed to fetch books",
        "retrieve": "Failed to fetch book details",
        "featured": "Failed to fetch featured books",
        "genre": "Failed to fetch books by genre",
        "top_rated": "Failed to fetch top-rated books",
        "in_stock": "Failed to fetch in-stock books",
    }

    def list(self, request):
        search = (request.query_params.get("search") or "").strip()
        if search:
            return Response(mongo_service.search_books(search))

        sort = choice_param(request, "sort", "title", SORT_FIELDS)
        order = choice_param(request, "order", "asc", ("asc", "desc"))
        page = int_param(request, "page", 1, maximum=MAX_PAGE)
        page_size = int_param(request, "page_size", MAX_PAGE_SIZE, maximum=MAX_PAGE_SIZE)
        skip = (page - 1) * page_size
        return Response(mongo_service.list_books(sort, order, skip, page_size))

    def retrieve(self, request, pk=None):
        book = mongo_service.get_book(pk)
        if not book:
            return Response({"detail": "Book not found"}, status=status.HTTP_404_NOT_FOUND)
        book["reviews"] = mongo_reviews.list_reviews_for_book(pk)
        return Response(book)

    def featured(self, request):
        books = mongo_service.featured_books()
        return Response({"count": len(books), "books": books})

    def genre(self, request):
        genre = (request.query_params.get("genre") or "").strip()
        if not genre:
            return Response({"detail": "Genre parameter is required"}, status=status.HTTP_400_BAD_REQUEST)
        books = mongo_service.books_by_genre(genre)
        return Response({"genre": genre, "count": len(books), "books": books})

    def top_rated(self, request):
        limit = int_param(request, "limit", 10, maximum=MAX_PAGE_SIZE)
        books = mongo_service.top_rated_books(limit)
        return Response({"count": len(books), "books": books})

    def in_stock(self, request):
        books = mongo_service.books_in_stock()
        return Response({"count": len(books), "books": books})


book_list = BookViewSet.as_view({"get": "list"})
book_detail = BookViewSet.as_view({"get": "retrieve"})
book_featured = BookViewSet.as_view({"get": "featured"})
book_genre = BookViewSet.as_view({"get": "genre"})
book_top_rated = BookViewSet.as_view({"get": "top_rated"})
book_in_stock = BookViewSet.as_view({"get": "in_stock"})
