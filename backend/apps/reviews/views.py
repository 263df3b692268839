from collections.abc import Mapping

from rest_framework import permissions, status, viewsets
from rest_framework.response import Response

from ..common.params import choice_param, coerce_int, is_blank
from ..common.services.redis_service import anti_spam_check
from .services.mongo_reviews import REVIEW_SORT_FIELDS, mongo_reviews

REQUIRED_FIELDS = ("author", "rating", "title", "comment")


class ReviewViewSet(viewsets.ViewSet):
    permission_classes = [permissions.AllowAny]
    failure_messages = {
        "create": "Failed to create review",
        "list": "Failed to fetch reviews",
        "list_all": "Failed to fetch reviews",
    }

    def create(self, request, book_id=None):
        data = request.data if isinstance(request.data, Mapping) else {}
        missing = [
            name
            for name in REQUIRED_FIELDS
            if (data.get(name) in (None, "") if name == "rating" else is_blank(data.get(name)))
        ]
        if missing:
            return Response(
                {"detail": f"Missing required fields: {', '.join(missing)}"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        rating_value = coerce_int(data.get("rating"))
        if rating_value is None or rating_value < 1 or rating_value > 5:
            return Response({"detail": "Rating must be between 1 and 5"}, status=status.HTTP_400_BAD_REQUEST)
        if anti_spam_check(data["author"]):
            return Response({"detail": "Too many reviews in a short time"}, status=status.HTTP_429_TOO_MANY_REQUESTS)

        review = mongo_reviews.create_review(
            {
                "bookId": book_id,
                "author": data["author"].strip(),
                "rating": rating_value,
                "title": data["title"].strip(),
                "comment": data["comment"].strip(),
            }
        )
        return Response(
            {"message": "Review created successfully", "review": review},
            status=status.HTTP_201_CREATED,
        )

    def list(self, request, book_id=None):
        sort = choice_param(request, "sort", "timestamp", REVIEW_SORT_FIELDS)
        order = choice_param(request, "order", "desc", ("asc", "desc"))
        return Response(mongo_reviews.list_reviews_for_book(book_id, sort=sort, order=order))

    def list_all(self, request):
        book_id = request.query_params.get("bookId")
        if book_id:
            reviews = mongo_reviews.list_reviews_for_book(book_id)
        else:
            reviews = mongo_reviews.list_reviews()
        return Response({"count": len(reviews), "reviews": reviews})


book_reviews = ReviewViewSet.as_view({"get": "list", "post": "create"})
review_list = ReviewViewSet.as_view({"get": "list_all"})
