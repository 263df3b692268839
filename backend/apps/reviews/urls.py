from django.urls import path

from .views import book_reviews, review_list

urlpatterns = [
    path("reviews", review_list, name="review-list"),
    path("books/<str:book_id>/reviews", book_reviews, name="book-reviews"),
]
