from django.urls import path

from .views import book_detail, book_featured, book_genre, book_in_stock, book_list, book_top_rated

urlpatterns = [
    path("books", book_list, name="book-list"),
    path("books/featured", book_featured, name="book-featured"),
    path("books/genre", book_genre, name="book-genre"),
    path("books/top-rated", book_top_rated, name="book-top-rated"),
    path("books/in-stock", book_in_stock, name="book-in-stock"),
    path("books/<str:pk>", book_detail, name="book-detail"),
]
