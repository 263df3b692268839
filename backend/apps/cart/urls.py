from django.urls import path

from .views import cart, cart_summary

urlpatterns = [
    path("cart", cart, name="cart"),
    path("cart/summary", cart_summary, name="cart-summary"),
]
