from collections.abc import Mapping

from rest_framework import permissions, status, viewsets
from rest_framework.response import Response

from ..common.params import coerce_int, is_blank
from .services.mongo_cart import mongo_cart


def _body(request):
    # Non-object JSON bodies (lists, strings) carry no fields.
    return request.data if isinstance(request.data, Mapping) else {}


class CartViewSet(viewsets.ViewSet):
    permission_classes = [permissions.AllowAny]
    failure_messages = {
        "list": "Failed to fetch cart items",
        "create": "Failed to add item to cart",
        "update": "Failed to update cart item",
        "destroy": "Failed to remove item from cart",
        "summary": "Failed to calculate cart total",
    }

    def list(self, request):
        return Response(mongo_cart.list_items())

    def create(self, request):
        data = _body(request)
        book_id = data.get("bookId")
        quantity = data.get("quantity")
        if is_blank(book_id) or quantity in (None, ""):
            return Response(
                {"detail": "Missing required fields: bookId and quantity"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        quantity_value = coerce_int(quantity)
        if quantity_value is None or quantity_value < 1:
            return Response({"detail": "quantity must be a positive integer"}, status=status.HTTP_400_BAD_REQUEST)
        item = mongo_cart.add_item(book_id.strip(), quantity_value)
        return Response({"message": "Item added to cart successfully", "item": item})

    def update(self, request):
        data = _body(request)
        item_id = data.get("id")
        quantity = data.get("quantity")
        if is_blank(item_id) or quantity in (None, ""):
            return Response(
                {"detail": "Missing required fields: id and quantity"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        quantity_value = coerce_int(quantity)
        if quantity_value is None:
            return Response({"detail": "quantity must be an integer"}, status=status.HTTP_400_BAD_REQUEST)
        if not mongo_cart.update_item(item_id, quantity_value):
            return Response({"detail": "Cart item not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"message": "Cart item updated successfully"})

    def destroy(self, request):
        if request.query_params.get("clearAll") == "true":
            mongo_cart.clear()
            return Response({"message": "Cart cleared successfully"})
        item_id = request.query_params.get("itemId")
        if not item_id:
            return Response(
                {"detail": "Missing required parameter: itemId"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if not mongo_cart.remove_item(item_id):
            return Response({"detail": "Cart item not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"message": "Item removed from cart successfully", "itemId": item_id})

    def summary(self, request):
        return Response(mongo_cart.summary())


cart = CartViewSet.as_view({"get": "list", "post": "create", "put": "update", "delete": "destroy"})
cart_summary = CartViewSet.as_view({"get": "summary"})
