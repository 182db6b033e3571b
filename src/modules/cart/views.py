"""Cart API views.

Every endpoint acts on the cart of ``request.user``; a line owned by
someone else is reported as not found.
"""

from __future__ import annotations

from uuid import UUID

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.cart.dtos import AddCartItemDTO, UpdateCartItemDTO
from modules.cart.exceptions import CartItemNotFound
from modules.cart.repositories import CartDjangoRepository
from modules.cart.serializers import (
    AddCartItemSerializer,
    CartItemSerializer,
    UpdateCartItemSerializer,
)
from modules.cart.services import CartService
from modules.catalog.exceptions import (
    InsufficientStock,
    ProductNotFound,
    VariantNotFound,
)
from modules.catalog.repositories import ProductDjangoRepository


def _cart_service() -> CartService:
    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


def _cart_response(owner_id: int, status_code: int = status.HTTP_200_OK) -> Response:
    items = _cart_service().get_cart(owner_id)
    return Response(
        {"items": CartItemSerializer(items, many=True).data},
        status=status_code,
    )


class CartView(APIView):
    """GET / DELETE /api/v1/cart/"""

    def get(self, request: Request) -> Response:
        return _cart_response(request.user.pk)

    def delete(self, request: Request) -> Response:
        _cart_service().clear(request.user.pk)
        return Response({"items": []})


class CartItemListView(APIView):
    """POST /api/v1/cart/items/"""

    def post(self, request: Request) -> Response:
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = AddCartItemDTO(
                owner_id=request.user.pk,
                product_id=data["product_id"],
                quantity=data["quantity"],
                variant=data.get("variant") or None,
            )
            _cart_service().add_item(dto)
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except VariantNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientStock as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return _cart_response(request.user.pk, status.HTTP_201_CREATED)


class CartItemDetailView(APIView):
    """PATCH / DELETE /api/v1/cart/items/{item_id}/"""

    def patch(self, request: Request, item_id: UUID) -> Response:
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            _cart_service().update_item(
                UpdateCartItemDTO(
                    owner_id=request.user.pk,
                    item_id=item_id,
                    quantity=serializer.validated_data["quantity"],
                )
            )
        except CartItemNotFound:
            return Response(
                {"detail": "Cart item not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except VariantNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientStock as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return _cart_response(request.user.pk)

    def delete(self, request: Request, item_id: UUID) -> Response:
        try:
            _cart_service().remove_item(request.user.pk, str(item_id))
        except CartItemNotFound:
            return Response(
                {"detail": "Cart item not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return _cart_response(request.user.pk)
