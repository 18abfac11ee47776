"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.  Domain
exceptions propagate to ``domain_exception_handler``, which renders the
structured error body; the views never catch them.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.core.policies import Principal
from modules.orders.dtos import CreateOrderDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    SetStatusSerializer,
    StatusHistorySerializer,
    TransitionSerializer,
)
from modules.orders.services import build_order_service


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    pagination_class = StandardResultsSetPagination
    filterset_class = OrderFilter
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    ordering_fields = ["created_at", "total_price", "order_status"]
    ordering = ["-created_at", "-id"]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Define escopos de throttling por ação."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "history"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_orders(self._principal())

    def _principal(self) -> Principal:
        return Principal.from_user(self.request.user)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = CreateOrderDTO(**serializer.validated_data, email=request.user.email)
        order = self._service.create_order(self._principal(), dto)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Buyers only see their own orders.  Filtering (status, payment
        status, product, date range) is handled by ``OrderFilter``.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(self._principal(), pk)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"])
    def history(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/history/"""
        records = self._service.get_history(self._principal(), pk)
        return Response(StatusHistorySerializer(records, many=True).data)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put"])
    def approve(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/approve/"""
        notes = self._notes(request)
        order = self._service.approve_order(self._principal(), pk, notes=notes)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["put"])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/reject/

        Releases the reserved stock back to the product.
        """
        notes = self._notes(request)
        order = self._service.reject_order(self._principal(), pk, notes=notes)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["put"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/cancel/"""
        notes = self._notes(request)
        order = self._service.cancel_order(self._principal(), pk, notes=notes)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/status/"""
        serializer = SetStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.set_status(
            self._principal(),
            pk,
            serializer.validated_data["status"],
            notes=serializer.validated_data["notes"],
        )
        return Response(OrderSerializer(order).data)

    @staticmethod
    def _notes(request: Request) -> str:
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data["notes"]
