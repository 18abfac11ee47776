"""Tracking API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.core.policies import Principal
from modules.orders.serializers import OrderSerializer
from modules.tracking.dtos import RecordTrackingDTO, UpdateTrackingDTO
from modules.tracking.serializers import (
    RecordTrackingSerializer,
    TrackingEventSerializer,
    UpdateTrackingSerializer,
)
from modules.tracking.services import build_tracking_service


class TrackingViewSet(ViewSet):
    """Checkpoints are appended and corrected, never deleted."""

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_tracking_service()

    def create(self, request: Request) -> Response:
        """POST /api/v1/tracking/"""
        serializer = RecordTrackingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event, order = self._service.record_event(
            Principal.from_user(request.user),
            RecordTrackingDTO(**serializer.validated_data),
        )
        return Response(
            {
                "tracking": TrackingEventSerializer(event).data,
                "order": OrderSerializer(order).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/tracking/{pk}/"""
        serializer = UpdateTrackingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = self._service.update_event(
            Principal.from_user(request.user),
            pk,
            UpdateTrackingDTO(**serializer.validated_data),
        )
        return Response(TrackingEventSerializer(event).data)

    @action(detail=False, methods=["get"], url_path=r"order/(?P<order_id>[^/.]+)")
    def for_order(self, request: Request, order_id: str | None = None) -> Response:
        """GET /api/v1/tracking/order/{order_id}/"""
        events = self._service.list_for_order(
            Principal.from_user(request.user), order_id
        )
        return Response(TrackingEventSerializer(events, many=True).data)
