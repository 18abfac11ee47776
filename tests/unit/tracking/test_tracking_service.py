"""Unit tests for TrackingService."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.core.exceptions import AuthorizationError
from modules.core.policies import Principal
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import OrderNotFound
from modules.tracking.constants import TrackingStatus
from modules.tracking.dtos import RecordTrackingDTO, UpdateTrackingDTO
from modules.tracking.exceptions import TrackingEventNotFound
from modules.tracking.services import build_tracking_service

pytestmark = pytest.mark.unit


@pytest.fixture()
def tracking_service():
    return build_tracking_service()


@pytest.fixture()
def in_production_order(order_service, manager_principal, pending_order):
    order_service.approve_order(manager_principal, pending_order.id)
    return order_service.set_status(
        manager_principal, pending_order.id, OrderStatus.IN_PRODUCTION
    )


def _record(order, status=TrackingStatus.CUTTING_STARTED, **extra) -> RecordTrackingDTO:
    return RecordTrackingDTO(order_id=order.id, status=status, location="Plant 2", **extra)


class TestRecordEvent:
    def test_checkpoint_leaves_order_untouched(
        self, tracking_service, manager_principal, in_production_order
    ):
        event, order = tracking_service.record_event(
            manager_principal, _record(in_production_order)
        )
        assert event.status == TrackingStatus.CUTTING_STARTED
        assert event.created_by_id == manager_principal.id
        assert order.order_status == OrderStatus.IN_PRODUCTION

    def test_delivered_completes_order(
        self, tracking_service, manager_principal, in_production_order
    ):
        _, order = tracking_service.record_event(
            manager_principal, _record(in_production_order, TrackingStatus.DELIVERED)
        )
        assert order.order_status == OrderStatus.COMPLETED
        assert order.completed_at is not None

    def test_delivered_on_cancelled_order_keeps_it_cancelled(
        self, tracking_service, order_service, buyer_principal, manager_principal, pending_order
    ):
        order_service.cancel_order(buyer_principal, pending_order.id)

        event, order = tracking_service.record_event(
            manager_principal, _record(pending_order, TrackingStatus.DELIVERED)
        )

        assert event.pk is not None
        assert order.order_status == OrderStatus.CANCELLED

    def test_buyer_cannot_record(self, tracking_service, buyer_principal, pending_order):
        with pytest.raises(AuthorizationError):
            tracking_service.record_event(buyer_principal, _record(pending_order))

    def test_unknown_order_is_reported_first(self, tracking_service, buyer_principal):
        dto = RecordTrackingDTO(
            order_id=uuid4(), status=TrackingStatus.PACKED, location="Plant 2"
        )
        with pytest.raises(OrderNotFound):
            tracking_service.record_event(buyer_principal, dto)

    def test_images_are_stored(self, tracking_service, manager_principal, pending_order):
        event, _ = tracking_service.record_event(
            manager_principal,
            _record(pending_order, images=["https://cdn.example.com/cut.jpg"]),
        )
        assert event.images == ["https://cdn.example.com/cut.jpg"]


class TestUpdateEvent:
    def test_correction_to_delivered_completes_order(
        self, tracking_service, order_service, manager_principal, in_production_order
    ):
        event, _ = tracking_service.record_event(
            manager_principal, _record(in_production_order, TrackingStatus.SHIPPED)
        )

        updated = tracking_service.update_event(
            manager_principal, event.id, UpdateTrackingDTO(status=TrackingStatus.DELIVERED)
        )

        assert updated.status == TrackingStatus.DELIVERED
        order = order_service.get_order(manager_principal, in_production_order.id)
        assert order.order_status == OrderStatus.COMPLETED

    def test_partial_correction_keeps_other_fields(
        self, tracking_service, manager_principal, pending_order
    ):
        event, _ = tracking_service.record_event(
            manager_principal, _record(pending_order, notes="Batch 7")
        )

        updated = tracking_service.update_event(
            manager_principal, event.id, UpdateTrackingDTO(location="Plant 3")
        )

        assert updated.location == "Plant 3"
        assert updated.notes == "Batch 7"
        assert updated.status == TrackingStatus.CUTTING_STARTED

    def test_unknown_checkpoint(self, tracking_service, manager_principal):
        with pytest.raises(TrackingEventNotFound):
            tracking_service.update_event(manager_principal, uuid4(), UpdateTrackingDTO())

    def test_buyer_cannot_update(self, tracking_service, buyer_principal):
        with pytest.raises(AuthorizationError):
            tracking_service.update_event(buyer_principal, uuid4(), UpdateTrackingDTO())


class TestListForOrder:
    def test_owner_sees_checkpoints_in_order(
        self, tracking_service, manager_principal, buyer_principal, pending_order
    ):
        for status in (TrackingStatus.ORDER_PLACED, TrackingStatus.CUTTING_STARTED):
            tracking_service.record_event(manager_principal, _record(pending_order, status))

        events = tracking_service.list_for_order(buyer_principal, pending_order.id)

        assert [e.status for e in events] == [
            TrackingStatus.ORDER_PLACED,
            TrackingStatus.CUTTING_STARTED,
        ]

    def test_other_buyer_is_denied(self, tracking_service, other_buyer, pending_order):
        with pytest.raises(AuthorizationError):
            tracking_service.list_for_order(Principal.from_user(other_buyer), pending_order.id)
