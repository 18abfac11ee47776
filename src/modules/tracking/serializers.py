"""Tracking DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.tracking.constants import TrackingStatus
from modules.tracking.models import TrackingEvent


class RecordTrackingSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    status = serializers.ChoiceField(choices=TrackingStatus.choices)
    location = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    images = serializers.ListField(
        child=serializers.URLField(), required=False, default=list
    )
    estimated_completion_date = serializers.DateTimeField(
        required=False, allow_null=True, default=None
    )


class UpdateTrackingSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=TrackingStatus.choices, required=False)
    location = serializers.CharField(max_length=255, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    images = serializers.ListField(child=serializers.URLField(), required=False)
    estimated_completion_date = serializers.DateTimeField(
        required=False, allow_null=True
    )


class TrackingEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = TrackingEvent
        fields = [
            "id",
            "order_id",
            "status",
            "location",
            "notes",
            "images",
            "estimated_completion_date",
            "created_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
