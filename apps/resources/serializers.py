"""Serializers for the resource catalog and its calendar."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.application.query_handlers import MAX_SLOT_MINUTES

from .models import AvailabilityWindow, Resource


class ResourceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Resource
        fields = ["id", "title", "code", "description", "hourly_rate", "capacity", "is_active"]
        read_only_fields = fields


class AvailabilityWindowSerializer(serializers.ModelSerializer):
    resource_id = serializers.ReadOnlyField(source="resource.id")

    class Meta:
        model = AvailabilityWindow
        fields = ["id", "resource_id", "start_time", "end_time", "is_available", "created_at"]
        read_only_fields = fields


class AvailabilityWindowWriteSerializer(serializers.Serializer):
    """Only shape is checked here; range and overlap rules live in ResourceCalendar."""

    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    is_available = serializers.BooleanField(default=True)


class AvailabilityQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()


class FreeSlotsQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
    duration = serializers.IntegerField(max_value=MAX_SLOT_MINUTES, help_text="Slot length in minutes.")


class WindowsQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
