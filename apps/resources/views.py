"""API views for resources and their calendars."""

from __future__ import annotations

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.application.query_handlers import (
    CheckAvailabilityHandler,
    CheckAvailabilityQuery,
    GetFreeSlotsHandler,
    GetFreeSlotsQuery,
)
from apps.bookings.calendar import ResourceCalendar

from .models import Resource
from .serializers import (
    AvailabilityQuerySerializer,
    AvailabilityWindowSerializer,
    AvailabilityWindowWriteSerializer,
    FreeSlotsQuerySerializer,
    ResourceSerializer,
    WindowsQuerySerializer,
)


class IsStaffOrReadOnly(permissions.BasePermission):
    """Anyone authenticated may read; only staff may change calendars."""

    def has_permission(self, request, view):  # type: ignore
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user.is_staff)


class ResourceViewSet(viewsets.ReadOnlyModelViewSet):
    """Catalog of active resources."""

    queryset = Resource.objects.filter(is_active=True)
    serializer_class = ResourceSerializer
    permission_classes = [permissions.IsAuthenticated]


class ResourceAvailabilityView(APIView):
    """Is [start, end) free, which bookings collide, and what would it cost."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, resource_id):  # type: ignore
        params = AvailabilityQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        report = CheckAvailabilityHandler().handle(
            CheckAvailabilityQuery(
                resource_id=resource_id,
                start=params.validated_data["start"],
                end=params.validated_data["end"],
            )
        )
        return Response(report.to_dict())


class ResourceFreeSlotsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, resource_id):  # type: ignore
        params = FreeSlotsQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        slots = GetFreeSlotsHandler().handle(
            GetFreeSlotsQuery(
                resource_id=resource_id,
                date=params.validated_data["date"],
                duration_minutes=params.validated_data["duration"],
            )
        )
        return Response({"resource_id": resource_id, "slots": [slot.to_dict() for slot in slots]})


class ResourceWindowListView(APIView):
    """Available windows of one day (GET) and window creation for staff (POST)."""

    permission_classes = [IsStaffOrReadOnly]

    def get(self, request, resource_id):  # type: ignore
        params = WindowsQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        windows = ResourceCalendar().windows_for_day(resource_id, params.validated_data["date"])
        return Response(AvailabilityWindowSerializer(windows, many=True).data)

    def post(self, request, resource_id):  # type: ignore
        serializer = AvailabilityWindowWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        window = ResourceCalendar().add_window(
            resource_id,
            serializer.validated_data["start_time"],
            serializer.validated_data["end_time"],
            is_available=serializer.validated_data["is_available"],
        )
        return Response(AvailabilityWindowSerializer(window).data, status=status.HTTP_201_CREATED)


class ResourceWindowDetailView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def delete(self, request, pk):  # type: ignore
        ResourceCalendar().remove_window(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
