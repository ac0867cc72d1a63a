"""API views for the booking domain."""

from __future__ import annotations

from django.db.models import Q  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .models import PropertyBooking
from .serializers import (
    BookingCancelSerializer,
    BookingConfirmSerializer,
    BookingCreateSerializer,
    BookingSerializer,
)
from .services import BookingStateError, cancel_booking, confirm_booking


def _is_admin(user) -> bool:
    return hasattr(user, "is_platform_admin") and user.is_platform_admin()


class IsBookingStakeholder(permissions.BasePermission):
    """Customers, property owners and administrators can access a booking."""

    def has_object_permission(self, request, view, obj: PropertyBooking):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if _is_admin(user):
            return True
        return obj.user_id == user.id or obj.property.owner_id == user.id


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Create bookings and move them through confirmation and cancellation."""

    queryset = PropertyBooking.objects.select_related("property", "room_type", "user", "property__owner").all()
    permission_classes = [permissions.IsAuthenticated, IsBookingStakeholder]

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action == "confirm":
            return BookingConfirmSerializer
        if self.action == "cancel":
            return BookingCancelSerializer
        return BookingSerializer

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if _is_admin(user):
            scoped = qs
        elif user.is_property_owner():
            scoped = qs.filter(Q(property__owner=user) | Q(user=user))
        else:
            scoped = qs.filter(user=user)

        status_param = self.request.query_params.get("status")
        if status_param:
            scoped = scoped.filter(status=status_param)
        return scoped

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = serializer.save()
        read_serializer = BookingSerializer(booking, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        booking: PropertyBooking = self.get_object()  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = confirm_booking(booking, serializer.validated_data["payment_method"])
        except BookingStateError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: PropertyBooking = self.get_object()  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = cancel_booking(booking, serializer.validated_data["reason"])
        except BookingStateError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data)
