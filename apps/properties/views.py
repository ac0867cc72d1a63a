"""Property API views."""

from __future__ import annotations

import logging
from datetime import timedelta

from django.http import HttpResponse  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import generics, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .filters import PropertyFilterSet
from .models import DiscountRule, Property, RoomType, SeasonalPricing, SpecialEventPricing
from .serializers import (
    AlternativeStaySerializer,
    AvailabilityCheckQuerySerializer,
    AvailabilityResultSerializer,
    AvailabilitySummarySerializer,
    CalendarUpdateSerializer,
    DateWindowQuerySerializer,
    DiscountRuleSerializer,
    MonthCalendarSerializer,
    MonthQuerySerializer,
    PropertySerializer,
    PropertyWriteSerializer,
    RoomCalendarDaySerializer,
    RoomTypeSerializer,
    RuleWindowQuerySerializer,
    SeasonalPricingSerializer,
    SpecialEventPricingSerializer,
    StayPriceSerializer,
    StayQuerySerializer,
)
from .services import (
    apply_calendar_action,
    available_property_ids,
    build_month_calendar,
    build_room_calendar,
    calculate_stay_price,
    check_room_availability,
    export_property_calendar,
    get_availability_summary,
    suggest_alternative_dates,
)

logger = logging.getLogger(__name__)


def _is_admin(user) -> bool:
    return hasattr(user, "is_platform_admin") and user.is_platform_admin()


class IsPropertyOwnerOrAdmin(permissions.BasePermission):
    """Property owners manage their own listings; administrators manage all of them."""

    def has_permission(self, request, view):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        if _is_admin(user):
            return True
        if getattr(view, "action", None) == "create":
            return hasattr(user, "is_property_owner") and user.is_property_owner()
        return True

    def has_object_permission(self, request, view, obj: Property):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if _is_admin(user):
            return True
        return obj.owner_id == user.id


class PropertyViewSet(viewsets.ModelViewSet):
    """Viewset for property listings."""

    queryset = Property.objects.select_related("owner").prefetch_related("room_types")
    permission_classes = [IsPropertyOwnerOrAdmin]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = PropertyFilterSet
    ordering_fields = ["created_at", "name", "city"]
    lookup_value_regex = r"\d+"

    def get_permissions(self):  # type: ignore
        if self.action in {"list", "retrieve"}:
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if not user.is_authenticated:
            return qs.filter(status=Property.Status.ACTIVE)
        if _is_admin(user):
            return qs
        if user.is_property_owner():
            return qs.filter(owner=user)
        return qs.filter(status=Property.Status.ACTIVE)

    def get_serializer_class(self):  # type: ignore
        if self.action in {"create", "update", "partial_update"}:
            return PropertyWriteSerializer
        return PropertySerializer

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        read_serializer = PropertySerializer(serializer.instance, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    def update(self, request, *args, **kwargs):  # type: ignore
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
        read_serializer = PropertySerializer(serializer.instance, context=self.get_serializer_context())
        return Response(read_serializer.data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def publish(self, request, pk=None):  # type: ignore
        property_obj = self.get_object()
        if not property_obj.room_types.filter(available=True).exists():
            return Response(
                {"detail": "Add at least one bookable room type before publishing."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        property_obj.activate()
        logger.info("Property %s published by user %s", property_obj.pk, request.user.pk)
        return Response(PropertySerializer(property_obj, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"])
    def unpublish(self, request, pk=None):  # type: ignore
        property_obj = self.get_object()
        property_obj.deactivate()
        logger.info("Property %s unpublished by user %s", property_obj.pk, request.user.pk)
        return Response(PropertySerializer(property_obj, context=self.get_serializer_context()).data)


class SearchPropertiesView(generics.ListAPIView):
    """Search endpoint with filters, ordering and optional availability window."""

    serializer_class = PropertySerializer
    permission_classes = [permissions.AllowAny]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = PropertyFilterSet
    ordering_fields = ["created_at", "name", "city"]

    def get_queryset(self):  # type: ignore
        return (
            Property.objects.select_related("owner")
            .prefetch_related("room_types")
            .filter(status=Property.Status.ACTIVE)
        )

    def filter_queryset(self, queryset):  # type: ignore
        qs = super().filter_queryset(queryset)
        params = self.request.query_params
        if not (params.get("check_in") and params.get("check_out")):
            return qs

        query = StayQuerySerializer(
            data={
                "check_in": params.get("check_in"),
                "check_out": params.get("check_out"),
                "rooms": params.get("rooms", 1),
            }
        )
        query.is_valid(raise_exception=True)
        guests = params.get("guests")
        property_ids = available_property_ids(
            qs,
            query.validated_data["check_in"],
            query.validated_data["check_out"],
            guests=int(guests) if guests and guests.isdigit() else None,
            rooms=query.validated_data["rooms"],
        )
        return qs.filter(id__in=property_ids)


class PropertyCalendarMixin:
    """Loads the property from the URL and checks ownership."""

    property_lookup_url_kwarg = "property_id"
    permission_classes = [permissions.IsAuthenticated, IsPropertyOwnerOrAdmin]

    def initial(self, request, *args, **kwargs):  # type: ignore
        super().initial(request, *args, **kwargs)
        property_id = kwargs.get(self.property_lookup_url_kwarg)
        self.property_object = get_object_or_404(Property, pk=property_id)
        self.check_object_permissions(request, self.property_object)

    def get_property(self) -> Property:
        return self.property_object

    def get_serializer_context(self):  # type: ignore
        context = super().get_serializer_context()
        context["property"] = getattr(self, "property_object", None)
        return context


class RoomTypeViewSet(PropertyCalendarMixin, viewsets.ModelViewSet):
    """Room types of a property."""

    serializer_class = RoomTypeSerializer
    queryset = RoomType.objects.select_related("property").all()

    def get_queryset(self):  # type: ignore
        return super().get_queryset().filter(property=self.get_property()).order_by("base_price", "id")

    def perform_create(self, serializer):  # type: ignore
        serializer.save(property=self.get_property())


class PropertyRuleViewSet(PropertyCalendarMixin, viewsets.ModelViewSet):
    """Base for pricing rules attached to a property."""

    date_field_start = "start_date"
    date_field_end = "end_date"

    def get_queryset(self):  # type: ignore
        qs = self.queryset.filter(property=self.get_property())
        query = RuleWindowQuerySerializer(data=self.request.query_params)
        query.is_valid(raise_exception=True)
        start = query.validated_data.get("start")
        end = query.validated_data.get("end")
        if start:
            qs = qs.filter(**{f"{self.date_field_end}__gte": start})
        if end:
            qs = qs.filter(**{f"{self.date_field_start}__lte": end})
        return qs

    def perform_create(self, serializer):  # type: ignore
        serializer.save(property=self.get_property())


class SeasonalPricingViewSet(PropertyRuleViewSet):
    """Seasonal adjustments of a property."""

    serializer_class = SeasonalPricingSerializer
    queryset = SeasonalPricing.objects.select_related("room_type", "created_by").order_by("start_date", "-priority")

    def perform_create(self, serializer):  # type: ignore
        serializer.save(property=self.get_property(), created_by=self.request.user)


class SpecialEventPricingViewSet(PropertyRuleViewSet):
    """Event multipliers of a property."""

    serializer_class = SpecialEventPricingSerializer
    queryset = SpecialEventPricing.objects.select_related("room_type").order_by("start_date")


class DiscountRuleViewSet(PropertyRuleViewSet):
    """Length-of-stay and booking-window discounts of a property."""

    serializer_class = DiscountRuleSerializer
    queryset = DiscountRule.objects.select_related("room_type").order_by("discount_type", "-discount_percent")
    date_field_start = "valid_from"
    date_field_end = "valid_until"


class PropertyCalendarExportView(PropertyCalendarMixin, APIView):
    """iCalendar feed of the property's bookings."""

    def get(self, request, property_id):  # type: ignore
        property_obj = self.get_property()
        response = HttpResponse(export_property_calendar(property_obj), content_type="text/calendar; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="{property_obj.slug}.ics"'
        return response


# ============================================================================
# Room calendar
# ============================================================================


class RoomCalendarMixin:
    """Loads the room type from the URL and checks ownership of its property."""

    room_lookup_url_kwarg = "room_id"
    permission_classes = [permissions.IsAuthenticated, IsPropertyOwnerOrAdmin]

    def initial(self, request, *args, **kwargs):  # type: ignore
        super().initial(request, *args, **kwargs)
        self.room_type = get_object_or_404(
            RoomType.objects.select_related("property"),
            pk=kwargs.get(self.room_lookup_url_kwarg),
        )
        self.check_object_permissions(request, self.room_type.property)


class RoomCalendarView(RoomCalendarMixin, APIView):
    """Owner calendar of a room type: prices, inventory and bookings per night."""

    def get(self, request, room_id):  # type: ignore
        today = timezone.localdate()
        query = DateWindowQuerySerializer(
            data={
                "start": request.query_params.get("start", today.isoformat()),
                "end": request.query_params.get("end", (today + timedelta(days=30)).isoformat()),
            }
        )
        query.is_valid(raise_exception=True)
        days = build_room_calendar(self.room_type, query.validated_data["start"], query.validated_data["end"])
        return Response(
            {
                "room_type_id": self.room_type.pk,
                "room_type": self.room_type.name,
                "calendar": RoomCalendarDaySerializer(days, many=True).data,
            }
        )


class RoomCalendarUpdateView(RoomCalendarMixin, APIView):
    """Apply one calendar action to a list of dates."""

    def post(self, request, room_id):  # type: ignore
        serializer = CalendarUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        results = apply_calendar_action(
            self.room_type,
            data["dates"],
            data["action"],
            {key: value for key, value in data.items() if key not in {"dates", "action"}},
            request.user,
        )
        updated = sum(1 for entry in results if "error" not in entry)
        return Response(
            {
                "success": updated > 0,
                "updated": updated,
                "failed": len(results) - updated,
                "results": results,
            }
        )


class RoomAvailabilitySummaryView(RoomCalendarMixin, APIView):
    """Inventory counters of a room type for an inclusive date window."""

    def get(self, request, room_id):  # type: ignore
        query = DateWindowQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        start = query.validated_data["start"]
        end = query.validated_data["end"]
        summary = get_availability_summary(self.room_type, start, end + timedelta(days=1))
        summary["end_date"] = end
        return Response(AvailabilitySummarySerializer(summary).data)


class RoomMonthAvailabilityView(APIView):
    """Public month view of a room type."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, room_id):  # type: ignore
        room_type = get_object_or_404(RoomType.objects.select_related("property"), pk=room_id)
        query = MonthQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        payload = build_month_calendar(room_type, query.validated_data["year"], query.validated_data["month"])
        return Response(MonthCalendarSerializer(payload).data)


class RoomQuoteView(APIView):
    """Price quote for a stay, without checking inventory."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, room_id):  # type: ignore
        room_type = get_object_or_404(RoomType.objects.select_related("property"), pk=room_id)
        query = StayQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        quote = calculate_stay_price(
            room_type,
            query.validated_data["check_in"],
            query.validated_data["check_out"],
            number_of_rooms=query.validated_data["rooms"],
        )
        return Response({"room_type_id": room_type.pk, **StayPriceSerializer(quote).data})


class AvailabilityCheckView(APIView):
    """Availability of a stay with its price, or alternative dates when it is sold out."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        query = AvailabilityCheckQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        room_type = get_object_or_404(RoomType.objects.select_related("property"), pk=data["room"])

        result = check_room_availability(room_type, data["check_in"], data["check_out"], data["rooms"])
        payload = {
            "room_type_id": room_type.pk,
            "check_in": data["check_in"],
            "check_out": data["check_out"],
            "number_of_rooms": data["rooms"],
            "availability": AvailabilityResultSerializer(result).data,
        }
        if result.is_available:
            quote = calculate_stay_price(
                room_type,
                data["check_in"],
                data["check_out"],
                number_of_rooms=data["rooms"],
            )
            payload["pricing"] = StayPriceSerializer(quote).data
        else:
            nights = (data["check_out"] - data["check_in"]).days
            suggestions = suggest_alternative_dates(room_type, data["check_in"], nights, data["rooms"])
            payload["suggestions"] = AlternativeStaySerializer(suggestions, many=True).data
        return Response(payload)
