"""API tests for properties, room types and pricing rules."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import PropertyBooking
from apps.properties.models import DiscountRule, Property, RoomType, SeasonalPricing
from apps.users.models import User


class PropertyAPITests(APITestCase):
    def setUp(self) -> None:
        self.owner = User.objects.create_user(
            email="owner@example.com",
            password="StrongPass123",
            role=User.RoleChoices.PROPERTY_OWNER,
        )
        self.other_owner = User.objects.create_user(
            email="other-owner@example.com",
            password="StrongPass123",
            role=User.RoleChoices.PROPERTY_OWNER,
        )
        self.customer = User.objects.create_user(
            email="customer@example.com",
            password="StrongPass123",
        )
        self.property = Property.objects.create(
            owner=self.owner,
            name="Hunza Serai",
            address="Karimabad Road",
            city="Hunza",
            status=Property.Status.ACTIVE,
        )
        self.room = RoomType.objects.create(
            property=self.property,
            name="Deluxe",
            base_price=Decimal("10000.00"),
            total_units=2,
            max_occupancy=2,
        )

    def test_owner_creates_property(self) -> None:
        self.client.force_authenticate(self.owner)
        payload = {
            "name": "Skardu Lodge",
            "address": "Shangrila Road",
            "city": "Skardu",
            "property_type": Property.PropertyType.GUEST_HOUSE,
        }

        response = self.client.post(reverse("property-list"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["owner_id"], self.owner.id)
        self.assertEqual(response.data["slug"], "skardu-lodge")
        self.assertEqual(response.data["status"], Property.Status.DRAFT)

    def test_customer_cannot_create_property(self) -> None:
        self.client.force_authenticate(self.customer)

        response = self.client.post(
            reverse("property-list"),
            {"name": "Nope", "address": "Somewhere", "city": "Lahore"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_list_shows_only_active_properties(self) -> None:
        Property.objects.create(owner=self.owner, name="Draft place", address="Mall Road", city="Murree")

        response = self.client.get(reverse("property-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data], [self.property.id])
        self.assertEqual(response.data[0]["room_types"][0]["name"], "Deluxe")

    def test_other_owner_cannot_update_property(self) -> None:
        self.client.force_authenticate(self.other_owner)

        response = self.client.patch(
            reverse("property-detail", kwargs={"pk": self.property.id}),
            {"name": "Taken over"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_owner_manages_room_types(self) -> None:
        self.client.force_authenticate(self.owner)
        url = reverse("property-room-list", kwargs={"property_id": self.property.id})

        response = self.client.post(
            url,
            {"name": "Family suite", "base_price": "18000.00", "total_units": 3, "max_occupancy": 4},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["property_id"], self.property.id)
        self.assertEqual(self.property.room_types.count(), 2)

    def test_other_owner_cannot_manage_room_types(self) -> None:
        self.client.force_authenticate(self.other_owner)
        url = reverse("property-room-list", kwargs={"property_id": self.property.id})

        response = self.client.post(url, {"name": "Sneaky", "base_price": "1.00"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_seasonal_pricing_validation(self) -> None:
        self.client.force_authenticate(self.owner)
        url = reverse("property-seasonal-pricing-list", kwargs={"property_id": self.property.id})
        today = timezone.localdate()
        payload = {
            "name": "Summer peak",
            "start_date": str(today + timedelta(days=10)),
            "end_date": str(today + timedelta(days=40)),
            "price_adjustment": SeasonalPricing.PriceAdjustment.PERCENTAGE_INCREASE,
            "adjustment_value": "25.00",
            "days_of_week": [9],
        }

        response = self.client.post(url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("days_of_week", response.data)

        payload["days_of_week"] = [5, 4, 5]
        response = self.client.post(url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["days_of_week"], [4, 5])
        self.assertEqual(response.data["created_by"], self.owner.id)

    def test_seasonal_pricing_rejects_inverted_dates(self) -> None:
        self.client.force_authenticate(self.owner)
        url = reverse("property-seasonal-pricing-list", kwargs={"property_id": self.property.id})
        today = timezone.localdate()

        response = self.client.post(
            url,
            {
                "name": "Backwards",
                "start_date": str(today + timedelta(days=10)),
                "end_date": str(today + timedelta(days=5)),
                "price_adjustment": SeasonalPricing.PriceAdjustment.FIXED_PRICE,
                "adjustment_value": "9000.00",
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("end_date", response.data)

    def test_rule_room_type_must_belong_to_property(self) -> None:
        foreign_property = Property.objects.create(
            owner=self.other_owner,
            name="Elsewhere",
            address="Main Boulevard",
            city="Lahore",
        )
        foreign_room = RoomType.objects.create(property=foreign_property, name="Single", base_price=Decimal("5000"))
        self.client.force_authenticate(self.owner)
        today = timezone.localdate()

        response = self.client.post(
            reverse("property-event-pricing-list", kwargs={"property_id": self.property.id}),
            {
                "room_type": foreign_room.id,
                "event_name": "Shandur Polo",
                "start_date": str(today + timedelta(days=3)),
                "end_date": str(today + timedelta(days=6)),
                "price_multiplier": "1.50",
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("room_type", response.data)

    def test_discount_requires_threshold(self) -> None:
        self.client.force_authenticate(self.owner)
        url = reverse("property-discount-list", kwargs={"property_id": self.property.id})
        payload = {
            "name": "Book early",
            "discount_type": DiscountRule.DiscountType.EARLY_BIRD,
            "discount_percent": "15.00",
        }

        response = self.client.post(url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("days_in_advance", response.data)

        payload["days_in_advance"] = 30
        response = self.client.post(url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(DiscountRule.objects.filter(property=self.property).exists())

    def test_search_excludes_sold_out_properties(self) -> None:
        second = Property.objects.create(
            owner=self.other_owner,
            name="Gulmit Inn",
            address="KKH",
            city="Hunza",
            status=Property.Status.ACTIVE,
        )
        RoomType.objects.create(property=second, name="Twin", base_price=Decimal("7000"), total_units=1)
        check_in = timezone.localdate() + timedelta(days=5)
        check_out = check_in + timedelta(days=2)
        PropertyBooking.objects.create(
            user=self.customer,
            property=self.property,
            room_type=self.room,
            check_in=check_in,
            check_out=check_out,
            number_of_rooms=2,
            status=PropertyBooking.Status.CONFIRMED,
        )

        response = self.client.get(
            reverse("property-search"),
            {"city": "hunza", "check_in": str(check_in), "check_out": str(check_out)},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data], [second.id])

    def test_search_filters_by_guests(self) -> None:
        response = self.client.get(reverse("property-search"), {"guests": 4})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_rule_listing_filters_by_window(self) -> None:
        today = timezone.localdate()
        SeasonalPricing.objects.create(
            property=self.property,
            name="Winter",
            start_date=today + timedelta(days=60),
            end_date=today + timedelta(days=90),
            price_adjustment=SeasonalPricing.PriceAdjustment.PERCENTAGE_DECREASE,
            adjustment_value=Decimal("10.00"),
        )
        self.client.force_authenticate(self.owner)
        url = reverse("property-seasonal-pricing-list", kwargs={"property_id": self.property.id})

        inside = self.client.get(url, {"start": str(today + timedelta(days=70))})
        outside = self.client.get(url, {"end": str(today + timedelta(days=30))})

        self.assertEqual([item["name"] for item in inside.data], ["Winter"])
        self.assertEqual(outside.data, [])

    def test_rule_listing_rejects_malformed_dates(self) -> None:
        self.client.force_authenticate(self.owner)

        response = self.client.get(
            reverse("property-seasonal-pricing-list", kwargs={"property_id": self.property.id}),
            {"start": "not-a-date"},
        )
        discounts = self.client.get(
            reverse("property-discount-list", kwargs={"property_id": self.property.id}),
            {"end": "2026-13-40"},
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("start", response.data)
        self.assertEqual(discounts.status_code, status.HTTP_400_BAD_REQUEST)

    def test_owner_publishes_and_unpublishes_property(self) -> None:
        draft = Property.objects.create(owner=self.owner, name="Chitral Inn", address="Bazaar", city="Chitral")
        self.client.force_authenticate(self.owner)
        publish_url = reverse("property-publish", kwargs={"pk": draft.id})

        empty = self.client.post(publish_url)
        self.assertEqual(empty.status_code, status.HTTP_400_BAD_REQUEST)

        RoomType.objects.create(property=draft, name="Double", base_price=Decimal("6000"))
        published = self.client.post(publish_url)

        self.assertEqual(published.status_code, status.HTTP_200_OK, published.data)
        self.assertEqual(published.data["status"], Property.Status.ACTIVE)
        draft.refresh_from_db()
        self.assertIsNotNone(draft.published_at)

        unpublished = self.client.post(reverse("property-unpublish", kwargs={"pk": draft.id}))
        self.assertEqual(unpublished.data["status"], Property.Status.INACTIVE)

    def test_other_owner_cannot_publish_property(self) -> None:
        self.client.force_authenticate(self.other_owner)

        response = self.client.post(reverse("property-unpublish", kwargs={"pk": self.property.id}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.property.refresh_from_db()
        self.assertEqual(self.property.status, Property.Status.ACTIVE)
