"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import PropertyBooking
from apps.notifications.models import Notification
from apps.properties.models import Property, RoomType
from apps.users.models import User


class BookingAPITests(APITestCase):
    """Covers creation, conflicts, confirmation and cancellation of bookings."""

    def setUp(self) -> None:
        self.guest = User.objects.create_user(
            email="guest@example.com",
            phone="+923001112233",
            password="GuestPass123",
            first_name="Bilal",
            last_name="Khan",
        )
        self.owner = User.objects.create_user(
            email="owner@example.com",
            password="OwnerPass123",
            role=User.RoleChoices.PROPERTY_OWNER,
        )
        self.property = Property.objects.create(
            owner=self.owner,
            name="Naran Heights",
            address="Main Bazaar",
            city="Naran",
            status=Property.Status.ACTIVE,
            cleaning_fee=Decimal("500.00"),
        )
        self.room = RoomType.objects.create(
            property=self.property,
            name="Valley view",
            base_price=Decimal("8000.00"),
            total_units=1,
            max_occupancy=2,
        )
        self.client.force_authenticate(self.guest)
        self.list_url = reverse("booking-list")
        self.today = timezone.localdate()

    def _payload(self, check_in, check_out, **extra) -> dict:
        payload = {
            "room_type": self.room.id,
            "check_in": str(check_in),
            "check_out": str(check_out),
            "guests_count": 2,
        }
        payload.update(extra)
        return payload

    def _existing_booking(self, check_in, check_out, status_value=PropertyBooking.Status.CONFIRMED):
        return PropertyBooking.objects.create(
            user=self.owner,
            property=self.property,
            room_type=self.room,
            check_in=check_in,
            check_out=check_out,
            status=status_value,
        )

    def test_guest_can_create_booking(self) -> None:
        check_in = self.today + timedelta(days=7)
        check_out = check_in + timedelta(days=3)

        response = self.client.post(self.list_url, self._payload(check_in, check_out), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        booking = PropertyBooking.objects.get(pk=response.data["id"])
        self.assertEqual(booking.status, PropertyBooking.Status.PENDING)
        self.assertTrue(booking.booking_number.startswith("PB"))
        self.assertEqual(booking.guest_name, "Bilal Khan")
        self.assertEqual(booking.guest_phone, "+923001112233")
        # 3 x 8000 + 500 cleaning + 10% service + 8% tax on subtotal and service
        self.assertEqual(booking.subtotal, Decimal("24000.00"))
        self.assertEqual(booking.service_fee, Decimal("2400.00"))
        self.assertEqual(booking.tax_amount, Decimal("2112.00"))
        self.assertEqual(booking.total_price, Decimal("29012.00"))
        self.assertEqual(len(booking.price_breakdown), 3)
        self.assertEqual(response.data["number_of_nights"], 3)
        hold = booking.expires_at - timezone.now()
        self.assertTrue(timedelta(minutes=14) < hold <= timedelta(minutes=15))

    def test_overlapping_booking_is_rejected(self) -> None:
        check_in = self.today + timedelta(days=5)
        self._existing_booking(check_in, check_in + timedelta(days=4))

        response = self.client.post(
            self.list_url,
            self._payload(check_in + timedelta(days=2), check_in + timedelta(days=6)),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["non_field_errors"], ["Room not available for 2 date(s)"])

    def test_back_to_back_booking_is_allowed(self) -> None:
        check_in = self.today + timedelta(days=5)
        self._existing_booking(check_in, check_in + timedelta(days=2))

        response = self.client.post(
            self.list_url,
            self._payload(check_in + timedelta(days=2), check_in + timedelta(days=4)),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_cancelled_booking_releases_room(self) -> None:
        check_in = self.today + timedelta(days=5)
        self._existing_booking(check_in, check_in + timedelta(days=2), PropertyBooking.Status.CANCELLED)

        response = self.client.post(
            self.list_url,
            self._payload(check_in, check_in + timedelta(days=2)),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_multi_room_booking_prices_every_room(self) -> None:
        self.room.total_units = 3
        self.room.save(update_fields=["total_units"])
        check_in = self.today + timedelta(days=5)

        response = self.client.post(
            self.list_url,
            self._payload(check_in, check_in + timedelta(days=1), number_of_rooms=2, guests_count=4),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["subtotal"], "16000.00")
        self.assertEqual(response.data["number_of_rooms"], 2)

    def test_too_many_guests_are_rejected(self) -> None:
        check_in = self.today + timedelta(days=5)

        response = self.client.post(
            self.list_url,
            self._payload(check_in, check_in + timedelta(days=1), guests_count=3),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("non_field_errors", response.data)

    def test_past_and_inverted_dates_are_rejected(self) -> None:
        past = self.client.post(
            self.list_url,
            self._payload(self.today - timedelta(days=2), self.today),
            format="json",
        )
        inverted = self.client.post(
            self.list_url,
            self._payload(self.today + timedelta(days=3), self.today + timedelta(days=3)),
            format="json",
        )

        self.assertEqual(past.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("check_in", past.data)
        self.assertEqual(inverted.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("check_out", inverted.data)

    def test_inactive_property_cannot_be_booked(self) -> None:
        self.property.deactivate()
        check_in = self.today + timedelta(days=5)

        response = self.client.post(self.list_url, self._payload(check_in, check_in + timedelta(days=1)), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("room_type", response.data)

    def test_confirm_marks_paid_and_notifies(self) -> None:
        check_in = self.today + timedelta(days=5)
        created = self.client.post(self.list_url, self._payload(check_in, check_in + timedelta(days=2)), format="json")
        url = reverse("booking-confirm", kwargs={"pk": created.data["id"]})

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(url, {"payment_method": "card"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], PropertyBooking.Status.CONFIRMED)
        self.assertEqual(response.data["payment_status"], PropertyBooking.PaymentStatus.PAID)
        self.assertIsNone(response.data["expires_at"])
        self.assertTrue(
            Notification.objects.filter(user=self.guest, title="Booking Confirmed!").exists()
        )
        self.assertTrue(
            Notification.objects.filter(user=self.owner, title="New Booking Received!").exists()
        )
        self.assertEqual(len(mail.outbox), 2)

    def test_cash_confirmation_stays_unpaid(self) -> None:
        check_in = self.today + timedelta(days=5)
        created = self.client.post(self.list_url, self._payload(check_in, check_in + timedelta(days=2)), format="json")

        response = self.client.post(
            reverse("booking-confirm", kwargs={"pk": created.data["id"]}),
            {"payment_method": "cash"},
            format="json",
        )

        self.assertEqual(response.data["status"], PropertyBooking.Status.CONFIRMED)
        self.assertEqual(response.data["payment_status"], PropertyBooking.PaymentStatus.WAITING)

    def test_expired_hold_cannot_be_confirmed(self) -> None:
        check_in = self.today + timedelta(days=5)
        created = self.client.post(self.list_url, self._payload(check_in, check_in + timedelta(days=2)), format="json")
        PropertyBooking.objects.filter(pk=created.data["id"]).update(expires_at=timezone.now() - timedelta(minutes=1))

        response = self.client.post(reverse("booking-confirm", kwargs={"pk": created.data["id"]}), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Booking hold has expired.")

    def test_cancel_far_ahead_refunds_everything(self) -> None:
        check_in = self.today + timedelta(days=10)
        created = self.client.post(self.list_url, self._payload(check_in, check_in + timedelta(days=2)), format="json")
        self.client.post(reverse("booking-confirm", kwargs={"pk": created.data["id"]}), {}, format="json")

        response = self.client.post(
            reverse("booking-cancel", kwargs={"pk": created.data["id"]}),
            {"reason": "Change of plans"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], PropertyBooking.Status.CANCELLED)
        self.assertEqual(response.data["refund_percentage"], 100)
        self.assertEqual(response.data["refund_amount"], created.data["total_price"])
        self.assertEqual(response.data["payment_status"], PropertyBooking.PaymentStatus.REFUNDED)
        self.assertEqual(response.data["cancellation_reason"], "Change of plans")

        again = self.client.post(reverse("booking-cancel", kwargs={"pk": created.data["id"]}), {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bookings_are_scoped_to_stakeholders(self) -> None:
        check_in = self.today + timedelta(days=5)
        created = self.client.post(self.list_url, self._payload(check_in, check_in + timedelta(days=1)), format="json")
        stranger = User.objects.create_user(email="stranger@example.com", password="StrangerPass123")

        self.client.force_authenticate(stranger)
        self.assertEqual(self.client.get(self.list_url).data, [])
        detail = self.client.get(reverse("booking-detail", kwargs={"pk": created.data["id"]}))
        self.assertEqual(detail.status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(self.owner)
        owner_view = self.client.get(self.list_url, {"status": "pending"})
        self.assertEqual([item["id"] for item in owner_view.data], [created.data["id"]])

    def test_anonymous_user_cannot_book(self) -> None:
        self.client.force_authenticate(None)
        check_in = self.today + timedelta(days=5)

        response = self.client.post(self.list_url, self._payload(check_in, check_in + timedelta(days=1)), format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_stays_beyond_calendar_horizon_are_rejected(self) -> None:
        far = self.client.post(self.list_url, self._payload("9999-12-29", "9999-12-31"), format="json")
        long_stay = self.client.post(
            self.list_url,
            self._payload(self.today + timedelta(days=1), self.today + timedelta(days=400)),
            format="json",
        )

        self.assertEqual(far.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("check_out", far.data)
        self.assertEqual(long_stay.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("check_out", long_stay.data)
        self.assertFalse(PropertyBooking.objects.exists())
