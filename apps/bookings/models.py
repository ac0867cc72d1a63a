"""Booking domain models for FindoTrip stays."""

from __future__ import annotations

import builtins
import secrets
import string
import time
from datetime import datetime, timedelta
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.properties.models import default_currency

BOOKING_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


class PropertyBooking(models.Model):
    """Reservation of one or more units of a room type."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")
        REFUNDED = "refunded", _("Refunded")

    class PaymentStatus(models.TextChoices):
        WAITING = "waiting", _("Awaiting payment")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")
        FAILED = "failed", _("Failed")

    class PaymentMethod(models.TextChoices):
        CARD = "card", _("Card")
        CASH = "cash", _("Cash at property")
        BANK_TRANSFER = "bank_transfer", _("Bank transfer")

    booking_number = models.CharField(max_length=32, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="property_bookings",
    )
    property = models.ForeignKey(
        "properties.Property",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    room_type = models.ForeignKey(
        "properties.RoomType",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    check_in = models.DateField()
    check_out = models.DateField()
    number_of_rooms = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    guests_count = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    guest_name = models.CharField(max_length=150, blank=True)
    guest_email = models.EmailField(blank=True)
    guest_phone = models.CharField(max_length=20, blank=True)
    special_requests = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.WAITING,
    )
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, blank=True)
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Sum of nightly prices at booking time, for all rooms."),
    )
    cleaning_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    service_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default=default_currency)
    price_breakdown = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Nightly prices and the rules applied to each night."),
    )
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    refund_percentage = models.PositiveSmallIntegerField(default=0)
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("End of the hold; unpaid pending bookings are cancelled afterwards."),
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Property booking")
        verbose_name_plural = _("Property bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="property_booking_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(number_of_rooms__gte=1),
                name="property_booking_rooms_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["room_type", "check_in", "check_out"], name="booking_room_dates_idx"),
            models.Index(fields=["property", "status"], name="booking_property_status_idx"),
            models.Index(fields=["status", "expires_at"], name="booking_status_expiry_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.booking_number} for room type {self.room_type_id}"

    @builtins.property
    def number_of_nights(self) -> int:
        return (self.check_out - self.check_in).days

    @builtins.property
    def is_active(self) -> bool:
        return self.status not in (self.Status.CANCELLED, self.Status.REFUNDED)

    def clean(self) -> None:
        if self.check_in and self.check_out and self.check_in >= self.check_out:
            raise ValidationError(_("Check-out must be after check-in."))

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_number:
            self.booking_number = self.generate_booking_number()
        self.clean()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_number() -> str:
        """`PB` + epoch milliseconds + 6 random characters."""
        suffix = "".join(secrets.choice(BOOKING_NUMBER_ALPHABET) for _ in range(6))
        return f"PB{int(time.time() * 1000)}{suffix}"

    def check_in_moment(self) -> datetime:
        """Check-in date at the property's check-in time, in the active timezone."""
        naive = datetime.combine(self.check_in, self.property.check_in_time)
        return timezone.make_aware(naive)

    def hours_until_check_in(self, now: datetime | None = None) -> float:
        now = now or timezone.now()
        return (self.check_in_moment() - now) / timedelta(hours=1)

    def hold_expired(self, now: datetime | None = None) -> bool:
        now = now or timezone.now()
        return bool(self.status == self.Status.PENDING and self.expires_at and now >= self.expires_at)
