"""Property domain models for FindoTrip stays.

A property (hotel, guest house, apartment block) owns sellable room types.
Owners shape the nightly price of every room type through a per-date
calendar, seasonal pricing, special-event multipliers and discount rules;
the resolution order lives in ``apps.properties.domain.pricing``.
"""

from __future__ import annotations

from datetime import time
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.text import slugify  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


def default_currency() -> str:
    return settings.DEFAULT_CURRENCY


def default_tax_rate() -> Decimal:
    return Decimal(str(settings.DEFAULT_TAX_RATE))


class Property(models.Model):
    """Accommodation listed on the marketplace."""

    class Status(models.TextChoices):
        DRAFT = "draft", _("Draft")
        PENDING = "pending", _("Pending review")
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")
        BLOCKED = "blocked", _("Blocked")

    class PropertyType(models.TextChoices):
        HOTEL = "hotel", _("Hotel")
        GUEST_HOUSE = "guest_house", _("Guest house")
        APARTMENT = "apartment", _("Apartment")
        VILLA = "villa", _("Villa")
        RESORT = "resort", _("Resort")
        HOSTEL = "hostel", _("Hostel")

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="properties",
    )
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    property_type = models.CharField(
        max_length=20,
        choices=PropertyType.choices,
        default=PropertyType.HOTEL,
    )
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    country = models.CharField(max_length=100, default="Pakistan")
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    cleaning_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    service_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text=_("Fixed fee per stay. Zero means a percentage of the subtotal is charged."),
    )
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=default_tax_rate,
        validators=[MinValueValidator(Decimal("0.00")), MaxValueValidator(Decimal("100.00"))],
        help_text=_("Tax rate in percent."),
    )
    currency = models.CharField(max_length=3, default=default_currency)
    check_in_time = models.TimeField(default=time(14, 0))
    check_out_time = models.TimeField(default=time(12, 0))
    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Property")
        verbose_name_plural = _("Properties")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="property_status_idx"),
            models.Index(fields=["owner", "status"], name="property_owner_status_idx"),
            models.Index(fields=["city", "status"], name="property_city_status_idx"),
        ]

    def __str__(self) -> str:
        return self.name

    def activate(self) -> None:
        if self.status != self.Status.ACTIVE:
            self.status = self.Status.ACTIVE
            self.published_at = timezone.now()
            self.save(update_fields=["status", "published_at"])

    def deactivate(self) -> None:
        if self.status == self.Status.ACTIVE:
            self.status = self.Status.INACTIVE
            self.save(update_fields=["status"])

    def save(self, *args, **kwargs):  # type: ignore
        if not self.slug:
            base_slug = slugify(self.name)[:200] or "property"
            candidate = base_slug
            counter = 1
            while self.__class__.objects.filter(slug=candidate).exclude(pk=self.pk).exists():
                counter += 1
                candidate = f"{base_slug}-{counter}"
            self.slug = candidate
        super().save(*args, **kwargs)


class RoomType(models.Model):
    """Sellable room category with a pool of identical units."""

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name="room_types",
    )
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    currency = models.CharField(max_length=3, default=default_currency)
    total_units = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    max_occupancy = models.PositiveSmallIntegerField(default=2, validators=[MinValueValidator(1)])
    bed_type = models.CharField(max_length=50, blank=True)
    available = models.BooleanField(
        default=True,
        help_text=_("Switch off to stop selling this room type entirely."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Room type")
        verbose_name_plural = _("Room types")
        ordering = ["property", "base_price"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_units__gte=1),
                name="room_type_total_units_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.property.name}: {self.name}"


class RoomAvailability(models.Model):
    """Per-date override of a room type's calendar."""

    room_type = models.ForeignKey(
        RoomType,
        on_delete=models.CASCADE,
        related_name="availability",
    )
    date = models.DateField()
    is_available = models.BooleanField(default=True)
    available_units = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text=_("Units on sale for the night. Empty means every unit of the room type."),
    )
    custom_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    min_stay = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    max_stay = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    reason = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_room_availability",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Room calendar day")
        verbose_name_plural = _("Room calendar days")
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(fields=["room_type", "date"], name="room_availability_unique_date"),
        ]

    def __str__(self) -> str:
        state = "open" if self.is_available else "blocked"
        return f"{self.room_type_id} @ {self.date} ({state})"


class SeasonalPricing(models.Model):
    """Price adjustment for a date range, optionally restricted to weekdays."""

    class PriceAdjustment(models.TextChoices):
        PERCENTAGE_INCREASE = "percentage_increase", _("Percentage increase")
        PERCENTAGE_DECREASE = "percentage_decrease", _("Percentage decrease")
        FIXED_INCREASE = "fixed_increase", _("Fixed increase")
        FIXED_DECREASE = "fixed_decrease", _("Fixed decrease")
        FIXED_PRICE = "fixed_price", _("Fixed price")

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name="seasonal_pricing",
    )
    room_type = models.ForeignKey(
        RoomType,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="seasonal_pricing",
        help_text=_("Leave empty to apply to every room type of the property."),
    )
    name = models.CharField(max_length=150)
    description = models.CharField(max_length=255, blank=True)
    start_date = models.DateField()
    end_date = models.DateField()
    price_adjustment = models.CharField(max_length=30, choices=PriceAdjustment.choices)
    adjustment_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    days_of_week = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Weekdays the rule applies to (0=Mon ... 6=Sun). Empty means every day."),
    )
    priority = models.IntegerField(
        default=0,
        help_text=_("When periods overlap the higher priority wins."),
    )
    min_stay = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    max_stay = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_seasonal_pricing",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Seasonal pricing")
        verbose_name_plural = _("Seasonal pricing")
        ordering = ["start_date", "-priority"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="seasonal_pricing_valid_date_range",
            ),
        ]
        indexes = [
            models.Index(
                fields=["property", "start_date", "end_date", "priority"],
                name="seasonal_pricing_window_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name}: {self.start_date} - {self.end_date}"


class SpecialEventPricing(models.Model):
    """Multiplier on the base price around an event (Eid, festivals, matches)."""

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name="event_pricing",
    )
    room_type = models.ForeignKey(
        RoomType,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="event_pricing",
    )
    event_name = models.CharField(max_length=150)
    description = models.CharField(max_length=255, blank=True)
    start_date = models.DateField()
    end_date = models.DateField()
    price_multiplier = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    min_stay = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Special event pricing")
        verbose_name_plural = _("Special event pricing")
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="event_pricing_valid_date_range",
            ),
            models.CheckConstraint(
                condition=models.Q(price_multiplier__gt=0),
                name="event_pricing_multiplier_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event_name} x{self.price_multiplier}"


class DiscountRule(models.Model):
    """Length-of-stay or booking-window discount."""

    class DiscountType(models.TextChoices):
        LONG_STAY = "long_stay", _("Long stay")
        EARLY_BIRD = "early_bird", _("Early bird")
        LAST_MINUTE = "last_minute", _("Last minute")
        WEEKLY = "weekly", _("Weekly")
        MONTHLY = "monthly", _("Monthly")

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="discount_rules",
    )
    room_type = models.ForeignKey(
        RoomType,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="discount_rules",
    )
    name = models.CharField(max_length=150)
    discount_type = models.CharField(max_length=20, choices=DiscountType.choices)
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01")), MaxValueValidator(Decimal("100.00"))],
    )
    min_nights = models.PositiveSmallIntegerField(null=True, blank=True)
    days_in_advance = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text=_("Early bird: minimum days between booking and the night."),
    )
    days_before_check_in = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text=_("Last minute: maximum days between booking and the night."),
    )
    valid_from = models.DateField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Discount rule")
        verbose_name_plural = _("Discount rules")
        ordering = ["-discount_percent"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(property__isnull=False) | models.Q(room_type__isnull=False),
                name="discount_rule_has_scope",
            ),
            models.CheckConstraint(
                condition=models.Q(discount_percent__gt=0) & models.Q(discount_percent__lte=100),
                name="discount_rule_percent_range",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} (-{self.discount_percent}%)"
