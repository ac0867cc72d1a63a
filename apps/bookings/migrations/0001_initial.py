from decimal import Decimal

import apps.properties.models
import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("properties", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PropertyBooking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_number", models.CharField(editable=False, max_length=32, unique=True)),
                ("check_in", models.DateField()),
                ("check_out", models.DateField()),
                (
                    "number_of_rooms",
                    models.PositiveSmallIntegerField(
                        default=1, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "guests_count",
                    models.PositiveSmallIntegerField(
                        default=1, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("guest_name", models.CharField(blank=True, max_length=150)),
                ("guest_email", models.EmailField(blank=True, max_length=254)),
                ("guest_phone", models.CharField(blank=True, max_length=20)),
                ("special_requests", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("waiting", "Awaiting payment"),
                            ("paid", "Paid"),
                            ("refunded", "Refunded"),
                            ("failed", "Failed"),
                        ],
                        default="waiting",
                        max_length=20,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("card", "Card"),
                            ("cash", "Cash at property"),
                            ("bank_transfer", "Bank transfer"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "subtotal",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Sum of nightly prices at booking time, for all rooms.",
                        max_digits=12,
                    ),
                ),
                ("cleaning_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("service_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default=apps.properties.models.default_currency, max_length=3)),
                (
                    "price_breakdown",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Nightly prices and the rules applied to each night.",
                    ),
                ),
                ("refund_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("refund_percentage", models.PositiveSmallIntegerField(default=0)),
                (
                    "expires_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="End of the hold; unpaid pending bookings are cancelled afterwards.",
                        null=True,
                    ),
                ),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings",
                        to="properties.property",
                    ),
                ),
                (
                    "room_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="properties.roomtype",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="property_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Property booking",
                "verbose_name_plural": "Property bookings",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["room_type", "check_in", "check_out"], name="booking_room_dates_idx"),
                    models.Index(fields=["property", "status"], name="booking_property_status_idx"),
                    models.Index(fields=["status", "expires_at"], name="booking_status_expiry_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("check_out__gt", models.F("check_in"))),
                        name="property_booking_valid_dates",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("number_of_rooms__gte", 1)),
                        name="property_booking_rooms_positive",
                    ),
                ],
            },
        ),
    ]
