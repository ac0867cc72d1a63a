import datetime
from decimal import Decimal

import apps.properties.models
import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Property",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(blank=True, max_length=255, unique=True)),
                ("description", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("pending", "Pending review"),
                            ("active", "Active"),
                            ("inactive", "Inactive"),
                            ("blocked", "Blocked"),
                        ],
                        default="draft",
                        max_length=20,
                    ),
                ),
                (
                    "property_type",
                    models.CharField(
                        choices=[
                            ("hotel", "Hotel"),
                            ("guest_house", "Guest house"),
                            ("apartment", "Apartment"),
                            ("villa", "Villa"),
                            ("resort", "Resort"),
                            ("hostel", "Hostel"),
                        ],
                        default="hotel",
                        max_length=20,
                    ),
                ),
                ("address", models.CharField(max_length=255)),
                ("city", models.CharField(max_length=100)),
                ("country", models.CharField(default="Pakistan", max_length=100)),
                ("latitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("longitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                (
                    "cleaning_fee",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "service_fee",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Fixed fee per stay. Zero means a percentage of the subtotal is charged.",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "tax_rate",
                    models.DecimalField(
                        decimal_places=2,
                        default=apps.properties.models.default_tax_rate,
                        help_text="Tax rate in percent.",
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0.00")),
                            django.core.validators.MaxValueValidator(Decimal("100.00")),
                        ],
                    ),
                ),
                ("currency", models.CharField(default=apps.properties.models.default_currency, max_length=3)),
                ("check_in_time", models.TimeField(default=datetime.time(14, 0))),
                ("check_out_time", models.TimeField(default=datetime.time(12, 0))),
                ("published_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="properties",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Property",
                "verbose_name_plural": "Properties",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="property_status_idx"),
                    models.Index(fields=["owner", "status"], name="property_owner_status_idx"),
                    models.Index(fields=["city", "status"], name="property_city_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RoomType",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("description", models.TextField(blank=True)),
                (
                    "base_price",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("currency", models.CharField(default=apps.properties.models.default_currency, max_length=3)),
                (
                    "total_units",
                    models.PositiveSmallIntegerField(
                        default=1, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "max_occupancy",
                    models.PositiveSmallIntegerField(
                        default=2, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("bed_type", models.CharField(blank=True, max_length=50)),
                (
                    "available",
                    models.BooleanField(default=True, help_text="Switch off to stop selling this room type entirely."),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="room_types",
                        to="properties.property",
                    ),
                ),
            ],
            options={
                "verbose_name": "Room type",
                "verbose_name_plural": "Room types",
                "ordering": ["property", "base_price"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("total_units__gte", 1)),
                        name="room_type_total_units_positive",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="RoomAvailability",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("is_available", models.BooleanField(default=True)),
                (
                    "available_units",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        help_text="Units on sale for the night. Empty means every unit of the room type.",
                        null=True,
                    ),
                ),
                (
                    "custom_price",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=10,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "min_stay",
                    models.PositiveSmallIntegerField(
                        blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "max_stay",
                    models.PositiveSmallIntegerField(
                        blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_room_availability",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "room_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="availability",
                        to="properties.roomtype",
                    ),
                ),
            ],
            options={
                "verbose_name": "Room calendar day",
                "verbose_name_plural": "Room calendar days",
                "ordering": ["date"],
                "constraints": [
                    models.UniqueConstraint(fields=("room_type", "date"), name="room_availability_unique_date")
                ],
            },
        ),
        migrations.CreateModel(
            name="SeasonalPricing",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                (
                    "price_adjustment",
                    models.CharField(
                        choices=[
                            ("percentage_increase", "Percentage increase"),
                            ("percentage_decrease", "Percentage decrease"),
                            ("fixed_increase", "Fixed increase"),
                            ("fixed_decrease", "Fixed decrease"),
                            ("fixed_price", "Fixed price"),
                        ],
                        max_length=30,
                    ),
                ),
                (
                    "adjustment_value",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "days_of_week",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Weekdays the rule applies to (0=Mon ... 6=Sun). Empty means every day.",
                    ),
                ),
                (
                    "priority",
                    models.IntegerField(default=0, help_text="When periods overlap the higher priority wins."),
                ),
                (
                    "min_stay",
                    models.PositiveSmallIntegerField(
                        blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "max_stay",
                    models.PositiveSmallIntegerField(
                        blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_seasonal_pricing",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="seasonal_pricing",
                        to="properties.property",
                    ),
                ),
                (
                    "room_type",
                    models.ForeignKey(
                        blank=True,
                        help_text="Leave empty to apply to every room type of the property.",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="seasonal_pricing",
                        to="properties.roomtype",
                    ),
                ),
            ],
            options={
                "verbose_name": "Seasonal pricing",
                "verbose_name_plural": "Seasonal pricing",
                "ordering": ["start_date", "-priority"],
                "indexes": [
                    models.Index(
                        fields=["property", "start_date", "end_date", "priority"],
                        name="seasonal_pricing_window_idx",
                    )
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_date__gte", models.F("start_date"))),
                        name="seasonal_pricing_valid_date_range",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="SpecialEventPricing",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_name", models.CharField(max_length=150)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                (
                    "price_multiplier",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=5,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                (
                    "min_stay",
                    models.PositiveSmallIntegerField(
                        blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="event_pricing",
                        to="properties.property",
                    ),
                ),
                (
                    "room_type",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="event_pricing",
                        to="properties.roomtype",
                    ),
                ),
            ],
            options={
                "verbose_name": "Special event pricing",
                "verbose_name_plural": "Special event pricing",
                "ordering": ["start_date"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_date__gte", models.F("start_date"))),
                        name="event_pricing_valid_date_range",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("price_multiplier__gt", 0)),
                        name="event_pricing_multiplier_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DiscountRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                (
                    "discount_type",
                    models.CharField(
                        choices=[
                            ("long_stay", "Long stay"),
                            ("early_bird", "Early bird"),
                            ("last_minute", "Last minute"),
                            ("weekly", "Weekly"),
                            ("monthly", "Monthly"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "discount_percent",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0.01")),
                            django.core.validators.MaxValueValidator(Decimal("100.00")),
                        ],
                    ),
                ),
                ("min_nights", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "days_in_advance",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        help_text="Early bird: minimum days between booking and the night.",
                        null=True,
                    ),
                ),
                (
                    "days_before_check_in",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        help_text="Last minute: maximum days between booking and the night.",
                        null=True,
                    ),
                ),
                ("valid_from", models.DateField(blank=True, null=True)),
                ("valid_until", models.DateField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "property",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="discount_rules",
                        to="properties.property",
                    ),
                ),
                (
                    "room_type",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="discount_rules",
                        to="properties.roomtype",
                    ),
                ),
            ],
            options={
                "verbose_name": "Discount rule",
                "verbose_name_plural": "Discount rules",
                "ordering": ["-discount_percent"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("property__isnull", False), ("room_type__isnull", False), _connector="OR"),
                        name="discount_rule_has_scope",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("discount_percent__gt", 0), ("discount_percent__lte", 100)),
                        name="discount_rule_percent_range",
                    ),
                ],
            },
        ),
    ]
