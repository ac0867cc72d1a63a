"""Notification services for in-app messages and booking emails."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore

from .models import Notification

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import PropertyBooking
    from apps.users.models import CustomUser

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, message: str) -> bool:
    """
    Send a plain-text email. Delivery is best effort.

    Returns:
        bool: True if the backend accepted the message
    """
    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            fail_silently=False,
        )
    except Exception:  # noqa: BLE001
        logger.error("Failed to send email to %s: %s", recipient_email, subject, exc_info=True)
        return False

    logger.info("Email sent to %s: %s", recipient_email, subject)
    return True


# ============================================================================
# IN-APP NOTIFICATIONS
# ============================================================================

def create_in_app_notification(
    user: "CustomUser",
    title: str,
    message: str,
    *,
    kind: str = Notification.Kind.SYSTEM,
    action_url: str = "",
    data: dict[str, Any] | None = None,
) -> Notification:
    notification = Notification.objects.create(
        user=user,
        kind=kind,
        title=title,
        message=message,
        action_url=action_url,
        data=data or {},
    )
    logger.info("In-app notification created for user %s: %s", user.pk, title)
    return notification


def notify_user(
    user: "CustomUser",
    title: str,
    message: str,
    **options: Any,
) -> dict[str, bool]:
    """In-app notification plus an email when the user has an address."""

    results = {"in_app": True, "email": False}
    create_in_app_notification(user, title, message, **options)
    if user.email:
        results["email"] = send_email_notification(user.email, title, message)
    return results


# ============================================================================
# BOOKING NOTIFICATIONS
# ============================================================================

def _booking_action_url(booking: "PropertyBooking") -> str:
    return f"/dashboard/bookings/{booking.pk}?type=property"


def _booking_data(booking: "PropertyBooking") -> dict[str, Any]:
    return {
        "booking_id": booking.pk,
        "booking_type": "property",
        "booking_number": booking.booking_number,
        "service_name": booking.property.name,
    }


def notify_booking_confirmed(booking: "PropertyBooking") -> None:
    """Tell the customer and the property owner about a confirmed booking."""

    options = {
        "kind": Notification.Kind.BOOKING_CONFIRMED,
        "action_url": _booking_action_url(booking),
        "data": _booking_data(booking),
    }
    notify_user(
        booking.user,
        "Booking Confirmed!",
        f"Your property booking has been confirmed. Booking number: {booking.booking_number}",
        **options,
    )
    notify_user(
        booking.property.owner,
        "New Booking Received!",
        (
            f"You have received a new property booking for {booking.property.name} "
            f"({booking.check_in:%d %b %Y} - {booking.check_out:%d %b %Y}). "
            f"Booking number: {booking.booking_number}"
        ),
        **options,
    )


def notify_booking_cancelled(booking: "PropertyBooking") -> None:
    options = {
        "kind": Notification.Kind.BOOKING_CANCELLED,
        "action_url": _booking_action_url(booking),
        "data": {**_booking_data(booking), "refund_amount": str(booking.refund_amount)},
    }
    notify_user(
        booking.user,
        f"Booking {booking.booking_number} cancelled",
        (
            f"Your booking at {booking.property.name} was cancelled. "
            f"Refund: {booking.refund_percentage}% ({booking.refund_amount} {booking.currency})."
        ),
        **options,
    )
    notify_user(
        booking.property.owner,
        f"Booking {booking.booking_number} cancelled",
        f"The booking for {booking.check_in:%d %b %Y} at {booking.property.name} was cancelled.",
        **options,
    )


def notify_booking_expired(booking: "PropertyBooking") -> None:
    notify_user(
        booking.user,
        f"Booking {booking.booking_number} expired",
        f"The hold on your booking at {booking.property.name} expired before it was confirmed.",
        kind=Notification.Kind.BOOKING_EXPIRED,
        action_url=_booking_action_url(booking),
        data=_booking_data(booking),
    )
