"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from .models import PropertyBooking

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled by Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_pending_bookings")
def expire_pending_bookings() -> dict[str, int]:
    """
    Cancel pending bookings whose hold ran out.

    Runs every minute. Expired holds release their units immediately since
    cancelled bookings never count against availability.

    Returns:
        dict: {"expired": number of cancelled holds}
    """
    now = timezone.now()
    expired_count = 0

    expired_bookings = PropertyBooking.objects.filter(
        status=PropertyBooking.Status.PENDING,
        expires_at__lte=now,
    ).select_related("property", "user")

    for booking in expired_bookings:
        try:
            with transaction.atomic():
                booking.status = PropertyBooking.Status.CANCELLED
                booking.payment_status = PropertyBooking.PaymentStatus.FAILED
                booking.cancellation_reason = "Hold expired before confirmation"
                booking.cancelled_at = now
                booking.save(
                    update_fields=[
                        "status",
                        "payment_status",
                        "cancellation_reason",
                        "cancelled_at",
                        "updated_at",
                    ]
                )
                transaction.on_commit(lambda booking_id=booking.pk: notify_booking_expired.delay(booking_id))
        except Exception:  # noqa: BLE001
            logger.error("Error expiring booking %s", booking.pk, exc_info=True)
            continue

        expired_count += 1
        logger.info("Booking %s expired automatically", booking.booking_number)

    if expired_count:
        logger.info("Expired %s pending bookings", expired_count)

    return {"expired": expired_count}


@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Mark confirmed bookings as completed once the guest has checked out.

    Runs every hour.
    """
    today = timezone.localdate()
    updated = PropertyBooking.objects.filter(
        status=PropertyBooking.Status.CONFIRMED,
        check_out__lte=today,
    ).update(status=PropertyBooking.Status.COMPLETED, updated_at=timezone.now())

    if updated:
        logger.info("Completed %s finished bookings", updated)

    return {"completed": updated}


# ============================================================================
# NOTIFICATION TASKS
# ============================================================================

def _load_booking(booking_id: int) -> PropertyBooking | None:
    try:
        return PropertyBooking.objects.select_related("user", "property", "property__owner").get(pk=booking_id)
    except PropertyBooking.DoesNotExist:
        logger.error("Booking %s not found for notification", booking_id)
        return None


@shared_task(name="bookings.notify_booking_confirmed")
def notify_booking_confirmed(booking_id: int) -> bool:
    """Notify the customer and the property owner about a confirmed booking."""
    from apps.notifications import services as notifications

    booking = _load_booking(booking_id)
    if booking is None:
        return False
    notifications.notify_booking_confirmed(booking)
    return True


@shared_task(name="bookings.notify_booking_cancelled")
def notify_booking_cancelled(booking_id: int) -> bool:
    from apps.notifications import services as notifications

    booking = _load_booking(booking_id)
    if booking is None:
        return False
    notifications.notify_booking_cancelled(booking)
    return True


@shared_task(name="bookings.notify_booking_expired")
def notify_booking_expired(booking_id: int) -> bool:
    from apps.notifications import services as notifications

    booking = _load_booking(booking_id)
    if booking is None:
        return False
    notifications.notify_booking_expired(booking)
    return True
