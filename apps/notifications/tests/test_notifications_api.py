"""Tests for in-app notifications and email delivery."""

from __future__ import annotations

from unittest import mock

from django.core import mail
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.notifications.services import create_in_app_notification, notify_user, send_email_notification
from apps.users.models import User


class NotificationAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(email="reader@example.com", password="ReaderPass123")
        self.other = User.objects.create_user(email="other@example.com", password="OtherPass123")
        self.first = create_in_app_notification(self.user, "Welcome", "Glad to have you")
        self.second = create_in_app_notification(
            self.user,
            "Booking Confirmed!",
            "Booking number: PB1",
            kind=Notification.Kind.BOOKING_CONFIRMED,
        )
        self.foreign = create_in_app_notification(self.other, "Private", "Not yours")
        self.client.force_authenticate(self.user)

    def test_list_returns_only_own_notifications(self) -> None:
        response = self.client.get(reverse("notification-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({item["id"] for item in response.data}, {self.first.id, self.second.id})

    def test_unread_filter(self) -> None:
        Notification.objects.filter(pk=self.first.pk).update(is_read=True)

        response = self.client.get(reverse("notification-list"), {"unread": "1"})

        self.assertEqual([item["id"] for item in response.data], [self.second.id])

    def test_mark_read(self) -> None:
        response = self.client.post(reverse("notification-mark-read", kwargs={"pk": self.first.pk}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.first.refresh_from_db()
        self.assertTrue(self.first.is_read)

    def test_cannot_mark_foreign_notification(self) -> None:
        response = self.client.post(reverse("notification-mark-read", kwargs={"pk": self.foreign.pk}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_mark_all_read(self) -> None:
        response = self.client.post(reverse("notification-mark-all-read"))

        self.assertEqual(response.data, {"updated": 2})
        self.assertFalse(Notification.objects.filter(user=self.user, is_read=False).exists())
        self.assertFalse(Notification.objects.get(pk=self.foreign.pk).is_read)

    def test_anonymous_user_is_rejected(self) -> None:
        self.client.force_authenticate(None)

        response = self.client.get(reverse("notification-list"))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class NotificationServiceTests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(email="mailbox@example.com", password="MailboxPass123")

    def test_notify_user_sends_email(self) -> None:
        results = notify_user(self.user, "Hello", "Body text")

        self.assertEqual(results, {"in_app": True, "email": True})
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["mailbox@example.com"])
        self.assertTrue(Notification.objects.filter(user=self.user, title="Hello").exists())

    def test_email_failure_is_reported_not_raised(self) -> None:
        with mock.patch("apps.notifications.services.send_mail", side_effect=ConnectionError("smtp down")):
            with self.assertLogs("apps.notifications.services", level="ERROR"):
                delivered = send_email_notification("mailbox@example.com", "Subject", "Body")

        self.assertFalse(delivered)
