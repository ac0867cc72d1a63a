"""Bookings app package.

Stay reservations: creation under a row lock, confirmation, cancellation
with the refund policy, and the Celery tasks that expire unpaid holds and
complete finished stays.
"""
