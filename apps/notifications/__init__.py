"""Notifications app package.

In-app notifications about booking events, mirrored by email through
Django's mail backend.
"""
