"""Notification fan-out."""

from .hub import NotificationHub, Subscription

__all__ = ["NotificationHub", "Subscription"]
