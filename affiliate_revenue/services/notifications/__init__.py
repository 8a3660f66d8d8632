"""Outbound notifications."""

from affiliate_revenue.services.notifications.webhook_notifier import (
    NotificationActor,
    WebhookNotifier,
)

__all__ = ["NotificationActor", "WebhookNotifier"]
