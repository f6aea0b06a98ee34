"""
Campaign Service Clients

Clients for calling other microservices.
"""

from .notification_client import NotificationClient, render_notification

__all__ = [
    "NotificationClient",
    "render_notification",
]
