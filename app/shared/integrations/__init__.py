# -*- coding: utf-8 -*-
"""
backend/app/shared/integrations/__init__.py

Colaboradores externos compartidos (notificaciones).
"""

from .notification_sender import NotificationMessage, NotificationSender, LoggingNotificationSender
from .notification_queue import NotificationQueue

__all__ = [
    "NotificationMessage",
    "NotificationSender",
    "LoggingNotificationSender",
    "NotificationQueue",
]
