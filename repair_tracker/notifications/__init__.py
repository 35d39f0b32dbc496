"""WhatsApp notifications for customers.

This module provides:
- NotificationService: renders a job message and delivers it with retries
- WhatsAppClient: HTTP client for the messaging gateway
- TemplateRenderer: Jinja2 message templates
- normalize_phone: recipient number cleanup
"""

from .models import (
    GatewayStatus,
    NotificationError,
    NotificationResult,
    NotificationTemplateError,
    WhatsAppDeliveryError,
)
from .payloads import build_message_context
from .phone import normalize_phone
from .service import NotificationService
from .templates import TEMPLATES, TemplateRenderer
from .whatsapp_client import WhatsAppClient

__all__ = [
    # Main service
    "NotificationService",
    # Models and results
    "NotificationResult",
    "GatewayStatus",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "WhatsAppDeliveryError",
    # Components
    "TemplateRenderer",
    "WhatsAppClient",
    "TEMPLATES",
    # Utilities
    "build_message_context",
    "normalize_phone",
]
