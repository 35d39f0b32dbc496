"""Data models and exceptions for customer notifications."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when a message template is missing or references an undefined variable."""

    pass


class WhatsAppDeliveryError(NotificationError):
    """Raised when the WhatsApp gateway rejects or cannot deliver a message."""

    pass


@dataclass(frozen=True)
class GatewayStatus:
    """Connection state reported by the WhatsApp gateway.

    ``status`` is the gateway's own label: loading, qrcode, connected or
    disconnected.
    """

    connected: bool
    status: str
    has_qr: bool = False

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "GatewayStatus":
        return cls(
            connected=bool(data.get("connected")),
            status=str(data.get("status") or "unknown"),
            has_qr=bool(data.get("hasQr")),
        )


@dataclass
class NotificationResult:
    """Result of attempting to message a customer about a job.

    Attributes:
        recipient: Normalized phone number (empty if none was usable)
        template: Template name that was rendered
        attempts: Number of send attempts made
        status: Outcome status (sent, skipped, failed)
        error: Optional error message if delivery failed or was skipped
        message: Rendered message text, when rendering succeeded
    """

    recipient: str
    template: str
    attempts: int
    status: str  # "sent", "skipped", "failed"
    error: Optional[str] = None
    message: Optional[str] = None

    def is_success(self) -> bool:
        return self.status == "sent"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipient": self.recipient,
            "template": self.template,
            "attempts": self.attempts,
            "status": self.status,
            "error": self.error,
        }
