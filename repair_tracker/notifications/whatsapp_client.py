"""HTTP client for the WhatsApp gateway.

The gateway exposes three endpoints, each answering with a
``{success, data, error}`` envelope:

- ``GET  /api/whatsapp/status`` -> ``{connected, status, hasQr}``
- ``GET  /api/whatsapp/qr``     -> ``{qr}`` (data URL of the pairing code)
- ``POST /api/whatsapp/send``   with ``{to, message}``
"""

import time
from typing import Any, Callable, Dict, Optional

import requests

from repair_tracker.config.models import WhatsAppConfig
from repair_tracker.logging import get_logger

from .models import GatewayStatus, WhatsAppDeliveryError

logger = get_logger(__name__, component="whatsapp")


class WhatsAppClient:
    """Talks to one gateway instance.

    Args:
        gateway_url: Base URL, e.g. "http://localhost:3001"
        timeout: Per-request timeout in seconds
        session: requests session, injectable for tests
        sleep: Sleep function used while polling
        clock: Monotonic time source used while polling
    """

    def __init__(
        self,
        gateway_url: str,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if not gateway_url or not gateway_url.strip():
            raise ValueError("gateway_url cannot be empty")

        self.gateway_url = gateway_url.strip().rstrip("/")
        self.timeout = timeout
        self.sleep = sleep or time.sleep
        self.clock = clock or time.monotonic
        self._session = session or requests.Session()

    @classmethod
    def from_config(
        cls, config: WhatsAppConfig, session: Optional[requests.Session] = None
    ) -> "WhatsAppClient":
        if not config.gateway_url:
            raise ValueError("whatsapp.gateway_url (or WHATSAPP_GATEWAY_URL) is not configured")
        return cls(config.gateway_url, timeout=config.request_timeout, session=session)

    def status(self) -> GatewayStatus:
        return GatewayStatus.from_payload(self._call("GET", "status") or {})

    def qr_code(self) -> str:
        """Pairing QR code as a data URL; empty once the phone is linked."""
        data = self._call("GET", "qr") or {}
        return str(data.get("qr") or "")

    def send_text(self, to: str, message: str) -> Dict[str, Any]:
        """
        Send a text message.

        Raises:
            WhatsAppDeliveryError: If the gateway cannot be reached or refuses
        """
        if not to:
            raise WhatsAppDeliveryError("Missing recipient phone")
        if not message:
            raise WhatsAppDeliveryError("Missing message")

        data = self._call("POST", "send", json_data={"to": to, "message": message})
        logger.info(
            "WhatsApp message accepted by gateway",
            extra={"event": "whatsapp.send.accepted", "recipient": to},
        )
        return data or {}

    def wait_until_ready(self, timeout: float = 60.0, poll_interval: float = 0.5) -> GatewayStatus:
        """
        Poll the gateway until its session is connected.

        Raises:
            WhatsAppDeliveryError: If it is still not connected after timeout
        """
        deadline = self.clock() + timeout
        current = self.status()
        while not current.connected:
            if self.clock() >= deadline:
                raise WhatsAppDeliveryError(f"WhatsApp not ready (status={current.status})")
            self.sleep(poll_interval)
            current = self.status()
        return current

    def _call(
        self, method: str, endpoint: str, json_data: Optional[Dict[str, Any]] = None
    ) -> Any:
        url = f"{self.gateway_url}/api/whatsapp/{endpoint}"
        try:
            response = self._session.request(
                method=method, url=url, json=json_data, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "whatsapp.request.timeout", "url": url},
            )
            raise WhatsAppDeliveryError(f"Request to {url} timed out") from e
        except requests.exceptions.RequestException as e:
            logger.warning(
                f"Request to {url} failed: {e}",
                extra={"event": "whatsapp.request.error", "error_type": type(e).__name__, "url": url},
            )
            raise WhatsAppDeliveryError(f"Request to {url} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise WhatsAppDeliveryError(
                f"Gateway returned HTTP {response.status_code} with a non-JSON body"
            ) from e

        if response.status_code >= 400 or not isinstance(payload, dict) or not payload.get("success"):
            error = payload.get("error") if isinstance(payload, dict) else None
            logger.warning(
                f"Gateway error from {url}: {error or response.status_code}",
                extra={
                    "event": "whatsapp.request.rejected",
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise WhatsAppDeliveryError(error or f"Gateway returned HTTP {response.status_code}")

        return payload.get("data")
