"""Notification service for messaging customers about their jobs.

Coordinates the flow for one message:
1. Resolve the recipient (explicit number or the job's mobile)
2. Render the message template
3. Wait for the gateway session to be connected
4. Deliver with retry/backoff
"""

import logging
import time
from typing import Callable, Optional

from repair_tracker.config.models import WhatsAppConfig
from repair_tracker.domain.models import JobRecord
from repair_tracker.logging import get_logger
from repair_tracker.logging.context import log_context

from .models import NotificationResult, NotificationTemplateError, WhatsAppDeliveryError
from .payloads import build_message_context
from .phone import normalize_phone
from .templates import TemplateRenderer
from .whatsapp_client import WhatsAppClient

logger = get_logger(__name__, component="notification")

MAX_RETRY_DELAY = 60.0


class NotificationService:
    """Sends templated WhatsApp messages about jobs."""

    def __init__(
        self,
        client: WhatsAppClient,
        config: Optional[WhatsAppConfig] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        sleep: Optional[Callable[[float], None]] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize notification service.

        Args:
            client: Gateway client used for delivery
            config: Retry, shop name and country code settings (defaults if None)
            template_renderer: Template renderer instance (creates default if None)
            sleep: Sleep function used between retries
            logger_instance: Logger instance (uses module logger if None)
        """
        self.client = client
        self.config = config or WhatsAppConfig()
        self.template_renderer = template_renderer or TemplateRenderer()
        self.sleep = sleep or time.sleep
        self.logger = logger_instance or logger

    def send_job_message(
        self, job: JobRecord, template: str = "job_completed", to: Optional[str] = None
    ) -> NotificationResult:
        """
        Message a customer about a job.

        Never raises for delivery problems; the outcome is in the result.

        Args:
            job: Job the message is about
            template: Template name (job_completed, payment_reminder)
            to: Number to message instead of the job's mobile

        Returns:
            NotificationResult with status sent, skipped or failed
        """
        recipient = normalize_phone(to or job.mobile, self.config.default_country_code)

        with log_context(template=template, recipient=recipient):
            if not recipient:
                self.logger.info(
                    f"Skipping message for '{job.customer_name}' - no mobile number",
                    extra={"event": "notification.skip", "reason": "no_mobile"},
                )
                return NotificationResult(
                    recipient="",
                    template=template,
                    attempts=0,
                    status="skipped",
                    error="no usable mobile number",
                )

            try:
                message = self.template_renderer.render(
                    template, build_message_context(job, self.config.shop_name)
                )
            except NotificationTemplateError as e:
                self.logger.error(f"Template rendering failed: {e}")
                return NotificationResult(
                    recipient=recipient,
                    template=template,
                    attempts=0,
                    status="failed",
                    error=str(e),
                )

            try:
                self.client.wait_until_ready(timeout=self.config.ready_timeout_seconds)
            except WhatsAppDeliveryError as e:
                self.logger.error(
                    f"WhatsApp gateway not ready: {e}",
                    extra={"event": "notification.gateway.not_ready"},
                )
                return NotificationResult(
                    recipient=recipient,
                    template=template,
                    attempts=0,
                    status="failed",
                    error=str(e),
                    message=message,
                )

            return self._deliver(recipient, template, message)

    def _deliver(self, recipient: str, template: str, message: str) -> NotificationResult:
        max_attempts = self.config.max_retries + 1
        last_error = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = min(
                    self.config.retry_initial_delay
                    * (self.config.retry_backoff_multiplier ** (attempt - 2)),
                    MAX_RETRY_DELAY,
                )
                self.logger.warning(
                    f"Retrying delivery to {recipient} (attempt {attempt}/{max_attempts}) after {delay:.1f}s delay",
                    extra={"event": "notification.send.attempt", "attempt": attempt},
                )
                self.sleep(delay)

            try:
                self.client.send_text(recipient, message)
            except WhatsAppDeliveryError as e:
                last_error = str(e)
                self.logger.warning(
                    f"Delivery to {recipient} failed (attempt {attempt}/{max_attempts}): {e}",
                    extra={
                        "event": "notification.send.failure",
                        "attempt": attempt,
                        "retry_remaining": attempt < max_attempts,
                    },
                )
                continue

            self.logger.info(
                f"Message sent to {recipient} (attempts: {attempt})",
                extra={"event": "notification.send.success", "attempt": attempt},
            )
            return NotificationResult(
                recipient=recipient,
                template=template,
                attempts=attempt,
                status="sent",
                message=message,
            )

        return NotificationResult(
            recipient=recipient,
            template=template,
            attempts=max_attempts,
            status="failed",
            error=last_error,
            message=message,
        )
