"""Template rendering for customer messages using Jinja2."""

from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from repair_tracker.logging import get_logger

from .models import NotificationTemplateError

logger = get_logger(__name__, component="notification")

TEMPLATES = {
    "job_completed": "job_completed.txt.j2",
    "payment_reminder": "payment_reminder.txt.j2",
}


class TemplateRenderer:
    """Renders WhatsApp message templates from the message_templates package directory.

    Messages are plain text, so autoescaping is off; undefined variables
    raise instead of rendering as blanks.
    """

    def __init__(self, template_dir: str = "message_templates"):
        self.env = Environment(
            loader=PackageLoader("repair_tracker.notifications", template_dir),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
        )
        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a named template (see TEMPLATES) with context.

        Raises:
            NotificationTemplateError: If the name is unknown or rendering fails
        """
        filename = TEMPLATES.get(template_name)
        if filename is None:
            raise NotificationTemplateError(
                f"Unknown template '{template_name}'. Available: {', '.join(sorted(TEMPLATES))}"
            )

        try:
            return self.env.get_template(filename).render(context).strip()
        except TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            logger.error(error_msg, exc_info=True, extra={"event": "notification.template.failed"})
            raise NotificationTemplateError(error_msg) from e
