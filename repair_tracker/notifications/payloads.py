"""Template context for job messages."""

from typing import Any, Dict

from repair_tracker.domain.models import JobRecord
from repair_tracker.normalization.dates import display_date
from repair_tracker.reporting.formatting import format_currency


def build_message_context(job: JobRecord, shop_name: str) -> Dict[str, Any]:
    """Everything a message template may reference about one job."""
    return {
        "shop_name": shop_name,
        "customer_name": job.customer_name or "Customer",
        "mobile": job.mobile,
        "device_model": job.device_model or "device",
        "work_description": job.work_description,
        "date": display_date(job.date),
        "price": format_currency(job.price),
        "parts_cost": format_currency(job.parts_cost),
        "amount_due": format_currency(job.price),
    }
