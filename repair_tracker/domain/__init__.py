"""Domain models for the repair tracker."""

from .models import JobRecord, coerce_amount, coerce_text

__all__ = ["JobRecord", "coerce_amount", "coerce_text"]
