"""Presentation helpers for money, percentages and month labels."""

import calendar

from .engine import is_month_key

CURRENCY_SYMBOL = "₹"


def format_currency(amount: float, symbol: str = CURRENCY_SYMBOL) -> str:
    """
    Format an amount with Indian digit grouping.

    Up to two decimals are kept and trailing zeros dropped:
    ``format_currency(1234567.5)`` -> ``"₹12,34,567.5"``.
    """
    negative = amount < 0
    text = f"{abs(amount):.2f}".rstrip("0").rstrip(".")
    whole, _, fraction = text.partition(".")

    grouped = _group_indian(whole)
    if fraction:
        grouped = f"{grouped}.{fraction}"
    return f"-{symbol}{grouped}" if negative and grouped != "0" else f"{symbol}{grouped}"


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"


def month_name(month_key: str) -> str:
    """``"2024-03"`` -> ``"March 2024"``; anything else is returned as-is."""
    if not is_month_key(month_key):
        return month_key
    year, month = month_key.split("-")
    return f"{calendar.month_name[int(month)]} {year}"


def _group_indian(digits: str) -> str:
    # Last three digits, then groups of two: 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])
