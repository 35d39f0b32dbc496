"""Aggregation of repair jobs into dashboard and report statistics.

This package provides:
- engine: daily, weekly, monthly, yearly, category and today views,
  dashboard totals, month-over-month trends and AggregationEngine
- filters: search and period filters for job lists
- formatting: currency, percentage and month label helpers
"""

from .engine import (
    AggregationEngine,
    build_period_comparison,
    category_stats,
    compute_trend,
    daily_stats,
    dashboard_stats,
    monthly_stats,
    today_stats,
    weekly_stats,
    yearly_stats,
)
from .filters import PERIODS, filter_by_date_range, filter_by_period, search_jobs
from .formatting import format_currency, format_percentage, month_name
from .models import (
    CategoryStats,
    DailyStats,
    DashboardStats,
    MonthlyStats,
    PeriodComparison,
    WeeklyStats,
    YearlyStats,
    compute_margin,
)

__all__ = [
    "AggregationEngine",
    "daily_stats",
    "today_stats",
    "weekly_stats",
    "monthly_stats",
    "yearly_stats",
    "category_stats",
    "dashboard_stats",
    "build_period_comparison",
    "compute_trend",
    "compute_margin",
    "search_jobs",
    "filter_by_period",
    "filter_by_date_range",
    "PERIODS",
    "format_currency",
    "format_percentage",
    "month_name",
    "DailyStats",
    "WeeklyStats",
    "MonthlyStats",
    "YearlyStats",
    "CategoryStats",
    "DashboardStats",
    "PeriodComparison",
]
