"""Result structures produced by the aggregation engine.

All results are frozen dataclasses built fresh on every aggregation call.
``to_dict`` renders the camelCase shape used by charts, tables and exports.
"""

from dataclasses import dataclass
from typing import Any, Dict


def compute_margin(profit: float, revenue: float) -> float:
    """Profit as a percentage of revenue; 0 when there is no revenue."""
    if revenue > 0:
        return profit / revenue * 100
    return 0.0


@dataclass(frozen=True)
class DailyStats:
    """Totals for one calendar day."""

    date: str
    jobs: int = 0
    revenue: float = 0.0
    parts_cost: float = 0.0
    profit: float = 0.0
    margin: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "jobs": self.jobs,
            "revenue": self.revenue,
            "partsCost": self.parts_cost,
            "profit": self.profit,
            "margin": self.margin,
        }


@dataclass(frozen=True)
class WeeklyStats:
    """Totals for one week of a month.

    Attributes:
        week: Label such as ``"Week 2"`` (days 8-14)
        margin: Whole-number percentage, rounded half up
    """

    week: str
    week_number: int
    jobs: int = 0
    revenue: float = 0.0
    parts_cost: float = 0.0
    profit: float = 0.0
    margin: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "jobs": self.jobs,
            "revenue": self.revenue,
            "partsCost": self.parts_cost,
            "profit": self.profit,
            "margin": self.margin,
        }


@dataclass(frozen=True)
class MonthlyStats:
    """Totals for one ``YYYY-MM`` month.

    ``daily_average`` divides revenue by the real length of that month.
    A month key that is not ``YYYY-MM`` holds jobs whose date could not be
    recognized; its daily average is 0.
    """

    month: str
    jobs: int = 0
    revenue: float = 0.0
    parts_cost: float = 0.0
    profit: float = 0.0
    margin: float = 0.0
    daily_average: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "jobs": self.jobs,
            "revenue": self.revenue,
            "partsCost": self.parts_cost,
            "profit": self.profit,
            "margin": self.margin,
            "dailyAverage": self.daily_average,
        }


@dataclass(frozen=True)
class YearlyStats:
    """Totals for one year; ``monthly_average`` is revenue / 12."""

    year: str
    jobs: int = 0
    revenue: float = 0.0
    parts_cost: float = 0.0
    profit: float = 0.0
    margin: float = 0.0
    monthly_average: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "jobs": self.jobs,
            "revenue": self.revenue,
            "partsCost": self.parts_cost,
            "profit": self.profit,
            "margin": self.margin,
            "monthlyAverage": self.monthly_average,
        }


@dataclass(frozen=True)
class CategoryStats:
    """Revenue per device brand."""

    category: str
    value: float
    count: int
    average_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "value": self.value,
            "count": self.count,
            "averageValue": self.average_value,
        }


@dataclass(frozen=True)
class DashboardStats:
    """Headline totals across every job."""

    total_jobs: int = 0
    total_revenue: float = 0.0
    total_parts_cost: float = 0.0
    net_profit: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalJobs": self.total_jobs,
            "totalRevenue": self.total_revenue,
            "totalPartsCost": self.total_parts_cost,
            "netProfit": self.net_profit,
        }


@dataclass(frozen=True)
class PeriodComparison:
    """This month against last month, with a percentage trend per metric."""

    current: MonthlyStats
    previous: MonthlyStats
    jobs_trend: float
    revenue_trend: float
    parts_cost_trend: float
    profit_trend: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current.to_dict(),
            "previous": self.previous.to_dict(),
            "trends": {
                "jobs": self.jobs_trend,
                "revenue": self.revenue_trend,
                "partsCost": self.parts_cost_trend,
                "profit": self.profit_trend,
            },
        }
