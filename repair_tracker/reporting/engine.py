"""Aggregation of job records into period statistics.

Every function here is pure: it takes the full job list, recomputes from
scratch and returns new result objects. Inputs may be JobRecord instances
or raw row mappings; ``None`` is treated as an empty list. Bad amounts were
already coerced to 0 by JobRecord, so aggregation never fails on data.

Dates that could not be normalized keep their raw text. Such jobs get a
monthly and yearly bucket of their own, keyed by that text and listed after
the real periods, so the anomaly stays visible. Jobs with no date at all
only count towards category and dashboard totals.
"""

import calendar
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from repair_tracker.domain.models import JobRecord
from repair_tracker.normalization.dates import is_canonical_date, parse_canonical
from repair_tracker.utils.timestamps import utc_today

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

JobLike = Union[JobRecord, Mapping[str, Any]]

DEFAULT_WINDOW_DAYS = 30


@dataclass
class _Totals:
    jobs: int = 0
    revenue: float = 0.0
    parts_cost: float = 0.0
    profit: float = 0.0

    def add(self, job: JobRecord) -> None:
        self.jobs += 1
        self.revenue += job.price
        self.parts_cost += job.parts_cost
        self.profit += job.profit

    @property
    def margin(self) -> float:
        return compute_margin(self.profit, self.revenue)


def as_records(jobs: Optional[Iterable[JobLike]]) -> List[JobRecord]:
    """Materialize jobs as JobRecord instances; ``None`` becomes ``[]``."""
    if jobs is None:
        return []
    return [JobRecord.from_raw(job) for job in jobs]


def compute_trend(current: float, previous: float) -> float:
    """
    Percentage change from previous to current.

    A zero baseline reads as +100% when anything happened and 0% otherwise,
    so the result is always a finite number.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def daily_stats(
    jobs: Optional[Iterable[JobLike]],
    window_days: int = DEFAULT_WINDOW_DAYS,
    today: Optional[date] = None,
) -> List[DailyStats]:
    """
    One bucket per day for the trailing window ending today, oldest first.

    Days without jobs are present with zero totals. Jobs outside the window
    are ignored.
    """
    if window_days <= 0:
        return []

    end = today or utc_today()
    buckets: Dict[str, _Totals] = {}
    for offset in range(window_days - 1, -1, -1):
        buckets[(end - timedelta(days=offset)).isoformat()] = _Totals()

    for job in as_records(jobs):
        totals = buckets.get(job.date)
        if totals is not None:
            totals.add(job)

    return [
        DailyStats(
            date=day,
            jobs=totals.jobs,
            revenue=totals.revenue,
            parts_cost=totals.parts_cost,
            profit=totals.profit,
            margin=totals.margin,
        )
        for day, totals in buckets.items()
    ]


def today_stats(jobs: Optional[Iterable[JobLike]], today: Optional[date] = None) -> DailyStats:
    """Totals for the current UTC day as a single bucket."""
    return daily_stats(jobs, window_days=1, today=today)[0]


def monthly_stats(jobs: Optional[Iterable[JobLike]]) -> List[MonthlyStats]:
    """Totals per ``YYYY-MM`` month, in chronological order."""
    buckets = _group(as_records(jobs), _month_key)

    results = []
    for key in _ordered_keys(buckets, is_month_key):
        totals = buckets[key]
        results.append(
            MonthlyStats(
                month=key,
                jobs=totals.jobs,
                revenue=totals.revenue,
                parts_cost=totals.parts_cost,
                profit=totals.profit,
                margin=totals.margin,
                daily_average=_daily_average(key, totals.revenue),
            )
        )
    return results


def yearly_stats(jobs: Optional[Iterable[JobLike]]) -> List[YearlyStats]:
    """Totals per year, ascending. Monthly average is a flat revenue / 12."""
    buckets = _group(as_records(jobs), _year_key)

    results = []
    for key in _ordered_keys(buckets, _is_year_key):
        totals = buckets[key]
        results.append(
            YearlyStats(
                year=key,
                jobs=totals.jobs,
                revenue=totals.revenue,
                parts_cost=totals.parts_cost,
                profit=totals.profit,
                margin=totals.margin,
                monthly_average=totals.revenue / 12 if _is_year_key(key) else 0.0,
            )
        )
    return results


def category_stats(jobs: Optional[Iterable[JobLike]]) -> List[CategoryStats]:
    """Revenue per brand (first word of the device model), highest first."""
    counts: Dict[str, int] = {}
    values: Dict[str, float] = {}
    for job in as_records(jobs):
        category = job.category
        counts[category] = counts.get(category, 0) + 1
        values[category] = values.get(category, 0.0) + job.price

    results = [
        CategoryStats(
            category=category,
            value=values[category],
            count=count,
            average_value=values[category] / count,
        )
        for category, count in counts.items()
    ]
    # Stable sort keeps first-seen order between equal values
    results.sort(key=lambda stats: stats.value, reverse=True)
    return results


def weekly_stats(jobs: Optional[Iterable[JobLike]], month_key: str) -> List[WeeklyStats]:
    """
    Totals per week of the given month.

    Week N covers days 7N-6 through 7N, so a month has up to five weeks.
    Only weeks with jobs are returned, ordered by week number. Margin is a
    whole percentage rounded half up.
    """
    buckets: Dict[int, _Totals] = {}
    for job in as_records(jobs):
        if not job.date.startswith(month_key):
            continue
        day = parse_canonical(job.date)
        if day is None:
            continue
        week_number = math.ceil(day.day / 7)
        buckets.setdefault(week_number, _Totals()).add(job)

    return [
        WeeklyStats(
            week=f"Week {number}",
            week_number=number,
            jobs=totals.jobs,
            revenue=totals.revenue,
            parts_cost=totals.parts_cost,
            profit=totals.profit,
            margin=_round_half_up(totals.margin),
        )
        for number, totals in sorted(buckets.items())
    ]


def dashboard_stats(jobs: Optional[Iterable[JobLike]]) -> DashboardStats:
    """Headline totals. Net profit is revenue minus parts cost."""
    totals = _Totals()
    for job in as_records(jobs):
        totals.add(job)
    return DashboardStats(
        total_jobs=totals.jobs,
        total_revenue=totals.revenue,
        total_parts_cost=totals.parts_cost,
        net_profit=totals.revenue - totals.parts_cost,
    )


def build_period_comparison(
    jobs: Optional[Iterable[JobLike]], today: Optional[date] = None
) -> PeriodComparison:
    """Compare the current calendar month with the one before it."""
    current_key = current_month_key(today)
    previous_key = previous_month_key(today)
    by_month = {stats.month: stats for stats in monthly_stats(jobs)}
    current = by_month.get(current_key) or MonthlyStats(month=current_key)
    previous = by_month.get(previous_key) or MonthlyStats(month=previous_key)

    return PeriodComparison(
        current=current,
        previous=previous,
        jobs_trend=compute_trend(current.jobs, previous.jobs),
        revenue_trend=compute_trend(current.revenue, previous.revenue),
        parts_cost_trend=compute_trend(current.parts_cost, previous.parts_cost),
        profit_trend=compute_trend(current.profit, previous.profit),
    )


def is_month_key(key: str) -> bool:
    """Whether key is a real ``YYYY-MM`` month."""
    return is_canonical_date(f"{key}-01")


def current_month_key(today: Optional[date] = None) -> str:
    return (today or utc_today()).strftime("%Y-%m")


def previous_month_key(today: Optional[date] = None) -> str:
    first_of_month = (today or utc_today()).replace(day=1)
    return (first_of_month - timedelta(days=1)).strftime("%Y-%m")


def _group(records: List[JobRecord], key_func: Callable[[str], str]) -> Dict[str, _Totals]:
    buckets: Dict[str, _Totals] = {}
    for job in records:
        if not job.date:
            continue
        buckets.setdefault(key_func(job.date), _Totals()).add(job)
    return buckets


def _month_key(job_date: str) -> str:
    if is_canonical_date(job_date):
        return job_date[:7]
    return job_date


def _year_key(job_date: str) -> str:
    if is_canonical_date(job_date):
        return job_date[:4]
    return job_date


def _is_year_key(key: str) -> bool:
    return len(key) == 4 and key.isdigit()


def _ordered_keys(buckets: Mapping[str, Any], is_period: Callable[[str], bool]) -> List[str]:
    # Real periods first in ascending order, then unrecognized dates
    return sorted(buckets, key=lambda key: (not is_period(key), key))


def _daily_average(month_key: str, revenue: float) -> float:
    if not is_month_key(month_key):
        return 0.0
    year, month = (int(part) for part in month_key.split("-"))
    return revenue / calendar.monthrange(year, month)[1]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class AggregationEngine:
    """Aggregation functions bound to a clock and a default daily window."""

    def __init__(
        self,
        clock: Optional[Callable[[], date]] = None,
        daily_window_days: int = DEFAULT_WINDOW_DAYS,
    ):
        """Initialize AggregationEngine.

        Args:
            clock: Returns today's date; defaults to the UTC day
            daily_window_days: Default trailing window for daily views
        """
        self.clock = clock or utc_today
        self.daily_window_days = daily_window_days

    def daily(self, jobs: Optional[Iterable[JobLike]], window_days: Optional[int] = None) -> List[DailyStats]:
        """Per-day totals for the trailing window ending today.

        Args:
            jobs: Job records or raw rows; None counts as no jobs
            window_days: Days to cover; the engine default when omitted

        Returns:
            One bucket per day, oldest first, empty when the window is not positive
        """
        window = self.daily_window_days if window_days is None else window_days
        return daily_stats(jobs, window_days=window, today=self.clock())

    def today(self, jobs: Optional[Iterable[JobLike]]) -> DailyStats:
        """Totals for today's jobs according to the clock."""
        return today_stats(jobs, today=self.clock())

    def monthly(self, jobs: Optional[Iterable[JobLike]]) -> List[MonthlyStats]:
        """Per-month totals, oldest first, unrecognized dates last.

        Args:
            jobs: Job records or raw rows

        Returns:
            MonthlyStats with revenue averaged over the days in each month
        """
        return monthly_stats(jobs)

    def yearly(self, jobs: Optional[Iterable[JobLike]]) -> List[YearlyStats]:
        """Per-year totals with revenue averaged over twelve months."""
        return yearly_stats(jobs)

    def categories(self, jobs: Optional[Iterable[JobLike]]) -> List[CategoryStats]:
        """Revenue by brand, highest value first. Undated jobs count here."""
        return category_stats(jobs)

    def weekly(self, jobs: Optional[Iterable[JobLike]], month_key: Optional[str] = None) -> List[WeeklyStats]:
        """Week 1-5 breakdown of one month.

        Args:
            jobs: Job records or raw rows
            month_key: ``YYYY-MM``; the clock's current month when omitted

        Returns:
            Only the weeks that have jobs, in week order
        """
        return weekly_stats(jobs, month_key or current_month_key(self.clock()))

    def trend(self, current: float, previous: float) -> float:
        """Percentage change; see ``compute_trend`` for the zero baseline."""
        return compute_trend(current, previous)

    def comparison(self, jobs: Optional[Iterable[JobLike]]) -> PeriodComparison:
        """This calendar month against the previous one, with a trend per metric."""
        return build_period_comparison(jobs, today=self.clock())

    def totals(self, jobs: Optional[Iterable[JobLike]]) -> DashboardStats:
        """All-time job count, revenue, parts cost and net profit."""
        return dashboard_stats(jobs)
