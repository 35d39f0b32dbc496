"""Tests for period aggregation, trends and dashboard totals."""

import math
from datetime import date, timedelta

import pytest

from repair_tracker.reporting.engine import (
    AggregationEngine,
    build_period_comparison,
    category_stats,
    compute_trend,
    current_month_key,
    daily_stats,
    dashboard_stats,
    monthly_stats,
    previous_month_key,
    today_stats,
    weekly_stats,
    yearly_stats,
)
from repair_tracker.reporting.models import MonthlyStats, compute_margin


class TestMargin:
    def test_margin(self):
        assert compute_margin(250, 1000) == 25.0

    def test_zero_revenue(self):
        assert compute_margin(-100, 0) == 0.0


class TestTrend:
    @pytest.mark.parametrize(
        "current,previous,expected",
        [(150, 100, 50.0), (50, 100, -50.0), (5, 0, 100.0), (0, 0, 0.0), (0, 100, -100.0)],
    )
    def test_compute_trend(self, current, previous, expected):
        assert compute_trend(current, previous) == pytest.approx(expected)


class TestDailyStats:
    def test_window_has_one_bucket_per_day_oldest_first(self, sample_jobs, today):
        stats = daily_stats(sample_jobs, window_days=7, today=today)

        assert [s.date for s in stats] == [
            "2024-03-09",
            "2024-03-10",
            "2024-03-11",
            "2024-03-12",
            "2024-03-13",
            "2024-03-14",
            "2024-03-15",
        ]
        assert all(s.jobs == 0 and s.revenue == 0 for s in stats[:-1])

        last = stats[-1]
        assert last.jobs == 2
        assert last.revenue == 3500.0
        assert last.parts_cost == 1400.0
        assert last.profit == 2100.0
        assert last.margin == pytest.approx(60.0)

    def test_jobs_outside_window_ignored(self, sample_jobs, today):
        assert sum(s.jobs for s in daily_stats(sample_jobs, window_days=14, today=today)) == 3
        assert sum(s.jobs for s in daily_stats(sample_jobs, window_days=30, today=today)) == 4

    def test_zero_window(self, sample_jobs, today):
        assert daily_stats(sample_jobs, window_days=0, today=today) == []

    def test_empty_input_gives_thirty_zero_buckets(self, today):
        stats = daily_stats([], 30, today=today)

        assert len(stats) == 30
        assert [s.date for s in stats] == [
            (today - timedelta(days=offset)).isoformat() for offset in range(29, -1, -1)
        ]
        assert stats[-1].date == "2024-03-15"
        assert all(s.jobs == 0 and s.revenue == 0 and s.margin == 0 for s in stats)

    def test_none_jobs(self, today):
        stats = daily_stats(None, window_days=3, today=today)
        assert len(stats) == 3
        assert all(s.jobs == 0 for s in stats)

    def test_window_crosses_leap_day(self, make_job):
        jobs = [make_job(date="2024-02-29", price=100, parts_cost=0)]
        stats = daily_stats(jobs, window_days=3, today=date(2024, 3, 1))
        assert [s.date for s in stats] == ["2024-02-28", "2024-02-29", "2024-03-01"]
        assert stats[1].revenue == 100.0

    def test_today_stats(self, sample_jobs, today):
        stats = today_stats(sample_jobs, today=today)
        assert stats.date == "2024-03-15"
        assert stats.jobs == 2

    def test_single_job_today(self, today):
        row = {"date": "2024-03-15", "price": 500, "partsCost": 300, "profit": 200}

        stats = today_stats([row], today=today)

        assert stats.jobs == 1
        assert stats.revenue == 500.0
        assert stats.profit == 200.0
        assert stats.margin == pytest.approx(40.0)


class TestMonthlyStats:
    def test_chronological_with_daily_average(self, sample_jobs):
        stats = monthly_stats(sample_jobs)

        assert [s.month for s in stats] == ["2024-02", "2024-03"]
        february, march = stats
        assert february.revenue == 1500.0
        assert february.daily_average == pytest.approx(1500 / 29)
        assert march.jobs == 3
        assert march.revenue == 4000.0
        assert march.profit == 2500.0
        assert march.margin == pytest.approx(62.5)
        assert march.daily_average == pytest.approx(4000 / 31)

    def test_undated_jobs_excluded(self, sample_jobs):
        assert sum(s.jobs for s in monthly_stats(sample_jobs)) == 4

    def test_unrecognized_date_gets_own_bucket_last(self, make_job):
        jobs = [make_job(date="someday", price=10), make_job(date="2024-01-05", price=20)]

        stats = monthly_stats(jobs)

        assert [s.month for s in stats] == ["2024-01", "someday"]
        assert stats[1].revenue == 10.0
        assert stats[1].daily_average == 0.0

    def test_mixed_formats_share_a_month(self):
        rows = [
            {"date": "2024-03-01", "price": 100},
            {"date": "01-03-2024", "price": 200},
            {"date": "1/3/2024", "price": 300},
        ]

        stats = monthly_stats(rows)

        assert len(stats) == 1
        assert stats[0].month == "2024-03"
        assert stats[0].jobs == 3
        assert stats[0].revenue == 600.0

    def test_accepts_raw_rows(self):
        stats = monthly_stats([{"date": "15/03/2024", "price": "1,000", "partsCost": "200"}])

        assert len(stats) == 1
        assert stats[0].month == "2024-03"
        assert stats[0].profit == 800.0

    def test_empty(self):
        assert monthly_stats([]) == []
        assert monthly_stats(None) == []


class TestYearlyStats:
    def test_yearly(self, sample_jobs, make_job):
        jobs = sample_jobs + [make_job(date="2023-12-31", price=1200, parts_cost=0)]

        stats = yearly_stats(jobs)

        assert [s.year for s in stats] == ["2023", "2024"]
        assert stats[0].monthly_average == pytest.approx(100.0)
        assert stats[1].jobs == 4
        assert stats[1].revenue == 5500.0
        assert stats[1].monthly_average == pytest.approx(5500 / 12)

    def test_unrecognized_year_last(self, make_job):
        stats = yearly_stats([make_job(date="someday"), make_job(date="2024-01-01")])
        assert [s.year for s in stats] == ["2024", "someday"]
        assert stats[1].monthly_average == 0.0

    def test_empty(self):
        assert yearly_stats([]) == []
        assert yearly_stats(None) == []


class TestCategoryStats:
    def test_sorted_by_value_ties_keep_first_seen(self, sample_jobs):
        stats = category_stats(sample_jobs)

        assert [s.category for s in stats] == ["LG", "Samsung", "Sony", "Other"]
        samsung = stats[1]
        assert samsung.value == 1500.0
        assert samsung.count == 2
        assert samsung.average_value == 750.0

    def test_undated_jobs_count(self, sample_jobs):
        assert sum(s.count for s in category_stats(sample_jobs)) == 5

    def test_empty(self):
        assert category_stats([]) == []
        assert category_stats(None) == []


class TestMarginBound:
    @pytest.fixture
    def jobs(self, sample_jobs, make_job):
        # Zero-revenue day, week, month and year alongside the sample book
        return sample_jobs + [
            make_job(date="2024-03-12", price=0, parts_cost=50),
            make_job(date="2023-06-01", price=0, parts_cost=0),
        ]

    @pytest.mark.parametrize(
        "build",
        [
            lambda jobs, today: daily_stats(jobs, 30, today=today),
            lambda jobs, today: [today_stats(jobs, today=today)],
            lambda jobs, today: monthly_stats(jobs),
            lambda jobs, today: yearly_stats(jobs),
        ],
        ids=["daily", "today", "monthly", "yearly"],
    )
    def test_margin_follows_revenue(self, jobs, today, build):
        stats = build(jobs, today)

        assert stats
        for s in stats:
            if s.revenue == 0:
                assert s.margin == 0
            else:
                assert s.margin == pytest.approx(s.profit / s.revenue * 100)

    def test_weekly_margin_is_rounded(self, jobs):
        stats = weekly_stats(jobs, "2024-03")

        assert any(s.revenue == 0 for s in stats)
        for s in stats:
            if s.revenue == 0:
                assert s.margin == 0
            else:
                assert s.margin == math.floor(s.profit / s.revenue * 100 + 0.5)


class TestWeeklyStats:
    def test_weeks_of_month(self, sample_jobs):
        stats = weekly_stats(sample_jobs, "2024-03")

        assert [s.week for s in stats] == ["Week 1", "Week 3"]
        assert stats[0].revenue == 500.0
        assert stats[0].margin == 80
        assert stats[1].jobs == 2
        assert stats[1].margin == 60

    def test_week_boundaries(self, make_job):
        days = ["2024-03-07", "2024-03-08", "2024-03-28", "2024-03-29", "2024-03-31"]
        stats = weekly_stats([make_job(date=d) for d in days], "2024-03")

        assert [(s.week_number, s.jobs) for s in stats] == [(1, 1), (2, 1), (4, 1), (5, 2)]

    def test_margin_rounds_half_up(self, make_job):
        stats = weekly_stats([make_job(date="2024-03-01", price=1000, parts_cost=875)], "2024-03")
        assert stats[0].margin == 13

    def test_other_months_ignored(self, sample_jobs):
        assert weekly_stats(sample_jobs, "2023-03") == []


class TestDashboardAndComparison:
    def test_dashboard_totals(self, sample_jobs):
        stats = dashboard_stats(sample_jobs)

        assert stats.total_jobs == 5
        assert stats.total_revenue == 5800.0
        assert stats.total_parts_cost == 2000.0
        assert stats.net_profit == 3800.0

    def test_dashboard_empty(self):
        stats = dashboard_stats(None)
        assert stats.total_jobs == 0
        assert stats.net_profit == 0.0

    def test_month_over_month(self, sample_jobs, today):
        comparison = build_period_comparison(sample_jobs, today=today)

        assert comparison.current.month == "2024-03"
        assert comparison.previous.month == "2024-02"
        assert comparison.jobs_trend == pytest.approx(200.0)
        assert comparison.revenue_trend == pytest.approx((4000 - 1500) / 1500 * 100)

    def test_missing_previous_month(self, make_job, today):
        comparison = build_period_comparison([make_job(date="2024-03-01")], today=today)

        assert comparison.previous == MonthlyStats(month="2024-02")
        assert comparison.revenue_trend == 100.0

    def test_comparison_to_dict(self, sample_jobs, today):
        payload = build_period_comparison(sample_jobs, today=today).to_dict()
        assert set(payload) == {"current", "previous", "trends"}
        assert set(payload["trends"]) == {"jobs", "revenue", "partsCost", "profit"}

    def test_month_keys(self):
        assert current_month_key(date(2024, 1, 10)) == "2024-01"
        assert previous_month_key(date(2024, 1, 10)) == "2023-12"
        assert previous_month_key(date(2024, 3, 31)) == "2024-02"


class TestAggregationEngine:
    @pytest.fixture
    def engine(self, today):
        return AggregationEngine(clock=lambda: today, daily_window_days=7)

    def test_uses_clock_and_default_window(self, engine, sample_jobs):
        stats = engine.daily(sample_jobs)
        assert len(stats) == 7
        assert stats[-1].date == "2024-03-15"

    def test_window_override(self, engine, sample_jobs):
        assert len(engine.daily(sample_jobs, window_days=2)) == 2

    def test_weekly_defaults_to_current_month(self, engine, sample_jobs):
        assert [s.week for s in engine.weekly(sample_jobs)] == ["Week 1", "Week 3"]

    def test_views_agree_with_functions(self, engine, sample_jobs, today):
        assert engine.today(sample_jobs) == today_stats(sample_jobs, today=today)
        assert engine.monthly(sample_jobs) == monthly_stats(sample_jobs)
        assert engine.yearly(sample_jobs) == yearly_stats(sample_jobs)
        assert engine.categories(sample_jobs) == category_stats(sample_jobs)
        assert engine.totals(sample_jobs) == dashboard_stats(sample_jobs)
        assert engine.comparison(sample_jobs) == build_period_comparison(sample_jobs, today=today)
        assert engine.trend(150, 100) == pytest.approx(50.0)

    def test_results_serialize_camel_case(self, engine, sample_jobs):
        daily = engine.today(sample_jobs).to_dict()
        monthly = engine.monthly(sample_jobs)[0].to_dict()
        weekly = engine.weekly(sample_jobs)[0].to_dict()

        assert set(daily) == {"date", "jobs", "revenue", "partsCost", "profit", "margin"}
        assert "dailyAverage" in monthly
        assert weekly["week"] == "Week 1"
