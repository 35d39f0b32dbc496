"""Tests for job list filters and presentation helpers."""

from datetime import date

import pytest

from repair_tracker.reporting.filters import filter_by_date_range, filter_by_period, search_jobs
from repair_tracker.reporting.formatting import format_currency, format_percentage, month_name


class TestSearch:
    def test_matches_customer_name_any_case(self, make_job):
        jobs = [make_job(customer_name="Ravi Kumar"), make_job(customer_name="Anita")]
        assert [j.customer_name for j in search_jobs(jobs, "ravi")] == ["Ravi Kumar"]

    def test_matches_device_model(self, sample_jobs):
        assert len(search_jobs(sample_jobs, "SAMSUNG")) == 2

    def test_matches_mobile(self, make_job):
        jobs = [make_job(mobile="9876543210"), make_job(mobile="9123456780")]
        assert len(search_jobs(jobs, "98765")) == 1

    def test_blank_query_matches_everything(self, sample_jobs):
        assert len(search_jobs(sample_jobs, "  ")) == len(sample_jobs)


class TestPeriodFilter:
    def test_all_includes_undated(self, sample_jobs, today):
        assert len(filter_by_period(sample_jobs, "all", today=today)) == 5

    def test_today(self, sample_jobs, today):
        assert len(filter_by_period(sample_jobs, "today", today=today)) == 2

    def test_this_week_is_trailing_seven_days(self, make_job, today):
        jobs = [make_job(date="2024-03-09"), make_job(date="2024-03-08"), make_job(date="2024-03-15")]
        selected = filter_by_period(jobs, "this-week", today=today)
        assert [j.date for j in selected] == ["2024-03-09", "2024-03-15"]

    def test_this_and_last_month(self, sample_jobs, today):
        assert len(filter_by_period(sample_jobs, "this-month", today=today)) == 3
        last = filter_by_period(sample_jobs, "last-month", today=today)
        assert [j.date for j in last] == ["2024-02-20"]

    def test_unknown_period(self, sample_jobs):
        with pytest.raises(ValueError, match="Unknown period"):
            filter_by_period(sample_jobs, "this-decade")


class TestDateRange:
    def test_inclusive_bounds(self, sample_jobs):
        selected = filter_by_date_range(sample_jobs, date(2024, 3, 2), date(2024, 3, 15))
        assert len(selected) == 3

    def test_open_bounds(self, sample_jobs):
        assert len(filter_by_date_range(sample_jobs, end=date(2024, 2, 29))) == 1
        assert len(filter_by_date_range(sample_jobs)) == 4


class TestFormatting:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            (0, "₹0"),
            (999, "₹999"),
            (1000, "₹1,000"),
            (100000, "₹1,00,000"),
            (1234567.5, "₹12,34,567.5"),
            (1500.25, "₹1,500.25"),
            (99.999, "₹100"),
            (-2500, "-₹2,500"),
        ],
    )
    def test_format_currency(self, amount, expected):
        assert format_currency(amount) == expected

    def test_custom_symbol(self):
        assert format_currency(1000, "Rs ") == "Rs 1,000"

    def test_format_percentage(self):
        assert format_percentage(62.5) == "62.5%"
        assert format_percentage(100 / 3) == "33.3%"

    def test_month_name(self):
        assert month_name("2024-03") == "March 2024"
        assert month_name("someday") == "someday"
