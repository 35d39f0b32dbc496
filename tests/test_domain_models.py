"""Tests for the JobRecord domain model."""

import pytest
from pydantic import ValidationError

from repair_tracker.domain.models import JobRecord, coerce_amount, coerce_text


class TestCoercion:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (1500, 1500.0),
            (99.5, 99.5),
            ("1,500", 1500.0),
            (" 250 ", 250.0),
            ("", 0.0),
            (None, 0.0),
            ("abc", 0.0),
            (True, 0.0),
            (float("inf"), 0.0),
            ("-200", -200.0),
        ],
    )
    def test_coerce_amount(self, raw, expected):
        assert coerce_amount(raw) == expected

    def test_coerce_text(self):
        assert coerce_text(None) == ""
        assert coerce_text(9876543210.0) == "9876543210"
        assert coerce_text("  Ravi ") == "Ravi"
        assert coerce_text(42) == "42"


class TestJobRecord:
    def test_accepts_sheet_wire_names(self):
        job = JobRecord.from_raw(
            {
                "date": "15/03/2024",
                "customerName": "Ravi",
                "mobile": 9876543210,
                "tvModel": "Samsung 32",
                "workDone": "Panel repair",
                "price": "1,200",
                "partsCost": "300",
                "profit": "900",
            }
        )

        assert job.date == "2024-03-15"
        assert job.customer_name == "Ravi"
        assert job.mobile == "9876543210"
        assert job.device_model == "Samsung 32"
        assert job.work_description == "Panel repair"
        assert job.price == 1200.0
        assert job.parts_cost == 300.0
        assert job.profit == 900.0

    def test_profit_derived_when_missing(self):
        job = JobRecord.from_raw({"price": 1000, "partsCost": 350})
        assert job.profit == 650.0

    def test_profit_derived_when_blank(self):
        job = JobRecord.from_raw({"price": "500", "parts_cost": "100", "profit": ""})
        assert job.profit == 400.0

    def test_supplied_profit_is_kept(self):
        job = JobRecord.from_raw({"price": 1000, "partsCost": 350, "profit": 500})
        assert job.profit == 500.0

    def test_bad_amounts_become_zero(self):
        job = JobRecord.from_raw({"price": "n/a", "partsCost": None})
        assert job.price == 0.0
        assert job.parts_cost == 0.0
        assert job.profit == 0.0

    def test_missing_fields_default_to_empty(self):
        job = JobRecord.from_raw({})
        assert job.date == ""
        assert job.customer_name == ""
        assert job.device_model == ""

    def test_unrecognized_date_kept(self):
        assert JobRecord.from_raw({"date": "someday"}).date == "someday"

    def test_frozen(self, make_job):
        job = make_job()
        with pytest.raises(ValidationError):
            job.price = 5

    def test_from_raw_returns_existing_record(self, make_job):
        job = make_job()
        assert JobRecord.from_raw(job) is job

    @pytest.mark.parametrize(
        "model,expected",
        [("Samsung 32 inch", "Samsung"), ("  LG  OLED", "LG"), ("", "Other"), ("   ", "Other")],
    )
    def test_category(self, make_job, model, expected):
        assert make_job(device_model=model).category == expected

    def test_sheet_payload_uses_wire_names(self, make_job):
        payload = make_job(price=1000, parts_cost=400).to_sheet_payload()
        assert payload == {
            "date": "2024-03-15",
            "customerName": "Ravi Kumar",
            "mobile": "9876543210",
            "tvModel": "Samsung 32 inch LED",
            "workDone": "Backlight replaced",
            "price": 1000.0,
            "partsCost": 400.0,
            "profit": 600.0,
        }
