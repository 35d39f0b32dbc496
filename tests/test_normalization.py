"""Tests for the row normalization service."""

import logging
from unittest.mock import Mock

import pytest

from repair_tracker.normalization.service import JobNormalizer, NormalizationResult


@pytest.fixture
def normalizer():
    return JobNormalizer(logger_instance=Mock(spec=logging.Logger))


class TestNormalize:
    def test_clean_row(self, normalizer):
        result = normalizer.normalize(
            {"date": "15-03-2024", "customerName": "Ravi", "price": "1000", "partsCost": "200", "profit": "800"}
        )

        assert isinstance(result, NormalizationResult)
        assert result.record.date == "2024-03-15"
        assert result.date_recognized is True
        assert result.coerced_fields == []
        assert result.profit_derived is False
        assert result.is_clean
        normalizer.logger.warning.assert_not_called()

    def test_derived_profit_is_reported(self, normalizer):
        result = normalizer.normalize({"date": "2024-03-15", "price": 1000, "partsCost": 250})
        assert result.profit_derived is True
        assert result.record.profit == 750.0

    def test_unusable_amount_is_reported(self, normalizer):
        result = normalizer.normalize({"date": "2024-03-15", "price": "abc", "partsCost": "0"})

        assert result.coerced_fields == ["price"]
        assert not result.is_clean
        events = [call.kwargs["extra"]["event"] for call in normalizer.logger.warning.call_args_list]
        assert "normalization.job.amounts_coerced" in events

    def test_missing_date_is_logged(self, normalizer):
        result = normalizer.normalize({"customerName": "Ravi"})

        assert result.record.date == ""
        assert result.date_recognized is False
        extra = normalizer.logger.warning.call_args.kwargs["extra"]
        assert extra["event"] == "normalization.job.missing_date"

    def test_unrecognized_date_is_logged(self, normalizer):
        result = normalizer.normalize({"date": "someday"})

        assert result.record.date == "someday"
        extra = normalizer.logger.warning.call_args.kwargs["extra"]
        assert extra["event"] == "normalization.job.unrecognized_date"
        assert extra["raw_date"] == "someday"

    def test_rejects_non_mapping(self, normalizer):
        with pytest.raises(TypeError):
            normalizer.normalize(["2024-03-15", "Ravi"])


class TestBatch:
    def test_skips_unreadable_rows(self, normalizer):
        rows = [{"date": "2024-03-15", "price": 100}, "garbage", {"date": "2024-03-16", "price": 200}]

        results = list(normalizer.process_batch(rows))

        assert [r.record.price for r in results] == [100.0, 200.0]
        extra = normalizer.logger.error.call_args.kwargs["extra"]
        assert extra == {"event": "normalization.job.skipped", "position": 1}

    def test_normalize_all_keeps_order(self, normalizer):
        rows = [{"date": "2024-03-16"}, {"date": "15/03/2024"}]

        records = normalizer.normalize_all(rows)

        assert [r.date for r in records] == ["2024-03-16", "2024-03-15"]
        extra = normalizer.logger.info.call_args.kwargs["extra"]
        assert extra["event"] == "normalization.batch.completed"
        assert extra["job_count"] == 2

    def test_empty_batch(self, normalizer):
        assert normalizer.normalize_all([]) == []
