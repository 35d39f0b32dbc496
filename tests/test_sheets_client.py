"""Tests for the spreadsheet client, its cache and row unpacking."""

from unittest.mock import MagicMock, Mock

import pytest
import requests

from repair_tracker.config.models import SheetsConfig
from repair_tracker.sheets import (
    ResponseCache,
    SheetsClient,
    SheetsError,
    SheetsHTTPError,
    SheetsResponseError,
    SheetsTimeoutError,
    dates_look_collapsed,
    extract_rows,
    rows_from_csv,
)

PROXY_URL = "http://localhost:3001/api/sheets"
SCRIPT_URL = "https://script.example.com/exec"


def make_response(status_code=200, json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(session, clock):
    return SheetsClient(
        PROXY_URL,
        apps_script_url=SCRIPT_URL,
        max_retries=2,
        cache=ResponseCache(ttl_seconds=120, clock=clock),
        session=session,
        sleep=Mock(),
    )


ROWS = [
    {"date": "2024-03-15", "customerName": "Ravi", "price": 1000},
    {"date": "2024-03-14", "customerName": "Anita", "price": 500},
]


class TestFetchRows:
    def test_fetch_sends_action_and_script_url(self, client, session):
        session.request.return_value = make_response(json_data={"success": True, "data": ROWS})

        rows = client.fetch_rows()

        assert rows == ROWS
        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == PROXY_URL
        assert kwargs["params"] == {"action": "getAllJobs", "appsScriptUrl": SCRIPT_URL}

    def test_second_fetch_served_from_cache(self, client, session):
        session.request.return_value = make_response(json_data={"success": True, "data": ROWS})

        client.fetch_rows()
        client.fetch_rows()

        assert session.request.call_count == 1

    def test_cache_expires(self, client, session, clock):
        session.request.return_value = make_response(json_data={"success": True, "data": ROWS})

        client.fetch_rows()
        clock.now = 121
        client.fetch_rows()

        assert session.request.call_count == 2

    def test_stale_copy_served_on_failure(self, client, session, clock):
        session.request.return_value = make_response(json_data={"success": True, "data": ROWS})
        client.fetch_rows()
        clock.now = 500
        session.request.side_effect = requests.exceptions.ConnectionError("down")

        assert client.fetch_rows() == ROWS

    def test_failure_without_cache_raises(self, client, session):
        session.request.side_effect = requests.exceptions.Timeout()

        with pytest.raises(SheetsTimeoutError):
            client.fetch_rows()

    def test_http_error(self, client, session):
        session.request.return_value = make_response(status_code=502)

        with pytest.raises(SheetsHTTPError) as exc_info:
            client.fetch_rows()

        assert exc_info.value.status_code == 502
        assert not exc_info.value.is_connection_error

    def test_invalid_json(self, client, session):
        session.request.return_value = make_response(json_data=ValueError("bad json"))

        with pytest.raises(SheetsResponseError):
            client.fetch_rows()

    def test_requires_script_url(self, session):
        client = SheetsClient(PROXY_URL, session=session)

        with pytest.raises(SheetsError, match="not configured"):
            client.fetch_rows()
        session.request.assert_not_called()

    def test_collapsed_dates_use_csv_export(self, client, session):
        collapsed = [dict(row, date="2024-03-15") for row in ROWS]
        csv_text = "Date,Customer Name,TV Model,Price\n2024-03-15,Ravi,Sony,1000\n2024-03-14,Anita,LG,500\n"
        session.request.side_effect = [
            make_response(json_data={"success": True, "data": collapsed}),
            make_response(text=csv_text),
        ]

        rows = client.fetch_rows()

        assert [row["date"] for row in rows] == ["2024-03-15", "2024-03-14"]
        assert session.request.call_args.kwargs["params"]["action"] == "exportCSV"

    def test_csv_fallback_failure_keeps_json_rows(self, client, session):
        collapsed = [dict(row, date="2024-03-15") for row in ROWS]
        session.request.side_effect = [
            make_response(json_data={"success": True, "data": collapsed}),
            make_response(status_code=500),
        ]

        assert client.fetch_rows() == collapsed


class TestWrites:
    def test_add_job_posts_wire_payload(self, client, session, make_job):
        session.request.return_value = make_response(json_data={"success": True})

        client.add_job(make_job())

        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "POST"
        body = kwargs["json"]
        assert body["action"] == "addJob"
        assert body["appsScriptUrl"] == SCRIPT_URL
        assert body["data"]["customerName"] == "Ravi Kumar"
        assert "id" not in body

    def test_update_and_delete_send_id(self, client, session, make_job):
        session.request.return_value = make_response(json_data={"success": True})

        client.update_job("3", make_job())
        assert session.request.call_args.kwargs["json"]["id"] == "3"

        client.delete_job("4")
        body = session.request.call_args.kwargs["json"]
        assert body == {"action": "deleteJob", "appsScriptUrl": SCRIPT_URL, "id": "4"}

    def test_write_clears_cache(self, client, session, make_job):
        session.request.return_value = make_response(json_data={"success": True, "data": ROWS})
        client.fetch_rows()

        client.add_job(make_job())

        assert len(client.cache) == 0

    def test_script_failure_raises(self, client, session, make_job):
        session.request.return_value = make_response(json_data={"success": False, "error": "Sheet locked"})

        with pytest.raises(SheetsResponseError, match="Sheet locked"):
            client.add_job(make_job())

    def test_retries_connection_failures(self, client, session, make_job):
        session.request.side_effect = [
            requests.exceptions.ConnectionError("down"),
            requests.exceptions.Timeout(),
            make_response(json_data={"success": True}),
        ]

        client.add_job(make_job())

        assert session.request.call_count == 3
        assert [call.args[0] for call in client.sleep.call_args_list] == [0.5, 1.0]

    def test_gives_up_after_max_retries(self, client, session, make_job):
        session.request.side_effect = requests.exceptions.ConnectionError("down")

        with pytest.raises(SheetsHTTPError) as exc_info:
            client.add_job(make_job())

        assert exc_info.value.is_connection_error
        assert session.request.call_count == 3

    def test_http_errors_not_retried(self, client, session, make_job):
        session.request.return_value = make_response(status_code=400)

        with pytest.raises(SheetsHTTPError):
            client.add_job(make_job())

        assert session.request.call_count == 1


class TestFromConfig:
    def test_uses_config_values(self, session):
        config = SheetsConfig(apps_script_url=SCRIPT_URL, request_timeout=20, cache_ttl="5m")

        client = SheetsClient.from_config(config, session=session)

        assert client.apps_script_url == SCRIPT_URL
        assert client.timeout == 20
        assert client.cache.ttl_seconds == 300


class TestRows:
    def test_plain_list(self):
        assert extract_rows(ROWS) == ROWS

    def test_nested_data(self):
        assert extract_rows({"success": True, "data": {"data": ROWS}}) == ROWS

    def test_missing_data(self):
        assert extract_rows({"success": True}) == []

    def test_failure_envelope(self):
        with pytest.raises(SheetsResponseError, match="quota"):
            extract_rows({"success": False, "error": "quota exceeded"})

    def test_unexpected_shape(self):
        with pytest.raises(SheetsResponseError):
            extract_rows({"success": True, "data": "rows"})
        with pytest.raises(SheetsResponseError):
            extract_rows("rows")

    def test_collapsed_dates(self):
        assert dates_look_collapsed([{"date": "x"}, {"date": "x"}])
        assert not dates_look_collapsed([{"date": "x"}, {"date": "y"}])
        assert not dates_look_collapsed([{"date": "x"}])

    def test_rows_from_csv(self):
        text = "Date,Customer Name,Mobile,TV Model,Work Done,Price,Parts Cost,Profit\n" \
               "15/03/2024,Ravi,9876543210,Sony 40,Panel,1000,200,800\n" \
               ",,,,,,,\n"

        rows = rows_from_csv(text)

        assert rows == [
            {
                "date": "15/03/2024",
                "customerName": "Ravi",
                "mobile": "9876543210",
                "tvModel": "Sony 40",
                "workDone": "Panel",
                "price": "1000",
                "partsCost": "200",
                "profit": "800",
            }
        ]


class TestResponseCache:
    def test_fresh_and_stale(self):
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=10, clock=clock)
        cache.set("k", [1])

        assert cache.get("k") == [1]
        clock.now = 10
        assert cache.get("k") is None
        assert cache.get_stale("k") == [1]

    def test_clear(self):
        cache = ResponseCache(ttl_seconds=10)
        cache.set("k", 1)
        cache.clear()
        assert len(cache) == 0
        assert cache.get_stale("k") is None
