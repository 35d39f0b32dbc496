"""HTTP client for the job sheet, reached through the spreadsheet proxy.

Reads go through ``GET proxy?action=getAllJobs&appsScriptUrl=...`` and are
cached per client instance. Writes are ``POST`` requests carrying
``{action, data, id, appsScriptUrl}``; they are retried with exponential
backoff on timeouts and connection failures and clear the read cache.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from repair_tracker.config.models import SheetsConfig
from repair_tracker.domain.models import JobRecord
from repair_tracker.logging import get_logger

from .cache import ResponseCache
from .exceptions import SheetsError, SheetsHTTPError, SheetsResponseError, SheetsTimeoutError
from .rows import dates_look_collapsed, extract_rows, rows_from_csv

logger = get_logger(__name__, component="sheets")

USER_AGENT = "RepairTracker/1.0"
MAX_RETRY_DELAY = 60.0
_ALL_JOBS_KEY = "getAllJobs"


class SheetsClient:
    """Reads and writes jobs in the spreadsheet.

    Args:
        proxy_url: Proxy endpoint (``/api/sheets``)
        apps_script_url: Script URL the proxy forwards to
        timeout: Per-request timeout in seconds
        max_retries: Extra attempts for failed writes
        retry_initial_delay: Delay before the first retry (seconds)
        retry_backoff_multiplier: Growth factor between retries
        cache: Read cache; a 2 minute cache is created when omitted
        session: requests session, injectable for tests
        sleep: Sleep function used between retries
    """

    def __init__(
        self,
        proxy_url: str,
        apps_script_url: Optional[str] = None,
        timeout: int = 12,
        max_retries: int = 3,
        retry_initial_delay: float = 0.5,
        retry_backoff_multiplier: float = 2.0,
        cache: Optional[ResponseCache] = None,
        session: Optional[requests.Session] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.proxy_url = proxy_url
        self.apps_script_url = apps_script_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_initial_delay = retry_initial_delay
        self.retry_backoff_multiplier = retry_backoff_multiplier
        self.cache = cache or ResponseCache(ttl_seconds=120)
        self.sleep = sleep or time.sleep

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    @classmethod
    def from_config(
        cls, config: SheetsConfig, session: Optional[requests.Session] = None
    ) -> "SheetsClient":
        return cls(
            proxy_url=config.proxy_url,
            apps_script_url=config.apps_script_url,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            retry_initial_delay=config.retry_initial_delay,
            retry_backoff_multiplier=config.retry_backoff_multiplier,
            cache=ResponseCache(ttl_seconds=config.cache_ttl_seconds),
            session=session,
        )

    def fetch_rows(self) -> List[Dict[str, Any]]:
        """
        All job rows as wire-named dicts.

        A fresh cached copy is returned without a request. When the request
        fails and an older copy exists, that copy is served instead. When
        every row carries the same date, the CSV export is used because it
        keeps the real dates.

        Raises:
            SheetsError: If the rows cannot be fetched and nothing is cached
        """
        cached = self.cache.get(_ALL_JOBS_KEY)
        if cached is not None:
            logger.debug("Serving cached jobs", extra={"event": "sheets.fetch.cache_hit"})
            return list(cached)

        self._require_script_url()
        try:
            payload = self._request("GET", params=self._query("getAllJobs"))
            rows = extract_rows(payload)
        except (SheetsHTTPError, SheetsTimeoutError) as e:
            stale = self.cache.get_stale(_ALL_JOBS_KEY)
            if stale is None:
                raise
            logger.warning(
                f"Fetching jobs failed, serving cached copy: {e}",
                extra={"event": "sheets.fetch.stale_served", "error_type": type(e).__name__},
            )
            return list(stale)

        if dates_look_collapsed(rows):
            rows = self._rows_with_real_dates(rows)

        self.cache.set(_ALL_JOBS_KEY, rows)
        logger.info(
            f"Fetched {len(rows)} jobs",
            extra={"event": "sheets.fetch.succeeded", "row_count": len(rows)},
        )
        return list(rows)

    def add_job(self, job: JobRecord) -> Dict[str, Any]:
        return self._write("addJob", data=job.to_sheet_payload())

    def update_job(self, job_id: str, job: JobRecord) -> Dict[str, Any]:
        return self._write("updateJob", data=job.to_sheet_payload(), job_id=job_id)

    def delete_job(self, job_id: str) -> Dict[str, Any]:
        return self._write("deleteJob", job_id=job_id)

    def export_csv(self) -> str:
        """Raw CSV export of the sheet as produced by the script."""
        self._require_script_url()
        return self._request("GET", params=self._query("exportCSV"), expect_json=False)

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.debug("Request cache cleared", extra={"event": "sheets.cache.cleared"})

    def _rows_with_real_dates(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        logger.warning(
            "All rows share one date, re-reading through the CSV export",
            extra={"event": "sheets.fetch.csv_fallback", "row_count": len(rows)},
        )
        try:
            csv_rows = rows_from_csv(self.export_csv())
        except SheetsError as e:
            logger.warning(
                f"CSV fallback failed, keeping JSON rows: {e}",
                extra={"event": "sheets.fetch.csv_fallback_failed", "error_type": type(e).__name__},
            )
            return rows
        return csv_rows or rows

    def _write(
        self, action: str, data: Optional[Dict[str, Any]] = None, job_id: Optional[str] = None
    ) -> Dict[str, Any]:
        self._require_script_url()
        body: Dict[str, Any] = {"action": action, "appsScriptUrl": self.apps_script_url}
        if data is not None:
            body["data"] = data
        if job_id is not None:
            body["id"] = str(job_id)

        payload = self._with_retry(action, lambda: self._request("POST", json_data=body))
        if not isinstance(payload, dict) or payload.get("success") is False:
            error = payload.get("error") if isinstance(payload, dict) else None
            raise SheetsResponseError(f"{action} failed: {error or 'script reported failure'}")

        self.clear_cache()
        logger.info(
            f"{action} succeeded",
            extra={"event": "sheets.write.succeeded", "action": action, "job_id": job_id},
        )
        return payload

    def _with_retry(self, action: str, func: Callable[[], Any]) -> Any:
        max_attempts = self.max_retries + 1
        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = min(
                    self.retry_initial_delay * (self.retry_backoff_multiplier ** (attempt - 2)),
                    MAX_RETRY_DELAY,
                )
                logger.warning(
                    f"Retrying {action} (attempt {attempt}/{max_attempts}) after {delay:.1f}s delay",
                    extra={"event": "sheets.write.retry", "action": action, "attempt": attempt},
                )
                self.sleep(delay)

            try:
                return func()
            except (SheetsTimeoutError, SheetsHTTPError) as e:
                retryable = isinstance(e, SheetsTimeoutError) or e.is_connection_error
                if not retryable or attempt == max_attempts:
                    raise

    def _request(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        expect_json: bool = True,
    ) -> Any:
        """Make an HTTP request to the proxy, mapping failures to SheetsError types.

        Raises:
            SheetsHTTPError: On 4xx/5xx status or connection failure
            SheetsTimeoutError: On request timeout
            SheetsResponseError: On a body that is not valid JSON
        """
        url = self.proxy_url
        try:
            logger.debug(
                f"HTTP {method} request to {url}",
                extra={
                    "event": "sheets.request",
                    "method": method,
                    "url": url,
                    "timeout": self.timeout,
                },
            )
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "sheets.request.timeout", "url": url, "timeout": self.timeout},
            )
            raise SheetsTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            logger.warning(
                f"Request to {url} failed: {e}",
                extra={"event": "sheets.request.error", "error_type": type(e).__name__, "url": url},
            )
            raise SheetsHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e

        if response.status_code >= 400:
            log_level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                log_level,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "sheets.request.http_error",
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise SheetsHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        if not expect_json:
            return response.text

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse JSON response from {url}",
                extra={"event": "sheets.request.invalid_json", "url": url},
            )
            raise SheetsResponseError(f"Failed to parse JSON response from {url}: {e}") from e

    def _query(self, action: str) -> Dict[str, str]:
        return {"action": action, "appsScriptUrl": self.apps_script_url or ""}

    def _require_script_url(self) -> None:
        if not self.apps_script_url:
            raise SheetsError(
                "Spreadsheet script URL is not configured (set APPS_SCRIPT_URL or sheets.apps_script_url)"
            )
