"""Job service: the one place that decides where jobs are read and written.

In online mode the spreadsheet is the source of truth. Every successful
read is mirrored into the local database, and that mirror is served when
the spreadsheet cannot be reached, and successful writes are applied to it
as well. In local mode the spreadsheet is never contacted.
"""

import logging
from typing import Any, List, Mapping, Optional, Union

from repair_tracker.domain.models import JobRecord
from repair_tracker.jobs.operations import (
    apply_job_update,
    resolve_job_index,
    with_job_added,
    with_job_replaced,
    without_job,
)
from repair_tracker.logging import get_logger
from repair_tracker.normalization.service import JobNormalizer
from repair_tracker.persistence.database import Database
from repair_tracker.persistence.exceptions import PersistenceError, RecordNotFoundError
from repair_tracker.persistence.repositories import LocalJobRepository
from repair_tracker.reporting.engine import dashboard_stats
from repair_tracker.reporting.models import DashboardStats
from repair_tracker.sheets.client import SheetsClient
from repair_tracker.sheets.exceptions import SheetsError

logger = get_logger(__name__, component="jobs")

JobInput = Union[JobRecord, Mapping[str, Any]]


class JobService:
    """Coordinates the spreadsheet, the local store and row normalization.

    Args:
        sheets_client: Remote client; may be None only in local mode
        database: Local store used for offline mode and as a read mirror
        normalizer: Row normalizer (default instance when omitted)
        use_local_store: Skip the spreadsheet entirely
    """

    def __init__(
        self,
        sheets_client: Optional[SheetsClient],
        database: Optional[Database] = None,
        normalizer: Optional[JobNormalizer] = None,
        use_local_store: bool = False,
        logger_instance: Optional[logging.Logger] = None,
    ):
        if sheets_client is None and not use_local_store:
            raise ValueError("sheets_client is required unless use_local_store is set")
        if use_local_store and database is None:
            raise ValueError("database is required when use_local_store is set")

        self.sheets_client = sheets_client
        self.database = database
        self.normalizer = normalizer or JobNormalizer()
        self.use_local_store = use_local_store
        self.logger = logger_instance or logger

    @property
    def is_local(self) -> bool:
        return self.use_local_store or self.sheets_client is None

    def get_all_jobs(self) -> List[JobRecord]:
        """
        Every job, normalized.

        Raises:
            SheetsError: If the spreadsheet fails and no local store exists
            PersistenceError: If the local store cannot be read
        """
        if self.is_local:
            return self._local_jobs()

        try:
            rows = self.sheets_client.fetch_rows()
        except SheetsError as e:
            if self.database is None:
                raise
            self.logger.warning(
                f"Falling back to local store, spreadsheet unavailable: {e}",
                extra={"event": "jobs.fetch.fallback", "error_type": type(e).__name__},
            )
            return self._local_jobs()

        jobs = self.normalizer.normalize_all(rows)
        self._mirror(jobs)
        return jobs

    def add_job(self, job: JobInput) -> JobRecord:
        """
        Raises:
            SheetsError: If the spreadsheet write fails
            PersistenceError: If the local write fails
        """
        record = JobRecord.from_raw(job)
        if self.is_local:
            with self.database.session() as session:
                job_id = LocalJobRepository(session).add(record)
            self.logger.info("Job added", extra={"event": "jobs.added", "job_id": job_id})
        else:
            self.sheets_client.add_job(record)
            self._mirror(with_job_added(self._local_jobs(), record))
            self.logger.info("Job added", extra={"event": "jobs.added"})
        return record

    def update_job(self, job_id: str, patch: JobInput) -> JobRecord:
        """
        Apply changes to one job.

        job_id is a stored id (local mode) or a position in the job list.
        A JobRecord replaces the job; a mapping changes only its keys.

        Raises:
            RecordNotFoundError: If job_id matches nothing
            ValueError: If the patch names an unknown field
            SheetsError: If the spreadsheet write fails
        """
        if self.is_local:
            with self.database.session() as session:
                repo = LocalJobRepository(session)
                updated = self._patched(repo.get(job_id), patch)
                repo.update(job_id, updated)
        else:
            jobs = self.get_all_jobs()
            index = self._sheet_index(jobs, job_id)
            updated = self._patched(jobs[index], patch)
            self.sheets_client.update_job(str(index), updated)
            self._mirror(with_job_replaced(jobs, index, updated))

        self.logger.info("Job updated", extra={"event": "jobs.updated", "job_id": str(job_id)})
        return updated

    def delete_job(self, job_id: str) -> None:
        """
        Raises:
            RecordNotFoundError: If job_id matches nothing
            SheetsError: If the spreadsheet write fails
        """
        if self.is_local:
            with self.database.session() as session:
                LocalJobRepository(session).delete(job_id)
        else:
            jobs = self.get_all_jobs()
            index = self._sheet_index(jobs, job_id)
            self.sheets_client.delete_job(str(index))
            self._mirror(without_job(jobs, index))
        self.logger.info("Job deleted", extra={"event": "jobs.deleted", "job_id": str(job_id)})

    def dashboard_stats(self) -> DashboardStats:
        return dashboard_stats(self.get_all_jobs())

    @staticmethod
    def _sheet_index(jobs: List[JobRecord], job_id: str) -> int:
        index = resolve_job_index([str(position) for position in range(len(jobs))], job_id)
        if index is None:
            raise RecordNotFoundError(f"Job {job_id} not found")
        return index

    @staticmethod
    def _patched(current: JobRecord, patch: JobInput) -> JobRecord:
        if isinstance(patch, JobRecord):
            return patch
        return apply_job_update(current, patch)

    def _local_jobs(self) -> List[JobRecord]:
        if self.database is None:
            return []
        with self.database.session() as session:
            return LocalJobRepository(session).list_jobs()

    def _mirror(self, jobs: List[JobRecord]) -> None:
        if self.database is None:
            return
        try:
            with self.database.session() as session:
                LocalJobRepository(session).replace_all(jobs)
        except PersistenceError as e:
            self.logger.warning(
                f"Could not mirror jobs to local store: {e}",
                extra={"event": "jobs.mirror.failed", "error_type": type(e).__name__},
            )
