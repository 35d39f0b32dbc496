"""Data access layer for the local job store.

The repository returns JobRecord domain models, never ORM rows. Listings
come back newest first; a numeric job id refers to a position in that
listing when no stored id matches.
"""

from typing import Iterable, List, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from repair_tracker.domain.models import JobRecord
from repair_tracker.jobs.operations import resolve_job_index
from repair_tracker.logging import get_logger
from repair_tracker.normalization.dates import is_canonical_date

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import JobModel

logger = get_logger(__name__, component="persistence")


class LocalJobRepository:
    """Repository for jobs kept in the local database."""

    def __init__(self, session: Session):
        self.session = session

    def list_entries(self) -> List[Tuple[str, JobRecord]]:
        """(id, job) pairs, newest date first.

        Raises:
            PersistenceError: If database error occurs
        """
        return [(model.id, model.to_domain()) for model in self._ordered_models()]

    def list_jobs(self) -> List[JobRecord]:
        return [job for _, job in self.list_entries()]

    def count(self) -> int:
        try:
            return self.session.execute(select(func.count()).select_from(JobModel)).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count jobs: {e}") from e

    def add(self, job: JobRecord) -> str:
        """Insert a job and return its new id.

        Raises:
            DataIntegrityError: If a constraint is violated
            PersistenceError: If database error occurs
        """
        try:
            model = JobModel.from_domain(job, position=self._next_position())
            self.session.add(model)
            self.session.flush()
        except IntegrityError as e:
            logger.error(f"Integrity error adding job: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to add job due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding job: {e}", exc_info=True)
            raise PersistenceError(f"Failed to add job: {e}") from e

        logger.debug("Stored job", extra={"event": "persistence.job.added", "job_id": model.id})
        return model.id

    def get(self, job_id: str) -> JobRecord:
        """
        Raises:
            RecordNotFoundError: If job_id matches no id or position
        """
        return self._find(job_id).to_domain()

    def update(self, job_id: str, job: JobRecord) -> JobRecord:
        """Replace the stored fields of a job.

        Raises:
            RecordNotFoundError: If job_id matches no id or position
            PersistenceError: If database error occurs
        """
        model = self._find(job_id)
        try:
            model.apply(job)
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error updating job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update job: {e}") from e

        logger.debug("Updated job", extra={"event": "persistence.job.updated", "job_id": model.id})
        return model.to_domain()

    def delete(self, job_id: str) -> None:
        """
        Raises:
            RecordNotFoundError: If job_id matches no id or position
            PersistenceError: If database error occurs
        """
        model = self._find(job_id)
        try:
            self.session.delete(model)
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error deleting job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete job: {e}") from e

        logger.debug("Deleted job", extra={"event": "persistence.job.deleted", "job_id": model.id})

    def replace_all(self, jobs: Iterable[JobRecord]) -> int:
        """Make the store an exact mirror of jobs; returns how many were stored.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            self.session.execute(delete(JobModel))
            stored = 0
            for position, job in enumerate(jobs):
                self.session.add(JobModel.from_domain(job, position=position))
                stored += 1
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error replacing local jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to replace jobs: {e}") from e

        logger.info(
            "Mirrored jobs to local store",
            extra={"event": "persistence.jobs.mirrored", "count": stored},
        )
        return stored

    def _ordered_models(self) -> List[JobModel]:
        try:
            models = list(
                self.session.execute(select(JobModel).order_by(JobModel.position)).scalars()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error listing jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list jobs: {e}") from e

        dated = [model for model in models if is_canonical_date(model.date)]
        undated = [model for model in models if not is_canonical_date(model.date)]
        return sorted(dated, key=lambda model: model.date, reverse=True) + undated

    def _find(self, job_id: str) -> JobModel:
        models = self._ordered_models()
        index = resolve_job_index([model.id for model in models], job_id)
        if index is None:
            raise RecordNotFoundError(f"Job {job_id} not found")
        return models[index]

    def _next_position(self) -> int:
        current = self.session.execute(select(func.max(JobModel.position))).scalar()
        return 0 if current is None else current + 1
