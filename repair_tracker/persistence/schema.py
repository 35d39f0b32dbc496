"""Database schema definition and ORM models."""

import uuid

from sqlalchemy import Column, Float, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from repair_tracker.domain.models import JobRecord
from repair_tracker.logging import get_logger
from repair_tracker.utils.timestamps import format_timestamp, utc_now

logger = get_logger(__name__, component="database")

Base = declarative_base()


def new_job_id() -> str:
    return uuid.uuid4().hex


class JobModel(Base):
    """ORM model for the jobs table.

    ``position`` records insertion order so listings are stable for jobs
    sharing a date. Timestamps are ISO 8601 strings in UTC.
    """

    __tablename__ = "jobs"

    id = Column(String(32), primary_key=True, default=new_job_id)
    position = Column(Integer, nullable=False)

    date = Column(String(50), nullable=False, default="")
    customer_name = Column(Text, nullable=False, default="")
    mobile = Column(String(32), nullable=False, default="")
    device_model = Column(Text, nullable=False, default="")
    work_description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False, default=0.0)
    parts_cost = Column(Float, nullable=False, default=0.0)
    profit = Column(Float, nullable=False, default=0.0)

    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_jobs_date", "date"),
        Index("idx_jobs_position", "position"),
    )

    def to_domain(self) -> JobRecord:
        return JobRecord(
            date=self.date,
            customer_name=self.customer_name,
            mobile=self.mobile,
            device_model=self.device_model,
            work_description=self.work_description,
            price=self.price,
            parts_cost=self.parts_cost,
            profit=self.profit,
        )

    @classmethod
    def from_domain(cls, job: JobRecord, position: int) -> "JobModel":
        now = format_timestamp(utc_now())
        return cls(
            id=new_job_id(),
            position=position,
            created_at=now,
            updated_at=now,
            **job.model_dump(),
        )

    def apply(self, job: JobRecord) -> None:
        """Overwrite the stored fields with those of job."""
        for name, value in job.model_dump().items():
            setattr(self, name, value)
        self.updated_at = format_timestamp(utc_now())


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    Base.metadata.create_all(engine, checkfirst=True)
    tables = inspect(engine).get_table_names()
    logger.debug(
        f"Database schema ready. Tables: {', '.join(tables)}",
        extra={"event": "database.schema.ready"},
    )
