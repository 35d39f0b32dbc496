"""Unit tests for the local job store."""

import pytest
from sqlalchemy import text

from repair_tracker.persistence import (
    Database,
    DatabaseConnectionError,
    LocalJobRepository,
    RecordNotFoundError,
    redact_url,
)
from repair_tracker.persistence.schema import JobModel


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'jobs.db'}")
    yield db
    db.close()


class TestDatabase:
    def test_creates_file_and_parent_directories(self, tmp_path):
        db_file = tmp_path / "nested" / "dir" / "jobs.db"
        db = Database(f"sqlite:///{db_file}")
        try:
            assert db_file.exists()
        finally:
            db.close()

    def test_schema_created(self, database):
        with database.session() as session:
            tables = session.execute(
                text("SELECT name FROM sqlite_master WHERE type='table'")
            ).scalars().all()
        assert "jobs" in tables

    def test_empty_url_rejected(self):
        with pytest.raises(DatabaseConnectionError):
            Database("")

    def test_unopenable_url(self):
        with pytest.raises(DatabaseConnectionError):
            Database("notadialect://nowhere")

    def test_closed_database(self, tmp_path):
        db = Database(f"sqlite:///{tmp_path / 'jobs.db'}")
        db.close()
        db.close()
        with pytest.raises(DatabaseConnectionError):
            with db.session():
                pass

    def test_session_rolls_back_on_error(self, database, make_job):
        with pytest.raises(RuntimeError):
            with database.session() as session:
                LocalJobRepository(session).add(make_job())
                raise RuntimeError("abort")

        with database.session() as session:
            assert LocalJobRepository(session).count() == 0

    def test_redact_url(self):
        assert redact_url("postgresql://shop:secret@db:5432/jobs") == "postgresql://shop:***@db:5432/jobs"
        assert redact_url("sqlite:///./data/jobs.db") == "sqlite:///./data/jobs.db"


class TestLocalJobRepository:
    def test_add_and_get(self, database, make_job):
        job = make_job(customer_name="Anita")
        with database.session() as session:
            job_id = LocalJobRepository(session).add(job)

        with database.session() as session:
            assert LocalJobRepository(session).get(job_id) == job

    def test_listing_newest_first_with_undated_last(self, database, make_job):
        with database.session() as session:
            repo = LocalJobRepository(session)
            repo.add(make_job(date="2024-03-01", customer_name="A"))
            repo.add(make_job(date="", customer_name="B"))
            repo.add(make_job(date="2024-03-10", customer_name="C"))
            repo.add(make_job(date="2024-03-10", customer_name="D"))

        with database.session() as session:
            names = [job.customer_name for job in LocalJobRepository(session).list_jobs()]

        assert names == ["C", "D", "A", "B"]

    def test_numeric_id_is_position_in_listing(self, database, make_job):
        with database.session() as session:
            repo = LocalJobRepository(session)
            repo.add(make_job(date="2024-03-01", customer_name="Older"))
            repo.add(make_job(date="2024-03-10", customer_name="Newer"))

        with database.session() as session:
            repo = LocalJobRepository(session)
            assert repo.get("0").customer_name == "Newer"
            assert repo.get("1").customer_name == "Older"

    def test_update(self, database, make_job):
        with database.session() as session:
            job_id = LocalJobRepository(session).add(make_job(price=100, parts_cost=0))

        with database.session() as session:
            updated = LocalJobRepository(session).update(job_id, make_job(price=900, parts_cost=100))

        assert updated.profit == 800.0
        with database.session() as session:
            assert LocalJobRepository(session).get(job_id).price == 900.0

    def test_delete(self, database, make_job):
        with database.session() as session:
            repo = LocalJobRepository(session)
            job_id = repo.add(make_job())
            repo.delete(job_id)
            assert repo.count() == 0

    @pytest.mark.parametrize("job_id", ["missing", "5", "-1"])
    def test_unknown_id(self, database, make_job, job_id):
        with database.session() as session:
            repo = LocalJobRepository(session)
            repo.add(make_job())
            with pytest.raises(RecordNotFoundError):
                repo.get(job_id)

    def test_replace_all_mirrors_list(self, database, make_job):
        with database.session() as session:
            LocalJobRepository(session).add(make_job(customer_name="Stale"))

        with database.session() as session:
            stored = LocalJobRepository(session).replace_all(
                [make_job(customer_name="X"), make_job(customer_name="Y")]
            )

        assert stored == 2
        with database.session() as session:
            names = {job.customer_name for job in LocalJobRepository(session).list_jobs()}
        assert names == {"X", "Y"}

    def test_model_round_trip_keeps_fields(self, make_job):
        job = make_job(date="someday", mobile="", price=12.5, parts_cost=2.5)
        model = JobModel.from_domain(job, position=0)
        assert model.to_domain() == job
        assert len(model.id) == 32
