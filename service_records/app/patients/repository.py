"""
SQLAlchemy persistence layer for patients.
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import Date, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from shared.logging import get_logger
from shared.errors import RecordServiceException
from .models import PatientFields, PatientRecord


class Base(DeclarativeBase):
    """Base class for ORM models."""

    pass


class PatientRow(Base):
    """Patients table."""

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    contact_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    medical_history: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_record(row: PatientRow) -> PatientRecord:
    return PatientRecord(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        date_of_birth=row.date_of_birth,
        contact_number=row.contact_number,
        medical_history=row.medical_history,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def create_db_engine(database_url: str) -> Engine:
    """Create an engine suitable for use from worker threads."""
    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return create_engine(database_url, **options)
    return create_engine(database_url, pool_pre_ping=True)


class PatientRepository:
    """Plain save/find/delete over the patients table."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.logger = get_logger("records.patients.repository")
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    def start(self):
        """Connect and create tables if they don't exist."""
        try:
            self.engine = create_db_engine(self.database_url)
            Base.metadata.create_all(self.engine)
            self._session_factory = sessionmaker(self.engine, expire_on_commit=False)
            self.logger.info("Patient repository started")
        except Exception as e:
            self.logger.error("Failed to start patient repository", error=str(e))
            raise RecordServiceException("DATABASE_START_FAILED", str(e)) from e

    def stop(self):
        """Dispose of the connection pool."""
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            self._session_factory = None
            self.logger.info("Patient repository stopped")

    def _session(self):
        if self._session_factory is None:
            raise RecordServiceException("DATABASE_NOT_STARTED", "Patient repository not started")
        return self._session_factory()

    def insert(self, fields: PatientFields) -> PatientRecord:
        now = _utcnow()
        row = PatientRow(**fields.model_dump(), created_at=now, updated_at=now)
        with self._session() as session, session.begin():
            session.add(row)
            session.flush()
            record = _to_record(row)
        return record

    def update(self, patient_id: int, fields: PatientFields) -> Optional[PatientRecord]:
        """Replace the mutable fields of a patient; ``None`` when it does not exist."""
        with self._session() as session, session.begin():
            row = session.get(PatientRow, patient_id)
            if row is None:
                return None
            for name, value in fields.model_dump().items():
                setattr(row, name, value)
            row.updated_at = max(_utcnow(), _as_utc(row.updated_at))
            session.flush()
            record = _to_record(row)
        return record

    def find_by_id(self, patient_id: int) -> Optional[PatientRecord]:
        with self._session() as session:
            row = session.get(PatientRow, patient_id)
            return _to_record(row) if row is not None else None

    def find_all(self) -> List[PatientRecord]:
        with self._session() as session:
            rows = session.scalars(select(PatientRow).order_by(PatientRow.id)).all()
            return [_to_record(row) for row in rows]

    def delete_by_id(self, patient_id: int) -> bool:
        """Delete a patient; returns whether a row was removed."""
        with self._session() as session, session.begin():
            row = session.get(PatientRow, patient_id)
            if row is None:
                return False
            session.delete(row)
        return True
