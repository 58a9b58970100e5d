from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String, select

from isak.composition.assembler import CompositionResult

from ..application.interfaces import CompositionResultRepository
from .db import Base


class CompositionResultRecord(Base):
    __tablename__ = "composition_results"

    measurement_id = Column(String, primary_key=True)
    measurement_version = Column(Integer, primary_key=True)
    computed_at = Column(DateTime(timezone=True), nullable=False)
    payload = Column(JSON, nullable=False)


class SqlCompositionResultRepository(CompositionResultRepository):
    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def save(self, result: CompositionResult) -> None:
        record = CompositionResultRecord(
            measurement_id=result.measurement_id,
            measurement_version=result.measurement_version,
            computed_at=datetime.now(timezone.utc),
            payload=result.to_dict(),
        )
        with self._session_factory() as db:
            db.merge(record)
            db.commit()

    def get_latest(self, measurement_id: str) -> CompositionResult | None:
        statement = (
            select(CompositionResultRecord)
            .where(CompositionResultRecord.measurement_id == measurement_id)
            .order_by(CompositionResultRecord.measurement_version.desc())
            .limit(1)
        )
        with self._session_factory() as db:
            record = db.execute(statement).scalars().first()
            if record is None:
                return None
            return CompositionResult.from_dict(record.payload)
