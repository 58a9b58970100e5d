from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import Column, DateTime, Float, Integer, String, Text, update
from sqlalchemy.exc import IntegrityError

from isak.composition.measurement import READING_FIELDS, MeasurementSet

from ..application.interfaces import MeasurementRepository
from ..domain.errors import MeasurementNotFoundError
from .db import Base


class MeasurementRecord(Base):
    __tablename__ = "measurements"

    measurement_id = Column(String, primary_key=True)
    patient_id = Column(String, nullable=False, index=True)
    measured_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)

    weight = Column(Float, nullable=True)
    height = Column(Float, nullable=True)
    seated_height = Column(Float, nullable=True)

    biacromial = Column(Float, nullable=True)
    thorax_transverse = Column(Float, nullable=True)
    thorax_anteroposterior = Column(Float, nullable=True)
    biiliocristal = Column(Float, nullable=True)
    humeral = Column(Float, nullable=True)
    femoral = Column(Float, nullable=True)

    head = Column(Float, nullable=True)
    relaxed_arm = Column(Float, nullable=True)
    flexed_arm = Column(Float, nullable=True)
    forearm = Column(Float, nullable=True)
    thorax_circ = Column(Float, nullable=True)
    waist = Column(Float, nullable=True)
    hip = Column(Float, nullable=True)
    thigh_superior = Column(Float, nullable=True)
    thigh_medial = Column(Float, nullable=True)
    calf = Column(Float, nullable=True)

    triceps = Column(Float, nullable=True)
    subscapular = Column(Float, nullable=True)
    supraspinal = Column(Float, nullable=True)
    abdominal = Column(Float, nullable=True)
    thigh_skinfold = Column(Float, nullable=True)
    calf_skinfold = Column(Float, nullable=True)


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite keeps no offset, so naive values are read back as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_domain(record: MeasurementRecord) -> MeasurementSet:
    return MeasurementSet(
        measurement_id=record.measurement_id,
        patient_id=record.patient_id,
        measured_at=_as_utc(record.measured_at),
        version=record.version,
        notes=record.notes,
        **{name: getattr(record, name) for name in READING_FIELDS},
    )


class SqlMeasurementRepository(MeasurementRepository):
    """Measurements table with a storage-level compare-and-swap on ``version``."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def create(self, measurement: MeasurementSet) -> MeasurementSet:
        measurement = replace(measurement, measured_at=_as_utc(measurement.measured_at))
        record = MeasurementRecord(
            measurement_id=measurement.measurement_id,
            patient_id=measurement.patient_id,
            measured_at=measurement.measured_at,
            version=measurement.version,
            notes=measurement.notes,
            **{name: measurement.reading(name) for name in READING_FIELDS},
        )
        with self._session_factory() as db:
            db.add(record)
            try:
                db.commit()
            except IntegrityError as exc:
                raise ValueError(
                    f"Measurement {measurement.measurement_id} already exists"
                ) from exc
        return measurement

    def get(self, measurement_id: str) -> MeasurementSet | None:
        with self._session_factory() as db:
            record = db.get(MeasurementRecord, measurement_id)
            if record is None:
                return None
            return _to_domain(record)

    def compare_and_swap(
        self,
        measurement_id: str,
        expected_version: int,
        changes: Mapping[str, Any],
    ) -> MeasurementSet | None:
        changes = dict(changes)
        if "measured_at" in changes:
            changes["measured_at"] = _as_utc(changes["measured_at"])
        statement = (
            update(MeasurementRecord)
            .where(
                MeasurementRecord.measurement_id == measurement_id,
                MeasurementRecord.version == expected_version,
            )
            .values(**changes, version=MeasurementRecord.version + 1)
            .execution_options(synchronize_session=False)
        )
        with self._session_factory() as db:
            # The conditional UPDATE is the first statement of the transaction,
            # so the row lock is taken before anything is read.
            result = db.execute(statement)
            if result.rowcount != 1:
                db.rollback()
                if db.get(MeasurementRecord, measurement_id) is None:
                    raise MeasurementNotFoundError(measurement_id)
                return None
            record = db.get(MeasurementRecord, measurement_id)
            measurement = _to_domain(record)
            db.commit()
            return measurement
