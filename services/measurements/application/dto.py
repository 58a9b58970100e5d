from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True)
class CreateMeasurementCommand:
    patient_id: str
    readings: Mapping[str, float | None] = field(default_factory=dict)
    measured_at: datetime | None = None
    notes: str | None = None
    sex: str | None = None
    age: float | None = None


@dataclass(frozen=True)
class UpdateMeasurementCommand:
    measurement_id: str
    expected_version: int
    patch: Mapping[str, Any]
    sex: str | None = None
    age: float | None = None


@dataclass(frozen=True)
class ComputeCompositionCommand:
    measurement_id: str
    sex: str | None = None
    previous_measurement_id: str | None = None
    age: float | None = None
