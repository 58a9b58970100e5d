from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from isak.composition.measurement import MeasurementSet
from isak.engine import CompositionEngine

from services.measurements.application.compute_composition import ComputeCompositionUseCase
from services.measurements.application.create_measurement import CreateMeasurementUseCase
from services.measurements.application.get_measurement import (
    GetCompositionUseCase,
    GetMeasurementUseCase,
)
from services.measurements.application.update_measurement import UpdateMeasurementUseCase
from services.measurements.application.version_coordinator import (
    MeasurementVersionCoordinator,
)
from services.measurements.infrastructure.db import create_session_factory
from services.measurements.infrastructure.memory import (
    InMemoryCompositionResultRepository,
    InMemoryMeasurementRepository,
)
from services.measurements.infrastructure.measurements import SqlMeasurementRepository
from services.measurements.infrastructure.results import SqlCompositionResultRepository

REFERENCE_READINGS = {
    "weight": 74.6,
    "height": 179.5,
    "humeral": 7.0,
    "femoral": 9.9,
    "flexed_arm": 31.8,
    "waist": 76.9,
    "hip": 100.8,
    "calf": 37.6,
    "triceps": 9.8,
    "subscapular": 11.2,
    "supraspinal": 9.8,
    "abdominal": 17.5,
    "thigh_skinfold": 14.8,
    "calf_skinfold": 11.5,
}


class SequentialIdProvider:
    def __init__(self, prefix: str = "msr") -> None:
        self._prefix = prefix
        self._counter = 0

    def generate(self) -> str:
        self._counter += 1
        return f"{self._prefix}_{self._counter:04d}"


class RecordingEventPublisher:
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def publish_measurement_changed(self, measurement, *, change: str) -> None:
        self.events.append((f"measurement:{change}", measurement))

    def publish_composition_computed(self, result) -> None:
        self.events.append(("composition", result))

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.events]


class RacingResultRepository(InMemoryCompositionResultRepository):
    """Runs ``after_save`` once a result is stored, standing in for a concurrent writer."""

    def __init__(self) -> None:
        super().__init__()
        self.after_save = None

    def save(self, result) -> None:
        super().save(result)
        if self.after_save is not None:
            self.after_save(result)


@dataclass
class Wiring:
    measurements: InMemoryMeasurementRepository
    results: InMemoryCompositionResultRepository
    events: RecordingEventPublisher
    coordinator: MeasurementVersionCoordinator
    create: CreateMeasurementUseCase
    get: GetMeasurementUseCase
    update: UpdateMeasurementUseCase
    compute: ComputeCompositionUseCase
    get_composition: GetCompositionUseCase


def build_wiring(measurements=None, results=None) -> Wiring:
    measurements = measurements or InMemoryMeasurementRepository()
    results = results or InMemoryCompositionResultRepository()
    events = RecordingEventPublisher()
    coordinator = MeasurementVersionCoordinator(repository=measurements)
    compute = ComputeCompositionUseCase(
        measurement_repository=measurements,
        result_repository=results,
        engine=CompositionEngine(),
        event_publisher=events,
    )
    return Wiring(
        measurements=measurements,
        results=results,
        events=events,
        coordinator=coordinator,
        create=CreateMeasurementUseCase(
            repository=measurements,
            id_provider=SequentialIdProvider(),
            compute_use_case=compute,
            event_publisher=events,
        ),
        get=GetMeasurementUseCase(repository=measurements),
        update=UpdateMeasurementUseCase(
            coordinator=coordinator,
            compute_use_case=compute,
            event_publisher=events,
        ),
        compute=compute,
        get_composition=GetCompositionUseCase(
            measurement_repository=measurements, result_repository=results
        ),
    )


@pytest.fixture
def wiring() -> Wiring:
    return build_wiring()


@pytest.fixture
def racing_wiring() -> Wiring:
    """Wiring where a patch commits right after the first result is stored."""
    results = RacingResultRepository()
    wiring = build_wiring(results=results)

    def patch_once(result) -> None:
        results.after_save = None
        wiring.coordinator.update(
            result.measurement_id, result.measurement_version, {"notes": "edited meanwhile"}
        )

    results.after_save = patch_once
    return wiring


@pytest.fixture
def stored_measurement(wiring) -> MeasurementSet:
    measurement = MeasurementSet(
        measurement_id="msr_stored",
        patient_id="pat_1",
        measured_at=datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
        **REFERENCE_READINGS,
    )
    return wiring.measurements.create(measurement)


@pytest.fixture
def session_factory(tmp_path):
    return create_session_factory(f"sqlite:///{tmp_path / 'measurements.db'}")


@pytest.fixture
def sql_wiring(session_factory) -> Wiring:
    return build_wiring(
        measurements=SqlMeasurementRepository(session_factory=session_factory),
        results=SqlCompositionResultRepository(session_factory=session_factory),
    )


@pytest.fixture
def reference_readings() -> dict[str, float]:
    return dict(REFERENCE_READINGS)
