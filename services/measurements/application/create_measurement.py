from __future__ import annotations

from datetime import datetime, timezone

from isak.composition.errors import ComputationError
from isak.composition.measurement import FIELD_CATEGORIES, MeasurementSet

from ..domain.measurement import MeasurementOutcome
from .compute_composition import ComputeCompositionUseCase
from .dto import CreateMeasurementCommand
from .interfaces import CompositionEventPublisher, IdProvider, MeasurementRepository
from .version_coordinator import validate_patch


class CreateMeasurementUseCase:
    def __init__(
        self,
        *,
        repository: MeasurementRepository,
        id_provider: IdProvider,
        compute_use_case: ComputeCompositionUseCase,
        event_publisher: CompositionEventPublisher,
    ) -> None:
        self._repository = repository
        self._id_provider = id_provider
        self._compute = compute_use_case
        self._events = event_publisher

    def execute(self, command: CreateMeasurementCommand) -> MeasurementOutcome:
        if not command.patient_id:
            raise ValueError("patient_id is required")
        unknown = sorted(set(command.readings) - set(FIELD_CATEGORIES))
        if unknown:
            raise ValueError(f"Unknown readings: {', '.join(unknown)}")
        readings = validate_patch(command.readings)
        measurement = MeasurementSet(
            measurement_id=self._id_provider.generate(),
            patient_id=command.patient_id,
            measured_at=command.measured_at or datetime.now(timezone.utc),
            version=1,
            notes=command.notes,
            **readings,
        )
        self._repository.create(measurement)
        self._events.publish_measurement_changed(measurement, change="create")

        if command.sex is None:
            return MeasurementOutcome(measurement=measurement)
        try:
            composition = self._compute.compute_for(
                measurement, command.sex, age=command.age
            )
        except ComputationError as exc:
            return MeasurementOutcome(measurement=measurement, composition_error=exc)
        return MeasurementOutcome(measurement=measurement, composition=composition)
