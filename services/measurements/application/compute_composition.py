from __future__ import annotations

import logging

from isak.composition.assembler import CompositionResult
from isak.composition.measurement import MeasurementSet
from isak.engine import CompositionEngine

from ..domain.errors import MeasurementNotFoundError
from ..domain.measurement import CompositionView
from .dto import ComputeCompositionCommand
from .interfaces import (
    CompositionEventPublisher,
    CompositionResultRepository,
    MeasurementRepository,
)

LOGGER = logging.getLogger(__name__)


class ComputeCompositionUseCase:
    def __init__(
        self,
        *,
        measurement_repository: MeasurementRepository,
        result_repository: CompositionResultRepository,
        engine: CompositionEngine,
        event_publisher: CompositionEventPublisher,
    ) -> None:
        self._measurements = measurement_repository
        self._results = result_repository
        self._engine = engine
        self._events = event_publisher

    def execute(self, command: ComputeCompositionCommand) -> CompositionView:
        """Compute, store and announce the result for the current version.

        The returned view is checked against the measurement as it stands
        after the result was stored, so an update that committed meanwhile
        shows up as ``stale``.

        Raises:
            MeasurementNotFoundError: Unknown measurement or previous measurement.
            ValueError: The previous measurement belongs to another patient.
            ComputationError: The measurement cannot be computed.
        """
        measurement = self._load(command.measurement_id)
        previous = None
        if command.previous_measurement_id:
            previous = self._load(command.previous_measurement_id)
            if previous.patient_id != measurement.patient_id:
                raise ValueError(
                    f"Measurement {previous.measurement_id} belongs to patient "
                    f"{previous.patient_id}, not {measurement.patient_id}"
                )
        result = self.compute_for(
            measurement, command.sex, previous=previous, age=command.age
        )
        current = self._load(command.measurement_id)
        return CompositionView(result=result, current_version=current.version)

    def compute_for(
        self,
        measurement: MeasurementSet,
        sex: str | None,
        *,
        previous: MeasurementSet | None = None,
        age: float | None = None,
    ) -> CompositionResult:
        if sex is None or age is None:
            latest = self._results.get_latest(measurement.measurement_id)
            if latest is not None:
                if sex is None:
                    sex = latest.sex.value
                if age is None:
                    age = latest.age
        result = self._engine.compute(measurement, sex, previous=previous, age=age)
        self._results.save(result)
        LOGGER.info(
            "Stored composition for measurement %s version %s",
            result.measurement_id,
            result.measurement_version,
        )
        self._events.publish_composition_computed(result)
        return result

    def _load(self, measurement_id: str) -> MeasurementSet:
        measurement = self._measurements.get(measurement_id)
        if measurement is None:
            raise MeasurementNotFoundError(measurement_id)
        return measurement
