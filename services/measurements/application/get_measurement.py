from __future__ import annotations

from isak.composition.measurement import MeasurementSet

from ..domain.errors import CompositionNotFoundError, MeasurementNotFoundError
from ..domain.measurement import CompositionView
from .interfaces import CompositionResultRepository, MeasurementRepository


class GetMeasurementUseCase:
    def __init__(self, *, repository: MeasurementRepository) -> None:
        self._repository = repository

    def execute(self, measurement_id: str) -> MeasurementSet:
        measurement = self._repository.get(measurement_id)
        if measurement is None:
            raise MeasurementNotFoundError(measurement_id)
        return measurement


class GetCompositionUseCase:
    """Latest stored result, flagged stale when the measurement has moved on."""

    def __init__(
        self,
        *,
        measurement_repository: MeasurementRepository,
        result_repository: CompositionResultRepository,
    ) -> None:
        self._measurements = measurement_repository
        self._results = result_repository

    def execute(self, measurement_id: str) -> CompositionView:
        measurement = self._measurements.get(measurement_id)
        if measurement is None:
            raise MeasurementNotFoundError(measurement_id)
        result = self._results.get_latest(measurement_id)
        if result is None:
            raise CompositionNotFoundError(measurement_id)
        return CompositionView(result=result, current_version=measurement.version)
