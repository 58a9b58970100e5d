from __future__ import annotations

import logging

from isak.composition.errors import ComputationError

from ..domain.measurement import MeasurementOutcome
from .compute_composition import ComputeCompositionUseCase
from .dto import UpdateMeasurementCommand
from .interfaces import CompositionEventPublisher
from .version_coordinator import MeasurementVersionCoordinator

LOGGER = logging.getLogger(__name__)


class UpdateMeasurementUseCase:
    """Commit a versioned patch, then recompute against the committed state."""

    def __init__(
        self,
        *,
        coordinator: MeasurementVersionCoordinator,
        compute_use_case: ComputeCompositionUseCase,
        event_publisher: CompositionEventPublisher,
    ) -> None:
        self._coordinator = coordinator
        self._compute = compute_use_case
        self._events = event_publisher

    def execute(self, command: UpdateMeasurementCommand) -> MeasurementOutcome:
        versioned = self._coordinator.update(
            command.measurement_id, command.expected_version, command.patch
        )
        measurement = versioned.measurement
        self._events.publish_measurement_changed(measurement, change="update")

        try:
            composition = self._compute.compute_for(
                measurement, command.sex, age=command.age
            )
        except ComputationError as exc:
            LOGGER.info(
                "Measurement %s version %s saved without composition: %s",
                measurement.measurement_id,
                versioned.version,
                exc,
            )
            return MeasurementOutcome(measurement=measurement, composition_error=exc)
        return MeasurementOutcome(measurement=measurement, composition=composition)
