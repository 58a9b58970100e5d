from __future__ import annotations

from dataclasses import dataclass

from isak.composition.assembler import CompositionResult
from isak.composition.errors import ComputationError
from isak.composition.measurement import MeasurementSet


@dataclass(frozen=True)
class VersionedMeasurement:
    measurement: MeasurementSet
    version: int


@dataclass(frozen=True)
class MeasurementOutcome:
    """A stored measurement and what happened when composition was attempted."""

    measurement: MeasurementSet
    composition: CompositionResult | None = None
    composition_error: ComputationError | None = None


@dataclass(frozen=True)
class CompositionView:
    result: CompositionResult
    current_version: int

    @property
    def stale(self) -> bool:
        return self.result.measurement_version != self.current_version
