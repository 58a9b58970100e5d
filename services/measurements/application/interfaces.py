from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol

if TYPE_CHECKING:
    from isak.composition.assembler import CompositionResult
    from isak.composition.measurement import MeasurementSet


class IdProvider(Protocol):
    def generate(self) -> str: ...


class MeasurementRepository(Protocol):
    def create(self, measurement: "MeasurementSet") -> "MeasurementSet": ...

    def get(self, measurement_id: str) -> "MeasurementSet" | None: ...

    def compare_and_swap(
        self,
        measurement_id: str,
        expected_version: int,
        changes: Mapping[str, Any],
    ) -> "MeasurementSet" | None:
        """Apply ``changes`` and bump the version only if it still equals
        ``expected_version``. Returns ``None`` when the version has moved on.
        """
        ...


class CompositionResultRepository(Protocol):
    def save(self, result: "CompositionResult") -> None: ...

    def get_latest(self, measurement_id: str) -> "CompositionResult" | None: ...


class CompositionEventPublisher(Protocol):
    def publish_measurement_changed(
        self, measurement: "MeasurementSet", *, change: str
    ) -> None: ...

    def publish_composition_computed(self, result: "CompositionResult") -> None: ...
