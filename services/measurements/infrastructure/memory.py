from __future__ import annotations

import threading
from typing import Any, Mapping

from isak.composition.assembler import CompositionResult
from isak.composition.measurement import MeasurementSet

from ..application.interfaces import CompositionResultRepository, MeasurementRepository
from ..domain.errors import MeasurementNotFoundError


class InMemoryMeasurementRepository(MeasurementRepository):
    """Single-process store. The swap is serialized by a per-measurement lock."""

    def __init__(self) -> None:
        self._items: dict[str, MeasurementSet] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def create(self, measurement: MeasurementSet) -> MeasurementSet:
        with self._registry_lock:
            if measurement.measurement_id in self._items:
                raise ValueError(
                    f"Measurement {measurement.measurement_id} already exists"
                )
            self._items[measurement.measurement_id] = measurement
            self._locks[measurement.measurement_id] = threading.Lock()
        return measurement

    def get(self, measurement_id: str) -> MeasurementSet | None:
        return self._items.get(measurement_id)

    def compare_and_swap(
        self,
        measurement_id: str,
        expected_version: int,
        changes: Mapping[str, Any],
    ) -> MeasurementSet | None:
        lock = self._locks.get(measurement_id)
        if lock is None:
            raise MeasurementNotFoundError(measurement_id)
        with lock:
            current = self._items[measurement_id]
            if current.version != expected_version:
                return None
            updated = current.with_changes(changes, version=current.version + 1)
            self._items[measurement_id] = updated
            return updated


class InMemoryCompositionResultRepository(CompositionResultRepository):
    def __init__(self) -> None:
        self._results: dict[tuple[str, int], CompositionResult] = {}
        self._lock = threading.Lock()

    def save(self, result: CompositionResult) -> None:
        with self._lock:
            self._results[(result.measurement_id, result.measurement_version)] = result

    def get_latest(self, measurement_id: str) -> CompositionResult | None:
        with self._lock:
            versions = [
                version
                for (stored_id, version) in self._results
                if stored_id == measurement_id
            ]
            if not versions:
                return None
            return self._results[(measurement_id, max(versions))]
