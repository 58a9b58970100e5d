from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Mapping

from isak.composition.measurement import FIELD_CATEGORIES, IDENTITY_FIELDS, PATCHABLE_FIELDS

from ..domain.errors import ConflictError, MeasurementNotFoundError
from ..domain.measurement import VersionedMeasurement
from .interfaces import MeasurementRepository

LOGGER = logging.getLogger(__name__)


def validate_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Check a partial update and normalise readings to floats.

    ``None`` clears an optional reading.

    Raises:
        ValueError: For read-only or unknown fields, or values of the wrong type.
    """
    read_only = sorted(set(patch) & IDENTITY_FIELDS)
    if read_only:
        raise ValueError(f"Fields cannot be patched: {', '.join(read_only)}")
    unknown = sorted(set(patch) - PATCHABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown measurement fields: {', '.join(unknown)}")

    changes: dict[str, Any] = {}
    for name, value in patch.items():
        if value is None:
            changes[name] = None
        elif name in FIELD_CATEGORIES:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Field {name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"Field {name} must be a finite number")
            changes[name] = float(value)
        elif name == "measured_at":
            if not isinstance(value, datetime):
                raise ValueError("measured_at must be a datetime")
            changes[name] = value
        elif name == "notes":
            changes[name] = str(value)
    return changes


class MeasurementVersionCoordinator:
    """Optimistic-concurrency gate for measurement updates.

    Every write presents the version the caller last read. The repository
    performs the compare-and-swap, so two writers that both read version N
    cannot both commit N + 1. Conflicts are rejected, never merged or retried.
    """

    def __init__(self, *, repository: MeasurementRepository) -> None:
        self._repository = repository

    def update(
        self,
        measurement_id: str,
        expected_version: int,
        patch: Mapping[str, Any],
    ) -> VersionedMeasurement:
        if isinstance(expected_version, bool) or not isinstance(expected_version, int):
            raise ValueError("expected_version must be an integer")
        changes = validate_patch(patch)

        current = self._repository.get(measurement_id)
        if current is None:
            raise MeasurementNotFoundError(measurement_id)
        if current.version != expected_version:
            raise self._conflict(measurement_id, expected_version, current.version)

        updated = self._repository.compare_and_swap(
            measurement_id, expected_version, changes
        )
        if updated is None:
            # Lost the race between the read above and the swap.
            latest = self._repository.get(measurement_id)
            raise self._conflict(
                measurement_id,
                expected_version,
                latest.version if latest is not None else None,
            )

        LOGGER.info(
            "Measurement %s committed at version %s (%d field(s) changed)",
            measurement_id,
            updated.version,
            len(changes),
        )
        return VersionedMeasurement(measurement=updated, version=updated.version)

    @staticmethod
    def _conflict(
        measurement_id: str, expected_version: int, current_version: int | None
    ) -> ConflictError:
        LOGGER.info(
            "Version conflict on measurement %s: expected %s, current %s",
            measurement_id,
            expected_version,
            current_version,
        )
        return ConflictError(measurement_id, expected_version, current_version)
