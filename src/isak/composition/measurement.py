"""Measurement domain model."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from isak.composition.errors import PreconditionError
from isak.reference.adjustment import MeasurementCategory


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"

    @classmethod
    def parse(cls, value: "Sex | str | None") -> "Sex":
        """Accepts enum members, 'male'/'female' and the 'M'/'F' patient codes."""
        if isinstance(value, Sex):
            return value
        if value is None:
            raise PreconditionError("sex", "missing")
        normalized = str(value).strip().lower()
        if normalized in {"male", "m"}:
            return cls.MALE
        if normalized in {"female", "f"}:
            return cls.FEMALE
        raise PreconditionError("sex", f"not a recognised value ({value!r})")


FIELD_CATEGORIES: Mapping[str, MeasurementCategory] = {
    "weight": MeasurementCategory.BASIC,
    "height": MeasurementCategory.BASIC,
    "seated_height": MeasurementCategory.BASIC,
    "biacromial": MeasurementCategory.DIAMETER,
    "thorax_transverse": MeasurementCategory.DIAMETER,
    "thorax_anteroposterior": MeasurementCategory.DIAMETER,
    "biiliocristal": MeasurementCategory.DIAMETER,
    "humeral": MeasurementCategory.DIAMETER,
    "femoral": MeasurementCategory.DIAMETER,
    "head": MeasurementCategory.PERIMETER,
    "relaxed_arm": MeasurementCategory.PERIMETER,
    "flexed_arm": MeasurementCategory.PERIMETER,
    "forearm": MeasurementCategory.PERIMETER,
    "thorax_circ": MeasurementCategory.PERIMETER,
    "waist": MeasurementCategory.PERIMETER,
    "hip": MeasurementCategory.PERIMETER,
    "thigh_superior": MeasurementCategory.PERIMETER,
    "thigh_medial": MeasurementCategory.PERIMETER,
    "calf": MeasurementCategory.PERIMETER,
    "triceps": MeasurementCategory.SKINFOLD,
    "subscapular": MeasurementCategory.SKINFOLD,
    "supraspinal": MeasurementCategory.SKINFOLD,
    "abdominal": MeasurementCategory.SKINFOLD,
    "thigh_skinfold": MeasurementCategory.SKINFOLD,
    "calf_skinfold": MeasurementCategory.SKINFOLD,
}

READING_FIELDS: tuple[str, ...] = tuple(FIELD_CATEGORIES)

SKINFOLD_FIELDS: tuple[str, ...] = (
    "triceps",
    "subscapular",
    "supraspinal",
    "abdominal",
    "thigh_skinfold",
    "calf_skinfold",
)

# Checked in this order, so the first missing one is reported.
MANDATORY_FIELDS: tuple[str, ...] = (
    "weight",
    "height",
    "humeral",
    "femoral",
    *SKINFOLD_FIELDS,
)

IDENTITY_FIELDS: frozenset[str] = frozenset({"measurement_id", "patient_id", "version"})


@dataclass(frozen=True)
class MeasurementSet:
    """One timestamped set of anthropometric readings for one patient.

    Lengths are in cm, skinfolds in mm, weight in kg. Every reading is
    optional at this level; composition checks its own preconditions.
    """

    measurement_id: str
    patient_id: str
    measured_at: datetime | None = None
    version: int = 1
    notes: str | None = None

    weight: float | None = None
    height: float | None = None
    seated_height: float | None = None

    biacromial: float | None = None
    thorax_transverse: float | None = None
    thorax_anteroposterior: float | None = None
    biiliocristal: float | None = None
    humeral: float | None = None
    femoral: float | None = None

    head: float | None = None
    relaxed_arm: float | None = None
    flexed_arm: float | None = None
    forearm: float | None = None
    thorax_circ: float | None = None
    waist: float | None = None
    hip: float | None = None
    thigh_superior: float | None = None
    thigh_medial: float | None = None
    calf: float | None = None

    triceps: float | None = None
    subscapular: float | None = None
    supraspinal: float | None = None
    abdominal: float | None = None
    thigh_skinfold: float | None = None
    calf_skinfold: float | None = None

    def reading(self, name: str) -> float | None:
        if name not in FIELD_CATEGORIES:
            raise KeyError(name)
        return getattr(self, name)

    def readings(self) -> dict[str, float]:
        """Present readings only, in catalogue order."""
        present = {}
        for name in READING_FIELDS:
            value = getattr(self, name)
            if value is not None:
                present[name] = value
        return present

    def require(self, name: str) -> float:
        """Return a mandatory reading as a finite float, or raise PreconditionError."""
        value = self.reading(name)
        if value is None:
            raise PreconditionError(name, "missing")
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise PreconditionError(name, "not numeric") from exc
        if not math.isfinite(number):
            raise PreconditionError(name, "not a finite number")
        return number

    def with_changes(self, changes: Mapping[str, Any], *, version: int) -> "MeasurementSet":
        return replace(self, **dict(changes), version=version)


PATCHABLE_FIELDS: frozenset[str] = frozenset(
    f.name for f in fields(MeasurementSet) if f.name not in IDENTITY_FIELDS
)
