"""
Result assembly.

Packages calculator output, per-field adjusted/ETM/Z-score data and the
measurement version into the ``CompositionResult`` record consumed by
persistence and the report renderer. The field set of ``to_dict`` is the wire
contract for those consumers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from isak.composition.calculator import BodyComposition
from isak.composition.indices import (
    bmi_classification,
    body_fat_percentage,
    lean_mass,
    waist_hip_ratio,
)
from isak.composition.measurement import FIELD_CATEGORIES, MeasurementSet, Sex
from isak.composition.somatotype import Somatotype, calculate_somatotype
from isak.composition.zscores import ZScoreEvaluator
from isak.reference.adjustment import AdjustmentPolicy
from isak.reference.tables import DEFAULT_REFERENCE_TABLES, ReferenceTables


@dataclass(frozen=True)
class FieldReading:
    raw: float
    adjusted: float
    etm: float | None = None
    z_score: float | None = None
    difference: float | None = None


@dataclass(frozen=True)
class CompositionResult:
    measurement_id: str
    measurement_version: int
    sex: Sex
    bmi: float
    bmi_classification: str
    sum_of_6_skinfolds: float
    skin_mass_kg: float
    adipose_mass_kg: float
    muscle_mass_kg: float
    bone_mass_kg: float
    residual_mass_kg: float
    skin_mass_percent: float
    adipose_mass_percent: float
    muscle_mass_percent: float
    bone_mass_percent: float
    residual_mass_percent: float
    muscle_to_bone_ratio: float
    adipose_to_muscle_ratio: float
    structured_weight: float
    weight_difference: float
    waist_hip_ratio: float | None = None
    age: float | None = None
    body_fat_percentage: float | None = None
    lean_mass_kg: float | None = None
    somatotype: Somatotype | None = None
    fields: Mapping[str, FieldReading] = field(default_factory=dict)

    def is_stale_for(self, measurement: MeasurementSet) -> bool:
        return (
            self.measurement_id != measurement.measurement_id
            or self.measurement_version != measurement.version
        )

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["sex"] = self.sex.value
        payload["fields"] = {
            name: asdict(reading) for name, reading in self.fields.items()
        }
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CompositionResult":
        data = dict(payload)
        data["sex"] = Sex(data["sex"])
        somatotype = data.get("somatotype")
        data["somatotype"] = Somatotype(**somatotype) if somatotype else None
        data["fields"] = {
            name: FieldReading(**reading)
            for name, reading in (data.get("fields") or {}).items()
        }
        return cls(**data)


class ResultAssembler:
    def __init__(
        self,
        tables: ReferenceTables = DEFAULT_REFERENCE_TABLES,
        policy: AdjustmentPolicy | None = None,
    ) -> None:
        self._tables = tables
        self._policy = policy or AdjustmentPolicy()
        self._zscores = ZScoreEvaluator(tables)

    def field_readings(
        self,
        measurement: MeasurementSet,
        previous: MeasurementSet | None = None,
    ) -> dict[str, FieldReading]:
        readings: dict[str, FieldReading] = {}
        for name, raw in measurement.readings().items():
            raw = float(raw)
            difference = None
            if previous is not None:
                prior = previous.reading(name)
                if prior is not None:
                    difference = raw - float(prior)
            readings[name] = FieldReading(
                raw=raw,
                adjusted=self._policy.adjust(raw, FIELD_CATEGORIES[name]),
                etm=self._tables.etm_for(name) if self._tables.has_etm(name) else None,
                z_score=self._zscores.evaluate(name, raw),
                difference=difference,
            )
        return readings

    def assemble(
        self,
        measurement: MeasurementSet,
        sex: Sex,
        composition: BodyComposition,
        previous: MeasurementSet | None = None,
        *,
        age: float | None = None,
    ) -> CompositionResult:
        fat_percent = body_fat_percentage(composition.sum_of_6_skinfolds, age, sex)
        return CompositionResult(
            measurement_id=measurement.measurement_id,
            measurement_version=measurement.version,
            sex=sex,
            bmi_classification=bmi_classification(composition.bmi),
            waist_hip_ratio=waist_hip_ratio(measurement.waist, measurement.hip),
            age=age,
            body_fat_percentage=fat_percent,
            lean_mass_kg=lean_mass(measurement.weight, fat_percent),
            somatotype=calculate_somatotype(measurement),
            fields=self.field_readings(measurement, previous),
            **asdict(composition),
        )
