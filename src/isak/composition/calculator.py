"""
ISAK 5-component body mass fractionation (D. Kerr, 1988).

Partitions total body mass into skin, adipose, muscle, bone and residual
components from caliper and tape measurements. Each step consumes the outputs
of the previous ones; the pipeline is pure and deterministic.

References:
- Kerr, D.A. (1988). "An anthropometric method for the fractionation of skin,
  adipose, bone, muscle and residual tissue masses in males and females age
  6 to 77 years." MSc thesis, Simon Fraser University.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from isak.composition.errors import DegenerateComputationError, PreconditionError
from isak.composition.measurement import (
    MANDATORY_FIELDS,
    SKINFOLD_FIELDS,
    MeasurementSet,
    Sex,
)

logger = logging.getLogger(__name__)

# Body surface area (Du Bois) and skin thickness/density constants
BSA_WEIGHT_EXPONENT = 0.425
BSA_HEIGHT_EXPONENT = 0.725
BSA_COEFFICIENT = 0.007184
SKIN_THICKNESS_FACTOR = 2.0
SKIN_DENSITY = 1.05

# Body density from the sum of six skinfolds, converted with Siri's equation
DENSITY_INTERCEPT = 1.0982
DENSITY_SLOPE = 0.000815
SIRI_NUMERATOR = 495.0
SIRI_OFFSET = 450.0

BONE_COEFFICIENT = 3.02
BONE_SCALE = 400.0
BONE_EXPONENT = 0.712

RESIDUAL_PERCENT = {
    Sex.MALE: 24.1,
    Sex.FEMALE: 20.9,
}

_POSITIVE_FIELDS = frozenset({"weight", "height", "humeral", "femoral"})


@dataclass(frozen=True)
class BodyComposition:
    bmi: float
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


def body_mass_index(weight: float, height_cm: float) -> float:
    height_m = height_cm / 100
    return weight / (height_m * height_m)


def sum_of_six_skinfolds(measurement: MeasurementSet) -> float:
    """Sum of the six ISAK skinfolds in mm. A missing skinfold is never treated as zero."""
    values = [measurement.require(name) for name in SKINFOLD_FIELDS]
    return sum(values)


def skin_mass(weight: float, height_cm: float) -> float:
    body_surface = (
        math.pow(weight, BSA_WEIGHT_EXPONENT)
        * math.pow(height_cm, BSA_HEIGHT_EXPONENT)
        * BSA_COEFFICIENT
    )
    return body_surface * SKIN_THICKNESS_FACTOR * SKIN_DENSITY


def body_density(sum_of_6: float) -> float:
    return DENSITY_INTERCEPT - DENSITY_SLOPE * sum_of_6


def adipose_mass(weight: float, sum_of_6: float) -> float:
    density = body_density(sum_of_6)
    if density <= 0:
        raise DegenerateComputationError(
            "body_density",
            density,
            f"sum of six skinfolds {sum_of_6:.1f} mm is outside the density model",
        )
    fat_percent = SIRI_NUMERATOR / density - SIRI_OFFSET
    return weight * fat_percent / 100


def bone_mass(height_cm: float, humeral_cm: float, femoral_cm: float) -> float:
    height_m = height_cm / 100
    humeral_m = humeral_cm / 100
    femoral_m = femoral_cm / 100
    return BONE_COEFFICIENT * math.pow(
        height_m * height_m * humeral_m * femoral_m * BONE_SCALE, BONE_EXPONENT
    )


def residual_mass(weight: float, sex: Sex) -> float:
    return weight * RESIDUAL_PERCENT[sex] / 100


def muscle_mass(
    weight: float,
    skin: float,
    adipose: float,
    bone: float,
    residual: float,
) -> float:
    return weight - (skin + adipose + bone + residual)


def _ensure_finite(quantity: str, value: float) -> float:
    if not math.isfinite(value):
        raise DegenerateComputationError(quantity, value, "non-finite intermediate")
    return value


class BodyCompositionCalculator:
    """Runs the fractionation pipeline on one measurement set."""

    def validate(self, measurement: MeasurementSet) -> dict[str, float]:
        """
        Check every mandatory field before any arithmetic.

        Returns:
            The mandatory readings as floats, keyed by field name.

        Raises:
            PreconditionError: Naming the first missing or invalid field.
        """
        values: dict[str, float] = {}
        for name in MANDATORY_FIELDS:
            value = measurement.require(name)
            if name in _POSITIVE_FIELDS and value <= 0:
                raise PreconditionError(name, "not positive")
            if name in SKINFOLD_FIELDS and value < 0:
                raise PreconditionError(name, "negative")
            values[name] = value
        return values

    def calculate(self, measurement: MeasurementSet, sex: Sex | str | None) -> BodyComposition:
        values = self.validate(measurement)
        resolved_sex = Sex.parse(sex)

        weight = values["weight"]
        height = values["height"]

        bmi = _ensure_finite("bmi", body_mass_index(weight, height))
        sum_of_6 = _ensure_finite("sum_of_6_skinfolds", sum_of_six_skinfolds(measurement))
        skin = _ensure_finite("skin_mass", skin_mass(weight, height))
        adipose = _ensure_finite("adipose_mass", adipose_mass(weight, sum_of_6))
        bone = _ensure_finite(
            "bone_mass", bone_mass(height, values["humeral"], values["femoral"])
        )
        residual = _ensure_finite("residual_mass", residual_mass(weight, resolved_sex))
        muscle = _ensure_finite(
            "muscle_mass", muscle_mass(weight, skin, adipose, bone, residual)
        )
        if muscle < 0:
            logger.warning(
                "Negative muscle mass %.3f kg for measurement %s; input data is suspect",
                muscle,
                measurement.measurement_id,
            )

        structured_weight = skin + adipose + muscle + bone + residual
        if structured_weight == 0 or not math.isfinite(structured_weight):
            raise DegenerateComputationError("structured_weight", structured_weight)

        composition = BodyComposition(
            bmi=bmi,
            sum_of_6_skinfolds=sum_of_6,
            skin_mass_kg=skin,
            adipose_mass_kg=adipose,
            muscle_mass_kg=muscle,
            bone_mass_kg=bone,
            residual_mass_kg=residual,
            skin_mass_percent=skin / structured_weight * 100,
            adipose_mass_percent=adipose / structured_weight * 100,
            muscle_mass_percent=muscle / structured_weight * 100,
            bone_mass_percent=bone / structured_weight * 100,
            residual_mass_percent=residual / structured_weight * 100,
            muscle_to_bone_ratio=muscle / bone if bone > 0 else 0.0,
            adipose_to_muscle_ratio=adipose / muscle if muscle > 0 else 0.0,
            structured_weight=structured_weight,
            weight_difference=(structured_weight - weight) / weight * 100,
        )
        logger.debug(
            "Computed composition for %s v%s: bmi=%.2f sum6=%.1f",
            measurement.measurement_id,
            measurement.version,
            composition.bmi,
            composition.sum_of_6_skinfolds,
        )
        return composition
