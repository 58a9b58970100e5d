"""
Heath-Carter anthropometric somatotype.

Rates physique on three components: endomorphy (relative fatness),
mesomorphy (musculo-skeletal robustness) and ectomorphy (relative linearity).
The rating is optional: it is produced only when every required reading is
present, otherwise ``None`` is returned.

References:
- Carter, J.E.L. & Heath, B.H. (1990). "Somatotyping: Development and
  Applications." Cambridge University Press.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from isak.composition.measurement import MeasurementSet

HEIGHT_CORRECTION_CM = 170.18

_REQUIRED_FIELDS = (
    "weight",
    "height",
    "triceps",
    "subscapular",
    "supraspinal",
    "humeral",
    "femoral",
    "flexed_arm",
    "calf",
    "calf_skinfold",
)


@dataclass(frozen=True)
class Somatotype:
    endomorphy: float
    mesomorphy: float
    ectomorphy: float


def endomorphy(triceps: float, subscapular: float, supraspinal: float, height_cm: float) -> float:
    x = (triceps + subscapular + supraspinal) * (HEIGHT_CORRECTION_CM / height_cm)
    return -0.7182 + 0.1451 * x - 0.00068 * x**2 + 0.0000014 * x**3


def mesomorphy(
    humeral_cm: float,
    femoral_cm: float,
    flexed_arm_cm: float,
    triceps_mm: float,
    calf_cm: float,
    calf_skinfold_mm: float,
    height_cm: float,
) -> float:
    # Girths are corrected for the skinfold at the same site (mm -> cm)
    corrected_arm = flexed_arm_cm - triceps_mm / 10
    corrected_calf = calf_cm - calf_skinfold_mm / 10
    return (
        0.858 * humeral_cm
        + 0.601 * femoral_cm
        + 0.188 * corrected_arm
        + 0.161 * corrected_calf
        - 0.131 * height_cm
        + 4.5
    )


def height_weight_ratio(height_cm: float, weight_kg: float) -> float:
    return height_cm / math.pow(weight_kg, 1.0 / 3.0)


def ectomorphy(height_cm: float, weight_kg: float) -> float:
    hwr = height_weight_ratio(height_cm, weight_kg)
    if hwr >= 40.75:
        return 0.732 * hwr - 28.58
    if hwr > 38.25:
        return 0.463 * hwr - 17.63
    return 0.1


def calculate_somatotype(measurement: MeasurementSet) -> Somatotype | None:
    values = {}
    for name in _REQUIRED_FIELDS:
        value = measurement.reading(name)
        if value is None or not math.isfinite(value):
            return None
        values[name] = float(value)
    if values["height"] <= 0 or values["weight"] <= 0:
        return None

    return Somatotype(
        endomorphy=endomorphy(
            values["triceps"],
            values["subscapular"],
            values["supraspinal"],
            values["height"],
        ),
        mesomorphy=mesomorphy(
            values["humeral"],
            values["femoral"],
            values["flexed_arm"],
            values["triceps"],
            values["calf"],
            values["calf_skinfold"],
            values["height"],
        ),
        ectomorphy=ectomorphy(values["height"], values["weight"]),
    )
