from __future__ import annotations

import math

from isak.composition.measurement import Sex

# (upper bound, label); the last class is open-ended
_BMI_CLASSES = (
    (18.5, "Underweight"),
    (25.0, "Normal"),
    (30.0, "Overweight"),
    (35.0, "Obesity class I"),
    (40.0, "Obesity class II"),
)

# Durnin & Womersley (C, M) per sex, keyed by the exclusive upper age of each band
_DURNIN_WOMERSLEY_BANDS = {
    Sex.MALE: (
        (17, (1.1533, 0.0643)),
        (20, (1.1620, 0.0630)),
        (30, (1.1631, 0.0632)),
        (40, (1.1422, 0.0544)),
        (50, (1.1620, 0.0700)),
    ),
    Sex.FEMALE: (
        (17, (1.1369, 0.0598)),
        (20, (1.1549, 0.0678)),
        (30, (1.1599, 0.0717)),
        (40, (1.1423, 0.0632)),
        (50, (1.1333, 0.0612)),
    ),
}
_DURNIN_WOMERSLEY_50_PLUS = {
    Sex.MALE: (1.1715, 0.0779),
    Sex.FEMALE: (1.1339, 0.0645),
}

# Siri estimates outside this window are reported as unavailable
BODY_FAT_WINDOW = (3.0, 50.0)


def bmi_classification(bmi: float) -> str:
    for upper, label in _BMI_CLASSES:
        if bmi < upper:
            return label
    return "Obesity class III"


def waist_hip_ratio(waist_cm: float | None, hip_cm: float | None) -> float | None:
    if waist_cm is None or hip_cm is None or hip_cm == 0:
        return None
    return waist_cm / hip_cm


def durnin_womersley_constants(age: float, sex: Sex) -> tuple[float, float]:
    for upper, constants in _DURNIN_WOMERSLEY_BANDS[sex]:
        if age < upper:
            return constants
    return _DURNIN_WOMERSLEY_50_PLUS[sex]


def body_fat_percentage(
    sum_of_6_skinfolds: float | None, age: float | None, sex: Sex
) -> float | None:
    """Durnin & Womersley density from the six-skinfold sum, converted with Siri.

    Returns ``None`` when age or the skinfold sum is missing or not positive,
    or when the estimate falls outside ``BODY_FAT_WINDOW``.
    """
    if sum_of_6_skinfolds is None or sum_of_6_skinfolds <= 0:
        return None
    if age is None or age <= 0:
        return None
    c, m = durnin_womersley_constants(age, sex)
    density = c - m * math.log10(sum_of_6_skinfolds)
    fat_percent = (4.95 / density - 4.5) * 100
    low, high = BODY_FAT_WINDOW
    if not low <= fat_percent <= high:
        return None
    return fat_percent


def lean_mass(weight_kg: float | None, fat_percent: float | None) -> float | None:
    if weight_kg is None or fat_percent is None:
        return None
    return weight_kg * (1 - fat_percent / 100)
