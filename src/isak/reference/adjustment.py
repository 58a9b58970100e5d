from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_ADJUSTMENT_FACTOR = 0.935


class MeasurementCategory(str, Enum):
    BASIC = "basic"
    DIAMETER = "diameter"
    PERIMETER = "perimeter"
    SKINFOLD = "skinfold"


@dataclass(frozen=True)
class AdjustmentPolicy:
    """Caliper/tape calibration and tissue compressibility correction.

    Skinfolds, perimeters and diameters are scaled by a single empirical
    factor. Basic measurements (weight, height) pass through unchanged.
    """

    factor: float = DEFAULT_ADJUSTMENT_FACTOR

    def adjust(self, raw_value: float, category: MeasurementCategory | str) -> float:
        category = MeasurementCategory(category)
        if category is MeasurementCategory.BASIC:
            return raw_value
        return raw_value * self.factor
