"""
Entry point for the anthropometric calculation engine.

``compute_composition`` is pure and idempotent: the same measurement and sex
always produce an identical ``CompositionResult``. It never persists, retries
or performs I/O.
"""

from __future__ import annotations

from isak.composition.assembler import CompositionResult, ResultAssembler
from isak.composition.calculator import BodyCompositionCalculator
from isak.composition.measurement import MeasurementSet, Sex
from isak.reference.adjustment import AdjustmentPolicy
from isak.reference.tables import DEFAULT_REFERENCE_TABLES, ReferenceTables


class CompositionEngine:
    def __init__(
        self,
        tables: ReferenceTables = DEFAULT_REFERENCE_TABLES,
        policy: AdjustmentPolicy | None = None,
        calculator: BodyCompositionCalculator | None = None,
    ) -> None:
        self._calculator = calculator or BodyCompositionCalculator()
        self._assembler = ResultAssembler(tables=tables, policy=policy)

    def compute(
        self,
        measurement: MeasurementSet,
        sex: Sex | str | None,
        *,
        previous: MeasurementSet | None = None,
        age: float | None = None,
    ) -> CompositionResult:
        """
        Compute the composition result for one measurement revision.

        ``age`` in years only feeds the Durnin & Womersley body-fat estimate;
        without it ``body_fat_percentage`` and ``lean_mass_kg`` are ``None``.

        Raises:
            PreconditionError: A mandatory reading or the sex is missing/invalid.
            DegenerateComputationError: An intermediate value is numerically invalid.
        """
        composition = self._calculator.calculate(measurement, sex)
        return self._assembler.assemble(
            measurement, Sex.parse(sex), composition, previous=previous, age=age
        )


def compute_composition(
    measurement: MeasurementSet,
    sex: Sex | str | None,
    *,
    previous: MeasurementSet | None = None,
    age: float | None = None,
    tables: ReferenceTables = DEFAULT_REFERENCE_TABLES,
    policy: AdjustmentPolicy | None = None,
) -> CompositionResult:
    engine = CompositionEngine(tables=tables, policy=policy)
    return engine.compute(measurement, sex, previous=previous, age=age)
