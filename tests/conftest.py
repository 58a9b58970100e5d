from datetime import datetime, timezone

import pytest

from isak.composition.measurement import MeasurementSet


def build_measurement(**overrides) -> MeasurementSet:
    """A measurement with every reading at the reference population mean."""
    values = dict(
        measurement_id="msr_reference",
        patient_id="pat_1",
        measured_at=datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
        version=1,
        weight=74.6,
        height=179.5,
        seated_height=93.5,
        biacromial=40.8,
        thorax_transverse=28.5,
        thorax_anteroposterior=19.3,
        biiliocristal=30.8,
        humeral=7.0,
        femoral=9.9,
        head=58.2,
        relaxed_arm=29.5,
        flexed_arm=31.8,
        forearm=27.1,
        thorax_circ=94.2,
        waist=76.9,
        hip=100.8,
        thigh_superior=59.5,
        thigh_medial=53.2,
        calf=37.6,
        triceps=9.8,
        subscapular=11.2,
        supraspinal=9.8,
        abdominal=17.5,
        thigh_skinfold=14.8,
        calf_skinfold=11.5,
    )
    values.update(overrides)
    return MeasurementSet(**values)


@pytest.fixture
def make_measurement():
    return build_measurement


@pytest.fixture
def reference_measurement() -> MeasurementSet:
    return build_measurement()


@pytest.fixture
def minimal_measurement() -> MeasurementSet:
    """Only the readings composition cannot do without."""
    return MeasurementSet(
        measurement_id="msr_minimal",
        patient_id="pat_2",
        weight=62.0,
        height=165.0,
        humeral=6.2,
        femoral=8.9,
        triceps=14.0,
        subscapular=12.5,
        supraspinal=10.0,
        abdominal=19.0,
        thigh_skinfold=22.0,
        calf_skinfold=13.0,
    )
