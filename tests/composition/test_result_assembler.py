import json

import pytest

from isak.composition.assembler import CompositionResult, ResultAssembler
from isak.composition.calculator import BodyCompositionCalculator
from isak.composition.indices import (
    bmi_classification,
    body_fat_percentage,
    durnin_womersley_constants,
    lean_mass,
    waist_hip_ratio,
)
from isak.composition.measurement import READING_FIELDS, Sex
from isak.reference.adjustment import AdjustmentPolicy
from isak.reference.tables import ReferenceTables


@pytest.fixture
def assembled(reference_measurement):
    composition = BodyCompositionCalculator().calculate(reference_measurement, Sex.MALE)
    return ResultAssembler().assemble(reference_measurement, Sex.MALE, composition)


def test_result_is_tagged_with_measurement_version(assembled, reference_measurement):
    assert assembled.measurement_id == reference_measurement.measurement_id
    assert assembled.measurement_version == reference_measurement.version
    assert not assembled.is_stale_for(reference_measurement)


def test_result_goes_stale_when_version_moves(assembled, make_measurement):
    assert assembled.is_stale_for(make_measurement(version=2))
    assert assembled.is_stale_for(make_measurement(measurement_id="msr_other"))


def test_every_reading_at_reference_mean_scores_zero(assembled):
    assert set(assembled.fields) == set(READING_FIELDS)
    for name, reading in assembled.fields.items():
        assert reading.z_score == pytest.approx(0.0, abs=1e-9), name


def test_field_readings_carry_adjustment_and_etm(assembled):
    triceps = assembled.fields["triceps"]
    assert triceps.raw == 9.8
    assert triceps.adjusted == pytest.approx(9.8 * 0.935)
    assert triceps.etm == pytest.approx(1.55)
    assert triceps.difference is None

    weight = assembled.fields["weight"]
    assert weight.adjusted == weight.raw


def test_optional_readings_are_omitted(minimal_measurement):
    composition = BodyCompositionCalculator().calculate(minimal_measurement, Sex.FEMALE)
    result = ResultAssembler().assemble(minimal_measurement, Sex.FEMALE, composition)
    assert "waist" not in result.fields
    assert result.waist_hip_ratio is None
    assert result.somatotype is None


def test_differences_against_previous_visit(reference_measurement, make_measurement):
    previous = make_measurement(weight=76.0, waist=None)
    assembler = ResultAssembler()
    readings = assembler.field_readings(reference_measurement, previous)
    assert readings["weight"].difference == pytest.approx(-1.4)
    assert readings["waist"].difference is None


def test_fields_without_reference_data_have_no_statistics(reference_measurement):
    tables = ReferenceTables.from_mapping({"etm": {"weight": 0.05}})
    assembler = ResultAssembler(tables=tables, policy=AdjustmentPolicy(factor=1.0))
    readings = assembler.field_readings(reference_measurement)
    assert readings["weight"].etm == pytest.approx(0.05)
    assert readings["weight"].z_score is None
    assert readings["triceps"].etm is None
    assert readings["triceps"].adjusted == 9.8


def test_auxiliary_indices(assembled):
    assert assembled.bmi_classification == "Normal"
    assert assembled.waist_hip_ratio == pytest.approx(76.9 / 100.8)
    assert assembled.somatotype is not None


@pytest.mark.parametrize(
    "bmi, label",
    [
        (17.0, "Underweight"),
        (18.5, "Normal"),
        (24.99, "Normal"),
        (25.0, "Overweight"),
        (32.0, "Obesity class I"),
        (37.5, "Obesity class II"),
        (40.0, "Obesity class III"),
    ],
)
def test_bmi_classification(bmi, label):
    assert bmi_classification(bmi) == label


def test_waist_hip_ratio_guards():
    assert waist_hip_ratio(80.0, 0) is None
    assert waist_hip_ratio(None, 100.0) is None
    assert waist_hip_ratio(80.0, 100.0) == pytest.approx(0.8)


@pytest.mark.parametrize(
    "sex, age, sum6, expected",
    [
        (Sex.MALE, 25, 60.0, 21.11),
        (Sex.FEMALE, 35, 80.0, 34.33),
    ],
)
def test_durnin_womersley_body_fat(sex, age, sum6, expected):
    assert body_fat_percentage(sum6, age, sex) == pytest.approx(expected, abs=0.01)


@pytest.mark.parametrize(
    "age, constants",
    [
        (16, (1.1533, 0.0643)),
        (17, (1.1620, 0.0630)),
        (49, (1.1620, 0.0700)),
        (50, (1.1715, 0.0779)),
        (82, (1.1715, 0.0779)),
    ],
)
def test_male_age_bands(age, constants):
    assert durnin_womersley_constants(age, Sex.MALE) == constants


def test_body_fat_outside_plausible_window_is_unavailable():
    # 0.04 % and 76 % respectively
    assert body_fat_percentage(10.0, 25, Sex.MALE) is None
    assert body_fat_percentage(1000.0, 55, Sex.FEMALE) is None


def test_body_fat_needs_age_and_skinfolds():
    assert body_fat_percentage(60.0, None, Sex.MALE) is None
    assert body_fat_percentage(60.0, 0, Sex.MALE) is None
    assert body_fat_percentage(0.0, 25, Sex.MALE) is None


def test_lean_mass():
    assert lean_mass(70.0, 20.0) == pytest.approx(56.0)
    assert lean_mass(70.0, None) is None


def test_body_fat_is_assembled_when_age_is_known(reference_measurement):
    composition = BodyCompositionCalculator().calculate(reference_measurement, Sex.MALE)
    result = ResultAssembler().assemble(
        reference_measurement, Sex.MALE, composition, age=25
    )

    assert result.age == 25
    assert result.body_fat_percentage == pytest.approx(23.81, abs=0.01)
    assert result.lean_mass_kg == pytest.approx(74.6 * (1 - result.body_fat_percentage / 100))


def test_body_fat_is_absent_without_age(assembled):
    assert assembled.age is None
    assert assembled.body_fat_percentage is None
    assert assembled.lean_mass_kg is None


def test_wire_form_is_json_serializable(assembled):
    payload = assembled.to_dict()
    encoded = json.dumps(payload)
    assert '"sex": "male"' in encoded
    assert payload["fields"]["femoral"]["raw"] == 9.9
    assert payload["somatotype"]["mesomorphy"] == pytest.approx(4.60, abs=0.01)


def test_wire_form_restores_the_same_result(assembled):
    restored = CompositionResult.from_dict(json.loads(json.dumps(assembled.to_dict())))
    assert restored == assembled
