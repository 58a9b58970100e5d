import pytest

from isak.composition.somatotype import (
    calculate_somatotype,
    ectomorphy,
    endomorphy,
    height_weight_ratio,
    mesomorphy,
)


def test_reference_somatotype(reference_measurement):
    rating = calculate_somatotype(reference_measurement)

    assert rating is not None
    assert rating.endomorphy == pytest.approx(2.97, abs=0.01)
    assert rating.mesomorphy == pytest.approx(4.60, abs=0.01)
    assert rating.ectomorphy == pytest.approx(2.63, abs=0.01)


def test_endomorphy_is_height_corrected():
    at_reference_height = endomorphy(10.0, 10.0, 10.0, 170.18)
    taller = endomorphy(10.0, 10.0, 10.0, 190.0)
    assert taller < at_reference_height


def test_mesomorphy_corrects_girths_for_skinfolds():
    lean = mesomorphy(7.0, 9.9, 31.8, 5.0, 37.6, 5.0, 179.5)
    covered = mesomorphy(7.0, 9.9, 31.8, 25.0, 37.6, 25.0, 179.5)
    assert covered < lean


@pytest.mark.parametrize(
    "hwr, expected",
    [
        (42.0, 0.732 * 42.0 - 28.58),
        (39.0, 0.463 * 39.0 - 17.63),
        (38.0, 0.1),
        (36.0, 0.1),
    ],
)
def test_ectomorphy_branches(hwr, expected):
    weight = 64.0
    height = hwr * weight ** (1.0 / 3.0)
    assert height_weight_ratio(height, weight) == pytest.approx(hwr)
    assert ectomorphy(height, weight) == pytest.approx(expected)


def test_missing_inputs_skip_rating(make_measurement):
    assert calculate_somatotype(make_measurement(flexed_arm=None)) is None
    assert calculate_somatotype(make_measurement(calf=None)) is None


def test_minimal_measurement_has_no_rating(minimal_measurement):
    assert calculate_somatotype(minimal_measurement) is None
