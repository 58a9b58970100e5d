import pytest

from isak.reference.adjustment import (
    DEFAULT_ADJUSTMENT_FACTOR,
    AdjustmentPolicy,
    MeasurementCategory,
)


@pytest.mark.parametrize(
    "category",
    [
        MeasurementCategory.SKINFOLD,
        MeasurementCategory.PERIMETER,
        MeasurementCategory.DIAMETER,
    ],
)
def test_non_basic_categories_apply_correction(category):
    policy = AdjustmentPolicy()
    assert policy.adjust(10.0, category) == pytest.approx(9.35)


def test_basic_passes_through_unchanged():
    policy = AdjustmentPolicy()
    assert policy.adjust(74.6, MeasurementCategory.BASIC) == 74.6


def test_accepts_category_names():
    policy = AdjustmentPolicy()
    assert policy.adjust(20.0, "skinfold") == pytest.approx(20.0 * DEFAULT_ADJUSTMENT_FACTOR)
    assert policy.adjust(20.0, "basic") == 20.0


def test_unknown_category_is_rejected():
    with pytest.raises(ValueError):
        AdjustmentPolicy().adjust(1.0, "volume")


def test_custom_factor():
    policy = AdjustmentPolicy(factor=0.9)
    assert policy.adjust(10.0, MeasurementCategory.PERIMETER) == pytest.approx(9.0)
