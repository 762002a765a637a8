import pytest

from vaccine_core.doses import doses_with_wastage, lookup


@pytest.mark.parametrize(
    "administered, rate, expected",
    [
        (1000, 0.0, 1000),
        (1000, 0.5, 2000),
        (900, 0.1, 1000),
        (0, 0.3, 0),
    ],
)
def test_wastage_identity(administered, rate, expected):
    assert doses_with_wastage(administered, rate) == pytest.approx(expected)


def test_full_wastage_keeps_unadjusted_doses():
    assert doses_with_wastage(500, 1.0) == 500
    assert doses_with_wastage(500, 1.5) == 500


def test_negative_administered_is_zero():
    assert doses_with_wastage(-10, 0.2) == 0


def test_lookup_walks_nested_mappings_and_defaults_to_zero():
    data = {"bcg": {2027: {"weight": 0.6}}}

    assert lookup(data, ("bcg", 2027, "weight")) == 0.6
    assert lookup(data, ("bcg", 2028, "weight")) == 0.0
    assert lookup(data, ("mr",), default=None) is None
