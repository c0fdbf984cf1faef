"""Test the exponentiation engine."""
import pytest

from checked_math.core.errors import BadExponentError, MathOverflowError, MathUnderflowError
from checked_math.core.power import (
    BaseClass,
    ExponentClass,
    classify_base,
    classify_exponent,
    power,
)
from checked_math.core.scalar import INT_MAX, INT_MIN


@pytest.mark.parametrize("a,expected", [
    (0, BaseClass.ZERO),
    (1, BaseClass.ONE),
    (-1, BaseClass.MINUS_ONE),
    (2, BaseClass.ABOVE_ONE),
    (INT_MAX, BaseClass.ABOVE_ONE),
    (-2, BaseClass.BELOW_MINUS_ONE),
    (INT_MIN, BaseClass.BELOW_MINUS_ONE),
])
def test_classify_base(a: int, expected: BaseClass) -> None:
    assert classify_base(a) is expected


@pytest.mark.parametrize("b,expected", [
    (-1, ExponentClass.NEGATIVE),
    (INT_MIN, ExponentClass.NEGATIVE),
    (0, ExponentClass.ZERO),
    (1, ExponentClass.ONE),
    (2, ExponentClass.ABOVE_ONE),
    (INT_MAX, ExponentClass.ABOVE_ONE),
])
def test_classify_exponent(b: int, expected: ExponentClass) -> None:
    assert classify_exponent(b) is expected


@pytest.mark.parametrize("a,b,expected", [
    # negative exponent
    (-1, -1, -1),
    (-1, -2, 1),
    (1, -7, 1),
    (1, INT_MIN, 1),
    # zero exponent
    (1, 0, 1),
    (-1, 0, 1),
    (7, 0, 1),
    (INT_MIN, 0, 1),
    # exponent one
    (0, 1, 0),
    (-5, 1, -5),
    (INT_MIN, 1, INT_MIN),
    (INT_MAX, 1, INT_MAX),
    # exponent above one
    (0, 5, 0),
    (1, 1_000_000, 1),
    (-1, 7, -1),
    (-1, 8, 1),
    (2, 2, 4),
    (2, 10, 1024),
    (2, 30, 2 ** 30),
    (3, 19, 3 ** 19),
    (-2, 2, 4),
    (-2, 3, -8),
    (-3, 3, -27),
    (-2, 30, 2 ** 30),
])
def test_power(a: int, b: int, expected: int) -> None:
    """Every base class against every exponent class."""
    assert power(a, b) == expected


@pytest.mark.parametrize("a,b", [(0, 0), (0, -1), (0, INT_MIN)])
def test_power_bad_exponent(a: int, b: int) -> None:
    """0^0 and 0^negative are undefined."""
    with pytest.raises(BadExponentError):
        power(a, b)


@pytest.mark.parametrize("a,b", [(2, -1), (-2, -1), (INT_MAX, -3), (INT_MIN, -2)])
def test_power_underflow(a: int, b: int) -> None:
    """|a| > 1 to a negative power is below one in magnitude."""
    with pytest.raises(MathUnderflowError):
        power(a, b)


@pytest.mark.parametrize("a,b", [
    (2, 31),
    (2, 1_000_000),
    (INT_MAX, 2),
    (-2, 32),
    (INT_MIN, 2),
    (INT_MIN, 3),
    # -2^31 fits, but its magnitude does not
    (-2, 31),
])
def test_power_overflow(a: int, b: int) -> None:
    """Results beyond the range raise an overflow."""
    with pytest.raises(MathOverflowError):
        power(a, b)
