"""Integer exponentiation with overflow, underflow and domain checks."""
from enum import Enum, auto

from checked_math.core.errors import BadExponentError, MathUnderflowError
from checked_math.core.scalar import multiply, negate


class BaseClass(Enum):
    """Sign/magnitude class of the base."""

    ZERO = auto()
    ONE = auto()
    MINUS_ONE = auto()
    ABOVE_ONE = auto()
    BELOW_MINUS_ONE = auto()


class ExponentClass(Enum):
    """Sign/magnitude class of the exponent."""

    NEGATIVE = auto()
    ZERO = auto()
    ONE = auto()
    ABOVE_ONE = auto()


def classify_base(a: int) -> BaseClass:
    """Classify a base by sign and magnitude."""
    if a == 0:
        return BaseClass.ZERO
    if a == 1:
        return BaseClass.ONE
    if a == -1:
        return BaseClass.MINUS_ONE
    return BaseClass.ABOVE_ONE if a > 1 else BaseClass.BELOW_MINUS_ONE


def classify_exponent(b: int) -> ExponentClass:
    """Classify an exponent by sign and magnitude."""
    if b < 0:
        return ExponentClass.NEGATIVE
    if b == 0:
        return ExponentClass.ZERO
    if b == 1:
        return ExponentClass.ONE
    return ExponentClass.ABOVE_ONE


def _minus_one_power(b: int) -> int:
    return -1 if b % 2 else 1


def _positive_power(a: int, b: int) -> int:
    """
    Compute a^b for a > 1 and b > 1 by repeated checked multiplication.

    The loop stops at the first overflow, so it runs at most 31 times
    regardless of b.
    """
    result = a
    for _ in range(b - 1):
        result = multiply(result, a)
    return result


def power(a: int, b: int) -> int:
    """
    Raise a to the power b, keeping the result space integer-only.

    Every (base class, exponent class) pair is handled explicitly:

    - negative exponent: only bases -1 and 1 give an integer; base 0 is
      undefined, any other base underflows
    - zero exponent: 1, except 0^0 which is undefined
    - exponent one: the base itself
    - exponent above one: 0, 1 and -1 are closed forms; positive bases
      multiply out; negative bases go through their magnitude and take
      the sign of the exponent's parity

    :param int a: Base
    :param int b: Exponent

    :return: a ** b
    :rtype: int
    :raises MathOverflowError: If the result does not fit the integer range
    :raises MathUnderflowError: If |a| > 1 and b < 0
    :raises BadExponentError: For 0^0 and 0^negative
    """
    base = classify_base(a)
    exponent = classify_exponent(b)

    if exponent is ExponentClass.NEGATIVE:
        if base is BaseClass.MINUS_ONE:
            return _minus_one_power(b)
        if base is BaseClass.ONE:
            return 1
        if base is BaseClass.ZERO:
            raise BadExponentError(f"0 to the negative power {b}")
        raise MathUnderflowError(f"{a}^{b} has magnitude below 1")

    if exponent is ExponentClass.ZERO:
        if base is BaseClass.ZERO:
            raise BadExponentError("0^0 is undefined")
        return 1

    if exponent is ExponentClass.ONE:
        return a

    # ExponentClass.ABOVE_ONE
    if base in (BaseClass.ZERO, BaseClass.ONE):
        return a
    if base is BaseClass.MINUS_ONE:
        return _minus_one_power(b)
    if base is BaseClass.ABOVE_ONE:
        return _positive_power(a, b)

    # BaseClass.BELOW_MINUS_ONE
    magnitude = _positive_power(negate(a), b)
    return negate(magnitude) if b % 2 else magnitude
