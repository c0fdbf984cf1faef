"""Checked scalar operations on 32-bit signed integers."""
from checked_math.core.errors import MathOverflowError, MathZeroDivisionError

INT_BITS: int = 32
INT_MIN: int = -(2 ** (INT_BITS - 1))
INT_MAX: int = 2 ** (INT_BITS - 1) - 1


def in_range(value: int) -> bool:
    """Return True if value is representable as a 32-bit signed integer."""
    return INT_MIN <= value <= INT_MAX


def negate(a: int) -> int:
    """
    Negate an integer.

    :param int a: Operand

    :return: -a
    :rtype: int
    :raises MathOverflowError: If a is INT_MIN
    """
    if a == INT_MIN:
        raise MathOverflowError(f"cannot negate {a}")
    return -a


def add(a: int, b: int) -> int:
    """
    Add two integers, checking the bound before computing the sum.

    :param int a: First operand
    :param int b: Second operand

    :return: a + b
    :rtype: int
    :raises MathOverflowError: If the sum leaves the integer range
    """
    if a > 0 and b > 0 and a > INT_MAX - b:
        raise MathOverflowError(f"{a} + {b} exceeds {INT_MAX}")
    if a < 0 and b < 0 and a < INT_MIN - b:
        raise MathOverflowError(f"{a} + {b} is below {INT_MIN}")
    return a + b


def divide(a: int, b: int) -> int:
    """
    Integer division truncating toward zero.

    Python's // rounds toward negative infinity, so the quotient is
    computed on magnitudes and the sign applied afterwards.

    :param int a: Dividend
    :param int b: Divisor

    :return: a / b truncated toward zero
    :rtype: int
    :raises MathZeroDivisionError: If b is zero
    :raises MathOverflowError: For INT_MIN / -1
    """
    if b == 0:
        raise MathZeroDivisionError(f"{a} / 0")
    quotient = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        quotient = -quotient
    if quotient > INT_MAX:
        raise MathOverflowError(f"{a} / {b} exceeds {INT_MAX}")
    return quotient


def multiply(a: int, b: int) -> int:
    """
    Multiply two integers both greater than one.

    Callers guarantee a > 1 and b > 1; this is not a general multiply.

    :param int a: First factor
    :param int b: Second factor

    :return: a * b
    :rtype: int
    :raises MathOverflowError: If the product exceeds INT_MAX
    """
    if b > INT_MAX // a:
        raise MathOverflowError(f"{a} * {b} exceeds {INT_MAX}")
    return a * b
