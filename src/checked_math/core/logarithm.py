"""Integer logarithm without floating point."""
from checked_math.core.errors import BadLogarithmError, MathOverflowError
from checked_math.core.scalar import multiply


def log(a: int, b: int) -> int:
    """
    Compute floor(log_b(a)).

    For a > b > 1 the power p = b^k is grown by checked multiplication.
    An overflow means b^(k+1) is beyond the integer range and therefore
    above a, so k is the answer; otherwise the search stops at the first
    p > a and the answer is k - 1.

    :param int a: Argument
    :param int b: Base

    :return: Floor of the logarithm of a in base b
    :rtype: int
    :raises BadLogarithmError: If a <= 0 or b <= 1
    """
    if a <= 0 or b <= 1:
        raise BadLogarithmError(f"log of {a} in base {b} is undefined")
    if a < b:
        return 0
    if a == b:
        return 1

    p, k = b, 1
    while p <= a:
        try:
            p = multiply(p, b)
        except MathOverflowError:
            return k
        k += 1
    return k - 1
