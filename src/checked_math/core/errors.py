"""Closed error taxonomy of the checked arithmetic engine."""
from enum import IntEnum
from typing import Dict, Type


class ErrorKind(IntEnum):
    """
    Failure kinds an operation can produce instead of a result.

    The numeric values double as wire status codes (see common.protocol).
    """

    BAD_COMMAND = 1
    OVERFLOW = 2
    UNDERFLOW = 3
    BAD_EXPONENT = 4
    BAD_LOGARITHM = 5
    ZERO_DIVISION = 6


class MathError(Exception):
    """Base class for every failure raised by the engine."""

    kind: ErrorKind

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind.name)


class BadCommandError(MathError, ValueError):
    """Operation identifier is not one of the known operations."""

    kind = ErrorKind.BAD_COMMAND


class MathOverflowError(MathError, OverflowError):
    """Checked result does not fit the integer range."""

    kind = ErrorKind.OVERFLOW


class MathUnderflowError(MathError, ValueError):
    """Exponentiation result has magnitude below one."""

    kind = ErrorKind.UNDERFLOW


class BadExponentError(MathError, ValueError):
    """Exponentiation undefined for this input (0^0, 0^negative)."""

    kind = ErrorKind.BAD_EXPONENT


class BadLogarithmError(MathError, ValueError):
    """Logarithm undefined for this argument or base."""

    kind = ErrorKind.BAD_LOGARITHM


class MathZeroDivisionError(MathError, ZeroDivisionError):
    """Division by zero."""

    kind = ErrorKind.ZERO_DIVISION


ERRORS_BY_KIND: Dict[ErrorKind, Type[MathError]] = {
    cls.kind: cls
    for cls in (
        BadCommandError,
        MathOverflowError,
        MathUnderflowError,
        BadExponentError,
        BadLogarithmError,
        MathZeroDivisionError,
    )
}


def error_for(kind: ErrorKind, message: str = "") -> MathError:
    """
    Build the exception instance matching an error kind.

    :param ErrorKind kind: Failure kind
    :param str message: Optional detail message

    :return: Exception ready to be raised
    :rtype: MathError
    """
    return ERRORS_BY_KIND[ErrorKind(kind)](message)
