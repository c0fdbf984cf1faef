"""Test the command dispatcher."""
import pytest

from checked_math.core.dispatcher import OPERATIONS, Operation, arity, dispatch, resolve
from checked_math.core.errors import (
    BadCommandError,
    BadExponentError,
    BadLogarithmError,
    ErrorKind,
    MathOverflowError,
    MathZeroDivisionError,
)
from checked_math.core.scalar import INT_MAX, INT_MIN


def test_wire_identifiers_are_stable() -> None:
    """Operation identifiers must never change."""
    assert [(op.name, op.value) for op in Operation] == [
        ("NEG", 1), ("ADD", 2), ("DIV", 3), ("EXP", 4), ("LOG", 5),
    ]


def test_every_operation_has_an_implementation() -> None:
    """Arity lookup is total over the Operation set."""
    assert set(OPERATIONS) == set(Operation)


@pytest.mark.parametrize("op,expected", [
    (Operation.NEG, 1),
    (Operation.ADD, 2),
    (Operation.DIV, 2),
    (Operation.EXP, 2),
    (Operation.LOG, 2),
    (1, 1),
    (5, 2),
])
def test_arity(op, expected: int) -> None:
    assert arity(op) == expected


@pytest.mark.parametrize("op", [0, 6, -1, 2 ** 32 - 1])
def test_unknown_operation_is_rejected(op: int) -> None:
    """Unknown identifiers are never defaulted."""
    with pytest.raises(BadCommandError):
        resolve(op)
    with pytest.raises(BadCommandError):
        arity(op)


@pytest.mark.parametrize("op,operands,expected", [
    (Operation.NEG, [4, 0, 0], [4, -4, 0]),
    (Operation.ADD, [2, -5, 0], [2, -5, -3]),
    (Operation.DIV, [200, -3, 0], [200, -3, -66]),
    (Operation.EXP, [2, 10, 0], [2, 10, 1024]),
    (Operation.LOG, [9, 2, 0], [9, 2, 3]),
])
def test_dispatch_writes_result_after_inputs(op: Operation, operands, expected) -> None:
    """The result lands at index arity, inputs are untouched."""
    result = dispatch(op, operands)
    assert operands == expected
    assert result == expected[arity(op)]


def test_dispatch_ignores_slots_beyond_arity() -> None:
    """NEG reads only the first slot."""
    operands = [7, 123, 456]
    assert dispatch(Operation.NEG, operands) == -7
    assert operands == [7, -7, 456]


@pytest.mark.parametrize("op,operands,error", [
    (Operation.NEG, [INT_MIN, 0, 0], MathOverflowError),
    (Operation.ADD, [INT_MAX, 2, 0], MathOverflowError),
    (Operation.DIV, [1, 0, 0], MathZeroDivisionError),
    (Operation.EXP, [0, 0, 0], BadExponentError),
    (Operation.LOG, [0, 0, 0], BadLogarithmError),
    (0, [1, 2, 3], BadCommandError),
    (42, [1, 2, 3], BadCommandError),
])
def test_dispatch_failures_leave_vector_untouched(op, operands, error) -> None:
    """Errors propagate unchanged and no result slot is written."""
    before = list(operands)
    with pytest.raises(error) as exc_info:
        dispatch(op, operands)
    assert operands == before
    assert isinstance(exc_info.value.kind, ErrorKind)


def test_dispatch_is_idempotent() -> None:
    """Identical inputs give identical outputs."""
    first = [3, 5, 0]
    second = [3, 5, 0]
    assert dispatch(Operation.EXP, first) == dispatch(Operation.EXP, second) == 243
    assert first == second


def test_dispatch_requires_output_slot() -> None:
    """A vector without room for the result is a caller bug."""
    with pytest.raises(ValueError):
        dispatch(Operation.ADD, [1, 2])


@pytest.mark.parametrize("op,operands", [
    (Operation.NEG, [INT_MAX + 1, 0, 0]),
    (Operation.ADD, [INT_MIN - 1, 0, 0]),
    (Operation.DIV, [1, 2 ** 40, 0]),
])
def test_dispatch_rejects_out_of_range_inputs(op, operands) -> None:
    before = list(operands)
    with pytest.raises(ValueError):
        dispatch(op, operands)
    assert operands == before
