"""Map operation identifiers to their arity and implementation."""
from enum import IntEnum
from typing import Callable, Dict, List, MutableSequence, Tuple, Union

from checked_math.core.errors import BadCommandError
from checked_math.core.logarithm import log
from checked_math.core.power import power
from checked_math.core.scalar import add, divide, in_range, negate

# Inputs followed by one output slot
OPERAND_CAPACITY: int = 3


class Operation(IntEnum):
    """Known operations with their stable wire identifiers."""

    NEG = 1
    ADD = 2
    DIV = 3
    EXP = 4
    LOG = 5


OperationFn = Callable[..., int]

# Mapping of operation to (arity, function)
OPERATIONS: Dict[Operation, Tuple[int, OperationFn]] = {
    Operation.NEG: (1, negate),
    Operation.ADD: (2, add),
    Operation.DIV: (2, divide),
    Operation.EXP: (2, power),
    Operation.LOG: (2, log),
}


def resolve(op: Union[int, Operation]) -> Operation:
    """
    Turn a raw identifier into a known Operation.

    :param int op: Operation identifier

    :return: Matching Operation
    :rtype: Operation
    :raises BadCommandError: If op is not a known identifier
    """
    try:
        return Operation(op)
    except ValueError:
        raise BadCommandError(f"unknown operation {op!r}") from None


def arity(op: Union[int, Operation]) -> int:
    """Return the number of input operands an operation consumes."""
    return OPERATIONS[resolve(op)][0]


def dispatch(op: Union[int, Operation], operands: MutableSequence[int]) -> int:
    """
    Run an operation over an operand vector.

    Inputs are read from operands[0:arity] and the result is written to
    operands[arity]. Nothing is written when the operation fails.

    :param int op: Operation identifier
    :param MutableSequence[int] operands: Operand vector of capacity 3

    :return: Result of the operation
    :rtype: int
    :raises MathError: BadCommandError for unknown identifiers, otherwise
        whatever the operation raises
    :raises ValueError: If the vector has no output slot or an input does
        not fit a 32-bit signed integer
    """
    n_inputs, fn = OPERATIONS[resolve(op)]
    if len(operands) < n_inputs + 1:
        raise ValueError(
            f"operand vector of length {len(operands)} has no output slot "
            f"for arity {n_inputs}"
        )
    inputs: List[int] = list(operands[:n_inputs])
    for value in inputs:
        if not in_range(value):
            raise ValueError(f"operand {value} does not fit a 32-bit signed integer")
    result = fn(*inputs)
    operands[n_inputs] = result
    return result
