"""Bridge between wire frames and the command dispatcher."""
from typing import List, Sequence, Tuple

from checked_math.common.protocol import (
    Status,
    decode_request,
    encode_response,
)
from checked_math.core.dispatcher import OPERAND_CAPACITY, arity, dispatch
from checked_math.core.errors import MathError


def evaluate(operation_id: int, operands: Sequence[int]) -> int:
    """
    Evaluate one operation on a fresh operand vector.

    :param int operation_id: Operation identifier
    :param Sequence[int] operands: Input operands (extra slots are ignored)

    :return: Result of the operation
    :rtype: int
    :raises MathError: If the operation fails
    :raises ValueError: If fewer operands than the arity are given, or an
        operand does not fit a 32-bit signed integer
    """
    n_inputs = arity(operation_id)
    if len(operands) < n_inputs:
        raise ValueError(f"expected {n_inputs} operand(s), got {len(operands)}")
    vector: List[int] = list(operands[:OPERAND_CAPACITY])
    vector += [0] * (OPERAND_CAPACITY - len(vector))
    return dispatch(operation_id, vector)


def handle_frame(frame: bytes) -> Tuple[bytes, Status]:
    """
    Answer one request frame.

    On success the response echoes the operand vector with the result at
    index ``arity``; on failure it echoes the vector unchanged with the
    error's status code.

    :param bytes frame: Request frame

    :return: Tuple of (response frame, status)
    :rtype: Tuple[bytes, Status]
    :raises ProtocolError: If the frame cannot be decoded
    """
    op_id, vector = decode_request(frame)
    try:
        dispatch(op_id, vector)
    except MathError as exc:
        status = Status(exc.kind.value)
    else:
        status = Status.OK
    return encode_response(status, vector), status
