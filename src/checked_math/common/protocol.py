"""
Fixed-size wire frames exchanged between client and server.

Every frame is 16 bytes in network byte order:

- request:  uint32 operation id, int32 operands[3]
- response: int32 status,        int32 operands[3]

A response carries the operand vector back with the result written at
index ``arity``. The server also opens every connection with a response
frame whose status is READY (session admitted) or BUSY (denied).
"""
from enum import IntEnum
import socket
import struct
from typing import List, Sequence, Tuple

from checked_math.core.dispatcher import OPERAND_CAPACITY, Operation
from checked_math.core.errors import ErrorKind
from checked_math.core.scalar import in_range

REQUEST = struct.Struct("!I3i")
RESPONSE = struct.Struct("!i3i")
FRAME_SIZE: int = REQUEST.size

UNKNOWN_OPERATION = "UNKNOWN OPERATION"
UNKNOWN_STATUS = "UNKNOWN STATUS"


class Status(IntEnum):
    """Response status codes; error codes reuse the ErrorKind values."""

    OK = 0
    BAD_COMMAND = ErrorKind.BAD_COMMAND.value
    OVERFLOW = ErrorKind.OVERFLOW.value
    UNDERFLOW = ErrorKind.UNDERFLOW.value
    BAD_EXPONENT = ErrorKind.BAD_EXPONENT.value
    BAD_LOGARITHM = ErrorKind.BAD_LOGARITHM.value
    ZERO_DIVISION = ErrorKind.ZERO_DIVISION.value
    BUSY = 16
    READY = 100

    @property
    def is_error(self) -> bool:
        """True for statuses that report an engine error kind."""
        return any(self.value == kind.value for kind in ErrorKind)


class ProtocolError(Exception):
    """Raised on short, truncated or otherwise malformed frames."""


def operation_name(op_id: int) -> str:
    """Return the symbolic name of an operation identifier."""
    try:
        return Operation(op_id).name
    except ValueError:
        return UNKNOWN_OPERATION


def status_name(code: int) -> str:
    """Return the symbolic name of a status code."""
    try:
        return Status(code).name
    except ValueError:
        return UNKNOWN_STATUS


def _vector(operands: Sequence[int]) -> List[int]:
    """Pad operands to full capacity and check they fit the wire type."""
    if len(operands) > OPERAND_CAPACITY:
        raise ValueError(f"at most {OPERAND_CAPACITY} operands, got {len(operands)}")
    for value in operands:
        if not in_range(value):
            raise ValueError(f"operand {value} does not fit a 32-bit signed integer")
    return list(operands) + [0] * (OPERAND_CAPACITY - len(operands))


def encode_request(op_id: int, operands: Sequence[int]) -> bytes:
    """
    Pack a request frame.

    :param int op_id: Operation identifier (need not be a known one)
    :param Sequence[int] operands: Up to three operands

    :return: 16-byte request frame
    :rtype: bytes
    :raises ValueError: If operands do not fit the frame
    """
    if not 0 <= op_id <= 0xFFFFFFFF:
        raise ValueError(f"operation id {op_id} does not fit an unsigned 32-bit integer")
    return REQUEST.pack(op_id, *_vector(operands))


def decode_request(frame: bytes) -> Tuple[int, List[int]]:
    """
    Unpack a request frame.

    :param bytes frame: 16-byte request frame

    :return: Tuple of (operation id, operand vector)
    :rtype: Tuple[int, List[int]]
    :raises ProtocolError: If the frame has the wrong size
    """
    if len(frame) != REQUEST.size:
        raise ProtocolError(f"request frame must be {REQUEST.size} bytes, got {len(frame)}")
    op_id, *operands = REQUEST.unpack(frame)
    return op_id, operands


def encode_response(status: int, operands: Sequence[int] = ()) -> bytes:
    """Pack a response frame."""
    return RESPONSE.pack(int(status), *_vector(operands))


def decode_response(frame: bytes) -> Tuple[int, List[int]]:
    """
    Unpack a response frame.

    :param bytes frame: 16-byte response frame

    :return: Tuple of (status code, operand vector)
    :rtype: Tuple[int, List[int]]
    :raises ProtocolError: If the frame has the wrong size
    """
    if len(frame) != RESPONSE.size:
        raise ProtocolError(f"response frame must be {RESPONSE.size} bytes, got {len(frame)}")
    status, *operands = RESPONSE.unpack(frame)
    return status, operands


def recv_frame(conn: socket.socket) -> bytes:
    """
    Read exactly one frame from a stream socket.

    :param socket.socket conn: Connected socket

    :return: Frame bytes, or b"" if the peer closed before sending anything
    :rtype: bytes
    :raises ProtocolError: If the peer closed in the middle of a frame
    """
    # Frames may arrive split across several TCP segments
    chunks: List[bytes] = []
    received = 0
    while received < FRAME_SIZE:
        chunk: bytes = conn.recv(FRAME_SIZE - received)
        if not chunk:
            if received:
                raise ProtocolError(f"connection closed after {received} of {FRAME_SIZE} bytes")
            return b""
        chunks.append(chunk)
        received += len(chunk)
    return b"".join(chunks)
