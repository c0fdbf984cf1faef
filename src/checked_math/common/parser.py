"""Parse request lines such as ``EXP 2 10`` into operation requests."""
from typing import List

from pydantic import ValidationError

from checked_math.common.operations import OperationRequest
from checked_math.core.dispatcher import Operation

COMMENT = "#"


class RequestParser:
    """
    Parse request files into validated OperationRequest models.

    Line format:
        ``<OPERATION> <operand> [<operand>]``

    Operation names are case-insensitive (NEG, ADD, DIV, EXP, LOG).
    Everything after ``#`` is a comment; blank lines are skipped.

    Examples:
        - ``ADD 2 -5``
        - ``neg 4   # negation``
    """

    @staticmethod
    def tokenize(line: str) -> List[str]:
        """
        Split a request line into tokens, dropping any trailing comment.

        :param str line: Request line

        :return: List of tokens
        :rtype: List[str]
        """
        return line.split(COMMENT, 1)[0].split()

    @staticmethod
    def _is_integer(token: str) -> bool:
        """
        Determine if a token represents an integer.

        :param str token: Token string

        :return: True if token can be converted to int, else False
        :rtype: bool
        """
        try:
            int(token)
            return True
        except ValueError:
            return False

    @staticmethod
    def parse_line(line: str) -> OperationRequest:
        """
        Parse one request line.

        :param str line: Request line

        :return: Validated request
        :rtype: OperationRequest
        :raises ValueError: If the line is empty or malformed
        """
        tokens: List[str] = RequestParser.tokenize(line)

        if not tokens:
            raise ValueError("Empty request")

        name, *args = tokens
        try:
            operation = Operation[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown operation {name!r} in request: {line!r}") from None

        bad = [arg for arg in args if not RequestParser._is_integer(arg)]
        if bad:
            raise ValueError(f"Operands must be integers, got {bad} in request: {line!r}")

        try:
            return OperationRequest(operation=operation, operands=[int(arg) for arg in args])
        except ValidationError as exc:
            raise ValueError(f"Invalid request {line!r}: {exc}") from exc

    @staticmethod
    def parse(content: str) -> List[OperationRequest]:
        """
        Parse a whole request file, skipping blank and comment-only lines.

        :param str content: File content

        :return: Requests in file order
        :rtype: List[OperationRequest]
        :raises ValueError: On the first malformed line, with its line number
        """
        requests: List[OperationRequest] = []
        for line_number, line in enumerate(content.splitlines(), start=1):
            if not RequestParser.tokenize(line):
                continue
            try:
                requests.append(RequestParser.parse_line(line))
            except ValueError as exc:
                raise ValueError(f"line {line_number}: {exc}") from exc
        return requests
