"""Conformance checks run against a live server."""
from contextlib import ExitStack
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from checked_math.client.client import AdmissionDeniedError, MathClient, MathSession
from checked_math.common.logger import logger
from checked_math.common.protocol import operation_name
from checked_math.core.dispatcher import Operation
from checked_math.core.errors import MathError
from checked_math.core.scalar import INT_BITS, INT_MAX, INT_MIN


class Check(BaseModel):
    """One request and its expected outcome; ``expected=None`` means it must fail."""

    model_config = ConfigDict(frozen=True)

    operation: int = Field(..., description="Operation identifier, possibly unknown")
    operands: Tuple[int, ...] = Field(..., description="Input operands")
    expected: Optional[int] = Field(..., description="Expected result, None if the request must fail")

    def describe(self) -> str:
        args = ", ".join(str(v) for v in self.operands)
        return f"{operation_name(self.operation)}({args})"


CHECKS: List[Check] = [
    Check(operation=Operation.NEG, operands=(4,), expected=-4),
    # -INT_MIN is not representable
    Check(operation=Operation.NEG, operands=(INT_MIN,), expected=None),
    Check(operation=Operation.ADD, operands=(2, 2), expected=4),
    Check(operation=Operation.ADD, operands=(2, -5), expected=-3),
    Check(operation=Operation.ADD, operands=(INT_MAX, 2), expected=None),
    Check(operation=Operation.DIV, operands=(6, 3), expected=2),
    Check(operation=Operation.DIV, operands=(200, -3), expected=-66),
    Check(operation=Operation.DIV, operands=(1, 0), expected=None),
    Check(operation=Operation.EXP, operands=(2, 2), expected=4),
    Check(operation=Operation.EXP, operands=(-2, 2), expected=4),
    Check(operation=Operation.EXP, operands=(1, 1_000_000), expected=1),
    Check(operation=Operation.EXP, operands=(2, 1_000_000), expected=None),
    Check(operation=Operation.LOG, operands=(4, 2), expected=2),
    Check(operation=Operation.LOG, operands=(1, 2), expected=0),
    Check(operation=Operation.LOG, operands=(1, 3), expected=0),
    Check(operation=Operation.LOG, operands=(1, 4), expected=0),
    Check(operation=Operation.LOG, operands=(2, 2), expected=1),
    Check(operation=Operation.LOG, operands=(2, 3), expected=0),
    Check(operation=Operation.LOG, operands=(2, 4), expected=0),
    Check(operation=Operation.LOG, operands=(4, 3), expected=1),
    Check(operation=Operation.LOG, operands=(4, 4), expected=1),
    Check(operation=Operation.LOG, operands=(9, 2), expected=3),
    Check(operation=Operation.LOG, operands=(9, 3), expected=2),
    Check(operation=Operation.LOG, operands=(9, 4), expected=1),
    Check(operation=Operation.LOG, operands=(15, 4), expected=1),
    Check(operation=Operation.LOG, operands=(16, 4), expected=2),
    Check(operation=Operation.LOG, operands=(INT_MAX - 1, INT_MAX), expected=0),
    Check(operation=Operation.LOG, operands=(INT_MAX, 1), expected=None),
    Check(operation=Operation.LOG, operands=(INT_MAX, INT_MAX), expected=1),
    Check(operation=Operation.LOG, operands=(INT_MAX, INT_MAX - 1), expected=1),
    # INT_MAX == 2 ** (INT_BITS - 1) - 1, so log2(INT_MAX) == INT_BITS - 2
    Check(operation=Operation.LOG, operands=(INT_MAX, 2), expected=INT_BITS - 2),
    Check(operation=Operation.LOG, operands=(3, 3), expected=1),
    Check(operation=Operation.LOG, operands=(0, 0), expected=None),
    Check(operation=0, operands=(1, 2), expected=None),
]


def run_check(session: MathSession, check: Check) -> Optional[str]:
    """
    Run one check and describe the mismatch, if any.

    :param MathSession session: Open session
    :param Check check: Check to run

    :return: Mismatch description, or None if the check passed
    :rtype: Optional[str]
    """
    try:
        result = session.evaluate(check.operation, *check.operands)
    except MathError as exc:
        if check.expected is None:
            return None
        return f"{check.describe()} should return {check.expected}, but failed with {exc.kind.name}"

    if check.expected is None:
        return f"{check.describe()} should fail, but returned {result}"
    if result != check.expected:
        return f"{check.describe()} should return {check.expected}, but returned {result}"
    return None


def check_session_limit(client: MathClient, max_sessions: int) -> Optional[str]:
    """
    Open ``max_sessions`` sessions and verify that one more is denied.

    Opening the first sessions retries on BUSY, since sessions from earlier
    checks may still be draining on the server. The extra session is tried
    exactly once.

    :param MathClient client: Client pointing at the server
    :param int max_sessions: Session limit the server is configured with

    :return: Mismatch description, or None if the limit holds
    :rtype: Optional[str]
    """
    patient = client.model_copy(update={"busy_retries": max(client.busy_retries, 20)})
    strict = client.model_copy(update={"busy_retries": 0})
    with ExitStack() as stack:
        for i in range(max_sessions):
            try:
                stack.enter_context(patient.session())
            except AdmissionDeniedError:
                return f"open({i}) was denied below the limit of {max_sessions}"
        try:
            with strict.session():
                return f"open({max_sessions}) succeeded, but has to fail"
        except AdmissionDeniedError:
            return None


def run_self_check(client: MathClient, max_sessions: int = 6) -> List[str]:
    """
    Run every conformance check, then the session-limit check.

    :param MathClient client: Client pointing at the server
    :param int max_sessions: Session limit the server is configured with

    :return: List of mismatch descriptions, empty when everything passed
    :rtype: List[str]
    """
    failures: List[str] = []
    with client.session() as session:
        for check in CHECKS:
            mismatch = run_check(session, check)
            if mismatch is not None:
                logger.error(f"❌ {mismatch}")
                failures.append(mismatch)

    mismatch = check_session_limit(client, max_sessions)
    if mismatch is not None:
        logger.error(f"❌ {mismatch}")
        failures.append(mismatch)

    if not failures:
        logger.info(f"✅ All {len(CHECKS) + 1} checks passed")
    return failures
