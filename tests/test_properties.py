"""Property-based tests using Hypothesis.

These tests verify algebraic properties that must hold for *all* 32-bit
inputs.  They complement the table-driven tests by exploring the input
space broadly rather than targeting specific cases.
"""
from hypothesis import assume, given, settings
from hypothesis.strategies import integers, sampled_from

from checked_math.core.dispatcher import Operation, arity, dispatch
from checked_math.core.errors import MathError, MathOverflowError
from checked_math.core.logarithm import log
from checked_math.core.power import power
from checked_math.core.scalar import INT_MAX, INT_MIN, add, divide, in_range, negate
from checked_math.server.adapter import evaluate

int32 = integers(min_value=INT_MIN, max_value=INT_MAX)


class TestNegateProperties:

    @given(a=int32)
    def test_involution(self, a):
        assume(a != INT_MIN)
        assert negate(negate(a)) == a


class TestAddProperties:

    @given(a=int32, b=int32)
    def test_commutativity(self, a, b):
        try:
            forward = add(a, b)
        except MathOverflowError:
            forward = None
        try:
            backward = add(b, a)
        except MathOverflowError:
            backward = None
        assert forward == backward

    @given(a=int32, b=int32)
    def test_overflow_exactly_when_out_of_range(self, a, b):
        if in_range(a + b):
            assert add(a, b) == a + b
        else:
            try:
                add(a, b)
            except MathOverflowError:
                return
            raise AssertionError(f"add({a}, {b}) did not overflow")

    @given(a=int32)
    def test_identity(self, a):
        assert add(a, 0) == a


class TestDivideProperties:

    @given(a=int32, b=int32)
    def test_truncated_division_identity(self, a, b):
        """a == b*q + r with |r| < |b| and r carrying the sign of a."""
        assume(b != 0)
        assume(not (a == INT_MIN and b == -1))
        q = divide(a, b)
        r = a - b * q
        assert abs(r) < abs(b)
        assert r == 0 or (r < 0) == (a < 0)


class TestPowerProperties:

    @given(a=integers(min_value=-50, max_value=50), b=integers(min_value=0, max_value=40))
    @settings(max_examples=500)
    def test_matches_exact_power_when_in_range(self, a, b):
        assume(not (a == 0 and b == 0))
        exact = a ** b
        try:
            result = power(a, b)
        except MathOverflowError:
            # -2^31 is the one representable power reached through an overflowing magnitude
            assert not in_range(exact) or exact == INT_MIN
            return
        assert result == exact


class TestLogarithmProperties:

    @given(a=integers(min_value=1, max_value=INT_MAX), b=integers(min_value=2, max_value=INT_MAX))
    @settings(max_examples=500)
    def test_floor_bracket(self, a, b):
        """b^k <= a < b^(k+1)."""
        k = log(a, b)
        assert b ** k <= a < b ** (k + 1)


class TestEvaluateProperties:

    @given(op=sampled_from(list(Operation)), x=int32, y=int32)
    def test_idempotence(self, op, x, y):
        def outcome():
            try:
                return ("ok", evaluate(op, [x, y]))
            except MathError as exc:
                return ("error", exc.kind)

        assert outcome() == outcome()

    @given(op=sampled_from(list(Operation)), x=int32, y=int32, z=int32)
    def test_inputs_never_modified(self, op, x, y, z):
        operands = [x, y, z]
        n = arity(op)
        try:
            dispatch(op, operands)
        except MathError:
            assert operands == [x, y, z]
        else:
            assert operands[:n] == [x, y][:n]

    @given(op=integers(min_value=6, max_value=2 ** 32 - 1), x=int32, y=int32)
    def test_unknown_operations_fail(self, op, x, y):
        operands = [x, y, 0]
        try:
            dispatch(op, operands)
        except MathError as exc:
            assert exc.kind.name == "BAD_COMMAND"
        else:
            raise AssertionError(f"operation {op} was accepted")
        assert operands == [x, y, 0]
