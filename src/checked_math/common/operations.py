"""Pydantic models for operation requests and results."""
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, model_validator

from checked_math.common.protocol import Status
from checked_math.core.dispatcher import Operation, arity
from checked_math.core.scalar import INT_MAX, INT_MIN

Int32 = Annotated[int, Field(ge=INT_MIN, le=INT_MAX)]


class OperationRequest(BaseModel):
    """Represents a single operation request sent to the server."""

    operation: Operation = Field(..., description="Operation to evaluate")
    operands: List[Int32] = Field(..., description="Input operands, one per arity slot")

    @model_validator(mode="after")
    def operands_match_arity(self) -> "OperationRequest":
        """Ensure the number of operands matches the operation's arity."""
        expected = arity(self.operation)
        if len(self.operands) != expected:
            raise ValueError(
                f"{self.operation.name} takes {expected} operand(s), got {len(self.operands)}"
            )
        return self

    def describe(self) -> str:
        """Render the request as ``NAME(a, b)``."""
        args = ", ".join(str(v) for v in self.operands)
        return f"{self.operation.name}({args})"


class OperationResult(BaseModel):
    """Represents the outcome of an evaluated operation."""

    request: OperationRequest = Field(..., description="Original request")
    status: Status = Field(default=Status.OK, description="Response status code")
    result: Optional[Int32] = Field(default=None, description="Result when status is OK")

    @model_validator(mode="after")
    def result_matches_status(self) -> "OperationResult":
        """A successful result carries a value, a failed one never does."""
        if (self.status == Status.OK) != (self.result is not None):
            raise ValueError(f"status {self.status.name} inconsistent with result {self.result!r}")
        return self

    def describe(self) -> str:
        """Render the result as a single output line."""
        if self.status == Status.OK:
            return f"{self.request.describe()} = {self.result}"
        return f"{self.request.describe()} -> ERROR: {self.status.name}"
