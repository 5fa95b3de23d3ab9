"""Runtime values and agents manipulated by the evaluator."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from agentlang.runtime.context import EvaluationContext


class ValueType(Enum):
    """Tags of the runtime value union."""

    NUMBER = "number"
    BOOLEAN = "boolean"
    IDENTIFIER = "identifier"
    FUNCTION = "function"
    NULL = "null"
    AGENT = "agent"
    AGENTS = "agents"
    LAMBDA = "lambda"
    OUTPUT = "output"


@dataclass
class RuntimeAgent:
    """One agent instance within a single step.

    Variables are filled in dependency order while the step is evaluated.
    """

    id: str
    identifier: str  # agent type
    variables: dict[str, RuntimeValue] = field(default_factory=dict)


@dataclass(frozen=True)
class RuntimeValue:
    """Base class of all runtime values."""

    type: ClassVar[ValueType]


@dataclass(frozen=True)
class NumberValue(RuntimeValue):
    type: ClassVar[ValueType] = ValueType.NUMBER
    value: float


@dataclass(frozen=True)
class BooleanValue(RuntimeValue):
    type: ClassVar[ValueType] = ValueType.BOOLEAN
    value: bool


@dataclass(frozen=True)
class IdentifierValue(RuntimeValue):
    """An agent type name passed around as a first-class token."""

    type: ClassVar[ValueType] = ValueType.IDENTIFIER
    value: str


# Pure builtins receive only their arguments; context readers such as
# step() or agents() also receive the active evaluation context.
NativeCall = Callable[[list[RuntimeValue]], RuntimeValue]
ContextCall = Callable[[list[RuntimeValue], "EvaluationContext"], RuntimeValue]


@dataclass(frozen=True)
class FunctionValue(RuntimeValue):
    type: ClassVar[ValueType] = ValueType.FUNCTION
    name: str
    call: Callable[..., RuntimeValue]
    uses_context: bool = False


@dataclass(frozen=True)
class NullValue(RuntimeValue):
    type: ClassVar[ValueType] = ValueType.NULL


@dataclass(frozen=True)
class AgentValue(RuntimeValue):
    type: ClassVar[ValueType] = ValueType.AGENT
    value: RuntimeAgent


@dataclass(frozen=True)
class AgentsValue(RuntimeValue):
    type: ClassVar[ValueType] = ValueType.AGENTS
    value: tuple[RuntimeAgent, ...] = ()


@dataclass(frozen=True)
class LambdaValue(RuntimeValue):
    """Result of a set comprehension: matched agents paired with body results."""

    type: ClassVar[ValueType] = ValueType.LAMBDA
    agents: tuple[RuntimeAgent, ...] = ()
    results: tuple[RuntimeValue, ...] = ()


@dataclass(frozen=True)
class OutputValue(RuntimeValue):
    """Top-level result of evaluating one step."""

    type: ClassVar[ValueType] = ValueType.OUTPUT
    step: int
    agents: tuple[RuntimeAgent, ...] = ()


NULL = NullValue()


def normalize_number(value: float, digits: int | None = 2) -> float:
    """Round a number to a fixed number of decimal digits.

    Args:
        value: Number to round.
        digits: Decimal digits to keep, or None to leave the value untouched.

    Returns:
        The rounded value.
    """
    if digits is None or not math.isfinite(value):
        return float(value)
    factor = 10**digits
    scaled = value * factor
    if not math.isfinite(scaled):
        # too large to carry any decimals
        return float(value)
    # half-up rounding; + 0.0 folds -0.0 into 0.0
    return math.floor(scaled + 0.5) / factor + 0.0

