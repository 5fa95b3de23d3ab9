"""Evaluation context threaded through every expression evaluation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentlang.model.values import RuntimeAgent
    from agentlang.runtime.environment import Environment


@dataclass(frozen=True)
class EvaluationContext:
    """Everything an expression may observe while it is evaluated.

    Attributes:
        step: Current step number, read by ``step()``.
        index: Position of the agent being built within its type, read by
            ``index()``.
        agent_id: Id of the agent whose property is being evaluated.
        population: Agents identifiers and ``agents()`` read from: the
            population under construction at step 0, the previous committed
            snapshot afterwards.
        scope: Innermost scope; comprehension scopes chain to the root.
        suppress: When set, type and lookup failures yield null instead of
            raising (left operand of ``otherwise``).
    """

    step: int
    index: int
    agent_id: str
    population: Mapping[str, RuntimeAgent]
    scope: Environment
    suppress: bool = False

    def suppressed(self) -> EvaluationContext:
        return replace(self, suppress=True)

    def with_scope(self, scope: Environment) -> EvaluationContext:
        return replace(self, scope=scope)
