"""Lexical scope chain used by the evaluator."""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentlang.errors import EvaluationError

if TYPE_CHECKING:
    from agentlang.model.values import RuntimeValue


class Environment:
    """A scope mapping identifiers to runtime values, with an optional parent.

    Lookups walk up the parent chain. Declaring an identifier twice in the
    same scope, and looking up or assigning an identifier no scope declares,
    are errors.
    """

    def __init__(self, parent: Environment | None = None) -> None:
        self.parent = parent
        self._variables: dict[str, RuntimeValue] = {}

    def declare(self, identifier: str, value: RuntimeValue) -> RuntimeValue:
        if identifier in self._variables:
            raise EvaluationError(f"Identifier '{identifier}' is already declared in this scope")
        self._variables[identifier] = value
        return value

    def assign(self, identifier: str, value: RuntimeValue) -> RuntimeValue:
        scope = self.resolve(identifier)
        if scope is None:
            raise EvaluationError(f"Identifier '{identifier}' does not exist")
        scope._variables[identifier] = value
        return value

    def lookup(self, identifier: str) -> RuntimeValue:
        scope = self.resolve(identifier)
        if scope is None:
            raise EvaluationError(f"Identifier '{identifier}' does not exist")
        return scope._variables[identifier]

    def resolve(self, identifier: str) -> Environment | None:
        """Return the nearest scope declaring the identifier, if any."""
        scope: Environment | None = self
        while scope is not None:
            if identifier in scope._variables:
                return scope
            scope = scope.parent
        return None

    def __contains__(self, identifier: str) -> bool:
        return self.resolve(identifier) is not None
