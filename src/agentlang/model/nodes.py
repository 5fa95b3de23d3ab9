"""Abstract syntax tree nodes.

Nodes are frozen dataclasses. Positions are carried for diagnostics but are
excluded from equality, so two trees parsed from differently laid out source
compare equal when their structure matches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from agentlang.model.token import Position

NO_POSITION = Position(0, 0)


class VariableType(Enum):
    """Kind of a property declared inside an agent body."""

    CONST = "const"  # evaluated once at step 0, carried forward afterwards
    PROPERTY = "property"  # re-evaluated every step


@dataclass(frozen=True)
class Node:
    """Base class of every AST node."""

    position: Position = field(default=NO_POSITION, compare=False, kw_only=True)


@dataclass(frozen=True)
class Expression(Node):
    """Base class of expression nodes."""


@dataclass(frozen=True)
class NumericLiteral(Expression):
    value: float


@dataclass(frozen=True)
class BooleanLiteral(Expression):
    value: bool


@dataclass(frozen=True)
class Identifier(Expression):
    identifier: str


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """Arithmetic (`+ - * / %`) or comparison (`== != < <= > >=`) expression."""

    operator: str
    left: Expression
    right: Expression


@dataclass(frozen=True)
class UnaryExpression(Expression):
    operator: str
    value: Expression


@dataclass(frozen=True)
class LogicalExpression(Expression):
    operator: str
    left: Expression
    right: Expression


@dataclass(frozen=True)
class ConditionalExpression(Expression):
    condition: Expression
    consequent: Expression
    alternate: Expression


@dataclass(frozen=True)
class CallExpression(Expression):
    caller: Expression
    args: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class MemberExpression(Expression):
    caller: Expression
    value: Expression


@dataclass(frozen=True)
class LambdaExpression(Expression):
    """Set comprehension `base => param => value` over an agents list."""

    base: Expression
    param: str
    value: Expression


@dataclass(frozen=True)
class OtherwiseExpression(Expression):
    """`left otherwise right`: falls back to right when left evaluates to null."""

    left: Expression
    right: Expression


@dataclass(frozen=True)
class Statement(Node):
    """Base class of declarations."""


@dataclass(frozen=True)
class VariableDeclaration(Statement):
    variable_type: VariableType
    identifier: str
    value: Expression
    default: Expression | None = None


@dataclass(frozen=True)
class ObjectDeclaration(Statement):
    """An agent type: `agent <identifier> <count> { ... }`."""

    identifier: str
    count: Expression
    body: tuple[VariableDeclaration, ...] = ()


@dataclass(frozen=True)
class DefineDeclaration(Statement):
    """A global constant: `define <identifier> = <value>;`."""

    identifier: str
    value: Expression


@dataclass(frozen=True)
class Program(Node):
    body: tuple[Statement, ...] = ()

    @property
    def defines(self) -> list[DefineDeclaration]:
        return [s for s in self.body if isinstance(s, DefineDeclaration)]

    @property
    def agents(self) -> list[ObjectDeclaration]:
        return [s for s in self.body if isinstance(s, ObjectDeclaration)]
