"""Formatter: renders an AST back into canonical source text.

Parentheses are emitted only where re-parsing would otherwise build a
different tree, so ``parse(format_program(p))`` equals ``p``.
"""

from __future__ import annotations

from decimal import Decimal

from agentlang.lexer.lexer import tokenize
from agentlang.model.nodes import (
    BinaryExpression,
    BooleanLiteral,
    CallExpression,
    ConditionalExpression,
    DefineDeclaration,
    Expression,
    Identifier,
    LambdaExpression,
    LogicalExpression,
    MemberExpression,
    NumericLiteral,
    ObjectDeclaration,
    OtherwiseExpression,
    Program,
    UnaryExpression,
    VariableDeclaration,
)
from agentlang.parser.parser import Parser

INDENT = "    "

# Binding strength of each expression form, loosest first
OTHERWISE = 1
LAMBDA = 2
CONDITIONAL = 3
LOGICAL = 4
COMPARISON = 5
ADDITIVE = 6
MULTIPLICATIVE = 7
UNARY = 8
MEMBER = 9
CALL = 10
PRIMARY = 11

_BINARY_LEVELS = {
    "+": ADDITIVE,
    "-": ADDITIVE,
    "*": MULTIPLICATIVE,
    "/": MULTIPLICATIVE,
    "%": MULTIPLICATIVE,
}


def _level(expression: Expression) -> int:
    if isinstance(expression, OtherwiseExpression):
        return OTHERWISE
    if isinstance(expression, LambdaExpression):
        return LAMBDA
    if isinstance(expression, ConditionalExpression):
        return CONDITIONAL
    if isinstance(expression, LogicalExpression):
        return LOGICAL
    if isinstance(expression, BinaryExpression):
        return _BINARY_LEVELS.get(expression.operator, COMPARISON)
    if isinstance(expression, UnaryExpression):
        return UNARY
    if isinstance(expression, MemberExpression):
        return MEMBER
    if isinstance(expression, CallExpression):
        return CALL
    return PRIMARY


def _ends_open(expression: Expression) -> bool:
    """Whether the rendered text ends in an `else` branch that would swallow
    any operator written after it."""
    if isinstance(expression, ConditionalExpression):
        return True
    if isinstance(expression, (BinaryExpression, LogicalExpression, OtherwiseExpression)):
        return _ends_open(expression.right)
    if isinstance(expression, LambdaExpression):
        return _ends_open(expression.value)
    return False


def format_number(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    # shortest round-tripping digits, written without an exponent
    return format(Decimal(repr(value)), "f")


def format_expression(expression: Expression, minimum: int = OTHERWISE, tail: bool = True) -> str:
    """Render an expression.

    Args:
        expression: Expression to render.
        minimum: Weakest binding level allowed without parentheses here.
        tail: Whether nothing follows this expression in its context.
    """
    text = _render(expression)
    if _level(expression) < minimum or (not tail and _ends_open(expression)):
        return f"({text})"
    return text


def _render(expression: Expression) -> str:
    if isinstance(expression, NumericLiteral):
        return format_number(expression.value)
    if isinstance(expression, BooleanLiteral):
        return "true" if expression.value else "false"
    if isinstance(expression, Identifier):
        return expression.identifier

    if isinstance(expression, OtherwiseExpression):
        left = format_expression(expression.left, OTHERWISE, tail=False)
        right = format_expression(expression.right, LAMBDA)
        return f"{left} otherwise {right}"

    if isinstance(expression, LambdaExpression):
        base = format_expression(expression.base, CONDITIONAL, tail=False)
        value = format_expression(expression.value, CONDITIONAL)
        return f"{base} => {expression.param} => {value}"

    if isinstance(expression, ConditionalExpression):
        condition = format_expression(expression.condition)
        consequent = format_expression(expression.consequent)
        alternate = format_expression(expression.alternate)
        return f"if {condition} then {consequent} else {alternate}"

    if isinstance(expression, (LogicalExpression, BinaryExpression)):
        level = _level(expression)
        left = format_expression(expression.left, level, tail=False)
        right = format_expression(expression.right, level + 1)
        return f"{left} {expression.operator} {right}"

    if isinstance(expression, UnaryExpression):
        return f"{expression.operator}{format_expression(expression.value, MEMBER)}"

    if isinstance(expression, MemberExpression):
        caller = format_expression(expression.caller, MEMBER, tail=False)
        return f"{caller}.{format_expression(expression.value, CALL)}"

    if isinstance(expression, CallExpression):
        caller = format_expression(expression.caller, PRIMARY, tail=False)
        args = ", ".join(format_expression(arg) for arg in expression.args)
        return f"{caller}({args})"

    raise TypeError(f"Cannot format node of type {type(expression).__name__}")


def format_variable_declaration(declaration: VariableDeclaration) -> str:
    text = f"{declaration.variable_type.value} {declaration.identifier}"
    if declaration.default is not None:
        text += f": {format_expression(declaration.default)}"
    return f"{text} = {format_expression(declaration.value)};"


def format_program(program: Program) -> str:
    """Render a whole program, declarations in the order given."""
    blocks: list[str] = []
    defines: list[str] = []

    for statement in program.body:
        if isinstance(statement, DefineDeclaration):
            defines.append(f"define {statement.identifier} = {format_expression(statement.value)};")
            continue

        if defines:
            blocks.append("\n".join(defines))
            defines = []

        if isinstance(statement, ObjectDeclaration):
            count = format_expression(statement.count)
            lines = [f"agent {statement.identifier} {count} {{"]
            lines.extend(INDENT + format_variable_declaration(v) for v in statement.body)
            lines.append("}")
            blocks.append("\n".join(lines))

    if defines:
        blocks.append("\n".join(defines))

    return "\n\n".join(blocks) + "\n" if blocks else ""


def format_source(source_code: str) -> str:
    """Parse source text and render it canonically, keeping declaration order."""
    program = Parser(tokenize(source_code)).parse(resolve=False)
    return format_program(program)
